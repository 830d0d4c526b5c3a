"""Allow ``python -m stubsynth``."""

from stubsynth.main import main

raise SystemExit(main())
