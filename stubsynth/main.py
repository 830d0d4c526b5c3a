#!/usr/bin/env python3
"""stubsynth/main.py — CLI entry-point for the stub synthesizer.

Usage examples
--------------
    # Load a descriptor, resolve every contract and report problems
    stubsynth check petstore.sexp

    # Synthesize a return value for one call of getPet(x=3)
    stubsynth synth petstore.sexp getPet --arg x=3 --seed 7

    # Three successive calls, as JSON
    stubsynth synth petstore.sexp getPet --arg x=3 --count 3 --format json

    # Print the constraint model of getPet(x=3) as SMT-LIB
    stubsynth model petstore.sexp getPet --arg x=3

Exit codes
----------
    0   Success.
    1   Synthesis error (bad descriptor, unsupported contract, failed
        precondition, infeasible contracts).
    2   Infrastructure failure (missing file, bad arguments).

The module doubles as ``python -m stubsynth`` via ``stubsynth/__main__.py``.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import textwrap
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from stubsynth import __version__
from stubsynth.config import SynthesisConfig
from stubsynth.errors import SynthesisError
from stubsynth.loader import load_file
from stubsynth.schema import TypeSchema
from stubsynth.synthesizer import StubSynthesizer

_log = logging.getLogger("stubsynth")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INFRA: int = 2


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``stubsynth`` logger: 0 → WARNING, 1 → INFO, 2+ → DEBUG."""
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    root = logging.getLogger("stubsynth")
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
                datefmt="%H:%M:%S",
            )
        )
        root.addHandler(handler)


def _resolve_path(raw: str, label: str = "file") -> Path:
    """Resolve *raw* to an absolute ``Path``, raising on missing files."""
    p = Path(raw).expanduser().resolve()
    if not p.exists():
        _log.error("%s not found: %s", label, p)
        raise SystemExit(EXIT_INFRA)
    return p


def _parse_arguments(pairs: Optional[List[str]]) -> Dict[str, Any]:
    """``["x=3", "name=\\"Rex\\""]`` → ``{"x": 3, "name": "Rex"}``.

    Values are JSON; anything that is not valid JSON is taken as a string.
    """
    arguments: Dict[str, Any] = {}
    for pair in pairs or []:
        name, sep, raw = pair.partition("=")
        if not sep or not name:
            _log.error("argument must look like name=value: %r", pair)
            raise SystemExit(EXIT_INFRA)
        try:
            arguments[name] = json.loads(raw)
        except json.JSONDecodeError:
            arguments[name] = raw
    return arguments


def _load(path: str) -> TypeSchema:
    return load_file(_resolve_path(path, "descriptor"))


def _report(exc: SynthesisError) -> int:
    print(f"error: {exc}", file=sys.stderr)
    return EXIT_ERROR


# ===========================================================================
# Commands
# ===========================================================================

def cmd_check(args: argparse.Namespace) -> int:
    """Load a descriptor and analyze the contracts of every method."""
    try:
        schema = _load(args.descriptor)
    except SynthesisError as exc:
        return _report(exc)

    problems = list(schema.undefined_references())
    synth = StubSynthesizer(schema)
    for name in schema.methods:
        try:
            analysis = synth.analysis(name)
        except SynthesisError as exc:
            problems.append(f"{name}: {exc}")
            continue
        print(f"{name}: {len(analysis.requires)} requires, "
              f"{len(analysis.primitive)} solved, "
              f"{len(analysis.non_primitive)} assigned, "
              f"{len(analysis.regex)} regex")

    for problem in problems:
        print(f"error: {problem}", file=sys.stderr)
    return EXIT_ERROR if problems else EXIT_OK


def cmd_synth(args: argparse.Namespace) -> int:
    """Synthesize return values for successive calls of one method."""
    arguments = _parse_arguments(args.arg)
    try:
        schema = _load(args.descriptor)
        synth = StubSynthesizer(schema, SynthesisConfig(seed=args.seed))
        values = [synth.synthesize(args.method, arguments) for _ in range(args.count)]
    except SynthesisError as exc:
        return _report(exc)

    if args.format == "json":
        data = [v.to_data() for v in values]
        print(json.dumps(data[0] if args.count == 1 else data, indent=2, default=str))
    else:
        for value in values:
            print(value.render())
    return EXIT_OK


def cmd_model(args: argparse.Namespace) -> int:
    """Print the constraint model of one method call as SMT-LIB."""
    arguments = _parse_arguments(args.arg)
    try:
        schema = _load(args.descriptor)
        synth = StubSynthesizer(schema)
        with synth.model(args.method, arguments) as model:
            for line in model.describe():
                print(f"; {line}")
            print(model.to_smt2())
    except SynthesisError as exc:
        return _report(exc)
    return EXIT_OK


# ===========================================================================
# Argument parser
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    """Construct the full CLI argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="stubsynth",
        description=(
            "stubsynth — contract-satisfying stub return values.\n\n"
            "Compiles ensures contracts of API methods into constraint\n"
            "models and splices the solutions into result objects."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              stubsynth check petstore.sexp
              stubsynth synth petstore.sexp getPet --arg x=3 --seed 7
              stubsynth model petstore.sexp getPet --arg x=3
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug).",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )

    def _add_call_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("descriptor", help="API descriptor file (S-expressions).")
        p.add_argument("method", help="Method name.")
        p.add_argument(
            "-a", "--arg",
            action="append",
            metavar="NAME=JSON",
            help="Argument value; repeat for each parameter.",
        )

    # --- check -------------------------------------------------------------
    p_check = subparsers.add_parser(
        "check",
        help="Validate a descriptor and its contracts.",
    )
    p_check.add_argument("descriptor", help="API descriptor file (S-expressions).")
    p_check.set_defaults(func=cmd_check)

    # --- synth -------------------------------------------------------------
    p_synth = subparsers.add_parser(
        "synth",
        help="Synthesize return values for a method call.",
    )
    _add_call_args(p_synth)
    p_synth.add_argument(
        "--seed",
        type=int,
        default=None,
        metavar="N",
        help="Random seed for reproducible output.",
    )
    p_synth.add_argument(
        "-n", "--count",
        type=int,
        default=1,
        metavar="N",
        help="Number of successive calls (default: 1).",
    )
    p_synth.add_argument(
        "-f", "--format",
        choices=["literal", "json"],
        default="literal",
        help="Output format (default: literal).",
    )
    p_synth.set_defaults(func=cmd_synth)

    # --- model -------------------------------------------------------------
    p_model = subparsers.add_parser(
        "model",
        help="Print the constraint model of a method call as SMT-LIB.",
    )
    _add_call_args(p_model)
    p_model.set_defaults(func=cmd_model)

    return parser


# ===========================================================================
# Main entry point
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the stubsynth CLI and return its exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help(sys.stderr)
        return EXIT_INFRA

    try:
        return args.func(args)
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_INFRA
    except Exception as exc:
        _log.error("Unhandled exception: %s", exc, exc_info=True)
        return EXIT_INFRA


if __name__ == "__main__":
    raise SystemExit(main())
