"""stubsynth — contract-satisfying stub return values for API methods.

Compiles the behavioural contracts of an API method (``requires`` /
``ensures`` expressions over its parameters and result fields) into a z3
constraint model, solves it, and splices the solution into a randomly
synthesized result object of the declared return shape.

Submodules
----------
ast_nodes, grammar, parser
    Contract expression AST and its parsimonious PEG front-end.

schema, loader
    Structural type schema and the S-expression descriptor loader.

paths, analyzer
    Field path resolution and contract bucketing.

model, solver, restorer
    Constraint model builder, solver driver with per-method enumeration
    sessions, and the solution-to-object restorer.

random_values, values, evaluator
    Random value synthesis, value trees, concrete contract evaluation.

synthesizer
    ``StubSynthesizer`` façade.

main
    CLI entry-point with subcommands ``check``, ``synth`` and ``model``.

Usage
-----
Command-line::

    python -m stubsynth synth petstore.sexp getPet --arg x=3

Programmatic::

    from stubsynth import StubSynthesizer, SynthesisConfig, load_file

    synth = StubSynthesizer(load_file("petstore.sexp"), SynthesisConfig(seed=1))
    print(synth.synthesize("getPet", {"x": 3}).render())
"""

from __future__ import annotations

__version__: str = "0.1.0"

from stubsynth.config import SynthesisConfig
from stubsynth.errors import (
    ContractSyntaxError,
    DescriptorError,
    InfeasibleContractError,
    PreconditionFailed,
    SchemaError,
    SolveBudgetExceededError,
    SynthesisError,
    UnsupportedExpressionError,
    UnsupportedOperatorError,
)
from stubsynth.loader import load_descriptor, load_file
from stubsynth.schema import MethodDescriptor, ParameterDescriptor, TypeRef, TypeSchema
from stubsynth.synthesizer import StubSynthesizer, SynthesisOutcome

__all__: list[str] = [
    "__version__",
    "SynthesisConfig",
    "StubSynthesizer",
    "SynthesisOutcome",
    "TypeSchema",
    "TypeRef",
    "MethodDescriptor",
    "ParameterDescriptor",
    "load_descriptor",
    "load_file",
    "SynthesisError",
    "SchemaError",
    "ContractSyntaxError",
    "DescriptorError",
    "UnsupportedExpressionError",
    "UnsupportedOperatorError",
    "InfeasibleContractError",
    "SolveBudgetExceededError",
    "PreconditionFailed",
]
