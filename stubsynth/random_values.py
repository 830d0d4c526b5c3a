# stubsynth/random_values.py
"""
Random Value Synthesizer
========================

Builds a structurally valid random value for any declared type: primitives,
strings, dates, enums, collections and structs.  Structs are created through
the public constructor with the most parameters; fields the constructor does
not take stay null.  Random numbers fall in ``[0, int_bound)``.

Sizes and depth
---------------
* a collection at the top level has ``0 .. max_collection_size - 1`` items,
  a nested one ``1 .. max_collection_size - 1``;
* at ``max_depth`` collections are empty and structs are null, so recursive
  schemas terminate.

Types that cannot be built degrade to :class:`NullValue` with a warning.
"""

from __future__ import annotations

import datetime
import logging
import random
from typing import Dict, List, Optional

import rstr

from stubsynth.config import SynthesisConfig
from stubsynth.schema import (
    BOOL_TYPES,
    DATE_TYPES,
    DATETIME_TYPES,
    EnumType,
    INT_TYPES,
    REAL_TYPES,
    STR_TYPES,
    StructType,
    TypeRef,
    TypeSchema,
    VOID_TYPES,
)
from stubsynth.values import (
    EnumValue,
    ListValue,
    MapValue,
    NullValue,
    ObjectValue,
    ScalarValue,
    SetValue,
    Value,
    value_key,
)

logger = logging.getLogger(__name__)


class RandomValueSynthesizer:
    """Random, structurally valid values of schema types."""

    def __init__(
        self,
        schema: TypeSchema,
        config: Optional[SynthesisConfig] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.schema = schema
        self.config = config or SynthesisConfig()
        self.rng = rng or random.Random(self.config.seed)
        self._rstr = rstr.Rstr(self.rng)

    # -- strings --------------------------------------------------------

    def string(self, pattern: Optional[str] = None) -> str:
        """A random string matching *pattern* (default: the configured one)."""
        return self._rstr.xeger(self.config.random_string_pattern if pattern is None else pattern)

    # -- entry point ----------------------------------------------------

    def synthesize(self, type_ref: TypeRef, depth: int = 0) -> Value:
        name = type_ref.name
        if type_ref.is_collection:
            return self._collection(type_ref, depth)
        if name in INT_TYPES:
            return ScalarValue(type_ref, self.rng.randrange(max(1, self.config.int_bound)))
        if name in REAL_TYPES:
            return ScalarValue(type_ref, self.rng.random() * self.config.int_bound)
        if name in BOOL_TYPES:
            return ScalarValue(type_ref, self.rng.random() < 0.5)
        if name in STR_TYPES:
            return ScalarValue(type_ref, self.string())
        if name in DATE_TYPES:
            return ScalarValue(type_ref, datetime.date.today())
        if name in DATETIME_TYPES:
            return ScalarValue(type_ref, datetime.datetime.now())
        if name in VOID_TYPES:
            return NullValue(type_ref)

        declared = self.schema.lookup(name)
        if isinstance(declared, EnumType):
            if not declared.constants:
                logger.warning("Enum %s declares no constants; using null", name)
                return NullValue(type_ref)
            return EnumValue(type_ref, declared.constants[0])
        if isinstance(declared, StructType):
            return self._struct(type_ref, declared, depth)

        logger.warning("Type %s is not supported; using null", type_ref)
        return NullValue(type_ref)

    def materialize(self, type_ref: TypeRef) -> ObjectValue:
        """An object of struct *type_ref*, even when random synthesis yields null."""
        value = self.synthesize(type_ref, depth=1)
        if isinstance(value, ObjectValue):
            return value
        declared = self.schema.struct(type_ref)
        logger.debug("Materializing %s with null fields", type_ref)
        return ObjectValue(
            type_ref,
            constructor=declared.widest_constructor() or (),
            fields={f.name: NullValue(f.type) for f in declared.fields},
        )

    # -- shapes ---------------------------------------------------------

    def _struct(self, type_ref: TypeRef, declared: StructType, depth: int) -> Value:
        if depth >= self.config.max_depth:
            logger.debug("Depth limit reached at %s; using null", type_ref)
            return NullValue(type_ref)
        constructor = declared.widest_constructor()
        if constructor is None:
            logger.warning("Type %s has no public constructor; using null", type_ref)
            return NullValue(type_ref)
        fields: Dict[str, Value] = {}
        for f in declared.fields:
            if f.name in constructor:
                fields[f.name] = self.synthesize(f.type, depth + 1)
            else:
                fields[f.name] = NullValue(f.type)
        return ObjectValue(type_ref, constructor=constructor, fields=fields)

    def _size(self, depth: int) -> int:
        limit = self.config.max_collection_size
        if depth >= self.config.max_depth or limit <= 1:
            return 0
        if depth == 0:
            return self.rng.randrange(limit)
        return self.rng.randint(1, limit - 1)

    def _collection(self, type_ref: TypeRef, depth: int) -> Value:
        size = self._size(depth)
        args = type_ref.args
        if type_ref.is_map:
            key_t = args[0] if args else TypeRef("String")
            value_t = args[1] if len(args) > 1 else TypeRef("String")
            keys = self._distinct(key_t, size, depth + 1)
            return MapValue(type_ref, [(k, self.synthesize(value_t, depth + 1)) for k in keys])
        element = args[0] if args else TypeRef("String")
        if type_ref.is_set:
            return SetValue(type_ref, self._distinct(element, size, depth + 1))
        return ListValue(type_ref, [self.synthesize(element, depth + 1) for _ in range(size)])

    def _distinct(self, type_ref: TypeRef, size: int, depth: int) -> List[Value]:
        """Up to *size* pairwise-distinct values; small domains yield fewer."""
        seen: Dict[str, Value] = {}
        for _ in range(size * 10):
            if len(seen) >= size:
                break
            value = self.synthesize(type_ref, depth)
            seen.setdefault(value_key(value), value)
        return list(seen.values())


__all__ = ["RandomValueSynthesizer"]
