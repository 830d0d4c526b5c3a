# stubsynth/restorer.py
"""Write solved values back into a result value tree."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from stubsynth.errors import ErrorCodes, SchemaError
from stubsynth.paths import ModelVariable
from stubsynth.random_values import RandomValueSynthesizer
from stubsynth.schema import TypeSchema
from stubsynth.values import ObjectValue, Value, from_data

logger = logging.getLogger(__name__)


class ObjectRestorer:
    """Sets the fields named by solved variables, leaving all others alone.

    Null objects met on the way down are replaced by freshly synthesized
    ones so that the solved field has somewhere to live.
    """

    def __init__(self, schema: TypeSchema, random_values: RandomValueSynthesizer) -> None:
        self.schema = schema
        self.random_values = random_values

    def restore(
        self,
        answer: Value,
        solution: Mapping[str, Any],
        variables: Iterable[ModelVariable],
    ) -> Value:
        """Apply *solution* to *answer* and return the (possibly replaced) answer."""
        for variable in variables:
            if variable.is_parameter or variable.canonical_name not in solution:
                continue
            answer = self.assign(answer, variable, solution[variable.canonical_name])
        return answer

    def assign(self, answer: Value, variable: ModelVariable, data: Any) -> Value:
        value = from_data(variable.type_ref, data, self.schema)
        segments = variable.path.segments
        if not segments:
            logger.debug("restore %s (whole value)", variable.canonical_name)
            return value

        if answer.is_null:
            answer = self.random_values.materialize(answer.type_ref)
        node = answer
        for segment in segments[:-1]:
            node = self._descend(node, segment)
        self._object(node).set_field(segments[-1], value)
        logger.debug("restore %s = %r", variable.canonical_name, data)
        return answer

    def _descend(self, node: Value, segment: str) -> ObjectValue:
        obj = self._object(node)
        child = obj.get_field(segment)
        if child.is_null:
            child = self.random_values.materialize(self.schema.field_type(obj.type_ref, segment))
            obj.set_field(segment, child)
        return self._object(child)

    @staticmethod
    def _object(node: Value) -> ObjectValue:
        if not isinstance(node, ObjectValue):
            raise SchemaError(
                f"Cannot set a field on a value of type {node.type_ref}",
                code=ErrorCodes.NOT_A_STRUCT,
                type_name=str(node.type_ref),
            )
        return node


__all__ = ["ObjectRestorer"]
