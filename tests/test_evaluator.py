# tests/test_evaluator.py
"""Concrete evaluation and REQUIRES checking."""

import pytest

from stubsynth.errors import (
    ErrorCodes,
    PreconditionFailed,
    UnsupportedExpressionError,
    UnsupportedOperatorError,
)
from stubsynth.evaluator import check_requires, evaluate
from stubsynth.parser import parse_expression

from tests.conftest import method


def ev(text, **arguments):
    return evaluate(parse_expression(text), arguments)


class TestEvaluate:

    def test_arithmetic(self):
        assert ev("x * 2 + 1", x=4) == 9
        assert ev("x - 0.5", x=1) == 0.5

    def test_euclidean_division(self):
        assert ev("7 / 2") == 3
        assert ev("-7 / 2") == -4
        assert ev("7 / -2") == -3
        assert ev("-7 / -2") == 4

    def test_real_division(self):
        assert ev("7 / 2.0") == 3.5

    def test_division_by_zero(self):
        with pytest.raises(ZeroDivisionError):
            ev("x / 0", x=1)

    def test_relational_and_logic(self):
        assert ev("x > 0 && x < 10", x=5) is True
        assert ev("x > 0 && x < 10", x=50) is False
        assert ev("!(x == 1) || y", x=1, y=True) is True

    def test_bool_number_coercion(self):
        assert ev("flag == 1", flag=True) is True
        assert ev("flag + 1", flag=True) == 2
        assert ev("x && true", x=3) is True
        assert ev("!x", x=0) is True

    def test_strings(self):
        assert ev('name == "Rex"', name="Rex") is True
        assert ev('"[A-Z]{3}"') == "[A-Z]{3}"

    def test_nested_argument(self):
        assert ev("owner.age + 1", owner={"name": "A", "age": 40}) == 41

    def test_modulo_unsupported(self):
        with pytest.raises(UnsupportedOperatorError):
            ev("x % 2 == 0", x=4)

    def test_call_unsupported(self):
        with pytest.raises(UnsupportedExpressionError):
            ev("len(x)", x=[1])


class TestCheckRequires:

    def test_passes(self):
        m = method("m", params=[("x", "Integer")], requires=["positive: x > 0"])
        check_requires(m, {"x": 3})

    def test_named_failure(self):
        m = method("m", params=[("x", "Integer")], requires=["positive: x > 0"])
        with pytest.raises(PreconditionFailed) as info:
            check_requires(m, {"x": -1})
        assert info.value.message == "Precondition with positive failed"
        assert info.value.contract_name == "positive"

    def test_unnamed_failure(self):
        m = method("m", params=[("x", "Integer")], requires=["x > 0"])
        with pytest.raises(PreconditionFailed) as info:
            check_requires(m, {"x": 0})
        assert info.value.message == "Precondition with unset name failed"

    def test_first_failing_contract_reported(self):
        m = method("m", params=[("x", "Integer")],
                   requires=["small: x < 100", "even: x / 2 * 2 == x"])
        with pytest.raises(PreconditionFailed) as info:
            check_requires(m, {"x": 3})
        assert info.value.contract_name == "even"

    def test_missing_argument(self):
        m = method("m", params=[("x", "Integer")], requires=["positive: x > 0"])
        with pytest.raises(PreconditionFailed) as info:
            check_requires(m, {})
        assert info.value.code == ErrorCodes.MISSING_ARGUMENT

    def test_division_by_zero_fails_precondition(self):
        m = method("m", params=[("x", "Integer")], requires=["ratio: 10 / x > 1"])
        with pytest.raises(PreconditionFailed):
            check_requires(m, {"x": 0})
