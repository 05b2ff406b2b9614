"""Assertion library: expression classification and helper assertions."""

from assertive.assertions.basic import assert_in_delta, assert_value, flunk, refute_in_delta, refute_value
from assertive.assertions.classifier import (
    DEFAULT_OPERATORS,
    OPERATORS,
    AssertionKind,
    DefaultOperators,
    EvaluationPlan,
    OperatorResolver,
    Outcome,
    ShadowedOperators,
    assert_,
    classify,
    refute,
)
from assertive.assertions.expressions import Call, Comparison, Expression, Opaque, Operand, PatternMatch, Predicate
from assertive.assertions.raises import (
    SignalKind,
    Thrown,
    assert_raises,
    catch_error,
    catch_exit,
    catch_signal,
    catch_throw,
    throw,
)

__all__ = [
    # Expressions
    "Call",
    "Comparison",
    "Expression",
    "Opaque",
    "Operand",
    "PatternMatch",
    "Predicate",
    # Classification
    "AssertionKind",
    "DEFAULT_OPERATORS",
    "DefaultOperators",
    "EvaluationPlan",
    "OPERATORS",
    "OperatorResolver",
    "Outcome",
    "ShadowedOperators",
    "assert_",
    "classify",
    "refute",
    # Value assertions
    "assert_in_delta",
    "assert_value",
    "flunk",
    "refute_in_delta",
    "refute_value",
    # Raise/catch
    "SignalKind",
    "Thrown",
    "assert_raises",
    "catch_error",
    "catch_exit",
    "catch_signal",
    "catch_throw",
    "throw",
]
