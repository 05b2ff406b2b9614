"""Classification of assertion expressions into evaluation plans.

An assertion expression arrives from a front-end as one of the nodes in
:mod:`assertive.assertions.expressions`. :func:`classify` picks the strategy that
gives the most informative failure for it:

- ``comparison``: a recognized binary operator whose operands are evaluated once
  and reported on failure.
- ``match``: a direct pattern match that returns its bindings to the caller.
- ``predicate``: a ``match?``-style boolean test, guards allowed.
- ``call``: an opaque call whose arguments are evaluated into temporaries so the
  report can show them without evaluating them twice.
- ``value``: any other expression, judged by truthiness.
"""

from __future__ import annotations

import operator as op
import re
from collections.abc import Callable, Collection, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from assertive.assertions.expressions import Call, Comparison, Expression, Opaque, PatternMatch, Predicate
from assertive.errors import AssertionFailure, ConfigurationError
from assertive.patterns.collector import collect
from assertive.patterns.matcher import BindingSet, match, strict_equal
from assertive.patterns.model import Pattern, Var, contains_guard, render, resolve_pins
from assertive.report import DiagnosticContext, pins_message


class AssertionKind(str, Enum):
    ASSERT = "assert"
    REFUTE = "refute"


def _regex_match(left: Any, right: Any) -> bool:
    if isinstance(right, re.Pattern):
        return right.search(left) is not None
    return right in left


OPERATORS: dict[str, Callable[[Any, Any], Any]] = {
    "==": op.eq,
    "!=": op.ne,
    "<": op.lt,
    ">": op.gt,
    "<=": op.le,
    ">=": op.ge,
    "===": strict_equal,
    "!==": lambda left, right: not strict_equal(left, right),
    "=~": _regex_match,
    "in": lambda left, right: left in right,
}

# Operators whose plain failure message says nothing useful when both sides are
# the same value: report "both sides are exactly equal" instead.
_EQUALITY_CHECKED: dict[AssertionKind, frozenset[str]] = {
    AssertionKind.ASSERT: frozenset({"<", ">", "!==", "!="}),
    AssertionKind.REFUTE: frozenset({"<=", ">=", "===", "==", "=~"}),
}


class OperatorResolver(Protocol):
    """Answers whether an operator still has its default meaning at the call site."""

    def is_default(self, operator: str) -> bool: ...


class DefaultOperators:
    def is_default(self, operator: str) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class ShadowedOperators:
    """Resolver for call sites where some operators were redefined by the caller."""

    operators: frozenset[str] = frozenset()

    @classmethod
    def of(cls, operators: Collection[str]) -> ShadowedOperators:
        return cls(frozenset(operators))

    def is_default(self, operator: str) -> bool:
        return operator not in self.operators


DEFAULT_OPERATORS = DefaultOperators()


@dataclass(frozen=True, slots=True)
class Outcome:
    """What a passing assertion hands back: its value and any captured bindings."""

    value: Any
    bindings: BindingSet = field(default_factory=BindingSet)


@dataclass(frozen=True, slots=True)
class EvaluationPlan:
    kind: AssertionKind
    expression: Expression
    strategy: str
    run: Callable[[], Outcome] = field(repr=False, compare=False)

    def execute(self) -> Outcome:
        """Evaluate the expression, raising AssertionFailure if the assertion fails."""
        return self.run()


def classify(
    kind: AssertionKind | str,
    expression: Expression,
    resolver: OperatorResolver = DEFAULT_OPERATORS,
    *,
    scope: Mapping[Var, Any] | None = None,
) -> EvaluationPlan:
    """Build the evaluation plan for one assertion.

    Parameters
    ----------
    kind
        ``assert`` or ``refute``.
    expression
        Expression tree produced by the front-end.
    resolver
        Tells whether a comparison operator is the default one or was shadowed by
        the caller; shadowed operators are evaluated as opaque expressions.
    scope
        Variables of the enclosing scope, used to resolve pins.

    Raises
    ------
    ConfigurationError
        For misuse that no evaluation could fix: guards in a direct match, a
        refuted direct match, or pins that the scope does not define.
    """
    kind = AssertionKind(kind)

    match expression:
        case Comparison(operator=operator) if operator in OPERATORS and resolver.is_default(operator):
            return EvaluationPlan(kind, expression, "comparison", lambda: _run_comparison(kind, expression))
        case Comparison():
            call = Call(
                OPERATORS.get(expression.operator, _unknown_operator(expression.operator)),
                (expression.left, expression.right),
                name=expression.operator,
                reserved=True,
            )
            return classify(kind, Opaque(call, source=expression.source), resolver, scope=scope)
        case PatternMatch():
            pattern = _prepare_pattern(expression.pattern, scope)
            if kind is AssertionKind.REFUTE:
                msg = (
                    f"invalid pattern in refute: {render(pattern)}\n\n"
                    "A failed match cannot be refuted; use the predicate form: "
                    f"refute match?({render(pattern)}, {expression.value.source})"
                )
                raise ConfigurationError(msg)
            if contains_guard(pattern):
                msg = (
                    f"invalid pattern in assert: {render(pattern)}\n\n"
                    "To assert with guards, use the predicate form: "
                    f"assert match?({render(pattern)}, {expression.value.source})"
                )
                raise ConfigurationError(msg)
            return EvaluationPlan(kind, expression, "match", lambda: _run_match(expression, pattern, scope))
        case Predicate():
            pattern = _prepare_pattern(expression.pattern, scope)
            return EvaluationPlan(kind, expression, "predicate", lambda: _run_predicate(kind, expression, pattern, scope))
        case Opaque(expr=Call() as call) if not call.reserved and not call.all_literal:
            return EvaluationPlan(kind, expression, "call", lambda: _run_call(kind, expression, call))
        case Opaque():
            return EvaluationPlan(kind, expression, "value", lambda: _run_value(kind, expression))
        case _:
            msg = f"not an assertion expression: {expression!r}"
            raise ConfigurationError(msg)


def assert_(
    expression: Expression,
    resolver: OperatorResolver = DEFAULT_OPERATORS,
    *,
    scope: Mapping[Var, Any] | None = None,
) -> Outcome:
    return classify(AssertionKind.ASSERT, expression, resolver, scope=scope).execute()


def refute(
    expression: Expression,
    resolver: OperatorResolver = DEFAULT_OPERATORS,
    *,
    scope: Mapping[Var, Any] | None = None,
) -> Outcome:
    return classify(AssertionKind.REFUTE, expression, resolver, scope=scope).execute()


def _unknown_operator(operator: str) -> Callable[[Any, Any], Any]:
    def fail(left: Any, right: Any) -> Any:
        msg = f"unknown comparison operator {operator!r}"
        raise ConfigurationError(msg)

    return fail


def _prepare_pattern(pattern: Pattern, scope: Mapping[Var, Any] | None) -> Pattern:
    return resolve_pins(pattern, scope) if scope is not None else pattern


def _code(kind: AssertionKind, source: str) -> str:
    return f"{kind.value} {source}"


def _run_comparison(kind: AssertionKind, node: Comparison) -> Outcome:
    left = node.left.evaluate()
    right = node.right.evaluate()
    operator = node.operator
    expr = _code(kind, node.source)
    prefix = "Assertion" if kind is AssertionKind.ASSERT else "Refute"
    message = f"{prefix} with {operator} failed"

    if operator in _EQUALITY_CHECKED[kind] and strict_equal(left, right):
        raise AssertionFailure.build(message + ", both sides are exactly equal", left=left, expr=expr)

    result = bool(OPERATORS[operator](left, right))
    if kind is AssertionKind.REFUTE:
        result = not result
    if not result:
        context = DiagnosticContext.STRICT if operator in ("===", "!==") else DiagnosticContext.EQUAL
        raise AssertionFailure.build(message, left=left, right=right, expr=expr, context=context)
    return Outcome(kind is AssertionKind.ASSERT)


def _run_match(node: PatternMatch, pattern: Pattern, scope: Mapping[Var, Any] | None) -> Outcome:
    value = node.value.evaluate()
    source = node.source or f"{render(pattern)} = {node.value.source}"
    expr = _code(AssertionKind.ASSERT, source)
    pins = collect(pattern, scope).pinned

    result = match(pattern, value, allow_guards=False)
    if not isinstance(result, BindingSet):
        raise AssertionFailure.build(
            "match (=) failed" + pins_message(pins),
            left=pattern,
            right=value,
            expr=expr,
            context=DiagnosticContext.MATCH,
            pinned_bindings=pins,
        )
    if not value:
        raise AssertionFailure.build(f"Expected truthy, got {value!r}", expr=expr)
    return Outcome(value, result)


def _run_predicate(kind: AssertionKind, node: Predicate, pattern: Pattern, scope: Mapping[Var, Any] | None) -> Outcome:
    value = node.value.evaluate()
    source = node.source or f"match?({render(pattern)}, {node.value.source})"
    pins = collect(pattern, scope).pinned

    matched = isinstance(match(pattern, value), BindingSet)
    if kind is AssertionKind.ASSERT and not matched:
        message = "match (match?) failed"
    elif kind is AssertionKind.REFUTE and matched:
        message = "match (match?) succeeded, but should have failed"
    else:
        return Outcome(matched)

    raise AssertionFailure.build(
        message + pins_message(pins),
        left=pattern,
        right=value,
        expr=_code(kind, source),
        context=DiagnosticContext.MATCH,
        pinned_bindings=pins,
    )


def _run_call(kind: AssertionKind, node: Opaque, call: Call) -> Outcome:
    args = tuple(arg.evaluate() for arg in call.args)
    keywords = tuple((name, kw.evaluate()) for name, kw in call.keywords)
    value = call.function(*args, **dict(keywords))
    _check_truthiness(kind, node, value, args=args, keywords=keywords)
    return Outcome(value)


def _run_value(kind: AssertionKind, node: Opaque) -> Outcome:
    value = node.expr.evaluate()
    _check_truthiness(kind, node, value)
    return Outcome(value)


def _check_truthiness(kind: AssertionKind, node: Opaque, value: Any, **fields: Any) -> None:
    if kind is AssertionKind.ASSERT and not value:
        message = f"Expected truthy, got {value!r}"
    elif kind is AssertionKind.REFUTE and value:
        message = f"Expected false or None, got {value!r}"
    else:
        return
    raise AssertionFailure.build(message, expr=_code(kind, node.source), **fields)
