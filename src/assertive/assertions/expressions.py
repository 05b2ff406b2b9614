"""Assertion expression nodes handed to the classifier by a front-end."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from assertive.patterns.model import Pattern


@dataclass(frozen=True, slots=True)
class Operand:
    """A sub-expression of an assertion.

    The engine calls ``evaluate`` exactly once; ``source`` is the literal text the
    test author wrote and ``literal`` marks constants.
    """

    evaluate: Callable[[], Any] = field(compare=False)
    source: str = "<expr>"
    literal: bool = False

    @classmethod
    def value(cls, value: Any, source: str | None = None, *, literal: bool = False) -> Operand:
        """Wrap an already evaluated value."""
        return cls(lambda: value, source if source is not None else repr(value), literal)


@dataclass(frozen=True, slots=True)
class Call:
    """An opaque call whose arguments can be evaluated ahead of the call.

    ``reserved`` marks forms that must not be split into function and arguments.
    """

    function: Callable[..., Any] = field(compare=False)
    args: tuple[Operand, ...] = ()
    keywords: tuple[tuple[str, Operand], ...] = ()
    name: str = "<call>"
    reserved: bool = False

    @property
    def all_literal(self) -> bool:
        return all(arg.literal for arg in self.args) and all(kw.literal for _, kw in self.keywords)

    @property
    def source(self) -> str:
        parts = [arg.source for arg in self.args]
        parts.extend(f"{name}={kw.source}" for name, kw in self.keywords)
        return f"{self.name}({', '.join(parts)})"

    def evaluate(self) -> Any:
        return self.function(
            *(arg.evaluate() for arg in self.args),
            **{name: kw.evaluate() for name, kw in self.keywords},
        )


@dataclass(frozen=True, slots=True)
class Comparison:
    operator: str
    left: Operand
    right: Operand
    source: str = ""

    def __post_init__(self) -> None:
        if not self.source:
            object.__setattr__(self, "source", f"{self.left.source} {self.operator} {self.right.source}")


@dataclass(frozen=True, slots=True)
class PatternMatch:
    """``pattern = value``: binds on success, fails on mismatch."""

    pattern: Pattern
    value: Operand
    source: str = ""


@dataclass(frozen=True, slots=True)
class Predicate:
    """``match?(pattern, value)``: a boolean test that binds nothing."""

    pattern: Pattern
    value: Operand
    source: str = ""


@dataclass(frozen=True, slots=True)
class Opaque:
    expr: Operand | Call
    source: str = ""

    def __post_init__(self) -> None:
        if not self.source:
            object.__setattr__(self, "source", self.expr.source)


Expression = Comparison | PatternMatch | Predicate | Opaque
