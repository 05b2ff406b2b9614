"""Structural matching of runtime values against pattern trees."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping, MutableMapping, Sequence
from dataclasses import dataclass
from typing import Any

from assertive.errors import ConfigurationError
from assertive.patterns.model import (
    Bind,
    Compound,
    CompoundKind,
    Guarded,
    Literal,
    Pattern,
    Pin,
    Var,
    Wildcard,
    render,
    unresolved_pins,
)

logger = logging.getLogger(__name__)


class BindingSet(Mapping[Var, Any]):
    """Read-only, insertion-ordered mapping of captured variables to values."""

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[Var, Any] | None = None) -> None:
        self._data: dict[Var, Any] = dict(data or {})

    def __getitem__(self, var: Var) -> Any:
        return self._data[var]

    def __iter__(self) -> Iterator[Var]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        inner = ", ".join(f"{var.name}={value!r}" for var, value in self._data.items())
        return f"BindingSet({inner})"

    def by_name(self) -> dict[str, Any]:
        """Bindings keyed by variable name, ready to merge into a caller's locals."""
        return {var.name: value for var, value in self._data.items()}

    def merge_into(self, namespace: MutableMapping[str, Any]) -> None:
        namespace.update(self.by_name())


@dataclass(frozen=True, slots=True)
class Mismatch:
    """The whole pattern and the whole value of a failed match."""

    pattern: Pattern
    value: Any

    def __bool__(self) -> bool:
        return False

    def __str__(self) -> str:
        return f"{render(self.pattern)} does not match {self.value!r}"


def strict_equal(left: Any, right: Any) -> bool:
    """Equality that also requires identical types, recursively through containers.

    ``1`` and ``1.0`` or ``True`` and ``1`` are equal for ``==`` but not here.
    """
    if type(left) is not type(right):
        return False
    if isinstance(left, (tuple, list)):
        return len(left) == len(right) and all(strict_equal(a, b) for a, b in zip(left, right))
    if isinstance(left, Mapping):
        if left.keys() != right.keys():
            return False
        return all(strict_equal(left[key], right[key]) for key in left)
    return bool(left == right)


def match(pattern: Pattern, value: Any, *, allow_guards: bool = True) -> BindingSet | Mismatch:
    """Match ``value`` against ``pattern``.

    Returns
    -------
    BindingSet | Mismatch
        The captured bindings on success; otherwise a single mismatch holding the
        full pattern and value. No partial bindings survive a mismatch.

    Raises
    ------
    ConfigurationError
        If a pin is unresolved, or the pattern is guarded and ``allow_guards`` is
        false.
    """
    if missing := unresolved_pins(pattern):
        names = ", ".join(f"^{pin.name}" for pin in missing)
        msg = f"pinned variables are not bound in the enclosing scope: {names}"
        raise ConfigurationError(msg)

    acc: dict[Var, Any] = {}
    if _match(pattern, value, acc, allow_guards):
        return BindingSet(acc)
    return Mismatch(pattern, value)


def matches(pattern: Pattern, value: Any) -> bool:
    return isinstance(match(pattern, value), BindingSet)


def matcher_for(pattern: Pattern) -> Callable[[Any], bool]:
    """Predicate answering only whether a value matches, ignoring its bindings."""

    def matcher(value: Any) -> bool:
        return matches(pattern, value)

    return matcher


def _match(pattern: Pattern, value: Any, acc: dict[Var, Any], allow_guards: bool) -> bool:
    match pattern:
        case Literal(value=expected):
            return strict_equal(expected, value)
        case Pin(value=expected):
            return strict_equal(expected, value)
        case Wildcard():
            return True
        case Bind() as bind:
            var = bind.var
            if var in acc:
                return strict_equal(acc[var], value)
            acc[var] = value
            return True
        case Guarded(pattern=inner, guard=guard):
            if not allow_guards:
                msg = f"guards are not allowed in this pattern: {render(pattern)}"
                raise ConfigurationError(msg)
            if not _match(inner, value, acc, allow_guards):
                return False
            names = {var.name: bound for var, bound in acc.items()}
            try:
                return bool(guard.test(names))
            except Exception as error:
                # A guard that raises does not match.
                logger.debug("Guard %s raised %s: %s", guard.source, type(error).__name__, error)
                return False
        case Compound():
            return _match_compound(pattern, value, acc, allow_guards)
        case _:
            msg = f"not a pattern: {pattern!r}"
            raise ConfigurationError(msg)


def _match_compound(pattern: Compound, value: Any, acc: dict[Var, Any], allow_guards: bool) -> bool:
    children = pattern.children
    match pattern.kind:
        case CompoundKind.TUPLE:
            if not isinstance(value, tuple) or len(value) != len(children):
                return False
            return _match_all(children, value, acc, allow_guards)
        case CompoundKind.LIST:
            if not isinstance(value, list) or len(value) != len(children):
                return False
            return _match_all(children, value, acc, allow_guards)
        case CompoundKind.CONS:
            heads, tail = children[:-1], children[-1]
            if not isinstance(value, list) or len(value) < len(heads):
                return False
            if not _match_all(heads, value[: len(heads)], acc, allow_guards):
                return False
            return _match(tail, value[len(heads) :], acc, allow_guards)
        case CompoundKind.MAPPING:
            if not isinstance(value, Mapping):
                return False
            if any(key not in value for key in pattern.keys):
                return False
            return _match_all(children, [value[key] for key in pattern.keys], acc, allow_guards)
        case CompoundKind.RECORD:
            if not isinstance(value, pattern.record_type):
                return False
            if any(not hasattr(value, name) for name in pattern.keys):
                return False
            return _match_all(children, [getattr(value, name) for name in pattern.keys], acc, allow_guards)


def _match_all(children: Sequence[Pattern], values: Sequence[Any], acc: dict[Var, Any], allow_guards: bool) -> bool:
    return all(_match(child, item, acc, allow_guards) for child, item in zip(children, values))
