"""Pattern trees and the walkers over them.

A pattern is a closed set of node types:

- :class:`Literal` matches a value by strict equality.
- :class:`Bind` always matches and captures the value under a :class:`Var`.
- :class:`Wildcard` always matches and captures nothing.
- :class:`Pin` matches the already-bound value of an outer variable.
- :class:`Compound` matches a structure (tuple, list, list head/tail, mapping,
  record) child by child.
- :class:`Guarded` adds a guard that must hold once the inner pattern matched.

Patterns are built by a front-end (see :mod:`assertive.core`) or by hand; plain
Python values can be lifted with :func:`as_pattern`.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, TypeAlias

from assertive.errors import ConfigurationError
from assertive.report import NO_VALUE


@dataclass(frozen=True, slots=True)
class Var:
    """Identity of a variable: its name plus the lexical scope that owns it."""

    name: str
    scope: int = 0

    def __str__(self) -> str:
        return self.name


class CompoundKind(Enum):
    TUPLE = "tuple"
    LIST = "list"
    CONS = "cons"
    MAPPING = "mapping"
    RECORD = "record"


@dataclass(frozen=True, slots=True)
class Literal:
    value: Any


@dataclass(frozen=True, slots=True)
class Bind:
    name: str
    scope: int = 0

    @property
    def var(self) -> Var:
        return Var(self.name, self.scope)


@dataclass(frozen=True, slots=True)
class Wildcard:
    pass


@dataclass(frozen=True, slots=True)
class Pin:
    """Reference to an outer variable, compared for equality and never re-bound.

    ``value`` is attached by the front-end; ``NO_VALUE`` means the pin has not been
    resolved against the enclosing scope yet.
    """

    name: str
    scope: int = 0
    value: Any = field(default=NO_VALUE, compare=False)

    @property
    def var(self) -> Var:
        return Var(self.name, self.scope)

    @property
    def resolved(self) -> bool:
        return self.value is not NO_VALUE


@dataclass(frozen=True, slots=True)
class Compound:
    """Structural pattern.

    For ``TUPLE`` and ``LIST`` the children match positions one to one. For
    ``CONS`` the last child is the tail, matched against the rest of the list.
    For ``MAPPING`` ``keys[i]`` is the key whose value ``children[i]`` matches;
    for ``RECORD`` ``keys[i]`` is an attribute name of ``record_type``.
    """

    kind: CompoundKind
    children: tuple[Pattern, ...] = ()
    keys: tuple[Any, ...] = ()
    record_type: type | None = None

    def __post_init__(self) -> None:
        if self.kind in (CompoundKind.MAPPING, CompoundKind.RECORD) and len(self.keys) != len(self.children):
            msg = f"{self.kind.value} pattern needs one key per child, got {len(self.keys)} keys"
            raise ConfigurationError(msg)
        if self.kind is CompoundKind.CONS and not self.children:
            raise ConfigurationError("cons pattern needs at least a tail")
        if self.kind is CompoundKind.RECORD and self.record_type is None:
            raise ConfigurationError("record pattern needs a record_type")


@dataclass(frozen=True, slots=True)
class Guard:
    """A guard expression evaluated against the bindings of a match.

    Attributes
    ----------
    test
        Callable receiving the bindings by name and returning a truthy value.
    source
        Source text of the guard, used in diagnostics.
    references
        Variables the guard reads.
    """

    test: Callable[[Mapping[str, Any]], Any] = field(compare=False)
    source: str = "<guard>"
    references: tuple[Var, ...] = ()


@dataclass(frozen=True, slots=True)
class Guarded:
    pattern: Pattern
    guard: Guard


Pattern: TypeAlias = "Literal | Bind | Wildcard | Pin | Compound | Guarded"

_PATTERN_TYPES = (Literal, Bind, Wildcard, Pin, Compound, Guarded)


def is_pattern(obj: Any) -> bool:
    return isinstance(obj, _PATTERN_TYPES)


def tuple_(*children: Any) -> Compound:
    return Compound(CompoundKind.TUPLE, tuple(as_pattern(c) for c in children))


def list_(*children: Any) -> Compound:
    return Compound(CompoundKind.LIST, tuple(as_pattern(c) for c in children))


def cons(*heads: Any, tail: Any) -> Compound:
    return Compound(CompoundKind.CONS, tuple(as_pattern(c) for c in (*heads, tail)))


def mapping(entries: Mapping[Any, Any]) -> Compound:
    return Compound(
        CompoundKind.MAPPING,
        tuple(as_pattern(v) for v in entries.values()),
        keys=tuple(entries),
    )


def record(record_type: type, **fields: Any) -> Compound:
    return Compound(
        CompoundKind.RECORD,
        tuple(as_pattern(v) for v in fields.values()),
        keys=tuple(fields),
        record_type=record_type,
    )


def as_pattern(obj: Any) -> Pattern:
    """Lift a plain Python value into a pattern.

    Pattern nodes are kept as they are; tuples, lists and dicts become compound
    patterns over their converted elements; anything else becomes a literal.
    """
    if is_pattern(obj):
        return obj
    if type(obj) is tuple:
        return tuple_(*obj)
    if type(obj) is list:
        return list_(*obj)
    if type(obj) is dict:
        return mapping(obj)
    return Literal(obj)


def walk(pattern: Pattern) -> Iterator[Pattern]:
    """Yield every node of ``pattern`` in pre-order, left to right."""
    yield pattern
    match pattern:
        case Compound(children=children):
            for child in children:
                yield from walk(child)
        case Guarded(pattern=inner):
            yield from walk(inner)
        case _:
            pass


def contains_guard(pattern: Pattern) -> bool:
    return any(isinstance(node, Guarded) for node in walk(pattern))


def unresolved_pins(pattern: Pattern) -> list[Pin]:
    return [node for node in walk(pattern) if isinstance(node, Pin) and not node.resolved]


def resolve_pins(pattern: Pattern, scope: Mapping[Var, Any]) -> Pattern:
    """Return ``pattern`` with every pin's value looked up in ``scope``.

    Raises
    ------
    ConfigurationError
        If a pin refers to a variable that ``scope`` does not define.
    """
    match pattern:
        case Pin() as pin:
            if pin.var in scope:
                return replace(pin, value=scope[pin.var])
            if pin.resolved:
                return pin
            msg = f"pinned variable ^{pin.name} is not bound in the enclosing scope"
            raise ConfigurationError(msg)
        case Compound(children=children):
            return replace(pattern, children=tuple(resolve_pins(c, scope) for c in children))
        case Guarded(pattern=inner):
            return replace(pattern, pattern=resolve_pins(inner, scope))
        case _:
            return pattern


def render(pattern: Pattern) -> str:
    """Render a pattern as source-like text for messages."""
    match pattern:
        case Literal(value=value):
            return repr(value)
        case Bind(name=name):
            return name
        case Wildcard():
            return "_"
        case Pin(name=name):
            return f"^{name}"
        case Guarded(pattern=inner, guard=guard):
            return f"{render(inner)} when {guard.source}"
        case Compound(kind=CompoundKind.TUPLE, children=children):
            if len(children) == 1:
                return f"({render(children[0])},)"
            return "(" + ", ".join(render(c) for c in children) + ")"
        case Compound(kind=CompoundKind.LIST, children=children):
            return "[" + ", ".join(render(c) for c in children) + "]"
        case Compound(kind=CompoundKind.CONS, children=children):
            heads = ", ".join(render(c) for c in children[:-1])
            tail = render(children[-1])
            return f"[{heads} | {tail}]" if heads else f"[ | {tail}]"
        case Compound(kind=CompoundKind.MAPPING, children=children, keys=keys):
            return "{" + ", ".join(f"{k!r}: {render(c)}" for k, c in zip(keys, children)) + "}"
        case Compound(kind=CompoundKind.RECORD, children=children, keys=keys, record_type=record_type):
            fields = ", ".join(f"{k}={render(c)}" for k, c in zip(keys, children))
            return f"{record_type.__name__}({fields})"
        case _:
            return repr(pattern)
