"""Collection of bound and pinned variables from a pattern.

The order of both lists is the pre-order, first-occurrence order of the pattern
tree. Diagnostics print pins in this order, so it must be reproducible.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from assertive.patterns.model import Bind, Compound, Guarded, Pattern, Pin, Var


@dataclass(frozen=True, slots=True)
class Collected:
    """Variables a pattern introduces and outer variables it pins.

    Attributes
    ----------
    bound
        Variables bound by the pattern. For guarded patterns the guard's references
        to already-bound variables follow the pattern's own variables.
    pinned
        ``(name, value)`` for each pin whose variable exists in the enclosing scope.
    """

    bound: tuple[Var, ...]
    pinned: tuple[tuple[str, Any], ...]


def collect_vars(pattern: Pattern) -> list[Var]:
    acc: list[Var] = []
    _collect_vars(pattern, acc)
    return acc


def _collect_vars(pattern: Pattern, acc: list[Var]) -> None:
    match pattern:
        case Bind() as bind:
            if bind.var not in acc:
                acc.append(bind.var)
        case Compound(children=children):
            for child in children:
                _collect_vars(child, acc)
        case Guarded(pattern=inner, guard=guard):
            own: list[Var] = []
            _collect_vars(inner, own)
            for var in own:
                if var not in acc:
                    acc.append(var)
            # Guards only read variables the pattern binds.
            seen: set[Var] = set()
            for var in guard.references:
                if var in own and var not in seen:
                    seen.add(var)
                    acc.append(var)
        case _:
            pass


def collect_pins(pattern: Pattern, scope: Mapping[Var, Any]) -> list[tuple[str, Any]]:
    pins: list[tuple[str, Any]] = []
    seen: set[Var] = set()
    for node in _preorder_pins(pattern):
        var = node.var
        if var in seen or var not in scope:
            continue
        seen.add(var)
        pins.append((node.name, node.value if node.resolved else scope[var]))
    return pins


def _preorder_pins(pattern: Pattern) -> list[Pin]:
    match pattern:
        case Pin():
            return [pattern]
        case Compound(children=children):
            return [pin for child in children for pin in _preorder_pins(child)]
        case Guarded(pattern=inner):
            return _preorder_pins(inner)
        case _:
            return []


def collect(pattern: Pattern, scope: Mapping[Var, Any] | None = None) -> Collected:
    """Collect bound variables and pins of ``pattern``.

    When ``scope`` is omitted, the pins' own resolved values stand in for the
    enclosing scope.
    """
    if scope is None:
        scope = pinned_scope(pattern)
    return Collected(bound=tuple(collect_vars(pattern)), pinned=tuple(collect_pins(pattern, scope)))


def pinned_scope(pattern: Pattern) -> dict[Var, Any]:
    """Scope made of the values already attached to the pins of ``pattern``."""
    return {node.var: node.value for node in _preorder_pins(pattern) if node.resolved}
