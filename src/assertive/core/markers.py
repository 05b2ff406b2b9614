"""Pattern-assertion markers understood by the ``assert`` rewriter.

Inside a rewritten module ``assert binds(("ok", x), result)`` is compiled to a
pattern match that binds ``x`` in the caller, and ``assert matches(P, v, when=g)``
to a guarded ``match?`` predicate. Called directly, the markers work on pattern
objects (see :mod:`assertive.patterns`); ``when`` then takes a ``Guard`` or a
callable receiving the bindings by name.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from assertive.assertions.classifier import Outcome, assert_
from assertive.assertions.expressions import Operand, PatternMatch
from assertive.patterns.matcher import matches as _matches
from assertive.patterns.model import Guard, Guarded, Pin, as_pattern


def binds(pattern: Any, value: Any) -> Outcome:
    """Assert ``value`` matches ``pattern`` and return the outcome with its bindings."""
    return assert_(PatternMatch(as_pattern(pattern), Operand.value(value)))


def matches(pattern: Any, value: Any, when: Guard | Callable[[Mapping[str, Any]], Any] | None = None) -> bool:
    pattern = as_pattern(pattern)
    if when is not None:
        if not isinstance(when, Guard):
            when = Guard(when, getattr(when, "__name__", "<guard>"))
        pattern = Guarded(pattern, when)
    return _matches(pattern, value)


def pin(value: Any, name: str = "pinned") -> Pin:
    """Pin an already known value."""
    return Pin(name, value=value)
