"""Pattern model, variable collection and structural matching."""

from assertive.patterns.collector import Collected, collect, collect_pins, collect_vars
from assertive.patterns.matcher import BindingSet, Mismatch, match, matcher_for, matches, strict_equal
from assertive.patterns.model import (
    Bind,
    Compound,
    CompoundKind,
    Guard,
    Guarded,
    Literal,
    Pattern,
    Pin,
    Var,
    Wildcard,
    as_pattern,
    cons,
    contains_guard,
    list_,
    mapping,
    record,
    render,
    resolve_pins,
    tuple_,
    walk,
)

__all__ = [
    # Model
    "Bind",
    "Compound",
    "CompoundKind",
    "Guard",
    "Guarded",
    "Literal",
    "Pattern",
    "Pin",
    "Var",
    "Wildcard",
    "as_pattern",
    "cons",
    "contains_guard",
    "list_",
    "mapping",
    "record",
    "render",
    "resolve_pins",
    "tuple_",
    "walk",
    # Collection
    "Collected",
    "collect",
    "collect_pins",
    "collect_vars",
    # Matching
    "BindingSet",
    "Mismatch",
    "match",
    "matcher_for",
    "matches",
    "strict_equal",
]
