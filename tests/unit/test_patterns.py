"""Tests for the pattern model, the variable/pin collector and the matcher."""

from dataclasses import dataclass

import pytest

from assertive.errors import ConfigurationError
from assertive.patterns import (
    Bind,
    BindingSet,
    Compound,
    CompoundKind,
    Guard,
    Guarded,
    Literal,
    Mismatch,
    Pin,
    Var,
    Wildcard,
    as_pattern,
    collect,
    collect_vars,
    cons,
    contains_guard,
    mapping,
    match,
    matcher_for,
    matches,
    record,
    render,
    resolve_pins,
    strict_equal,
    tuple_,
    walk,
)


@dataclass
class Point:
    x: int
    y: int


def positive(name: str) -> Guard:
    return Guard(lambda b: b[name] > 0, f"{name} > 0", (Var(name),))


# ---------------------------------------------------------------------------
# Pattern model
# ---------------------------------------------------------------------------


class TestModel:
    def test_as_pattern_lifts_plain_values(self):
        pattern = as_pattern(("ok", Bind("x"), [1, Wildcard()], {"k": Bind("v")}))

        assert pattern == tuple_(
            Literal("ok"),
            Bind("x"),
            Compound(CompoundKind.LIST, (Literal(1), Wildcard())),
            mapping({"k": Bind("v")}),
        )

    def test_as_pattern_keeps_pattern_nodes(self):
        node = Bind("x")
        assert as_pattern(node) is node

    def test_walk_is_preorder(self):
        pattern = as_pattern((Bind("a"), [Bind("b")], Bind("c")))

        names = [node.name for node in walk(pattern) if isinstance(node, Bind)]

        assert names == ["a", "b", "c"]

    def test_render(self):
        pattern = Guarded(as_pattern(("ok", Bind("x"), Pin("y"), Wildcard())), positive("x"))

        assert render(pattern) == "('ok', x, ^y, _) when x > 0"
        assert render(as_pattern((1,))) == "(1,)"
        assert render(cons(Bind("h"), tail=Bind("t"))) == "[h | t]"
        assert render(record(Point, x=Bind("x"), y=0)) == "Point(x=x, y=0)"

    def test_contains_guard_finds_nested_guards(self):
        assert contains_guard(tuple_(Guarded(Bind("x"), positive("x"))))
        assert not contains_guard(tuple_(Bind("x")))

    def test_resolve_pins_from_scope(self):
        pattern = tuple_(Pin("x"), Bind("y"))

        resolved = resolve_pins(pattern, {Var("x"): 5})

        assert resolved.children[0].value == 5

    def test_resolve_pins_rejects_unknown_variable(self):
        with pytest.raises(ConfigurationError, match=r"\^x"):
            resolve_pins(tuple_(Pin("x")), {})

    def test_compound_requires_one_key_per_child(self):
        with pytest.raises(ConfigurationError):
            Compound(CompoundKind.MAPPING, (Bind("v"),), keys=())


# ---------------------------------------------------------------------------
# Collector
# ---------------------------------------------------------------------------


class TestCollector:
    def test_bound_in_first_occurrence_order(self):
        pattern = as_pattern((Bind("b"), [Bind("a"), Bind("b")], {"k": Bind("c")}))

        assert collect_vars(pattern) == [Var("b"), Var("a"), Var("c")]

    def test_wildcards_and_literals_contribute_nothing(self):
        assert collect_vars(as_pattern((Wildcard(), 1, "x"))) == []

    def test_same_name_different_scope_is_distinct(self):
        pattern = tuple_(Bind("x", 1), Bind("x", 2))

        assert collect_vars(pattern) == [Var("x", 1), Var("x", 2)]

    def test_pins_only_when_in_scope(self):
        pattern = tuple_(Pin("x", value=5), Pin("y", value=6), Pin("x", value=5))

        collected = collect(pattern, {Var("x"): 5})

        assert collected.pinned == (("x", 5),)

    def test_pins_default_to_their_resolved_values(self):
        pattern = tuple_(Pin("b", value=2), Pin("a", value=1))

        assert collect(pattern).pinned == (("b", 2), ("a", 1))

    def test_guard_references_appended_once(self):
        guard = Guard(lambda b: b["x"] > b["y"], "x > y and x > 0", (Var("x"), Var("y"), Var("x"), Var("z")))
        pattern = Guarded(tuple_(Bind("x"), Bind("y")), guard)

        assert collect_vars(pattern) == [Var("x"), Var("y"), Var("x"), Var("y")]

    def test_collection_is_deterministic(self):
        pattern = as_pattern((Pin("p", value=1), Bind("z"), [Bind("a"), Pin("q", value=2)]))

        results = {collect(pattern) for _ in range(5)}

        assert len(results) == 1


# ---------------------------------------------------------------------------
# Matcher
# ---------------------------------------------------------------------------


class TestStrictEqual:
    def test_distinguishes_numeric_types(self):
        assert not strict_equal(1, 1.0)
        assert not strict_equal(True, 1)
        assert strict_equal(1, 1)

    def test_recurses_into_containers(self):
        assert strict_equal({"a": (1, [2])}, {"a": (1, [2])})
        assert not strict_equal({"a": (1, [2])}, {"a": (1, [2.0])})
        assert not strict_equal((1, 2), [1, 2])


class TestMatch:
    def test_binds_variables(self):
        result = match(as_pattern(("ok", Bind("x"))), ("ok", 5))

        assert isinstance(result, BindingSet)
        assert result.by_name() == {"x": 5}

    def test_literal_mismatch_reports_whole_pattern_and_value(self):
        pattern = as_pattern(("ok", Bind("x")))

        result = match(pattern, ("error", 5))

        assert result == Mismatch(pattern, ("error", 5))
        assert not result

    def test_literal_matches_strictly(self):
        assert not matches(Literal(1), 1.0)

    def test_pin_acts_as_literal(self):
        pattern = tuple_("ok", Pin("x", value=5))

        assert matches(pattern, ("ok", 5))
        assert not matches(pattern, ("ok", 6))
        assert match(pattern, ("ok", 5)) == BindingSet()

    def test_unresolved_pin_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            match(tuple_(Pin("x")), (1,))

    def test_repeated_variable_must_be_equal(self):
        pattern = tuple_(Bind("x"), Bind("x"))

        assert matches(pattern, (1, 1))
        assert not matches(pattern, (1, 2))

    def test_wildcard_binds_nothing(self):
        assert match(tuple_(Wildcard(), Wildcard()), (1, 2)) == BindingSet()

    def test_sizes_must_agree(self):
        assert not matches(as_pattern((1, Bind("x"))), (1, 2, 3))
        assert not matches(as_pattern([Bind("x")]), (1,))

    def test_cons_matches_head_and_tail(self):
        result = match(cons(Bind("h"), tail=Bind("t")), [1, 2, 3])

        assert result.by_name() == {"h": 1, "t": [2, 3]}
        assert not matches(cons(Bind("h"), tail=Bind("t")), [])

    def test_mapping_matches_subset_of_keys(self):
        pattern = mapping({"id": Bind("id")})

        assert match(pattern, {"id": 7, "name": "x"}).by_name() == {"id": 7}
        assert not matches(pattern, {"name": "x"})

    def test_record_matches_attributes(self):
        pattern = record(Point, x=Bind("x"), y=0)

        assert match(pattern, Point(3, 0)).by_name() == {"x": 3}
        assert not matches(pattern, Point(3, 1))
        assert not matches(pattern, (3, 0))

    def test_guard_sees_bindings(self):
        pattern = Guarded(tuple_("ok", Bind("n")), positive("n"))

        assert match(pattern, ("ok", 2)).by_name() == {"n": 2}
        assert not matches(pattern, ("ok", -2))

    def test_raising_guard_is_a_mismatch(self):
        pattern = Guarded(tuple_("n", Bind("v")), positive("v"))

        result = match(pattern, ("n", "text"))

        assert result == Mismatch(pattern, ("n", "text"))
        assert match(pattern, ("n", 4)).by_name() == {"v": 4}

    def test_guard_rejected_when_not_allowed(self):
        pattern = Guarded(Bind("n"), positive("n"))

        with pytest.raises(ConfigurationError, match="guards are not allowed"):
            match(pattern, 1, allow_guards=False)

    def test_no_partial_bindings_after_mismatch(self):
        result = match(as_pattern((Bind("a"), Bind("b"), 3)), (1, 2, 4))

        assert isinstance(result, Mismatch)

    def test_matcher_for_ignores_bindings(self):
        matcher = matcher_for(as_pattern(("hello", Wildcard())))

        assert matcher(("hello", 1)) is True
        assert matcher(("bye", 1)) is False
