from __future__ import annotations

from collections.abc import Callable

import pytest

from bulkflow.domain.predicate import (
    Criterion,
    Operator,
    Predicate,
    parse_criterion,
    parse_predicate,
    parse_value,
    same_value,
)


def test_empty_predicate_matches_everything() -> None:
    predicate = Predicate()

    assert predicate.matches({})
    assert predicate.matches({"status": "Open"})
    assert str(predicate) == "<all>"


def test_where_builds_equality_conjunction() -> None:
    predicate = Predicate.where(status="Open", owner="ann")

    assert predicate.matches({"status": "Open", "owner": "ann", "n": 1})
    assert not predicate.matches({"status": "Open", "owner": "bob"})
    assert str(predicate) == 'owner="ann" AND status="Open"'


def test_not_equal_matches_missing_field() -> None:
    criterion = Criterion("status", Operator.NE, "Completed")

    assert criterion.matches({})
    assert criterion.matches({"status": "Open"})
    assert not criterion.matches({"status": "Completed"})


def test_equal_none_matches_missing_field() -> None:
    assert Criterion("owner", Operator.EQ, None).matches({})
    assert not Criterion("owner", Operator.EQ, None).matches({"owner": "ann"})


def test_ordering_skips_missing_and_incomparable_values() -> None:
    criterion = Criterion("n", Operator.GE, 10)

    assert criterion.matches({"n": 10})
    assert not criterion.matches({"n": 9})
    assert not criterion.matches({})
    assert not criterion.matches({"n": "ten"})
    assert not criterion.matches({"n": True})


def test_in_operator() -> None:
    criterion = Criterion("status", Operator.IN, ("Open", "Blocked"))

    assert criterion.matches({"status": "Blocked"})
    assert not criterion.matches({"status": "Completed"})
    assert str(criterion) == 'status in ["Open", "Blocked"]'


def test_in_requires_sequence() -> None:
    with pytest.raises(TypeError):
        Criterion("status", Operator.IN, "Open")


def test_ordering_against_null_rejected() -> None:
    with pytest.raises(ValueError, match="cannot compare to null"):
        Criterion("n", Operator.LT, None)


def test_and_appends_criteria() -> None:
    predicate = Predicate.where(status="Open").and_(Criterion("n", Operator.LT, 3))

    assert predicate.matches({"status": "Open", "n": 2})
    assert not predicate.matches({"status": "Open", "n": 3})


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("status!=Completed", Criterion("status", Operator.NE, "Completed")),
        ("n<=5", Criterion("n", Operator.LE, 5)),
        ("n >= 2.5", Criterion("n", Operator.GE, 2.5)),
        ("done=true", Criterion("done", Operator.EQ, True)),
        ("owner=null", Criterion("owner", Operator.EQ, None)),
        ('name="42"', Criterion("name", Operator.EQ, "42")),
        ('status in ["Open", "Blocked"]', Criterion("status", Operator.IN, ("Open", "Blocked"))),
    ],
)
def test_parse_criterion(text: str, expected: Criterion) -> None:
    assert parse_criterion(text) == expected


def test_parse_criterion_rejects_garbage() -> None:
    with pytest.raises(ValueError, match="Invalid criterion"):
        parse_criterion("no operator here")


def test_parse_in_requires_list() -> None:
    with pytest.raises(ValueError, match="JSON list"):
        parse_criterion("status in Open")


def test_parse_value_falls_back_to_text() -> None:
    assert parse_value("Completed") == "Completed"
    assert parse_value("3") == 3
    assert parse_value('{"a": 1}') == {"a": 1}


def test_parse_predicate() -> None:
    predicate = parse_predicate(["status!=Completed", "n>1"])

    assert predicate.criteria == (
        Criterion("status", Operator.NE, "Completed"),
        Criterion("n", Operator.GT, 1),
    )


def test_booleans_never_equal_numbers() -> None:
    assert not Criterion("flag", Operator.EQ, 1).matches({"flag": True})
    assert Criterion("flag", Operator.NE, 1).matches({"flag": True})
    assert not Criterion("flag", Operator.IN, (0, 1)).matches({"flag": False})
    assert Criterion("n", Operator.EQ, 1).matches({"n": 1.0})


@pytest.mark.parametrize(
    "criterion",
    [
        lambda: Criterion("tags", Operator.EQ, [1]),
        lambda: Criterion("meta", Operator.NE, {"a": 1}),
        lambda: Criterion("tags", Operator.IN, ([1], [2])),
        lambda: parse_criterion("tags=[1]"),
    ],
)
def test_criteria_only_compare_scalars(criterion: Callable[[], Criterion]) -> None:
    with pytest.raises(ValueError, match="use a scalar"):
        criterion()


def test_same_value_keeps_booleans_apart_inside_containers() -> None:
    assert same_value({"a": [1, "x"]}, {"a": [1.0, "x"]})
    assert not same_value([True], [1])
    assert not same_value({"a": 1}, {"a": 1, "b": 2})
