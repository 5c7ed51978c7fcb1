from __future__ import annotations

import pytest

from tablequery_py import Codec, MalformedExpressionError, Substituter


def _sub() -> Substituter:
    return Substituter(Codec())


def test_substitute_values_and_names() -> None:
    sub = _sub()
    out = sub.substitute("$Status = ? AND Age > ?", "active", 21)

    assert out == "#n0 = :v0 AND Age > :v1"
    assert sub.names == {"#n0": "Status"}
    assert sub.values == {":v0": {"S": "active"}, ":v1": {"N": "21"}}


def test_substitute_reuses_placeholders_for_equal_values_and_names() -> None:
    sub = _sub()
    out = sub.substitute("$Name = ? OR $Name = ? OR Alias = ?", "a", "b", "a")

    assert out == "#n0 = :v0 OR #n0 = :v1 OR Alias = :v0"
    assert sub.names == {"#n0": "Name"}
    assert sub.values == {":v0": {"S": "a"}, ":v1": {"S": "b"}}


def test_deduplication_spans_calls_on_the_same_substituter() -> None:
    sub = _sub()
    first = sub.substitute("$Kind = ?", "x")
    second = sub.substitute("$Kind <> ? AND $Other = ?", "x", 3)

    assert first == "#n0 = :v0"
    assert second == "#n0 <> :v0 AND #n1 = :v1"
    assert len(sub.values) == 2


def test_separate_substituters_do_not_share_state() -> None:
    a = _sub()
    b = _sub()
    a.substitute("$X = ?", 1)
    assert b.substitute("$Y = ?", 2) == "#n0 = :v0"
    assert b.names == {"#n0": "Y"}


def test_quoted_names_drop_quotes_and_keep_content() -> None:
    sub = _sub()
    out = sub.substitute("'Count' > ? AND 'Size' < ?", 5, 10)

    assert "'" not in out
    assert out == "#n0 > :v0 AND #n1 < :v1"
    assert sub.names == {"#n0": "Count", "#n1": "Size"}


def test_lone_dollar_takes_name_from_arguments() -> None:
    sub = _sub()
    out = sub.substitute("$ = ? AND $ = ?", "Count", 1, "Count", 2)

    assert out == "#n0 = :v0 AND #n0 = :v1"
    assert sub.names == {"#n0": "Count"}


def test_template_without_placeholders_is_unchanged() -> None:
    sub = _sub()
    assert sub.substitute("Name, Age, Address.City") == "Name, Age, Address.City"
    assert sub.names == {}
    assert sub.values == {}


@pytest.mark.parametrize("n", [1, 2, 3, 5])
def test_n_placeholders_with_n_distinct_arguments(n: int) -> None:
    sub = _sub()
    template = " AND ".join(f"a{i} = ?" for i in range(n))
    out = sub.substitute(template, *[f"v{i}" for i in range(n)])

    assert out.count(":v") == n
    assert len(sub.values) == n


@pytest.mark.parametrize(
    ("template", "args"),
    [
        ("a = ?", ()),
        ("a = ?", (1, 2)),
        ("a = ? AND b = ?", (1,)),
        ("plain", (1,)),
        ("$ = ?", ("Name",)),
    ],
)
def test_argument_count_mismatch_is_malformed(template: str, args: tuple[object, ...]) -> None:
    with pytest.raises(MalformedExpressionError, match="placeholders"):
        _sub().substitute(template, *args)


def test_unencodable_value_is_malformed_and_leaves_maps_untouched() -> None:
    sub = _sub()
    with pytest.raises(MalformedExpressionError, match="cannot encode"):
        sub.substitute("$Score > ? AND $Name = ?", 1.5, "x")

    assert sub.names == {}
    assert sub.values == {}


def test_name_argument_must_be_a_string() -> None:
    with pytest.raises(MalformedExpressionError, match="non-empty string"):
        _sub().substitute("$ = ?", 7, 1)


@pytest.mark.parametrize("template", ["'Count > 1", "'' = 1"])
def test_bad_quotes_are_malformed(template: str) -> None:
    with pytest.raises(MalformedExpressionError):
        _sub().substitute(template)
