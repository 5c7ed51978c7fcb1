from __future__ import annotations

import base64
import json

import pytest
from boto3.dynamodb.types import Binary

from tablequery_py.cursor import decode_cursor, encode_cursor


def _raw_cursor(payload: object) -> str:
    return base64.urlsafe_b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")


def test_cursor_round_trip_all_attribute_value_types() -> None:
    key = {
        "PK": {"S": "A"},
        "N": {"N": "123"},
        "flag": {"BOOL": True},
        "nil": {"NULL": True},
        "ss": {"SS": ["a", "b"]},
        "ns": {"NS": ["1", "2"]},
        "blob": {"B": b"hi"},
        "bs": {"BS": [b"x", b"y"]},
        "list": {"L": [{"S": "z"}, {"B": b"w"}]},
        "map": {"M": {"x": {"S": "y"}}},
    }

    decoded = decode_cursor(encode_cursor(key, index="by-time", order="DESC"))

    assert decoded.last_key == key
    assert decoded.index == "by-time"
    assert decoded.order == "DESC"


def test_cursor_accepts_boto3_binary() -> None:
    decoded = decode_cursor(encode_cursor({"PK": {"B": Binary(b"raw")}}))
    assert decoded.last_key == {"PK": {"B": b"raw"}}
    assert decoded.index is None
    assert decoded.order is None


def test_cursor_is_url_safe_and_unpadded_input_decodes() -> None:
    cursor = encode_cursor({"PK": {"S": "??>>"}})
    assert "+" not in cursor and "/" not in cursor
    assert decode_cursor(cursor.rstrip("=")).last_key == {"PK": {"S": "??>>"}}


def test_encode_cursor_empty_returns_empty_string() -> None:
    assert encode_cursor({}) == ""
    assert encode_cursor(None) == ""


def test_encode_cursor_rejects_non_map() -> None:
    with pytest.raises(ValueError, match="last_key must be a map"):
        encode_cursor(["not-a-map"])


@pytest.mark.parametrize(
    "av",
    [
        {"S": 1},
        {"B": "not-bytes"},
        {"BOOL": "true"},
        {"NULL": False},
        {"SS": ["a", 1]},
        {"BS": ["x"]},
        {"L": "not-list"},
        {"M": "not-map"},
        {"Z": "nope"},
        {"S": "x", "N": "1"},
        "not-a-map",
    ],
)
def test_encode_cursor_rejects_invalid_attribute_values(av: object) -> None:
    with pytest.raises(ValueError):
        encode_cursor({"PK": av})


def test_decode_cursor_empty_raises() -> None:
    with pytest.raises(ValueError, match="cursor is empty"):
        decode_cursor("  ")


def test_decode_cursor_rejects_garbage() -> None:
    with pytest.raises(ValueError):
        decode_cursor("bm90LWpzb24")  # base64url("not-json")


def test_decode_cursor_rejects_non_object_json() -> None:
    with pytest.raises(ValueError, match="cursor must decode to an object"):
        decode_cursor(_raw_cursor(["nope"]))


def test_decode_cursor_rejects_invalid_last_key() -> None:
    with pytest.raises(ValueError, match="cursor lastKey is invalid"):
        decode_cursor(_raw_cursor({"lastKey": 1}))


@pytest.mark.parametrize("av_json", [{"B": 123}, {"BS": [1]}, {"N": 1}, {"Z": "x"}])
def test_decode_cursor_rejects_invalid_attribute_values(av_json: object) -> None:
    with pytest.raises(ValueError):
        decode_cursor(_raw_cursor({"lastKey": {"PK": av_json}}))


def test_decode_cursor_ignores_unknown_index_and_order_shapes() -> None:
    decoded = decode_cursor(_raw_cursor({"lastKey": {"PK": {"S": "A"}}, "index": 1, "order": "SIDEWAYS"}))
    assert decoded.last_key == {"PK": {"S": "A"}}
    assert decoded.index is None
    assert decoded.order is None
