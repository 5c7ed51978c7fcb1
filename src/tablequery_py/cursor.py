from __future__ import annotations

import base64
import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from boto3.dynamodb.types import Binary

_STRING_KINDS = frozenset({"S", "N"})
_STRING_SET_KINDS = frozenset({"SS", "NS"})
_ORDERS = frozenset({"ASC", "DESC"})


@dataclass(frozen=True)
class Cursor:
    last_key: dict[str, Any]
    index: str | None = None
    order: str | None = None


def _single_entry(av: Any) -> tuple[str, Any]:
    if not isinstance(av, dict) or len(av) != 1:
        raise ValueError("attribute value must be a single-key map")
    ((kind, value),) = av.items()
    return str(kind), value


def _is_bytes(value: Any) -> bool:
    return isinstance(value, (bytes, bytearray, Binary))


def _to_bytes(value: Any) -> bytes:
    return bytes(value.value if isinstance(value, Binary) else value)


def _b64(value: Any) -> str:
    return base64.b64encode(_to_bytes(value)).decode("ascii")


def _convert(
    av: Any,
    *,
    is_blob: Callable[[Any], bool],
    blob: Callable[[Any], Any],
) -> dict[str, Any]:
    kind, value = _single_entry(av)

    def recurse(inner: Any) -> dict[str, Any]:
        return _convert(inner, is_blob=is_blob, blob=blob)

    if kind in _STRING_KINDS:
        if not isinstance(value, str):
            raise ValueError(f"{kind} value must be a string")
        return {kind: value}
    if kind in _STRING_SET_KINDS:
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ValueError(f"{kind} value must be a list of strings")
        return {kind: list(value)}
    if kind == "BOOL":
        if not isinstance(value, bool):
            raise ValueError("BOOL value must be a boolean")
        return {kind: value}
    if kind == "NULL":
        if value is not True:
            raise ValueError("NULL value must be true")
        return {kind: True}
    if kind == "B":
        if not is_blob(value):
            raise ValueError("B value has the wrong binary representation")
        return {kind: blob(value)}
    if kind == "BS":
        if not isinstance(value, list) or not all(is_blob(v) for v in value):
            raise ValueError("BS value has the wrong binary representation")
        return {kind: [blob(v) for v in value]}
    if kind == "L":
        if not isinstance(value, list):
            raise ValueError("L value must be a list")
        return {kind: [recurse(v) for v in value]}
    if kind == "M":
        if not isinstance(value, dict):
            raise ValueError("M value must be a map")
        return {kind: {str(k): recurse(value[k]) for k in sorted(value)}}

    raise ValueError(f"unsupported attribute value type: {kind}")


def encode_cursor(last_key: Any, *, index: str | None = None, order: str | None = None) -> str:
    """Packs a LastEvaluatedKey into an opaque, URL-safe continuation cursor.

    Binary attributes are base64-encoded inside the JSON payload. The index
    name and scan order are recorded so a cursor cannot silently be replayed
    against a differently shaped query.
    """
    if not last_key:
        return ""
    if not isinstance(last_key, dict):
        raise ValueError("last_key must be a map")

    payload: dict[str, Any] = {
        "lastKey": {str(k): _convert(last_key[k], is_blob=_is_bytes, blob=_b64) for k in sorted(last_key)}
    }
    if index is not None:
        payload["index"] = index
    if order is not None:
        payload["order"] = order

    data = json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    return base64.urlsafe_b64encode(data).decode("ascii")


def decode_cursor(cursor: str) -> Cursor:
    raw = str(cursor or "").strip()
    if not raw:
        raise ValueError("cursor is empty")

    padding = "=" * (-len(raw) % 4)
    parsed = json.loads(base64.urlsafe_b64decode(raw + padding).decode("utf-8"))
    if not isinstance(parsed, dict):
        raise ValueError("cursor must decode to an object")

    last_key_raw = parsed.get("lastKey")
    if not isinstance(last_key_raw, dict):
        raise ValueError("cursor lastKey is invalid")

    last_key = {
        str(k): _convert(last_key_raw[k], is_blob=lambda v: isinstance(v, str), blob=base64.b64decode)
        for k in sorted(last_key_raw)
    }

    index = parsed.get("index")
    order = parsed.get("order")
    return Cursor(
        last_key=last_key,
        index=index if isinstance(index, str) else None,
        order=order if order in _ORDERS else None,
    )
