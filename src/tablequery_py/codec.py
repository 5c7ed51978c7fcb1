from __future__ import annotations

import base64
import json
from collections.abc import Mapping, Sequence
from dataclasses import fields, is_dataclass
from decimal import Decimal
from typing import Any, cast, get_args, get_origin, get_type_hints

from boto3.dynamodb.types import Binary, TypeDeserializer, TypeSerializer

from .errors import ValidationError

type AttributeValue = dict[str, Any]
type Item = Mapping[str, AttributeValue]


def _coerce_value(value: Any, annotation: Any) -> Any:
    if value is None:
        return None

    if annotation is int and isinstance(value, Decimal):
        return int(value)
    if annotation is float and isinstance(value, Decimal):
        return float(value)

    origin = get_origin(annotation)
    if origin is set and isinstance(value, set):
        (elem_type,) = get_args(annotation) or (Any,)
        return {_coerce_value(v, elem_type) for v in value}
    if origin is list and isinstance(value, list):
        (elem_type,) = get_args(annotation) or (Any,)
        return [_coerce_value(v, elem_type) for v in value]

    return value


def _json_default(value: Any) -> Any:
    if isinstance(value, Binary):
        value = value.value
    if isinstance(value, (bytes, bytearray)):
        return {"$b64": base64.b64encode(bytes(value)).decode("ascii")}
    if isinstance(value, Decimal):
        return str(value)
    raise TypeError(f"unsupported attribute value content: {type(value).__name__}")


class Codec[T]:
    """Marshals Python values to DynamoDB attribute values and back.

    Without a model, items decode to plain dicts. With a dataclass model, items
    decode to instances of it: attributes are matched to fields by name and
    attributes without a field are ignored.
    """

    def __init__(self, model: type[T] | None = None) -> None:
        if model is not None and not is_dataclass(model):
            raise ValueError("model must be a dataclass type")
        self._model = model
        self._serializer = TypeSerializer()
        self._deserializer = TypeDeserializer()

    @property
    def model(self) -> type[T] | None:
        return self._model

    def encode(self, value: Any) -> AttributeValue:
        return self._serializer.serialize(value)

    def encode_list(self, values: Sequence[Any]) -> list[AttributeValue]:
        return [self.encode(v) for v in values]

    def decode(self, item: Item) -> T:
        if not isinstance(item, Mapping):
            raise ValidationError("item must be a map of attribute values")

        raw = {str(k): self._deserializer.deserialize(v) for k, v in item.items()}
        if self._model is None:
            return cast(T, raw)

        annotations = _resolved_annotations(self._model)
        kwargs: dict[str, Any] = {}
        for dc_field in fields(cast(Any, self._model)):
            if dc_field.name not in raw:
                continue
            kwargs[dc_field.name] = _coerce_value(raw[dc_field.name], annotations.get(dc_field.name, Any))

        try:
            return self._model(**kwargs)
        except TypeError as err:
            raise ValidationError(str(err)) from err

    def decode_append(self, item: Item, out: list[T]) -> None:
        out.append(self.decode(item))

    @staticmethod
    def value_key(av: AttributeValue) -> str:
        return json.dumps(av, sort_keys=True, separators=(",", ":"), default=_json_default)


def _resolved_annotations(model: type[Any]) -> dict[str, Any]:
    try:
        return get_type_hints(model)
    except (NameError, TypeError):
        return dict(getattr(model, "__annotations__", {}))
