from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from botocore.exceptions import ClientError

from .aws_errors import map_client_error
from .codec import AttributeValue
from .conditions import KeyCondition, Operator, Order, build_key_conditions, render_key_condition
from .cursor import Cursor, decode_cursor, encode_cursor
from .errors import (
    InvalidResponseError,
    MalformedExpressionError,
    NotFoundError,
    TooManyItemsError,
    ValidationError,
)
from .expression import Substituter

if TYPE_CHECKING:
    from .table import Table

log = logging.getLogger(__name__)
log.addHandler(logging.NullHandler())

_NAME_REF = re.compile(r"#n\d+")
_VALUE_REF = re.compile(r":v\d+")


@dataclass(frozen=True)
class Page[T]:
    items: list[T]
    next_cursor: str | None


class Query[T]:
    """A lookup against one table, built up by chained calls.

    Configuration calls never raise. A problem found while configuring (a value
    that cannot be encoded, a malformed expression, an unknown operator) is
    kept and raised by the next terminal call (``one``, ``all``, ``count``,
    ``pages``) before anything is sent.

    ``one`` uses GetItem when the lookup addresses exactly one key (no index,
    no filter, and an equality sort key condition if any) and Query otherwise.
    """

    def __init__(self, table: Table[T], hash_key: str, value: Any) -> None:
        self._table = table
        self._sub = Substituter(table.codec)
        self._err: Exception | None = None

        self._hash_key = hash_key
        self._hash_value: AttributeValue = {}
        self._range_key: str | None = None
        self._range_op: Operator | None = None
        self._range_values: list[AttributeValue] = []

        self._index: str | None = None
        self._projection = ""
        self._filter = ""
        self._consistent = False
        self._limit = 0
        self._order: Order | None = None
        self._start_key: dict[str, Any] | None = None
        self._start_cursor: Cursor | None = None

        if not hash_key:
            self._set_error(ValidationError("hash key name is required"))
        try:
            self._hash_value = table.codec.encode(value)
        except (TypeError, ValueError, ArithmeticError) as err:
            self._set_error(MalformedExpressionError(f"cannot encode hash key value: {err}"))

    # configuration

    def range(self, name: str, op: Operator | str, *values: Any) -> Query[T]:
        """Adds a sort key condition. ``one`` can only use GetItem with EQUAL."""
        self._range_key = name
        try:
            self._range_op = Operator(op)
        except ValueError:
            self._range_op = None
            self._set_error(ValidationError(f"unsupported key operator: {op!r}"))
        try:
            self._range_values = self._table.codec.encode_list(values)
        except (TypeError, ValueError, ArithmeticError) as err:
            self._set_error(MalformedExpressionError(f"cannot encode range key value: {err}"))
        return self

    def index(self, name: str) -> Query[T]:
        self._index = name or None
        return self

    def project(self, *paths: str) -> Query[T]:
        """Sets the returned attributes, replacing any earlier projection.

        Quote reserved words: ``'Count'``.
        """
        try:
            self._projection = self._sub.substitute(", ".join(paths))
        except MalformedExpressionError as err:
            self._set_error(err)
        return self

    def filter(self, expr: str, *args: Any) -> Query[T]:
        """Sets the filter expression, replacing any earlier one.

        Use ``?`` for values, ``$name`` or a quoted ``'name'`` for attribute
        names, and a lone ``$`` to take a name from the arguments.
        """
        try:
            self._filter = self._sub.substitute(expr, *args)
        except MalformedExpressionError as err:
            self._set_error(err)
        return self

    def consistent(self, on: bool = True) -> Query[T]:
        self._consistent = on
        return self

    def limit(self, limit: int) -> Query[T]:
        """Caps the number of items examined. With a filter, fewer may match.

        A limited query is a single page: ``all`` and ``count`` stop after it.
        """
        if not isinstance(limit, int) or isinstance(limit, bool):
            self._set_error(ValidationError(f"limit must be an integer, got {limit!r}"))
            return self
        if limit < 0:
            self._set_error(ValidationError("limit must be >= 0"))
            return self
        self._limit = limit
        return self

    def order(self, order: Order) -> Query[T]:
        if not isinstance(order, Order):
            self._set_error(ValidationError(f"unsupported order: {order!r}"))
            return self
        self._order = order
        return self

    def start_from(self, cursor: str | Mapping[str, Any]) -> Query[T]:
        """Resumes from a cursor string or a raw LastEvaluatedKey map."""
        if isinstance(cursor, str):
            try:
                decoded = decode_cursor(cursor)
            except ValueError as err:
                self._set_error(ValidationError(f"invalid cursor: {err}"))
                return self
            self._start_cursor = decoded
            self._start_key = decoded.last_key
            return self

        if not isinstance(cursor, Mapping):
            self._set_error(ValidationError(f"cursor must be a string or a key map, got {cursor!r}"))
            return self

        self._start_cursor = None
        self._start_key = dict(cursor) or None
        return self

    # continuation state

    @property
    def last_evaluated_key(self) -> dict[str, Any] | None:
        return dict(self._start_key) if self._start_key else None

    @property
    def next_cursor(self) -> str | None:
        return self._cursor_for(self._start_key)

    # terminal operations

    def one(self) -> T:
        self._check()

        if self.can_get_item():
            log.debug("Fetching one item from %s with get_item", self._table.name)
            resp = self._call("get_item", self._get_item_request())
            item = resp.get("Item")
            if not item:
                raise NotFoundError("item not found")
            return self._table.codec.decode(item)

        log.debug("Fetching one item from %s with query", self._table.name)
        resp = self._call("query", self._query_request())
        items = resp.get("Items") or []
        if not items:
            raise NotFoundError("item not found")
        if len(items) > 1:
            raise TooManyItemsError(f"expected one item, query returned {len(items)}")
        if resp.get("LastEvaluatedKey") and self._limit > 0:
            # a truncated page cannot prove the match is unique
            raise TooManyItemsError("expected one item, query was truncated by its limit")
        return self._table.codec.decode(items[0])

    def all(self, out: list[T] | None = None) -> list[T]:
        """Returns every matching item, appended to ``out`` when given."""
        results: list[T] = out if out is not None else []
        for page in self.pages():
            results.extend(page.items)
        return results

    def count(self) -> int:
        total = 0
        for resp in self._responses(select_count=True):
            count = resp.get("Count")
            if count is None:
                raise InvalidResponseError("query response is missing Count")
            total += int(count)
        return total

    def pages(self) -> Iterator[Page[T]]:
        for resp in self._responses(select_count=False):
            items: list[T] = []
            for item in resp.get("Items") or []:
                self._table.codec.decode_append(item, items)
            yield Page(items=items, next_cursor=self._cursor_for(resp.get("LastEvaluatedKey")))

    # request shape

    def can_get_item(self) -> bool:
        if self._range_op is not None and self._range_op is not Operator.EQUAL:
            return False
        if self._index:
            return False
        if self._filter:
            return False
        return True

    def key_conditions(self) -> dict[str, KeyCondition]:
        return build_key_conditions(
            self._hash_key,
            self._hash_value,
            self._range_key,
            self._range_op,
            self._range_values,
        )

    def _keys(self) -> dict[str, AttributeValue]:
        return {name: cond.values[0] for name, cond in self.key_conditions().items() if cond.values}

    def _get_item_request(self) -> dict[str, Any]:
        projection = self._projection
        req: dict[str, Any] = {"TableName": self._table.name, "Key": self._keys()}
        if self._consistent:
            req["ConsistentRead"] = True
        if projection:
            req["ProjectionExpression"] = projection
        names, _ = self._expression_maps(projection)
        if names:
            req["ExpressionAttributeNames"] = names
        return req

    def _query_request(self, *, select_count: bool = False) -> dict[str, Any]:
        key_expr = render_key_condition(self.key_conditions(), self._sub)
        projection = "" if select_count else self._projection
        filter_expr = self._filter

        req: dict[str, Any] = {"TableName": self._table.name, "KeyConditionExpression": key_expr}
        if self._start_key:
            req["ExclusiveStartKey"] = self._start_key
        if self._consistent:
            req["ConsistentRead"] = True
        if self._limit > 0:
            req["Limit"] = self._limit
        if projection:
            req["ProjectionExpression"] = projection
        if filter_expr:
            req["FilterExpression"] = filter_expr
        if self._index:
            req["IndexName"] = self._index
        if self._order is not None:
            req["ScanIndexForward"] = self._order.scan_forward
        if select_count:
            req["Select"] = "COUNT"

        names, values = self._expression_maps(key_expr, projection, filter_expr)
        if names:
            req["ExpressionAttributeNames"] = names
        if values:
            req["ExpressionAttributeValues"] = values
        return req

    def _expression_maps(self, *exprs: str) -> tuple[dict[str, str], dict[str, AttributeValue]]:
        # The service rejects placeholders that the request's expressions do
        # not reference, so only send the ones in use.
        text = " ".join(exprs)
        used_names = set(_NAME_REF.findall(text))
        used_values = set(_VALUE_REF.findall(text))
        names = {k: v for k, v in self._sub.names.items() if k in used_names}
        values = {k: v for k, v in self._sub.values.items() if k in used_values}
        return names, values

    # execution

    def _responses(self, *, select_count: bool) -> Iterator[Mapping[str, Any]]:
        self._check()

        page = 0
        while True:
            page += 1
            log.debug("Querying %s, page %s", self._table.name, page)
            resp = self._call("query", self._query_request(select_count=select_count))
            yield resp

            # advance only once the page has been consumed without error
            self._start_key = resp.get("LastEvaluatedKey") or None
            if self._start_key is None or self._limit > 0:
                break

    def _call(self, method: str, req: dict[str, Any]) -> Mapping[str, Any]:
        fn = getattr(self._table.client, method)
        try:
            return self._table.retry.run(lambda: fn(**req), name=method)
        except ClientError as err:
            raise map_client_error(err) from err

    def _check(self) -> None:
        if self._err is not None:
            raise self._err

        cursor = self._start_cursor
        if cursor is None:
            return
        if cursor.index is not None and cursor.index != self._index:
            raise ValidationError("cursor index does not match query")
        if cursor.order is not None and cursor.order != self._order_label():
            raise ValidationError("cursor order does not match query")
        self._start_cursor = None

    def _order_label(self) -> str | None:
        return self._order.label if self._order is not None else None

    def _cursor_for(self, last_key: Mapping[str, Any] | None) -> str | None:
        if not last_key:
            return None
        return encode_cursor(dict(last_key), index=self._index, order=self._order_label())

    def _set_error(self, err: Exception) -> None:
        if self._err is None:
            self._err = err
