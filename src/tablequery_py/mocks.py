from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any


class _AnySentinel:
    def __repr__(self) -> str:  # pragma: no cover
        return "ANY"


ANY: Any = _AnySentinel()


def _mismatches(expected: Any, actual: Any, path: str) -> Iterable[str]:
    if expected is ANY:
        return
    if isinstance(expected, Mapping):
        if not isinstance(actual, Mapping):
            yield f"{path}: expected map, got {type(actual).__name__}"
            return
        for key, value in expected.items():
            if key not in actual:
                yield f"{path}: missing key {key!r}"
            else:
                yield from _mismatches(value, actual[key], f"{path}.{key}")
        return
    if isinstance(expected, list):
        if not isinstance(actual, list) or len(actual) != len(expected):
            yield f"{path}: expected {expected!r}, got {actual!r}"
            return
        for i, (e, a) in enumerate(zip(expected, actual, strict=True)):
            yield from _mismatches(e, a, f"{path}[{i}]")
        return
    if expected != actual:
        yield f"{path}: expected {expected!r}, got {actual!r}"


@dataclass(frozen=True)
class ExpectedCall:
    method: str
    expected: Mapping[str, Any] | Callable[[Mapping[str, Any]], None] | None = None
    response: Mapping[str, Any] | None = None
    error: Exception | None = None


class FakeDynamoDBClient:
    """Scripted stand-in for the boto3 DynamoDB client (get_item and query).

    Each ``expect`` queues one call. Requests are matched partially: keys
    missing from ``expected`` are not checked and ``ANY`` matches anything.
    Every request is recorded in ``calls``, including unexpected ones.
    """

    def __init__(self) -> None:
        self._expected: list[ExpectedCall] = []
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def expect(
        self,
        method: str,
        expected: Mapping[str, Any] | Callable[[Mapping[str, Any]], None] | None = None,
        *,
        response: Mapping[str, Any] | None = None,
        error: Exception | None = None,
    ) -> None:
        self._expected.append(ExpectedCall(method=method, expected=expected, response=response, error=error))

    def expect_pages(self, pages: Iterable[Mapping[str, Any]]) -> None:
        for page in pages:
            self.expect("query", response=page)

    def assert_no_pending(self) -> None:
        if self._expected:
            raise AssertionError(f"pending expected calls: {self._expected!r}")

    def call_count(self, method: str | None = None) -> int:
        return sum(1 for name, _ in self.calls if method is None or name == method)

    def _handle(self, method: str, req: dict[str, Any]) -> Mapping[str, Any]:
        self.calls.append((method, dict(req)))
        if not self._expected:
            raise AssertionError(f"unexpected call: {method}")

        call = self._expected.pop(0)
        if call.method != method:
            raise AssertionError(f"expected {call.method}, got {method}")

        if callable(call.expected):
            call.expected(req)
        elif call.expected is not None:
            problems = list(_mismatches(call.expected, req, method))
            if problems:
                raise AssertionError("; ".join(problems))

        if call.error is not None:
            raise call.error

        return dict(call.response or {})

    def get_item(self, **kwargs: Any) -> Mapping[str, Any]:
        return self._handle("get_item", kwargs)

    def query(self, **kwargs: Any) -> Mapping[str, Any]:
        return self._handle("query", kwargs)
