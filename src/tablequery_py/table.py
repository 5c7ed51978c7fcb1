from __future__ import annotations

from collections.abc import Callable
from typing import Any

import boto3

from .codec import Codec
from .query import Query
from .retry import RetryPolicy
from .runtime import AwsCallMetric, instrument_boto3_client


class Table[T]:
    def __init__(
        self,
        name: str,
        *,
        client: Any | None = None,
        model: type[T] | None = None,
        retry: RetryPolicy | None = None,
        metrics: Callable[[AwsCallMetric], None] | None = None,
    ) -> None:
        if not name:
            raise ValueError("table name is required")

        self._name = name
        self._client: Any = client or boto3.client("dynamodb")
        if metrics is not None:
            self._client = instrument_boto3_client(self._client, service="dynamodb", on_call=metrics)
        self._codec: Codec[T] = Codec(model)
        self._retry = retry or RetryPolicy()

    @property
    def name(self) -> str:
        return self._name

    @property
    def client(self) -> Any:
        return self._client

    @property
    def codec(self) -> Codec[T]:
        return self._codec

    @property
    def retry(self) -> RetryPolicy:
        return self._retry

    def get(self, hash_key: str, value: Any) -> Query[T]:
        """Starts a lookup of the items whose hash key ``hash_key`` equals ``value``."""
        return Query(self, hash_key, value)
