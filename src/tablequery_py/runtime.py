from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, cast

import boto3
from botocore.config import Config


@dataclass(frozen=True)
class AwsCallMetric:
    service: str
    operation: str
    seconds: float
    ok: bool


def create_boto3_config(
    *,
    connect_timeout: float = 1.0,
    read_timeout: float = 3.0,
    max_attempts: int = 1,
) -> Config:
    """Client config for use with RetryPolicy.

    SDK-level retries default to a single attempt so that throttling and
    connection failures are retried (and counted) in one place.
    """
    return Config(
        connect_timeout=connect_timeout,
        read_timeout=read_timeout,
        retries={"max_attempts": max_attempts, "mode": "standard"},
    )


class _InstrumentedClient:
    def __init__(self, client: Any, service: str, on_call: Callable[[AwsCallMetric], None]) -> None:
        self._client = client
        self._service = service
        self._on_call = on_call

    def __getattr__(self, name: str) -> Any:
        attr = getattr(self._client, name)
        if name.startswith("_") or not callable(attr):
            return attr

        def wrapped(*args: Any, **kwargs: Any) -> Any:
            start = time.monotonic()
            ok = False
            try:
                out = attr(*args, **kwargs)
                ok = True
                return out
            finally:
                self._on_call(
                    AwsCallMetric(
                        service=self._service,
                        operation=name,
                        seconds=time.monotonic() - start,
                        ok=ok,
                    )
                )

        return wrapped


def instrument_boto3_client(
    client: Any,
    *,
    service: str,
    on_call: Callable[[AwsCallMetric], None],
) -> Any:
    return _InstrumentedClient(client, service, on_call)


_clients: dict[str | None, Any] = {}


def get_dynamodb_client(
    *,
    region: str | None = None,
    config: Config | None = None,
    session: Any | None = None,
) -> Any:
    existing = _clients.get(region)
    if existing is not None:
        return existing

    sess = session or boto3.session.Session(region_name=region)
    client = cast(Any, sess).client("dynamodb", region_name=region, config=config or create_boto3_config())
    _clients[region] = client
    return client


def _reset_clients_for_tests() -> None:
    _clients.clear()
