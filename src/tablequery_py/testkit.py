from __future__ import annotations

from botocore.exceptions import ClientError

from .mocks import ANY, FakeDynamoDBClient


def no_sleep(_: float) -> None:
    return None


def client_error(code: str, message: str = "", *, operation: str = "Query", status: int = 400) -> ClientError:
    return ClientError(
        {
            "Error": {"Code": code, "Message": message or code},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


__all__ = [
    "ANY",
    "FakeDynamoDBClient",
    "client_error",
    "no_sleep",
]
