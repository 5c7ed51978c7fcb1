from __future__ import annotations

from .codec import Codec
from .conditions import KeyCondition, Operator, Order, build_key_conditions
from .cursor import Cursor, decode_cursor, encode_cursor
from .errors import (
    AwsError,
    InvalidResponseError,
    MalformedExpressionError,
    NotFoundError,
    TablequeryError,
    TooManyItemsError,
    ValidationError,
)
from .expression import Substituter
from .query import Page, Query
from .retry import RetryPolicy, is_retryable
from .runtime import AwsCallMetric, create_boto3_config, get_dynamodb_client, instrument_boto3_client
from .table import Table

__version__ = "0.1.0"

__all__ = [
    "AwsCallMetric",
    "AwsError",
    "Codec",
    "Cursor",
    "InvalidResponseError",
    "KeyCondition",
    "MalformedExpressionError",
    "NotFoundError",
    "Operator",
    "Order",
    "Page",
    "Query",
    "RetryPolicy",
    "Substituter",
    "Table",
    "TablequeryError",
    "TooManyItemsError",
    "ValidationError",
    "build_key_conditions",
    "create_boto3_config",
    "decode_cursor",
    "encode_cursor",
    "get_dynamodb_client",
    "instrument_boto3_client",
    "is_retryable",
]
