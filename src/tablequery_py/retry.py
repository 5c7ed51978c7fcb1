from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from botocore.exceptions import ClientError, HTTPClientError
from botocore.exceptions import ConnectionError as BotocoreConnectionError

from .aws_errors import client_error_code

log = logging.getLogger(__name__)
log.addHandler(logging.NullHandler())

RETRYABLE_ERROR_CODES = frozenset(
    {
        "ProvisionedThroughputExceededException",
        "ThrottlingException",
        "RequestLimitExceeded",
        "InternalServerError",
        "ServiceUnavailable",
    }
)


def is_retryable(err: BaseException) -> bool:
    if isinstance(err, ClientError):
        if client_error_code(err) in RETRYABLE_ERROR_CODES:
            return True
        status = err.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        return isinstance(status, int) and status >= 500
    return isinstance(err, (BotocoreConnectionError, HTTPClientError))


def backoff_seconds(attempt: int, *, base_delay: float = 0.05, max_delay: float = 1.0) -> float:
    seconds = base_delay * (2.0 ** (attempt - 1))
    if seconds > max_delay:
        return max_delay
    return seconds


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 10
    base_delay: float = 0.05
    max_delay: float = 1.0
    retryable: Callable[[BaseException], bool] = is_retryable
    sleep: Callable[[float], None] = time.sleep

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be >= 0")

    def run[R](self, operation: Callable[[], R], *, name: str = "operation") -> R:
        """Runs ``operation`` until it returns, retrying transient failures.

        The first non-retryable error is raised as is; once attempts run out
        the last retryable error is raised.
        """
        attempt = 1
        while True:
            try:
                return operation()
            except Exception as err:
                if not self.retryable(err):
                    raise
                if attempt >= self.max_attempts:
                    log.debug("Reached the maximum number of retry attempts for %s: %s", name, attempt)
                    raise

                delay = backoff_seconds(attempt, base_delay=self.base_delay, max_delay=self.max_delay)
                log.debug(
                    "Retry needed for %s after attempt %s, sleeping %.3fs, retryable %s caught: %s",
                    name,
                    attempt,
                    delay,
                    err.__class__.__name__,
                    err,
                )
                if delay > 0:
                    self.sleep(delay)
                attempt += 1
