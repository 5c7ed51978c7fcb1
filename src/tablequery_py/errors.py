from __future__ import annotations


class TablequeryError(Exception):
    pass


class ValidationError(TablequeryError):
    pass


class MalformedExpressionError(ValidationError):
    pass


class NotFoundError(TablequeryError):
    pass


class TooManyItemsError(TablequeryError):
    pass


class InvalidResponseError(TablequeryError):
    pass


class AwsError(TablequeryError):
    def __init__(self, *, code: str, message: str) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message
