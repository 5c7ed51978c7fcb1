from __future__ import annotations

from botocore.exceptions import ClientError

from .errors import AwsError, ValidationError


def client_error_code(err: ClientError) -> str:
    return str(err.response.get("Error", {}).get("Code", ""))


def map_client_error(err: ClientError) -> Exception:
    code = client_error_code(err)
    message = str(err.response.get("Error", {}).get("Message", ""))

    if code == "ValidationException":
        return ValidationError(message)

    return AwsError(code=code or "UnknownError", message=message or str(err))
