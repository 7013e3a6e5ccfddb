"""
botocore error translation shared by the AWS adapters.

  ClientError with a code the adapter classifies  → that classified failure
  ClientError otherwise                           → EXTERNAL_SERVICE_ERROR (exception attached)
  connect/read timeout                            → TIMEOUT_ERROR (the write may have happened)
  any other BotoCoreError                         → EXTERNAL_SERVICE_ERROR
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from botocore.exceptions import BotoCoreError, ClientError, ConnectTimeoutError, ReadTimeoutError
from railway import ErrorCode
from railway.result import Result

T = TypeVar("T")

type Classifier = Callable[[str, ClientError], Result[Any] | None]


def client_error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


def client_error_message(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Message", ""))


def aws_call(
    computation: Callable[[], T],
    operation: str,
    classify: Classifier | None = None,
) -> Result[T]:
    """
    Run one boto3 call and put its outcome on the railway.

    ``classify`` receives the ClientError code and returns a failure for the
    codes it recognises, or None to leave the error unclassified.
    """
    try:
        return Result.success(computation())
    except ClientError as e:
        code = client_error_code(e)
        if classify is not None:
            classified = classify(code, e)
            if classified is not None:
                return classified
        return Result.failure(
            ErrorCode.EXTERNAL_SERVICE_ERROR,
            f"{operation} failed: {code or 'unknown error'}",
            e,
            operation=operation,
            aws_error_code=code,
        )
    except (ConnectTimeoutError, ReadTimeoutError) as e:
        return Result.failure(
            ErrorCode.TIMEOUT_ERROR,
            f"{operation} timed out; the outcome is unknown",
            e,
            operation=operation,
        )
    except BotoCoreError as e:
        return Result.failure(
            ErrorCode.EXTERNAL_SERVICE_ERROR,
            f"{operation} failed: {e}",
            e,
            operation=operation,
        )
