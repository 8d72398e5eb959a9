"""
Single-shot execution of an external call under an explicit failure policy.

  FATAL    : raise the failure
  RECORD   : return an unsuccessful AttemptResult carrying the failure
  FALLBACK : return an unsuccessful AttemptResult whose value is the fallback

Under every policy the failure is an instance of the given ContactError
subclass, chained to the original exception.

A timeout counts as a failure of the call and goes through the same policy.
No retries: the operation is awaited exactly once.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, Optional, Type, TypeVar

from app.errors import ContactError

T = TypeVar("T")


class FailurePolicy(str, Enum):
    FATAL = "fatal"
    RECORD = "record"
    FALLBACK = "fallback"


@dataclass
class AttemptResult(Generic[T]):
    ok: bool
    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def error_message(self) -> Optional[str]:
        if self.error is None:
            return None
        return describe_error(self.error)


def describe_error(error: BaseException) -> str:
    """Readable text for an error; timeouts have an empty str()."""
    if isinstance(error, asyncio.TimeoutError):
        return "Timed out waiting for a response."
    return getattr(error, "message", None) or str(error) or type(error).__name__


async def attempt(
    operation: Callable[[], Awaitable[T]],
    *,
    policy: FailurePolicy,
    error_class: Type[ContactError] = ContactError,
    error_code: str = "external_call_failed",
    fallback: Any = None,
    timeout: Optional[float] = None,
) -> AttemptResult[T]:
    """
    Await operation() once and apply policy if it raises or times out.

    The failure copies the underlying error_code when the cause has one (e.g. "EAUTH" from the SMTP transport), so the caller can
    still recognise it.
    """
    try:
        if timeout is not None:
            value = await asyncio.wait_for(operation(), timeout=timeout)
        else:
            value = await operation()
    except Exception as exc:
        failure = error_class(describe_error(exc), getattr(exc, "error_code", None) or error_code)
        if policy is FailurePolicy.FATAL:
            raise failure from exc
        failure.__cause__ = exc
        if policy is FailurePolicy.FALLBACK:
            return AttemptResult(ok=False, value=fallback, error=failure)
        return AttemptResult(ok=False, error=failure)

    return AttemptResult(ok=True, value=value)
