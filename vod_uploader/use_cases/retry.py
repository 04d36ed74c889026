"""Bounded attempt loop shared by the apply and commit use cases."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, TypeVar

import httpx

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Errors that count as a failed attempt. Anything else propagates immediately.
RETRYABLE_ERRORS = (httpx.HTTPError, ValueError)


def is_retryable(exc: BaseException) -> bool:
    """False for 4xx responses and errors outside RETRYABLE_ERRORS."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return isinstance(exc, RETRYABLE_ERRORS)


def describe_exception(exc: BaseException) -> str:
    message = str(exc).strip()
    if message:
        return f"{type(exc).__name__}: {message}"
    return f"{type(exc).__name__}: {repr(exc)}"


@dataclass
class AttemptOutcome(Generic[T]):
    """What the last attempt produced."""
    result: Optional[T] = None
    error: Optional[BaseException] = None
    attempts: int = 0

    @property
    def detail(self) -> str:
        """Serialized body of the last response, or the last error."""
        if self.error is not None:
            return describe_exception(self.error)
        if self.result is not None:
            return self.result.to_json()
        return ""


async def run_with_attempts(
    label: str,
    call: Callable[[], Awaitable[Dict[str, Any]]],
    parse: Callable[[Dict[str, Any]], T],
    max_attempts: int,
    retry_delay: float = 0.5,
) -> AttemptOutcome[T]:
    """
    Call ``call`` up to ``max_attempts`` times until ``parse`` yields a success.

    A transport error, a 5xx status, an undecodable body or a response whose
    failure flag is set counts as a failed attempt. A 4xx status ends the loop
    at once with the error recorded. Attempts are separated by a linear delay
    (``retry_delay * attempt``).

    Returns:
        AttemptOutcome; ``result.success`` is True only when an attempt succeeded
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

    outcome: AttemptOutcome[T] = AttemptOutcome()
    for attempt in range(1, max_attempts + 1):
        outcome.attempts = attempt
        try:
            body = await call()
        except RETRYABLE_ERRORS as exc:
            outcome.error = exc
            outcome.result = None
            if not is_retryable(exc):
                logger.warning("%s rejected: %s", label, describe_exception(exc))
                return outcome
            logger.warning(
                "%s attempt %d/%d failed: %s",
                label,
                attempt,
                max_attempts,
                describe_exception(exc),
            )
        else:
            outcome.result = parse(body)
            outcome.error = None
            if outcome.result.success:
                return outcome
            logger.warning(
                "%s attempt %d/%d returned failure: code=%s message=%s",
                label,
                attempt,
                max_attempts,
                outcome.result.code,
                outcome.result.message,
            )

        if attempt < max_attempts:
            await asyncio.sleep(retry_delay * attempt)

    return outcome
