"""
Retry Engine

Bounded retry loop that threads the previous failure forward: each
attempt after the first receives a TransformContext carrying the last
failure reason and the last successfully produced result, so the
external transform can correct itself instead of repeating the mistake.
"""
from __future__ import annotations
from typing import Callable, Optional, Tuple, Type, TypeVar, Union
import logging

from md_translator.errors import RetryExhausted
from md_translator.ir import TransformContext

logger = logging.getLogger(__name__)

T = TypeVar("T")

AttemptFn = Callable[[Optional[TransformContext]], T]
ValidateFn = Callable[[T], Union[bool, str]]


def describe_error(error: BaseException) -> str:
    """Failure reason text for an attempt that raised."""
    return f"{type(error).__name__}: {error}"


def retry_until_success(
    max_attempts: int,
    attempt: AttemptFn,
    validate: ValidateFn,
    on_exhausted: Optional[Callable[[Optional[T]], T]] = None,
    on_error: Optional[Callable[[BaseException, int], None]] = None,
    reraise: Tuple[Type[BaseException], ...] = (),
) -> T:
    """
    Run attempt until validate returns True or max_attempts is used up.

    Args:
        max_attempts: Upper bound on calls to attempt (>= 1)
        attempt: Called with None first, then with a TransformContext
        validate: Returns True to accept, or a failure reason string
        on_exhausted: Maps the last result (None if every attempt
            raised) to the final result when attempts run out
        on_error: Notified of each exception raised by attempt
        reraise: Exception types that propagate immediately instead of
            consuming an attempt

    Returns:
        The first validated result, or the exhaustion fallback

    Raises:
        RetryExhausted: No attempt produced a result and no on_exhausted
            handler was supplied
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

    has_result = False
    last_result: Optional[T] = None
    last_failure: Optional[str] = None

    for attempt_number in range(1, max_attempts + 1):
        context = None
        if attempt_number > 1:
            context = TransformContext(
                failure_reason=last_failure,
                previous_result=last_result,
                attempt=attempt_number,
            )

        try:
            result = attempt(context)
        except reraise:
            raise
        except Exception as e:
            last_failure = describe_error(e)
            logger.warning(f"Attempt {attempt_number}/{max_attempts} raised {last_failure}")
            if on_error:
                on_error(e, attempt_number)
            continue

        has_result = True
        last_result = result

        verdict = validate(result)
        if verdict is True:
            if attempt_number > 1:
                logger.info(f"Attempt {attempt_number}/{max_attempts} validated")
            return result

        last_failure = str(verdict) if verdict else "validation failed"
        logger.info(f"Attempt {attempt_number}/{max_attempts} rejected: {last_failure}")

    if on_exhausted is not None:
        return on_exhausted(last_result if has_result else None)

    if has_result:
        logger.warning(f"Retries exhausted after {max_attempts} attempts, returning last result")
        return last_result

    raise RetryExhausted(
        f"Failed after {max_attempts} attempts with no result: {last_failure}",
        attempts=max_attempts,
        last_failure_reason=last_failure,
    )
