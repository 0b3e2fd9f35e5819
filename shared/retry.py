"""Bounded retry around a single remote call."""

from typing import Callable, Tuple, Type, TypeVar

from tenacity import Retrying, retry_if_exception, stop_after_attempt, wait_exponential_jitter

from shared.errors import RemoteCallError
from shared.logger import StructuredLogger

T = TypeVar("T")

BASE_DELAY = 0.5
MAX_DELAY = 8.0


def _is_retryable(retry_on: Tuple[Type[BaseException], ...]) -> Callable[[BaseException], bool]:
    def predicate(exc: BaseException) -> bool:
        if not isinstance(exc, retry_on):
            return False
        # Permission and absence are answers, not transient failures
        if isinstance(exc, RemoteCallError) and (exc.access_denied or exc.not_found):
            return False
        return True

    return predicate


def call_with_retry(
    fn: Callable[[], T],
    attempts: int = 1,
    retry_on: Tuple[Type[BaseException], ...] = (RemoteCallError,),
    operation: str = "remote call",
) -> T:
    """
    Run fn, retrying up to attempts times with exponential backoff.

    The last exception is re-raised unchanged once attempts are exhausted.
    """
    if attempts <= 1:
        return fn()

    def _log_retry(retry_state) -> None:
        StructuredLogger.warning(
            "Retrying remote call",
            operation=operation,
            attempt=retry_state.attempt_number,
            exception=retry_state.outcome.exception(),
        )

    retrying = Retrying(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential_jitter(initial=BASE_DELAY, max=MAX_DELAY),
        retry=retry_if_exception(_is_retryable(retry_on)),
        before_sleep=_log_retry,
        reraise=True,
    )
    return retrying(fn)
