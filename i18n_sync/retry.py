import asyncio
import logging
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

from i18n_sync.errors import ProviderError

T = TypeVar('T')

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS: Tuple[Type[BaseException], ...] = (ProviderError, asyncio.TimeoutError)


class RetryPolicy:
    """
    Bounded retry with a hard per-call timeout and linear backoff.

    ``run`` takes a zero-argument callable returning a fresh awaitable on each
    call. Every attempt is cancelled after ``timeout`` seconds, which counts as
    a failure. Between attempts the policy waits ``base_delay * attempt``
    seconds (0.4s, then 0.8s with the defaults). Once ``max_attempts`` is
    reached the last failure is re-raised.
    """

    def __init__(
            self,
            max_attempts: int = 3,
            base_delay: float = 0.4,
            timeout: Optional[float] = 30.0,
            retry_on: Tuple[Type[BaseException], ...] = RETRYABLE_ERRORS,
            sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}.")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.timeout = timeout
        self.retry_on = retry_on
        self._sleep = sleep

    def delay_for(self, attempt: int) -> float:
        return self.base_delay * attempt

    async def run(self, operation: Callable[[], Awaitable[T]], description: str = "request") -> T:
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await asyncio.wait_for(operation(), timeout=self.timeout)
            except self.retry_on as exc:
                if attempt == self.max_attempts:
                    logger.warning(
                        "%s failed after %d attempts: %s", description, self.max_attempts, _describe(exc)
                    )
                    raise
                delay = self.delay_for(attempt)
                logger.info(
                    "%s failed (%s). Retrying in %.2f seconds (Attempt %d/%d)",
                    description, _describe(exc), delay, attempt, self.max_attempts
                )
                await self._sleep(delay)

        raise RuntimeError("unreachable")  # pragma: no cover


def _describe(exc: BaseException) -> str:
    if isinstance(exc, asyncio.TimeoutError):
        return "timed out"
    return f"{exc.__class__.__name__} - {exc}"
