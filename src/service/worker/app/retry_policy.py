from typing import Awaitable, Callable, TypeVar

import anyio

from src.platform.exception.exceptions import PermanentJobError
from src.platform.logging.loguru_io import Logger


_T = TypeVar('_T')


class RetryPolicy:
    """
    Bounded exponential backoff inside one delivery.

    attempt 1 runs immediately; attempt n waits base * 2**(n-2) before it.
    PermanentJobError is never retried. `sleep` is injectable for tests.
    """

    def __init__(
        self,
        *,
        attempts: int = 3,
        base_delay_seconds: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = anyio.sleep,
    ) -> None:
        if attempts < 1:
            raise ValueError('attempts must be >= 1')
        self.attempts = attempts
        self.base_delay_seconds = base_delay_seconds
        self._sleep = sleep

    def delay_before(self, attempt: int) -> float:
        if attempt <= 1:
            return 0.0
        return self.base_delay_seconds * 2 ** (attempt - 2)

    async def run(self, operation: Callable[[], Awaitable[_T]], *, description: str = '') -> _T:
        last_error: Exception | None = None
        for attempt in range(1, self.attempts + 1):
            if attempt > 1:
                await self._sleep(self.delay_before(attempt))
            try:
                return await operation()
            except PermanentJobError:
                raise
            except Exception as e:
                last_error = e
                Logger.base.warning(
                    f'[RETRY] {description} attempt {attempt}/{self.attempts} failed: {e}'
                )

        assert last_error is not None
        raise last_error
