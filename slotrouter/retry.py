from __future__ import annotations

from abc import ABC, abstractmethod

from anyio import sleep

from slotrouter._utils import logger
from slotrouter.typing import Any, Callable, Coroutine, R


class RetryPolicy(ABC):
    """
    Abstract retry policy
    """

    def __init__(self, retries: int, retryable_exceptions: tuple[type[BaseException], ...]) -> None:
        """
        :param retries: number of times to retry if a :paramref:`retryable_exception`
         is encountered.
        :param retryable_exceptions: The exceptions to trigger a retry for
        """
        self.retryable_exceptions = retryable_exceptions
        self.retries = retries

    @abstractmethod
    def backoff(self, attempt_number: int) -> float:
        """
        Seconds to wait before attempt number :paramref:`attempt_number`
        (the first attempt is ``0``)
        """

    async def delay(self, attempt_number: int) -> None:
        if attempt_number > 0:
            await sleep(self.backoff(attempt_number))

    async def call_with_retries(
        self,
        func: Callable[..., Coroutine[Any, Any, R]],
        failure_hook: Callable[[BaseException], Coroutine[Any, Any, None]] | None = None,
    ) -> R:
        """
        :param func: a function that should return the coroutine that will be
         awaited when retrying if :paramref:`RetryPolicy.retryable_exceptions` is encountered.
        :param failure_hook: if provided it will be called with the exception
         everytime a retryable exception is encountered.
        """
        last_error: BaseException | None = None
        for attempt in range(self.retries + 1):
            try:
                await self.delay(attempt)
                return await func()
            except self.retryable_exceptions as e:
                logger.info(f"Retry attempt {attempt + 1} due to error: {e}")
                if failure_hook:
                    await failure_hook(e)
                last_error = e
        assert last_error
        raise last_error

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}<"
            f"retries={self.retries}, "
            f"retryable_exceptions={','.join(e.__name__ for e in self.retryable_exceptions)}"
            ">"
        )


class LinearBackoffRetryPolicy(RetryPolicy):
    """
    Retry policy that waits :paramref:`LinearBackoffRetryPolicy.step` seconds
    longer before every attempt than before the previous one, i.e.
    ``0, step, 2 * step, ...``.
    """

    def __init__(
        self,
        retryable_exceptions: tuple[type[BaseException], ...],
        retries: int,
        step: float,
    ) -> None:
        self.step = step
        super().__init__(retries, retryable_exceptions)

    def backoff(self, attempt_number: int) -> float:
        return attempt_number * self.step


class ExponentialBackoffRetryPolicy(RetryPolicy):
    """
    Retry policy that exponentially backs off before retrying up to
    :paramref:`ExponentialBackoffRetryPolicy.retries` if any
    of :paramref:`ExponentialBackoffRetryPolicy.retryable_exceptions` are
    encountered. :paramref:`ExponentialBackoffRetryPolicy.initial_delay`
    is used as the initial value for calculating the exponential backoff
    which never exceeds :paramref:`ExponentialBackoffRetryPolicy.max_delay`.
    """

    def __init__(
        self,
        retryable_exceptions: tuple[type[BaseException], ...],
        retries: int,
        initial_delay: float,
        max_delay: float | None = None,
    ) -> None:
        self.__initial_delay = initial_delay
        self.__max_delay = max_delay
        super().__init__(retries, retryable_exceptions)

    def backoff(self, attempt_number: int) -> float:
        if attempt_number == 0:
            return 0
        delay = pow(2, attempt_number) * self.__initial_delay
        return min(delay, self.__max_delay) if self.__max_delay is not None else delay
