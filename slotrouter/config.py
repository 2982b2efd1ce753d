from __future__ import annotations

import os


def _env_number(name: str, default: float | None) -> float | None:
    value = os.environ.get(name, "").strip()
    return float(value) if value else default


class __Config:
    def __init__(self) -> None:
        self.__max_retries: int | None = None
        self.__retry_delay: float | None = None

    @property
    def max_retries(self) -> int:
        """
        Number of attempts a routed call makes before giving up with
        :class:`~slotrouter.exceptions.NoConnectionError`.
        Can be set with the environment variable ``SLOTROUTER_MAX_RETRIES``
        or by assigning ``slotrouter.Config.max_retries``. Defaults to ``1000``.
        """
        if self.__max_retries is not None:
            return self.__max_retries
        return int(_env_number("SLOTROUTER_MAX_RETRIES", 1000) or 0)

    @max_retries.setter
    def max_retries(self, value: int | None) -> None:
        if value is not None and value < 1:
            raise ValueError(f"max_retries must be at least 1, got {value}")
        self.__max_retries = value

    @property
    def retry_delay(self) -> float:
        """
        Seconds added to the wait before every subsequent attempt of a routed call.
        Can be set with the environment variable ``SLOTROUTER_RETRY_DELAY``
        or by assigning ``slotrouter.Config.retry_delay``. Defaults to ``0.1``.
        """
        if self.__retry_delay is not None:
            return self.__retry_delay
        return float(_env_number("SLOTROUTER_RETRY_DELAY", 0.1) or 0)

    @retry_delay.setter
    def retry_delay(self, value: float | None) -> None:
        self.__retry_delay = value

    @property
    def pool_timeout(self) -> float | None:
        """
        Seconds to block when checking out a connection from a pool that was
        not given an explicit timeout (``SLOTROUTER_POOL_TIMEOUT``). Unset means
        wait forever.
        """
        return _env_number("SLOTROUTER_POOL_TIMEOUT", None)


#: Used to configure global behaviors of the slotrouter library
Config = __Config()
