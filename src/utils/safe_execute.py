"""Error handling helpers for calls into external collaborators.

``safe_execute_async`` logs and returns a default for optional work.
``capture_async`` returns an ``AdapterResult`` instead, so the caller decides
the degrade policy explicitly.
"""

from typing import Any, Awaitable, Generic, Optional, TypeVar

from src.utils.logger import logger

T = TypeVar("T")


def _log_error(operation_name: str, exception: BaseException, log_level: str = "warning") -> None:
    """Log error with appropriate level.

    Args:
        operation_name: Description for logging
        exception: Exception that occurred
        log_level: Logging level ("debug", "warning", "error"). Default: "warning".
    """
    msg = f"{operation_name}: {type(exception).__name__}: {exception}"
    if log_level == "debug":
        logger.debug(msg)
    elif log_level == "error":
        logger.error(msg)
    else:
        logger.warning(msg)


class AdapterResult(Generic[T]):
    """Outcome of an adapter call: either a value or the captured error."""

    __slots__ = ("value", "error")

    def __init__(self, value: Optional[T] = None, error: Optional[BaseException] = None) -> None:
        self.value = value
        self.error = error

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "AdapterResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: BaseException) -> "AdapterResult[T]":
        return cls(error=error)

    def unwrap_or(self, default: T) -> T:
        """Return the value on success, ``default`` otherwise."""
        return self.value if self.ok else default

    def __repr__(self) -> str:
        if self.ok:
            return f"AdapterResult.success({self.value!r})"
        return f"AdapterResult.failure({self.error!r})"


async def capture_async(
    coro: Awaitable[T],
    operation_name: str,
    log_level: str = "warning",
) -> AdapterResult[T]:
    """Await ``coro`` and capture its outcome.

    Args:
        coro: Awaitable adapter call.
        operation_name: Description for logging (e.g., "YouTube search").
        log_level: Logging level for failures. Default: "warning".

    Returns:
        ``AdapterResult.success(value)`` or ``AdapterResult.failure(error)``.
        Cancellation is not captured.
    """
    try:
        return AdapterResult.success(await coro)
    except Exception as e:
        _log_error(operation_name, e, log_level)
        return AdapterResult.failure(e)


async def safe_execute_async(
    coro: Awaitable[Any],
    operation_name: str,
    log_level: str = "warning",
    default_return: Any = None,
    reraise: bool = False,
) -> Any:
    """Safely execute async operation with consistent error logging.

    Used where failure is not critical, such as persisting a session write
    or closing a client on shutdown.

    Args:
        coro: Awaitable coroutine to execute.
        operation_name: Description for logging.
        log_level: Logging level ("debug", "warning", "error"). Default: "warning".
        default_return: Value to return on exception. Default: None.
        reraise: If True, re-raise exception after logging. Default: False.

    Returns:
        Result of coroutine if successful, ``default_return`` otherwise.

    Raises:
        Exception: Original exception if reraise=True.
    """
    try:
        return await coro
    except Exception as e:
        _log_error(operation_name, e, log_level)
        if reraise:
            raise
        return default_return
