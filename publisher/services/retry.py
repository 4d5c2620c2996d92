"""Retry policy for configure calls."""
import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from ..errors import ConfigureFailed, InvalidInput

logger = logging.getLogger(__name__)

T = TypeVar("T")

# The server reports "video not processed yet" only through this message text.
TRANSCODE_TIMEOUT_MARKER = "Transcode timeout"
DEFAULT_CONFIGURE_ATTEMPTS = 5
DEFAULT_RETRY_DELAY = 1.0


def is_transient(error: ConfigureFailed) -> bool:
    return TRANSCODE_TIMEOUT_MARKER in (error.message or "")


async def configure_with_retries(
    configure_fn: Callable[[], Awaitable[T]],
    max_attempts: int = DEFAULT_CONFIGURE_ATTEMPTS,
    delay: float = DEFAULT_RETRY_DELAY,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Call ``configure_fn`` until it succeeds or fails for good.

    Only a ConfigureFailed carrying the transcode-timeout marker is retried,
    after waiting ``delay`` seconds. Any other error, or the last attempt's
    error, propagates unchanged.
    """
    if max_attempts < 1:
        raise InvalidInput("The maxAttempts parameter must be 1 or higher.")

    attempt = 1
    while True:
        try:
            return await configure_fn()
        except ConfigureFailed as exc:
            if attempt >= max_attempts or not is_transient(exc):
                raise
            logger.warning(
                "Configure not ready (attempt %d/%d): %s; retrying in %.1fs",
                attempt, max_attempts, exc.message, delay,
            )
        await sleep(delay)
        attempt += 1
