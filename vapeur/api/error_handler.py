"""Error handling for Steam store API interactions."""

from typing import Any, Awaitable, Callable, Optional
import asyncio
import logging

logger = logging.getLogger(__name__)


class RemoteAPIError(Exception):
    """Base exception for Steam store API errors."""
    pass


class RetryableAPIError(RemoteAPIError):
    """Retryable API error (rate limits, transient failures)."""
    pass


class NoRemoteResults(RemoteAPIError):
    """Search returned no results."""

    def __init__(self, term: str):
        self.term = term
        super().__init__(f"No results found for '{term}'")


class InvalidRemoteIdentifier(RemoteAPIError):
    """The store reported an app id as unknown or inaccessible."""

    def __init__(self, app_id: int):
        self.app_id = app_id
        super().__init__(f"Game not found or not accessible (app id {app_id})")


# HTTP status code mapping
HTTP_STATUS_MESSAGES = {
    400: "Malformed request",
    403: "Access denied",
    404: "Not found",
    429: "Rate limited",
    500: "Store server error",
    502: "Bad gateway",
    503: "Store unavailable",
    504: "Gateway timeout",
}

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


def get_error_message(status_code: int) -> str:
    """
    Get user-friendly error message for HTTP status code.

    Args:
        status_code: HTTP status code

    Returns:
        Error message string
    """
    return HTTP_STATUS_MESSAGES.get(
        status_code,
        f"Unknown error (HTTP {status_code})"
    )


def handle_http_status(status_code: int, context: str = "") -> None:
    """
    Raise the appropriate exception for a non-success HTTP status.

    Args:
        status_code: HTTP status code from the store
        context: Additional context for error message

    Raises:
        RetryableAPIError: For 429 and 5xx responses
        RemoteAPIError: For any other non-2xx response
    """
    if 200 <= status_code < 300:
        return

    msg = get_error_message(status_code)
    if context:
        msg = f"{msg} ({context})"

    if status_code in RETRYABLE_STATUS_CODES:
        raise RetryableAPIError(msg)
    raise RemoteAPIError(msg)


async def retry_with_backoff(
    func: Callable[[], Awaitable[Any]],
    max_attempts: int = 3,
    initial_delay: float = 2.0,
    backoff_factor: float = 2.0,
    context: str = ""
) -> Any:
    """
    Retry an async function with exponential backoff.

    Only RetryableAPIError is retried; every other exception propagates
    immediately.

    Args:
        func: Async function to retry
        max_attempts: Maximum number of attempts
        initial_delay: Initial delay in seconds
        backoff_factor: Multiplier for each retry
        context: Context string for log messages

    Returns:
        Function result if successful

    Raises:
        Last RetryableAPIError if all attempts fail
    """
    delay = initial_delay
    last_exception: Optional[RetryableAPIError] = None

    for attempt in range(1, max_attempts + 1):
        try:
            return await func()
        except RetryableAPIError as e:
            last_exception = e
            if attempt < max_attempts:
                logger.warning(f"{context}: {e}")
                logger.info(f"Retrying in {delay:.1f}s (attempt {attempt}/{max_attempts})")
                await asyncio.sleep(delay)
                delay *= backoff_factor
            else:
                logger.error(f"{context}: failed after {max_attempts} attempts")

    if last_exception:
        raise last_exception
    raise RemoteAPIError(f"Failed after {max_attempts} attempts")
