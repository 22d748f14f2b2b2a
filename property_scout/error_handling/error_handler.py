"""
Error handler with retry logic for Property Scout.

Implements exponential backoff, timeout escalation and the transient-versus-
fatal classification used by the AI gateway.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Optional

import aiohttp

from property_scout.config.settings import RetryConfig
from property_scout.error_handling.exceptions import (
    BackendConnectionError,
    BackendHTTPError,
)


logger = logging.getLogger(__name__)


def is_transient_error(error: BaseException) -> bool:
    """
    Decide whether an error is worth retrying against the same backend.

    Timeouts, refused or dropped connections, rate limiting (HTTP 429) and
    server errors (HTTP 5xx) are transient. Any other HTTP status, including
    authentication failures, is fatal for that backend.

    Args:
        error: The exception raised by a backend call

    Returns:
        True if the call may succeed when repeated
    """
    if isinstance(error, (asyncio.TimeoutError, TimeoutError)):
        return True
    if isinstance(error, (BackendConnectionError, aiohttp.ClientConnectionError, ConnectionError)):
        return True
    if isinstance(error, BackendHTTPError):
        return error.status == 429 or error.status >= 500
    return False


class ErrorHandler:
    """
    Error handler with retry logic.

    Every attempt runs under its own timeout, which escalates with each
    retry. Between attempts the handler waits with exponential backoff.

    Attributes:
        config: Retry configuration
    """

    def __init__(self, config: Optional[RetryConfig] = None):
        """
        Initialize error handler with retry configuration.

        Args:
            config: Retry configuration (default: RetryConfig())
        """
        self.config = config or RetryConfig()

    async def retry_with_backoff(
        self,
        operation: Callable,
        *args,
        retry_if: Optional[Callable[[BaseException], bool]] = None,
        **kwargs
    ) -> Any:
        """
        Execute operation with exponential backoff retry logic.

        Attempts the operation up to max_retries times. An error rejected by
        ``retry_if`` is raised immediately without further attempts.

        Args:
            operation: Async callable to execute
            *args: Positional arguments for the operation
            retry_if: Predicate deciding whether an error is retryable
                (default: retry every error)
            **kwargs: Keyword arguments for the operation

        Returns:
            Result from successful operation execution

        Raises:
            Exception: The last exception encountered if all retries are exhausted
        """
        name = getattr(operation, "__name__", repr(operation))
        max_attempts = max(1, self.config.max_retries)
        last_exception = None

        for attempt in range(max_attempts):
            timeout_s = self.config.get_timeout(attempt) / 1000.0
            try:
                logger.debug(f"Attempt {attempt + 1}/{max_attempts} for {name} (timeout {timeout_s:.1f}s)")
                return await asyncio.wait_for(operation(*args, **kwargs), timeout=timeout_s)
            except Exception as e:
                last_exception = e
                self._log_error(name, attempt + 1, max_attempts, e)

                if retry_if is not None and not retry_if(e):
                    logger.warning(f"{name} failed with a non-retryable error: {type(e).__name__}")
                    raise

                if attempt == max_attempts - 1:
                    logger.error(f"{name} failed after {max_attempts} attempts. Final error: {e}")
                    break

                backoff_delay = self.config.get_backoff_delay(attempt)
                logger.info(f"Waiting {backoff_delay:.1f}s before retrying {name}...")
                await asyncio.sleep(backoff_delay)

        raise last_exception

    def _log_error(
        self,
        operation_name: str,
        attempt: int,
        max_attempts: int,
        error: Exception
    ) -> None:
        """Log error with timestamp and diagnostic context."""
        context = {
            'timestamp': datetime.now().isoformat(),
            'operation': operation_name,
            'attempt': f"{attempt}/{max_attempts}",
            'error_type': type(error).__name__,
            'error_message': str(error),
        }
        logger.warning(
            f"Operation failed: {operation_name} | "
            f"Attempt: {attempt}/{max_attempts} | "
            f"Error: {type(error).__name__}: {str(error)[:200]}"
        )
        logger.debug(f"Full error context: {context}")
