"""Exception types raised across Property Scout."""

from typing import Optional


class PropertyScoutError(Exception):
    """Base class for all Property Scout errors."""


class UnsupportedCurrency(PropertyScoutError):
    """Raised when an amount is given in a currency without a configured rate."""

    def __init__(self, currency: str):
        super().__init__(f"Unsupported currency: {currency}")
        self.currency = currency


class BackendError(PropertyScoutError):
    """A single AI backend call failed."""

    def __init__(self, backend: str, message: str):
        super().__init__(f"{backend}: {message}")
        self.backend = backend


class BackendHTTPError(BackendError):
    """An AI backend answered with a non-success HTTP status."""

    def __init__(self, backend: str, status: int, body: str = ""):
        super().__init__(backend, f"HTTP {status} - {body[:200]}")
        self.status = status
        self.body = body


class BackendConnectionError(BackendError):
    """An AI backend could not be reached."""


class AIBackendUnavailable(PropertyScoutError):
    """Every backend in the AI fallback chain has been exhausted."""

    def __init__(self, message: str, original_error: Optional[BaseException] = None):
        if original_error is not None:
            message = f"{message}: {original_error}"
        super().__init__(message)
        self.original_error = original_error


class MalformedAIResponse(PropertyScoutError):
    """An AI response could not be parsed into the expected shape."""


class ListingSourceFailure(PropertyScoutError):
    """A listing source failed while searching."""

    def __init__(self, source_id: str, cause: BaseException):
        super().__init__(f"Listing source {source_id} failed: {cause}")
        self.source_id = source_id
        self.cause = cause


class EmbeddingFailure(PropertyScoutError):
    """A network-backed embedding call failed."""
