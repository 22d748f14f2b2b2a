"""
Error handling module for Property Scout.

Provides the exception taxonomy, the transient-error predicate and retry
logic with exponential backoff.
"""

from .error_handler import ErrorHandler, is_transient_error
from .exceptions import (
    PropertyScoutError,
    UnsupportedCurrency,
    BackendError,
    BackendHTTPError,
    BackendConnectionError,
    AIBackendUnavailable,
    MalformedAIResponse,
    ListingSourceFailure,
    EmbeddingFailure,
)

__all__ = [
    'ErrorHandler',
    'is_transient_error',
    'PropertyScoutError',
    'UnsupportedCurrency',
    'BackendError',
    'BackendHTTPError',
    'BackendConnectionError',
    'AIBackendUnavailable',
    'MalformedAIResponse',
    'ListingSourceFailure',
    'EmbeddingFailure',
]
