"""Custom exceptions for Situation Monitor."""


class SitmonError(Exception):
    """Base exception for all Situation Monitor errors."""

    def __init__(self, message: str, *args: object) -> None:
        self.message = message
        super().__init__(message, *args)


# Ingestion errors
class IngestionError(SitmonError):
    """Base error for ingestion layer."""


class PostSourceError(IngestionError):
    """The social post source returned something unusable."""


# Processing errors
class ProcessingError(SitmonError):
    """Base error for processing layer."""


class LLMError(ProcessingError):
    """LLM API call failed."""


class AnalysisError(ProcessingError):
    """Deep signal analysis failed."""


# Storage errors
class StorageError(SitmonError):
    """Base error for storage layer."""


class RedisConnectionError(StorageError):
    """Failed to connect to Redis."""


# User input errors (rejected before any network call)
class InputError(SitmonError):
    """Base error for requests the caller can fix."""


class InvalidInputError(InputError):
    """Empty or malformed user input (ticker, handle, text)."""


class AccountNotFoundError(InputError):
    """Account does not exist on the post source or in the registry."""


class SignalNotFoundError(InputError):
    """No stored signal with the given id."""


class PositionNotFoundError(InputError):
    """No watchlist position with the given id."""


class TweetImportError(InputError):
    """A post could not be imported from a URL."""
