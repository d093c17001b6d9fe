"""Error taxonomy for the wellness journal."""


class WellnessJournalError(Exception):
    """Base class for application errors."""


class ServiceUnavailable(WellnessJournalError):
    """Raised when the extraction service cannot be reached or returns nothing."""


class MalformedExtraction(WellnessJournalError):
    """Raised when extraction output holds no recoverable structured object."""


class StoreError(WellnessJournalError):
    """Raised when a record store operation fails."""


class ValidationError(WellnessJournalError):
    """Raised for local input problems, before any network call."""


class UnauthenticatedError(ValidationError):
    """Raised when a request carries no usable user identity."""


class SessionBusyError(ValidationError):
    """Raised when a session already has an extraction round in flight."""


class SessionNotFoundError(ValidationError):
    """Raised when a conversation session is unknown or expired."""


class EntryNotFoundError(ValidationError):
    """Raised when an entry does not exist or belongs to another user."""
