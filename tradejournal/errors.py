"""Error taxonomy for the trade analysis pipeline."""


class JournalError(Exception):
    """Base class for trade journal errors."""


class ValidationError(JournalError):
    """Malformed or missing trade fields (e.g. non-numeric quantity)."""


class NotFoundError(JournalError):
    """Trade absent, or not owned by the requesting user."""


class ExternalServiceError(JournalError):
    """The AI analysis call failed. Never surfaced past the AI service."""


class PersistenceWarning(UserWarning):
    """An analysis could not be written. Logged, the request still succeeds."""
