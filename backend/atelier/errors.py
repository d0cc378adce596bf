class AtelierError(Exception):
    """Base class for every failure the studio reports to its callers."""


class NotFound(AtelierError):
    """A requested series, module, tattoo or book does not exist."""

    def __init__(self, message: str, *, path: str | None = None):
        super().__init__(message)
        self.path = path


class ValidationFailure(AtelierError):
    """A required form field is missing or malformed. Never reaches the store."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class GenerationFailure(AtelierError):
    """The AI model failed or returned output that does not match its schema."""


class PersistenceFailure(AtelierError):
    """A document store read or write failed."""


class EditorStateError(AtelierError):
    """The editor was asked to do something its current state does not allow."""


class AuthenticationFailed(AtelierError):
    """The identity provider or the session token did not identify a user."""
