class ForumError(Exception):
    """Base class for errors raised by the forum services."""

    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ForumError, ValueError):
    status_code = 400


class AuthError(ForumError):
    status_code = 401


class ConflictError(ForumError):
    status_code = 409


class NotFoundError(ForumError):
    status_code = 404


class StorageError(ForumError):
    """The store failed or stayed locked past the busy timeout."""


class TokenGenerationError(ForumError):
    pass
