"""Custom exception classes for the application."""


class AppError(Exception):
    """Base application error class."""

    def __init__(self, message, status_code=400):
        """Initialize the error."""
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ValidationError(AppError):
    """Raised when user input fails validation."""

    def __init__(self, message="Validation failed."):
        """Initialize the error."""
        super().__init__(message, 400)


class PermissionDeniedError(AppError):
    """Raised when a non-admin attempts an administrative action."""

    def __init__(self, message="You do not have permission to do that."):
        """Initialize the error."""
        super().__init__(message, 403)


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    def __init__(self, message="Resource not found."):
        """Initialize the error."""
        super().__init__(message, 404)


class PreconditionError(AppError):
    """Raised when an operation is attempted in the wrong lifecycle state."""

    def __init__(self, message="The tournament is not in the right state."):
        """Initialize the error."""
        super().__init__(message, 409)


class InsufficientTeamsError(PreconditionError):
    """Raised when a team category has fewer teams than participants."""

    def __init__(self, message="Not enough teams in the category for the draw."):
        """Initialize the error."""
        super().__init__(message)


class StageError(PreconditionError):
    """Raised when the tournament stage does not allow the operation."""

    def __init__(self, message="The current stage does not allow this."):
        """Initialize the error."""
        super().__init__(message)


class PlayoffNotStartedError(PreconditionError):
    """Raised when a playoff operation runs before the bracket exists."""

    def __init__(self, message="The playoff has not started yet."):
        """Initialize the error."""
        super().__init__(message)


class ConflictError(AppError):
    """Raised when the request conflicts with existing state."""

    def __init__(self, message="Resource already exists."):
        """Initialize the error."""
        super().__init__(message, 409)


class DuplicateMatchError(ConflictError):
    """Raised when two group teams are paired a second time."""

    def __init__(self, message="These teams have already played each other."):
        """Initialize the error."""
        super().__init__(message)


class ConversationInProgressError(ConflictError):
    """Raised when a user already has an open match-entry conversation."""

    def __init__(self, message="Finish or /cancel the current match entry first."):
        """Initialize the error."""
        super().__init__(message)


class StageAlreadyDecidedError(ConflictError):
    """Raised when a result is submitted for an already decided playoff slot."""

    def __init__(self, message="This playoff match has already been decided."):
        """Initialize the error."""
        super().__init__(message)


class StorageError(AppError):
    """Raised when the storage backend fails to persist a change."""

    def __init__(self, message="A storage error occurred. Please try again later."):
        """Initialize the error."""
        super().__init__(message, 500)
