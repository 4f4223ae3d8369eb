"""Custom application exceptions."""


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource absent, soft-deleted, or hidden from the caller."""

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class UnauthorizedException(AppException):
    """Unauthorized access exception."""

    def __init__(self, message: str = "Unauthorized"):
        """Initialize with 401 status code."""
        super().__init__(message, status_code=401)


class ForbiddenException(AppException):
    """Authenticated caller is not allowed to perform the action."""

    def __init__(self, message: str = "Forbidden"):
        """Initialize with 403 status code."""
        super().__init__(message, status_code=403)


class ValidationException(AppException):
    """Malformed or missing input."""

    def __init__(self, message: str = "Validation error"):
        """Initialize with 400 status code."""
        super().__init__(message, status_code=400)


class SlotConflictException(AppException):
    """Booking collides with an active appointment on the same slot."""

    def __init__(self, side: str, message: str | None = None):
        """
        Initialize with 400 status code.

        Args:
            side: Which party already holds the slot ("doctor" or "patient")
            message: Optional override for the default message
        """
        self.side = side
        super().__init__(
            message or f"The {side} already has an appointment at this date and time",
            status_code=400,
        )


class InvalidStateTransitionException(AppException):
    """Illegal status or delete-state move."""

    def __init__(self, message: str = "Invalid state transition", status_code: int = 409):
        """Initialize with 409 status code by default."""
        super().__init__(message, status_code=status_code)


class AlreadyDeletedException(InvalidStateTransitionException):
    """Soft delete requested on a record that is already deleted."""

    def __init__(self, message: str = "Record not found or already deleted"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class NotDeletedException(InvalidStateTransitionException):
    """Restore requested on a record that is not deleted."""

    def __init__(self, message: str = "Record not found or not deleted"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class StorageException(AppException):
    """Unexpected backend failure; details stay in the logs."""

    def __init__(self, message: str = "An unexpected storage error occurred"):
        """Initialize with 500 status code."""
        super().__init__(message, status_code=500)
