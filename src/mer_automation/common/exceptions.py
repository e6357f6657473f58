"""MER automation exception hierarchy."""


class MerError(Exception):
    """Base exception for all MER automation errors."""

    def __init__(self, message: str = "", code: str = "MER_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class NotFoundError(MerError):
    """Raised for an unknown basket ID, a missing log folder, table or calendar event."""

    def __init__(self, message: str = "Not found"):
        super().__init__(message, code="NOT_FOUND")


class ValidationError(MerError):
    """Raised when input is malformed or a row number is out of table bounds."""

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, code="INVALID")


class DeliveryError(MerError):
    """Raised when a notification could not be delivered."""

    def __init__(self, message: str = "Notification delivery failed"):
        super().__init__(message, code="DELIVERY_FAILED")


class DataIntegrityWarning(UserWarning):
    """Issued when a usage log line is malformed and skipped."""
