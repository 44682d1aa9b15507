"""
Base exceptions shared by every POS app.
"""


class POSError(Exception):
    """Base exception for errors raised by POS services."""

    def __init__(self, message, details=None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(POSError):
    """Raised when a request payload or a business precondition is invalid."""
    pass


class ResourceNotFoundError(POSError):
    """Raised when a referenced record does not exist."""

    def __init__(self, resource, identifier, message=None):
        self.resource = resource
        self.identifier = identifier
        if message is None:
            message = f"{resource} with id {identifier} not found"
        super().__init__(message, details={"resource": resource, "id": identifier})
