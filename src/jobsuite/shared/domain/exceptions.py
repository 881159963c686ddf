"""
Domain-specific exceptions for the Job Suite platform.
"""


class DomainException(Exception):
    """Base exception for domain-related errors."""

    def __init__(self, message: str, error_code: str = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__


class InvalidStateException(DomainException):
    """Exception raised when an entity is in an invalid state."""
    pass


class ValidationException(DomainException):
    """Exception raised for validation errors."""
    pass
