"""
Application layer exceptions.
"""

from typing import Any, Dict, Optional


class ApplicationException(Exception):
    """Base application exception."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class BusinessRuleException(ApplicationException):
    """Exception raised when a business rule is violated."""

    def __init__(self, rule: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.rule = rule


class NotFoundException(ApplicationException):
    """Exception raised when a resource is not found."""

    def __init__(self, resource_type: str, identifier: str, details: Optional[Dict[str, Any]] = None):
        message = f"{resource_type} with identifier '{identifier}' not found"
        super().__init__(message, details)
        self.resource_type = resource_type
        self.identifier = identifier
