"""Status definitions and exceptions for FlowUtilities.

This module provides:
    - Status: enumeration of possible outcomes
    - STATUS_MESSAGE: user-facing messages for each status
    - get_message: retrieve the message for a status
    - BaseStatusException: base exception carrying a Status
    - Specific exceptions raised to the triggering flow action
"""
import enum
import logging
from typing import Dict


class Status(enum.StrEnum):
    """Enumeration of status codes."""
    UnknownStatus = enum.auto()
    Okay = enum.auto()

    # Timer status
    ComparisonNotFound = enum.auto()

    # Calculation status
    InvalidOperation = enum.auto()
    DivisionByZero = enum.auto()
    InvalidCurrency = enum.auto()

    # Settings status
    SettingsInvalid = enum.auto()
    PersistenceFailure = enum.auto()


STATUS_MESSAGE: Dict[Status, str] = {
    Status.UnknownStatus: 'Unknown status.',
    Status.Okay: 'Everything is okay.',

    Status.ComparisonNotFound: 'No running comparison found. Was it started?',

    Status.InvalidOperation: 'The calculation could not be performed.',
    Status.DivisionByZero: 'Cannot divide by zero.',
    Status.InvalidCurrency: 'Unknown currency code.',

    Status.SettingsInvalid: 'The stored settings are incomplete, or contain invalid values.',
    Status.PersistenceFailure: 'The settings could not be saved.',
}


def get_message(status: Status) -> str:
    """
    Get the message for a given status.

    Args:
        status (Status): The status enum.

    Returns:
        str: The message associated with the status.
    """
    return STATUS_MESSAGE.get(status, 'Unknown status')


class BaseStatusException(Exception):
    """Base exception for status-based errors in FlowUtilities.

    Attributes:
        status (Status): Status code associated with this error.
        status_message (str): User-facing message for the status.

    Args:
        message (str): Optional additional context for the error.
    """
    status = Status.UnknownStatus

    def __init__(self, message: str = None):
        self.status_message = get_message(self.status)
        exception_message = f'{self.status_message} {message}' if message else self.status_message
        super().__init__(exception_message)

        logging.error(exception_message)

        from ..core.signals import signals
        signals.error.emit(message or self.status_message)


class UnknownException(BaseStatusException):
    """Exception for an unknown error during status processing."""
    pass


class ComparisonNotFoundException(BaseStatusException):
    """Exception raised when ending or cancelling a comparison that was never started."""
    status = Status.ComparisonNotFound


class InvalidOperationException(BaseStatusException):
    """Exception raised for an unknown calculation selector or non-numeric operands."""
    status = Status.InvalidOperation


class DivisionByZeroException(BaseStatusException):
    """Exception raised when a calculation would divide by zero."""
    status = Status.DivisionByZero


class InvalidCurrencyException(BaseStatusException):
    """Exception raised when a currency code is not a known ISO 4217 code."""
    status = Status.InvalidCurrency


class SettingsInvalidException(BaseStatusException):
    """Exception raised when the settings document fails schema validation."""
    status = Status.SettingsInvalid


class PersistenceFailureException(BaseStatusException):
    """Exception raised when the host store rejects a settings write."""
    status = Status.PersistenceFailure
