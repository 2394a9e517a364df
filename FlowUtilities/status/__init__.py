"""Status package: enums and exceptions for reporting failed flow actions.

This package defines:
    - Status: a StrEnum of possible outcomes
    - STATUS_MESSAGE: default user-facing messages per status
    - get_message: helper to retrieve messages for statuses
    - BaseStatusException: base exception for status-driven error handling
    - Specific exceptions (e.g., ComparisonNotFoundException) tagged with statuses
"""
