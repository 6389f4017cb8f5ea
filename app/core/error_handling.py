"""
Error handling utilities for the Fraud Rules Studio API.
Provides the rule store exceptions and standardized, user-friendly error messages.
"""

import logging
from fastapi import HTTPException
from typing import Dict, Any, Union

logger = logging.getLogger(__name__)

# Error message templates for common error scenarios
ERROR_MESSAGES = {
    # Resource errors
    "rule_not_found": "Rule '{rule_id}' was not found. It may have been deleted.",
    "version_not_found": "Rule version '{version_id}' was not found.",
    "invalid_request": "Invalid request: {detail}",

    # API errors
    "internal_error": "An internal server error occurred. Please try again later.",

    # Storage errors
    "storage_error": "The rule store could not be read or written: {detail}",

    # Export errors
    "export_error": "Could not export audit logs: {detail}",
}


class RuleStoreError(Exception):
    """Base class for errors raised by the rule store and repository."""


class NotFoundError(RuleStoreError):
    """An operation referenced a rule or version that does not exist."""

    def __init__(self, entity: str, identifier: str):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity.capitalize()} not found: {identifier}")


class CorruptStateError(RuleStoreError):
    """The persisted rule collection could not be decoded."""


def get_error_message(error_key: str, **kwargs) -> str:
    """Get a formatted error message for a specific error type."""
    if error_key not in ERROR_MESSAGES:
        return f"An unexpected error occurred: {kwargs.get('detail', '')}"

    try:
        return ERROR_MESSAGES[error_key].format(**kwargs)
    except KeyError:
        logger.error(f"Missing required parameter for error message template '{error_key}'")
        return ERROR_MESSAGES.get("internal_error", "An internal server error occurred.")

def handle_api_error(
    error: Exception,
    status_code: int = 500,
    error_key: str = "internal_error",
    log_error: bool = True,
    **kwargs
) -> HTTPException:
    """
    Handle API errors with appropriate status codes and user-friendly messages.

    Args:
        error: The exception that was raised
        status_code: HTTP status code to return
        error_key: Key for error message template in ERROR_MESSAGES
        log_error: Whether to log the error
        **kwargs: Additional parameters for error message formatting

    Returns:
        HTTPException with appropriate status code and error message
    """
    if "detail" not in kwargs:
        kwargs["detail"] = str(error)

    error_message = get_error_message(error_key, **kwargs)

    if log_error:
        logger.error(f"{error_key}: {kwargs.get('detail', str(error))}")

    return HTTPException(status_code=status_code, detail=error_message)

def handle_not_found(error: NotFoundError) -> HTTPException:
    """Map a missing rule or version to a 404 with the matching message."""
    if error.entity == "version":
        return handle_api_error(
            error,
            status_code=404,
            error_key="version_not_found",
            log_error=False,
            version_id=error.identifier
        )
    return handle_api_error(
        error,
        status_code=404,
        error_key="rule_not_found",
        log_error=False,
        rule_id=error.identifier
    )

def format_error_response(error: Union[str, Exception], error_key: str = None, **kwargs) -> Dict[str, Any]:
    """
    Format an error response for returning as JSON directly.

    Args:
        error: The error message or exception
        error_key: Optional key for error message template
        **kwargs: Additional parameters for error message formatting

    Returns:
        Dict with error details for JSON response
    """
    error_str = str(error)
    if "detail" not in kwargs:
        kwargs["detail"] = error_str

    if error_key:
        message = get_error_message(error_key, **kwargs)
    else:
        message = error_str

    return {
        "success": False,
        "error": message,
        "error_details": error_str
    }
