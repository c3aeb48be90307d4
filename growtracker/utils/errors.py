"""
Error handling utilities for sanitizing user-facing messages and logging.

Provides consistent error handling across the application:
- Sanitizes error messages to prevent information leakage
- Logs detailed error information for debugging
- Builds the JSON error payload used by the API blueprint
"""

from __future__ import annotations
from typing import Any, Tuple
from flask import current_app, jsonify

# User-friendly generic error messages
GENERIC_MESSAGES = {
    "database": "We're experiencing technical difficulties. Please try again.",
    "validation": "The information provided is invalid. Please check and try again.",
    "upload": "Failed to upload file. Please try again.",
    "not_found": "The requested plant was not found.",
}


def sanitize_error(
    error: Exception,
    error_type: str = "database",
    log_prefix: str = ""
) -> str:
    """
    Sanitize error message for user display and log full details.

    Internal error messages and stack traces are never shown to the user; the
    full details go to the application log instead.

    Args:
        error: The exception that occurred
        error_type: Type of error (database, validation, upload, not_found)
        log_prefix: Optional prefix for log message context

    Returns:
        User-friendly error message

    Examples:
        >>> try:
        ...     plant = supabase_client.create_plant(data)
        ... except Exception as e:
        ...     flash(sanitize_error(e, "database", "Failed to create plant"), "error")
    """
    error_message = str(error)
    log_message = f"{log_prefix}: {error_message}" if log_prefix else error_message

    if error_type in ["validation", "not_found"]:
        # User mistakes, not bugs
        current_app.logger.info(f"Expected error - {log_message}")
    else:
        current_app.logger.error(f"Unexpected error - {log_message}", exc_info=True)

    return GENERIC_MESSAGES.get(error_type, GENERIC_MESSAGES["database"])


def json_error(message: str, status: int) -> Tuple[Any, int]:
    """Standard JSON error response: {"success": false, "error": message}."""
    return jsonify({"success": False, "error": message}), status


def log_warning(message: str, **context) -> None:
    """
    Log a warning with optional context.

    Examples:
        >>> log_warning("Image upload rejected", plant_id="123", reason="too large")
    """
    if context:
        context_str = ", ".join(f"{k}={v}" for k, v in context.items())
        message = f"{message} | Context: {context_str}"

    current_app.logger.warning(message)


def log_info(message: str, **context) -> None:
    """
    Log an info message with optional context.

    Examples:
        >>> log_info("Plant created", plant_id="123", plant_name="Northern Lights")
    """
    if context:
        context_str = ", ".join(f"{k}={v}" for k, v in context.items())
        message = f"{message} | Context: {context_str}"

    current_app.logger.info(message)
