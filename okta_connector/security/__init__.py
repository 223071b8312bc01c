"""Security utilities for log sanitization and input validation."""

from .validation import (
    mask_secret,
    redact_token,
    sanitize_log_input,
    validate_environment_variable_name,
)

__all__ = [
    "mask_secret",
    "redact_token",
    "sanitize_log_input",
    "validate_environment_variable_name",
]
