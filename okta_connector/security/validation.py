"""Input validation and log sanitization utilities."""

import re
from typing import Any

# Header names whose values must never be logged
SENSITIVE_HEADERS = frozenset({"authorization", "cookie", "set-cookie"})

_ANSI_ESCAPE = re.compile(r'\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])')
_SSWS_TOKEN = re.compile(r'SSWS\s+\S+')
_ENV_VAR_NAME = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


def redact_token(text: str) -> str:
    """Replace any ``SSWS <token>`` sequence with a masked marker."""
    return _SSWS_TOKEN.sub("SSWS ***", text)


def sanitize_log_input(data: Any) -> Any:
    """Sanitize data before logging to prevent log injection and token leaks.

    Args:
        data: Data to be logged (string, dict, list, or other types)

    Returns:
        Sanitized data safe for logging
    """
    if data is None or isinstance(data, (bool, int, float)):
        return data

    if isinstance(data, str):
        # Remove or escape dangerous characters that could be used for log injection
        sanitized = data.replace('\n', '\\n').replace('\r', '\\r')
        sanitized = sanitized.replace('\t', '\\t')

        # Remove ANSI escape sequences that could be used to manipulate terminal output
        sanitized = _ANSI_ESCAPE.sub('', sanitized)
        sanitized = redact_token(sanitized)

        # Truncate extremely long strings to prevent log flooding
        if len(sanitized) > 1000:
            sanitized = sanitized[:997] + "..."

        return sanitized

    elif isinstance(data, dict):
        return {
            key: "***" if str(key).lower() in SENSITIVE_HEADERS else sanitize_log_input(value)
            for key, value in data.items()
        }

    elif isinstance(data, (list, tuple)):
        return [sanitize_log_input(item) for item in data]

    else:
        # For other types, convert to string and sanitize
        return sanitize_log_input(str(data))


def mask_secret(value: str, visible: int = 4) -> str:
    """Mask a secret for display, keeping only its last few characters."""
    if len(value) <= visible:
        return "*" * len(value)
    return "*" * (len(value) - visible) + value[-visible:]


def validate_environment_variable_name(var_name: str) -> bool:
    """Validate environment variable name format.

    Args:
        var_name: Environment variable name to validate

    Returns:
        True if the name only contains letters, digits and underscores and
        does not start with a digit
    """
    if not var_name or len(var_name) > 255:
        return False
    return bool(_ENV_VAR_NAME.match(var_name))
