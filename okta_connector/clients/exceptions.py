"""Exception classes for the Okta connector."""

import json
from typing import Any, Dict, Optional


class OktaConnectorError(Exception):
    """Base exception for all connector errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(OktaConnectorError):
    """Raised when an operation descriptor fails registration checks."""
    pass


class OperationNotFoundError(OktaConnectorError):
    """Raised when an operation name is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown operation: {name}")
        self.name = name


class ArgumentError(OktaConnectorError):
    """Base class for invocation argument problems."""

    def __init__(self, message: str, operation: Optional[str] = None, parameter: Optional[str] = None) -> None:
        """Initialize argument error.

        Args:
            message: Error message
            operation: Name of the operation being invoked
            parameter: Name of the offending parameter
        """
        super().__init__(message)
        self.operation = operation
        self.parameter = parameter


class MissingParameterError(ArgumentError):
    """Raised when a required path, query or body argument is not supplied."""
    pass


class UnknownParameterError(ArgumentError):
    """Raised when an argument does not match any declared parameter."""
    pass


class InvalidArgumentError(ArgumentError):
    """Raised when an argument value is not a string, integer or boolean."""
    pass


class TemplateError(OktaConnectorError):
    """Raised when placeholders remain in a URI after substitution."""
    pass


class TransportError(OktaConnectorError):
    """Raised for network-level failures (DNS, refused connection, timeout)."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class ApiError(OktaConnectorError):
    """Raised when Okta answers with a status at or above the error threshold.

    The response body is kept exactly as received so callers can inspect
    Okta's error payload themselves.
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        response_text: str = "",
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        """Initialize API error.

        Args:
            message: Error message
            status_code: HTTP status code
            response_text: Raw response body
            headers: Response headers
        """
        super().__init__(message)
        self.status_code = status_code
        self.response_text = response_text
        self.headers = headers or {}

    def __str__(self) -> str:
        """String representation of the error."""
        parts = [self.message, f"Status: {self.status_code}"]
        if self.response_text:
            # Truncate response text for readability
            response_preview = self.response_text[:200]
            if len(self.response_text) > 200:
                response_preview += "..."
            parts.append(f"Response: {response_preview}")
        return " | ".join(parts)

    def _error_payload(self) -> Dict[str, Any]:
        try:
            data = json.loads(self.response_text)
        except (json.JSONDecodeError, TypeError):
            return {}
        return data if isinstance(data, dict) else {}

    @property
    def error_code(self) -> Optional[str]:
        """Okta ``errorCode`` (e.g. ``E0000007``), if the body carries one."""
        return self._error_payload().get("errorCode")

    @property
    def error_summary(self) -> Optional[str]:
        """Okta ``errorSummary``, if the body carries one."""
        return self._error_payload().get("errorSummary")

    @property
    def error_id(self) -> Optional[str]:
        """Okta ``errorId`` for support requests."""
        return self._error_payload().get("errorId")

    @property
    def retry_after(self) -> Optional[int]:
        """Seconds from the ``Retry-After`` header, when present."""
        value = self.headers.get("retry-after") or self.headers.get("Retry-After")
        if value:
            try:
                return int(value)
            except ValueError:
                pass
        return None


class ConfigurationError(Exception):
    """Raised when connector configuration cannot be loaded or validated."""
    pass
