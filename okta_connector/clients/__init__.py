"""HTTP dispatch and the Okta operation facade."""

from .exceptions import (
    ApiError,
    ArgumentError,
    ConfigurationError,
    InvalidArgumentError,
    MissingParameterError,
    OktaConnectorError,
    OperationNotFoundError,
    TemplateError,
    TransportError,
    UnknownParameterError,
    ValidationError,
)

__all__ = [
    "ApiError",
    "ArgumentError",
    "ConfigurationError",
    "InvalidArgumentError",
    "MissingParameterError",
    "OktaConnectorError",
    "OperationNotFoundError",
    "TemplateError",
    "TransportError",
    "UnknownParameterError",
    "ValidationError",
]
