"""Okta REST operations as declarative descriptors with a generic dispatcher."""

from okta_connector.clients.dispatch import ApiResponse, DispatchClient
from okta_connector.clients.okta import OktaConnector
from okta_connector.config.models import ConnectionConfig
from okta_connector.operations.catalogue import OKTA_OPERATIONS, build_default_registry
from okta_connector.operations.descriptor import ABSENT, FROM_BODY, HttpMethod, OperationDescriptor
from okta_connector.operations.registry import OperationRegistry
from okta_connector.version import __version__

__all__ = [
    "ABSENT",
    "FROM_BODY",
    "OKTA_OPERATIONS",
    "ApiResponse",
    "ConnectionConfig",
    "DispatchClient",
    "HttpMethod",
    "OktaConnector",
    "OperationDescriptor",
    "OperationRegistry",
    "build_default_registry",
    "__version__",
]
