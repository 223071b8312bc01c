"""Generic dispatch of declarative operations over HTTP."""

from contextlib import nullcontext
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
from urllib.parse import quote

import httpx
import structlog
from asyncio_throttle import Throttler

from okta_connector.clients.exceptions import (
    ApiError,
    InvalidArgumentError,
    MissingParameterError,
    TemplateError,
    TransportError,
    UnknownParameterError,
)
from okta_connector.config.models import ConnectionConfig
from okta_connector.operations.catalogue import build_default_registry
from okta_connector.operations.descriptor import (
    ABSENT,
    FROM_BODY,
    PLACEHOLDER_PATTERN,
    OperationDescriptor,
    ParamBinding,
    template_placeholders,
)
from okta_connector.operations.registry import OperationRegistry
from okta_connector.security.validation import sanitize_log_input

logger = structlog.get_logger(__name__)

Arguments = Mapping[str, Any]
Payload = Union[str, bytes, None]


@dataclass(frozen=True)
class ApiResponse:
    """Successful response of one dispatched operation.

    Header names are lower-cased.
    """

    status_code: int
    body: str
    headers: Dict[str, str] = field(default_factory=dict)


def format_value(value: Union[str, int, bool]) -> str:
    """Serialize an argument the way Okta expects it on the wire."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    return value


def _payload_text(payload: Payload) -> Optional[str]:
    if isinstance(payload, bytes):
        return payload.decode("utf-8")
    return payload


class DispatchClient:
    """Turns operation descriptors plus arguments into HTTP requests.

    The client only holds read-only state (configuration, registry, the
    underlying ``httpx.AsyncClient``), so one instance can serve any number
    of concurrent ``invoke`` calls. Every call is a single round trip;
    nothing is retried or cached here.
    """

    def __init__(
        self,
        config: ConnectionConfig,
        registry: Optional[OperationRegistry] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        """Initialize the dispatch client.

        Args:
            config: Okta connection configuration
            registry: Operations to dispatch by name (defaults to the Okta catalogue)
            http_client: Pre-built httpx client; left open by :meth:`close`
            user_agent: Custom user agent string
        """
        self._config = config
        self._registry = registry if registry is not None else build_default_registry()
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout_seconds),
            headers={"User-Agent": user_agent or self._get_default_user_agent()},
        )
        self._throttler = self._make_throttler(config)
        self._logger = logger.bind(okta_host=config.host)

    async def __aenter__(self) -> "DispatchClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    @staticmethod
    def _make_throttler(config: ConnectionConfig) -> Optional[Throttler]:
        if config.rate_limit_per_minute is None:
            return None
        return Throttler(rate_limit=config.rate_limit_per_minute, period=60)

    def _get_default_user_agent(self) -> str:
        from okta_connector.version import __version__
        return f"okta-connector/{__version__}"

    @property
    def config(self) -> ConnectionConfig:
        return self._config

    @property
    def registry(self) -> OperationRegistry:
        return self._registry

    def reconfigure(self, config: ConnectionConfig) -> None:
        """Replace the whole connection configuration.

        Requests already in flight keep the configuration they started with.
        """
        if config.rate_limit_per_minute != self._config.rate_limit_per_minute:
            self._throttler = self._make_throttler(config)
        self._config = config
        self._logger = logger.bind(okta_host=config.host)
        self._logger.info("Connection configuration replaced", api_version=config.api_version)

    def _resolve_operation(self, operation: Union[str, OperationDescriptor]) -> OperationDescriptor:
        if isinstance(operation, OperationDescriptor):
            return operation
        return self._registry.lookup(operation)

    # Request construction

    @staticmethod
    def _argument(arguments: Arguments, param: ParamBinding) -> Any:
        """Look up a parameter by logical name, then by wire key."""
        for name in (param.name, param.key):
            value = arguments.get(name)
            if value is not None and value is not ABSENT:
                return value
        return None

    def _validate_arguments(self, descriptor: OperationDescriptor, arguments: Arguments) -> None:
        allowed = set(descriptor.argument_names())
        unknown = sorted(name for name in arguments if name not in allowed)
        if unknown:
            raise UnknownParameterError(
                f"{descriptor.name} does not accept: {', '.join(unknown)}",
                operation=descriptor.name,
                parameter=unknown[0],
            )

        for name, value in arguments.items():
            if value is None or value is ABSENT:
                continue
            if name == descriptor.body_argument:
                if not isinstance(value, (str, bytes)):
                    raise InvalidArgumentError(
                        f"{descriptor.name}: payload '{name}' must be serialized text",
                        operation=descriptor.name,
                        parameter=name,
                    )
            elif not isinstance(value, (str, int, bool)):
                raise InvalidArgumentError(
                    f"{descriptor.name}: argument '{name}' must be a string, integer or boolean, "
                    f"got {type(value).__name__}",
                    operation=descriptor.name,
                    parameter=name,
                )

    def _body(self, descriptor: OperationDescriptor, arguments: Arguments, payload: Payload) -> Payload:
        if descriptor.has_body:
            value = arguments.get(descriptor.body_argument)
            if value is not None and value is not ABSENT:
                return value
        return payload

    def _resolve_uri(
        self,
        descriptor: OperationDescriptor,
        config: ConnectionConfig,
        arguments: Arguments,
        payload: Payload,
    ) -> str:
        values = {"host": config.host, "version": config.api_version}

        for param in descriptor.path_params:
            value = self._argument(arguments, param)
            if value is None:
                if param.default is FROM_BODY:
                    value = _payload_text(payload)
                elif param.has_default:
                    value = param.default
            if value is None or value == "":
                raise MissingParameterError(
                    f"{descriptor.name} requires path parameter '{param.name}'",
                    operation=descriptor.name,
                    parameter=param.name,
                )
            values[param.key] = quote(format_value(value), safe="")

        uri = PLACEHOLDER_PATTERN.sub(
            lambda match: values.get(match.group(1), match.group(0)),
            descriptor.uri_template,
        )

        leftover = template_placeholders(uri)
        if leftover:
            raise TemplateError(
                f"{descriptor.name}: unresolved placeholders {', '.join(leftover)} in {uri}"
            )
        return uri

    def _query(
        self,
        descriptor: OperationDescriptor,
        arguments: Arguments,
        payload: Payload,
    ) -> List[Tuple[str, str]]:
        params: List[Tuple[str, str]] = []

        for param in descriptor.query_params:
            value = self._argument(arguments, param)
            if value is None:
                if param.default is FROM_BODY:
                    value = _payload_text(payload)
                elif param.has_default:
                    value = param.default
            if value is None:
                if param.required:
                    raise MissingParameterError(
                        f"{descriptor.name} requires query parameter '{param.name}'",
                        operation=descriptor.name,
                        parameter=param.name,
                    )
                continue
            params.append((param.key, format_value(value)))

        return params

    def build_request(
        self,
        operation: Union[str, OperationDescriptor],
        arguments: Optional[Arguments] = None,
        payload: Payload = None,
        timeout: Optional[float] = None,
    ) -> httpx.Request:
        """Resolve an operation and its arguments into an HTTP request.

        No network I/O happens here, so every argument problem surfaces
        before anything is sent.

        Args:
            operation: Descriptor or registered operation name
            arguments: Values for path, query and body parameters
            payload: Request payload used for the body and ``FROM_BODY`` defaults
            timeout: Per-call timeout in seconds (defaults to the configuration's)

        Returns:
            The unsent request

        Raises:
            OperationNotFoundError: If ``operation`` names no registered operation
            ArgumentError: If arguments are unknown, mistyped or missing
            TemplateError: If placeholders remain unresolved
        """
        descriptor = self._resolve_operation(operation)
        config = self._config
        arguments = arguments or {}

        self._validate_arguments(descriptor, arguments)
        if payload is not None and not isinstance(payload, (str, bytes)):
            raise InvalidArgumentError(
                f"{descriptor.name}: payload must be serialized text, got {type(payload).__name__}",
                operation=descriptor.name,
                parameter="payload",
            )
        payload = self._body(descriptor, arguments, payload)

        url = self._resolve_uri(descriptor, config, arguments, payload)
        params = self._query(descriptor, arguments, payload)

        content: Payload = None
        if descriptor.has_body:
            if payload is None:
                raise MissingParameterError(
                    f"{descriptor.name} requires a request payload ('{descriptor.body_argument}')",
                    operation=descriptor.name,
                    parameter=descriptor.body_argument,
                )
            content = payload

        headers = {
            "Accept": "application/json",
            "Content-Type": descriptor.content_type,
            "Authorization": config.authorization_header,
        }

        return self._client.build_request(
            method=descriptor.method.value,
            url=url,
            params=params or None,
            headers=headers,
            content=content,
            timeout=timeout if timeout is not None else config.timeout_seconds,
        )

    # Execution

    async def dispatch(
        self,
        operation: Union[str, OperationDescriptor],
        arguments: Optional[Arguments] = None,
        *,
        payload: Payload = None,
        timeout: Optional[float] = None,
    ) -> ApiResponse:
        """Execute an operation and return the full successful response.

        Raises:
            ArgumentError: If arguments do not satisfy the descriptor
            TransportError: If the request could not be completed
            ApiError: If the response status is at or above the error threshold
        """
        descriptor = self._resolve_operation(operation)
        request = self.build_request(descriptor, arguments, payload=payload, timeout=timeout)

        self._logger.debug(
            "Dispatching operation",
            operation=descriptor.name,
            method=request.method,
            url=sanitize_log_input(str(request.url)),
            has_body=descriptor.has_body,
        )

        throttle = self._throttler if self._throttler is not None else nullcontext()
        async with throttle:
            try:
                response = await self._client.send(request)
            except httpx.RequestError as e:
                self._logger.error(
                    "Network error during API request",
                    operation=descriptor.name,
                    error=sanitize_log_input(str(e)),
                    error_type=type(e).__name__,
                )
                raise TransportError(f"{descriptor.name}: network error: {e}", cause=e) from e

        headers = {key.lower(): value for key, value in response.headers.items()}

        self._logger.debug(
            "Operation completed",
            operation=descriptor.name,
            status_code=response.status_code,
            response_size=len(response.content),
        )

        if response.status_code >= descriptor.error_threshold:
            error = ApiError(
                f"{descriptor.name} failed",
                status_code=response.status_code,
                response_text=response.text,
                headers=headers,
            )
            self._logger.warning(
                "Okta API error",
                operation=descriptor.name,
                status_code=response.status_code,
                error_code=sanitize_log_input(error.error_code),
                error_id=sanitize_log_input(error.error_id),
            )
            raise error

        return ApiResponse(status_code=response.status_code, body=response.text, headers=headers)

    async def invoke(
        self,
        operation: Union[str, OperationDescriptor],
        arguments: Optional[Arguments] = None,
        *,
        payload: Payload = None,
        timeout: Optional[float] = None,
    ) -> str:
        """Execute an operation and return the raw response body, unmodified.

        Args:
            operation: Descriptor or registered operation name
            arguments: Values for path, query and body parameters
            payload: Request payload used for the body and ``FROM_BODY`` defaults
            timeout: Per-call timeout in seconds

        Returns:
            Response body text exactly as Okta returned it
        """
        response = await self.dispatch(operation, arguments, payload=payload, timeout=timeout)
        return response.body
