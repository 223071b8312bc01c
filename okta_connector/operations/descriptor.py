"""Declarative descriptions of remote Okta operations."""

import re
from enum import Enum
from typing import Any, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from okta_connector.clients.exceptions import ValidationError

# Placeholders always bound from the connection configuration
CONFIG_PLACEHOLDERS = frozenset({"host", "version"})

PLACEHOLDER_PATTERN = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


class _Marker:
    """Named sentinel used in parameter defaults."""

    __slots__ = ("_name",)

    def __init__(self, name: str) -> None:
        self._name = name

    def __repr__(self) -> str:
        return self._name

    def __reduce__(self) -> str:
        # Copies resolve to the module-level singleton
        return self._name


ABSENT = _Marker("ABSENT")
"""No default: an optional parameter left unsupplied is omitted entirely."""

FROM_BODY = _Marker("FROM_BODY")
"""Default taken from the invocation payload."""

ParamValue = Union[str, int, bool]


class HttpMethod(str, Enum):
    """HTTP methods an operation may use."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


def template_placeholders(template: str) -> Tuple[str, ...]:
    """Return the ``{token}`` names of a URI template in order of appearance."""
    return tuple(PLACEHOLDER_PATTERN.findall(template))


class ParamBinding(BaseModel):
    """Binding of one logical argument to a URI placeholder or query key."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Logical argument name")
    key: str = Field(..., min_length=1, description="Placeholder or query key on the wire")
    required: bool = Field(False, description="Whether the caller must supply a value")
    default: Any = Field(ABSENT, description="Literal default, FROM_BODY, or ABSENT")

    @model_validator(mode="before")
    @classmethod
    def default_key_to_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("key"):
            data = {**data, "key": data.get("name")}
        return data

    @field_validator("default")
    @classmethod
    def validate_default(cls, v: Any) -> Any:
        """Only literals and the two markers are meaningful defaults."""
        if v is ABSENT or v is FROM_BODY:
            return v
        if not isinstance(v, (str, int, bool)):
            raise ValueError(f"Unsupported default value: {v!r}")
        return v

    @property
    def has_default(self) -> bool:
        return self.default is not ABSENT


def path_param(name: str, key: Optional[str] = None, default: Any = ABSENT) -> ParamBinding:
    """Build a path parameter binding. Path parameters are always required."""
    return ParamBinding(name=name, key=key or name, required=True, default=default)


def query_param(
    name: str,
    key: Optional[str] = None,
    default: Any = ABSENT,
    required: bool = False,
) -> ParamBinding:
    """Build a query parameter binding."""
    return ParamBinding(name=name, key=key or name, required=required, default=default)


class OperationDescriptor(BaseModel):
    """Immutable description of one remote endpoint.

    A descriptor is pure data: URI template, method, parameter bindings,
    the argument carrying the request payload and the status threshold at
    which a response counts as an error. ``DispatchClient`` interprets it.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    uri_template: str = Field(..., min_length=1)
    method: HttpMethod
    path_params: Tuple[ParamBinding, ...] = ()
    query_params: Tuple[ParamBinding, ...] = ()
    body_argument: Optional[str] = None
    content_type: str = "application/json"
    error_threshold: int = Field(207, ge=100, le=600)
    description: str = ""

    @field_validator("method", mode="before")
    @classmethod
    def normalize_method(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.upper()
        return v

    @property
    def has_body(self) -> bool:
        return self.body_argument is not None

    @property
    def parameters(self) -> Tuple[ParamBinding, ...]:
        """Path parameters followed by query parameters."""
        return self.path_params + self.query_params

    def argument_names(self) -> Tuple[str, ...]:
        """All names a caller may use, including wire-key aliases."""
        names = []
        for param in self.parameters:
            names.append(param.name)
            if param.key != param.name:
                names.append(param.key)
        if self.body_argument:
            names.append(self.body_argument)
        return tuple(names)

    def check(self) -> None:
        """Verify that bindings agree with the URI template.

        Raises:
            ValidationError: If a path parameter has no ``{token}`` in the
                template, a ``{token}`` is not declared, or argument names clash
        """
        placeholders = set(template_placeholders(self.uri_template)) - CONFIG_PLACEHOLDERS
        declared = {param.key for param in self.path_params}

        missing_tokens = declared - placeholders
        if missing_tokens:
            raise ValidationError(
                f"{self.name}: path parameters without a placeholder in "
                f"{self.uri_template!r}: {', '.join(sorted(missing_tokens))}"
            )
        undeclared = placeholders - declared
        if undeclared:
            raise ValidationError(
                f"{self.name}: placeholders not declared as path parameters: "
                f"{', '.join(sorted(undeclared))}"
            )

        for param in self.query_params:
            if param.required and param.has_default:
                raise ValidationError(
                    f"{self.name}: required query parameter '{param.name}' cannot declare a default"
                )

        names = [param.name for param in self.parameters]
        if self.body_argument:
            names.append(self.body_argument)
        duplicates = {name for name in names if names.count(name) > 1}
        if duplicates:
            raise ValidationError(
                f"{self.name}: duplicate argument names: {', '.join(sorted(duplicates))}"
            )
