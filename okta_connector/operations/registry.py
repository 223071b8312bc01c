"""Registry of operation descriptors."""

from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Union

import structlog
from pydantic import ValidationError as PydanticValidationError

from okta_connector.clients.exceptions import OperationNotFoundError, ValidationError
from okta_connector.operations.descriptor import OperationDescriptor

logger = structlog.get_logger(__name__)


class OperationRegistry:
    """Fixed catalogue of operations, looked up by name.

    Populated once at start-up and only read afterwards, so one registry can
    be shared by any number of concurrent callers.
    """

    def __init__(self, descriptors: Optional[Iterable[Union[OperationDescriptor, Mapping[str, Any]]]] = None) -> None:
        self._operations: Dict[str, OperationDescriptor] = {}
        for descriptor in descriptors or ():
            self.register(descriptor)

    def register(self, descriptor: Union[OperationDescriptor, Mapping[str, Any]]) -> OperationDescriptor:
        """Validate and add a descriptor.

        Args:
            descriptor: Descriptor, or a mapping of descriptor fields

        Returns:
            The registered descriptor

        Raises:
            ValidationError: If the name is taken, the method is unknown or
                the path parameters do not match the URI template
        """
        if not isinstance(descriptor, OperationDescriptor):
            try:
                descriptor = OperationDescriptor.model_validate(descriptor)
            except PydanticValidationError as e:
                raise ValidationError(f"Invalid operation descriptor: {e}") from e

        if descriptor.name in self._operations:
            raise ValidationError(f"Operation already registered: {descriptor.name}")

        descriptor.check()
        self._operations[descriptor.name] = descriptor

        logger.debug(
            "Registered operation",
            operation=descriptor.name,
            method=descriptor.method.value,
            uri_template=descriptor.uri_template,
        )
        return descriptor

    def lookup(self, name: str) -> OperationDescriptor:
        """Return the descriptor registered under ``name``.

        Raises:
            OperationNotFoundError: If no such operation is registered
        """
        try:
            return self._operations[name]
        except KeyError:
            raise OperationNotFoundError(name) from None

    def names(self) -> List[str]:
        return list(self._operations)

    def __contains__(self, name: object) -> bool:
        return name in self._operations

    def __iter__(self) -> Iterator[OperationDescriptor]:
        return iter(self._operations.values())

    def __len__(self) -> int:
        return len(self._operations)
