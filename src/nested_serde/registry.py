import logging
import typing

from .exceptions import DuplicateDefinitionError, InvalidDeclarationError, UnknownSerializerError
from .models import SerializerDefinition
from .utils import Path, normalize_type_tag

logger = logging.getLogger(__name__)

DEFINITION_ATTRIBUTE = "__serializer_definition__"


class SerializerRegistry:
    """
    A :py:class:`SerializerRegistry` maps type tags to the globally
    registered :py:class:`SerializerDefinition`s.

    Registration happens at setup time.  Once :py:meth:`configure` is called,
    the registry and every definition in it become read-only, which is what
    makes concurrent resolutions against it safe.
    """

    _definitions: typing.Dict[str, SerializerDefinition]
    _configured: bool

    @property
    def configured(self) -> bool:
        return self._configured

    def register(self, definition: SerializerDefinition) -> SerializerDefinition:
        if self._configured:
            raise InvalidDeclarationError(
                f'cannot register "{definition.name}" to a configured registry'
            )
        key = normalize_type_tag(definition.name)
        if key in self._definitions:
            raise DuplicateDefinitionError(definition.name)
        self._definitions[key] = definition
        logger.debug("registered serializer definition %r under %r", definition, key)
        return definition

    def get(self, type_tag: str) -> typing.Optional[SerializerDefinition]:
        return self._definitions.get(normalize_type_tag(type_tag))

    def query_definition_by_type_tag(self, type_tag: str, path: Path = ()) -> SerializerDefinition:
        definition = self.get(type_tag)
        if definition is None:
            raise UnknownSerializerError(type_tag, path)
        return definition

    def _validate(self, definition: SerializerDefinition) -> None:
        for spec in definition.list_associations():
            if isinstance(spec.serializer, str) and self.get(spec.serializer) is None:
                raise InvalidDeclarationError(
                    f'association ({spec.name}) of "{definition.name}" refers to '
                    f'an unknown serializer "{spec.serializer}"'
                )
        for nested in definition.nested.values():
            self._validate(nested)

    def configure(self) -> None:
        """
        Validates serializer references by name and freezes every registered definition.
        """
        if self._configured:
            return
        for definition in self._definitions.values():
            self._validate(definition)
        for definition in self._definitions.values():
            definition.freeze()
        self._configured = True

    def __contains__(self, type_tag: str) -> bool:
        return normalize_type_tag(type_tag) in self._definitions

    def __iter__(self) -> typing.Iterator[SerializerDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)

    def __init__(self):
        self._definitions = {}
        self._configured = False
