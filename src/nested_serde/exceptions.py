import abc
import typing

from .utils import Path, format_path


class NestedSerdeException(Exception, metaclass=abc.ABCMeta):
    @property
    @abc.abstractmethod
    def message(self) -> str:
        ...  # pragma: nocover

    def __str__(self):
        return self.message


class InvalidDeclarationError(NestedSerdeException):
    _message: str

    @property
    def message(self) -> str:
        return self._message

    def __init__(self, message: str):
        self._message = message


class DuplicateAssociationKeyError(InvalidDeclarationError):
    definition_name: str
    key: str

    def __init__(self, definition_name: str, key: str):
        super().__init__(
            f'key "{key}" is rendered by more than one member of "{definition_name}"'
        )
        self.definition_name = definition_name
        self.key = key


class DuplicateDefinitionError(InvalidDeclarationError):
    name: str

    def __init__(self, name: str):
        super().__init__(f'serializer definition "{name}" is already registered')
        self.name = name


class SerializationError(NestedSerdeException, metaclass=abc.ABCMeta):
    path: Path

    @property
    def pointer(self) -> str:
        return format_path(self.path)


class MissingAttributeError(SerializationError):
    definition_name: str
    name: str

    @property
    def message(self) -> str:
        return (
            f'{self.pointer}: attribute ({self.name}) declared in "{self.definition_name}" '
            "is not available on the resource"
        )

    def __init__(self, definition_name: str, name: str, path: Path = ()):
        self.definition_name = definition_name
        self.name = name
        self.path = path


class UnresolvableAssociationError(SerializationError):
    definition_name: str
    name: str

    @property
    def message(self) -> str:
        return (
            f'{self.pointer}: no serializer can be determined for association ({self.name}) '
            f'of "{self.definition_name}"; declare a serializer or an element_type'
        )

    def __init__(self, definition_name: str, name: str, path: Path = ()):
        self.definition_name = definition_name
        self.name = name
        self.path = path


class UnknownSerializerError(SerializationError):
    name: str

    @property
    def message(self) -> str:
        return f'{self.pointer}: no serializer definition known as "{self.name}"'

    def __init__(self, name: str, path: Path = ()):
        self.name = name
        self.path = path


class ConversionError(SerializationError):
    value: typing.Any

    @property
    def message(self) -> str:
        return f"{self.pointer}: conversion of {self.value!r} failed ({self.__cause__!s})"

    def __init__(self, value: typing.Any, path: Path = ()):
        self.value = value
        self.path = path


class InvalidStructureError(SerializationError):
    detail: str

    @property
    def message(self) -> str:
        return f"{self.pointer}: {self.detail}"

    def __init__(self, detail: str, path: Path = ()):
        self.detail = detail
        self.path = path


class NativeError(NestedSerdeException):
    pass


class FieldNotFoundError(NativeError):
    resource: typing.Any
    name: str

    @property
    def message(self) -> str:
        return f"no such field found in {type(self.resource).__name__}: {self.name}"

    def __init__(self, resource: typing.Any, name: str):
        self.resource = resource
        self.name = name


class InvalidNativeObjectStateError(NativeError):
    _message: str

    @property
    def message(self) -> str:
        return self._message

    def __init__(self, message: str):
        self._message = message
