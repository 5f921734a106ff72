import collections.abc
import typing

from .exceptions import FieldNotFoundError
from .interfaces import FieldReader, IdentityResolver, TypeTagResolver
from .models import Target
from .types import Resource
from .utils import derive_type_tag

TYPE_TAG_ATTRIBUTE = "__type_tag__"


class DefaultFieldReaderImpl(FieldReader):
    def read_field(self, resource: Resource, name: str) -> typing.Any:
        if isinstance(resource, collections.abc.Mapping):
            try:
                return resource[name]
            except KeyError:
                raise FieldNotFoundError(resource, name)
        if name in getattr(resource, "__dict__", ()) or hasattr(type(resource), name):
            # an AttributeError raised by a property body propagates as is
            return getattr(resource, name)
        try:
            return getattr(resource, name)
        except AttributeError:
            pass
        read_attribute = getattr(resource, "read_attribute", None)
        if callable(read_attribute):
            try:
                return read_attribute(name)
            except (KeyError, AttributeError):
                pass
        raise FieldNotFoundError(resource, name)


class DefaultTypeTagResolverImpl(TypeTagResolver):
    class_tags: typing.Dict[typing.Type, str]

    def query_type_tag(self, resource: Resource) -> str:
        for class_ in type(resource).__mro__:
            type_tag = self.class_tags.get(class_)
            if type_tag is not None:
                return type_tag
        type_tag = getattr(resource, TYPE_TAG_ATTRIBUTE, None)
        if isinstance(type_tag, str):
            return type_tag
        return derive_type_tag(type(resource).__name__)

    def register_class(self, class_: typing.Type, type_tag: str) -> None:
        self.class_tags[class_] = type_tag

    def __init__(self):
        self.class_tags = {}


class DefaultIdentityResolverImpl(IdentityResolver):
    field_reader: FieldReader

    def get_identifier(self, target: Target, resource: Resource) -> typing.Any:
        return self.field_reader.read_field(resource, target.identifier)

    def __init__(self, field_reader: FieldReader):
        self.field_reader = field_reader
