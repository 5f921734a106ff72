"""
This module contains the capability interfaces the engine depends on to
access resources.  Implementations are supplied by the host, or picked from
:py:mod:`nested_serde.defaults` and :py:mod:`nested_serde.implementations`.

"""
import abc
import typing

from .models import Target
from .types import Resource


class FieldReader(metaclass=abc.ABCMeta):
    """
    A :py:class:`FieldReader` provides the uniform "get named field" operation
    on resources.
    """

    @abc.abstractmethod
    def read_field(self, resource: Resource, name: str) -> typing.Any:
        """
        Reads the value of the named field from the resource.

        :param Any resource: the resource.
        :param str name: the field name.
        :return: The field value.
        :raises FieldNotFoundError: if the resource exposes no such field.
        """
        ...  # pragma: nocover


class TypeTagResolver(metaclass=abc.ABCMeta):
    """
    A :py:class:`TypeTagResolver` derives the type tag of a resource, which
    is the key used for serializer lookup.
    """

    @abc.abstractmethod
    def query_type_tag(self, resource: Resource) -> str:
        ...  # pragma: nocover

    @abc.abstractmethod
    def register_class(self, class_: typing.Type, type_tag: str) -> None:
        """
        Registers the type tag for instances of the given class and its subclasses.
        """
        ...  # pragma: nocover


class IdentityResolver(metaclass=abc.ABCMeta):
    """
    An :py:class:`IdentityResolver` builds the identifier of a resource, used
    for id references and for de-duplication of side-loaded resources.
    """

    @abc.abstractmethod
    def get_identifier(self, target: Target, resource: Resource) -> typing.Any:
        """
        :param target: the definition (or raw fallback) the resource is rendered with.
        :param Any resource: the resource.
        :return: The identifier; ``None`` if the resource has none.
        """
        ...  # pragma: nocover
