import typing
from collections import OrderedDict

from .exceptions import FieldNotFoundError, MissingAttributeError
from .interfaces import FieldReader
from .models import SerializerDefinition
from .types import Resource, Scope
from .utils import Path


def read_declared_attributes(
    definition: SerializerDefinition,
    resource: Resource,
    scope: Scope,
    reader: FieldReader,
    path: Path = (),
) -> "OrderedDict[str, typing.Any]":
    """
    Reads every attribute declared by the definition, in declaration order.
    """
    base: "OrderedDict[str, typing.Any]" = OrderedDict()
    for name in definition.attributes:
        attribute_reader = definition.attribute_readers.get(name)
        if attribute_reader is not None:
            base[name] = attribute_reader(resource, scope)
            continue
        try:
            base[name] = reader.read_field(resource, name)
        except FieldNotFoundError as e:
            raise MissingAttributeError(definition.name, name, path) from e
    return base


def resolve_attributes(
    definition: SerializerDefinition,
    resource: Resource,
    scope: Scope,
    reader: FieldReader,
    path: Path = (),
) -> "OrderedDict[str, typing.Any]":
    """
    Computes the attribute mapping of a resource.

    The declared attributes are read first.  If the definition carries an
    ``attributes_override``, it receives that base mapping along with the
    resource and the scope, and its result replaces the base mapping
    entirely; keys it returns later win over earlier ones.

    :param SerializerDefinition definition: the governing definition.
    :param Any resource: the resource to read from.
    :param Any scope: the authorization scope.
    :param FieldReader reader: the capability used to read fields.
    :param path: the location of the resource in the document.
    :return: An ordered mapping of attribute names to raw values.
    :raises MissingAttributeError: if a declared attribute is absent on the resource.
    """
    base = read_declared_attributes(definition, resource, scope, reader, path)
    if definition.attributes_override is None:
        return base
    overridden = definition.attributes_override(OrderedDict(base), resource, scope)
    result: "OrderedDict[str, typing.Any]" = OrderedDict()
    for k, v in overridden.items():
        result[k] = v
    return result
