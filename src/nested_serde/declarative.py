"""
:py:mod:`nested_serde.declarative` builds :py:class:`SerializerDefinition`\\ s
from plain classes.

Synopsis
--------

.. code-block:: python

   from nested_serde import HasMany, SerdeContext

   serde = SerdeContext()

   @serde.declare
   class PostSerializer:
       class Meta:
           attributes = ("title", "body")
           associations = [HasMany("comments")]

       def extend_attributes(self, attrs, post, scope):
           if scope.superuser:
               attrs["email"] = post.email
           return attrs

       def comments(self, post, scope):
           return [c for c in post.comments if c.visible_to(scope)]

       class Comment:
           class Meta:
               attributes = ("id", "title")

Only the namespace of the class itself is consulted; nothing is inherited
from base classes.
"""
import copy
import dataclasses
import typing

from .exceptions import InvalidDeclarationError
from .models import AssociationSpec, SerializerDefinition
from .registry import DEFINITION_ATTRIBUTE
from .utils import derive_type_tag

ATTRIBUTES_HOOK = "extend_attributes"
SCOPE_HOOK = "derive_scope"
COLLECTION_HOOK = "collection"


@dataclasses.dataclass
class Meta:
    name: typing.Optional[str] = None
    attributes: typing.Sequence[str] = ()
    associations: typing.Sequence[AssociationSpec] = ()
    identifier: str = "id"
    root_key: typing.Optional[str] = None


def handle_meta(meta: typing.Type) -> Meta:
    attrs = {k: v for k, v in vars(meta).items() if not k.startswith("__")}
    known = {f.name for f in dataclasses.fields(Meta)}
    unknown = sorted(k for k in attrs if k not in known)
    if unknown:
        raise InvalidDeclarationError(f"unknown Meta option(s): {', '.join(unknown)}")
    if isinstance(attrs.get("attributes"), str):
        raise InvalidDeclarationError("Meta.attributes must be a sequence of names")
    return Meta(**attrs)


def is_declaration(value: typing.Any) -> bool:
    return isinstance(value, type) and "Meta" in vars(value)


def build_definition(cls: typing.Type) -> SerializerDefinition:
    """
    Builds a :py:class:`SerializerDefinition` from a declarative class, and
    records it on the class so that the class can be used as a serializer
    reference.

    :param type cls: a class carrying an inner ``Meta`` class.
    :raises InvalidDeclarationError: if the class is not a valid declaration.
    """
    if not is_declaration(cls):
        raise InvalidDeclarationError(f"{cls.__name__} does not declare an inner Meta class")
    namespace = vars(cls)
    meta = handle_meta(namespace["Meta"])
    instance = cls()

    def method(name: str) -> typing.Optional[typing.Callable]:
        if name not in namespace:
            return None
        m = getattr(instance, name)
        return m if callable(m) else None

    associations = [copy.copy(spec) for spec in meta.associations]
    attribute_readers = {}
    for attr in meta.attributes:
        reader = method(attr)
        if reader is not None:
            attribute_readers[attr] = reader
    accessors = {}
    for spec in associations:
        accessor = method(spec.name)
        if accessor is not None:
            accessors[spec.name] = accessor

    definition = SerializerDefinition(
        name=meta.name if meta.name is not None else derive_type_tag(cls.__name__),
        attributes=meta.attributes,
        associations=associations,
        nested=[build_definition(v) for k, v in namespace.items() if is_declaration(v)],
        attribute_readers=attribute_readers,
        attributes_override=method(ATTRIBUTES_HOOK),
        accessors=accessors,
        derive_scope=method(SCOPE_HOOK),
        collection_override=method(COLLECTION_HOOK),
        identifier=meta.identifier,
        root_key=meta.root_key,
    )
    setattr(cls, DEFINITION_ATTRIBUTE, definition)
    return definition
