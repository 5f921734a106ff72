import typing

from .declarative import build_definition
from .defaults import (
    DefaultFieldReaderImpl,
    DefaultIdentityResolverImpl,
    DefaultTypeTagResolverImpl,
)
from .document import DEFAULT_COLLECTION_TYPES, AssembleConfig, DocumentAssembler
from .exceptions import InvalidDeclarationError
from .interfaces import FieldReader, IdentityResolver, TypeTagResolver
from .lookup import SerializerLookup
from .models import AssociationSpec, SerializerDefinition, SerializerReference
from .registry import SerializerRegistry
from .renderer import ValueRenderer
from .serializer import Shape
from .types import JSONValue, Scope, ScopeOverride, ScopeProvider

T = typing.TypeVar("T", bound=typing.Type)


class SerdeContext:
    """
    The facade that sits in front of the registry, the lookup and the
    document assembler.

    :param Optional[FieldReader] field_reader: reads fields off resources.
    :param Optional[TypeTagResolver] type_tag_resolver: derives type tags of resources.
    :param Optional[IdentityResolver] identity_resolver: derives identifiers of resources.
    :param Optional[ValueRenderer] renderer: renders attribute values.
    :param Optional[Callable] scope_provider: a single-argument callable that derives the
        authorization scope from a request; used by :py:meth:`render_for_request`.
    :param Iterable[type] collection_types: the types of values rendered as
        collections of resources.
    """

    registry: SerializerRegistry
    field_reader: FieldReader
    type_tag_resolver: TypeTagResolver
    identity_resolver: IdentityResolver
    renderer: ValueRenderer
    lookup: SerializerLookup
    assembler: DocumentAssembler
    scope_provider: typing.Optional[ScopeProvider]

    def register(self, definition: SerializerDefinition) -> SerializerDefinition:
        return self.registry.register(definition)

    def define(
        self,
        name: str,
        attributes: typing.Iterable[str] = (),
        associations: typing.Iterable[AssociationSpec] = (),
        **kwargs: typing.Any,
    ) -> SerializerDefinition:
        """
        Creates and registers a :py:class:`SerializerDefinition`.  Keyword
        arguments are passed to its constructor.
        """
        return self.register(SerializerDefinition(name, attributes, associations, **kwargs))

    def declare(self, cls: T) -> T:
        """
        Class decorator that registers the definition built from a declarative class.
        """
        self.register(build_definition(cls))
        return cls

    def register_type(self, class_: typing.Type, type_tag: str) -> None:
        self.type_tag_resolver.register_class(class_, type_tag)

    def configure(self) -> None:
        self.registry.configure()

    def assemble(
        self,
        resource_or_collection: typing.Any,
        scope: Scope = None,
        *,
        root_key: typing.Union[None, str, bool] = None,
        shape: typing.Union[Shape, str] = Shape.EMBEDDED,
        scope_override: typing.Optional[ScopeOverride] = None,
        serializer: typing.Optional[SerializerReference] = None,
        collection: typing.Optional[bool] = None,
    ) -> JSONValue:
        """
        Renders a resource or a collection of resources into a document.
        See :py:class:`AssembleConfig` for the options.
        """
        return self.assembler.assemble(
            resource_or_collection,
            scope,
            AssembleConfig(
                root_key=root_key,
                shape=shape,
                scope_override=scope_override,
                serializer=serializer,
                collection=collection,
            ),
        )

    def serialize(
        self,
        resource_or_collection: typing.Any,
        scope: Scope = None,
        **kwargs: typing.Any,
    ) -> JSONValue:
        """
        Same as :py:meth:`assemble`, without the root.
        """
        return self.assemble(resource_or_collection, scope, root_key=False, **kwargs)

    def render_for_request(
        self, request: typing.Any, resource_or_collection: typing.Any, **kwargs: typing.Any
    ) -> JSONValue:
        """
        Derives the scope from the request with the scope provider, then
        renders the resource(s) as :py:meth:`assemble` does.
        """
        if self.scope_provider is None:
            raise InvalidDeclarationError("no scope provider is configured")
        return self.assemble(resource_or_collection, self.scope_provider(request), **kwargs)

    def __init__(
        self,
        field_reader: typing.Optional[FieldReader] = None,
        type_tag_resolver: typing.Optional[TypeTagResolver] = None,
        identity_resolver: typing.Optional[IdentityResolver] = None,
        renderer: typing.Optional[ValueRenderer] = None,
        scope_provider: typing.Optional[ScopeProvider] = None,
        collection_types: typing.Iterable[typing.Type] = DEFAULT_COLLECTION_TYPES,
    ):
        self.registry = SerializerRegistry()
        self.field_reader = field_reader if field_reader is not None else DefaultFieldReaderImpl()
        self.type_tag_resolver = (
            type_tag_resolver if type_tag_resolver is not None else DefaultTypeTagResolverImpl()
        )
        self.identity_resolver = (
            identity_resolver
            if identity_resolver is not None
            else DefaultIdentityResolverImpl(self.field_reader)
        )
        self.renderer = renderer if renderer is not None else ValueRenderer()
        self.scope_provider = scope_provider
        self.lookup = SerializerLookup(self.registry, self.type_tag_resolver)
        self.assembler = DocumentAssembler(
            lookup=self.lookup,
            field_reader=self.field_reader,
            identity_resolver=self.identity_resolver,
            renderer=self.renderer,
            collection_types=collection_types,
        )
