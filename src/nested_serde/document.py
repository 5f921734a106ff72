import collections.abc
import dataclasses
import logging
import typing
from collections import OrderedDict

from .collection import CollectionSerializer
from .exceptions import InvalidStructureError
from .interfaces import FieldReader, IdentityResolver
from .lookup import SerializerLookup
from .models import SerializerReference
from .renderer import ValueRenderer
from .serializer import ResolutionContext, Shape, SideloadCollector, render_resource
from .types import JSONValue, MutableJSONObject, Resource, Scope, ScopeOverride

logger = logging.getLogger(__name__)

DEFAULT_COLLECTION_TYPES: typing.Tuple[typing.Type, ...] = (
    list,
    tuple,
    set,
    frozenset,
    collections.deque,
    collections.abc.Iterator,
    collections.abc.KeysView,
    collections.abc.ValuesView,
)


@dataclasses.dataclass(frozen=True)
class AssembleConfig:
    """
    Per-call options of :py:class:`DocumentAssembler`.
    """

    root_key: typing.Union[None, str, bool] = None
    """
    The root key of the document.  :py:const:`None` picks the default name,
    :py:const:`False` returns the serialized value without a root.
    """

    shape: typing.Union[Shape, str] = Shape.EMBEDDED
    """
    How associations are rendered.
    """

    scope_override: typing.Optional[ScopeOverride] = None
    """
    A callable deriving the scope from each top-level resource, in place of the given scope.
    """

    serializer: typing.Optional[SerializerReference] = None
    """
    The definition forced upon the top-level resource(s).
    """

    collection: typing.Optional[bool] = None
    """
    Forces collection (:py:const:`True`) or single resource (:py:const:`False`) handling.
    """


class DocumentAssembler:
    """
    The :py:class:`DocumentAssembler` is the top-level entry point of a
    resolution.  It names the root, delegates to the serializer instance or
    the collection serializer, and merges side-loaded collections beside
    the primary root.
    """

    lookup: SerializerLookup
    field_reader: FieldReader
    identity_resolver: IdentityResolver
    renderer: ValueRenderer
    collection_types: typing.Tuple[typing.Type, ...]

    def is_collection(self, value: typing.Any, config: AssembleConfig) -> bool:
        """
        Tells whether the value is a sequence of resources.  Only the
        ``collection_types`` count; a named tuple is a single resource.
        """
        if config.collection is not None:
            return config.collection
        if isinstance(value, tuple) and hasattr(value, "_fields"):
            return False
        return isinstance(value, self.collection_types)

    def _new_context(self, shape: Shape) -> ResolutionContext:
        return ResolutionContext(
            lookup=self.lookup,
            field_reader=self.field_reader,
            identity_resolver=self.identity_resolver,
            renderer=self.renderer,
            shape=shape,
            sideloads=SideloadCollector() if shape is Shape.SIDELOADED else None,
        )

    def _merge_sideloads(self, ctx: ResolutionContext, document: MutableJSONObject) -> None:
        assert ctx.sideloads is not None
        for key, items in ctx.sideloads.drain(ctx).items():
            if key not in document:
                document[key] = items
                continue
            existing = document[key]
            if not isinstance(existing, list):
                raise InvalidStructureError(
                    f'side-loaded collection "{key}" collides with the primary root', (key,)
                )
            existing.extend(items)

    def _assemble_single(
        self, ctx: ResolutionContext, resource: Resource, scope: Scope, config: AssembleConfig
    ) -> JSONValue:
        root_key = config.root_key if isinstance(config.root_key, str) else None
        if resource is None:
            if root_key is None and config.serializer is not None:
                root_key = ctx.lookup.dereference(config.serializer).root_name
            if root_key is None:
                raise InvalidStructureError("a root key is required to render nothing")
            return None if config.root_key is False else OrderedDict([(root_key, None)])

        if config.scope_override is not None:
            scope = config.scope_override(resource)
        target = ctx.lookup.resolve_root(resource, config.serializer)
        if root_key is None:
            root_key = target.root_name
        if ctx.sideloads is not None:
            ctx.sideloads.mark(target, ctx.identify(target, resource), resource)

        if config.root_key is False:
            return render_resource(ctx, target, resource, scope)
        document: MutableJSONObject = OrderedDict(
            [(root_key, render_resource(ctx / root_key, target, resource, scope))]
        )
        if ctx.sideloads is not None:
            self._merge_sideloads(ctx, document)
        return document

    def _assemble_collection(
        self,
        ctx: ResolutionContext,
        resources: typing.Iterable[Resource],
        scope: Scope,
        config: AssembleConfig,
    ) -> JSONValue:
        collection_serializer = CollectionSerializer(
            serializer=config.serializer, scope_override=config.scope_override
        )
        groups, replaced = collection_serializer.apply_overrides(
            collection_serializer.render_groups(ctx, resources, scope), ctx.path
        )

        value: JSONValue
        document: MutableJSONObject
        # an override returning a mapping already shaped the top level
        if not replaced and len(groups) == 1:
            ((key, value),) = groups.items()
            if config.root_key is False:
                return value
            root_key = config.root_key if isinstance(config.root_key, str) else key
            document = OrderedDict([(root_key, value)])
        elif not replaced and not groups:
            if config.root_key is False:
                return []
            document = OrderedDict()
            if isinstance(config.root_key, str):
                document[config.root_key] = []
        else:
            if config.root_key is False:
                return groups
            if isinstance(config.root_key, str):
                document = OrderedDict([(config.root_key, groups)])
            else:
                document = groups

        if ctx.sideloads is not None:
            self._merge_sideloads(ctx, document)
        return document

    def assemble(
        self,
        resource_or_collection: typing.Any,
        scope: Scope = None,
        config: typing.Optional[AssembleConfig] = None,
    ) -> JSONValue:
        """
        Renders a resource or a collection of resources into a document.

        :param Any resource_or_collection: a resource, or an iterable of resources.
        :param Any scope: the authorization scope threaded through the resolution.
        :param Optional[AssembleConfig] config: the options.
        :return: A tree of mappings, lists and JSON scalars.
        """
        config = config if config is not None else AssembleConfig()
        shape = Shape.coerce(config.shape)
        if shape is Shape.SIDELOADED and config.root_key is False:
            raise InvalidStructureError("side-loaded documents require a root")
        ctx = self._new_context(shape)
        if self.is_collection(resource_or_collection, config):
            logger.debug("assembling a collection document (shape=%s)", shape.value)
            return self._assemble_collection(ctx, resource_or_collection, scope, config)
        else:
            logger.debug("assembling a singleton document (shape=%s)", shape.value)
            return self._assemble_single(ctx, resource_or_collection, scope, config)

    __call__ = assemble

    def __init__(
        self,
        lookup: SerializerLookup,
        field_reader: FieldReader,
        identity_resolver: IdentityResolver,
        renderer: ValueRenderer,
        collection_types: typing.Optional[typing.Iterable[typing.Type]] = None,
    ):
        self.lookup = lookup
        self.field_reader = field_reader
        self.identity_resolver = identity_resolver
        self.renderer = renderer
        self.collection_types = (
            tuple(collection_types) if collection_types is not None else DEFAULT_COLLECTION_TYPES
        )
