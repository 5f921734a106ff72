import collections
import dataclasses
import enum
import typing
from collections import OrderedDict

from .attributes import resolve_attributes
from .exceptions import (
    ConversionError,
    FieldNotFoundError,
    InvalidStructureError,
    MissingAttributeError,
)
from .interfaces import FieldReader, IdentityResolver
from .lookup import SerializerLookup
from .models import (
    AssociationSpec,
    Cardinality,
    RawFallback,
    SerializerDefinition,
    Target,
)
from .renderer import ValueRenderer
from .types import JSONValue, MutableJSONObject, Resource, Scope
from .utils import Path, PathComponent, pluralize


class Shape(enum.Enum):
    EMBEDDED = "embedded"
    """Associations are rendered inline"""
    REFERENCED = "referenced"
    """Associations are rendered as identifiers only"""
    SIDELOADED = "sideloaded"
    """Associations are rendered as identifiers and collected at the top level of the document"""

    @classmethod
    def coerce(cls, value: typing.Union["Shape", str]) -> "Shape":
        if isinstance(value, Shape):
            return value
        return cls(value.replace("-", "").replace("_", "").lower())


@dataclasses.dataclass
class _PendingSideload:
    key: str
    index: int
    target: Target
    resource: Resource
    scope: Scope
    chain: typing.Tuple[SerializerDefinition, ...]


class SideloadCollector:
    """
    A :py:class:`SideloadCollector` gathers the resources referenced in the
    side-loaded shape into top-level collections keyed by their pluralized
    type, each resource appearing once.
    """

    _collections: "OrderedDict[str, typing.List[JSONValue]]"
    _seen: typing.Set[typing.Tuple[str, typing.Any]]
    _pending: typing.Deque[_PendingSideload]

    @staticmethod
    def collection_key(target: Target) -> str:
        return pluralize(target.root_name)

    @staticmethod
    def _identity_key(identifier: typing.Any, resource: Resource) -> typing.Any:
        if identifier is None:
            return ("@identity", id(resource))
        try:
            hash(identifier)
        except TypeError:
            return ("@repr", repr(identifier))
        return identifier

    def mark(self, target: Target, identifier: typing.Any, resource: Resource) -> bool:
        """
        Marks the resource as present in the document.

        :return: :py:const:`False` if the resource has already been marked.
        """
        k = (self.collection_key(target), self._identity_key(identifier, resource))
        if k in self._seen:
            return False
        self._seen.add(k)
        return True

    def add(
        self,
        target: Target,
        resource: Resource,
        identifier: typing.Any,
        scope: Scope,
        chain: typing.Tuple[SerializerDefinition, ...],
    ) -> None:
        if not self.mark(target, identifier, resource):
            return
        key = self.collection_key(target)
        items = self._collections.setdefault(key, [])
        items.append(None)
        self._pending.append(
            _PendingSideload(
                key=key,
                index=len(items) - 1,
                target=target,
                resource=resource,
                scope=scope,
                chain=chain,
            )
        )

    def drain(self, ctx: "ResolutionContext") -> "OrderedDict[str, typing.List[JSONValue]]":
        """
        Serializes every pending resource, including the ones discovered while doing so.
        """
        while self._pending:
            entry = self._pending.popleft()
            item_ctx = ctx.replace(chain=entry.chain, path=(entry.key, entry.index), ancestors=())
            self._collections[entry.key][entry.index] = render_resource(
                item_ctx, entry.target, entry.resource, entry.scope
            )
        return self._collections

    def __init__(self):
        self._collections = OrderedDict()
        self._seen = set()
        self._pending = collections.deque()


class ResolutionContext:
    """
    A :py:class:`ResolutionContext` carries the state of one resolution pass
    down the tree: the collaborators, the requested shape, the chain of
    enclosing definitions and the current location in the document.
    """

    lookup: SerializerLookup
    field_reader: FieldReader
    identity_resolver: IdentityResolver
    renderer: ValueRenderer
    shape: Shape
    sideloads: typing.Optional[SideloadCollector]
    chain: typing.Tuple[SerializerDefinition, ...]
    path: Path
    ancestors: typing.Tuple[int, ...]

    def __truediv__(self, component: PathComponent) -> "ResolutionContext":
        return self.replace(path=self.path + (component,))

    def enter(self, definition: SerializerDefinition, resource: Resource) -> "ResolutionContext":
        return self.replace(
            chain=self.chain + (definition,), ancestors=self.ancestors + (id(resource),)
        )

    def replace(
        self,
        *,
        chain: typing.Optional[typing.Tuple[SerializerDefinition, ...]] = None,
        path: typing.Optional[Path] = None,
        ancestors: typing.Optional[typing.Tuple[int, ...]] = None,
    ) -> "ResolutionContext":
        return ResolutionContext(
            lookup=self.lookup,
            field_reader=self.field_reader,
            identity_resolver=self.identity_resolver,
            renderer=self.renderer,
            shape=self.shape,
            sideloads=self.sideloads,
            chain=self.chain if chain is None else chain,
            path=self.path if path is None else path,
            ancestors=self.ancestors if ancestors is None else ancestors,
        )

    def identify(self, target: Target, resource: Resource) -> typing.Any:
        try:
            return self.identity_resolver.get_identifier(target, resource)
        except FieldNotFoundError as e:
            raise MissingAttributeError(target.name, target.identifier, self.path) from e

    def __init__(
        self,
        lookup: SerializerLookup,
        field_reader: FieldReader,
        identity_resolver: IdentityResolver,
        renderer: ValueRenderer,
        shape: Shape = Shape.EMBEDDED,
        sideloads: typing.Optional[SideloadCollector] = None,
        chain: typing.Tuple[SerializerDefinition, ...] = (),
        path: Path = (),
        ancestors: typing.Tuple[int, ...] = (),
    ):
        self.lookup = lookup
        self.field_reader = field_reader
        self.identity_resolver = identity_resolver
        self.renderer = renderer
        self.shape = shape
        self.sideloads = sideloads
        self.chain = chain
        self.path = path
        self.ancestors = ancestors


def render_resource(
    ctx: ResolutionContext, target: Target, resource: Resource, scope: Scope
) -> JSONValue:
    """
    Renders a resource with the given definition, or through its own
    generic capability for a :py:class:`RawFallback`.
    """
    if isinstance(target, RawFallback):
        try:
            mapping = target.to_mapping(resource)
        except TypeError as e:
            raise ConversionError(resource, ctx.path) from e
        return ctx.renderer.render(ctx.path, mapping)
    return SerializerInstance(target, resource, scope).serialize(ctx)


class SerializerInstance:
    """
    A :py:class:`SerializerInstance` binds a resource and an authorization
    scope to a :py:class:`SerializerDefinition`.
    """

    definition: SerializerDefinition
    resource: Resource
    scope: Scope

    def _fetch_association(self, ctx: ResolutionContext, spec: AssociationSpec) -> typing.Any:
        accessor = self.definition.accessor_for(spec)
        if accessor is not None:
            return accessor(self.resource, self.scope)
        try:
            return ctx.field_reader.read_field(self.resource, spec.name)
        except FieldNotFoundError as e:
            raise MissingAttributeError(self.definition.name, spec.name, ctx.path) from e

    def _render_member(
        self, ctx: ResolutionContext, target: Target, member: Resource, scope: Scope
    ) -> JSONValue:
        if ctx.shape is Shape.EMBEDDED:
            return render_resource(ctx, target, member, scope)
        identifier = ctx.identify(target, member)
        if ctx.shape is Shape.SIDELOADED:
            assert ctx.sideloads is not None
            ctx.sideloads.add(target, member, identifier, scope, ctx.chain)
        return ctx.renderer.render(ctx.path, identifier)

    def _render_to_one(
        self, ctx: ResolutionContext, spec: AssociationSpec, value: typing.Any, scope: Scope
    ) -> JSONValue:
        if value is None:
            return None
        target = ctx.lookup.resolve(spec, value, ctx.chain, ctx.path)
        return self._render_member(ctx, target, value, scope)

    def _render_to_many(
        self, ctx: ResolutionContext, spec: AssociationSpec, value: typing.Any, scope: Scope
    ) -> JSONValue:
        members = list(value) if value is not None else []
        if not members:
            # an empty collection still needs a resolvable definition
            ctx.lookup.resolve(spec, None, ctx.chain, ctx.path)
            return []
        result: typing.List[JSONValue] = []
        for i, member in enumerate(members):
            member_ctx = ctx / i
            target = ctx.lookup.resolve(spec, member, ctx.chain, member_ctx.path)
            result.append(self._render_member(member_ctx, target, member, scope))
        return result

    def serialize(self, ctx: ResolutionContext) -> MutableJSONObject:
        """
        Renders the bound resource into a mapping of attributes and associations.

        :param ResolutionContext ctx: the context of the enclosing resolution; its chain
            holds the definitions enclosing this one.
        """
        if ctx.shape is Shape.EMBEDDED and id(self.resource) in ctx.ancestors:
            raise InvalidStructureError(
                f'circular reference to a resource rendered by "{self.definition.name}"',
                ctx.path,
            )
        attributes = resolve_attributes(
            self.definition, self.resource, self.scope, ctx.field_reader, ctx.path
        )
        result: MutableJSONObject = OrderedDict(
            (k, ctx.renderer.render(ctx.path + (k,), v)) for k, v in attributes.items()
        )

        child_scope = self.scope
        if self.definition.derive_scope is not None:
            child_scope = self.definition.derive_scope(self.resource, self.scope)

        inner_ctx = ctx.enter(self.definition, self.resource)
        for spec in self.definition.list_associations():
            key = spec.output_key if ctx.shape is Shape.EMBEDDED else spec.reference_key
            value = self._fetch_association(ctx, spec)
            if spec.cardinality is Cardinality.ONE:
                result[key] = self._render_to_one(inner_ctx / key, spec, value, child_scope)
            else:
                result[key] = self._render_to_many(inner_ctx / key, spec, value, child_scope)
        return result

    def __init__(self, definition: SerializerDefinition, resource: Resource, scope: Scope):
        self.definition = definition
        self.resource = resource
        self.scope = scope
