import collections.abc
import typing
from collections import OrderedDict

from .exceptions import InvalidStructureError
from .models import SerializerReference, Target
from .serializer import ResolutionContext, render_resource
from .types import JSONValue, Resource, Scope, ScopeOverride
from .utils import Path, pluralize


class CollectionSerializer:
    """
    A :py:class:`CollectionSerializer` renders a sequence of resources.

    The rendered elements are grouped by the pluralized root name of the
    definition that renders them, preserving the order in which each group
    first appears and the order of the elements within a group.  A
    homogeneous sequence yields a single group.  Heterogeneous sequences
    are not an error; they simply yield several groups.

    When a definition carries a ``collection_override``, it receives the
    rendered elements of its group and returns the final value for them.  A
    mapping result becomes the top-level entries in place of the group, which
    lets the override rename the root or add entries beside it.
    """

    serializer: typing.Optional[SerializerReference]
    scope_override: typing.Optional[ScopeOverride]

    def _resolve(
        self, ctx: ResolutionContext, resources: typing.Iterable[Resource], scope: Scope
    ) -> typing.List[typing.Tuple[Target, Resource, Scope]]:
        resolved: typing.List[typing.Tuple[Target, Resource, Scope]] = []
        for i, resource in enumerate(resources):
            target = ctx.lookup.resolve_root(resource, self.serializer, ctx.path + (i,))
            item_scope = self.scope_override(resource) if self.scope_override else scope
            resolved.append((target, resource, item_scope))
        return resolved

    def render_groups(
        self, ctx: ResolutionContext, resources: typing.Iterable[Resource], scope: Scope
    ) -> "OrderedDict[str, typing.Tuple[Target, typing.List[JSONValue]]]":
        """
        Renders the resources, grouped by pluralized root name.

        :param ResolutionContext ctx: the context of the resolution.
        :param Iterable[Any] resources: the resources, in output order.
        :param Any scope: the authorization scope, unless ``scope_override`` is given.
        :return: An ordered mapping of pluralized root names to the definition of the
            group and its rendered elements.
        """
        resolved = self._resolve(ctx, resources, scope)

        if ctx.sideloads is not None:
            for target, resource, _ in resolved:
                ctx.sideloads.mark(target, ctx.identify(target, resource), resource)

        groups: "OrderedDict[str, typing.Tuple[Target, typing.List[JSONValue]]]" = OrderedDict()
        for target, resource, item_scope in resolved:
            key = pluralize(target.root_name)
            _, items = groups.setdefault(key, (target, []))
            items.append(render_resource(ctx / key / len(items), target, resource, item_scope))

        if not groups and self.serializer is not None:
            target = ctx.lookup.resolve_root(None, self.serializer, ctx.path)
            groups[pluralize(target.root_name)] = (target, [])
        return groups

    @staticmethod
    def apply_overrides(
        groups: "OrderedDict[str, typing.Tuple[Target, typing.List[JSONValue]]]",
        path: Path = (),
    ) -> typing.Tuple["OrderedDict[str, JSONValue]", bool]:
        """
        Passes each group through the ``collection_override`` of its definition.

        An override returning a mapping supplies the final top-level entries for
        its group, replacing the group key; any other value is kept under the
        group key.

        :return: The top-level entries, and whether any override replaced its group.
        """
        result: "OrderedDict[str, JSONValue]" = OrderedDict()
        replaced = False
        for key, (target, items) in groups.items():
            override = target.collection_override
            if override is None:
                result[key] = items
                continue
            value = override(items)
            if not isinstance(value, collections.abc.Mapping):
                result[key] = value
                continue
            replaced = True
            for k, v in value.items():
                if k in result or (k != key and k in groups):
                    raise InvalidStructureError(
                        f'collection override of "{target.name}" yields the key "{k}" '
                        "already taken by another group",
                        path,
                    )
                result[k] = v
        return result, replaced

    def serialize_collection(
        self, ctx: ResolutionContext, resources: typing.Iterable[Resource], scope: Scope
    ) -> "OrderedDict[str, JSONValue]":
        """
        Renders the resources into the top-level entries of a collection document.
        """
        return self.apply_overrides(self.render_groups(ctx, resources, scope), ctx.path)[0]

    def __init__(
        self,
        serializer: typing.Optional[SerializerReference] = None,
        scope_override: typing.Optional[ScopeOverride] = None,
    ):
        self.serializer = serializer
        self.scope_override = scope_override
