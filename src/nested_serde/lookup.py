import logging
import typing

from .exceptions import InvalidDeclarationError, UnresolvableAssociationError
from .interfaces import TypeTagResolver
from .models import (
    AssociationSpec,
    RawFallback,
    SerializerDefinition,
    SerializerReference,
    Target,
)
from .registry import DEFINITION_ATTRIBUTE, SerializerRegistry
from .types import Resource
from .utils import Path, assert_not_none, normalize_type_tag

logger = logging.getLogger(__name__)


class SerializerLookup:
    """
    A :py:class:`SerializerLookup` decides which definition renders an
    associated resource.  The first match wins:

    1. the serializer explicitly declared on the association;
    2. a nested definition matching the target type, searched from the
       innermost enclosing definition outwards;
    3. the globally registered definition for the target type;
    4. a :py:class:`RawFallback`.
    """

    registry: SerializerRegistry
    type_tag_resolver: TypeTagResolver

    def dereference(self, ref: SerializerReference, path: Path = ()) -> SerializerDefinition:
        if isinstance(ref, SerializerDefinition):
            return ref
        elif isinstance(ref, str):
            return self.registry.query_definition_by_type_tag(ref, path)
        definition = getattr(ref, DEFINITION_ATTRIBUTE, None)
        if not isinstance(definition, SerializerDefinition):
            raise InvalidDeclarationError(f"{ref!r} is not a serializer definition")
        return definition

    def query_type_tag(
        self,
        spec: AssociationSpec,
        target_sample: typing.Optional[Resource],
        path: Path = (),
    ) -> str:
        if spec.element_type is not None:
            return spec.element_type
        if target_sample is None:
            raise UnresolvableAssociationError(assert_not_none(spec.parent).name, spec.name, path)
        return self.type_tag_resolver.query_type_tag(target_sample)

    def find_by_type_tag(
        self, type_tag: str, enclosing_chain: typing.Sequence[SerializerDefinition]
    ) -> Target:
        for enclosing in reversed(enclosing_chain):
            nested = enclosing.nested_definition_for(type_tag)
            if nested is not None:
                logger.debug("%s: nested definition %r found in %r", type_tag, nested, enclosing)
                return nested
        definition = self.registry.get(type_tag)
        if definition is not None:
            logger.debug("%s: registered definition %r found", type_tag, definition)
            return definition
        logger.debug("%s: no definition found; falling back to raw rendering", type_tag)
        return RawFallback(normalize_type_tag(type_tag))

    def resolve(
        self,
        spec: AssociationSpec,
        target_sample: typing.Optional[Resource],
        enclosing_chain: typing.Sequence[SerializerDefinition],
        path: Path = (),
    ) -> Target:
        """
        Resolves the definition for an associated resource.

        :param AssociationSpec spec: the association being rendered.
        :param Optional[Any] target_sample: the associated resource, or ``None`` if no sample
            is available (an empty collection).
        :param enclosing_chain: the definitions from the root down to the one declaring
            the association.
        :param path: the location of the association in the document.
        :raises UnresolvableAssociationError: if the target type cannot be determined.
        """
        if spec.serializer is not None:
            return self.dereference(spec.serializer, path)
        return self.find_by_type_tag(
            self.query_type_tag(spec, target_sample, path), enclosing_chain
        )

    def resolve_root(
        self,
        resource: Resource,
        serializer: typing.Optional[SerializerReference] = None,
        path: Path = (),
    ) -> Target:
        """
        Resolves the definition for a top-level resource.
        """
        if serializer is not None:
            return self.dereference(serializer, path)
        return self.find_by_type_tag(self.type_tag_resolver.query_type_tag(resource), ())

    def __init__(self, registry: SerializerRegistry, type_tag_resolver: TypeTagResolver):
        self.registry = registry
        self.type_tag_resolver = type_tag_resolver
