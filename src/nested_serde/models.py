import collections.abc
import dataclasses
import enum
import typing
from collections import OrderedDict

from .exceptions import DuplicateAssociationKeyError, InvalidDeclarationError
from .types import JSONValue, MutableJSONObject, Resource, Scope
from .utils import normalize_type_tag, singularize

AttributeReader = typing.Callable[[Resource, Scope], typing.Any]
AttributesOverride = typing.Callable[
    [MutableJSONObject, Resource, Scope], typing.Mapping[str, typing.Any]
]
Accessor = typing.Callable[[Resource, Scope], typing.Any]
ScopeDeriver = typing.Callable[[Resource, Scope], Scope]
CollectionOverride = typing.Callable[[typing.Sequence[JSONValue]], JSONValue]

SerializerReference = typing.Union[str, "SerializerDefinition", typing.Type]


class Cardinality(enum.Enum):
    ONE = "one"
    MANY = "many"


class AssociationSpec:
    """
    An :py:class:`AssociationSpec` describes a relationship declared on a
    :py:class:`SerializerDefinition`.

    :param str name: the accessor name on the resource.
    :param Optional[str] key: the output key; defaults to ``name``.
    :param serializer: a definition, a registered type tag or a declarative class that
        renders the associated objects, bypassing lookup.
    :param accessor: a callable taking ``(resource, scope)`` that supplies the associated
        value in place of reading ``name`` from the resource.
    :param Optional[str] element_type: the type tag of the associated objects.
    """

    parent: typing.Optional["SerializerDefinition"] = None
    name: str
    cardinality: Cardinality
    serializer: typing.Optional[SerializerReference]
    accessor: typing.Optional[Accessor]
    element_type: typing.Optional[str]
    _key: typing.Optional[str]

    T = typing.TypeVar("T", bound="AssociationSpec")

    def bind(self: T, parent: "SerializerDefinition") -> T:
        self.parent = parent
        return self

    @property
    def output_key(self) -> str:
        """
        The key under which the embedded association is rendered.
        """
        return self._key if self._key is not None else self.name

    @property
    def reference_key(self) -> str:
        """
        The key under which identifiers are rendered when the association is
        referenced or side-loaded.
        """
        if self._key is not None:
            return self._key
        if self.cardinality is Cardinality.MANY:
            return f"{singularize(self.name)}_ids"
        else:
            return f"{self.name}_id"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, key={self.output_key!r})"

    def __init__(
        self,
        name: str,
        cardinality: Cardinality,
        key: typing.Optional[str] = None,
        serializer: typing.Optional[SerializerReference] = None,
        accessor: typing.Optional[Accessor] = None,
        element_type: typing.Optional[str] = None,
    ):
        self.name = name
        self.cardinality = cardinality
        self._key = key
        self.serializer = serializer
        self.accessor = accessor
        self.element_type = element_type


class HasOne(AssociationSpec):
    def __init__(
        self,
        name: str,
        key: typing.Optional[str] = None,
        serializer: typing.Optional[SerializerReference] = None,
        accessor: typing.Optional[Accessor] = None,
        element_type: typing.Optional[str] = None,
    ):
        super().__init__(name, Cardinality.ONE, key, serializer, accessor, element_type)


class HasMany(AssociationSpec):
    def __init__(
        self,
        name: str,
        key: typing.Optional[str] = None,
        serializer: typing.Optional[SerializerReference] = None,
        accessor: typing.Optional[Accessor] = None,
        element_type: typing.Optional[str] = None,
    ):
        super().__init__(name, Cardinality.MANY, key, serializer, accessor, element_type)


class SerializerDefinition:
    """
    A :py:class:`SerializerDefinition` holds the reusable specification of how
    resources of one type are rendered.

    :param str name: the type tag the definition is registered under.
    :param Iterable[str] attributes: the attribute names, in output order.
    :param Iterable[AssociationSpec] associations: the declared associations.
    :param Iterable[SerializerDefinition] nested: definitions scoped to this one, consulted
        before the global registry when resolving associations underneath it.
    """

    name: str
    """
    The type tag of the definition.
    """
    identifier: str
    """
    The name of the attribute holding the identifier of a resource.
    """
    root_key: typing.Optional[str]
    attributes_override: typing.Optional[AttributesOverride]
    derive_scope: typing.Optional[ScopeDeriver]
    collection_override: typing.Optional[CollectionOverride]
    _attributes: "OrderedDict[str, None]"
    _associations: "OrderedDict[str, AssociationSpec]"
    _nested: typing.Dict[str, "SerializerDefinition"]
    _attribute_readers: typing.Dict[str, AttributeReader]
    _accessors: typing.Dict[str, Accessor]
    _frozen: bool = False

    @property
    def attributes(self) -> typing.Sequence[str]:
        return tuple(self._attributes)

    @property
    def associations(self) -> typing.Mapping[str, AssociationSpec]:
        """
        The mapping of output keys to :py:class:`AssociationSpec`s.
        """
        return self._associations

    @property
    def nested(self) -> typing.Mapping[str, "SerializerDefinition"]:
        return self._nested

    @property
    def attribute_readers(self) -> typing.Mapping[str, AttributeReader]:
        return self._attribute_readers

    @property
    def accessors(self) -> typing.Mapping[str, Accessor]:
        return self._accessors

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def root_name(self) -> str:
        """
        The singular root name of documents rendered with this definition.
        """
        return self.root_key if self.root_key is not None else self.name

    def _ensure_mutable(self) -> None:
        if self._frozen:
            raise InvalidDeclarationError(
                f'serializer definition "{self.name}" cannot be modified after configuration'
            )

    def _taken_keys(self) -> typing.Set[str]:
        keys = set(self._attributes)
        for spec in self._associations.values():
            keys.add(spec.output_key)
            keys.add(spec.reference_key)
        return keys

    def add_attribute(self, name: str, reader: typing.Optional[AttributeReader] = None) -> None:
        """
        Add an attribute to the definition.  Redeclaring an attribute keeps its
        original position.

        :param str name: the attribute name.
        :param reader: an optional callable taking ``(resource, scope)`` that computes the value.
        :raises DuplicateAssociationKeyError: if an association renders under the same key.
        """
        self._ensure_mutable()
        if name not in self._attributes and name in self._taken_keys():
            raise DuplicateAssociationKeyError(self.name, name)
        self._attributes[name] = None
        if reader is not None:
            self._attribute_readers[name] = reader

    def declare_association(
        self,
        name: str,
        cardinality: Cardinality,
        key: typing.Optional[str] = None,
        serializer: typing.Optional[SerializerReference] = None,
        accessor: typing.Optional[Accessor] = None,
        element_type: typing.Optional[str] = None,
    ) -> AssociationSpec:
        spec: AssociationSpec
        if cardinality is Cardinality.ONE:
            spec = HasOne(name, key, serializer, accessor, element_type)
        else:
            spec = HasMany(name, key, serializer, accessor, element_type)
        self.add_association(spec)
        return spec

    def add_association(self, spec: AssociationSpec) -> None:
        """
        Add an association to the definition.

        :param AssociationSpec spec: the association to add.
        :raises DuplicateAssociationKeyError: if an attribute or another association renders
            under its embedded or its reference key.
        """
        self._ensure_mutable()
        taken = self._taken_keys()
        for key in (spec.output_key, spec.reference_key):
            if key in taken:
                raise DuplicateAssociationKeyError(self.name, key)
        self._associations[spec.output_key] = spec.bind(self)

    def list_associations(self) -> typing.Sequence[AssociationSpec]:
        return tuple(self._associations.values())

    def add_nested(self, definition: "SerializerDefinition") -> None:
        self._ensure_mutable()
        self._nested[normalize_type_tag(definition.name)] = definition

    def nested_definition_for(self, type_tag: str) -> typing.Optional["SerializerDefinition"]:
        return self._nested.get(normalize_type_tag(type_tag))

    def add_accessor(self, name: str, accessor: Accessor) -> None:
        self._ensure_mutable()
        self._accessors[name] = accessor

    def accessor_for(self, spec: AssociationSpec) -> typing.Optional[Accessor]:
        if spec.accessor is not None:
            return spec.accessor
        return self._accessors.get(spec.name)

    def freeze(self) -> None:
        self._frozen = True
        for definition in self._nested.values():
            definition.freeze()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"

    def __init__(
        self,
        name: str,
        attributes: typing.Iterable[str] = (),
        associations: typing.Iterable[AssociationSpec] = (),
        nested: typing.Iterable["SerializerDefinition"] = (),
        attribute_readers: typing.Optional[typing.Mapping[str, AttributeReader]] = None,
        attributes_override: typing.Optional[AttributesOverride] = None,
        accessors: typing.Optional[typing.Mapping[str, Accessor]] = None,
        derive_scope: typing.Optional[ScopeDeriver] = None,
        collection_override: typing.Optional[CollectionOverride] = None,
        identifier: str = "id",
        root_key: typing.Optional[str] = None,
    ):
        if isinstance(attributes, str):
            raise InvalidDeclarationError(
                f'attributes of "{name}" must be a sequence of names, not a string'
            )
        self.name = name
        self.identifier = identifier
        self.root_key = root_key
        self.attributes_override = attributes_override
        self.derive_scope = derive_scope
        self.collection_override = collection_override
        self._attributes = OrderedDict((attr, None) for attr in attributes)
        self._associations = OrderedDict()
        self._nested = {}
        self._attribute_readers = dict(attribute_readers or {})
        self._accessors = dict(accessors or {})
        for spec in associations:
            self.add_association(spec)
        for definition in nested:
            self.add_nested(definition)


@dataclasses.dataclass(frozen=True)
class RawFallback:
    """
    The lookup result for resources no definition is registered for.  Such
    resources are rendered through their own generic capability.
    """

    type_tag: str

    @property
    def name(self) -> str:
        return self.type_tag

    @property
    def root_name(self) -> str:
        return self.type_tag

    identifier: typing.ClassVar[str] = "id"
    collection_override: typing.ClassVar[None] = None

    def to_mapping(self, resource: Resource) -> typing.Mapping[str, typing.Any]:
        as_json = getattr(resource, "as_json", None)
        if callable(as_json):
            return as_json()
        if isinstance(resource, collections.abc.Mapping):
            return OrderedDict(resource.items())
        if dataclasses.is_dataclass(resource) and not isinstance(resource, type):
            return OrderedDict(
                (f.name, getattr(resource, f.name)) for f in dataclasses.fields(resource)
            )
        try:
            fields = vars(resource)
        except TypeError:
            raise TypeError(f"{type(resource).__name__} cannot be rendered as a mapping")
        return OrderedDict((k, v) for k, v in fields.items() if not k.startswith("_"))


Target = typing.Union[SerializerDefinition, RawFallback]
