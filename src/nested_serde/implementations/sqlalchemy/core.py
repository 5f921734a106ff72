import typing

import sqlalchemy as sa  # type: ignore
from sqlalchemy import orm  # type: ignore

from ...defaults import DefaultFieldReaderImpl, DefaultTypeTagResolverImpl
from ...exceptions import InvalidNativeObjectStateError
from ...interfaces import FieldReader, IdentityResolver, TypeTagResolver
from ...models import Target
from ...types import Resource
from ...utils import singularize


def object_mapper_or_none(resource: Resource) -> typing.Optional[orm.Mapper]:
    if resource is None:
        return None
    try:
        return orm.object_mapper(resource)
    except orm.exc.UnmappedInstanceError:
        return None


def type_tag_for_mapper(sa_mapper: orm.Mapper) -> str:
    """
    Returns the type tag of the objects mapped by the mapper: the singular
    form of the name of the table they are persisted to.
    """
    return singularize(sa_mapper.local_table.name)


class SQLAFieldReader(FieldReader):
    """
    Reads mapped properties of SQLAlchemy-mapped objects through their
    instrumented attributes, and anything else with the fallback reader.
    """

    fallback: FieldReader

    def read_field(self, resource: Resource, name: str) -> typing.Any:
        sa_mapper = object_mapper_or_none(resource)
        if sa_mapper is not None and name in sa_mapper.attrs:
            return sa_mapper.attrs[name].class_attribute.__get__(resource, None)
        return self.fallback.read_field(resource, name)

    def __init__(self, fallback: typing.Optional[FieldReader] = None):
        self.fallback = fallback if fallback is not None else DefaultFieldReaderImpl()


class SQLATypeTagResolver(TypeTagResolver):
    fallback: TypeTagResolver

    def query_type_tag(self, resource: Resource) -> str:
        sa_mapper = object_mapper_or_none(resource)
        if sa_mapper is not None and type(resource) not in self._explicit:
            return type_tag_for_mapper(sa_mapper)
        return self.fallback.query_type_tag(resource)

    def register_class(self, class_: typing.Type, type_tag: str) -> None:
        self._explicit.add(class_)
        self.fallback.register_class(class_, type_tag)

    def __init__(self, fallback: typing.Optional[TypeTagResolver] = None):
        self.fallback = fallback if fallback is not None else DefaultTypeTagResolverImpl()
        self._explicit: typing.Set[typing.Type] = set()


class SQLAIdentityResolver(IdentityResolver):
    """
    Uses the primary key of SQLAlchemy-mapped objects as their identifier.
    Composite keys yield a tuple.
    """

    fallback: IdentityResolver

    def get_identifier(self, target: Target, resource: Resource) -> typing.Any:
        sa_mapper = object_mapper_or_none(resource)
        if sa_mapper is None:
            return self.fallback.get_identifier(target, resource)
        pkey_values = sa_mapper.primary_key_from_instance(resource)
        if all(v is None for v in pkey_values):
            raise InvalidNativeObjectStateError(
                f"native object {resource!r} is not persisted yet"
                " (does not have valid primary keys)"
            )
        if len(pkey_values) == 1:
            return pkey_values[0]
        return tuple(pkey_values)

    def __init__(self, fallback: IdentityResolver):
        self.fallback = fallback


def mapper_for_model(model: typing.Type) -> orm.Mapper:
    sa_mapper = sa.inspect(model, raiseerr=False)
    if not isinstance(sa_mapper, orm.Mapper):
        raise TypeError(f"{model!r} is not a mapped class")
    return sa_mapper
