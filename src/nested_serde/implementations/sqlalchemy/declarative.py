"""
nested_serde.implementations.sqlalchemy.declarative module contains helpers
that derive serializer definitions from SQLAlchemy-mapped classes.

Synopsis
--------

.. code-block:: python

   import sqlalchemy as sa
   from sqlalchemy import orm
   from nested_serde.implementations.sqlalchemy import (
       definition_from_model,
       sqlalchemy_context,
   )

   Base = orm.declarative_base()

   class Post(Base):
       __tablename__ = "posts"
       id = sa.Column(sa.Integer(), primary_key=True, nullable=False)
       title = sa.Column(sa.String(), nullable=False)
       comments = orm.relationship("Comment")

   serde = sqlalchemy_context()
   serde.register(definition_from_model(Post))
   serde.configure()

   serde.assemble(session.query(Post).all(), shape="sideloaded")

"""
import logging
import typing

from sqlalchemy import orm  # type: ignore

from ...context import SerdeContext
from ...defaults import DefaultIdentityResolverImpl
from ...document import DEFAULT_COLLECTION_TYPES
from ...models import AssociationSpec, HasMany, HasOne, SerializerDefinition
from .core import (
    SQLAFieldReader,
    SQLAIdentityResolver,
    SQLATypeTagResolver,
    mapper_for_model,
    type_tag_for_mapper,
)

logger = logging.getLogger(__name__)


def default_extract_properties(
    sa_mapper: orm.Mapper,
) -> typing.Iterable[orm.interfaces.MapperProperty]:
    return sa_mapper.attrs


def definition_from_model(
    model: typing.Type,
    name: typing.Optional[str] = None,
    exclude: typing.Container[str] = (),
    extract_properties: typing.Callable[
        [orm.Mapper], typing.Iterable[orm.interfaces.MapperProperty]
    ] = default_extract_properties,
    **kwargs: typing.Any,
) -> SerializerDefinition:
    """
    Builds a :py:class:`SerializerDefinition` out of a mapped class.

    Column properties become attributes and relationships become
    associations whose element type is the type tag of the related class.
    A foreign key column named after the reference key of a relationship,
    such as ``author_id`` next to ``author``, is left to the relationship.

    :param type model: the mapped class.
    :param Optional[str] name: the type tag; defaults to the singular form of the table name.
    :param Container[str] exclude: the names of the properties to leave out.
    :param extract_properties: a callable returning the properties to consider.
    :return: The definition.  It is not registered.
    """
    sa_mapper = mapper_for_model(model)
    attributes: typing.List[str] = []
    associations: typing.List[AssociationSpec] = []
    for prop in extract_properties(sa_mapper):
        if prop.key in exclude:
            continue
        if isinstance(prop, orm.ColumnProperty):
            attributes.append(prop.key)
        elif isinstance(prop, orm.RelationshipProperty):
            element_type = type_tag_for_mapper(prop.mapper)
            if prop.uselist:
                associations.append(HasMany(prop.key, element_type=element_type))
            else:
                associations.append(HasOne(prop.key, element_type=element_type))
        else:
            logger.debug("%s: property %s is not supported; skipped", model.__name__, prop.key)
    reference_keys = {spec.reference_key for spec in associations}
    for key in reference_keys.intersection(attributes):
        logger.debug("%s: column %s is rendered by its relationship; skipped", model.__name__, key)
    attributes = [attr for attr in attributes if attr not in reference_keys]
    identifier = kwargs.pop("identifier", None)
    if identifier is None:
        pkey_columns = sa_mapper.primary_key
        if len(pkey_columns) == 1:
            identifier = sa_mapper.get_property_by_column(pkey_columns[0]).key
        else:
            identifier = "id"
    return SerializerDefinition(
        name=name if name is not None else type_tag_for_mapper(sa_mapper),
        attributes=attributes,
        associations=associations,
        identifier=identifier,
        **kwargs,
    )


def sqlalchemy_context(**kwargs: typing.Any) -> SerdeContext:
    """
    Creates a :py:class:`SerdeContext` whose capabilities understand
    SQLAlchemy-mapped objects, falling back to the defaults for anything else.
    """
    field_reader = kwargs.pop("field_reader", None) or SQLAFieldReader()
    type_tag_resolver = kwargs.pop("type_tag_resolver", None) or SQLATypeTagResolver()
    identity_resolver = kwargs.pop("identity_resolver", None) or SQLAIdentityResolver(
        DefaultIdentityResolverImpl(field_reader)
    )
    collection_types = kwargs.pop("collection_types", DEFAULT_COLLECTION_TYPES + (orm.Query,))
    return SerdeContext(
        field_reader=field_reader,
        type_tag_resolver=type_tag_resolver,
        identity_resolver=identity_resolver,
        collection_types=collection_types,
        **kwargs,
    )
