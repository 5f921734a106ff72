from .context import SerdeContext  # noqa: F401
from .document import AssembleConfig, DocumentAssembler  # noqa: F401
from .exceptions import (  # noqa: F401
    ConversionError,
    DuplicateAssociationKeyError,
    DuplicateDefinitionError,
    FieldNotFoundError,
    InvalidDeclarationError,
    InvalidStructureError,
    MissingAttributeError,
    NestedSerdeException,
    SerializationError,
    UnknownSerializerError,
    UnresolvableAssociationError,
)
from .models import (  # noqa: F401
    AssociationSpec,
    Cardinality,
    HasMany,
    HasOne,
    RawFallback,
    SerializerDefinition,
)
from .serializer import Shape  # noqa: F401
