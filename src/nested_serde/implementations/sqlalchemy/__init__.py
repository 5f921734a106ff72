from .core import (  # noqa: F401
    SQLAFieldReader,
    SQLAIdentityResolver,
    SQLATypeTagResolver,
)
from .declarative import definition_from_model, sqlalchemy_context  # noqa: F401
