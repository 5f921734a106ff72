import typing

from .naming import derive_type_tag, normalize_type_tag, pluralize, singularize  # noqa

T = typing.TypeVar("T")

PathComponent = typing.Union[str, int]
Path = typing.Tuple[PathComponent, ...]


def assert_not_none(value: typing.Optional[T]) -> T:
    assert value is not None
    return value


def format_path(path: typing.Iterable[PathComponent]) -> str:
    return "".join(f"/{c}" for c in path) or "/"
