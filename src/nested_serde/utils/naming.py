import inflection  # type: ignore

_SERIALIZER_SUFFIX = "Serializer"


def singularize(word: str) -> str:
    return inflection.singularize(word)


def pluralize(word: str) -> str:
    return inflection.pluralize(word)


def normalize_type_tag(tag: str) -> str:
    """
    Returns the canonical form of a type tag, under which ``"Post"``,
    ``"posts"`` and ``"post"`` compare equal.
    """
    return singularize(inflection.underscore(tag))


def derive_type_tag(class_name: str) -> str:
    if class_name.endswith(_SERIALIZER_SUFFIX) and class_name != _SERIALIZER_SUFFIX:
        class_name = class_name[: -len(_SERIALIZER_SUFFIX)]
    return inflection.underscore(class_name)
