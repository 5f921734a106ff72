import pytest

from ..exceptions import DuplicateAssociationKeyError, InvalidDeclarationError
from ..models import Cardinality, HasMany, HasOne, RawFallback, SerializerDefinition
from .testing import Comment


class TestAssociationSpec:
    def test_keys(self):
        comments = HasMany("comments")
        author = HasOne("author")
        assert comments.cardinality is Cardinality.MANY
        assert comments.output_key == "comments"
        assert comments.reference_key == "comment_ids"
        assert author.output_key == "author"
        assert author.reference_key == "author_id"

    def test_explicit_key(self):
        spec = HasOne("author", key="writer")
        assert spec.output_key == "writer"
        assert spec.reference_key == "writer"


class TestSerializerDefinition:
    def test_bind(self):
        spec = HasMany("comments")
        definition = SerializerDefinition("post", associations=[spec])
        assert spec.parent is definition
        assert definition.list_associations() == (spec,)
        assert definition.associations["comments"] is spec

    def test_duplicate_key(self):
        with pytest.raises(DuplicateAssociationKeyError) as e:
            SerializerDefinition(
                "post", associations=[HasMany("comments"), HasOne("comment", key="comments")]
            )
        assert e.value.key == "comments"
        assert e.value.definition_name == "post"

    def test_duplicate_reference_key(self):
        with pytest.raises(DuplicateAssociationKeyError) as e:
            SerializerDefinition("post", associations=[HasMany("comment"), HasMany("comments")])
        assert e.value.key == "comment_ids"

    @pytest.mark.parametrize(
        "attribute, spec",
        [
            ("author_id", HasOne("author")),
            ("comments", HasMany("comments")),
            ("writer", HasOne("author", key="writer")),
        ],
    )
    def test_association_key_taken_by_attribute(self, attribute, spec):
        with pytest.raises(DuplicateAssociationKeyError) as e:
            SerializerDefinition("post", attributes=("id", attribute), associations=[spec])
        assert e.value.key == attribute

    def test_attribute_key_taken_by_association(self):
        definition = SerializerDefinition("post", associations=[HasOne("author")])
        with pytest.raises(DuplicateAssociationKeyError):
            definition.add_attribute("author_id")
        with pytest.raises(DuplicateAssociationKeyError):
            definition.add_attribute("author")
        assert definition.attributes == ()

    def test_declare_association(self):
        definition = SerializerDefinition("post")
        spec = definition.declare_association("author", Cardinality.ONE, key="writer")
        assert isinstance(spec, HasOne)
        assert definition.associations["writer"] is spec

    def test_attributes_as_string(self):
        with pytest.raises(InvalidDeclarationError):
            SerializerDefinition("post", attributes="title")

    def test_redeclared_attribute_keeps_position(self):
        definition = SerializerDefinition("post", attributes=("id", "title"))
        definition.add_attribute("id")
        assert definition.attributes == ("id", "title")

    def test_nested(self):
        comment = SerializerDefinition("Comment")
        definition = SerializerDefinition("post", nested=[comment])
        assert definition.nested_definition_for("comments") is comment
        assert definition.nested_definition_for("comment") is comment
        assert definition.nested_definition_for("user") is None

    def test_accessor_for(self):
        explicit = lambda post, scope: []  # noqa: E731
        by_name = lambda post, scope: []  # noqa: E731
        a = HasMany("comments", accessor=explicit)
        b = HasMany("tags")
        definition = SerializerDefinition("post", associations=[a, b], accessors={"tags": by_name})
        assert definition.accessor_for(a) is explicit
        assert definition.accessor_for(b) is by_name

    def test_freeze(self):
        comment = SerializerDefinition("comment")
        definition = SerializerDefinition("post", nested=[comment])
        definition.freeze()
        assert definition.frozen
        assert comment.frozen
        with pytest.raises(InvalidDeclarationError):
            definition.add_attribute("title")
        with pytest.raises(InvalidDeclarationError):
            comment.add_association(HasOne("author"))

    def test_root_name(self):
        assert SerializerDefinition("post").root_name == "post"
        assert SerializerDefinition("post", root_key="article").root_name == "article"


class TestRawFallback:
    def test_as_json(self):
        class Point:
            def as_json(self):
                return {"x": 1, "y": 2}

        assert RawFallback("point").to_mapping(Point()) == {"x": 1, "y": 2}

    def test_mapping(self):
        assert RawFallback("thing").to_mapping({"a": 1}) == {"a": 1}

    def test_dataclass(self):
        assert RawFallback("comment").to_mapping(Comment(id=1, title="t")) == {
            "id": 1,
            "title": "t",
            "body": "",
            "author": None,
        }

    def test_vars(self):
        class Thing:
            def __init__(self):
                self.a = 1
                self._private = 2

        assert RawFallback("thing").to_mapping(Thing()) == {"a": 1}

    def test_unsupported(self):
        with pytest.raises(TypeError):
            RawFallback("int").to_mapping(1)

    def test_names(self):
        fallback = RawFallback("comment")
        assert fallback.name == "comment"
        assert fallback.root_name == "comment"
        assert fallback.identifier == "id"
        assert fallback.collection_override is None
