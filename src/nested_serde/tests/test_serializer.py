import pytest

from ..exceptions import (
    ConversionError,
    InvalidStructureError,
    MissingAttributeError,
    UnresolvableAssociationError,
)
from ..models import HasMany, HasOne, SerializerDefinition
from ..registry import SerializerRegistry
from ..serializer import SerializerInstance, Shape
from .testing import Comment, Post, Scope, User, build_context


class TestShape:
    def test_coerce(self):
        assert Shape.coerce("embedded") is Shape.EMBEDDED
        assert Shape.coerce("Referenced") is Shape.REFERENCED
        assert Shape.coerce("side-loaded") is Shape.SIDELOADED
        assert Shape.coerce("side_loaded") is Shape.SIDELOADED
        assert Shape.coerce(Shape.SIDELOADED) is Shape.SIDELOADED
        with pytest.raises(ValueError):
            Shape.coerce("inline")


class TestSerializerInstance:
    @pytest.fixture
    def registry(self):
        registry = SerializerRegistry()
        registry.register(SerializerDefinition("user", attributes=("id", "name")))
        registry.register(SerializerDefinition("comment", attributes=("id", "title")))
        registry.register(
            SerializerDefinition(
                "post",
                attributes=("id", "title"),
                associations=[HasOne("author"), HasMany("comments", element_type="comment")],
            )
        )
        return registry

    @pytest.fixture
    def post(self):
        alice = User(id=1, name="alice", email="alice@example.com")
        return Post(
            id=10,
            title="hello",
            author=alice,
            comments=[Comment(id=100, title="first"), Comment(id=101, title="second")],
        )

    def test_embedded(self, registry, post):
        ctx = build_context(registry)
        result = SerializerInstance(registry.get("post"), post, None).serialize(ctx)
        assert result == {
            "id": 10,
            "title": "hello",
            "author": {"id": 1, "name": "alice"},
            "comments": [{"id": 100, "title": "first"}, {"id": 101, "title": "second"}],
        }
        assert list(result.keys()) == ["id", "title", "author", "comments"]

    def test_referenced(self, registry, post):
        ctx = build_context(registry, Shape.REFERENCED)
        result = SerializerInstance(registry.get("post"), post, None).serialize(ctx)
        assert result == {"id": 10, "title": "hello", "author_id": 1, "comment_ids": [100, 101]}

    def test_to_one_none(self, registry):
        ctx = build_context(registry)
        result = SerializerInstance(
            registry.get("post"), Post(id=1, title="t"), None
        ).serialize(ctx)
        assert result["author"] is None
        assert result["comments"] == []

    def test_renamed_key(self):
        registry = SerializerRegistry()
        registry.register(SerializerDefinition("user", attributes=("name",)))
        post_definition = registry.register(
            SerializerDefinition(
                "post", attributes=("id",), associations=[HasOne("author", key="writer")]
            )
        )
        post = Post(id=1, title="t", author=User(id=2, name="bob", email="bob@example.com"))
        embedded = SerializerInstance(post_definition, post, None).serialize(
            build_context(registry)
        )
        assert embedded == {"id": 1, "writer": {"name": "bob"}}
        referenced = SerializerInstance(post_definition, post, None).serialize(
            build_context(registry, Shape.REFERENCED)
        )
        assert referenced == {"id": 1, "writer": 2}

    def test_nested_definition(self, registry, post):
        definition = SerializerDefinition(
            "post",
            attributes=("id",),
            associations=[HasMany("comments")],
            nested=[SerializerDefinition("comment", attributes=("title",))],
        )
        result = SerializerInstance(definition, post, None).serialize(build_context(registry))
        assert result == {"id": 10, "comments": [{"title": "first"}, {"title": "second"}]}

    def test_accessor_filters_with_scope(self, registry, post):
        def visible_comments(post, scope):
            return post.comments if scope.superuser else post.comments[:1]

        definition = SerializerDefinition(
            "post",
            attributes=("id",),
            associations=[HasMany("comments")],
            accessors={"comments": visible_comments},
        )
        ctx = build_context(registry, Shape.REFERENCED)
        assert SerializerInstance(definition, post, Scope(superuser=False)).serialize(ctx) == {
            "id": 10,
            "comment_ids": [100],
        }
        assert SerializerInstance(definition, post, Scope(superuser=True)).serialize(ctx) == {
            "id": 10,
            "comment_ids": [100, 101],
        }

    def test_derive_scope(self, post):
        seen = []

        def name(user, scope):
            seen.append(scope)
            return user.name

        registry = SerializerRegistry()
        registry.register(
            SerializerDefinition("user", attributes=("name",), attribute_readers={"name": name})
        )
        definition = SerializerDefinition(
            "post",
            associations=[HasOne("author")],
            derive_scope=lambda post, scope: "derived",
        )
        SerializerInstance(definition, post, "given").serialize(build_context(registry))
        assert seen == ["derived"]

    def test_raw_fallback(self, post):
        registry = SerializerRegistry()
        definition = SerializerDefinition("post", associations=[HasOne("author")])
        result = SerializerInstance(definition, post, None).serialize(build_context(registry))
        assert result == {
            "author": {"id": 1, "name": "alice", "email": "alice@example.com"},
        }

    def test_empty_many_unresolvable(self, registry):
        definition = SerializerDefinition("post", associations=[HasMany("tags")])
        post = {"tags": []}
        with pytest.raises(UnresolvableAssociationError) as e:
            SerializerInstance(definition, post, None).serialize(build_context(registry))
        assert e.value.pointer == "/tags"

    def test_empty_many_with_element_type(self, registry):
        definition = SerializerDefinition(
            "post", associations=[HasMany("tags", element_type="tag")]
        )
        result = SerializerInstance(definition, {"tags": []}, None).serialize(
            build_context(registry)
        )
        assert result == {"tags": []}

    def test_missing_attribute(self, registry):
        definition = SerializerDefinition("post", attributes=("id", "subtitle"))
        with pytest.raises(MissingAttributeError) as e:
            SerializerInstance(definition, Post(id=1, title="t"), None).serialize(
                build_context(registry).replace(path=("post",))
            )
        assert e.value.name == "subtitle"
        assert e.value.pointer == "/post"

    def test_missing_association(self, registry):
        definition = SerializerDefinition("post", associations=[HasOne("editor")])
        with pytest.raises(MissingAttributeError) as e:
            SerializerInstance(definition, Post(id=1, title="t"), None).serialize(
                build_context(registry)
            )
        assert e.value.name == "editor"

    def test_conversion_error(self, registry):
        definition = SerializerDefinition("post", attributes=("body",))
        with pytest.raises(ConversionError) as e:
            SerializerInstance(definition, {"body": object()}, None).serialize(
                build_context(registry)
            )
        assert e.value.pointer == "/body"

    def test_cycle(self):
        registry = SerializerRegistry()
        registry.register(
            SerializerDefinition("node", attributes=("id",), associations=[HasOne("parent")])
        )
        class Node(dict):
            pass

        a, b = Node(id=1), Node(id=2)
        a["parent"], b["parent"] = b, a
        with pytest.raises(InvalidStructureError) as e:
            SerializerInstance(registry.get("node"), a, None).serialize(build_context(registry))
        assert e.value.pointer == "/parent/parent"

    def test_cycle_referenced(self):
        registry = SerializerRegistry()
        registry.register(
            SerializerDefinition("node", attributes=("id",), associations=[HasOne("parent")])
        )

        class Node(dict):
            pass

        a, b = Node(id=1), Node(id=2)
        a["parent"], b["parent"] = b, a
        result = SerializerInstance(registry.get("node"), a, None).serialize(
            build_context(registry, Shape.REFERENCED)
        )
        assert result == {"id": 1, "parent_id": 2}
