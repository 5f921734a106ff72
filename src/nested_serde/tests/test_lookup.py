import pytest

from ..defaults import DefaultTypeTagResolverImpl
from ..exceptions import (
    InvalidDeclarationError,
    UnknownSerializerError,
    UnresolvableAssociationError,
)
from ..lookup import SerializerLookup
from ..models import HasMany, HasOne, RawFallback, SerializerDefinition
from ..registry import DEFINITION_ATTRIBUTE, SerializerRegistry
from .testing import Comment, Post, User


class TestSerializerLookup:
    @pytest.fixture
    def registry(self):
        return SerializerRegistry()

    @pytest.fixture
    def type_tag_resolver(self):
        return DefaultTypeTagResolverImpl()

    @pytest.fixture
    def lookup(self, registry, type_tag_resolver):
        return SerializerLookup(registry, type_tag_resolver)

    def test_explicit_serializer_wins(self, registry, lookup):
        registry.register(SerializerDefinition("comment"))
        brief = SerializerDefinition("brief_comment", attributes=("id",))
        inner = SerializerDefinition("comment")
        spec = HasMany("comments", serializer=brief)
        post = SerializerDefinition("post", associations=[spec], nested=[inner])
        assert lookup.resolve(spec, Comment(id=1, title="t"), (post,)) is brief

    def test_explicit_serializer_by_name(self, registry, lookup):
        brief = registry.register(SerializerDefinition("brief_comment"))
        spec = HasMany("comments", serializer="brief_comment")
        SerializerDefinition("post", associations=[spec])
        assert lookup.resolve(spec, Comment(id=1, title="t"), ()) is brief

    def test_explicit_serializer_unknown(self, lookup):
        spec = HasMany("comments", serializer="brief_comment")
        SerializerDefinition("post", associations=[spec])
        with pytest.raises(UnknownSerializerError):
            lookup.resolve(spec, Comment(id=1, title="t"), (), ("post", "comments"))

    def test_explicit_serializer_by_class(self, lookup):
        brief = SerializerDefinition("brief_comment")

        class BriefComment:
            pass

        setattr(BriefComment, DEFINITION_ATTRIBUTE, brief)
        assert lookup.dereference(BriefComment) is brief
        with pytest.raises(InvalidDeclarationError):
            lookup.dereference(Comment)

    def test_nested_innermost_first(self, registry, lookup):
        registry.register(SerializerDefinition("user"))
        outer_user = SerializerDefinition("user", attributes=("id",))
        inner_user = SerializerDefinition("user", attributes=("id", "name"))
        spec = HasOne("author")
        comment = SerializerDefinition("comment", associations=[spec], nested=[inner_user])
        post = SerializerDefinition("post", nested=[outer_user])
        author = User(id=1, name="alice", email="alice@example.com")
        assert lookup.resolve(spec, author, (post, comment)) is inner_user
        assert lookup.resolve(spec, author, (post,)) is outer_user

    def test_nested_before_registry(self, registry, lookup):
        global_comment = registry.register(SerializerDefinition("comment"))
        nested_comment = SerializerDefinition("comment")
        spec = HasMany("comments")
        post = SerializerDefinition("post", associations=[spec], nested=[nested_comment])
        sample = Comment(id=1, title="t")
        assert lookup.resolve(spec, sample, (post,)) is nested_comment
        assert lookup.resolve(spec, sample, ()) is global_comment

    def test_raw_fallback(self, lookup):
        spec = HasMany("comments")
        SerializerDefinition("post", associations=[spec])
        assert lookup.resolve(spec, Comment(id=1, title="t"), ()) == RawFallback("comment")

    def test_element_type(self, registry, lookup):
        comment = registry.register(SerializerDefinition("comment"))
        spec = HasMany("remarks", element_type="Comments")
        SerializerDefinition("post", associations=[spec])
        assert lookup.resolve(spec, None, ()) is comment

    def test_unresolvable(self, lookup):
        spec = HasMany("comments")
        SerializerDefinition("post", associations=[spec])
        with pytest.raises(UnresolvableAssociationError) as e:
            lookup.resolve(spec, None, (), ("post", "comments"))
        assert e.value.definition_name == "post"
        assert e.value.name == "comments"
        assert e.value.pointer == "/post/comments"

    def test_registered_class_tag(self, registry, type_tag_resolver, lookup):
        article = registry.register(SerializerDefinition("article"))
        type_tag_resolver.register_class(Post, "article")
        assert lookup.resolve_root(Post(id=1, title="t")) is article

    def test_resolve_root_with_serializer(self, registry, lookup):
        brief = registry.register(SerializerDefinition("brief_post"))
        assert lookup.resolve_root(Post(id=1, title="t"), "brief_post") is brief
