"""Tests for implicit field synthesis."""

from textwrap import dedent

from schemaforge.core.types import CompilerConfig, FieldType
from schemaforge.schema.models import Entity, Field, Method, Schema
from schemaforge.schema.parser import parse
from schemaforge.schema.synthesis import ImplicitSynthesizer, synthesize


class TestImplicitFields:
    """Tests for the fields synthesis adds."""

    def test_primary_key_is_prepended(self, compile_schema):
        schema = compile_schema("""
            User
                name: string
        """)
        user = schema.get_entity("User")
        assert user.field_names() == ["id", "name"]
        id_field = user.get_field("id")
        assert id_field.primary_key is True
        assert id_field.implicit is True
        assert user.get_field("name").implicit is False

    def test_foreign_keys_follow_methods(self, compile_schema):
        """Via column, join column and belongs-to key, in method order."""
        schema = compile_schema("""
            Account
                owner() via owner_ref
            Owner
                accounts()
            Phone
                user(): User Join(Phone.user_ref = User.id)
            User
                phone()
        """)
        assert schema.get_entity("Account").field_names() == ["id", "owner_ref"]
        assert schema.get_entity("Phone").field_names() == ["id", "user_ref"]
        assert schema.get_entity("User").field_names() == ["id"]

    def test_polymorphic_columns(self, compile_schema):
        schema = compile_schema("""
            Post
                comments()
            Comment
                commentable(): Post|Video
        """)
        comment = schema.get_entity("Comment")
        assert comment.get_field("commentable_id").field_type == FieldType.INTEGER
        assert comment.get_field("commentable_type").field_type == FieldType.STRING

    def test_declared_fields_are_kept(self, compile_schema):
        """A declared foreign key is never replaced."""
        schema = compile_schema("""
            Post
                comments()
            Comment
                post_id: bigInteger NotNull
                post()
        """)
        post_id = schema.get_entity("Comment").get_field("post_id")
        assert post_id.field_type == "bigInteger"
        assert post_id.implicit is False
        assert schema.get_entity("Comment").field_names() == ["id", "post_id"]

    def test_configured_types(self):
        config = CompilerConfig(
            primary_key_type="bigIncrements",
            foreign_key_type="unsignedBigInteger",
            morph_type_type="char",
        )
        schema = parse(
            dedent("""
                Post
                    comments()
                Comment
                    post()
                    commentable(): Post|Video
            """),
            config,
        )
        comment = schema.get_entity("Comment")
        assert comment.get_field("id").field_type == "bigIncrements"
        assert comment.get_field("post_id").field_type == "unsignedBigInteger"
        assert comment.get_field("commentable_type").field_type == "char"

    def test_implicit_fields_take_final_policy(self, compile_schema):
        schema = compile_schema("""
            default not null
            Post
                comments()
            Comment
                post()
        """)
        post_id = schema.get_entity("Comment").get_field("post_id")
        assert post_id.nullable is None
        assert post_id.resolved_nullable() is False


class TestSynthesizer:
    """Tests for running synthesis directly."""

    def test_idempotent(self, compile_schema):
        schema = compile_schema("""
            User
                roles()
                phone()
            Role
                users()
            Phone
                user() via user_id
                number: string
        """)
        before = {e.short_name: e.field_names() for e in schema.entities}
        synthesize(schema)
        synthesize(schema)
        assert {e.short_name: e.field_names() for e in schema.entities} == before

    def test_on_hand_built_schema(self):
        schema = Schema()
        post = schema.add_entity(Entity("Post", "\\App\\", "posts"))
        comment = schema.add_entity(Entity("Comment", "\\App\\", "comments"))
        post.add_method(Method("comments"))
        comment.add_method(Method("post"))
        comment.add_field(Field("body", "text"))

        ImplicitSynthesizer(schema).run()

        assert post.field_names() == ["id"]
        assert comment.field_names() == ["id", "body", "post_id"]
        assert comment.get_field("post_id").owner == comment.index
