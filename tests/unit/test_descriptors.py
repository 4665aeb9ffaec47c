"""Tests for relation descriptors."""

import pytest

from schemaforge.core.types import RelationKind
from schemaforge.exceptions import UnsupportedRelationError
from schemaforge.schema.descriptors import RelationDescriber, describe_relations
from schemaforge.schema.resolver import RelationResolver


def by_label(schema):
    """Descriptors keyed by `Entity.method`."""
    return {d.entity.rsplit("\\", 1)[-1] + "." + d.method: d for d in describe_relations(schema)}


class TestOneToOne:
    """Tests for belongs-to and has-one descriptors."""

    def test_custom_primary_key(self, compile_schema):
        schema = compile_schema(r"""
            namespace App\Models\Shop
            User
                user_primary_key: increments PrimaryKey
                phone()

            Phone
                phone_primary_key: increments PrimaryKey
                number: string
                user() via user_id
        """)
        relations = by_label(schema)

        assert relations["Phone.user"].to_dict() == {
            "entity": "\\App\\Models\\Shop\\Phone",
            "method": "user",
            "kind": "belongs_to",
            "related": "\\App\\Models\\Shop\\User",
            "foreign_key": "user_id",
            "owner_key": "user_primary_key",
        }
        has_one = relations["User.phone"]
        assert has_one.kind == RelationKind.HAS_ONE
        assert has_one.related == "\\App\\Models\\Shop\\Phone"
        assert has_one.foreign_key == "user_id"
        assert has_one.local_key == "user_primary_key"

    def test_via_column(self, compile_schema):
        schema = compile_schema("""
            User
                user_primary_key: increments PrimaryKey
                phone()

            Phone
                phone_primary_key: increments PrimaryKey
                user() via weird_user_id
        """)
        relations = by_label(schema)
        assert relations["Phone.user"].foreign_key == "weird_user_id"
        assert relations["User.phone"].foreign_key == "weird_user_id"
        assert relations["User.phone"].local_key == "user_primary_key"


class TestOneToMany:
    """Tests for has-many descriptors."""

    def test_conventional(self, compile_schema):
        schema = compile_schema("""
            Post
                comments()

            Comment
                post()
        """)
        relations = by_label(schema)
        assert relations["Post.comments"].to_dict() == {
            "entity": "\\App\\Post",
            "method": "comments",
            "kind": "has_many",
            "related": "\\App\\Comment",
            "foreign_key": "post_id",
            "local_key": "id",
        }
        assert relations["Comment.post"].owner_key == "id"

    def test_custom_keys(self, compile_schema):
        schema = compile_schema("""
            Post
                post_primary_key: increments PrimaryKey
                comments()

            Comment
                comment_primary_key: increments PrimaryKey
                post() via weird_id
        """)
        relations = by_label(schema)
        assert relations["Comment.post"].foreign_key == "weird_id"
        assert relations["Comment.post"].owner_key == "post_primary_key"
        assert relations["Post.comments"].foreign_key == "weird_id"
        assert relations["Post.comments"].local_key == "post_primary_key"

    def test_self_reference(self, compile_schema):
        schema = compile_schema("""
            Employee
                name: string
                boss() via boss_id: Employee <- Employee.employees()
                employees(): Employee[] <- Employee.boss()
        """)
        relations = by_label(schema)
        assert relations["Employee.boss"].kind == RelationKind.BELONGS_TO
        assert relations["Employee.boss"].foreign_key == "boss_id"
        employees = relations["Employee.employees"]
        assert employees.kind == RelationKind.HAS_MANY
        assert employees.related == "\\App\\Employee"
        assert employees.foreign_key == "boss_id"


class TestManyToMany:
    """Tests for belongs-to-many descriptors."""

    def test_custom_primary_keys(self, compile_schema):
        schema = compile_schema("""
            User
                user_pk: increments PrimaryKey
                name: string
                roles()

            Role
                role_pk: increments PrimaryKey
                name: string
                users()
        """)
        relations = by_label(schema)

        roles = relations["User.roles"]
        assert roles.pivot_table == "role_user"
        assert (roles.foreign_pivot_key, roles.related_pivot_key) == ("user_id", "role_id")
        assert (roles.local_key, roles.owner_key) == ("user_pk", "role_pk")
        assert roles.pivot_entity is None

        users = relations["Role.users"]
        assert (users.foreign_pivot_key, users.related_pivot_key) == ("role_id", "user_id")
        assert (users.local_key, users.owner_key) == ("role_pk", "user_pk")

    def test_pivot_entity(self, compile_schema):
        schema = compile_schema("""
            AssignedRole
                role_pk1: unsignedInteger
                user_pk1: unsignedInteger
                expires: integer

            User
                user_pk: integer
                name: string
                roles(): Role[] Join(Role.role_pk = AssignedRole.role_pk1 AND AssignedRole.user_pk1 = User.user_pk)

            Role
                role_pk: integer
                name: string
                users(): User[]
        """)
        users = by_label(schema)["Role.users"]
        assert users.kind == RelationKind.BELONGS_TO_MANY
        assert users.pivot_table == "assigned_roles"
        assert users.foreign_pivot_key == "user_pk1"
        assert users.related_pivot_key == "role_pk1"
        assert users.pivot_entity == "\\App\\AssignedRole"
        assert users.pivot_fields == ["id", "role_pk1", "user_pk1", "expires"]

    def test_alias_and_timestamps(self, compile_schema):
        schema = compile_schema("""
            User
                name: string
                podcasts(): Podcast[] As("subscription"), PivotWithTimestamps

            Podcast
                name: string
                users()
        """)
        relations = by_label(schema)
        podcasts = relations["User.podcasts"]
        assert podcasts.pivot_table == "podcast_user"
        assert podcasts.alias == "subscription"
        assert podcasts.with_timestamps is True
        assert relations["Podcast.users"].with_timestamps is False


class TestHasManyThrough:
    """Tests for has-many-through descriptors."""

    SCHEMA = """
        Country
            {country_pk}
            name: string
            users()
            posts() via User

        User
            {user_pk}
            name: string
            posts()
            country()

        Post
            title: string
            user()
    """

    def test_conventional(self, compile_schema):
        schema = compile_schema(self.SCHEMA.format(country_pk="", user_pk=""))
        posts = by_label(schema)["Country.posts"]
        assert posts.kind == RelationKind.HAS_MANY_THROUGH
        assert posts.related == "\\App\\Post"
        assert posts.through_entity == "\\App\\User"
        assert (posts.first_key, posts.second_key) == ("country_id", "user_id")
        assert (posts.local_key, posts.second_local_key) == ("id", "id")

    def test_custom_primary_keys(self, compile_schema):
        schema = compile_schema(
            self.SCHEMA.format(
                country_pk="country_pk: increments PrimaryKey",
                user_pk="user_pk: increments PrimaryKey",
            )
        )
        posts = by_label(schema)["Country.posts"]
        assert (posts.first_key, posts.second_key) == ("country_id", "user_id")
        assert (posts.local_key, posts.second_local_key) == ("country_pk", "user_pk")


class TestPolymorphic:
    """Tests for morph descriptors."""

    def test_morph_many_and_morph_to(self, compile_schema):
        schema = compile_schema("""
            Post
                title: string
                comments()

            Video
                title: string
                comments()

            Comment
                body: string
                commentable(): Post|Video
        """)
        relations = by_label(schema)

        comments = relations["Video.comments"]
        assert comments.kind == RelationKind.MORPH_MANY
        assert comments.related == "\\App\\Comment"
        assert comments.local_key == "id"
        assert comments.morph_name == "commentable"

        assert relations["Comment.commentable"].to_dict() == {
            "entity": "\\App\\Comment",
            "method": "commentable",
            "kind": "morph_to",
            "morph_name": "commentable",
            "morph_type": "commentable_type",
            "morph_id": "commentable_id",
        }

    def test_many_to_many(self, compile_schema):
        schema = compile_schema("""
            Post
                name: string
                tags() via Taggable

            Video
                name: string
                tags() via Taggable

            Tag
                name: string
                posts() via Taggable
                videos() via Taggable
                taggables()

            Taggable
                tag()
                taggable(): Post|Video
        """)
        relations = by_label(schema)

        tags = relations["Post.tags"]
        assert tags.kind == RelationKind.MORPH_TO_MANY
        assert tags.related == "\\App\\Tag"
        assert tags.pivot_table == "taggables"
        assert tags.morph_name == "taggable"

        videos = relations["Tag.videos"]
        assert videos.kind == RelationKind.MORPHED_BY_MANY
        assert videos.related == "\\App\\Video"
        assert videos.pivot_table == "taggables"
        assert videos.morph_name == "taggable"

        assert relations["Tag.taggables"].kind == RelationKind.HAS_MANY
        assert relations["Taggable.tag"].kind == RelationKind.BELONGS_TO

    def test_many_to_many_with_custom_primary_key(self, compile_schema):
        schema = compile_schema("""
            Post
                post_pk: increments PrimaryKey
                tags() via Taggable

            Tag
                tag_pk: increments PrimaryKey
                posts() via Taggable
                taggables()

            Taggable
                taggable_pk: increments PrimaryKey
                tag()
                taggable(): Post|Video
        """)
        with pytest.raises(UnsupportedRelationError) as exc_info:
            describe_relations(schema)
        assert str(exc_info.value).startswith(
            "Currently, we don't support polymorphic many-to-many with custom Primary Key "
        )


class TestUnsupported:
    """Tests for relations that cannot be described."""

    def test_complex_primary_key(self, compile_schema):
        schema = compile_schema("""
            User
                a: integer PrimaryKey
                b: integer PrimaryKey
            Phone
                user() via user_id
        """)
        describer = RelationDescriber(RelationResolver(schema))
        with pytest.raises(UnsupportedRelationError) as exc_info:
            describer.describe(schema.get_entity("Phone").get_method("user"))
        assert "complex primary key (a,b)" in str(exc_info.value)

    def test_unknown_related_entity(self, compile_schema):
        schema = compile_schema("""
            Phone
                user() via user_id
        """)
        with pytest.raises(UnsupportedRelationError) as exc_info:
            describe_relations(schema)
        assert str(exc_info.value) == (
            "Cannot tell which model `Phone.user()` returns, declare model `User`"
        )
