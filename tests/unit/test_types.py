"""Tests for core types."""

from schemaforge.core.types import (
    AlterKind,
    ChangeKind,
    ChangeSet,
    ColumnChange,
    CompilerConfig,
    FieldType,
    RelationDescriptor,
    RelationKind,
    TableChange,
)


class TestEnums:
    """Tests for enum helpers."""

    def test_relation_kinds(self):
        assert len(RelationKind.values()) == 9
        assert "morphed_by_many" in RelationKind.values()

    def test_alter_kinds(self):
        assert AlterKind.values() == ["rename_field", "delete_field", "rename_index", "delete_index"]

    def test_change_kinds(self):
        assert ChangeKind.values() == ["create_table", "update_table"]

    def test_field_types(self):
        assert "increments" in FieldType.values()
        assert FieldType.UNSIGNED_INTEGER == "unsignedInteger"


class TestCompilerConfig:
    def test_defaults(self):
        config = CompilerConfig()
        assert config.default_namespace == "\\App\\"
        assert config.default_namespace_path == "app/"
        assert config.primary_key_type == "increments"
        assert config.foreign_key_type == "integer"
        assert config.pivot_key_type == "unsignedInteger"
        assert config.morph_type_type == "string"


class TestChangeSet:
    """Tests for ChangeSet helpers."""

    def test_empty(self):
        assert ChangeSet().is_empty
        assert ChangeSet().table_names() == []

    def test_lookup(self):
        change_set = ChangeSet(
            changes=[
                TableChange(
                    kind=ChangeKind.CREATE_TABLE,
                    table="users",
                    columns=[ColumnChange(name="id", type="increments", nullable=False)],
                ),
                TableChange(kind=ChangeKind.UPDATE_TABLE, table="roles"),
            ]
        )
        assert not change_set.is_empty
        assert change_set.table_names() == ["users", "roles"]
        assert change_set.for_table("users").column_names() == ["id"]
        assert change_set.for_table("phones") is None

    def test_json_uses_plain_values(self):
        change = TableChange(kind=ChangeKind.UPDATE_TABLE, table="roles")
        assert change.model_dump()["kind"] == "update_table"


class TestRelationDescriptor:
    def test_to_dict_drops_unset_keys(self):
        descriptor = RelationDescriptor(
            entity="\\App\\Phone",
            method="user",
            kind=RelationKind.BELONGS_TO,
            related="\\App\\User",
            foreign_key="user_id",
        )
        assert descriptor.to_dict() == {
            "entity": "\\App\\Phone",
            "method": "user",
            "kind": "belongs_to",
            "related": "\\App\\User",
            "foreign_key": "user_id",
        }

    def test_with_timestamps_is_kept_when_set(self):
        descriptor = RelationDescriptor(
            entity="\\App\\User",
            method="podcasts",
            kind=RelationKind.BELONGS_TO_MANY,
            with_timestamps=True,
        )
        assert descriptor.to_dict()["with_timestamps"] is True
