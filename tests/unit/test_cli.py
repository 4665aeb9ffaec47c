"""CLI command tests for schemaforge."""

import json

import pytest
from typer.testing import CliRunner

from schemaforge.cli.main import app

runner = CliRunner()

BLOG = """
    User
        name: string Index
        posts()
        roles()

    Role
        users()

    Post
        title: string NotNull
        user()
"""


@pytest.fixture(autouse=True)
def no_database_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a database URL in the environment from leaking into tests."""
    monkeypatch.delenv("SCHEMAFORGE_DATABASE_URL", raising=False)


class TestVersionCommand:
    """Test the version command."""

    def test_version_output(self) -> None:
        """Test that version command shows version info."""
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "schemaforge v0.1.0" in result.stdout


class TestSchemaCommands:
    """Test schema inspection commands."""

    def test_tables_json(self, schema_file) -> None:
        """Test listing tables as JSON."""
        result = runner.invoke(app, ["--json", "schema", "tables", schema_file(BLOG)])
        assert result.exit_code == 0, f"Failed with: {result.stdout}"
        assert json.loads(result.stdout) == ["users", "roles", "role_user", "posts"]

    def test_tables_text(self, schema_file) -> None:
        """Test listing tables as a rich table."""
        result = runner.invoke(app, ["schema", "tables", schema_file(BLOG)])
        assert result.exit_code == 0
        assert "role_user" in result.stdout
        assert "(pivot)" in result.stdout

    def test_describe_json(self, schema_file) -> None:
        """Test describing every model."""
        result = runner.invoke(app, ["--json", "schema", "describe", schema_file(BLOG)])
        assert result.exit_code == 0, f"Failed with: {result.stdout}"
        data = json.loads(result.stdout)
        assert [e["name"] for e in data] == ["\\App\\User", "\\App\\Role", "\\App\\Post"]

        post = data[2]
        assert post["table"] == "posts"
        assert post["pivot"] is False
        assert [f["name"] for f in post["fields"]] == ["id", "title", "user_id"]
        assert post["fields"][2]["implicit"] is True
        assert post["relations"] == [{"method": "user()", "returns": "User", "kind": "belongs_to"}]

    def test_describe_one_model(self, schema_file) -> None:
        """Test describing a single model."""
        result = runner.invoke(
            app, ["--json", "schema", "describe", schema_file(BLOG), "-m", "User"]
        )
        assert result.exit_code == 0
        (user,) = json.loads(result.stdout)
        kinds = {r["method"]: r["kind"] for r in user["relations"]}
        assert kinds == {"posts()": "has_many", "roles()": "belongs_to_many"}

    def test_describe_text(self, schema_file) -> None:
        """Test describing models with rich output."""
        result = runner.invoke(app, ["schema", "describe", schema_file(BLOG), "-m", "Post"])
        assert result.exit_code == 0
        assert "Entity:" in result.stdout
        assert "user_id" in result.stdout

    def test_describe_unknown_model(self, schema_file) -> None:
        """Test that unknown models are reported."""
        result = runner.invoke(
            app, ["--json", "schema", "describe", schema_file(BLOG), "-m", "Comment"]
        )
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["error"] == "EntityNotFoundError"
        assert data["context"]["entity_name"] == "Comment"

    def test_relations_json(self, schema_file) -> None:
        """Test printing relation descriptors."""
        result = runner.invoke(app, ["--json", "schema", "relations", schema_file(BLOG)])
        assert result.exit_code == 0, f"Failed with: {result.stdout}"
        relations = {f"{d['entity']}.{d['method']}": d for d in json.loads(result.stdout)}
        roles = relations["\\App\\User.roles"]
        assert roles["kind"] == "belongs_to_many"
        assert roles["pivot_table"] == "role_user"
        assert relations["\\App\\Post.user"]["foreign_key"] == "user_id"

    def test_parse_error(self, schema_file) -> None:
        """Test that DSL errors exit with code 1."""
        path = schema_file("""
            Users
                name: string
        """)
        result = runner.invoke(app, ["--json", "schema", "tables", path])
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["error"] == "PluralEntityNameError"

    def test_missing_file(self, tmp_path) -> None:
        """Test that unreadable files are reported."""
        result = runner.invoke(app, ["--json", "schema", "tables", str(tmp_path / "nope.txt")])
        assert result.exit_code == 1
        assert "Cannot read schema file" in json.loads(result.stdout)["message"]


class TestMigrateCommands:
    """Test change set commands."""

    def test_diff_against_empty_database(self, schema_file) -> None:
        """Test that every table is created without a snapshot."""
        result = runner.invoke(app, ["--json", "migrate", "diff", schema_file(BLOG)])
        assert result.exit_code == 0, f"Failed with: {result.stdout}"
        data = json.loads(result.stdout)
        assert [c["table"] for c in data["changes"]] == ["users", "roles", "posts", "role_user"]
        assert {c["kind"] for c in data["changes"]} == {"create_table"}

    def test_diff_against_snapshot(self, schema_file, tmp_path) -> None:
        """Test comparing with a snapshot file."""
        snapshot = tmp_path / "current.json"
        snapshot.write_text(
            json.dumps(
                {
                    "tables": {
                        "users": {
                            "columns": {"id": {"nullable": False}, "name": {"nullable": True}},
                            "indexes": ["users_name_idx"],
                        },
                        "roles": {"columns": {"id": {"nullable": False}}},
                        "role_user": {"columns": {}},
                    }
                }
            )
        )
        result = runner.invoke(
            app, ["--json", "migrate", "diff", schema_file(BLOG), "-s", str(snapshot)]
        )
        assert result.exit_code == 0, f"Failed with: {result.stdout}"
        data = json.loads(result.stdout)
        assert [c["table"] for c in data["changes"]] == ["posts"]

    def test_diff_nothing_to_change(self, schema_file, tmp_path) -> None:
        """Test the text output of an empty change set."""
        snapshot = tmp_path / "current.json"
        snapshot.write_text(
            json.dumps({"tables": {"items": {"columns": {"id": {"nullable": False}}}}})
        )
        path = schema_file("""
            Item
                id: increments PrimaryKey, NotNull
        """)
        result = runner.invoke(app, ["migrate", "diff", path, "--snapshot", str(snapshot)])
        assert result.exit_code == 0
        assert "Nothing to change" in result.stdout

    def test_diff_text(self, schema_file) -> None:
        """Test the text output of a change set."""
        result = runner.invoke(app, ["migrate", "diff", schema_file(BLOG)])
        assert result.exit_code == 0
        assert "create_table" in result.stdout
        assert "users_name_idx" in result.stdout

    def test_diff_bad_snapshot(self, schema_file, tmp_path) -> None:
        """Test that an invalid snapshot file is reported."""
        snapshot = tmp_path / "current.json"
        snapshot.write_text("{")
        result = runner.invoke(
            app, ["--json", "migrate", "diff", schema_file(BLOG), "-s", str(snapshot)]
        )
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error"] == "SnapshotError"

    def test_snapshot_requires_database(self) -> None:
        """Test that snapshot without a database fails."""
        result = runner.invoke(app, ["migrate", "snapshot"])
        assert result.exit_code == 1
        assert "No database given" in result.stdout

    def test_snapshot_of_empty_database(self, temp_db: str) -> None:
        """Test dumping an empty database."""
        result = runner.invoke(app, ["-d", temp_db, "migrate", "snapshot"])
        assert result.exit_code == 0, f"Failed with: {result.stdout}"
        assert json.loads(result.stdout) == {"tables": {}}
