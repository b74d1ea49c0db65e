"""Tests for dbquickly CLI."""

import json
import os
import subprocess
import sys
import pytest


def run_dbquickly(*args, cwd=None):
    env = dict(os.environ)
    env.pop("DBQUICKLY_PATH", None)
    env.pop("DBQUICKLY_LOG_LEVEL", None)
    result = subprocess.run(
        [sys.executable, "-m", "dbquickly.cli", *args],
        capture_output=True,
        text=True,
        cwd=cwd,
        env=env,
    )
    return result


@pytest.fixture
def db_dir(tmp_path):
    path = str(tmp_path / "db")
    result = run_dbquickly("init", "--path", path, "--name", "cli-db")
    assert result.returncode == 0
    return path


@pytest.fixture
def schema_file(tmp_path):
    path = tmp_path / "person.yaml"
    path.write_text(
        "name: person\n"
        "data:\n"
        "  - name: name\n"
        "    type: string\n"
        "    required: true\n"
        "  - name: good\n"
        "    type: boolean\n"
        "    required: false\n"
    )
    return str(path)


class TestCLI:
    def test_version(self):
        result = run_dbquickly("--version")
        assert "0.1.0" in result.stdout

    def test_help(self):
        result = run_dbquickly("--help")
        assert "init" in result.stdout
        assert "add-cluster" in result.stdout
        assert "validate" in result.stdout

    def test_no_command(self):
        result = run_dbquickly()
        assert result.returncode == 1

    def test_init_default_path(self, tmp_path):
        result = run_dbquickly("init", cwd=tmp_path)
        assert result.returncode == 0
        assert (tmp_path / "db-quickly.json").exists()

    def test_init_path_from_env(self, tmp_path):
        env = dict(os.environ, DBQUICKLY_PATH=str(tmp_path / "envdb"))
        result = subprocess.run(
            [sys.executable, "-m", "dbquickly.cli", "init"],
            capture_output=True,
            text=True,
            env=env,
        )
        assert result.returncode == 0
        assert (tmp_path / "envdb" / "db-quickly.json").exists()

    def test_info(self, db_dir):
        run_dbquickly("add-cluster", "users", "--path", db_dir)
        result = run_dbquickly("info", "--path", db_dir)
        assert result.returncode == 0
        info = json.loads(result.stdout)
        assert info["name"] == "cli-db"
        assert info["clusters"]["users"]["record_count"] == 0

    def test_missing_db(self, tmp_path):
        result = run_dbquickly("clusters", "--path", str(tmp_path / "none"))
        assert result.returncode == 1
        assert "Database not found" in result.stderr

    def test_add_and_list(self, db_dir):
        result = run_dbquickly(
            "add-cluster", "users", "--description", "All users", "--path", db_dir
        )
        assert result.returncode == 0
        cluster_id = json.loads(result.stdout)["_id"]

        result = run_dbquickly("clusters", "--path", db_dir)
        rows = json.loads(result.stdout)
        assert rows == [
            {
                "_id": cluster_id,
                "name": "users",
                "description": "All users",
                "record_count": 0,
            }
        ]

    def test_add_duplicate_rejected(self, db_dir):
        run_dbquickly("add-cluster", "users", "--path", db_dir)
        result = run_dbquickly("add-cluster", "users", "--path", db_dir)
        assert result.returncode == 1
        assert "already exists" in result.stderr

    def test_get_and_delete(self, db_dir):
        out = run_dbquickly("add-cluster", "users", "--path", db_dir).stdout
        cluster_id = json.loads(out)["_id"]

        result = run_dbquickly("get-cluster", cluster_id, "--by-id", "--path", db_dir)
        assert json.loads(result.stdout)["name"] == "users"

        result = run_dbquickly("delete-cluster", "users", "--path", db_dir)
        assert json.loads(result.stdout) == {"deleted": cluster_id, "remaining": 0}

        result = run_dbquickly("get-cluster", "users", "--path", db_dir)
        assert result.returncode == 1
        assert "Cluster not found" in result.stderr

    def test_insert(self, db_dir):
        run_dbquickly("add-cluster", "users", "--path", db_dir)
        result = run_dbquickly("insert", "users", '{"name": "ada"}', "--path", db_dir)
        assert result.returncode == 0
        result = run_dbquickly("get-cluster", "users", "--path", db_dir)
        assert json.loads(result.stdout)["data"] == [{"name": "ada"}]

    def test_insert_with_schema(self, db_dir, schema_file):
        run_dbquickly("add-cluster", "users", "--path", db_dir)
        result = run_dbquickly(
            "insert", "users", '{"name": 1}', "--schema", schema_file, "--path", db_dir
        )
        assert result.returncode == 1
        assert "INVALID_TYPE" in result.stderr

    def test_insert_invalid_json(self, db_dir):
        run_dbquickly("add-cluster", "users", "--path", db_dir)
        result = run_dbquickly("insert", "users", "{nope", "--path", db_dir)
        assert result.returncode == 1
        assert result.stderr.startswith("Error:")

    def test_import(self, db_dir, schema_file, tmp_path):
        run_dbquickly("add-cluster", "users", "--path", db_dir)
        f = tmp_path / "users.jsonl"
        f.write_text('{"name": "ada"}\n{"name": 2}\n{"good": true}\n{"name": "bob"}\n')
        result = run_dbquickly(
            "import", "users", str(f), "--schema", schema_file, "--path", db_dir
        )
        assert result.returncode == 0
        out = json.loads(result.stdout)
        assert out["imported"] == 2
        assert out["rejected"] == 2
        assert [e["type"] for e in out["errors"]] == ["INVALID_TYPE", "MISSING_KEY"]

    def test_validate(self, schema_file):
        result = run_dbquickly("validate", schema_file, '{"name": "test", "extra": 1}')
        assert result.returncode == 0
        assert json.loads(result.stdout) == {"success": True}

        result = run_dbquickly("validate", schema_file, '{"name": "test", "good": "x"}')
        assert result.returncode == 1
        assert json.loads(result.stdout)["error"]["type"] == "INVALID_TYPE"

    def test_validate_malformed_yaml(self, tmp_path):
        schema = tmp_path / "bad.yaml"
        schema.write_text("name: [unclosed\n")
        result = run_dbquickly("validate", str(schema), '{"name": "x"}')
        assert result.returncode == 1
        assert result.stderr.startswith("Error:")
        assert "is not valid YAML" in result.stderr
        assert "Traceback" not in result.stderr

    def test_validate_entry_without_name(self, tmp_path):
        schema = tmp_path / "noname.yaml"
        schema.write_text("name: x\ndata:\n  - type: string\n")
        result = run_dbquickly("validate", str(schema), '{"name": "x"}')
        assert result.returncode == 1
        assert "entry 0 has no 'name'" in result.stderr
        assert str(schema) in result.stderr

    def test_insert_malformed_yaml(self, db_dir, tmp_path):
        run_dbquickly("add-cluster", "users", "--path", db_dir)
        schema = tmp_path / "bad.yaml"
        schema.write_text("data: {\n")
        result = run_dbquickly(
            "insert", "users", '{"name": "x"}', "--schema", str(schema), "--path", db_dir
        )
        assert result.returncode == 1
        assert "Traceback" not in result.stderr

    def test_invalid_log_level(self, tmp_path):
        env = dict(os.environ, DBQUICKLY_LOG_LEVEL="LOUD")
        env.pop("DBQUICKLY_PATH", None)
        result = subprocess.run(
            [sys.executable, "-m", "dbquickly.cli", "init"],
            capture_output=True,
            text=True,
            cwd=tmp_path,
            env=env,
        )
        assert result.returncode == 1
        assert "Invalid DBQUICKLY_LOG_LEVEL" in result.stderr
        assert "Traceback" not in result.stderr
