"""dbquickly CLI."""

import argparse
import json
import logging
import sys
from pathlib import Path

from . import __version__
from .config import get_settings


def _open_db(args):
    """Open an existing database directory."""
    from .database import Database, DatabaseNotFoundError, normalize_path

    path = normalize_path(args.path)
    db_file = Path(path + Database.FILE_NAME)
    if not db_file.exists():
        raise DatabaseNotFoundError(
            f"Database not found: {db_file}\n"
            f"Create it first:\n"
            f"  dbquickly init --path {path}"
        )
    return Database(path=path)


def _find_cluster(db, identifier, by_id=False):
    cluster = (
        db.get_cluster_by_id(identifier)
        if by_id
        else db.get_cluster_by_name(identifier)
    )
    if cluster is None:
        raise LookupError(f"Cluster not found: {identifier}")
    return cluster


def _load_schema(path):
    if not path:
        return None
    from .schema import load_schema_yaml

    return load_schema_yaml(path)


def cmd_init(args):
    """Create the database file."""
    from .database import Database

    db = Database(args.name, args.description, args.path, args.override)
    print(json.dumps({"file": str(db.file_path), "override": args.override}, indent=2))


def cmd_info(args):
    """Print database metadata and cluster sizes."""
    from .storage import load_json

    db = _open_db(args)
    state = load_json(db.file_path)
    clusters = db.get_all_clusters()
    info = {
        "name": state.get("name"),
        "description": state.get("description"),
        "file": str(db.file_path),
        "total_records": sum(len(c.data) for c in clusters),
        "clusters": {c.name: {"_id": c.id, "record_count": len(c.data)} for c in clusters},
    }
    print(json.dumps(info, indent=2, ensure_ascii=False))


def cmd_clusters(args):
    """List clusters."""
    db = _open_db(args)
    rows = [
        {
            "_id": c.id,
            "name": c.name,
            "description": c.description,
            "record_count": len(c.data),
        }
        for c in db.get_all_clusters()
    ]
    print(json.dumps(rows, indent=2, ensure_ascii=False))


def cmd_add_cluster(args):
    """Add an empty cluster."""
    from .cluster import Cluster

    db = _open_db(args)
    if db.get_cluster_by_name(args.name) is not None:
        raise ValueError(f"Cluster already exists: {args.name}")
    cluster = Cluster(args.name, args.description)
    db.add_cluster(cluster)
    print(json.dumps({"_id": cluster.id, "name": cluster.name}, indent=2))


def cmd_get_cluster(args):
    """Print one cluster with its records."""
    db = _open_db(args)
    cluster = _find_cluster(db, args.cluster, by_id=args.by_id)
    print(json.dumps(cluster.to_dict(), indent=2, ensure_ascii=False))


def cmd_delete_cluster(args):
    """Delete a cluster."""
    db = _open_db(args)
    cluster = _find_cluster(db, args.cluster, by_id=args.by_id)
    remaining = db.delete_cluster_by_id(cluster.id)
    print(json.dumps({"deleted": cluster.id, "remaining": len(remaining)}, indent=2))


def cmd_insert(args):
    """Insert one JSON value into a cluster."""
    value = json.loads(args.value)
    schema = _load_schema(args.schema)
    if schema is not None:
        if not isinstance(value, dict):
            raise ValueError("Only JSON objects can be validated against a schema")
        result = schema.validate_data(value)
        if not result:
            raise ValueError(f"{result.error.type.value}: {result.error.message}")

    db = _open_db(args)
    cluster = _find_cluster(db, args.cluster)
    cluster.insert_data(value)
    db.update_cluster_by_id(cluster.id, cluster)
    print(json.dumps({"cluster": cluster.name, "record_count": len(cluster.data)}, indent=2))


def cmd_import(args):
    """Import a JSONL file into a cluster, one record per line."""
    from .storage import iter_jsonl

    schema = _load_schema(args.schema)
    db = _open_db(args)
    cluster = _find_cluster(db, args.cluster)

    imported = 0
    rejected = []
    for row in iter_jsonl(args.input):
        if schema is not None:
            result = schema.validate_data(row)
            if not result:
                rejected.append(result.error.to_dict())
                continue
        cluster.insert_data(row)
        imported += 1

    db.update_cluster_by_id(cluster.id, cluster)
    output = {"cluster": cluster.name, "imported": imported, "rejected": len(rejected)}
    if rejected:
        output["errors"] = rejected
    print(json.dumps(output, indent=2, ensure_ascii=False))


def cmd_validate(args):
    """Validate a JSON object against a YAML schema."""
    schema = _load_schema(args.schema)
    record = json.loads(args.value)
    if not isinstance(record, dict):
        raise ValueError("Only JSON objects can be validated against a schema")
    result = schema.validate_data(record)
    print(json.dumps(result.to_dict(), indent=2))
    if not result:
        sys.exit(1)


def main():
    try:
        settings = get_settings()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--path",
        default=settings.path,
        help="Directory holding db-quickly.json (env DBQUICKLY_PATH)",
    )
    common.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )

    parser = argparse.ArgumentParser(
        prog="dbquickly",
        description="JSON file document store with schema validation.",
    )
    parser.add_argument(
        "--version", action="version", version=f"dbquickly {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command")

    # init
    p_init = subparsers.add_parser("init", parents=[common], help="Create the database file")
    p_init.add_argument("--name", default=None, help="Database name")
    p_init.add_argument("--description", default=None, help="Database description")
    p_init.add_argument(
        "--override", action="store_true", help="Reset an existing database"
    )
    p_init.set_defaults(func=cmd_init)

    # info
    p_info = subparsers.add_parser("info", parents=[common], help="Show database info")
    p_info.set_defaults(func=cmd_info)

    # clusters
    p_clusters = subparsers.add_parser("clusters", parents=[common], help="List clusters")
    p_clusters.set_defaults(func=cmd_clusters)

    # add-cluster
    p_add = subparsers.add_parser("add-cluster", parents=[common], help="Add a cluster")
    p_add.add_argument("name", help="Cluster name")
    p_add.add_argument("--description", default="", help="Cluster description")
    p_add.set_defaults(func=cmd_add_cluster)

    # get-cluster
    p_get = subparsers.add_parser("get-cluster", parents=[common], help="Show a cluster")
    p_get.add_argument("cluster", help="Cluster name (or id with --by-id)")
    p_get.add_argument("--by-id", action="store_true", help="Look up by id")
    p_get.set_defaults(func=cmd_get_cluster)

    # delete-cluster
    p_delete = subparsers.add_parser(
        "delete-cluster", parents=[common], help="Delete a cluster"
    )
    p_delete.add_argument("cluster", help="Cluster name (or id with --by-id)")
    p_delete.add_argument("--by-id", action="store_true", help="Look up by id")
    p_delete.set_defaults(func=cmd_delete_cluster)

    # insert
    p_insert = subparsers.add_parser(
        "insert", parents=[common], help="Insert a JSON value into a cluster"
    )
    p_insert.add_argument("cluster", help="Cluster name")
    p_insert.add_argument("value", help="JSON value")
    p_insert.add_argument("--schema", help="YAML schema to validate against")
    p_insert.set_defaults(func=cmd_insert)

    # import
    p_import = subparsers.add_parser(
        "import", parents=[common], help="Import a JSONL file into a cluster"
    )
    p_import.add_argument("cluster", help="Cluster name")
    p_import.add_argument("input", help="JSONL file")
    p_import.add_argument("--schema", help="YAML schema; invalid rows are skipped")
    p_import.set_defaults(func=cmd_import)

    # validate
    p_validate = subparsers.add_parser(
        "validate", help="Validate a JSON object against a YAML schema"
    )
    p_validate.add_argument("schema", help="YAML schema file")
    p_validate.add_argument("value", help="JSON object")
    p_validate.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    p_validate.set_defaults(func=cmd_validate)

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        args.func(args)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except LookupError as e:
        print(f"Error: {e.args[0]}", file=sys.stderr)
        sys.exit(1)
    except UnicodeDecodeError:
        print("Error: File is not valid UTF-8 text (is it a binary file?)", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
