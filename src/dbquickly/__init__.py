"""dbquickly: JSON file document store with schema validation."""

import logging

__version__ = "0.1.0"

from .storage import load_json, save_json, iter_jsonl, generate_id
from .cluster import Cluster
from .schema import (
    SchemaType,
    SchemaItem,
    Schema,
    ErrorType,
    ValidationError,
    ValidationResult,
    create_schema,
    load_schema_yaml,
    save_schema_yaml,
)
from .database import Database, DatabaseNotFoundError

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "load_json",
    "save_json",
    "iter_jsonl",
    "generate_id",
    "Cluster",
    "SchemaType",
    "SchemaItem",
    "Schema",
    "ErrorType",
    "ValidationError",
    "ValidationResult",
    "create_schema",
    "load_schema_yaml",
    "save_schema_yaml",
    "Database",
    "DatabaseNotFoundError",
]
