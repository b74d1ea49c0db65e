"""Schema definitions and record validation."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

from .cluster import Displayable, to_display_string
from .storage import generate_id

logger = logging.getLogger(__name__)


class SchemaType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    ARRAY = "array"
    OBJECT = "object"
    OBJECT_ID = "objectId"
    MIXED = "mixed"


class ErrorType(str, Enum):
    MISSING_KEY = "MISSING_KEY"
    MISSING_VALUE = "MISSING_VALUE"
    INVALID_TYPE = "INVALID_TYPE"


# Runtime kinds accepted by each declared type. Types mapped to an empty
# set are not validated yet and never match.
_MATCHES = {
    SchemaType.STRING: {"string"},
    SchemaType.NUMBER: {"number"},
    SchemaType.BOOLEAN: {"boolean"},
    SchemaType.OBJECT: {"object", "array", "null"},
    SchemaType.DATE: set(),
    SchemaType.ARRAY: set(),
    SchemaType.OBJECT_ID: set(),
    SchemaType.MIXED: set(),
}


class ValidationError(Exception):
    """A single schema violation."""

    def __init__(self, message: str, type: ErrorType):
        super().__init__(message)
        self.message = message
        self.type = type

    def to_dict(self) -> Dict[str, str]:
        return {"type": self.type.value, "message": self.message}


@dataclass
class ValidationResult:
    success: bool
    error: Optional[ValidationError] = None

    def __bool__(self) -> bool:
        return self.success

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"success": self.success}
        if self.error is not None:
            d["error"] = self.error.to_dict()
        return d


@dataclass
class SchemaItem:
    """Descriptor for one field of a record."""

    name: str
    type: SchemaType
    required: bool = False

    def __post_init__(self):
        self.type = SchemaType(self.type)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "type": self.type.value, "required": self.required}


def runtime_type(value: Any) -> str:
    """Classify a decoded JSON value."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    return "object"


def type_matches(declared: SchemaType, value: Any) -> bool:
    accepted = _MATCHES[declared]
    if not accepted:
        logger.warning("Schema type %r is not validated yet", declared.value)
    return runtime_type(value) in accepted


def _is_blank(value: Any) -> bool:
    """None, "", 0, False and NaN carry no value. Containers always do."""
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (int, float)):
        return value == 0 or value != value
    return False


@dataclass
class Schema:
    """An ordered list of field descriptors used to validate records.

    Required fields are checked first in declared order, then optional
    fields. Validation stops at the first violation.
    """

    name: Displayable
    description: Displayable
    data: List[SchemaItem] = field(default_factory=list)
    id: str = field(default_factory=generate_id)

    def __post_init__(self):
        self.name = to_display_string(self.name)
        self.description = to_display_string(self.description)

    def create_schema(
        self, name: Displayable, description: Displayable, schema: List[SchemaItem]
    ) -> "Schema":
        return Schema(name, description, schema)

    def new_item(
        self, name: str, type: Union[SchemaType, str], required: bool
    ) -> SchemaItem:
        return SchemaItem(name=name, type=SchemaType(type), required=required)

    def validate_data(
        self, record: Mapping[str, Any], schema: Optional["Schema"] = None
    ) -> ValidationResult:
        """Check a record against this schema, or against `schema` if given."""
        if not isinstance(record, Mapping):
            raise TypeError(
                f"Record must be a mapping, got {type(record).__name__}"
            )
        items = schema.data if schema is not None else self.data
        required = [item for item in items if item.required]
        optional = [item for item in items if not item.required]

        for item in required:
            if item.name not in record:
                return _failure(
                    f"Missing required field: {item.name}", ErrorType.MISSING_KEY
                )
            value = record[item.name]
            if not type_matches(item.type, value):
                return _failure(
                    f"Invalid type for the required field: {item.name}",
                    ErrorType.INVALID_TYPE,
                )
            if _is_blank(value):
                return _failure(
                    f"Missing value for the required field: {item.name}",
                    ErrorType.MISSING_VALUE,
                )

        for item in optional:
            if item.name in record and not type_matches(item.type, record[item.name]):
                return _failure(
                    f"Invalid type for the optional field: {item.name}",
                    ErrorType.INVALID_TYPE,
                )

        return ValidationResult(success=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "name": self.name,
            "description": self.description,
            "data": [item.to_dict() for item in self.data],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Schema":
        """Build a schema from a dict.

        Entries without a name or with an unknown type raise ValueError.
        """
        items = []
        for index, entry in enumerate(data.get("data") or []):
            if not isinstance(entry, dict) or "name" not in entry:
                raise ValueError(f"Schema entry {index} has no 'name'")
            try:
                field_type = SchemaType(entry.get("type", SchemaType.MIXED.value))
            except ValueError:
                raise ValueError(
                    f"Schema entry {entry['name']!r} has unknown type {entry.get('type')!r}"
                ) from None
            items.append(
                SchemaItem(
                    name=str(entry["name"]),
                    type=field_type,
                    required=bool(entry.get("required", False)),
                )
            )
        kwargs = {}
        if data.get("_id"):
            kwargs["id"] = str(data["_id"])
        return cls(
            name=data.get("name", ""),
            description=data.get("description", ""),
            data=items,
            **kwargs,
        )


def _failure(message: str, error_type: ErrorType) -> ValidationResult:
    logger.debug("Validation failed: %s", message)
    return ValidationResult(success=False, error=ValidationError(message, error_type))


def create_schema(
    name: Displayable, description: Displayable, schema: List[SchemaItem]
) -> Schema:
    return Schema(name, description, schema)


def save_schema_yaml(schema: Schema, path: Union[str, Path]) -> None:
    """Write a schema definition to a YAML file."""
    path = Path(path)
    header = "# dbquickly schema definition\n"
    body = yaml.dump(
        schema.to_dict(),
        default_flow_style=False,
        allow_unicode=True,
        sort_keys=False,
    )
    path.write_text(header + body, encoding="utf-8")


def load_schema_yaml(path: Union[str, Path]) -> Schema:
    """Load a schema definition from a YAML file.

    Malformed YAML or schema entries raise ValueError naming the file.
    """
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValueError(f"{path} is not valid YAML: {e}") from None
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain a schema mapping")
    try:
        return Schema.from_dict(data)
    except ValueError as e:
        raise ValueError(f"{path}: {e}") from None
