"""Clusters: named, identified bags of arbitrary values."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

from .storage import generate_id

Displayable = Union[str, int, float, bool]


def to_display_string(value: Displayable) -> str:
    """Render a name or description as text."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass
class Cluster:
    """A named collection of records.

    Records are stored in insertion order and may be any JSON value.
    """

    name: Displayable
    description: Displayable
    data: List[Any] = field(default_factory=list)
    id: str = field(default_factory=generate_id)

    def __post_init__(self):
        self.name = to_display_string(self.name)
        self.description = to_display_string(self.description)

    def create_cluster(self, name: Displayable, description: Displayable) -> "Cluster":
        return Cluster(name, description)

    def insert_data(self, value: Any) -> None:
        self.data.append(value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "name": self.name,
            "description": self.description,
            "data": list(self.data),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Cluster":
        """Rebuild a cluster from its stored form, keeping its id."""
        return cls(
            name=data.get("name", ""),
            description=data.get("description", ""),
            data=list(data.get("data") or []),
            id=data["_id"],
        )
