"""JSON file database of clusters."""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .cluster import Cluster
from .storage import load_json, save_json

logger = logging.getLogger(__name__)

DEFAULT_NAME = "default-name"
DEFAULT_DESCRIPTION = "Default description"
DEFAULT_PATH = "./"


class DatabaseNotFoundError(FileNotFoundError):
    """The backing file is missing when an operation needs it."""


class Database:
    """Clusters persisted to a single JSON file.

    The file is the source of truth. Every operation loads it, applies the
    change to the loaded clusters, writes it back when something changed and
    then refreshes ``self.clusters`` from the result. There is no locking:
    concurrent writers race and the last one wins.
    """

    FILE_NAME = "db-quickly.json"

    def __init__(
        self,
        name: Optional[str] = None,
        description: Optional[str] = None,
        path: Optional[str] = None,
        override: bool = False,
    ):
        self.name = name or DEFAULT_NAME
        self.description = description or DEFAULT_DESCRIPTION
        self.path = normalize_path(path)
        self.clusters: List[Cluster] = []

        if override or load_json(self.file_path) is None:
            logger.debug("Initializing %s", self.file_path)
            save_json(self.file_path, self.to_dict())

    @property
    def file_path(self) -> Path:
        return Path(self.path + self.FILE_NAME)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "path": self.path,
            "FILE_NAME": self.FILE_NAME,
            "clusters": [c.to_dict() for c in self.clusters],
        }

    def _load(self) -> Dict[str, Any]:
        state = load_json(self.file_path)
        if state is None:
            raise DatabaseNotFoundError(f"Database not found: {self.file_path}")
        return state

    def _read(self) -> List[Cluster]:
        state = self._load()
        self.clusters = [Cluster.from_dict(c) for c in state.get("clusters", [])]
        return list(self.clusters)

    def _write(self, mutate: Callable[[List[Cluster]], List[Cluster]]) -> List[Cluster]:
        """Load, apply ``mutate`` to the stored clusters and save the result."""
        state = self._load()
        clusters = [Cluster.from_dict(c) for c in state.get("clusters", [])]
        clusters = mutate(clusters)
        state["clusters"] = [c.to_dict() for c in clusters]
        save_json(self.file_path, state)
        self.clusters = [Cluster.from_dict(c) for c in state["clusters"]]
        return list(self.clusters)

    def add_cluster(self, cluster: Cluster) -> None:
        logger.debug("Adding cluster %s (%s)", cluster.name, cluster.id)
        self._write(lambda clusters: clusters + [cluster])

    def get_cluster_by_id(self, id: str) -> Optional[Cluster]:
        return next((c for c in self._read() if c.id == id), None)

    def get_cluster_by_name(self, name: str) -> Optional[Cluster]:
        return next((c for c in self._read() if c.name == name), None)

    def get_all_clusters(self) -> List[Cluster]:
        return self._read()

    def delete_cluster_by_id(self, id: str) -> List[Cluster]:
        logger.debug("Deleting cluster id=%s", id)
        return self._write(lambda clusters: [c for c in clusters if c.id != id])

    def delete_cluster_by_name(self, name: str) -> List[Cluster]:
        logger.debug("Deleting cluster name=%s", name)
        return self._write(lambda clusters: [c for c in clusters if c.name != name])

    def update_cluster_by_id(self, id: str, cluster: Cluster) -> List[Cluster]:
        logger.debug("Updating cluster id=%s", id)
        return self._write(
            lambda clusters: _replace_first(clusters, lambda c: c.id == id, cluster)
        )

    def update_cluster_by_name(self, name: str, cluster: Cluster) -> List[Cluster]:
        logger.debug("Updating cluster name=%s", name)
        return self._write(
            lambda clusters: _replace_first(clusters, lambda c: c.name == name, cluster)
        )


def _replace_first(
    clusters: List[Cluster], match: Callable[[Cluster], bool], cluster: Cluster
) -> List[Cluster]:
    """Swap the first cluster satisfying ``match`` for ``cluster``."""
    index = next((i for i, c in enumerate(clusters) if match(c)), None)
    if index is not None:
        clusters[index] = cluster
    return clusters


def normalize_path(path: Optional[str]) -> str:
    """Return ``path`` ending in ``/``; empty or None becomes ``./``."""
    if not path:
        return DEFAULT_PATH
    path = str(path)
    if not path.endswith("/"):
        path += "/"
    return path
