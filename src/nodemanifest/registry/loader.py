"""
Registry snapshot loader with per-path caching.

A snapshot file (YAML or JSON) captures registry state for offline runs::

    nodes:
      - id: "1"
        title: Hello
    pages:
      - path: /blog/hello
        ownerNodeId: "1"
      - path: /legacy/hello
        context:
          id: "1"
    query_tracking:
      "1": [/blog/hello, /]

Usage::

    from nodemanifest.registry.loader import RegistrySnapshotLoader

    registry = RegistrySnapshotLoader().load(Path("registry.yaml"))
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, ClassVar

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from nodemanifest.models import Node, Page
from nodemanifest.registry.base import InMemoryRegistry
from nodemanifest.types import normalize_id

logger = logging.getLogger(__name__)


class RegistrySnapshot(BaseModel):
    """Root model for a registry snapshot file."""

    model_config = ConfigDict(extra="forbid")

    nodes: list[Node] = Field(default_factory=list)
    pages: list[Page] = Field(default_factory=list)
    query_tracking: dict[str, list[str]] = Field(default_factory=dict)

    @field_validator("query_tracking", mode="before")
    @classmethod
    def _normalize_tracking_keys(cls, v: Any) -> Any:
        if not isinstance(v, dict):
            return v
        normalized: dict[str, Any] = {}
        for key, paths in v.items():
            node_id = normalize_id(key)
            if node_id is None:
                raise ValueError(f"query_tracking key {key!r} is not a node id")
            normalized[node_id] = paths
        return normalized

    def to_registry(self) -> InMemoryRegistry:
        registry = InMemoryRegistry(nodes=self.nodes, pages=self.pages)
        for node_id, paths in self.query_tracking.items():
            for path in paths:
                registry.track_page_path_on_node(node_id, path)
        return registry


class RegistrySnapshotLoader:
    """Loads and caches registry snapshots from YAML or JSON files."""

    _cache: ClassVar[dict[str, RegistrySnapshot]] = {}

    @classmethod
    def clear_cache(cls) -> None:
        """Clear the snapshot cache (useful in tests)."""
        cls._cache.clear()

    def load_snapshot(self, path: Path) -> RegistrySnapshot:
        """Load a snapshot file.

        Raises:
            FileNotFoundError: If the file does not exist.
            yaml.YAMLError / json.JSONDecodeError: If the file cannot be parsed.
            pydantic.ValidationError: If the document does not match the schema.
        """
        key = str(path.resolve())
        if key in self._cache:
            logger.debug("Registry snapshot cache hit: %s", key)
            return self._cache[key]

        if not path.exists():
            raise FileNotFoundError(f"Registry snapshot not found: {path}")

        with open(path) as fh:
            if path.suffix == ".json":
                raw = json.load(fh)
            else:
                raw = yaml.safe_load(fh)

        snapshot = RegistrySnapshot.model_validate(raw or {})
        self._cache[key] = snapshot

        logger.debug(
            "Loaded registry snapshot: nodes=%d, pages=%d, tracked=%d",
            len(snapshot.nodes),
            len(snapshot.pages),
            len(snapshot.query_tracking),
        )
        return snapshot

    def load(self, path: Path) -> InMemoryRegistry:
        """Load a snapshot file into a fresh ``InMemoryRegistry``."""
        return self.load_snapshot(path).to_registry()

    def load_from_string(self, yaml_str: str) -> InMemoryRegistry:
        """Load a snapshot from a YAML string (convenience for testing)."""
        raw = yaml.safe_load(yaml_str)
        return RegistrySnapshot.model_validate(raw or {}).to_registry()
