"""
Pending node manifest queues.

Plugins enqueue requests with ``create_node_manifest()``.  A batch reads the
queue once with ``snapshot_pending()`` and, after every entry has been
handled, commits with ``clear_processed()``.  The commit removes exactly the
entries captured by the last snapshot: requests enqueued (or replaced) while
the batch was running stay pending for the next batch.

Manifest ids are unique per plugin.  Enqueuing an existing
(``pluginName``, ``manifestId``) pair replaces the earlier request but keeps
its position in the queue.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Protocol, Union, runtime_checkable

from pydantic import ValidationError

from nodemanifest.fsutil import ensure_directory, file_lock, read_json_file, write_json_file
from nodemanifest.models import Node, PendingManifest

logger = logging.getLogger(__name__)


@runtime_checkable
class ManifestQueue(Protocol):
    """Snapshot read and atomic commit over pending manifests."""

    def snapshot_pending(self) -> tuple[PendingManifest, ...]: ...

    def clear_processed(self) -> None: ...


def _build_manifest(
    plugin_name: str,
    manifest_id: Any,
    node: Union[Node, dict[str, Any]],
    updated_at_utc: Optional[datetime],
) -> PendingManifest:
    return PendingManifest(
        plugin_name=plugin_name,
        manifest_id=manifest_id,
        node=node if isinstance(node, Node) else Node.model_validate(node),
        updated_at_utc=updated_at_utc,
    )


class InMemoryManifestQueue:
    """Thread-safe in-process queue."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[tuple[str, str], PendingManifest] = {}
        self._snapshot: tuple[PendingManifest, ...] = ()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def enqueue(self, manifest: PendingManifest) -> PendingManifest:
        with self._lock:
            if manifest.key in self._entries:
                logger.debug("Replacing pending manifest %s/%s", *manifest.key)
            self._entries[manifest.key] = manifest
        return manifest

    def create_node_manifest(
        self,
        plugin_name: str,
        manifest_id: Any,
        node: Union[Node, dict[str, Any]],
        updated_at_utc: Optional[datetime] = None,
    ) -> PendingManifest:
        """Enqueue a manifest request on behalf of *plugin_name*."""
        return self.enqueue(_build_manifest(plugin_name, manifest_id, node, updated_at_utc))

    def snapshot_pending(self) -> tuple[PendingManifest, ...]:
        with self._lock:
            self._snapshot = tuple(self._entries.values())
            return self._snapshot

    def clear_processed(self) -> None:
        with self._lock:
            for manifest in self._snapshot:
                if self._entries.get(manifest.key) is manifest:
                    del self._entries[manifest.key]
            cleared = len(self._snapshot)
            self._snapshot = ()
        logger.debug("Cleared %d processed manifests", cleared)


class FileManifestQueue:
    """
    Queue persisted as a JSON list, shared between processes.

    Every read-modify-write holds an exclusive lock on ``<path>.lock`` and
    replaces the file atomically.  Entries are validated one at a time: an
    entry that is not a valid manifest is logged, left out of the snapshot,
    and removed by the next ``clear_processed()``.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._snapshot: dict[tuple[str, str], dict[str, Any]] = {}
        self._snapshot_invalid: list[Any] = []

    def _load(self) -> list[Any]:
        return list(read_json_file(self.path, default=[]))

    @staticmethod
    def _validate(item: Any) -> Optional[PendingManifest]:
        try:
            return PendingManifest.model_validate(item)
        except ValidationError:
            return None

    def _write(self, items: list[Any]) -> None:
        ensure_directory(self.path.parent)
        write_json_file(self.path, items)

    def __len__(self) -> int:
        with file_lock(self.path, exclusive=False):
            return len(self._load())

    def enqueue(self, manifest: PendingManifest) -> PendingManifest:
        entry = manifest.model_dump(mode="json", by_alias=True)
        with file_lock(self.path):
            items = self._load()
            for position, item in enumerate(items):
                existing = self._validate(item)
                if existing is not None and existing.key == manifest.key:
                    items[position] = entry
                    break
            else:
                items.append(entry)
            self._write(items)
        logger.debug("Enqueued manifest %s/%s in %s", *manifest.key, self.path)
        return manifest

    def create_node_manifest(
        self,
        plugin_name: str,
        manifest_id: Any,
        node: Union[Node, dict[str, Any]],
        updated_at_utc: Optional[datetime] = None,
    ) -> PendingManifest:
        """Enqueue a manifest request on behalf of *plugin_name*."""
        return self.enqueue(_build_manifest(plugin_name, manifest_id, node, updated_at_utc))

    def snapshot_pending(self) -> tuple[PendingManifest, ...]:
        with file_lock(self.path, exclusive=False):
            items = self._load()

        manifests: list[PendingManifest] = []
        self._snapshot = {}
        self._snapshot_invalid = []
        for item in items:
            try:
                manifest = PendingManifest.model_validate(item)
            except ValidationError as e:
                logger.warning(
                    "Dropping invalid pending manifest %r from %s: %d validation error(s): %s",
                    item,
                    self.path,
                    e.error_count(),
                    e,
                )
                self._snapshot_invalid.append(item)
                continue
            manifests.append(manifest)
            self._snapshot[manifest.key] = manifest.model_dump(mode="json")
        return tuple(manifests)

    def clear_processed(self) -> None:
        with file_lock(self.path):
            remaining = []
            for item in self._load():
                manifest = self._validate(item)
                if manifest is None:
                    if item in self._snapshot_invalid:
                        continue
                elif self._snapshot.get(manifest.key) == manifest.model_dump(mode="json"):
                    continue
                remaining.append(item)
            self._write(remaining)
        logger.debug(
            "Cleared %d processed manifests and %d invalid entries, %d still pending",
            len(self._snapshot),
            len(self._snapshot_invalid),
            len(remaining),
        )
        self._snapshot = {}
        self._snapshot_invalid = []
