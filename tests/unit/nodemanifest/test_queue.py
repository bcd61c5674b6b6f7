"""Tests for pending manifest queues."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from nodemanifest.queue import FileManifestQueue, InMemoryManifestQueue, ManifestQueue


class TestInMemoryQueue:
    def test_satisfies_protocol(self):
        assert isinstance(InMemoryManifestQueue(), ManifestQueue)

    def test_snapshot_in_enqueue_order(self, queue):
        queue.create_node_manifest("a", "1", {"id": "n1"})
        queue.create_node_manifest("b", "1", {"id": "n2"})

        snapshot = queue.snapshot_pending()

        assert [m.key for m in snapshot] == [("a", "1"), ("b", "1")]

    def test_same_key_replaces_in_place(self, queue):
        queue.create_node_manifest("a", "1", {"id": "old"})
        queue.create_node_manifest("a", "2", {"id": "other"})
        queue.create_node_manifest("a", "1", {"id": "new"})

        snapshot = queue.snapshot_pending()

        assert [m.node_id for m in snapshot] == ["new", "other"]

    def test_numeric_manifest_id_is_a_string(self, queue):
        manifest = queue.create_node_manifest("a", 7, {"id": 8})

        assert manifest.manifest_id == "7"
        assert manifest.node_id == "8"

    def test_clear_processed_removes_snapshot(self, queue):
        queue.create_node_manifest("a", "1", {"id": "n1"})
        queue.snapshot_pending()

        queue.clear_processed()

        assert len(queue) == 0

    def test_clear_keeps_entries_added_after_snapshot(self, queue):
        queue.create_node_manifest("a", "1", {"id": "n1"})
        queue.snapshot_pending()
        queue.create_node_manifest("a", "2", {"id": "n2"})
        queue.create_node_manifest("a", "1", {"id": "replaced"})

        queue.clear_processed()

        assert [m.node_id for m in queue.snapshot_pending()] == ["replaced", "n2"]

    def test_clear_without_snapshot_is_noop(self, queue):
        queue.create_node_manifest("a", "1", {"id": "n1"})

        queue.clear_processed()

        assert len(queue) == 1


class TestFileQueue:
    @pytest.fixture
    def path(self, tmp_path: Path) -> Path:
        return tmp_path / ".cache" / "node-manifests-pending.json"

    def test_missing_file_is_empty(self, path):
        assert FileManifestQueue(path).snapshot_pending() == ()

    def test_persists_across_instances(self, path):
        updated = datetime(2024, 5, 1, tzinfo=timezone.utc)
        FileManifestQueue(path).create_node_manifest("cms", "1", {"id": "n1"}, updated)

        snapshot = FileManifestQueue(path).snapshot_pending()

        assert [m.key for m in snapshot] == [("cms", "1")]
        assert snapshot[0].updated_at_utc == updated
        raw = json.loads(path.read_text())
        assert raw[0]["pluginName"] == "cms"
        assert raw[0]["updatedAtUTC"].startswith("2024-05-01")

    def test_replace_same_key(self, path):
        queue = FileManifestQueue(path)
        queue.create_node_manifest("cms", "1", {"id": "old"})
        queue.create_node_manifest("cms", "1", {"id": "new"})

        assert len(queue) == 1
        assert queue.snapshot_pending()[0].node_id == "new"

    def test_clear_keeps_later_entries(self, path):
        processing = FileManifestQueue(path)
        processing.create_node_manifest("cms", "1", {"id": "n1"})
        processing.create_node_manifest("cms", "2", {"id": "n2"})
        processing.snapshot_pending()

        plugin = FileManifestQueue(path)
        plugin.create_node_manifest("cms", "2", {"id": "changed"})
        plugin.create_node_manifest("cms", "3", {"id": "n3"})

        processing.clear_processed()

        assert [m.node_id for m in FileManifestQueue(path).snapshot_pending()] == [
            "changed",
            "n3",
        ]

    def test_invalid_entry_is_skipped_and_cleared(self, path, caplog):
        queue = FileManifestQueue(path)
        queue.create_node_manifest("cms", "1", {"id": "n1"})
        entries = json.loads(path.read_text())
        entries.append({"pluginName": "cms", "manifestId": "2", "node": {"title": "no id"}})
        path.write_text(json.dumps(entries))

        with caplog.at_level("WARNING", logger="nodemanifest.queue"):
            snapshot = queue.snapshot_pending()

        assert [m.key for m in snapshot] == [("cms", "1")]
        assert "Dropping invalid pending manifest" in caplog.text
        assert len(queue) == 2

        queue.clear_processed()

        assert len(queue) == 0

    def test_enqueue_keeps_invalid_entries_until_cleared(self, path):
        path.parent.mkdir(parents=True)
        path.write_text(json.dumps([{"pluginName": "cms", "node": {"id": "n1"}}]))
        queue = FileManifestQueue(path)

        queue.create_node_manifest("cms", "1", {"id": "n1"})

        assert len(queue) == 2
        assert [m.key for m in queue.snapshot_pending()] == [("cms", "1")]
