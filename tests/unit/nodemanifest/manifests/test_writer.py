"""Tests for manifest artifact paths and writes."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from nodemanifest.errors import ManifestWriteError
from nodemanifest.manifests.writer import ArtifactWriter, manifest_file_path
from nodemanifest.models import Page, PendingManifest
from nodemanifest.types import FoundPageBy


def _manifest(plugin: str = "cms", manifest_id: str = "42", **node) -> PendingManifest:
    return PendingManifest(plugin_name=plugin, manifest_id=manifest_id, node={"id": "1", **node})


class TestManifestFilePath:
    def test_layout(self, tmp_path: Path):
        assert manifest_file_path(tmp_path, "cms", "42") == tmp_path / "cms" / "42.json"

    @pytest.mark.parametrize("bad", ["", ".", "..", "a/b", "a\\b"])
    def test_unsafe_manifest_id(self, tmp_path: Path, bad):
        with pytest.raises(ManifestWriteError):
            manifest_file_path(tmp_path, "cms", bad)

    def test_unsafe_plugin_name(self, tmp_path: Path):
        with pytest.raises(ManifestWriteError):
            manifest_file_path(tmp_path, "../escape", "1")


class TestArtifactWriter:
    def test_write_creates_plugin_dir(self, tmp_path: Path):
        writer = ArtifactWriter(tmp_path / "node-manifests")

        path = writer.write(_manifest(title="T"), "/post", FoundPageBy.OWNER_NODE_ID)

        assert path == tmp_path / "node-manifests" / "cms" / "42.json"
        assert json.loads(path.read_text()) == {
            "foundPageBy": "owner-node-id",
            "node": {"id": "1", "title": "T"},
            "page": {"path": "/post"},
        }

    def test_output_is_deterministic(self, tmp_path: Path):
        writer = ArtifactWriter(tmp_path)
        path = writer.write(_manifest(b=2, a=1), "/post", FoundPageBy.CONTEXT_ID)
        first = path.read_bytes()

        writer.write(_manifest(a=1, b=2), "/post", FoundPageBy.CONTEXT_ID)

        assert path.read_bytes() == first
        assert first.endswith(b"\n")

    def test_os_error_wrapped(self, tmp_path: Path):
        writer = ArtifactWriter(tmp_path)
        with patch("nodemanifest.manifests.writer.write_json_file", side_effect=OSError("boom")):
            with pytest.raises(ManifestWriteError, match="boom"):
                writer.write(_manifest(), "/post", FoundPageBy.OWNER_NODE_ID)

    def test_no_temp_files_left(self, tmp_path: Path):
        writer = ArtifactWriter(tmp_path)
        writer.write(_manifest(), "/post", FoundPageBy.OWNER_NODE_ID)

        assert [p.name for p in (tmp_path / "cms").iterdir()] == ["42.json"]

    def test_resolved_page_fields_recorded(self, tmp_path: Path):
        writer = ArtifactWriter(tmp_path)
        page = Page.model_validate({"path": "/post", "context": {"id": "1", "slug": "post"}})

        path = writer.write(_manifest(), "/post", FoundPageBy.CONTEXT_ID, page)

        assert json.loads(path.read_text())["page"] == {
            "path": "/post",
            "context": {"id": "1", "slug": "post"},
        }
