"""
Manifest artifact paths and writes.

Artifacts live at ``<cache-root>/node-manifests/<pluginName>/<manifestId>.json``.
The path depends only on the plugin name and manifest id, and the content
only on the manifest and its resolution, so rewriting the same inputs
produces a byte-identical file.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from nodemanifest.errors import ManifestWriteError
from nodemanifest.fsutil import ensure_directory, write_json_file
from nodemanifest.models import ManifestArtifact, Page, PendingManifest
from nodemanifest.types import FoundPageBy, PagePath

logger = logging.getLogger(__name__)

_UNSAFE_SEGMENTS = {"", ".", ".."}


def _check_segment(kind: str, value: str) -> None:
    if value in _UNSAFE_SEGMENTS or "/" in value or "\\" in value or "\x00" in value:
        raise ManifestWriteError(value, f"{kind} {value!r} is not a valid file name")


def manifest_file_path(manifest_root: Path, plugin_name: str, manifest_id: str) -> Path:
    """Deterministic artifact path for a plugin's manifest id.

    Raises:
        ManifestWriteError: If either segment would escape the plugin directory.
    """
    _check_segment("pluginName", plugin_name)
    _check_segment("manifestId", manifest_id)
    return manifest_root / plugin_name / f"{manifest_id}.json"


class ArtifactWriter:
    """Writes manifest artifacts below *manifest_root* (``<cache>/node-manifests``)."""

    def __init__(self, manifest_root: Path):
        self.manifest_root = Path(manifest_root)

    def path_for(self, manifest: PendingManifest) -> Path:
        return manifest_file_path(
            self.manifest_root, manifest.plugin_name, manifest.manifest_id
        )

    def write(
        self,
        manifest: PendingManifest,
        page_path: PagePath,
        found_page_by: FoundPageBy,
        page: Optional[Page] = None,
    ) -> Path:
        """Build and write the artifact for a resolved manifest.

        *page* is the resolved registry page, if there is one.  Its fields are
        recorded in the artifact next to the path.

        Returns:
            The path written.

        Raises:
            ManifestWriteError: On an unsafe path, a serialization failure or
                an OS error.
        """
        path = self.path_for(manifest)
        artifact = ManifestArtifact.build(manifest, page_path, found_page_by, page)
        try:
            ensure_directory(path.parent)
            write_json_file(path, artifact.to_json_dict())
        except (OSError, TypeError, ValueError) as e:
            raise ManifestWriteError(path, str(e)) from e

        logger.debug(
            "Wrote node manifest %s for node %s -> %s (%s)",
            path,
            manifest.node_id,
            page_path,
            found_page_by.value,
        )
        return path
