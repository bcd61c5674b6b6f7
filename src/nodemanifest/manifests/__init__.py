"""
Node page manifests: resolve nodes to pages and write preview manifests.

Public API::

    from nodemanifest.manifests import (
        # Resolver
        PageIndex,
        PageResolution,
        resolve_page_for_node,
        # Diagnostics
        warn_about_mapping_problems,
        # Writer
        ArtifactWriter,
        manifest_file_path,
        # Processor
        NodeManifestProcessor,
        ManifestOutcome,
        OutcomeStatus,
        BatchSummary,
        process_node_manifests,
    )
"""

from nodemanifest.manifests.diagnostics import warn_about_mapping_problems
from nodemanifest.manifests.processor import (
    BatchSummary,
    ManifestOutcome,
    NodeManifestProcessor,
    OutcomeStatus,
    process_node_manifests,
)
from nodemanifest.manifests.resolver import (
    PageIndex,
    PageResolution,
    resolve_page_for_node,
)
from nodemanifest.manifests.writer import ArtifactWriter, manifest_file_path

__all__ = [
    # Resolver
    "PageIndex",
    "PageResolution",
    "resolve_page_for_node",
    # Diagnostics
    "warn_about_mapping_problems",
    # Writer
    "ArtifactWriter",
    "manifest_file_path",
    # Processor
    "NodeManifestProcessor",
    "ManifestOutcome",
    "OutcomeStatus",
    "BatchSummary",
    "process_node_manifests",
]
