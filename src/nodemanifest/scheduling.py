"""
When to run a node manifest batch.

Query tracking is only complete once every page query has run.  Full builds
(``query_tracking_complete=True``) therefore run a single batch at the end of
the build.  Incremental and development sessions never have complete tracking,
so they run a batch at every milestone and rely on later batches to pick up
manifests enqueued since.  The resolver itself ignores the mode.
"""

from __future__ import annotations

import logging
from typing import Optional

from nodemanifest.config import NodeManifestConfig, get_config
from nodemanifest.manifests.processor import BatchSummary, NodeManifestProcessor
from nodemanifest.queue import ManifestQueue
from nodemanifest.registry.base import Registry
from nodemanifest.reporter import Reporter
from nodemanifest.types import BuildMilestone

logger = logging.getLogger(__name__)


def should_process_manifests(
    milestone: BuildMilestone, query_tracking_complete: bool
) -> bool:
    """Decide whether a batch runs at *milestone* in the given build mode."""
    if query_tracking_complete:
        return milestone is BuildMilestone.BUILD_END
    return True


def maybe_process_node_manifests(
    milestone: BuildMilestone,
    registry: Registry,
    queue: ManifestQueue,
    reporter: Optional[Reporter] = None,
    config: Optional[NodeManifestConfig] = None,
) -> Optional[BatchSummary]:
    """Run a batch if the build mode allows one at *milestone*.

    Returns:
        The batch summary, or ``None`` when no batch ran.
    """
    config = config or get_config()
    if not should_process_manifests(milestone, config.query_tracking_complete):
        logger.debug(
            "Skipping node manifests at %s: waiting for complete query tracking",
            milestone.value,
        )
        return None
    return NodeManifestProcessor(registry, queue, reporter=reporter, config=config).process()
