"""
Batch processor for pending node manifests.

One call to ``NodeManifestProcessor.process()`` drains the queue:

1. Take a snapshot of the pending manifests.  An empty queue is a no-op:
   nothing is reported and the queue is not touched.
2. Read the registry once: for each distinct node id, whether the node
   exists and which page it resolves to.  Every manifest in the batch uses
   these lookups, so registry writes made while the batch runs are not seen.
3. For each manifest, report a missing node as a warning and skip it.
   Otherwise report mapping problems and write the artifact for every
   resolved manifest.
4. Report one summary line, then clear the whole snapshot from the queue.

Data-shaped problems never abort the batch: each is reported and the manifest
counts as unresolved.  Only ``InvalidInternalStateError`` escapes, and in that
case the queue is left untouched so the batch runs again in full.  There is no
automatic retry of individual manifests.

Usage::

    from nodemanifest.manifests.processor import process_node_manifests

    summary = process_node_manifests(registry, queue)
    summary.written, summary.unresolved
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from nodemanifest.config import NodeManifestConfig, get_config
from nodemanifest.errors import InvalidInternalStateError
from nodemanifest.manifests.diagnostics import (
    manifest_limit_message,
    node_not_found_message,
    report_write_failure,
    summary_message,
    warn_about_mapping_problems,
)
from nodemanifest.manifests.otel import emit_batch_summary, emit_outcome, tracer
from nodemanifest.manifests.resolver import PageIndex, PageResolution, resolve_page_for_node
from nodemanifest.manifests.writer import ArtifactWriter
from nodemanifest.models import PendingManifest
from nodemanifest.queue import ManifestQueue
from nodemanifest.registry.base import Registry
from nodemanifest.reporter import LoggingReporter, Reporter
from nodemanifest.types import FoundPageBy, LogId, NodeId

logger = logging.getLogger(__name__)

_LOW_CONFIDENCE = (FoundPageBy.CONTEXT_ID, FoundPageBy.QUERY_TRACKING)


# ---------------------------------------------------------------------------
# Result models
# ---------------------------------------------------------------------------


class OutcomeStatus(str, Enum):
    """What happened to one pending manifest."""

    WRITTEN = "written"
    NODE_NOT_FOUND = "node_not_found"
    UNRESOLVED = "unresolved"
    FAILED = "failed"
    OVER_LIMIT = "over_limit"


class ManifestOutcome(BaseModel):
    """Result of processing a single pending manifest."""

    model_config = ConfigDict(extra="forbid")

    plugin_name: str
    manifest_id: str
    node_id: str
    status: OutcomeStatus
    found_page_by: FoundPageBy = FoundPageBy.NONE
    log_id: Optional[LogId] = None
    page_path: Optional[str] = None
    file_path: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def for_manifest(
        cls, manifest: PendingManifest, status: OutcomeStatus, **fields
    ) -> "ManifestOutcome":
        return cls(
            plugin_name=manifest.plugin_name,
            manifest_id=manifest.manifest_id,
            node_id=manifest.node_id,
            status=status,
            **fields,
        )

    @property
    def written(self) -> bool:
        return self.status is OutcomeStatus.WRITTEN


class BatchSummary(BaseModel):
    """Aggregated result of one batch."""

    model_config = ConfigDict(extra="forbid")

    total: int = 0
    written: int = 0
    unresolved: int = 0
    low_confidence: int = 0
    outcomes: list[ManifestOutcome] = Field(default_factory=list)

    @classmethod
    def from_outcomes(cls, outcomes: Sequence[ManifestOutcome]) -> "BatchSummary":
        written = sum(1 for o in outcomes if o.written)
        return cls(
            total=len(outcomes),
            written=written,
            unresolved=len(outcomes) - written,
            low_confidence=sum(
                1 for o in outcomes if o.written and o.found_page_by in _LOW_CONFIDENCE
            ),
            outcomes=list(outcomes),
        )

    @property
    def message(self) -> str:
        return summary_message(self.written, self.unresolved)


# ---------------------------------------------------------------------------
# Processor
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NodeLookup:
    """Registry state for one node id, read once at batch start."""

    node_id: NodeId
    exists: bool = False
    resolution: Optional[PageResolution] = None
    error: Optional[Exception] = None


class NodeManifestProcessor:
    """Drains a manifest queue against a registry.

    Args:
        registry: Read-only registry of nodes, pages and query tracking.
        queue: Pending manifest queue; cleared once per non-empty batch.
        reporter: Diagnostics sink.  Defaults to a ``LoggingReporter``.
        writer: Artifact writer.  Defaults to one rooted at the configured
                ``<cache-root>/node-manifests`` directory.
        config: Configuration.  Defaults to ``get_config()``.
    """

    def __init__(
        self,
        registry: Registry,
        queue: ManifestQueue,
        reporter: Optional[Reporter] = None,
        writer: Optional[ArtifactWriter] = None,
        config: Optional[NodeManifestConfig] = None,
    ) -> None:
        self._config = config or get_config()
        self._registry = registry
        self._queue = queue
        self._reporter = reporter or LoggingReporter(log_format=self._config.log_format)
        self._writer = writer or ArtifactWriter(self._config.get_manifest_dir())

    def process(self) -> BatchSummary:
        """Run one batch over the queue snapshot."""
        pending = self._queue.snapshot_pending()
        if not pending:
            logger.debug("No pending node manifests")
            return BatchSummary()

        with tracer.start_as_current_span("node_manifest.batch") as span:
            span.set_attribute("node_manifest.pending", len(pending))

            selected, over_limit = self._apply_limit(pending)
            if over_limit:
                self._reporter.warn(
                    manifest_limit_message(self._config.manifest_file_limit, len(over_limit))
                )

            lookups = self._snapshot_lookups(selected)
            outcomes = self._process_all(selected, lookups)
            outcomes.extend(
                ManifestOutcome.for_manifest(m, OutcomeStatus.OVER_LIMIT)
                for m in over_limit
            )
            for outcome in outcomes:
                emit_outcome(outcome)

            summary = BatchSummary.from_outcomes(outcomes)
            self._reporter.info(summary.message)
            emit_batch_summary(summary)

        self._queue.clear_processed()
        return summary

    def _apply_limit(
        self, pending: Sequence[PendingManifest]
    ) -> tuple[list[PendingManifest], list[PendingManifest]]:
        """Keep the newest ``manifest_file_limit`` manifests, in queue order."""
        limit = self._config.manifest_file_limit
        if len(pending) <= limit:
            return list(pending), []

        def rank(item: tuple[int, PendingManifest]) -> tuple[int, float, int]:
            position, manifest = item
            if manifest.updated_at_utc is None:
                return (1, 0.0, position)
            return (0, -manifest.updated_at_utc.timestamp(), position)

        keep = {position for position, _ in sorted(enumerate(pending), key=rank)[:limit]}
        selected = [m for position, m in enumerate(pending) if position in keep]
        over_limit = [m for position, m in enumerate(pending) if position not in keep]
        return selected, over_limit

    def _snapshot_lookups(
        self, manifests: Sequence[PendingManifest]
    ) -> dict[NodeId, NodeLookup]:
        """Read every node and its resolution once, before any manifest is handled.

        Later registry changes (new query tracking, deleted nodes) do not
        affect the batch, and manifests sharing a node id resolve identically.
        """
        index = PageIndex.from_registry(self._registry)
        lookups: dict[NodeId, NodeLookup] = {}
        for manifest in manifests:
            node_id = manifest.node_id
            if node_id in lookups:
                continue
            try:
                if self._registry.get_node(node_id) is None:
                    lookups[node_id] = NodeLookup(node_id)
                else:
                    resolution = resolve_page_for_node(node_id, self._registry, index)
                    lookups[node_id] = NodeLookup(node_id, True, resolution)
            except InvalidInternalStateError:
                raise
            except Exception as e:
                logger.debug("Registry lookup for node %s failed", node_id, exc_info=True)
                lookups[node_id] = NodeLookup(node_id, error=e)
        return lookups

    def _process_all(
        self, manifests: Sequence[PendingManifest], lookups: dict[NodeId, NodeLookup]
    ) -> list[ManifestOutcome]:
        workers = self._config.max_workers
        if workers <= 1 or len(manifests) <= 1:
            return [self._process_one(m, lookups[m.node_id]) for m in manifests]

        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(
                pool.map(lambda m: self._process_one(m, lookups[m.node_id]), manifests)
            )

    def _process_one(self, manifest: PendingManifest, lookup: NodeLookup) -> ManifestOutcome:
        try:
            return self._resolve_and_write(manifest, lookup)
        except InvalidInternalStateError:
            raise
        except Exception as e:
            logger.debug(
                "Node manifest %s/%s failed", manifest.plugin_name, manifest.manifest_id,
                exc_info=True,
            )
            log_id = report_write_failure(manifest, e, self._reporter)
            return ManifestOutcome.for_manifest(
                manifest, OutcomeStatus.FAILED, log_id=log_id, error=str(e)
            )

    def _resolve_and_write(
        self, manifest: PendingManifest, lookup: NodeLookup
    ) -> ManifestOutcome:
        if lookup.error is not None:
            raise lookup.error
        if not lookup.exists:
            self._reporter.warn(
                node_not_found_message(manifest.plugin_name, manifest.node_id)
            )
            return ManifestOutcome.for_manifest(manifest, OutcomeStatus.NODE_NOT_FOUND)

        resolution = lookup.resolution
        log_id = warn_about_mapping_problems(
            manifest, resolution.page_path, resolution.found_page_by, self._reporter
        )
        if not resolution.resolved:
            return ManifestOutcome.for_manifest(
                manifest, OutcomeStatus.UNRESOLVED, log_id=log_id
            )

        path = self._writer.write(
            manifest, resolution.page_path, resolution.found_page_by, resolution.page
        )
        return ManifestOutcome.for_manifest(
            manifest,
            OutcomeStatus.WRITTEN,
            found_page_by=resolution.found_page_by,
            log_id=log_id,
            page_path=resolution.page_path,
            file_path=str(path),
        )


def process_node_manifests(
    registry: Registry,
    queue: ManifestQueue,
    reporter: Optional[Reporter] = None,
    config: Optional[NodeManifestConfig] = None,
) -> BatchSummary:
    """Run one node manifest batch with default writer settings."""
    return NodeManifestProcessor(registry, queue, reporter=reporter, config=config).process()
