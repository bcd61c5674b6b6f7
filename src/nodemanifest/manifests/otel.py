"""
OTel span event emission for node manifest processing.

Events are added to the current span only when it is recording.

Usage::

    from nodemanifest.manifests.otel import emit_outcome, emit_batch_summary

    emit_outcome(outcome)
    emit_batch_summary(summary)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from opentelemetry import trace as otel_trace

if TYPE_CHECKING:
    from nodemanifest.manifests.processor import BatchSummary, ManifestOutcome

logger = logging.getLogger(__name__)

tracer = otel_trace.get_tracer("nodemanifest.manifests")


def add_span_event(name: str, attributes: dict[str, str | int | float | bool]) -> None:
    """Add an event to the current OTel span if it is recording."""
    span = otel_trace.get_current_span()
    if span and span.is_recording():
        span.add_event(name=name, attributes=attributes)


def emit_outcome(outcome: "ManifestOutcome") -> None:
    """Emit a span event for one processed manifest.

    Event name: ``node_manifest.outcome.{status}``
    """
    attrs: dict[str, str | int | float | bool] = {
        "node_manifest.plugin": outcome.plugin_name,
        "node_manifest.manifest_id": outcome.manifest_id,
        "node_manifest.node_id": outcome.node_id,
        "node_manifest.status": outcome.status.value,
        "node_manifest.found_page_by": outcome.found_page_by.value,
    }
    if outcome.log_id is not None:
        attrs["node_manifest.log_id"] = outcome.log_id.value
    if outcome.page_path:
        attrs["node_manifest.page_path"] = outcome.page_path

    add_span_event(f"node_manifest.outcome.{outcome.status.value}", attrs)


def emit_batch_summary(summary: "BatchSummary") -> None:
    """Emit a summary span event for a batch.

    Event name: ``node_manifest.batch.complete``
    """
    attrs: dict[str, str | int | float | bool] = {
        "node_manifest.total": summary.total,
        "node_manifest.written": summary.written,
        "node_manifest.unresolved": summary.unresolved,
        "node_manifest.low_confidence": summary.low_confidence,
    }

    logger.debug(
        "Node manifest batch complete: %d written, %d unresolved of %d",
        summary.written,
        summary.unresolved,
        summary.total,
    )

    add_span_event("node_manifest.batch.complete", attrs)
