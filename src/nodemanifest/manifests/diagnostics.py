"""
Diagnostics for node -> page mapping outcomes.

``warn_about_mapping_problems()`` turns a resolution outcome into a report:

- ``owner-node-id``: nothing is reported.
- ``context-id`` / ``query-tracking``: an error is reported because the
  mapping rests on a deprecated or low-confidence signal.  The page is still
  used.
- ``none``: an error is reported; no artifact is written.

Anything else is an ``InvalidInternalStateError``.  The remaining helpers
build the plain-text warnings and the batch summary.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from nodemanifest.errors import InvalidInternalStateError
from nodemanifest.models import PendingManifest
from nodemanifest.reporter import ErrorPayload, Reporter
from nodemanifest.types import FOUND_PAGE_BY_LOG_IDS, FoundPageBy, LogId, PagePath

logger = logging.getLogger(__name__)

_MIGRATE_HINT = (
    "Pass ownerNodeId to createPage() (or create the page through the "
    "filesystem route API) so this node maps to its page explicitly."
)


def _coerce_found_page_by(found_page_by: Any) -> FoundPageBy:
    if isinstance(found_page_by, FoundPageBy):
        return found_page_by
    try:
        return FoundPageBy(found_page_by)
    except ValueError:
        raise InvalidInternalStateError(found_page_by) from None


def _mapping_message(
    manifest: PendingManifest, page_path: Optional[PagePath], found_page_by: FoundPageBy
) -> str:
    prefix = (
        f'Plugin {manifest.plugin_name} called the manifest API for node id '
        f'"{manifest.node_id}" with a manifest id of "{manifest.manifest_id}"'
    )
    if found_page_by is FoundPageBy.NONE:
        return f"{prefix} but no page could be found for this node. {_MIGRATE_HINT}"
    if found_page_by is FoundPageBy.CONTEXT_ID:
        return (
            f'{prefix}. The page "{page_path}" was found through page context.id, '
            f"which is deprecated for mapping nodes to pages. {_MIGRATE_HINT}"
        )
    return (
        f'{prefix}. The page "{page_path}" was found through query tracking, '
        f"which records pages that read this node rather than the page that "
        f"renders it, and may be incomplete during incremental builds. {_MIGRATE_HINT}"
    )


def warn_about_mapping_problems(
    input_manifest: Optional[PendingManifest],
    page_path: Optional[PagePath],
    found_page_by: Any,
    reporter: Reporter,
) -> LogId:
    """Report problems with how a manifest's node was mapped to a page.

    Args:
        input_manifest: The pending manifest being processed.
        page_path: The resolved page path (``None`` when unresolved).
        found_page_by: The resolver's match kind.
        reporter: Diagnostics sink.

    Returns:
        The log id for this outcome; ``LogId.SUCCESS`` for owner-node-id.

    Raises:
        InvalidInternalStateError: If *found_page_by* is not a recognized
            match kind.
    """
    kind = _coerce_found_page_by(found_page_by)
    log_id = FOUND_PAGE_BY_LOG_IDS[kind]

    if kind is FoundPageBy.OWNER_NODE_ID:
        return log_id

    reporter.error(
        ErrorPayload(
            id=log_id,
            message=_mapping_message(input_manifest, page_path, kind),
            context={
                "input_manifest": input_manifest.model_dump(mode="json", by_alias=True),
                "page_path": page_path,
                "found_page_by": kind.value,
            },
        )
    )
    return log_id


def report_write_failure(
    manifest: PendingManifest, error: BaseException, reporter: Reporter
) -> LogId:
    """Report a manifest that failed while being resolved or written."""
    reporter.error(
        ErrorPayload(
            id=LogId.WRITE_FAILURE,
            message=(
                f"Plugin {manifest.plugin_name} node manifest "
                f'"{manifest.manifest_id}" for node id "{manifest.node_id}" '
                f"couldn't be written: {error}"
            ),
            context={
                "input_manifest": manifest.model_dump(mode="json", by_alias=True),
                "error": repr(error),
            },
        )
    )
    return LogId.WRITE_FAILURE


def node_not_found_message(plugin_name: str, node_id: str) -> str:
    return (
        f"Plugin {plugin_name} called the manifest API for a node which "
        f"doesn't exist with an id of {node_id}."
    )


def manifest_limit_message(limit: int, skipped: int) -> str:
    return (
        f"{skipped} node manifest(s) were skipped because more than {limit} "
        f"were pending. Only the {limit} most recently updated were processed."
    )


def summary_message(written: int, unresolved: int) -> str:
    """Build the batch summary line."""
    message = f"Wrote out {written} node page manifest files."
    if unresolved > 0:
        message += f" {unresolved} manifest couldn't be processed."
    return message
