"""
Node -> page resolution.

Finds the page that renders a node using three signals, in strict priority
order.  The first signal that yields a page wins:

1. **owner-node-id**: a page declares ``ownerNodeId == node_id``.  This is
   the sanctioned mechanism (pages created through the filesystem route API).
2. **context-id**: a page's ``context.id == node_id``.  Legacy; when several
   pages share a context id the first page in registry order wins.
3. **query-tracking**: the query-tracking index recorded pages whose query
   read the node.  Lowest confidence, and possibly incomplete while a build
   is still running.

If none apply the outcome is ``FoundPageBy.NONE``.

Resolution reads the registry and never mutates it or performs I/O.  For a
fixed registry state the result for a node id is always the same.

Usage::

    from nodemanifest.manifests.resolver import PageIndex, resolve_page_for_node

    index = PageIndex.from_registry(registry)
    resolution = resolve_page_for_node("1", registry, index)
    resolution.found_page_by  # FoundPageBy.OWNER_NODE_ID
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional

from nodemanifest.models import Page
from nodemanifest.registry.base import Registry
from nodemanifest.types import FoundPageBy, NodeId, PagePath

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageResolution:
    """Outcome of resolving one node id."""

    node_id: NodeId
    found_page_by: FoundPageBy
    page_path: Optional[PagePath] = None
    page: Optional[Page] = None
    candidates: tuple[PagePath, ...] = ()

    @property
    def resolved(self) -> bool:
        return self.found_page_by is not FoundPageBy.NONE


@dataclass(frozen=True)
class PageIndex:
    """Page lookups by declared owner and by context id, built once per batch."""

    pages: Mapping[PagePath, Page] = field(default_factory=dict)
    by_owner_node_id: Mapping[NodeId, Page] = field(default_factory=dict)
    by_context_id: Mapping[NodeId, Page] = field(default_factory=dict)

    @classmethod
    def from_pages(cls, pages: Iterable[Page]) -> "PageIndex":
        by_path: dict[PagePath, Page] = {}
        by_owner: dict[NodeId, Page] = {}
        by_context: dict[NodeId, Page] = {}
        for page in pages:
            by_path[page.path] = page
            if page.owner_node_id is not None:
                if page.owner_node_id in by_owner:
                    logger.debug(
                        "Pages %s and %s both declare ownerNodeId %s; using %s",
                        by_owner[page.owner_node_id].path,
                        page.path,
                        page.owner_node_id,
                        by_owner[page.owner_node_id].path,
                    )
                else:
                    by_owner[page.owner_node_id] = page
            context_id = page.context_id
            if context_id is not None:
                by_context.setdefault(context_id, page)
        return cls(pages=by_path, by_owner_node_id=by_owner, by_context_id=by_context)

    @classmethod
    def from_registry(cls, registry: Registry) -> "PageIndex":
        return cls.from_pages(registry.list_pages())


def _pick_tracked_path(
    tracked: Iterable[PagePath], pages: Mapping[PagePath, Page]
) -> tuple[PagePath, tuple[PagePath, ...]]:
    """Choose among tracked paths: existing pages first, then lexicographic order."""
    candidates = tuple(sorted(tracked, key=lambda path: (path not in pages, path)))
    return candidates[0], candidates


def resolve_page_for_node(
    node_id: NodeId,
    registry: Registry,
    index: Optional[PageIndex] = None,
) -> PageResolution:
    """Resolve the page that renders *node_id*.

    Args:
        node_id: Id of the node to resolve.
        registry: Registry supplying pages and query tracking.
        index: Page index for the current batch.  Built from *registry*
               when omitted.

    Returns:
        A ``PageResolution``; ``found_page_by`` is ``FoundPageBy.NONE`` when
        no page could be found.
    """
    if index is None:
        index = PageIndex.from_registry(registry)

    page = index.by_owner_node_id.get(node_id)
    if page is not None:
        return PageResolution(node_id, FoundPageBy.OWNER_NODE_ID, page.path, page)

    page = index.by_context_id.get(node_id)
    if page is not None:
        return PageResolution(node_id, FoundPageBy.CONTEXT_ID, page.path, page)

    tracked = registry.query_tracking_for(node_id)
    if tracked:
        path, candidates = _pick_tracked_path(tracked, index.pages)
        if len(candidates) > 1:
            logger.debug(
                "Node %s is tracked on %d pages; using %s",
                node_id,
                len(candidates),
                path,
            )
        return PageResolution(
            node_id,
            FoundPageBy.QUERY_TRACKING,
            path,
            index.pages.get(path),
            candidates,
        )

    return PageResolution(node_id, FoundPageBy.NONE)
