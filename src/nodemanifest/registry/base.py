"""
Registry protocol and in-memory implementation.

The registry is owned by the data layer.  Manifest processing only reads it
through the ``Registry`` protocol: node lookup, page enumeration and the
query-tracking index (node id -> page paths whose query read that node).
Only the query execution subsystem writes tracking entries, through
``track_page_path_on_node()``.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Iterable, Optional, Protocol, Union, runtime_checkable

from nodemanifest.models import Node, Page
from nodemanifest.types import NodeId, PagePath, normalize_id

logger = logging.getLogger(__name__)


@runtime_checkable
class Registry(Protocol):
    """Read-only view of nodes, pages and query tracking."""

    def get_node(self, node_id: NodeId) -> Optional[Node]: ...

    def list_pages(self) -> tuple[Page, ...]: ...

    def query_tracking_for(self, node_id: NodeId) -> frozenset[PagePath]: ...


class InMemoryRegistry:
    """
    Thread-safe in-memory registry.

    Pages are kept in creation order; re-creating a page with an existing
    path replaces it in place.
    """

    def __init__(
        self,
        nodes: Iterable[Union[Node, dict[str, Any]]] = (),
        pages: Iterable[Union[Page, dict[str, Any]]] = (),
    ):
        self._lock = threading.RLock()
        self._nodes: dict[NodeId, Node] = {}
        self._pages: dict[PagePath, Page] = {}
        self._by_node: dict[NodeId, set[PagePath]] = {}
        for node in nodes:
            self.create_node(node)
        for page in pages:
            self.create_page(page)

    # Reads

    def get_node(self, node_id: NodeId) -> Optional[Node]:
        with self._lock:
            return self._nodes.get(node_id)

    def list_pages(self) -> tuple[Page, ...]:
        with self._lock:
            return tuple(self._pages.values())

    def query_tracking_for(self, node_id: NodeId) -> frozenset[PagePath]:
        with self._lock:
            return frozenset(self._by_node.get(node_id, ()))

    # Writes (data layer and query tracking only)

    def create_node(self, node: Union[Node, dict[str, Any]]) -> Node:
        if not isinstance(node, Node):
            node = Node.model_validate(node)
        with self._lock:
            self._nodes[node.node_id] = node
        return node

    def delete_node(self, node_id: NodeId) -> None:
        with self._lock:
            self._nodes.pop(node_id, None)
            self._by_node.pop(node_id, None)

    def create_page(self, page: Union[Page, dict[str, Any]]) -> Page:
        if not isinstance(page, Page):
            page = Page.model_validate(page)
        with self._lock:
            self._pages[page.path] = page
        return page

    def delete_page(self, path: PagePath) -> None:
        with self._lock:
            self._pages.pop(path, None)

    def track_page_path_on_node(self, node_id: Any, page_path: PagePath) -> None:
        """Record that the query for *page_path* read the node *node_id*."""
        key = normalize_id(node_id)
        if key is None:
            raise ValueError(f"Cannot track page {page_path} on node id {node_id!r}")
        with self._lock:
            self._by_node.setdefault(key, set()).add(page_path)
        logger.debug("Tracked page %s on node %s", page_path, key)
