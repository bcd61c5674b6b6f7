"""
Shared enums, identifiers and log ids for node manifest processing.

Identifiers are plain strings.  ``normalize_id()`` is the single place that
decides whether a raw value (from a page context, a snapshot file or a plugin
call) counts as an identifier, so equality between node ids, context ids and
owner node ids is always string equality.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

NodeId = str
PagePath = str


def normalize_id(value: Any) -> Optional[str]:
    """Return *value* as an identifier string, or ``None`` if it is not one.

    Strings are returned unchanged.  Integers are rendered with ``str()``
    because YAML and JSON snapshots commonly carry numeric ids.  Booleans,
    ``None`` and every other type are not identifiers.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    return None


class FoundPageBy(str, Enum):
    """How the resolver matched a node to a page, in priority order."""

    OWNER_NODE_ID = "owner-node-id"
    CONTEXT_ID = "context-id"
    QUERY_TRACKING = "query-tracking"
    NONE = "none"

    @classmethod
    def _missing_(cls, value: object) -> Optional["FoundPageBy"]:
        return _FOUND_PAGE_BY_ALIASES.get(value) if isinstance(value, str) else None


_FOUND_PAGE_BY_ALIASES = {
    "filesystem-route-api": FoundPageBy.OWNER_NODE_ID,
    "ownerNodeId": FoundPageBy.OWNER_NODE_ID,
    "context.id": FoundPageBy.CONTEXT_ID,
    "queryTracking": FoundPageBy.QUERY_TRACKING,
}


class LogId(str, Enum):
    """Stable ids attached to every reported diagnostic."""

    SUCCESS = "success"
    MAPPING_NOT_FOUND = "11801"
    CONTEXT_ID_MAPPING = "11802"
    QUERY_TRACKING_MAPPING = "11803"
    WRITE_FAILURE = "11804"


FOUND_PAGE_BY_LOG_IDS: dict[FoundPageBy, LogId] = {
    FoundPageBy.NONE: LogId.MAPPING_NOT_FOUND,
    FoundPageBy.OWNER_NODE_ID: LogId.SUCCESS,
    FoundPageBy.CONTEXT_ID: LogId.CONTEXT_ID_MAPPING,
    FoundPageBy.QUERY_TRACKING: LogId.QUERY_TRACKING_MAPPING,
}


class BuildMilestone(str, Enum):
    """Points in a build at which a manifest batch may be triggered."""

    BUILD_END = "build-end"
    QUERIES_COMPLETE = "queries-complete"
    DEV_IDLE = "dev-idle"
