"""Exception hierarchy for node manifest processing."""

from __future__ import annotations

from typing import Any


class NodeManifestError(Exception):
    """Base class for node manifest errors."""


class InvalidInternalStateError(NodeManifestError):
    """Diagnostics were asked about a match kind the resolver never produces.

    This signals a broken resolver/diagnostics contract and is never
    handled by the batch processor.
    """

    def __init__(self, found_page_by: Any) -> None:
        self.found_page_by = found_page_by
        super().__init__(
            f"Unrecognized foundPageBy value {found_page_by!r} while reporting "
            f"node manifest mapping problems"
        )


class ManifestWriteError(NodeManifestError):
    """A manifest artifact could not be written to disk."""

    def __init__(self, path: Any, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to write node manifest {path}: {reason}")
