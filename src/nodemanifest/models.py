"""
Pydantic v2 models for nodes, pages, pending manifests and manifest artifacts.

Field names follow the camelCase keys plugins and preview tools exchange
(``pluginName``, ``manifestId``, ``ownerNodeId``, ``foundPageBy``) through
aliases; Python code uses the snake_case attribute names.  Every model accepts
either form on input.

Usage::

    from nodemanifest.models import PendingManifest

    manifest = PendingManifest.model_validate(
        {"pluginName": "gatsby-source-cms", "manifestId": "42", "node": {"id": "1"}}
    )
    manifest.key  # ("gatsby-source-cms", "42")
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from nodemanifest.types import FoundPageBy, NodeId, PagePath, normalize_id


def _require_id(value: Any) -> str:
    normalized = normalize_id(value)
    if normalized is None:
        raise ValueError(f"expected a string identifier, got {value!r}")
    return normalized


# ---------------------------------------------------------------------------
# Registry entities
# ---------------------------------------------------------------------------


class Node(BaseModel):
    """A unit of content.  Only ``id`` is interpreted; the rest is payload.

    ``id`` keeps the value the caller sent (``1`` stays ``1``) so the payload
    round-trips unchanged.  Lookups use ``node_id``, its string form.
    """

    model_config = ConfigDict(extra="allow")

    id: Union[NodeId, int]

    @field_validator("id", mode="before")
    @classmethod
    def _check_id(cls, v: Any) -> Any:
        _require_id(v)
        return v

    @property
    def node_id(self) -> NodeId:
        return _require_id(self.id)


class Page(BaseModel):
    """A rendered page and the signals that tie it to a node."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    path: PagePath = Field(..., min_length=1)
    context: Optional[dict[str, Any]] = None
    owner_node_id: Optional[NodeId] = Field(None, alias="ownerNodeId")

    @field_validator("owner_node_id", mode="before")
    @classmethod
    def _normalize_owner(cls, v: Any) -> Optional[str]:
        return normalize_id(v)

    @property
    def context_id(self) -> Optional[NodeId]:
        """The node id referenced by ``context.id``, if any."""
        if not self.context:
            return None
        return normalize_id(self.context.get("id"))


# ---------------------------------------------------------------------------
# Queue entries
# ---------------------------------------------------------------------------


class PendingManifest(BaseModel):
    """A plugin's request to materialize a node -> page manifest."""

    model_config = ConfigDict(populate_by_name=True)

    plugin_name: str = Field(..., min_length=1, alias="pluginName")
    manifest_id: str = Field(..., alias="manifestId")
    node: Node
    updated_at_utc: Optional[datetime] = Field(None, alias="updatedAtUTC")

    @field_validator("manifest_id", mode="before")
    @classmethod
    def _normalize_manifest_id(cls, v: Any) -> str:
        return _require_id(v)

    @property
    def key(self) -> tuple[str, str]:
        """Uniqueness key: manifest ids are scoped to their plugin."""
        return (self.plugin_name, self.manifest_id)

    @property
    def node_id(self) -> NodeId:
        return self.node.node_id


# ---------------------------------------------------------------------------
# Artifact
# ---------------------------------------------------------------------------


class ArtifactPage(BaseModel):
    """Resolved page fields recorded in an artifact."""

    model_config = ConfigDict(extra="allow")

    path: PagePath


class ManifestArtifact(BaseModel):
    """The JSON document written for a resolved manifest."""

    model_config = ConfigDict(populate_by_name=True)

    node: dict[str, Any]
    page: ArtifactPage
    found_page_by: FoundPageBy = Field(..., alias="foundPageBy")

    @classmethod
    def build(
        cls,
        manifest: PendingManifest,
        page_path: PagePath,
        found_page_by: FoundPageBy,
        page: Optional[Page] = None,
    ) -> "ManifestArtifact":
        """Artifact for *manifest* resolved to *page_path*.

        When the resolved ``Page`` is known its fields are recorded alongside
        ``path``.  Query tracking can name a path with no registered page, in
        which case only the path is recorded.
        """
        page_fields: dict[str, Any] = {}
        if page is not None:
            page_fields = page.model_dump(mode="json", by_alias=True, exclude_none=True)
        page_fields["path"] = page_path
        return cls(
            node=manifest.node.model_dump(mode="json"),
            page=ArtifactPage(**page_fields),
            found_page_by=found_page_by,
        )

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize with the camelCase keys consumers read."""
        return self.model_dump(mode="json", by_alias=True)
