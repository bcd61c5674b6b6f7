"""Tests for node -> page resolution."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from nodemanifest.manifests.resolver import PageIndex, resolve_page_for_node
from nodemanifest.models import Page
from nodemanifest.registry.base import InMemoryRegistry
from nodemanifest.types import FoundPageBy


class TestPriority:
    def test_owner_node_id_beats_context_id(self, registry):
        registry.create_page({"path": "/context", "context": {"id": "n"}})
        registry.create_page({"path": "/owner", "ownerNodeId": "n"})

        result = resolve_page_for_node("n", registry)

        assert result.found_page_by is FoundPageBy.OWNER_NODE_ID
        assert result.page_path == "/owner"
        assert result.page.path == "/owner"

    def test_owner_node_id_beats_query_tracking(self, registry):
        registry.create_page({"path": "/owner", "ownerNodeId": "n"})
        registry.track_page_path_on_node("n", "/listing")

        assert resolve_page_for_node("n", registry).page_path == "/owner"

    def test_context_id_beats_query_tracking(self, registry):
        registry.create_page({"path": "/context", "context": {"id": "n"}})
        registry.track_page_path_on_node("n", "/listing")

        result = resolve_page_for_node("n", registry)

        assert result.found_page_by is FoundPageBy.CONTEXT_ID
        assert result.page_path == "/context"

    def test_query_tracking_single_path(self, registry):
        registry.create_page({"path": "/listing"})
        registry.track_page_path_on_node("n", "/listing")

        result = resolve_page_for_node("n", registry)

        assert result.found_page_by is FoundPageBy.QUERY_TRACKING
        assert result.page_path == "/listing"
        assert result.candidates == ("/listing",)

    def test_unresolved(self, registry):
        registry.create_page({"path": "/other", "ownerNodeId": "m", "context": {"id": "m"}})

        result = resolve_page_for_node("n", registry)

        assert result.found_page_by is FoundPageBy.NONE
        assert result.page_path is None
        assert not result.resolved


class TestTieBreaking:
    def test_first_context_id_page_wins(self, registry):
        registry.create_page({"path": "/z-first", "context": {"id": "n"}})
        registry.create_page({"path": "/a-second", "context": {"id": "n"}})

        assert resolve_page_for_node("n", registry).page_path == "/z-first"

    def test_first_owner_page_wins(self, registry):
        registry.create_page({"path": "/z-first", "ownerNodeId": "n"})
        registry.create_page({"path": "/a-second", "ownerNodeId": "n"})

        assert resolve_page_for_node("n", registry).page_path == "/z-first"

    def test_tracked_paths_use_smallest_path(self, registry):
        for path in ("/c", "/a", "/b"):
            registry.create_page({"path": path})
            registry.track_page_path_on_node("n", path)

        result = resolve_page_for_node("n", registry)

        assert result.page_path == "/a"
        assert result.candidates == ("/a", "/b", "/c")

    def test_tracked_paths_prefer_existing_pages(self, registry):
        registry.create_page({"path": "/z-page"})
        registry.track_page_path_on_node("n", "/a-deleted")
        registry.track_page_path_on_node("n", "/z-page")

        result = resolve_page_for_node("n", registry)

        assert result.page_path == "/z-page"
        assert result.page is not None

    def test_tracked_path_without_page(self, registry):
        registry.track_page_path_on_node("n", "/only")

        result = resolve_page_for_node("n", registry)

        assert result.page_path == "/only"
        assert result.page is None


class TestIdEquality:
    @pytest.mark.parametrize("raw", [1, "1"])
    def test_numeric_context_id_matches_string_node_id(self, registry, raw):
        registry.create_page({"path": "/p", "context": {"id": raw}})

        assert resolve_page_for_node("1", registry).found_page_by is FoundPageBy.CONTEXT_ID

    def test_boolean_context_id_is_not_an_id(self, registry):
        registry.create_page({"path": "/p", "context": {"id": True}})

        assert resolve_page_for_node("True", registry).found_page_by is FoundPageBy.NONE


class TestPurity:
    def test_registry_not_mutated(self):
        registry = MagicMock()
        registry.list_pages.return_value = (Page(path="/p", context={"id": "n"}),)

        resolve_page_for_node("n", registry)

        assert [c[0] for c in registry.method_calls] == ["list_pages"]

    def test_prebuilt_index_is_used(self):
        registry = MagicMock()
        registry.query_tracking_for.return_value = frozenset()
        index = PageIndex.from_pages([Page(path="/p", ownerNodeId="n")])

        result = resolve_page_for_node("n", registry, index)

        assert result.page_path == "/p"
        registry.list_pages.assert_not_called()

    def test_repeatable(self):
        registry = InMemoryRegistry(pages=[{"path": "/x"}, {"path": "/y"}])
        registry.track_page_path_on_node("n", "/y")
        registry.track_page_path_on_node("n", "/x")

        assert resolve_page_for_node("n", registry) == resolve_page_for_node("n", registry)
