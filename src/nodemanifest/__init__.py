"""
nodemanifest - Map content nodes to the pages that render them.

Static-site plugins ask for a "node manifest" when preview tooling needs to
know which URL shows a piece of content.  This package resolves each pending
request to a page (by declared owner, page context or query tracking), warns
about low-confidence mappings, and writes one JSON artifact per request under
``<cache>/node-manifests/<plugin>/<manifestId>.json``.

Example usage:
    from nodemanifest import InMemoryRegistry, InMemoryManifestQueue, process_node_manifests

    registry = InMemoryRegistry()
    registry.create_node({"id": "1"})
    registry.create_page({"path": "/post-1", "ownerNodeId": "1"})

    queue = InMemoryManifestQueue()
    queue.create_node_manifest("gatsby-source-cms", "1", {"id": "1"})

    summary = process_node_manifests(registry, queue)
"""

__version__ = "0.1.0"
__all__ = [
    "InMemoryRegistry",
    "InMemoryManifestQueue",
    "FileManifestQueue",
    "NodeManifestProcessor",
    "process_node_manifests",
    "resolve_page_for_node",
    "__version__",
]


# Lazy imports to keep `import nodemanifest` cheap
def __getattr__(name: str):
    if name == "InMemoryRegistry":
        from nodemanifest.registry.base import InMemoryRegistry
        return InMemoryRegistry
    if name == "InMemoryManifestQueue":
        from nodemanifest.queue import InMemoryManifestQueue
        return InMemoryManifestQueue
    if name == "FileManifestQueue":
        from nodemanifest.queue import FileManifestQueue
        return FileManifestQueue
    if name == "NodeManifestProcessor":
        from nodemanifest.manifests.processor import NodeManifestProcessor
        return NodeManifestProcessor
    if name == "process_node_manifests":
        from nodemanifest.manifests.processor import process_node_manifests
        return process_node_manifests
    if name == "resolve_page_for_node":
        from nodemanifest.manifests.resolver import resolve_page_for_node
        return resolve_page_for_node
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
