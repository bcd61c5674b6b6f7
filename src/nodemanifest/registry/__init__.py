"""
Content registry abstraction consumed by node manifest processing.

Public API::

    from nodemanifest.registry import (
        Registry,
        InMemoryRegistry,
        RegistrySnapshot,
        RegistrySnapshotLoader,
    )
"""

from nodemanifest.registry.base import InMemoryRegistry, Registry
from nodemanifest.registry.loader import RegistrySnapshot, RegistrySnapshotLoader

__all__ = [
    "Registry",
    "InMemoryRegistry",
    "RegistrySnapshot",
    "RegistrySnapshotLoader",
]
