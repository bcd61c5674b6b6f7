"""
Centralized configuration for node manifest processing.

Uses Pydantic BaseSettings for environment variable integration
and validation.

Configuration sources (in order of precedence):
1. Explicit constructor arguments
2. Environment variables (NODEMANIFEST_*)
3. .env file
4. Default values

Example:
    from nodemanifest.config import get_config

    config = get_config()
    print(config.get_manifest_dir("gatsby-source-cms"))

    # Full production build: query tracking is trusted as complete
    config = get_config(query_tracking_complete=True)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MANIFEST_DIR_NAME = "node-manifests"
PENDING_QUEUE_FILE_NAME = "node-manifests-pending.json"


class NodeManifestConfig(BaseSettings):
    """
    Configuration for the node manifest batch processor.

    All settings can be overridden via environment variables
    prefixed with NODEMANIFEST_.

    Example:
        export NODEMANIFEST_PROGRAM_DIRECTORY=/srv/site
        export NODEMANIFEST_QUERY_TRACKING_COMPLETE=true
    """

    model_config = SettingsConfigDict(
        env_prefix="NODEMANIFEST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Paths
    program_directory: str = Field(
        default_factory=os.getcwd,
        description="Site root; the cache directory lives beneath it",
    )
    cache_dir_name: str = Field(
        default=".cache",
        min_length=1,
        description="Cache directory name under the program directory",
    )

    # Build mode
    query_tracking_complete: bool = Field(
        default=False,
        description=(
            "Trust query tracking as complete (full builds). Decides when "
            "batches run, never how nodes are matched to pages"
        ),
    )

    # Batch limits
    manifest_file_limit: int = Field(
        default=10000,
        ge=1,
        description="Maximum manifests processed per batch (newest first)",
    )
    max_workers: int = Field(
        default=1,
        ge=1,
        description="Worker threads used to resolve and write manifests",
    )

    # Logging
    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="info",
        description="Logging level for nodemanifest",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Reporter output format (json for log aggregation, text for console)",
    )

    @field_validator("program_directory")
    @classmethod
    def expand_path(cls, v: str) -> str:
        """Expand ~ and environment variables in paths."""
        return os.path.expanduser(os.path.expandvars(v))

    def get_cache_root(self) -> Path:
        """Get the cache root directory."""
        return Path(self.program_directory) / self.cache_dir_name

    def get_manifest_dir(self, plugin_name: Optional[str] = None) -> Path:
        """Get the manifest output directory, optionally scoped to a plugin."""
        base = self.get_cache_root() / MANIFEST_DIR_NAME
        if plugin_name:
            return base / plugin_name
        return base

    def get_pending_queue_path(self) -> Path:
        """Get the file-backed pending manifest queue path."""
        return self.get_cache_root() / PENDING_QUEUE_FILE_NAME


# Global singleton
_config: Optional[NodeManifestConfig] = None


def get_config(**overrides) -> NodeManifestConfig:
    """
    Get the global configuration instance.

    Creates a singleton on first call. Subsequent calls return
    the same instance unless overrides are provided.
    """
    global _config

    if overrides or _config is None:
        _config = NodeManifestConfig(**overrides)

    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None
