"""
nodemanifest CLI - enqueue, resolve and process node page manifests.

Commands:
    nodemanifest enqueue    Add a manifest request to the pending queue
    nodemanifest resolve    Show which page a node resolves to
    nodemanifest process    Run one batch over the pending queue
"""

from __future__ import annotations

import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import click
import yaml
from pydantic import ValidationError

from nodemanifest.config import NodeManifestConfig, get_config
from nodemanifest.manifests.resolver import resolve_page_for_node
from nodemanifest.queue import FileManifestQueue
from nodemanifest.registry.base import InMemoryRegistry
from nodemanifest.registry.loader import RegistrySnapshotLoader
from nodemanifest.reporter import LoggingReporter, configure_logging
from nodemanifest.scheduling import maybe_process_node_manifests
from nodemanifest.types import BuildMilestone


def _load_registry(path: Path) -> InMemoryRegistry:
    try:
        return RegistrySnapshotLoader().load(path)
    except (ValidationError, yaml.YAMLError, json.JSONDecodeError) as e:
        raise click.ClickException(f"Invalid registry snapshot {path}: {e}")


@click.group()
@click.version_option(package_name="nodemanifest")
@click.option(
    "--program-directory",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Site root (defaults to NODEMANIFEST_PROGRAM_DIRECTORY or the cwd)",
)
@click.pass_context
def main(ctx: click.Context, program_directory: Optional[Path]):
    """nodemanifest - node page manifests for preview tooling."""
    overrides = {}
    if program_directory is not None:
        overrides["program_directory"] = str(program_directory)
    config = get_config(**overrides)
    configure_logging(config)
    ctx.obj = config


@main.command()
@click.option("--plugin", "plugin_name", required=True, help="Plugin requesting the manifest")
@click.option("--manifest-id", required=True, help="Manifest id, unique per plugin")
@click.option("--node-id", required=True, help="Id of the node to map")
@click.option(
    "--updated-at",
    type=click.DateTime(formats=["%Y-%m-%dT%H:%M:%S", "%Y-%m-%d"]),
    default=None,
    help="When the node was last updated (UTC)",
)
@click.pass_obj
def enqueue(
    config: NodeManifestConfig,
    plugin_name: str,
    manifest_id: str,
    node_id: str,
    updated_at: Optional[datetime],
):
    """Add a manifest request to the pending queue."""
    queue = FileManifestQueue(config.get_pending_queue_path())
    queue.create_node_manifest(plugin_name, manifest_id, {"id": node_id}, updated_at)
    click.echo(f"Queued manifest {manifest_id} for node {node_id} ({plugin_name})")


@main.command()
@click.argument("node_id")
@click.option(
    "--registry",
    "registry_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Registry snapshot (YAML or JSON)",
)
def resolve(node_id: str, registry_path: Path):
    """Show which page NODE_ID resolves to."""
    registry = _load_registry(registry_path)
    resolution = resolve_page_for_node(node_id, registry)
    if not resolution.resolved:
        click.echo(f"{node_id}: no page found")
        sys.exit(1)
    click.echo(f"{node_id}: {resolution.page_path} ({resolution.found_page_by.value})")
    if len(resolution.candidates) > 1:
        click.echo(f"  tracked on: {', '.join(resolution.candidates)}")


@main.command()
@click.option(
    "--registry",
    "registry_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Registry snapshot (YAML or JSON)",
)
@click.option(
    "--milestone",
    type=click.Choice([m.value for m in BuildMilestone]),
    default=BuildMilestone.BUILD_END.value,
    show_default=True,
    help="Build milestone triggering this run",
)
@click.option(
    "--complete/--incomplete",
    "query_tracking_complete",
    default=None,
    help="Whether query tracking is complete (full build) or not (incremental)",
)
@click.option("--json", "as_json", is_flag=True, help="Print the batch summary as JSON")
@click.pass_obj
def process(
    config: NodeManifestConfig,
    registry_path: Path,
    milestone: str,
    query_tracking_complete: Optional[bool],
    as_json: bool,
):
    """Run one batch over the pending queue."""
    if query_tracking_complete is not None:
        config = config.model_copy(update={"query_tracking_complete": query_tracking_complete})

    registry = _load_registry(registry_path)
    queue = FileManifestQueue(config.get_pending_queue_path())
    summary = maybe_process_node_manifests(
        BuildMilestone(milestone),
        registry,
        queue,
        reporter=LoggingReporter(log_format=config.log_format),
        config=config,
    )

    if summary is None:
        click.echo(f"Skipped: node manifests are processed at {BuildMilestone.BUILD_END.value}")
        return
    if as_json:
        click.echo(json.dumps(summary.model_dump(mode="json"), indent=2))
    else:
        click.echo(summary.message)


if __name__ == "__main__":
    main()
