"""CLI entry point for context-porter.

Exports project bundles, builds handoff prompts and browses export history:
    python -m context_porter.cli export bundle.json --format markdown
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

import click

from context_porter.config import Config, load_config
from context_porter.errors import BundleError, HandoffError, UnsupportedFormatError, ValidationError
from context_porter.exporters import ExportOptions
from context_porter.handoff import generate_handoff
from context_porter.logging import configure_package_logging, get_logger
from context_porter.service import build_artifact
from context_porter.store.bundle import BundleStore
from context_porter.store.history import ExportHistory, ExportRecord

logger = get_logger("cli")


def format_timestamp(ts: int | None) -> str:
    """Format timestamp for display."""
    if ts is None:
        return "unknown"
    return datetime.fromtimestamp(ts).strftime("%Y-%m-%d %H:%M:%S")


def print_record(record: ExportRecord) -> None:
    """Print a one-entry summary of a stored export."""
    click.echo(
        f"\033[36m[{format_timestamp(record.created_at)}]\033[0m "
        f"#{record.id} \033[1m{record.project_name}\033[0m"
    )
    provider = record.target_provider or "-"
    click.echo(f"Format: \033[32m{record.format}\033[0m | Provider: {provider} | Bytes: {record.file_size_bytes}")
    if record.options:
        opts = ", ".join(f"{key}={value}" for key, value in record.options.items())
        click.echo(f"Options: {opts}")
    click.echo("-" * 40)


def fail(message: str, code: int = 1) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(code)


def resolve_project_id(store: BundleStore, project_id: str | None) -> str:
    """Pick the project to export, requiring --project when ambiguous."""
    if project_id is not None:
        return project_id
    ids = store.project_ids()
    if len(ids) > 1:
        fail(f"Bundle holds {len(ids)} projects; pass --project (one of: {', '.join(ids)})")
    return ids[0]


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Path to config.yaml",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, verbose: bool) -> None:
    """Export AI conversation projects."""
    config = load_config(config_path)
    configure_package_logging(
        log_dir=config.log_dir,
        level=logging.DEBUG if verbose else logging.INFO,
        console=verbose,
    )
    ctx.obj = config


@cli.command("export")
@click.argument("bundle", type=click.Path(exists=True, path_type=Path))
@click.option("--project", "project_id", help="Project id (required when the bundle holds several)")
@click.option("--format", "-f", "export_format", default="json", show_default=True,
              help="json, markdown or context_prompt")
@click.option("--provider", "-p", default=None, help="Target provider for context_prompt")
@click.option("--compression", "-c", default=None, help="low, medium or high")
@click.option("--metadata/--no-metadata", default=None, help="Include message metadata")
@click.option("--output", "-o", type=click.Path(path_type=Path, dir_okay=False),
              help="Write the export to this file")
@click.option("--save", is_flag=True, help="Write into the configured output directory")
@click.option("--record/--no-record", default=True, help="Store the export in history")
@click.option("--archived", is_flag=True, help="Include archived conversations")
@click.pass_obj
def export_command(
    config: Config,
    bundle: Path,
    project_id: str | None,
    export_format: str,
    provider: str | None,
    compression: str | None,
    metadata: bool | None,
    output: Path | None,
    save: bool,
    record: bool,
    archived: bool,
) -> None:
    """Export a project bundle."""
    defaults = config.export
    options = ExportOptions(
        target_provider=provider or defaults.target_provider,
        compression_level=compression or defaults.compression_level,
        include_metadata=defaults.include_metadata if metadata is None else metadata,
        role_icons=defaults.role_icons,
    )

    try:
        store = BundleStore(bundle)
        project_id = resolve_project_id(store, project_id)
        project = store.get_project(project_id)
        conversations = store.get_conversations_with_messages(project_id, include_archived=archived)
        artifact = build_artifact(project, conversations, export_format, options)
    except UnsupportedFormatError as e:
        fail(str(e), code=2)
    except (BundleError, ValidationError) as e:
        fail(str(e))
    except KeyError as e:
        fail(str(e.args[0]) if e.args else "Project not found")

    logger.info(
        "Exported project: id=%s format=%s conversations=%d bytes=%d",
        project.id,
        artifact.format,
        artifact.conversation_count,
        artifact.size_bytes,
    )

    if save and output is None:
        output = config.export.output_dir / artifact.filename

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(artifact.content, encoding="utf-8")
        click.echo(f"Wrote {artifact.size_bytes} bytes to {output}", err=True)
    else:
        click.echo(artifact.content)

    if record:
        with ExportHistory(config.history.state_db, config.history.max_stored_chars) as history:
            stored = history.record(project, artifact)
        click.echo(f"Recorded export #{stored.id}", err=True)


@cli.command()
@click.argument("bundle", type=click.Path(exists=True, path_type=Path))
@click.argument("conversation_id")
@click.option("--provider", "-p", default=None, help="Target provider")
@click.option("--metadata", is_flag=True, help="Include original conversation details")
@click.option("--custom-prompt", default=None, help="Replace the provider intro sentence")
@click.option("--no-flow", is_flag=True, help="Omit recent messages when there is no summary")
@click.pass_obj
def handoff(
    config: Config,
    bundle: Path,
    conversation_id: str,
    provider: str | None,
    metadata: bool,
    custom_prompt: str | None,
    no_flow: bool,
) -> None:
    """Build a handoff prompt for one conversation."""
    try:
        store = BundleStore(bundle)
        conversation = store.get_conversation(conversation_id)
        result = generate_handoff(
            conversation,
            provider or config.export.target_provider,
            include_metadata=metadata,
            custom_prompt=custom_prompt,
            preserve_flow=not no_flow,
        )
    except (BundleError, ValidationError, HandoffError) as e:
        fail(str(e))
    except KeyError as e:
        fail(str(e.args[0]) if e.args else "Conversation not found")

    click.echo(result.content)


@cli.command()
@click.option("--limit", "-n", default=20, help="Number of records")
@click.option("--offset", default=0, help="Records to skip")
@click.pass_obj
def history(config: Config, limit: int, offset: int) -> None:
    """List recorded exports, newest first."""
    with ExportHistory(config.history.state_db, config.history.max_stored_chars) as store:
        records = store.list_exports(limit=limit, offset=offset)

    click.echo(f"{len(records)} export(s):\n")
    for record in records:
        print_record(record)


@cli.command()
@click.argument("export_id", type=int)
@click.pass_obj
def show(config: Config, export_id: int) -> None:
    """Print the stored content of an export."""
    with ExportHistory(config.history.state_db, config.history.max_stored_chars) as store:
        record = store.get_export(export_id)

    if record is None:
        fail(f"Export not found: {export_id}")

    click.echo(record.content)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
