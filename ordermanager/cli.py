"""CLI interface for ordermanager."""

import logging
import sys
from pathlib import Path

import click

from ordermanager.catalog import GroupCatalog
from ordermanager.config import (
    DEFAULT_CONFIG_PATH,
    Config,
    ConfigError,
    DirectoryCreateError,
    load_config,
)
from ordermanager.manager import OrderManager
from ordermanager.transfer import TransferReport, TransferStep

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_CONFIG_PATH,
    show_default=True,
    help="Path to the TOML configuration file",
)
@click.option("--source", type=click.Path(file_okay=False, path_type=Path), help="Source directory")
@click.option("--target", type=click.Path(file_okay=False, path_type=Path), help="Target directory")
@click.option("--archive", type=click.Path(file_okay=False, path_type=Path), help="Archive directory")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Path,
    source: Path | None,
    target: Path | None,
    archive: Path | None,
    verbose: bool,
) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=LOG_FORMAT)

    try:
        config = load_config(config_path, source_dir=source, target_dir=target, archive_dir=archive)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@cli.command()
@click.pass_context
def groups(ctx: click.Context) -> None:
    """List the file groups waiting in the source directory."""
    config: Config = ctx.obj["config"]
    manager = _open_manager(config, watch=False)
    _print_catalog(manager.groups(), config)


@cli.command()
@click.argument("key")
@click.pass_context
def transfer(ctx: click.Context, key: str) -> None:
    """Archive the target directory and move group KEY into it."""
    config: Config = ctx.obj["config"]
    manager = _open_manager(config, watch=False)

    if key not in manager.groups():
        click.echo(f"No files in {config.source_dir} for '{key}'; target is archived anyway.")

    report = manager.select_and_transfer(key)
    assert report is not None
    _print_report(report)

    if not report.ok:
        sys.exit(1)


@cli.command()
@click.pass_context
def watch(ctx: click.Context) -> None:
    """Print the groups and reprint them whenever the source directory changes."""
    config: Config = ctx.obj["config"]
    manager = _open_manager(config, watch=True)
    manager.add_listener(lambda catalog: _print_catalog(catalog, config))

    _print_catalog(manager.groups(), config)
    if not manager.live_updates:
        click.echo("Error: could not watch the source directory.", err=True)
        sys.exit(1)

    click.echo("Watching for changes. Press Ctrl-C to stop.")
    try:
        while manager.live_updates:
            manager.process_pending(timeout=config.watcher.poll_interval)
        click.echo(f"Error: lost the watch on {config.source_dir}.", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(130)
    finally:
        manager.close()


def _open_manager(config: Config, watch: bool) -> OrderManager:
    manager = OrderManager(config)
    try:
        if watch:
            manager.start()
        else:
            config.ensure_directories()
            manager.rescan()
    except DirectoryCreateError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    return manager


def _print_catalog(catalog: GroupCatalog, config: Config) -> None:
    click.echo(f"\nGroups in {config.source_dir}:")
    click.echo("-" * 60)

    if not catalog:
        click.echo("(no files)")
        return

    for key, count in catalog.counts().items():
        label = key if key else "(empty name)"
        click.echo(f"{_truncate(label, 48):<50}{count:>6} file{'s' if count != 1 else ''}")


def _print_report(report: TransferReport) -> None:
    click.echo()
    click.echo(f"Transfer of '{report.selected_key}':")
    click.echo(f"  Archived: {len(report.archived):,}")
    click.echo(f"  Cleared: {sum(o.succeeded for o in report.for_step(TransferStep.CLEAR)):,}")
    click.echo(f"  Moved: {len(report.moved):,}")

    if report.failed:
        click.echo(f"  Errors: {len(report.failed):,}")
        for outcome in report.failed:
            click.echo(f"    [{outcome.step.value}] {outcome.source}: {outcome.error}", err=True)
    else:
        click.echo("Files moved!")


def _truncate(text: str, max_len: int) -> str:
    if len(text) <= max_len:
        return text
    return "..." + text[-(max_len - 3) :]


def main() -> None:
    """Entry point for the CLI."""
    cli(standalone_mode=True)  # pylint: disable=no-value-for-parameter


if __name__ == "__main__":
    main()
