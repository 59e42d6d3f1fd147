"""Command-line interface for promise-fixer."""

import hashlib
import json
import logging
import re
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from promise_rejection_fixer import __version__
from promise_rejection_fixer.cli.config_loader import load_runtime_config
from promise_rejection_fixer.config.runtime_config import ApplicationMode, RuntimeConfig
from promise_rejection_fixer.core.exceptions import FixWriteError, NoActiveDocumentError
from promise_rejection_fixer.core.fixer import PromiseFixer
from promise_rejection_fixer.core.models import FixResult

console = Console()
logger = logging.getLogger(__name__)

# Compiled pattern for detecting control characters only.
_INJECTION_PATTERN = re.compile(r"[\x00-\x1f\x7f]")


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """Find promise chains without rejection handling and add a no-op catch handler.

    Defines the top-level `cli` command group with a version option and registers the
    `analyze` and `fix` subcommands.
    """


def sanitize_for_output(value: str) -> str:
    """Redact control characters before printing.

    Args:
        value (str): The string to sanitize for terminal output.

    Returns:
        str: "[REDACTED]" if control characters are found; otherwise the original string.
    """
    if _INJECTION_PATTERN.search(value):
        value_hash = hashlib.sha256(value.encode("utf-8")).hexdigest()
        logger.debug(
            "Redacting value containing control characters: length=%d, hash=%s",
            len(value),
            value_hash,
        )
        return "[REDACTED]"
    return value


def _display_path(path: str | None) -> str:
    """Return a cwd-relative, sanitized path escaped for rich markup."""
    if path is None:
        return "<text>"
    try:
        shown = str(Path(path).relative_to(Path.cwd()))
    except ValueError:
        shown = path
    return escape(sanitize_for_output(shown))


def _configure_logging(runtime_config: RuntimeConfig) -> None:
    log_handler = (
        logging.FileHandler(runtime_config.log_file)
        if runtime_config.log_file
        else logging.StreamHandler()
    )
    logging.basicConfig(
        level=getattr(logging, runtime_config.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[log_handler],
        force=True,
    )


def _load_config_or_abort(config: str | None, cli_overrides: dict[str, Any]) -> RuntimeConfig:
    try:
        runtime_config = load_runtime_config(config=config, cli_overrides=cli_overrides)
        _configure_logging(runtime_config)
    except Exception as e:
        console.print(f"[red]❌ Configuration error: {e}[/red]")
        raise click.Abort() from e
    return runtime_config


def _collect_or_abort(fixer: PromiseFixer, paths: tuple[str, ...]) -> list[Path]:
    try:
        return fixer.collect_source_files(paths)
    except NoActiveDocumentError as e:
        console.print("[red]No document found. Failed[/red]")
        logger.error("%s", e)
        raise click.Abort() from e


def _report_to_dict(result: FixResult) -> dict[str, Any]:
    """Serialize a FixResult for the JSON report (edits against the pre-edit text)."""
    return {
        "path": result.path,
        "sites": [
            {
                "offset": verdict.site.offset,
                "line": verdict.site.position.line,
                "column": verdict.site.position.column,
                "pattern": verdict.pattern.value,
                "handled": verdict.handled,
            }
            for verdict in result.verdicts
        ],
        "edits": [
            {
                "offset": edit.offset,
                "line": edit.position.line,
                "column": edit.position.column,
                "text": edit.text,
            }
            for edit in result.edits
        ],
        "audit": (
            {
                "chain_count": result.audit.chain_count,
                "handler_count": result.audit.adjusted_handler_count,
                "mismatch": result.audit.mismatch,
                "message": result.audit.message,
            }
            if result.audit
            else None
        ),
    }


def _print_audit_warning(result: FixResult) -> None:
    if result.audit and result.audit.mismatch:
        console.print(
            f"[yellow]⚠ {_display_path(result.path)}: {result.audit.message}[/yellow]"
        )


@cli.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path())
@click.option(
    "--config",
    type=click.Path(dir_okay=False),
    help="Path to configuration file (YAML/TOML)",
)
@click.option(
    "--catch-lookahead",
    type=click.IntRange(min=0),
    help="Characters after a call searched for a chained .catch( (default: 20)",
)
@click.option("--json", "as_json", is_flag=True, help="Print a machine-readable JSON report")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Logging level (default: INFO)",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False),
    help="Path to log file (default: stderr only)",
)
def analyze(
    paths: tuple[str, ...],
    config: str | None,
    catch_lookahead: int | None,
    as_json: bool,
    log_level: str | None,
    log_file: str | None,
) -> None:
    """Report every promise chain and whether it handles rejections, without editing.

    Args:
        paths: Source files or directories to analyze.
        config: Path to configuration file (YAML or TOML).
        catch_lookahead: Override for the chained-catch lookahead window.
        as_json: Print a JSON report instead of tables.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Path to log file for output.

    Raises:
        click.Abort: If configuration is invalid or a path does not exist.
    """
    runtime_config = _load_config_or_abort(
        config,
        {
            "catch_lookahead": catch_lookahead,
            "log_level": log_level.upper() if log_level else None,
            "log_file": str(log_file) if log_file else None,
        },
    )
    fixer = PromiseFixer(runtime_config)
    files = _collect_or_abort(fixer, paths)

    try:
        results = fixer.fix_files(files, dry_run=True)
    except NoActiveDocumentError as e:
        console.print("[red]No document found. Failed[/red]")
        raise click.Abort() from e

    if as_json:
        click.echo(json.dumps([_report_to_dict(result) for result in results], indent=2))
        return

    if not results:
        console.print("Exiting. No matches.")
        return

    for result in results:
        shown = _display_path(result.path)
        console.print(f"Found {len(result.sites)} promises in {shown}")
        if not result.has_matches:
            continue

        table = Table(title=f"Promise chains in {shown}")
        table.add_column("Location", style="cyan")
        table.add_column("Handling", style="magenta")
        table.add_column("Status")
        for verdict in result.verdicts:
            status = "[green]handled[/green]" if verdict.handled else "[red]unhandled[/red]"
            table.add_row(verdict.site.position.display(), verdict.pattern.value, status)
        console.print(table)
        _print_audit_warning(result)

    total_sites = sum(len(result.sites) for result in results)
    if total_sites == 0:
        console.print("Exiting. No matches.")
        return

    unhandled = sum(len(result.edits) for result in results)
    console.print(f"\n📊 {total_sites} promise chains, {unhandled} without rejection handling")


@cli.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path())
@click.option(
    "--dry-run",
    is_flag=True,
    help="Show the handlers that would be inserted without writing any file",
)
@click.option(
    "--noop-handler",
    type=str,
    help="Identifier of the no-op function passed to .catch() (default: noop)",
)
@click.option(
    "--catch-lookahead",
    type=click.IntRange(min=0),
    help="Characters after a call searched for a chained .catch( (default: 20)",
)
@click.option(
    "--backup/--no-backup",
    default=None,
    help="Copy each file to <name>.backup before rewriting it (default: disabled)",
)
@click.option(
    "--config",
    type=click.Path(dir_okay=False),
    help="Path to configuration file (YAML/TOML)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Logging level (default: INFO)",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False),
    help="Path to log file (default: stderr only)",
)
def fix(
    paths: tuple[str, ...],
    dry_run: bool,
    noop_handler: str | None,
    catch_lookahead: int | None,
    backup: bool | None,
    config: str | None,
    log_level: str | None,
    log_file: str | None,
) -> None:
    r"""Insert a no-op rejection handler after every promise chain that lacks one.

    Configuration precedence: CLI flags > environment variables > config file > defaults

    Args:
        paths: Source files or directories to fix.
        dry_run: If True, report edits without writing files.
        noop_handler: Identifier passed to the inserted ``.catch()``.
        catch_lookahead: Override for the chained-catch lookahead window.
        backup: Enable (True) or disable (False) backups. None uses config/env/defaults.
        config: Path to configuration file (YAML or TOML).
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Path to log file for output.

    Raises:
        click.Abort: If configuration is invalid, a path does not exist, or a file
            cannot be written.

    Examples:
        # Fix every JS/TS file under src/
        $ promise-fixer fix src/

        # Preview the edits with a custom handler name
        $ promise-fixer fix app.js --dry-run --noop-handler ignoreError
    """
    runtime_config = _load_config_or_abort(
        config,
        {
            "mode": ApplicationMode.DRY_RUN if dry_run else None,
            "noop_handler": noop_handler,
            "catch_lookahead": catch_lookahead,
            "create_backup": backup,
            "log_level": log_level.upper() if log_level else None,
            "log_file": str(log_file) if log_file else None,
        },
    )
    fixer = PromiseFixer(runtime_config)
    files = _collect_or_abort(fixer, paths)
    is_dry_run = runtime_config.mode == ApplicationMode.DRY_RUN

    if is_dry_run:
        console.print("[yellow]DRY RUN MODE:[/yellow] Analyzing promises without writing files")

    try:
        results = fixer.fix_files(files)
    except NoActiveDocumentError as e:
        console.print("[red]No document found. Failed[/red]")
        raise click.Abort() from e
    except FixWriteError as e:
        console.print(f"\n[red]❌ Error writing fixes: {escape(str(e))}[/red]")
        logger.exception("Failed to write fixes")
        rewritten = [result for result in e.completed if result.written]
        if rewritten:
            console.print("[yellow]Already rewritten before the failure:[/yellow]")
            for result in rewritten:
                console.print(f"  {_display_path(result.path)}")
        raise click.Abort() from e

    total_sites = sum(len(result.sites) for result in results)
    if total_sites == 0:
        console.print("Found 0 promises")
        console.print("Exiting. No matches.")
        return

    edited_table = Table(title="Would insert" if is_dry_run else "Inserted rejection handlers")
    edited_table.add_column("Location", style="cyan")
    edited_table.add_column("Inserted", style="green")

    for result in results:
        if not result.has_matches:
            continue
        shown = _display_path(result.path)
        console.print(f"Found {len(result.sites)} promises in {shown}")
        for edit in result.edits:
            edited_table.add_row(f"{shown}:{edit.position.display()}", edit.text)
        if result.backup_path:
            console.print(f"[dim]Backup: {_display_path(result.backup_path)}[/dim]")
        _print_audit_warning(result)

    inserted = sum(len(result.edits) for result in results)
    if inserted:
        console.print(edited_table)

    verb = "Would insert" if is_dry_run else "Inserted"
    console.print("\n[bold green]✅ Results:[/bold green]")
    console.print(f"  Promise chains: {total_sites}")
    console.print(f"  Already handled: {total_sites - inserted}")
    console.print(f"  {verb}: {inserted} rejection handlers")


if __name__ == "__main__":
    cli()
