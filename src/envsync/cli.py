"""Command line interface for env-sync."""

from __future__ import annotations

import difflib
import re
import signal
from pathlib import Path
from typing import Any, Callable, Optional

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from envsync.config import ConfigError, ConfigManager, EnvSyncConfig, resolve_with_precedence
from envsync.daemon import SyncDaemon
from envsync.identity import shorten_scope
from envsync.ingestion import EnvFileScanner
from envsync.logging_config import configure_logging
from envsync.reconcile import (
    NoCandidatesError,
    RestoreOutcome,
    RunReport,
    SyncAction,
    SyncOutcome,
    SyncService,
    restore_all,
)
from envsync.state import CandidateStore, StateError
from envsync.store import StoreError, redact_url

console = Console()

EXIT_FILES_FAILED = 2
_INTERVAL_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([smhd]?)\s*$")
_INTERVAL_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command appropriately.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """

    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    if isinstance(original, click.ClickException):
        raise original

    raise click.ClickException(message) from original


def _emit_message(message: Any, *, mode: str, quiet: bool, summary_only: bool) -> None:
    """Conditionally print CLI output according to quiet/summary settings.

    Args:
        message: Renderable or string to emit.
        mode: Output mode identifier (`detail`, `summary`, `warning`, or `error`).
        quiet: Whether quiet mode is active.
        summary_only: Whether only summary lines should be emitted.
    """

    if quiet and mode != "error":
        return

    important_modes = {"summary", "warning", "error"}
    if summary_only and mode not in important_modes:
        return

    console.print(message, highlight=False)


def _format_summary_line(command: str, root: Path | str, metrics: dict[str, Any]) -> str:
    """Return a consistent summary line for CLI commands.

    Args:
        command: Command name to include in the summary.
        root: Target root path relevant to the command.
        metrics: Ordered mapping of metric names to values.

    Returns:
        str: Rich-formatted summary string.
    """

    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {root}: {parts}.[/green]"


def _assign_nested(target: dict[str, Any], path: list[str], value: Any) -> None:
    """Assign a nested value within a dictionary for a dotted path.

    Raises:
        ConfigError: If a non-mapping value is encountered along the path.
    """

    node = target
    for segment in path[:-1]:
        existing = node.get(segment)
        if existing is None:
            existing = {}
            node[segment] = existing
        elif not isinstance(existing, dict):
            raise ConfigError(
                f"Cannot assign into '{segment}' because it is not a mapping in the config file."
            )
        node = existing
    node[path[-1]] = value


def _parse_interval(value: str) -> float:
    """Parse ``90``, ``45s``, ``30m``, ``2h`` or ``1d`` into seconds."""
    match = _INTERVAL_RE.match(value)
    if not match:
        raise click.BadParameter(
            f"Invalid duration {value!r}; use a number with an optional s/m/h/d suffix.",
            param_hint="--interval",
        )
    seconds = float(match.group(1)) * _INTERVAL_UNITS[match.group(2)]
    if seconds <= 0:
        raise click.BadParameter("Interval must be greater than zero.", param_hint="--interval")
    return seconds


def _load_config(
    ctx: click.Context,
    cli_overrides: Optional[dict[str, Any]] = None,
    *,
    ensure_file: bool = True,
) -> EnvSyncConfig:
    """Load the layered configuration and configure logging from it.

    With ``ensure_file`` disabled a missing config file is not created, so dry
    runs leave the disk untouched.
    """
    manager = ConfigManager()
    if ensure_file:
        manager.ensure_exists()
    overrides = {key: value for key, value in (cli_overrides or {}).items() if value is not None}
    config = manager.load(cli_overrides=overrides or None, ensure_file=ensure_file)
    verbosity = ctx.find_root().params.get("verbose", 0) or 0
    configure_logging(config.logging, verbosity=verbosity)
    return config


def _resolve_output_modes(
    ctx: click.Context,
    config: EnvSyncConfig,
    *,
    quiet: bool,
    summary_mode: bool,
    json_output: bool,
) -> tuple[bool, bool]:
    """Combine explicit flags with configured defaults for quiet/summary modes.

    Raises:
        click.ClickException: When incompatible modes are requested.
    """
    explicit_quiet = ctx.get_parameter_source("quiet") == ParameterSource.COMMANDLINE
    explicit_summary = ctx.get_parameter_source("summary_mode") == ParameterSource.COMMANDLINE

    quiet_enabled = quiet if explicit_quiet else config.cli.quiet_default
    summary_only = summary_mode if explicit_summary else config.cli.summary_default

    if json_output:
        if explicit_quiet and quiet_enabled:
            raise click.ClickException("--json cannot be combined with --quiet.")
        if explicit_summary and summary_only:
            raise click.ClickException("--json cannot be combined with --summary.")
        return False, False

    if quiet_enabled and summary_only:
        raise click.ClickException(
            "Quiet and summary modes cannot both be enabled. Adjust CLI defaults or flags."
        )
    return quiet_enabled, summary_only


def _database_option(func: Callable[..., Any]) -> Callable[..., Any]:
    return click.option(
        "--db",
        "database_url",
        envvar="ENV_SYNC_DB",
        show_envvar=True,
        help="Database URL (sqlite:///file.db, postgres://..., libsql://...?authToken=...).",
    )(func)


def _password_option(func: Callable[..., Any]) -> Callable[..., Any]:
    return click.option(
        "--password",
        envvar="ENV_SYNC_PASSWORD",
        show_envvar=True,
        help="Encryption password shared by every synced machine.",
    )(func)


def _sync_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the options shared by ``sync`` and ``upload``."""
    decorators = [
        _database_option,
        _password_option,
        click.option(
            "--base",
            "base_path",
            type=click.Path(file_okay=False, path_type=str),
            help="Base path for files outside git repositories (default: current dir).",
        ),
        click.option("--dry-run", is_flag=True, help="Show what would be synced without changes."),
        click.option("--workers", type=click.IntRange(min=1), help="Number of parallel workers."),
        click.option("--strict", is_flag=True, help="Exit with status 2 if any file fails."),
        click.option("--json", "json_output", is_flag=True, help="Emit the run report as JSON."),
        click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines."),
        click.option("--quiet", is_flag=True, help="Suppress non-error output."),
        click.pass_context,
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


def _emit_outcome(outcome: SyncOutcome, *, quiet: bool, summary_only: bool) -> None:
    if outcome.ok:
        _emit_message(escape(outcome.message), mode="detail", quiet=quiet, summary_only=summary_only)
    else:
        _emit_message(
            f"[red]{escape(outcome.message)}[/red]", mode="error", quiet=quiet, summary_only=summary_only
        )
    for note in outcome.notes:
        _emit_message(
            f"  (note: {escape(note)})", mode="warning", quiet=quiet, summary_only=summary_only
        )


def _emit_report(
    report: RunReport,
    *,
    command: str,
    base_path: Path,
    quiet: bool,
    summary_only: bool,
) -> None:
    """Render the summary and performance lines for a finished run."""
    metrics: dict[str, Any] = dict(report.counters)
    if report.dry_run:
        metrics["dry_run"] = True
    _emit_message(
        _format_summary_line(command, base_path, metrics),
        mode="summary",
        quiet=quiet,
        summary_only=summary_only,
    )

    performance = (
        f"[dim]Performance: files={report.total}, workers={report.workers}, "
        f"connect={report.connect_seconds * 1000:.0f}ms, "
        f"sync={report.elapsed_seconds * 1000:.0f}ms"
    )
    if report.files_per_second:
        performance += f", throughput={report.files_per_second:.1f} files/sec"
    _emit_message(performance + "[/dim]", mode="detail", quiet=quiet, summary_only=summary_only)

    if report.backend_suspect:
        _emit_message(
            f"[bold red]{report.store_errors} files failed with database errors; "
            "the backend may be unavailable.[/bold red]",
            mode="warning",
            quiet=quiet,
            summary_only=summary_only,
        )


def _exit_code_for(report: RunReport, *, strict: bool) -> int:
    errors = report.counters.get("errors", 0)
    if report.all_failed or (strict and errors):
        return EXIT_FILES_FAILED
    return 0


def _run_sync_command(
    ctx: click.Context,
    *,
    command: str,
    force_upload: bool,
    database_url: str | None,
    password: str | None,
    base_path: str | None,
    dry_run: bool,
    workers: int | None,
    strict: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    exit_code = 0
    try:
        config = _load_config(
            ctx,
            {
                "sync.workers": workers,
                "database.url": database_url,
                "sync.base_path": base_path,
            },
            ensure_file=not dry_run,
        )
        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, config, quiet=quiet, summary_mode=summary_mode, json_output=json_output
        )
        service = SyncService(
            config,
            database_url=config.database.url,
            password=password,
        )
        candidates = service.candidates()

        if not json_output:
            if dry_run:
                _emit_message(
                    "[yellow]DRY RUN MODE - No changes will be made[/yellow]",
                    mode="warning",
                    quiet=quiet_enabled,
                    summary_only=summary_only,
                )
            verb = "Uploading" if force_upload else "Syncing"
            _emit_message(
                f"{verb} {len(candidates)} .env file(s) with "
                f"{min(service.workers, len(candidates))} workers...",
                mode="detail",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )

        def _on_outcome(outcome: SyncOutcome) -> None:
            if not json_output:
                _emit_outcome(outcome, quiet=quiet_enabled, summary_only=summary_only)

        report = service.run(dry_run=dry_run, force_upload=force_upload, on_outcome=_on_outcome)

        if json_output:
            payload = report.to_payload()
            payload["base_path"] = str(service.base_path)
            console.print_json(data=payload)
        else:
            _emit_report(
                report,
                command=command,
                base_path=service.base_path,
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        exit_code = _exit_code_for(report, strict=strict or config.sync.strict)
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    except NoCandidatesError as exc:
        _handle_cli_error(str(exc), code="no_candidates", json_output=json_output, original=exc)
    except StateError as exc:
        _handle_cli_error(str(exc), code="state_error", json_output=json_output, original=exc)
    except StoreError as exc:
        _handle_cli_error(str(exc), code="store_error", json_output=json_output, original=exc)
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_output, original=exc)
    except Exception as exc:
        _handle_cli_error(
            f"Unexpected error during {command.lower()}: {exc}",
            code="internal_error",
            json_output=json_output,
            details={"exception": type(exc).__name__},
            original=exc,
        )

    if exit_code:
        ctx.exit(exit_code)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="env-sync")
@click.option("-v", "--verbose", count=True, help="Increase log verbosity (-v info, -vv debug).")
def cli(verbose: int) -> None:
    """env-sync keeps .env files in sync across machines through an encrypted database.

    Returns:
        None: This function is invoked for its side effects.
    """


@cli.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=str))
@click.option("--json", "json_output", is_flag=True, help="Emit the discovered files as JSON.")
@click.pass_context
def scan(ctx: click.Context, path: str, json_output: bool) -> None:
    """Recursively find .env files under PATH and remember them for later syncs.

    Args:
        ctx: Click context.
        path: Directory to scan.
        json_output: If True, emit JSON instead of text.
    """
    try:
        config = _load_config(ctx)
        scanner = EnvFileScanner(
            patterns=config.scan.patterns,
            skip_dirs=config.scan.skip_dirs,
            include_hidden_dirs=config.scan.include_hidden_dirs,
        )
        root = Path(path).expanduser().resolve()
        files = list(scanner.scan(root))
        store = CandidateStore(Path(config.sync.candidates_file))
        store.save(files, scanned_root=root)
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
        return
    except ValueError as exc:
        _handle_cli_error(str(exc), code="scan_error", json_output=json_output, original=exc)
        return
    except OSError as exc:
        _handle_cli_error(
            f"Failed to save candidate list: {exc}",
            code="state_error",
            json_output=json_output,
            original=exc,
        )
        return

    if json_output:
        console.print_json(
            data={
                "root": str(root),
                "files": [str(file) for file in files],
                "saved_to": str(store.path),
            }
        )
        return

    console.print(f"Found {len(files)} .env file(s):", highlight=False)
    for file in files:
        console.print(f"  {file}", highlight=False)
    console.print(f"[green]Saved {len(files)} path(s) to {store.path}.[/green]", highlight=False)


@cli.command("list")
@click.option("--json", "json_output", is_flag=True, help="Emit the remembered files as JSON.")
@click.pass_context
def list_files(ctx: click.Context, json_output: bool) -> None:
    """List the .env files remembered by the last scan."""
    try:
        config = _load_config(ctx)
        store = CandidateStore(Path(config.sync.candidates_file))
        files = store.paths()
    except (ConfigError, StateError) as exc:
        code = "config_error" if isinstance(exc, ConfigError) else "state_error"
        _handle_cli_error(str(exc), code=code, json_output=json_output, original=exc)
        return

    if json_output:
        console.print_json(data={"files": [str(file) for file in files]})
        return

    if not files:
        console.print("[yellow]No env files found. Run 'env-sync scan <path>' first.[/yellow]")
        return

    console.print(f"Remembered .env files ({len(files)}):", highlight=False)
    for index, file in enumerate(files, start=1):
        console.print(f"  {index}. {file}", highlight=False)


@cli.command()
@_sync_options
def sync(ctx: click.Context, **options: Any) -> None:
    """Reconcile remembered .env files with the database in both directions.

    Newer local files are uploaded, newer remote records are downloaded and
    identical files are skipped. When contents differ but timestamps are within
    the tolerance window the local copy wins and the file counts as a conflict.
    """
    _run_sync_command(ctx, command="Sync", force_upload=False, **options)


@cli.command()
@_sync_options
def upload(ctx: click.Context, **options: Any) -> None:
    """Upload every remembered .env file, overwriting the stored copies."""
    _run_sync_command(ctx, command="Upload", force_upload=True, **options)


@cli.command()
@_database_option
@_password_option
@click.option(
    "--output",
    type=click.Path(file_okay=False, path_type=str),
    default=".",
    show_default=True,
    help="Directory that receives the restored files.",
)
@click.option("--json", "json_output", is_flag=True, help="Emit the restore report as JSON.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def download(
    ctx: click.Context,
    database_url: str | None,
    password: str | None,
    output: str,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Restore every stored .env file below OUTPUT.

    Files from git repositories land in ``OUTPUT/<host>/<owner>/<repo>/...``;
    files stored relative to a base path land directly below OUTPUT.
    """
    exit_code = 0
    try:
        config = _load_config(ctx, {"database.url": database_url})
        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, config, quiet=quiet, summary_mode=summary_mode, json_output=json_output
        )
        service = SyncService(config, database_url=config.database.url, password=password)
        output_dir = Path(output).expanduser().resolve()

        def _on_outcome(outcome: RestoreOutcome) -> None:
            if json_output:
                return
            mode = "detail" if outcome.ok else "error"
            text = escape(outcome.message)
            if not outcome.ok:
                text = f"[red]{text}[/red]"
            _emit_message(text, mode=mode, quiet=quiet_enabled, summary_only=summary_only)
            for note in outcome.notes:
                _emit_message(
                    f"  (note: {escape(note)})",
                    mode="warning",
                    quiet=quiet_enabled,
                    summary_only=summary_only,
                )

        secret = service.password
        store = service.open_store()
        try:
            report = restore_all(store, service.codec, secret, output_dir, on_outcome=_on_outcome)
        finally:
            store.close()

        if json_output:
            console.print_json(data=report.to_payload())
        elif not report.outcomes:
            _emit_message(
                "[yellow]No .env files found in database.[/yellow]",
                mode="warning",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        else:
            _emit_message(
                _format_summary_line(
                    "Download",
                    output_dir,
                    {"restored": report.restored, "errors": report.failed},
                ),
                mode="summary",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        if report.outcomes and report.restored == 0:
            exit_code = EXIT_FILES_FAILED
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    except StoreError as exc:
        _handle_cli_error(str(exc), code="store_error", json_output=json_output, original=exc)
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_output, original=exc)
    except Exception as exc:
        _handle_cli_error(
            f"Unexpected error during download: {exc}",
            code="internal_error",
            json_output=json_output,
            details={"exception": type(exc).__name__},
            original=exc,
        )

    if exit_code:
        ctx.exit(exit_code)


@cli.command()
@_database_option
@click.option("--json", "json_output", is_flag=True, help="Emit record metadata as JSON.")
@click.pass_context
def records(ctx: click.Context, database_url: str | None, json_output: bool) -> None:
    """Show metadata of the records stored in the database (never their contents)."""
    try:
        config = _load_config(ctx, {"database.url": database_url})
        service = SyncService(config, database_url=config.database.url, password=None)
        entries = service.list_records()
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
        return
    except StoreError as exc:
        _handle_cli_error(str(exc), code="store_error", json_output=json_output, original=exc)
        return

    if json_output:
        console.print_json(
            data={
                "database": redact_url(config.database.url or ""),
                "records": [entry.model_dump(mode="json", exclude={"encoded_blob"}) for entry in entries],
            }
        )
        return

    if not entries:
        console.print("[yellow]No .env files found in database.[/yellow]")
        return

    table = Table(title=f"Stored records ({len(entries)})")
    table.add_column("Repository", style="cyan")
    table.add_column("Path", overflow="fold")
    table.add_column("Modified (UTC)")
    table.add_column("Updated")
    table.add_column("Hash", style="dim")
    for entry in entries:
        table.add_row(
            escape(shorten_scope(entry.scope_key)),
            escape(entry.relative_path),
            entry.content_modified_at,
            entry.updated_at.isoformat(sep=" ", timespec="seconds") if entry.updated_at else "-",
            entry.content_hash[:12],
        )
    console.print(table)


@cli.command()
@_database_option
@_password_option
@click.option(
    "--base",
    "base_path",
    type=click.Path(file_okay=False, path_type=str),
    help="Base path for files outside git repositories (default: current dir).",
)
@click.option("--interval", type=str, help="Delay between syncs, e.g. 90, 45s, 30m, 2h.")
@click.option("--workers", type=click.IntRange(min=1), help="Number of parallel workers.")
@click.option(
    "--watch/--no-watch",
    "watch_files",
    default=None,
    help="Also sync shortly after a remembered file changes.",
)
@click.option("--dry-run", is_flag=True, help="Only report what each run would do.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def daemon(
    ctx: click.Context,
    database_url: str | None,
    password: str | None,
    base_path: str | None,
    interval: str | None,
    workers: int | None,
    watch_files: bool | None,
    dry_run: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Sync once, then keep syncing on an interval until interrupted."""
    interval_seconds = _parse_interval(interval) if interval else None
    try:
        config = _load_config(
            ctx,
            {
                "database.url": database_url,
                "sync.base_path": base_path,
                "sync.workers": workers,
                "daemon.interval_seconds": interval_seconds,
                "daemon.watch_files": watch_files,
            },
            ensure_file=not dry_run,
        )
        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, config, quiet=quiet, summary_mode=summary_mode, json_output=False
        )
        service = SyncService(config, database_url=config.database.url, password=password)
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=False, original=exc)
        return

    def _on_report(report: RunReport) -> None:
        for outcome in report.outcomes:
            if outcome.action is SyncAction.SKIP:
                continue
            _emit_outcome(outcome, quiet=quiet_enabled, summary_only=summary_only)
        _emit_report(
            report,
            command="Daemon sync",
            base_path=service.base_path,
            quiet=quiet_enabled,
            summary_only=summary_only,
        )

    def _on_error(exc: Exception) -> None:
        _emit_message(
            f"[red]Sync run failed: {escape(str(exc))}[/red]",
            mode="error",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )

    runner = SyncDaemon(
        service,
        config.daemon,
        dry_run=dry_run,
        on_report=_on_report,
        on_error=_on_error,
    )

    def _request_stop(signum: int, _frame: Any) -> None:
        runner.stop()

    previous = {
        signum: signal.signal(signum, _request_stop) for signum in (signal.SIGINT, signal.SIGTERM)
    }
    _emit_message(
        f"[cyan]Daemon started: syncing every {config.daemon.interval_seconds:g}s"
        f"{' and on file changes' if config.daemon.watch_files else ''}. "
        "Press Ctrl+C to stop.[/cyan]",
        mode="detail",
        quiet=quiet_enabled,
        summary_only=summary_only,
    )
    try:
        runner.run_forever()
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)

    _emit_message(
        f"[yellow]Daemon stopped after {runner.runs} run(s).[/yellow]",
        mode="summary",
        quiet=quiet_enabled,
        summary_only=summary_only,
    )


@cli.group()
def config() -> None:
    """Manage env-sync configuration files and overrides.

    Returns:
        None: This function is invoked for its side effects.
    """


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Args:
        no_env: If True, ignore environment-derived overrides.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        loaded = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    data = loaded.model_dump(mode="python")
    if data["database"].get("url"):
        data["database"]["url"] = redact_url(data["database"]["url"])
    yaml_text = yaml.safe_dump(data, sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Args:
        key: Dotted path describing the configuration field to update.
        value: YAML-literal value to write into the configuration file.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """
    manager = ConfigManager()
    manager.ensure_exists()

    before = manager.read_text().splitlines()
    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException("KEY must specify a dotted path such as 'sync.workers'.")

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        file_data = manager.load_file_overrides()
        _assign_nested(file_data, segments, parsed_value)
        resolve_with_precedence(defaults=EnvSyncConfig(), file_overrides=file_data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(file_data)
    after = manager.read_text().splitlines()

    # The timestamp header always changes; ignore it when diffing.
    before_body = [line for line in before if not line.startswith("# Last updated:")]
    after_body = [line for line in after if not line.startswith("# Last updated:")]
    diff = list(
        difflib.unified_diff(
            before_body,
            after_body,
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
    )

    if diff:
        console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    else:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


@config.command("edit")
def config_edit() -> None:
    """Open the configuration file in an interactive editor session.

    Raises:
        click.ClickException: If edited content is invalid or cannot be saved.
    """
    manager = ConfigManager()
    manager.ensure_exists()

    original = manager.read_text()
    edited = click.edit(original, extension=".yaml")

    if edited is None:
        console.print("[yellow]Edit cancelled; no changes applied.[/yellow]")
        return

    if edited == original:
        console.print("[yellow]No changes detected.[/yellow]")
        return

    try:
        parsed = yaml.safe_load(edited) or {}
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid YAML: {exc}") from exc

    if not isinstance(parsed, dict):
        raise click.ClickException("Configuration file must contain a top-level mapping.")

    try:
        resolve_with_precedence(defaults=EnvSyncConfig(), file_overrides=parsed)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(parsed)
    console.print("[green]Configuration updated successfully.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point.

    Returns:
        None: This function is invoked for its side effects.
    """
    cli()


if __name__ == "__main__":
    main()
