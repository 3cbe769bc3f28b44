"""CLI module for sync group schema maintenance around deployments.

Run ``pre`` before deploying to the hub database and ``post`` afterwards.

Usage:
    SYNC_PROFILE=prod syncgroup-schema pre
    syncgroup-schema --profile prod pre --max-wait 1800
    syncgroup-schema --profile prod post --exclude '\\[dbo\\]\\.\\[_.*\\]' --dry-run
    syncgroup-schema post --subscription-id ... --resource-group rg \\
        --server srv --database hub --sync-group sg --include '[dbo].[_Keep]'

Commands:
    pre   - Disable periodic sync and wait for any in-flight sync to finish
    post  - Refresh the hub schema, reconcile, write the schema document,
            push it, and re-enable periodic sync
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import TypeVar

import httpx
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from syncgroup_schema.clients.base import SyncGroupRef
from syncgroup_schema.config.loader import DEFAULT_CONFIG_NAME, load_sync_config
from syncgroup_schema.config.models import (
    PostDeploymentSettings,
    PreDeploymentSettings,
    SyncConfig,
)
from syncgroup_schema.deploy.post import run_post_deployment
from syncgroup_schema.deploy.pre import run_pre_deployment
from syncgroup_schema.errors import (
    ConfigurationError,
    ProfileNotFoundError,
    SchemaRefreshTimeoutError,
    SyncWaitTimeoutError,
)
from syncgroup_schema.factory import (
    REQUIRED_IDENTIFIERS,
    get_active_profile_name,
    get_client,
    resolve_ref,
    resolve_token,
)
from syncgroup_schema.schema.filters import FilterRules
from syncgroup_schema.schema.models import ReconciliationResult

SettingsT = TypeVar("SettingsT", PreDeploymentSettings, PostDeploymentSettings)

console = Console()
logger = logging.getLogger("syncgroup_schema")


# ============================================================================
# Argument resolution (CLI-internal helpers)
# ============================================================================


def _configure_logging(verbose: bool) -> None:
    """Route package logging through rich."""
    handler = RichHandler(console=console, show_path=False, markup=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.handlers[:] = [handler]
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False


def _load_config(args: argparse.Namespace) -> SyncConfig | None:
    """Load ``--config``, or syncgroup.toml from cwd when present.

    Raises:
        FileNotFoundError: If an explicit ``--config`` path does not exist.
    """
    config_path = getattr(args, "config", None)
    if config_path is not None:
        return load_sync_config(Path(config_path))

    default_path = Path.cwd() / DEFAULT_CONFIG_NAME
    if default_path.exists():
        return load_sync_config(default_path)
    return None


def _resolve_profile_name(args: argparse.Namespace) -> str | None:
    if args.profile:
        return args.profile
    try:
        return get_active_profile_name(env_prefix=args.env_prefix)
    except ProfileNotFoundError:
        return None


def _resolve_ref(args: argparse.Namespace, config: SyncConfig | None) -> SyncGroupRef:
    overrides = {key: getattr(args, key, None) for key in REQUIRED_IDENTIFIERS}
    return resolve_ref(config, _resolve_profile_name(args), overrides)


def _resolve_rules(args: argparse.Namespace, config: SyncConfig | None) -> FilterRules:
    cli_rules = FilterRules(
        exclude_patterns=args.exclude or [],
        include_names=set(args.include or []),
    )
    if config is None:
        return cli_rules
    return config.filters.merged(cli_rules)


def _merge_settings(settings: SettingsT, **overrides: object) -> SettingsT:
    """Overlay explicit CLI values on config settings and re-validate them.

    Raises:
        ValidationError: If a value is out of range (e.g. a non-positive timeout)
    """
    values = settings.model_dump()
    values.update({key: value for key, value in overrides.items() if value is not None})
    return type(settings).model_validate(values)


def _print_reconciliation(result: ReconciliationResult) -> None:
    """Render the change log as a table."""
    if not result.changes:
        console.print("[bold green]v[/bold green] Schema unchanged")
        return

    table = Table(title="Schema Changes", show_header=True, header_style="bold")
    table.add_column("Table", style="dim")
    table.add_column("Column")
    table.add_column("Change")
    table.add_column("Reason", style="dim")

    styles = {
        "remove_table": "[bold red]DROP TABLE[/bold red]",
        "remove_column": "[red]drop[/red]",
        "add_table": "[bold green]NEW TABLE[/bold green]",
        "add_column": "[green]add[/green]",
        "skip_table": "[yellow]UNSUPPORTED[/yellow]",
        "skip_column": "[yellow]unsupported[/yellow]",
    }
    for change in result.changes:
        table.add_row(
            escape(change.table),
            escape(change.column or ""),
            styles[change.action],
            change.reason if not change.error_id else f"{change.reason} ({change.error_id})",
        )

    console.print(table)
    console.print(
        f"  Tables: [green]+{len(result.tables_added)}[/green] "
        f"[red]-{len(result.tables_removed)}[/red]  "
        f"Columns: [green]+{len(result.columns_added)}[/green] "
        f"[red]-{len(result.columns_removed)}[/red]"
    )


# ============================================================================
# Async command implementations
# ============================================================================


async def _async_pre(args: argparse.Namespace) -> int:
    """Async implementation for pre command.

    Args:
        args: Parsed arguments with identifiers, poll_interval, and max_wait.

    Returns:
        0 on success, 1 on failure.
    """
    try:
        config = _load_config(args)
        ref = _resolve_ref(args, config)
        token = resolve_token(args.token, env_prefix=args.env_prefix)
        settings = _merge_settings(
            config.pre if config else PreDeploymentSettings(),
            poll_interval=args.poll_interval,
            max_wait=args.max_wait,
        )
    except (ConfigurationError, FileNotFoundError, ValidationError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    console.print(f"Preparing sync group [bold cyan]{ref}[/bold cyan] for deployment")

    try:
        async with get_client(token) as client:
            result = await run_pre_deployment(
                client,
                ref,
                poll_interval=settings.poll_interval,
                max_wait=settings.max_wait,
            )
    except SyncWaitTimeoutError as e:
        console.print(f"\n[bold red]x[/bold red] {escape(str(e))}")
        return 1
    except httpx.HTTPError as e:
        console.print(f"\n[bold red]x[/bold red] Remote call failed: {escape(str(e))}")
        return 1

    console.print()
    console.print(
        f"[bold green]v[/bold green] Periodic sync disabled; "
        f"sync state: [bold]{result.final_state}[/bold]"
    )
    return 0


async def _async_post(args: argparse.Namespace) -> int:
    """Async implementation for post command.

    Args:
        args: Parsed arguments with identifiers, filters, refresh_timeout,
            interval, dry_run, output, and poll_interval.

    Returns:
        0 on success, 1 on failure (including refresh timeout).
    """
    try:
        config = _load_config(args)
        ref = _resolve_ref(args, config)
        rules = _resolve_rules(args, config)
        token = resolve_token(args.token, env_prefix=args.env_prefix)
        settings = _merge_settings(
            config.post if config else PostDeploymentSettings(),
            refresh_timeout=args.refresh_timeout,
            interval=args.interval,
            poll_interval=args.poll_interval,
            output=args.output,
        )
    except (ConfigurationError, FileNotFoundError, ValidationError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    console.print(f"Reconciling schema of [bold cyan]{ref}[/bold cyan]")
    if rules.exclude_patterns or rules.include_names:
        console.print(
            f"  Exclude: [dim]{escape(', '.join(rules.exclude_patterns)) or '-'}[/dim]  "
            f"Include: [dim]{escape(', '.join(sorted(rules.include_names))) or '-'}[/dim]"
        )

    try:
        async with get_client(token) as client:
            result = await run_post_deployment(
                client,
                ref,
                rules=rules,
                refresh_timeout=settings.refresh_timeout,
                interval=settings.interval,
                dry_run=args.dry_run,
                output_path=settings.output,
                poll_interval=settings.poll_interval,
            )
    except SchemaRefreshTimeoutError as e:
        console.print(f"\n[bold red]x[/bold red] {escape(str(e))}")
        console.print("[dim]No changes were applied to the sync group.[/dim]")
        return 1
    except httpx.HTTPError as e:
        console.print(f"\n[bold red]x[/bold red] Remote call failed: {escape(str(e))}")
        return 1

    console.print()
    _print_reconciliation(result.reconciliation)
    console.print(f"\nSchema document: [cyan]{result.output_path}[/cyan]")

    if result.dry_run:
        console.print()
        console.print("[bold yellow]DRY RUN[/bold yellow] - No changes pushed.")
        return 0

    console.print(
        f"[bold green]v[/bold green] Schema pushed; periodic sync every "
        f"{result.interval}s"
    )
    return 0


# ============================================================================
# Sync command wrappers
# ============================================================================


def cmd_pre(args: argparse.Namespace) -> int:
    """Disable periodic sync and wait for in-flight sync.

    Wraps the async implementation with ``asyncio.run()``.
    """
    return asyncio.run(_async_pre(args))


def cmd_post(args: argparse.Namespace) -> int:
    """Refresh, reconcile, and push the sync group schema.

    Wraps the async implementation with ``asyncio.run()``.
    """
    return asyncio.run(_async_post(args))


# ============================================================================
# Main entry point
# ============================================================================


def _add_identifier_arguments(parser: argparse.ArgumentParser) -> None:
    group = parser.add_argument_group("sync group (overrides the profile)")
    group.add_argument("--subscription-id", help="Azure subscription id")
    group.add_argument("--resource-group", help="Resource group of the server")
    group.add_argument("--server", help="Logical SQL server name")
    group.add_argument("--database", help="Hub database name")
    group.add_argument("--sync-group", help="Sync group name")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser (exposed for tests)."""
    parser = argparse.ArgumentParser(
        prog="syncgroup-schema",
        description="Keep a Data Sync group's schema in line with its hub database",
    )

    # Global options
    parser.add_argument(
        "--config",
        default=None,
        help=f"Path to config file (default: ./{DEFAULT_CONFIG_NAME} if present)",
    )
    parser.add_argument(
        "--profile",
        default=None,
        help="Profile name from the config file (default: $SYNC_PROFILE)",
    )
    parser.add_argument(
        "--env-prefix",
        default="",
        help=(
            "Prefix for environment variable lookup "
            "(e.g., --env-prefix APP_ reads APP_SYNC_PROFILE)"
        ),
    )
    parser.add_argument(
        "--token",
        default=None,
        help="Resource Manager bearer token (default: $AZURE_ACCESS_TOKEN)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # pre command
    p_pre = subparsers.add_parser(
        "pre",
        help="Disable periodic sync and wait for in-flight sync to finish",
    )
    _add_identifier_arguments(p_pre)
    p_pre.add_argument(
        "--poll-interval",
        type=float,
        default=None,
        help="Seconds between sync state polls (default: 5)",
    )
    p_pre.add_argument(
        "--max-wait",
        type=float,
        default=None,
        help="Give up after this many seconds (default: wait indefinitely)",
    )
    p_pre.set_defaults(func=cmd_pre)

    # post command
    p_post = subparsers.add_parser(
        "post",
        help="Refresh hub schema, reconcile, and push the sync group schema",
    )
    _add_identifier_arguments(p_post)
    p_post.add_argument(
        "--exclude",
        action="append",
        metavar="REGEX",
        help="Exclude tables whose [schema].[table] name matches (repeatable)",
    )
    p_post.add_argument(
        "--include",
        action="append",
        metavar="NAME",
        help="Always include this exact [schema].[table] name (repeatable)",
    )
    p_post.add_argument(
        "--refresh-timeout",
        type=int,
        default=None,
        help="Seconds to wait for the hub schema refresh (default: 3000)",
    )
    p_post.add_argument(
        "--interval",
        type=int,
        default=None,
        help="Periodic sync interval to restore, in seconds (default: 600)",
    )
    p_post.add_argument(
        "--dry-run",
        action="store_true",
        help="Write the schema document without pushing it",
    )
    p_post.add_argument(
        "--output",
        default=None,
        help="Schema document path (default: <tempdir>/syncgroup-schema.json)",
    )
    p_post.add_argument(
        "--poll-interval",
        type=float,
        default=None,
        help="Seconds between refresh polls (default: 10)",
    )
    p_post.set_defaults(func=cmd_post)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Parses command line arguments and dispatches to appropriate handler.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
