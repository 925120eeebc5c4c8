"""Command line interface for solrsync maintenance tasks."""

from __future__ import annotations

import difflib
import logging
from pathlib import Path
from typing import Any, Optional, Tuple

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table

from solrsync.client import SearchClient, SelectResponse
from solrsync.config import ConfigError, ConfigManager, SolrSyncConfig
from solrsync.errors import SolrConnectionError, SolrResponseError, SolrSyncError

console = Console()

_MAX_CELL = 60


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


def _error_code(exc: SolrSyncError) -> Tuple[str, Optional[dict[str, Any]]]:
    if isinstance(exc, SolrConnectionError):
        return "connection_error", {"url": exc.url}
    if isinstance(exc, SolrResponseError):
        return "response_error", {"status": exc.status_code, "body": exc.body_excerpt}
    if isinstance(exc, ConfigError):
        return "config_error", None
    return "solrsync_error", None


def _configure_logging(config: SolrSyncConfig, verbose: int) -> None:
    level = logging.getLevelName(config.logging.level.upper())
    if not isinstance(level, int):
        level = logging.WARNING
    if verbose:
        level = logging.DEBUG if verbose > 1 else logging.INFO
    package_logger = logging.getLogger("solrsync")
    package_logger.setLevel(level)
    if not any(isinstance(handler, RichHandler) for handler in package_logger.handlers):
        package_logger.addHandler(RichHandler(console=Console(stderr=True), show_path=False))


def _resolve_json(ctx: click.Context, json_output: bool, config: SolrSyncConfig) -> bool:
    if ctx.get_parameter_source("json_output") == ParameterSource.COMMANDLINE:
        return json_output
    return config.cli.json_default


def _open_client(ctx: click.Context) -> Tuple[SolrSyncConfig, SearchClient]:
    """Load configuration for the invoked command and build a client from it."""
    state = ctx.ensure_object(dict)
    manager: ConfigManager = state["manager"]
    config = manager.load(cli_overrides=state.get("overrides"))
    _configure_logging(config, state.get("verbose", 0))
    return config, SearchClient.from_settings(config.connection)


def _emit_ok(action: str, json_output: bool, **extra: Any) -> None:
    if json_output:
        console.print_json(data={"status": "ok", "action": action, **extra})
    else:
        console.print(f"[green]{action} succeeded.[/green]")


def _cell(value: Any) -> str:
    if isinstance(value, list):
        value = ", ".join(str(item) for item in value)
    text = str(value)
    return text if len(text) <= _MAX_CELL else text[: _MAX_CELL - 3] + "..."


def _render_select(response: SelectResponse) -> Table:
    docs = response.response.docs
    columns: list[str] = []
    for doc in docs:
        for name in doc:
            if name not in columns:
                columns.append(name)

    table = Table(title=f"{response.response.num_found} document(s) found")
    for name in columns:
        table.add_column(name, overflow="fold")
    for doc in docs:
        table.add_row(*(_cell(doc.get(name, "")) for name in columns))
    return table


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="solrsync")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Configuration file to use instead of ~/.solrsync/config.yaml.",
)
@click.option("--host", type=str, default=None, help="Override connection.host.")
@click.option("--port", type=int, default=None, help="Override connection.port.")
@click.option("-v", "--verbose", count=True, help="Increase log verbosity (-v info, -vv debug).")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Path | None,
    host: str | None,
    port: int | None,
    verbose: int,
) -> None:
    """Maintain and query the Solr index kept in step by solrsync."""
    overrides: dict[str, Any] = {}
    if host is not None:
        overrides["connection.host"] = host
    if port is not None:
        overrides["connection.port"] = port

    state = ctx.ensure_object(dict)
    state["manager"] = ConfigManager(config_path)
    state["overrides"] = overrides
    state["verbose"] = verbose


@cli.command()
@click.option("--json", "json_output", is_flag=True, help="Emit the ping result as JSON.")
@click.pass_context
def ping(ctx: click.Context, json_output: bool) -> None:
    """Check whether the Solr server answers."""
    try:
        config, client = _open_client(ctx)
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
        return

    json_enabled = _resolve_json(ctx, json_output, config)
    with client:
        alive = client.responds()

    if json_enabled:
        console.print_json(data={"url": client.base_url, "responds": alive})
    elif alive:
        console.print(f"[green]Solr is up at {client.base_url}.[/green]")
    else:
        console.print(f"[red]Solr is not responding at {client.base_url}.[/red]")
    if not alive:
        ctx.exit(1)


@cli.command()
@click.option("--no-wait-flush", is_flag=True, help="Return before changes are flushed to disk.")
@click.option("--no-wait-searcher", is_flag=True, help="Return before a new searcher is opened.")
@click.option("--json", "json_output", is_flag=True, help="Emit the result as JSON.")
@click.pass_context
def commit(ctx: click.Context, no_wait_flush: bool, no_wait_searcher: bool, json_output: bool) -> None:
    """Make pending index changes visible to searches."""
    json_enabled = json_output
    try:
        config, client = _open_client(ctx)
        json_enabled = _resolve_json(ctx, json_output, config)
        with client:
            client.commit(
                wait_flush=False if no_wait_flush else None,
                wait_searcher=False if no_wait_searcher else None,
            )
    except SolrSyncError as exc:
        code, details = _error_code(exc)
        _handle_cli_error(str(exc), code=code, json_output=json_enabled, details=details, original=exc)
        return
    _emit_ok("commit", json_enabled)


@cli.command()
@click.option("--json", "json_output", is_flag=True, help="Emit the result as JSON.")
@click.pass_context
def optimize(ctx: click.Context, json_output: bool) -> None:
    """Merge index segments. This can take several minutes on a large index."""
    json_enabled = json_output
    try:
        config, client = _open_client(ctx)
        json_enabled = _resolve_json(ctx, json_output, config)
        if not json_enabled:
            console.print(f"[yellow]Optimizing {client.base_url}; this may take a while.[/yellow]")
        with client:
            client.optimize()
    except SolrSyncError as exc:
        code, details = _error_code(exc)
        _handle_cli_error(str(exc), code=code, json_output=json_enabled, details=details, original=exc)
        return
    _emit_ok("optimize", json_enabled)


@cli.command("delete-all")
@click.argument("query", required=False)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
@click.option("--json", "json_output", is_flag=True, help="Emit the result as JSON.")
@click.pass_context
def delete_all(ctx: click.Context, query: str | None, yes: bool, json_output: bool) -> None:
    """Delete every document matching QUERY (all documents when omitted)."""
    json_enabled = json_output
    effective = query or "*:*"
    try:
        config, client = _open_client(ctx)
        json_enabled = _resolve_json(ctx, json_output, config)
        if not yes and not json_enabled:
            click.confirm(f"Delete all documents matching {effective!r}?", abort=True)
        with client:
            client.delete_all(effective)
    except SolrSyncError as exc:
        code, details = _error_code(exc)
        _handle_cli_error(str(exc), code=code, json_output=json_enabled, details=details, original=exc)
        return
    _emit_ok("delete-all", json_enabled, query=effective)


@cli.command()
@click.argument("solr_ids", nargs=-1, required=True)
@click.option("--json", "json_output", is_flag=True, help="Emit the result as JSON.")
@click.pass_context
def delete(ctx: click.Context, solr_ids: Tuple[str, ...], json_output: bool) -> None:
    """Delete documents by SOLR_ID (e.g. Widget-7)."""
    json_enabled = json_output
    try:
        config, client = _open_client(ctx)
        json_enabled = _resolve_json(ctx, json_output, config)
        with client:
            client.delete(solr_ids)
    except SolrSyncError as exc:
        code, details = _error_code(exc)
        _handle_cli_error(str(exc), code=code, json_output=json_enabled, details=details, original=exc)
        return
    _emit_ok("delete", json_enabled, ids=list(solr_ids))


@cli.command()
@click.argument("query")
@click.option("--fq", "filters", multiple=True, help="Filter query; repeat for several.")
@click.option("--rows", type=click.IntRange(min=0), default=10, show_default=True)
@click.option("--start", type=click.IntRange(min=0), default=0, show_default=True)
@click.option("--sort", type=str, default=None, help="Sort expression, e.g. 'score desc'.")
@click.option("--fl", "field_list", type=str, default="*,score", show_default=True)
@click.option("--json", "json_output", is_flag=True, help="Emit the raw response as JSON.")
@click.pass_context
def select(
    ctx: click.Context,
    query: str,
    filters: Tuple[str, ...],
    rows: int,
    start: int,
    sort: str | None,
    field_list: str,
    json_output: bool,
) -> None:
    """Run QUERY against the select handler and print the matches."""
    json_enabled = json_output
    params: dict[str, Any] = {
        "q": query,
        "fq": list(filters),
        "rows": rows,
        "start": start,
        "sort": sort,
        "fl": field_list,
        "wt": "json",
    }
    try:
        config, client = _open_client(ctx)
        json_enabled = _resolve_json(ctx, json_output, config)
        with client:
            payload = client.select(params)
        response = SelectResponse.model_validate(payload)
    except SolrSyncError as exc:
        code, details = _error_code(exc)
        _handle_cli_error(str(exc), code=code, json_output=json_enabled, details=details, original=exc)
        return
    except ValueError as exc:
        _handle_cli_error(
            f"Unexpected select response: {exc}",
            code="response_error",
            json_output=json_enabled,
            original=exc,
        )
        return

    if json_enabled:
        console.print_json(data=payload)
        return
    console.print(_render_select(response))


@cli.group()
def config() -> None:
    """Manage solrsync configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
@click.pass_context
def config_view(ctx: click.Context, no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    state = ctx.ensure_object(dict)
    manager: ConfigManager = state["manager"]
    try:
        manager.ensure_exists()
        resolved = manager.load(cli_overrides=state.get("overrides"), include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(resolved.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Args:
        ctx: Click context carrying the configuration manager.
        key: Dotted path such as ``connection.port``.
        value: YAML-literal value to write into the configuration file.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """
    manager: ConfigManager = ctx.ensure_object(dict)["manager"]

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        update = manager.update(key, parsed_value)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    if not update.changed:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    diff = difflib.unified_diff(
        update.before.splitlines(),
        update.after.splitlines(),
        fromfile="config.yaml (before)",
        tofile="config.yaml (after)",
        lineterm="",
    )
    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {key}.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
