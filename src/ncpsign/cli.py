"""ncpsign CLI - Sign and send NCP API Gateway requests."""

import asyncio
import json
import sys
from collections.abc import Callable, Coroutine
from pathlib import Path
from typing import Any, NoReturn, ParamSpec, TypeVar, cast

import click
from rich.console import Console
from rich.table import Table

from ncpsign.client import NcpClient, NcpClientError
from ncpsign.common.errors import NcpSignError
from ncpsign.common.hmac import build_message, verify
from ncpsign.common.logging import setup_logging
from ncpsign.common.settings import Settings
from ncpsign.credentials import Credentials, SettingsCredentialProvider
from ncpsign.request import RequestSpec, merge_query, parse_query_entries, validate_path
from ncpsign.signer import HttpMethod, Signer

tomllib: Any | None
tomllib_module: Any | None = None
try:
    import tomllib as tomllib_module
except ImportError:  # pragma: no cover - Python <3.11
    tomllib_module = None
tomllib = tomllib_module

console = Console()
err_console = Console(stderr=True)

P = ParamSpec("P")
R = TypeVar("R")

METHOD_CHOICE = click.Choice([m.value for m in HttpMethod], case_sensitive=False)


def async_command(f: Callable[P, Coroutine[Any, Any, R]]) -> Callable[P, R]:
    """Decorator to run async commands."""

    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        return asyncio.run(f(*args, **kwargs))

    return wrapper


def _fail(message: str) -> NoReturn:
    err_console.print(f"[red]{message}[/red]")
    sys.exit(1)


def _load_config(path: str | None) -> dict[str, Any]:
    if not path:
        return {}
    config_path = Path(path).expanduser()
    if not config_path.exists():
        _fail(f"Config not found: {config_path}")

    raw = config_path.read_bytes()
    if config_path.suffix.lower() == ".toml":
        if tomllib is None:
            _fail("TOML config requires Python 3.11+")
        data = tomllib.loads(raw.decode("utf-8"))
    else:
        data = json.loads(raw.decode("utf-8"))

    if isinstance(data, dict) and isinstance(data.get("ncpsign"), dict):
        return cast(dict[str, Any], data["ncpsign"])
    return cast(dict[str, Any], data) if isinstance(data, dict) else {}


def _settings(ctx: click.Context) -> Settings:
    return cast(Settings, ctx.obj["settings"])


def _credentials(ctx: click.Context) -> Credentials:
    try:
        return SettingsCredentialProvider(_settings(ctx)).get_credentials()
    except NcpSignError as e:
        _fail(f"Error: {e.message}")


def _read_body(body: str | None, body_file: str | None) -> str | None:
    if body is not None and body_file is not None:
        _fail("Use either --body or --body-file, not both")
    if body_file is not None:
        return Path(body_file).read_text(encoding="utf-8")
    return body


@click.group()
@click.option(
    "--config",
    type=click.Path(exists=False, dir_okay=False),
    help="Path to config (JSON or TOML with optional [ncpsign] section)",
)
@click.option("--base-url", default=None, help="API Gateway base URL")
@click.option("--access-key", envvar="NCP_ACCESS_KEY", default=None, help="NCP access key")
@click.option(
    "--secret-key",
    envvar="NCP_SECRET_KEY",
    default=None,
    help="NCP secret key",
)
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ...)")
@click.option("--json-logs", is_flag=True, help="Emit JSON log lines")
@click.pass_context
def cli(
    ctx: click.Context,
    config: str | None,
    base_url: str | None,
    access_key: str | None,
    secret_key: str | None,
    log_level: str | None,
    json_logs: bool,
) -> None:
    """ncpsign CLI - Signed requests for the NCP API Gateway."""
    config_data = _load_config(config)
    overrides = {
        key: value
        for key, value in {
            "base_url": base_url or config_data.get("base_url"),
            "access_key": access_key or config_data.get("access_key"),
            "secret_key": secret_key or config_data.get("secret_key"),
            "log_level": log_level or config_data.get("log_level"),
            "log_json": json_logs or config_data.get("log_json"),
        }.items()
        if value
    }
    settings = Settings(**overrides)
    setup_logging(settings.log_level, settings.log_json)

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


def _request_options(f: Callable[..., Any]) -> Callable[..., Any]:
    f = click.option(
        "--query",
        "-q",
        multiple=True,
        help="Query parameter as name=value (repeatable, overrides the path's query)",
    )(f)
    f = click.option("--path", "-p", required=True, help="Request path starting with /")(f)
    f = click.option(
        "--method", "-X", type=METHOD_CHOICE, default="GET", show_default=True
    )(f)
    return f


# === Signing ===


@cli.command("sign")
@_request_options
@click.option("--timestamp", "-t", help="Epoch milliseconds (default: now)")
@click.option("--show-message", is_flag=True, help="Also print the canonical message")
@click.option("--json", "as_json", is_flag=True, help="Print headers as JSON")
@click.pass_context
def sign_cmd(
    ctx: click.Context,
    method: str,
    path: str,
    query: tuple[str, ...],
    timestamp: str | None,
    show_message: bool,
    as_json: bool,
) -> None:
    """Print the authentication headers for a request."""
    signer = Signer(_credentials(ctx))
    try:
        validate_path(path)
        path_with_query = merge_query(path, parse_query_entries(query))
        headers = signer.sign(method, path_with_query, timestamp)
    except NcpSignError as e:
        _fail(f"Error: {e.message}")

    if as_json:
        click.echo(json.dumps({"path": path_with_query, "headers": headers.as_dict()}, indent=2))
        return

    if show_message:
        message = build_message(method, path_with_query, headers.timestamp, signer.access_key)
        console.print("[bold]Canonical message[/bold]")
        console.print(message, markup=False)

    table = Table(title=f"{method.upper()} {path_with_query}")
    table.add_column("Header", style="cyan")
    table.add_column("Value", style="green")
    for name, value in headers.as_dict().items():
        table.add_row(name, value)
    console.print(table)


@cli.command("verify")
@_request_options
@click.option("--timestamp", "-t", required=True, help="Epoch milliseconds that were signed")
@click.option("--signature", "-s", required=True, help="Base64 signature to check")
@click.pass_context
def verify_cmd(
    ctx: click.Context,
    method: str,
    path: str,
    query: tuple[str, ...],
    timestamp: str,
    signature: str,
) -> None:
    """Verify a signature against the configured secret key."""
    credentials = _credentials(ctx)
    signer = Signer(credentials)
    try:
        validate_path(path)
        path_with_query = merge_query(path, parse_query_entries(query))
        message = signer.signing_input(method, path_with_query, timestamp).message
        is_valid = verify(credentials.secret_key, message, signature)
    except NcpSignError as e:
        _fail(f"Error: {e.message}")

    if is_valid:
        console.print("[green]✓ Signature is valid[/green]")
    else:
        console.print("[red]✗ Signature is invalid[/red]")
        sys.exit(1)


# === Requests ===


@cli.command("call")
@_request_options
@click.option("--body", "-d", help="JSON body to send")
@click.option(
    "--body-file",
    type=click.Path(exists=True, dir_okay=False),
    help="File containing the JSON body",
)
@click.pass_context
@async_command
async def call_cmd(
    ctx: click.Context,
    method: str,
    path: str,
    query: tuple[str, ...],
    body: str | None,
    body_file: str | None,
) -> None:
    """Send a signed request and print the JSON response."""
    body_json = _read_body(body, body_file)
    try:
        spec = RequestSpec(
            path=path,
            method=method,
            query=parse_query_entries(query),
            send_body=body_json is not None,
            body_json=body_json,
        )
        async with NcpClient(_settings(ctx)) as client:
            result = await client.call(spec)
    except NcpClientError as e:
        if e.body:
            err_console.print(e.body, markup=False)
        _fail(f"Error: {e.message}")
    except NcpSignError as e:
        _fail(f"Error: {e.message}")

    click.echo(json.dumps(result, indent=2, ensure_ascii=False))


@cli.command("check-credentials")
@click.pass_context
@async_command
async def check_credentials_cmd(ctx: click.Context) -> None:
    """Test the configured credentials against the gateway."""
    try:
        async with NcpClient(_settings(ctx)) as client:
            accepted = await client.check_credentials()
    except NcpSignError as e:
        _fail(f"Error: {e.message}")

    if accepted:
        console.print("[green]✓ Credentials accepted[/green]")
    else:
        console.print("[red]✗ Credentials rejected[/red]")
        sys.exit(1)


def main() -> None:
    """CLI entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
