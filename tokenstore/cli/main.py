"""
Command-line interface for tokenstore.

Inspect the persisted token, list the entries of a CLI-managed token cache
and save a token obtained elsewhere into the token file.
"""
from __future__ import annotations

import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import NoReturn, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from typer import Argument, Option
from typing_extensions import Annotated

from tokenstore.config import parse_octal_mode, settings
from tokenstore.domain.exceptions import FilePermissionError, OpenError, TokenStoreError
from tokenstore.domain.token import DEFAULT_REFRESH_WINDOW, Token
from tokenstore.infrastructure import persist
from tokenstore.infrastructure.log_utils import log_message

LOG_TAG = "CLI"

console = Console()

app = typer.Typer(
    name="tokenstore",
    help="Inspect and save locally persisted OAuth tokens.",
    add_completion=False,
)


@dataclass(frozen=True)
class TokenStatus:
    """Outcome of checking the token file."""

    state: str
    message: str

    def format_line(self) -> str:
        labels = {
            "ok": "OK",
            "warning": "ATTENTION",
            "action_required": "ACTION REQUIRED",
        }
        label = labels.get(self.state, self.state.upper())
        return f"Token: {label} - {self.message}"


def _mask(secret: Optional[str]) -> str:
    if not secret:
        return ""
    if len(secret) <= 8:
        return "*" * len(secret)
    return f"{secret[:4]}...{secret[-4:]}"


def _format_timestamp(moment: Optional[datetime]) -> str:
    if moment is None:
        return "n/a"
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


def _parse_mode(raw: Optional[str]) -> int:
    if raw is None:
        return settings.TOKENSTORE_FILE_MODE
    try:
        return parse_octal_mode(raw)
    except ValueError as exc:
        raise typer.BadParameter(f"'{raw}' is not a valid permission mode: {exc}") from None


def _fail(exc: Exception) -> NoReturn:
    log_message(str(exc), "ERROR", tag=LOG_TAG)
    console.print(f"[red]{escape(str(exc))}[/red]")
    raise typer.Exit(code=1)


def determine_token_status(path: Path, *, now: Optional[datetime] = None) -> TokenStatus:
    """Describe whether the token at ``path`` can be reused."""

    try:
        token = persist.load_token(path)
    except OpenError as exc:
        if isinstance(exc.cause, FileNotFoundError):
            return TokenStatus("action_required", f"No token stored at {path}.")
        return TokenStatus("action_required", str(exc))
    except TokenStoreError as exc:
        return TokenStatus("action_required", str(exc))

    expiry = token.expires_at()
    if expiry is None and token.expires_on is not None:
        return TokenStatus("action_required", f"Token expiry {token.expires_on} is not a valid timestamp.")
    if expiry is None:
        return TokenStatus("warning", "Token stored without an expiry time.")
    if token.is_expired(now=now):
        if token.refresh_token:
            return TokenStatus("warning", f"Access token expired at {_format_timestamp(expiry)}; refresh token available.")
        return TokenStatus("action_required", f"Token expired at {_format_timestamp(expiry)}.")
    if token.will_expire_in(DEFAULT_REFRESH_WINDOW, now=now):
        return TokenStatus("warning", f"Token expires soon ({_format_timestamp(expiry)}).")
    return TokenStatus("ok", f"Token valid until {_format_timestamp(expiry)}.")


@app.command()
def show(
    path: Annotated[Optional[Path], Option("--path", "-p", help="Token file to read.")] = None,
):
    """Print the persisted token with secrets masked."""
    token_path = path or settings.TOKENSTORE_TOKEN_PATH
    try:
        token = persist.load_token(token_path)
    except TokenStoreError as exc:
        _fail(exc)

    table = Table(show_header=True, header_style="bold cyan", title=str(token_path))
    table.add_column("Field")
    table.add_column("Value")
    table.add_row("access_token", _mask(token.access_token))
    table.add_row("refresh_token", _mask(token.refresh_token))
    table.add_row("token_type", token.token_type or "")
    table.add_row("resource", token.resource or "")
    table.add_row("expires_on", _format_timestamp(token.expires_at()))
    console.print(table)


@app.command(name="cli-tokens")
def cli_tokens(
    path: Annotated[Optional[Path], Option("--path", "-p", help="CLI token cache to read.")] = None,
):
    """List the entries of a CLI-managed token cache."""
    cache_path = path or settings.TOKENSTORE_CLI_TOKENS_PATH
    try:
        entries = persist.load_cli_tokens(cache_path)
    except TokenStoreError as exc:
        _fail(exc)

    if not entries:
        console.print(f"[yellow]No tokens in {cache_path}[/yellow]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    for column in ("#", "resource", "user", "expires", "refresh"):
        table.add_column(column)
    for index, entry in enumerate(entries, start=1):
        expired = entry.is_expired()
        expires = _format_timestamp(entry.expires_at())
        table.add_row(
            str(index),
            entry.resource or "",
            entry.user_id or "",
            f"[red]{expires}[/red]" if expired else expires,
            "yes" if entry.refresh_token else "no",
        )
    console.print(table)


@app.command()
def save(
    source: Annotated[str, Argument(help="JSON token file to import, or '-' for stdin.")],
    path: Annotated[Optional[Path], Option("--path", "-p", help="Token file to write.")] = None,
    mode: Annotated[Optional[str], Option("--mode", "-m", help="Octal permission mode, e.g. 600.")] = None,
):
    """Atomically persist a token read from SOURCE."""
    token_path = path or settings.TOKENSTORE_TOKEN_PATH
    file_mode = _parse_mode(mode)

    if source == "-":
        raw = sys.stdin.read()
    else:
        try:
            raw = Path(source).read_text(encoding="utf-8")
        except OSError as exc:
            _fail(exc)

    try:
        token = Token.model_validate_json(raw)
    except ValidationError as exc:
        console.print(f"[red]Invalid token JSON: {escape(exc.errors()[0]['msg'])}[/red]")
        raise typer.Exit(code=1)

    try:
        persist.save_token(token_path, file_mode, token)
    except FilePermissionError as exc:
        log_message(str(exc), "WARN", tag=LOG_TAG)
        console.print(f"[yellow]Token saved to {token_path}, but permissions were not applied: {escape(str(exc.cause))}[/yellow]")
        return
    except TokenStoreError as exc:
        _fail(exc)

    log_message(f"Token saved to {token_path} via CLI.", "INFO", tag=LOG_TAG)
    console.print(f"[green]Token saved to {token_path} (mode {file_mode:04o})[/green]")


@app.command()
def status(
    path: Annotated[Optional[Path], Option("--path", "-p", help="Token file to check.")] = None,
):
    """Report whether the persisted token can be reused."""
    result = determine_token_status(path or settings.TOKENSTORE_TOKEN_PATH)
    typer.echo(result.format_line())
    raise typer.Exit(code=1 if result.state == "action_required" else 0)


if __name__ == "__main__":
    app()
