#!/usr/bin/env python3
"""Command line front end for the posadmin session client."""

from __future__ import annotations

import asyncio
import json
import sys
from typing import Optional

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from posadmin.api.auth import login as api_login
from posadmin.api.auth import login_pin as api_login_pin
from posadmin.api.client import SessionClient
from posadmin.api.errors import LoginError, RequestFailed, SessionExpired
from posadmin.api.expiry import login_redirect_url
from posadmin.api.session import fetch_session, load_session
from posadmin.storage.scope import ALL_BRANDS

app = typer.Typer(help="POS back-office API client")
console = Console()

client_options: dict = {}


def get_client() -> SessionClient:
    return SessionClient(**client_options)


def run(coro):
    """Run *coro*, turning session and request errors into exit codes."""
    try:
        return asyncio.run(coro)
    except SessionExpired as exc:
        rprint(f"[bold red]{exc.message}[/bold red]")
        rprint(f"Sign in again with [cyan]posadmin login[/cyan] ({login_redirect_url()})")
        raise typer.Exit(code=2)
    except RequestFailed as exc:
        rprint(f"[bold red]Request failed (HTTP {exc.status})[/bold red] {exc.body}")
        raise typer.Exit(code=1)


@app.callback()
def main(
    api_url: Optional[str] = typer.Option(None, "--api-url", "-u", help="Base URL of the API"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging"),
):
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if debug else "WARNING", format="{time} {level} {message}")
    client_options.clear()
    if api_url:
        client_options["base_url"] = api_url


@app.command()
def login(
    email: str = typer.Option(..., prompt=True, help="Account e-mail"),
    password: str = typer.Option(..., prompt=True, hide_input=True, help="Account password"),
):
    """Sign in with e-mail and password."""

    async def _do():
        async with get_client() as client:
            result = await api_login(client, email, password)
            await load_session(client)
            return result, client.scope.value

    try:
        result, brand = run(_do())
    except LoginError as exc:
        rprint(f"[bold red]Login failed:[/bold red] {exc}")
        raise typer.Exit(code=1)
    rprint(f"[bold green]Signed in[/bold green] as {result.email} ({result.app_role or '-'}), brand [cyan]{brand}[/cyan]")


@app.command("login-pin")
def login_pin(
    pin: str = typer.Option(..., prompt=True, hide_input=True, help="Cashier PIN"),
    branch_id: Optional[str] = typer.Option(None, "--branch", help="Restrict to a branch"),
):
    """Sign in with a cashier PIN."""

    async def _do():
        async with get_client() as client:
            return await api_login_pin(client, pin, branch_id)

    try:
        result = run(_do())
    except LoginError as exc:
        rprint(f"[bold red]Login failed:[/bold red] {exc}")
        raise typer.Exit(code=1)
    rprint(f"[bold green]Signed in[/bold green] as {result.name or result.id}")


@app.command()
def logout():
    """Sign out and forget the stored credentials."""

    async def _do():
        async with get_client() as client:
            await client.logout()

    run(_do())
    rprint("[bold green]Signed out.[/bold green]")


@app.command()
def whoami():
    """Show the signed-in user, permissions and brands."""

    async def _do():
        async with get_client() as client:
            return await fetch_session(client), client.scope.value

    session, selected = run(_do())
    rprint(f"[bold]{session.user.email}[/bold] role={session.user.role_name or session.user.role or '-'}")
    table = Table(title="Brands")
    table.add_column("")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    for brand in session.brands:
        table.add_row("*" if brand.id == selected else "", brand.id, brand.name)
    console.print(table)
    rprint(f"{len(session.user.permissions)} permission(s)")


@app.command()
def brand(
    brand_id: Optional[str] = typer.Argument(None, help=f"Brand to select, or {ALL_BRANDS}"),
):
    """Show or change the brand used to scope requests."""

    async def _do():
        async with get_client() as client:
            if brand_id is None:
                return client.scope.value
            session = await fetch_session(client)
            if brand_id != ALL_BRANDS and brand_id not in session.brand_ids:
                return None
            if brand_id == ALL_BRANDS and not session.user.allow_all_brands:
                return None
            client.scope.select(brand_id)
            return brand_id

    selected = run(_do())
    if selected is None:
        rprint(f"[bold red]Brand '{brand_id}' is not available to this user.[/bold red]")
        raise typer.Exit(code=1)
    rprint(f"Brand: [cyan]{selected}[/cyan]")


@app.command()
def get(path: str = typer.Argument(..., help="API path, e.g. /orders")):
    """GET an API path and print the result."""

    async def _do():
        async with get_client() as client:
            return await client.get(path)

    data = run(_do())
    if isinstance(data, (dict, list)):
        console.print_json(json.dumps(data))
    elif data is not None:
        typer.echo(data)


if __name__ == "__main__":
    app()
