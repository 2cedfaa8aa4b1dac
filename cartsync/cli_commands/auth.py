"""CLI commands for logging in and out."""

import asyncio
import sys

import click

from cartsync.cli_commands.common import (
    console,
    create_api_client,
    get_session_store,
    report_error,
)
from cartsync.core.exceptions import CartSyncError
from cartsync.services.auth_service import AuthService


@click.command()
@click.argument("username")
@click.option("--password", prompt=True, hide_input=True)
@click.pass_context
def login(ctx, username: str, password: str):
    """Log in and remember the session for later commands."""

    async def _login():
        async with create_api_client(ctx) as api:
            return await AuthService(api, get_session_store(ctx)).login(username, password)

    try:
        account = asyncio.run(_login())
    except CartSyncError as e:
        report_error(e)
        sys.exit(1)

    console.print(f"[green]Logged in successfully[/green] as {account.username}")
    console.print(f"Wallet balance: {account.balance:g}")


@click.command()
@click.argument("username")
@click.option("--password", prompt=True, hide_input=True)
@click.option("--confirm-password", prompt="Confirm password", hide_input=True)
@click.pass_context
def register(ctx, username: str, password: str, confirm_password: str):
    """Create a new account. Log in separately afterwards."""

    async def _register():
        async with create_api_client(ctx) as api:
            await AuthService(api, get_session_store(ctx)).register(
                username, password, confirm_password
            )

    try:
        asyncio.run(_register())
    except CartSyncError as e:
        report_error(e)
        sys.exit(1)

    console.print("[green]Registered Successfully[/green]")


@click.command()
@click.pass_context
def logout(ctx):
    """Forget the stored session."""
    AuthService(api=None, store=get_session_store(ctx)).logout()
    console.print("Logged out")


@click.command()
@click.pass_context
def whoami(ctx):
    """Show the logged-in user and wallet balance."""
    store = get_session_store(ctx)
    service = AuthService(api=None, store=store)
    session = service.current_session()

    if not session.authenticated:
        console.print("[yellow]Not logged in[/yellow]")
        sys.exit(1)

    balance = service.balance()
    console.print(f"Logged in as [bold]{session.username}[/bold]")
    if balance is not None:
        console.print(f"Wallet balance: {balance:g}")
