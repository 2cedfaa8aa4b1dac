"""
"Doctor" command: configuration and backend diagnostics.

Runs a series of checks and prints a concise report:
 - Config summary and invalid keys
 - Storefront API health (catalog endpoint)
 - Stored session (logged in or not)
"""

from __future__ import annotations

import asyncio
import sys

import click

from cartsync.cli_commands.common import create_api_client, get_session_store
from cartsync.core.config import print_configuration_summary, validate_required_settings
from cartsync.core.models import Session
from cartsync.utils.reliability import HealthChecker


@click.command()
@click.pass_context
def doctor(ctx):
    """Run CartSync diagnostics and print a summary report."""
    click.echo("CartSync Doctor")
    click.echo("=" * 40)

    print_configuration_summary()

    missing = validate_required_settings()
    if missing:
        click.echo("\nConfiguration problems:")
        for item in missing:
            click.echo(f"  ✗ {item}")
        sys.exit(1)

    async def _check():
        async with create_api_client(ctx) as api:
            checker = HealthChecker()
            checker.register_check("storefront_api", api.health_check)
            results = await checker.check_all()
            return checker, results

    checker, results = asyncio.run(_check())

    click.echo("\nBackend:")
    for name, result in results.items():
        elapsed = f"{result['response_time_ms']:.0f}ms"
        if result["status"] == "healthy":
            count = result["details"].get("product_count")
            click.echo(f"  ✓ {name} healthy ({elapsed}, {count} products)")
        else:
            click.echo(f"  ✗ {name} unhealthy ({elapsed}): {result['error']}")

    session = Session.from_store(get_session_store(ctx))
    if session.authenticated:
        click.echo(f"\n✓ Logged in as {session.username}")
    else:
        click.echo("\n- Not logged in")

    click.echo("\nDone.")
    sys.exit(0 if checker.is_healthy() else 1)
