"""
Main application entry point for CartSync.

Provides the CLI for browsing the catalog and managing the cart.
"""

import sys
from typing import Optional

import click

from cartsync.cli_commands.auth import login, logout, register, whoami
from cartsync.cli_commands.cart import cart
from cartsync.cli_commands.catalog import products, search
from cartsync.cli_commands.common import report_error
from cartsync.cli_commands.doctor import doctor
from cartsync.core.config import get_settings
from cartsync.core.exceptions import ConfigurationError
from cartsync.core.logging import set_correlation_id, setup_logging


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--correlation-id", help="Set correlation ID for request tracing")
@click.pass_context
def main(ctx, debug: bool, correlation_id: Optional[str]):
    """Browse the storefront catalog and manage your cart.

    Log in once with ``cartsync login``; the session is kept between
    commands until ``cartsync logout``.
    """
    # Tests pre-populate the context with fake transports and stores
    ctx.ensure_object(dict)

    try:
        settings = get_settings()
    except ConfigurationError as e:
        report_error(e)
        for problem in e.details.get("errors", []):
            click.echo(f"  - {problem}", err=True)
        sys.exit(1)

    debug = debug or settings.debug
    setup_logging(debug=debug)

    if correlation_id:
        set_correlation_id(correlation_id)

    ctx.obj["debug"] = debug
    ctx.obj["correlation_id"] = correlation_id


main.add_command(products)
main.add_command(search)
main.add_command(cart)
main.add_command(login)
main.add_command(register)
main.add_command(logout)
main.add_command(whoami)
main.add_command(doctor)


if __name__ == "__main__":
    main()
