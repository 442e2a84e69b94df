#!/usr/bin/env python3
"""
PL → Xero bridge — CLI entry point.

Usage examples:
  python main.py serve                       # Run the HTTP bridge (PORT, default 4002)
  python main.py serve --port 8080 --reload
  python main.py check                       # Verify configuration and saved Xero token
  python main.py auth-url                    # Print the Xero consent URL
  python main.py refresh                     # Refresh the token now and print the tenant
"""
import json
import logging
import sys

import click

from config import Config


def _setup_logging(verbose: bool, log_level: str = "info") -> None:
    level = logging.DEBUG if verbose or log_level == "debug" else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
        datefmt="%H:%M:%S",
    )
    # Quieten noisy third-party loggers
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    if level > logging.DEBUG:
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """PL → Xero bridge: invoice PrintLogic orders in Xero and sync payments back."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    _setup_logging(verbose, Config().log_level)


# --------------------------------------------------------------------
# serve command
# --------------------------------------------------------------------

@cli.command()
@click.option("--host", default=None, help="Bind address (default: HOST env var or 0.0.0.0)")
@click.option("--port", "-p", default=None, type=int, help="Port (default: PORT env var or 4002)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes (development)")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None, reload: bool) -> None:
    """Run the HTTP bridge."""
    import uvicorn

    config = Config()
    uvicorn.run(
        "server.app:app",
        host=host or config.host,
        port=port or config.port,
        reload=reload,
        log_level="debug" if ctx.obj["verbose"] else "info",
    )


# --------------------------------------------------------------------
# check command
# --------------------------------------------------------------------

@cli.command()
def check() -> None:
    """Verify that Xero credentials, accounts and the PrintLogic API are configured."""
    from bridge.token_manager import XeroSession

    config = Config()
    session = XeroSession(config)
    session.initialize()
    status = session.status()

    def _tick(ok: bool) -> str:
        return "✓" if ok else "✗"

    click.echo("\n=== Bridge Setup Check ===\n")
    click.echo(f"  Xero client id:        {_tick(bool(config.xero_client_id))}")
    click.echo(f"  Xero client secret:    {_tick(bool(config.xero_client_secret))}")
    click.echo(f"  Redirect URI:          {config.xero_redirect_uri or '✗ (not set)'}")
    click.echo(f"  Scopes:                {' '.join(config.scopes)}")
    click.echo()
    click.echo(f"  Token file:            {_tick(status['token_file_exists'])}  {status['token_file']}")
    click.echo(f"  Refresh token:         {_tick(status['has_refresh_token'])}")
    if not status["has_refresh_token"]:
        click.echo("     → Run `python main.py auth-url` and complete the Xero consent flow")
    click.echo()
    click.echo(f"  Sales account:         {config.sales_account}")
    click.echo(f"  Clearing account:      {config.clearing_account_code}")
    for brand, theme_id in config.brands.items():
        click.echo(f"  Branding ({brand:<10})  {theme_id or '(Xero default)'}")
    click.echo()
    click.echo(f"  PrintLogic API:        {_tick(bool(config.pl_api_url and config.pl_api_key))}  {config.pl_api_url or ''}")
    click.echo(f"  Paid status:           {config.paid_order_status}")
    click.echo()


# --------------------------------------------------------------------
# auth-url command
# --------------------------------------------------------------------

@cli.command("auth-url")
def auth_url() -> None:
    """Print the Xero consent URL to open in a browser."""
    from bridge.token_manager import XeroSession

    click.echo(XeroSession(Config()).authorization_url())


# --------------------------------------------------------------------
# refresh command
# --------------------------------------------------------------------

@cli.command()
def refresh() -> None:
    """
    Refresh the saved Xero token now and print the selected tenant.

    This rotates the refresh token in the token file. A running server still
    holds the previous one; its next refresh is rejected and it then retries
    with the token from the file.
    """
    from bridge.errors import BridgeError
    from bridge.token_manager import XeroSession

    session = XeroSession(Config())
    try:
        tenant_id = session.ensure_ready()
    except BridgeError as e:
        click.echo(f"✗ {e}", err=True)
        detail = getattr(e, "detail", None)
        if detail:
            click.echo(f"  Xero said: {json.dumps(detail) if not isinstance(detail, str) else detail}", err=True)
        sys.exit(1)

    click.echo(f"✓ Token refreshed, expires at {session.token.expires_at}")
    click.echo(f"  Tenant: {tenant_id}")


if __name__ == "__main__":
    cli()
