"""Typer CLI for the Heroku MCP server."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Annotated

import typer

from heroku_mcp.heroku_client import (
    DEFAULT_TIMEOUT_SECONDS,
    HEROKU_API_KEY_ENV_VAR,
    HerokuApiError,
    HerokuAuthError,
    HerokuTransportError,
    build_heroku_client,
    fetch_account_email,
    get_app,
    get_heroku_token_with_source,
)
from heroku_mcp.server import run_stdio_server

app = typer.Typer(help="MCP server for managing Heroku apps through the Platform API.")

TimeoutOption = Annotated[
    float,
    typer.Option(
        envvar="HEROKU_MCP_TIMEOUT_SECONDS",
        help="Heroku API timeout in seconds for each request.",
    ),
]


def configure_logging(level: str) -> None:
    """Send logs to stderr; stdout carries the MCP protocol."""
    logging.basicConfig(
        level=level.upper(),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command("serve")
def serve_command(
    timeout_seconds: TimeoutOption = DEFAULT_TIMEOUT_SECONDS,
    log_level: Annotated[
        str,
        typer.Option(envvar="HEROKU_MCP_LOG_LEVEL", help="Log level for stderr output."),
    ] = "INFO",
) -> None:
    """Run the MCP server over stdio."""
    try:
        token, _source = get_heroku_token_with_source()
    except HerokuAuthError as error:
        typer.echo(f"Error: {HEROKU_API_KEY_ENV_VAR} environment variable is required", err=True)
        typer.echo(
            "Set it to your Heroku API key (available at https://dashboard.heroku.com/account)",
            err=True,
        )
        raise typer.Exit(code=1) from error

    configure_logging(log_level)
    asyncio.run(run_stdio_server(token=token, timeout_seconds=timeout_seconds))


async def _check_access(
    *,
    app_name: str | None,
    timeout_seconds: float,
    trust_env: bool,
) -> tuple[str, bool]:
    async with build_heroku_client(timeout_seconds=timeout_seconds, trust_env=trust_env) as client:
        email = await fetch_account_email(client=client)
        if app_name is None:
            return email, False
        await get_app(client=client, app_name=app_name)
        return email, True


@app.command("auth-check")
def auth_check_command(
    app_name: Annotated[
        str | None,
        typer.Option("--app", help="Optional app name used for a read access check."),
    ] = None,
    timeout_seconds: TimeoutOption = DEFAULT_TIMEOUT_SECONDS,
    trust_env: Annotated[
        bool,
        typer.Option(
            "--trust-env/--no-trust-env",
            help="Use proxy/SSL environment variables from the current shell.",
        ),
    ] = True,
) -> None:
    """Validate Heroku API key setup and optional app read access."""
    try:
        _token, token_source = get_heroku_token_with_source()
    except HerokuAuthError as error:
        typer.echo(f"Heroku auth check failed: {error}")
        raise typer.Exit(code=1) from error

    typer.echo(f"Token detected in {token_source}.")

    try:
        email, checked_app = asyncio.run(
            _check_access(app_name=app_name, timeout_seconds=timeout_seconds, trust_env=trust_env)
        )
    except HerokuApiError as error:
        typer.echo(
            "Heroku auth check failed: "
            f"status={error.status_code} endpoint={error.endpoint}."
        )
        raise typer.Exit(code=1) from error
    except HerokuTransportError as error:
        typer.echo(f"Heroku auth check failed: network error ({error}).")
        raise typer.Exit(code=1) from error

    typer.echo(f"Authenticated as Heroku account '{email}'.")
    if checked_app:
        typer.echo(f"App access check passed for {app_name}.")
    typer.echo("Heroku API key setup is valid.")


if __name__ == "__main__":
    app()
