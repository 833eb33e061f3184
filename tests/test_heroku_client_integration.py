"""Integration tests for the Heroku client against the live Platform API."""

from __future__ import annotations

import os

import pytest
from heroku_mcp.handlers import build_tool_registry
from heroku_mcp.heroku_client import build_heroku_client, fetch_account_email, list_apps
from heroku_mcp.tools import result_text


def _has_heroku_token() -> bool:
    """Return whether a Heroku API key is configured."""
    return bool(os.getenv("HEROKU_API_KEY"))


def _integration_app() -> str:
    """Return the app configured for read-only integration tests."""
    app_name = os.getenv("HEROKU_TEST_APP")
    if not app_name:
        pytest.skip("Set HEROKU_TEST_APP to run app-level Heroku integration tests.")
    return app_name


@pytest.mark.integration
@pytest.mark.asyncio
async def test_live_account_and_app_listing() -> None:
    if not _has_heroku_token():
        pytest.skip("Set HEROKU_API_KEY for integration tests.")

    async with build_heroku_client(timeout_seconds=20) as client:
        email = await fetch_account_email(client=client)
        apps = await list_apps(client=client)

    assert "@" in email
    assert all(app.name for app in apps)


@pytest.mark.integration
@pytest.mark.asyncio
async def test_live_read_only_tools_for_one_app() -> None:
    if not _has_heroku_token():
        pytest.skip("Set HEROKU_API_KEY for integration tests.")
    app_name = _integration_app()

    async with build_heroku_client(timeout_seconds=20) as client:
        registry = build_tool_registry(client)
        app_result = await registry.call_tool("heroku_get_app", {"appName": app_name})
        releases_result = await registry.call_tool(
            "heroku_list_releases", {"appName": app_name, "limit": 2}
        )

    assert app_result.isError is False, result_text(app_result)
    assert releases_result.isError is False, result_text(releases_result)
