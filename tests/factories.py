"""Payload builders and client helpers shared by the unit tests."""

from __future__ import annotations

from collections.abc import Callable

import httpx
from heroku_mcp.heroku_client import build_heroku_client

TEST_TOKEN = "test-heroku-token"
LOGPLEX_URL = "https://logs.heroku.example/sessions/abc123?srv=1"


def make_client(
    handler: Callable[[httpx.Request], httpx.Response],
    *,
    token: str = TEST_TOKEN,
) -> httpx.AsyncClient:
    """Create an authenticated Heroku client backed by mock transport."""
    return build_heroku_client(token, transport=httpx.MockTransport(handler))


def make_app_payload(*, name: str = "rocket", team: str | None = None) -> dict[str, object]:
    """Build a minimal valid app payload."""
    return {
        "id": f"{name}-id",
        "name": name,
        "web_url": f"https://{name}.herokuapp.com/",
        "region": {"name": "us"},
        "stack": {"name": "heroku-24"},
        "owner": {"email": "ops@acme.test"},
        "team": {"name": team} if team else None,
        "maintenance": False,
        "created_at": "2026-01-02T03:04:05Z",
        "updated_at": "2026-02-03T04:05:06Z",
    }


def make_release_payload(version: int) -> dict[str, object]:
    return {
        "id": f"release-{version}",
        "version": version,
        "description": f"Deploy v{version}",
        "status": "succeeded",
        "created_at": "2026-01-02T03:04:05Z",
        "user": {"email": "deployer@acme.test"},
        "current": False,
    }


def make_dyno_payload(*, name: str = "web.1", state: str = "up") -> dict[str, object]:
    return {
        "id": f"{name}-id",
        "name": name,
        "type": name.split(".")[0],
        "state": state,
        "size": "Basic",
        "created_at": "2026-01-02T03:04:05Z",
        "updated_at": "2026-01-02T03:04:05Z",
    }


def make_formation_payload(
    *,
    process_type: str = "web",
    quantity: int = 1,
    size: str = "Basic",
    command: str | None = "gunicorn app:app",
) -> dict[str, object]:
    return {
        "id": f"{process_type}-formation-id",
        "type": process_type,
        "quantity": quantity,
        "size": size,
        "command": command,
    }


def make_addon_payload(*, name: str = "postgresql-curved-12345") -> dict[str, object]:
    return {
        "id": f"{name}-id",
        "name": name,
        "addon_service": {"name": "heroku-postgresql"},
        "plan": {"name": "heroku-postgresql:essential-0"},
        "state": "provisioned",
        "created_at": "2026-01-02T03:04:05Z",
    }


def make_log_session_payload(*, url: str = LOGPLEX_URL) -> dict[str, object]:
    return {"logplex_url": url, "created_at": "2026-01-02T03:04:05Z"}
