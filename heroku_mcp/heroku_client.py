"""Heroku Platform API wrapper and auth helpers."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import quote

import httpx
from dotenv import load_dotenv

HEROKU_API_BASE_URL = "https://api.heroku.com"
HEROKU_ACCEPT_HEADER = "application/vnd.heroku+json; version=3"
HEROKU_API_KEY_ENV_VAR = "HEROKU_API_KEY"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_RELEASE_LIMIT = 10
DEFAULT_LOG_LINES = 100

logger = logging.getLogger(__name__)


class HerokuAuthError(RuntimeError):
    """Raised when the Heroku API key is missing."""


class HerokuError(RuntimeError):
    """Base class for failures talking to the Heroku API."""


class HerokuApiError(HerokuError):
    """Raised when the Heroku API answers with a non-success status."""

    def __init__(self, message: str, *, status_code: int, endpoint: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.endpoint = endpoint


class HerokuTransportError(HerokuError):
    """Raised when a request never produced a usable HTTP response."""


@dataclass(frozen=True, slots=True)
class HerokuApp:
    """Normalized app record."""

    id: str
    name: str
    web_url: str | None
    region: str
    stack: str
    owner_email: str
    team: str | None
    maintenance: bool
    created_at: str
    updated_at: str


@dataclass(frozen=True, slots=True)
class HerokuRelease:
    """One deployment event for an app."""

    id: str
    version: int
    description: str
    status: str
    user_email: str
    current: bool
    created_at: str


@dataclass(frozen=True, slots=True)
class HerokuDyno:
    """One running process instance."""

    id: str
    name: str
    type: str
    state: str
    size: str
    created_at: str
    updated_at: str


@dataclass(frozen=True, slots=True)
class HerokuFormation:
    """Scaling configuration of one process type."""

    id: str
    type: str
    quantity: int
    size: str
    command: str | None


@dataclass(frozen=True, slots=True)
class HerokuAddon:
    """Add-on attached to an app."""

    id: str
    name: str
    service: str
    plan: str
    state: str
    created_at: str


@dataclass(frozen=True, slots=True)
class LogSession:
    """Short-lived, single-use pointer to a log stream."""

    logplex_url: str
    created_at: str


def _ensure_mapping(value: object, *, context: str) -> dict[str, Any]:
    """Ensure a response fragment is a JSON object."""
    if not isinstance(value, dict):
        raise HerokuApiError(
            f"Expected JSON object for {context}.",
            status_code=500,
            endpoint=context,
        )
    return value


def _ensure_rows(value: object, *, endpoint: str) -> list[dict[str, Any]]:
    """Ensure a response is a JSON array of objects."""
    if not isinstance(value, list):
        raise HerokuApiError(
            "Expected JSON array in Heroku response.",
            status_code=500,
            endpoint=endpoint,
        )
    rows: list[dict[str, Any]] = []
    for item in value:
        if not isinstance(item, dict):
            raise HerokuApiError(
                "Expected all array items to be JSON objects in Heroku response.",
                status_code=500,
                endpoint=endpoint,
            )
        rows.append(item)
    return rows


def _require_str(payload: dict[str, Any], *, key: str, endpoint: str) -> str:
    """Read a required string field from payload."""
    value = payload.get(key)
    if not isinstance(value, str):
        raise HerokuApiError(
            f"Expected string field '{key}' in Heroku response.",
            status_code=500,
            endpoint=endpoint,
        )
    return value


def _optional_str(payload: dict[str, Any], *, key: str, endpoint: str) -> str | None:
    """Read a string field that may be null or absent."""
    value = payload.get(key)
    if value is not None and not isinstance(value, str):
        raise HerokuApiError(
            f"Expected '{key}' to be a string or null in Heroku response.",
            status_code=500,
            endpoint=endpoint,
        )
    return value


def _require_bool(payload: dict[str, Any], *, key: str, endpoint: str) -> bool:
    """Read a required boolean field from payload."""
    value = payload.get(key)
    if not isinstance(value, bool):
        raise HerokuApiError(
            f"Expected boolean field '{key}' in Heroku response.",
            status_code=500,
            endpoint=endpoint,
        )
    return value


def _require_int(payload: dict[str, Any], *, key: str, endpoint: str) -> int:
    """Read a required integer field from payload."""
    value = payload.get(key)
    if not isinstance(value, int) or isinstance(value, bool):
        raise HerokuApiError(
            f"Expected integer field '{key}' in Heroku response.",
            status_code=500,
            endpoint=endpoint,
        )
    return value


def _require_object(payload: dict[str, Any], *, key: str, endpoint: str) -> dict[str, Any]:
    """Read a required object field from payload."""
    value = payload.get(key)
    if not isinstance(value, dict):
        raise HerokuApiError(
            f"Expected object field '{key}' in Heroku response.",
            status_code=500,
            endpoint=endpoint,
        )
    return value


def _nested_str(payload: dict[str, Any], *, key: str, field: str, endpoint: str) -> str:
    """Read a string nested one level down, e.g. ``region.name``."""
    return _require_str(
        _require_object(payload, key=key, endpoint=endpoint),
        key=field,
        endpoint=endpoint,
    )


def _quote_segment(value: str) -> str:
    """Quote one path segment so names cannot escape their position."""
    return quote(value, safe="")


def _error_detail(response: httpx.Response) -> str:
    """Extract a human-readable message from an error response body."""
    error_text = response.text
    try:
        payload = json.loads(error_text)
    except ValueError:
        return error_text
    if isinstance(payload, dict):
        for key in ("message", "error"):
            value = payload.get(key)
            if value:
                return str(value)
    return error_text


def _raise_http_error(response: httpx.Response, endpoint: str) -> None:
    """Raise a typed error for a non-success Heroku API response."""
    raise HerokuApiError(
        f"Heroku API error ({response.status_code}): {_error_detail(response)}",
        status_code=response.status_code,
        endpoint=endpoint,
    )


async def _request(
    client: httpx.AsyncClient,
    method: str,
    endpoint: str,
    *,
    body: dict[str, Any] | None = None,
) -> httpx.Response:
    """Send one request without retries and fail on non-2xx statuses."""
    logger.debug("Heroku API %s %s", method, endpoint)
    try:
        response = await client.request(method, endpoint, json=body)
    except httpx.RequestError as error:
        raise HerokuTransportError(
            f"Heroku API request {method} '{endpoint}' failed: {error}"
        ) from error
    if not response.is_success:
        _raise_http_error(response, endpoint)
    return response


async def _request_json(
    client: httpx.AsyncClient,
    method: str,
    endpoint: str,
    *,
    body: dict[str, Any] | None = None,
) -> Any:
    """Perform a request and decode the JSON body, empty bodies decode to ``{}``."""
    response = await _request(client, method, endpoint, body=body)
    if not response.content:
        return {}
    try:
        return response.json()
    except ValueError as error:
        raise HerokuApiError(
            "Expected JSON body in Heroku response.",
            status_code=500,
            endpoint=endpoint,
        ) from error


async def _request_json_list(client: httpx.AsyncClient, endpoint: str) -> list[dict[str, Any]]:
    """Perform a GET that returns an array of objects."""
    payload = await _request_json(client, "GET", endpoint)
    return _ensure_rows(payload, endpoint=endpoint)


def _parse_app(payload: dict[str, Any], *, endpoint: str) -> HerokuApp:
    """Build an app record from one API object."""
    team_payload = payload.get("team")
    team: str | None = None
    if team_payload is not None:
        team = _require_str(
            _ensure_mapping(team_payload, context=endpoint),
            key="name",
            endpoint=endpoint,
        )
    return HerokuApp(
        id=_require_str(payload, key="id", endpoint=endpoint),
        name=_require_str(payload, key="name", endpoint=endpoint),
        web_url=_optional_str(payload, key="web_url", endpoint=endpoint),
        region=_nested_str(payload, key="region", field="name", endpoint=endpoint),
        stack=_nested_str(payload, key="stack", field="name", endpoint=endpoint),
        owner_email=_nested_str(payload, key="owner", field="email", endpoint=endpoint),
        team=team,
        maintenance=_require_bool(payload, key="maintenance", endpoint=endpoint),
        created_at=_require_str(payload, key="created_at", endpoint=endpoint),
        updated_at=_require_str(payload, key="updated_at", endpoint=endpoint),
    )


def _parse_release(payload: dict[str, Any], *, endpoint: str) -> HerokuRelease:
    return HerokuRelease(
        id=_require_str(payload, key="id", endpoint=endpoint),
        version=_require_int(payload, key="version", endpoint=endpoint),
        description=_require_str(payload, key="description", endpoint=endpoint),
        status=_require_str(payload, key="status", endpoint=endpoint),
        user_email=_nested_str(payload, key="user", field="email", endpoint=endpoint),
        current=_require_bool(payload, key="current", endpoint=endpoint),
        created_at=_require_str(payload, key="created_at", endpoint=endpoint),
    )


def _parse_dyno(payload: dict[str, Any], *, endpoint: str) -> HerokuDyno:
    return HerokuDyno(
        id=_require_str(payload, key="id", endpoint=endpoint),
        name=_require_str(payload, key="name", endpoint=endpoint),
        type=_require_str(payload, key="type", endpoint=endpoint),
        state=_require_str(payload, key="state", endpoint=endpoint),
        size=_require_str(payload, key="size", endpoint=endpoint),
        created_at=_require_str(payload, key="created_at", endpoint=endpoint),
        updated_at=_require_str(payload, key="updated_at", endpoint=endpoint),
    )


def _parse_formation(payload: dict[str, Any], *, endpoint: str) -> HerokuFormation:
    return HerokuFormation(
        id=_require_str(payload, key="id", endpoint=endpoint),
        type=_require_str(payload, key="type", endpoint=endpoint),
        quantity=_require_int(payload, key="quantity", endpoint=endpoint),
        size=_require_str(payload, key="size", endpoint=endpoint),
        command=_optional_str(payload, key="command", endpoint=endpoint),
    )


def _parse_addon(payload: dict[str, Any], *, endpoint: str) -> HerokuAddon:
    return HerokuAddon(
        id=_require_str(payload, key="id", endpoint=endpoint),
        name=_require_str(payload, key="name", endpoint=endpoint),
        service=_nested_str(payload, key="addon_service", field="name", endpoint=endpoint),
        plan=_nested_str(payload, key="plan", field="name", endpoint=endpoint),
        state=_require_str(payload, key="state", endpoint=endpoint),
        created_at=_require_str(payload, key="created_at", endpoint=endpoint),
    )


def _parse_config_vars(payload: object, *, endpoint: str) -> dict[str, str]:
    """Validate a config-var map: string keys to string values."""
    mapping = _ensure_mapping(payload, context=endpoint)
    config_vars: dict[str, str] = {}
    for key, value in mapping.items():
        if not isinstance(value, str):
            raise HerokuApiError(
                f"Expected string value for config var '{key}' in Heroku response.",
                status_code=500,
                endpoint=endpoint,
            )
        config_vars[key] = value
    return config_vars


async def list_apps(*, client: httpx.AsyncClient, team: str | None = None) -> tuple[HerokuApp, ...]:
    """List apps visible to the token, optionally scoped to one team.

    Order is whatever the API returns.
    """
    endpoint = f"/teams/{_quote_segment(team)}/apps" if team else "/apps"
    rows = await _request_json_list(client, endpoint)
    return tuple(_parse_app(row, endpoint=endpoint) for row in rows)


async def get_app(*, client: httpx.AsyncClient, app_name: str) -> HerokuApp:
    """Fetch one app by name."""
    endpoint = f"/apps/{_quote_segment(app_name)}"
    payload = await _request_json(client, "GET", endpoint)
    return _parse_app(_ensure_mapping(payload, context=endpoint), endpoint=endpoint)


async def list_releases(
    *,
    client: httpx.AsyncClient,
    app_name: str,
    limit: int = DEFAULT_RELEASE_LIMIT,
) -> tuple[HerokuRelease, ...]:
    """Fetch releases and keep the first ``limit`` in server order (newest first)."""
    endpoint = f"/apps/{_quote_segment(app_name)}/releases"
    rows = await _request_json_list(client, endpoint)
    return tuple(_parse_release(row, endpoint=endpoint) for row in rows[:limit])


async def create_log_session(
    *,
    client: httpx.AsyncClient,
    app_name: str,
    lines: int = DEFAULT_LOG_LINES,
    dyno: str | None = None,
    source: str | None = None,
) -> LogSession:
    """Create a non-tailing log session.

    The returned URL is single-use and expires on the server's schedule.
    """
    endpoint = f"/apps/{_quote_segment(app_name)}/log-sessions"
    body: dict[str, Any] = {"lines": lines, "tail": False}
    if dyno:
        body["dyno"] = dyno
    if source:
        body["source"] = source
    payload = _ensure_mapping(
        await _request_json(client, "POST", endpoint, body=body),
        context=endpoint,
    )
    return LogSession(
        logplex_url=_require_str(payload, key="logplex_url", endpoint=endpoint),
        created_at=_require_str(payload, key="created_at", endpoint=endpoint),
    )


async def fetch_log_text(*, client: httpx.AsyncClient, logplex_url: str) -> str:
    """Read log text from a session URL without sending the API key."""
    try:
        url = httpx.URL(logplex_url)
    except httpx.InvalidURL as error:
        raise HerokuTransportError(f"Invalid log session URL: {error}") from error
    if not url.is_absolute_url:
        raise HerokuTransportError(f"Invalid log session URL: {logplex_url!r}")
    request = client.build_request("GET", url)
    request.headers.pop("Authorization", None)
    try:
        response = await client.send(request)
    except httpx.RequestError as error:
        raise HerokuTransportError(f"Failed to fetch logs: {error}") from error
    if not response.is_success:
        raise HerokuTransportError(f"Failed to fetch logs: {response.status_code}")
    return response.text


async def restart_dynos(
    *,
    client: httpx.AsyncClient,
    app_name: str,
    dyno: str | None = None,
) -> None:
    """Restart one named dyno, or every dyno of the app when ``dyno`` is omitted."""
    endpoint = f"/apps/{_quote_segment(app_name)}/dynos"
    if dyno:
        endpoint = f"{endpoint}/{_quote_segment(dyno)}"
    await _request_json(client, "DELETE", endpoint)


async def list_dynos(*, client: httpx.AsyncClient, app_name: str) -> tuple[HerokuDyno, ...]:
    endpoint = f"/apps/{_quote_segment(app_name)}/dynos"
    rows = await _request_json_list(client, endpoint)
    return tuple(_parse_dyno(row, endpoint=endpoint) for row in rows)


async def list_formations(
    *,
    client: httpx.AsyncClient,
    app_name: str,
) -> tuple[HerokuFormation, ...]:
    endpoint = f"/apps/{_quote_segment(app_name)}/formation"
    rows = await _request_json_list(client, endpoint)
    return tuple(_parse_formation(row, endpoint=endpoint) for row in rows)


async def scale_formation(
    *,
    client: httpx.AsyncClient,
    app_name: str,
    dyno_type: str,
    quantity: int,
    size: str | None = None,
) -> HerokuFormation:
    """Partially update one process type; an omitted size keeps the current one."""
    endpoint = f"/apps/{_quote_segment(app_name)}/formation/{_quote_segment(dyno_type)}"
    body: dict[str, Any] = {"quantity": quantity}
    if size:
        body["size"] = size
    payload = await _request_json(client, "PATCH", endpoint, body=body)
    return _parse_formation(_ensure_mapping(payload, context=endpoint), endpoint=endpoint)


async def list_addons(*, client: httpx.AsyncClient, app_name: str) -> tuple[HerokuAddon, ...]:
    endpoint = f"/apps/{_quote_segment(app_name)}/addons"
    rows = await _request_json_list(client, endpoint)
    return tuple(_parse_addon(row, endpoint=endpoint) for row in rows)


async def get_config_vars(*, client: httpx.AsyncClient, app_name: str) -> dict[str, str]:
    endpoint = f"/apps/{_quote_segment(app_name)}/config-vars"
    payload = await _request_json(client, "GET", endpoint)
    return _parse_config_vars(payload, endpoint=endpoint)


async def set_config_vars(
    *,
    client: httpx.AsyncClient,
    app_name: str,
    config_vars: dict[str, str | None],
) -> dict[str, str]:
    """Patch config vars; a ``None`` value deletes that key.

    Returns the full config map after the update.
    """
    endpoint = f"/apps/{_quote_segment(app_name)}/config-vars"
    payload = await _request_json(client, "PATCH", endpoint, body=dict(config_vars))
    return _parse_config_vars(payload, endpoint=endpoint)


async def fetch_account_email(*, client: httpx.AsyncClient) -> str:
    """Fetch the account email for token validation."""
    endpoint = "/account"
    payload = _ensure_mapping(await _request_json(client, "GET", endpoint), context=endpoint)
    return _require_str(payload, key="email", endpoint=endpoint)


def get_heroku_token() -> str:
    """Read the Heroku API key from environment and fail fast if missing."""
    token, _source = get_heroku_token_with_source()
    return token


def get_heroku_token_with_source() -> tuple[str, str]:
    """Read the Heroku API key and return it with its environment source key."""
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    api_key = os.getenv(HEROKU_API_KEY_ENV_VAR)
    if api_key:
        return api_key, HEROKU_API_KEY_ENV_VAR

    message = f"Missing Heroku API key. Set {HEROKU_API_KEY_ENV_VAR}."
    raise HerokuAuthError(message)


def build_heroku_client(
    token: str | None = None,
    *,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    trust_env: bool = True,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Build an authenticated Heroku HTTP client.

    The environment is consulted only when no token is passed in.
    """
    api_key = token if token is not None else get_heroku_token()
    headers = {
        "Accept": HEROKU_ACCEPT_HEADER,
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }
    return httpx.AsyncClient(
        base_url=HEROKU_API_BASE_URL,
        headers=headers,
        timeout=timeout_seconds,
        trust_env=trust_env,
        transport=transport,
    )
