"""Heroku tool handlers and the default tool catalog."""

from __future__ import annotations

import asyncio
import functools
import logging
import re
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import httpx
from mcp.types import CallToolResult

from heroku_mcp.heroku_client import (
    HerokuDyno,
    HerokuError,
    HerokuFormation,
    create_log_session,
    fetch_log_text,
    get_app,
    get_config_vars,
    list_addons,
    list_apps,
    list_dynos,
    list_formations,
    list_releases,
    restart_dynos,
    scale_formation,
    set_config_vars,
)
from heroku_mcp.schema import (
    ConfigVarsInput,
    GetAppInput,
    GetLogsInput,
    ListAddonsInput,
    ListAppsInput,
    ListReleasesInput,
    RestartInput,
    ScaleInput,
)
from heroku_mcp.tools import ToolDefinition, ToolRegistry, error_result, json_result

logger = logging.getLogger(__name__)

SENSITIVE_KEY_PATTERN = re.compile(r"key|secret|password|token|api", re.IGNORECASE)
MASK_VISIBLE_CHARS = 4
READ_BACK_NOTE = (
    "State is read back immediately after the request; the change may still be in "
    "progress and is not guaranteed to be reflected yet."
)

InputT = TypeVar("InputT")


def reports_failure(
    action: str,
) -> Callable[
    [Callable[[httpx.AsyncClient, InputT], Awaitable[CallToolResult]]],
    Callable[[httpx.AsyncClient, InputT], Awaitable[CallToolResult]],
]:
    """Turn any handler error into a ``Failed to <action>: ...`` error result."""

    def decorator(
        handler: Callable[[httpx.AsyncClient, InputT], Awaitable[CallToolResult]],
    ) -> Callable[[httpx.AsyncClient, InputT], Awaitable[CallToolResult]]:
        @functools.wraps(handler)
        async def wrapper(client: httpx.AsyncClient, params: InputT) -> CallToolResult:
            try:
                return await handler(client, params)
            except HerokuError as error:
                return error_result(f"Failed to {action}: {error}")
            except Exception as error:
                logger.exception("Unexpected error in %s handler", handler.__name__)
                return error_result(f"Failed to {action}: {error}")

        return wrapper

    return decorator


def mask_config_value(key: str, value: str) -> str:
    """Hide all but the first few characters of values whose key looks sensitive."""
    if SENSITIVE_KEY_PATTERN.search(key):
        return f"{value[:MASK_VISIBLE_CHARS]}****"
    return value


def _dyno_summary(dyno: HerokuDyno) -> dict[str, Any]:
    return {"name": dyno.name, "type": dyno.type, "state": dyno.state, "size": dyno.size}


def _formation_summary(formation: HerokuFormation) -> dict[str, Any]:
    return {"type": formation.type, "quantity": formation.quantity, "size": formation.size}


@reports_failure("list apps")
async def handle_list_apps(client: httpx.AsyncClient, params: ListAppsInput) -> CallToolResult:
    apps = await list_apps(client=client, team=params.team)
    return json_result(
        [
            {
                "name": app.name,
                "web_url": app.web_url,
                "region": app.region,
                "stack": app.stack,
                "owner": app.owner_email,
                "team": app.team,
                "maintenance": app.maintenance,
                "created_at": app.created_at,
            }
            for app in apps
        ]
    )


@reports_failure("get app")
async def handle_get_app(client: httpx.AsyncClient, params: GetAppInput) -> CallToolResult:
    """App details, dynos and formation, fetched concurrently; any failure fails the call."""
    app, dynos, formations = await asyncio.gather(
        get_app(client=client, app_name=params.app_name),
        list_dynos(client=client, app_name=params.app_name),
        list_formations(client=client, app_name=params.app_name),
    )
    return json_result(
        {
            "name": app.name,
            "id": app.id,
            "web_url": app.web_url,
            "region": app.region,
            "stack": app.stack,
            "owner": app.owner_email,
            "team": app.team,
            "maintenance": app.maintenance,
            "created_at": app.created_at,
            "updated_at": app.updated_at,
            "dynos": [_dyno_summary(dyno) for dyno in dynos],
            "formation": [
                {**_formation_summary(formation), "command": formation.command}
                for formation in formations
            ],
        }
    )


@reports_failure("list releases")
async def handle_list_releases(
    client: httpx.AsyncClient,
    params: ListReleasesInput,
) -> CallToolResult:
    releases = await list_releases(client=client, app_name=params.app_name, limit=params.limit)
    return json_result(
        [
            {
                "version": release.version,
                "description": release.description,
                "status": release.status,
                "user": release.user_email,
                "current": release.current,
                "created_at": release.created_at,
            }
            for release in releases
        ]
    )


@reports_failure("get logs")
async def handle_get_logs(client: httpx.AsyncClient, params: GetLogsInput) -> CallToolResult:
    """Create a log session and read it once; a cold session is not retried."""
    source = params.source.value if params.source is not None else None
    session = await create_log_session(
        client=client,
        app_name=params.app_name,
        lines=params.lines,
        dyno=params.dyno,
        source=source,
    )
    logs = await fetch_log_text(client=client, logplex_url=session.logplex_url)
    return json_result(
        {
            "app": params.app_name,
            "lines_requested": params.lines,
            "filters": {
                "dyno": params.dyno or "all",
                "source": source or "all",
            },
            "logs": logs,
        }
    )


@reports_failure("restart")
async def handle_restart(client: httpx.AsyncClient, params: RestartInput) -> CallToolResult:
    await restart_dynos(client=client, app_name=params.app_name, dyno=params.dyno)
    dynos = await list_dynos(client=client, app_name=params.app_name)
    if params.dyno:
        message = f"Dyno {params.dyno} restart requested"
    else:
        message = "Restart requested for all dynos"
    return json_result(
        {
            "app": params.app_name,
            "restarted": params.dyno or "all",
            "message": message,
            "current_dynos": [
                {"name": dyno.name, "state": dyno.state, "type": dyno.type} for dyno in dynos
            ],
            "note": READ_BACK_NOTE,
        }
    )


@reports_failure("scale")
async def handle_scale(client: httpx.AsyncClient, params: ScaleInput) -> CallToolResult:
    scaled = await scale_formation(
        client=client,
        app_name=params.app_name,
        dyno_type=params.dyno,
        quantity=params.quantity,
        size=params.size,
    )
    formations = await list_formations(client=client, app_name=params.app_name)
    return json_result(
        {
            "app": params.app_name,
            "scaled": _formation_summary(scaled),
            "message": f"Scaled {params.dyno} to {params.quantity} dyno(s)",
            "formation": [_formation_summary(formation) for formation in formations],
            "note": READ_BACK_NOTE,
        }
    )


@reports_failure("list add-ons")
async def handle_list_addons(client: httpx.AsyncClient, params: ListAddonsInput) -> CallToolResult:
    addons = await list_addons(client=client, app_name=params.app_name)
    return json_result(
        {
            "app": params.app_name,
            "addons": [
                {
                    "name": addon.name,
                    "service": addon.service,
                    "plan": addon.plan,
                    "state": addon.state,
                    "created_at": addon.created_at,
                }
                for addon in addons
            ],
            "count": len(addons),
        }
    )


@reports_failure("manage config vars")
async def handle_config_vars(client: httpx.AsyncClient, params: ConfigVarsInput) -> CallToolResult:
    """Multiplex config-var reads and writes on the ``set`` flag."""
    if params.set_:
        # Registry input validation already rejects this; direct handler calls do not.
        if params.key is None:
            return error_result("Key is required when setting config vars")
        updated = await set_config_vars(
            client=client,
            app_name=params.app_name,
            config_vars={params.key: params.value},
        )
        return json_result(
            {
                "app": params.app_name,
                "action": "unset" if params.value is None else "set",
                "key": params.key,
                "value": "(unset)" if params.value is None else params.value,
                "config_vars": updated,
            }
        )

    config_vars = await get_config_vars(client=client, app_name=params.app_name)
    if params.key is not None:
        return json_result(
            {
                "app": params.app_name,
                "key": params.key,
                "value": config_vars.get(params.key),
                "exists": params.key in config_vars,
            }
        )

    return json_result(
        {
            "app": params.app_name,
            "config_vars": {key: mask_config_value(key, value) for key, value in config_vars.items()},
            "count": len(config_vars),
            "note": "Sensitive values are partially masked. Use key parameter to get full value.",
        }
    )


HEROKU_TOOLS: tuple[ToolDefinition, ...] = (
    ToolDefinition(
        name="heroku_list_apps",
        description="List all Heroku apps. Optionally filter by team.",
        input_model=ListAppsInput,
        handler=handle_list_apps,
    ),
    ToolDefinition(
        name="heroku_get_app",
        description="Get detailed information about a Heroku app including dynos and formation.",
        input_model=GetAppInput,
        handler=handle_get_app,
    ),
    ToolDefinition(
        name="heroku_list_releases",
        description="List releases for a Heroku app. Shows deployment history.",
        input_model=ListReleasesInput,
        handler=handle_list_releases,
    ),
    ToolDefinition(
        name="heroku_get_logs",
        description="Get recent logs from a Heroku app. Can filter by dyno or source.",
        input_model=GetLogsInput,
        handler=handle_get_logs,
    ),
    ToolDefinition(
        name="heroku_restart",
        description="Restart dynos for a Heroku app. Can restart all dynos or a specific one.",
        input_model=RestartInput,
        handler=handle_restart,
    ),
    ToolDefinition(
        name="heroku_scale",
        description="Scale dynos for a Heroku app. Change the number of running dynos.",
        input_model=ScaleInput,
        handler=handle_scale,
    ),
    ToolDefinition(
        name="heroku_list_addons",
        description="List all add-ons attached to a Heroku app (databases, caches, etc.)",
        input_model=ListAddonsInput,
        handler=handle_list_addons,
    ),
    ToolDefinition(
        name="heroku_config_vars",
        description="Get or set config vars (environment variables) for a Heroku app.",
        input_model=ConfigVarsInput,
        handler=handle_config_vars,
    ),
)


def build_tool_registry(client: httpx.AsyncClient) -> ToolRegistry:
    """Build the registry of all Heroku tools bound to ``client``."""
    return ToolRegistry(HEROKU_TOOLS, client=client)
