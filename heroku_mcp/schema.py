"""Input contracts for the Heroku tools."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, model_validator

MAX_LOG_LINES = 1500


class LogSource(StrEnum):
    """Log sources accepted by the log-session endpoint."""

    APP = "app"
    HEROKU = "heroku"


class ToolInput(BaseModel):
    """Base for tool arguments; fields are exposed under their camelCase aliases."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class AppInput(ToolInput):
    """Arguments for tools that act on a single app."""

    app_name: str = Field(alias="appName", min_length=1, description="Name of the Heroku app")


class ListAppsInput(ToolInput):
    team: str | None = Field(default=None, description="Filter apps by team name (optional)")


class GetAppInput(AppInput):
    pass


class ListReleasesInput(AppInput):
    limit: int = Field(
        default=10,
        ge=1,
        description="Maximum number of releases to return (default: 10)",
    )


class GetLogsInput(AppInput):
    lines: int = Field(
        default=100,
        ge=1,
        le=MAX_LOG_LINES,
        description="Number of log lines to retrieve (default: 100)",
    )
    dyno: str | None = Field(
        default=None,
        description="Filter by dyno name (e.g., web.1, worker.1)",
    )
    source: LogSource | None = Field(
        default=None,
        description="Filter by source (app or heroku)",
    )


class RestartInput(AppInput):
    dyno: str | None = Field(
        default=None,
        description="Specific dyno to restart (e.g., web.1). Omit to restart all.",
    )


class ScaleInput(AppInput):
    dyno: str = Field(min_length=1, description="Dyno type to scale (e.g., web, worker)")
    quantity: int = Field(ge=0, description="Number of dynos to run")
    size: str | None = Field(
        default=None,
        description="Dyno size (eco, basic, standard-1x, standard-2x, etc.)",
    )


class ListAddonsInput(AppInput):
    pass


class ConfigVarsInput(AppInput):
    """Read or write config vars; ``set`` switches to write mode."""

    set_: bool = Field(
        default=False,
        alias="set",
        description="Set to true to modify config vars (default: false, just lists)",
    )
    key: str | None = Field(
        default=None,
        min_length=1,
        description="Config var key (for getting a specific var or setting)",
    )
    value: str | None = Field(
        default=None,
        description="Config var value when set=true. Omit or pass null to unset.",
    )

    @model_validator(mode="after")
    def validate_write_has_key(self) -> ConfigVarsInput:
        """Require a key in write mode."""
        if self.set_ and self.key is None:
            raise ValueError("key is required when setting config vars")
        return self
