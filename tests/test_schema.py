"""Tool input contract tests."""

from __future__ import annotations

import pytest
from heroku_mcp.schema import (
    MAX_LOG_LINES,
    ConfigVarsInput,
    GetLogsInput,
    ListAppsInput,
    ListReleasesInput,
    LogSource,
    ScaleInput,
)
from pydantic import ValidationError


@pytest.mark.unit
def test_app_name_is_read_from_camel_case_alias() -> None:
    params = ListReleasesInput.model_validate({"appName": "rocket"})

    assert params.app_name == "rocket"
    assert params.limit == 10


@pytest.mark.unit
def test_missing_app_name_is_rejected() -> None:
    with pytest.raises(ValidationError):
        ListReleasesInput.model_validate({"limit": 3})


@pytest.mark.unit
def test_empty_app_name_is_rejected() -> None:
    with pytest.raises(ValidationError):
        ScaleInput.model_validate({"appName": "", "dyno": "web", "quantity": 1})


@pytest.mark.unit
def test_unknown_fields_are_rejected() -> None:
    with pytest.raises(ValidationError):
        ListAppsInput.model_validate({"teamName": "platform"})


@pytest.mark.unit
def test_get_logs_defaults_and_bounds() -> None:
    params = GetLogsInput.model_validate({"appName": "rocket", "source": "app"})

    assert params.lines == 100
    assert params.source is LogSource.APP
    with pytest.raises(ValidationError):
        GetLogsInput.model_validate({"appName": "rocket", "lines": MAX_LOG_LINES + 1})


@pytest.mark.unit
def test_scale_accepts_zero_quantity() -> None:
    params = ScaleInput.model_validate({"appName": "rocket", "dyno": "web", "quantity": 0})

    assert params.quantity == 0
    assert params.size is None


@pytest.mark.unit
def test_scale_requires_quantity() -> None:
    with pytest.raises(ValidationError):
        ScaleInput.model_validate({"appName": "rocket", "dyno": "web"})


@pytest.mark.unit
def test_config_vars_write_mode_requires_key() -> None:
    with pytest.raises(ValidationError, match="key is required"):
        ConfigVarsInput.model_validate({"appName": "rocket", "set": True, "value": "x"})


@pytest.mark.unit
def test_config_vars_explicit_null_value_means_unset() -> None:
    params = ConfigVarsInput.model_validate(
        {"appName": "rocket", "set": True, "key": "OLD", "value": None}
    )

    assert params.set_ is True
    assert params.value is None


@pytest.mark.unit
def test_config_vars_empty_key_is_rejected_in_read_mode() -> None:
    with pytest.raises(ValidationError):
        ConfigVarsInput.model_validate({"appName": "rocket", "key": ""})
