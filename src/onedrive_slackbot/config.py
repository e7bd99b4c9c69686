from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


class ConfigError(ValueError):
    """Raised when configuration is invalid."""


DEFAULT_GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"


@dataclass(slots=True)
class DriveSettings:
    root_folder_name: str = "Client Folders"
    target_folder_suffix: str = "Wage Statements"
    processed_folder_name: str = "Processed Wage Statements"
    samples_folder_suffix: str = "Wage Statements Samples"
    drive_path: str = "/me/drive"
    graph_base_url: str = DEFAULT_GRAPH_BASE_URL
    timeout_seconds: int = 30
    max_workers: int = 4
    strict_root: bool = False


@dataclass(slots=True)
class AuthSettings:
    tenant_id_env_var: str = "AZURE_TENANT_ID"
    client_id_env_var: str = "AZURE_CLIENT_ID"
    client_secret_env_var: str = "AZURE_CLIENT_SECRET"
    access_token_env_var: str = "ONEDRIVE_ACCESS_TOKEN"


@dataclass(slots=True)
class SlackSettings:
    webhook_env_var: str = "SLACK_WEBHOOK_URL"
    timeout_seconds: int = 15


@dataclass(slots=True)
class StateSettings:
    path: str = "data/state.json"


@dataclass(slots=True)
class AppConfig:
    drive: DriveSettings = field(default_factory=DriveSettings)
    auth: AuthSettings = field(default_factory=AuthSettings)
    slack: SlackSettings = field(default_factory=SlackSettings)
    state: StateSettings = field(default_factory=StateSettings)
    log_level: str = "INFO"


def _as_bool(value: Any, *, field_name: str) -> bool:
    if isinstance(value, bool):
        return value

    if isinstance(value, int) and value in {0, 1}:
        return bool(value)

    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"true", "1", "yes", "on"}:
            return True
        if normalized in {"false", "0", "no", "off"}:
            return False

    raise ConfigError(f"{field_name} must be a boolean")


def _as_int(value: Any, *, field_name: str, minimum: int | None = None) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{field_name} must be an integer")

    try:
        parsed = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{field_name} must be an integer") from exc

    if minimum is not None and parsed < minimum:
        raise ConfigError(f"{field_name} must be >= {minimum}")
    return parsed


def _as_string(value: Any, *, field_name: str, default: str) -> str:
    if value is None:
        return default
    if isinstance(value, (dict, list)):
        raise ConfigError(f"{field_name} must be a string")
    return str(value).strip() or default


def _section(parsed: dict[str, Any], name: str) -> dict[str, Any]:
    raw = parsed.get(name, {}) or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{name} must be a mapping")
    return raw


def _resolve_relative_path(config_path: Path, raw_path: str) -> str:
    candidate = Path(raw_path).expanduser()
    if candidate.is_absolute():
        return str(candidate)
    return str((config_path.parent / candidate).resolve())


def load_config(path: str | Path) -> AppConfig:
    config_path = Path(path).expanduser().resolve()
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as handle:
        try:
            parsed = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc

    if not isinstance(parsed, dict):
        raise ConfigError("Config root must be a mapping")

    defaults = DriveSettings()
    raw_drive = _section(parsed, "drive")
    drive_settings = DriveSettings(
        root_folder_name=_as_string(
            raw_drive.get("root_folder_name"),
            field_name="drive.root_folder_name",
            default=defaults.root_folder_name,
        ),
        target_folder_suffix=_as_string(
            raw_drive.get("target_folder_suffix"),
            field_name="drive.target_folder_suffix",
            default=defaults.target_folder_suffix,
        ),
        processed_folder_name=_as_string(
            raw_drive.get("processed_folder_name"),
            field_name="drive.processed_folder_name",
            default=defaults.processed_folder_name,
        ),
        samples_folder_suffix=_as_string(
            raw_drive.get("samples_folder_suffix"),
            field_name="drive.samples_folder_suffix",
            default=defaults.samples_folder_suffix,
        ),
        drive_path="/"
        + _as_string(
            raw_drive.get("drive_path"),
            field_name="drive.drive_path",
            default=defaults.drive_path,
        ).strip("/"),
        graph_base_url=_as_string(
            raw_drive.get("graph_base_url"),
            field_name="drive.graph_base_url",
            default=defaults.graph_base_url,
        ).rstrip("/"),
        timeout_seconds=_as_int(
            raw_drive.get("timeout_seconds", defaults.timeout_seconds),
            field_name="drive.timeout_seconds",
            minimum=1,
        ),
        max_workers=_as_int(
            raw_drive.get("max_workers", defaults.max_workers),
            field_name="drive.max_workers",
            minimum=1,
        ),
        strict_root=_as_bool(
            raw_drive.get("strict_root", defaults.strict_root),
            field_name="drive.strict_root",
        ),
    )

    auth_defaults = AuthSettings()
    raw_auth = _section(parsed, "auth")
    auth_settings = AuthSettings(
        tenant_id_env_var=_as_string(
            raw_auth.get("tenant_id_env_var"),
            field_name="auth.tenant_id_env_var",
            default=auth_defaults.tenant_id_env_var,
        ),
        client_id_env_var=_as_string(
            raw_auth.get("client_id_env_var"),
            field_name="auth.client_id_env_var",
            default=auth_defaults.client_id_env_var,
        ),
        client_secret_env_var=_as_string(
            raw_auth.get("client_secret_env_var"),
            field_name="auth.client_secret_env_var",
            default=auth_defaults.client_secret_env_var,
        ),
        access_token_env_var=_as_string(
            raw_auth.get("access_token_env_var"),
            field_name="auth.access_token_env_var",
            default=auth_defaults.access_token_env_var,
        ),
    )

    raw_slack = _section(parsed, "slack")
    slack_settings = SlackSettings(
        webhook_env_var=_as_string(
            raw_slack.get("webhook_env_var"),
            field_name="slack.webhook_env_var",
            default="SLACK_WEBHOOK_URL",
        ),
        timeout_seconds=_as_int(
            raw_slack.get("timeout_seconds", 15),
            field_name="slack.timeout_seconds",
            minimum=1,
        ),
    )

    raw_state = _section(parsed, "state")
    state_path = _as_string(
        raw_state.get("path"),
        field_name="state.path",
        default="data/state.json",
    )
    state_settings = StateSettings(path=_resolve_relative_path(config_path, state_path))

    return AppConfig(
        drive=drive_settings,
        auth=auth_settings,
        slack=slack_settings,
        state=state_settings,
        log_level=str(parsed.get("log_level", "INFO")).upper(),
    )
