from __future__ import annotations

from pathlib import Path

import pytest

from onedrive_slackbot.config import ConfigError, load_config


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_empty_config_uses_defaults(tmp_path: Path) -> None:
    config = load_config(_write(tmp_path, ""))

    assert config.drive.root_folder_name == "Client Folders"
    assert config.drive.target_folder_suffix == "Wage Statements"
    assert config.drive.processed_folder_name == "Processed Wage Statements"
    assert config.drive.samples_folder_suffix == "Wage Statements Samples"
    assert config.drive.drive_path == "/me/drive"
    assert config.drive.max_workers == 4
    assert config.drive.strict_root is False
    assert config.slack.webhook_env_var == "SLACK_WEBHOOK_URL"
    assert config.auth.access_token_env_var == "ONEDRIVE_ACCESS_TOKEN"
    assert config.state.path == str((tmp_path / "data/state.json").resolve())
    assert config.log_level == "INFO"


def test_overrides_are_applied(tmp_path: Path) -> None:
    config = load_config(
        _write(
            tmp_path,
            """
drive:
  root_folder_name: Clients
  target_folder_suffix: Payslips
  drive_path: users/ops@example.com/drive
  max_workers: 1
  strict_root: "yes"
slack:
  webhook_env_var: PAYROLL_WEBHOOK
state:
  path: /var/lib/onedrive-bot/state.json
log_level: debug
""",
        )
    )

    assert config.drive.root_folder_name == "Clients"
    assert config.drive.target_folder_suffix == "Payslips"
    assert config.drive.drive_path == "/users/ops@example.com/drive"
    assert config.drive.max_workers == 1
    assert config.drive.strict_root is True
    assert config.slack.webhook_env_var == "PAYROLL_WEBHOOK"
    assert config.state.path == "/var/lib/onedrive-bot/state.json"
    assert config.log_level == "DEBUG"


@pytest.mark.parametrize(
    "text, message",
    [
        ("- just\n- a list\n", "Config root must be a mapping"),
        ("drive: [1, 2]\n", "drive must be a mapping"),
        ("drive:\n  max_workers: 0\n", "drive.max_workers must be >= 1"),
        ("drive:\n  timeout_seconds: soon\n", "drive.timeout_seconds must be an integer"),
        ("drive:\n  strict_root: maybe\n", "drive.strict_root must be a boolean"),
        ("drive:\n  root_folder_name: [a, b]\n", "drive.root_folder_name must be a string"),
        ("drive: {root_folder_name: [unclosed\n", "Invalid YAML"),
    ],
)
def test_invalid_config_raises(tmp_path: Path, text: str, message: str) -> None:
    with pytest.raises(ConfigError, match=message):
        load_config(_write(tmp_path, text))


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Config file not found"):
        load_config(tmp_path / "missing.yaml")
