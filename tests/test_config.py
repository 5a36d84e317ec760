from __future__ import annotations

import shutil
from pathlib import Path

import pydantic
import pytest

from maildir_gtd.core.config import Config
from maildir_gtd.core.exceptions import ConfigurationError

OVERRIDE_VARS = (
    "CLOUD_STORAGE_WORKSPACE",
    "GTD_WORKSPACE_ROOT",
    "GTD_MAILBOXES_DIR",
    "GTD_HOSTNAME",
    "GTD_MAX_MESSAGE_SIZE",
    "LOG_LEVEL",
    "LOG_FORMAT",
    "MCP_SERVER_NAME",
    "MCP_TRANSPORT",
    "APP_DEBUG",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in OVERRIDE_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    config = Config()

    assert config.maildir.hostname == "swoft.local"
    assert config.maildir.max_message_size == 5 * 1024 * 1024
    assert config.maildir.inbox_limit == 10
    assert config.maildir.folder_limit == 50
    assert config.storage.work_item_extensions == [".md", ".eml"]
    assert config.mcp.transport == "stdio"


def test_load_from_yaml_with_env_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_file = tmp_path / "gtd.yaml"
    config_file.write_text(
        "storage:\n"
        "  workspace_root: from-yaml\n"
        "  work_item_extensions: [md]\n"
        "maildir:\n"
        "  hostname: yaml.local\n"
        "logging:\n"
        "  level: debug\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("CLOUD_STORAGE_WORKSPACE", str(tmp_path / "legacy"))
    monkeypatch.setenv("GTD_WORKSPACE_ROOT", str(tmp_path))
    monkeypatch.setenv("GTD_MAX_MESSAGE_SIZE", "2048")

    config = Config.load_from_yaml(config_file)

    assert config.storage.workspace_root == str(tmp_path)
    assert config.storage.work_item_extensions == [".md"]
    assert config.maildir.hostname == "yaml.local"
    assert config.maildir.max_message_size == 2048
    assert config.logging.level == "DEBUG"


def test_legacy_workspace_variable_still_applies(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CLOUD_STORAGE_WORKSPACE", str(tmp_path))

    config = Config.load_from_yaml(tmp_path / "missing.yaml")

    assert config.workspace_path == tmp_path


@pytest.mark.parametrize(
    "overrides",
    [
        {"mcp": {"transport": "carrier-pigeon"}},
        {"logging": {"level": "LOUD"}},
        {"logging": {"format": "xml"}},
        {"storage": {"mailboxes_dir": "/abs/Mailboxes"}},
        {"maildir": {"max_message_size": 0}},
    ],
)
def test_invalid_values_are_rejected(overrides: dict) -> None:
    with pytest.raises(pydantic.ValidationError):
        Config(**overrides)


def test_startup_validation_on_complete_workspace(config: Config) -> None:
    report = config.validate_startup_requirements()

    assert report["status"] == "valid"
    assert report["errors"] == []


def test_startup_validation_warns_on_missing_mailbox_parent(config: Config, workspace: Path) -> None:
    shutil.rmtree(workspace / "Organization")

    report = config.validate_startup_requirements()

    assert report["status"] == "warning"
    assert any("Organization" in warning for warning in report["warnings"])


def test_startup_validation_fails_without_workspace(tmp_path: Path) -> None:
    config = Config(storage={"workspace_root": str(tmp_path / "nowhere")})

    report = config.validate_startup_requirements()

    assert report["status"] == "error"


def test_to_dict_has_every_section(config: Config) -> None:
    assert set(config.to_dict()) == {"app", "storage", "maildir", "mcp", "logging"}


def test_malformed_yaml_raises_configuration_error(tmp_path: Path) -> None:
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("storage: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        Config.load_from_yaml(config_file)


def test_overrides_apply_before_validation(tmp_path: Path, captured_logs) -> None:
    config_file = tmp_path / "gtd.yaml"
    config_file.write_text("storage:\n  workspace_root: /nonexistent/workspace\n", encoding="utf-8")

    config = Config.load_from_yaml(config_file, overrides={"storage": {"workspace_root": str(tmp_path)}})

    assert config.workspace_path == tmp_path
    assert not any(log["event"] == "Workspace root not found" for log in captured_logs)


def test_overrides_win_over_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GTD_WORKSPACE_ROOT", str(tmp_path / "from-env"))

    config = Config.load_from_yaml(tmp_path / "missing.yaml", overrides={"storage": {"workspace_root": str(tmp_path)}})

    assert config.storage.workspace_root == str(tmp_path)
