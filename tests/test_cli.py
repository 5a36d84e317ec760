from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from maildir_gtd.cli.main import app

runner = CliRunner()

DERICK = "derick+claude@swoft.ai"
DERICK_DIR = "People/derick+claude@swoft.ai"
FILENAME = "1700000000.1.swoft.local_2,.eml"


@pytest.fixture
def ws(workspace: Path) -> list:
    return ["--workspace", str(workspace), "--config-path", str(workspace / "missing.yaml")]


def test_mailboxes_lists_every_mailbox(ws: list) -> None:
    result = runner.invoke(app, ["mailboxes", *ws])

    assert result.exit_code == 0
    assert "kevin@swoft.ai" in result.output
    assert DERICK in result.output
    assert "team@swoft.ai" in result.output
    assert "🤖" in result.output


def test_empty_inbox(ws: list) -> None:
    result = runner.invoke(app, ["inbox", "kevin@swoft.ai", *ws])

    assert result.exit_code == 0
    assert "Inbox zero" in result.output


def test_unknown_mailbox_exits_with_error(ws: list) -> None:
    result = runner.invoke(app, ["inbox", "nobody@swoft.ai", *ws])

    assert result.exit_code == 1
    assert "Mailbox not found" in result.output


def test_send_delivers_to_inbox(ws: list, workspace: Path) -> None:
    result = runner.invoke(app, [
        "send",
        "--from", "kevin@swoft.ai",
        "--to", DERICK,
        "--subject", "Hello",
        "--body", "Body text",
        "--tag", "q3",
        *ws,
    ])

    assert result.exit_code == 0
    delivered = list((workspace / DERICK_DIR / "new").iterdir())
    assert len(delivered) == 1
    assert "X-GTD-Tags: q3" in delivered[0].read_text(encoding="utf-8")


def test_send_with_unknown_priority_exits_with_error(ws: list, workspace: Path) -> None:
    result = runner.invoke(app, [
        "send",
        "--from", "kevin@swoft.ai",
        "--to", DERICK,
        "--subject", "Hello",
        "--body", "Body text",
        "--priority", "bananas",
        *ws,
    ])

    assert result.exit_code == 1
    assert "Invalid priority" in result.output
    assert list((workspace / DERICK_DIR / "new").iterdir()) == []


def test_markup_in_message_text_is_shown_literally(ws: list, put_message, sample_eml: str) -> None:
    put_message(DERICK_DIR, "new", FILENAME, content=sample_eml.replace("Review Q3 plan", "Fix build [/WIP]"))

    listed = runner.invoke(app, ["inbox", DERICK, *ws])
    assert listed.exit_code == 0
    assert "WIP" in listed.output

    shown = runner.invoke(app, ["read", DERICK, FILENAME, *ws])
    assert shown.exit_code == 0
    assert "Fix build [/WIP]" in shown.output

    clarified = runner.invoke(app, [
        "clarify", DERICK, FILENAME, "--what", "build fix", "--actionable", "--outcome", "next_action", *ws,
    ])
    assert clarified.exit_code == 0
    assert "Fix build [/WIP]" in clarified.output


def test_clarify_and_organize(ws: list, put_message, workspace: Path) -> None:
    put_message(DERICK_DIR, "new", FILENAME)

    clarified = runner.invoke(app, [
        "clarify", DERICK, FILENAME,
        "--what", "Q3 plan FYI",
        "--not-actionable",
        "--outcome", "reference",
        *ws,
    ])
    assert clarified.exit_code == 0
    assert "Reference" in clarified.output

    organized = runner.invoke(app, ["organize", DERICK, FILENAME, "Reference", *ws])
    assert organized.exit_code == 0
    assert (workspace / DERICK_DIR / ".Reference" / FILENAME).is_file()

    repeated = runner.invoke(app, ["organize", DERICK, FILENAME, "Reference", *ws])
    assert repeated.exit_code == 1


def test_clarify_rejects_unknown_outcome(ws: list, put_message) -> None:
    put_message(DERICK_DIR, "new", FILENAME)

    result = runner.invoke(app, ["clarify", DERICK, FILENAME, "--what", "x", "--outcome", "later", *ws])

    assert result.exit_code == 1


def test_read_missing_message(ws: list) -> None:
    result = runner.invoke(app, ["read", DERICK, "missing.eml", *ws])

    assert result.exit_code == 1
    assert "Message not found" in result.output


def test_config_validate(ws: list) -> None:
    result = runner.invoke(app, ["config", "--validate", *ws])

    assert result.exit_code == 0
    assert "Configuration is valid" in result.output


def test_broken_config_file_exits_with_error(workspace: Path) -> None:
    config_file = workspace / "broken.yaml"
    config_file.write_text("mcp:\n  transport: carrier-pigeon\n", encoding="utf-8")

    result = runner.invoke(app, ["mailboxes", "--workspace", str(workspace), "--config-path", str(config_file)])

    assert result.exit_code == 1
    assert "Configuration error" in result.output
