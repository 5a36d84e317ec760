from __future__ import annotations

from pathlib import Path

import pytest
import structlog

from maildir_gtd.core.config import Config
from maildir_gtd.integrations.storage import LocalFileStorage
from maildir_gtd.services.factory import GTDServices, build_services

MAILBOXES = (
    "People/kevin@swoft.ai",
    "People/derick+claude@swoft.ai",
    "Organization/team@swoft.ai",
)

MAILBOX_FOLDERS = (
    "new",
    "cur",
    "tmp",
    ".Next-Actions",
    ".Waiting-For",
    ".Projects",
    ".Someday-Maybe",
    ".Reference",
)

SAMPLE_EML = """\
From: Kevin <kevin@swoft.ai>
To: derick+claude@swoft.ai
Subject: Review Q3 plan
Date: Mon, 06 Oct 2025 09:30:00 +0000
Message-ID: <q3-plan@swoft.ai>
X-GTD-Project: planning
X-GTD-Priority: high
X-GTD-Status: new
X-GTD-Tags: q3, review
MIME-Version: 1.0
Content-Type: text/plain; charset="utf-8"

Please review the Q3 plan before Friday.
"""


@pytest.fixture(autouse=True)
def captured_logs():
    with structlog.testing.capture_logs() as logs:
        yield logs


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    for mailbox in MAILBOXES:
        for folder in MAILBOX_FOLDERS:
            (tmp_path / mailbox / folder).mkdir(parents=True)
    return tmp_path


@pytest.fixture
def storage(workspace: Path) -> LocalFileStorage:
    return LocalFileStorage(workspace)


@pytest.fixture
def config(workspace: Path) -> Config:
    return Config(storage={"workspace_root": str(workspace)})


@pytest.fixture
def services(config: Config) -> GTDServices:
    return build_services(config)


@pytest.fixture
def sample_eml() -> str:
    return SAMPLE_EML


@pytest.fixture
def put_message(workspace: Path):
    """Write a raw .eml into a mailbox folder and return its path."""
    def _put(mailbox: str, folder: str, filename: str, content: str = SAMPLE_EML) -> Path:
        path = workspace / mailbox / folder / filename
        path.write_text(content, encoding="utf-8")
        return path
    return _put
