from __future__ import annotations

import shutil
from pathlib import Path

import pytest

from maildir_gtd.core.exceptions import MailboxNotFoundError
from maildir_gtd.integrations.storage import LocalFileStorage
from maildir_gtd.models.common import Folder, MailboxCategory, MailboxSubcategory
from maildir_gtd.services.mailbox_directory import MailboxDirectory, folder_path


@pytest.mark.parametrize("folder", list(Folder))
def test_folder_path_dot_prefixes_gtd_folders(folder: Folder) -> None:
    path = folder_path("People/kevin@swoft.ai", folder)

    if folder in (Folder.NEW, Folder.CUR, Folder.TMP):
        assert path == f"People/kevin@swoft.ai/{folder.value}"
    else:
        assert path == f"People/kevin@swoft.ai/.{folder.value}"


@pytest.mark.parametrize("name", ["Reference", ".Reference", "reference", "Reference/"])
def test_folder_path_accepts_name_variants(name: str) -> None:
    assert folder_path("Organization/team@swoft.ai", name) == "Organization/team@swoft.ai/.Reference"


def test_folder_path_rejects_unknown_folder() -> None:
    with pytest.raises(ValueError):
        folder_path("People/kevin@swoft.ai", "Archive")


@pytest.mark.asyncio
async def test_discover_lists_people_and_organization(storage: LocalFileStorage, workspace: Path) -> None:
    (workspace / "People" / "README.md").write_text("not a mailbox", encoding="utf-8")

    discovery = await MailboxDirectory(storage).discover()
    by_address = {mailbox.address: mailbox for mailbox in discovery.mailboxes}

    assert set(by_address) == {"kevin@swoft.ai", "derick+claude@swoft.ai", "team@swoft.ai"}
    assert discovery.diagnostics == []

    assert by_address["kevin@swoft.ai"].path == "People/kevin@swoft.ai"
    assert by_address["kevin@swoft.ai"].subcategory is MailboxSubcategory.HUMAN
    assert by_address["derick+claude@swoft.ai"].is_ai_agent
    assert by_address["team@swoft.ai"].category is MailboxCategory.ORGANIZATION
    assert by_address["team@swoft.ai"].subcategory is None


@pytest.mark.asyncio
async def test_missing_parent_directory_is_reported_not_fatal(storage: LocalFileStorage, workspace: Path) -> None:
    shutil.rmtree(workspace / "Organization")

    discovery = await MailboxDirectory(storage).discover()

    assert {mailbox.address for mailbox in discovery.mailboxes} == {"kevin@swoft.ai", "derick+claude@swoft.ai"}
    assert len(discovery.diagnostics) == 1
    assert "Organization" in discovery.diagnostics[0]


@pytest.mark.asyncio
async def test_resolve_unknown_address_raises(storage: LocalFileStorage) -> None:
    directory = MailboxDirectory(storage)

    with pytest.raises(MailboxNotFoundError) as exc_info:
        await directory.resolve("nobody@swoft.ai")

    assert exc_info.value.details["address"] == "nobody@swoft.ai"


@pytest.mark.asyncio
async def test_resolve_is_case_sensitive(storage: LocalFileStorage) -> None:
    with pytest.raises(MailboxNotFoundError):
        await MailboxDirectory(storage).resolve("Kevin@swoft.ai")


@pytest.mark.asyncio
async def test_mailboxes_dir_prefixes_paths(tmp_path: Path) -> None:
    (tmp_path / "Mailboxes" / "People" / "kevin@swoft.ai" / "new").mkdir(parents=True)
    directory = MailboxDirectory(LocalFileStorage(tmp_path), mailboxes_dir="Mailboxes")

    mailbox = await directory.resolve("kevin@swoft.ai")

    assert mailbox.path == "Mailboxes/People/kevin@swoft.ai"
    assert folder_path(mailbox, Folder.NEW) == "Mailboxes/People/kevin@swoft.ai/new"
