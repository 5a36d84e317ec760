"""Mailbox directory model.

Mailboxes live one level below ``Organization/`` or ``People/``::

    {mailboxes_dir}/People/kevin@swoft.ai/
        new/ cur/ tmp/
        .Next-Actions/ .Waiting-For/ .Projects/ .Someday-Maybe/ .Reference/

Mailboxes are provisioned externally; this module only discovers them.
"""

import posixpath
from typing import Any, List, Optional, Union

import structlog

from maildir_gtd.core.exceptions import MailboxNotFoundError, StorageNotFoundError
from maildir_gtd.integrations.storage import StorageBackend
from maildir_gtd.models.common import Folder, MailboxCategory, MailboxSubcategory
from maildir_gtd.models.mailbox import Mailbox, MailboxDiscovery


def folder_path(mailbox: Union[Mailbox, str], folder: Union[Folder, str]) -> str:
    """Path of a folder inside a mailbox.

    ``new``, ``cur`` and ``tmp`` map to themselves, GTD folders are
    dot-prefixed: ``folder_path(mb, "Reference") == f"{mb.path}/.Reference"``.
    """
    root = mailbox.path if isinstance(mailbox, Mailbox) else mailbox
    return f"{root}/{Folder.parse(folder).directory_name}"


class MailboxDirectory:
    """Resolves mailbox addresses to workspace paths."""

    def __init__(
        self,
        storage: StorageBackend,
        mailboxes_dir: str = "",
        logger: Optional[Any] = None
    ):
        self.storage = storage
        self.mailboxes_dir = mailboxes_dir.strip("/")
        self._logger = logger or structlog.get_logger(__name__)

    def _parent_path(self, category: MailboxCategory) -> str:
        if self.mailboxes_dir:
            return f"{self.mailboxes_dir}/{category.parent_directory}"
        return category.parent_directory

    async def discover(self) -> MailboxDiscovery:
        """List Organization and People mailboxes.

        A missing parent directory contributes no mailboxes and a diagnostic;
        the other category is still returned.
        """
        discovery = MailboxDiscovery()

        for category in (MailboxCategory.ORGANIZATION, MailboxCategory.PERSON):
            parent = self._parent_path(category)
            try:
                entries = await self.storage.list(parent)
            except StorageNotFoundError:
                diagnostic = f"No {category.parent_directory} mailboxes found at {parent}/"
                self._logger.warning("Mailbox parent directory missing", parent=parent)
                discovery.diagnostics.append(diagnostic)
                continue

            for entry in entries:
                if not entry.endswith("/"):
                    continue
                address = posixpath.basename(entry.rstrip("/"))
                discovery.mailboxes.append(self._build_mailbox(category, parent, address))

        self._logger.debug(
            "Discovered mailboxes",
            count=len(discovery.mailboxes),
            diagnostics=len(discovery.diagnostics)
        )
        return discovery

    async def list_mailboxes(self) -> List[Mailbox]:
        return (await self.discover()).mailboxes

    async def resolve(self, address: str) -> Mailbox:
        """Find the mailbox for an address (exact, case-sensitive match).

        Raises:
            MailboxNotFoundError: if no mailbox directory matches
        """
        discovery = await self.discover()
        mailbox = discovery.find(address)
        if mailbox is None:
            raise MailboxNotFoundError(
                f"Mailbox not found: {address}",
                {"address": address, "diagnostics": discovery.diagnostics}
            )
        return mailbox

    @staticmethod
    def _build_mailbox(category: MailboxCategory, parent: str, address: str) -> Mailbox:
        subcategory = None
        if category is MailboxCategory.PERSON:
            subcategory = MailboxSubcategory.AI_AGENT if "+" in address else MailboxSubcategory.HUMAN

        return Mailbox(
            address=address,
            path=f"{parent}/{address}",
            category=category,
            subcategory=subcategory,
        )
