"""Maildir service - GTD mailbox queries and mutations.

Batch reads (``get_inbox``, ``get_folder``) are fail-soft per item: a message
that vanished or does not parse is logged and skipped, while a folder that
cannot be listed fails the whole call. Single-item operations report expected
negative outcomes through their return values.
"""

import asyncio
import dataclasses
import posixpath
from email.utils import parseaddr
from typing import Any, List, Optional, Union

import structlog

from maildir_gtd.core.exceptions import (
    DecodingError,
    OversizedMessageError,
    StorageConflictError,
    StorageError,
    StorageNotFoundError,
    ValidationError,
)
from maildir_gtd.integrations.storage import FileMetadata, StorageBackend
from maildir_gtd.models.common import Folder, GTDPriority, READ_PROBE_ORDER, STAGING_FOLDERS
from maildir_gtd.models.mailbox import Mailbox, MailboxDiscovery
from maildir_gtd.models.message import (
    Attachment,
    EmailAddress,
    GTDMetadata,
    MaildirFlags,
    MessageListItem,
    MoveResult,
    ParsedMessage,
    SendResult,
)
from maildir_gtd.models.workflow import ArchiveInstruction, InboxItem
from maildir_gtd.services.gtd_workflow import GTDWorkflow
from maildir_gtd.services.mailbox_directory import MailboxDirectory, folder_path
from maildir_gtd.services.message_codec import MessageCodec, parse_flags

DEFAULT_MAX_MESSAGE_SIZE = 5 * 1024 * 1024  # 5 MiB
MAX_FILENAME_ATTEMPTS = 10


def _to_address(value: Union[str, EmailAddress]) -> EmailAddress:
    if isinstance(value, EmailAddress):
        return value
    name, email = parseaddr(value)
    return EmailAddress(email=email or value.strip(), name=name or None)


def _normalize_priority(value: Union[str, GTDPriority, None]) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, GTDPriority):
        return value.value
    try:
        return GTDPriority(str(value).strip().lower()).value
    except ValueError:
        raise ValidationError(
            f"Invalid priority: {value}. Must be one of high, medium, low",
            {"priority": value}
        )


class MaildirService:
    """Service for GTD operations on Maildir mailboxes."""

    def __init__(
        self,
        storage: StorageBackend,
        directory: MailboxDirectory,
        codec: MessageCodec,
        workflow: GTDWorkflow,
        max_message_size: int = DEFAULT_MAX_MESSAGE_SIZE,
        max_concurrency: int = 5,
        logger: Optional[Any] = None
    ):
        self.storage = storage
        self.directory = directory
        self.codec = codec
        self.workflow = workflow
        self.max_message_size = max_message_size
        self.max_concurrency = max_concurrency
        self._logger = logger or structlog.get_logger(__name__)

    async def discover_mailboxes(self) -> MailboxDiscovery:
        return await self.directory.discover()

    async def list_mailboxes(self) -> List[Mailbox]:
        """List all available mailboxes (email addresses)."""
        return await self.directory.list_mailboxes()

    async def get_inbox(self, address: str, limit: int = 10) -> List[MessageListItem]:
        """Get messages from a mailbox's new/ folder.

        Messages larger than ``max_message_size`` are not parsed; a flagged,
        high-priority placeholder stands in for each of them.
        """
        mailbox = await self.directory.resolve(address)
        return await self._load_folder(mailbox, Folder.NEW, limit, size_guard=True)

    async def get_folder(
        self,
        address: str,
        folder: Union[Folder, str],
        limit: int = 50
    ) -> List[MessageListItem]:
        """Get messages from a specific GTD folder."""
        mailbox = await self.directory.resolve(address)
        return await self._load_folder(mailbox, self._parse_folder(folder), limit, size_guard=False)

    async def read_message(self, address: str, filename: str) -> Optional[ParsedMessage]:
        """Read a message from the first folder that holds it.

        Folders are probed in ``READ_PROBE_ORDER``. Returns None when no
        folder contains the file.
        """
        mailbox = await self.directory.resolve(address)

        for folder in READ_PROBE_ORDER:
            path = f"{folder_path(mailbox, folder)}/{filename}"
            try:
                raw = await self.storage.read(path)
            except StorageNotFoundError:
                continue

            try:
                return self.codec.decode(raw)
            except DecodingError as e:
                self._logger.warning("Failed to parse message", path=path, error=e.message)

        self._logger.info("Message not found", mailbox=address, filename=filename)
        return None

    async def move_to_folder(
        self,
        address: str,
        filename: str,
        target: Union[Folder, str]
    ) -> MoveResult:
        """Move a message out of new/ or cur/ into a GTD folder (ORGANIZE step).

        The move is a rename and never overwrites an existing file.
        """
        mailbox = await self.directory.resolve(address)
        target_folder = self._parse_folder(target)

        source_folder = None
        for folder in STAGING_FOLDERS:
            if await self.storage.exists(f"{folder_path(mailbox, folder)}/{filename}"):
                source_folder = folder
                break

        if source_folder is None:
            return MoveResult(
                success=False,
                message=f"Message {filename} not found in new/ or cur/",
            )

        source = f"{folder_path(mailbox, source_folder)}/{filename}"
        target_path = f"{folder_path(mailbox, target_folder)}/{filename}"
        move_label = f"{source_folder.directory_name}/{filename} → {target_folder.directory_name}/"

        if source_folder is target_folder:
            return MoveResult(
                success=False,
                message=f"Message {filename} is already in {target_folder.directory_name}/",
                source=source,
                target=target_path,
            )

        try:
            await self.storage.move(source, target_path)
        except StorageConflictError:
            return MoveResult(
                success=False,
                message=f"Move refused: {move_label} already contains {filename}",
                source=source,
                target=target_path,
            )
        except StorageNotFoundError:
            return MoveResult(
                success=False,
                message=f"Message {filename} disappeared before it could be moved",
                source=source,
                target=target_path,
            )

        self._logger.info(
            "Message moved",
            mailbox=address,
            filename=filename,
            source=source_folder.value,
            target=target_folder.value
        )
        return MoveResult(success=True, message=f"Moved {move_label}", source=source, target=target_path)

    async def send_message(
        self,
        from_: Union[str, EmailAddress],
        to: str,
        subject: str,
        text: str,
        html: Optional[str] = None,
        gtd: Optional[GTDMetadata] = None,
        attachments: Optional[List[Attachment]] = None
    ) -> SendResult:
        """Create a new .eml in the recipient's new/ folder.

        The GTD status is always ``new``. An unknown priority is rejected
        before anything is written. Filenames are created exclusively; a
        collision within the same second retries with a sequence number.
        """
        gtd = gtd or GTDMetadata()
        priority = _normalize_priority(gtd.priority)

        recipient = _to_address(to)
        mailbox = await self.directory.resolve(recipient.email)

        gtd = dataclasses.replace(gtd, status="new", priority=priority)
        content = self.codec.encode(
            from_=_to_address(from_),
            to=recipient,
            subject=subject,
            text=text,
            html=html,
            attachments=attachments,
            gtd=gtd,
        )

        inbox_path = folder_path(mailbox, Folder.NEW)
        for sequence in range(MAX_FILENAME_ATTEMPTS):
            filename = self.codec.generate_filename(sequence=sequence)
            path = f"{inbox_path}/{filename}"
            try:
                await self.storage.write(path, content, exclusive=True)
            except StorageConflictError:
                self._logger.debug("Filename collision", path=path, sequence=sequence)
                continue

            self._logger.info("Message sent", to=recipient.email, filename=filename)
            return SendResult(filename=filename, path=path)

        raise StorageConflictError(
            f"Could not allocate a unique filename in {inbox_path}",
            {"attempts": MAX_FILENAME_ATTEMPTS}
        )

    async def scan_work_items(self, subfolder: str) -> List[InboxItem]:
        """Run GTD COLLECT over a plain workspace folder of work items."""
        entries = await self.storage.list(subfolder)

        metadata: List[FileMetadata] = []
        for entry in entries:
            try:
                metadata.append(await self.storage.stat(entry.rstrip("/")))
            except StorageNotFoundError:
                self._logger.debug("Entry vanished during scan", path=entry)

        return self.workflow.collect(metadata)

    async def archive_work_item(self, inbox_owner: str, item_filename: str) -> ArchiveInstruction:
        """Build the GTD ORGANIZE instruction for a work item and carry it out."""
        instruction = self.workflow.organize(item_filename, inbox_owner)

        try:
            await self.storage.move(instruction.source, instruction.target)
            instruction.status = "COMPLETED"
        except StorageNotFoundError:
            instruction.status = "SOURCE_NOT_FOUND"
        except StorageConflictError:
            instruction.status = "TARGET_EXISTS"

        self._logger.info(
            "Work item archive attempted",
            item=item_filename,
            inbox_owner=inbox_owner,
            status=instruction.status
        )
        return instruction

    # Private helper methods

    @staticmethod
    def _parse_folder(folder: Union[Folder, str]) -> Folder:
        try:
            return Folder.parse(folder)
        except ValueError as e:
            raise ValidationError(str(e), {"folder": str(folder)})

    async def _load_folder(
        self,
        mailbox: Mailbox,
        folder: Folder,
        limit: int,
        size_guard: bool
    ) -> List[MessageListItem]:
        directory = folder_path(mailbox, folder)
        entries = await self.storage.list(directory)

        filenames = [
            posixpath.basename(entry)
            for entry in entries
            if not entry.endswith("/") and entry.endswith(".eml")
        ]
        filenames = filenames[:max(1, limit)]

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def load_with_semaphore(filename: str) -> Optional[MessageListItem]:
            async with semaphore:
                return await self._load_item(mailbox, folder, directory, filename, size_guard)

        results = await asyncio.gather(*(load_with_semaphore(name) for name in filenames))
        items = [item for item in results if item is not None]

        self._logger.debug(
            "Loaded folder",
            mailbox=mailbox.address,
            folder=folder.value,
            listed=len(filenames),
            returned=len(items)
        )
        return items

    async def _load_item(
        self,
        mailbox: Mailbox,
        folder: Folder,
        directory: str,
        filename: str,
        size_guard: bool
    ) -> Optional[MessageListItem]:
        path = f"{directory}/{filename}"
        flags = parse_flags(filename)

        try:
            if size_guard:
                metadata = await self.storage.stat(path)
                self._guard_size(path, metadata)
            raw = await self.storage.read(path)
            parsed = self.codec.decode(raw)
        except OversizedMessageError as e:
            self._logger.warning("Skipping oversized message", path=path, size=e.size, limit=e.limit)
            return self._oversized_placeholder(mailbox, folder, filename, path, metadata)
        except StorageError as e:
            self._logger.warning("Message unavailable", path=path, error=e.message)
            return None
        except DecodingError as e:
            self._logger.error("Failed to parse message", path=path, error=e.message)
            return None

        return MessageListItem.from_parsed(parsed, filename, path, folder, flags)

    def _guard_size(self, path: str, metadata: FileMetadata) -> None:
        if metadata.size > self.max_message_size:
            raise OversizedMessageError(
                f"File too large: {path}",
                size=metadata.size,
                limit=self.max_message_size
            )

    @staticmethod
    def _oversized_placeholder(
        mailbox: Mailbox,
        folder: Folder,
        filename: str,
        path: str,
        metadata: FileMetadata
    ) -> MessageListItem:
        return MessageListItem(
            filename=filename,
            path=path,
            message_id="error-file-too-large",
            from_="system@swoft.ai",
            to=[mailbox.address],
            subject=f"⚠️ File too large: {filename}",
            date=metadata.modified,
            folder=folder,
            flags=MaildirFlags(flagged=True),
            gtd=GTDMetadata(priority="high", status="new"),
        )
