"""Explicit construction of the GTD service graph from configuration."""

from dataclasses import dataclass
from typing import Any, Optional

from maildir_gtd.core.config import Config
from maildir_gtd.core.mcp_logger import get_mcp_logger
from maildir_gtd.integrations.storage import LocalFileStorage, StorageBackend
from maildir_gtd.services.gtd_workflow import GTDWorkflow
from maildir_gtd.services.mailbox_directory import MailboxDirectory
from maildir_gtd.services.maildir_service import MaildirService
from maildir_gtd.services.message_codec import MessageCodec


@dataclass
class GTDServices:
    """One wired set of services sharing a storage backend."""
    config: Config
    storage: StorageBackend
    codec: MessageCodec
    directory: MailboxDirectory
    workflow: GTDWorkflow
    maildir: MaildirService


def build_services(
    config: Config,
    storage: Optional[StorageBackend] = None,
    logger: Optional[Any] = None
) -> GTDServices:
    """Build services for a workspace.

    Args:
        config: Loaded configuration
        storage: Storage backend; defaults to the configured workspace folder
        logger: Base structlog logger; each component gets a bound child
    """
    logger = logger or get_mcp_logger("maildir_gtd")
    storage = storage or LocalFileStorage(
        config.workspace_path,
        logger=logger.bind(component="storage")
    )

    codec = MessageCodec(
        hostname=config.maildir.hostname,
        domain=config.maildir.address_domain,
        logger=logger.bind(component="codec")
    )
    directory = MailboxDirectory(
        storage,
        mailboxes_dir=config.storage.mailboxes_dir,
        logger=logger.bind(component="directory")
    )
    workflow = GTDWorkflow(
        work_item_extensions=config.storage.work_item_extensions,
        logger=logger.bind(component="workflow")
    )
    maildir = MaildirService(
        storage,
        directory,
        codec,
        workflow,
        max_message_size=config.maildir.max_message_size,
        max_concurrency=config.maildir.max_concurrency,
        logger=logger.bind(component="maildir")
    )

    return GTDServices(
        config=config,
        storage=storage,
        codec=codec,
        directory=directory,
        workflow=workflow,
        maildir=maildir,
    )
