"""Domain models for the GTD Maildir engine.

This module contains all data models used throughout the application,
providing a centralized location for domain entities.
"""

from .common import (
    Folder,
    READ_PROBE_ORDER,
    STAGING_FOLDERS,
    MailboxCategory,
    MailboxSubcategory,
    GTDPriority,
    GTDOutcome,
    InboxStatus,
    ItemPriority,
)
from .mailbox import Mailbox, MailboxDiscovery
from .message import (
    EmailAddress,
    Attachment,
    GTDMetadata,
    MaildirFlags,
    ParsedMessage,
    MessageListItem,
    SendResult,
    MoveResult,
)
from .workflow import (
    Clarification,
    InboxItem,
    DomainEvent,
    ClarificationDecision,
    ArchiveInstruction,
)

__all__ = [
    # Common enums
    "Folder",
    "READ_PROBE_ORDER",
    "STAGING_FOLDERS",
    "MailboxCategory",
    "MailboxSubcategory",
    "GTDPriority",
    "GTDOutcome",
    "InboxStatus",
    "ItemPriority",

    # Mailbox models
    "Mailbox",
    "MailboxDiscovery",

    # Message models
    "EmailAddress",
    "Attachment",
    "GTDMetadata",
    "MaildirFlags",
    "ParsedMessage",
    "MessageListItem",
    "SendResult",
    "MoveResult",

    # Workflow models
    "Clarification",
    "InboxItem",
    "DomainEvent",
    "ClarificationDecision",
    "ArchiveInstruction",
]
