"""Common enums and types used across models."""

from enum import Enum
from typing import Optional


class Folder(str, Enum):
    """Maildir folders of a GTD mailbox."""
    NEW = "new"
    CUR = "cur"
    TMP = "tmp"
    NEXT_ACTIONS = "Next-Actions"
    WAITING_FOR = "Waiting-For"
    PROJECTS = "Projects"
    SOMEDAY_MAYBE = "Someday-Maybe"
    REFERENCE = "Reference"

    @property
    def is_system(self) -> bool:
        return self in (Folder.NEW, Folder.CUR, Folder.TMP)

    @property
    def directory_name(self) -> str:
        """Name of the folder on disk (GTD folders are dot-prefixed)."""
        return self.value if self.is_system else f".{self.value}"

    @classmethod
    def parse(cls, value: "str | Folder") -> "Folder":
        """Accept enum members, plain names or on-disk names like '.Reference'."""
        if isinstance(value, Folder):
            return value
        name = value.strip().lstrip('.').rstrip('/')
        for folder in cls:
            if folder.value.lower() == name.lower():
                return folder
        raise ValueError(f"Unknown folder: {value}")


# Folders probed, in order, when reading a single message
READ_PROBE_ORDER = (
    Folder.NEW,
    Folder.CUR,
    Folder.NEXT_ACTIONS,
    Folder.WAITING_FOR,
    Folder.PROJECTS,
    Folder.SOMEDAY_MAYBE,
    Folder.REFERENCE,
)

# Pre-clarification staging folders a move may start from
STAGING_FOLDERS = (Folder.NEW, Folder.CUR)


class MailboxCategory(str, Enum):
    """Top-level mailbox grouping."""
    ORGANIZATION = "organization"
    PERSON = "person"

    @property
    def parent_directory(self) -> str:
        return "Organization" if self is MailboxCategory.ORGANIZATION else "People"


class MailboxSubcategory(str, Enum):
    """Kind of person behind a mailbox."""
    HUMAN = "human"
    AI_AGENT = "ai-agent"


class GTDPriority(str, Enum):
    """Priority carried in the X-GTD-Priority header."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class GTDOutcome(str, Enum):
    """Terminal classification of a clarified item."""
    NEXT_ACTION = "next_action"
    PROJECT = "project"
    WAITING_FOR = "waiting_for"
    REFERENCE = "reference"
    SOMEDAY_MAYBE = "someday_maybe"
    TRASH = "trash"

    @property
    def target_folder(self) -> Optional[Folder]:
        """Folder an item with this outcome is organized into (None for trash)."""
        return _OUTCOME_FOLDERS[self]


_OUTCOME_FOLDERS = {
    GTDOutcome.NEXT_ACTION: Folder.NEXT_ACTIONS,
    GTDOutcome.PROJECT: Folder.PROJECTS,
    GTDOutcome.WAITING_FOR: Folder.WAITING_FOR,
    GTDOutcome.REFERENCE: Folder.REFERENCE,
    GTDOutcome.SOMEDAY_MAYBE: Folder.SOMEDAY_MAYBE,
    GTDOutcome.TRASH: None,
}


class InboxStatus(str, Enum):
    """Status inferred from work-item filename prefixes."""
    UNCLARIFIED = "unclarified"
    BLOCKED = "blocked"
    DELEGATED = "delegated"
    UNKNOWN = "unknown"


class ItemPriority(str, Enum):
    """Priority inferred from work-item filenames."""
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"
