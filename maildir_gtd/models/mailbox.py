"""Mailbox data models."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any

from .common import MailboxCategory, MailboxSubcategory


@dataclass
class Mailbox:
    """A per-address directory tree holding Maildir and GTD folders."""
    address: str
    path: str
    category: MailboxCategory
    subcategory: Optional[MailboxSubcategory] = None

    @property
    def is_ai_agent(self) -> bool:
        return self.subcategory is MailboxSubcategory.AI_AGENT

    def to_dict(self) -> Dict[str, Any]:
        return {
            "email": self.address,
            "path": self.path,
            "type": self.category.value,
            "category": self.subcategory.value if self.subcategory else None,
        }


@dataclass
class MailboxDiscovery:
    """Mailboxes found in one scan, with diagnostics for missing parents."""
    mailboxes: List[Mailbox] = field(default_factory=list)
    diagnostics: List[str] = field(default_factory=list)

    def find(self, address: str) -> Optional[Mailbox]:
        for mailbox in self.mailboxes:
            if mailbox.address == address:
                return mailbox
        return None
