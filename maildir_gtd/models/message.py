"""Message-related data models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Any

from .common import Folder

FLAG_LETTERS = {
    "D": "draft",
    "F": "flagged",
    "R": "replied",
    "S": "seen",
    "T": "trashed",
}


@dataclass
class EmailAddress:
    """An email address with optional display name."""
    email: str
    name: Optional[str] = None

    def __str__(self) -> str:
        return f'"{self.name}" <{self.email}>' if self.name else self.email

    def to_dict(self) -> Dict[str, Any]:
        return {"email": self.email, "name": self.name}


@dataclass
class Attachment:
    """A file attached to a message."""
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)

    def to_dict(self) -> Dict[str, Any]:
        """Summary without the payload."""
        return {
            "filename": self.filename,
            "size": self.size,
            "content_type": self.content_type,
        }


@dataclass
class GTDMetadata:
    """GTD fields carried in X-GTD-* headers."""
    project: Optional[str] = None
    context: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    tags: Optional[List[str]] = None

    def is_empty(self) -> bool:
        return not any([self.project, self.context, self.priority, self.status, self.tags])

    def to_dict(self) -> Dict[str, Any]:
        """Present fields only."""
        data = {
            "project": self.project,
            "context": self.context,
            "priority": self.priority,
            "status": self.status,
            "tags": self.tags,
        }
        return {key: value for key, value in data.items() if value is not None}


@dataclass
class MaildirFlags:
    """Flags encoded in the Maildir filename info section."""
    seen: bool = False
    replied: bool = False
    flagged: bool = False
    draft: bool = False
    trashed: bool = False

    @classmethod
    def from_letters(cls, letters: str) -> "MaildirFlags":
        """Decode a flag string; unknown letters are ignored."""
        return cls(**{attr: letter in letters for letter, attr in FLAG_LETTERS.items()})

    def to_letters(self) -> str:
        """Encode in ASCII order, as Maildir readers expect."""
        return "".join(letter for letter, attr in FLAG_LETTERS.items() if getattr(self, attr))

    def to_dict(self) -> Dict[str, bool]:
        return {attr: getattr(self, attr) for attr in FLAG_LETTERS.values()}


@dataclass
class ParsedMessage:
    """A decoded .eml work item."""
    message_id: str
    from_: EmailAddress
    to: List[EmailAddress]
    subject: str
    date: datetime
    text: str = ""
    html: Optional[str] = None
    attachments: List[Attachment] = field(default_factory=list)
    gtd: GTDMetadata = field(default_factory=GTDMetadata)

    def get_text_preview(self, max_length: int = 1000) -> str:
        """Get a text preview of the message body."""
        if len(self.text) > max_length:
            return self.text[:max_length] + "\n...(truncated)"
        return self.text

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message_id": self.message_id,
            "from": self.from_.to_dict(),
            "to": [addr.to_dict() for addr in self.to],
            "subject": self.subject,
            "date": self.date.isoformat(),
            "text": self.text,
            "html": self.html,
            "attachments": [att.to_dict() for att in self.attachments],
            "gtd": self.gtd.to_dict(),
        }


@dataclass
class MessageListItem:
    """Lightweight listing entry for a message in a mailbox folder."""
    filename: str
    path: str
    message_id: str
    from_: str
    to: List[str]
    subject: str
    date: datetime
    folder: Folder
    flags: MaildirFlags = field(default_factory=MaildirFlags)
    attachments: List[Dict[str, Any]] = field(default_factory=list)
    gtd: GTDMetadata = field(default_factory=GTDMetadata)

    @classmethod
    def from_parsed(
        cls,
        parsed: ParsedMessage,
        filename: str,
        path: str,
        folder: Folder,
        flags: MaildirFlags
    ) -> "MessageListItem":
        return cls(
            filename=filename,
            path=path,
            message_id=parsed.message_id,
            from_=parsed.from_.email,
            to=[addr.email for addr in parsed.to],
            subject=parsed.subject,
            date=parsed.date,
            folder=folder,
            flags=flags,
            attachments=[att.to_dict() for att in parsed.attachments],
            gtd=parsed.gtd,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "filename": self.filename,
            "path": self.path,
            "message_id": self.message_id,
            "from": self.from_,
            "to": self.to,
            "subject": self.subject,
            "date": self.date.isoformat(),
            "folder": self.folder.value,
            "flags": self.flags.to_dict(),
            "gtd": self.gtd.to_dict(),
        }
        if self.attachments:
            data["attachments"] = self.attachments
        return data


@dataclass
class SendResult:
    """Outcome of writing a new message into a recipient's inbox."""
    filename: str
    path: str
    success: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "filename": self.filename, "path": self.path}


@dataclass
class MoveResult:
    """Outcome of relocating a message between folders."""
    success: bool
    message: str
    source: Optional[str] = None
    target: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "source": self.source,
            "target": self.target,
        }
