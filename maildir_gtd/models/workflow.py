"""GTD workflow models: inbox items, clarifications and domain events."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional, Any

from pydantic import BaseModel, ConfigDict

from .common import GTDOutcome, InboxStatus, ItemPriority, Folder


class Clarification(BaseModel):
    """Caller's answers to "What is it?" and "Is it actionable?"."""
    model_config = ConfigDict(use_enum_values=False, frozen=True)

    what_is_it: str
    is_actionable: bool
    outcome: GTDOutcome

    def to_dict(self) -> Dict[str, Any]:
        return {
            "what_is_it": self.what_is_it,
            "is_actionable": self.is_actionable,
            "outcome": self.outcome.value,
        }


@dataclass
class InboxItem:
    """A collected work item awaiting clarification."""
    id: str
    path: str
    status: InboxStatus
    priority: ItemPriority
    requires_clarification: bool = True
    modified: Optional[datetime] = None
    size: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "path": self.path,
            "status": self.status.value,
            "priority": self.priority.value,
            "requires_clarification": self.requires_clarification,
            "modified": self.modified.isoformat() if self.modified else None,
            "size": self.size,
        }


@dataclass
class DomainEvent:
    """Structured record of a workflow transition."""
    type: str
    timestamp: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "timestamp": self.timestamp, **self.data}


@dataclass
class ClarificationDecision:
    """Result of clarifying an inbox item."""
    clarification: Clarification
    recommended_action: str
    event: DomainEvent

    @property
    def target_folder(self) -> Optional[Folder]:
        return self.clarification.outcome.target_folder

    def to_dict(self) -> Dict[str, Any]:
        target = self.target_folder
        return {
            "what_is_it": self.clarification.what_is_it,
            "is_actionable": self.clarification.is_actionable,
            "outcome": self.clarification.outcome.value,
            "recommended_action": self.recommended_action,
            "target_folder": target.value if target else None,
            "event": self.event.to_dict(),
        }


@dataclass
class ArchiveInstruction:
    """Instruction to move a processed work item into its archive folder."""
    item: str
    inbox_owner: str
    source: str
    target: str
    event: DomainEvent
    organize_action: str = "Move to Reference"
    status: str = "MANUAL_ACTION_REQUIRED"

    @property
    def instructions(self) -> str:
        return f"Move {self.source} to {self.target}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.event.to_dict(),
            "organize_action": self.organize_action,
            "source": self.source,
            "target": self.target,
            "status": self.status,
            "instructions": self.instructions,
        }
