"""GTD workflow engine.

Implements the COLLECT, CLARIFY and ORGANIZE steps of David Allen's
Getting Things Done as pure decision logic. Nothing here touches storage:
``MaildirService`` realizes the resulting instructions as moves and writes.

States::

    new (collected) -> clarifying (caller side only) -> next_action | project |
        waiting_for | reference | someday_maybe | trash

Two independent status signals exist. ``infer_status`` classifies work items
by filename prefix; the ``X-GTD-Status`` header carries the status of .eml
messages. They are reported in separate views and never merged.
"""

from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional, Sequence

import structlog

from maildir_gtd.integrations.storage import FileMetadata
from maildir_gtd.models.common import GTDOutcome, InboxStatus, ItemPriority
from maildir_gtd.models.workflow import (
    ArchiveInstruction,
    Clarification,
    ClarificationDecision,
    DomainEvent,
    InboxItem,
)

# Prefixes written by the cooperating inbox processor
SYSTEM_PREFIXES = ("REPLY-", "PROCESSING-")

RECOMMENDATIONS = {
    GTDOutcome.NEXT_ACTION: "Add to Next Actions list with context tags",
    GTDOutcome.PROJECT: "Create project plan with desired outcome and next actions",
    GTDOutcome.WAITING_FOR: "Track in Waiting For list with trigger/due date",
    GTDOutcome.REFERENCE: "Move to Reference (processed folder)",
    GTDOutcome.SOMEDAY_MAYBE: "Add to Someday/Maybe list for future review",
    GTDOutcome.TRASH: "Delete (no action needed)",
}


def infer_status(filename: str) -> InboxStatus:
    """Classify a work item by its filename prefix."""
    if filename.startswith("INBOX-"):
        return InboxStatus.UNCLARIFIED
    if filename.startswith("ISSUE-"):
        return InboxStatus.BLOCKED
    if filename.startswith("REPLY-"):
        return InboxStatus.DELEGATED
    return InboxStatus.UNKNOWN


def infer_priority(filename: str) -> ItemPriority:
    """Classify a work item's priority by filename keywords."""
    if "HIGH" in filename or "URGENT" in filename:
        return ItemPriority.HIGH
    if "NORMAL" in filename:
        return ItemPriority.NORMAL
    if "LOW" in filename:
        return ItemPriority.LOW
    return ItemPriority.NORMAL


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class GTDWorkflow:
    """Domain service for the GTD collect/clarify/organize steps."""

    def __init__(
        self,
        work_item_extensions: Sequence[str] = (".md", ".eml"),
        team_folder: str = "Team",
        logger: Optional[Any] = None
    ):
        self.work_item_extensions = tuple(work_item_extensions)
        self.team_folder = team_folder
        self._logger = logger or structlog.get_logger(__name__)

    def collect(self, entries: Iterable[FileMetadata]) -> List[InboxItem]:
        """GTD COLLECT: turn a raw folder listing into clarifiable items.

        Directories, unknown extensions and files owned by the inbox
        processor (``REPLY-``/``PROCESSING-``) are dropped.
        """
        items = [
            InboxItem(
                id=entry.name,
                path=entry.path,
                status=infer_status(entry.name),
                priority=infer_priority(entry.name),
                requires_clarification=True,
                modified=entry.modified,
                size=entry.size,
            )
            for entry in entries
            if not entry.is_directory
            and entry.name.endswith(self.work_item_extensions)
            and not entry.name.startswith(SYSTEM_PREFIXES)
        ]

        self._logger.debug("Collected inbox items", count=len(items))
        return items

    def clarify(self, clarification: Clarification) -> ClarificationDecision:
        """GTD CLARIFY: record the decision and recommend a next step."""
        decision = ClarificationDecision(
            clarification=clarification,
            recommended_action=RECOMMENDATIONS.get(clarification.outcome, "Unknown outcome type"),
            event=DomainEvent(
                type="InboxItemClarified",
                timestamp=_now(),
                data={"clarification": clarification.to_dict()},
            ),
        )

        self._logger.info(
            "Inbox item clarified",
            outcome=clarification.outcome.value,
            is_actionable=clarification.is_actionable
        )
        return decision

    def organize(self, item_filename: str, inbox_owner: str) -> ArchiveInstruction:
        """GTD ORGANIZE: build the instruction archiving a processed item."""
        inbox = f"{self.team_folder}/inbox-{inbox_owner}-claude"
        return ArchiveInstruction(
            item=item_filename,
            inbox_owner=inbox_owner,
            source=f"{inbox}/{item_filename}",
            target=f"{inbox}/processed/{item_filename}",
            event=self.archived_event(item_filename, inbox_owner),
        )

    @staticmethod
    def archived_event(item_filename: str, inbox_owner: str) -> DomainEvent:
        return DomainEvent(
            type="InboxItemArchived",
            timestamp=_now(),
            data={"aggregate_id": item_filename, "inbox_owner": inbox_owner},
        )
