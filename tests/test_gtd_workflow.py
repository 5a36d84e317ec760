from __future__ import annotations

from datetime import datetime, timezone

import pydantic
import pytest

from maildir_gtd.integrations.storage import FileMetadata
from maildir_gtd.models.common import Folder, GTDOutcome, InboxStatus, ItemPriority
from maildir_gtd.models.workflow import Clarification
from maildir_gtd.services.gtd_workflow import GTDWorkflow, infer_priority, infer_status

MODIFIED = datetime(2025, 10, 6, 9, 30, tzinfo=timezone.utc)


def _entry(name: str, is_directory: bool = False) -> FileMetadata:
    return FileMetadata(
        path=f"Team/inbox-derick-claude/{name}",
        name=name,
        size=42,
        modified=MODIFIED,
        is_directory=is_directory,
    )


@pytest.mark.parametrize(
    "filename, status",
    [
        ("INBOX-review-plan.md", InboxStatus.UNCLARIFIED),
        ("ISSUE-broken-sync.md", InboxStatus.BLOCKED),
        ("REPLY-review-plan.md", InboxStatus.DELEGATED),
        ("notes.md", InboxStatus.UNKNOWN),
    ],
)
def test_infer_status_from_prefix(filename: str, status: InboxStatus) -> None:
    assert infer_status(filename) is status


@pytest.mark.parametrize(
    "filename, priority",
    [
        ("INBOX-HIGH-deploy.md", ItemPriority.HIGH),
        ("INBOX-URGENT-outage.md", ItemPriority.HIGH),
        ("INBOX-LOW-cleanup.md", ItemPriority.LOW),
        ("INBOX-NORMAL-sync.md", ItemPriority.NORMAL),
        ("INBOX-sync.md", ItemPriority.NORMAL),
    ],
)
def test_infer_priority_from_keywords(filename: str, priority: ItemPriority) -> None:
    assert infer_priority(filename) is priority


def test_collect_filters_to_clarifiable_work_items() -> None:
    workflow = GTDWorkflow()

    items = workflow.collect([
        _entry("INBOX-HIGH-deploy.md"),
        _entry("ISSUE-sync.eml"),
        _entry("REPLY-deploy.md"),
        _entry("PROCESSING-deploy.md"),
        _entry("notes.txt"),
        _entry("processed", is_directory=True),
    ])

    assert [item.id for item in items] == ["INBOX-HIGH-deploy.md", "ISSUE-sync.eml"]
    first = items[0]
    assert first.status is InboxStatus.UNCLARIFIED
    assert first.priority is ItemPriority.HIGH
    assert first.requires_clarification
    assert first.modified == MODIFIED
    assert first.size == 42


def test_collect_respects_configured_extensions() -> None:
    workflow = GTDWorkflow(work_item_extensions=[".md"])

    assert workflow.collect([_entry("INBOX-a.eml")]) == []


def test_clarify_reference_recommends_archiving() -> None:
    workflow = GTDWorkflow()
    clarification = Clarification(what_is_it="Q3 plan FYI", is_actionable=False, outcome="reference")

    decision = workflow.clarify(clarification)

    assert decision.recommended_action == "Move to Reference (processed folder)"
    assert decision.target_folder is Folder.REFERENCE
    assert decision.event.type == "InboxItemClarified"
    payload = decision.to_dict()
    assert payload["outcome"] == "reference"
    assert payload["target_folder"] == "Reference"
    assert payload["event"]["clarification"]["what_is_it"] == "Q3 plan FYI"


def test_clarify_trash_has_no_target_folder() -> None:
    decision = GTDWorkflow().clarify(
        Clarification(what_is_it="spam", is_actionable=False, outcome=GTDOutcome.TRASH)
    )

    assert decision.target_folder is None
    assert decision.recommended_action == "Delete (no action needed)"


def test_clarification_rejects_unknown_outcome() -> None:
    with pytest.raises(pydantic.ValidationError):
        Clarification(what_is_it="x", is_actionable=True, outcome="later")


def test_organize_builds_archive_instruction() -> None:
    instruction = GTDWorkflow().organize("INBOX-review.md", "derick")

    assert instruction.source == "Team/inbox-derick-claude/INBOX-review.md"
    assert instruction.target == "Team/inbox-derick-claude/processed/INBOX-review.md"
    assert instruction.status == "MANUAL_ACTION_REQUIRED"
    assert instruction.instructions == f"Move {instruction.source} to {instruction.target}"

    event = instruction.to_dict()["event"]
    assert event["type"] == "InboxItemArchived"
    assert event["aggregate_id"] == "INBOX-review.md"
    assert event["inbox_owner"] == "derick"
