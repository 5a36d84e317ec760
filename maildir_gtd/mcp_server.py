#!/usr/bin/env python3
"""
GTD Maildir MCP Server using FastMCP.

Exposes the GTD collect/clarify/organize workflow over Maildir mailboxes as
MCP tools. STDOUT carries only JSON-RPC protocol messages; all logging goes
to STDERR.
"""

import functools
import os
from typing import Any, Dict, List, Optional

import pydantic
import structlog
from mcp.server.fastmcp import FastMCP

from maildir_gtd.core.config import Config
from maildir_gtd.core.exceptions import GTDMaildirError, MessageNotFoundError, ValidationError
from maildir_gtd.core.mcp_logger import configure_mcp_logging
from maildir_gtd.models.common import Folder
from maildir_gtd.models.message import GTDMetadata
from maildir_gtd.models.workflow import Clarification
from maildir_gtd.services.factory import GTDServices, build_services

logger = structlog.get_logger(__name__)

MAILDIR_FORMAT = "Maildir + .eml (RFC 5322)"


def render_errors(func):
    """Turn tool failures into structured error payloads."""
    @functools.wraps(func)
    async def wrapper(self, *args, **kwargs):
        try:
            return await func(self, *args, **kwargs)
        except GTDMaildirError as e:
            self._logger.warning("Tool failed", tool=func.__name__, error=e.message)
            return e.to_payload()
        except Exception as e:
            self._logger.error("Tool crashed", tool=func.__name__, error=str(e), exc_info=True)
            return {
                "error": f"{func.__name__} failed: {e}",
                "error_type": type(e).__name__,
                "details": {},
            }
    return wrapper


class GTDToolHandlers:
    """Implementations behind the MCP tools, returning JSON-ready dicts."""

    def __init__(self, services: GTDServices, logger: Optional[Any] = None):
        self.services = services
        self.maildir = services.maildir
        self.settings = services.config.maildir
        self._logger = logger or structlog.get_logger(__name__)

    @render_errors
    async def list_inboxes(self) -> Dict[str, Any]:
        discovery = await self.maildir.discover_mailboxes()
        return {
            "mailboxes": [mailbox.to_dict() for mailbox in discovery.mailboxes],
            "count": len(discovery.mailboxes),
            "diagnostics": discovery.diagnostics,
        }

    @render_errors
    async def collect_inbox_items(self, inbox_owner: str, limit: Optional[int] = None) -> Dict[str, Any]:
        limit = limit or self.settings.inbox_limit
        items = await self.maildir.get_inbox(inbox_owner, limit)
        return {
            "inbox": inbox_owner,
            "format": MAILDIR_FORMAT,
            "items_returned": len(items),
            "limit_applied": limit,
            "items": [
                {
                    "filename": item.filename,
                    "from": item.from_,
                    "to": item.to,
                    "subject": item.subject,
                    "date": item.date.isoformat(),
                    "flags": item.flags.to_dict(),
                    "gtd": item.gtd.to_dict(),
                }
                for item in items
            ],
        }

    @render_errors
    async def get_folder(self, inbox_owner: str, folder: str, limit: Optional[int] = None) -> Dict[str, Any]:
        limit = limit or self.settings.folder_limit
        items = await self.maildir.get_folder(inbox_owner, folder, limit)
        return {
            "inbox": inbox_owner,
            "folder": folder,
            "items_returned": len(items),
            "limit_applied": limit,
            "items": [item.to_dict() for item in items],
        }

    @render_errors
    async def read_message(self, inbox_owner: str, item_filename: str) -> Dict[str, Any]:
        message = await self.maildir.read_message(inbox_owner, item_filename)
        if message is None:
            return {"found": False, "filename": item_filename, "inbox": inbox_owner}
        return {"found": True, "filename": item_filename, "message": message.to_dict()}

    @render_errors
    async def clarify_item(
        self,
        inbox_owner: str,
        item_filename: str,
        clarification: Dict[str, Any]
    ) -> Dict[str, Any]:
        try:
            answers = Clarification.model_validate(clarification)
        except pydantic.ValidationError as e:
            raise ValidationError(f"Invalid clarification: {e.errors()[0]['msg']}", {"clarification": clarification})

        message = await self.maildir.read_message(inbox_owner, item_filename)
        if message is None:
            raise MessageNotFoundError(
                f"Message not found: {item_filename}",
                {"inbox": inbox_owner, "filename": item_filename}
            )

        decision = self.services.workflow.clarify(answers)
        return {
            "message": {
                "filename": item_filename,
                "from": message.from_.email,
                "subject": message.subject,
                "date": message.date.isoformat(),
            },
            "clarification": decision.to_dict(),
            "content_preview": message.get_text_preview(self.settings.content_preview_chars),
            "next_action": "Move to appropriate GTD folder based on outcome",
        }

    @render_errors
    async def organize_item(self, inbox_owner: str, item_filename: str, target_folder: str) -> Dict[str, Any]:
        result = await self.maildir.move_to_folder(inbox_owner, item_filename, target_folder)
        payload = result.to_dict()
        if result.success and Folder.parse(target_folder) is Folder.REFERENCE:
            payload["event"] = self.services.workflow.archived_event(item_filename, inbox_owner).to_dict()
        return payload

    async def organize_to_reference(self, inbox_owner: str, item_filename: str) -> Dict[str, Any]:
        return await self.organize_item(inbox_owner, item_filename, Folder.REFERENCE.value)

    @render_errors
    async def send_message(
        self,
        from_address: str,
        to_address: str,
        subject: str,
        body: str,
        html: Optional[str] = None,
        project: Optional[str] = None,
        context: Optional[str] = None,
        priority: Optional[str] = None,
        tags: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        result = await self.maildir.send_message(
            from_=from_address,
            to=to_address,
            subject=subject,
            text=body,
            html=html,
            gtd=GTDMetadata(project=project, context=context, priority=priority, tags=tags or None),
        )
        return result.to_dict()

    @render_errors
    async def scan_work_items(self, subfolder: str) -> Dict[str, Any]:
        items = await self.maildir.scan_work_items(subfolder)
        return {
            "subfolder": subfolder,
            "items": [item.to_dict() for item in items],
            "count": len(items),
        }

    @render_errors
    async def archive_work_item(self, inbox_owner: str, item_filename: str) -> Dict[str, Any]:
        instruction = await self.maildir.archive_work_item(inbox_owner, item_filename)
        return instruction.to_dict()

    @render_errors
    async def list_docs(self, subfolder: str = "") -> Dict[str, Any]:
        files = await self.services.storage.list(subfolder)
        return {
            "provider": self.services.storage.display_name,
            "subfolder": subfolder or "/",
            "files": files,
            "count": len(files),
        }

    @render_errors
    async def read_doc(self, filename: str) -> Dict[str, Any]:
        content = await self.services.storage.read(filename)
        return {"filename": filename, "content": content}

    @render_errors
    async def search_docs(self, pattern: str, subfolder: str = "") -> Dict[str, Any]:
        results = await self.services.storage.search(pattern, subfolder)
        return {
            "provider": self.services.storage.display_name,
            "pattern": pattern,
            "subfolder": subfolder or None,
            "results": results,
            "count": len(results),
        }

    @render_errors
    async def get_provider_info(self) -> Dict[str, Any]:
        return {"active": self.services.storage.describe()}


def create_server(services: GTDServices) -> FastMCP:
    """Create a FastMCP server with the GTD tools bound to ``services``."""
    mcp = FastMCP(services.config.mcp.name)
    handlers = GTDToolHandlers(services)

    @mcp.tool()
    async def gtd_list_inboxes() -> Dict[str, Any]:
        """GTD: List all available team member inboxes (human and AI agents)."""
        return await handlers.list_inboxes()

    @mcp.tool()
    async def gtd_collect_inbox_items(inbox_owner: str, limit: int = 10) -> Dict[str, Any]:
        """GTD COLLECT: View items in inbox requiring clarification.

        Args:
            inbox_owner: Inbox owner email address (e.g. "derick+claude@swoft.ai", "team@swoft.ai")
            limit: Max items to return (default: 10, prevents context overflow)
        """
        return await handlers.collect_inbox_items(inbox_owner, limit)

    @mcp.tool()
    async def gtd_get_folder(inbox_owner: str, folder: str, limit: int = 50) -> Dict[str, Any]:
        """GTD: List messages in a mailbox folder.

        Args:
            inbox_owner: Inbox owner email address
            folder: new, cur, Next-Actions, Waiting-For, Projects, Someday-Maybe or Reference
            limit: Max items to return
        """
        return await handlers.get_folder(inbox_owner, folder, limit)

    @mcp.tool()
    async def gtd_read_message(inbox_owner: str, item_filename: str) -> Dict[str, Any]:
        """GTD: Read one message from whichever folder holds it."""
        return await handlers.read_message(inbox_owner, item_filename)

    @mcp.tool()
    async def gtd_clarify_item(
        inbox_owner: str,
        item_filename: str,
        clarification: Dict[str, Any]
    ) -> Dict[str, Any]:
        """GTD CLARIFY: Process an inbox item - answer "What is it?" and "Is it actionable?"

        Args:
            inbox_owner: Inbox owner email address
            item_filename: Inbox item filename (.eml file)
            clarification: {"what_is_it": str, "is_actionable": bool, "outcome": one of
                next_action, project, waiting_for, reference, someday_maybe, trash}
        """
        return await handlers.clarify_item(inbox_owner, item_filename, clarification)

    @mcp.tool()
    async def gtd_organize_to_reference(inbox_owner: str, item_filename: str) -> Dict[str, Any]:
        """GTD ORGANIZE: Move processed item to reference (completed/archived)."""
        return await handlers.organize_to_reference(inbox_owner, item_filename)

    @mcp.tool()
    async def gtd_organize_item(inbox_owner: str, item_filename: str, target_folder: str) -> Dict[str, Any]:
        """GTD ORGANIZE: Move an item from new/ or cur/ into a GTD folder.

        Args:
            inbox_owner: Inbox owner email address
            item_filename: Item filename (.eml file)
            target_folder: Next-Actions, Waiting-For, Projects, Someday-Maybe or Reference
        """
        return await handlers.organize_item(inbox_owner, item_filename, target_folder)

    @mcp.tool()
    async def gtd_send_message(
        from_address: str,
        to_address: str,
        subject: str,
        body: str,
        html: Optional[str] = None,
        project: Optional[str] = None,
        context: Optional[str] = None,
        priority: Optional[str] = None,
        tags: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        """GTD COLLECT: Drop a new message into a team member's inbox (new/ folder).

        Args:
            from_address: Sender email address
            to_address: Recipient mailbox address
            subject: Message subject
            body: Plain-text body
            html: Optional HTML body
            project: Optional X-GTD-Project
            context: Optional X-GTD-Context (e.g. "@computer")
            priority: Optional X-GTD-Priority (high, medium, low)
            tags: Optional X-GTD-Tags
        """
        return await handlers.send_message(
            from_address, to_address, subject, body,
            html=html, project=project, context=context, priority=priority, tags=tags
        )

    @mcp.tool()
    async def gtd_scan_work_items(subfolder: str) -> Dict[str, Any]:
        """GTD COLLECT: Classify work-item files (INBOX-, ISSUE-, ...) in a workspace folder."""
        return await handlers.scan_work_items(subfolder)

    @mcp.tool()
    async def gtd_archive_work_item(inbox_owner: str, item_filename: str) -> Dict[str, Any]:
        """GTD ORGANIZE: Archive a processed work item into its inbox's processed/ folder."""
        return await handlers.archive_work_item(inbox_owner, item_filename)

    @mcp.tool()
    async def list_docs(subfolder: str = "") -> Dict[str, Any]:
        """List files in the storage workspace."""
        return await handlers.list_docs(subfolder)

    @mcp.tool()
    async def read_doc(filename: str) -> Dict[str, Any]:
        """Read file contents from the storage workspace."""
        return await handlers.read_doc(filename)

    @mcp.tool()
    async def search_docs(pattern: str, subfolder: str = "") -> Dict[str, Any]:
        """Search files in the storage workspace using a glob pattern (e.g. "**/*.md")."""
        return await handlers.search_docs(pattern, subfolder)

    @mcp.tool()
    async def get_provider_info() -> Dict[str, Any]:
        """Get information about the active storage backend."""
        return await handlers.get_provider_info()

    return mcp


def main():
    """Main entry point."""
    config = Config.load_from_yaml(os.getenv("GTD_CONFIG_PATH"))
    configure_mcp_logging(config.logging.level, config.logging.format)
    config.validate_startup_requirements()

    services = build_services(config)
    server = create_server(services)

    logger.info(
        "Starting GTD Maildir MCP server",
        name=config.mcp.name,
        workspace=str(config.workspace_path),
        transport=config.mcp.transport
    )
    server.run(transport=config.mcp.transport)


if __name__ == "__main__":
    main()
