"""Business logic services for the GTD Maildir engine.

This module contains service classes that implement the GTD workflow on top
of Maildir mailboxes, keeping it separate from storage details.
"""

from .message_codec import MessageCodec
from .mailbox_directory import MailboxDirectory, folder_path
from .gtd_workflow import GTDWorkflow
from .maildir_service import MaildirService
from .factory import GTDServices, build_services

__all__ = [
    "MessageCodec",
    "MailboxDirectory",
    "folder_path",
    "GTDWorkflow",
    "MaildirService",
    "GTDServices",
    "build_services",
]
