"""GTD Maildir - Getting Things Done workflow engine over Maildir mailboxes."""

__version__ = "3.0.0"
