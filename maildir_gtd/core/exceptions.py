"""Custom exceptions for the GTD Maildir engine."""

from typing import Optional, Dict, Any


class GTDMaildirError(Exception):
    """Base exception for the GTD Maildir engine."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_payload(self) -> Dict[str, Any]:
        """Render as a structured error payload for tool callers."""
        return {
            "error": self.message,
            "error_type": type(self).__name__,
            "details": self.details,
        }


class ConfigurationError(GTDMaildirError):
    """Raised when there's a configuration issue."""
    pass


class StorageError(GTDMaildirError):
    """Raised when storage operations fail."""
    pass


class StorageNotFoundError(StorageError):
    """Raised when a file or directory does not exist in storage."""
    pass


class StorageConflictError(StorageError):
    """Raised when a write or move would overwrite an existing file."""
    pass


class SecurityError(GTDMaildirError):
    """Raised when a path escapes the workspace root."""
    pass


class MailboxNotFoundError(GTDMaildirError):
    """Raised when an address does not match any mailbox directory."""
    pass


class MessageNotFoundError(GTDMaildirError):
    """Raised when a message is absent from every probed folder."""
    pass


class OversizedMessageError(GTDMaildirError):
    """Raised internally when a message exceeds the inbox size guard."""

    def __init__(self, message: str, size: int, limit: int):
        super().__init__(message, {"size": size, "limit": limit})
        self.size = size
        self.limit = limit


class DecodingError(GTDMaildirError):
    """Raised when .eml content cannot be parsed."""
    pass


class EncodingError(GTDMaildirError):
    """Raised when a message cannot be built."""
    pass


class ValidationError(GTDMaildirError):
    """Raised when caller input fails validation."""
    pass
