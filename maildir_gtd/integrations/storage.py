"""Workspace storage backends.

The GTD engine never touches the filesystem directly; it talks to a
``StorageBackend`` using paths relative to the workspace root. Directory
entries returned by ``list`` carry a trailing ``/``.
"""

import shutil
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import structlog

from maildir_gtd.core.exceptions import (
    SecurityError,
    StorageConflictError,
    StorageError,
    StorageNotFoundError,
)


@dataclass
class FileMetadata:
    """Metadata for a file or directory in storage."""
    path: str
    name: str
    size: int
    modified: datetime
    is_directory: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "name": self.name,
            "size": self.size,
            "modified": self.modified.isoformat(),
            "is_directory": self.is_directory,
        }


class StorageBackend(ABC):
    """Storage interface consumed by the mailbox services."""

    name: str = "storage"
    display_name: str = "Storage"

    @abstractmethod
    async def list(self, subfolder: str = "") -> List[str]:
        """List entries of a directory; directories end with '/'."""

    @abstractmethod
    async def read(self, path: str) -> str:
        """Read a file as text."""

    @abstractmethod
    async def write(self, path: str, content: str, exclusive: bool = False) -> None:
        """Write text to a file, refusing to overwrite when exclusive."""

    @abstractmethod
    async def stat(self, path: str) -> FileMetadata:
        """Get file metadata."""

    @abstractmethod
    async def search(self, pattern: str, subfolder: str = "") -> List[str]:
        """Find files matching a glob pattern."""

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Check whether a file or directory exists."""

    @abstractmethod
    async def move(self, source: str, target: str) -> None:
        """Relocate a file; fails if the target already exists."""

    def describe(self) -> Dict[str, Any]:
        return {"name": self.name, "display_name": self.display_name}


class LocalFileStorage(StorageBackend):
    """Storage backend over a local (usually cloud-synced) directory."""

    name = "local"
    display_name = "Local Folder"

    def __init__(self, root: Union[str, Path], logger: Optional[Any] = None):
        self.root = Path(root).expanduser().resolve()
        self._logger = logger or structlog.get_logger(__name__)

    def describe(self) -> Dict[str, Any]:
        return {**super().describe(), "base_path": str(self.root)}

    def _resolve(self, path: str) -> Path:
        """Map a workspace-relative path to the filesystem, inside the root."""
        relative = path.strip().lstrip("/")
        full_path = (self.root / relative).resolve() if relative else self.root
        if full_path != self.root and self.root not in full_path.parents:
            raise SecurityError(f"Path escapes workspace root: {path}", {"path": path})
        return full_path

    def _relative(self, full_path: Path) -> str:
        return full_path.relative_to(self.root).as_posix()

    async def list(self, subfolder: str = "") -> List[str]:
        target = self._resolve(subfolder)
        if not target.is_dir():
            raise StorageNotFoundError(f"Directory not found: {subfolder or '/'}", {"path": subfolder})

        entries = []
        for child in sorted(target.iterdir(), key=lambda p: p.name):
            relative = self._relative(child)
            entries.append(f"{relative}/" if child.is_dir() else relative)
        return entries

    async def read(self, path: str) -> str:
        full_path = self._resolve(path)
        if not full_path.is_file():
            raise StorageNotFoundError(f"File not found: {path}", {"path": path})
        try:
            return full_path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}", {"path": path})

    async def write(self, path: str, content: str, exclusive: bool = False) -> None:
        full_path = self._resolve(path)
        full_path.parent.mkdir(parents=True, exist_ok=True)
        mode = "x" if exclusive else "w"
        try:
            with open(full_path, mode, encoding="utf-8", newline="") as f:
                f.write(content)
        except FileExistsError:
            raise StorageConflictError(f"File already exists: {path}", {"path": path})
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}", {"path": path})

        self._logger.debug("Wrote file", path=path, size=len(content))

    async def stat(self, path: str) -> FileMetadata:
        full_path = self._resolve(path)
        try:
            stats = full_path.stat()
            is_directory = full_path.is_dir()
        except FileNotFoundError:
            raise StorageNotFoundError(f"File not found: {path}", {"path": path})
        except OSError as e:
            raise StorageError(f"Failed to stat {path}: {e}", {"path": path})

        return FileMetadata(
            path=path,
            name=full_path.name,
            size=stats.st_size,
            modified=datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc),
            is_directory=is_directory,
        )

    async def search(self, pattern: str, subfolder: str = "") -> List[str]:
        base = self._resolve(subfolder)
        if not base.is_dir():
            return []

        matches = []
        for match in base.glob(pattern):
            if not match.is_file():
                continue
            # Hidden files and folders are not searchable
            if any(part.startswith(".") for part in match.relative_to(base).parts):
                continue
            matches.append(self._relative(match))
        return sorted(matches)

    async def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    async def move(self, source: str, target: str) -> None:
        source_path = self._resolve(source)
        target_path = self._resolve(target)

        if not source_path.is_file():
            raise StorageNotFoundError(f"File not found: {source}", {"path": source})
        if target_path.exists():
            raise StorageConflictError(
                f"Target already exists: {target}",
                {"source": source, "target": target}
            )

        target_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            source_path.rename(target_path)
        except OSError:
            # Cross-device or sync-client locked rename: copy, verify, then drop the source
            self._logger.warning("Rename failed, falling back to copy", source=source, target=target)
            shutil.copy2(source_path, target_path)
            if target_path.stat().st_size != source_path.stat().st_size:
                target_path.unlink()
                raise StorageError(
                    f"Copy verification failed moving {source} to {target}",
                    {"source": source, "target": target}
                )
            source_path.unlink()

        self._logger.debug("Moved file", source=source, target=target)
