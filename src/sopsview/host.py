"""
Host capability interface -- the narrow slice of the editor we depend on.

The core never talks to an editor directly. It asks a host to read,
write, stat and delete files, to list what is visible, and to show a
document. Embedders implement EditorHost; LocalHost works against the
real filesystem and keeps its visibility set in memory.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable

logger = logging.getLogger("sopsview.host")


class FilesystemError(Exception):
    """A host file operation failed."""

    def __init__(self, operation: str, path: Path, cause: Exception):
        super().__init__(f"Cannot {operation} {path}: {cause}")
        self.operation = operation
        self.path = path
        self.cause = cause


def same_file(a: Path, b: Path) -> bool:
    """Compare two document identities."""
    return Path(a).expanduser().resolve() == Path(b).expanduser().resolve()


class EditorHost(ABC):
    """Everything the shadow core needs from its surroundings."""

    @abstractmethod
    def exists(self, path: Path) -> bool:
        """Whether a file exists at path."""

    @abstractmethod
    def read_file(self, path: Path) -> bytes:
        """Read a whole file.

        Raises:
            FilesystemError: If the file cannot be read.
        """

    @abstractmethod
    def write_file(self, path: Path, data: bytes) -> None:
        """Replace a whole file.

        Raises:
            FilesystemError: If the file cannot be written.
        """

    @abstractmethod
    def delete_file(self, path: Path) -> None:
        """Delete a file.

        Raises:
            FilesystemError: If the file cannot be deleted.
        """

    @abstractmethod
    def mtime(self, path: Path) -> float:
        """Modification time of a file.

        Raises:
            FilesystemError: If the file cannot be stat'ed.
        """

    @abstractmethod
    def visible_documents(self) -> list[Path]:
        """Documents currently shown in any viewport."""

    @abstractmethod
    def show_document(self, path: Path) -> None:
        """Ask the host to display a document."""

    def show_error(self, message: str) -> None:
        """Surface an error to the user. Hosts without a UI just log."""
        logger.error("%s", message)


class LocalHost(EditorHost):
    """Filesystem host with an in-memory visibility set."""

    def __init__(self, visible: Iterable[Path] = ()):
        self._visible: list[Path] = []
        for path in visible:
            self.show_document(path)

    def exists(self, path: Path) -> bool:
        return Path(path).is_file()

    def read_file(self, path: Path) -> bytes:
        try:
            return Path(path).read_bytes()
        except OSError as exc:
            raise FilesystemError("read", path, exc) from exc

    def write_file(self, path: Path, data: bytes) -> None:
        try:
            Path(path).write_bytes(data)
        except OSError as exc:
            raise FilesystemError("write", path, exc) from exc

    def delete_file(self, path: Path) -> None:
        try:
            Path(path).unlink()
        except OSError as exc:
            raise FilesystemError("delete", path, exc) from exc

    def mtime(self, path: Path) -> float:
        try:
            return Path(path).stat().st_mtime
        except OSError as exc:
            raise FilesystemError("stat", path, exc) from exc

    def visible_documents(self) -> list[Path]:
        return list(self._visible)

    def show_document(self, path: Path) -> None:
        if not any(same_file(path, v) for v in self._visible):
            self._visible.append(Path(path))
            logger.debug("Showing %s", path)

    def hide_document(self, path: Path) -> None:
        self._visible = [v for v in self._visible if not same_file(path, v)]
