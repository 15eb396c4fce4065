"""
Visibility tracker -- decides when a shadow file may go away.

The visibility set is never cached here; it is re-read from the host
on every check.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .codec import detect_format
from .config import DECRYPTED_PREFIX
from .host import EditorHost, FilesystemError, same_file
from .shadow import is_shadow_path

logger = logging.getLogger("sopsview.visibility")


class VisibilityTracker:
    """Deletes shadow files once no viewport shows them."""

    def __init__(self, host: EditorHost, prefix: str = DECRYPTED_PREFIX):
        self.host = host
        self.prefix = prefix

    def is_visible(self, path: Path) -> bool:
        """Whether any viewport currently shows path."""
        return any(same_file(path, v) for v in self.host.visible_documents())

    def on_active_changed(self, previous: Optional[Path]) -> bool:
        """Clean up the previously active document if it was a hidden shadow.

        Args:
            previous: Document that was active before the change.

        Returns:
            True if a shadow file was deleted.
        """
        if previous is None:
            return False
        previous = Path(previous)
        if not is_shadow_path(previous, self.prefix):
            return False
        if detect_format(previous) is None:
            return False
        if self.is_visible(previous):
            logger.debug("Shadow %s still visible, keeping it", previous)
            return False

        try:
            self.host.delete_file(previous)
        except FilesystemError as exc:
            logger.warning("Cannot close shadow %s: %s", previous, exc)
            return False
        logger.info("Removed shadow %s", previous)
        return True
