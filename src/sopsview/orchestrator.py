"""
Event orchestrator -- host lifecycle events in, shadow sync out.

The host reports two things: a document was opened, and the active
editor changed. The change is handled as two explicit steps, first
deactivating the previous document, then activating the new one, so
the ordering no longer depends on how the host schedules callbacks.

Handlers never raise. A failed sync for one file is logged and shown
to the user, and the host carries on.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .codec import detect_format, is_encryption_marker_present
from .config import ShadowConfig
from .host import EditorHost, FilesystemError
from .models import ReconcileResult
from .shadow import ShadowManager, is_shadow_path
from .sops import SopsClient, SopsError
from .visibility import VisibilityTracker

logger = logging.getLogger("sopsview.orchestrator")


class EventOrchestrator:
    """Bridges host events to the shadow manager and visibility tracker."""

    def __init__(
        self,
        host: EditorHost,
        config: Optional[ShadowConfig] = None,
        sops: Optional[SopsClient] = None,
    ):
        self.host = host
        self.config = config or ShadowConfig()
        self.manager = ShadowManager(host, sops or SopsClient(self.config), self.config)
        self.tracker = VisibilityTracker(host, self.config.prefix)
        self.current_focus: Optional[Path] = None

    def on_document_opened(
        self, path: Path, language_id: Optional[str] = None
    ) -> Optional[ReconcileResult]:
        """Handle a newly opened document.

        Args:
            path: Document path.
            language_id: Host's declared language; the suffix is used
                when it is missing or unrecognized.

        Returns:
            The reconciliation result, or None if the document was not a
            sops file or handling failed.
        """
        path = Path(path)
        logger.debug("Document opened: %s", path)
        try:
            fmt = detect_format(language_id) or detect_format(path)
            if fmt is None or is_shadow_path(path, self.config.prefix):
                return None
            if not is_encryption_marker_present(self.host.read_file(path), fmt):
                return None
            return self.manager.ensure_open_decrypted(path, fmt)
        except (SopsError, FilesystemError) as exc:
            logger.error("Cannot open decrypted view of %s: %s", path, exc)
            self.host.show_error(f"sopsview: {path.name}: {exc}")
        except Exception:
            logger.exception("Cannot handle opened document %s", path)
        return None

    def notify_deactivated(self, previous: Optional[Path]) -> bool:
        """Step one of an active-editor change."""
        try:
            return self.tracker.on_active_changed(previous)
        except Exception:
            logger.exception("Cannot close %s", previous)
            return False

    def notify_activated(self, current: Optional[Path]) -> None:
        """Step two of an active-editor change."""
        self.current_focus = Path(current) if current is not None else None
        logger.debug("Active editor: %s", self.current_focus)

    def on_active_editor_changed(self, current: Optional[Path]) -> bool:
        """Deactivate the focused document, then activate ``current``.

        Returns:
            True if the previous document's shadow was deleted.
        """
        deleted = self.notify_deactivated(self.current_focus)
        self.notify_activated(current)
        return deleted
