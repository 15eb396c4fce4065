"""
Pydantic models and enums shared across the shadow sync core.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel


class FileFormat(str, Enum):
    """Structured formats sops can round-trip for us."""

    YAML = "yaml"
    JSON = "json"


class ShadowState(str, Enum):
    """Where a shadow file stands relative to its encrypted source."""

    NO_SHADOW = "no-shadow"
    STALE = "stale"
    SYNCED = "synced"


class ReconcileAction(str, Enum):
    """What a reconciliation pass ended up doing."""

    CREATED = "created"
    REFRESHED_SHADOW = "refreshed-shadow"
    UPDATED_ENCRYPTED = "updated-encrypted"
    UNCHANGED = "unchanged"
    SKIPPED_TIE = "skipped-tie"


class TiePolicy(str, Enum):
    """Which side wins when both files share an mtime but differ in content."""

    NONE = "none"
    ENCRYPTED = "encrypted"
    DECRYPTED = "decrypted"


class ReconcileResult(BaseModel):
    """Outcome of ensuring a shadow file is open and in sync."""

    encrypted_path: Path
    shadow_path: Path
    file_format: FileFormat
    action: ReconcileAction
    shown: bool = False
