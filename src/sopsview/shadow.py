"""
Shadow file manager -- naming, creation, and reconciliation.

Every encrypted file has at most one shadow: the same directory, the
same base name, a reserved prefix. Reconciliation keeps the pair in
step with a simple newer-wins rule:

    no shadow            ->  decrypt into a new shadow
    checksums equal      ->  nothing to do
    encrypted is newer   ->  re-decrypt over the shadow
    shadow is newer      ->  encrypt the shadow back into the original
    same mtime           ->  tie policy (default: leave both alone)

Any sops or filesystem failure aborts the pass for that file. Writes
are whole-file, so nothing is left half-synced.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional

from .codec import checksum, decode_text
from .config import DECRYPTED_PREFIX, ShadowConfig
from .host import EditorHost, same_file
from .models import (
    FileFormat,
    ReconcileAction,
    ReconcileResult,
    ShadowState,
    TiePolicy,
)
from .sops import SopsClient

logger = logging.getLogger("sopsview.shadow")


def shadow_path_for(encrypted: Path, prefix: str = DECRYPTED_PREFIX) -> Path:
    """Path of the shadow file for an encrypted file."""
    encrypted = Path(encrypted)
    return encrypted.parent / (prefix + encrypted.name)


def is_shadow_path(path: Path, prefix: str = DECRYPTED_PREFIX) -> bool:
    return Path(path).name.startswith(prefix)


class ShadowManager:
    """Keeps decrypted shadow files in sync with their encrypted originals."""

    def __init__(
        self,
        host: EditorHost,
        sops: Optional[SopsClient] = None,
        config: Optional[ShadowConfig] = None,
    ):
        self.host = host
        self.config = config or ShadowConfig()
        self.sops = sops or SopsClient(self.config)
        self._locks: dict[Path, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, encrypted: Path) -> threading.Lock:
        key = Path(encrypted).expanduser().resolve()
        with self._locks_guard:
            return self._locks.setdefault(key, threading.Lock())

    def shadow_path(self, encrypted: Path) -> Path:
        return shadow_path_for(encrypted, self.config.prefix)

    def shadow_exists(self, encrypted: Path) -> bool:
        return self.host.exists(self.shadow_path(encrypted))

    def _read_text(self, path: Path) -> str:
        return decode_text(self.host.read_file(path))

    def _decrypted_content(self, encrypted: Path, fmt: FileFormat) -> str:
        return self.sops.decrypt(self._read_text(encrypted), fmt)

    def decrypt_to_shadow(self, encrypted: Path, fmt: FileFormat) -> str:
        """Decrypt the encrypted file and overwrite its shadow.

        Returns:
            The plaintext written.
        """
        plaintext = self._decrypted_content(encrypted, fmt)
        shadow = self.shadow_path(encrypted)
        self.host.write_file(shadow, plaintext.encode("utf-8"))
        logger.info("Decrypted %s -> %s", encrypted, shadow.name)
        return plaintext

    def encrypt_from_shadow(self, encrypted: Path, fmt: FileFormat) -> str:
        """Encrypt the shadow's content back into the encrypted file.

        Returns:
            The ciphertext written.
        """
        shadow = self.shadow_path(encrypted)
        ciphertext = self.sops.encrypt(
            self._read_text(shadow), self._read_text(encrypted), fmt
        )
        self.host.write_file(encrypted, ciphertext.encode("utf-8"))
        logger.info("Encrypted %s -> %s", shadow.name, encrypted)
        return ciphertext

    def state(self, encrypted: Path, fmt: FileFormat) -> ShadowState:
        """Compare the shadow against a fresh decryption, without writing."""
        if not self.shadow_exists(encrypted):
            return ShadowState.NO_SHADOW
        original = checksum(self._decrypted_content(encrypted, fmt))
        current = checksum(self._read_text(self.shadow_path(encrypted)))
        return ShadowState.SYNCED if original == current else ShadowState.STALE

    def reconcile(self, encrypted: Path, fmt: FileFormat) -> ReconcileAction:
        """Bring the shadow and the encrypted file back in step.

        Args:
            encrypted: Path to the sops-encrypted file.
            fmt: Its structured format.

        Returns:
            What was done.

        Raises:
            SopsError: If sops fails; nothing is written.
            FilesystemError: If a host file operation fails.
        """
        encrypted = Path(encrypted)
        with self._lock_for(encrypted):
            return self._reconcile_locked(encrypted, fmt)

    def _reconcile_locked(
        self, encrypted: Path, fmt: FileFormat
    ) -> ReconcileAction:
        shadow = self.shadow_path(encrypted)

        if not self.host.exists(shadow):
            logger.debug("No shadow for %s yet", encrypted)
            self.decrypt_to_shadow(encrypted, fmt)
            return ReconcileAction.CREATED

        original = self._decrypted_content(encrypted, fmt)
        current = self._read_text(shadow)
        original_sum = checksum(original)
        current_sum = checksum(current)
        logger.debug(
            "Checksums for %s: encrypted=%s shadow=%s",
            encrypted.name, original_sum, current_sum,
        )
        if original_sum == current_sum:
            return ReconcileAction.UNCHANGED

        encrypted_mtime = self.host.mtime(encrypted)
        shadow_mtime = self.host.mtime(shadow)
        logger.debug(
            "Mtimes for %s: encrypted=%s shadow=%s",
            encrypted.name, encrypted_mtime, shadow_mtime,
        )

        if encrypted_mtime > shadow_mtime:
            winner = TiePolicy.ENCRYPTED
        elif shadow_mtime > encrypted_mtime:
            winner = TiePolicy.DECRYPTED
        else:
            winner = self.config.tie_policy
            if winner == TiePolicy.NONE:
                logger.warning(
                    "%s and its shadow differ but share an mtime; leaving both",
                    encrypted,
                )
                return ReconcileAction.SKIPPED_TIE

        if winner == TiePolicy.ENCRYPTED:
            self.host.write_file(shadow, original.encode("utf-8"))
            logger.info("Refreshed shadow %s from %s", shadow.name, encrypted)
            return ReconcileAction.REFRESHED_SHADOW

        self.encrypt_from_shadow(encrypted, fmt)
        return ReconcileAction.UPDATED_ENCRYPTED

    def is_shown(self, path: Path) -> bool:
        return any(same_file(path, v) for v in self.host.visible_documents())

    def ensure_open_decrypted(
        self, encrypted: Path, fmt: FileFormat
    ) -> ReconcileResult:
        """Make sure a synced shadow exists and the host is showing it.

        Raises:
            SopsError: If sops fails.
            FilesystemError: If a host file operation fails.
        """
        encrypted = Path(encrypted)
        logger.debug("Opening %s", encrypted)
        action = self.reconcile(encrypted, fmt)

        shadow = self.shadow_path(encrypted)
        shown = False
        if not self.is_shown(shadow):
            self.host.show_document(shadow)
            shown = True

        return ReconcileResult(
            encrypted_path=encrypted,
            shadow_path=shadow,
            file_format=fmt,
            action=action,
            shown=shown,
        )
