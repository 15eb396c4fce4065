"""
Sops process adapter -- decrypt and encrypt through the sops binary.

No cryptography happens in this package. Decryption is a plain
``sops --decrypt`` on a staged copy. Encryption uses sops' edit mode:
sops decrypts the staged file, hands it to ``$EDITOR``, and re-encrypts
whatever the editor left behind. Our "editor" is the non-interactive
helper in ``sopsview.editor_shim``, which copies the new plaintext over
the file sops gave it.

Every staged file lives in a private (0600) randomly named temp file
and is removed on every exit path.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Optional

from .config import ShadowConfig
from .models import FileFormat

logger = logging.getLogger("sopsview.sops")

DECRYPTED_FILE_ENV = "SOPSVIEW_DECRYPTED_FILE_PATH"

# sops exits with this code when an edit session left the file untouched.
FILE_NOT_MODIFIED_EXIT_CODE = 200


class SopsError(Exception):
    """Base error for a failed sops invocation."""

    def __init__(self, operation: str, message: str):
        super().__init__(f"sops {operation} failed: {message}")
        self.operation = operation


class SopsProcessError(SopsError):
    """sops is missing, exited non-zero, or wrote to stderr."""

    def __init__(
        self,
        operation: str,
        message: str,
        returncode: Optional[int] = None,
        stderr: str = "",
    ):
        super().__init__(operation, message)
        self.returncode = returncode
        self.stderr = stderr


class EmptyOutputError(SopsError):
    """sops ran cleanly but produced nothing usable."""


def _stage(content: str, label: str) -> Path:
    """Write content to a fresh private temp file."""
    fd, name = tempfile.mkstemp(prefix=f"sopsview-{label}-")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
    except BaseException:
        _remove_quietly(Path(name))
        raise
    return Path(name)


def _remove_quietly(path: Optional[Path]) -> None:
    if path is None:
        return
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Could not remove temp file %s: %s", path, exc)


class SopsClient:
    """Runs the sops binary on behalf of the shadow manager."""

    def __init__(self, config: Optional[ShadowConfig] = None):
        self.config = config or ShadowConfig()

    def available(self) -> bool:
        """Check if the configured sops binary resolves."""
        return shutil.which(self.config.sops_bin) is not None

    def _format_args(self, fmt: FileFormat) -> list[str]:
        return [
            self.config.sops_bin,
            "--output-type", fmt.value,
            "--input-type", fmt.value,
        ]

    def _run(
        self,
        operation: str,
        args: list[str],
        env: Optional[dict[str, str]] = None,
    ) -> subprocess.CompletedProcess:
        try:
            return subprocess.run(
                args,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                check=False,
                cwd=str(self.config.resolved_cwd()),
                env=env,
                timeout=self.config.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise SopsProcessError(
                operation, f"timed out after {exc.timeout}s"
            ) from exc
        except OSError as exc:
            raise SopsProcessError(
                operation, f"cannot run {self.config.sops_bin}: {exc}"
            ) from exc

    @staticmethod
    def _check(operation: str, result: subprocess.CompletedProcess) -> None:
        stderr = (result.stderr or "").strip()
        if result.returncode != 0:
            raise SopsProcessError(
                operation,
                stderr or f"exit status {result.returncode}",
                returncode=result.returncode,
                stderr=stderr,
            )
        if stderr:
            raise SopsProcessError(
                operation, stderr, returncode=result.returncode, stderr=stderr
            )

    def decrypt(self, encrypted: str, fmt: FileFormat) -> str:
        """Decrypt sops-encrypted content.

        Args:
            encrypted: Encrypted file content.
            fmt: Input and output format.

        Returns:
            Plaintext content.

        Raises:
            SopsProcessError: If sops cannot run or reports an error.
            EmptyOutputError: If sops printed nothing.
        """
        staged: Optional[Path] = None
        try:
            staged = _stage(encrypted, "enc")
            logger.debug("Decrypting staged file %s", staged)
            result = self._run(
                "decrypt", self._format_args(fmt) + ["--decrypt", str(staged)]
            )
            self._check("decrypt", result)
            if not result.stdout:
                raise EmptyOutputError("decrypt", "no output produced")
            return result.stdout
        finally:
            _remove_quietly(staged)

    def encrypt(
        self, plaintext: str, original_encrypted: str, fmt: FileFormat
    ) -> str:
        """Encrypt plaintext using the key setup of an existing encrypted file.

        Args:
            plaintext: New decrypted content.
            original_encrypted: Current encrypted content, which carries
                the sops metadata (keys, rules) to re-use.
            fmt: Input and output format.

        Returns:
            New encrypted content.

        Raises:
            SopsProcessError: If sops cannot run or reports an error.
            EmptyOutputError: If the re-encrypted file came back empty.
        """
        staged_plain: Optional[Path] = None
        staged_enc: Optional[Path] = None
        try:
            staged_plain = _stage(plaintext, "dec")
            staged_enc = _stage(original_encrypted, "enc")

            editor = self.config.resolved_editor_command()
            env = os.environ.copy()
            env.update({
                "EDITOR": editor,
                "SOPS_EDITOR": editor,
                DECRYPTED_FILE_ENV: str(staged_plain),
            })

            logger.debug("Encrypting %s into %s", staged_plain, staged_enc)
            result = self._run(
                "encrypt", self._format_args(fmt) + [str(staged_enc)], env=env
            )
            if result.returncode == FILE_NOT_MODIFIED_EXIT_CODE:
                logger.info("sops reports no change; keeping encrypted content")
                return original_encrypted
            self._check("encrypt", result)

            encrypted = staged_enc.read_text(encoding="utf-8")
            if not encrypted:
                raise EmptyOutputError("encrypt", "encrypted file is empty")
            return encrypted
        finally:
            _remove_quietly(staged_plain)
            _remove_quietly(staged_enc)
