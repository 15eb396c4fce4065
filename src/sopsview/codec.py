"""
Content codec -- text decoding, format detection, sops marker detection.

A file belongs to us only if it parses as YAML/JSON and carries the
top-level ``sops`` metadata block with a string ``version``. Anything
that fails to parse is simply not our concern.
"""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import PurePath
from typing import Any, Optional, Union

import yaml

from .models import FileFormat

logger = logging.getLogger("sopsview.codec")

MARKER_KEY = "sops"
MARKER_VERSION_KEY = "version"

_SUFFIX_FORMATS = {
    ".yaml": FileFormat.YAML,
    ".yml": FileFormat.YAML,
    ".json": FileFormat.JSON,
}


class ParseError(Exception):
    """Raised when content is not valid for its declared format."""


def decode_text(data: bytes) -> str:
    """Decode file bytes as UTF-8."""
    return data.decode("utf-8", errors="replace")


def detect_format(name: Union[str, PurePath, None]) -> Optional[FileFormat]:
    """Map a host language id or a file path to a FileFormat.

    Args:
        name: ``"yaml"``/``"json"`` language id, or a path with a
            ``.yaml``/``.yml``/``.json`` suffix.

    Returns:
        The format, or None if unrecognized.
    """
    if name is None:
        return None
    if isinstance(name, str):
        try:
            return FileFormat(name.lower())
        except ValueError:
            pass
    return _SUFFIX_FORMATS.get(PurePath(name).suffix.lower())


def parse(text: str, fmt: FileFormat) -> Any:
    """Parse text with the structured parser for ``fmt``.

    Raises:
        ParseError: If the content is malformed.
    """
    try:
        if fmt == FileFormat.JSON:
            return json.loads(text)
        return yaml.safe_load(text)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ParseError(f"Invalid {fmt.value} content: {exc}") from exc


def is_encryption_marker_present(
    content: Union[bytes, str], fmt: FileFormat
) -> bool:
    """Check whether content is a sops-managed document.

    Returns:
        True iff the top-level ``sops`` mapping has a string ``version``.
    """
    text = decode_text(content) if isinstance(content, bytes) else content
    try:
        data = parse(text, fmt)
    except ParseError as exc:
        logger.debug("Not a sops file: %s", exc)
        return False

    if not isinstance(data, dict):
        return False
    metadata = data.get(MARKER_KEY)
    if not isinstance(metadata, dict):
        return False
    return isinstance(metadata.get(MARKER_VERSION_KEY), str)


def checksum(text: str) -> str:
    """Hex SHA-256 digest of text, for change detection only."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()
