"""Editor shim -- the non-interactive ``$EDITOR`` sops runs while encrypting.

Registered as the ``sopsview-editor`` console script and runnable as
``python -m sopsview.editor_shim``. sops calls it as ``$EDITOR <path>``
with ``<path>`` holding the decrypted document. The shim replaces that
file's content with the plaintext named by ``SOPSVIEW_DECRYPTED_FILE_PATH``
and exits, so sops re-encrypts our plaintext instead of waiting on a human.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from .sops import DECRYPTED_FILE_ENV

logger = logging.getLogger("sopsview.editor_shim")


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sopsview-editor",
        description="Copy staged plaintext into the file sops is editing",
    )
    parser.add_argument("path", help="File sops asks the editor to edit")
    return parser


def copy_plaintext(source: Path, target: Path) -> None:
    """Overwrite target in place with the bytes of source.

    The target is truncated and rewritten rather than replaced, so sops
    keeps seeing the same inode it handed to the editor.
    """
    data = source.read_bytes()
    with open(target, "r+b") as f:
        f.seek(0)
        f.write(data)
        f.truncate()


def main(argv: Optional[List[str]] = None) -> int:
    """Editor shim entry point.

    Returns:
        Process exit code.
    """
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    args = build_arg_parser().parse_args(argv)

    source = os.environ.get(DECRYPTED_FILE_ENV)
    if not source:
        logger.error("%s is not set", DECRYPTED_FILE_ENV)
        return 1

    try:
        copy_plaintext(Path(source), Path(args.path))
    except OSError as exc:
        logger.error("Failed to copy %s to %s: %s", source, args.path, exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
