"""
sopsview -- a plaintext shadow view for SOPS-encrypted files.

Open an encrypted YAML or JSON file and get an editable decrypted copy
beside it. Edit the copy, and the edits are encrypted back into the
original. Close it, and the plaintext is gone.
"""

import os

__version__ = "0.1.0"

SOPSVIEW_HOME = os.environ.get("SOPSVIEW_HOME", "~/.sopsview")
