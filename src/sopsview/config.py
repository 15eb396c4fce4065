"""
Configuration for sopsview.

Read from ``$SOPSVIEW_HOME/config.yaml`` when present. The sops binary
can also be overridden with ``SOPSVIEW_SOPS_BIN``.
"""

from __future__ import annotations

import logging
import os
import shlex
import sys
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel

from . import SOPSVIEW_HOME
from .models import TiePolicy

logger = logging.getLogger("sopsview.config")

DECRYPTED_PREFIX = ".decrypted~"
CONFIG_FILENAME = "config.yaml"


def default_editor_command() -> str:
    """Shell-quoted command that runs the bundled editor helper."""
    return f"{shlex.quote(sys.executable)} -m sopsview.editor_shim"


class ShadowConfig(BaseModel):
    """Everything the core needs that used to live in globals."""

    sops_bin: str = "sops"
    prefix: str = DECRYPTED_PREFIX
    editor_command: Optional[str] = None
    cwd: Optional[Path] = None
    timeout: Optional[float] = None
    tie_policy: TiePolicy = TiePolicy.NONE

    def resolved_editor_command(self) -> str:
        return self.editor_command or default_editor_command()

    def resolved_cwd(self) -> Path:
        return (self.cwd or Path.home()).expanduser()


def config_path(home: Optional[Path] = None) -> Path:
    return Path(home or SOPSVIEW_HOME).expanduser() / CONFIG_FILENAME


def load_config(path: Optional[Path] = None) -> ShadowConfig:
    """Load configuration from disk, falling back to defaults.

    Args:
        path: Explicit config file. Defaults to ``$SOPSVIEW_HOME/config.yaml``.

    Returns:
        ShadowConfig with environment overrides applied.
    """
    config_file = path or config_path()
    config = ShadowConfig()
    if config_file.exists():
        try:
            data = yaml.safe_load(config_file.read_text(encoding="utf-8")) or {}
            config = ShadowConfig(**data)
        except (yaml.YAMLError, ValueError, TypeError) as exc:
            logger.warning("Failed to load config %s: %s", config_file, exc)

    sops_bin = os.environ.get("SOPSVIEW_SOPS_BIN")
    if sops_bin:
        config.sops_bin = sops_bin
    return config


def save_config(config: ShadowConfig, path: Optional[Path] = None) -> Path:
    """Persist configuration as YAML.

    Returns:
        Path of the written file.
    """
    config_file = path or config_path()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(mode="json", exclude_none=True)
    config_file.write_text(
        yaml.dump(data, default_flow_style=False), encoding="utf-8"
    )
    logger.info("Saved config to %s", config_file)
    return config_file
