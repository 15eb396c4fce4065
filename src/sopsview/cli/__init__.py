"""
sopsview CLI -- drive the shadow sync core from a terminal.

The editor integration is the main consumer of the core; this command
line is a host of its own, working on the local filesystem.

Entry point: sopsview.cli:main
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import click

from .. import __version__
from ..config import load_config


@click.group()
@click.version_option(version=__version__, prog_name="sopsview")
@click.option(
    "--config", "config_file", default=None, type=click.Path(dir_okay=False),
    help="Config file (default: $SOPSVIEW_HOME/config.yaml).",
)
@click.option("--verbose", "-v", is_flag=True, help="Log sync decisions.")
@click.pass_context
def main(ctx: click.Context, config_file: Optional[str], verbose: bool):
    """sopsview -- plaintext shadow views of SOPS-encrypted files.

    Decrypt next to the original, edit freely, encrypt back on sync.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
    ctx.obj = load_config(Path(config_file).expanduser() if config_file else None)


from .shadow_cmd import register_shadow_commands

register_shadow_commands(main)
