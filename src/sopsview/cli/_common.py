"""Shared utilities for the CLI command modules."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from ..codec import detect_format
from ..models import FileFormat, ReconcileAction, ShadowState

console = Console()

FORMAT_CHOICE = click.Choice([f.value for f in FileFormat])


def resolve_format(path: Path, fmt: Optional[str]) -> FileFormat:
    """Pick the format from --format or the file suffix.

    Raises:
        click.UsageError: If neither gives a supported format.
    """
    detected = detect_format(fmt) or detect_format(path)
    if detected is None:
        raise click.UsageError(
            f"Cannot tell the format of {path.name}; pass --format yaml|json"
        )
    return detected


def state_label(state: ShadowState) -> str:
    return {
        ShadowState.NO_SHADOW: "[dim]no shadow[/]",
        ShadowState.STALE: "[bold yellow]STALE[/]",
        ShadowState.SYNCED: "[bold green]SYNCED[/]",
    }.get(state, "[dim]unknown[/]")


def action_label(action: ReconcileAction) -> str:
    return {
        ReconcileAction.CREATED: "[green]shadow created[/]",
        ReconcileAction.REFRESHED_SHADOW: "[cyan]shadow refreshed from encrypted file[/]",
        ReconcileAction.UPDATED_ENCRYPTED: "[cyan]edits encrypted into original[/]",
        ReconcileAction.UNCHANGED: "[dim]already in sync[/]",
        ReconcileAction.SKIPPED_TIE: "[yellow]both sides changed at the same time; left alone[/]",
    }.get(action, action.value)
