"""Shadow commands: check, open, sync, status, close."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click
from rich.markup import escape
from rich.panel import Panel

from ._common import FORMAT_CHOICE, action_label, console, resolve_format, state_label
from ..codec import is_encryption_marker_present
from ..config import ShadowConfig
from ..host import FilesystemError, LocalHost
from ..models import FileFormat
from ..shadow import ShadowManager, is_shadow_path
from ..sops import SopsError
from ..visibility import VisibilityTracker

FILE_ARG = click.Path(exists=True, dir_okay=False)


def _encrypted_target(path: Path, config: ShadowConfig) -> Path:
    """Map a shadow path back to its encrypted original."""
    if is_shadow_path(path, config.prefix):
        return path.parent / path.name[len(config.prefix):]
    return path


def _require_sops_file(manager: ShadowManager, path: Path, fmt: FileFormat) -> None:
    try:
        content = manager.host.read_file(path)
    except FilesystemError as exc:
        console.print(f"[bold red]{escape(str(exc))}[/]")
        raise SystemExit(1)
    if not is_encryption_marker_present(content, fmt):
        console.print(f"[bold red]{path.name} is not a sops-encrypted {fmt.value} file.[/]")
        raise SystemExit(1)


def _require_sops_binary(manager: ShadowManager) -> None:
    if not manager.sops.available():
        sops_bin = escape(manager.config.sops_bin)
        console.print(
            f"[bold red]sops binary '{sops_bin}' not found.[/] "
            "Install sops or set sops_bin in the config."
        )
        raise SystemExit(1)


def register_shadow_commands(main: click.Group) -> None:
    """Register the shadow file commands."""

    @main.command("check")
    @click.argument("file", type=FILE_ARG)
    @click.option("--format", "fmt", type=FORMAT_CHOICE, default=None)
    def check(file: str, fmt: Optional[str]):
        """Tell whether FILE is sops-encrypted."""
        path = Path(file)
        file_format = resolve_format(path, fmt)
        if is_encryption_marker_present(path.read_bytes(), file_format):
            console.print(f"[green]{path.name}[/] is sops-encrypted ({file_format.value})")
        else:
            console.print(f"[yellow]{path.name}[/] is not sops-encrypted")
            raise SystemExit(1)

    @main.command("open")
    @click.argument("file", type=FILE_ARG)
    @click.option("--format", "fmt", type=FORMAT_CHOICE, default=None)
    @click.pass_obj
    def open_cmd(config: ShadowConfig, file: str, fmt: Optional[str]):
        """Create or refresh the decrypted shadow of FILE.

        Examples:

            sopsview open secrets.yaml
        """
        path = _encrypted_target(Path(file), config)
        file_format = resolve_format(path, fmt)
        manager = ShadowManager(LocalHost(), config=config)
        _require_sops_file(manager, path, file_format)
        _require_sops_binary(manager)

        try:
            result = manager.ensure_open_decrypted(path, file_format)
        except (SopsError, FilesystemError) as exc:
            console.print(f"[bold red]{escape(str(exc))}[/]")
            raise SystemExit(1)

        console.print(Panel(
            f"Encrypted: [cyan]{result.encrypted_path}[/]\n"
            f"Shadow: [cyan]{result.shadow_path}[/]\n"
            f"Result: {action_label(result.action)}",
            title="sopsview",
            border_style="green",
        ))

    @main.command("sync")
    @click.argument("file", type=FILE_ARG)
    @click.option("--format", "fmt", type=FORMAT_CHOICE, default=None)
    @click.pass_obj
    def sync_cmd(config: ShadowConfig, file: str, fmt: Optional[str]):
        """Reconcile FILE with its shadow (newer side wins)."""
        path = _encrypted_target(Path(file), config)
        file_format = resolve_format(path, fmt)
        manager = ShadowManager(LocalHost(), config=config)
        _require_sops_file(manager, path, file_format)
        _require_sops_binary(manager)

        try:
            action = manager.reconcile(path, file_format)
        except (SopsError, FilesystemError) as exc:
            console.print(f"[bold red]{escape(str(exc))}[/]")
            raise SystemExit(1)
        console.print(f"{path.name}: {action_label(action)}")

    @main.command("status")
    @click.argument("file", type=FILE_ARG)
    @click.option("--format", "fmt", type=FORMAT_CHOICE, default=None)
    @click.pass_obj
    def status_cmd(config: ShadowConfig, file: str, fmt: Optional[str]):
        """Show whether FILE's shadow is missing, stale, or synced."""
        path = _encrypted_target(Path(file), config)
        file_format = resolve_format(path, fmt)
        manager = ShadowManager(LocalHost(), config=config)
        _require_sops_binary(manager)

        try:
            state = manager.state(path, file_format)
        except (SopsError, FilesystemError) as exc:
            console.print(f"[bold red]{escape(str(exc))}[/]")
            raise SystemExit(1)
        console.print(f"{path.name}: {state_label(state)}")

    @main.command("close")
    @click.argument("file", type=click.Path(dir_okay=False))
    @click.pass_obj
    def close_cmd(config: ShadowConfig, file: str):
        """Delete the decrypted shadow of FILE."""
        path = _encrypted_target(Path(file), config)
        shadow = ShadowManager(LocalHost(), config=config).shadow_path(path)
        if not shadow.exists():
            console.print(f"[dim]No shadow for {path.name}[/]")
            return

        tracker = VisibilityTracker(LocalHost(), config.prefix)
        if tracker.on_active_changed(shadow):
            console.print(f"[green]Removed[/] {shadow}")
        else:
            console.print(f"[bold red]Could not remove {shadow}[/]")
            raise SystemExit(1)
