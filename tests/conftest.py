"""Shared test fixtures for sopsview."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import pytest

from sopsview.host import EditorHost, FilesystemError, same_file
from sopsview.models import FileFormat
from sopsview.sops import SopsProcessError

SOPS_BLOCK = "sops:\n  version: 3.7.1\n  mac: ENC[AES256_GCM,data:abc]\n"


def fake_encrypt(plaintext: str) -> str:
    """Deterministic stand-in for sops output: hex payload plus metadata."""
    return f"data: ENC[{plaintext.encode('utf-8').hex()}]\n{SOPS_BLOCK}"


def fake_decrypt(encrypted: str) -> str:
    first = encrypted.splitlines()[0]
    payload = first[len("data: ENC["):-1]
    return bytes.fromhex(payload).decode("utf-8")


class FakeSops:
    """In-memory sops replacement that records every call."""

    def __init__(self):
        self.decrypt_calls: list[str] = []
        self.encrypt_calls: list[tuple[str, str]] = []
        self.fail_with: Optional[Exception] = None
        self.installed = True

    def available(self) -> bool:
        return self.installed

    def decrypt(self, encrypted: str, fmt: FileFormat) -> str:
        self.decrypt_calls.append(encrypted)
        if self.fail_with:
            raise self.fail_with
        return fake_decrypt(encrypted)

    def encrypt(self, plaintext: str, original_encrypted: str, fmt: FileFormat) -> str:
        self.encrypt_calls.append((plaintext, original_encrypted))
        if self.fail_with:
            raise self.fail_with
        return fake_encrypt(plaintext)


class FakeHost(EditorHost):
    """In-memory host: files, a logical clock for mtimes, a visibility list."""

    def __init__(self):
        self.files: dict[Path, bytes] = {}
        self.mtimes: dict[Path, float] = {}
        self.clock = 0.0
        self.writes: list[Path] = []
        self.deleted: list[Path] = []
        self.visible: list[Path] = []
        self.shown: list[Path] = []
        self.errors: list[str] = []
        self.fail_delete = False

    def put(self, path: Path, text: str, mtime: Optional[float] = None) -> None:
        """Seed a file without counting it as a write."""
        self.clock += 1
        self.files[Path(path)] = text.encode("utf-8")
        self.mtimes[Path(path)] = self.clock if mtime is None else mtime

    def text(self, path: Path) -> str:
        return self.files[Path(path)].decode("utf-8")

    def exists(self, path: Path) -> bool:
        return Path(path) in self.files

    def read_file(self, path: Path) -> bytes:
        try:
            return self.files[Path(path)]
        except KeyError as exc:
            raise FilesystemError("read", path, exc) from exc

    def write_file(self, path: Path, data: bytes) -> None:
        self.clock += 1
        self.files[Path(path)] = data
        self.mtimes[Path(path)] = self.clock
        self.writes.append(Path(path))

    def delete_file(self, path: Path) -> None:
        if self.fail_delete or Path(path) not in self.files:
            raise FilesystemError("delete", path, OSError("busy"))
        del self.files[Path(path)]
        del self.mtimes[Path(path)]
        self.deleted.append(Path(path))

    def mtime(self, path: Path) -> float:
        try:
            return self.mtimes[Path(path)]
        except KeyError as exc:
            raise FilesystemError("stat", path, exc) from exc

    def visible_documents(self) -> list[Path]:
        return list(self.visible)

    def show_document(self, path: Path) -> None:
        self.shown.append(Path(path))
        if not any(same_file(path, v) for v in self.visible):
            self.visible.append(Path(path))

    def show_error(self, message: str) -> None:
        self.errors.append(message)


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def fake_sops() -> FakeSops:
    return FakeSops()


@pytest.fixture
def secrets_path(tmp_path: Path) -> Path:
    """Path of an encrypted secrets.yaml (contents seeded per test)."""
    return tmp_path / "secrets.yaml"


@pytest.fixture
def encrypted_secrets(host: FakeHost, secrets_path: Path) -> Path:
    """An encrypted secrets.yaml already present on the fake host."""
    host.put(secrets_path, fake_encrypt("password: hunter2\n"))
    return secrets_path


@pytest.fixture
def key_not_found() -> SopsProcessError:
    return SopsProcessError("decrypt", "key not found", returncode=128, stderr="key not found")
