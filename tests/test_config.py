"""Tests for configuration loading and saving."""

from __future__ import annotations

from pathlib import Path

import yaml

from sopsview.config import (
    DECRYPTED_PREFIX,
    ShadowConfig,
    config_path,
    load_config,
    save_config,
)
from sopsview.models import TiePolicy


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults_when_missing(self, tmp_path: Path, monkeypatch):
        monkeypatch.delenv("SOPSVIEW_SOPS_BIN", raising=False)
        config = load_config(tmp_path / "config.yaml")
        assert config.sops_bin == "sops"
        assert config.prefix == DECRYPTED_PREFIX
        assert config.tie_policy == TiePolicy.NONE
        assert config.timeout is None

    def test_reads_yaml(self, tmp_path: Path, monkeypatch):
        monkeypatch.delenv("SOPSVIEW_SOPS_BIN", raising=False)
        path = tmp_path / "config.yaml"
        path.write_text("sops_bin: /opt/sops\ntie_policy: encrypted\ntimeout: 30\n")

        config = load_config(path)
        assert config.sops_bin == "/opt/sops"
        assert config.tie_policy == TiePolicy.ENCRYPTED
        assert config.timeout == 30

    def test_env_overrides_binary(self, tmp_path: Path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("sops_bin: /opt/sops\n")
        monkeypatch.setenv("SOPSVIEW_SOPS_BIN", "/usr/local/bin/sops")
        assert load_config(path).sops_bin == "/usr/local/bin/sops"

    def test_malformed_yaml_falls_back(self, tmp_path: Path, monkeypatch, caplog):
        monkeypatch.delenv("SOPSVIEW_SOPS_BIN", raising=False)
        path = tmp_path / "config.yaml"
        path.write_text("sops_bin: [\n")
        assert load_config(path).sops_bin == "sops"
        assert "Failed to load config" in caplog.text

    def test_invalid_values_fall_back(self, tmp_path: Path, monkeypatch):
        monkeypatch.delenv("SOPSVIEW_SOPS_BIN", raising=False)
        path = tmp_path / "config.yaml"
        path.write_text("tie_policy: coin-flip\n")
        assert load_config(path).tie_policy == TiePolicy.NONE

    def test_default_location(self, tmp_path: Path):
        assert config_path(tmp_path) == tmp_path / "config.yaml"


class TestSaveConfig:
    """Tests for save_config."""

    def test_round_trip(self, tmp_path: Path, monkeypatch):
        monkeypatch.delenv("SOPSVIEW_SOPS_BIN", raising=False)
        path = tmp_path / "nested" / "config.yaml"
        save_config(ShadowConfig(sops_bin="/opt/sops", tie_policy=TiePolicy.DECRYPTED), path)

        data = yaml.safe_load(path.read_text())
        assert data["sops_bin"] == "/opt/sops"
        assert data["tie_policy"] == "decrypted"
        assert "editor_command" not in data
        assert load_config(path).tie_policy == TiePolicy.DECRYPTED


class TestShadowConfig:
    """Tests for derived settings."""

    def test_editor_command_override(self):
        assert ShadowConfig(editor_command="my-editor").resolved_editor_command() == "my-editor"

    def test_default_editor_runs_shim(self):
        assert "sopsview.editor_shim" in ShadowConfig().resolved_editor_command()

    def test_cwd_defaults_to_home(self, tmp_path: Path):
        assert ShadowConfig().resolved_cwd() == Path.home()
        assert ShadowConfig(cwd=tmp_path).resolved_cwd() == tmp_path
