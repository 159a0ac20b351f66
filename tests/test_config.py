"""Tests for lockstep.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from lockstep.config import ReleaseConfig, load_config
from lockstep.errors import ConfigError


class TestLoadConfig:
    def test_defaults_without_files(self, tmp_path: Path) -> None:
        config = load_config(tmp_path)
        assert config == ReleaseConfig()
        assert config.packages_dir == "packages"
        assert config.registry == "yarn"
        assert config.test == [["npm", "test", "--", "--bail"]]

    def test_reads_lockstep_toml(self, tmp_path: Path) -> None:
        (tmp_path / "lockstep.toml").write_text(
            'packages-dir = "libs"\n'
            'scope = "@acme"\n'
            'skip = ["playground"]\n'
            'registry = "npm"\n'
            'build = [["make", "dist"]]\n'
        )
        config = load_config(tmp_path)

        assert config.packages_dir == "libs"
        assert config.scope == "@acme"
        assert config.skip == ["playground"]
        assert config.registry == "npm"
        assert config.build == [["make", "dist"]]

    def test_reads_pyproject_tool_table(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text(
            '[project]\nname = "x"\n\n[tool.lockstep]\nprimary = "core"\n'
        )
        assert load_config(tmp_path).primary == "core"

    def test_pyproject_without_table(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text('[project]\nname = "x"\n')
        assert load_config(tmp_path) == ReleaseConfig()

    def test_lockstep_toml_takes_precedence(self, tmp_path: Path) -> None:
        (tmp_path / "lockstep.toml").write_text('primary = "a"\n')
        (tmp_path / "pyproject.toml").write_text('[tool.lockstep]\nprimary = "b"\n')
        assert load_config(tmp_path).primary == "a"

    def test_unknown_key(self, tmp_path: Path) -> None:
        (tmp_path / "lockstep.toml").write_text('pakages-dir = "libs"\n')
        with pytest.raises(ConfigError, match="lockstep.toml"):
            load_config(tmp_path)

    def test_unknown_registry(self, tmp_path: Path) -> None:
        (tmp_path / "lockstep.toml").write_text('registry = "pnpm"\n')
        with pytest.raises(ConfigError):
            load_config(tmp_path)

    def test_malformed_toml(self, tmp_path: Path) -> None:
        (tmp_path / "lockstep.toml").write_text("scope = \n")
        with pytest.raises(ConfigError, match="Cannot parse"):
            load_config(tmp_path)
