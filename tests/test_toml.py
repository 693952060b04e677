"""Tests for bumper.toml."""

from __future__ import annotations

from pathlib import Path

import pytest
import tomlkit

from bumper.errors import ConfigError
from bumper.toml import dump_state_tables, get_group_tables, get_state_tables, load_toml, save_toml


class TestLoadSaveToml:
    def test_save_preserves_comments(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text('# workspace config\ncommand_timeout = 5\n')

        doc = load_toml(path)
        doc["command_timeout"] = 10
        save_toml(path, doc)

        text = path.read_text()
        assert "# workspace config" in text
        assert "command_timeout = 10" in text

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError):
            load_toml(tmp_path / "absent.toml")


class TestGetGroupTables:
    def test_returns_groups(self, config_toml: str) -> None:
        groups = get_group_tables(tomlkit.parse(config_toml))
        assert [g["name"] for g in groups] == ["api", "web"]

    def test_empty_when_absent(self) -> None:
        assert get_group_tables(tomlkit.parse("")) == []

    def test_rejects_non_array(self) -> None:
        with pytest.raises(ConfigError):
            get_group_tables(tomlkit.parse('groups = "api"'))

    def test_rejects_non_table_elements(self) -> None:
        with pytest.raises(ConfigError):
            get_group_tables(tomlkit.parse("groups = [1]"))


class TestStateTables:
    def test_dump_then_read(self) -> None:
        doc = dump_state_tables(
            {"web": {"tag": "rc", "from_version": "0.4.0", "counter": 0},
             "api": {"tag": "beta", "from_version": "1.2.3", "counter": 2}}
        )

        text = tomlkit.dumps(doc)
        assert "[groups.api]" in text
        assert text.index("[groups.api]") < text.index("[groups.web]")
        assert get_state_tables(tomlkit.parse(text))["api"] == {
            "tag": "beta",
            "from_version": "1.2.3",
            "counter": 2,
        }

    def test_rejects_non_table_entry(self) -> None:
        with pytest.raises(ConfigError, match="groups.api"):
            get_state_tables(tomlkit.parse("[groups]\napi = 3\n"))

    def test_empty(self) -> None:
        assert get_state_tables(tomlkit.parse("")) == {}
