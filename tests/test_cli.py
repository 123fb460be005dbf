"""Tests for CLI module."""

import json

import pytest
from click.testing import CliRunner

from mediaserver2.cli import cli

CATALOG = {
    "name": "Radio",
    "searchable": True,
    "children": [
        {"title": "Jazz", "children": [
            {"id": "kcsm", "title": "KCSM", "mime": "audio/mpeg", "metadata": {"bitrate": 128000}},
        ]},
        {"title": "Talk", "children": []},
        {"title": "Logo", "mime": "image/png"},
    ],
}


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"providers": ["catalog"], "provider_config": {"catalog": CATALOG}}))
    return str(path)


class TestInspectionCommands:
    """Test commands that query a source in-process."""

    def test_props(self, runner, config_file):
        result = runner.invoke(cli, ["props", "catalog", "-c", config_file,
                                     "--filter", "DisplayName", "--filter", "ChildCount"])

        assert result.exit_code == 0, result.output
        assert "Radio" in result.output
        assert "ChildCount" in result.output
        assert "3" in result.output

    def test_ls(self, runner, config_file):
        result = runner.invoke(cli, ["ls", "catalog", "-c", config_file,
                                     "--filter", "DisplayName", "--filter", "Type"])

        assert result.exit_code == 0, result.output
        assert "Jazz" in result.output
        assert "Talk" in result.output
        assert "Logo" in result.output

    def test_ls_items_only(self, runner, config_file):
        result = runner.invoke(cli, ["ls", "catalog", "-c", config_file, "--type", "items",
                                     "--filter", "DisplayName"])

        assert result.exit_code == 0, result.output
        assert "Logo" in result.output
        assert "Jazz" not in result.output

    def test_ls_with_window(self, runner, config_file):
        result = runner.invoke(cli, ["ls", "catalog", "-c", config_file, "--offset", "1", "--max", "1",
                                     "--filter", "DisplayName"])

        assert result.exit_code == 0, result.output
        assert "Talk" in result.output
        assert "Jazz" not in result.output
        assert "Logo" not in result.output

    def test_search(self, runner, config_file):
        result = runner.invoke(cli, ["search", "catalog", "kcsm", "-c", config_file,
                                     "--filter", "DisplayName", "--filter", "Bitrate"])

        assert result.exit_code == 0, result.output
        assert "KCSM" in result.output
        assert "128000" in result.output

    def test_unknown_source(self, runner, config_file):
        result = runner.invoke(cli, ["props", "nope", "-c", config_file])

        assert result.exit_code == 1
        assert "UnknownEndpoint" in result.output

    def test_unknown_property(self, runner, config_file):
        result = runner.invoke(cli, ["props", "catalog", "-c", config_file, "--filter", "Colour"])

        assert result.exit_code == 1
        assert "UnknownProperty" in result.output

    def test_invalid_config_file(self, runner, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{")

        result = runner.invoke(cli, ["ls", "catalog", "-c", str(path)])

        assert result.exit_code == 1
        assert "ConfigurationError" in result.output

    def test_negative_offset_is_rejected(self, runner, config_file):
        result = runner.invoke(cli, ["ls", "catalog", "-c", config_file, "--offset", "-1"])
        assert result.exit_code == 2


class TestProvidersCommand:
    """Test listing plugins."""

    def test_lists_builtins(self, runner, config_file):
        result = runner.invoke(cli, ["providers", "-c", config_file])

        assert result.exit_code == 0, result.output
        assert "catalog" in result.output
        assert "filesystem" in result.output


class TestInitConfig:
    """Test writing a default configuration."""

    def test_writes_file(self, runner, tmp_path):
        path = tmp_path / "config.json"

        result = runner.invoke(cli, ["init-config", str(path)])

        assert result.exit_code == 0, result.output
        data = json.loads(path.read_text())
        assert "filesystem" in data["provider_config"]

    def test_refuses_to_overwrite(self, runner, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{}")

        result = runner.invoke(cli, ["init-config", str(path)])

        assert result.exit_code == 1
        assert path.read_text() == "{}"

    def test_force_overwrites(self, runner, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{}")

        result = runner.invoke(cli, ["init-config", str(path), "--force"])

        assert result.exit_code == 0
        assert "provider_config" in json.loads(path.read_text())
