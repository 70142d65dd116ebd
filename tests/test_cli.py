"""Tests for the command line front end."""

import json

import pytest

from akharvest import cli
from akharvest.core.config import DEFAULT_CONFIG


@pytest.fixture
def config_file(tmp_path):
    return str(tmp_path / "config.json")


def test_no_command_prints_help(capsys):
    assert cli.main([]) == 0
    assert "usage: akharvest" in capsys.readouterr().out


def test_config_init_writes_defaults(config_file):
    assert cli.main(["config", "init", "--config", config_file]) == 0

    with open(config_file, encoding='utf-8') as f:
        assert json.load(f) == DEFAULT_CONFIG


def test_config_init_keeps_existing_file(config_file, capsys):
    with open(config_file, 'w', encoding='utf-8') as f:
        json.dump({"workers": 2}, f)

    cli.main(["config", "init", "--config", config_file])

    with open(config_file, encoding='utf-8') as f:
        assert json.load(f) == {"workers": 2}
    assert "--force" in capsys.readouterr().out


def test_config_init_force(config_file):
    with open(config_file, 'w', encoding='utf-8') as f:
        json.dump({"workers": 2}, f)

    cli.main(["config", "init", "--force", "--config", config_file])

    with open(config_file, encoding='utf-8') as f:
        assert json.load(f)["workers"] == DEFAULT_CONFIG["workers"]


def test_config_show_applies_overrides(config_file, capsys):
    cli.main(["config", "show", "--config", config_file, "--workers", "3", "--data-root", "/tmp/ak"])

    out = capsys.readouterr().out
    shown = json.loads(out[out.index("{"):])
    assert shown["workers"] == 3
    assert shown["data_root"] == "/tmp/ak"


def test_load_config_overrides(config_file):
    args = cli.build_parser().parse_args(
        ["sync", "--config", config_file, "--server", "jp", "--version", "v9", "--convert-audio", "-v"])

    config = cli.load_config(args)

    assert config.servers == ["jp"]
    assert config.version == "v9"
    assert config.convert_audio
    assert config.verbose_export


def test_failures_return_exit_code(config_file, monkeypatch, capsys):
    class BrokenPipeline:
        def sync_all(self):
            raise RuntimeError("origin unreachable")

    monkeypatch.setattr(cli, "get_pipeline", lambda config: BrokenPipeline())

    assert cli.main(["sync", "--config", config_file]) == 1
    assert "[ERROR] origin unreachable" in capsys.readouterr().out


def test_version_command(config_file, monkeypatch, capsys):
    class VersionPipeline:
        def get_latest_version(self, server):
            return f"{server}-latest"

    monkeypatch.setattr(cli, "get_pipeline", lambda config: VersionPipeline())

    assert cli.main(["version", "--config", config_file, "--server", "us"]) == 0
    assert "us: us-latest" in capsys.readouterr().out
