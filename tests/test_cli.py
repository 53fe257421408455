"""Tests for the command-line interface."""

import json
import sys

import pytest
from click.testing import CliRunner
from loguru import logger

from craft_export import cli as cli_module
from craft_export import config as config_module
from craft_export.cli import cli


@pytest.fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.setattr(cli_module, "LOG_DIR", tmp_path / "logs")
    monkeypatch.setattr(config_module, "CONFIG_DIR", tmp_path / "config")
    yield CliRunner()
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def export_file(space, tmp_path):
    space.document("Doc", children=[space.text("hello"), space.block("", type="table")])
    json_path = tmp_path / "craft.json"
    json_path.write_text(json.dumps(space.export()), encoding="utf-8")
    return json_path


def test_export(runner, export_file, tmp_path):
    out = tmp_path / "vault"
    result = runner.invoke(cli, ["export", str(export_file), "-o", str(out), "--no-download"])

    assert result.exit_code == 0, result.output
    assert (out / "Inbox" / "Doc.md").read_text(encoding="utf-8") == "hello\n"
    assert (out / "Craft Export Results.md").exists()
    assert list((tmp_path / "logs").glob("craft_export_*.log"))


def test_export_failure(runner, space, tmp_path):
    block = space.text("x")
    block["mood"] = "happy"
    space.document("Doc", children=[block])
    json_path = tmp_path / "craft.json"
    json_path.write_text(json.dumps(space.export()), encoding="utf-8")

    result = runner.invoke(cli, ["export", str(json_path), "-o", str(tmp_path / "vault")])
    assert result.exit_code == 1
    assert "Export failed" in result.output


def test_export_lenient(runner, space, tmp_path):
    block = space.text("x")
    block["mood"] = "happy"
    space.document("Doc", children=[block])
    json_path = tmp_path / "craft.json"
    json_path.write_text(json.dumps(space.export()), encoding="utf-8")

    result = runner.invoke(cli, ["export", str(json_path), "-o", str(tmp_path / "vault"), "--lenient"])
    assert result.exit_code == 0, result.output


def test_inspect(runner, export_file):
    result = runner.invoke(cli, ["inspect", str(export_file), "Doc"])

    assert result.exit_code == 0, result.output
    assert "----- Inbox/Doc.md -----" in result.output
    assert "text focus:False" in result.output
    assert "skipping table" in result.output


def test_inspect_no_match(runner, export_file):
    result = runner.invoke(cli, ["inspect", str(export_file), "Nowhere"])
    assert result.exit_code == 0
    assert "No document path contains" in result.output


def test_init_and_config_show(runner, tmp_path):
    result = runner.invoke(cli, ["config-show"])
    assert result.exit_code == 0
    assert "No configuration found" in result.output

    result = runner.invoke(cli, ["init"])
    assert result.exit_code == 0
    assert (tmp_path / "config" / "config.toml").exists()

    result = runner.invoke(cli, ["config-show"])
    assert "No configuration found" not in result.output
    assert "attachments_folder" in result.output
