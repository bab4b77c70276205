"""main.py 공통 에러 핸들러 및 CLI 흐름 테스트"""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner

from xraider.cli.main import cli
from xraider.core.models import ExtractedMetadata


@pytest.fixture()
def cfg_path(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump({
        "library": {"user": "tester"},
        "storage": {"sqlite": str(tmp_path / "library.db")},
        "drive": {"access_token": ""},
    }))
    return str(path)


class TestCLIErrorHandler:
    def test_version_flag(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "xraider" in result.output

    def test_help_flag(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "xraider" in result.output

    def test_unknown_command(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["nonexistent-command"])
        assert result.exit_code != 0

    def test_verbose_flag_accepted(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--verbose", "--help"])
        assert result.exit_code == 0

    def test_invalid_locator_exits_1(self, cfg_path):
        runner = CliRunner()
        result = runner.invoke(cli, ["-c", cfg_path, "add", "not a url"])
        assert result.exit_code == 1

    def test_missing_drive_token_is_config_error(self, cfg_path):
        runner = CliRunner()
        with patch.dict(os.environ, {}, clear=True):
            result = runner.invoke(cli, ["-c", cfg_path, "drive", "sync"])
        assert result.exit_code == 1


class TestLibraryCommands:
    def test_add_then_duplicate(self, cfg_path):
        meta = ExtractedMetadata(title="Deep learning", url="https://doi.org/10.1038/nature14539",
                                 source="Nature", authors=["Yann LeCun"])
        runner = CliRunner()
        with patch("xraider.extract.extract_from_locator", return_value=meta):
            first = runner.invoke(cli, ["-c", cfg_path, "add", "10.1038/nature14539"])
            second = runner.invoke(cli, ["-c", cfg_path, "add", "10.1038/nature14539"])
        assert first.exit_code == 0
        assert "Deep learning" in first.output
        assert second.exit_code == 1

        listed = runner.invoke(cli, ["-c", cfg_path, "list"])
        assert listed.exit_code == 0
        assert "Deep" in listed.output

    def test_upload_and_search(self, cfg_path, tmp_path):
        path = tmp_path / "quantum-notes.pdf"
        path.write_bytes(b"%PDF-1.4")
        runner = CliRunner()
        result = runner.invoke(cli, ["-c", cfg_path, "upload", str(path)])
        assert result.exit_code == 0

        found = runner.invoke(cli, ["-c", cfg_path, "search", "quantum"])
        assert "Quantum" in found.output

    def test_user_option_isolates_library(self, cfg_path, tmp_path):
        path = tmp_path / "a.pdf"
        path.write_bytes(b"x")
        runner = CliRunner()
        runner.invoke(cli, ["-c", cfg_path, "upload", str(path)])
        result = runner.invoke(cli, ["-c", cfg_path, "-u", "someone-else", "list"])
        assert "문서가 없습니다" in result.output


class TestConfigCommands:
    def test_set_get_and_unset(self, cfg_path):
        runner = CliRunner()
        result = runner.invoke(cli, ["-c", cfg_path, "config", "set", "drive.progress_reset_delay", "0.5"])
        assert result.exit_code == 0
        with open(cfg_path) as f:
            assert yaml.safe_load(f)["drive"]["progress_reset_delay"] == 0.5

        result = runner.invoke(cli, ["-c", cfg_path, "config", "get", "drive.progress_reset_delay"])
        assert "0.5" in result.output

        runner.invoke(cli, ["-c", cfg_path, "config", "unset", "drive.progress_reset_delay"])
        with open(cfg_path) as f:
            assert yaml.safe_load(f)["drive"]["progress_reset_delay"] == 3

    def test_token_is_masked(self, cfg_path):
        runner = CliRunner()
        runner.invoke(cli, ["-c", cfg_path, "config", "set", "drive.access_token", "ya29.secret-value"])
        result = runner.invoke(cli, ["-c", cfg_path, "config", "get", "drive.access_token"])
        assert result.exit_code == 0
        assert "ya29" in result.output
        assert "secret-value" not in result.output

    def test_unknown_key_rejected(self, cfg_path):
        runner = CliRunner()
        result = runner.invoke(cli, ["-c", cfg_path, "config", "set", "drive.colour", "red"])
        assert result.exit_code != 0

    def test_invalid_value_not_saved(self, cfg_path):
        runner = CliRunner()
        result = runner.invoke(cli, ["-c", cfg_path, "config", "set", "http.timeout", "-1"])
        assert result.exit_code == 1
        with open(cfg_path) as f:
            assert "http" not in yaml.safe_load(f)

    def test_list_shows_every_section(self, cfg_path):
        runner = CliRunner()
        result = runner.invoke(cli, ["-c", cfg_path, "config", "list"])
        assert result.exit_code == 0
        for section in ("library", "storage", "http", "drive"):
            assert section in result.output
