"""Tests for configuration."""

from pathlib import Path

import toml

from craft_export.config import Config, ExportSettings


class TestConfig:
    """Tests for the toml-backed Config."""

    def test_defaults_without_file(self, tmp_path):
        config = Config(tmp_path / "cfg")
        assert not config.exists()
        assert config.get_settings() == ExportSettings()

    def test_round_trip(self, tmp_path):
        config = Config(tmp_path / "cfg")
        settings = ExportSettings(output_dir="~/vault", skip_patterns=["Trash", "Templates"], strict=False)
        config.save_settings(settings)

        assert config.exists()
        assert Config(tmp_path / "cfg").get_settings() == settings

    def test_partial_file_uses_defaults(self, tmp_path):
        config = Config(tmp_path)
        config.config_file.write_text(toml.dumps({"export": {"max_depth": 10}}))

        settings = config.get_settings()
        assert settings.max_depth == 10
        assert settings.attachments_folder == "Attachments"

    def test_unknown_keys_are_ignored(self, tmp_path):
        config = Config(tmp_path)
        config.config_file.write_text(toml.dumps({"export": {"colour": "blue", "strict": False}}))
        assert config.get_settings().strict is False

    def test_broken_file(self, tmp_path):
        config = Config(tmp_path)
        config.config_file.write_text("this is not toml")
        assert config.load() == {}

    def test_other_sections_survive_save(self, tmp_path):
        config = Config(tmp_path)
        config.save({"other": {"a": 1}})
        config.save_settings(ExportSettings())
        assert config.load()["other"] == {"a": 1}


class TestExportSettings:
    """Tests for ExportSettings helpers."""

    def test_output_path_expands_user(self):
        assert ExportSettings(output_dir="~/vault").output_path == Path.home() / "vault"

    def test_is_skipped(self):
        settings = ExportSettings()
        assert settings.is_skipped(Path("Trash/Old.md"))
        assert not settings.is_skipped(Path("Notes/New.md"))
