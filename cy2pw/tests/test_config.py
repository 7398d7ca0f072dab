"""Tests for settings loading."""

import pytest

from cy2pw.core.config import ConverterSettings, load_settings


def _write_yaml(tmp_path, text: str) -> str:
    path = tmp_path / "cy2pw.yaml"
    path.write_text(text)
    return str(path)


class TestLoadSettings:
    def test_defaults_when_file_missing(self, tmp_path):
        settings = load_settings(str(tmp_path / "missing.yaml"))
        assert settings == ConverterSettings()
        assert settings.output_dir == "tests"
        assert settings.browsers == ["chromium"]
        assert settings.quality_threshold == 0.85

    def test_yaml_under_converter_key(self, tmp_path):
        path = _write_yaml(tmp_path, "converter:\n  batch_size: 3\n  browsers: [firefox, webkit]\n")
        settings = load_settings(path)
        assert settings.batch_size == 3
        assert settings.browsers == ["firefox", "webkit"]

    def test_flat_yaml(self, tmp_path):
        settings = load_settings(_write_yaml(tmp_path, "test_id_attribute: data-cy\n"))
        assert settings.test_id_attribute == "data-cy"

    def test_environment_overrides_yaml(self, tmp_path, monkeypatch):
        path = _write_yaml(tmp_path, "converter:\n  batch_size: 3\n")
        monkeypatch.setenv("CY2PW_BATCH_SIZE", "7")
        monkeypatch.setenv("CY2PW_BROWSERS", "chromium, webkit")
        monkeypatch.setenv("CY2PW_PARALLEL", "true")
        settings = load_settings(path)
        assert settings.batch_size == 7
        assert settings.browsers == ["chromium", "webkit"]
        assert settings.parallel is True

    def test_overrides_win(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CY2PW_BATCH_SIZE", "7")
        settings = load_settings(str(tmp_path / "missing.yaml"), batch_size=2, parallel=None)
        assert settings.batch_size == 2
        assert settings.parallel is False

    def test_unknown_keys_ignored(self, tmp_path):
        settings = load_settings(_write_yaml(tmp_path, "converter:\n  colour: blue\n  skip_existing: true\n"))
        assert settings.skip_existing is True
        assert not hasattr(settings, "colour")

    @pytest.mark.parametrize("text", [
        "converter:\n  batch_size: 0\n",
        "converter:\n  quality_threshold: 1.5\n",
        "converter:\n  browsers: [netscape]\n",
        "- just\n- a list\n",
    ])
    def test_invalid_values(self, tmp_path, text):
        with pytest.raises(ValueError):
            load_settings(_write_yaml(tmp_path, text))

    def test_bundled_settings_file(self):
        settings = load_settings()
        assert settings.support_dirs == ["cypress/support"]
        assert settings.generate_config is True
