"""
Configuration Tests
===================

Defaults, YAML loading and environment overrides.
"""

import pytest
from pydantic import ValidationError

from cube_scanner.config import Settings, load_config


class TestSettings:
    """Configuration loading."""

    def test_defaults(self):
        settings = Settings()

        assert settings.stabilizer.history_length == 5
        assert settings.stabilizer.quorum_policy == "near_unanimous"
        assert settings.classifier.hue_weight == 2.0
        assert settings.classifier.min_value == 0.1
        assert settings.classifier.rejection_threshold == 0.6
        assert settings.sampler.min_patch_half_width == 2

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "stabilizer:\n"
            "  history_length: 7\n"
            "  quorum_policy: unanimous\n"
        )

        settings = load_config(str(path))

        assert settings.stabilizer.history_length == 7
        assert settings.stabilizer.quorum_policy == "unanimous"
        assert settings.classifier.rejection_threshold == 0.6

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("stabilizer:\n  history_length: 7\n")
        monkeypatch.setenv("CUBESCAN_HISTORY_LENGTH", "3")
        monkeypatch.setenv("CUBESCAN_REJECTION_THRESHOLD", "0.8")
        monkeypatch.setenv("CUBESCAN_STREAM_URL", "ws://camera:9000/frames")

        settings = load_config(str(path))

        assert settings.stabilizer.history_length == 3
        assert settings.classifier.rejection_threshold == 0.8
        assert settings.stream.url == "ws://camera:9000/frames"

    def test_port_precedence(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PORT", "9100")
        monkeypatch.setenv("CUBESCAN_PORT", "9200")

        settings = load_config(str(tmp_path / "missing.yaml"))

        assert settings.server.port == 9100

    def test_invalid_policy(self, monkeypatch, tmp_path):
        monkeypatch.setenv("CUBESCAN_QUORUM_POLICY", "majority")
        with pytest.raises(ValidationError):
            load_config(str(tmp_path / "missing.yaml"))

    def test_invalid_history_length(self):
        with pytest.raises(ValidationError):
            Settings.model_validate({"stabilizer": {"history_length": 0}})
