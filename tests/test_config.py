"""Tests for configuration loading and validation."""

from __future__ import annotations

from pathlib import Path

import pytest

from spam_guard.config import (
    DEFAULT_SPAM_HEADERS,
    ClassifierConfig,
    FieldWeights,
    SpamGuardConfig,
    TriageConfig,
    default_config_path,
    default_model_path,
    load_config,
)


class TestDefaults:
    def test_classifier(self):
        config = ClassifierConfig()
        assert config.alpha == 1.0
        assert config.min_df == 2
        assert config.field_weights == FieldWeights(sender=1, subject=2, body=1)

    def test_triage(self):
        config = TriageConfig()
        assert config.flag_threshold == 0.7
        assert config.auto_move_threshold == 0.99
        assert config.spam_headers == DEFAULT_SPAM_HEADERS

    def test_top_level(self):
        config = SpamGuardConfig()
        assert config.max_training_samples == 500
        assert config.model_path is None


class TestValidation:
    """Invalid values are rejected at construction."""

    @pytest.mark.parametrize("kwargs", [{"sender": -1}, {"subject": 1.5}, {"body": True}])
    def test_field_weights(self, kwargs):
        with pytest.raises(ValueError, match="field weight"):
            FieldWeights(**kwargs)

    @pytest.mark.parametrize("alpha", [0, -1.0, "1", float("nan"), float("inf")])
    def test_alpha(self, alpha):
        with pytest.raises(ValueError, match="alpha"):
            ClassifierConfig(alpha=alpha)

    def test_min_df(self):
        with pytest.raises(ValueError, match="min_df"):
            ClassifierConfig(min_df=0)

    def test_thresholds_out_of_order(self):
        with pytest.raises(ValueError, match="thresholds"):
            TriageConfig(flag_threshold=0.9, auto_move_threshold=0.8)

    def test_threshold_above_one(self):
        with pytest.raises(ValueError, match="thresholds"):
            TriageConfig(auto_move_threshold=1.5)

    def test_max_training_samples(self):
        with pytest.raises(ValueError, match="max_training_samples"):
            SpamGuardConfig(max_training_samples=0)


class TestXdgPaths:
    def test_config_path(self, monkeypatch, tmp_path: Path):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert default_config_path() == tmp_path / "spam-guard" / "config.toml"

    def test_model_path(self, monkeypatch, tmp_path: Path):
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))
        assert default_model_path() == tmp_path / "spam-guard" / "model.json"
        assert SpamGuardConfig().resolved_model_path == tmp_path / "spam-guard" / "model.json"

    def test_home_fallback(self, monkeypatch, tmp_path: Path):
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))
        assert default_model_path() == tmp_path / ".local" / "share" / "spam-guard" / "model.json"


class TestLoadConfig:
    """Tests for reading TOML config files."""

    def test_missing_file_gives_defaults(self, tmp_path: Path):
        assert load_config(tmp_path / "missing.toml") == SpamGuardConfig()

    def test_overrides(self, tmp_path: Path):
        path = tmp_path / "config.toml"
        path.write_text(
            "[classifier]\n"
            "alpha = 0.5\n"
            "min_df = 1\n"
            "\n"
            "[classifier.field_weights]\n"
            "subject = 3\n"
            "\n"
            "[triage]\n"
            "flag_threshold = 0.8\n"
            "spam_headers = [[\"X-Junk\", \"TRUE\"]]\n"
            "\n"
            "[training]\n"
            "max_training_samples = 100\n"
            f"model_path = \"{(tmp_path / 'model.json').as_posix()}\"\n",
            encoding="utf-8",
        )
        config = load_config(path)
        assert config.classifier.alpha == 0.5
        assert config.classifier.min_df == 1
        assert config.classifier.field_weights == FieldWeights(subject=3)
        assert config.triage.flag_threshold == 0.8
        assert config.triage.auto_move_threshold == 0.99
        assert config.triage.spam_headers == (("X-Junk", "TRUE"),)
        assert config.max_training_samples == 100
        assert config.resolved_model_path == tmp_path / "model.json"

    def test_env_location(self, monkeypatch, tmp_path: Path):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        (tmp_path / "spam-guard").mkdir()
        (tmp_path / "spam-guard" / "config.toml").write_text(
            "[classifier]\nmin_df = 3\n", encoding="utf-8"
        )
        assert load_config().classifier.min_df == 3

    def test_invalid_toml(self, tmp_path: Path):
        path = tmp_path / "config.toml"
        path.write_text("[classifier\nalpha = ", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid config"):
            load_config(path)

    def test_invalid_value(self, tmp_path: Path):
        path = tmp_path / "config.toml"
        path.write_text("[classifier]\nalpha = -2\n", encoding="utf-8")
        with pytest.raises(ValueError, match="alpha"):
            load_config(path)

    def test_dict_roundtrip(self, tmp_path: Path):
        config = SpamGuardConfig(
            classifier=ClassifierConfig(alpha=0.1),
            triage=TriageConfig(top_keywords=3),
            model_path=tmp_path / "m.json",
        )
        assert SpamGuardConfig.from_dict(config.to_dict()) == config
