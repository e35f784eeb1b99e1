"""Tests for the command-line interface."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from spam_guard.cli import main
from spam_guard.store import load_model


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def base_args(tmp_path: Path) -> list[str]:
    """Point the CLI at a config file that does not exist, so defaults apply."""
    return ["--config", str(tmp_path / "config.toml")]


@pytest.fixture
def model_path(tmp_path: Path) -> Path:
    return tmp_path / "model.json"


@pytest.fixture
def trained(runner, base_args, corpus_file, model_path) -> Path:
    result = runner.invoke(
        main, base_args + ["train", str(corpus_file), "--model", str(model_path), "--min-df", "1"]
    )
    assert result.exit_code == 0, result.output
    return model_path


class TestTrain:
    def test_json_output(self, runner, base_args, corpus_file, model_path):
        result = runner.invoke(main, base_args + [
            "train", str(corpus_file), "--model", str(model_path), "--output", "json",
        ])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["is_trained"] is True
        assert data["training_size"] == 14
        assert data["class_distribution"] == {"spam": 7, "ham": 7}
        assert model_path.exists()

    def test_saves_training_data(self, trained):
        stored = load_model(trained)
        assert len(stored.training_data) == 14
        assert stored.model.config.min_df == 1

    def test_rich_output(self, trained, runner, base_args):
        result = runner.invoke(main, base_args + ["info", "--model", str(trained)])
        assert result.exit_code == 0
        assert "trained" in result.output

    def test_invalid_alpha(self, runner, base_args, corpus_file, model_path):
        result = runner.invoke(main, base_args + [
            "train", str(corpus_file), "--model", str(model_path), "--alpha", "0",
        ])
        assert result.exit_code == 1
        assert "Error" in result.output
        assert not model_path.exists()

    def test_missing_corpus(self, runner, base_args, tmp_path):
        result = runner.invoke(main, base_args + ["train", str(tmp_path / "nope.json")])
        assert result.exit_code == 2


class TestClassify:
    def test_json_output(self, runner, base_args, trained):
        result = runner.invoke(main, base_args + [
            "classify", "--model", str(trained),
            "--sender", "Prize Winner <winner@lottery.com>",
            "--subject", "Congratulations! You've won!",
            "--body", "Click here to claim your free prize",
            "--output", "json",
        ])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["prediction"]["label"] == "spam"
        assert set(data["prediction"]["scores"]) == {"spam", "ham"}
        assert data["top_features"]

    def test_spam_header(self, runner, base_args, trained):
        result = runner.invoke(main, base_args + [
            "classify", "--model", str(trained), "--subject", "Team meeting",
            "--header", "X-Spam-Flag: YES", "--output", "json",
        ])
        assert result.exit_code == 0, result.output
        verdict = json.loads(result.output)["verdict"]
        assert verdict["action"] == "move"
        assert verdict["method"] == "header"

    def test_raw_text(self, runner, base_args, trained):
        result = runner.invoke(main, base_args + [
            "classify", "--model", str(trained), "--text", "team meeting tomorrow",
        ])
        assert result.exit_code == 0, result.output
        assert "Prediction" in result.output

    def test_requires_content(self, runner, base_args, trained):
        result = runner.invoke(main, base_args + ["classify", "--model", str(trained)])
        assert result.exit_code == 2

    def test_bad_header(self, runner, base_args, trained):
        result = runner.invoke(main, base_args + [
            "classify", "--model", str(trained), "--text", "hi there", "--header", "nonsense",
        ])
        assert result.exit_code == 2

    def test_missing_model(self, runner, base_args, model_path):
        result = runner.invoke(main, base_args + [
            "classify", "--model", str(model_path), "--text", "hello",
        ])
        assert result.exit_code == 1
        assert "Error" in result.output


class TestLearn:
    def test_creates_model(self, runner, base_args, model_path):
        result = runner.invoke(main, base_args + [
            "learn", "--label", "spam", "--model", str(model_path),
            "--subject", "Cheap meds", "--body", "online pharmacy",
        ])
        assert result.exit_code == 0, result.output
        stored = load_model(model_path)
        assert stored.model.is_trained
        assert len(stored.training_data) == 1

    def test_appends_and_refits(self, runner, base_args, trained):
        result = runner.invoke(main, base_args + [
            "learn", "--label", "ham", "--model", str(trained), "--text", "lunch on friday",
        ])
        assert result.exit_code == 0, result.output
        stored = load_model(trained)
        assert len(stored.training_data) == 15
        assert stored.model.total_documents == 15
        assert stored.model.class_doc_count[stored.training_data[-1].label] == 8

    def test_rejects_unknown_label(self, runner, base_args, model_path):
        result = runner.invoke(main, base_args + [
            "learn", "--label", "eggs", "--model", str(model_path), "--text", "hello",
        ])
        assert result.exit_code == 2

    def test_rejects_blank_text(self, runner, base_args, model_path):
        result = runner.invoke(main, base_args + [
            "learn", "--label", "ham", "--model", str(model_path), "--text", "   ",
        ])
        assert result.exit_code == 2
        assert "must not be blank" in result.output
        assert not model_path.exists()


class TestInfo:
    def test_json(self, runner, base_args, trained):
        result = runner.invoke(main, base_args + ["info", "--model", str(trained), "-o", "json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["training_size"] == 14
        assert data["vocabulary_size"] > 0

    def test_missing_model(self, runner, base_args, model_path):
        result = runner.invoke(main, base_args + ["info", "--model", str(model_path)])
        assert result.exit_code == 1


class TestEvaluate:
    def test_json(self, runner, base_args, corpus_file):
        result = runner.invoke(main, base_args + [
            "evaluate", str(corpus_file), "-k", "2", "--min-df", "1", "--output", "json",
        ])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert len(data["folds"]) == 2
        assert all(0.0 <= f["false_positive_rate"] <= 1.0 for f in data["folds"])
        confusion = data["pooled"]["confusion"]
        assert confusion["true_positives"] + confusion["false_negatives"] == 7
        assert confusion["true_negatives"] + confusion["false_positives"] == 7

    def test_threshold_one_flags_nothing(self, runner, base_args, corpus_file):
        result = runner.invoke(main, base_args + [
            "evaluate", str(corpus_file), "-k", "2", "--min-df", "1",
            "--threshold", "1.0", "-o", "json",
        ])
        assert result.exit_code == 0, result.output
        pooled = json.loads(result.output)["pooled"]
        assert pooled["false_positive_rate"] == 0.0
        assert pooled["confusion"]["true_negatives"] == 7

    def test_rich_table(self, runner, base_args, corpus_file):
        result = runner.invoke(main, base_args + ["evaluate", str(corpus_file), "-k", "2"])
        assert result.exit_code == 0, result.output
        assert "Pooled accuracy" in result.output
        assert "Ham FP rate" in result.output

    def test_invalid_k(self, runner, base_args, corpus_file):
        result = runner.invoke(main, base_args + ["evaluate", str(corpus_file), "-k", "1"])
        assert result.exit_code == 1
        assert "at least 2" in result.output


class TestConfigOption:
    def test_invalid_config_file(self, runner, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("[classifier]\nmin_df = 0\n", encoding="utf-8")
        result = runner.invoke(main, ["--config", str(path), "info"])
        assert result.exit_code == 1
        assert "min_df" in result.output
