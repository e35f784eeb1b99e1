"""Shared test fixtures for spam-guard tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from spam_guard.classifier import SpamModel
from spam_guard.config import ClassifierConfig
from spam_guard.corpus import default_training_data, save_corpus
from spam_guard.models import TrainingSample


@pytest.fixture
def two_doc_corpus() -> list[dict]:
    """One spam and one ham email with no words in common."""
    return [
        {
            "label": "spam",
            "emailData": {"subject": "Win a free prize now", "body": "prize prize click"},
        },
        {
            "label": "ham",
            "emailData": {"subject": "Meeting notes", "body": "meeting notes attached"},
        },
    ]


@pytest.fixture
def two_doc_model(two_doc_corpus: list[dict]) -> SpamModel:
    """Model fitted on the two-document corpus, keeping every feature."""
    return SpamModel.fit(two_doc_corpus, ClassifierConfig(min_df=1))


@pytest.fixture
def seed_samples() -> list[TrainingSample]:
    """The built-in 14-email English/Chinese corpus."""
    return default_training_data()


@pytest.fixture
def seed_model(seed_samples: list[TrainingSample]) -> SpamModel:
    """Model fitted on the built-in corpus with the default settings."""
    return SpamModel.fit(seed_samples)


@pytest.fixture
def corpus_file(tmp_path: Path, seed_samples: list[TrainingSample]) -> Path:
    """The built-in corpus written to a JSON file."""
    path = tmp_path / "corpus.json"
    save_corpus(seed_samples, path)
    return path
