"""Spam Guard -- TF-IDF weighted Naive Bayes spam filtering for email."""

__version__ = "0.3.0"

from .classifier import SpamModel, VocabularyBuilder, smoothed_idf, term_frequency
from .config import (
    ClassifierConfig,
    FieldWeights,
    SpamGuardConfig,
    TriageConfig,
    load_config,
)
from .corpus import (
    balance_corpus,
    default_training_data,
    load_corpus,
    save_corpus,
)
from .evaluation import (
    ClassificationMetrics,
    compute_metrics,
    cross_validate,
    pool_metrics,
    stratified_k_fold,
)
from .extractors import FeatureExtractor, extract_features, parse_sender
from .models import EmailRecord, Label, ModelInfo, Prediction, TrainingSample
from .preprocessing import tokenize
from .store import StoredModel, load_model, save_model
from .triage import Action, SpamTriage, Verdict, has_spam_header

__all__ = [
    # Core
    "SpamModel",
    "EmailRecord",
    "Label",
    "Prediction",
    "ModelInfo",
    "TrainingSample",
    # Features
    "tokenize",
    "FeatureExtractor",
    "extract_features",
    "parse_sender",
    "VocabularyBuilder",
    "term_frequency",
    "smoothed_idf",
    # Configuration
    "SpamGuardConfig",
    "ClassifierConfig",
    "FieldWeights",
    "TriageConfig",
    "load_config",
    # Triage
    "SpamTriage",
    "Verdict",
    "Action",
    "has_spam_header",
    # Corpus and persistence
    "load_corpus",
    "save_corpus",
    "balance_corpus",
    "default_training_data",
    "StoredModel",
    "save_model",
    "load_model",
    # Evaluation
    "ClassificationMetrics",
    "compute_metrics",
    "cross_validate",
    "pool_metrics",
    "stratified_k_fold",
]
