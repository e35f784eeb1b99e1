"""Spam classification with TF-IDF weighted multinomial Naive Bayes.

The pipeline, in pure Python:

- feature extraction per email (see :mod:`spam_guard.extractors`)
- corpus-wide document frequency and per-class word counts
- a vocabulary of features seen in at least ``min_df`` documents
- smoothed inverse document frequency, ``ln((N + 1) / (df + 1)) + 1``
- Naive Bayes with Laplace smoothing, where each query feature's
  log-likelihood is scaled by its TF-IDF weight
- log-domain normalization of the two class scores

A :class:`SpamModel` is an immutable value. :meth:`SpamModel.fit` builds a
new one from a labeled corpus, and :meth:`SpamModel.from_snapshot` rebuilds
one from plain data. Prediction never raises on odd input: an untrained
model answers ``"unknown"`` and missing fields add no features.

Example::

    model = SpamModel.fit(samples, ClassifierConfig(min_df=1))
    result = model.predict({"subject": "Free prize", "body": "claim now"})
    print(result.label, result.probability)

    restored = SpamModel.from_snapshot(model.to_snapshot())
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Union

from .config import ClassifierConfig
from .extractors import FeatureExtractor, Instance
from .models import Label, ModelInfo, Prediction, TrainingSample

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1

# Order matters: snapshots and score maps list spam first.
CLASSES: tuple[Label, ...] = (Label.SPAM, Label.HAM)

CorpusItem = Union[TrainingSample, Mapping[str, Any]]


# ---------------------------------------------------------------------------
# TF-IDF
# ---------------------------------------------------------------------------

def smoothed_idf(document_frequency: int, total_documents: int) -> float:
    """Inverse document frequency, ``ln((N + 1) / (df + 1)) + 1``.

    A feature that no training document contains gets 0. Every other
    feature gets a weight of at least 1, even one present in every document.
    """
    if document_frequency <= 0:
        return 0.0
    return math.log((total_documents + 1) / (document_frequency + 1)) + 1


def term_frequency(features: Iterable[str] | Mapping[str, int]) -> dict[str, float]:
    """Relative frequency of each feature within one instance.

    Args:
        features: Either the feature multiset or precomputed counts.

    Returns:
        ``{feature: count / total}``. Values sum to 1 for a non-empty
        instance; an empty one gives an empty dict.
    """
    counts = features if isinstance(features, Mapping) else Counter(features)
    length = sum(counts.values()) or 1
    return {feature: count / length for feature, count in counts.items()}


# ---------------------------------------------------------------------------
# Vocabulary / Document Frequency
# ---------------------------------------------------------------------------

class VocabularyBuilder:
    """Accumulates corpus statistics one document at a time.

    Document frequency counts each distinct feature once per document.
    Per-class word counts take every occurrence. Features below the
    vocabulary threshold stay in the document-frequency table, because
    idf lookups use it.
    """

    def __init__(self) -> None:
        self.document_frequency: dict[str, int] = {}
        self.class_doc_count: dict[Label, int] = {label: 0 for label in CLASSES}
        self.class_word_counts: dict[Label, dict[str, int]] = {label: {} for label in CLASSES}
        self.class_total_words: dict[Label, int] = {label: 0 for label in CLASSES}
        self.total_documents = 0

    def add(self, counts: Mapping[str, int], label: Label) -> None:
        """Record one document given its per-feature counts."""
        for feature in counts:
            self.document_frequency[feature] = self.document_frequency.get(feature, 0) + 1

        word_counts = self.class_word_counts[label]
        for feature, count in counts.items():
            word_counts[feature] = word_counts.get(feature, 0) + count
            self.class_total_words[label] += count

        self.class_doc_count[label] += 1
        self.total_documents += 1

    def build_vocabulary(self, min_df: int = 2) -> dict[str, int]:
        """Index every feature with document frequency >= ``min_df``.

        Indices follow first-seen order.
        """
        vocabulary: dict[str, int] = {}
        for feature, df in self.document_frequency.items():
            if df >= min_df:
                vocabulary[feature] = len(vocabulary)
        return vocabulary


# ---------------------------------------------------------------------------
# Naive Bayes Model
# ---------------------------------------------------------------------------

def _zero_counts() -> dict[Label, int]:
    return {label: 0 for label in CLASSES}


def _empty_word_counts() -> dict[Label, dict[str, int]]:
    return {label: {} for label in CLASSES}


@dataclass(frozen=True)
class SpamModel:
    """Binary spam/ham classifier over field-aware TF-IDF features.

    Instances are not modified after construction. Build one with
    :meth:`fit` or :meth:`from_snapshot`; ``SpamModel()`` is an empty,
    untrained model.

    Attributes:
        config: Smoothing, vocabulary threshold, and field weights.
        vocabulary: Feature -> index for features that take part in scoring.
        document_frequency: Feature -> number of training documents that
            contain it, for every feature seen in training.
        total_documents: Number of training documents.
        class_doc_count: Documents per class.
        class_word_counts: Feature occurrence counts per class.
        class_total_words: Sum of each class's feature counts.
        is_trained: Whether the model was fitted on at least one document.
    """

    config: ClassifierConfig = field(default_factory=ClassifierConfig)
    vocabulary: dict[str, int] = field(default_factory=dict, repr=False)
    document_frequency: dict[str, int] = field(default_factory=dict, repr=False)
    total_documents: int = 0
    class_doc_count: dict[Label, int] = field(default_factory=_zero_counts)
    class_word_counts: dict[Label, dict[str, int]] = field(
        default_factory=_empty_word_counts, repr=False
    )
    class_total_words: dict[Label, int] = field(default_factory=_zero_counts)
    is_trained: bool = False

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------

    @classmethod
    def fit(
        cls,
        corpus: Iterable[CorpusItem],
        config: Optional[ClassifierConfig] = None,
    ) -> "SpamModel":
        """Build a model from a labeled corpus.

        Each item is a :class:`TrainingSample` or a dict of the form
        ``{"label": "spam", "emailData": {...}}``. The legacy form
        ``{"label": "ham", "text": "..."}`` is tokenized as a whole, with no
        field prefixes. Items with an unknown label or no content are
        skipped.

        Args:
            corpus: Training documents.
            config: Model settings. Defaults to ``ClassifierConfig()``.

        Returns:
            A new trained model, or an untrained one if the corpus held
            no usable documents.
        """
        config = config or ClassifierConfig()
        extractor = FeatureExtractor(config.field_weights)
        builder = VocabularyBuilder()

        for item in corpus:
            sample = item if isinstance(item, TrainingSample) else TrainingSample.from_dict(item)
            label = Label.parse(sample.label) if sample is not None else None
            if sample is None or label is None or not sample.is_usable:
                logger.debug(f"Skipping malformed training sample: {item!r}")
                continue

            if sample.email is not None:
                counts = extractor.count(sample.email)
            else:
                counts = extractor.count_instance(sample.text)
            builder.add(counts, label)

        if builder.total_documents == 0:
            logger.info("No training data provided")
            return cls(config=config)

        vocabulary = builder.build_vocabulary(config.min_df)
        logger.info(
            f"Trained with {builder.total_documents} docs "
            f"(spam: {builder.class_doc_count[Label.SPAM]}, "
            f"ham: {builder.class_doc_count[Label.HAM]}), vocab: {len(vocabulary)}"
        )

        return cls(
            config=config,
            vocabulary=vocabulary,
            document_frequency=builder.document_frequency,
            total_documents=builder.total_documents,
            class_doc_count=builder.class_doc_count,
            class_word_counts=builder.class_word_counts,
            class_total_words=builder.class_total_words,
            is_trained=True,
        )

    # ------------------------------------------------------------------
    # Weighting
    # ------------------------------------------------------------------

    def features(self, instance: Instance) -> Counter[str]:
        """Per-feature counts of an email record, record dict, or raw text."""
        return FeatureExtractor(self.config.field_weights).count_instance(instance)

    def idf(self, feature: str) -> float:
        return smoothed_idf(self.document_frequency.get(feature, 0), self.total_documents)

    def tfidf(self, instance: Instance) -> dict[str, float]:
        """TF-IDF weight of every feature of ``instance`` known to the model.

        Features never seen in training are dropped before term frequency
        is normalized, so they do not dilute the weight of known features.
        """
        counts = self.features(instance)
        known = {f: c for f, c in counts.items() if self.document_frequency.get(f, 0) > 0}
        return {f: tf * self.idf(f) for f, tf in term_frequency(known).items()}

    # ------------------------------------------------------------------
    # Prediction
    # ------------------------------------------------------------------

    def log_scores(self, instance: Instance) -> dict[Label, float]:
        """Unnormalized log posterior per class.

        ``ln P(c) + sum(tfidf(f) * ln P(f | c))`` over the instance's
        features that are in the vocabulary.
        """
        vector = self.tfidf(instance)
        alpha = self.config.alpha
        vocab_size = len(self.vocabulary) or 1

        scores: dict[Label, float] = {}
        for label in CLASSES:
            prior = (self.class_doc_count[label] + alpha) / (self.total_documents + 2 * alpha)
            score = math.log(prior)

            word_counts = self.class_word_counts[label]
            denominator = self.class_total_words[label] + alpha * vocab_size
            for feature, weight in vector.items():
                if feature not in self.vocabulary:
                    continue
                numerator = word_counts.get(feature, 0) + alpha
                score += weight * math.log(numerator / denominator)

            scores[label] = score
        return scores

    def predict(self, instance: Instance) -> Prediction:
        """Classify one email record, record dict, or raw text.

        Returns:
            The more probable label with its probability and both class
            scores. An untrained model returns ``Prediction.unknown()``.
        """
        if not self.is_trained:
            return Prediction.unknown()

        log_scores = self.log_scores(instance)

        # Shift by the max before exponentiating (two-class log-sum-exp)
        max_score = max(log_scores.values())
        exp_scores = {label: math.exp(s - max_score) for label, s in log_scores.items()}
        total = sum(exp_scores.values())
        probabilities = {label.value: exp_scores[label] / total for label in CLASSES}

        spam, ham = probabilities[Label.SPAM.value], probabilities[Label.HAM.value]
        predicted = Label.SPAM if spam > ham else Label.HAM

        return Prediction(
            label=predicted.value,
            probability=probabilities[predicted.value],
            scores=probabilities,
        )

    def top_features(self, instance: Instance, n: int = 10) -> list[tuple[str, float]]:
        """The ``n`` highest-weighted vocabulary features of an instance.

        For display. Scoring does not use this.
        """
        vector = self.tfidf(instance)
        ranked = sorted(
            ((f, w) for f, w in vector.items() if f in self.vocabulary),
            key=lambda x: x[1],
            reverse=True,
        )
        return ranked[: max(n, 0)]

    def info(self) -> ModelInfo:
        return ModelInfo(
            is_trained=self.is_trained,
            vocabulary_size=len(self.vocabulary),
            training_size=self.total_documents,
            class_distribution={label.value: self.class_doc_count[label] for label in CLASSES},
        )

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def to_snapshot(self) -> dict[str, Any]:
        """Serialize the full model state to JSON-compatible plain data.

        Maps are written as ``[key, value]`` lists so that order survives.
        """
        return {
            "version": SNAPSHOT_VERSION,
            "config": self.config.to_dict(),
            "vocabulary": [[f, i] for f, i in self.vocabulary.items()],
            "document_frequency": [[f, n] for f, n in self.document_frequency.items()],
            "total_documents": self.total_documents,
            "class_doc_count": {label.value: self.class_doc_count[label] for label in CLASSES},
            "class_word_counts": {
                label.value: [[f, n] for f, n in self.class_word_counts[label].items()]
                for label in CLASSES
            },
            "class_total_words": {
                label.value: self.class_total_words[label] for label in CLASSES
            },
            "is_trained": self.is_trained,
        }

    @classmethod
    def from_snapshot(cls, data: Any) -> "SpamModel":
        """Rebuild a model from :meth:`to_snapshot` output.

        Never raises. Each missing or malformed field falls back to its
        empty default, so a corrupt snapshot gives an untrained model.
        """
        if not isinstance(data, Mapping):
            logger.warning("Snapshot is not a mapping; starting from an empty model")
            return cls()

        word_counts = {
            label: _read_count_map(
                _class_entry(data.get("class_word_counts"), label),
                f"class_word_counts.{label.value}",
            )
            for label in CLASSES
        }

        stored_totals = data.get("class_total_words")
        total_words: dict[Label, int] = {}
        for label in CLASSES:
            value = _class_entry(stored_totals, label)
            if _is_count(value):
                total_words[label] = value
            else:
                total_words[label] = sum(word_counts[label].values())

        doc_counts = {
            label: _read_count(
                _class_entry(data.get("class_doc_count"), label),
                f"class_doc_count.{label.value}",
            )
            for label in CLASSES
        }

        return cls(
            config=_read_config(data.get("config")),
            vocabulary=_read_count_map(data.get("vocabulary"), "vocabulary"),
            document_frequency=_read_count_map(
                data.get("document_frequency"), "document_frequency"
            ),
            total_documents=_read_count(data.get("total_documents"), "total_documents"),
            class_doc_count=doc_counts,
            class_word_counts=word_counts,
            class_total_words=total_words,
            is_trained=data.get("is_trained") is True,
        )


# ---------------------------------------------------------------------------
# Snapshot field readers
# ---------------------------------------------------------------------------

def _is_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _class_entry(value: Any, label: Label) -> Any:
    if isinstance(value, Mapping):
        return value.get(label.value)
    return None


def _read_count(value: Any, name: str) -> int:
    if _is_count(value):
        return value
    if value is not None:
        logger.warning(f"Snapshot field '{name}' is malformed; using 0")
    return 0


def _read_count_map(value: Any, name: str) -> dict[str, int]:
    """Read ``[[key, count], ...]`` (or a dict) into an ordered dict."""
    if value is None:
        return {}

    items = value.items() if isinstance(value, Mapping) else value
    result: dict[str, int] = {}
    try:
        for key, count in items:
            if not isinstance(key, str) or not _is_count(count):
                raise ValueError(f"bad entry {key!r}: {count!r}")
            result[key] = count
    except (TypeError, ValueError) as e:
        logger.warning(f"Snapshot field '{name}' is malformed ({e}); using empty")
        return {}
    return result


def _read_config(value: Any) -> ClassifierConfig:
    if not isinstance(value, Mapping):
        return ClassifierConfig()
    try:
        return ClassifierConfig.from_dict(value)
    except (TypeError, ValueError) as e:
        logger.warning(f"Snapshot config is malformed ({e}); using defaults")
        return ClassifierConfig()
