"""Offline evaluation of spam models.

Spam is the positive class. Alongside accuracy, precision, recall and F1
on spam, the false-positive rate on ham is reported: the share of
legitimate mail the filter would flag.

A prediction counts as spam only when its label is ``spam`` and, if a
threshold is given, its spam score reaches it, the same rule triage
applies. ``"unknown"`` (untrained model) counts as not spam.

Example::

    results = cross_validate(samples, k=5, threshold=0.7)
    pooled = pool_metrics(results)
    print(pooled.summary())
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from .classifier import CLASSES, SpamModel
from .config import ClassifierConfig
from .models import Label, Prediction, TrainingSample


def _ratio(numerator: int, denominator: int) -> float:
    return numerator / denominator if denominator else 0.0


@dataclass
class ClassificationMetrics:
    """Confusion counts for one evaluation run, spam as the positive class.

    Attributes:
        true_positives: Spam caught.
        false_positives: Ham flagged as spam.
        true_negatives: Ham let through.
        false_negatives: Spam missed.
    """

    true_positives: int = 0
    false_positives: int = 0
    true_negatives: int = 0
    false_negatives: int = 0

    @property
    def total(self) -> int:
        return (
            self.true_positives + self.false_positives
            + self.true_negatives + self.false_negatives
        )

    @property
    def spam_support(self) -> int:
        return self.true_positives + self.false_negatives

    @property
    def ham_support(self) -> int:
        return self.true_negatives + self.false_positives

    @property
    def accuracy(self) -> float:
        return _ratio(self.true_positives + self.true_negatives, self.total)

    @property
    def precision(self) -> float:
        """Share of flagged messages that really are spam."""
        return _ratio(self.true_positives, self.true_positives + self.false_positives)

    @property
    def recall(self) -> float:
        """Share of spam that gets flagged."""
        return _ratio(self.true_positives, self.spam_support)

    @property
    def f1(self) -> float:
        p, r = self.precision, self.recall
        return 2 * p * r / (p + r) if p + r > 0 else 0.0

    @property
    def false_positive_rate(self) -> float:
        """Share of ham that gets flagged."""
        return _ratio(self.false_positives, self.ham_support)

    def __add__(self, other: "ClassificationMetrics") -> "ClassificationMetrics":
        return ClassificationMetrics(
            true_positives=self.true_positives + other.true_positives,
            false_positives=self.false_positives + other.false_positives,
            true_negatives=self.true_negatives + other.true_negatives,
            false_negatives=self.false_negatives + other.false_negatives,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "accuracy": round(self.accuracy, 4),
            "precision": round(self.precision, 4),
            "recall": round(self.recall, 4),
            "f1": round(self.f1, 4),
            "false_positive_rate": round(self.false_positive_rate, 4),
            "confusion": {
                "true_positives": self.true_positives,
                "false_positives": self.false_positives,
                "true_negatives": self.true_negatives,
                "false_negatives": self.false_negatives,
            },
        }

    def summary(self) -> str:
        """Human-readable summary."""
        return "\n".join([
            f"Accuracy: {self.accuracy:.2%}",
            f"Spam precision: {self.precision:.4f}  recall: {self.recall:.4f}  F1: {self.f1:.4f}",
            f"Ham false-positive rate: {self.false_positive_rate:.2%}",
            "",
            f"{'':<12} {'flagged':>8} {'passed':>8}",
            f"{'spam':<12} {self.true_positives:>8} {self.false_negatives:>8}",
            f"{'ham':<12} {self.false_positives:>8} {self.true_negatives:>8}",
        ])


def is_flagged(prediction: Prediction, threshold: Optional[float] = None) -> bool:
    """Whether a prediction counts as spam, optionally gated by a threshold."""
    if prediction.label != Label.SPAM.value:
        return False
    return threshold is None or prediction.spam_score >= threshold


def compute_metrics(
    y_true: Sequence[Label | str],
    y_pred: Sequence[Label | str],
) -> ClassificationMetrics:
    """Tally true labels against predicted labels.

    Any predicted label other than ``spam`` (including ``"unknown"``)
    counts as a pass.

    Raises:
        ValueError: If the sequences differ in length or a true label is
            not spam/ham.
    """
    if len(y_true) != len(y_pred):
        raise ValueError("y_true and y_pred must have the same length")

    metrics = ClassificationMetrics()
    for true, pred in zip(y_true, y_pred):
        actual = Label.parse(true)
        if actual is None:
            raise ValueError(f"true label must be spam or ham, got {true!r}")
        flagged = Label.parse(pred) is Label.SPAM

        if actual is Label.SPAM:
            if flagged:
                metrics.true_positives += 1
            else:
                metrics.false_negatives += 1
        elif flagged:
            metrics.false_positives += 1
        else:
            metrics.true_negatives += 1
    return metrics


def pool_metrics(results: Sequence[ClassificationMetrics]) -> ClassificationMetrics:
    """Sum the confusion counts of several runs (e.g. all folds)."""
    pooled = ClassificationMetrics()
    for metrics in results:
        pooled = pooled + metrics
    return pooled


def stratified_k_fold(
    labels: Sequence[Label | str],
    k: int = 5,
    seed: int = 42,
) -> list[tuple[list[int], list[int]]]:
    """Split sample indices into ``k`` train/test folds, keeping the spam/ham mix.

    Each class is shuffled and dealt round-robin across the folds. The deal
    carries on from one class to the next so fold sizes differ by at most
    one. Indices whose label is not spam/ham are left out.

    Raises:
        ValueError: If ``k`` is less than 2.
    """
    if k < 2:
        raise ValueError(f"k must be at least 2, got {k}")

    rng = random.Random(seed)
    folds: list[list[int]] = [[] for _ in range(k)]
    slot = 0
    for label in CLASSES:
        members = [i for i, value in enumerate(labels) if Label.parse(value) is label]
        rng.shuffle(members)
        for idx in members:
            folds[slot % k].append(idx)
            slot += 1

    splits: list[tuple[list[int], list[int]]] = []
    for held_out, test in enumerate(folds):
        train = [idx for n, fold in enumerate(folds) if n != held_out for idx in fold]
        splits.append((sorted(train), sorted(test)))
    return splits


def cross_validate(
    samples: Sequence[TrainingSample],
    k: int = 5,
    config: Optional[ClassifierConfig] = None,
    seed: int = 42,
    threshold: Optional[float] = None,
) -> list[ClassificationMetrics]:
    """Stratified k-fold cross-validation of :class:`SpamModel`.

    A fresh model is fitted on each training split and scored on the
    held-out split. Folds left empty (fewer samples than ``k``) are skipped.

    Args:
        samples: Labeled training samples.
        k: Number of folds.
        config: Model settings for every fold.
        seed: Fold assignment seed.
        threshold: Minimum spam score for a ``spam`` prediction to count as
            flagged, e.g. the triage flag threshold.

    Returns:
        One ClassificationMetrics per non-empty fold.
    """
    results: list[ClassificationMetrics] = []
    for train_idx, test_idx in stratified_k_fold([s.label for s in samples], k=k, seed=seed):
        if not test_idx:
            continue
        model = SpamModel.fit([samples[i] for i in train_idx], config)

        y_true = [samples[i].label for i in test_idx]
        y_pred = [
            Label.SPAM if is_flagged(model.predict(_instance(samples[i])), threshold) else Label.HAM
            for i in test_idx
        ]
        results.append(compute_metrics(y_true, y_pred))
    return results


def _instance(sample: TrainingSample):
    return sample.email if sample.email is not None else sample.text
