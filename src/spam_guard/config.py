"""Configuration for the spam classifier and the triage step.

Settings live in frozen dataclasses with validated defaults. A TOML file
can override any of them::

    [classifier]
    alpha = 1.0
    min_df = 2

    [classifier.field_weights]
    sender = 1
    subject = 2
    body = 1

    [triage]
    flag_threshold = 0.7
    auto_move_threshold = 0.99

    [training]
    max_training_samples = 500

The file is looked up in ``$XDG_CONFIG_HOME/spam-guard/config.toml`` unless
an explicit path is given. The trained model is kept under
``$XDG_DATA_HOME/spam-guard/``.
"""

from __future__ import annotations

import math
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

APP_NAME = "spam-guard"

DEFAULT_SPAM_HEADERS: tuple[tuple[str, str], ...] = (
    ("x-spam-status", "Yes"),
    ("x-spam-flag", "YES"),
    ("x-hines-imss-spam", "SPAM"),
)


# ---------------------------------------------------------------------------
# XDG Directories
# ---------------------------------------------------------------------------

def get_xdg_config_home() -> Path:
    """Return ``$XDG_CONFIG_HOME/spam-guard`` (default ``~/.config/spam-guard``)."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg_config) if xdg_config else Path.home() / ".config"
    return base / APP_NAME


def get_xdg_data_home() -> Path:
    """Return ``$XDG_DATA_HOME/spam-guard`` (default ``~/.local/share/spam-guard``)."""
    xdg_data = os.environ.get("XDG_DATA_HOME")
    base = Path(xdg_data) if xdg_data else Path.home() / ".local" / "share"
    return base / APP_NAME


def default_config_path() -> Path:
    return get_xdg_config_home() / "config.toml"


def default_model_path() -> Path:
    return get_xdg_data_home() / "model.json"


def _check_int(name: str, value: Any, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ValueError(f"{name} must be an integer >= {minimum}, got {value!r}")


# ---------------------------------------------------------------------------
# Classifier Settings
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FieldWeights:
    """Per-field count multipliers used when turning an email into features.

    Every token occurrence of a field contributes ``weight`` counts. Sender
    features go to the ``name_``/``domain_``/``tld_`` channels, body tokens
    to the bare channel. A subject token puts one count in its ``subj_``
    channel and the remaining ``subject - 1`` counts in the bare channel,
    so the default ``subject=2`` gives subject words twice the weight of
    the same word in the body.

    Attributes:
        sender: Weight of sender name and sender address features.
        subject: Weight of subject tokens.
        body: Weight of body tokens.
    """

    sender: int = 1
    subject: int = 2
    body: int = 1

    def __post_init__(self) -> None:
        for name in ("sender", "subject", "body"):
            _check_int(f"field weight '{name}'", getattr(self, name), 0)

    def to_dict(self) -> dict[str, int]:
        return {"sender": self.sender, "subject": self.subject, "body": self.body}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FieldWeights":
        defaults = cls()
        return cls(
            sender=data.get("sender", defaults.sender),
            subject=data.get("subject", defaults.subject),
            body=data.get("body", defaults.body),
        )


@dataclass(frozen=True)
class ClassifierConfig:
    """Settings for fitting a :class:`~spam_guard.classifier.SpamModel`.

    Attributes:
        alpha: Laplace smoothing constant (must be positive).
        min_df: Minimum document frequency for a feature to enter the
            vocabulary.
        field_weights: Per-field count multipliers.
    """

    alpha: float = 1.0
    min_df: int = 2
    field_weights: FieldWeights = field(default_factory=FieldWeights)

    def __post_init__(self) -> None:
        if (
            isinstance(self.alpha, bool)
            or not isinstance(self.alpha, (int, float))
            or not math.isfinite(self.alpha)
            or self.alpha <= 0
        ):
            raise ValueError(f"alpha must be a positive finite number, got {self.alpha!r}")
        _check_int("min_df", self.min_df, 1)

    def to_dict(self) -> dict[str, Any]:
        return {
            "alpha": self.alpha,
            "min_df": self.min_df,
            "field_weights": self.field_weights.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ClassifierConfig":
        defaults = cls()
        weights = data.get("field_weights")
        return cls(
            alpha=data.get("alpha", defaults.alpha),
            min_df=data.get("min_df", defaults.min_df),
            field_weights=FieldWeights.from_dict(weights if isinstance(weights, dict) else {}),
        )


# ---------------------------------------------------------------------------
# Triage Settings
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TriageConfig:
    """Thresholds the triage step applies to a prediction.

    Attributes:
        flag_threshold: Spam score at or above which a message is flagged.
        auto_move_threshold: Spam score at or above which a message should
            be moved to the junk folder. Must not be below ``flag_threshold``.
        use_classifier: Consult the model when no spam header is present.
        top_keywords: Number of top features attached to a spam verdict.
        spam_headers: ``(header, value)`` pairs that mark a message as spam.
    """

    flag_threshold: float = 0.7
    auto_move_threshold: float = 0.99
    use_classifier: bool = True
    top_keywords: int = 5
    spam_headers: tuple[tuple[str, str], ...] = DEFAULT_SPAM_HEADERS

    def __post_init__(self) -> None:
        if not 0.0 <= self.flag_threshold <= self.auto_move_threshold <= 1.0:
            raise ValueError(
                "thresholds must satisfy 0 <= flag_threshold <= auto_move_threshold <= 1, "
                f"got {self.flag_threshold} and {self.auto_move_threshold}"
            )
        _check_int("top_keywords", self.top_keywords, 0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "flag_threshold": self.flag_threshold,
            "auto_move_threshold": self.auto_move_threshold,
            "use_classifier": self.use_classifier,
            "top_keywords": self.top_keywords,
            "spam_headers": [list(pair) for pair in self.spam_headers],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TriageConfig":
        defaults = cls()
        headers = data.get("spam_headers")
        return cls(
            flag_threshold=float(data.get("flag_threshold", defaults.flag_threshold)),
            auto_move_threshold=float(data.get("auto_move_threshold", defaults.auto_move_threshold)),
            use_classifier=bool(data.get("use_classifier", defaults.use_classifier)),
            top_keywords=data.get("top_keywords", defaults.top_keywords),
            spam_headers=(
                tuple((str(name), str(value)) for name, value in headers)
                if headers is not None
                else defaults.spam_headers
            ),
        )


# ---------------------------------------------------------------------------
# Top-Level Configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SpamGuardConfig:
    """Complete application configuration.

    Attributes:
        classifier: Model fitting settings.
        triage: Verdict thresholds.
        max_training_samples: Per-class cap used when balancing a corpus.
        model_path: Where the CLI stores the trained model.
    """

    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    triage: TriageConfig = field(default_factory=TriageConfig)
    max_training_samples: int = 500
    model_path: Optional[Path] = None

    def __post_init__(self) -> None:
        _check_int("max_training_samples", self.max_training_samples, 1)

    @property
    def resolved_model_path(self) -> Path:
        return self.model_path or default_model_path()

    def to_dict(self) -> dict[str, Any]:
        training: dict[str, Any] = {"max_training_samples": self.max_training_samples}
        if self.model_path is not None:
            training["model_path"] = str(self.model_path)
        return {
            "classifier": self.classifier.to_dict(),
            "triage": self.triage.to_dict(),
            "training": training,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SpamGuardConfig":
        training = data.get("training") or {}
        model_path = training.get("model_path")
        return cls(
            classifier=ClassifierConfig.from_dict(data.get("classifier") or {}),
            triage=TriageConfig.from_dict(data.get("triage") or {}),
            max_training_samples=training.get("max_training_samples", 500),
            model_path=Path(model_path).expanduser() if model_path else None,
        )


def load_config(path: str | Path | None = None) -> SpamGuardConfig:
    """Load configuration from a TOML file.

    Args:
        path: Config file to read. Defaults to the XDG location.

    Returns:
        The parsed configuration, or defaults when the file does not exist.

    Raises:
        ValueError: If the file is not valid TOML or holds invalid values.
    """
    config_path = Path(path) if path else default_config_path()
    if not config_path.exists():
        return SpamGuardConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid config file {config_path}: {e}") from e

    return SpamGuardConfig.from_dict(data)
