"""Data models for spam classification."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional

UNKNOWN_LABEL = "unknown"


class Label(str, Enum):
    """The two classes a message can belong to."""

    SPAM = "spam"
    HAM = "ham"

    @classmethod
    def parse(cls, value: Any) -> Optional["Label"]:
        """Return the matching label, or ``None`` for anything else."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return None
        return None


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


@dataclass(frozen=True)
class EmailRecord:
    """The structured fields of one email the classifier looks at."""

    sender_name: str = ""
    sender_email: str = ""
    subject: str = ""
    body: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EmailRecord":
        """Build a record from ``senderName``-style or ``sender_name``-style keys.

        Missing or non-string fields become empty strings.
        """
        if not isinstance(data, Mapping):
            return cls()
        return cls(
            sender_name=_text(data.get("senderName", data.get("sender_name"))),
            sender_email=_text(data.get("senderEmail", data.get("sender_email"))),
            subject=_text(data.get("subject")),
            body=_text(data.get("body")),
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "senderName": self.sender_name,
            "senderEmail": self.sender_email,
            "subject": self.subject,
            "body": self.body,
        }


@dataclass(frozen=True)
class TrainingSample:
    """A labeled training document.

    Either ``email`` (structured, field-prefixed features) or ``text``
    (legacy form, tokenized as a whole) carries the content. Blank text
    counts as no content.
    """

    label: Label
    email: Optional[EmailRecord] = None
    text: Optional[str] = None

    @property
    def is_usable(self) -> bool:
        return self.email is not None or bool(self.text and self.text.strip())

    @classmethod
    def from_dict(cls, data: Any) -> Optional["TrainingSample"]:
        """Parse ``{label, emailData}`` or ``{label, text}``.

        Returns:
            The sample, or ``None`` if the label is not spam/ham or the
            entry has no content.
        """
        if not isinstance(data, Mapping):
            return None
        label = Label.parse(data.get("label"))
        if label is None:
            return None

        email_data = data.get("emailData", data.get("email"))
        if isinstance(email_data, Mapping):
            return cls(label=label, email=EmailRecord.from_dict(email_data))
        text = data.get("text")
        if isinstance(text, str) and text.strip():
            return cls(label=label, text=text)
        return None

    def to_dict(self) -> dict[str, Any]:
        if self.email is not None:
            return {"label": self.label.value, "emailData": self.email.to_dict()}
        return {"label": self.label.value, "text": self.text or ""}


@dataclass
class Prediction:
    """Result of classifying a single message.

    Attributes:
        label: ``"spam"``, ``"ham"``, or ``"unknown"`` for an untrained model.
        probability: Normalized probability of ``label`` (0 when unknown).
        scores: Probability per class; empty when unknown.
    """

    label: str
    probability: float
    scores: dict[str, float] = field(default_factory=dict)

    @classmethod
    def unknown(cls) -> "Prediction":
        return cls(label=UNKNOWN_LABEL, probability=0.0, scores={})

    @property
    def is_unknown(self) -> bool:
        return self.label == UNKNOWN_LABEL

    @property
    def spam_score(self) -> float:
        return self.scores.get(Label.SPAM.value, 0.0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "probability": round(self.probability, 4),
            "scores": {k: round(v, 4) for k, v in self.scores.items()},
        }


@dataclass
class ModelInfo:
    """Summary of a model's training state."""

    is_trained: bool
    vocabulary_size: int
    training_size: int
    class_distribution: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_trained": self.is_trained,
            "vocabulary_size": self.vocabulary_size,
            "training_size": self.training_size,
            "class_distribution": self.class_distribution,
        }
