"""Turn a prediction into an action for the mail host.

Triage runs two checks in order:

1. Server-side spam headers (``X-Spam-Flag: YES`` and friends). A hit is
   treated as certain spam.
2. The classifier. A ``spam`` prediction whose spam score reaches the flag
   threshold is reported. If it also reaches the auto-move threshold, the
   host should move the message to the junk folder.

This module only decides. Moving messages and notifying the user belong to
the host application.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Sequence, Union

from .classifier import SpamModel
from .config import DEFAULT_SPAM_HEADERS, TriageConfig
from .extractors import Instance
from .models import Label

logger = logging.getLogger(__name__)

HeaderValue = Union[str, Sequence[str]]


class Action(str, Enum):
    """What the host should do with a message."""

    NONE = "none"
    FLAG = "flag"
    MOVE = "move"


class Method(str, Enum):
    """Which check produced a spam verdict."""

    HEADER = "header"
    ML = "ml"


@dataclass
class Verdict:
    """Outcome of triaging one message."""

    is_spam: bool
    action: Action = Action.NONE
    method: Optional[Method] = None
    probability: float = 0.0
    top_keywords: list[tuple[str, float]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_spam": self.is_spam,
            "action": self.action.value,
            "method": self.method.value if self.method else None,
            "probability": round(self.probability, 4),
            "top_keywords": [
                {"word": word, "score": round(score, 4)} for word, score in self.top_keywords
            ],
        }


def has_spam_header(
    headers: Optional[Mapping[str, HeaderValue]],
    spam_headers: Sequence[tuple[str, str]] = DEFAULT_SPAM_HEADERS,
) -> bool:
    """Check whether any configured spam header carries its spam value.

    Header names are compared case-insensitively. A header value may be a
    single string or a list of strings (repeated headers); it matches if
    it contains the expected value, ignoring case.
    """
    if not headers:
        return False

    lowered = {str(name).lower(): value for name, value in headers.items()}
    for name, expected in spam_headers:
        value = lowered.get(name.lower())
        if not value:
            continue
        values = [value] if isinstance(value, str) else value
        for v in values:
            if isinstance(v, str) and expected.upper() in v.upper():
                return True
    return False


class SpamTriage:
    """Applies header checks and classifier thresholds to messages.

    Example::

        triage = SpamTriage(model, TriageConfig(flag_threshold=0.8))
        verdict = triage.evaluate(email, headers={"X-Spam-Flag": ["YES"]})
        if verdict.action is Action.MOVE:
            host.move_to_junk(message)

    Args:
        model: A fitted model. An untrained one never yields an ML verdict.
        config: Thresholds and header rules.
    """

    def __init__(self, model: SpamModel, config: TriageConfig | None = None) -> None:
        self.model = model
        self.config = config or TriageConfig()

    def evaluate(
        self,
        email: Instance,
        headers: Optional[Mapping[str, HeaderValue]] = None,
    ) -> Verdict:
        """Triage one message."""
        cfg = self.config

        if has_spam_header(headers, cfg.spam_headers):
            logger.info("Spam header present")
            return Verdict(is_spam=True, action=Action.MOVE, method=Method.HEADER, probability=1.0)

        if not cfg.use_classifier or not self.model.is_trained:
            return Verdict(is_spam=False)

        prediction = self.model.predict(email)
        spam_score = prediction.spam_score
        if prediction.label != Label.SPAM.value or spam_score < cfg.flag_threshold:
            return Verdict(is_spam=False, probability=spam_score)

        action = Action.MOVE if spam_score >= cfg.auto_move_threshold else Action.FLAG
        logger.info(f"ML spam ({spam_score:.1%}), action: {action.value}")
        return Verdict(
            is_spam=True,
            action=action,
            method=Method.ML,
            probability=spam_score,
            top_keywords=self.model.top_features(email, cfg.top_keywords),
        )
