"""Feature extraction from structured email records.

An email is split into feature channels that share one vocabulary:

- ``name_<token>`` for words of the sender's display name
- ``domain_<domain>`` and ``tld_<tld>`` for the sender's address
- ``subj_<token>`` for subject words
- bare ``<token>`` for body words, and again for subject words

The subject appears in two channels on purpose. A word like "prize" in the
subject counts both as ``subj_prize`` and as ``prize``, so subject words
carry twice the weight of body words. :class:`~spam_guard.config.FieldWeights`
makes these multipliers explicit.
"""

from __future__ import annotations

import re
from collections import Counter
from typing import Any, Mapping, Union

from .config import FieldWeights
from .models import EmailRecord
from .preprocessing import tokenize

NAME_PREFIX = "name_"
DOMAIN_PREFIX = "domain_"
TLD_PREFIX = "tld_"
SUBJECT_PREFIX = "subj_"

_DOMAIN_RE = re.compile(r"@([\w.-]+)", re.ASCII)
_SENDER_RE = re.compile(r"^(.+?)\s*<([^>]+)>$")

# What a classifier instance can be: a structured record, its dict form,
# or raw text.
Instance = Union[EmailRecord, Mapping[str, Any], str, None]


def parse_sender(author: Any) -> tuple[str, str]:
    """Split an author header into ``(name, email)``.

    Handles ``"Name <user@host>"``, a bare address, and a bare name.

    Example::

        >>> parse_sender("Prize Dept <winner@lottery.com>")
        ('Prize Dept', 'winner@lottery.com')
    """
    if not author or not isinstance(author, str):
        return "", ""

    match = _SENDER_RE.match(author.strip())
    if match:
        return match.group(1).strip(), match.group(2).strip()
    if "@" in author:
        return "", author.strip()
    return author.strip(), ""


def sender_domain_features(sender_email: str) -> list[str]:
    """Return ``domain_<domain>`` and ``tld_<tld>`` for an address.

    The TLD is the text after the last dot, so a domain with a trailing dot
    gives a bare ``tld_``.
    """
    match = _DOMAIN_RE.search(sender_email or "")
    if not match:
        return []
    domain = match.group(1).lower()
    tld = domain.rsplit(".", 1)[-1]
    return [f"{DOMAIN_PREFIX}{domain}", f"{TLD_PREFIX}{tld}"]


class FeatureExtractor:
    """Turns an email into a weighted multiset of feature strings.

    Example::

        extractor = FeatureExtractor()
        extractor.extract(EmailRecord(subject="Free prize", body="claim now"))
        # ['subj_free', 'subj_prize', 'free', 'prize', 'claim', 'now']

    Args:
        weights: Per-field multipliers. Defaults to sender 1, subject 2,
            body 1.
    """

    def __init__(self, weights: FieldWeights | None = None) -> None:
        self.weights = weights or FieldWeights()

    def weighted_features(self, email: EmailRecord) -> list[tuple[str, int]]:
        """Return ``(feature, count)`` pairs in emission order.

        Pairs with a zero count are left out. The same feature may appear
        in several pairs (e.g. a word in both subject and body).
        """
        w = self.weights
        pairs: list[tuple[str, int]] = []

        for token in tokenize(email.sender_name):
            pairs.append((f"{NAME_PREFIX}{token}", w.sender))
        for feature in sender_domain_features(email.sender_email):
            pairs.append((feature, w.sender))

        subject_tokens = tokenize(email.subject)
        prefixed = min(w.subject, 1)
        bare = max(w.subject - 1, 0)
        for token in subject_tokens:
            pairs.append((f"{SUBJECT_PREFIX}{token}", prefixed))
        for token in subject_tokens:
            pairs.append((token, bare))

        for token in tokenize(email.body):
            pairs.append((token, w.body))

        return [(feature, count) for feature, count in pairs if count > 0]

    def extract(self, email: EmailRecord) -> list[str]:
        """Return the flat feature multiset, duplicates preserved."""
        features: list[str] = []
        for feature, count in self.weighted_features(email):
            features.extend([feature] * count)
        return features

    def count(self, email: EmailRecord) -> Counter[str]:
        """Return per-feature occurrence counts for one email."""
        counts: Counter[str] = Counter()
        for feature, count in self.weighted_features(email):
            counts[feature] += count
        return counts

    def count_instance(self, instance: Instance) -> Counter[str]:
        """Count features of a record, a record dict, or raw text.

        Raw text is tokenized as a whole without field prefixes. Any other
        value yields an empty document.
        """
        if isinstance(instance, EmailRecord):
            return self.count(instance)
        if isinstance(instance, str):
            return Counter(tokenize(instance))
        if isinstance(instance, Mapping):
            return self.count(EmailRecord.from_dict(instance))
        return Counter()


def extract_features(
    email: EmailRecord | Mapping[str, Any],
    weights: FieldWeights | None = None,
) -> list[str]:
    """Extract the feature multiset for one email.

    Args:
        email: An :class:`EmailRecord` or a dict with ``senderName``,
            ``senderEmail``, ``subject`` and ``body`` keys (any may be missing).
        weights: Optional per-field multipliers.

    Returns:
        Feature strings in emission order: sender name, sender domain and
        TLD, prefixed subject, bare subject, body.
    """
    if not isinstance(email, EmailRecord):
        email = EmailRecord.from_dict(email)
    return FeatureExtractor(weights).extract(email)
