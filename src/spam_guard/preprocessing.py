"""Text normalization and tokenization for email content.

Turns raw text (plain or HTML) into lowercase word tokens:

- markup tags are dropped
- a URL is reduced to its host, so ``https://promo.example.com/x?id=1``
  becomes ``promo.example.com``
- an embedded email address is reduced to its domain
- everything except ASCII word characters, CJK ideographs, ``@``, ``.``
  and ``-`` is treated as a separator
- single-character tokens are discarded

There is no stopword list. Words that occur everywhere are handled by the
inverse document frequency, and rare ones by the vocabulary threshold.
"""

from __future__ import annotations

import re
from typing import Any

_TAG_RE = re.compile(r"<[^>]*>")
_URL_RE = re.compile(r"https?://([^\s/]+)\S*")
_EMAIL_RE = re.compile(r"[\w.-]+@([\w.-]+)", re.ASCII)
# CJK Unified Ideographs count as word characters
_SEPARATOR_RE = re.compile(r"[^\w\u4e00-\u9fff@.-]", re.ASCII)

MIN_TOKEN_LENGTH = 2


def normalize(text: str) -> str:
    """Lowercase ``text`` and reduce markup, URLs and addresses to plain words."""
    text = text.lower()
    text = _TAG_RE.sub(" ", text)
    text = _URL_RE.sub(r" \1 ", text)
    text = _EMAIL_RE.sub(r" \1 ", text)
    return _SEPARATOR_RE.sub(" ", text)


def tokenize(text: Any) -> list[str]:
    """Split text into lowercase tokens of at least two characters.

    Args:
        text: Raw text. ``None`` or a non-string value yields no tokens.

    Returns:
        Tokens in the order they appear.
    """
    if not text or not isinstance(text, str):
        return []
    return [t for t in normalize(text).split() if len(t) >= MIN_TOKEN_LENGTH]
