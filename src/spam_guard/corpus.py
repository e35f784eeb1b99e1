"""Training corpus loading, saving, and balancing.

A corpus file is a JSON array (or JSON Lines, one object per line) of
samples in either form::

    {"label": "spam", "emailData": {"senderName": "...", "senderEmail": "...",
                                    "subject": "...", "body": "..."}}
    {"label": "ham", "text": "plain text tokenized as a whole"}
"""

from __future__ import annotations

import json
import logging
import random
from pathlib import Path
from typing import Any, Iterable, Optional

from .models import EmailRecord, Label, TrainingSample

logger = logging.getLogger(__name__)

MIN_TRAINING_SAMPLES = 10


def parse_samples(entries: Iterable[Any]) -> list[TrainingSample]:
    """Parse raw entries, skipping (and logging) malformed ones."""
    samples: list[TrainingSample] = []
    for idx, entry in enumerate(entries):
        sample = TrainingSample.from_dict(entry)
        if sample is None:
            logger.warning(f"Skipping malformed training sample #{idx}")
            continue
        samples.append(sample)
    return samples


def load_corpus(path: str | Path) -> list[TrainingSample]:
    """Load training samples from a JSON or JSON Lines file.

    Args:
        path: ``.jsonl`` files are read line by line; anything else must
            hold a JSON array.

    Returns:
        The well-formed samples, in file order.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not valid JSON or not an array.
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        raw = f.read()

    try:
        if path.suffix.lower() == ".jsonl":
            entries = [json.loads(line) for line in raw.splitlines() if line.strip()]
        else:
            entries = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid corpus file {path}: {e}") from e

    if not isinstance(entries, list):
        raise ValueError(f"Corpus file {path} must contain a JSON array of samples")

    samples = parse_samples(entries)
    logger.info(f"Loaded {len(samples)} training samples from {path}")
    return samples


def save_corpus(samples: Iterable[TrainingSample], path: str | Path) -> None:
    """Write samples to ``path`` as a JSON array."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump([s.to_dict() for s in samples], f, indent=2, ensure_ascii=False)


def balance_corpus(
    spam: list[TrainingSample],
    ham: list[TrainingSample],
    max_per_class: int = 500,
    seed: Optional[int] = None,
) -> list[TrainingSample]:
    """Combine spam and ham samples into a balanced, shuffled corpus.

    Spam is capped at ``max_per_class`` and ham at the number of spam
    samples kept. When fewer than ``MIN_TRAINING_SAMPLES`` remain, the built-in
    seed corpus is used instead.

    Args:
        spam: Samples labeled spam.
        ham: Samples labeled ham.
        max_per_class: Upper bound per class.
        seed: Shuffle seed, for reproducible output.

    Returns:
        A new shuffled list.
    """
    spam_kept = spam[:max_per_class]
    ham_kept = ham[: len(spam_kept)]
    combined = spam_kept + ham_kept

    if len(combined) < MIN_TRAINING_SAMPLES:
        logger.info(
            f"Only {len(combined)} training samples; falling back to the default corpus"
        )
        combined = default_training_data()

    random.Random(seed).shuffle(combined)
    return combined


# ---------------------------------------------------------------------------
# Seed corpus
# ---------------------------------------------------------------------------

_DEFAULT_SAMPLES: tuple[tuple[str, str, str, str, str], ...] = (
    ("spam", "Prize Winner", "winner@lottery.com", "Congratulations! You've won!",
     "Click here to claim your free prize iPhone lottery winner"),
    ("spam", "Security Alert", "security@fake-bank.com", "URGENT: Account compromised",
     "Verify your password immediately suspicious activity detected"),
    ("spam", "Make Money", "rich@fastcash.net", "Earn $5000 per week!",
     "Work from home make money fast easy income opportunity"),
    ("spam", "Special Offer", "deals@discount-store.com", "90% OFF Limited time!",
     "Buy now limited offer discount sale cheap prices"),
    ("spam", "Pharmacy", "meds@online-pharmacy.biz", "Best prices on medications",
     "viagra cialis prescription drugs cheap online pharmacy"),
    ("spam", "中奖通知", "prize@lucky88.cn", "恭喜您中奖了！",
     "点击领取奖品 免费赠送 立即获取 限时优惠"),
    ("spam", "贷款服务", "loan@fastmoney.cn", "快速贷款审批",
     "无需抵押 当天放款 低息贷款 快速审批"),
    ("ham", "John Smith", "john.smith@company.com", "Meeting tomorrow",
     "Hi, just wanted to follow up on our meeting. Can we schedule a call?"),
    ("ham", "HR Department", "hr@company.com", "Quarterly report",
     "Please find attached the quarterly report for your review."),
    ("ham", "Amazon", "shipping@amazon.com", "Your order has shipped",
     "Thank you for your order. Your package will arrive in 3-5 business days."),
    ("ham", "Team Lead", "lead@company.com", "Team meeting reminder",
     "Reminder: Team meeting tomorrow at 10am in conference room B."),
    ("ham", "Project Manager", "pm@company.com", "Project update",
     "The project deadline has been extended to next Friday. "
     "Please review the attached timeline."),
    ("ham", "张经理", "zhang@company.cn", "工作报告",
     "您好，附件是本月的工作报告，请查收。"),
    ("ham", "会议通知", "admin@company.cn", "明天会议",
     "会议通知：明天上午10点在会议室开会，请准时参加。"),
)


def default_training_data() -> list[TrainingSample]:
    """Built-in English/Chinese seed corpus (7 spam, 7 ham)."""
    return [
        TrainingSample(
            label=Label(label),
            email=EmailRecord(
                sender_name=name, sender_email=address, subject=subject, body=body
            ),
        )
        for label, name, address, subject, body in _DEFAULT_SAMPLES
    ]
