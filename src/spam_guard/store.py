"""JSON persistence for trained models and their training data.

The classifier never touches the filesystem; this module is what the CLI
(or any host) uses to keep a model between runs. File layout::

    {
      "version": 1,
      "model": { ...SpamModel.to_snapshot()... },
      "training_data": [ {"label": "spam", "emailData": {...}}, ... ]
    }
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from .classifier import SpamModel
from .corpus import parse_samples
from .models import TrainingSample

logger = logging.getLogger(__name__)

STORE_VERSION = 1


@dataclass
class StoredModel:
    """A model loaded from disk together with the samples it was fitted on."""

    model: SpamModel
    training_data: list[TrainingSample] = field(default_factory=list)


def save_model(
    model: SpamModel,
    path: str | Path,
    training_data: Iterable[TrainingSample] = (),
) -> None:
    """Save a model snapshot (and optionally its training data) as JSON.

    Args:
        model: Model to save.
        path: Destination file. Parent directories are created.
        training_data: Samples to keep for later refits.
    """
    data = {
        "version": STORE_VERSION,
        "model": model.to_snapshot(),
        "training_data": [s.to_dict() for s in training_data],
    }

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False)
    logger.debug(f"Saved model to {path}")


def load_model(path: str | Path) -> StoredModel:
    """Load a model saved with :func:`save_model`.

    A file that cannot be decoded gives an untrained model and no training
    data; the problem is logged, not raised.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        raw = f.read()

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning(f"Model file {path} is corrupt ({e}); starting untrained")
        return StoredModel(model=SpamModel())

    if not isinstance(data, dict):
        logger.warning(f"Model file {path} has an unexpected layout; starting untrained")
        return StoredModel(model=SpamModel())

    entries = data.get("training_data")
    return StoredModel(
        model=SpamModel.from_snapshot(data.get("model")),
        training_data=parse_samples(entries) if isinstance(entries, list) else [],
    )
