"""
Class balancing by row duplication (over-sampling) and random subsampling
without replacement (under-sampling).

Classes below the target are repeated a whole number of times,
f = ceil(target / count), so they may overshoot the target by less than one
copy of the class. Classes above the target are subsampled to exactly target rows.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

import numpy as np
import pandas as pd

from .config import RANDOM_SEED
from .dataset import TabularDataset
from .errors import ConfigurationError, SchemaError

logger = logging.getLogger(__name__)


class BalancingMode(str, Enum):
    OVERSAMPLE = "oversample"
    UNDERSAMPLE = "undersample"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class ClassPlan:
    label: object
    count: int
    target: int
    mode: BalancingMode
    factor: int = 1  # replication factor, only > 1 when over-sampling

    @property
    def expected_count(self) -> int:
        if self.mode is BalancingMode.OVERSAMPLE:
            return self.count * self.factor
        if self.mode is BalancingMode.UNDERSAMPLE:
            return self.target
        return self.count


def _validate_target(target) -> int:
    if isinstance(target, bool) or not isinstance(target, (int, np.integer)):
        raise ConfigurationError(f"target must be an integer row count, got {target!r}")
    if target <= 0:
        raise ConfigurationError(f"target must be > 0, got {target}")
    return int(target)


def class_distribution(dataset: TabularDataset, label_column: str | None = None) -> dict:
    """Label value -> count for the given (or the dataset's own) label column."""
    if label_column is None or label_column == dataset.label_column:
        return dataset.class_distribution()
    if label_column not in dataset.columns:
        raise SchemaError(f"Label column '{label_column}' not found. Available: {dataset.columns}")
    return dataset.relabel(label_column).class_distribution()


def plan_balancing(distribution: Mapping, target: int) -> dict:
    """Build a ClassPlan for every label value in the distribution."""
    target = _validate_target(target)
    plan = {}
    for label, count in distribution.items():
        count = int(count)
        if count <= 0:
            # zero-count labels are simply absent from the output
            continue
        if count < target:
            plan[label] = ClassPlan(
                label, count, target, BalancingMode.OVERSAMPLE, factor=math.ceil(target / count)
            )
        elif count > target:
            plan[label] = ClassPlan(label, count, target, BalancingMode.UNDERSAMPLE)
        else:
            plan[label] = ClassPlan(label, count, target, BalancingMode.UNCHANGED)
    return plan


def _oversample(indices: np.ndarray, factor: int) -> np.ndarray:
    return np.tile(indices, factor)


def _undersample(indices: np.ndarray, n: int, rng: np.random.Generator) -> np.ndarray:
    if n > len(indices):
        raise ConfigurationError(
            f"Cannot draw {n} rows without replacement from {len(indices)} available"
        )
    chosen = rng.choice(len(indices), size=n, replace=False)
    return indices[np.sort(chosen)]


def balance_classes(
    dataset: TabularDataset,
    target: int,
    label_column: str | None = None,
    seed: int = RANDOM_SEED,
) -> TabularDataset:
    """
    Rebalance so that every label value has (about) `target` rows.

    Args:
        dataset: Input dataset (not modified).
        target: Rows per label value after balancing.
        label_column: Column to balance on (defaults to the dataset's label column).
        seed: Seed for the under-sampling draws.

    Returns:
        New TabularDataset with the same columns and label column as the input.
    """
    target = _validate_target(target)
    label_column = label_column or dataset.label_column
    distribution = class_distribution(dataset, label_column)
    plan = plan_balancing(distribution, target)

    labels = dataset.frame[label_column].to_numpy()
    if pd.isna(labels).any():
        raise SchemaError(f"Label column '{label_column}' contains missing values")
    rng = np.random.default_rng(seed)
    parts = []
    for label in sorted(plan):
        entry = plan[label]
        indices = np.flatnonzero(labels == label)
        if entry.mode is BalancingMode.OVERSAMPLE:
            parts.append(_oversample(indices, entry.factor))
        elif entry.mode is BalancingMode.UNDERSAMPLE:
            parts.append(_undersample(indices, entry.target, rng))
        else:
            parts.append(indices)
        logger.debug(
            "label=%s count=%d mode=%s -> %d rows",
            label, entry.count, entry.mode.value, entry.expected_count,
        )

    order = np.concatenate(parts) if parts else np.array([], dtype=np.int64)
    balanced = dataset.take(order)
    logger.info(
        "Balanced '%s' to target=%d: %d -> %d rows", label_column, target, len(dataset), len(balanced)
    )
    return balanced
