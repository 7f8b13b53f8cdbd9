"""
Wine Quality / Wine Type: configuration.
Reproducibility: random seeds, column names, balancing targets, network defaults.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .errors import ConfigurationError

# ----- Reproducibility -----
RANDOM_SEED = 42

# ----- Columns -----
QUALITY_COLUMN = "quality"  # Discrete score, 7 levels (3..9)
TYPE_COLUMN = "type"  # red / white, encoded 0 / 1 by the loader

# ----- Balancing targets (rows per class after rebalancing) -----
QUALITY_BALANCE_TARGET = 1000
TYPE_BALANCE_TARGET = None  # smallest class size, resolved from the data

# ----- Train/test split -----
TRAIN_FRACTION = 0.8

# ----- Network defaults -----
HIDDEN_LAYER_COUNT = 2
HIDDEN_LAYER_WIDTH = 64
ACTIVATION = "relu"
EPOCH_COUNT = 50
BATCH_SIZE = 32
LEARNING_RATE = 1e-3


@dataclass(frozen=True)
class TaskConfig:
    """Dataset preparation for one classification task.

    Notes:
      - balance_target: rows per label value after rebalancing; None means the
        size of the smallest class, resolved when the data is prepared.
      - drop_columns: removed before balancing (never used as features).
      - standardize: fit a StandardScaler on the train split, apply to both.
    """

    label_column: str
    balance_target: Optional[int] = None
    train_fraction: float = TRAIN_FRACTION
    split_seed: int = RANDOM_SEED
    balance_seed: int = RANDOM_SEED
    drop_columns: tuple[str, ...] = ()
    standardize: bool = True

    def __post_init__(self) -> None:
        if not self.label_column:
            raise ConfigurationError("label_column must be a non-empty column name")
        if self.balance_target is None:
            pass
        elif isinstance(self.balance_target, bool) or not isinstance(self.balance_target, int):
            raise ConfigurationError(f"balance_target must be an int or None, got {self.balance_target!r}")
        elif self.balance_target <= 0:
            raise ConfigurationError(f"balance_target must be > 0, got {self.balance_target}")
        if not 0.0 < self.train_fraction < 1.0:
            raise ConfigurationError(f"train_fraction must be in (0, 1), got {self.train_fraction}")
        if self.label_column in self.drop_columns:
            raise ConfigurationError(f"Cannot drop the label column '{self.label_column}'")


def quality_task(**overrides) -> TaskConfig:
    """Multi-class quality score task."""
    params = {"label_column": QUALITY_COLUMN, "balance_target": QUALITY_BALANCE_TARGET}
    params.update(overrides)
    return TaskConfig(**params)


def type_task(**overrides) -> TaskConfig:
    """Binary red/white task."""
    params = {"label_column": TYPE_COLUMN, "balance_target": TYPE_BALANCE_TARGET}
    params.update(overrides)
    return TaskConfig(**params)


TASKS = {
    "quality": quality_task,
    "type": type_task,
}
