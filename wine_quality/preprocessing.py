"""
Preprocessing for the wine classifiers.
Label encoding (zero-based ids + one-hot), seeded train/test split,
and StandardScaler feature standardization fitted on the train split only.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace

import numpy as np
import pandas as pd
from sklearn.preprocessing import LabelEncoder as SkLabelEncoder
from sklearn.preprocessing import StandardScaler

from .config import RANDOM_SEED, TRAIN_FRACTION
from .dataset import TabularDataset
from .errors import ConfigurationError, SchemaError, ShapeMismatchError

logger = logging.getLogger(__name__)


class LabelEncoder:
    """Maps sorted distinct label values to contiguous ids 0..k-1 and back, via sklearn."""

    def __init__(self, labels: Iterable | None = None):
        self.encoder = SkLabelEncoder()
        self.classes_: tuple = ()
        if labels is not None:
            self.fit(labels)

    def fit(self, labels: Iterable) -> LabelEncoder:
        self.encoder.fit(_check_finite_labels(np.asarray(list(labels))))
        self.classes_ = tuple(self.encoder.classes_.tolist())
        return self

    def encode(self, labels: Iterable) -> np.ndarray:
        """Encode labels into integer ids."""
        values = _check_finite_labels(np.asarray(list(labels)))
        try:
            return self.encoder.transform(values).astype(np.int64)
        except ValueError as err:
            raise SchemaError(f"Cannot encode labels ({err}); known: {list(self.classes_)}") from None

    def decode(self, ids: Iterable[int]) -> list:
        """Decode integer ids back into the original label values."""
        return self.encoder.inverse_transform(np.asarray(list(ids), dtype=np.int64)).tolist()

    @property
    def num_classes(self) -> int:
        return len(self.classes_)


def _check_finite_labels(values: np.ndarray) -> np.ndarray:
    numeric = pd.to_numeric(pd.Series(values), errors="coerce")
    if numeric.isna().any():
        raise SchemaError("Label column contains missing or non-numeric values")
    if not np.isfinite(numeric.to_numpy(dtype=np.float64)).all():
        raise SchemaError("Label column contains non-finite values")
    return numeric.to_numpy()


@dataclass(frozen=True)
class EncodedLabels:
    """Feature matrix and one-hot label matrix, row-aligned."""

    features: np.ndarray  # (n, feature_width) float32
    one_hot: np.ndarray  # (n, num_classes) float32
    feature_columns: tuple[str, ...] = ()
    classes: tuple = ()  # index -> original label value

    def __post_init__(self) -> None:
        if self.features.ndim != 2 or self.one_hot.ndim != 2:
            raise ShapeMismatchError("features and one_hot must both be 2-D")
        if self.features.shape[0] != self.one_hot.shape[0]:
            raise ShapeMismatchError(
                f"Row count mismatch: features {self.features.shape[0]} vs labels {self.one_hot.shape[0]}"
            )

    def __len__(self) -> int:
        return self.features.shape[0]

    @property
    def feature_width(self) -> int:
        return self.features.shape[1]

    @property
    def num_classes(self) -> int:
        return self.one_hot.shape[1]

    def label_ids(self) -> np.ndarray:
        return self.one_hot.argmax(axis=1)

    @classmethod
    def from_dataset(cls, dataset: TabularDataset, num_classes: int, classes: tuple = ()) -> EncodedLabels:
        """Build from a dataset whose label column already holds ids 0..num_classes-1."""
        ids = _check_finite_labels(dataset.labels())
        if len(ids) and (ids.min() < 0 or ids.max() >= num_classes or not np.all(ids == np.floor(ids))):
            raise SchemaError(f"Encoded labels must be integers in [0, {num_classes})")
        return cls(
            features=dataset.features(),
            one_hot=one_hot(ids.astype(np.int64), num_classes),
            feature_columns=tuple(dataset.feature_columns),
            classes=tuple(classes),
        )


def one_hot(ids: np.ndarray, num_classes: int) -> np.ndarray:
    out = np.zeros((len(ids), num_classes), dtype=np.float32)
    out[np.arange(len(ids)), ids] = 1.0
    return out


def encode_labels(
    dataset: TabularDataset, label_column: str | None = None
) -> tuple[TabularDataset, EncodedLabels]:
    """
    Remap the label column to 0..k-1 (sorted order of the original values)
    and build the row-aligned one-hot matrix.

    Returns:
        (relabeled dataset, EncodedLabels)
    """
    if label_column is not None and label_column != dataset.label_column:
        if label_column not in dataset.columns:
            raise SchemaError(f"Label column '{label_column}' not found. Available: {dataset.columns}")
        dataset = dataset.relabel(label_column)

    encoder = LabelEncoder(dataset.labels())
    ids = encoder.encode(_check_finite_labels(dataset.labels()))
    relabeled = dataset.with_labels(ids)
    encoded = EncodedLabels.from_dataset(relabeled, encoder.num_classes, encoder.classes_)
    logger.info("Encoded '%s': %d classes %s", dataset.label_column, encoder.num_classes, list(encoder.classes_))
    return relabeled, encoded


@dataclass(frozen=True)
class Split:
    train: TabularDataset
    test: TabularDataset
    train_indices: np.ndarray
    test_indices: np.ndarray


def split_dataset(
    dataset: TabularDataset, fraction: float = TRAIN_FRACTION, seed: int = RANDOM_SEED
) -> Split:
    """
    Seeded train/test partition: permute row indices, first round(n * fraction)
    go to train, the rest to test. Same seed, input and fraction give the same split.
    """
    if not 0.0 < fraction < 1.0:
        raise ConfigurationError(f"Split fraction must be in (0, 1), got {fraction}")
    n = len(dataset)
    if n == 0:
        raise ConfigurationError("Cannot split an empty dataset")

    perm = np.random.default_rng(seed).permutation(n)
    n_train = int(round(n * fraction))
    train_idx, test_idx = perm[:n_train], perm[n_train:]
    logger.info("Split %d rows -> train=%d test=%d (seed=%d)", n, len(train_idx), len(test_idx), seed)
    return Split(
        train=dataset.take(train_idx),
        test=dataset.take(test_idx),
        train_indices=train_idx,
        test_indices=test_idx,
    )


def standardize(
    train: EncodedLabels, test: EncodedLabels, scaler: StandardScaler | None = None
) -> tuple[EncodedLabels, EncodedLabels, StandardScaler]:
    """
    Fit StandardScaler on train features (unless a fitted scaler is given)
    and transform both splits. Returns (train, test, scaler).
    """
    if train.feature_width != test.feature_width:
        raise ShapeMismatchError(
            f"Feature width mismatch: train {train.feature_width} vs test {test.feature_width}"
        )
    if scaler is None:
        scaler = StandardScaler()
        scaler.fit(train.features)
    train_x = scaler.transform(train.features).astype(np.float32)
    test_x = scaler.transform(test.features).astype(np.float32) if len(test) else test.features
    return replace(train, features=train_x), replace(test, features=test_x), scaler
