"""
In-memory tabular dataset: numeric columns with one designated label column.
Every transform returns a new TabularDataset; the wrapped DataFrame is never shared.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

import numpy as np
import pandas as pd

from .errors import SchemaError


class TabularDataset:
    """Rows x named numeric columns with a fixed label column."""

    def __init__(self, frame: pd.DataFrame, label_column: str):
        if frame.shape[1] == 0:
            raise SchemaError("Dataset must have at least one column")
        if label_column not in frame.columns:
            raise SchemaError(
                f"Label column '{label_column}' not found. Available: {list(frame.columns)}"
            )
        self._frame = frame.reset_index(drop=True).copy()
        self._label_column = label_column

    @classmethod
    def from_records(cls, rows: Sequence[Mapping[str, float]], label_column: str) -> TabularDataset:
        """Build from a sequence of row mappings; all rows must share one column set."""
        if not rows:
            raise SchemaError("Cannot infer columns from an empty record list")
        columns = list(rows[0].keys())
        expected = set(columns)
        for i, row in enumerate(rows):
            if set(row.keys()) != expected:
                raise SchemaError(f"Row {i} columns {sorted(row.keys())} differ from {sorted(expected)}")
        return cls(pd.DataFrame.from_records(list(rows), columns=columns), label_column)

    @classmethod
    def concat(cls, datasets: Iterable[TabularDataset], label_column: str | None = None) -> TabularDataset:
        """Concatenate datasets that share the same column set."""
        datasets = list(datasets)
        if not datasets:
            raise SchemaError("Nothing to concatenate")
        label_column = label_column or datasets[0].label_column
        columns = datasets[0].columns
        for ds in datasets[1:]:
            if set(ds.columns) != set(columns):
                raise SchemaError(f"Column mismatch: {ds.columns} vs {columns}")
        frame = pd.concat([ds._frame[columns] for ds in datasets], ignore_index=True)
        return cls(frame, label_column)

    # ----- Accessors -----

    @property
    def label_column(self) -> str:
        return self._label_column

    @property
    def columns(self) -> list[str]:
        return list(self._frame.columns)

    @property
    def feature_columns(self) -> list[str]:
        return [c for c in self._frame.columns if c != self._label_column]

    @property
    def frame(self) -> pd.DataFrame:
        """A copy of the underlying frame."""
        return self._frame.copy()

    def __len__(self) -> int:
        return len(self._frame)

    def __repr__(self) -> str:
        return (
            f"TabularDataset(rows={len(self)}, columns={len(self.columns)}, "
            f"label_column={self._label_column!r})"
        )

    def labels(self) -> np.ndarray:
        return self._frame[self._label_column].to_numpy(copy=True)

    def features(self) -> np.ndarray:
        """Feature columns as a float32 row-major matrix."""
        return self._frame[self.feature_columns].to_numpy(dtype=np.float32, copy=True)

    def class_distribution(self) -> dict:
        """Label value -> row count, sorted by label value. Recomputed on every call."""
        counts = self._frame[self._label_column].value_counts(sort=False).sort_index()
        return {label: int(count) for label, count in counts.items()}

    # ----- Transforms (each returns a new dataset) -----

    def take(self, indices) -> TabularDataset:
        """Rows at the given positions, in the given order (repeats allowed)."""
        indices = np.asarray(indices, dtype=np.int64)
        return TabularDataset(self._frame.iloc[indices], self._label_column)

    def with_labels(self, values) -> TabularDataset:
        values = np.asarray(values)
        if len(values) != len(self):
            raise SchemaError(f"Expected {len(self)} label values, got {len(values)}")
        frame = self._frame.copy()
        frame[self._label_column] = values
        return TabularDataset(frame, self._label_column)

    def drop_columns(self, names: Iterable[str]) -> TabularDataset:
        names = list(names)
        if self._label_column in names:
            raise SchemaError(f"Cannot drop the label column '{self._label_column}'")
        missing = [c for c in names if c not in self._frame.columns]
        if missing:
            raise SchemaError(f"Columns not found: {missing}")
        return TabularDataset(self._frame.drop(columns=names), self._label_column)

    def relabel(self, label_column: str) -> TabularDataset:
        """Same rows, different designated label column."""
        return TabularDataset(self._frame, label_column)
