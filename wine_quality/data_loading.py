"""
Load the wine-quality CSV into a TabularDataset.
Declares the label column; cleans missing rows and encodes the wine type.
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import pandas as pd

from .config import QUALITY_COLUMN, TYPE_COLUMN
from .dataset import TabularDataset
from .errors import SchemaError

logger = logging.getLogger(__name__)


def load_wine(path, label_column=QUALITY_COLUMN, remove_duplicates=False, dropna=True):
    """
    Load a wine CSV. Returns a TabularDataset with all-numeric columns.

    Args:
        path: Path to the CSV file.
        label_column: Designated label column (quality by default).
        remove_duplicates: If True, remove exact duplicate rows.
        dropna: If True, drop rows with any missing value.

    Returns:
        TabularDataset; the string type column (red/white) is mapped to 0/1 in sorted order.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")
    df = pd.read_csv(path)
    df.columns = [str(c).strip() for c in df.columns]

    if dropna:
        initial_rows = len(df)
        df = df.dropna()
        if len(df) < initial_rows:
            logger.info("Dropped %d row(s) with missing values.", initial_rows - len(df))

    if remove_duplicates:
        initial_rows = len(df)
        df = df.drop_duplicates(keep="first")
        n_removed = initial_rows - len(df)
        if n_removed > 0:
            logger.info("Removed %d duplicate row(s). Dataset: %d -> %d rows.", n_removed, initial_rows, len(df))

    return to_dataset(df, label_column=label_column)


def encode_wine_type(values: pd.Series) -> pd.Series:
    """red -> 0, white -> 1 (sorted order of the lowercase names)."""
    names = values.astype(str).str.strip().str.lower()
    mapping = {name: idx for idx, name in enumerate(sorted(names.unique()))}
    return names.map(mapping).astype(np.int64)


def to_dataset(df: pd.DataFrame, label_column=QUALITY_COLUMN) -> TabularDataset:
    """Validate an already-loaded frame and wrap it."""
    df = df.copy()
    if TYPE_COLUMN in df.columns and not pd.api.types.is_numeric_dtype(df[TYPE_COLUMN]):
        df[TYPE_COLUMN] = encode_wine_type(df[TYPE_COLUMN])

    non_numeric = [c for c in df.columns if not pd.api.types.is_numeric_dtype(df[c])]
    if non_numeric:
        raise SchemaError(f"Non-numeric columns: {non_numeric}")
    return TabularDataset(df, label_column)
