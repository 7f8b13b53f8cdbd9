"""
Shared utilities: seeding and device selection.
"""

import random

import numpy as np
import torch

from .config import RANDOM_SEED


def set_seed(seed=None):
    """Fix random seeds for reproducibility (random, NumPy and torch)."""
    seed = RANDOM_SEED if seed is None else seed
    np.random.seed(seed)
    random.seed(seed)
    torch.manual_seed(seed)
    if torch.cuda.is_available():
        torch.cuda.manual_seed_all(seed)


def prepare_device() -> torch.device:
    """Return a CUDA device when available, else CPU."""
    return torch.device("cuda" if torch.cuda.is_available() else "cpu")
