"""
Evaluation utilities for the wine classifiers.
Arg-max accuracy over probability/one-hot matrices; Macro-F1, per-class
metrics and confusion matrix via scikit-learn.
"""

import numpy as np
from sklearn.metrics import (
    accuracy_score,
    classification_report,
    confusion_matrix,
    f1_score,
    precision_score,
    recall_score,
)

from .errors import ShapeMismatchError


def argmax_accuracy(probabilities, one_hot):
    """Fraction of rows whose arg-max matches the true arg-max (exactly k / n)."""
    probabilities = np.asarray(probabilities)
    one_hot = np.asarray(one_hot)
    if probabilities.shape != one_hot.shape:
        raise ShapeMismatchError(f"Shape mismatch: {probabilities.shape} vs {one_hot.shape}")
    n = probabilities.shape[0]
    if n == 0:
        return 0.0
    correct = int(np.sum(probabilities.argmax(axis=1) == one_hot.argmax(axis=1)))
    return correct / n


def score_multiclass(y_true, y_pred, class_names=None):
    """
    Return dict with accuracy, macro/weighted F1, and per-class metrics.
    Per-class accuracy is recall for that class. class_names maps id -> display label.
    """
    y_true = np.asarray(y_true)
    y_pred = np.asarray(y_pred)

    out = {
        "accuracy": float(accuracy_score(y_true, y_pred)),
        "f1_macro": float(f1_score(y_true, y_pred, average="macro", zero_division=0)),
        "f1_weighted": float(f1_score(y_true, y_pred, average="weighted", zero_division=0)),
    }

    unique_classes = sorted(np.unique(np.concatenate([y_true, y_pred])).tolist())
    names = [
        class_names[c] if class_names is not None and c < len(class_names) else c
        for c in unique_classes
    ]

    f1_per_class = f1_score(y_true, y_pred, average=None, labels=unique_classes, zero_division=0)
    out["f1_per_class"] = {f"class_{name}": float(s) for name, s in zip(names, f1_per_class)}

    recall_per_class = recall_score(y_true, y_pred, average=None, labels=unique_classes, zero_division=0)
    out["accuracy_per_class"] = {f"class_{name}": float(s) for name, s in zip(names, recall_per_class)}

    precision_per_class = precision_score(y_true, y_pred, average=None, labels=unique_classes, zero_division=0)
    out["precision_per_class"] = {f"class_{name}": float(s) for name, s in zip(names, precision_per_class)}

    out["confusion_matrix"] = confusion_matrix(y_true, y_pred, labels=unique_classes).tolist()
    out["classification_report"] = classification_report(
        y_true, y_pred, output_dict=True, zero_division=0, labels=unique_classes
    )
    return out
