"""
Neural Network (PyTorch) for Wine Quality and Wine Type.
Feed-forward classifier described by a frozen ClassifierConfig:
hidden Linear layers with one activation, optional L2 penalty on hidden weights,
softmax output. Adam optimizer; categorical or binary cross-entropy on one-hot targets.
Lifecycle: UNBUILT -> BUILT -> TRAINED. Training again continues from the current weights.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import numpy as np
import torch
import torch.nn as nn
import torch.nn.functional as F
from torch.utils.data import DataLoader, TensorDataset
from tqdm.auto import tqdm

from .config import (
    ACTIVATION,
    BATCH_SIZE,
    EPOCH_COUNT,
    HIDDEN_LAYER_COUNT,
    HIDDEN_LAYER_WIDTH,
    LEARNING_RATE,
    RANDOM_SEED,
)
from .errors import ConfigurationError, ModelStateError, ShapeMismatchError
from .evaluation import argmax_accuracy
from .utils import prepare_device, set_seed

logger = logging.getLogger(__name__)

_EPS = 1e-7  # probability clamp for binary cross-entropy


class Activation(str, Enum):
    RELU = "relu"
    TANH = "tanh"
    SIGMOID = "sigmoid"
    ELU = "elu"


class LossKind(str, Enum):
    CATEGORICAL_CROSSENTROPY = "categorical_crossentropy"
    BINARY_CROSSENTROPY = "binary_crossentropy"


class ModelState(str, Enum):
    UNBUILT = "unbuilt"
    BUILT = "built"
    TRAINED = "trained"


_ACTIVATION_LAYERS = {
    Activation.RELU: nn.ReLU,
    Activation.TANH: nn.Tanh,
    Activation.SIGMOID: nn.Sigmoid,
    Activation.ELU: nn.ELU,
}


def _positive_int(name, value, minimum=1):
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value < minimum:
        raise ConfigurationError(f"{name} must be an integer >= {minimum}, got {value!r}")


@dataclass(frozen=True)
class ClassifierConfig:
    """Immutable network + training description. One per experiment."""

    feature_width: int
    output_width: int
    hidden_layer_count: int = HIDDEN_LAYER_COUNT
    hidden_layer_width: int = HIDDEN_LAYER_WIDTH
    activation: Activation = Activation(ACTIVATION)
    l2_penalty: Optional[float] = None
    loss: LossKind = LossKind.CATEGORICAL_CROSSENTROPY
    epoch_count: int = EPOCH_COUNT
    batch_size: int = BATCH_SIZE
    learning_rate: float = LEARNING_RATE
    seed: int = RANDOM_SEED

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "activation", Activation(self.activation))
            object.__setattr__(self, "loss", LossKind(self.loss))
        except ValueError as err:
            raise ConfigurationError(str(err)) from None

        _positive_int("feature_width", self.feature_width)
        _positive_int("output_width", self.output_width, minimum=2)
        _positive_int("hidden_layer_count", self.hidden_layer_count, minimum=0)
        _positive_int("hidden_layer_width", self.hidden_layer_width)
        _positive_int("epoch_count", self.epoch_count)
        _positive_int("batch_size", self.batch_size)
        if self.l2_penalty is not None and not (np.isfinite(self.l2_penalty) and self.l2_penalty >= 0):
            raise ConfigurationError(f"l2_penalty must be None or a finite value >= 0, got {self.l2_penalty}")
        if not (np.isfinite(self.learning_rate) and self.learning_rate > 0):
            raise ConfigurationError(f"learning_rate must be > 0, got {self.learning_rate}")

    @property
    def hidden_sizes(self) -> tuple[int, ...]:
        return (self.hidden_layer_width,) * self.hidden_layer_count

    def same_architecture(self, other: ClassifierConfig) -> bool:
        return (
            self.feature_width == other.feature_width
            and self.output_width == other.output_width
            and self.hidden_sizes == other.hidden_sizes
            and self.activation is other.activation
        )

    def same_objective(self, other: ClassifierConfig) -> bool:
        return (
            self.loss is other.loss
            and self.l2_penalty == other.l2_penalty
            and self.learning_rate == other.learning_rate
        )


class MLP(nn.Module):
    """Multi-layer perceptron returning logits; softmax is applied by the caller."""

    def __init__(self, input_size, hidden_sizes, output_size, activation=Activation.RELU):
        super().__init__()
        self.hidden = nn.ModuleList()
        prev = input_size
        for h in hidden_sizes:
            self.hidden.append(nn.Linear(prev, h))
            prev = h
        self.act = _ACTIVATION_LAYERS[Activation(activation)]()
        self.out = nn.Linear(prev, output_size)

    def forward(self, x):
        for layer in self.hidden:
            x = self.act(layer(x))
        return self.out(x)

    def l2_term(self):
        """Sum of squared hidden-layer weights (biases and output layer excluded)."""
        terms = [layer.weight.pow(2).sum() for layer in self.hidden]
        if not terms:
            return self.out.weight.new_zeros(())
        return torch.stack(terms).sum()


@dataclass
class History:
    """Per-epoch training loss and accuracy, oldest first."""

    loss: list[float] = field(default_factory=list)
    accuracy: list[float] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.loss)

    def append(self, loss: float, accuracy: float) -> None:
        self.loss.append(loss)
        self.accuracy.append(accuracy)

    def as_dict(self) -> dict[str, list[float]]:
        return {"loss": list(self.loss), "accuracy": list(self.accuracy)}


class Classifier:
    """A network, its optimizer and lifecycle state for one ClassifierConfig."""

    def __init__(self, config: ClassifierConfig, device: Optional[torch.device] = None):
        self.config = config
        self.device = device or prepare_device()
        self.state = ModelState.UNBUILT
        self.network: Optional[MLP] = None
        self.optimizer: Optional[torch.optim.Optimizer] = None
        self.history = History()  # all completed epochs across train() calls
        self._generator: Optional[torch.Generator] = None

    def __repr__(self) -> str:
        return f"Classifier(state={self.state.value}, epochs={len(self.history)}, config={self.config})"

    def build(self) -> Classifier:
        set_seed(self.config.seed)
        self.network = MLP(
            self.config.feature_width,
            self.config.hidden_sizes,
            self.config.output_width,
            self.config.activation,
        ).to(self.device)
        self.optimizer = torch.optim.Adam(self.network.parameters(), lr=self.config.learning_rate)
        self._generator = torch.Generator().manual_seed(self.config.seed)
        self.history = History()
        self.state = ModelState.BUILT
        return self

    @property
    def epochs_trained(self) -> int:
        return len(self.history)


def build(config: ClassifierConfig, device: Optional[torch.device] = None) -> Classifier:
    """Construct an untrained classifier (state BUILT)."""
    return Classifier(config, device=device).build()


def _as_matrix(values, name: str) -> np.ndarray:
    arr = np.asarray(values, dtype=np.float32)
    if arr.ndim != 2:
        raise ShapeMismatchError(f"{name} must be a 2-D matrix, got shape {arr.shape}")
    return arr


def _check_shapes(config: ClassifierConfig, features, labels) -> tuple[np.ndarray, np.ndarray]:
    features = _as_matrix(features, "features")
    labels = _as_matrix(labels, "labels")
    if features.shape[1] != config.feature_width:
        raise ShapeMismatchError(
            f"Feature matrix has {features.shape[1]} columns, config.feature_width={config.feature_width}"
        )
    if labels.shape[1] != config.output_width:
        raise ShapeMismatchError(
            f"Label matrix has {labels.shape[1]} columns, config.output_width={config.output_width}"
        )
    if features.shape[0] != labels.shape[0]:
        raise ShapeMismatchError(f"Row count mismatch: features {features.shape[0]} vs labels {labels.shape[0]}")
    if features.shape[0] == 0:
        raise ShapeMismatchError("Feature matrix has no rows")
    return features, labels


def _loss(model: Classifier, config: ClassifierConfig, logits, targets):
    if config.loss is LossKind.CATEGORICAL_CROSSENTROPY:
        loss = F.cross_entropy(logits, targets)
    else:
        probs = torch.softmax(logits, dim=1).clamp(_EPS, 1.0 - _EPS)
        loss = F.binary_cross_entropy(probs, targets)
    if config.l2_penalty:
        loss = loss + config.l2_penalty * model.network.l2_term()
    return loss


def train(
    model: Classifier,
    config: Optional[ClassifierConfig],
    train_features,
    train_labels,
    should_stop: Optional[Callable[[], bool]] = None,
    verbose: bool = True,
) -> History:
    """
    Run config.epoch_count full passes over the training set.

    Args:
        model: BUILT or TRAINED classifier; a TRAINED one keeps training from its weights.
        config: Training config (defaults to model.config); must describe the same network
            and objective. Only epoch_count, batch_size and seed may differ.
        train_features: (n, feature_width) matrix.
        train_labels: (n, output_width) one-hot matrix.
        should_stop: Polled before each epoch; returning True ends training early.
        verbose: Show a tqdm progress bar.

    Returns:
        History of this call's epochs (model.history accumulates across calls).
    """
    if model.state is ModelState.UNBUILT:
        raise ModelStateError("Model must be built before training")
    config = config or model.config
    if not config.same_architecture(model.config):
        raise ConfigurationError("Training config does not describe the built network")
    if not config.same_objective(model.config):
        raise ConfigurationError("Training config changes the loss, L2 penalty or learning rate of the built model")
    X, Y = _check_shapes(config, train_features, train_labels)

    ds = TensorDataset(torch.from_numpy(X).to(model.device), torch.from_numpy(Y).to(model.device))
    loader = DataLoader(ds, batch_size=config.batch_size, shuffle=True, generator=model._generator)
    n = len(ds)

    history = History()
    network = model.network
    for epoch in tqdm(range(config.epoch_count), desc="Training", disable=not verbose):
        if should_stop is not None and should_stop():
            logger.info("Training stopped after %d/%d epochs", epoch, config.epoch_count)
            break
        network.train()
        epoch_loss = 0.0
        correct = 0
        for xb, yb in loader:
            model.optimizer.zero_grad()
            logits = network(xb)
            loss = _loss(model, config, logits, yb)
            loss.backward()
            model.optimizer.step()
            epoch_loss += loss.item() * xb.shape[0]
            correct += int((logits.detach().argmax(dim=1) == yb.argmax(dim=1)).sum().item())
        history.append(epoch_loss / n, correct / n)
        model.history.append(epoch_loss / n, correct / n)
        model.state = ModelState.TRAINED
        logger.debug("epoch %d loss=%.4f accuracy=%.4f", epoch + 1, history.loss[-1], history.accuracy[-1])

    if len(history):
        logger.info(
            "Trained %d epochs: loss=%.4f accuracy=%.4f", len(history), history.loss[-1], history.accuracy[-1]
        )
    return history


def _require_trained(model: Classifier) -> None:
    if model.state is not ModelState.TRAINED:
        raise ModelStateError(f"Model must be trained first (state={model.state.value})")


def predict_proba(model: Classifier, features) -> np.ndarray:
    """Softmax class probabilities, one row per input row."""
    _require_trained(model)
    X = _as_matrix(features, "features")
    if X.shape[1] != model.config.feature_width:
        raise ShapeMismatchError(
            f"Feature matrix has {X.shape[1]} columns, config.feature_width={model.config.feature_width}"
        )
    model.network.eval()
    with torch.no_grad():
        logits = model.network(torch.from_numpy(X).to(model.device))
        return torch.softmax(logits, dim=1).cpu().numpy()


def predict(model: Classifier, features) -> np.ndarray:
    """Arg-max class ids."""
    return predict_proba(model, features).argmax(axis=1)


def evaluate(model: Classifier, test_features, test_labels) -> tuple[float, float]:
    """Loss and arg-max accuracy over the whole held-out set."""
    _require_trained(model)
    X, Y = _check_shapes(model.config, test_features, test_labels)
    model.network.eval()
    with torch.no_grad():
        logits = model.network(torch.from_numpy(X).to(model.device))
        loss = _loss(model, model.config, logits, torch.from_numpy(Y).to(model.device)).item()
        probs = torch.softmax(logits, dim=1).cpu().numpy()
    return float(loss), float(argmax_accuracy(probs, Y))
