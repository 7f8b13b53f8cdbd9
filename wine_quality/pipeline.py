"""
End-to-end experiment: balance -> encode -> split -> (standardize) -> train -> evaluate.
Single entry point for both tasks (quality score, wine type).
"""

from __future__ import annotations

import argparse
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Optional

from .balancing import balance_classes
from .config import (
    ACTIVATION,
    EPOCH_COUNT,
    HIDDEN_LAYER_COUNT,
    HIDDEN_LAYER_WIDTH,
    RANDOM_SEED,
    TASKS,
    TaskConfig,
)
from .dataset import TabularDataset
from .errors import SchemaError
from .evaluation import score_multiclass
from .models_nn_pytorch import (
    Classifier,
    ClassifierConfig,
    History,
    LossKind,
    build,
    evaluate,
    predict,
    train,
)
from .preprocessing import EncodedLabels, encode_labels, split_dataset, standardize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreparedData:
    train: EncodedLabels
    test: EncodedLabels
    classes: tuple  # id -> original label value
    distribution: dict  # balanced class counts, original label values

    @property
    def feature_width(self) -> int:
        return self.train.feature_width

    @property
    def num_classes(self) -> int:
        return self.train.num_classes


@dataclass
class ExperimentResult:
    task: TaskConfig
    classifier_config: ClassifierConfig
    model: Classifier
    history: History
    test_loss: float
    test_accuracy: float
    metrics: dict = field(default_factory=dict)

    def summary(self) -> dict:
        return {
            "label_column": self.task.label_column,
            "epochs": len(self.history),
            "final_train_loss": self.history.loss[-1] if len(self.history) else None,
            "final_train_accuracy": self.history.accuracy[-1] if len(self.history) else None,
            "test_loss": self.test_loss,
            "test_accuracy": self.test_accuracy,
            "f1_macro": self.metrics.get("f1_macro"),
        }


def prepare(dataset: TabularDataset, task: TaskConfig) -> PreparedData:
    """Balance, encode and split a dataset for one task."""
    if task.label_column != dataset.label_column:
        dataset = dataset.relabel(task.label_column)
    if task.drop_columns:
        dataset = dataset.drop_columns(task.drop_columns)

    target = task.balance_target
    if target is None:
        distribution = dataset.class_distribution()
        if not distribution:
            raise SchemaError(f"No rows to balance on '{task.label_column}'")
        target = min(distribution.values())
        logger.info("Balancing %s to the smallest class size %d", task.label_column, target)
    balanced = balance_classes(dataset, target, seed=task.balance_seed)
    relabeled, encoded = encode_labels(balanced)
    split = split_dataset(relabeled, task.train_fraction, task.split_seed)

    train_set = EncodedLabels.from_dataset(split.train, encoded.num_classes, encoded.classes)
    test_set = EncodedLabels.from_dataset(split.test, encoded.num_classes, encoded.classes)
    if task.standardize:
        train_set, test_set, _ = standardize(train_set, test_set)

    return PreparedData(
        train=train_set,
        test=test_set,
        classes=encoded.classes,
        distribution=balanced.class_distribution(),
    )


def default_classifier_config(prepared: PreparedData, **overrides) -> ClassifierConfig:
    """Network sized to the prepared data; binary loss when there are two classes."""
    params = {
        "feature_width": prepared.feature_width,
        "output_width": prepared.num_classes,
        "hidden_layer_count": HIDDEN_LAYER_COUNT,
        "hidden_layer_width": HIDDEN_LAYER_WIDTH,
        "activation": ACTIVATION,
        "epoch_count": EPOCH_COUNT,
        "loss": (
            LossKind.BINARY_CROSSENTROPY if prepared.num_classes == 2 else LossKind.CATEGORICAL_CROSSENTROPY
        ),
    }
    params.update({k: v for k, v in overrides.items() if v is not None})
    return ClassifierConfig(**params)


def run_experiment(
    dataset: TabularDataset,
    task: TaskConfig,
    classifier: Optional[ClassifierConfig] = None,
    should_stop: Optional[Callable[[], bool]] = None,
    verbose: bool = True,
    prepared: Optional[PreparedData] = None,
) -> ExperimentResult:
    """Prepare data (unless already prepared), train a fresh classifier, evaluate once on the test split."""
    prepared = prepared or prepare(dataset, task)
    config = classifier or default_classifier_config(prepared)

    model = build(config)
    history = train(model, config, prepared.train.features, prepared.train.one_hot,
                    should_stop=should_stop, verbose=verbose)
    test_loss, test_accuracy = evaluate(model, prepared.test.features, prepared.test.one_hot)

    y_pred = predict(model, prepared.test.features)
    metrics = score_multiclass(prepared.test.label_ids(), y_pred, class_names=prepared.classes)
    logger.info("Test loss=%.4f accuracy=%.4f f1_macro=%.4f", test_loss, test_accuracy, metrics["f1_macro"])

    return ExperimentResult(
        task=task,
        classifier_config=config,
        model=model,
        history=history,
        test_loss=test_loss,
        test_accuracy=test_accuracy,
        metrics=metrics,
    )


def main(argv=None) -> None:
    from .data_loading import load_wine

    p = argparse.ArgumentParser(description="Train a wine quality or wine type classifier")
    p.add_argument("--data", required=True, help="Path to the wine CSV")
    p.add_argument("--task", choices=sorted(TASKS), default="quality")
    p.add_argument("--target", type=int, default=None, help="Rows per class after balancing")
    p.add_argument("--train-fraction", type=float, default=None)
    p.add_argument("--seed", type=int, default=RANDOM_SEED)
    p.add_argument("--epochs", type=int, default=None)
    p.add_argument("--hidden-layers", type=int, default=None)
    p.add_argument("--hidden-width", type=int, default=None)
    p.add_argument("--activation", default=None)
    p.add_argument("--l2", type=float, default=None, help="L2 penalty on hidden-layer weights")
    p.add_argument("--no-standardize", action="store_true")
    p.add_argument("--log-level", default="INFO")
    args = p.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides = {"split_seed": args.seed, "balance_seed": args.seed, "standardize": not args.no_standardize}
    if args.target is not None:
        overrides["balance_target"] = args.target
    if args.train_fraction is not None:
        overrides["train_fraction"] = args.train_fraction
    task = TASKS[args.task](**overrides)

    dataset = load_wine(args.data)
    prepared = prepare(dataset, task)
    config = default_classifier_config(
        prepared,
        epoch_count=args.epochs,
        hidden_layer_count=args.hidden_layers,
        hidden_layer_width=args.hidden_width,
        activation=args.activation,
        l2_penalty=args.l2,
        seed=args.seed,
    )
    result = run_experiment(dataset, task, classifier=config, prepared=prepared)
    print(json.dumps(result.summary(), indent=2))


if __name__ == "__main__":
    main()
