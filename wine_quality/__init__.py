"""Wine quality / wine type classifiers: class balancing, encoding, splitting and training."""

from .balancing import BalancingMode, ClassPlan, balance_classes, class_distribution, plan_balancing
from .config import TaskConfig, quality_task, type_task
from .dataset import TabularDataset
from .errors import (
    ConfigurationError,
    ModelStateError,
    SchemaError,
    ShapeMismatchError,
    WineQualityError,
)
from .models_nn_pytorch import (
    Activation,
    Classifier,
    ClassifierConfig,
    History,
    LossKind,
    ModelState,
    build,
    evaluate,
    predict,
    predict_proba,
    train,
)
from .pipeline import ExperimentResult, PreparedData, prepare, run_experiment
from .preprocessing import EncodedLabels, LabelEncoder, Split, encode_labels, split_dataset, standardize

__all__ = [
    "Activation",
    "BalancingMode",
    "ClassPlan",
    "Classifier",
    "ClassifierConfig",
    "ConfigurationError",
    "EncodedLabels",
    "ExperimentResult",
    "History",
    "LabelEncoder",
    "LossKind",
    "ModelState",
    "ModelStateError",
    "PreparedData",
    "SchemaError",
    "ShapeMismatchError",
    "Split",
    "TabularDataset",
    "TaskConfig",
    "WineQualityError",
    "balance_classes",
    "build",
    "class_distribution",
    "encode_labels",
    "evaluate",
    "plan_balancing",
    "predict",
    "predict_proba",
    "prepare",
    "quality_task",
    "run_experiment",
    "split_dataset",
    "standardize",
    "train",
    "type_task",
]
