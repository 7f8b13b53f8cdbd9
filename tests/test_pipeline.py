import json

import numpy as np
import pandas as pd
import pytest

from wine_quality.config import TaskConfig, quality_task, type_task
from wine_quality.data_loading import load_wine, to_dataset
from wine_quality.dataset import TabularDataset
from wine_quality.errors import ConfigurationError, SchemaError
from wine_quality.pipeline import default_classifier_config, main, prepare, run_experiment


def _wine_frame(seed=0):
    rng = np.random.default_rng(seed)
    quality = np.array([3] * 4 + [5] * 60 + [6] * 40 + [8] * 6)
    wine_type = np.array(["red"] * 30 + ["white"] * 80)
    rng.shuffle(wine_type)
    return pd.DataFrame(
        {
            "type": wine_type,
            "fixed acidity": rng.normal(7.0, 1.0, len(quality)),
            "alcohol": quality + rng.normal(0.0, 0.3, len(quality)),
            "sulphates": np.where(wine_type == "red", 0.8, 0.4) + rng.normal(0.0, 0.05, len(quality)),
            "quality": quality,
        }
    )


def test_task_presets():
    assert quality_task().label_column == "quality"
    assert type_task().label_column == "type"
    assert type_task(balance_target=10).balance_target == 10


@pytest.mark.parametrize(
    "kwargs",
    [
        {"balance_target": 0},
        {"balance_target": 10, "train_fraction": 1.0},
        {"balance_target": 10, "drop_columns": ("quality",)},
    ],
)
def test_invalid_task_config(kwargs):
    with pytest.raises(ConfigurationError):
        TaskConfig(label_column="quality", **kwargs)


def test_prepare_quality_task():
    ds = to_dataset(_wine_frame())
    task = TaskConfig(label_column="quality", balance_target=20)
    prepared = prepare(ds, task)
    assert prepared.classes == (3, 5, 6, 8)
    assert prepared.distribution == {3: 20, 5: 20, 6: 20, 8: 24}
    assert len(prepared.train) + len(prepared.test) == 84
    assert len(prepared.train) == round(84 * 0.8)
    assert prepared.num_classes == 4
    assert prepared.feature_width == 4  # type is a feature here


def test_prepare_type_task_drops_columns():
    ds = to_dataset(_wine_frame())
    task = type_task(balance_target=30, drop_columns=("quality",))
    prepared = prepare(ds, task)
    assert prepared.classes == (0, 1)
    assert prepared.distribution == {0: 30, 1: 30}
    assert prepared.feature_width == 3


def test_prepare_is_repeatable():
    ds = to_dataset(_wine_frame())
    task = TaskConfig(label_column="quality", balance_target=20)
    a, b = prepare(ds, task), prepare(ds, task)
    np.testing.assert_array_equal(a.train.features, b.train.features)
    np.testing.assert_array_equal(a.test.one_hot, b.test.one_hot)


def test_default_classifier_config_picks_loss():
    ds = to_dataset(_wine_frame())
    binary = default_classifier_config(prepare(ds, type_task(balance_target=30)))
    multi = default_classifier_config(prepare(ds, TaskConfig(label_column="quality", balance_target=20)))
    assert binary.loss.value == "binary_crossentropy"
    assert multi.loss.value == "categorical_crossentropy"
    assert multi.output_width == 4


def test_run_experiment_type_task():
    ds = to_dataset(_wine_frame())
    task = type_task(balance_target=30)
    prepared = prepare(ds, task)
    config = default_classifier_config(prepared, epoch_count=5, hidden_layer_width=8)
    result = run_experiment(ds, task, classifier=config, verbose=False)
    assert len(result.history) == 5
    assert 0.0 <= result.test_accuracy <= 1.0
    summary = result.summary()
    assert summary["label_column"] == "type"
    assert summary["epochs"] == 5
    assert "confusion_matrix" in result.metrics


def test_load_wine_cleans_and_encodes(tmp_path):
    frame = _wine_frame()
    frame.loc[3, "alcohol"] = np.nan
    path = tmp_path / "wine.csv"
    frame.to_csv(path, index=False)

    ds = load_wine(path)
    assert isinstance(ds, TabularDataset)
    assert len(ds) == len(frame) - 1
    assert set(ds.frame["type"].unique()) == {0, 1}
    assert ds.label_column == "quality"


def test_load_wine_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_wine(tmp_path / "nope.csv")


def test_non_numeric_columns_rejected():
    frame = _wine_frame()
    frame["region"] = "north"
    with pytest.raises(SchemaError):
        to_dataset(frame)


def test_cli_prints_summary(tmp_path, capsys):
    path = tmp_path / "wine.csv"
    _wine_frame().to_csv(path, index=False)
    main(["--data", str(path), "--task", "type", "--target", "20", "--epochs", "2", "--hidden-width", "4"])
    out = capsys.readouterr().out
    summary = json.loads(out[out.index("{"):])
    assert summary["label_column"] == "type"
    assert summary["epochs"] == 2


def test_type_task_balances_to_smallest_class_after_cleaning(tmp_path):
    frame = _wine_frame()
    red_rows = frame.index[frame["type"] == "red"][:3]
    frame.loc[red_rows, "alcohol"] = np.nan
    path = tmp_path / "wine.csv"
    frame.to_csv(path, index=False)

    prepared = prepare(load_wine(path), type_task())
    assert type_task().balance_target is None
    assert prepared.distribution == {0: 27, 1: 27}


def test_cli_type_task_without_target(tmp_path, capsys):
    path = tmp_path / "wine.csv"
    _wine_frame().to_csv(path, index=False)
    main(["--data", str(path), "--task", "type", "--epochs", "1", "--hidden-width", "4"])
    out = capsys.readouterr().out
    summary = json.loads(out[out.index("{"):])
    assert summary["epochs"] == 1
