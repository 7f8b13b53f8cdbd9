import math

import numpy as np
import pandas as pd
import pytest

from wine_quality.balancing import BalancingMode, balance_classes, plan_balancing
from wine_quality.dataset import TabularDataset
from wine_quality.errors import ConfigurationError, SchemaError


def _dataset(counts):
    labels = np.concatenate([np.full(n, label) for label, n in counts.items()])
    df = pd.DataFrame(
        {
            "alcohol": np.arange(len(labels), dtype=float),
            "density": np.linspace(0.99, 1.0, len(labels)),
            "quality": labels,
        }
    )
    return TabularDataset(df, "quality")


def test_quality_levels_reach_target():
    ds = _dataset({3: 2, 4: 10, 5: 1000, 8: 3})
    balanced = balance_classes(ds, 1000, "quality")
    assert balanced.class_distribution() == {3: 1000, 4: 1000, 5: 1000, 8: 1002}


def test_counts_stay_within_replication_bounds():
    original = {0: 5, 1: 50, 2: 17, 3: 20}
    target = 20
    balanced = balance_classes(_dataset(original), target).class_distribution()
    for label, count in original.items():
        if count >= target:
            assert balanced[label] == target
        else:
            assert target <= balanced[label] <= target + count
            assert balanced[label] == count * math.ceil(target / count)


def test_balanced_rows_exist_in_source():
    ds = _dataset({0: 3, 1: 40})
    balanced = balance_classes(ds, 10)
    source_rows = set(map(tuple, ds.frame.to_numpy().tolist()))
    for row in balanced.frame.to_numpy().tolist():
        assert tuple(row) in source_rows


def test_undersampling_draws_without_replacement():
    ds = _dataset({0: 100})
    balanced = balance_classes(ds, 30)
    assert balanced.frame["alcohol"].is_unique
    assert len(balanced) == 30


def test_unseen_labels_are_not_invented():
    balanced = balance_classes(_dataset({4: 2, 6: 9}), 5)
    assert set(balanced.class_distribution()) == {4, 6}


def test_columns_unchanged_and_input_untouched():
    ds = _dataset({0: 4, 1: 12})
    before = ds.frame
    balanced = balance_classes(ds, 6)
    assert balanced.columns == ds.columns
    assert balanced.label_column == "quality"
    pd.testing.assert_frame_equal(ds.frame, before)


def test_same_seed_gives_same_result():
    ds = _dataset({0: 50, 1: 7})
    a = balance_classes(ds, 20, seed=7).frame
    b = balance_classes(ds, 20, seed=7).frame
    pd.testing.assert_frame_equal(a, b)


@pytest.mark.parametrize("target", [0, -5, 2.5, True])
def test_invalid_target(target):
    with pytest.raises(ConfigurationError):
        balance_classes(_dataset({0: 3}), target)


def test_missing_label_values_rejected():
    df = pd.DataFrame({"alcohol": [1.0, 2.0, 3.0], "quality": [5.0, np.nan, 6.0]})
    with pytest.raises(SchemaError):
        balance_classes(TabularDataset(df, "quality"), 2)


def test_plan_modes():
    plan = plan_balancing({3: 2, 5: 1000, 6: 1000, 7: 1500}, 1000)
    assert plan[3].mode is BalancingMode.OVERSAMPLE
    assert plan[3].factor == 500
    assert plan[5].mode is BalancingMode.UNCHANGED
    assert plan[7].mode is BalancingMode.UNDERSAMPLE
    assert plan[7].expected_count == 1000
    assert set(plan) == {3, 5, 6, 7}


def test_balance_on_other_column():
    df = pd.DataFrame(
        {
            "alcohol": np.arange(12, dtype=float),
            "type": [0] * 3 + [1] * 9,
            "quality": [5, 6] * 6,
        }
    )
    balanced = balance_classes(TabularDataset(df, "quality"), 3, label_column="type")
    counts = balanced.frame["type"].value_counts().to_dict()
    assert counts == {0: 3, 1: 3}
    assert balanced.label_column == "quality"
