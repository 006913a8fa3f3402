import logging

import numpy as np
import pytest

from cartpy import (AllFeatureCandidateSelector, CartLearner, ClassificationLeafFactory,
                    GiniImpurityMetric, InternalNode, Interval, LeafNode,
                    RandomFeatureCandidateSelector, RegressionLeafFactory,
                    VarianceImpurityMetric)
from cartpy.splitter import Splitter, _midpoint


def _regression_learner(minimum_split_size=1, maximum_tree_size=100,
                        minimum_information_gain=1e-6, selector=None):
    return CartLearner(minimum_split_size, maximum_tree_size, minimum_information_gain,
                       VarianceImpurityMetric(),
                       selector or AllFeatureCandidateSelector(),
                       RegressionLeafFactory())


def _classification_learner(minimum_split_size=1, maximum_tree_size=100,
                            minimum_information_gain=1e-6):
    return CartLearner(minimum_split_size, maximum_tree_size, minimum_information_gain,
                       GiniImpurityMetric(), AllFeatureCandidateSelector(),
                       ClassificationLeafFactory())


def _step_dataset():
    X = np.arange(1, 9, dtype=float).reshape(-1, 1)
    y = np.array([1, 1, 1, 1, 5, 5, 5, 5], dtype=float)
    return X, y


@pytest.mark.parametrize("args", [(0, 1, 0.1), (1, 0, 0.1), (1, 1, 0.0), (1, 1, -0.5)])
def test_invalid_hyperparameters_raise(args):
    with pytest.raises(ValueError):
        CartLearner(*args, GiniImpurityMetric(), AllFeatureCandidateSelector(),
                    ClassificationLeafFactory())


def test_valid_hyperparameters_construct():
    learner = CartLearner(1, 1, 0.1, GiniImpurityMetric(), AllFeatureCandidateSelector(),
                          ClassificationLeafFactory())
    assert learner.maximum_tree_size == 1


def test_step_function_is_split_at_boundary():
    X, y = _step_dataset()
    tree = _regression_learner().learn(X, y)
    root = tree.root
    assert isinstance(root, InternalNode)
    assert root.feature_index == 0
    assert root.threshold == pytest.approx(4.5)
    assert isinstance(root.left, LeafNode) and isinstance(root.right, LeafNode)
    assert root.left.value == pytest.approx(1.0)
    assert root.right.value == pytest.approx(5.0)
    assert tree.node_count == 3
    assert tree.leaf_count == 2
    assert tree.depth == 1
    assert tree.predict([4.0]) == pytest.approx(1.0)
    assert tree.predict([4.6]) == pytest.approx(5.0)
    assert tree.variable_importance[0] == pytest.approx(32.0)


def test_splitter_finds_step_boundary():
    X, y = _step_dataset()
    splitter = Splitter(X, y, np.empty(0), np.arange(8), VarianceImpurityMetric())
    interval = Interval(0, 8)
    calculator = splitter.node_calculator(interval)
    split = splitter.find_best_split(calculator, interval, [0])
    assert split.feature_index == 0
    assert split.split_value == pytest.approx(4.5)
    assert split.impurity_improvement == pytest.approx(32.0)
    assert split.position == 4
    assert (split.left_interval.length, split.right_interval.length) == (4, 4)


def test_splitter_skips_constant_feature_and_breaks_ties_by_order():
    X, y = _step_dataset()
    X = np.column_stack([np.full(8, 2.0), X[:, 0], X[:, 0]])
    splitter = Splitter(X, y, np.empty(0), np.arange(8), VarianceImpurityMetric())
    interval = Interval(0, 8)
    split = splitter.find_best_split(splitter.node_calculator(interval), interval, [0, 2, 1])
    assert split.feature_index == 2

    only_constant = splitter.find_best_split(splitter.node_calculator(interval), interval, [0])
    assert only_constant is None


def test_insufficient_gain_yields_single_regression_leaf():
    X, y = _step_dataset()
    w = np.array([1.0, 2.0, 1.0, 1.0, 1.0, 1.0, 3.0, 1.0])
    tree = _regression_learner(minimum_information_gain=1e9).learn(X, y, w)
    assert tree.node_count == 1
    assert tree.root.value == pytest.approx(np.average(y, weights=w))
    assert np.all(tree.variable_importance == 0.0)


def test_insufficient_gain_yields_single_classification_leaf():
    X = np.arange(5, dtype=float).reshape(-1, 1)
    y = np.array([0, 0, 1, 1, 1])
    w = np.array([1.0, 1.0, 1.0, 1.0, 4.0])
    tree = _classification_learner(minimum_information_gain=10.0).learn(X, y, w)
    assert isinstance(tree.root, LeafNode)
    assert np.allclose(tree.root.value, [0.25, 0.75])


def test_constant_targets_yield_single_leaf():
    rng = np.random.RandomState(0)
    X = rng.normal(size=(30, 3))
    tree = _regression_learner().learn(X, np.full(30, 7.0))
    assert tree.node_count == 1
    assert tree.root.value == pytest.approx(7.0)


@pytest.mark.parametrize("value", [0.1, 1e8 + 0.1, 1e10 + 0.3, 1e12 + 0.7])
@pytest.mark.parametrize("size", [50, 500])
def test_inexact_constant_targets_yield_single_leaf(value, size):
    rng = np.random.RandomState(4)
    X = rng.normal(size=(size, 3))
    tree = _regression_learner(maximum_tree_size=2000).learn(X, np.full(size, value))
    assert tree.node_count == 1
    assert tree.root.value == pytest.approx(value)


def test_minimum_split_size_stops_small_nodes():
    X, y = _step_dataset()
    assert _regression_learner(minimum_split_size=9).learn(X, y).node_count == 1
    assert _regression_learner(minimum_split_size=8).learn(X, y).node_count == 3


@pytest.mark.parametrize("maximum_tree_size", [1, 2, 3, 4, 5, 10, 25])
def test_tree_size_never_exceeds_budget(maximum_tree_size):
    rng = np.random.RandomState(1)
    X = rng.uniform(size=(200, 4))
    y = rng.normal(size=200)
    tree = _regression_learner(maximum_tree_size=maximum_tree_size).learn(X, y)
    assert tree.node_count <= maximum_tree_size
    assert tree.node_count % 2 == 1


def test_empty_weights_match_unit_weights():
    rng = np.random.RandomState(2)
    X = rng.uniform(size=(60, 3))
    y = rng.normal(size=60)
    unweighted = _regression_learner().learn(X, y)
    weighted = _regression_learner().learn(X, y, np.ones(60))
    assert unweighted.node_count == weighted.node_count
    assert np.array_equal(unweighted.predict_many(X), weighted.predict_many(X))

    labels = (y > 0).astype(int)
    a = _classification_learner().learn(X, labels, np.empty(0))
    b = _classification_learner().learn(X, labels, np.ones(60))
    assert np.array_equal(a.predict_many(X), b.predict_many(X))


def test_classification_tree_fits_separable_data():
    X = np.array([[0.0, 1.0], [1.0, 1.0], [2.0, 0.0], [3.0, 0.0]])
    y = np.array([0, 0, 1, 1])
    tree = _classification_learner().learn(X, y)
    proba = tree.predict_many(X)
    assert proba.shape == (4, 2)
    assert np.array_equal(proba.argmax(axis=1), y)


def test_random_selector_is_reproducible():
    rng = np.random.RandomState(3)
    X = rng.uniform(size=(80, 5))
    y = X[:, 0] * 3 + rng.normal(scale=0.1, size=80)
    first = _regression_learner(selector=RandomFeatureCandidateSelector(2, random_state=7)).learn(X, y)
    second = _regression_learner(selector=RandomFeatureCandidateSelector(2, random_state=7)).learn(X, y)
    assert np.array_equal(first.predict_many(X), second.predict_many(X))


@pytest.mark.parametrize("X, y, w", [
    (np.arange(4.0), np.arange(4.0), None),
    (np.ones((4, 1)), np.arange(3.0), None),
    (np.ones((4, 1)), np.arange(4.0), np.ones(3)),
    (np.ones((4, 1)), np.arange(4.0), -np.ones(4)),
    (np.empty((0, 1)), np.empty(0), None),
])
def test_learn_rejects_malformed_inputs(X, y, w):
    with pytest.raises(ValueError):
        _regression_learner().learn(X, y, w)


def test_predict_many_checks_feature_count():
    X, y = _step_dataset()
    tree = _regression_learner().learn(X, y)
    with pytest.raises(ValueError):
        tree.predict_many(np.ones((2, 3)))


@pytest.mark.parametrize("low, high", [
    (1e308, 1.7e308),
    (-1.7e308, -1e308),
    (-1e308, 1.7e308),
    (1.0, np.nextafter(1.0, 2.0)),
    (np.nextafter(1.0, 2.0), np.nextafter(np.nextafter(1.0, 2.0), 2.0)),
])
def test_threshold_separates_training_values(low, high):
    X = np.array([[low], [high]])
    tree = _regression_learner().learn(X, np.array([0.0, 10.0]))
    assert low <= tree.root.threshold < high
    assert np.isfinite(tree.root.threshold)
    assert np.array_equal(tree.predict_many(X), [0.0, 10.0])


def test_midpoint_falls_back_to_lower_value_when_rounded_up():
    low = np.nextafter(1.0, 2.0)
    high = np.nextafter(low, 2.0)
    assert _midpoint(low, high) == low
    assert _midpoint(2.0, 4.0) == 3.0


def test_learn_logs_tree_summary(caplog):
    X, y = _step_dataset()
    with caplog.at_level(logging.INFO, logger="cartpy.learner"):
        _regression_learner().learn(X, y)
    summaries = [r for r in caplog.records
                 if r.name == "cartpy.learner" and r.levelno == logging.INFO]
    assert len(summaries) == 1
    assert "3 nodes, 2 leaves, depth 1" in summaries[0].getMessage()
