"""CART regression tree (variance impurity, Friedman improvement)."""
from __future__ import annotations

import numpy as np
from sklearn.base import RegressorMixin
from sklearn.utils import check_X_y

from .impurity import VarianceImpurityMetric
from .leaves import RegressionLeafFactory
from .learner import LeafNode
from .tree import _BaseCart


class CartRegressor(RegressorMixin, _BaseCart):
    r"""
    CART regression tree with a scikit-learn–style API.

    Splits maximise Friedman's between-group sum of squares
    ``wL*wR/(wL+wR) * (meanL - meanR)^2``; leaves predict the weighted mean of
    their training targets.

    Parameters
    ----------
    minimum_split_size : int, default=1
        Nodes holding fewer training samples become leaves.
    maximum_tree_size : int, default=2000
        Maximum number of nodes (leaves included) in the tree.
    minimum_information_gain : float, default=1e-6
        Smallest improvement that justifies a split.  Must be strictly positive.
    n_candidate_features : int or None, default=None
        If set, each split examines a random subset of this many features.
    random_state : int, RandomState or None, default=None
        Seed for the feature subsampling.
    feature_names : list[str] or None, default=None
        Names used by the rule and Graphviz exports.

    Attributes
    ----------
    tree_ : CartTree
        The fitted tree; leaf values are floats.
    """

    def __init__(self,
                 *,
                 minimum_split_size: int = 1,
                 maximum_tree_size: int = 2000,
                 minimum_information_gain: float = 1e-6,
                 n_candidate_features: int | None = None,
                 random_state=None,
                 feature_names: list[str] | None = None):
        self.minimum_split_size = minimum_split_size
        self.maximum_tree_size = maximum_tree_size
        self.minimum_information_gain = minimum_information_gain
        self.n_candidate_features = n_candidate_features
        self.random_state = random_state
        self.feature_names = feature_names

    def _impurity_metric(self):
        return VarianceImpurityMetric()

    def _leaf_factory(self):
        return RegressionLeafFactory()

    def _describe_leaf(self, leaf: LeafNode) -> str:
        return f"value={leaf.value:.6g}"

    def fit(self, X, y, sample_weight=None):
        X, y = check_X_y(X, y, dtype=np.float64, y_numeric=True)
        self._fit_tree(X, y.astype(float), sample_weight)
        return self

    def predict(self, X) -> np.ndarray:
        X = self._check_X(X)
        return np.array([self.tree_.predict(x) for x in X], dtype=float)
