# -*- coding: utf-8 -*-
"""
cartpy.tree
===========

This module implements a CART decision tree classifier with a scikit‑learn
style API.  Splits are chosen by Gini or entropy impurity improvement over
numeric features, trees are grown breadth-first up to a node budget, and
splitting stops when no split improves impurity by at least
``minimum_information_gain``.

The shared estimator plumbing (hyper-parameter handling, learner
construction, rule export, pretty printing and Graphviz export) lives in
:class:`_BaseCart`, which :class:`~cartpy.regressor.CartRegressor` reuses.
"""
from __future__ import annotations

import numpy as np
from sklearn.base import BaseEstimator, ClassifierMixin
from sklearn.utils import check_array, check_X_y

from .export import export_graphviz, export_rules, format_tree, trace_rule
from .impurity import EntropyImpurityMetric, GiniImpurityMetric
from .leaves import ClassificationLeafFactory
from .learner import CartLearner, LeafNode
from .selectors import AllFeatureCandidateSelector, RandomFeatureCandidateSelector

_CRITERIA = {"gini": GiniImpurityMetric, "entropy": EntropyImpurityMetric}


class _BaseCart(BaseEstimator):
    """Plumbing shared by the classifier and the regressor."""

    def _impurity_metric(self):
        """Impurity metric handed to the learner; overridden by subclasses."""
        raise NotImplementedError

    def _leaf_factory(self):
        """Leaf factory handed to the learner; overridden by subclasses."""
        raise NotImplementedError

    def _describe_leaf(self, leaf: LeafNode) -> str:
        """Text shown for a leaf in rules, printouts and graphs; overridden by subclasses."""
        raise NotImplementedError

    def _make_learner(self) -> CartLearner:
        if self.n_candidate_features is None:
            selector = AllFeatureCandidateSelector()
        else:
            selector = RandomFeatureCandidateSelector(self.n_candidate_features,
                                                      self.random_state)
        return CartLearner(self.minimum_split_size, self.maximum_tree_size,
                           self.minimum_information_gain, self._impurity_metric(),
                           selector, self._leaf_factory())

    def _fit_tree(self, X, y, sample_weight):
        if sample_weight is not None:
            sample_weight = np.asarray(sample_weight, dtype=float)
            if sample_weight.shape != (len(y),):
                raise ValueError("sample_weight must have the same length as y")
        n_features = X.shape[1]
        if self.feature_names is not None and len(self.feature_names) != n_features:
            raise ValueError("feature_names length must match X.shape[1]")
        self.n_features_in_ = n_features
        self.feature_names_ = list(self.feature_names) if self.feature_names is not None else None
        self.tree_ = self._make_learner().learn(X, y, sample_weight)

    def _check_fitted(self):
        if getattr(self, "tree_", None) is None:
            raise ValueError("Estimator not fitted. Call fit(...) first.")

    def _check_X(self, X):
        self._check_fitted()
        X = check_array(X, dtype=np.float64)
        if X.shape[1] != self.n_features_in_:
            raise ValueError(
                f"X has {X.shape[1]} features, but the tree was fitted with "
                f"{self.n_features_in_} features"
            )
        return X

    def _maybe_feature_names(self, feature_names=None):
        return feature_names if feature_names is not None else getattr(self, "feature_names_", None)

    @property
    def feature_importances_(self) -> np.ndarray:
        """Impurity-improvement importances normalised to sum to one."""
        self._check_fitted()
        importance = np.array(self.tree_.variable_importance, dtype=float)
        total = importance.sum()
        if total > 0:
            importance /= total
        return importance

    def predict_rule(self, X, feature_names=None) -> list[str]:
        """
        Return the decision rule (antecedent) followed by each input instance.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Input samples.
        feature_names : list[str], optional
            Alternative names for the features.

        Returns
        -------
        list[str]
            A list of antecedent strings, one per input sample.
        """
        X = self._check_X(X)
        fn = self._maybe_feature_names(feature_names)
        return [trace_rule(self.tree_, x, fn) for x in X]

    def export_rules(self, feature_names=None) -> list[str]:
        """Export all decision rules as ``"<antecedent> => <leaf>"`` strings."""
        self._check_fitted()
        return export_rules(self.tree_, self._describe_leaf,
                            self._maybe_feature_names(feature_names))

    def print_tree(self, feature_names=None) -> None:
        """Pretty‑print the fitted tree to ``stdout``."""
        self._check_fitted()
        print(format_tree(self.tree_, self._describe_leaf,
                          self._maybe_feature_names(feature_names)))

    def export_graphviz(self, filename: str | None = None, *, feature_names=None,
                        format: str = "png") -> str:
        """
        Export the tree structure in Graphviz format.

        See :func:`cartpy.export.export_graphviz`.  Returns the path of the
        written file, or the DOT source when ``filename`` is None.
        """
        self._check_fitted()
        return export_graphviz(self.tree_, self._describe_leaf, filename,
                               feature_names=self._maybe_feature_names(feature_names),
                               format=format)


class CartClassifier(ClassifierMixin, _BaseCart):
    """
    CART decision tree classifier.

    Parameters
    ----------
    criterion : {"gini", "entropy"}, default="gini"
        Impurity measure used to rank splits.
    minimum_split_size : int, default=1
        Nodes holding fewer training samples become leaves.
    maximum_tree_size : int, default=2000
        Maximum number of nodes (leaves included) in the tree.
    minimum_information_gain : float, default=1e-6
        Smallest impurity improvement that justifies a split.  Must be
        strictly positive.
    n_candidate_features : int or None, default=None
        If set, each split examines a random subset of this many features
        instead of all of them.
    random_state : int, RandomState or None, default=None
        Seed for the feature subsampling.  Ignored when
        ``n_candidate_features`` is None.
    feature_names : list[str] or None, default=None
        Names used by the rule and Graphviz exports.

    Attributes
    ----------
    classes_ : ndarray of shape (n_classes,)
        Class labels seen during ``fit``.
    tree_ : CartTree
        The fitted tree.  Leaf values are class-probability vectors ordered
        like ``classes_``.
    """

    def __init__(
        self,
        *,
        criterion: str = "gini",
        minimum_split_size: int = 1,
        maximum_tree_size: int = 2000,
        minimum_information_gain: float = 1e-6,
        n_candidate_features: int | None = None,
        random_state=None,
        feature_names: list[str] | None = None,
    ):
        self.criterion = criterion
        self.minimum_split_size = minimum_split_size
        self.maximum_tree_size = maximum_tree_size
        self.minimum_information_gain = minimum_information_gain
        self.n_candidate_features = n_candidate_features
        self.random_state = random_state
        self.feature_names = feature_names

    def _impurity_metric(self):
        if self.criterion not in _CRITERIA:
            raise ValueError(
                f"criterion must be one of {sorted(_CRITERIA)}, got {self.criterion!r}"
            )
        return _CRITERIA[self.criterion]()

    def _leaf_factory(self):
        return ClassificationLeafFactory()

    def _describe_leaf(self, leaf: LeafNode) -> str:
        cls = self.classes_[int(np.argmax(leaf.value))]
        dist = {c: round(float(p), 4) for c, p in zip(self.classes_.tolist(), leaf.value)}
        return f"class={cls} proba={dist}"

    def fit(self, X, y, sample_weight=None):
        X, y = check_X_y(X, y, dtype=np.float64)
        self.classes_, encoded = np.unique(y, return_inverse=True)
        self._fit_tree(X, encoded, sample_weight)
        return self

    def predict_proba(self, X) -> np.ndarray:
        """
        Predict class probabilities for the provided samples.

        Returns
        -------
        ndarray of shape (n_samples, n_classes)
            Weighted class proportions of the leaf each sample reaches.
        """
        X = self._check_X(X)
        return np.vstack([self.tree_.predict(x) for x in X])

    def predict(self, X) -> np.ndarray:
        proba = self.predict_proba(X)
        return self.classes_[np.argmax(proba, axis=1)]
