"""
cartpy.learner
==============

The CART learner and the finalized tree it produces.

Nodes are grown from a breadth-first work queue rather than by recursion.
Every node counts against ``maximum_tree_size`` (internal nodes and leaves
alike); a node is only split when both children still fit in the budget, so
the finished tree never exceeds it.
"""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Optional, Union

import numpy as np

from .interval import Interval
from .splitter import Splitter

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Tree
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class LeafNode:
    """Terminal node.  ``value`` is the payload built by the leaf factory."""

    value: Any
    weight: float


@dataclass(frozen=True)
class InternalNode:
    """Split node: ``x[feature_index] <= threshold`` routes to ``left``."""

    feature_index: int
    threshold: float
    left: "Node"
    right: "Node"
    weight: float


Node = Union[LeafNode, InternalNode]


class CartTree:
    """A finalized binary decision tree.

    Attributes
    ----------
    root : LeafNode or InternalNode
        Root of the tree.
    node_count : int
        Number of nodes, leaves included.
    leaf_count : int
        Number of leaves.
    depth : int
        Length of the longest root-to-leaf path (0 for a single leaf).
    n_features : int
        Number of feature columns seen during training.
    variable_importance : ndarray of shape (n_features,)
        Summed impurity improvement of the splits made on each feature.
    """

    def __init__(self, root: Node, n_features: int, variable_importance: np.ndarray):
        self.root = root
        self.n_features = int(n_features)
        self.variable_importance = np.array(variable_importance, dtype=float)
        self.variable_importance.setflags(write=False)

        node_count = leaf_count = depth = 0
        stack = [(root, 0)]
        while stack:
            node, level = stack.pop()
            node_count += 1
            depth = max(depth, level)
            if isinstance(node, LeafNode):
                leaf_count += 1
            else:
                stack.append((node.right, level + 1))
                stack.append((node.left, level + 1))
        self.node_count = node_count
        self.leaf_count = leaf_count
        self.depth = depth

    def leaf(self, observation) -> LeafNode:
        """Leaf reached by a single observation."""
        node = self.root
        while isinstance(node, InternalNode):
            if observation[node.feature_index] <= node.threshold:
                node = node.left
            else:
                node = node.right
        return node

    def predict(self, observation):
        return self.leaf(observation).value

    def predict_many(self, observations) -> np.ndarray:
        observations = np.asarray(observations, dtype=float)
        if observations.ndim != 2 or observations.shape[1] != self.n_features:
            raise ValueError(
                f"expected a 2-D array with {self.n_features} columns, "
                f"got shape {observations.shape}"
            )
        return np.array([self.predict(x) for x in observations])


@dataclass
class _PendingNode:
    interval: Interval
    weight: float = 0.0
    value: Any = None
    feature_index: Optional[int] = None
    threshold: Optional[float] = None
    left_id: Optional[int] = None
    right_id: Optional[int] = None


# -----------------------------------------------------------------------------
# Learner
# -----------------------------------------------------------------------------
class CartLearner:
    """CART tree induction over numeric features.

    Parameters
    ----------
    minimum_split_size : int
        Nodes holding fewer observations become leaves.  Must be >= 1.
    maximum_tree_size : int
        Maximum number of nodes, leaves included.  Must be >= 1.
    minimum_information_gain : float
        Smallest impurity improvement that justifies a split.  Must be > 0.
    impurity_metric : object
        Provides ``calculator(targets, weights, interval, n_classes)`` and a
        boolean ``classification`` attribute.
    feature_candidate_selector : object
        Provides ``select(n_features)`` returning the columns to examine.
    leaf_factory : object
        Provides ``create(calculator)`` returning a leaf payload.
    """

    def __init__(self, minimum_split_size: int, maximum_tree_size: int,
                 minimum_information_gain: float, impurity_metric,
                 feature_candidate_selector, leaf_factory):
        if minimum_split_size < 1:
            raise ValueError(f"minimum_split_size must be at least 1, got {minimum_split_size}")
        if maximum_tree_size < 1:
            raise ValueError(f"maximum_tree_size must be at least 1, got {maximum_tree_size}")
        if not minimum_information_gain > 0:
            raise ValueError(
                f"minimum_information_gain must be larger than 0, got {minimum_information_gain}"
            )
        if impurity_metric is None:
            raise ValueError("impurity_metric must not be None")
        if feature_candidate_selector is None:
            raise ValueError("feature_candidate_selector must not be None")
        if leaf_factory is None:
            raise ValueError("leaf_factory must not be None")

        self.minimum_split_size = int(minimum_split_size)
        self.maximum_tree_size = int(maximum_tree_size)
        self.minimum_information_gain = float(minimum_information_gain)
        self.impurity_metric = impurity_metric
        self.feature_candidate_selector = feature_candidate_selector
        self.leaf_factory = leaf_factory

    def _validate(self, observations, targets, weights):
        observations = np.asarray(observations, dtype=float)
        if observations.ndim != 2:
            raise ValueError(f"observations must be 2-D, got {observations.ndim}-D")
        n_rows = observations.shape[0]
        if n_rows == 0:
            raise ValueError("observations must contain at least one row")
        if observations.shape[1] == 0:
            raise ValueError("observations must contain at least one feature")

        targets = np.asarray(targets)
        if targets.ndim != 1 or targets.shape[0] != n_rows:
            raise ValueError(
                f"targets must be 1-D with {n_rows} entries, got shape {targets.shape}"
            )
        if self.impurity_metric.classification:
            if np.any(targets < 0) or np.any(targets != np.floor(targets)):
                raise ValueError("classification targets must be non-negative class indices")
            targets = targets.astype(np.intp)
        else:
            targets = targets.astype(float)

        if weights is None:
            weights = np.empty(0, dtype=float)
        else:
            weights = np.asarray(weights, dtype=float)
            if weights.ndim != 1 or weights.shape[0] not in (0, n_rows):
                raise ValueError(
                    f"weights must be empty or have {n_rows} entries, got shape {weights.shape}"
                )
            if np.any(weights < 0):
                raise ValueError("weights must be non-negative")
        return observations, targets, weights

    def learn(self, observations, targets, weights=None) -> CartTree:
        """Grow a tree.

        Parameters
        ----------
        observations : array-like of shape (n_samples, n_features)
        targets : array-like of shape (n_samples,)
            Class indices for classification metrics, continuous values otherwise.
        weights : array-like of shape (n_samples,) or (0,), optional
            Observation weights.  ``None`` or empty means unit weights.

        Returns
        -------
        CartTree
        """
        observations, targets, weights = self._validate(observations, targets, weights)
        n_rows, n_features = observations.shape
        n_classes = int(targets.max()) + 1 if self.impurity_metric.classification else None

        splitter = Splitter(observations, targets, weights, np.arange(n_rows),
                            self.impurity_metric, n_classes)
        importance = np.zeros(n_features, dtype=float)

        pending = [_PendingNode(Interval.full(n_rows))]
        queue = deque([0])
        while queue:
            node_id = queue.popleft()
            node = pending[node_id]
            interval = node.interval

            calculator = splitter.node_calculator(interval)
            node.weight = calculator.weighted_total

            split = None
            if (interval.length >= self.minimum_split_size
                    and len(pending) + 2 <= self.maximum_tree_size):
                features = self.feature_candidate_selector.select(n_features)
                split = splitter.find_best_split(calculator, interval, features)

            if split is None or split.impurity_improvement < self.minimum_information_gain:
                node.value = self.leaf_factory.create(calculator)
                continue

            left, right = splitter.partition(interval, split)
            importance[split.feature_index] += split.impurity_improvement

            node.feature_index = split.feature_index
            node.threshold = split.split_value
            node.left_id = len(pending)
            node.right_id = node.left_id + 1
            pending.append(_PendingNode(left))
            pending.append(_PendingNode(right))
            queue.append(node.left_id)
            queue.append(node.right_id)

        tree = CartTree(self._assemble(pending), n_features, importance)
        logger.info("grew tree: %d nodes, %d leaves, depth %d",
                    tree.node_count, tree.leaf_count, tree.depth)
        return tree

    @staticmethod
    def _assemble(pending) -> Node:
        # children are always created after their parent
        built: list = [None] * len(pending)
        for node_id in range(len(pending) - 1, -1, -1):
            p = pending[node_id]
            if p.left_id is None:
                built[node_id] = LeafNode(p.value, p.weight)
            else:
                built[node_id] = InternalNode(p.feature_index, p.threshold,
                                              built[p.left_id], built[p.right_id], p.weight)
        return built[0]
