"""
cartpy.splitter
===============

Best-split search for a single tree node.

The splitter owns the index permutation shared by the whole training run.
Each node works on its own :class:`~cartpy.interval.Interval` of that buffer;
sorting a node's slice by a feature only reorders positions inside the slice,
so sibling nodes are never disturbed.  Targets and weights are copied into
position-aligned work buffers after every sort so the impurity calculator can
sweep them with plain slices.

Thresholds are midpoints between the two distinct feature values that
straddle a split position: ``value <= threshold`` goes left, ``value >
threshold`` goes right.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from .interval import Interval

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SplitCandidate:
    """Best split found for a node."""

    feature_index: int
    split_value: float
    impurity_improvement: float
    position: int
    left_interval: Interval
    right_interval: Interval


def _midpoint(low: float, high: float) -> float:
    low, high = float(low), float(high)
    if (low >= 0.0) == (high >= 0.0):
        threshold = low + 0.5 * (high - low)
    else:
        threshold = 0.5 * low + 0.5 * high
    # adjacent floats can round the midpoint up onto ``high``
    if threshold == high:
        threshold = low
    return threshold


class Splitter:
    """Sorts node slices and sweeps an impurity calculator across them.

    Parameters
    ----------
    observations : ndarray of shape (n_samples, n_features)
        Read-only feature matrix.
    targets : ndarray of shape (n_samples,)
        Read-only targets (class indices or continuous values).
    weights : ndarray of shape (n_samples,) or (0,)
        Read-only observation weights; empty means unit weights.
    indices : ndarray of shape (n_samples,)
        Permutation buffer, reordered in place.
    metric : object
        Impurity metric providing ``calculator(...)``.
    n_classes : int or None
        Number of classes for classification metrics.
    """

    def __init__(self, observations, targets, weights, indices, metric, n_classes=None):
        self.observations = observations
        self.targets = targets
        self.weights = weights
        self.indices = indices
        self.metric = metric
        self.n_classes = n_classes

        self.work_targets = np.empty_like(targets)
        self.work_weights = np.empty_like(weights)

    def _gather(self, interval: Interval) -> None:
        sl = interval.as_slice()
        idx = self.indices[sl]
        self.work_targets[sl] = self.targets[idx]
        if len(self.weights) != 0:
            self.work_weights[sl] = self.weights[idx]

    def node_calculator(self, interval: Interval):
        """Fresh impurity calculator holding the statistics of ``interval``."""
        self._gather(interval)
        return self.metric.calculator(self.work_targets, self.work_weights,
                                      interval, self.n_classes)

    def sort_interval(self, interval: Interval, feature_index: int) -> np.ndarray:
        """Stable-sort the slice by one feature; return the sorted values."""
        sl = interval.as_slice()
        idx = self.indices[sl]
        values = self.observations[idx, feature_index]
        order = np.argsort(values, kind="stable")
        self.indices[sl] = idx[order]
        self._gather(interval)
        return values[order]

    def find_best_split(self, calculator, interval: Interval, features) -> SplitCandidate | None:
        """Return the split with the largest impurity improvement, or ``None``.

        ``None`` means no candidate feature takes more than one distinct value
        inside the interval.  Ties keep the first candidate encountered.
        """
        parent_impurity = calculator.node_impurity()
        start = interval.from_inclusive

        best_improvement = -np.inf
        best = None
        for feature in features:
            feature = int(feature)
            values = self.sort_interval(interval, feature)
            boundaries = np.flatnonzero(values[:-1] != values[1:])
            if boundaries.size == 0:
                continue

            calculator.reset()
            for b in boundaries:
                position = start + int(b) + 1
                calculator.update(position)
                improvement = calculator.impurity_improvement(parent_impurity)
                if improvement > best_improvement:
                    best_improvement = improvement
                    best = (feature, _midpoint(values[b], values[b + 1]), position)

        if best is None:
            return None

        feature, threshold, position = best
        left, right = interval.split(position)
        logger.debug("best split for %s: feature=%d threshold=%.6g improvement=%.6g",
                     interval, feature, threshold, best_improvement)
        return SplitCandidate(feature, threshold, float(best_improvement), position, left, right)

    def partition(self, interval: Interval, split: SplitCandidate) -> tuple[Interval, Interval]:
        """Reorder the slice by the split feature and return the child intervals."""
        self.sort_interval(interval, split.feature_index)
        return split.left_interval, split.right_interval
