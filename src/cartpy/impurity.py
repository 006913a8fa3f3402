"""
cartpy.impurity
===============

Impurity metrics and the incremental impurity calculators used by the split
search.

A calculator is created once per tree node from the node's targets and weights
(position-aligned with the node's current sort order) and then swept from left
to right across every candidate split position of a feature.  Moving the
cursor from ``p`` to ``q`` only touches positions ``[p, q)``, so a full sweep
over a node of ``n`` observations costs ``O(n)``.

An empty ``weights`` array means that every observation has weight ``1.0``;
the calculators special-case it instead of materialising a vector of ones.
"""
from __future__ import annotations

from typing import NamedTuple

import numpy as np

from .interval import Interval


class ChildImpurities(NamedTuple):
    left: float
    right: float


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def _variance(sq_sum: float, total: float, weight: float) -> float:
    # E[x^2] - E[x]^2
    if weight <= 0.0:
        return 0.0
    mean = total / weight
    return max(0.0, sq_sum / weight - mean * mean)


def _check_inputs(targets, weights, interval: Interval):
    if targets is None:
        raise ValueError("targets must not be None")
    if weights is None:
        raise ValueError("weights must not be None")
    if interval.to_exclusive > len(targets):
        raise ValueError(
            f"interval [{interval.from_inclusive}, {interval.to_exclusive}) exceeds "
            f"the {len(targets)} available targets"
        )
    if len(weights) != 0 and len(weights) != len(targets):
        raise ValueError("weights must be empty or have the same length as targets")


# -----------------------------------------------------------------------------
# Metrics
# -----------------------------------------------------------------------------
class GiniImpurityMetric:
    """Gini impurity ``1 - sum(p_k^2)`` of a weighted class-count vector."""

    classification = True

    def impurity(self, counts: np.ndarray) -> float:
        total = float(counts.sum())
        if total <= 0.0:
            return 0.0
        p = counts / total
        return float(1.0 - np.dot(p, p))

    def calculator(self, targets, weights, interval: Interval, n_classes: int):
        return ClassificationImpurityCalculator(targets, weights, interval, n_classes, self)


class EntropyImpurityMetric(GiniImpurityMetric):
    """Shannon entropy ``-sum(p_k log2 p_k)`` of a weighted class-count vector."""

    def impurity(self, counts: np.ndarray) -> float:
        total = float(counts.sum())
        if total <= 0.0:
            return 0.0
        p = counts / total
        p = p[p > 0]
        return float(-np.sum(p * np.log2(p)))


class VarianceImpurityMetric:
    """Weighted population variance; regression targets."""

    classification = False

    def calculator(self, targets, weights, interval: Interval, n_classes: int | None = None):
        return RegressionImpurityCalculator(targets, weights, interval)


# -----------------------------------------------------------------------------
# Calculators
# -----------------------------------------------------------------------------
class RegressionImpurityCalculator:
    """Variance impurity with Friedman's impurity improvement.

    Parameters
    ----------
    targets : ndarray of shape (n_positions,)
        Continuous targets, aligned with buffer positions.
    weights : ndarray of shape (n_positions,) or (0,)
        Observation weights aligned like ``targets``; empty means unit weights.
    interval : Interval
        The node's range of positions.

    Attributes
    ----------
    current_position : int
        Sweep cursor.  Positions ``[interval.from_inclusive, current_position)``
        form the left partition, the remainder of the interval the right one.
    shift : float
        Offset subtracted from every target before it enters the ``sum_*`` and
        ``sq_sum_*`` statistics.
    """

    def __init__(self, targets, weights, interval: Interval):
        _check_inputs(targets, weights, interval)
        self._targets = targets
        self._weights = weights
        self._weights_present = len(weights) != 0
        self.interval = interval

        y = np.asarray(targets[interval.as_slice()], dtype=float)
        # sums are taken relative to the first target of the interval
        self.shift = float(y[0])
        y = y - self.shift
        if self._weights_present:
            w = np.asarray(weights[interval.as_slice()], dtype=float)
            wy = w * y
            self.weighted_total = float(w.sum())
        else:
            wy = y
            self.weighted_total = float(interval.length)

        self.sum_total = float(wy.sum())
        self.sq_sum_total = float(np.dot(wy, y))
        self.mean_total = self.shift + (self.sum_total / self.weighted_total
                                        if self.weighted_total > 0 else 0.0)

        self.reset()

    def reset(self) -> None:
        """Rewind the cursor to the start of the interval."""
        self.current_position = self.interval.from_inclusive

        self.weighted_left = 0.0
        self.weighted_right = self.weighted_total
        self.sum_left = 0.0
        self.sum_right = self.sum_total
        self.sq_sum_left = 0.0
        self.sq_sum_right = self.sq_sum_total

    def update(self, new_position: int) -> None:
        """Move positions ``[current_position, new_position)`` to the left partition."""
        if new_position < self.current_position:
            raise ValueError(
                f"New position: {new_position} must be larger than current: "
                f"{self.current_position}"
            )
        if new_position > self.interval.to_exclusive:
            raise ValueError(
                f"New position: {new_position} exceeds the interval end "
                f"{self.interval.to_exclusive}"
            )
        if new_position == self.current_position:
            return

        sl = slice(self.current_position, new_position)
        y = np.asarray(self._targets[sl], dtype=float) - self.shift
        if self._weights_present:
            w = np.asarray(self._weights[sl], dtype=float)
            wy = w * y
            w_diff = float(w.sum())
        else:
            wy = y
            w_diff = float(new_position - self.current_position)

        s = float(wy.sum())
        sq = float(np.dot(wy, y))

        self.sum_left += s
        self.sum_right -= s
        self.sq_sum_left += sq
        self.sq_sum_right -= sq
        self.weighted_left += w_diff
        self.weighted_right -= w_diff

        self.current_position = new_position

    def node_impurity(self) -> float:
        return _variance(self.sq_sum_total, self.sum_total, self.weighted_total)

    def child_impurities(self) -> ChildImpurities:
        return ChildImpurities(
            _variance(self.sq_sum_left, self.sum_left, self.weighted_left),
            _variance(self.sq_sum_right, self.sum_right, self.weighted_right),
        )

    def impurity_improvement(self, impurity: float) -> float:
        """Friedman's improvement ``wL*wR/(wL+wR) * (meanL - meanR)^2``.

        ``impurity`` is accepted to match the classification calculator and is
        not used.
        """
        if self.weighted_left <= 0.0 or self.weighted_right <= 0.0:
            return 0.0
        diff = self.sum_left / self.weighted_left - self.sum_right / self.weighted_right
        return (self.weighted_left * self.weighted_right * diff * diff /
                (self.weighted_left + self.weighted_right))

    def leaf_value(self) -> float:
        return self.mean_total


class ClassificationImpurityCalculator:
    """Per-class weighted counts swept like :class:`RegressionImpurityCalculator`.

    ``targets`` hold class indices in ``[0, n_classes)``; ``metric`` turns a
    count vector into an impurity (see :class:`GiniImpurityMetric`).
    """

    def __init__(self, targets, weights, interval: Interval, n_classes: int, metric):
        _check_inputs(targets, weights, interval)
        if n_classes is None or int(n_classes) < 1:
            raise ValueError(f"n_classes must be >= 1, got {n_classes}")
        if metric is None:
            raise ValueError("metric must not be None")
        self._targets = targets
        self._weights = weights
        self._weights_present = len(weights) != 0
        self.interval = interval
        self.n_classes = int(n_classes)
        self.metric = metric

        self.counts_total = self._class_counts(interval.from_inclusive, interval.to_exclusive)
        self.weighted_total = float(self.counts_total.sum())

        self.reset()

    def _class_counts(self, start: int, end: int) -> np.ndarray:
        y = np.asarray(self._targets[start:end], dtype=np.intp)
        w = np.asarray(self._weights[start:end], dtype=float) if self._weights_present else None
        return np.bincount(y, weights=w, minlength=self.n_classes).astype(float)

    def reset(self) -> None:
        self.current_position = self.interval.from_inclusive

        self.counts_left = np.zeros(self.n_classes, dtype=float)
        self.counts_right = self.counts_total.copy()
        self.weighted_left = 0.0
        self.weighted_right = self.weighted_total

    def update(self, new_position: int) -> None:
        if new_position < self.current_position:
            raise ValueError(
                f"New position: {new_position} must be larger than current: "
                f"{self.current_position}"
            )
        if new_position > self.interval.to_exclusive:
            raise ValueError(
                f"New position: {new_position} exceeds the interval end "
                f"{self.interval.to_exclusive}"
            )
        if new_position == self.current_position:
            return

        moved = self._class_counts(self.current_position, new_position)
        w_diff = float(moved.sum())

        self.counts_left += moved
        self.counts_right -= moved
        self.weighted_left += w_diff
        self.weighted_right -= w_diff

        self.current_position = new_position

    def node_impurity(self) -> float:
        return self.metric.impurity(self.counts_total)

    def child_impurities(self) -> ChildImpurities:
        return ChildImpurities(self.metric.impurity(self.counts_left),
                               self.metric.impurity(self.counts_right))

    def impurity_improvement(self, impurity: float) -> float:
        """Parent impurity minus the weight-averaged child impurities."""
        if self.weighted_total <= 0.0:
            return 0.0
        left, right = self.child_impurities()
        return (impurity
                - self.weighted_left / self.weighted_total * left
                - self.weighted_right / self.weighted_total * right)

    def leaf_value(self) -> np.ndarray:
        """Class-probability vector of the whole interval."""
        if self.weighted_total <= 0.0:
            return np.full(self.n_classes, 1.0 / self.n_classes)
        return self.counts_total / self.weighted_total
