"""Leaf factories turning a node's final statistics into a prediction payload."""
from __future__ import annotations

import numpy as np


class RegressionLeafFactory:
    """Leaf payload is the weighted target mean of the node."""

    def create(self, calculator) -> float:
        return float(calculator.leaf_value())


class ClassificationLeafFactory:
    """Leaf payload is the weighted class-probability vector of the node."""

    def create(self, calculator) -> np.ndarray:
        proba = np.array(calculator.leaf_value(), dtype=float)
        proba.setflags(write=False)
        return proba
