# cartpy/__init__.py
"""
cartpy: CART decision trees in pure Python (scikit-learn style).

Exports:
    - CartClassifier, CartRegressor: scikit-learn estimators
    - CartLearner, CartTree: the underlying tree induction and tree model
    - impurity metrics, feature-candidate selectors and leaf factories
"""
from .impurity import (
    ClassificationImpurityCalculator,
    EntropyImpurityMetric,
    GiniImpurityMetric,
    RegressionImpurityCalculator,
    VarianceImpurityMetric,
)
from .interval import Interval
from .leaves import ClassificationLeafFactory, RegressionLeafFactory
from .learner import CartLearner, CartTree, InternalNode, LeafNode
from .regressor import CartRegressor
from .selectors import AllFeatureCandidateSelector, RandomFeatureCandidateSelector
from .tree import CartClassifier

__all__ = [
    "CartClassifier",
    "CartRegressor",
    "CartLearner",
    "CartTree",
    "InternalNode",
    "LeafNode",
    "Interval",
    "RegressionImpurityCalculator",
    "ClassificationImpurityCalculator",
    "GiniImpurityMetric",
    "EntropyImpurityMetric",
    "VarianceImpurityMetric",
    "AllFeatureCandidateSelector",
    "RandomFeatureCandidateSelector",
    "RegressionLeafFactory",
    "ClassificationLeafFactory",
]
__version__ = "0.1.0"
