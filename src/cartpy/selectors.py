"""Feature-candidate selectors: which columns a split search examines."""
from __future__ import annotations

import numpy as np
from sklearn.utils import check_random_state


class AllFeatureCandidateSelector:
    """Examine every feature, in column order."""

    def select(self, n_features: int) -> np.ndarray:
        return np.arange(n_features)


class RandomFeatureCandidateSelector:
    """Examine a random subset of ``n_candidates`` features per split.

    Draws are without replacement and returned in draw order, which is also
    the tie-break order of the split search.  Used to decorrelate trees in
    randomised ensembles.
    """

    def __init__(self, n_candidates: int, random_state=None):
        if int(n_candidates) < 1:
            raise ValueError(f"n_candidates must be at least 1, got {n_candidates}")
        self.n_candidates = int(n_candidates)
        self.random_state = random_state
        self._rng = check_random_state(random_state)

    def select(self, n_features: int) -> np.ndarray:
        k = min(self.n_candidates, n_features)
        return self._rng.choice(n_features, size=k, replace=False)
