"""
cartpy.interval
===============

Half-open index ranges over the shared observation-index buffer used while a
tree is grown.  Every node of the tree owns exactly one :class:`Interval`.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Interval:
    """Immutable half-open range ``[from_inclusive, to_exclusive)``.

    Parameters
    ----------
    from_inclusive : int
        First position covered by the interval.
    to_exclusive : int
        One past the last position covered by the interval.
    """

    from_inclusive: int
    to_exclusive: int

    def __post_init__(self):
        if self.from_inclusive < 0:
            raise ValueError(f"from_inclusive must be >= 0, got {self.from_inclusive}")
        if self.to_exclusive <= self.from_inclusive:
            raise ValueError(
                f"to_exclusive ({self.to_exclusive}) must be larger than "
                f"from_inclusive ({self.from_inclusive})"
            )

    @classmethod
    def full(cls, length: int) -> "Interval":
        return cls(0, int(length))

    @property
    def length(self) -> int:
        return self.to_exclusive - self.from_inclusive

    def as_slice(self) -> slice:
        return slice(self.from_inclusive, self.to_exclusive)

    def split(self, position: int) -> tuple["Interval", "Interval"]:
        """Split at ``position`` into ``[from, position)`` and ``[position, to)``."""
        if not self.from_inclusive < position < self.to_exclusive:
            raise ValueError(
                f"split position {position} must lie strictly inside "
                f"[{self.from_inclusive}, {self.to_exclusive})"
            )
        return (Interval(self.from_inclusive, position),
                Interval(position, self.to_exclusive))
