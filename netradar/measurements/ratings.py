"""Ordered rating scales shared by the scorers.

Members are declared best-first; comparisons follow that order so that
``Quality.EXCELLENT > Quality.POOR`` holds for every scale.
"""

from __future__ import annotations

from enum import Enum
from functools import total_ordering


@total_ordering
class OrderedRating(str, Enum):
    """String enum whose members compare by declaration order (first = best)."""

    def _rank_of(self, other) -> int:
        # str would otherwise fall back to alphabetical order
        if type(other) is not type(self):
            raise TypeError(
                f"cannot compare {type(self).__name__} with {type(other).__name__}"
            )
        return other.rank

    @property
    def rank(self) -> int:
        members = list(type(self))
        return len(members) - members.index(self)

    def __lt__(self, other):
        return self.rank < self._rank_of(other)

    def __le__(self, other):
        return self.rank <= self._rank_of(other)

    def __gt__(self, other):
        return self.rank > self._rank_of(other)

    def __ge__(self, other):
        return self.rank >= self._rank_of(other)

    def __str__(self) -> str:
        return self.value


class Quality(OrderedRating):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class HealthRating(OrderedRating):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    CRITICAL = "critical"


class QoSTier(OrderedRating):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    UNUSABLE = "unusable"


class CongestionLevel(OrderedRating):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SecurityLevel(OrderedRating):
    SECURE = "secure"
    WARNING = "warning"
    VULNERABLE = "vulnerable"


class Stability(OrderedRating):
    STABLE = "stable"
    UNSTABLE = "unstable"


class SizeProfile(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"

    @classmethod
    def parse(cls, value) -> "SizeProfile":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(
                f"Unknown size profile {value!r}; expected one of {[m.value for m in cls]}"
            ) from None
