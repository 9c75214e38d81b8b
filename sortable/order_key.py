"""Rank value type and comparison helpers"""

from dataclasses import dataclass
from enum import Enum


class Comparison(str, Enum):
    LESS = "less"
    EQUAL = "equal"
    GREATER = "greater"


@dataclass(frozen=True, order=True)
class OrderKey:
    """Position of a record inside its partition.

    Usage:
        OrderKey(3) < OrderKey(5)
        OrderKey(3).next() == OrderKey(4)
    """

    rank: int

    def __post_init__(self):
        if self.rank < 0:
            raise ValueError(f"Rank must be non-negative, got {self.rank}")

    def next(self) -> "OrderKey":
        return OrderKey(next_after(self.rank))

    def __int__(self) -> int:
        return self.rank


def compare(a: int | OrderKey, b: int | OrderKey) -> Comparison:
    """Compare two ranks"""
    left, right = int(a), int(b)
    if left < right:
        return Comparison.LESS
    if left > right:
        return Comparison.GREATER
    return Comparison.EQUAL


def next_after(rank: int | OrderKey) -> int:
    """Return the rank immediately following the given one"""
    return int(rank) + 1
