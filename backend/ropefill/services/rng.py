"""
Rope Puzzle - Random sources

Mulberry32 as an immutable value: every draw returns (value, next_source),
so a generation pass is reproducible from its seed alone.
"""

import random
from typing import NamedTuple, Optional, Sequence, Tuple, TypeVar, Union

T = TypeVar("T")

_MASK32 = 0xFFFFFFFF


def _imul(a: int, b: int) -> int:
    return (a * b) & _MASK32


class Mulberry32(NamedTuple):
    """32-bit state Mulberry32 generator (same stream as the editor)."""

    state: int

    @classmethod
    def from_seed(cls, seed: int) -> "Mulberry32":
        return cls(seed & _MASK32)

    def next(self) -> Tuple[float, "Mulberry32"]:
        """Float in [0, 1) and the advanced generator."""
        state = (self.state + 0x6D2B79F5) & _MASK32
        t = _imul(state ^ (state >> 15), state | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _MASK32
        value = ((t ^ (t >> 14)) & _MASK32) / 4294967296
        return value, Mulberry32(state)


class SystemSource:
    """Unseeded source with the same interface; state lives in random.Random."""

    def __init__(self, generator: Optional[random.Random] = None):
        self._generator = generator or random.Random()

    def next(self) -> Tuple[float, "SystemSource"]:
        return self._generator.random(), self


RandomSource = Union[Mulberry32, SystemSource]


def make_source(seed: Optional[int]) -> RandomSource:
    """Seeded Mulberry32 when a seed is given, otherwise a system source."""
    if seed is None:
        return SystemSource()
    return Mulberry32.from_seed(seed)


# ============================================
# DRAW HELPERS
# ============================================

def draw_int(source: RandomSource, min_val: int, max_val: int) -> Tuple[int, RandomSource]:
    """Uniform integer in [min_val, max_val]."""
    if min_val >= max_val:
        return min_val, source
    value, source = source.next()
    return min_val + int(value * (max_val - min_val + 1)), source


def draw_choice(source: RandomSource, items: Sequence[T]) -> Tuple[T, RandomSource]:
    """Uniform element of a non-empty sequence."""
    value, source = source.next()
    return items[int(value * len(items))], source


def draw_weighted(
    source: RandomSource,
    items: Sequence[T],
    weights: Sequence[float],
) -> Tuple[T, RandomSource]:
    """Roulette-wheel pick; weights must be positive."""
    total = sum(weights)
    value, source = source.next()
    remaining = value * total
    for item, weight in zip(items, weights):
        remaining -= weight
        if remaining <= 0:
            return item, source
    return items[-1], source
