"""
Mono- and dinucleotide composition of a (gap-free) sequence.
"""

from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "NUCLEOTIDES",
    "DINUCLEOTIDES",
    "CompositionProfile",
    "analyze_composition",
]

NUCLEOTIDES = ("A", "C", "G", "U")
DINUCLEOTIDES = tuple(x + y for x in NUCLEOTIDES for y in NUCLEOTIDES)

_CLASS = {"A": 0, "C": 1, "G": 2, "U": 3, "T": 3}
_OTHER = 4


@dataclass(frozen=True)
class CompositionProfile:
    """Frequencies derived from one sequence.

    Attributes:
        length: Sequence length
        mono: Frequencies of A, C, G, U and "other", summing to 1 for length > 0
        di: Frequencies of the 16 dinucleotides (DINUCLEOTIDES order) over
            length - 1 windows; windows touching an "other" symbol are
            counted in the denominator only
    """

    length: int
    mono: tuple[float, float, float, float, float]
    di: tuple[float, ...]

    def freq(self, base: str) -> float:
        return self.mono[_CLASS[base.upper()]]

    def di_freq(self, pair: str) -> float:
        pair = pair.upper().replace("T", "U")
        return self.di[DINUCLEOTIDES.index(pair)]

    @property
    def gc_content(self) -> float:
        """(G + C) / length."""
        return self.mono[1] + self.mono[2]

    @property
    def a_ratio(self) -> float:
        """A / (A + U), or 0 if the sequence has neither."""
        a, u = self.mono[0], self.mono[3]
        return a / (a + u) if a + u > 0 else 0.0

    @property
    def c_ratio(self) -> float:
        """C / (G + C), or 0 if the sequence has neither."""
        c, g = self.mono[1], self.mono[2]
        return c / (c + g) if c + g > 0 else 0.0


def analyze_composition(seq: str) -> CompositionProfile:
    """Compute the composition profile of ``seq`` in a single pass."""
    length = len(seq)
    if length == 0:
        return CompositionProfile(0, (0.0, 0.0, 0.0, 0.0, 0.0), (0.0,) * 16)

    mono_counts = [0] * 5
    di_counts = [0] * 16
    classes = [_CLASS.get(ch, _OTHER) for ch in seq.upper()]

    for x, y in zip(classes, classes[1:]):
        mono_counts[x] += 1
        if x != _OTHER and y != _OTHER:
            di_counts[4 * x + y] += 1
    # The pair scan never visits the last symbol as a first element.
    mono_counts[classes[-1]] += 1

    mono = tuple(c / length for c in mono_counts)
    windows = length - 1
    di = tuple(c / windows for c in di_counts) if windows > 0 else (0.0,) * 16
    return CompositionProfile(length, mono, di)  # type: ignore[arg-type]
