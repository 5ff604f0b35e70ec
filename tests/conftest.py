# tests/conftest.py
"""Shared test fixtures for z-score and classification tests."""

import sys
from pathlib import Path

import pytest

# Repo root = parent of this file's directory
ROOT = Path(__file__).resolve().parents[1]

# Ensure src/ is on sys.path so `import rnaz` works without installing
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))


class FakeOracle:
    """Deterministic stand-in for RNAfold/RNAalifold.

    The energy depends on symbol order (every CG step is worth -0.5), so
    shuffles of one sequence have a spread of energies.
    """

    def __init__(self) -> None:
        self.fold_calls = 0
        self.alifold_calls = 0

    @staticmethod
    def energy(sequence: str) -> float:
        seq = sequence.replace("-", "")
        steps = sum(1 for x, y in zip(seq, seq[1:]) if x + y in ("CG", "GC"))
        return -0.25 * len(seq) - 0.5 * steps

    def fold(self, sequence: str) -> tuple[float, str]:
        self.fold_calls += 1
        return self.energy(sequence), "." * len(sequence)

    def alifold(self, sequences) -> tuple[float, str]:
        self.alifold_calls += 1
        energies = [self.energy(s) for s in sequences]
        return sum(energies) / len(energies), "." * len(sequences[0])


@pytest.fixture
def oracle() -> FakeOracle:
    return FakeOracle()


@pytest.fixture
def registry():
    """Registry with the built-in default models."""
    from rnaz.registry import ModelRegistry

    return ModelRegistry()


@pytest.fixture
def balanced_seq() -> str:
    """Length 100, every ratio exactly 0.5."""
    return "ACGU" * 25


@pytest.fixture
def at_rich_seq() -> str:
    """Length 100 with GC content 0.05."""
    return "AU" * 45 + "GCAUG" + "AUGUC"
