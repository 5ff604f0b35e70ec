"""
Choice of background (null) model for the MFE z-score.

The regression models only cover the composition and length ranges they were
trained on. Outside those ranges the z-score falls back to shuffling. The
selector is a pure function: it returns the mode to use together with the
human-readable reasons for any change.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .composition import DINUCLEOTIDES, CompositionProfile

__all__ = [
    "BackgroundMode",
    "TRAINED_FOLD_PARAMETERS",
    "TrainingBounds",
    "MONO_BOUNDS",
    "DI_BOUNDS",
    "DINUC_MAX_DEVIATION",
    "select_background",
]

TRAINED_FOLD_PARAMETERS = "rna_turner2004"
DINUC_MAX_DEVIATION = 1.5


class BackgroundMode(Enum):
    MONO_REGRESSION = "mononucleotide-regression"
    MONO_SHUFFLE = "mononucleotide-shuffle"
    DI_REGRESSION = "dinucleotide-regression"
    DI_SHUFFLE = "dinucleotide-shuffle"

    @property
    def is_dinucleotide(self) -> bool:
        return self in (BackgroundMode.DI_REGRESSION, BackgroundMode.DI_SHUFFLE)

    @property
    def is_regression(self) -> bool:
        return self in (BackgroundMode.MONO_REGRESSION, BackgroundMode.DI_REGRESSION)

    def as_shuffle(self) -> BackgroundMode:
        return BackgroundMode.DI_SHUFFLE if self.is_dinucleotide else BackgroundMode.MONO_SHUFFLE

    def as_regression(self) -> BackgroundMode:
        return BackgroundMode.DI_REGRESSION if self.is_dinucleotide else BackgroundMode.MONO_REGRESSION

    @classmethod
    def for_background(cls, background: str) -> BackgroundMode:
        """Initial mode for a 'mononucleotide' or 'dinucleotide' background."""
        if background in ("mononucleotide", "mono"):
            return cls.MONO_REGRESSION
        if background in ("dinucleotide", "di"):
            return cls.DI_REGRESSION
        raise ValueError(f"Unknown background model: {background}")


@dataclass(frozen=True)
class TrainingBounds:
    min_length: int
    max_length: int
    min_ratio: float
    max_ratio: float

    def length_ok(self, length: int) -> bool:
        return self.min_length <= length <= self.max_length

    def ratio_ok(self, value: float) -> bool:
        return self.min_ratio <= value <= self.max_ratio


MONO_BOUNDS = TrainingBounds(min_length=50, max_length=400, min_ratio=0.25, max_ratio=0.75)
DI_BOUNDS = TrainingBounds(min_length=50, max_length=200, min_ratio=0.20, max_ratio=0.80)


def _dinucleotide_outliers(profile: CompositionProfile) -> list[str]:
    outliers = []
    for k, pair in enumerate(DINUCLEOTIDES):
        expected = profile.freq(pair[0]) * profile.freq(pair[1])
        if expected <= 0:
            continue
        if abs(profile.di[k] - expected) / expected > DINUC_MAX_DEVIATION:
            outliers.append(pair)
    return outliers


def select_background(
    profile: CompositionProfile,
    mode: BackgroundMode,
    *,
    fold_parameters: str = TRAINED_FOLD_PARAMETERS,
    avoid_shuffle: bool = False,
) -> tuple[BackgroundMode, list[str]]:
    """Decide how the background MFE distribution of a sequence is estimated.

    Args:
        profile: Composition of the (gap-free) sequence
        mode: Requested mode
        fold_parameters: Name of the energy parameter set used for folding
        avoid_shuffle: Keep regression even outside the trained composition
            range, as long as the length is within range

    Returns:
        Tuple of (mode to use, warnings explaining any change)
    """
    if not mode.is_regression:
        return mode, []

    warnings: list[str] = []
    bounds = DI_BOUNDS if mode.is_dinucleotide else MONO_BOUNDS
    arity = "dinucleotide" if mode.is_dinucleotide else "mononucleotide"
    selected = mode

    if fold_parameters != TRAINED_FOLD_PARAMETERS:
        warnings.append(
            f"Energy parameters '{fold_parameters}' differ from the training set "
            f"'{TRAINED_FOLD_PARAMETERS}'. Using {arity} shuffling."
        )
        selected = mode.as_shuffle()

    if not bounds.length_ok(profile.length):
        warnings.append(
            f"Sequence length {profile.length} out of range "
            f"({bounds.min_length}-{bounds.max_length}). Using {arity} shuffling."
        )
        selected = mode.as_shuffle()

    ratios = {
        "GC content": profile.gc_content,
        "A/(A+U)": profile.a_ratio,
        "C/(G+C)": profile.c_ratio,
    }
    bad = [f"{name}={value:.2f}" for name, value in ratios.items() if not bounds.ratio_ok(value)]
    if bad:
        warnings.append(
            f"Base composition out of range ({', '.join(bad)}; trained "
            f"{bounds.min_ratio:.2f}-{bounds.max_ratio:.2f}). Using {arity} shuffling."
        )
        selected = mode.as_shuffle()

    if mode.is_dinucleotide:
        outliers = _dinucleotide_outliers(profile)
        if outliers:
            warnings.append(
                f"Dinucleotide frequencies deviate from expectation ({', '.join(outliers)}). "
                f"Using {arity} shuffling."
            )
            selected = mode.as_shuffle()

    if avoid_shuffle and not selected.is_regression and bounds.length_ok(profile.length):
        warnings.append(
            f"Shuffling avoided on request; using {arity} regression outside its "
            "trained range (reduced accuracy)."
        )
        selected = mode.as_regression()

    return selected, warnings
