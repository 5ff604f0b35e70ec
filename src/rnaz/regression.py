"""
Regression estimate of the background MFE distribution.

Two SVR models per background (one for the mean, one for the standard
deviation) map composition features to the normalized MFE statistics of
random sequences. Dinucleotide models are additionally split by GC content
into ten buckets; see :data:`GC_BUCKETS`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .background import BackgroundMode
from .composition import CompositionProfile
from .scaling import (
    DI_AVG_TARGET,
    DI_REGRESSION_SCALE,
    DI_STDV_TARGET,
    MONO_AVG_TARGET,
    MONO_REGRESSION_SCALE,
    MONO_STDV_TARGET,
)

if TYPE_CHECKING:
    from .registry import ModelRegistry

__all__ = [
    "GC_BUCKETS",
    "find_gc_bucket",
    "mono_features",
    "di_features",
    "predict_background",
]

# Closed GC content ranges of the dinucleotide regression models; a value on a
# shared boundary belongs to the lower bucket (first match, ascending).
GC_BUCKETS: tuple[tuple[float, float], ...] = (
    (0.20, 0.30),
    (0.30, 0.36),
    (0.36, 0.42),
    (0.42, 0.46),
    (0.46, 0.50),
    (0.50, 0.54),
    (0.54, 0.58),
    (0.58, 0.64),
    (0.64, 0.70),
    (0.70, 0.80),
)


def find_gc_bucket(gc: float) -> int | None:
    """Index of the first bucket (ascending) with lo <= gc <= hi, or None."""
    for index, (lo, hi) in enumerate(GC_BUCKETS):
        if lo <= gc <= hi:
            return index
    return None


def _nearest_gc_bucket(gc: float) -> int:
    index = find_gc_bucket(gc)
    if index is not None:
        return index
    return 0 if gc < GC_BUCKETS[0][0] else len(GC_BUCKETS) - 1


def mono_features(profile: CompositionProfile) -> list[float]:
    """[GC, A/(A+U), C/(G+C), length]."""
    return [profile.gc_content, profile.a_ratio, profile.c_ratio, float(profile.length)]


def di_features(profile: CompositionProfile) -> list[float]:
    """[GC, C/(G+C), A/(A+U), 16 dinucleotide frequencies, (length - 50) / 150]."""
    return [
        profile.gc_content,
        profile.c_ratio,
        profile.a_ratio,
        *profile.di,
        (profile.length - 50) / 150.0,
    ]


def predict_background(
    profile: CompositionProfile,
    mode: BackgroundMode,
    registry: ModelRegistry,
) -> tuple[float, float]:
    """Predict (mean, stdev) of the MFE of random sequences like ``profile``.

    Args:
        profile: Composition of the sequence
        mode: MONO_REGRESSION or DI_REGRESSION
        registry: Source of the trained models

    Returns:
        Tuple of (mean, stdev) in kcal/mol
    """
    if mode is BackgroundMode.MONO_REGRESSION:
        pair = registry.mono_regression()
        scaled = MONO_REGRESSION_SCALE.znormalize(mono_features(profile))
        mean = MONO_AVG_TARGET.backscale(pair.avg.predict(scaled))
        stdev = MONO_STDV_TARGET.backscale(pair.stdv.predict(scaled))
        return mean, stdev

    if mode is BackgroundMode.DI_REGRESSION:
        pair = registry.di_regression(_nearest_gc_bucket(profile.gc_content))
        scaled = DI_REGRESSION_SCALE.znormalize(di_features(profile))
        # The mean model was trained on MFE per 10 nt.
        mean_per_10nt = DI_AVG_TARGET.backscale(pair.avg.predict(scaled))
        mean = mean_per_10nt / 10.0 * profile.length
        stdev = DI_STDV_TARGET.backscale(pair.stdv.predict(scaled))
        return mean, stdev

    raise ValueError(f"{mode} is not a regression mode")
