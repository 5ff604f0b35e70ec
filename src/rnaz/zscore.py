"""
MFE z-score of a single sequence.

    z = (E - μ) / σ

where E is the MFE of the sequence and (μ, σ) are the mean and standard
deviation of the MFE of random sequences with the same composition, taken
from the regression models when the sequence is within their trained range
and from shuffling otherwise (see :mod:`rnaz.background`).
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field

from .background import BackgroundMode, select_background
from .composition import analyze_composition
from .config import ScoringConfig
from .folding import FoldingOracle
from .registry import ModelRegistry
from .regression import predict_background
from .shuffle import empirical_background

__all__ = [
    "MIN_PLAUSIBLE_MEAN",
    "MIN_PLAUSIBLE_STDEV",
    "ZScoreResult",
    "ZScoreEngine",
]

# Regression outputs beyond these are rejected in favour of shuffling.
MIN_PLAUSIBLE_MEAN = -1.0
MIN_PLAUSIBLE_STDEV = 0.1


@dataclass
class ZScoreResult:
    """Outcome of one z-score computation.

    Attributes:
        z: The z-score (0 if the background stdev is 0)
        mfe: MFE of the sequence
        mean: Background mean MFE
        stdev: Background MFE standard deviation
        mode: Background mode actually used
        warnings: Reasons for any change of background mode
    """

    z: float
    mfe: float
    mean: float
    stdev: float
    mode: BackgroundMode
    warnings: list[str] = field(default_factory=list)


class ZScoreEngine:
    """Computes z-scores against a shared registry and folding oracle.

    Args:
        registry: Trained regression models
        oracle: Folding oracle used for the sequence and for shuffles
        config: Background settings
        rng: Random source for shuffling; defaults to ``Random(config.seed)``
    """

    def __init__(
        self,
        registry: ModelRegistry,
        oracle: FoldingOracle,
        config: ScoringConfig | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.registry = registry
        self.oracle = oracle
        self.config = config or ScoringConfig()
        self.rng = rng if rng is not None else random.Random(self.config.seed)

    def default_mode(self) -> BackgroundMode:
        return BackgroundMode.for_background(self.config.background)

    def _estimate(
        self, seq: str, mode: BackgroundMode
    ) -> tuple[float, float, BackgroundMode, list[str]]:
        """Background mean and stdev, the mode actually used and any warnings."""
        if mode.is_regression:
            mean, stdev = predict_background(analyze_composition(seq), mode, self.registry)
            return mean, stdev, mode, []
        background = empirical_background(
            seq,
            self.oracle,
            self.rng,
            dinucleotide=mode.is_dinucleotide,
            n_samples=self.config.n_shuffles,
            max_tries=self.config.max_shuffle_tries,
        )
        if not background.dinucleotide:
            mode = BackgroundMode.MONO_SHUFFLE
        return background.mean, background.stdev, mode, background.warnings

    def zscore(
        self,
        seq: str,
        mfe: float = 1.0,
        mode: BackgroundMode | None = None,
    ) -> ZScoreResult:
        """Z-score of a gap-free sequence.

        Args:
            seq: Gap-free sequence
            mfe: Precomputed MFE; any value > 0 means "fold it first"
            mode: Requested background mode (default from the config)

        Returns:
            ZScoreResult
        """
        if not seq:
            raise ValueError("Cannot compute a z-score for an empty sequence")

        if mfe > 0:
            mfe, _structure = self.oracle.fold(seq)

        requested = mode or self.default_mode()
        selected, warnings = select_background(
            analyze_composition(seq),
            requested,
            fold_parameters=self.config.fold_parameters,
            avoid_shuffle=self.config.avoid_shuffle,
        )

        mean, stdev, selected, extra = self._estimate(seq, selected)
        warnings.extend(extra)

        if selected.is_regression and (mean > MIN_PLAUSIBLE_MEAN or stdev < MIN_PLAUSIBLE_STDEV):
            warnings.append(
                f"Implausible regression estimate (mean={mean:.2f}, stdev={stdev:.2f}). "
                "Using shuffling instead."
            )
            selected = selected.as_shuffle()
            mean, stdev, selected, extra = self._estimate(seq, selected)
            warnings.extend(extra)

        z = 0.0 if stdev == 0 else (mfe - mean) / stdev
        return ZScoreResult(z=z, mfe=mfe, mean=mean, stdev=stdev, mode=selected, warnings=warnings)
