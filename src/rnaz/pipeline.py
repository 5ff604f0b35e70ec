"""
Scoring of one alignment window.

Glue between the folding oracle, the z-score engine and the classifiers:

1. gap-free, upper-case RNA versions of the rows are folded one by one;
2. each row gets a z-score, the window gets the mean;
3. the consensus structure gives the SCI;
4. the decision model predicts the RNA class;
5. optionally, the strand model predicts the reading direction.

One :class:`ScoringContext` (registry, oracle, config, random source) is
built at startup and passed to every call.
"""

from __future__ import annotations

import random
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field

from .classify import Classification, DecisionVariant, classify
from .config import ScoringConfig
from .folding import FoldingOracle
from .registry import ModelRegistry
from .strand import StrandCode, StrandPrediction, predict_strand, strand_predictors
from .warnings_log import WarningLog
from .zscore import ZScoreEngine, ZScoreResult

__all__ = [
    "ScoringContext",
    "WindowScore",
    "normalize_row",
    "score_window",
]


def normalize_row(row: str) -> str:
    return row.upper().replace("T", "U")


@dataclass
class ScoringContext:
    """Everything shared between scored windows.

    Args:
        registry: Trained models
        oracle: Folding oracle
        config: Run settings
        rng: Random source for shuffling (seeded from ``config.seed`` if None)
    """

    registry: ModelRegistry
    oracle: FoldingOracle
    config: ScoringConfig = field(default_factory=ScoringConfig)
    rng: random.Random | None = None

    def __post_init__(self) -> None:
        if self.rng is None:
            self.rng = random.Random(self.config.seed)
        self.engine = ZScoreEngine(self.registry, self.oracle, self.config, self.rng)

    @classmethod
    def from_config(cls, config: ScoringConfig, oracle: FoldingOracle) -> ScoringContext:
        return cls(registry=ModelRegistry(config.model_dir), oracle=oracle, config=config)


@dataclass
class WindowScore:
    """Scores of one alignment window.

    Attributes:
        zscores: Per-row z-score results
        mean_z: Mean z-score
        mean_mfe: Mean single-sequence MFE
        consensus_mfe: Consensus MFE
        consensus_structure: Consensus structure
        sci: Structure conservation index
        identity: Mean pairwise identity (percent)
        entropy: Shannon entropy of the alignment (None if not given)
        classification: RNA-class prediction
        strand: Strand prediction (None if not requested or out of range)
        warnings: Every warning raised while scoring the window
    """

    zscores: list[ZScoreResult]
    mean_z: float
    mean_mfe: float
    consensus_mfe: float
    consensus_structure: str
    sci: float
    identity: float
    entropy: float | None
    classification: Classification
    strand: StrandPrediction | None = None
    warnings: WarningLog = field(default_factory=WarningLog)

    @property
    def n_seq(self) -> int:
        return len(self.zscores)

    @property
    def probability(self) -> float:
        return self.classification.probability


def _warn(config: ScoringConfig, log: WarningLog, messages: Sequence[str]) -> None:
    for message in messages:
        if config.verbose and message not in log:
            sys.stderr.write(f"[WARN] {message}\n")
        log.append(message)


def score_window(
    window: Sequence[str],
    context: ScoringContext,
    *,
    identity: float,
    entropy: float | None = None,
    with_strand: bool = False,
) -> WindowScore:
    """Score an alignment window.

    Args:
        window: Aligned rows, gaps as "-"
        context: Shared registry, oracle and settings
        identity: Mean pairwise identity (percent)
        entropy: Alignment entropy, required by the dinucleotide decision models
        with_strand: Also predict the reading direction

    Returns:
        WindowScore
    """
    if len(window) < 2:
        raise ValueError(f"Need at least two aligned sequences, got {len(window)}")
    rows = [normalize_row(r) for r in window]
    if len({len(r) for r in rows}) != 1:
        raise ValueError("Aligned sequences differ in length")

    config = context.config
    log = WarningLog()

    results: list[ZScoreResult] = []
    for k, row in enumerate(rows):
        seq = row.replace("-", "")
        mfe, _structure = context.oracle.fold(seq)
        result = context.engine.zscore(seq, mfe)
        _warn(config, log, [f"Sequence {k + 1}: {w}" for w in result.warnings])
        results.append(result)

    mean_z = sum(r.z for r in results) / len(results)
    mean_mfe = sum(r.mfe for r in results) / len(results)
    consensus_mfe, consensus_structure = context.oracle.alifold(rows)
    sci = consensus_mfe / mean_mfe if mean_mfe != 0 else 0.0

    variant = DecisionVariant.parse(config.decision_variant)
    descriptors = {
        "z": mean_z,
        "sci": sci,
        "identity": identity,
        "n_seq": float(len(rows)),
    }
    if entropy is not None:
        descriptors["entropy"] = entropy
    classification = classify(variant, descriptors, context.registry)
    _warn(config, log, classification.warnings)

    strand = None
    if with_strand:
        predictors = strand_predictors(
            rows, context.oracle, context.engine, forward_results=results
        )
        _warn(config, log, predictors.warnings)
        strand, messages = predict_strand(
            predictors.deltas,
            n_seq=len(rows),
            identity=identity,
            gu_frequency=predictors.gu_frequency,
            registry=context.registry,
            code=StrandCode.parse(config.strand_code),
        )
        _warn(config, log, messages)

    if config.verbose:
        sys.stderr.write(
            f"[INFO] n_seq={len(rows)} mean_z={mean_z:.2f} sci={sci:.2f} "
            f"P={classification.probability:.4f}\n"
        )

    return WindowScore(
        zscores=results,
        mean_z=mean_z,
        mean_mfe=mean_mfe,
        consensus_mfe=consensus_mfe,
        consensus_structure=consensus_structure,
        sci=sci,
        identity=identity,
        entropy=entropy,
        classification=classification,
        strand=strand,
        warnings=log,
    )
