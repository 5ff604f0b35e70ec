"""
Reading-direction (strand) prediction for structured RNA candidates.

A window and its reverse complement are scored the same way; the classifier
sees the forward-minus-reverse differences of

- structure conservation index (SCI),
- mean single-sequence MFE,
- consensus MFE,
- mean z-score,

in one of several combinations (:class:`StrandCode`), followed by the number
of sequences, the mean pairwise identity and the GU-pair frequency of the
consensus structures.

Unlike the RNA-class prediction, a difference outside the trained range is
not clamped: the window gets no strand prediction and a warning instead.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from .classify import ProbabilityError
from .scaling import ScaleTable, ScaleTableError

if TYPE_CHECKING:
    from .folding import FoldingOracle
    from .registry import ModelRegistry
    from .zscore import ZScoreEngine, ZScoreResult

__all__ = [
    "DESCRIPTOR_NAMES",
    "STRAND_BOUNDS",
    "StrandCode",
    "DEFAULT_STRAND_CODE",
    "WindowStats",
    "StrandDescriptors",
    "StrandPrediction",
    "frequency_gu_pairs",
    "majority_consensus",
    "reverse_complement_alignment",
    "window_stats",
    "strand_predictors",
    "check_strand_descriptors",
    "predict_strand",
]

DESCRIPTOR_NAMES = {
    "sci": "delta structure conservation index",
    "mean_mfe": "delta mean single sequence MFE",
    "cons_mfe": "delta consensus MFE",
    "z": "delta mean z-score",
    "n_seq": "number of sequences",
    "identity": "mean pairwise identity",
    "gu_frequency": "GU base pair frequency",
}

# (min, max) of every descriptor in the training data.
STRAND_BOUNDS: dict[str, tuple[float, float]] = {
    "sci": (-0.56, 0.48),
    "z": (-4.92, 4.92),
    "mean_mfe": (-48.01, 47.64),
    "cons_mfe": (-66.78, 64.44),
    "n_seq": (2.0, 6.0),
    "identity": (46.74, 99.54),
    "gu_frequency": (0.0, 48.53),
}

_TRAILING = ("n_seq", "identity", "gu_frequency")


class StrandCode(Enum):
    """Descriptor combinations; the value is the descriptor order."""

    SCI = ("sci",)
    MEANMFE = ("mean_mfe",)
    CONSMFE = ("cons_mfe",)
    Z = ("z",)
    SCI_Z = ("sci", "z")
    SCI_Z_MEANMFE = ("sci", "z", "mean_mfe")
    SCI_Z_CONSMFE = ("sci", "z", "cons_mfe")
    SCI_Z_MEANMFE_CONSMFE = ("sci", "z", "mean_mfe", "cons_mfe")
    MEANMFE_CONSMFE = ("mean_mfe", "cons_mfe")
    Z_MEANMFE_CONSMFE = ("z", "mean_mfe", "cons_mfe")
    Z_CONSMFE = ("z", "cons_mfe")
    SCI_CONSMFE = ("sci", "cons_mfe")
    SCI_MEANMFE = ("sci", "mean_mfe")
    SCI_MEANMFE_CONSMFE = ("sci", "mean_mfe", "cons_mfe")
    Z_MEANMFE = ("z", "mean_mfe")

    @property
    def descriptors(self) -> tuple[str, ...]:
        return self.value

    @property
    def features(self) -> tuple[str, ...]:
        """Full feature order passed to the model."""
        return self.value + _TRAILING

    @property
    def model_file(self) -> str:
        if self is DEFAULT_STRAND_CODE:
            return "strand.model"
        return f"strand_{self.name.lower()}.model"

    def scale(self) -> ScaleTable:
        return ScaleTable(
            f"strand ({self.name})",
            {i: STRAND_BOUNDS[name] for i, name in enumerate(self.features, start=1)},
        )

    @classmethod
    def parse(cls, name: str | StrandCode) -> StrandCode:
        if isinstance(name, StrandCode):
            return name
        try:
            return cls[name.upper()]
        except KeyError:
            raise ValueError(f"Unknown strand descriptor code '{name}'") from None


DEFAULT_STRAND_CODE = StrandCode.SCI_Z_MEANMFE_CONSMFE


# ---------------------------------------------------------------------------
# Alignment helpers
# ---------------------------------------------------------------------------

_COMPLEMENT = {"A": "U", "C": "G", "G": "C", "U": "A", "T": "A"}


def reverse_complement_alignment(window: Sequence[str]) -> list[str]:
    """Reverse complement every row; gaps and unknown symbols are kept."""
    return ["".join(_COMPLEMENT.get(ch, ch) for ch in reversed(row)) for row in window]


def majority_consensus(window: Sequence[str]) -> str:
    """Most frequent symbol per column (ties: first in A, C, G, U, gap order)."""
    order = {ch: k for k, ch in enumerate("ACGU-")}
    out = []
    for column in zip(*window):
        counts = Counter(column)
        out.append(min(counts, key=lambda ch: (-counts[ch], order.get(ch, len(order)), ch)))
    return "".join(out)


def frequency_gu_pairs(seq: str, structure: str) -> float:
    """Percentage of GU/UG pairs among all base pairs of ``structure``.

    Raises:
        ValueError: If sequence and structure differ in length
    """
    if len(seq) != len(structure):
        raise ValueError(
            f"Sequence and structure have different length "
            f"(seq: {len(seq)} struc: {len(structure)})"
        )
    stack: list[str] = []
    n_gu = n_all = 0
    for base, ch in zip(seq.upper().replace("T", "U"), structure):
        if ch == "(":
            stack.append(base)
        elif ch == ")":
            partner = stack.pop()
            if {partner, base} == {"G", "U"}:
                n_gu += 1
            n_all += 1
    if n_all == 0:
        return 0.0
    return n_gu / n_all * 100.0


# ---------------------------------------------------------------------------
# Descriptors
# ---------------------------------------------------------------------------


@dataclass
class WindowStats:
    """Scores of one reading direction of a window."""

    sci: float
    mean_mfe: float
    cons_mfe: float
    z: float
    consensus: str
    structure: str


@dataclass
class StrandDescriptors:
    forward: WindowStats
    reverse: WindowStats
    gu_frequency: float
    warnings: list[str] = field(default_factory=list)

    @property
    def deltas(self) -> dict[str, float]:
        f, r = self.forward, self.reverse
        return {
            "sci": f.sci - r.sci,
            "mean_mfe": f.mean_mfe - r.mean_mfe,
            "cons_mfe": f.cons_mfe - r.cons_mfe,
            "z": f.z - r.z,
        }


def _normalize(window: Sequence[str]) -> list[str]:
    return [row.upper().replace("T", "U") for row in window]


def window_stats(
    window: Sequence[str],
    oracle: FoldingOracle,
    engine: ZScoreEngine,
    warnings: list[str] | None = None,
    row_results: Sequence[ZScoreResult] | None = None,
) -> WindowStats:
    """SCI, mean MFE, consensus MFE and mean z-score of one direction.

    ``row_results`` are per-row z-scores already computed for ``window``; when
    given, the rows are not folded or z-scored again.
    """
    window = _normalize(window)
    cons_mfe, structure = oracle.alifold(window)
    if row_results is None:
        row_results = []
        for row in window:
            seq = row.replace("-", "")
            mfe, _structure = oracle.fold(seq)
            result = engine.zscore(seq, mfe)
            if warnings is not None:
                warnings.extend(result.warnings)
            row_results.append(result)
    elif len(row_results) != len(window):
        raise ValueError(f"Got {len(row_results)} row results for {len(window)} rows")
    mfes = [r.mfe for r in row_results]
    zs = [r.z for r in row_results]
    mean_mfe = sum(mfes) / len(mfes)
    sci = cons_mfe / mean_mfe if mean_mfe != 0 else 0.0
    return WindowStats(
        sci=sci,
        mean_mfe=mean_mfe,
        cons_mfe=cons_mfe,
        z=sum(zs) / len(zs),
        consensus=majority_consensus(window),
        structure=structure,
    )


def strand_predictors(
    window: Sequence[str],
    oracle: FoldingOracle,
    engine: ZScoreEngine,
    forward_results: Sequence[ZScoreResult] | None = None,
) -> StrandDescriptors:
    """Score a window and its reverse complement.

    ``forward_results`` reuses per-row z-scores of the window itself; only the
    reverse complement is folded and z-scored then.
    """
    if not window:
        raise ValueError("Empty alignment window")
    warnings: list[str] = []
    forward = window_stats(window, oracle, engine, warnings, row_results=forward_results)
    reverse = window_stats(reverse_complement_alignment(_normalize(window)), oracle, engine, warnings)
    # Summed over both directions, as the model was trained.
    gu = frequency_gu_pairs(forward.consensus, forward.structure)
    gu += frequency_gu_pairs(reverse.consensus, reverse.structure)
    return StrandDescriptors(forward=forward, reverse=reverse, gu_frequency=gu, warnings=warnings)


# ---------------------------------------------------------------------------
# Prediction
# ---------------------------------------------------------------------------


@dataclass
class StrandPrediction:
    """Reading direction of a window.

    Attributes:
        probability: Probability that the window is in forward direction
        decision_value: SVM decision value
        code: Descriptor combination used
    """

    probability: float
    decision_value: float
    code: StrandCode

    @property
    def score(self) -> float:
        return 2.0 * self.probability - 1.0

    @property
    def strand(self) -> str:
        return "forward" if self.probability > 0.5 else "reverse"


def check_strand_descriptors(code: StrandCode, deltas: Mapping[str, float]) -> list[str]:
    """Messages for every descriptor of ``code`` outside its trained range."""
    errors = []
    for name in code.descriptors:
        vmin, vmax = STRAND_BOUNDS[name]
        value = deltas[name]
        if value < vmin or value > vmax:
            errors.append(
                f"Descriptor '{DESCRIPTOR_NAMES[name]}' is out of range "
                f"(min={vmin:.4f} max={vmax:.4f})."
            )
    return errors


def predict_strand(
    deltas: Mapping[str, float],
    *,
    n_seq: int,
    identity: float,
    gu_frequency: float,
    registry: ModelRegistry,
    code: StrandCode | str = DEFAULT_STRAND_CODE,
) -> tuple[StrandPrediction | None, list[str]]:
    """Predict the reading direction from forward-minus-reverse descriptors.

    Args:
        deltas: Differences keyed "sci", "mean_mfe", "cons_mfe", "z"
        n_seq: Number of sequences in the window
        identity: Mean pairwise identity (percent)
        gu_frequency: GU-pair frequency of the consensus structures (percent)
        registry: Source of the strand model
        code: Descriptor combination

    Returns:
        Tuple of (prediction, warnings). The prediction is None when a
        descriptor is outside the trained range.

    Raises:
        ProbabilityError: The model returned a probability outside [0, 1]
    """
    code = StrandCode.parse(code)
    errors = check_strand_descriptors(code, deltas)
    if errors:
        return None, errors

    values = dict(deltas, n_seq=float(n_seq), identity=identity, gu_frequency=gu_frequency)
    raw = [values[name] for name in code.features]

    model = registry.strand(code)
    if model.n_features > len(raw):
        raise ScaleTableError(
            f"Strand model '{code.model_file}' uses {model.n_features} features, "
            f"code {code.name} provides {len(raw)}"
        )
    features = code.scale().linear(raw)
    decision_value, probability = model.predict_probability(features)
    if not 0.0 <= probability <= 1.0:
        raise ProbabilityError(f"SVM strand probability is {probability}")
    return StrandPrediction(probability=probability, decision_value=decision_value, code=code), []
