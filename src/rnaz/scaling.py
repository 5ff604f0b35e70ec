"""
Feature scaling for the trained SVMs.

Every model was trained on scaled inputs, so the exact scale parameters used
at training time must be applied before prediction:

- regression models: z-normalization, (x - mean) / stdev
- decision models: linear rescaling of [min, max] onto [-1, 1]

Regression targets were normalized as well; :class:`TargetScale` maps a raw
regression output back to kcal/mol.

Feature indices are 1-based, matching the model file format.

The dinucleotide regression scale (:data:`DI_REGRESSION_SCALE`) and its
targets (:data:`DI_AVG_TARGET`, :data:`DI_STDV_TARGET`) are placeholder
constants that match the built-in placeholder models of
:mod:`rnaz.default_models`, not the values of the trained RNAz dinucleotide
models. Production scores need the trained models from a model directory
(``RNAZDIR``) together with their scale constants.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType

__all__ = [
    "ScaleTableError",
    "ScaleTable",
    "TargetScale",
    "MONO_REGRESSION_SCALE",
    "DI_REGRESSION_SCALE",
    "MONO_AVG_TARGET",
    "MONO_STDV_TARGET",
    "DI_AVG_TARGET",
    "DI_STDV_TARGET",
    "DECISION_SEQUENCE_MONO_SCALE",
    "DECISION_SEQUENCE_DI_SCALE",
    "DECISION_STRUCTURAL_DI_SCALE",
]


class ScaleTableError(KeyError):
    """A feature index has no scale entry (deployment/configuration defect)."""


@dataclass(frozen=True)
class ScaleTable:
    """Mapping feature index -> (p1, p2).

    (p1, p2) is read as (mean, stdev) by :meth:`znormalize` and as (min, max)
    by :meth:`linear`.
    """

    name: str
    entries: Mapping[int, tuple[float, float]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "entries", MappingProxyType(dict(self.entries)))

    def __len__(self) -> int:
        return len(self.entries)

    def params(self, index: int) -> tuple[float, float]:
        try:
            return self.entries[index]
        except KeyError:
            raise ScaleTableError(
                f"Scale table '{self.name}' has no entry for feature {index} "
                f"({len(self.entries)} entries)"
            ) from None

    def require_arity(self, n_features: int) -> None:
        """Fail unless every feature 1..n_features has an entry."""
        for index in range(1, n_features + 1):
            self.params(index)

    def znormalize(self, values: Sequence[float]) -> list[float]:
        out = []
        for index, value in enumerate(values, start=1):
            mu, sigma = self.params(index)
            out.append((value - mu) / sigma)
        return out

    def linear(
        self, values: Sequence[float], lower: float = -1.0, upper: float = 1.0
    ) -> list[float]:
        out = []
        for index, value in enumerate(values, start=1):
            vmin, vmax = self.params(index)
            out.append(lower + (upper - lower) * (value - vmin) / (vmax - vmin))
        return out

    def clamp(self, index: int, value: float) -> float:
        vmin, vmax = self.params(index)
        return max(vmin, min(vmax, value))


@dataclass(frozen=True)
class TargetScale:
    """Normalization applied to a regression target during training."""

    mean: float
    stdev: float

    def backscale(self, raw: float) -> float:
        return raw * self.stdev + self.mean


# ---------------------------------------------------------------------------
# Regression (background MFE) models
# ---------------------------------------------------------------------------

MONO_REGRESSION_SCALE = ScaleTable(
    "mononucleotide regression",
    {
        1: (0.5, 0.1581213081),  # GC content
        2: (0.5, 0.1581213081),  # A / (A + U)
        3: (0.5, 0.1581213081),  # C / (G + C)
        4: (225.0, 114.569772373),  # length
    },
)

_DINUC_SCALE = (0.0625, 0.0361)

DI_REGRESSION_SCALE = ScaleTable(
    "dinucleotide regression",
    {
        1: (0.5, 0.1732050808),  # GC content
        2: (0.5, 0.1732050808),  # C / (G + C)
        3: (0.5, 0.1732050808),  # A / (A + U)
        **{4 + k: _DINUC_SCALE for k in range(16)},  # AA, AC, ..., UU
        20: (0.5, 0.2886751346),  # (length - 50) / 150
    },
)

MONO_AVG_TARGET = TargetScale(mean=-58.60276, stdev=45.24618)
MONO_STDV_TARGET = TargetScale(mean=4.098457, stdev=1.107606)

# Dinucleotide mean models predict MFE per 10 nt; see regression.predict_background.
# Placeholder values, paired with the built-in dinucleotide regression models.
DI_AVG_TARGET = TargetScale(mean=-2.6, stdev=0.8)
DI_STDV_TARGET = TargetScale(mean=3.2, stdev=0.9)


# ---------------------------------------------------------------------------
# Decision (RNA class) models, linear scaling to [-1, 1]
# ---------------------------------------------------------------------------

DECISION_SEQUENCE_MONO_SCALE = ScaleTable(
    "decision (sequence, mononucleotide)",
    {
        1: (-8.15, 2.0),  # mean z-score
        2: (0.0, 1.29),  # structure conservation index
        3: (35.0, 100.0),  # mean pairwise identity
        4: (2.0, 6.0),  # number of sequences
    },
)

DECISION_SEQUENCE_DI_SCALE = ScaleTable(
    "decision (sequence, dinucleotide)",
    {
        1: (-7.61, 2.0),  # mean z-score
        2: (0.0, 1.34),  # structure conservation index
        3: (0.0, 1.53),  # alignment Shannon entropy
    },
)

DECISION_STRUCTURAL_DI_SCALE = ScaleTable(
    "decision (structural, dinucleotide)",
    {
        1: (-7.42, 2.0),
        2: (0.0, 1.37),
        3: (0.0, 1.49),
    },
)
