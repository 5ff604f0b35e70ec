"""
RNA-class prediction from alignment descriptors.

A decision model (two-class SVM with probability estimates) is trained for
each descriptor set, see :class:`DecisionVariant`. Inputs are prepared
exactly as at training time:

1. z-score and SCI are rounded to two decimals;
2. z-score and SCI outside the training range are clamped to it;
3. every descriptor is scaled linearly onto [-1, 1];
4. scaled values are rounded to five decimals.

Skipping the rounding changes predictions close to the decision boundary.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from .scaling import (
    DECISION_SEQUENCE_DI_SCALE,
    DECISION_SEQUENCE_MONO_SCALE,
    DECISION_STRUCTURAL_DI_SCALE,
    ScaleTable,
    ScaleTableError,
)

if TYPE_CHECKING:
    from .registry import ModelRegistry

__all__ = [
    "ProbabilityError",
    "DecisionVariant",
    "Classification",
    "build_features",
    "classify",
]

_CLAMPED = ("z", "sci")


class ProbabilityError(RuntimeError):
    """The model produced a probability outside [0, 1] (malformed model)."""


class DecisionVariant(Enum):
    """Decision models and the descriptors, in order, they were trained on."""

    SEQUENCE_MONO = "sequence_mono"
    SEQUENCE_DI = "sequence_di"
    STRUCTURAL_DI = "structural_di"

    @property
    def descriptors(self) -> tuple[str, ...]:
        return _DESCRIPTORS[self]

    @property
    def scale(self) -> ScaleTable:
        return _SCALES[self]

    @property
    def model_file(self) -> str:
        return _MODEL_FILES[self]

    @classmethod
    def parse(cls, name: str | DecisionVariant) -> DecisionVariant:
        if isinstance(name, DecisionVariant):
            return name
        try:
            return cls(name.lower())
        except ValueError:
            raise ValueError(
                f"Unknown decision variant '{name}' "
                f"(choose from {', '.join(v.value for v in cls)})"
            ) from None


_DESCRIPTORS = {
    DecisionVariant.SEQUENCE_MONO: ("z", "sci", "identity", "n_seq"),
    DecisionVariant.SEQUENCE_DI: ("z", "sci", "entropy"),
    DecisionVariant.STRUCTURAL_DI: ("z", "sci", "entropy"),
}

_SCALES = {
    DecisionVariant.SEQUENCE_MONO: DECISION_SEQUENCE_MONO_SCALE,
    DecisionVariant.SEQUENCE_DI: DECISION_SEQUENCE_DI_SCALE,
    DecisionVariant.STRUCTURAL_DI: DECISION_STRUCTURAL_DI_SCALE,
}

_MODEL_FILES = {
    DecisionVariant.SEQUENCE_MONO: "decision.model",
    DecisionVariant.SEQUENCE_DI: "decision_dinucleotide.model",
    DecisionVariant.STRUCTURAL_DI: "decision_structural.model",
}


@dataclass
class Classification:
    """Result of the RNA-class prediction.

    Attributes:
        decision_value: SVM decision value
        probability: Probability of the RNA class
        features: Scaled feature vector passed to the model
        warnings: Clamped descriptors
    """

    decision_value: float
    probability: float
    features: list[float]
    warnings: list[str] = field(default_factory=list)

    @property
    def is_rna(self) -> bool:
        return self.probability > 0.5


def build_features(
    variant: DecisionVariant, descriptors: Mapping[str, float]
) -> tuple[list[float], list[str]]:
    """Ordered, rounded, clamped and scaled feature vector for ``variant``.

    Returns:
        Tuple of (scaled features, warnings about clamped descriptors)
    """
    scale = variant.scale
    names = variant.descriptors
    scale.require_arity(len(names))

    missing = [name for name in names if name not in descriptors]
    if missing:
        raise KeyError(f"Missing descriptor(s) for {variant.value}: {', '.join(missing)}")

    warnings: list[str] = []
    raw: list[float] = []
    for index, name in enumerate(names, start=1):
        value = float(descriptors[name])
        if name in _CLAMPED:
            value = round(value, 2)
            clamped = scale.clamp(index, value)
            if clamped != value:
                vmin, vmax = scale.params(index)
                warnings.append(
                    f"Descriptor '{name}'={value:.2f} out of trained range "
                    f"({vmin:.2f} to {vmax:.2f}); clamped to {clamped:.2f}."
                )
                value = clamped
        raw.append(value)

    scaled = [round(v, 5) for v in scale.linear(raw)]
    return scaled, warnings


def classify(
    variant: DecisionVariant | str,
    descriptors: Mapping[str, float],
    registry: ModelRegistry,
) -> Classification:
    """Predict the RNA-class probability for one alignment window.

    Args:
        variant: Decision model to use
        descriptors: Values for every name in ``variant.descriptors``
        registry: Source of the decision model

    Raises:
        ProbabilityError: The model returned a probability outside [0, 1]
        ScaleTableError: The model expects more features than the variant has
    """
    variant = DecisionVariant.parse(variant)
    features, warnings = build_features(variant, descriptors)
    model = registry.decision(variant)
    if model.n_features > len(features):
        raise ScaleTableError(
            f"Decision model '{variant.model_file}' uses {model.n_features} features, "
            f"variant {variant.value} provides {len(features)}"
        )
    decision_value, probability = model.predict_probability(features)
    if not 0.0 <= probability <= 1.0:
        raise ProbabilityError(f"SVM classification probability is {probability}")
    return Classification(
        decision_value=decision_value,
        probability=probability,
        features=features,
        warnings=warnings,
    )
