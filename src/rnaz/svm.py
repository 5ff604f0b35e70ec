"""
Support vector machine evaluation for trained regression and decision models.

The models are produced by an external SVM trainer and consumed here as
read-only objects. This module only evaluates them:

    decision(x) = Σ coef_i · K(sv_i, x) - rho

for regression (epsilon/nu SVR) and for every pair of classes in a
one-vs-one classifier. Two-class probabilities use Platt's sigmoid with the
trained parameters probA/probB:

    P(label[0] | x) = 1 / (1 + exp(probA · decision(x) + probB))

Parsing and serialization of the textual model format lives in
:mod:`rnaz.model_format`; this module does not depend on it.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

__all__ = [
    "SVM_TYPES",
    "KERNEL_TYPES",
    "SvmModel",
    "ModelError",
]

SVM_TYPES = ("c_svc", "nu_svc", "one_class", "epsilon_svr", "nu_svr")
KERNEL_TYPES = ("linear", "polynomial", "rbf", "sigmoid")

# Probabilities are bounded away from 0 and 1 the same way the trainer does.
_MIN_PROB = 1e-7


class ModelError(ValueError):
    """Raised when a model is evaluated in a way it does not support."""


@dataclass(frozen=True, eq=False)
class SvmModel:
    """A trained SVM.

    Attributes:
        svm_type: One of SVM_TYPES
        kernel_type: One of KERNEL_TYPES
        gamma: Kernel gamma (polynomial, rbf, sigmoid)
        degree: Polynomial degree
        coef0: Kernel offset (polynomial, sigmoid)
        nr_class: Number of classes (2 for regression and one-class models)
        rho: Decision function offsets, one per class pair
        sv_coef: Coefficient matrix of shape (nr_class - 1, total_sv)
        support_vectors: Dense support vectors of shape (total_sv, n_features);
            column k holds feature index k + 1
        label: Class labels (classification only)
        prob_a: Platt sigmoid slopes (classification with probabilities)
        prob_b: Platt sigmoid offsets
        nr_sv: Support vectors per class (classification only)
    """

    svm_type: str
    kernel_type: str
    gamma: float
    degree: int
    coef0: float
    nr_class: int
    rho: tuple[float, ...]
    sv_coef: np.ndarray
    support_vectors: np.ndarray
    label: tuple[int, ...] | None = None
    prob_a: tuple[float, ...] | None = None
    prob_b: tuple[float, ...] | None = None
    nr_sv: tuple[int, ...] | None = None

    def __post_init__(self) -> None:
        if self.svm_type not in SVM_TYPES:
            raise ModelError(f"Unknown svm_type: {self.svm_type}")
        if self.kernel_type not in KERNEL_TYPES:
            raise ModelError(f"Unknown kernel_type: {self.kernel_type}")
        self.sv_coef.setflags(write=False)
        self.support_vectors.setflags(write=False)

    @property
    def total_sv(self) -> int:
        return int(self.support_vectors.shape[0])

    @property
    def n_features(self) -> int:
        """Highest feature index referenced by any support vector."""
        return int(self.support_vectors.shape[1])

    @property
    def is_regression(self) -> bool:
        return self.svm_type in ("epsilon_svr", "nu_svr")

    @property
    def has_probability(self) -> bool:
        return (
            self.svm_type in ("c_svc", "nu_svc")
            and self.prob_a is not None
            and self.prob_b is not None
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SvmModel):
            return NotImplemented
        return (
            self.svm_type == other.svm_type
            and self.kernel_type == other.kernel_type
            and self.gamma == other.gamma
            and self.degree == other.degree
            and self.coef0 == other.coef0
            and self.nr_class == other.nr_class
            and self.rho == other.rho
            and self.label == other.label
            and self.prob_a == other.prob_a
            and self.prob_b == other.prob_b
            and self.nr_sv == other.nr_sv
            and np.array_equal(self.sv_coef, other.sv_coef)
            and np.array_equal(self.support_vectors, other.support_vectors)
        )

    __hash__ = object.__hash__

    # ------------------------------------------------------------------
    # Kernel evaluation
    # ------------------------------------------------------------------

    def _kernel_values(self, features: Sequence[float]) -> np.ndarray:
        x = np.asarray(features, dtype=float)
        svs = self.support_vectors
        width = max(x.shape[0], svs.shape[1])
        if x.shape[0] < width:
            x = np.pad(x, (0, width - x.shape[0]))
        if svs.shape[1] < width:
            svs = np.pad(svs, ((0, 0), (0, width - svs.shape[1])))

        if self.kernel_type == "linear":
            return svs @ x
        if self.kernel_type == "polynomial":
            return (self.gamma * (svs @ x) + self.coef0) ** self.degree
        if self.kernel_type == "rbf":
            diff = svs - x
            return np.exp(-self.gamma * np.einsum("ij,ij->i", diff, diff))
        # sigmoid
        return np.tanh(self.gamma * (svs @ x) + self.coef0)

    def decision_values(self, features: Sequence[float]) -> list[float]:
        """Decision values for a dense feature vector (feature i at index i - 1).

        Regression and one-class models return a single value. Classifiers
        return one value per class pair (i, j), i < j, in the trainer's order.
        """
        kvalue = self._kernel_values(features)

        if self.svm_type in ("one_class", "epsilon_svr", "nu_svr"):
            return [float(self.sv_coef[0] @ kvalue - self.rho[0])]

        if self.nr_sv is None:
            raise ModelError("Classification model lacks nr_sv")
        starts = np.concatenate(([0], np.cumsum(self.nr_sv)[:-1])).astype(int)
        values: list[float] = []
        p = 0
        for i in range(self.nr_class):
            for j in range(i + 1, self.nr_class):
                si, sj = starts[i], starts[j]
                ci, cj = self.nr_sv[i], self.nr_sv[j]
                total = float(self.sv_coef[j - 1, si : si + ci] @ kvalue[si : si + ci])
                total += float(self.sv_coef[i, sj : sj + cj] @ kvalue[sj : sj + cj])
                values.append(total - self.rho[p])
                p += 1
        return values

    def predict(self, features: Sequence[float]) -> float:
        """Regression output, or the predicted class label for classifiers."""
        values = self.decision_values(features)
        if self.is_regression:
            return values[0]
        if self.svm_type == "one_class":
            return 1.0 if values[0] > 0 else -1.0

        if self.label is None:
            raise ModelError("Classification model lacks label")
        votes = [0] * self.nr_class
        p = 0
        for i in range(self.nr_class):
            for j in range(i + 1, self.nr_class):
                if values[p] > 0:
                    votes[i] += 1
                else:
                    votes[j] += 1
                p += 1
        best = max(range(self.nr_class), key=lambda k: (votes[k], -k))
        return float(self.label[best])

    def predict_probability(self, features: Sequence[float]) -> tuple[float, float]:
        """Return (decision value, probability of label[0]) for a two-class model."""
        prob_a, prob_b = self.prob_a, self.prob_b
        if not self.has_probability or prob_a is None or prob_b is None:
            raise ModelError("Model was not trained with probability estimates")
        if self.nr_class != 2:
            raise ModelError(
                f"Probability estimates are only supported for two classes, got {self.nr_class}"
            )
        dec = self.decision_values(features)[0]
        prob = _sigmoid_predict(dec, prob_a[0], prob_b[0])
        prob = min(max(prob, _MIN_PROB), 1.0 - _MIN_PROB)
        return dec, prob


def _sigmoid_predict(decision_value: float, a: float, b: float) -> float:
    f_apb = decision_value * a + b
    # Stable in both tails.
    if f_apb >= 0:
        return math.exp(-f_apb) / (1.0 + math.exp(-f_apb))
    return 1.0 / (1.0 + math.exp(f_apb))
