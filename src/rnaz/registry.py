"""
Model registry: one immutable object holding every trained model.

Models are read from a model directory (the ``RNAZDIR`` environment
variable by default); any model the directory does not provide comes from
the defaults embedded in :mod:`rnaz.default_models`. Both go through the
same parser. The registry is created once and shared read-only by every
scoring request. The dinucleotide GC buckets are loaded on first use by a
lock-guarded :class:`ModelBank`, or all at once with
:meth:`ModelRegistry.preload`.
"""

from __future__ import annotations

import os
import threading
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from .default_models import DEFAULT_MODELS
from .model_format import load_model, parse_model
from .regression import GC_BUCKETS
from .svm import SvmModel

if TYPE_CHECKING:
    from .classify import DecisionVariant
    from .strand import StrandCode

__all__ = [
    "MODEL_DIR_ENV",
    "ModelNotFoundError",
    "RegressionPair",
    "ModelBank",
    "ModelRegistry",
    "bucket_label",
]

MODEL_DIR_ENV = "RNAZDIR"


class ModelNotFoundError(FileNotFoundError):
    """A required model is neither in the model directory nor built in."""


@dataclass(frozen=True)
class RegressionPair:
    """Regression models for the mean and the standard deviation of the MFE."""

    avg: SvmModel
    stdv: SvmModel


def bucket_label(index: int) -> str:
    lo, hi = GC_BUCKETS[index]
    return f"{round(lo * 100)}_{round(hi * 100)}"


class ModelBank:
    """Memoizing, thread-safe cache of the dinucleotide regression buckets."""

    def __init__(self, loader: Callable[[int], RegressionPair]) -> None:
        self._loader = loader
        self._cache: dict[int, RegressionPair] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(GC_BUCKETS)

    def loaded(self) -> list[int]:
        """Indices of the buckets loaded so far."""
        with self._lock:
            return sorted(self._cache)

    def get(self, index: int) -> RegressionPair:
        if not 0 <= index < len(GC_BUCKETS):
            raise IndexError(f"GC bucket {index} out of range (0-{len(GC_BUCKETS) - 1})")
        with self._lock:
            pair = self._cache.get(index)
            if pair is None:
                pair = self._loader(index)
                self._cache[index] = pair
            return pair

    def preload(self) -> None:
        for index in range(len(GC_BUCKETS)):
            self.get(index)


class ModelRegistry:
    """Every model used by the z-score and classification code.

    Args:
        model_dir: Directory with model files. If None, the built-in default
            models are used.
    """

    def __init__(self, model_dir: str | Path | None = None) -> None:
        self._model_dir = Path(model_dir) if model_dir is not None else None
        if self._model_dir is not None and not self._model_dir.is_dir():
            raise ModelNotFoundError(f"Model directory not found: {self._model_dir}")
        self._models: dict[str, SvmModel] = {}
        self._lock = threading.Lock()
        self.bank = ModelBank(self._load_bucket)

    @classmethod
    def from_env(cls, env_var: str = MODEL_DIR_ENV) -> ModelRegistry:
        """Use the directory named by ``env_var`` if set, else the defaults."""
        model_dir = os.environ.get(env_var) or None
        return cls(model_dir)

    @property
    def model_dir(self) -> Path | None:
        return self._model_dir

    def _read(self, name: str) -> SvmModel:
        if self._model_dir is not None:
            path = self._model_dir / name
            if path.is_file():
                return load_model(path)
        try:
            text = DEFAULT_MODELS[name]
        except KeyError:
            where = self._model_dir if self._model_dir is not None else f"${MODEL_DIR_ENV}"
            raise ModelNotFoundError(f"Model '{name}' not found in {where} and not built in") from None
        return parse_model(text)

    def model(self, name: str) -> SvmModel:
        """Model by file name, parsed once and then shared."""
        with self._lock:
            model = self._models.get(name)
            if model is None:
                model = self._read(name)
                self._models[name] = model
            return model

    def _load_bucket(self, index: int) -> RegressionPair:
        label = bucket_label(index)
        return RegressionPair(
            avg=self.model(f"mfe_avg_di_{label}.model"),
            stdv=self.model(f"mfe_stdv_di_{label}.model"),
        )

    def mono_regression(self) -> RegressionPair:
        return RegressionPair(avg=self.model("mfe_avg.model"), stdv=self.model("mfe_stdv.model"))

    def di_regression(self, bucket: int) -> RegressionPair:
        return self.bank.get(bucket)

    def decision(self, variant: DecisionVariant) -> SvmModel:
        return self.model(variant.model_file)

    def strand(self, code: StrandCode) -> SvmModel:
        return self.model(code.model_file)

    def preload(self) -> None:
        """Load every regression model eagerly (before concurrent scoring)."""
        self.mono_regression()
        self.bank.preload()
