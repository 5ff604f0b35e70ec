"""Configuration for z-score and classification runs."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .background import TRAINED_FOLD_PARAMETERS
from .registry import MODEL_DIR_ENV
from .shuffle import DEFAULT_MAX_TRIES

__all__ = ["ScoringConfig", "load_config"]


@dataclass
class ScoringConfig:
    """Settings shared by every scored window.

    Attributes:
        model_dir: Directory with model files (None: built-in defaults)
        background: "mononucleotide" or "dinucleotide" null model
        avoid_shuffle: Prefer regression outside the trained range over shuffling
        n_shuffles: Number of shuffled sequences per empirical estimate
        seed: Seed for the shuffling random number generator
        fold_parameters: Name of the energy parameter set the oracle folds with
        decision_variant: Decision model used for the RNA-class prediction
        strand_code: Descriptor combination used for strand prediction
        max_shuffle_tries: Bound on last-edge draws per dinucleotide shuffle
        verbose: Echo warnings to stderr as they are produced
    """

    model_dir: Path | None = None
    background: str = "mononucleotide"
    avoid_shuffle: bool = False
    n_shuffles: int = 1000
    seed: int | None = None
    fold_parameters: str = TRAINED_FOLD_PARAMETERS
    decision_variant: str = "sequence_mono"
    strand_code: str = "SCI_Z_MEANMFE_CONSMFE"
    max_shuffle_tries: int = DEFAULT_MAX_TRIES
    verbose: bool = False


def load_config(path: str | Path | None = None) -> ScoringConfig:
    """Load a YAML config if provided; otherwise return defaults.

    Keys may be given flat or under ``background:``, ``classify:`` and
    ``models:`` sections. ``model_dir`` falls back to the RNAZDIR
    environment variable.
    """
    data: dict[str, Any] = {}
    base = Path.cwd()
    if path is not None:
        path = Path(path)
        base = path.parent
        with open(path) as fh:
            data = yaml.safe_load(fh) or {}

    background = data.get("background", data)
    if isinstance(background, dict):
        kind = background.get("model", "mononucleotide")
    else:
        # flat form: "background: dinucleotide"
        kind = background
        background = data
    classify = data.get("classify", data)
    models = data.get("models", data)

    model_dir_raw = models.get("model_dir") or os.environ.get(MODEL_DIR_ENV)
    model_dir = None
    if model_dir_raw:
        model_dir = Path(model_dir_raw)
        if not model_dir.is_absolute():
            model_dir = base / model_dir

    seed = background.get("seed")
    return ScoringConfig(
        model_dir=model_dir,
        background=str(kind),
        avoid_shuffle=bool(background.get("avoid_shuffle", False)),
        n_shuffles=int(background.get("n_shuffles", 1000)),
        seed=int(seed) if seed is not None else None,
        fold_parameters=str(background.get("fold_parameters", TRAINED_FOLD_PARAMETERS)),
        decision_variant=str(classify.get("decision_variant", "sequence_mono")),
        strand_code=str(classify.get("strand_code", "SCI_Z_MEANMFE_CONSMFE")),
        max_shuffle_tries=int(background.get("max_shuffle_tries", DEFAULT_MAX_TRIES)),
        verbose=bool(data.get("verbose", False)),
    )
