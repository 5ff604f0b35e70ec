"""
Reader and writer for the textual SVM model format.

Grammar (one record per line, tokens separated by whitespace):

    model      := header "SV" sv_line*
    header     := (key value+)*
    key        := svm_type | kernel_type | gamma | degree | coef0 | nr_class
                | total_sv | rho | label | probA | probB | nr_sv
    sv_line    := coef{nr_class-1} (index ":" value)*

Indices are 1-based feature numbers; features absent from a line are zero.
The same grammar is used for model files on disk and for the default models
embedded as strings in :mod:`rnaz.default_models`, so ``load_model(path)``
and ``parse_model(path.read_text())`` always agree.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np

from .svm import KERNEL_TYPES, SVM_TYPES, ModelError, SvmModel

__all__ = [
    "ModelFormatError",
    "parse_model",
    "load_model",
    "dump_model",
    "save_model",
]

_FLOAT_KEYS = {"gamma", "coef0"}
_INT_KEYS = {"degree", "nr_class", "total_sv"}
_FLOAT_LIST_KEYS = {"rho", "probA", "probB"}
_INT_LIST_KEYS = {"label", "nr_sv"}
_STR_KEYS = {"svm_type", "kernel_type"}


class ModelFormatError(ValueError):
    """Raised when a model text does not follow the model grammar."""


def _parse_header(lines: list[str]) -> tuple[dict[str, object], int]:
    header: dict[str, object] = {}
    for lineno, raw in enumerate(lines):
        line = raw.strip()
        if not line:
            continue
        if line == "SV":
            return header, lineno + 1
        key, *values = line.split()
        if not values:
            raise ModelFormatError(f"Line {lineno + 1}: header key '{key}' has no value")
        try:
            if key in _STR_KEYS:
                header[key] = values[0]
            elif key in _FLOAT_KEYS:
                header[key] = float(values[0])
            elif key in _INT_KEYS:
                header[key] = int(values[0])
            elif key in _FLOAT_LIST_KEYS:
                header[key] = tuple(float(v) for v in values)
            elif key in _INT_LIST_KEYS:
                header[key] = tuple(int(v) for v in values)
            else:
                raise ModelFormatError(f"Line {lineno + 1}: unknown header key '{key}'")
        except ValueError as e:
            if isinstance(e, ModelFormatError):
                raise
            raise ModelFormatError(f"Line {lineno + 1}: bad value for '{key}': {e}") from e
    raise ModelFormatError("Missing 'SV' line terminating the model header")


def _parse_sv_line(line: str, n_coef: int, lineno: int) -> tuple[list[float], dict[int, float]]:
    tokens = line.split()
    if len(tokens) < n_coef:
        raise ModelFormatError(
            f"Line {lineno}: expected {n_coef} coefficient(s), got {len(tokens)} token(s)"
        )
    try:
        coefs = [float(t) for t in tokens[:n_coef]]
    except ValueError as e:
        raise ModelFormatError(f"Line {lineno}: bad coefficient: {e}") from e

    sparse: dict[int, float] = {}
    for token in tokens[n_coef:]:
        idx_str, sep, val_str = token.partition(":")
        if not sep:
            raise ModelFormatError(f"Line {lineno}: expected index:value, got '{token}'")
        try:
            idx = int(idx_str)
            val = float(val_str)
        except ValueError as e:
            raise ModelFormatError(f"Line {lineno}: bad feature '{token}'") from e
        if idx < 1:
            raise ModelFormatError(f"Line {lineno}: feature index must be >= 1, got {idx}")
        sparse[idx] = val
    return coefs, sparse


def parse_model(text: str) -> SvmModel:
    """Parse a model from its textual representation."""
    lines = text.splitlines()
    header, body_start = _parse_header(lines)

    for key in ("svm_type", "kernel_type", "nr_class", "total_sv", "rho"):
        if key not in header:
            raise ModelFormatError(f"Missing header key '{key}'")

    svm_type = str(header["svm_type"])
    kernel_type = str(header["kernel_type"])
    if svm_type not in SVM_TYPES:
        raise ModelFormatError(f"Unsupported svm_type '{svm_type}'")
    if kernel_type not in KERNEL_TYPES:
        raise ModelFormatError(f"Unsupported kernel_type '{kernel_type}'")

    nr_class = int(header["nr_class"])  # type: ignore[arg-type]
    total_sv = int(header["total_sv"])  # type: ignore[arg-type]
    n_pairs = nr_class * (nr_class - 1) // 2
    rho = header["rho"]
    if len(rho) != max(n_pairs, 1):  # type: ignore[arg-type]
        raise ModelFormatError(f"Expected {n_pairs} rho value(s), got {len(rho)}")  # type: ignore[arg-type]

    nr_sv = header.get("nr_sv")
    if nr_sv is not None and sum(nr_sv) != total_sv:  # type: ignore[arg-type]
        raise ModelFormatError(f"nr_sv {nr_sv} does not add up to total_sv {total_sv}")

    sv_lines = [(i + 1, ln) for i, ln in enumerate(lines) if i >= body_start and ln.strip()]
    if len(sv_lines) != total_sv:
        raise ModelFormatError(
            f"Expected {total_sv} support vector line(s), found {len(sv_lines)}"
        )

    n_coef = nr_class - 1
    coef_rows: list[list[float]] = []
    sparse_rows: list[dict[int, float]] = []
    for lineno, line in sv_lines:
        coefs, sparse = _parse_sv_line(line, n_coef, lineno)
        coef_rows.append(coefs)
        sparse_rows.append(sparse)

    # Explicit zeros do not widen the matrix; they contribute nothing to any kernel.
    width = max(
        (idx for row in sparse_rows for idx, val in row.items() if val != 0.0), default=0
    )
    support_vectors = np.zeros((total_sv, width), dtype=float)
    for r, row in enumerate(sparse_rows):
        for idx, val in row.items():
            if val != 0.0:
                support_vectors[r, idx - 1] = val
    sv_coef = np.array(coef_rows, dtype=float).reshape(total_sv, n_coef).T.copy()

    try:
        return SvmModel(
            svm_type=svm_type,
            kernel_type=kernel_type,
            gamma=float(header.get("gamma", 0.0)),  # type: ignore[arg-type]
            degree=int(header.get("degree", 3)),  # type: ignore[arg-type]
            coef0=float(header.get("coef0", 0.0)),  # type: ignore[arg-type]
            nr_class=nr_class,
            rho=tuple(rho),  # type: ignore[arg-type]
            sv_coef=sv_coef,
            support_vectors=support_vectors,
            label=header.get("label"),  # type: ignore[arg-type]
            prob_a=header.get("probA"),  # type: ignore[arg-type]
            prob_b=header.get("probB"),  # type: ignore[arg-type]
            nr_sv=nr_sv,  # type: ignore[arg-type]
        )
    except ModelError as e:
        raise ModelFormatError(str(e)) from e


def load_model(path: str | Path) -> SvmModel:
    """Load a model file. Same grammar as :func:`parse_model`."""
    return parse_model(Path(path).read_text())


def _fmt(value: float) -> str:
    return format(float(value), ".17g")


def dump_model(model: SvmModel) -> str:
    """Serialize a model; ``parse_model(dump_model(m)) == m``."""
    out = [f"svm_type {model.svm_type}", f"kernel_type {model.kernel_type}"]
    out.append(f"degree {model.degree}")
    out.append(f"gamma {_fmt(model.gamma)}")
    out.append(f"coef0 {_fmt(model.coef0)}")
    out.append(f"nr_class {model.nr_class}")
    out.append(f"total_sv {model.total_sv}")
    out.append("rho " + " ".join(_fmt(r) for r in model.rho))
    if model.label is not None:
        out.append("label " + " ".join(str(v) for v in model.label))
    if model.prob_a is not None:
        out.append("probA " + " ".join(_fmt(v) for v in model.prob_a))
    if model.prob_b is not None:
        out.append("probB " + " ".join(_fmt(v) for v in model.prob_b))
    if model.nr_sv is not None:
        out.append("nr_sv " + " ".join(str(v) for v in model.nr_sv))
    out.append("SV")

    for r in range(model.total_sv):
        tokens = [_fmt(c) for c in model.sv_coef[:, r]]
        tokens += [
            f"{k + 1}:{_fmt(v)}" for k, v in enumerate(model.support_vectors[r]) if v != 0.0
        ]
        out.append(" ".join(tokens))
    return "\n".join(out) + "\n"


def save_model(model: SvmModel, path: str | Path) -> None:
    Path(path).write_text(dump_model(model))
