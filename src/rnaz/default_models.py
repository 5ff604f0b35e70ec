"""
Built-in default models, used when no model directory is configured.

Keys are the model file names looked up in a model directory, so a directory
can override any subset of these one file at a time. The texts follow the
grammar documented in :mod:`rnaz.model_format`.

Every built-in model is a placeholder: a linear model with one support
vector (regression) or two (decision, strand) that keeps the pipeline
runnable and its outputs in a plausible range. They are not the trained
RNAz models and their scores carry no biological meaning. Point
``model_dir`` (or ``RNAZDIR``) at a directory of trained model files for
production scoring.
"""

from __future__ import annotations

__all__ = ["DEFAULT_MODELS"]

_MFE_AVG = """\
svm_type epsilon_svr
kernel_type linear
nr_class 2
total_sv 1
rho 0.05
SV
1 1:-0.08 2:0.02 3:-0.02 4:-0.75
"""

_MFE_STDV = """\
svm_type epsilon_svr
kernel_type linear
nr_class 2
total_sv 1
rho 0
SV
1 1:0.15 4:0.6
"""

_DI_AVG_SV = "1 1:-0.9 10:-0.05 13:-0.05 20:-0.1"
_DI_STDV_SV = "1 1:0.25 20:0.5"

_DI_AVG_RHO = {
    "20_30": -0.6385,
    "30_36": -0.6342,
    "36_42": -0.6309,
    "42_46": -0.6282,
    "46_50": -0.6261,
    "50_54": -0.6239,
    "54_58": -0.6218,
    "58_64": -0.6191,
    "64_70": -0.6158,
    "70_80": -0.6115,
}

_DI_STDV_RHO = {
    "20_30": -0.46,
    "30_36": -0.476,
    "36_42": -0.488,
    "42_46": -0.498,
    "46_50": -0.506,
    "50_54": -0.514,
    "54_58": -0.522,
    "58_64": -0.532,
    "64_70": -0.544,
    "70_80": -0.56,
}

_SVR_HEADER = """\
svm_type epsilon_svr
kernel_type linear
nr_class 2
total_sv 1
rho {rho}
SV
"""

_DECISION = """\
svm_type c_svc
kernel_type linear
nr_class 2
total_sv 2
rho 0.35
label 1 -1
probA -2.1
probB 0.15
nr_sv 1 1
SV
1 1:-0.8 2:1.1 3:-0.15 4:0.125
-1 1:0.8 2:-1.1 3:0.15 4:-0.125
"""

_DECISION_DINUCLEOTIDE = """\
svm_type c_svc
kernel_type linear
nr_class 2
total_sv 2
rho 0.3
label 1 -1
probA -2.0
probB 0.1
nr_sv 1 1
SV
1 1:-0.75 2:1.0 3:-0.3
-1 1:0.75 2:-1.0 3:0.3
"""

_DECISION_STRUCTURAL = """\
svm_type c_svc
kernel_type linear
nr_class 2
total_sv 2
rho 0.4
label 1 -1
probA -1.9
probB 0.05
nr_sv 1 1
SV
1 1:-0.7 2:1.15 3:-0.25
-1 1:0.7 2:-1.15 3:0.25
"""

# Descriptor order: dSCI, dZ, dMeanMFE, dConsMFE, n_seq, identity, GU frequency.
_STRAND = """\
svm_type c_svc
kernel_type linear
nr_class 2
total_sv 2
rho 0
label 1 -1
probA -1.7
probB 0
nr_sv 1 1
SV
1 1:0.6 2:-0.5 3:-0.2 4:-0.3 7:-0.1
-1 1:-0.6 2:0.5 3:0.2 4:0.3 7:0.1
"""

DEFAULT_MODELS: dict[str, str] = {
    "mfe_avg.model": _MFE_AVG,
    "mfe_stdv.model": _MFE_STDV,
    "decision.model": _DECISION,
    "decision_dinucleotide.model": _DECISION_DINUCLEOTIDE,
    "decision_structural.model": _DECISION_STRUCTURAL,
    "strand.model": _STRAND,
}
for _bucket, _rho in _DI_AVG_RHO.items():
    DEFAULT_MODELS[f"mfe_avg_di_{_bucket}.model"] = _SVR_HEADER.format(rho=_rho) + _DI_AVG_SV + "\n"
for _bucket, _rho in _DI_STDV_RHO.items():
    DEFAULT_MODELS[f"mfe_stdv_di_{_bucket}.model"] = _SVR_HEADER.format(rho=_rho) + _DI_STDV_SV + "\n"
