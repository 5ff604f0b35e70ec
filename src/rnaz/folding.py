"""
Folding oracle interface and a ViennaRNA command-line implementation.

The scoring code never folds anything itself; it asks an oracle for the
minimum free energy (MFE) and structure of a sequence or an alignment.
"""

from __future__ import annotations

import re
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

__all__ = [
    "FoldingOracle",
    "ViennaOracle",
    "parse_rnafold_output",
    "parse_rnaalifold_output",
]

# "((((...))))  ( -3.40)" or, for RNAalifold, "((...)) ( -3.40 = -2.90 +  -0.50)"
_ENERGY_RE = re.compile(r"^(?P<struct>[.()\[\]{}<>,|]+)\s+\(\s*(?P<energy>[-+]?\d+(?:\.\d+)?)")


class FoldingOracle(Protocol):
    def fold(self, sequence: str) -> tuple[float, str]:
        """Return (MFE, dot-bracket structure) of a gap-free sequence."""
        ...

    def alifold(self, sequences: Sequence[str]) -> tuple[float, str]:
        """Return (consensus MFE, consensus structure) of aligned sequences."""
        ...


def _parse_energy_line(line: str) -> tuple[float, str] | None:
    m = _ENERGY_RE.match(line.strip())
    if m is None:
        return None
    return float(m.group("energy")), m.group("struct")


def parse_rnafold_output(text: str) -> tuple[float, str]:
    """Parse the structure line of RNAfold output."""
    for line in text.splitlines():
        parsed = _parse_energy_line(line)
        if parsed is not None:
            return parsed
    raise ValueError(f"No structure/energy line in RNAfold output:\n{text}")


def parse_rnaalifold_output(text: str) -> tuple[float, str]:
    """Parse the consensus structure line of RNAalifold output (total energy)."""
    return parse_rnafold_output(text)


class ViennaOracle:
    """Runs ``RNAfold``/``RNAalifold`` as subprocesses.

    Args:
        rnafold_exe: Path or name of the RNAfold executable
        rnaalifold_exe: Path or name of the RNAalifold executable
        extra_args: Additional arguments passed to both tools
    """

    def __init__(
        self,
        rnafold_exe: str | Path = "RNAfold",
        rnaalifold_exe: str | Path = "RNAalifold",
        extra_args: Sequence[str] = (),
    ) -> None:
        self.rnafold_exe = str(rnafold_exe)
        self.rnaalifold_exe = str(rnaalifold_exe)
        self.extra_args = list(extra_args)

    def fold(self, sequence: str) -> tuple[float, str]:
        cmd = [self.rnafold_exe, "--noPS", *self.extra_args]
        proc = subprocess.run(
            cmd, input=sequence + "\n", check=True, text=True, capture_output=True
        )
        return parse_rnafold_output(proc.stdout)

    def alifold(self, sequences: Sequence[str]) -> tuple[float, str]:
        # RNAalifold reads Clustal; write a minimal one.
        body = "\n".join(f"seq{i} {s}" for i, s in enumerate(sequences))
        clustal = f"CLUSTAL W\n\n{body}\n"
        cmd = [self.rnaalifold_exe, "--noPS", *self.extra_args]
        proc = subprocess.run(cmd, input=clustal, check=True, text=True, capture_output=True)
        return parse_rnaalifold_output(proc.stdout)
