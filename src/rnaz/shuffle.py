"""
Composition-preserving sequence shuffles and the empirical background model.

Two null models are supported:

- mononucleotide: a uniform random permutation (Fisher-Yates) of the symbols;
- dinucleotide: the Altschul-Erickson doublet-preserving shuffle. Every
  adjacent pair of the input is an edge of a directed multigraph over the
  symbols. A shuffled sequence is a random Eulerian path through this graph
  that starts at the first and ends at the last symbol of the input:

    1. for every vertex except the final symbol, pick a random outgoing edge
       as its last exit;
    2. accept the choice only if the last exits form a tree rooted at the
       final symbol (every vertex reaches it), otherwise pick again;
    3. permute the remaining edges of every vertex, keep the last exit last;
    4. walk from the first symbol, always taking the next unused edge.

The result has the same length, first symbol, last symbol and count of every
ordered symbol pair as the input.

Randomness is always drawn from an explicit ``random.Random`` so results are
reproducible for a given seed.
"""

from __future__ import annotations

import random
import statistics
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .folding import FoldingOracle

__all__ = [
    "ShuffleError",
    "DEFAULT_MAX_TRIES",
    "mononucleotide_shuffle",
    "dinucleotide_shuffle",
    "shuffle_sequence",
    "EmpiricalBackground",
    "empirical_background",
]

DEFAULT_MAX_TRIES = 1000


class ShuffleError(RuntimeError):
    """The dinucleotide shuffle found no valid last-edge tree within its bound."""


def mononucleotide_shuffle(seq: str, rng: random.Random) -> str:
    """Uniform random permutation of the symbols of ``seq``."""
    symbols = list(seq)
    rng.shuffle(symbols)
    return "".join(symbols)


def _doublet_graph(seq: str) -> dict[str, list[str]]:
    edges: dict[str, list[str]] = {}
    for x, y in zip(seq, seq[1:]):
        edges.setdefault(x, []).append(y)
    return edges


def _reaches_terminal(edges: dict[str, list[str]], last_exit: dict[str, int], terminal: str) -> bool:
    """True if following last exits from every vertex ends at ``terminal``."""
    connected = {terminal}
    for start in last_exit:
        path: list[str] = []
        on_path: set[str] = set()
        v = start
        while v not in connected:
            if v in on_path:
                return False
            path.append(v)
            on_path.add(v)
            v = edges[v][last_exit[v]]
        connected.update(path)
    return True


def dinucleotide_shuffle(
    seq: str,
    rng: random.Random,
    max_tries: int = DEFAULT_MAX_TRIES,
) -> str:
    """Shuffle ``seq`` preserving the exact multiset of adjacent symbol pairs.

    Args:
        seq: Sequence to shuffle
        rng: Random number generator
        max_tries: Maximum number of last-edge assignments to draw

    Returns:
        Shuffled sequence

    Raises:
        ShuffleError: If no valid assignment was drawn within max_tries
    """
    if len(seq) <= 2:
        return seq

    edges = _doublet_graph(seq)
    first, terminal = seq[0], seq[-1]
    vertices = sorted(v for v in edges if v != terminal)

    for _ in range(max_tries):
        last_exit = {v: rng.randrange(len(edges[v])) for v in vertices}
        if _reaches_terminal(edges, last_exit, terminal):
            break
    else:
        raise ShuffleError(
            f"No valid last-edge tree after {max_tries} tries (length {len(seq)})"
        )

    order: dict[str, list[str]] = {}
    for v in sorted(edges):
        if v in last_exit:
            k = last_exit[v]
            rest = edges[v][:k] + edges[v][k + 1 :]
            rng.shuffle(rest)
            order[v] = rest + [edges[v][k]]
        else:
            rest = list(edges[v])
            rng.shuffle(rest)
            order[v] = rest

    used = dict.fromkeys(order, 0)
    out = [first]
    v = first
    for _ in range(len(seq) - 1):
        nxt = order[v][used[v]]
        used[v] += 1
        out.append(nxt)
        v = nxt
    return "".join(out)


def shuffle_sequence(
    seq: str,
    rng: random.Random,
    *,
    dinucleotide: bool = False,
    max_tries: int = DEFAULT_MAX_TRIES,
) -> str:
    if dinucleotide:
        return dinucleotide_shuffle(seq, rng, max_tries=max_tries)
    return mononucleotide_shuffle(seq, rng)


@dataclass
class EmpiricalBackground:
    """Sample statistics of the MFE of shuffled sequences."""

    mean: float
    stdev: float
    n_samples: int
    dinucleotide: bool
    warnings: list[str] = field(default_factory=list)


def empirical_background(
    seq: str,
    oracle: FoldingOracle,
    rng: random.Random,
    *,
    dinucleotide: bool = False,
    n_samples: int = 1000,
    max_tries: int = DEFAULT_MAX_TRIES,
) -> EmpiricalBackground:
    """Estimate mean and stdev of the MFE of ``n_samples`` shuffles of ``seq``.

    The standard deviation uses the (n - 1) denominator. If the dinucleotide
    shuffle cannot find a valid Eulerian path, the samples drawn so far are
    discarded, all ``n_samples`` are redrawn with the mononucleotide shuffle
    and a warning is recorded.
    """
    if n_samples < 2:
        raise ValueError(f"n_samples must be >= 2, got {n_samples}")

    warnings: list[str] = []
    use_di = dinucleotide
    energies: list[float] = []
    if use_di:
        try:
            for _ in range(n_samples):
                shuffled = dinucleotide_shuffle(seq, rng, max_tries=max_tries)
                energy, _structure = oracle.fold(shuffled)
                energies.append(float(energy))
        except ShuffleError as e:
            warnings.append(
                f"Dinucleotide shuffling failed ({e}). "
                "Falling back to mononucleotide shuffling."
            )
            use_di = False
            energies = []

    if not use_di:
        for _ in range(n_samples):
            energy, _structure = oracle.fold(mononucleotide_shuffle(seq, rng))
            energies.append(float(energy))

    return EmpiricalBackground(
        mean=statistics.mean(energies),
        stdev=statistics.stdev(energies),
        n_samples=n_samples,
        dinucleotide=use_di,
        warnings=warnings,
    )
