from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Tuple
import numpy as np

from utils import BITS_PER_SYMBOL, normalize_scheme

# ----------------------------
# Types
# ----------------------------

@dataclass(frozen=True)
class ConstellationPoint:
    i: float
    q: float
    bits: str        # Gray label, length = bits per symbol


Constellation = Tuple[ConstellationPoint, ...]


def gray_code(n: int) -> int:
    return n ^ (n >> 1)


def _label(value: int, width: int) -> str:
    return format(value, f"0{width}b")


# ----------------------------
# Per-scheme builders
# ----------------------------

def _bpsk() -> Constellation:
    # Antipodal on the I axis: 0 -> -1, 1 -> +1
    return (
        ConstellationPoint(-1.0, 0.0, "0"),
        ConstellationPoint(+1.0, 0.0, "1"),
    )


def _psk(k: int, phase_offset: float) -> Constellation:
    """
    M-PSK on the unit circle. Index n sits at phase_offset + 2*pi*n/M and carries
    gray(n), so circular neighbours differ in one bit (including n=M-1 -> n=0).
    """
    M = 2 ** k
    points = []
    for n in range(M):
        phi = phase_offset + 2.0 * np.pi * n / M
        points.append(ConstellationPoint(float(np.cos(phi)), float(np.sin(phi)), _label(gray_code(n), k)))
    return tuple(points)


def _square_qam(k: int) -> Constellation:
    """
    Square M-QAM: each axis carries k/2 Gray-coded bits over L = sqrt(M) levels
    {-(L-1), ..., -1, +1, ..., +(L-1)}. Label = I bits + Q bits, I-major ordering.
    """
    M = 2 ** k
    half = k // 2
    L = 2 ** half
    # Mean energy of the unscaled lattice is 2(M-1)/3
    scale = 1.0 / np.sqrt(2.0 * (M - 1) / 3.0)
    points = []
    for i_idx in range(L):
        I = (2 * i_idx - (L - 1)) * scale
        for q_idx in range(L):
            Q = (2 * q_idx - (L - 1)) * scale
            label = _label(gray_code(i_idx), half) + _label(gray_code(q_idx), half)
            points.append(ConstellationPoint(float(I), float(Q), label))
    return tuple(points)


# ----------------------------
# Public API
# ----------------------------

@lru_cache(maxsize=None)
def _generate(key: str) -> Constellation:
    k = BITS_PER_SYMBOL[key]
    if key == "BPSK":
        return _bpsk()
    if key == "QPSK":
        return _psk(k, np.pi / 4.0)
    if key == "8PSK":
        return _psk(k, 0.0)
    if key in ("16QAM", "64QAM"):
        return _square_qam(k)
    raise ValueError(f"Unknown modulation scheme: {key}")


def generate(scheme: str) -> Constellation:
    return _generate(normalize_scheme(scheme))


@lru_cache(maxsize=None)
def _label_index(key: str) -> Dict[str, int]:
    return {p.bits: n for n, p in enumerate(_generate(key))}


def index_of(scheme: str, bits: str) -> int:
    key = normalize_scheme(scheme)
    try:
        return _label_index(key)[bits]
    except KeyError:
        raise ValueError(f"{key}: no constellation point labelled {bits!r}") from None


def lookup(scheme: str, bits: str) -> ConstellationPoint:
    return generate(scheme)[index_of(scheme, bits)]


def as_arrays(constellation: Constellation) -> Tuple[np.ndarray, np.ndarray]:
    I = np.array([p.i for p in constellation], dtype=float)
    Q = np.array([p.q for p in constellation], dtype=float)
    return I, Q


def mean_energy(constellation: Constellation) -> float:
    I, Q = as_arrays(constellation)
    return float(np.mean(I * I + Q * Q))


def grid_neighbours(scheme: str) -> list:
    """
    Index pairs that are 'naturally adjacent': circular neighbours for PSK, row and
    column neighbours for QAM. Used to check the Gray mapping.
    """
    key = normalize_scheme(scheme)
    M = 2 ** BITS_PER_SYMBOL[key]
    if key == "BPSK":
        return [(0, 1)]
    if key in ("QPSK", "8PSK"):
        return [(n, (n + 1) % M) for n in range(M)]
    L = int(round(np.sqrt(M)))
    pairs = []
    for r in range(L):
        for c in range(L):
            n = r * L + c
            if c + 1 < L:
                pairs.append((n, n + 1))
            if r + 1 < L:
                pairs.append((n, n + L))
    return pairs
