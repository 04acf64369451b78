"""
AWGN channel: random source bits -> ideal constellation point -> noisy received I/Q.

Noise scaling
-------------
Symbol energy is normalised to Es = 1 and a symbol carries k bits, so Eb = 1/k.
With Eb/N0 given in dB:

    N0      = Eb / (Eb/N0) = 1 / (k * EbN0_lin)
    sigma^2 = N0 / 2       = 1 / (2 * k * EbN0_lin)     (per dimension)
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from functools import lru_cache
from typing import List
import numpy as np

from utils import BITS_PER_SYMBOL, db_to_linear, normalize_scheme
from constellation import ConstellationPoint, generate, index_of

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransmittedSymbol:
    bits: str                    # source bit group
    point: ConstellationPoint    # ideal transmitted point
    rx_i: float
    rx_q: float


def noise_sigma(scheme: str, snr_db: float) -> float:
    """Per-dimension noise standard deviation for unit-energy symbols."""
    k = BITS_PER_SYMBOL[normalize_scheme(scheme)]
    ebn0 = db_to_linear(snr_db)
    return math.sqrt(1.0 / (2.0 * k * ebn0))


@lru_cache(maxsize=None)
def _value_to_index(key: str) -> np.ndarray:
    # integer value of a bit group (MSB first) -> constellation index
    k = BITS_PER_SYMBOL[key]
    return np.array([index_of(key, format(v, f"0{k}b")) for v in range(2 ** k)], dtype=int)


def transmit_batch(
    scheme: str,
    snr_db: float,
    batch_size: int,
    rng: np.random.Generator,
    *,
    noise: bool = True,
) -> List[TransmittedSymbol]:
    key = normalize_scheme(scheme)
    if batch_size < 0:
        raise ValueError("batch_size must be >= 0.")
    n = int(batch_size)
    if n == 0:
        return []

    k = BITS_PER_SYMBOL[key]
    points = generate(key)

    bits = rng.integers(0, 2, size=(n, k))
    weights = 1 << np.arange(k - 1, -1, -1)
    values = bits @ weights
    idx = _value_to_index(key)[values]

    I = np.array([points[j].i for j in idx], dtype=float)
    Q = np.array([points[j].q for j in idx], dtype=float)

    if noise:
        sigma = noise_sigma(key, snr_db)
        I = I + sigma * rng.standard_normal(n)
        Q = Q + sigma * rng.standard_normal(n)

    logger.debug("transmit_batch: %s %.2f dB x%d", key, snr_db, n)

    out: List[TransmittedSymbol] = []
    for m in range(n):
        p = points[idx[m]]
        out.append(TransmittedSymbol(bits=p.bits, point=p, rx_i=float(I[m]), rx_q=float(Q[m])))
    return out
