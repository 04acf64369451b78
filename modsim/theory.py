from __future__ import annotations

import math
from functools import lru_cache
from typing import List, Tuple
import numpy as np
from scipy.optimize import brentq
from scipy.special import erfc

from utils import BITS_PER_SYMBOL, db_to_linear, normalize_scheme

# Search window (dB) for the SNR ceiling
_CEILING_LO = -5.0
_CEILING_HI = 40.0


def q_function(x: float) -> float:
    """Gaussian tail probability Q(x) = P(N(0,1) > x)."""
    return float(0.5 * erfc(float(x) / math.sqrt(2.0)))


def theoretical_ber(scheme: str, snr_db: float) -> float:
    """
    Closed-form per-bit error rate over AWGN at Eb/N0 = snr_db.

      BPSK, QPSK : Q(sqrt(2 Eb/N0))                         (exact)
      8PSK       : (2/k) Q(sqrt(2k Eb/N0) sin(pi/8))        (nearest neighbour)
      M-QAM      : (4/k)(1 - 1/sqrt(M)) Q(sqrt(3k Eb/N0 / (M-1)))
    """
    key = normalize_scheme(scheme)
    k = BITS_PER_SYMBOL[key]
    M = 2 ** k
    ebn0 = db_to_linear(snr_db)

    if key in ("BPSK", "QPSK"):
        ber = q_function(math.sqrt(2.0 * ebn0))
    elif key == "8PSK":
        ber = (2.0 / k) * q_function(math.sqrt(2.0 * k * ebn0) * math.sin(math.pi / 8.0))
    elif key in ("16QAM", "64QAM"):
        ber = (4.0 / k) * (1.0 - 1.0 / math.sqrt(M)) * q_function(math.sqrt(3.0 * k * ebn0 / (M - 1)))
    else:
        raise ValueError(f"Unknown modulation scheme: {scheme}")

    return min(1.0, max(0.0, ber))


def generate_curve(scheme: str, snr_min: float, snr_max: float, point_count: int) -> List[Tuple[float, float]]:
    """Evenly spaced (snr_db, ber) pairs from snr_min to snr_max inclusive."""
    if point_count < 1:
        raise ValueError("point_count must be >= 1.")
    normalize_scheme(scheme)
    grid = np.linspace(float(snr_min), float(snr_max), int(point_count))
    return [(float(s), theoretical_ber(scheme, float(s))) for s in grid]


def get_max_useful_snr(scheme: str, threshold: float = 1e-6, step: float = 0.5) -> float:
    """
    Smallest SNR on the `step` grid at which theoretical_ber <= threshold.
    Bounds the SNR control: past this point the simulation shows no errors.
    """
    if not 0.0 < threshold < 0.1:
        raise ValueError("threshold must be in (0, 0.1).")
    return _max_useful_snr(normalize_scheme(scheme), float(threshold), float(step))


@lru_cache(maxsize=None)
def _max_useful_snr(scheme: str, threshold: float, step: float) -> float:
    log_thr = math.log10(threshold)

    def _gap(snr_db: float) -> float:
        return math.log10(max(theoretical_ber(scheme, snr_db), 1e-300)) - log_thr

    root = brentq(_gap, _CEILING_LO, _CEILING_HI)
    return math.ceil(root / step) * step
