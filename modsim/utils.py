from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional
import numpy as np


# Scheme name -> bits per symbol (k). Constellation size is 2**k.
BITS_PER_SYMBOL: Dict[str, int] = {
    "BPSK": 1,
    "QPSK": 2,
    "8PSK": 3,
    "16QAM": 4,
    "64QAM": 6,
}

SCHEMES: List[str] = list(BITS_PER_SYMBOL)

# Hyphenated display names for the UI
DISPLAY_NAMES: Dict[str, str] = {
    "BPSK": "BPSK",
    "QPSK": "QPSK",
    "8PSK": "8-PSK",
    "16QAM": "16-QAM",
    "64QAM": "64-QAM",
}


@dataclass
class SimConfig:
    default_scheme: str = "QPSK"
    default_snr_db: float = 10.0
    snr_min_db: float = -5.0          # slider floor (dB)
    snr_step_db: float = 0.5          # slider resolution (dB)
    ber_floor: float = 1e-6           # BER treated as negligible for the SNR ceiling
    speed_min: float = 10.0           # symbols / s
    speed_max: float = 1000.0
    default_speed: float = 100.0
    tick_interval: float = 0.05       # seconds between host ticks
    ring_capacity: int = 500          # received symbols kept for display
    waveform_symbols: int = 8         # symbols shown in the I/Q waveform window
    samples_per_symbol: int = 32


def normalize_scheme(scheme: str) -> str:
    """Canonical scheme key: '16-qam' -> '16QAM'. Raises ValueError if unknown."""
    key = str(scheme).strip().upper().replace("-", "").replace(" ", "")
    if key not in BITS_PER_SYMBOL:
        raise ValueError(f"Unknown modulation scheme: {scheme}")
    return key


def bits_per_symbol(scheme: str) -> int:
    return BITS_PER_SYMBOL[normalize_scheme(scheme)]


def db_to_linear(db: float) -> float:
    return float(10.0 ** (float(db) / 10.0))


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    return np.random.default_rng(seed)


def make_time_axis(num_samples: int, fs: float) -> np.ndarray:
    return np.arange(num_samples, dtype=float) / float(fs)
