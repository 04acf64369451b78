from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple
import numpy as np

from utils import make_time_axis

PULSES = ("rect", "raised_cosine")


@dataclass
class WaveformWindow:
    t: np.ndarray        # time in symbol periods
    i: np.ndarray        # I(t)
    q: np.ndarray        # Q(t)


def _pulse(samples_per_symbol: int, pulse: str) -> np.ndarray:
    if pulse == "rect":
        return np.ones(samples_per_symbol, dtype=float)
    if pulse == "raised_cosine":
        # Hann-shaped window over one symbol period (display approximation)
        u = np.arange(samples_per_symbol, dtype=float) / samples_per_symbol
        return 0.5 * (1.0 - np.cos(2.0 * np.pi * u))
    raise ValueError(f"Unknown pulse shape: {pulse}")


def baseband(iq: Sequence[Tuple[float, float]], samples_per_symbol: int, pulse: str = "rect") -> WaveformWindow:
    """Hold each (I, Q) for one symbol period, shaped by `pulse`."""
    Ns = int(samples_per_symbol)
    if Ns <= 0:
        raise ValueError("samples_per_symbol must be positive.")
    shape = _pulse(Ns, pulse)
    n = len(iq)
    if n == 0:
        empty = np.array([], dtype=float)
        return WaveformWindow(t=empty, i=empty.copy(), q=empty.copy())

    levels = np.asarray(iq, dtype=float).reshape(n, 2)
    I = (levels[:, 0:1] * shape[None, :]).ravel()
    Q = (levels[:, 1:2] * shape[None, :]).ravel()
    return WaveformWindow(t=make_time_axis(n * Ns, Ns), i=I, q=Q)


def passband(
    i: float,
    q: float,
    *,
    samples_per_symbol: int = 100,
    carrier_cycles: int = 4,
    raised_cosine: bool = False,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    One symbol period of s(t) = I cos(2 pi fc t) - Q sin(2 pi fc t), fc in cycles
    per symbol. Returns (t, s) with t in [0, 1].
    """
    Ns = int(samples_per_symbol)
    if Ns <= 0:
        raise ValueError("samples_per_symbol must be positive.")
    t = np.linspace(0.0, 1.0, Ns + 1)
    w = 2.0 * np.pi * float(carrier_cycles) * t
    s = float(i) * np.cos(w) - float(q) * np.sin(w)
    if raised_cosine:
        s = s * 0.5 * (1.0 - np.cos(2.0 * np.pi * t))
    return t, s


def tx_rx_windows(symbols: List, samples_per_symbol: int, pulse: str = "rect") -> Dict[str, WaveformWindow]:
    """
    Transmitted and received I/Q windows for a run of TransmittedSymbol. The
    received window holds each noisy sample for its symbol period.
    """
    tx = [(s.point.i, s.point.q) for s in symbols]
    rx = [(s.rx_i, s.rx_q) for s in symbols]
    return {
        "tx": baseband(tx, samples_per_symbol, pulse),
        "rx": baseband(rx, samples_per_symbol, pulse),
    }


def pulse_spectrum(f_offset, pulse: str = "rect", alpha: float = 0.5) -> np.ndarray:
    """
    Magnitude spectrum of one pulse, f_offset in units of the symbol rate 1/T.
    rect: |sinc(f T)|, nulls at multiples of 1/T.
    raised_cosine: flat to (1-alpha)/2T, zero past (1+alpha)/2T.
    """
    f = np.abs(np.asarray(f_offset, dtype=float))
    if pulse == "rect":
        return np.abs(np.sinc(f))
    if pulse == "raised_cosine":
        if not 0.0 < alpha <= 1.0:
            raise ValueError("alpha must be in (0, 1].")
        f1 = (1.0 - alpha) / 2.0
        f2 = (1.0 + alpha) / 2.0
        roll = 0.5 * (1.0 + np.cos(np.pi * (f - f1) / alpha))
        return np.where(f <= f1, 1.0, np.where(f <= f2, roll, 0.0))
    raise ValueError(f"Unknown pulse shape: {pulse}")


def spectrum(
    *,
    carrier_cycles: int = 4,
    pulse: str = "rect",
    alpha: float = 0.5,
    span: float = 3.0,
    num_points: int = 561,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Passband magnitude spectrum: the pulse spectrum shifted to +/-fc, with
    fc = carrier_cycles / T. Covers -(fc + span) .. (fc + span); clipped to 1.
    """
    if num_points < 2:
        raise ValueError("num_points must be >= 2.")
    fc = float(carrier_cycles)
    f = np.linspace(-(fc + span), fc + span, int(num_points))
    mag = pulse_spectrum(f - fc, pulse, alpha) + pulse_spectrum(f + fc, pulse, alpha)
    return f, np.minimum(mag, 1.0)
