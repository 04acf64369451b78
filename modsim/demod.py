from __future__ import annotations

from typing import Sequence, Tuple
import numpy as np

from constellation import Constellation, ConstellationPoint, as_arrays


def decide_batch(rx_i, rx_q, constellation: Constellation) -> np.ndarray:
    """
    Minimum Euclidean distance decision for arrays of received samples.
    Returns constellation indices; ties go to the lowest index (np.argmin).
    """
    if not constellation:
        raise ValueError("Constellation is empty.")
    I, Q = as_arrays(constellation)
    ri = np.atleast_1d(np.asarray(rx_i, dtype=float))
    rq = np.atleast_1d(np.asarray(rx_q, dtype=float))
    if ri.shape != rq.shape:
        raise ValueError("rx_i and rx_q must have the same shape.")
    d2 = (ri[:, None] - I[None, :]) ** 2 + (rq[:, None] - Q[None, :]) ** 2
    return np.argmin(d2, axis=1)


def decide(rx_i: float, rx_q: float, constellation: Constellation) -> Tuple[ConstellationPoint, str]:
    n = int(decide_batch(rx_i, rx_q, constellation)[0])
    point = constellation[n]
    return point, point.bits


def count_bit_errors(sent: Sequence, recovered: Sequence) -> int:
    """Number of differing bit positions (not just 'symbol differs')."""
    if len(sent) != len(recovered):
        raise ValueError(f"Bit group length mismatch: {len(sent)} != {len(recovered)}")
    return sum(1 for a, b in zip(sent, recovered) if a != b)
