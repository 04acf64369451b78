from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Generic, Iterator, List, Optional, TypeVar

from demod import count_bit_errors

T = TypeVar("T")


@dataclass(frozen=True)
class ReceivedSymbol:
    i: float
    q: float
    is_error: bool


class RingBuffer(Generic[T]):
    """
    Fixed-capacity FIFO over a preallocated slot list. Appending to a full buffer
    overwrites the oldest entry. Iteration runs oldest -> newest.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError("capacity must be >= 1.")
        self._slots: List[Optional[T]] = [None] * int(capacity)
        self._head = 0      # next write position
        self._size = 0

    @property
    def capacity(self) -> int:
        return len(self._slots)

    def is_full(self) -> bool:
        return self._size == len(self._slots)

    def append(self, item: T) -> None:
        self._slots[self._head] = item
        self._head = (self._head + 1) % len(self._slots)
        if self._size < len(self._slots):
            self._size += 1

    def clear(self) -> None:
        for n in range(len(self._slots)):
            self._slots[n] = None
        self._head = 0
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[T]:
        cap = len(self._slots)
        start = (self._head - self._size) % cap
        for n in range(self._size):
            yield self._slots[(start + n) % cap]

    def to_list(self) -> List[T]:
        return list(self)


class StatisticsAccumulator:
    """Running symbol / bit / bit-error counts plus the recent-symbol ring."""

    def __init__(self, capacity: int = 500):
        self.recent: RingBuffer[ReceivedSymbol] = RingBuffer(capacity)
        self.symbol_count = 0
        self.bit_count = 0
        self.bit_error_count = 0

    def record(self, sent_bits: str, recovered_bits: str, rx_i: float, rx_q: float) -> int:
        errors = count_bit_errors(sent_bits, recovered_bits)
        self.symbol_count += 1
        self.bit_count += len(sent_bits)
        self.bit_error_count += errors
        self.recent.append(ReceivedSymbol(float(rx_i), float(rx_q), errors > 0))
        return errors

    @property
    def simulated_ber(self) -> Optional[float]:
        # None = no data yet
        if self.bit_count == 0:
            return None
        return self.bit_error_count / self.bit_count

    def reset(self) -> None:
        self.symbol_count = 0
        self.bit_count = 0
        self.bit_error_count = 0
        self.recent.clear()


# ----------------------------
# Read-out helpers for the statistics panel
# ----------------------------

def ber_ratio(simulated: Optional[float], theoretical: Optional[float]) -> Optional[float]:
    # No ratio until both rates are positive
    if simulated is None or theoretical is None or simulated <= 0.0 or theoretical <= 0.0:
        return None
    return simulated / theoretical


def sample_size_quality(error_count: int, bit_count: int) -> str:
    """
    Rule of thumb: ~100 errors are needed for a meaningful BER estimate.
    Measures sample size only, not accuracy.
    """
    if bit_count == 0:
        return "No Data"
    if error_count < 10:
        return "Need more samples"
    if error_count < 50:
        return "Low sample size"
    if error_count < 100:
        return "Moderate"
    if error_count < 500:
        return "Good sample size"
    return "Large sample"


def accuracy_assessment(simulated: Optional[float], theoretical: Optional[float], error_count: int) -> str:
    """
    Compare simulated to theoretical BER. The ratio's standard deviation is roughly
    1/sqrt(errors); 2.5 sigma is used as the 'converging' band.
    """
    if error_count < 10 or not simulated or not theoretical:
        return "Insufficient data"
    ratio = simulated / theoretical
    tolerance = 2.5 / math.sqrt(error_count)
    if 1.0 - tolerance < ratio < 1.0 + tolerance:
        return "Converging well"
    if 0.7 < ratio < 1.4:
        return "Within range"
    return "Check simulation"


def snr_quality(snr_db: float) -> str:
    if snr_db < 0:
        return "Very Poor"
    if snr_db < 5:
        return "Poor"
    if snr_db < 10:
        return "Moderate"
    if snr_db < 15:
        return "Good"
    return "Excellent"
