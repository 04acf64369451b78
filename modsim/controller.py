"""
Simulation controller: owns the state record and the statistics accumulator and runs
the channel -> demodulator -> accumulator pipeline.

The controller does not own a timer. A host (e.g. app.py) calls `tick()` on its own
schedule; `tick()` only generates symbols while PLAYING and emits
playback_speed * tick_interval symbols on average (the fraction carries over).
`step()` runs one batch while STOPPED and is ignored while PLAYING.

Changing scheme or SNR does NOT reset statistics: counts keep accumulating across
configuration changes until `reset()` is called.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
import numpy as np

from utils import BITS_PER_SYMBOL, SimConfig, clamp, make_rng, normalize_scheme
from constellation import Constellation, generate
from channel import TransmittedSymbol, transmit_batch
from demod import decide_batch
from stats import ReceivedSymbol, StatisticsAccumulator
from theory import get_max_useful_snr, theoretical_ber
from waveform import WaveformWindow, tx_rx_windows

logger = logging.getLogger(__name__)

STOPPED = "stopped"
PLAYING = "playing"


@dataclass
class SimulationState:
    scheme: str
    snr_db: float
    playback_speed: float
    status: str = STOPPED
    current_bits: str = ""


@dataclass(frozen=True)
class SimulationSnapshot:
    scheme: str
    snr_db: float
    is_playing: bool
    playback_speed: float
    symbol_count: int
    bit_count: int
    bit_error_count: int
    current_bits: str
    recent_symbols: Tuple[ReceivedSymbol, ...]
    simulated_ber: Optional[float]
    theoretical_ber: float


class SimulationController:
    def __init__(self, config: Optional[SimConfig] = None, rng: Optional[np.random.Generator] = None, seed: Optional[int] = None):
        self.config = config or SimConfig()
        self.rng = rng if rng is not None else make_rng(seed)
        self.stats = StatisticsAccumulator(self.config.ring_capacity)
        self._last_batch: List[TransmittedSymbol] = []
        self._carry = 0.0   # fractional symbols owed to the next tick

        scheme = normalize_scheme(self.config.default_scheme)
        self.state = SimulationState(
            scheme=scheme,
            snr_db=self.config.snr_min_db,
            playback_speed=self.config.speed_min,
        )
        self.set_snr_db(self.config.default_snr_db)
        self.set_playback_speed(self.config.default_speed)

    # ----------------------------
    # Derived values
    # ----------------------------

    @property
    def is_playing(self) -> bool:
        return self.state.status == PLAYING

    @property
    def constellation(self) -> Constellation:
        return generate(self.state.scheme)

    @property
    def simulated_ber(self) -> Optional[float]:
        return self.stats.simulated_ber

    @property
    def theoretical_ber(self) -> float:
        return theoretical_ber(self.state.scheme, self.state.snr_db)

    def snr_bounds(self, scheme: Optional[str] = None) -> Tuple[float, float]:
        key = normalize_scheme(scheme or self.state.scheme)
        hi = get_max_useful_snr(key, self.config.ber_floor, self.config.snr_step_db)
        return self.config.snr_min_db, hi

    def batch_size(self) -> int:
        """Symbols per step(): speed * tick interval, at least one."""
        return max(1, int(round(self.state.playback_speed * self.config.tick_interval)))

    # ----------------------------
    # Configuration (always clamped, never rejected)
    # ----------------------------

    def set_scheme(self, scheme: str) -> None:
        key = normalize_scheme(scheme)
        if key != self.state.scheme:
            logger.info("Scheme %s -> %s (statistics kept)", self.state.scheme, key)
        self.state.scheme = key
        # New ceiling may be lower than the current SNR
        self.set_snr_db(self.state.snr_db)

    def set_snr_db(self, value: float) -> None:
        lo, hi = self.snr_bounds()
        snr = clamp(float(value), lo, hi)
        if snr != float(value):
            logger.debug("SNR %.2f dB clamped to %.2f dB", value, snr)
        self.state.snr_db = snr

    def set_playback_speed(self, symbols_per_second: float) -> None:
        speed = clamp(float(symbols_per_second), self.config.speed_min, self.config.speed_max)
        if speed != float(symbols_per_second):
            logger.debug("Speed %.1f clamped to %.1f symbols/s", symbols_per_second, speed)
        self.state.playback_speed = speed

    # ----------------------------
    # Playback state machine
    # ----------------------------

    def play(self) -> None:
        if not self.is_playing:
            logger.info("Playback started (%s, %.1f dB)", self.state.scheme, self.state.snr_db)
            self._carry = 0.0
        self.state.status = PLAYING

    def pause(self) -> None:
        if self.is_playing:
            logger.info("Playback paused after %d symbols", self.stats.symbol_count)
        self.state.status = STOPPED

    def step(self) -> List[TransmittedSymbol]:
        if self.is_playing:
            return []
        return self.advance(self.batch_size())

    def tick(self) -> List[TransmittedSymbol]:
        """
        One host tick while PLAYING. The fractional part of speed * tick_interval
        carries over, so ticks over one second emit `playback_speed` symbols.
        """
        if not self.is_playing:
            return []
        self._carry += self.state.playback_speed * self.config.tick_interval
        n = int(self._carry + 1e-9)
        self._carry -= n
        return self.advance(n)

    def reset(self) -> None:
        self.stats.reset()
        self.state.current_bits = ""
        self._last_batch = []
        logger.info("Statistics reset")

    # ----------------------------
    # Pipeline
    # ----------------------------

    def advance(self, batch_size: int) -> List[TransmittedSymbol]:
        """Run `batch_size` symbols through channel, demodulator and accumulator."""
        scheme = self.state.scheme
        constellation = generate(scheme)
        batch = transmit_batch(scheme, self.state.snr_db, batch_size, self.rng)
        if not batch:
            return batch

        decided = decide_batch([s.rx_i for s in batch], [s.rx_q for s in batch], constellation)
        for sym, n in zip(batch, decided):
            self.stats.record(sym.bits, constellation[int(n)].bits, sym.rx_i, sym.rx_q)

        self.state.current_bits = batch[-1].bits
        # Rolling window across batches; small batches still fill it
        self._last_batch = (self._last_batch + batch)[-self.config.waveform_symbols:]
        return batch

    # ----------------------------
    # Read-only outputs
    # ----------------------------

    def snapshot(self) -> SimulationSnapshot:
        return SimulationSnapshot(
            scheme=self.state.scheme,
            snr_db=self.state.snr_db,
            is_playing=self.is_playing,
            playback_speed=self.state.playback_speed,
            symbol_count=self.stats.symbol_count,
            bit_count=self.stats.bit_count,
            bit_error_count=self.stats.bit_error_count,
            current_bits=self.state.current_bits,
            recent_symbols=tuple(self.stats.recent),
            simulated_ber=self.simulated_ber,
            theoretical_ber=self.theoretical_ber,
        )

    def waveforms(self, pulse: str = "rect") -> Dict[str, WaveformWindow]:
        return tx_rx_windows(self._last_batch, self.config.samples_per_symbol, pulse)

    def bits_per_symbol(self) -> int:
        return BITS_PER_SYMBOL[self.state.scheme]
