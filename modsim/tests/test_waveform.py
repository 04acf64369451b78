# test_waveform.py
#
# Waveform synthesizer tests (display-only; no bearing on statistics).

from __future__ import annotations

import numpy as np
import pytest

from utils import make_rng
from channel import transmit_batch
from constellation import generate
from waveform import baseband, passband, pulse_spectrum, spectrum, tx_rx_windows


# =========================
# Baseband I/Q
# =========================

def test_rect_holds_levels():
    w = baseband([(1.0, -1.0), (0.5, 0.25)], samples_per_symbol=4)
    np.testing.assert_allclose(w.i, [1, 1, 1, 1, 0.5, 0.5, 0.5, 0.5])
    np.testing.assert_allclose(w.q, [-1, -1, -1, -1, 0.25, 0.25, 0.25, 0.25])
    np.testing.assert_allclose(w.t, np.arange(8) / 4.0)


def test_raised_cosine_starts_at_zero_and_peaks_mid_symbol():
    Ns = 20
    w = baseband([(1.0, 0.0)], samples_per_symbol=Ns, pulse="raised_cosine")
    assert w.i[0] == pytest.approx(0.0)
    assert w.i[Ns // 2] == pytest.approx(1.0)
    assert np.all(w.i <= 1.0 + 1e-12)


def test_empty_window():
    w = baseband([], samples_per_symbol=8)
    assert w.t.size == w.i.size == w.q.size == 0


@pytest.mark.parametrize("Ns", [0, -4])
def test_bad_samples_per_symbol(Ns):
    with pytest.raises(ValueError):
        baseband([(1.0, 0.0)], samples_per_symbol=Ns)


def test_unknown_pulse():
    with pytest.raises(ValueError):
        baseband([(1.0, 0.0)], samples_per_symbol=8, pulse="gaussian")


def test_tx_rx_windows_match_batch():
    batch = transmit_batch("8PSK", 6.0, 6, make_rng(9))
    w = tx_rx_windows(batch, samples_per_symbol=10)
    np.testing.assert_allclose(w["tx"].i[::10], [s.point.i for s in batch])
    np.testing.assert_allclose(w["rx"].i[::10], [s.rx_i for s in batch])
    assert w["tx"].t.size == 60


# =========================
# Passband reference
# =========================

def test_passband_endpoints_follow_i_and_q():
    t, s = passband(0.6, 0.8, samples_per_symbol=160, carrier_cycles=4)
    assert t[0] == 0.0 and t[-1] == 1.0
    assert s[0] == pytest.approx(0.6)
    # quarter carrier cycle: cos = 0, sin = 1 -> s = -Q
    assert s[10] == pytest.approx(-0.8, abs=1e-9)


@pytest.mark.parametrize("scheme", ["QPSK", "16QAM"])
def test_passband_envelope_is_point_amplitude(scheme):
    for p in generate(scheme):
        _, s = passband(p.i, p.q, samples_per_symbol=400, carrier_cycles=4)
        assert np.max(np.abs(s)) == pytest.approx(np.hypot(p.i, p.q), rel=1e-3)


def test_passband_raised_cosine_window():
    _, s = passband(1.0, 0.0, samples_per_symbol=100, carrier_cycles=4, raised_cosine=True)
    assert s[0] == pytest.approx(0.0)
    assert s[-1] == pytest.approx(0.0, abs=1e-12)
    assert s[50] == pytest.approx(1.0)


# =========================
# Spectrum
# =========================

def at(f, x):
    return int(np.argmin(np.abs(f - x)))


def test_rect_spectrum_peaks_at_carrier():
    f, mag = spectrum(carrier_cycles=4, pulse="rect")
    assert f[0] == pytest.approx(-7.0)
    assert f[-1] == pytest.approx(7.0)
    assert mag[at(f, 4.0)] == pytest.approx(1.0)
    assert mag[at(f, -4.0)] == pytest.approx(1.0)
    assert abs(f[int(np.argmax(mag))]) == pytest.approx(4.0)


@pytest.mark.parametrize("offset", [-2.0, -1.0, 1.0, 2.0])
def test_rect_spectrum_nulls_at_symbol_rate(offset):
    f, mag = spectrum(carrier_cycles=4, pulse="rect")
    # Image lobe from -fc adds |sinc(8 + offset)| ~ 0
    assert mag[at(f, 4.0 + offset)] == pytest.approx(0.0, abs=1e-12)
    assert mag[at(f, -4.0 - offset)] == pytest.approx(0.0, abs=1e-12)


def test_raised_cosine_spectrum_band_limited():
    f, mag = spectrum(carrier_cycles=4, pulse="raised_cosine", alpha=0.5)
    # Occupied bandwidth (1 + alpha) / T around each carrier
    outside = np.abs(np.abs(f) - 4.0) > 0.75 + 1e-9
    assert np.all(mag[outside] == 0.0)
    assert mag[at(f, 4.0)] == pytest.approx(1.0)
    assert mag[at(f, 4.25)] == pytest.approx(1.0)
    assert mag[at(f, 4.5)] == pytest.approx(0.5)
    assert mag[at(f, -3.5)] == pytest.approx(0.5)


@pytest.mark.parametrize("alpha", [0.25, 0.5, 1.0])
def test_raised_cosine_half_amplitude_at_nyquist(alpha):
    assert pulse_spectrum(0.5, "raised_cosine", alpha) == pytest.approx(0.5)
    assert pulse_spectrum((1.0 + alpha) / 2.0 + 0.01, "raised_cosine", alpha) == 0.0


def test_spectrum_rejects_bad_arguments():
    with pytest.raises(ValueError):
        spectrum(pulse="triangle")
    with pytest.raises(ValueError):
        spectrum(pulse="raised_cosine", alpha=0.0)
    with pytest.raises(ValueError):
        spectrum(num_points=1)
