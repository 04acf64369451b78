# test_theory.py
#
# Theoretical BER model tests.
#
# Coverage goals:
#   1) Q-function reference values
#   2) Closed-form BER values against textbook numbers / independent math.erfc evaluation
#   3) Monotonicity in SNR and ordering across schemes
#   4) BER curve generation and the per-scheme SNR ceiling

from __future__ import annotations

import math

import numpy as np
import pytest

from utils import SCHEMES
import theory
from theory import generate_curve, get_max_useful_snr, q_function, theoretical_ber

SNR_GRID = list(np.arange(-5.0, 25.01, 0.5))


def q_ref(x: float) -> float:
    return 0.5 * math.erfc(x / math.sqrt(2.0))


# =========================
# 1) Q-function
# =========================

@pytest.mark.parametrize("x, expected", [
    (0.0, 0.5),
    (1.0, 0.15865525393145707),
    (2.0, 0.022750131948179195),
    (3.0, 0.0013498980316301035),
])
def test_q_function_reference_values(x, expected):
    assert q_function(x) == pytest.approx(expected, rel=1e-12)


def test_q_function_symmetry():
    for x in (0.3, 1.7, 2.5):
        assert q_function(-x) == pytest.approx(1.0 - q_function(x), rel=1e-12)


# =========================
# 2) Closed-form values
# =========================

def test_bpsk_textbook_values():
    assert theoretical_ber("BPSK", 0.0) == pytest.approx(0.0786496, rel=1e-5)
    assert theoretical_ber("BPSK", 10.0) == pytest.approx(3.8721e-6, rel=1e-3)


@pytest.mark.parametrize("snr", SNR_GRID)
def test_qpsk_equals_bpsk(snr):
    assert theoretical_ber("QPSK", snr) == theoretical_ber("BPSK", snr)


@pytest.mark.parametrize("snr", [0.0, 6.0, 12.0])
def test_8psk_formula(snr):
    ebn0 = 10 ** (snr / 10)
    expected = (2.0 / 3.0) * q_ref(math.sqrt(6.0 * ebn0) * math.sin(math.pi / 8.0))
    assert theoretical_ber("8PSK", snr) == pytest.approx(expected, rel=1e-9)


@pytest.mark.parametrize("scheme, M", [("16QAM", 16), ("64QAM", 64)])
@pytest.mark.parametrize("snr", [0.0, 6.0, 12.0])
def test_qam_formula(scheme, M, snr):
    k = int(math.log2(M))
    ebn0 = 10 ** (snr / 10)
    expected = (4.0 / k) * (1.0 - 1.0 / math.sqrt(M)) * q_ref(math.sqrt(3.0 * k * ebn0 / (M - 1)))
    assert theoretical_ber(scheme, snr) == pytest.approx(expected, rel=1e-9)


def test_16qam_at_10db():
    # 0.75 * Q(sqrt(8)) = 0.375 * erfc(2)
    assert theoretical_ber("16QAM", 10.0) == pytest.approx(0.375 * math.erfc(2.0), rel=1e-9)


@pytest.mark.parametrize("scheme", SCHEMES)
@pytest.mark.parametrize("snr", [-5.0, 0.0, 10.0, 40.0, 80.0])
def test_ber_is_probability(scheme, snr):
    ber = theoretical_ber(scheme, snr)
    assert 0.0 <= ber <= 1.0
    assert math.isfinite(ber)


def test_unknown_scheme_raises():
    with pytest.raises(ValueError):
        theoretical_ber("256QAM", 10.0)


# ===================================
# 3) Monotonicity and ordering
# ===================================

@pytest.mark.parametrize("scheme", SCHEMES)
def test_non_increasing_in_snr(scheme):
    bers = [theoretical_ber(scheme, s) for s in SNR_GRID]
    assert all(b1 <= b0 for b0, b1 in zip(bers, bers[1:]))
    assert bers[-1] < bers[0]


@pytest.mark.parametrize("snr", list(np.arange(0.0, 20.01, 0.5)))
def test_ordering_across_schemes(snr):
    b = [theoretical_ber(s, snr) for s in ["BPSK", "QPSK", "8PSK", "16QAM", "64QAM"]]
    assert b[0] == b[1]
    assert b[1] <= b[2] <= b[3] <= b[4]


# ===================================
# 4) Curves and SNR ceiling
# ===================================

def test_generate_curve_shape():
    curve = generate_curve("QPSK", -5.0, 20.0, 51)
    assert len(curve) == 51
    assert curve[0][0] == pytest.approx(-5.0)
    assert curve[-1][0] == pytest.approx(20.0)
    snrs = [c[0] for c in curve]
    assert snrs == sorted(snrs)
    for s, ber in curve:
        assert ber == theoretical_ber("QPSK", s)


def test_generate_curve_single_point():
    assert generate_curve("BPSK", 3.0, 9.0, 1) == [(3.0, theoretical_ber("BPSK", 3.0))]


@pytest.mark.parametrize("n", [0, -3])
def test_generate_curve_rejects_bad_point_count(n):
    with pytest.raises(ValueError):
        generate_curve("BPSK", 0.0, 10.0, n)


@pytest.mark.parametrize("scheme", SCHEMES)
def test_max_useful_snr_crosses_threshold(scheme):
    hi = get_max_useful_snr(scheme)
    assert theoretical_ber(scheme, hi) <= 1e-6
    assert theoretical_ber(scheme, hi - 0.5) > 1e-6
    assert (hi / 0.5) == pytest.approx(round(hi / 0.5))


def test_max_useful_snr_bpsk():
    # BER = 1e-6 at ~10.5 dB for BPSK
    assert get_max_useful_snr("BPSK") == 11.0
    assert get_max_useful_snr("QPSK") == get_max_useful_snr("BPSK")


def test_max_useful_snr_grows_with_order():
    his = [get_max_useful_snr(s) for s in ["BPSK", "8PSK", "16QAM", "64QAM"]]
    assert his == sorted(his)
    assert his[-1] > his[0]


def test_max_useful_snr_threshold_validation():
    with pytest.raises(ValueError):
        get_max_useful_snr("BPSK", threshold=0.0)
    with pytest.raises(ValueError):
        get_max_useful_snr("BPSK", threshold=0.5)


def test_max_useful_snr_is_cached(monkeypatch):
    calls = []
    real = theory.brentq

    def counting_brentq(*args, **kwargs):
        calls.append(args)
        return real(*args, **kwargs)

    monkeypatch.setattr(theory, "brentq", counting_brentq)
    theory._max_useful_snr.cache_clear()
    first = get_max_useful_snr("16QAM", threshold=3.3e-7)
    for _ in range(5):
        assert get_max_useful_snr("16-qam", threshold=3.3e-7) == first
    assert len(calls) == 1
