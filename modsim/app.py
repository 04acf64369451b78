from __future__ import annotations

import logging

import streamlit as st
import numpy as np
import plotly.graph_objects as go

from utils import DISPLAY_NAMES, SCHEMES, SimConfig, bits_per_symbol
from constellation import as_arrays, generate
from controller import SimulationController
from stats import accuracy_assessment, ber_ratio, sample_size_quality, snr_quality
from theory import generate_curve
from waveform import passband, spectrum

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

st.set_page_config(layout="wide")

PLOT_SNR_MIN = -5.0
PLOT_SNR_MAX = 20.0

SCHEME_COLORS = {
    "BPSK": "#22c55e",
    "QPSK": "#3b82f6",
    "8PSK": "#a855f7",
    "16QAM": "#f97316",
    "64QAM": "#ef4444",
}


def get_controller() -> SimulationController:
    if "sim" not in st.session_state:
        st.session_state["sim"] = SimulationController(SimConfig())
    return st.session_state["sim"]


def fmt_ber(ber) -> str:
    if ber is None:
        return "—"
    if ber == 0:
        return "0"
    if ber < 1e-10:
        return "< 1e-10"
    return f"{ber:.2e}"


# ----------------------------
# Plot helpers
# ----------------------------

def plot_constellation(snap, show_labels: bool):
    pts = generate(snap.scheme)
    I, Q = as_arrays(pts)
    fig = go.Figure()

    ok = [s for s in snap.recent_symbols if not s.is_error]
    bad = [s for s in snap.recent_symbols if s.is_error]
    fig.add_trace(go.Scatter(x=[s.i for s in ok], y=[s.q for s in ok], mode="markers",
                             marker=dict(size=4, opacity=0.5, color="#38bdf8"), name="Received"))
    fig.add_trace(go.Scatter(x=[s.i for s in bad], y=[s.q for s in bad], mode="markers",
                             marker=dict(size=5, opacity=0.8, color="#ef4444"), name="Bit error"))
    fig.add_trace(go.Scatter(
        x=I, y=Q, mode="markers+text" if show_labels else "markers",
        text=[p.bits for p in pts], textposition="top center",
        marker=dict(size=10, symbol="x", color="#facc15"), name="Ideal",
    ))
    theta = np.linspace(0.0, 2.0 * np.pi, 200)
    fig.add_trace(go.Scatter(x=np.cos(theta), y=np.sin(theta), mode="lines",
                             line=dict(dash="dot", width=1, color="#64748b"), name="Unit circle"))
    lim = 1.8
    fig.update_layout(title=f"Constellation ({DISPLAY_NAMES[snap.scheme]})", xaxis_title="I", yaxis_title="Q")
    fig.update_xaxes(range=[-lim, lim], zeroline=True)
    fig.update_yaxes(range=[-lim, lim], zeroline=True, scaleanchor="x", scaleratio=1)
    return fig


def plot_ber(snap):
    fig = go.Figure()
    for key in SCHEMES:
        curve = generate_curve(key, PLOT_SNR_MIN, PLOT_SNR_MAX, 101)
        active = key == snap.scheme
        fig.add_trace(go.Scatter(
            x=[c[0] for c in curve], y=[max(c[1], 1e-12) for c in curve], mode="lines",
            name=DISPLAY_NAMES[key],
            line=dict(color=SCHEME_COLORS[key], width=3 if active else 1),
            opacity=1.0 if active else 0.35,
        ))
    if snap.simulated_ber:
        fig.add_trace(go.Scatter(x=[snap.snr_db], y=[snap.simulated_ber], mode="markers",
                                 marker=dict(size=12, color="#eab308"), name="Simulated"))
    fig.add_vline(x=snap.snr_db, line_dash="dash", line_color="#ef4444")
    fig.update_layout(title="BER vs Eb/N0", xaxis_title="Eb/N0 (dB)", yaxis_title="BER")
    fig.update_yaxes(type="log", range=[-6, 0])
    return fig


def plot_iq(windows, k: int):
    fig = go.Figure()
    tx, rx = windows["tx"], windows["rx"]
    fig.add_trace(go.Scatter(x=tx.t, y=tx.i, mode="lines", name="I(t) tx", line=dict(color="#22d3ee")))
    fig.add_trace(go.Scatter(x=tx.t, y=tx.q, mode="lines", name="Q(t) tx", line=dict(color="#fb923c")))
    fig.add_trace(go.Scatter(x=rx.t, y=rx.i, mode="lines", name="I(t) rx", line=dict(color="#22d3ee", dash="dot")))
    fig.add_trace(go.Scatter(x=rx.t, y=rx.q, mode="lines", name="Q(t) rx", line=dict(color="#fb923c", dash="dot")))
    fig.update_layout(title=f"Baseband I/Q ({k} bits/symbol)", xaxis_title="Time (symbol periods)", yaxis_title="Amplitude")
    return fig


def plot_passband(scheme: str, carrier_cycles: int, raised_cosine: bool):
    fig = go.Figure()
    for n, p in enumerate(generate(scheme)):
        t, s = passband(p.i, p.q, carrier_cycles=carrier_cycles, raised_cosine=raised_cosine)
        fig.add_trace(go.Scatter(x=t + n, y=s, mode="lines", name=p.bits, showlegend=False))
    fig.update_layout(title="Passband: s(t) = I·cos(2πfc·t) − Q·sin(2πfc·t)",
                      xaxis_title="Symbol", yaxis_title="Amplitude")
    return fig


def plot_spectrum(carrier_cycles: int, pulse: str):
    f, mag = spectrum(carrier_cycles=carrier_cycles, pulse=pulse)
    fig = go.Figure(go.Scatter(x=f, y=mag, mode="lines", name="|S(f)|"))
    for fc in (-carrier_cycles, carrier_cycles):
        fig.add_vline(x=fc, line_dash="dot", line_color="gray")
    fig.update_layout(title=f"Passband spectrum ({pulse})", xaxis_title="Frequency (x 1/T)", yaxis_title="Magnitude")
    return fig


# ----------------------------
# Controls
# ----------------------------

sim = get_controller()

st.title("Digital Modulation Simulator — AWGN channel")

with st.sidebar:
    st.header("Controls")

    scheme = st.selectbox(
        "Modulation scheme",
        SCHEMES,
        index=SCHEMES.index(sim.state.scheme),
        format_func=lambda s: DISPLAY_NAMES[s],
    )
    sim.set_scheme(scheme)

    lo, hi = sim.snr_bounds()
    snr = st.slider("Eb/N0 (dB)", float(lo), float(hi), float(sim.state.snr_db), step=sim.config.snr_step_db)
    sim.set_snr_db(snr)
    st.caption(f"Channel quality: {snr_quality(sim.state.snr_db)}")

    speed = st.select_slider("Speed (symbols/s)", options=[10, 20, 50, 100, 200, 500, 1000],
                             value=int(min([10, 20, 50, 100, 200, 500, 1000], key=lambda v: abs(v - sim.state.playback_speed))))
    sim.set_playback_speed(speed)

    st.divider()
    c1, c2, c3, c4 = st.columns(4)
    c1.button("▶", on_click=sim.play, disabled=sim.is_playing, help="Play")
    c2.button("⏸", on_click=sim.pause, disabled=not sim.is_playing, help="Pause")
    c3.button("⏭", on_click=sim.step, disabled=sim.is_playing, help="Step one batch")
    c4.button("⟲", on_click=sim.reset, help="Reset statistics")

    st.divider()
    show_labels = st.checkbox("Show bit labels", value=False)
    pulse = st.selectbox("Display pulse", ["rect", "raised_cosine"], index=0)
    carrier_cycles = st.slider("Carrier cycles per symbol", 2, 8, 4)


# ----------------------------
# Live view (re-run on the tick interval while playing)
# ----------------------------

@st.fragment(run_every=sim.config.tick_interval if sim.is_playing else None)
def live_view():
    sim.tick()
    snap = sim.snapshot()

    left, right = st.columns(2)
    with left:
        st.plotly_chart(plot_constellation(snap, show_labels), width="stretch")
    with right:
        st.plotly_chart(plot_ber(snap), width="stretch")

    st.subheader("Statistics")
    m = st.columns(6)
    m[0].metric("Symbols", f"{snap.symbol_count:,}")
    m[1].metric("Bits", f"{snap.bit_count:,}")
    m[2].metric("Bit errors", f"{snap.bit_error_count:,}")
    m[3].metric("Simulated BER", fmt_ber(snap.simulated_ber))
    m[4].metric("Theoretical BER", fmt_ber(snap.theoretical_ber))
    ratio = ber_ratio(snap.simulated_ber, snap.theoretical_ber)
    m[5].metric("Sim / Theory", "N/A" if ratio is None else f"{ratio:.2f}")
    st.caption(
        f"Sample size: {sample_size_quality(snap.bit_error_count, snap.bit_count)} · "
        f"Accuracy: {accuracy_assessment(snap.simulated_ber, snap.theoretical_ber, snap.bit_error_count)} · "
        f"Last bits: {snap.current_bits or '—'}"
    )

    st.plotly_chart(plot_iq(sim.waveforms(pulse), bits_per_symbol(snap.scheme)), width="stretch")


live_view()

with st.expander("Passband waveform reference"):
    st.plotly_chart(plot_passband(sim.state.scheme, carrier_cycles, pulse == "raised_cosine"), width="stretch")
    st.plotly_chart(plot_spectrum(carrier_cycles, pulse), width="stretch")
