"""Synthetic test signals shared by the DSP and flow tests."""

import numpy as np
from scipy import signal


def make_sweep(sr=44100, seconds=10.0, f0=100.0, f1=21000.0, level_db=-3.0):
    """Linear sine sweep normalised to ``level_db`` dBFS (float64)."""
    t = np.arange(int(sr * seconds)) / sr
    amp = 10 ** (level_db / 20.0)
    return amp * signal.chirp(t, f0=f0, t1=seconds, f1=f1, method="linear")


def brickwall_lowpass(x, sr, cutoff_hz):
    """Zero every FFT bin above ``cutoff_hz`` over the whole signal."""
    spectrum = np.fft.rfft(x)
    freqs = np.fft.rfftfreq(x.size, d=1.0 / sr)
    spectrum[freqs > cutoff_hz] = 0.0
    return np.fft.irfft(spectrum, n=x.size)


def make_tone(freq_hz, sr=44100, seconds=2.0, amp=0.5):
    t = np.arange(int(sr * seconds)) / sr
    return amp * np.sin(2 * np.pi * freq_hz * t)


def make_square(sr=44100, seconds=10.0, amp=0.5, half_period=200):
    n = np.arange(int(sr * seconds))
    return np.where((n // half_period) % 2 == 0, amp, -amp)
