"""Spectral ceiling detection.

Estimates the highest frequency that still carries energy distinguishable
from the noise floor:

1. Hann-windowed frames (2048 samples, hop 512) through the radix-2 FFT.
2. Magnitudes to dB relative to the global maximum (floored at 1e-12).
3. Savitzky–Golay smoothing (11, 2) across bins, per frame.
4. Threshold = mean + 1.5 * std of the smoothed matrix, lowered linearly by
   up to 18 dB towards Nyquist so natural high-frequency roll-off is not
   penalised like midband silence.
5. The highest bin above its threshold in any frame wins.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .fft import bit_reversal_permutation, hann_window, rfft_magnitude, twiddle_tables
from .savgol import savgol_coefficients, savgol_smooth

logger = logging.getLogger("exspectro.spectral")

WINDOW_SIZE = 2048
HOP_SIZE = 512
SAVGOL_WINDOW = 11
SAVGOL_ORDER = 2
THRESHOLD_SIGMA = 1.5
NYQUIST_SLOPE_DB = 18.0
MAGNITUDE_FLOOR = 1e-12

# frames per FFT batch; bounds the complex working set to ~8 MB
_FRAME_BATCH = 256


@dataclass(frozen=True)
class FrequencyThresholdProfile:
  mean_db: float
  std_db: float
  base_threshold_db: float
  thresholds_db: np.ndarray  # one per bin


@dataclass(frozen=True)
class SpectralAnalysis:
  sample_rate: int
  frame_count: int
  profile: Optional[FrequencyThresholdProfile]
  max_frequency_hz: Optional[float]


def frame_count(sample_count: int, window_size: int = WINDOW_SIZE, hop: int = HOP_SIZE) -> int:
  if sample_count < window_size:
    return 0
  return (sample_count - window_size) // hop + 1


def bin_frequencies(sample_rate: int, window_size: int = WINDOW_SIZE) -> np.ndarray:
  return np.arange(window_size // 2 + 1, dtype=np.float64) * sample_rate / window_size


def compute_spectrogram(mono: np.ndarray, window_size: int = WINDOW_SIZE, hop: int = HOP_SIZE) -> np.ndarray:
  """Magnitude spectrogram shaped ``[bins, frames]`` (float32, read-only).

  Returns an empty ``[bins, 0]`` array when the signal is shorter than one
  window.
  """
  signal = np.asarray(mono, dtype=np.float64).reshape(-1)
  bins = window_size // 2 + 1
  n_frames = frame_count(signal.shape[0], window_size, hop)

  spec = np.zeros((bins, n_frames), dtype=np.float32)
  if n_frames == 0:
    spec.setflags(write=False)
    return spec

  window = hann_window(window_size)
  frames = np.lib.stride_tricks.sliding_window_view(signal, window_size)[::hop]

  for start in range(0, n_frames, _FRAME_BATCH):
    batch = frames[start : start + _FRAME_BATCH] * window
    spec[:, start : start + batch.shape[0]] = rfft_magnitude(batch).T

  spec.setflags(write=False)
  return spec


def to_relative_db(spec: np.ndarray) -> np.ndarray:
  """20*log10(mag / global max), magnitudes floored at 1e-12.

  The caller is expected to have rejected an all-zero spectrogram.
  """
  peak = float(np.max(spec))
  floored = np.maximum(spec, MAGNITUDE_FLOOR)
  return (20.0 * np.log10(floored / peak)).astype(np.float32)


def smooth_spectrogram(db: np.ndarray) -> np.ndarray:
  smoothed = savgol_smooth(db, SAVGOL_WINDOW, SAVGOL_ORDER, axis=0)
  smoothed.setflags(write=False)
  return smoothed


def threshold_profile(smoothed: np.ndarray, sample_rate: int) -> FrequencyThresholdProfile:
  mean_db = float(smoothed.mean(dtype=np.float64))
  std_db = float(smoothed.std(dtype=np.float64))
  base = mean_db + THRESHOLD_SIGMA * std_db

  window_size = (smoothed.shape[0] - 1) * 2
  nyquist = sample_rate / 2.0
  freqs = bin_frequencies(sample_rate, window_size)
  thresholds = base - NYQUIST_SLOPE_DB * (freqs / nyquist)

  return FrequencyThresholdProfile(
    mean_db=mean_db,
    std_db=std_db,
    base_threshold_db=base,
    thresholds_db=thresholds,
  )


def highest_significant_bin(smoothed: np.ndarray, profile: FrequencyThresholdProfile) -> Optional[int]:
  above = smoothed > profile.thresholds_db[:, None].astype(smoothed.dtype)
  hits = np.flatnonzero(above.any(axis=1))
  if hits.size == 0:
    return None
  return int(hits[-1])


def analyze_spectrum(mono: np.ndarray, sample_rate: int) -> SpectralAnalysis:
  """Full spectral pass; see module docstring for the steps."""
  if sample_rate <= 0:
    raise ValueError(f"sample rate must be positive, got {sample_rate}")

  spec = compute_spectrogram(mono)
  n_frames = spec.shape[1]
  if n_frames == 0:
    logger.debug("[SPECTRAL] %d samples is shorter than one window; skipping", np.asarray(mono).size)
    return SpectralAnalysis(sample_rate, 0, None, None)

  if not np.any(spec > 0.0):
    logger.debug("[SPECTRAL] silent input (all-zero spectrum)")
    return SpectralAnalysis(sample_rate, n_frames, None, None)

  smoothed = smooth_spectrogram(to_relative_db(spec))
  profile = threshold_profile(smoothed, sample_rate)
  top_bin = highest_significant_bin(smoothed, profile)

  max_freq: Optional[float] = None
  if top_bin is not None and top_bin > 0:
    max_freq = float(top_bin * sample_rate / WINDOW_SIZE)

  logger.debug(
    "[SPECTRAL] frames=%d mean=%.1f dB std=%.1f dB base=%.1f dB top_bin=%s max=%s Hz",
    n_frames,
    profile.mean_db,
    profile.std_db,
    profile.base_threshold_db,
    top_bin,
    max_freq,
  )

  return SpectralAnalysis(sample_rate, n_frames, profile, max_freq)


def max_significant_frequency(mono: np.ndarray, sample_rate: int) -> Optional[float]:
  """Highest significant frequency in Hz, or None for short/silent input."""
  return analyze_spectrum(mono, sample_rate).max_frequency_hz


def _warm_lookup_tables() -> None:
  # bad constants fail here, at import, instead of on the first request
  hann_window(WINDOW_SIZE)
  twiddle_tables(WINDOW_SIZE)
  bit_reversal_permutation(WINDOW_SIZE)
  savgol_coefficients(SAVGOL_WINDOW, SAVGOL_ORDER)


_warm_lookup_tables()
