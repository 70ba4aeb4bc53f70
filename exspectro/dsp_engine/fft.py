"""Radix-2 FFT and Hann windowing.

Iterative decimation-in-time transform: bit-reversal permutation followed by
log2(N) butterfly passes. Twiddle factors, permutations and windows are pure
functions of the transform size and are cached for the process lifetime.
Cached arrays are read-only so they can be shared between concurrent
analyses.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Tuple

import numpy as np


def is_power_of_two(n: int) -> bool:
  return n > 0 and (n & (n - 1)) == 0


def _frozen(arr: np.ndarray) -> np.ndarray:
  arr.setflags(write=False)
  return arr


@lru_cache(maxsize=16)
def hann_window(size: int) -> np.ndarray:
  """Symmetric Hann window of ``size`` points."""
  if size <= 0:
    raise ValueError(f"window size must be positive, got {size}")
  if size == 1:
    return _frozen(np.ones(1, dtype=np.float64))
  n = np.arange(size, dtype=np.float64)
  return _frozen(0.5 - 0.5 * np.cos(2.0 * np.pi * n / (size - 1)))


@lru_cache(maxsize=16)
def twiddle_tables(size: int) -> Tuple[np.ndarray, np.ndarray]:
  """Return (cos, sin) tables of length size/2 for angle 2*pi*k/size."""
  if not is_power_of_two(size):
    raise ValueError(f"FFT size must be a power of two, got {size}")
  k = np.arange(size // 2, dtype=np.float64)
  angle = 2.0 * np.pi * k / size
  return _frozen(np.cos(angle)), _frozen(np.sin(angle))


@lru_cache(maxsize=16)
def bit_reversal_permutation(size: int) -> np.ndarray:
  if not is_power_of_two(size):
    raise ValueError(f"FFT size must be a power of two, got {size}")
  bits = size.bit_length() - 1
  perm = np.zeros(size, dtype=np.intp)
  idx = np.arange(size, dtype=np.intp)
  for b in range(bits):
    perm |= ((idx >> b) & 1) << (bits - 1 - b)
  return _frozen(perm)


def fft(x: np.ndarray) -> np.ndarray:
  """Complex FFT along the last axis.

  Accepts a 1-D signal or a 2-D batch ``[frames, size]``; ``size`` must be a
  power of two. Every frame in a batch goes through the same butterfly pass
  at once.
  """
  x = np.asarray(x)
  size = x.shape[-1]
  if not is_power_of_two(size):
    raise ValueError(f"FFT size must be a power of two, got {size}")

  cos_t, sin_t = twiddle_tables(size)
  perm = bit_reversal_permutation(size)

  out = x[..., perm].astype(np.complex128)
  lead = out.shape[:-1]

  m = 2
  while m <= size:
    half = m // 2
    stride = size // m
    w = cos_t[::stride][:half] - 1j * sin_t[::stride][:half]

    blocks = out.reshape(*lead, size // m, m)
    even = blocks[..., :half]
    odd = blocks[..., half:] * w
    out = np.concatenate((even + odd, even - odd), axis=-1).reshape(*lead, size)
    m *= 2

  return out


def rfft_magnitude(frames: np.ndarray) -> np.ndarray:
  """Magnitude of bins 0..size/2 for real-valued frames."""
  spec = fft(frames)
  size = spec.shape[-1]
  half = spec[..., : size // 2 + 1]
  return np.hypot(half.real, half.imag)
