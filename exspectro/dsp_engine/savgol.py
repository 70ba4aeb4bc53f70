"""Savitzky–Golay smoothing.

Coefficients come from a least-squares polynomial fit over a centred window:
the Vandermonde design matrix A (offsets x powers) gives the pseudo-inverse
(A^T A)^-1 A^T, whose first row is the centre-point smoothing kernel. The
normal-equation inverse uses a small Gauss–Jordan elimination with partial
pivoting so the whole filter is self-contained.
"""
from __future__ import annotations

from functools import lru_cache

import numpy as np

_PIVOT_EPS = 1e-12


def invert_matrix(matrix: np.ndarray) -> np.ndarray:
  """Invert a square matrix with partial-pivoting Gauss–Jordan elimination.

  Raises:
    ValueError: if the matrix is not square or is singular.
  """
  a = np.array(matrix, dtype=np.float64)
  if a.ndim != 2 or a.shape[0] != a.shape[1]:
    raise ValueError(f"expected a square matrix, got shape {a.shape}")

  n = a.shape[0]
  aug = np.hstack([a, np.eye(n, dtype=np.float64)])

  for col in range(n):
    pivot_row = col + int(np.argmax(np.abs(aug[col:, col])))
    pivot = aug[pivot_row, col]
    if abs(pivot) < _PIVOT_EPS:
      raise ValueError("matrix is singular and cannot be inverted")

    if pivot_row != col:
      aug[[col, pivot_row]] = aug[[pivot_row, col]]

    aug[col] /= aug[col, col]
    for row in range(n):
      if row != col:
        factor = aug[row, col]
        if factor != 0.0:
          aug[row] -= factor * aug[col]

  return aug[:, n:]


def _validate(window: int, order: int) -> None:
  if window <= 0 or window % 2 == 0:
    raise ValueError(f"Savitzky-Golay window must be a positive odd integer, got {window}")
  if order < 0:
    raise ValueError(f"Savitzky-Golay order must be non-negative, got {order}")
  if order >= window:
    raise ValueError(
      f"Savitzky-Golay order ({order}) must be smaller than the window ({window})"
    )


@lru_cache(maxsize=32)
def savgol_coefficients(window: int, order: int) -> np.ndarray:
  """Centre-point smoothing kernel of length ``window`` (read-only, cached)."""
  _validate(window, order)

  half = (window - 1) // 2
  offsets = np.arange(-half, half + 1, dtype=np.float64)
  design = np.vander(offsets, order + 1, increasing=True)

  normal = design.T @ design
  pinv = invert_matrix(normal) @ design.T

  coeffs = np.ascontiguousarray(pinv[0])
  coeffs.setflags(write=False)
  return coeffs


def savgol_smooth(x: np.ndarray, window: int, order: int, axis: int = -1) -> np.ndarray:
  """Apply the kernel along ``axis``, replicating edge samples at the borders."""
  coeffs = savgol_coefficients(window, order)
  data = np.asarray(x)
  if not np.issubdtype(data.dtype, np.floating):
    data = data.astype(np.float64)

  moved = np.moveaxis(data, axis, -1)
  length = moved.shape[-1]
  half = (window - 1) // 2

  pad_width = [(0, 0)] * (moved.ndim - 1) + [(half, half)]
  padded = np.pad(moved, pad_width, mode="edge")

  out = np.zeros_like(moved)
  # python floats keep float32 inputs in float32
  for j, c in enumerate(coeffs.tolist()):
    out += c * padded[..., j : j + length]

  return np.moveaxis(out, -1, axis)
