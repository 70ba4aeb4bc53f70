"""In-process integrated loudness (ITU-R BS.1770 via pyloudnorm).

Used when ``LOUDNESS_BACKEND=pyloudnorm`` so the probe can run on the PCM we
already decoded instead of spawning a second ffmpeg process.
"""
from __future__ import annotations

import logging
import math
from functools import lru_cache
from typing import Optional

import numpy as np
import pyloudnorm as pyln

logger = logging.getLogger("exspectro.loudness")


@lru_cache(maxsize=16)
def _meter_for_sr(sr: int) -> pyln.Meter:
  return pyln.Meter(sr)


def measure_integrated_loudness(channels: np.ndarray, sr: int) -> Optional[float]:
  """Integrated LUFS for ``[channels, samples]`` audio, or None if unmeasurable.

  pyloudnorm rejects signals shorter than one 400 ms gating block; that and
  fully gated (silent) input both map to None.
  """
  data = np.asarray(channels, dtype=np.float64)
  if data.ndim == 2:
    # pyloudnorm expects [samples, channels]
    data = data.T if data.shape[0] > 1 else data[0]

  try:
    value = float(_meter_for_sr(int(sr)).integrated_loudness(data))
  except ValueError as exc:
    logger.debug("[LOUDNESS] pyloudnorm could not measure: %s", exc)
    return None

  if not math.isfinite(value):
    return None
  return value
