"""Block-based dynamic range estimation.

Each channel is cut into ~3 second blocks. The second-highest block peak
(robust to a single click) is compared with the RMS of the loudest 20 % of
blocks:

    DR = -20 * log10(top_rms / second_peak)

and the track figure is the mean across channels. Short and silent tracks
are ordinary inputs, so they come back as a status on the result instead of
an exception.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Literal, Optional

import numpy as np

logger = logging.getLogger("exspectro.dynamic_range")

BLOCK_SECONDS = 3.0
TOP_BLOCK_FRACTION = 0.2

DynamicRangeStatus = Literal["ok", "too_short", "silent"]


@dataclass(frozen=True)
class DynamicRangeResult:
  status: DynamicRangeStatus
  dynamic_range: Optional[float]
  avg_peak_db: float
  avg_rms_db: float

  @property
  def ok(self) -> bool:
    return self.status == "ok"


@dataclass(frozen=True)
class BlockStats:
  peaks: np.ndarray
  rms: np.ndarray


def _to_db(value: float) -> float:
  if value <= 0.0:
    return float("-inf")
  return 20.0 * math.log10(value)


def block_stats(channel: np.ndarray, block_size: int) -> BlockStats:
  """Peak and RMS per block; the trailing partial block is kept."""
  x = np.asarray(channel, dtype=np.float64).reshape(-1)
  if x.size == 0:
    empty = np.zeros(0, dtype=np.float64)
    return BlockStats(peaks=empty, rms=empty)

  n_blocks = -(-x.size // block_size)
  peaks = np.empty(n_blocks, dtype=np.float64)
  rms = np.empty(n_blocks, dtype=np.float64)
  for i in range(n_blocks):
    block = x[i * block_size : (i + 1) * block_size]
    peaks[i] = np.max(np.abs(block))
    rms[i] = np.sqrt(np.mean(block * block))
  return BlockStats(peaks=peaks, rms=rms)


def channel_dynamic_range(stats: BlockStats) -> float:
  """DR for one channel; requires >= 2 blocks and a non-zero second peak."""
  second_peak = float(np.sort(stats.peaks)[-2])

  sorted_rms = np.sort(stats.rms)
  top_n = max(1, int(len(sorted_rms) * TOP_BLOCK_FRACTION))
  top = sorted_rms[-top_n:]
  top_rms = float(np.sqrt(np.mean(top * top)))

  return -20.0 * math.log10(top_rms / second_peak)


def compute_dynamic_range(channels: np.ndarray, sample_rate: int) -> DynamicRangeResult:
  """Dynamic range over ``channels`` shaped ``[channels, samples]`` (or 1-D mono)."""
  if sample_rate <= 0:
    raise ValueError(f"sample rate must be positive, got {sample_rate}")

  data = np.asarray(channels)
  if data.ndim == 1:
    data = data[None, :]

  block_size = max(1, int(round(BLOCK_SECONDS * sample_rate)))
  per_channel: List[BlockStats] = [block_stats(ch, block_size) for ch in data]

  all_peaks = np.concatenate([s.peaks for s in per_channel]) if per_channel else np.zeros(0)
  all_rms = np.concatenate([s.rms for s in per_channel]) if per_channel else np.zeros(0)
  avg_peak_db = _to_db(float(all_peaks.mean())) if all_peaks.size else float("-inf")
  avg_rms_db = _to_db(float(all_rms.mean())) if all_rms.size else float("-inf")

  if not per_channel or any(len(s.peaks) < 2 for s in per_channel):
    logger.debug("[DR] too short for two %.0f s blocks", BLOCK_SECONDS)
    return DynamicRangeResult("too_short", None, avg_peak_db, avg_rms_db)

  # one dead channel voids the whole figure
  if any(float(np.sort(s.peaks)[-2]) == 0.0 for s in per_channel):
    logger.debug("[DR] silent track (second-highest peak is zero)")
    return DynamicRangeResult("silent", None, avg_peak_db, avg_rms_db)

  values = [channel_dynamic_range(s) for s in per_channel]
  dr = round(float(np.mean(values)), 2)

  logger.debug(
    "[DR] dr=%.2f dB avg_peak=%.2f dB avg_rms=%.2f dB channels=%d",
    dr,
    avg_peak_db,
    avg_rms_db,
    len(per_channel),
  )
  return DynamicRangeResult("ok", dr, avg_peak_db, avg_rms_db)
