"""ffmpeg / ffprobe helpers.

Decoding and loudness measurement are delegated to ffmpeg: it handles every
container and codec we receive and its ebur128 filter is a reference
BS.1770 implementation. Everything here is a blocking subprocess call with a
timeout; failures surface as ``RuntimeError`` so the PCM adapter can turn
them into "no report".
"""
from __future__ import annotations

import json
import logging
import re
import subprocess
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np

from .. import config

logger = logging.getLogger("exspectro.ffmpeg")

_INTEGRATED_RE = re.compile(r"^\s*I:\s+(-?(?:\d+(?:\.\d+)?|inf))\s+LUFS", re.MULTILINE)


def _run(args: List[str], timeout: Optional[float] = None) -> subprocess.CompletedProcess:
  timeout = config.FFMPEG_TIMEOUT_SEC if timeout is None else timeout
  try:
    proc = subprocess.run(args, stdout=subprocess.PIPE, stderr=subprocess.PIPE, timeout=timeout)
  except FileNotFoundError as exc:
    raise RuntimeError(f"{args[0]} is not installed or not on PATH") from exc
  except subprocess.TimeoutExpired as exc:
    raise RuntimeError(f"{args[0]} timed out after {timeout:.0f}s") from exc

  if proc.returncode != 0:
    raise RuntimeError(f"{args[0]} failed: {proc.stderr.decode(errors='ignore')[:4000]}")
  return proc


def probe_stream(path: Path) -> Tuple[int, int]:
  """Return (sample_rate, channels) of the first audio stream."""
  proc = _run(
    [
      config.FFPROBE_BINARY,
      "-v",
      "error",
      "-select_streams",
      "a:0",
      "-show_entries",
      "stream=sample_rate,channels",
      "-of",
      "json",
      str(path),
    ]
  )
  try:
    streams = json.loads(proc.stdout.decode(errors="ignore") or "{}").get("streams") or []
  except json.JSONDecodeError as exc:
    raise RuntimeError(f"unreadable ffprobe output for {path}") from exc
  if not streams:
    raise RuntimeError(f"no audio stream in {path}")

  stream = streams[0]
  try:
    sample_rate = int(stream.get("sample_rate") or 0)
    channels = int(stream.get("channels") or 0)
  except (TypeError, ValueError) as exc:
    raise RuntimeError(f"invalid stream parameters for {path}: {stream}") from exc

  if sample_rate <= 0 or channels <= 0:
    raise RuntimeError(f"invalid stream parameters for {path}: {stream}")
  return sample_rate, channels


def decode_pcm(path: Path) -> Tuple[np.ndarray, int, int]:
  """Decode to interleaved float32 at the native rate.

  Returns (interleaved_samples, channels, sample_rate).
  """
  sample_rate, channels = probe_stream(path)
  proc = _run(
    [
      config.FFMPEG_BINARY,
      "-v",
      "error",
      "-nostdin",
      "-i",
      str(path),
      "-map",
      "0:a:0",
      "-f",
      "f32le",
      "-acodec",
      "pcm_f32le",
      "-",
    ]
  )
  buffer = np.frombuffer(proc.stdout, dtype="<f4")
  return buffer, channels, sample_rate


def parse_ebur128_integrated(stderr: str) -> Optional[float]:
  """Integrated loudness from ebur128 output (the last ``I:`` line is the summary)."""
  matches = _INTEGRATED_RE.findall(stderr or "")
  if not matches:
    return None
  raw = matches[-1]
  if raw.endswith("inf"):
    return None
  return float(raw)


def probe_loudness(path: Path) -> Optional[float]:
  """Integrated LUFS via ffmpeg's ebur128 filter, None when it cannot be read."""
  try:
    proc = _run(
      [
        config.FFMPEG_BINARY,
        "-nostats",
        "-nostdin",
        "-i",
        str(path),
        "-map",
        "0:a:0",
        "-af",
        "ebur128",
        "-f",
        "null",
        "-",
      ]
    )
  except RuntimeError as exc:
    logger.warning("[FFMPEG] loudness probe failed for %s: %s", path, exc)
    return None

  value = parse_ebur128_integrated(proc.stderr.decode(errors="ignore"))
  if value is None:
    logger.warning("[FFMPEG] no integrated loudness in ebur128 output for %s", path)
  return value
