"""PCM adapter: compressed file in, per-channel float32 samples out."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import numpy as np
import soundfile as sf

from . import config
from .dsp_engine import ffmpeg_io

logger = logging.getLogger("exspectro.pcm")


@dataclass(frozen=True, eq=False)
class DecodedAudio:
    """Decoded PCM owned by a single analysis.

    ``channel_data`` is ``[channels, samples]`` float32, so every channel has
    the same length by construction.
    """

    sample_rate: int
    channel_data: np.ndarray
    mono: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.sample_rate <= 0:
            raise ValueError(f"sample rate must be positive, got {self.sample_rate}")
        data = np.array(self.channel_data, dtype=np.float32)
        if data.ndim == 1:
            data = data[None, :]
        if data.ndim != 2 or data.shape[0] == 0:
            raise ValueError(f"expected [channels, samples] audio, got shape {data.shape}")
        data.setflags(write=False)
        mono = data.mean(axis=0, dtype=np.float64).astype(np.float32)
        mono.setflags(write=False)
        object.__setattr__(self, "channel_data", data)
        object.__setattr__(self, "mono", mono)

    @classmethod
    def from_interleaved(cls, buffer: np.ndarray, channels: int, sample_rate: int) -> "DecodedAudio":
        if channels <= 0:
            raise ValueError(f"channel count must be positive, got {channels}")
        flat = np.asarray(buffer, dtype=np.float32).reshape(-1)
        usable = (flat.size // channels) * channels
        frames = flat[:usable].reshape(-1, channels)
        return cls(sample_rate=int(sample_rate), channel_data=frames.T)

    @property
    def channels(self) -> int:
        return int(self.channel_data.shape[0])

    @property
    def sample_count(self) -> int:
        return int(self.channel_data.shape[1])

    @property
    def duration_sec(self) -> float:
        return self.sample_count / float(self.sample_rate)


def _decode_ffmpeg(path: Path) -> DecodedAudio:
    buffer, channels, sample_rate = ffmpeg_io.decode_pcm(path)
    return DecodedAudio.from_interleaved(buffer, channels, sample_rate)


def _decode_soundfile(path: Path) -> DecodedAudio:
    data, sample_rate = sf.read(str(path), dtype="float32", always_2d=True)
    return DecodedAudio(sample_rate=int(sample_rate), channel_data=data.T)


def load_decoded_audio(path: Path) -> Optional[DecodedAudio]:
    """Decode ``path`` with the configured backend.

    Any failure (missing binary, unreadable stream, bad sample rate, empty
    PCM) returns None: the caller skips the report rather than guessing.
    """
    backend = config.PCM_BACKEND
    try:
        if backend == "soundfile":
            audio = _decode_soundfile(Path(path))
        else:
            audio = _decode_ffmpeg(Path(path))
    except (RuntimeError, ValueError, OSError) as exc:
        logger.warning("[PCM] decode failed for %s (%s backend): %s", path, backend, exc)
        return None

    if audio.sample_count == 0:
        logger.warning("[PCM] %s decoded to zero samples", path)
        return None

    logger.debug(
        "[PCM] %s: %d Hz, %d ch, %.2f s",
        path,
        audio.sample_rate,
        audio.channels,
        audio.duration_sec,
    )
    return audio
