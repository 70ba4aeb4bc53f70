"""Track quality analysis flow.

decode ──┬── spectral ceiling ──┐
         ├── dynamic range ─────┼── verdict ── report
probe ───┴── loudness ──────────┘

Decoding and the ffmpeg loudness probe are separate processes, so they run
side by side on a small thread pool. The numeric stages then run to
completion on the calling thread.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional, Union

from . import config
from .classification import classify
from .dsp_engine import ffmpeg_io
from .dsp_engine.dynamic_range import compute_dynamic_range
from .dsp_engine.loudness import measure_integrated_loudness
from .dsp_engine.spectral import analyze_spectrum
from .pcm import DecodedAudio, load_decoded_audio
from .report import QualityReport, build_report

logger = logging.getLogger("exspectro.quality")


def quality_debug(msg: str, *args) -> None:
    """Per-stage tracing, promoted to INFO when QUALITY_ANALYSIS_DEBUG is on."""
    level = logging.INFO if config.QUALITY_ANALYSIS_DEBUG else logging.DEBUG
    logger.log(level, "[QUALITY] " + msg, *args)


def analyze_decoded_audio(audio: DecodedAudio, loudness_lufs: Optional[float] = None) -> QualityReport:
    """Run the numeric engine on already decoded PCM.

    Raises:
        ValueError: if the buffer holds no samples.
    """
    if audio.sample_count == 0:
        raise ValueError("cannot analyse an empty PCM buffer")

    spectral = analyze_spectrum(audio.mono, audio.sample_rate)
    quality_debug(
        "spectral: frames=%d max=%s Hz",
        spectral.frame_count,
        spectral.max_frequency_hz,
    )

    dynamic_range = compute_dynamic_range(audio.channel_data, audio.sample_rate)
    quality_debug(
        "dynamic range: status=%s dr=%s avg_peak=%.2f dB avg_rms=%.2f dB",
        dynamic_range.status,
        dynamic_range.dynamic_range,
        dynamic_range.avg_peak_db,
        dynamic_range.avg_rms_db,
    )

    verdict = classify(audio.sample_rate, spectral.max_frequency_hz)

    return build_report(
        verdict=verdict,
        sample_rate=audio.sample_rate,
        channels=audio.channels,
        max_frequency_hz=spectral.max_frequency_hz,
        dynamic_range=dynamic_range,
        loudness_lufs=loudness_lufs,
    )


def _decode_and_probe(path: Path, loudness_backend: str) -> tuple[Optional[DecodedAudio], Optional[float]]:
    if loudness_backend == "ffmpeg":
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="exspectro-probe") as pool:
            audio_future = pool.submit(load_decoded_audio, path)
            loudness_future = pool.submit(ffmpeg_io.probe_loudness, path)
            return audio_future.result(), loudness_future.result()

    audio = load_decoded_audio(path)
    if audio is None or loudness_backend != "pyloudnorm":
        return audio, None
    return audio, measure_integrated_loudness(audio.channel_data, audio.sample_rate)


def analyze_track_quality(
    path: Union[str, Path],
    loudness_backend: Optional[str] = None,
) -> Optional[QualityReport]:
    """Decode ``path`` and build its quality report.

    Returns None when analysis is disabled or the file cannot be decoded;
    callers carry on without a report in that case.
    """
    if not config.ENABLE_QUALITY_ANALYSIS:
        quality_debug("disabled via ENABLE_QUALITY_ANALYSIS=false; skipping %s", path)
        return None

    path = Path(path)
    backend = (loudness_backend or config.LOUDNESS_BACKEND).lower()
    audio, loudness = _decode_and_probe(path, backend)

    if audio is None:
        logger.warning("[QUALITY] skipping %s: no decodable PCM", path)
        return None

    quality_debug(
        "decoded %s: %d Hz, %d ch, %d samples, loudness=%s",
        path.name,
        audio.sample_rate,
        audio.channels,
        audio.sample_count,
        loudness,
    )

    try:
        report = analyze_decoded_audio(audio, loudness_lufs=loudness)
    except ValueError as exc:
        logger.warning("[QUALITY] skipping %s: %s", path, exc)
        return None

    logger.info("[QUALITY] %s -> %s (%s)", path.name, report.tag, report.summary)
    return report
