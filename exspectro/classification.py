"""Source-quality verdicts from the spectral ceiling.

A file re-encoded or upsampled from a lossy source keeps the lossy encoder's
low-pass: its spectrum stops well below Nyquist. An AAC-256 source has its own
characteristic roll-off band (roughly 78-93 % of Nyquist) which is expected,
not deceptive, and gets its own verdict.

The cut points are empirical and differ per sample-rate band, so they live in
``BAND_TABLES`` as plain data instead of nested conditionals.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Literal, Optional, Tuple

logger = logging.getLogger("exspectro.classification")

VerdictTag = Literal[
    "fake",
    "likely_fake",
    "maybe_fake",
    "maybe_authentic",
    "likely_authentic",
    "authentic",
    "aac_256",
    "sub_aac_lossy",
    "unknown",
]

BandName = Literal["low", "standard", "hires"]

VERDICT_LABELS: Dict[str, str] = {
    "authentic": "Authentic",
    "likely_authentic": "Authentic (likely)",
    "maybe_authentic": "Maybe authentic",
    "maybe_fake": "Maybe fake",
    "aac_256": "AAC-256 source (expected loss)",
    "sub_aac_lossy": "Already degraded source (<256 kbps)",
    "likely_fake": "Likely fake",
    "fake": "Fake",
    "unknown": "Uncertain analysis",
}

FALLBACK_LABEL = "Spectral analysis unavailable"

CD_NYQUIST_HZ = 22050.0
STANDARD_MIN_SR = 44100
STANDARD_MAX_SR = 48000


@dataclass(frozen=True)
class BandTable:
    """Cut points for one sample-rate band.

    ``reference_hz`` None means "use the file's Nyquist". ``floor_first``
    decides whether the fake floor is checked before the lossy roll-off
    window. ``tiers`` are (upper_ratio, tag) pairs checked in order against
    f / reference; a ratio at or above the last cut point is ``authentic``.
    """

    name: BandName
    reference_hz: Optional[float]
    fake_floor_hz: float
    lossy_window: Optional[Tuple[float, float]]
    floor_first: bool
    tiers: Tuple[Tuple[float, VerdictTag], ...]


BAND_TABLES: Dict[str, BandTable] = {
    "low": BandTable(
        name="low",
        reference_hz=CD_NYQUIST_HZ,
        fake_floor_hz=CD_NYQUIST_HZ * 0.8,
        lossy_window=(0.78, 0.93),
        floor_first=False,
        tiers=(
            (0.50, "likely_fake"),
            (0.80, "maybe_fake"),
            (0.90, "maybe_authentic"),
            (0.99, "likely_authentic"),
        ),
    ),
    "standard": BandTable(
        name="standard",
        reference_hz=None,
        fake_floor_hz=20000.0,
        lossy_window=(0.78, 0.93),
        floor_first=True,
        tiers=(
            (0.50, "likely_fake"),
            (0.80, "maybe_fake"),
            (0.90, "maybe_authentic"),
            (0.99, "likely_authentic"),
        ),
    ),
    "hires": BandTable(
        name="hires",
        reference_hz=None,
        fake_floor_hz=20000.0,
        lossy_window=None,
        floor_first=True,
        tiers=(
            (0.50, "likely_fake"),
            (0.80, "maybe_fake"),
            (0.90, "maybe_authentic"),
            (0.99, "likely_authentic"),
        ),
    ),
}


@dataclass(frozen=True)
class QualityVerdict:
    tag: VerdictTag
    label: str

    @classmethod
    def of(cls, tag: VerdictTag) -> "QualityVerdict":
        return cls(tag=tag, label=VERDICT_LABELS[tag])


def band_for_sample_rate(sample_rate: int) -> BandTable:
    if sample_rate < STANDARD_MIN_SR:
        return BAND_TABLES["low"]
    if sample_rate <= STANDARD_MAX_SR:
        return BAND_TABLES["standard"]
    return BAND_TABLES["hires"]


def classify_tag(sample_rate: int, max_frequency: Optional[float]) -> VerdictTag:
    """Map (sample rate, max significant frequency) to a verdict tag.

    Precedence: no frequency -> unknown; then the band's fake floor and lossy
    roll-off window (in the order the band declares); then the ratio tiers.
    """
    if max_frequency is None or max_frequency <= 0 or sample_rate <= 0:
        return "unknown"

    band = band_for_sample_rate(sample_rate)
    nyquist = sample_rate / 2.0

    below_floor = max_frequency < band.fake_floor_hz
    if band.floor_first and below_floor:
        return "fake"

    if band.lossy_window is not None:
        low, high = band.lossy_window
        ratio = max_frequency / nyquist
        if low <= ratio <= high:
            return "aac_256"
        if ratio < low:
            return "sub_aac_lossy"

    if below_floor:
        return "fake"

    reference = band.reference_hz if band.reference_hz is not None else nyquist
    ratio = max_frequency / reference
    for upper, tag in band.tiers:
        if ratio < upper:
            return tag
    return "authentic"


def classify(sample_rate: int, max_frequency: Optional[float]) -> QualityVerdict:
    tag = classify_tag(sample_rate, max_frequency)
    logger.info(
        "[CLASSIFY] sr=%d max=%s Hz band=%s -> %s",
        sample_rate,
        "none" if max_frequency is None else f"{max_frequency:.0f}",
        band_for_sample_rate(sample_rate).name if sample_rate > 0 else "n/a",
        tag,
    )
    return QualityVerdict.of(tag)
