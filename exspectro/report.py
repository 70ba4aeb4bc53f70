"""Quality report assembly.

Building a report never fails: any missing piece (no frequency, no dynamic
range, no loudness) just drops its clause from the summary line.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .classification import FALLBACK_LABEL, QualityVerdict
from .dsp_engine.dynamic_range import DynamicRangeResult

SEPARATOR = " · "

WARNED_VERDICTS = frozenset({"fake", "likely_fake"})
FAKE_WARNING = (
    "Heads up: this file's spectrum stops far below what its sample rate allows. "
    "It was most likely transcoded or upsampled from a lossy source."
)


@dataclass(frozen=True)
class QualityReport:
    verdict: QualityVerdict
    sample_rate: int
    channels: int
    max_frequency_hz: Optional[float]
    dynamic_range: Optional[DynamicRangeResult]
    loudness_lufs: Optional[float]
    frequency_clause: str
    dynamic_range_clause: str
    loudness_clause: str
    summary: str
    warning: Optional[str] = None

    @property
    def tag(self) -> str:
        return self.verdict.tag

    @property
    def caption_line(self) -> str:
        return f"Approx. quality: {self.summary}"

    def to_dict(self) -> Dict[str, Any]:
        dr = self.dynamic_range
        return {
            "verdict": self.verdict.tag,
            "label": self.verdict.label,
            "summary": self.summary,
            "warning": self.warning,
            "sample_rate": self.sample_rate,
            "channels": self.channels,
            "max_frequency_hz": self.max_frequency_hz,
            "dynamic_range_status": dr.status if dr else None,
            "dynamic_range_db": dr.dynamic_range if dr else None,
            "avg_peak_db": _finite_or_none(dr.avg_peak_db) if dr else None,
            "avg_rms_db": _finite_or_none(dr.avg_rms_db) if dr else None,
            "loudness_lufs": self.loudness_lufs,
        }


def _finite_or_none(value: float) -> Optional[float]:
    return value if math.isfinite(value) else None


def format_frequency_clause(max_frequency_hz: Optional[float]) -> str:
    if max_frequency_hz is None or max_frequency_hz <= 0:
        return ""
    return f"max {max_frequency_hz / 1000.0:.1f} kHz"


def format_dynamic_range_clause(result: Optional[DynamicRangeResult]) -> str:
    if result is None:
        return ""
    if result.status == "too_short":
        return "DR (too short)"
    if result.status == "silent":
        return "DR (silent track)"
    if result.dynamic_range is None:
        return ""
    return f"DR {result.dynamic_range:.2f} dB"


def format_loudness_clause(loudness_lufs: Optional[float]) -> str:
    if loudness_lufs is None or not math.isfinite(loudness_lufs):
        return ""
    return f"{loudness_lufs:.1f} LUFS"


def build_report(
    verdict: QualityVerdict,
    sample_rate: int,
    channels: int,
    max_frequency_hz: Optional[float],
    dynamic_range: Optional[DynamicRangeResult] = None,
    loudness_lufs: Optional[float] = None,
) -> QualityReport:
    freq_clause = format_frequency_clause(max_frequency_hz)
    dr_clause = format_dynamic_range_clause(dynamic_range)
    lufs_clause = format_loudness_clause(loudness_lufs)

    details: List[str] = [c for c in (freq_clause, dr_clause, lufs_clause) if c]
    if verdict.tag == "unknown" and not details:
        summary = FALLBACK_LABEL
    else:
        summary = SEPARATOR.join([verdict.label, *details])

    warning = FAKE_WARNING if verdict.tag in WARNED_VERDICTS else None

    return QualityReport(
        verdict=verdict,
        sample_rate=sample_rate,
        channels=channels,
        max_frequency_hz=max_frequency_hz,
        dynamic_range=dynamic_range,
        loudness_lufs=loudness_lufs if loudness_lufs is None or math.isfinite(loudness_lufs) else None,
        frequency_clause=freq_clause,
        dynamic_range_clause=dr_clause,
        loudness_clause=lufs_clause,
        summary=summary,
        warning=warning,
    )
