"""Pydantic response models for the HTTP surface."""

from typing import Optional

from pydantic import BaseModel

from .report import QualityReport


class QualityReportResponse(BaseModel):
    verdict: str
    label: str
    summary: str
    caption: str
    warning: Optional[str] = None
    sample_rate: int
    channels: int
    max_frequency_hz: Optional[float] = None
    dynamic_range_status: Optional[str] = None
    dynamic_range_db: Optional[float] = None
    avg_peak_db: Optional[float] = None
    avg_rms_db: Optional[float] = None
    loudness_lufs: Optional[float] = None

    @classmethod
    def from_report(cls, report: QualityReport) -> "QualityReportResponse":
        return cls(caption=report.caption_line, **report.to_dict())


class HealthResponse(BaseModel):
    status: str
    quality_analysis_enabled: bool
