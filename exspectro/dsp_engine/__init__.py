"""Numeric engine for exspectro.

Self-contained building blocks for source-quality analysis: radix-2 FFT,
Savitzky–Golay smoothing, spectral ceiling detection, block dynamic range,
plus the ffmpeg and pyloudnorm loudness helpers.
"""
from .dynamic_range import DynamicRangeResult, compute_dynamic_range
from .spectral import (
  FrequencyThresholdProfile,
  SpectralAnalysis,
  analyze_spectrum,
  max_significant_frequency,
)

__all__ = [
  "DynamicRangeResult",
  "compute_dynamic_range",
  "FrequencyThresholdProfile",
  "SpectralAnalysis",
  "analyze_spectrum",
  "max_significant_frequency",
]
