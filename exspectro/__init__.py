"""exspectro: audio source-quality analysis.

Estimates the true spectral ceiling of a decoded track and classifies
whether it is genuine lossless / high-resolution audio or a lossy file
dressed up as one.
"""

__version__ = "0.1.0"
