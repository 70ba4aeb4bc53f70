import numpy as np
import pytest

from audio_signals import brickwall_lowpass, make_sweep
from exspectro import config
from exspectro.pcm import DecodedAudio


@pytest.fixture
def sweep_audio():
    return DecodedAudio(sample_rate=44100, channel_data=make_sweep().astype(np.float32))


@pytest.fixture
def lowpassed_sweep_audio():
    x = brickwall_lowpass(make_sweep(), 44100, 16000.0)
    return DecodedAudio(sample_rate=44100, channel_data=x.astype(np.float32))


@pytest.fixture
def quality_config(monkeypatch):
    """Known-good runtime config for flow tests; individual tests override."""
    monkeypatch.setattr(config, "ENABLE_QUALITY_ANALYSIS", True)
    monkeypatch.setattr(config, "QUALITY_ANALYSIS_DEBUG", False)
    monkeypatch.setattr(config, "PCM_BACKEND", "ffmpeg")
    monkeypatch.setattr(config, "LOUDNESS_BACKEND", "ffmpeg")
    return config
