import math

import numpy as np
import pytest

from audio_signals import make_square, make_tone
from exspectro.dsp_engine.dynamic_range import block_stats, compute_dynamic_range

SR = 44100


def test_square_wave_has_zero_dynamic_range():
    result = compute_dynamic_range(make_square(SR, 10.0), SR)
    assert result.status == "ok"
    assert result.dynamic_range == pytest.approx(0.0, abs=1e-6)


def test_sine_crest_factor_is_three_db():
    result = compute_dynamic_range(make_tone(1000.0, SR, 10.0, amp=0.25), SR)
    assert result.ok
    assert result.dynamic_range == pytest.approx(3.01, abs=0.02)
    assert result.avg_peak_db == pytest.approx(20 * math.log10(0.25), abs=0.05)


def test_two_seconds_is_too_short():
    result = compute_dynamic_range(make_tone(1000.0, SR, 2.0), SR)
    assert result.status == "too_short"
    assert result.dynamic_range is None


def test_exactly_one_block_is_too_short():
    result = compute_dynamic_range(make_tone(1000.0, SR, 3.0), SR)
    assert result.status == "too_short"


def test_silence_reports_silent_with_infinite_averages():
    result = compute_dynamic_range(np.zeros(SR * 10), SR)
    assert result.status == "silent"
    assert result.dynamic_range is None
    assert result.avg_peak_db == float("-inf")
    assert result.avg_rms_db == float("-inf")


def test_trailing_partial_block_is_kept():
    stats = block_stats(np.ones(10), 4)
    assert stats.peaks.tolist() == [1.0, 1.0, 1.0]
    assert stats.rms.size == 3


def test_single_click_does_not_move_the_figure():
    clean = make_tone(1000.0, SR, 10.0, amp=0.25)
    clicked = clean.copy()
    clicked[SR] = 1.0
    assert compute_dynamic_range(clicked, SR).dynamic_range == pytest.approx(
        compute_dynamic_range(clean, SR).dynamic_range, abs=0.02
    )


def test_top_fifth_of_blocks_sets_the_rms():
    sr = 1000
    levels = np.arange(1, 11) / 10.0
    x = np.repeat(levels, 3 * sr)
    result = compute_dynamic_range(x, sr)

    top_rms = math.sqrt((0.9**2 + 1.0**2) / 2)
    expected = round(-20 * math.log10(top_rms / 0.9), 2)
    assert result.dynamic_range == pytest.approx(expected, abs=1e-9)


def test_stereo_figure_is_the_channel_mean():
    left = make_tone(1000.0, SR, 10.0, amp=0.5)
    right = make_square(SR, 10.0, amp=0.5)
    result = compute_dynamic_range(np.vstack([left, right]), SR)
    assert result.ok
    assert result.dynamic_range == pytest.approx(1.505, abs=0.02)


def test_invalid_sample_rate_raises():
    with pytest.raises(ValueError):
        compute_dynamic_range(np.zeros(10), 0)


def test_one_silent_channel_makes_the_track_silent():
    left = make_tone(1000.0, SR, 10.0, amp=0.5)
    right = np.zeros_like(left)
    result = compute_dynamic_range(np.vstack([left, right]), SR)
    assert result.status == "silent"
    assert result.dynamic_range is None
