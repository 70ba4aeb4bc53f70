import numpy as np
import pytest

from exspectro.dsp_engine import fft


@pytest.mark.parametrize("size", [1, 2, 8, 64, 2048])
def test_fft_matches_numpy(size):
    rng = np.random.default_rng(size)
    x = rng.standard_normal(size)
    np.testing.assert_allclose(fft.fft(x), np.fft.fft(x), rtol=1e-9, atol=1e-9)


def test_fft_batch_transforms_each_row():
    rng = np.random.default_rng(7)
    frames = rng.standard_normal((5, 256))
    np.testing.assert_allclose(fft.fft(frames), np.fft.fft(frames, axis=-1), rtol=1e-9, atol=1e-9)


def test_fft_accepts_complex_input():
    rng = np.random.default_rng(3)
    x = rng.standard_normal(128) + 1j * rng.standard_normal(128)
    np.testing.assert_allclose(fft.fft(x), np.fft.fft(x), rtol=1e-9, atol=1e-9)


def test_rfft_magnitude_matches_numpy():
    rng = np.random.default_rng(11)
    frames = rng.standard_normal((3, 2048))
    expected = np.abs(np.fft.rfft(frames, axis=-1))
    got = fft.rfft_magnitude(frames)
    assert got.shape == (3, 1025)
    np.testing.assert_allclose(got, expected, rtol=1e-9, atol=1e-9)


@pytest.mark.parametrize("size", [0, 3, 1000, 2047])
def test_non_power_of_two_is_rejected(size):
    with pytest.raises(ValueError):
        fft.fft(np.zeros(size))


def test_hann_window_is_symmetric_hann():
    np.testing.assert_allclose(fft.hann_window(2048), np.hanning(2048), atol=1e-12)
    assert fft.hann_window(2048)[0] == pytest.approx(0.0)


def test_lookup_tables_are_cached_and_read_only():
    assert fft.hann_window(1024) is fft.hann_window(1024)
    cos_a, sin_a = fft.twiddle_tables(1024)
    cos_b, sin_b = fft.twiddle_tables(1024)
    assert cos_a is cos_b and sin_a is sin_b
    assert fft.bit_reversal_permutation(1024) is fft.bit_reversal_permutation(1024)

    with pytest.raises(ValueError):
        fft.hann_window(1024)[0] = 1.0
    with pytest.raises(ValueError):
        cos_a[0] = 2.0


def test_bit_reversal_permutation_small():
    assert fft.bit_reversal_permutation(8).tolist() == [0, 4, 2, 6, 1, 5, 3, 7]
