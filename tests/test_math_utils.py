from __future__ import annotations

import numpy as np
import pytest

from kerrlens.math_utils import fract, mix, normalize_batch, rotate_about_axis, smoothstep
from kerrlens.shading.noise import hash2, hash3, value_noise3


def test_smoothstep():
    x = np.array([0.0, 0.5, 1.0, 2.0])
    np.testing.assert_allclose(smoothstep(np, 0.5, 1.5, x), [0.0, 0.0, 0.5, 1.0])


def test_smoothstep_reversed_edges():
    np.testing.assert_allclose(smoothstep(np, 9.0, 3.0, np.array([9.0, 6.0, 3.0])), [0.0, 0.5, 1.0])


def test_mix_and_fract():
    assert mix(2.0, 4.0, 0.25) == pytest.approx(2.5)
    np.testing.assert_allclose(fract(np, np.array([1.25, -0.25])), [0.25, 0.75])


def test_normalize_batch_guards_zero():
    v = normalize_batch(np, np.array([[3.0, 4.0, 0.0], [0.0, 0.0, 0.0]]))
    np.testing.assert_allclose(v[0], [0.6, 0.8, 0.0])
    assert np.all(np.isfinite(v[1]))


def test_rotate_about_y():
    v = np.array([[1.0, 0.0, 0.0]])
    out = rotate_about_axis(np, v, np.array([0.0, 1.0, 0.0]), np.array([np.pi / 2]))
    np.testing.assert_allclose(out[0], [0.0, 0.0, -1.0], atol=1e-12)


def test_hashes_in_unit_interval():
    g = np.arange(-50.0, 50.0)
    for h in (hash2(np, g, g * 3.0), hash3(np, g, -g, g * 0.5)):
        assert np.all((h >= 0.0) & (h <= 1.0))


def test_value_noise_interpolates_lattice():
    p = np.array([[2.0, 3.0, 4.0]])
    assert value_noise3(np, p)[0] == pytest.approx(hash3(np, 2.0, 3.0, 4.0))


def test_value_noise_wraps_periodically():
    a = value_noise3(np, np.array([[1.3, 0.4, 2.2]]), period_y=8.0)
    b = value_noise3(np, np.array([[1.3, 8.4, 2.2]]), period_y=8.0)
    assert a[0] == pytest.approx(b[0])
