from __future__ import annotations

import numpy as np
import pytest

from kerrlens.config import ParameterSet
from kerrlens.raymarch.config import MarchResult, RayState
from kerrlens.shading.compositor import Compositor


def _result(states, color, opacity, min_radius):
    n = len(states)
    return MarchResult(
        state=np.asarray(states, dtype=np.int8),
        position=np.zeros((n, 3)),
        direction=np.tile([0.0, 0.0, 1.0], (n, 1)),
        color=np.asarray(color, dtype=np.float64),
        opacity=np.asarray(opacity, dtype=np.float64),
        min_radius=np.asarray(min_radius, dtype=np.float64),
        steps=np.zeros(n, dtype=np.int32),
        initial_direction=np.tile([0.0, 0.0, 1.0], (n, 1)),
    )


def test_absorbed_rays_are_black():
    comp = Compositor(np)
    result = _result([RayState.ABSORBED], [[3.0, 2.0, 1.0]], [0.5], [3.0])
    rgb = comp.compose(result, np.ones((1, 3)), np.zeros((1, 2)), ParameterSet())
    np.testing.assert_array_equal(rgb, 0.0)


def test_escaped_and_budget_exhausted_shade_alike():
    comp = Compositor(np)
    result = _result(
        [RayState.ESCAPED, RayState.BUDGET_EXHAUSTED],
        [[0.1, 0.1, 0.1]] * 2,
        [0.5, 0.5],
        [20.0, 20.0],
    )
    rgb = comp.compose(result, np.full((2, 3), 0.2), np.zeros((2, 2)), ParameterSet())
    np.testing.assert_array_equal(rgb[0], rgb[1])


def test_background_attenuated_by_opacity():
    comp = Compositor(np)
    params = ParameterSet(glow_intensity=0.0)
    result = _result([RayState.ESCAPED], [[0.0, 0.0, 0.0]], [0.25], [50.0])
    rgb = comp.compose(result, np.full((1, 3), 0.4), np.zeros((1, 2)), params)
    np.testing.assert_allclose(rgb[0], 0.1 ** comp.cfg.gamma)


def test_glow_peaks_at_photon_sphere():
    comp = Compositor(np)
    glow = comp.photon_sphere_glow(np.array([3.0, 3.5, 6.0]), ParameterSet())
    assert glow[0, 0] > glow[1, 0] > glow[2, 0] > 0.0
    assert glow[0, 0] == pytest.approx(1.2 * comp.cfg.glow_scale)


def test_sharper_lens_tightens_glow():
    comp = Compositor(np)
    r = np.array([4.0])
    soft = comp.photon_sphere_glow(r, ParameterSet(lens_sharpness=0.0))
    sharp = comp.photon_sphere_glow(r, ParameterSet(lens_sharpness=2.0))
    assert sharp[0, 0] < soft[0, 0]


def test_vignette():
    comp = Compositor(np)
    uv = np.array([[0.0, 0.0], [2.0, 0.0]])
    v = comp.vignette(uv, ParameterSet(vignette_strength=0.4))
    assert v[0] == pytest.approx(1.0)
    assert v[1] == pytest.approx(0.6)
    np.testing.assert_allclose(comp.vignette(uv, ParameterSet(vignette_strength=0.0)), 1.0)


def test_tone_clips_to_display_range():
    comp = Compositor(np)
    rgb = comp.tone(np.array([[-1.0, 0.5, 7.0]]))
    assert rgb[0, 0] == 0.0
    assert 0.5 < rgb[0, 1] < 1.0
    assert rgb[0, 2] == 1.0
