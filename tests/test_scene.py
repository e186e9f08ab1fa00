from __future__ import annotations

import numpy as np
import pytest

from kerrlens.config import ParameterSet
from kerrlens.raymarch.config import IntegratorConfig
from kerrlens.scene import SceneSampler


@pytest.fixture
def sampler():
    return SceneSampler.from_parameters(np, ParameterSet(), IntegratorConfig())


def test_radii_follow_parameters():
    s = SceneSampler.from_parameters(np, ParameterSet(mass=2.0, spin=0.5), IntegratorConfig(escape_radius=50.0))
    assert s.horizon_radius == pytest.approx(3.0)
    assert s.escape_radius == pytest.approx(100.0)
    assert s.inner_radius == pytest.approx(6.0)
    assert s.outer_radius == pytest.approx(18.0)
    assert s.thickness == pytest.approx(0.6)


def test_capture_and_escape(sampler):
    r = np.array([1.9, 2.0, 50.0, 100.0, 100.5])
    np.testing.assert_array_equal(sampler.captured(r), [True, False, False, False, False])
    np.testing.assert_array_equal(sampler.escaped(r), [False, False, False, False, True])


def test_density_inside_disk(sampler):
    density = sampler.disk_density(np.array([[6.0, 0.0, 0.0], [0.0, 0.0, -5.0]]))
    assert np.all(density > 0.0)


@pytest.mark.parametrize(
    "p",
    [
        [6.0, 0.31, 0.0],   # above the slab
        [9.5, 0.0, 0.0],    # beyond the outer edge
        [2.9, 0.0, 0.0],    # inside the inner edge
        [0.0, 0.0, 0.0],    # at the hole
    ],
)
def test_density_zero_outside_disk(sampler, p):
    assert sampler.disk_density(np.array([p]))[0] == 0.0


def test_density_decreases_with_height(sampler):
    ys = np.linspace(0.0, 0.2, 9)
    p = np.stack([np.full_like(ys, 6.0), ys, np.zeros_like(ys)], axis=-1)
    density = sampler.disk_density(p)
    assert np.all(density > 0.0)
    assert np.all(np.diff(density) < 0.0)


def test_density_falls_off_with_radius(sampler):
    p = np.array([[4.0, 0.0, 0.0], [6.0, 0.0, 0.0], [8.0, 0.0, 0.0]])
    density = sampler.disk_density(p)
    assert density[0] > density[1] > density[2] > 0.0


def test_density_is_axisymmetric(sampler):
    a = sampler.disk_density(np.array([[6.0, 0.1, 0.0]]))
    b = sampler.disk_density(np.array([[0.0, 0.1, -6.0]]))
    assert a[0] == pytest.approx(b[0])
