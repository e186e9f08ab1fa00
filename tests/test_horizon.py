from __future__ import annotations

import math

import numpy as np
import pytest

from kerrlens.config import HorizonModel
from kerrlens.physics.horizon import (
    critical_impact_parameter,
    deflection_angle,
    event_horizon_radius,
    frame_dragging_omega,
    gravitational_redshift,
    is_photon_captured,
    kerr_isco_prograde,
    photon_sphere_radius,
    schwarzschild_radius,
)


@pytest.mark.parametrize("model", list(HorizonModel))
def test_every_horizon_model_is_2m_without_spin(model):
    assert event_horizon_radius(1.5, 0.0, model) == pytest.approx(3.0)


def test_reduced_horizon_at_high_spin():
    assert event_horizon_radius(1.0, 0.998) == pytest.approx(1.002)


def test_kerr_outer_horizon():
    assert event_horizon_radius(1.0, 0.6, HorizonModel.KERR_OUTER) == pytest.approx(1.8)


def test_schwarzschild_model_ignores_spin():
    assert event_horizon_radius(2.0, 0.9, HorizonModel.SCHWARZSCHILD) == pytest.approx(4.0)


def test_closed_form_radii():
    assert schwarzschild_radius(1.0) == 2.0
    assert photon_sphere_radius(2.0) == 6.0
    assert critical_impact_parameter(1.0) == pytest.approx(3.0 * math.sqrt(3.0))


def test_capture_threshold():
    assert is_photon_captured(5.0, 1.0)
    assert not is_photon_captured(5.3, 1.0)


def test_deflection_angle():
    assert deflection_angle(50.0, 1.0) == pytest.approx(0.08)
    assert deflection_angle(0.001, 1.0) == pytest.approx(math.pi)


def test_isco():
    assert kerr_isco_prograde(1.0, 0.0) == pytest.approx(6.0)
    assert kerr_isco_prograde(1.0, 0.9) < 3.0


def test_frame_dragging_vanishes_without_spin():
    r = np.array([2.0, 5.0, 50.0])
    assert np.all(frame_dragging_omega(np, r, 1.0, 0.0) == 0.0)


def test_frame_dragging_decays_with_radius():
    r = np.array([2.0, 5.0, 50.0])
    omega = frame_dragging_omega(np, r, 1.0, 0.9)
    assert np.all(omega > 0.0)
    assert np.all(np.diff(omega) < 0.0)


def test_frame_dragging_at_zero_radius_is_finite():
    omega = frame_dragging_omega(np, np.array([0.0]), 1.0, 0.9)
    assert np.isfinite(omega).all()


def test_gravitational_redshift():
    assert gravitational_redshift(2.0, 1.0) == 0.0
    assert gravitational_redshift(8.0, 1.0) == pytest.approx(math.sqrt(0.75))
    assert gravitational_redshift(1e6, 1.0) == pytest.approx(1.0, abs=1e-5)
