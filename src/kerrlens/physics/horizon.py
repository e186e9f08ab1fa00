"""Closed-form black hole radii and rates in geometric units (G = c = 1).

All functions take the mass M and the normalized spin a/M, and return lengths
in the same units as M.
"""
from __future__ import annotations

import math
from typing import Any

from kerrlens.config import HorizonModel

DENOMINATOR_EPS: float = 1e-9


def schwarzschild_radius(mass: float) -> float:
    """r_s = 2M."""
    return 2.0 * mass


def event_horizon_radius(
        mass: float,
        spin: float,
        model: HorizonModel = HorizonModel.KERR_REDUCED,
) -> float:
    """Event-horizon radius for the selected approximation.

    Every model reduces to 2M at spin = 0.
    """
    r_s = schwarzschild_radius(mass)
    if spin == 0.0 or model is HorizonModel.SCHWARZSCHILD:
        return r_s
    if model is HorizonModel.KERR_REDUCED:
        return r_s * (1.0 - 0.5 * spin)
    # Kerr outer horizon r+ = M + sqrt(M^2 - a^2) with a = spin * M
    return mass + mass * math.sqrt(max(1.0 - spin * spin, 0.0))


def photon_sphere_radius(mass: float) -> float:
    """r_ph = 3M, the unstable circular photon orbit."""
    return 3.0 * mass


def critical_impact_parameter(mass: float) -> float:
    """b_crit = 3 sqrt(3) M; photons with b < b_crit are captured."""
    return 3.0 * math.sqrt(3.0) * mass


def gravitational_redshift(r: float, mass: float) -> float:
    """Observed-to-emitted frequency ratio sqrt(1 - r_s / r) for a static emitter; 0 at or inside r_s."""
    r_s = schwarzschild_radius(mass)
    if r <= r_s:
        return 0.0
    return math.sqrt(1.0 - r_s / r)


def is_photon_captured(b: float, mass: float) -> bool:
    return b < critical_impact_parameter(mass)


def deflection_angle(b: float, mass: float) -> float:
    """Weak-field deflection alpha = 4M / b, valid for b >> M."""
    if b < 0.01:
        return math.pi
    return 4.0 * mass / b


def kerr_isco_prograde(mass: float, spin: float) -> float:
    """Prograde innermost stable circular orbit (Bardeen, Press & Teukolsky)."""
    a = spin
    z1 = 1.0 + (1.0 - a * a) ** (1.0 / 3.0) * ((1.0 + a) ** (1.0 / 3.0) + (1.0 - a) ** (1.0 / 3.0))
    z2 = math.sqrt(3.0 * a * a + z1 * z1)
    return mass * (3.0 + z2 - math.sqrt((3.0 - z1) * (3.0 + z1 + 2.0 * z2)))


def frame_dragging_omega(xp: Any, r: Any, mass: float, spin: float) -> Any:
    """Frame-dragging angular velocity omega = 2Mar / (r^3 + a^2 r + 2Ma^2).

    Works on arrays; the denominator is floored at DENOMINATOR_EPS.
    """
    a = spin * mass
    numerator = 2.0 * mass * a * r
    denominator = r * r * r + a * a * r + 2.0 * mass * a * a
    return numerator / xp.maximum(denominator, DENOMINATOR_EPS)
