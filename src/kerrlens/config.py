from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class HorizonModel(str, Enum):
    """Event-horizon approximation used for capture tests.

    SCHWARZSCHILD:
        r_h = 2M regardless of spin.
    KERR_REDUCED:
        r_h = 2M * (1 - a / 2). Linear shrink toward M at extremal spin.
    KERR_OUTER:
        r_h = M + M * sqrt(1 - a^2), the Kerr outer horizon.
    """

    SCHWARZSCHILD = "schwarzschild"
    KERR_REDUCED = "kerr_reduced"
    KERR_OUTER = "kerr_outer"


# (lo, hi) ranges the core clamps to. Radii are in units of M.
PARAMETER_RANGES: dict[str, tuple[float, float]] = {
    "mass": (0.1, 10.0),
    "spin": (0.0, 0.999),
    "disk_inner_radius": (0.1, 100.0),
    "disk_outer_radius": (0.2, 200.0),
    "disk_thickness": (0.01, 10.0),
    "disk_rotation_speed": (-5.0, 5.0),
    "disk_temperature": (0.0, 3.0),
    "lens_strength": (0.0, 1.5),
    "lens_sharpness": (0.0, 2.0),
    "vignette_strength": (0.0, 1.0),
    "glow_intensity": (0.0, 3.0),
    "photon_sphere_radius": (1.0, 10.0),
    "observer_distance": (3.0, 100.0),
}

MIN_DISK_WIDTH: float = 0.5


@dataclass(frozen=True, slots=True)
class ParameterSet:
    """Physical and visual tunables, immutable for the duration of a frame.

    All radii are expressed in units of the mass M and are scaled by ``mass``
    when converted to world lengths.

    Fields:
      mass:
        Black hole mass M (geometric units, G = c = 1).
      spin:
        Normalized Kerr spin a/M in [0, 0.999].
      disk_inner_radius, disk_outer_radius:
        Radial extent of the accretion disk; inner < outer.
      disk_thickness:
        Vertical half-extent of the disk ellipsoid.
      disk_rotation_speed:
        Multiplier on the Keplerian phase advance used for Doppler coloring.
      disk_temperature:
        Scale on the temperature factor (hotter, whiter disk above 1).
      lens_strength:
        Scale on the bending acceleration; 1.0 reproduces the weak-field 4M/b law.
      lens_sharpness:
        Controls how tightly the photon-sphere glow hugs its radius.
      vignette_strength:
        Darkening at the screen edge, 0 disables the vignette.
      glow_intensity:
        Photon-sphere glow intensity.
      photon_sphere_radius:
        Radius of the glow ring (3M is the Schwarzschild photon sphere).
      observer_distance:
        Preferred camera distance, consumed by camera rigs.
    """

    mass: float = 1.0
    spin: float = 0.0
    disk_inner_radius: float = 3.0
    disk_outer_radius: float = 9.0
    disk_thickness: float = 0.3
    disk_rotation_speed: float = 0.1
    disk_temperature: float = 1.0
    lens_strength: float = 1.0
    lens_sharpness: float = 0.9
    vignette_strength: float = 0.4
    glow_intensity: float = 1.2
    photon_sphere_radius: float = 3.0
    observer_distance: float = 15.0

    @property
    def inner_radius(self) -> float:
        return self.disk_inner_radius * self.mass

    @property
    def outer_radius(self) -> float:
        return self.disk_outer_radius * self.mass

    @property
    def thickness(self) -> float:
        return self.disk_thickness * self.mass

    @property
    def photon_sphere(self) -> float:
        return self.photon_sphere_radius * self.mass

    def sanitized(self) -> ParameterSet:
        """Return a copy with every field clamped into its documented range.

        Never raises. Non-finite values fall back to the field default, and an
        inverted or empty disk is widened outward. Every adjustment is logged
        as a warning so the caller can surface it.
        """
        defaults = ParameterSet()
        changes: dict[str, float] = {}

        for f in fields(self):
            value = getattr(self, f.name)
            lo, hi = PARAMETER_RANGES[f.name]
            fixed = float(value)
            if not math.isfinite(fixed):
                fixed = float(getattr(defaults, f.name))
            fixed = min(max(fixed, lo), hi)
            if fixed != value:
                logger.warning("parameter %s=%r out of range, using %r", f.name, value, fixed)
                changes[f.name] = fixed

        inner = changes.get("disk_inner_radius", self.disk_inner_radius)
        outer = changes.get("disk_outer_radius", self.disk_outer_radius)
        if outer <= inner:
            widened = inner + MIN_DISK_WIDTH
            logger.warning(
                "disk_outer_radius=%r not above disk_inner_radius=%r, using %r",
                outer, inner, widened,
            )
            changes["disk_outer_radius"] = widened

        if not changes:
            return self
        return replace(self, **changes)


@dataclass(frozen=True, slots=True)
class CameraState:
    """Per-frame camera pose and clock, read-only during integration."""

    position: tuple[float, float, float] = (0.0, 0.0, 15.0)
    target: tuple[float, float, float] = (0.0, 0.0, 0.0)
    time: float = 0.0
    roll: float = 0.0
    focal_length: float = 1.0


DEFAULT_PARAMETERS = ParameterSet()

CINEMATIC_PARAMETERS = replace(
    DEFAULT_PARAMETERS,
    spin=0.5,
    observer_distance=12.0,
    lens_strength=0.85,
    glow_intensity=1.5,
    vignette_strength=0.6,
)

# Rapidly rotating hole, close to the look of Interstellar's Gargantua.
INTERSTELLAR_PARAMETERS = replace(
    DEFAULT_PARAMETERS,
    spin=0.998,
    disk_inner_radius=2.6,
    disk_outer_radius=12.0,
    disk_thickness=0.2,
    lens_strength=0.98,
    lens_sharpness=1.4,
    glow_intensity=2.2,
    vignette_strength=0.3,
    disk_rotation_speed=0.5,
    photon_sphere_radius=2.5,
)


class ParameterStore:
    """Holds the shared ParameterSet between a control surface and the renderer.

    Writers call ``update``; the renderer calls ``snapshot`` once per frame and
    keeps the returned record for the whole frame. Records are immutable, so a
    snapshot is never affected by later updates.
    """

    def __init__(self, params: ParameterSet = DEFAULT_PARAMETERS) -> None:
        self._lock = threading.Lock()
        self._current = params.sanitized()

    def update(self, **changes: Any) -> ParameterSet:
        """Apply field changes atomically and return the new sanitized record."""
        with self._lock:
            self._current = replace(self._current, **changes).sanitized()
            logger.debug("parameters updated: %s", ", ".join(sorted(changes)))
            return self._current

    def replace_all(self, params: ParameterSet) -> ParameterSet:
        """Swap in a whole new record, e.g. a preset, sanitized like update."""
        with self._lock:
            self._current = params.sanitized()
            return self._current

    def snapshot(self) -> ParameterSet:
        with self._lock:
            return self._current
