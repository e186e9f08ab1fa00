from __future__ import annotations

import logging

import numpy as np

from kerrlens.backend import get_array_module, to_numpy
from kerrlens.config import DEFAULT_PARAMETERS
from kerrlens.geometry import Circle
from kerrlens.physics.horizon import (
    critical_impact_parameter,
    deflection_angle,
    event_horizon_radius,
    is_photon_captured,
)
from kerrlens.raymarch.config import IntegratorConfig, RayState
from kerrlens.raymarch.marcher import GeodesicMarcher
from kerrlens.viz.plot2d import RayPathPlotter

# ============================================================
# TOP-LEVEL PARAMETERS (single source of truth)
# Equatorial ray fan, everything in the XZ plane.
# ============================================================

USE_CUDA = False

PARAMS = DEFAULT_PARAMETERS

# Parallel rays coming in from -z with impact parameters b along +x
START_Z = -30.0
IMPACT_PARAMETERS = np.linspace(1.0, 12.0, 23)

MAX_STEPS = 1200
STEP_SIZE = 0.05
ESCAPE_RADIUS = 40.0

TITLE = "Top-down (XZ): approximate null geodesics"
XLIM = (-20, 20)
ZLIM = (-30, 30)

logger = logging.getLogger(__name__)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(name)s %(levelname)s %(message)s")
    xp = get_array_module(USE_CUDA)

    marcher = GeodesicMarcher(
        xp,
        config=IntegratorConfig(max_steps=MAX_STEPS, step_size=STEP_SIZE, escape_radius=ESCAPE_RADIUS),
    )

    plotter = RayPathPlotter(title=TITLE)
    horizon = event_horizon_radius(PARAMS.mass, PARAMS.spin)
    plotter.draw_drawable(Circle(horizon), linewidth=2.0, label="Horizon")
    plotter.draw_drawable(Circle(PARAMS.photon_sphere), linewidth=1.0, label="Photon sphere")
    plotter.draw_drawable(Circle(PARAMS.inner_radius), linewidth=1.0, label="Disk inner")
    plotter.draw_drawable(Circle(PARAMS.outer_radius), linewidth=1.0, label="Disk outer")

    logger.info("critical impact parameter: %.3f", critical_impact_parameter(PARAMS.mass))

    direction = xp.asarray([0.0, 0.0, 1.0], dtype=xp.float64)
    for b in IMPACT_PARAMETERS:
        origin = xp.asarray([float(b), 0.0, START_Z], dtype=xp.float64)
        trace = marcher.trace(origin, direction, PARAMS)
        plotter.draw_ray(xp, trace)

        if trace.state is RayState.ABSORBED:
            measured = float("nan")
        else:
            d = to_numpy(xp, trace.final_direction)
            measured = float(np.arccos(np.clip(d[2], -1.0, 1.0)))
        logger.info(
            "b=%5.2f state=%-16s deflection=%.4f weak-field=%.4f captured(b<b_crit)=%s",
            b, trace.state.name, measured, deflection_angle(float(b), PARAMS.mass),
            is_photon_captured(float(b), PARAMS.mass),
        )

    plotter.show(XLIM, ZLIM)


if __name__ == "__main__":
    main()
