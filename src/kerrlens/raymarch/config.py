from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any

from kerrlens.config import HorizonModel


class IntegrationMethod(str, Enum):
    RK4 = "rk4"
    EULER = "euler"


class RayState(IntEnum):
    """Per-ray integration state. Everything except ACTIVE is terminal."""

    ACTIVE = 0
    ABSORBED = 1
    ESCAPED = 2
    BUDGET_EXHAUSTED = 3


@dataclass(frozen=True, slots=True)
class IntegratorConfig:
    """Fixed-budget geodesic marching settings.

    Fields:
      max_steps:
        Step budget per ray; the only timeout of the integration. The default
        max_steps * step_size = 120 lets rays from the default camera (r = 15)
        pass the hole and still reach escape_radius.
      step_size:
        Fixed affine step in world units; small enough to sample a 0.3 M
        thick disk several times when crossed face-on.
      escape_radius:
        Rays beyond escape_radius * M are escaped.
      horizon_margin:
        Capture when r < horizon * horizon_margin.
      horizon_model:
        Event-horizon approximation, one per frame.
      bending_coefficient:
        k in a = -k * lens_strength * r_s * h^2 * p / r^5. 1.5 matches the
        photon orbit equation u'' + u = 3 M u^2.
      method:
        RK4 (default) or Euler.
      frame_dragging:
        Twist directions about the spin axis when spin > 0.
      min_radius:
        Radius clamp below which acceleration is forced to zero.
      absorption:
        Opacity falloff per unit density and length.
    """

    max_steps: int = 800
    step_size: float = 0.15
    escape_radius: float = 100.0
    horizon_margin: float = 1.0
    horizon_model: HorizonModel = HorizonModel.KERR_REDUCED
    bending_coefficient: float = 1.5
    method: IntegrationMethod = IntegrationMethod.RK4
    frame_dragging: bool = True
    min_radius: float = 1e-3
    absorption: float = 0.05


@dataclass(frozen=True, slots=True)
class MarchResult:
    """Terminal per-ray state of a batch march.

    Attributes
    ----------
    state:
        (N,) int8 RayState codes, never ACTIVE.
    position, direction:
        (N, 3) final position and unit direction.
    color:
        (N, 3) accumulated disk emission (additive, unbounded).
    opacity:
        (N,) remaining transmittance in [0, 1], starts at 1.
    min_radius:
        (N,) closest approach to the hole along the path.
    steps:
        (N,) steps taken before termination.
    initial_direction:
        (N, 3) unit direction at the ray origin.

    """

    state: Any
    position: Any
    direction: Any
    color: Any
    opacity: Any
    min_radius: Any
    steps: Any
    initial_direction: Any


@dataclass(frozen=True, slots=True)
class RayTrace:
    """Single-ray debug trace with its polyline."""

    state: RayState
    points: Any
    color: Any
    opacity: float
    min_radius: float
    final_direction: Any
