from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np

from kerrlens.math_utils import cross, normalize_batch

if TYPE_CHECKING:
    from kerrlens.backend import ArrayModule
    from kerrlens.config import CameraState


@dataclass(frozen=True, slots=True)
class Camera3D:
    """Look-at pinhole camera with roll.

    Basis:
      forward = normalize(target - position)
      right   = normalize(forward x (sin roll, cos roll, 0))
      up      = right x forward

    A screen coordinate (x, y), aspect-corrected so that y spans [-1, 1], maps to
    the direction normalize(-x * right + y * up + focal_length * forward).
    """

    position: Any
    target: Any
    roll: float = 0.0
    focal_length: float = 1.0

    def basis(self, xp: ArrayModule) -> tuple[Any, Any, Any]:
        """Return (forward, right, up) unit vectors."""
        pos = xp.asarray(self.position, dtype=xp.float64)
        tgt = xp.asarray(self.target, dtype=xp.float64)
        f = normalize_batch(xp, tgt - pos)

        roll_vec = xp.asarray([np.sin(self.roll), np.cos(self.roll), 0.0], dtype=xp.float64)
        if abs(float(xp.sum(f * roll_vec))) > 0.999:
            roll_vec = xp.asarray([0.0, 0.0, 1.0], dtype=xp.float64)

        r = normalize_batch(xp, cross(xp, f, roll_vec))
        u = cross(xp, r, f)
        return f, r, u

    @staticmethod
    def screen_coordinates(xp: ArrayModule, width: int, height: int) -> Any:
        """Return (H, W, 2) aspect-corrected pixel-center coordinates.

        x = (2 * (i + 0.5) - W) / H, y = (H - 2 * (j + 0.5)) / H; row 0 is the top.
        """
        if width <= 0 or height <= 0:
            msg = f"resolution must be positive, got {width}x{height}"
            raise ValueError(msg)

        cols = xp.arange(width, dtype=xp.float64)
        rows = xp.arange(height, dtype=xp.float64)
        xs = (2.0 * (cols + 0.5) - width) / height
        ys = (height - 2.0 * (rows + 0.5)) / height

        uv = xp.empty((height, width, 2), dtype=xp.float64)
        uv[..., 0] = xs[None, :]
        uv[..., 1] = ys[:, None]
        return uv

    def ray_directions(self, xp: ArrayModule, uv: Any) -> Any:
        """Map (..., 2) screen coordinates to (..., 3) unit directions."""
        forward, right, up = self.basis(xp)
        x = uv[..., 0:1]
        y = uv[..., 1:2]
        rd = -x * right + y * up + self.focal_length * forward
        return normalize_batch(xp, rd)

    @classmethod
    def from_state(cls, state: CameraState) -> Camera3D:
        return cls(
            position=state.position,
            target=state.target,
            roll=state.roll,
            focal_length=state.focal_length,
        )
