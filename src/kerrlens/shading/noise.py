from __future__ import annotations

from typing import TYPE_CHECKING, Any

from kerrlens.math_utils import fract, mix

if TYPE_CHECKING:
    from kerrlens.backend import ArrayModule

HASH_SCALE: float = 43758.5453


def hash2(xp: ArrayModule, x: Any, y: Any) -> Any:
    """Deterministic 0..1 hash of 2D lattice coordinates (sine-dot hash)."""
    return fract(xp, xp.sin(x * 12.9898 + y * 78.233) * HASH_SCALE)


def hash3(xp: ArrayModule, x: Any, y: Any, z: Any) -> Any:
    """Deterministic 0..1 hash of 3D lattice coordinates."""
    return fract(xp, xp.sin(x * 127.1 + y * 311.7 + z * 74.7) * HASH_SCALE)


def value_noise3(xp: ArrayModule, p: Any, period_y: float | None = None) -> Any:
    """Smooth 3D value noise in [0, 1] at points p (..., 3).

    Lattice values are hashed at integer corners and blended with a Hermite
    fade. With ``period_y`` the lattice wraps along y, which makes the noise
    seamless when y is an azimuth scaled to ``period_y`` cells per turn.
    """
    cell = xp.floor(p)
    f = p - cell
    u = f * f * (3.0 - 2.0 * f)

    ix = cell[..., 0]
    iy = cell[..., 1]
    iz = cell[..., 2]
    iy1 = iy + 1.0
    if period_y is not None:
        iy = xp.mod(iy, period_y)
        iy1 = xp.mod(iy1, period_y)

    c000 = hash3(xp, ix, iy, iz)
    c100 = hash3(xp, ix + 1.0, iy, iz)
    c010 = hash3(xp, ix, iy1, iz)
    c110 = hash3(xp, ix + 1.0, iy1, iz)
    c001 = hash3(xp, ix, iy, iz + 1.0)
    c101 = hash3(xp, ix + 1.0, iy, iz + 1.0)
    c011 = hash3(xp, ix, iy1, iz + 1.0)
    c111 = hash3(xp, ix + 1.0, iy1, iz + 1.0)

    ux = u[..., 0]
    uy = u[..., 1]
    uz = u[..., 2]

    x00 = mix(c000, c100, ux)
    x10 = mix(c010, c110, ux)
    x01 = mix(c001, c101, ux)
    x11 = mix(c011, c111, ux)
    y0 = mix(x00, x10, uy)
    y1 = mix(x01, x11, uy)
    return mix(y0, y1, uz)
