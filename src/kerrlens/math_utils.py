from __future__ import annotations

from typing import Any

TINY: float = 1e-12


def normalize_batch(xp: Any, v: Any) -> Any:
    """Normalize (..., D) vectors along the last axis with division-by-zero guard."""
    n = xp.linalg.norm(v, axis=-1, keepdims=True)
    n = xp.maximum(n, xp.asarray(TINY, dtype=xp.float64))
    return v / n


def cross(xp: Any, a: Any, b: Any) -> Any:
    """Cross product that works for NumPy/CuPy and array-likes."""
    if hasattr(xp, "cross"):
        return xp.cross(a, b)
    ax, ay, az = a[..., 0], a[..., 1], a[..., 2]
    bx, by, bz = b[..., 0], b[..., 1], b[..., 2]
    return xp.stack([ay * bz - az * by, az * bx - ax * bz, ax * by - ay * bx], axis=-1)


def dot(xp: Any, a: Any, b: Any) -> Any:
    """Row-wise dot product of (..., D) arrays, returns shape (...)."""
    return xp.sum(a * b, axis=-1)


def smoothstep(xp: Any, edge0: Any, edge1: Any, x: Any) -> Any:
    """Hermite smoothstep; edge0 > edge1 gives the mirrored ramp."""
    t = xp.clip((x - edge0) / (edge1 - edge0), 0.0, 1.0)
    return t * t * (3.0 - 2.0 * t)


def mix(a: Any, b: Any, t: Any) -> Any:
    """Linear interpolation a -> b."""
    return a + (b - a) * t


def fract(xp: Any, x: Any) -> Any:
    return x - xp.floor(x)


def rotate_about_axis(xp: Any, v: Any, axis: Any, angle: Any) -> Any:
    """Rodrigues rotation of (..., 3) vectors about a unit axis.

    angle is broadcast against the leading dimensions of v.
    """
    angle = xp.asarray(angle, dtype=xp.float64)
    axis_b = xp.broadcast_to(axis, v.shape)
    c = xp.cos(angle)[..., None]
    s = xp.sin(angle)[..., None]
    k_dot_v = dot(xp, axis_b, v)[..., None]
    return v * c + cross(xp, axis_b, v) * s + axis_b * k_dot_v * (1.0 - c)
