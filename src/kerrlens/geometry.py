from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from kerrlens.protocols import Drawable2D


@dataclass(frozen=True, slots=True)
class Circle(Drawable2D):
    """Circle in the XZ plane centered on the hole (horizon, photon sphere, disk edges)."""

    radius: float
    label: str = ""

    def polyline(self, num: int = 600) -> np.ndarray:
        theta = np.linspace(0.0, 2.0 * np.pi, num, dtype=np.float64)
        return np.stack([np.cos(theta), np.sin(theta)], axis=-1) * self.radius
