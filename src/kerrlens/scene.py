from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from kerrlens.math_utils import dot, smoothstep
from kerrlens.physics.horizon import event_horizon_radius

if TYPE_CHECKING:
    from kerrlens.backend import ArrayModule
    from kerrlens.config import ParameterSet
    from kerrlens.raymarch.config import IntegratorConfig


@dataclass(frozen=True, slots=True)
class DiskVolumeConfig:
    """Density shaping of the volumetric disk.

    brightness:
        Scale of the 1/rho^4 radial brightness term. A visual tuning constant
        picked by inspection, not a physical quantity.
    density_threshold:
        Densities below this are treated as empty space.
    inner_falloff:
        The inner edge fades in over [inner, inner * inner_falloff].
    min_radius:
        Radius clamp for the 1/rho^4 term.
    """

    brightness: float = 32000.0
    density_threshold: float = 1e-3
    inner_falloff: float = 1.1
    min_radius: float = 1e-3


@dataclass(frozen=True, slots=True)
class SceneSampler:
    """Per-step scene queries: horizon capture, escape and disk density.

    The hole sits at the origin. The disk lies in the XZ plane and occupies the
    ellipsoid with semi-axes (outer, thickness, outer).
    """

    xp: ArrayModule
    horizon_radius: float
    capture_radius: float
    escape_radius: float
    inner_radius: float
    outer_radius: float
    thickness: float
    volume: DiskVolumeConfig = DiskVolumeConfig()

    @classmethod
    def from_parameters(
            cls,
            xp: ArrayModule,
            params: ParameterSet,
            cfg: IntegratorConfig,
            volume: DiskVolumeConfig | None = None,
    ) -> SceneSampler:
        horizon = event_horizon_radius(params.mass, params.spin, cfg.horizon_model)
        return cls(
            xp=xp,
            horizon_radius=horizon,
            capture_radius=horizon * cfg.horizon_margin,
            escape_radius=cfg.escape_radius * params.mass,
            inner_radius=params.inner_radius,
            outer_radius=params.outer_radius,
            thickness=params.thickness,
            volume=volume if volume is not None else DiskVolumeConfig(),
        )

    def radius(self, p: Any) -> Any:
        return self.xp.sqrt(dot(self.xp, p, p))

    def captured(self, r: Any) -> Any:
        return r < self.capture_radius

    def escaped(self, r: Any) -> Any:
        return r > self.escape_radius

    def disk_density(self, p: Any) -> Any:
        """Volumetric disk density at positions p (..., 3), >= 0.

        density = max(0, 1 - |p / (outer, thickness, outer)|)
                  * (1 - |y| / thickness)^2
                  * smoothstep(inner, inner * inner_falloff, rho)
                  * brightness / rho^4

        Any intermediate value below density_threshold zeroes the sample.
        """
        xp = self.xp
        vol = self.volume

        scale = xp.asarray([self.outer_radius, self.thickness, self.outer_radius], dtype=xp.float64)
        q = p / scale
        density = xp.maximum(1.0 - xp.sqrt(dot(xp, q, q)), 0.0)
        alive = density >= vol.density_threshold

        vertical = xp.clip(1.0 - xp.abs(p[..., 1]) / self.thickness, 0.0, 1.0)
        density = density * vertical * vertical
        alive &= density >= vol.density_threshold

        rho = self.radius(p)
        density = density * smoothstep(xp, self.inner_radius, self.inner_radius * vol.inner_falloff, rho)
        alive &= density >= vol.density_threshold

        rho_safe = xp.maximum(rho, vol.min_radius)
        density = density * (vol.brightness / rho_safe ** 4)
        alive &= (density >= vol.density_threshold) & (rho >= vol.min_radius)

        return xp.where(alive, density, 0.0)
