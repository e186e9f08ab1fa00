from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from kerrlens.math_utils import smoothstep
from kerrlens.raymarch.config import RayState

if TYPE_CHECKING:
    from kerrlens.backend import ArrayModule
    from kerrlens.config import ParameterSet
    from kerrlens.raymarch.config import MarchResult


@dataclass(frozen=True, slots=True)
class CompositorConfig:
    """Final-pixel post processing.

    glow_color, glow_scale:
        Photon-sphere glow = glow_color * glow_intensity * glow_scale
        * exp(-|r_min - r_ph| * (1 + sharpness_gain * lens_sharpness)).
    vignette_inner, vignette_outer:
        Smoothstep band (in aspect-corrected screen units) over which the
        vignette darkens by vignette_strength.
    gamma:
        Exponent of the fixed output curve, applied last.
    """

    glow_color: tuple[float, float, float] = (1.0, 0.72, 0.42)
    glow_scale: float = 0.35
    sharpness_gain: float = 2.0
    vignette_inner: float = 0.35
    vignette_outer: float = 1.6
    gamma: float = 0.85


class Compositor:
    """Turn terminal ray states into display RGB.

    Absorbed rays are pure black. Escaped and budget-exhausted rays show the
    accumulated disk emission plus the background attenuated by the ray's
    remaining opacity, plus the photon-sphere glow. The vignette and the gamma
    curve come last; the output is clipped to [0, 1] and always opaque.
    """

    def __init__(self, xp: ArrayModule, config: CompositorConfig | None = None) -> None:
        self.xp = xp
        self.cfg = config if config is not None else CompositorConfig()

    def photon_sphere_glow(self, min_radius: Any, params: ParameterSet) -> Any:
        xp = self.xp
        cfg = self.cfg
        falloff = 1.0 + cfg.sharpness_gain * params.lens_sharpness
        weight = params.glow_intensity * cfg.glow_scale * xp.exp(-xp.abs(min_radius - params.photon_sphere) * falloff)
        return xp.asarray(cfg.glow_color, dtype=xp.float64) * weight[..., None]

    def vignette(self, uv: Any, params: ParameterSet) -> Any:
        xp = self.xp
        dist = xp.sqrt(xp.sum(uv * uv, axis=-1))
        return 1.0 - params.vignette_strength * smoothstep(xp, self.cfg.vignette_inner, self.cfg.vignette_outer, dist)

    def tone(self, rgb: Any) -> Any:
        """Fixed gamma curve followed by a clip to the displayable range."""
        xp = self.xp
        return xp.clip(xp.maximum(rgb, 0.0) ** self.cfg.gamma, 0.0, 1.0)

    def compose(self, result: MarchResult, background: Any, uv: Any, params: ParameterSet) -> Any:
        """Final RGB for every ray.

        result: batch of N terminal states, background: (N, 3) colors along
        the final directions, uv: (N, 2) screen coordinates.
        """
        xp = self.xp
        rgb = result.color + background * result.opacity[..., None]
        rgb = rgb + self.photon_sphere_glow(result.min_radius, params)
        rgb = rgb * self.vignette(uv, params)[..., None]

        absorbed = result.state == int(RayState.ABSORBED)
        rgb = xp.where(absorbed[..., None], 0.0, rgb)
        return self.tone(rgb)
