from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from kerrlens.math_utils import mix, smoothstep
from kerrlens.physics.horizon import frame_dragging_omega
from kerrlens.shading.noise import value_noise3

if TYPE_CHECKING:
    from kerrlens.backend import ArrayModule
    from kerrlens.config import ParameterSet

RGB = tuple[float, float, float]


@dataclass(frozen=True, slots=True)
class DiskShadingConfig:
    """Color model coefficients of the accretion disk.

    These were tuned by eye; none of them is a physical constant.

    Fields:
      blue, neutral, red:
        Doppler anchor colors for approaching, transverse and receding material.
      hot:
        Near-white color the base blends toward as temperature rises.
      temperature_exponent:
        Exponent on smoothstep(outer, inner, r).
      hot_mix:
        Blend weight toward ``hot`` per unit temperature.
      temperature_gain, base_gain:
        Brightness = temperature * temperature_gain + base_gain.
      beaming:
        Relativistic beaming multiplier 1 + doppler * beaming.
      turbulence_strength:
        0 disables turbulence; noise mean is kept at 1.
      octaves:
        Number of turbulence octaves; frequency doubles per octave.
      radial_frequency, azimuth_cells, polar_frequency:
        Noise lattice scale along spherical radius, azimuth (cells per turn)
        and polar angle.
      channel_offsets:
        Per color channel lattice offsets (radial, azimuth, polar). Azimuth
        offsets must be whole cells to keep the noise seamless.
      inner_edge, outer_edge:
        Color fades in over [inner, inner * inner_edge] and out over
        [outer * outer_edge, outer].
      inner_glow_color, inner_glow_strength, inner_glow_falloff:
        Exponential glow hugging the inner edge, added unconditionally.
    """

    blue: RGB = (0.62, 0.74, 1.0)
    neutral: RGB = (1.0, 0.78, 0.52)
    red: RGB = (1.0, 0.38, 0.16)
    hot: RGB = (1.0, 0.96, 0.9)
    temperature_exponent: float = 0.75
    hot_mix: float = 0.6
    temperature_gain: float = 2.2
    base_gain: float = 0.35
    beaming: float = 0.65
    turbulence_strength: float = 0.4
    octaves: int = 3
    radial_frequency: float = 1.5
    azimuth_cells: int = 24
    polar_frequency: float = 6.0
    channel_offsets: tuple[RGB, RGB, RGB] = ((0.0, 0.0, 0.0), (31.4, 0.0, 17.9), (63.1, 0.0, 5.7))
    inner_edge: float = 1.15
    outer_edge: float = 0.85
    inner_glow_color: RGB = (1.0, 0.72, 0.45)
    inner_glow_strength: float = 0.3
    inner_glow_falloff: float = 2.0
    min_radius: float = 1e-3


class DiskShader:
    """Color of disk material at positions inside the disk volume.

    Temperature rises toward the inner edge, a Keplerian (plus frame-dragging)
    phase drives a signed Doppler factor that tints and beams the color, and
    multi-octave value noise over spherical coordinates adds turbulence. Octave
    rotation offsets alternate in sign, which reads as differential rotation.
    """

    def __init__(self, xp: ArrayModule, config: DiskShadingConfig | None = None) -> None:
        self.xp = xp
        self.cfg = config if config is not None else DiskShadingConfig()

    def _rgb(self, c: RGB) -> Any:
        return self.xp.asarray(c, dtype=self.xp.float64)

    def angular_velocity(self, r: Any, params: ParameterSet) -> Any:
        """Keplerian omega = 1/sqrt(r), boosted by frame dragging when spinning."""
        xp = self.xp
        r_safe = xp.maximum(r, self.cfg.min_radius)
        omega = 1.0 / xp.sqrt(r_safe)
        if params.spin > 0.0:
            omega = omega + frame_dragging_omega(xp, r_safe, params.mass, params.spin)
        return omega

    def turbulence(self, rho: Any, theta: Any, polar: Any, omega: Any, params: ParameterSet, time: float) -> Any:
        """Per-channel multiplicative turbulence with mean 1, shape (..., 3)."""
        xp = self.xp
        cfg = self.cfg

        total = xp.zeros(rho.shape + (3,), dtype=xp.float64)
        norm = 0.0
        amp = 1.0
        for octave in range(cfg.octaves):
            freq = 2.0 ** octave
            sign = 1.0 if octave % 2 == 0 else -1.0
            twist = sign * time * params.disk_rotation_speed * omega * (1.0 + 0.5 * octave)
            period = cfg.azimuth_cells * freq
            az = (theta + twist) / (2.0 * math.pi) * period

            channels = []
            for off_r, off_az, off_polar in cfg.channel_offsets:
                coords = xp.stack(
                    [
                        rho * (cfg.radial_frequency * freq) + off_r,
                        az + off_az,
                        polar * (cfg.polar_frequency * freq) + off_polar,
                    ],
                    axis=-1,
                )
                channels.append(value_noise3(xp, coords, period_y=period))

            total = total + amp * xp.stack(channels, axis=-1)
            norm += amp
            amp *= 0.5

        s = cfg.turbulence_strength
        return (1.0 - s) + s * 2.0 * (total / norm)

    def shade(self, p: Any, params: ParameterSet, time: float) -> Any:
        """Linear RGB (..., 3) of disk material at p; may exceed 1."""
        xp = self.xp
        cfg = self.cfg
        inner = params.inner_radius
        outer = params.outer_radius

        x = p[..., 0]
        y = p[..., 1]
        z = p[..., 2]
        r = xp.sqrt(x * x + z * z)
        theta = xp.arctan2(z, x)
        rho = xp.sqrt(x * x + y * y + z * z)
        polar = xp.arccos(xp.clip(y / xp.maximum(rho, cfg.min_radius), -1.0, 1.0))

        temperature = smoothstep(xp, outer, inner, r) ** cfg.temperature_exponent * params.disk_temperature

        # Doppler factor: > 0 approaching (blueshift), < 0 receding (redshift)
        omega = self.angular_velocity(r, params)
        doppler = xp.sin(theta - time * params.disk_rotation_speed * omega)
        beaming = 1.0 + doppler * cfg.beaming

        neutral = self._rgb(cfg.neutral)
        d = doppler[..., None]
        approaching = mix(neutral, self._rgb(cfg.blue), d)
        receding = mix(neutral, self._rgb(cfg.red), -d)
        base = xp.where(d >= 0.0, approaching, receding)
        base = mix(base, self._rgb(cfg.hot), xp.clip(temperature * cfg.hot_mix, 0.0, 1.0)[..., None])

        brightness = (temperature * cfg.temperature_gain + cfg.base_gain) * beaming
        color = base * brightness[..., None]
        color = color * self.turbulence(rho, theta, polar, omega, params, time)

        mask = smoothstep(xp, inner, inner * cfg.inner_edge, r) * (1.0 - smoothstep(xp, outer * cfg.outer_edge, outer, r))
        color = color * mask[..., None]

        glow = cfg.inner_glow_strength * xp.exp(-xp.maximum(r - inner, 0.0) * cfg.inner_glow_falloff)
        return color + self._rgb(cfg.inner_glow_color) * glow[..., None]
