from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np
from matplotlib import image as mpimg

from kerrlens.math_utils import rotate_about_axis
from kerrlens.shading.noise import hash2

if TYPE_CHECKING:
    from kerrlens.backend import ArrayModule
    from kerrlens.protocols import BackgroundImage

logger = logging.getLogger(__name__)


def direction_to_equirect_uv(xp: ArrayModule, d: Any) -> Any:
    """Map unit directions (..., 3) to equirectangular UV in [0, 1]^2.

    u = atan2(dz, dx) / 2pi + 0.5, v = asin(clamp(dy, -1, 1)) / pi + 0.5
    """
    u = xp.arctan2(d[..., 2], d[..., 0]) / (2.0 * math.pi) + 0.5
    v = xp.arcsin(xp.clip(d[..., 1], -1.0, 1.0)) / math.pi + 0.5
    return xp.stack([u, v], axis=-1)


class EquirectangularImage:
    """Bilinear sampler over an (H, W, 3) lat-long image.

    Wraps horizontally and clamps vertically; v = 1 is the top row.
    """

    def __init__(self, xp: ArrayModule, pixels: Any) -> None:
        arr = np.asarray(pixels)
        if arr.ndim != 3 or arr.shape[2] < 3:
            msg = f"expected an (H, W, 3|4) image, got shape {arr.shape}"
            raise ValueError(msg)
        if np.issubdtype(arr.dtype, np.integer):
            arr = arr.astype(np.float64) / float(np.iinfo(arr.dtype).max)
        self.xp = xp
        self.pixels = xp.asarray(arr[..., :3], dtype=xp.float64)

    @classmethod
    def from_file(cls, xp: ArrayModule, path: str) -> EquirectangularImage:
        """Load a PNG/JPEG lat-long image via matplotlib."""
        pixels = mpimg.imread(path)
        logger.info("loaded background image %s (%dx%d)", path, pixels.shape[1], pixels.shape[0])
        return cls(xp, pixels)

    def sample(self, uv: Any) -> Any:
        xp = self.xp
        height, width, _ = self.pixels.shape

        x = uv[..., 0] * width - 0.5
        y = (1.0 - uv[..., 1]) * height - 0.5

        x0 = xp.floor(x)
        y0 = xp.floor(y)
        fx = (x - x0)[..., None]
        fy = (y - y0)[..., None]

        x0i = xp.mod(x0.astype(xp.int64), width)
        x1i = xp.mod(x0i + 1, width)
        y0i = xp.clip(y0.astype(xp.int64), 0, height - 1)
        y1i = xp.clip(y0i + 1, 0, height - 1)

        px = self.pixels
        top = px[y0i, x0i] * (1.0 - fx) + px[y0i, x1i] * fx
        bottom = px[y1i, x0i] * (1.0 - fx) + px[y1i, x1i] * fx
        return top * (1.0 - fy) + bottom * fy


@dataclass(frozen=True, slots=True)
class StarfieldConfig:
    """Procedural star synthesis.

    Each octave hashes a lattice over UV (scale * (octave + 1) cells) and lights
    the cells whose hash exceeds its threshold.
    """

    octaves: int = 3
    scale: tuple[float, float] = (400.0, 200.0)
    threshold: float = 0.995
    threshold_step: float = 0.002
    weights: tuple[float, ...] = (1.0, 0.6, 0.35)
    star_color: tuple[float, float, float] = (1.0, 0.97, 0.92)
    space_color: tuple[float, float, float] = (0.002, 0.002, 0.006)
    rotation_speed: float = 0.005
    fallback_threshold: float = 1e-3


class BackgroundSampler:
    """Color seen along escaped ray directions.

    Texture first, procedural second: when an image is bound it is sampled,
    and wherever the sample is near-black (max channel below
    ``fallback_threshold``) the procedural starfield is used instead. Without an
    image every direction gets the starfield, which turns slowly about +y with
    time.
    """

    def __init__(
            self,
            xp: ArrayModule,
            image: BackgroundImage | None = None,
            config: StarfieldConfig | None = None,
    ) -> None:
        self.xp = xp
        self.image = image
        self.cfg = config if config is not None else StarfieldConfig()

    def stars(self, d: Any, time: float) -> Any:
        """Procedural starfield color for unit directions d (..., 3)."""
        xp = self.xp
        cfg = self.cfg

        if cfg.rotation_speed != 0.0 and time != 0.0:
            axis = xp.asarray([0.0, 1.0, 0.0], dtype=xp.float64)
            d = rotate_about_axis(xp, d, axis, xp.full(d.shape[:-1], time * cfg.rotation_speed))

        uv = direction_to_equirect_uv(xp, d)
        brightness = xp.zeros(d.shape[:-1], dtype=xp.float64)
        for octave in range(cfg.octaves):
            scale = float(octave + 1)
            cx = xp.floor(uv[..., 0] * cfg.scale[0] * scale) + 17.0 * octave
            cy = xp.floor(uv[..., 1] * cfg.scale[1] * scale) + 59.0 * octave
            h = hash2(xp, cx, cy)
            threshold = cfg.threshold - cfg.threshold_step * octave
            star = xp.where(h > threshold, (h - threshold) / (1.0 - threshold), 0.0)
            brightness = brightness + star * cfg.weights[octave]

        star_rgb = xp.asarray(cfg.star_color, dtype=xp.float64)
        space_rgb = xp.asarray(cfg.space_color, dtype=xp.float64)
        return space_rgb + brightness[..., None] * star_rgb

    def sample(self, d: Any, time: float) -> Any:
        """Background color for unit directions d (..., 3)."""
        xp = self.xp
        procedural = self.stars(d, time)
        if self.image is None:
            return procedural

        texel = self.image.sample(direction_to_equirect_uv(xp, d))
        near_black = xp.max(texel, axis=-1) < self.cfg.fallback_threshold
        return xp.where(near_black[..., None], procedural, texel)
