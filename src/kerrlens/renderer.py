from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from kerrlens.backend import to_numpy
from kerrlens.camera.camera3d import Camera3D
from kerrlens.raymarch.marcher import GeodesicMarcher
from kerrlens.shading.background import BackgroundSampler
from kerrlens.shading.compositor import Compositor

if TYPE_CHECKING:
    import numpy as np

    from kerrlens.backend import ArrayModule
    from kerrlens.config import CameraState, ParameterSet, ParameterStore
    from kerrlens.raymarch.config import IntegratorConfig
    from kerrlens.scene import DiskVolumeConfig
    from kerrlens.shading.disk import DiskShader

logger = logging.getLogger(__name__)


class Renderer:
    """Per-frame pipeline: camera rays -> geodesic march -> background -> compositor.

    The parameter record is sanitized once at frame start and used unchanged
    for every ray of the frame. Rendering is deterministic: the same
    parameters, camera, time and resolution give bit-identical pixels.
    """

    def __init__(
            self,
            xp: ArrayModule,
            integrator: IntegratorConfig | None = None,
            background: BackgroundSampler | None = None,
            compositor: Compositor | None = None,
            shader: DiskShader | None = None,
            volume: DiskVolumeConfig | None = None,
    ) -> None:
        self.xp = xp
        self.marcher = GeodesicMarcher(xp, config=integrator, shader=shader, volume=volume)
        self.background = background if background is not None else BackgroundSampler(xp)
        self.compositor = compositor if compositor is not None else Compositor(xp)

    def render(self, params: ParameterSet, camera: CameraState, width: int, height: int) -> np.ndarray:
        """Render one frame and return a NumPy (H, W, 3) float64 image in [0, 1]."""
        xp = self.xp
        t0 = time.perf_counter()

        snapshot = params.sanitized()
        cam = Camera3D.from_state(camera)
        uv = cam.screen_coordinates(xp, width, height).reshape(-1, 2)
        rd = cam.ray_directions(xp, uv)
        origin = xp.asarray(camera.position, dtype=xp.float64)

        result = self.marcher.march(origin, rd, snapshot, camera.time)
        background = self.background.sample(result.direction, camera.time)
        rgb = self.compositor.compose(result, background, uv, snapshot)
        img = to_numpy(xp, rgb.reshape(height, width, 3))

        logger.debug("rendered %dx%d frame in %.3f s", width, height, time.perf_counter() - t0)
        return img

    def render_from_store(self, store: ParameterStore, camera: CameraState, width: int, height: int) -> np.ndarray:
        """Snapshot the shared parameters once, then render with that snapshot."""
        return self.render(store.snapshot(), camera, width, height)
