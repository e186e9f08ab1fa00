from __future__ import annotations

import logging
import os

import numpy as np

from kerrlens.backend import get_array_module
from kerrlens.config import INTERSTELLAR_PARAMETERS, CameraState
from kerrlens.raymarch.config import IntegratorConfig
from kerrlens.renderer import Renderer
from kerrlens.shading.background import BackgroundSampler, EquirectangularImage
from kerrlens.viz.plot3d import FrameViewer, RenderFrame, save_image

# ============================================================
# TOP-LEVEL PARAMETERS (edit these)
# ============================================================

USE_CUDA = False

RENDER_WIDTH = 320
RENDER_HEIGHT = 180

PARAMS = INTERSTELLAR_PARAMETERS

# Slightly above the disk plane, looking at the hole
CAMERA = CameraState(
    position=(0.0, 1.2, PARAMS.observer_distance),
    target=(0.0, 0.0, 0.0),
    time=0.0,
    roll=0.0,
    focal_length=1.2,
)

MAX_STEPS = 1200
STEP_SIZE = 0.1

# Optional equirectangular PNG/JPEG; empty string = procedural stars only
BACKGROUND_IMAGE = os.environ.get("KERRLENS_BACKGROUND", "")

OUTPUT_PATH = "render.png"
SHOW = True


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    xp = get_array_module(USE_CUDA)

    image = EquirectangularImage.from_file(xp, BACKGROUND_IMAGE) if BACKGROUND_IMAGE else None
    renderer = Renderer(
        xp,
        integrator=IntegratorConfig(max_steps=MAX_STEPS, step_size=STEP_SIZE),
        background=BackgroundSampler(xp, image=image),
    )

    img = renderer.render(PARAMS, CAMERA, RENDER_WIDTH, RENDER_HEIGHT)
    save_image(OUTPUT_PATH, img)
    logging.getLogger(__name__).info("saved %s", OUTPUT_PATH)

    if SHOW:
        viewer = FrameViewer(top_down=False)
        _ = viewer.animate(
            [RenderFrame(img=img, cam_pos=np.asarray(CAMERA.position), time=CAMERA.time)],
            horizon=2.0 * PARAMS.mass,
            disk_inner=PARAMS.inner_radius,
            disk_outer=PARAMS.outer_radius,
        )
        viewer.show()


if __name__ == "__main__":
    main()
