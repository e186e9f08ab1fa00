from __future__ import annotations

import logging

import numpy as np

from kerrlens.backend import get_array_module
from kerrlens.config import CINEMATIC_PARAMETERS, INTERSTELLAR_PARAMETERS, CameraState, ParameterSet, ParameterStore
from kerrlens.physics.horizon import event_horizon_radius, kerr_isco_prograde
from kerrlens.raymarch.config import IntegratorConfig
from kerrlens.renderer import Renderer
from kerrlens.viz.plot3d import FrameViewer, RenderFrame

try:
    from tqdm import tqdm
except ImportError:  # pragma: no cover
    tqdm = None

# ============================================================
# TOP-LEVEL PARAMETERS (edit these)
# ============================================================

USE_CUDA = False
USE_TQDM = True

FRAMES_N = 12
RENDER_WIDTH = 160
RENDER_HEIGHT = 90

CAMERA_HEIGHT = 1.5
TIME_PER_FRAME = 0.5

# Pull the disk inner edge onto the prograde ISCO of the current spin
SNAP_INNER_TO_ISCO = True

# Swap the whole parameter record for the Interstellar preset at this frame (None keeps cinematic)
SWITCH_PRESET_AT: int | None = FRAMES_N // 2

MAX_STEPS = 800
INTERVAL_MS = 150

logger = logging.getLogger(__name__)


def camera_path_orbit(i: int, n_frames: int, distance: float, time: float) -> CameraState:
    """Circle the hole in the XZ plane at a fixed height, always looking at the origin."""
    a = 2.0 * np.pi * i / float(max(1, n_frames))
    return CameraState(
        position=(distance * float(np.sin(a)), CAMERA_HEIGHT, distance * float(np.cos(a))),
        target=(0.0, 0.0, 0.0),
        time=time,
    )


def load_preset(store: ParameterStore, preset: ParameterSet) -> None:
    """Replace every shared parameter at once, optionally moving the disk edge to the ISCO."""
    p = store.replace_all(preset)
    if SNAP_INNER_TO_ISCO:
        isco = kerr_isco_prograde(1.0, p.spin)
        logger.info("spin=%.3f prograde ISCO=%.3f M", p.spin, isco)
        store.update(disk_inner_radius=isco)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    xp = get_array_module(USE_CUDA)

    store = ParameterStore()
    load_preset(store, CINEMATIC_PARAMETERS)

    renderer = Renderer(xp, integrator=IntegratorConfig(max_steps=MAX_STEPS))

    frames: list[RenderFrame] = []
    it = range(FRAMES_N)
    if USE_TQDM and tqdm is not None:
        it = tqdm(it, total=FRAMES_N, desc="Rendering frames")

    for i in it:
        if i == SWITCH_PRESET_AT:
            load_preset(store, INTERSTELLAR_PARAMETERS)
        params = store.snapshot()
        camera = camera_path_orbit(i, FRAMES_N, params.observer_distance * params.mass, i * TIME_PER_FRAME)
        img = renderer.render_from_store(store, camera, RENDER_WIDTH, RENDER_HEIGHT)
        frames.append(
            RenderFrame(img=img, cam_pos=np.asarray(camera.position), time=camera.time, cam_target=camera.target),
        )

    params = store.snapshot()
    viewer = FrameViewer(top_down=True)
    ani = viewer.animate_scene(
        frames,
        params,
        horizon=event_horizon_radius(params.mass, params.spin),
        interval_ms=INTERVAL_MS,
    )
    _ = ani
    viewer.show()


if __name__ == "__main__":
    main()
