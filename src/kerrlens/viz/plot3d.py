from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np
from matplotlib import patches
from matplotlib.animation import FuncAnimation

from kerrlens.viz.mpl_backend import select_backend

select_backend()

import matplotlib.pyplot as plt  # noqa: E402

if TYPE_CHECKING:
    from collections.abc import Sequence

    from kerrlens.config import ParameterSet


@dataclass(frozen=True, slots=True)
class RenderFrame:
    """One rendered frame of an animation.

    Attributes
    ----------
    img:
        (H, W, 3) NumPy image in [0, 1], as returned by Renderer.render.
    cam_pos:
        Camera position (3,) the frame was rendered from.
    time:
        Scene time of the frame (drives disk rotation and starfield drift).
    cam_target:
        Point the camera looked at; the top-down panel draws the view arrow toward it.

    """

    img: np.ndarray
    cam_pos: np.ndarray
    time: float
    cam_target: tuple[float, float, float] = (0.0, 0.0, 0.0)


def save_image(path: str, img: np.ndarray) -> None:
    """Write an (H, W, 3) image to disk; the format follows the file extension."""
    plt.imsave(path, np.clip(img, 0.0, 1.0))


class FrameViewer:
    """Rendered frames next to a top-down map of the hole, disk and camera track."""

    def __init__(self, *, top_down: bool = True) -> None:
        if top_down:
            self.fig, (self.ax_img, self.ax_map) = plt.subplots(1, 2, figsize=(13, 5.5))
        else:
            self.fig, self.ax_img = plt.subplots(figsize=(8, 5))
            self.ax_map = None

        self.ax_img.set_xticks([])
        self.ax_img.set_yticks([])

        self._image: Any = None
        self._trail: Any = None
        self._camera: Any = None
        self._view: Any = None

    def _draw_map(self, horizon: float, disk_inner: float, disk_outer: float, extent: float) -> None:
        ax = self.ax_map
        ax.cla()
        ax.set_aspect("equal", "box")
        ax.set_xlim(-extent, extent)
        ax.set_ylim(-extent, extent)
        ax.set_xlabel("x [M]")
        ax.set_ylabel("z [M]")
        ax.set_title("Top-down (XZ)")

        ax.add_patch(patches.Annulus((0.0, 0.0), disk_outer, disk_outer - disk_inner, alpha=0.35, label="Disk"))
        ax.add_patch(patches.Circle((0.0, 0.0), horizon, color="black", label="Horizon"))

        self._trail, = ax.plot([], [], linewidth=1.0, alpha=0.7, label="Camera track")
        self._camera = ax.scatter([], [], s=50, marker="x", zorder=5)
        self._view = ax.quiver(
            [0.0], [0.0], [0.0], [0.0],
            angles="xy", scale_units="xy", scale=1.0, width=0.004, zorder=6,
        )
        ax.legend(loc="upper right")

    def _show_frame(self, frames: Sequence[RenderFrame], i: int) -> list[Any]:
        f = frames[i]
        self._image.set_data(f.img)
        self.ax_img.set_title(f"t = {f.time:.2f}")
        if self.ax_map is None:
            return [self._image]

        track = np.asarray([fr.cam_pos for fr in frames[: i + 1]])
        self._trail.set_data(track[:, 0], track[:, 2])
        self._camera.set_offsets([[f.cam_pos[0], f.cam_pos[2]]])

        look = np.asarray(f.cam_target) - f.cam_pos
        self._view.set_offsets([[f.cam_pos[0], f.cam_pos[2]]])
        self._view.set_UVC([look[0] * 0.25], [look[2] * 0.25])
        return [self._image, self._trail, self._camera, self._view]

    def animate(
            self,
            frames: Sequence[RenderFrame],
            horizon: float,
            disk_inner: float,
            disk_outer: float,
            extent: float = 20.0,
            interval_ms: int = 120,
    ) -> FuncAnimation:
        """Build a looping animation over pre-rendered frames.

        Keep a reference to the returned animation until the figure is shown.
        """
        if not frames:
            msg = "no frames to animate"
            raise ValueError(msg)

        self._image = self.ax_img.imshow(frames[0].img, origin="upper")
        if self.ax_map is not None:
            self._draw_map(horizon, disk_inner, disk_outer, extent)
        self._show_frame(frames, 0)

        return FuncAnimation(
            self.fig,
            lambda i: self._show_frame(frames, i),
            frames=len(frames),
            interval=interval_ms,
            repeat=True,
            blit=False,
        )

    def animate_scene(
            self,
            frames: Sequence[RenderFrame],
            params: ParameterSet,
            horizon: float,
            interval_ms: int = 120,
    ) -> FuncAnimation:
        """animate() with the disk radii and map extent taken from a parameter record."""
        reach = max((float(np.linalg.norm(f.cam_pos)) for f in frames), default=0.0)
        return self.animate(
            frames,
            horizon=horizon,
            disk_inner=params.inner_radius,
            disk_outer=params.outer_radius,
            extent=max(reach, params.outer_radius) * 1.15,
            interval_ms=interval_ms,
        )

    def close(self) -> None:
        plt.close(self.fig)

    def show(self) -> None:
        self.fig.tight_layout()
        plt.show()
