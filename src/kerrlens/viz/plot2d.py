from __future__ import annotations

from typing import TYPE_CHECKING

from kerrlens.viz.mpl_backend import select_backend

select_backend()

import matplotlib.pyplot as plt  # noqa: E402

from kerrlens.backend import ArrayModule, to_numpy  # noqa: E402
from kerrlens.raymarch.config import RayState  # noqa: E402

if TYPE_CHECKING:
    from kerrlens.protocols import Drawable2D
    from kerrlens.raymarch.config import RayTrace

# marker, size per terminal state
_END_MARKERS: dict[RayState, tuple[str, int]] = {
    RayState.ABSORBED: ("o", 40),
    RayState.ESCAPED: (".", 25),
    RayState.BUDGET_EXHAUSTED: ("s", 25),
}


class RayPathPlotter:
    """Top-down (XZ) plot of traced ray paths around the hole."""

    def __init__(self, title: str = "kerrlens - ray paths (XZ)") -> None:
        self.fig, ax = plt.subplots(figsize=(8, 8))
        self.ax = ax
        ax.set_aspect("equal", "box")
        ax.set_xlabel("x [M]")
        ax.set_ylabel("z [M]")
        ax.set_title(title)

    def draw_drawable(self, drawable: Drawable2D, linewidth: float = 1.5, label: str | None = None) -> None:
        pts = drawable.polyline()
        self.ax.plot(pts[:, 0], pts[:, 1], linewidth=linewidth, label=label)

    def draw_ray(self, xp: ArrayModule, trace: RayTrace) -> None:
        pts = to_numpy(xp, trace.points)
        if pts.shape[0] == 0:
            return

        self.ax.plot(pts[:, 0], pts[:, 2], linewidth=1)
        end = pts[-1]
        marker, size = _END_MARKERS.get(trace.state, (".", 20))
        self.ax.scatter([end[0]], [end[2]], marker=marker, s=size)

    def show(self, xlim: tuple[float, float], zlim: tuple[float, float]) -> None:
        self._finish(xlim, zlim)
        plt.show()

    def save(self, path: str, xlim: tuple[float, float], zlim: tuple[float, float], dpi: int = 150) -> None:
        """Write the ray fan to an image file; works under the headless Agg backend."""
        self._finish(xlim, zlim)
        self.fig.savefig(path, dpi=dpi)

    def close(self) -> None:
        plt.close(self.fig)

    def _finish(self, xlim: tuple[float, float], zlim: tuple[float, float]) -> None:
        self.ax.set_xlim(*xlim)
        self.ax.set_ylim(*zlim)
        if self.ax.get_legend_handles_labels()[0]:
            self.ax.legend(loc="upper right")
        self.fig.tight_layout()
