from __future__ import annotations

import numpy as np
import pytest

from kerrlens.config import ParameterSet
from kerrlens.geometry import Circle
from kerrlens.raymarch.config import IntegratorConfig
from kerrlens.raymarch.marcher import GeodesicMarcher
from kerrlens.viz.plot2d import RayPathPlotter
from kerrlens.viz.plot3d import FrameViewer, RenderFrame, save_image


def test_circle_polyline():
    pts = Circle(3.0).polyline(64)
    assert pts.shape == (64, 2)
    np.testing.assert_allclose(np.linalg.norm(pts, axis=-1), 3.0)


def test_ray_path_plot_saves(tmp_path):
    marcher = GeodesicMarcher(np, IntegratorConfig(max_steps=100, step_size=0.5))
    plotter = RayPathPlotter()
    plotter.draw_drawable(Circle(2.0), label="Horizon")
    for b in (1.0, 6.0):
        trace = marcher.trace(np.array([b, 0.0, -20.0]), np.array([0.0, 0.0, 1.0]), ParameterSet())
        plotter.draw_ray(np, trace)

    out = tmp_path / "paths.png"
    plotter.save(str(out), (-20, 20), (-20, 20))
    plotter.close()
    assert out.stat().st_size > 0


def test_save_image(tmp_path):
    out = tmp_path / "frame.png"
    save_image(str(out), np.full((4, 6, 3), 0.5))
    assert out.stat().st_size > 0


def test_animate_builds_frames():
    frames = [
        RenderFrame(img=np.zeros((4, 6, 3)), cam_pos=np.array([0.0, 0.0, 15.0]), time=0.0),
        RenderFrame(img=np.ones((4, 6, 3)), cam_pos=np.array([15.0, 0.0, 0.0]), time=1.0),
    ]
    viewer = FrameViewer(top_down=True)
    ani = viewer.animate(frames, horizon=2.0, disk_inner=3.0, disk_outer=9.0)
    assert ani is not None
    viewer.close()


def test_animate_rejects_empty_frames():
    viewer = FrameViewer(top_down=False)
    with pytest.raises(ValueError, match="no frames"):
        viewer.animate([], horizon=2.0, disk_inner=3.0, disk_outer=9.0)
    viewer.close()


def test_animate_scene_uses_parameter_radii():
    frames = [RenderFrame(img=np.zeros((4, 6, 3)), cam_pos=np.array([0.0, 1.0, 30.0]), time=0.0)]
    viewer = FrameViewer()
    ani = viewer.animate_scene(frames, ParameterSet(), horizon=2.0)
    assert ani is not None
    lo, hi = viewer.ax_map.get_xlim()
    assert hi > 30.0
    viewer.close()
