from __future__ import annotations

import numpy as np
import pytest
from matplotlib import image as mpimg

from kerrlens.shading.background import (
    BackgroundSampler,
    EquirectangularImage,
    StarfieldConfig,
    direction_to_equirect_uv,
)


def _random_directions(n, seed=3):
    d = np.random.default_rng(seed).normal(size=(n, 3))
    return d / np.linalg.norm(d, axis=-1, keepdims=True)


class _ConstantImage:
    def __init__(self, rgb):
        self.rgb = np.asarray(rgb, dtype=np.float64)

    def sample(self, uv):
        return np.broadcast_to(self.rgb, uv.shape[:-1] + (3,))


def test_equirect_uv_axes():
    d = np.array([[-1.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, -1.0, 0.0]])
    uv = direction_to_equirect_uv(np, d)
    np.testing.assert_allclose(uv[0], [1.0, 0.5])
    np.testing.assert_allclose(uv[1], [0.5, 0.5])
    assert uv[2, 1] == pytest.approx(1.0)
    assert uv[3, 1] == pytest.approx(0.0)


def test_uv_in_unit_square():
    uv = direction_to_equirect_uv(np, _random_directions(500))
    assert np.all((uv >= 0.0) & (uv <= 1.0))


def test_starfield_is_deterministic_and_nonnegative():
    sampler = BackgroundSampler(np)
    d = _random_directions(2000)
    a = sampler.sample(d, 1.5)
    b = sampler.sample(d, 1.5)
    np.testing.assert_array_equal(a, b)
    assert np.all(a >= 0.0)


def test_starfield_has_some_stars_on_dark_space():
    sampler = BackgroundSampler(np)
    colors = sampler.stars(_random_directions(20000), 0.0)
    space = np.asarray(StarfieldConfig().space_color)
    lit = np.any(colors > space + 1e-9, axis=-1)
    assert 0 < lit.sum() < colors.shape[0] // 2
    assert np.allclose(colors[~lit], space)


def test_starfield_rotates_with_time():
    sampler = BackgroundSampler(np, config=StarfieldConfig(rotation_speed=1.0))
    d = _random_directions(5000)
    assert not np.array_equal(sampler.stars(d, 0.0), sampler.stars(d, 2.0))


def test_texture_takes_precedence():
    sampler = BackgroundSampler(np, image=_ConstantImage((0.2, 0.4, 0.6)))
    colors = sampler.sample(_random_directions(10), 0.0)
    np.testing.assert_allclose(colors, np.broadcast_to([0.2, 0.4, 0.6], (10, 3)))


def test_near_black_texture_falls_back_to_stars():
    sampler = BackgroundSampler(np, image=_ConstantImage((0.0, 0.0, 0.0)))
    d = _random_directions(100)
    np.testing.assert_array_equal(sampler.sample(d, 0.0), sampler.stars(d, 0.0))


def test_image_bilinear_sampling():
    pixels = np.zeros((2, 2, 3))
    pixels[0, :, 0] = 1.0  # top row red
    pixels[1, :, 2] = 1.0  # bottom row blue
    img = EquirectangularImage(np, pixels)

    top = img.sample(np.array([[0.25, 0.75]]))
    np.testing.assert_allclose(top[0], [1.0, 0.0, 0.0])
    bottom = img.sample(np.array([[0.25, 0.25]]))
    np.testing.assert_allclose(bottom[0], [0.0, 0.0, 1.0])
    middle = img.sample(np.array([[0.25, 0.5]]))
    np.testing.assert_allclose(middle[0], [0.5, 0.0, 0.5])


def test_image_wraps_horizontally():
    pixels = np.zeros((1, 4, 3))
    pixels[0, 0] = 1.0
    pixels[0, 3] = 0.0
    img = EquirectangularImage(np, pixels)
    # halfway between the last and the first column
    seam = img.sample(np.array([[1.0, 0.5]]))
    np.testing.assert_allclose(seam[0], 0.5)


def test_image_converts_integer_pixels():
    pixels = np.full((2, 2, 4), 255, dtype=np.uint8)
    img = EquirectangularImage(np, pixels)
    assert img.pixels.shape == (2, 2, 3)
    np.testing.assert_allclose(img.pixels, 1.0)


def test_image_rejects_bad_shape():
    with pytest.raises(ValueError, match="image"):
        EquirectangularImage(np, np.zeros((4, 4)))


def test_image_from_file(tmp_path):
    pixels = np.zeros((4, 8, 3))
    pixels[..., 1] = 1.0
    path = tmp_path / "sky.png"
    mpimg.imsave(path, pixels)

    img = EquirectangularImage.from_file(np, str(path))
    assert img.pixels.shape == (4, 8, 3)
    np.testing.assert_allclose(img.sample(np.array([[0.3, 0.6]]))[0], [0.0, 1.0, 0.0], atol=1e-6)
