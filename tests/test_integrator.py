"""Tests for the path tracing integrator.

Tests cover:
- Sky gradient for rays that escape
- Bounce budget cut-off returning the accumulated attenuation
- Deterministic single-bounce colors for each material
- Full renders: output layout, reproducibility, serial/parallel agreement
- Row-by-row rendering with progress reporting
- Buffer limits and access before the first render
"""

import math

import numpy as np
import pytest


def _small_config(**kwargs):
    from pathtracer.camera import CameraConfig

    options = {"image_width": 24, "aspect_ratio": 2.0, "samples_per_pixel": 4, "max_depth": 8}
    options.update(kwargs)
    return CameraConfig(**options)


class TestBackground:
    """Tests for rays that miss every sphere."""

    def test_straight_up_is_zenith_color(self, fresh_scene):
        from pathtracer.core.integrator import trace_ray

        color = trace_ray(fresh_scene, (0.0, 0.0, 0.0), (0.0, 1.0, 0.0))
        assert color == pytest.approx((0.5, 0.7, 1.0))

    def test_straight_down_is_white(self, fresh_scene):
        from pathtracer.core.integrator import trace_ray

        color = trace_ray(fresh_scene, (0.0, 0.0, 0.0), (0.0, -3.0, 0.0))
        assert color == pytest.approx((1.0, 1.0, 1.0))

    def test_horizontal_is_halfway(self, fresh_scene):
        from pathtracer.core.integrator import trace_ray

        color = trace_ray(fresh_scene, (0.0, 0.0, 0.0), (1.0, 0.0, 0.0))
        assert color == pytest.approx((0.75, 0.85, 1.0))


class TestRayColor:
    """Tests for the bounce loop."""

    def test_zero_depth_returns_white(self, fresh_scene):
        from pathtracer.core.integrator import trace_ray
        from pathtracer.materials import Lambertian

        fresh_scene.add_sphere((0.0, 0.0, -1.0), 0.5, Lambertian(albedo=(0.2, 0.2, 0.2)))
        color = trace_ray(fresh_scene, (0.0, 0.0, 0.0), (0.0, 0.0, -1.0), max_depth=0)
        assert color == pytest.approx((1.0, 1.0, 1.0))

    def test_one_bounce_returns_albedo(self, fresh_scene):
        """After one scatter the budget is spent, leaving only the attenuation."""
        from pathtracer.core.integrator import trace_ray
        from pathtracer.materials import Lambertian

        fresh_scene.add_sphere((0.0, -100.0, 0.0), 100.0, Lambertian(albedo=(0.3, 0.5, 0.7)))
        color = trace_ray(fresh_scene, (0.0, 1.0, 0.0), (0.0, -1.0, 0.0), max_depth=1)
        assert color == pytest.approx((0.3, 0.5, 0.7))

    def test_mirror_reflects_sky(self, fresh_scene):
        from pathtracer.core.integrator import trace_ray
        from pathtracer.materials import Metal

        fresh_scene.add_sphere((0.0, -100.0, 0.0), 100.0, Metal(albedo=(0.8, 0.6, 0.2), fuzz=0.0))
        color = trace_ray(fresh_scene, (-1.0, 1.0, 0.0), (1.0, -1.0, 0.0), max_depth=5)

        # Reflected direction is (1, 1, 0); blend factor 0.5 * (1/sqrt(2) + 1)
        a = 0.5 * (1.0 / math.sqrt(2.0) + 1.0)
        sky = np.array([1.0 - 0.5 * a, 1.0 - 0.3 * a, 1.0])
        expected = np.array([0.8, 0.6, 0.2]) * sky
        assert color == pytest.approx(tuple(expected), abs=1e-9)

    def test_unit_index_glass_is_transparent(self, fresh_scene):
        """Head-on through an index-1 sphere the ray passes straight through."""
        from pathtracer.core.integrator import trace_ray
        from pathtracer.materials import Dielectric

        fresh_scene.add_sphere((0.0, 0.0, -3.0), 1.0, Dielectric(refractive_index=1.0))
        color = trace_ray(fresh_scene, (0.0, 0.0, 0.0), (0.0, 0.0, -1.0), max_depth=5)
        assert color == pytest.approx((0.75, 0.85, 1.0))

    def test_enclosed_path_runs_out_of_depth(self, fresh_scene):
        """A ray trapped inside a white diffuse shell ends with the depth cut-off."""
        from pathtracer.core.integrator import trace_ray
        from pathtracer.materials import Lambertian

        fresh_scene.add_sphere((0.0, 0.0, 0.0), 10.0, Lambertian(albedo=(1.0, 1.0, 1.0)))
        color = trace_ray(fresh_scene, (0.0, 0.0, 0.0), (0.0, 0.0, 1.0), max_depth=6)
        assert color == pytest.approx((1.0, 1.0, 1.0))

    def test_closed_black_shell_absorbs(self, fresh_scene):
        from pathtracer.core.integrator import trace_ray
        from pathtracer.materials import Lambertian

        fresh_scene.add_sphere((0.0, 0.0, 0.0), 10.0, Lambertian(albedo=(0.0, 0.0, 0.0)))
        color = trace_ray(fresh_scene, (0.0, 0.0, 0.0), (0.3, 0.1, 1.0), max_depth=10)
        assert color == pytest.approx((0.0, 0.0, 0.0))


class TestRenderImage:
    """Tests for render_image and Camera.render."""

    def test_output_layout(self, fresh_scene):
        from pathtracer.camera import Camera

        pixels = Camera(_small_config()).render(fresh_scene)
        assert pixels.shape == (12, 24, 3)
        assert pixels.dtype == np.uint8

    def test_sky_is_bluer_at_the_top(self, fresh_scene):
        from pathtracer.camera import Camera

        pixels = Camera(_small_config()).render(fresh_scene)
        # Red fades toward the zenith; blue stays saturated
        assert pixels[0, :, 0].mean() < pixels[-1, :, 0].mean()
        assert np.all(pixels[:, :, 2] == 255)

    def test_zero_depth_is_all_white(self, fresh_scene):
        from pathtracer.camera import Camera
        from pathtracer.scene import create_demo_scene

        scene = create_demo_scene()
        pixels = Camera(_small_config(max_depth=0)).render(scene)
        assert np.all(pixels == 255)

    def test_same_seed_is_reproducible(self):
        from pathtracer.camera import Camera
        from pathtracer.scene import create_demo_scene

        scene = create_demo_scene()
        camera = Camera(_small_config(seed=7))
        first = camera.render(scene)
        second = camera.render(scene)
        np.testing.assert_array_equal(first, second)

    def test_different_seeds_differ(self):
        from pathtracer.camera import Camera
        from pathtracer.scene import create_demo_scene

        scene = create_demo_scene()
        first = Camera(_small_config(seed=1)).render(scene)
        second = Camera(_small_config(seed=2)).render(scene)
        assert not np.array_equal(first, second)

    def test_parallel_matches_serial(self):
        from pathtracer.camera import Camera
        from pathtracer.scene import create_demo_scene

        scene = create_demo_scene()
        serial = Camera(_small_config(seed=3)).render(scene)
        parallel = Camera(_small_config(seed=3, parallel=True)).render(scene)
        np.testing.assert_array_equal(serial, parallel)

    def test_progress_rendering_matches_single_launch(self):
        from pathtracer.camera import Camera
        from pathtracer.scene import create_demo_scene

        scene = create_demo_scene()
        camera = Camera(_small_config(seed=5))
        reference = camera.render(scene)

        calls = []
        rowwise = camera.render(scene, progress=lambda done, total: calls.append((done, total)))

        assert calls == [(row, 12) for row in range(1, 13)]
        np.testing.assert_array_equal(reference, rowwise)

    def test_more_samples_converge_to_same_color(self):
        """Averaged color is stable across sample counts while per-pixel noise shrinks."""
        from pathtracer.camera import Camera, CameraConfig
        from pathtracer.core.integrator import get_linear_image
        from pathtracer.preview import compute_rmse
        from pathtracer.scene import create_demo_scene

        scene = create_demo_scene()
        images = {}
        for spp in (16, 64, 256):
            Camera(CameraConfig(image_width=16, samples_per_pixel=spp, seed=11)).render(scene)
            images[spp] = get_linear_image()

        np.testing.assert_allclose(
            images[16].mean(axis=(0, 1)), images[256].mean(axis=(0, 1)), atol=0.03
        )
        np.testing.assert_allclose(
            images[64].mean(axis=(0, 1)), images[256].mean(axis=(0, 1)), atol=0.02
        )
        assert compute_rmse(images[64], images[256]) < compute_rmse(images[16], images[256])

    def test_linear_image_matches_pixels(self):
        from pathtracer.camera import Camera
        from pathtracer.core.integrator import get_linear_image
        from pathtracer.preview import image_to_uint8
        from pathtracer.scene import create_demo_scene

        pixels = Camera(_small_config()).render(create_demo_scene())
        linear = get_linear_image()
        assert linear.shape == (12, 24, 3)
        assert np.all(linear >= 0.0)
        np.testing.assert_array_equal(image_to_uint8(linear), pixels)

    def test_oversized_image_is_rejected(self, fresh_scene):
        from pathtracer.camera import Camera

        with pytest.raises(ValueError):
            Camera(_small_config(image_width=2048)).render(fresh_scene)

    def test_pixels_before_render(self, monkeypatch):
        from pathtracer.core import integrator

        monkeypatch.setattr(integrator, "_rendered_size", None)
        with pytest.raises(RuntimeError):
            integrator.get_pixels()
        with pytest.raises(RuntimeError):
            integrator.get_linear_image()

    def test_render_switches_between_scenes(self, fresh_scene):
        """Rendering one scene after another uploads the second scene."""
        from pathtracer.camera import Camera
        from pathtracer.scene import create_demo_scene

        camera = Camera(_small_config(max_depth=2))
        demo = camera.render(create_demo_scene())
        empty = camera.render(fresh_scene)
        assert not np.array_equal(demo, empty)
        # The empty scene shows only sky, so blue is saturated everywhere
        assert np.all(empty[:, :, 2] == 255)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
