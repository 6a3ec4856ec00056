"""Unit tests for the Metal material.

Tests cover:
- Fuzz clamping and albedo validation
- Perfect mirror reflection with zero fuzz
- Fuzzy reflections staying near the mirror direction
- Absorption of perturbed rays that point into the surface
- Material registry operations
"""

import math

import numpy as np
import pytest
import taichi as ti

N_SAMPLES = 2048


class TestMetalParameters:
    """Tests for the Metal dataclass."""

    @pytest.mark.parametrize("fuzz, expected", [(-0.5, 0.0), (0.3, 0.3), (1.0, 1.0), (7.0, 1.0)])
    def test_fuzz_is_clamped(self, fuzz, expected):
        from pathtracer.materials import Metal

        assert Metal(albedo=(0.5, 0.5, 0.5), fuzz=fuzz).fuzz == expected

    def test_default_fuzz_is_zero(self):
        from pathtracer.materials import Metal

        assert Metal(albedo=(0.5, 0.5, 0.5)).fuzz == 0.0

    def test_invalid_albedo(self):
        from pathtracer.materials import Metal

        with pytest.raises(ValueError):
            Metal(albedo=(0.5, 2.0, 0.5), fuzz=0.1)


def _scatter_metal_many(fuzz, incident, normal):
    from pathtracer.materials.metal import scatter_metal, vec3

    directions = ti.Vector.field(3, dtype=ti.f64, shape=N_SAMPLES)
    attenuations = ti.Vector.field(3, dtype=ti.f64, shape=N_SAMPLES)
    flags = ti.field(dtype=ti.i32, shape=N_SAMPLES)

    @ti.kernel
    def test_kernel(f: ti.f64, d_in: vec3, n: vec3):
        ti.loop_config(serialize=True)
        for i in range(N_SAMPLES):
            d, a, s = scatter_metal(vec3(0.9, 0.8, 0.7), f, d_in, n, 0)
            directions[i] = d
            attenuations[i] = a
            flags[i] = s

    test_kernel(fuzz, vec3(*incident), vec3(*normal))
    return directions.to_numpy(), attenuations.to_numpy(), flags.to_numpy()


class TestMetalScatter:
    """Tests for scatter_metal."""

    def test_zero_fuzz_is_exact_reflection(self):
        incident = (1.0, -2.0, 0.5)
        directions, attenuations, flags = _scatter_metal_many(0.0, incident, (0.0, 1.0, 0.0))
        # reflect(v, n) = v - 2 dot(v, n) n
        expected = np.array([1.0, 2.0, 0.5])
        np.testing.assert_array_equal(directions, np.tile(expected, (N_SAMPLES, 1)))
        assert np.all(flags == 1)
        np.testing.assert_allclose(attenuations[0], [0.9, 0.8, 0.7])

    def test_reflection_uses_raw_incoming_direction(self):
        """The mirror direction keeps the length of the incoming direction."""
        directions, _, _ = _scatter_metal_many(0.0, (0.0, -3.0, 0.0), (0.0, 1.0, 0.0))
        np.testing.assert_array_equal(directions[0], [0.0, 3.0, 0.0])

    def test_fuzzy_reflection_stays_within_fuzz_ball(self):
        fuzz = 0.3
        incident = (1.0, -1.0, 0.0)
        directions, _, flags = _scatter_metal_many(fuzz, incident, (0.0, 1.0, 0.0))
        mirror = np.array([1.0, 1.0, 0.0])
        offsets = np.linalg.norm(directions - mirror, axis=1)
        assert np.all(offsets <= fuzz + 1e-12)
        # Mirror direction is far above the surface, so nothing is absorbed
        assert np.all(flags == 1)

    def test_grazing_fuzzy_rays_are_absorbed(self):
        """Perturbations that push the ray below the surface absorb it."""
        grazing = (1.0, -0.05, 0.0)
        directions, _, flags = _scatter_metal_many(1.0, grazing, (0.0, 1.0, 0.0))
        assert 0 < np.count_nonzero(flags == 0) < N_SAMPLES
        scattered = directions[flags == 1]
        assert np.all(scattered[:, 1] > 0.0)
        absorbed = directions[flags == 0]
        assert np.all(absorbed[:, 1] <= 0.0)


class TestMetalRegistry:
    """Tests for the metal field registry."""

    def test_add_and_scatter_by_id(self):
        from pathtracer.materials.metal import (
            Metal,
            add_metal_material,
            get_metal_material_count,
            metal_fuzz,
            scatter_metal_by_id,
            vec3,
        )

        add_metal_material(Metal(albedo=(0.1, 0.1, 0.1), fuzz=0.5))
        idx = add_metal_material(Metal(albedo=(0.6, 0.5, 0.4), fuzz=0.0))
        assert idx == 1
        assert get_metal_material_count() == 2
        assert metal_fuzz[0] == pytest.approx(0.5)

        direction = ti.Vector.field(3, dtype=ti.f64, shape=())
        attenuation = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            inv_sqrt2 = 1.0 / ti.sqrt(2.0)
            d, a, s = scatter_metal_by_id(
                1, vec3(inv_sqrt2, -inv_sqrt2, 0.0), vec3(0.0, 1.0, 0.0), 0
            )
            direction[None] = d
            attenuation[None] = a

        test_kernel()
        d = direction[None]
        assert d[0] == pytest.approx(1.0 / math.sqrt(2.0))
        assert d[1] == pytest.approx(1.0 / math.sqrt(2.0))
        a = attenuation[None]
        assert (a[0], a[1], a[2]) == pytest.approx((0.6, 0.5, 0.4))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
