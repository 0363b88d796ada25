"""Unit tests for the ray module.

Tests cover:
- Ray dataclass and ray_at
- Vector helpers (unit, lerp, average, max_component, basis_around)
- Directional optics (enters, reflected, refracted, cone, random_hemi_cos)
"""

import math

import pytest
import taichi as ti


def dot(a, b):
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


class TestRayBasics:
    """Tests for Ray dataclass and basic operations."""

    def test_ray_at_origin(self):
        """Test ray_at returns origin when t=0."""
        from pbr.core.ray import Ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(1.0, 2.0, 3.0), direction=vec3(0.0, 0.0, -1.0))
            result[None] = ray_at(ray, 0.0)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 2.0) < 1e-6
        assert abs(r[2] - 3.0) < 1e-6

    def test_make_ray_moves_along_direction(self):
        from pbr.core.ray import make_ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 1.0, 0.0), vec3(1.0, 0.0, 0.0))
            result[None] = ray_at(ray, 5.0)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 5.0) < 1e-6
        assert abs(r[1] - 1.0) < 1e-6
        assert abs(r[2]) < 1e-6


class TestVectorHelpers:
    """Tests for the small vector helpers."""

    def test_unit_has_length_one(self):
        from pbr.core.ray import unit, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = unit(vec3(3.0, 0.0, 4.0))

        test_kernel()
        r = result[None]
        assert abs(r[0] - 0.6) < 1e-6
        assert abs(r[2] - 0.8) < 1e-6

    def test_lerp_endpoints_and_midpoint(self):
        from pbr.core.ray import lerp, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=3)

        @ti.kernel
        def test_kernel():
            a = vec3(0.0, 0.0, 0.0)
            b = vec3(2.0, 4.0, 6.0)
            result[0] = lerp(a, b, 0.0)
            result[1] = lerp(a, b, 1.0)
            result[2] = lerp(a, b, 0.5)

        test_kernel()
        out = result.to_numpy()
        assert out[0] == pytest.approx([0.0, 0.0, 0.0])
        assert out[1] == pytest.approx([2.0, 4.0, 6.0])
        assert out[2] == pytest.approx([1.0, 2.0, 3.0])

    def test_average_and_max_component(self):
        from pbr.core.ray import average, max_component, vec3

        result = ti.field(dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            v = vec3(0.1, 0.7, 0.4)
            result[0] = average(v)
            result[1] = max_component(v)

        test_kernel()
        assert result[0] == pytest.approx(0.4, abs=1e-6)
        assert result[1] == pytest.approx(0.7, abs=1e-6)

    @pytest.mark.parametrize(
        "q",
        [
            (0.3, 0.5, -0.2),
            (0.0, 0.0, 1.0),  # parallel to the axis
            (0.0, 0.0, -1.0),  # anti-parallel to the axis
        ],
    )
    def test_basis_around_is_orthonormal(self, q):
        """basis_around builds an orthonormal frame even for a parallel q."""
        from pbr.core.ray import basis_around, vec3

        s_out = ti.field(dtype=ti.math.vec3, shape=())
        t_out = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel(qx: ti.f32, qy: ti.f32, qz: ti.f32):
            s, t = basis_around(vec3(0.0, 0.0, 1.0), vec3(qx, qy, qz))
            s_out[None] = s
            t_out[None] = t

        test_kernel(*q)
        s = s_out[None]
        t = t_out[None]
        axis = (0.0, 0.0, 1.0)
        assert dot(s, s) == pytest.approx(1.0, abs=1e-5)
        assert dot(t, t) == pytest.approx(1.0, abs=1e-5)
        assert abs(dot(s, t)) < 1e-5
        assert abs(dot(s, axis)) < 1e-5
        assert abs(dot(t, axis)) < 1e-5


class TestEnters:
    """Tests for entering / exiting classification."""

    def test_direction_against_normal_enters(self):
        from pbr.core.ray import enters, vec3

        result = ti.field(dtype=ti.i32, shape=3)

        @ti.kernel
        def test_kernel():
            n = vec3(0.0, 1.0, 0.0)
            result[0] = enters(vec3(0.0, -1.0, 0.0), n)
            result[1] = enters(vec3(0.0, 1.0, 0.0), n)
            result[2] = enters(vec3(1.0, 0.0, 0.0), n)

        test_kernel()
        assert result[0] == 1
        assert result[1] == 0
        assert result[2] == 0  # grazing is not entering


class TestReflected:
    """Tests for mirror reflection."""

    @pytest.mark.parametrize(
        "direction",
        [
            (0.0, -1.0, 0.0),
            (1.0, -1.0, 0.0),
            (0.3, -0.2, 0.9),
            (-0.7, -0.1, -0.2),
        ],
    )
    def test_reflection_is_unit_and_mirrors_normal_component(self, direction):
        from pbr.core.ray import reflected, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel(x: ti.f32, y: ti.f32, z: ti.f32):
            d = ti.math.normalize(vec3(x, y, z))
            result[None] = reflected(d, vec3(0.0, 1.0, 0.0))

        test_kernel(*direction)
        r = result[None]
        norm = math.sqrt(sum(c * c for c in direction))
        d = [c / norm for c in direction]

        assert r[0] ** 2 + r[1] ** 2 + r[2] ** 2 == pytest.approx(1.0, abs=1e-5)
        # n . reflected == -(n . d)
        assert r[1] == pytest.approx(-d[1], abs=1e-5)
        # tangential components unchanged
        assert r[0] == pytest.approx(d[0], abs=1e-5)
        assert r[2] == pytest.approx(d[2], abs=1e-5)


class TestRefracted:
    """Tests for Snell's law refraction."""

    def test_normal_incidence_passes_straight(self):
        from pbr.core.ray import refracted, vec3

        flag = ti.field(dtype=ti.i32, shape=())
        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ok, d = refracted(vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0), 1.0, 1.5)
            flag[None] = ok
            result[None] = d

        test_kernel()
        assert flag[None] == 1
        r = result[None]
        assert r[1] == pytest.approx(-1.0, abs=1e-5)

    def test_snell_law_holds(self):
        """sin(theta_t) * n_b == sin(theta_i) * n_a."""
        from pbr.core.ray import refracted, vec3

        flag = ti.field(dtype=ti.i32, shape=())
        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            d = ti.math.normalize(vec3(1.0, -1.0, 0.0))
            ok, t = refracted(d, vec3(0.0, 1.0, 0.0), 1.0, 1.5)
            flag[None] = ok
            result[None] = t

        test_kernel()
        r = result[None]
        assert flag[None] == 1
        assert r[0] ** 2 + r[1] ** 2 + r[2] ** 2 == pytest.approx(1.0, abs=1e-5)
        sin_i = math.sqrt(0.5)
        assert r[0] * 1.5 == pytest.approx(sin_i * 1.0, abs=1e-5)
        assert r[1] < 0.0

    def test_total_internal_reflection_returns_original_direction(self):
        """From dense to thin at a grazing angle the discriminant is negative."""
        from pbr.core.ray import refracted, vec3

        flag = ti.field(dtype=ti.i32, shape=())
        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            d = ti.math.normalize(vec3(1.0, -0.2, 0.0))
            ok, t = refracted(d, vec3(0.0, 1.0, 0.0), 1.5, 1.0)
            flag[None] = ok
            result[None] = t

        test_kernel()
        assert flag[None] == 0
        r = result[None]
        norm = math.sqrt(1.0 + 0.04)
        assert r[0] == pytest.approx(1.0 / norm, abs=1e-5)
        assert r[1] == pytest.approx(-0.2 / norm, abs=1e-5)

    @pytest.mark.parametrize("x", [0.0, 0.3, 0.6, 0.74, 0.76, 0.9])
    def test_flag_matches_discriminant(self, x):
        from pbr.core.ray import refracted, vec3

        flag = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel(x: ti.f32):
            d = vec3(x, -ti.sqrt(1.0 - x * x), 0.0)
            ok, _ = refracted(d, vec3(0.0, 1.0, 0.0), 1.33, 1.0)
            flag[None] = ok

        test_kernel(x)
        cos = -math.sqrt(1.0 - x * x)
        k = 1.0 - (1.33**2) * (1.0 - cos * cos)
        assert flag[None] == (1 if k >= 0.0 else 0)


class TestRandomDirections:
    """Tests for the sampled-direction helpers with explicit draws."""

    def test_random_direction_is_unit(self):
        from pbr.core.ray import random_direction

        result = ti.field(dtype=ti.f32, shape=64)

        @ti.kernel
        def test_kernel():
            for i in range(64):
                u = (i % 8 + 0.5) / 8.0
                v = (i // 8 + 0.5) / 8.0
                d = random_direction(u, v)
                result[i] = ti.math.length(d)

        test_kernel()
        lengths = result.to_numpy()
        assert (abs(lengths - 1.0) < 1e-5).all()

    def test_cone_zero_spread_returns_axis(self):
        from pbr.core.ray import cone, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=16)

        @ti.kernel
        def test_kernel():
            axis = ti.math.normalize(vec3(0.2, 0.9, -0.4))
            for i in range(16):
                u = (i + 0.5) / 16.0
                v = 1.0 - u
                q = ti.math.normalize(vec3(ti.sin(i * 1.0), 0.3, ti.cos(i * 1.0)))
                result[i] = cone(axis, 0.0, u, v, q)

        test_kernel()
        out = result.to_numpy()
        norm = math.sqrt(0.04 + 0.81 + 0.16)
        expected = [0.2 / norm, 0.9 / norm, -0.4 / norm]
        for row in out:
            assert row == pytest.approx(expected, abs=1e-5)

    @pytest.mark.parametrize("spread", [0.1, 0.5, 1.0])
    def test_cone_stays_unit_and_within_half_angle(self, spread):
        from pbr.core.ray import cone, vec3

        length = ti.field(dtype=ti.f32, shape=64)
        cosine = ti.field(dtype=ti.f32, shape=64)

        @ti.kernel
        def test_kernel(spread: ti.f32):
            axis = vec3(0.0, 0.0, 1.0)
            for i in range(64):
                u = (i % 8 + 0.5) / 8.0
                v = (i // 8 + 0.5) / 8.0
                q = ti.math.normalize(vec3(1.0, u, v))
                d = cone(axis, spread, u, v, q)
                length[i] = ti.math.length(d)
                cosine[i] = ti.math.dot(d, axis)

        test_kernel(spread)
        assert (abs(length.to_numpy() - 1.0) < 1e-5).all()
        max_angle = spread * math.pi / 2.0
        assert (cosine.to_numpy() >= math.cos(max_angle) - 1e-5).all()

    def test_hemi_cos_stays_in_hemisphere(self):
        from pbr.core.ray import random_hemi_cos, vec3

        length = ti.field(dtype=ti.f32, shape=100)
        cosine = ti.field(dtype=ti.f32, shape=100)

        @ti.kernel
        def test_kernel():
            normal = ti.math.normalize(vec3(0.3, 0.8, 0.1))
            for i in range(100):
                u = (i % 10 + 0.5) / 10.0
                v = (i // 10 + 0.5) / 10.0
                q = ti.math.normalize(vec3(v - 0.5, 1.0, u - 0.5))
                d = random_hemi_cos(normal, u, v, q)
                length[i] = ti.math.length(d)
                cosine[i] = ti.math.dot(d, normal)

        test_kernel()
        assert (abs(length.to_numpy() - 1.0) < 1e-5).all()
        assert (cosine.to_numpy() >= -1e-6).all()

    def test_hemi_cos_mean_cosine(self):
        """Cosine-weighted sampling has E[cos theta] = 2/3."""
        from pbr.core.ray import sample_hemi_cos, vec3

        n = 20000
        cosine = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                cosine[i] = ti.math.dot(sample_hemi_cos(vec3(0.0, 1.0, 0.0)), vec3(0.0, 1.0, 0.0))

        test_kernel()
        assert cosine.to_numpy().mean() == pytest.approx(2.0 / 3.0, abs=0.02)
