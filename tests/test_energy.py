"""Unit tests for energy helpers and Russian roulette."""

import pytest
import taichi as ti


class TestEnergyArithmetic:
    def test_merged_adds_weighted_contribution(self):
        from pbr.core.energy import merged
        from pbr.core.ray import vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = merged(vec3(1.0, 1.0, 1.0), vec3(2.0, 4.0, 6.0), vec3(0.5, 0.25, 0.0))

        test_kernel()
        assert result.to_numpy() == pytest.approx([2.0, 2.0, 1.0])

    def test_strength_and_amplified(self):
        from pbr.core.energy import amplified, strength
        from pbr.core.ray import vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            result[0] = strength(vec3(1.0, 2.0, 3.0), vec3(0.5, 0.5, 2.0))
            result[1] = amplified(vec3(1.0, 2.0, 3.0), 3.0)

        test_kernel()
        out = result.to_numpy()
        assert out[0] == pytest.approx([0.5, 1.0, 6.0])
        assert out[1] == pytest.approx([3.0, 6.0, 9.0])


class TestRandomGain:
    """Tests for Russian roulette on the path throughput."""

    def _gain(self, signal, u):
        from pbr.core.energy import random_gain
        from pbr.core.ray import vec3

        survived = ti.field(dtype=ti.i32, shape=())
        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel(r: ti.f32, g: ti.f32, b: ti.f32, u: ti.f32):
            s, out = random_gain(vec3(r, g, b), u)
            survived[None] = s
            result[None] = out

        test_kernel(*signal, u)
        return survived[None], result.to_numpy()

    def test_survives_below_peak_and_renormalizes(self):
        survived, signal = self._gain((0.5, 0.25, 0.1), 0.4)
        assert survived == 1
        assert signal == pytest.approx([1.0, 0.5, 0.2])

    def test_terminates_above_peak(self):
        survived, signal = self._gain((0.5, 0.25, 0.1), 0.6)
        assert survived == 0
        assert signal == pytest.approx([0.5, 0.25, 0.1])

    def test_full_throughput_always_survives(self):
        survived, signal = self._gain((1.0, 0.3, 0.0), 0.999)
        assert survived == 1
        assert signal == pytest.approx([1.0, 0.3, 0.0])

    def test_zero_throughput_terminates(self):
        survived, _ = self._gain((0.0, 0.0, 0.0), 0.0)
        assert survived == 0

    def test_expectation_is_preserved(self):
        """E[survived * new_signal] equals the incoming signal."""
        from pbr.core.energy import random_gain
        from pbr.core.ray import random_f32, vec3

        n = 50000
        result = ti.Vector.field(3, dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                s, out = random_gain(vec3(0.3, 0.15, 0.06), random_f32())
                value = vec3(0.0, 0.0, 0.0)
                if s == 1:
                    value = out
                result[i] = value

        test_kernel()
        mean = result.to_numpy().mean(axis=0)
        assert mean == pytest.approx([0.3, 0.15, 0.06], abs=0.01)
