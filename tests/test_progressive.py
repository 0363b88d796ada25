"""Tests for the progressive renderer.

This module tests the ProgressiveRenderer class including:
- Batch rendering and progress callbacks
- The generator interface
- Reset functionality
- Image output in float and 8-bit form

Note: Imports are done inside test methods; conftest.py initializes Taichi
before tests run.
"""

import math

import numpy as np
import pytest


def _make_renderer(width=8, height=6, config=None):
    from pbr.camera.thin_lens import ThinLensCamera
    from pbr.core.progressive import ProgressiveRenderer
    from pbr.geometry.sphere import Sphere
    from pbr.materials.material import Material, add_material
    from pbr.scene.scene import Scene

    light = add_material(Material.light_source(1.0, 1.0, 1.0))
    scene = Scene([Sphere.at_position(light, (0.0, 0.0, 0.0), 1.0)], sky=(0.0, 0.0, 0.0))
    camera = ThinLensCamera(
        width=width, height=height, f_stop=math.inf, position=(0.0, 0.0, 5.0)
    )
    return ProgressiveRenderer(camera, scene, config)


class TestProgressiveRendererInit:
    def test_init_reports_dimensions(self):
        renderer = _make_renderer(width=12, height=10)

        assert renderer.width == 12
        assert renderer.height == 10
        assert renderer.sample_count == 0

    def test_init_rejects_oversized_dimensions(self):
        from pbr.camera.thin_lens import ThinLensCamera
        from pbr.core.progressive import ProgressiveRenderer
        from pbr.scene.scene import Scene

        with pytest.raises(ValueError, match="exceed maximum"):
            ProgressiveRenderer(ThinLensCamera(width=100, height=4096), Scene([]))


class TestRender:
    def test_render_accumulates_samples(self):
        renderer = _make_renderer()
        renderer.render(3)
        assert renderer.sample_count == 3

        # A second call continues refining the same image
        renderer.render(2)
        assert renderer.sample_count == 5

    def test_callback_called_once_per_batch(self):
        renderer = _make_renderer()
        calls = []

        renderer.render(10, batch_size=4, callback=lambda c, t: calls.append((c, t)))

        assert calls == [(4, 10), (8, 10), (10, 10)]

    def test_generator_yields_progress(self):
        renderer = _make_renderer()
        renderer.render(2)

        progress = list(renderer.render_progressive(6, batch_size=3))

        assert progress == [(5, 8), (8, 8)]
        assert renderer.sample_count == 8

    def test_zero_samples_is_a_no_op(self):
        renderer = _make_renderer()
        assert list(renderer.render_progressive(0)) == []
        assert renderer.sample_count == 0

    def test_non_positive_batch_size_raises(self):
        renderer = _make_renderer()
        with pytest.raises(ValueError, match="batch_size"):
            list(renderer.render_progressive(4, batch_size=0))


class TestReset:
    def test_reset_clears_accumulated_image(self):
        renderer = _make_renderer()
        renderer.render(2)
        assert renderer.get_image_numpy().any()

        renderer.reset()

        assert renderer.sample_count == 0
        assert not renderer.get_image_numpy().any()


class TestImageOutput:
    def test_float_image_is_clamped(self):
        from pbr.core.sampler import SamplerConfig

        renderer = _make_renderer(width=16, height=16, config=SamplerConfig(jitter=False))
        renderer.render(1)
        image = renderer.get_image_numpy()

        assert image.shape == (16, 16, 3)
        assert image.dtype == np.float32
        assert image.min() >= 0.0
        assert image.max() <= 1.0
        # The light covers the centre and not the corners
        assert image[8, 8] == pytest.approx([1.0, 1.0, 1.0], abs=0.01)
        assert (image[0, 0] == 0.0).all()

    def test_gamma_brightens_mid_tones(self):
        from pbr.core.sampler import SamplerConfig

        renderer = _make_renderer(width=16, height=16, config=SamplerConfig(jitter=False))
        renderer.render(1)
        linear = renderer.get_image_numpy()
        corrected = renderer.get_image_numpy(gamma=2.2)

        assert (corrected >= linear - 1e-6).all()

    def test_uint8_image(self):
        renderer = _make_renderer(width=10, height=7)
        renderer.render(1)
        image = renderer.get_image_uint8()

        assert image.shape == (7, 10, 3)
        assert image.dtype == np.uint8

    def test_repr(self):
        renderer = _make_renderer(width=8, height=6)
        renderer.render(1)
        assert repr(renderer) == "ProgressiveRenderer(width=8, height=6, samples=1)"
