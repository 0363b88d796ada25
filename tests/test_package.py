"""Package-level checks shared by every kernel module."""

import __future__
import importlib

import pytest


@pytest.mark.parametrize(
    "module_name",
    [
        "pbr.camera.thin_lens",
        "pbr.core.energy",
        "pbr.core.ray",
        "pbr.core.sampler",
        "pbr.core.transform",
        "pbr.geometry.sphere",
        "pbr.materials.bsdf",
        "pbr.scene.intersection",
        "pbr.scene.scene",
    ],
)
def test_taichi_function_annotations_are_evaluated(module_name):
    """Taichi reads ti.func annotations as objects, so they must not be postponed."""
    module = importlib.import_module(module_name)
    assert getattr(module, "annotations", None) is not __future__.annotations

