"""Taichi-based Monte Carlo path tracer.

Renders scenes of transformed spheres with physically parameterized
materials through a thin-lens camera, accumulating per-pixel running
averages that refine progressively.

Subpackages:
    core: Vector optics, energy, transforms, the path integrator and progressive rendering
    geometry: Surface contract and the sphere primitive
    materials: Material description, material table and the BSDF
    scene: Surface table, nearest-hit search, environment and preset scenes
    camera: Thin-lens camera with depth of field
    preview: Image conversion and PNG export
"""

__version__ = "0.1.0"
