"""Taichi-based Monte Carlo path tracer.

This package renders scenes of spheres, planes, quads and cubes with a single
parameterized material model (diffuse/rough reflection, mirror bounces,
Fresnel-weighted refraction and emission).

Subpackages:
    core: Rays, random sampling, transforms, the integrator and render driver
    geometry: Shape primitives and intersection algorithms
    materials: Material registry and scattering
    scene: Primitive storage, closest-hit queries and scene management
    camera: Camera model with primary ray generation

Subpackages that declare Taichi fields must be imported after ``ti.init``.
"""

__version__ = "0.1.0"
