"""Sample sets for fitting, testing and validation.

Extended Summary
----------------
Synthetic point clouds with known ground truth and helpers that load
and thin out measured point clouds.

Submodules
----------
point_clouds
    Loading from disk and voxel downsampling
surfaces
    Points sampled on superquadric and spherical surfaces

Routine Listings
----------------
fibonacci_sphere : function
    Deterministic, near-uniform points on a sphere
load_sample_set : function
    Reads a SampleSet from a .npy, .npz or text file
sample_superquadric : function
    Random points on a posed superquadric surface
voxel_downsample : function
    Centroid of the points in every occupied voxel

Notes
-----
``sample_superquadric`` and ``fibonacci_sphere`` are JAX-compatible;
the point cloud helpers run on the host with numpy.
"""

from .point_clouds import load_sample_set, voxel_downsample
from .surfaces import fibonacci_sphere, sample_superquadric

__all__: list[str] = [
    "fibonacci_sphere",
    "load_sample_set",
    "sample_superquadric",
    "voxel_downsample",
]
