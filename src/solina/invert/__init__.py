"""Superquadric fitting by damped Newton iterations.

Extended Summary
----------------
Application layer that fits the 11 superquadric parameters to a sample
set. Combines the residual evaluator with the generic damped Newton
loop and adds a coarse-to-fine driver over voxel downsampled clouds.

Submodules
----------
superquadric
    Single-scale and multi-scale fitting

Routine Listings
----------------
ILL_CONDITIONED_THRESHOLD : float
    Condition number above which a warning is logged
fit_error : function
    Mean squared point error of parameters on a sample set
make_voxel_sizes : function
    Geometric sequence of voxel sizes from coarse to fine
minimize : function
    Fit a superquadric from an initial guess
minimize_multiscale : function
    Coarse-to-fine fit over voxel downsampled sample sets

Notes
-----
The Newton iteration is jit-compiled; the SolverConfig and the
DerivativeOracle are static arguments, so changing either triggers a
recompilation.
"""

from .superquadric import (
    ILL_CONDITIONED_THRESHOLD,
    fit_error,
    make_voxel_sizes,
    minimize,
    minimize_multiscale,
)

__all__: list[str] = [
    "fit_error",
    "ILL_CONDITIONED_THRESHOLD",
    "make_voxel_sizes",
    "minimize",
    "minimize_multiscale",
]
