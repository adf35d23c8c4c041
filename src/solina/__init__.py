"""Superquadric fitting to point clouds with damped Newton iterations in JAX.

Extended Summary
----------------
Fits the 11 parameters of a posed superquadric (three scales, two shape
exponents, a centre and three Euler angles) to a cloud of sample
points. The gradient and Hessian of the squared inside-outside error
are assembled from per-point derivatives supplied by a pluggable
oracle, and the parameters are refined with a damped Newton method
using a fixed damping weight.

Routine Listings
----------------
:mod:`invert`
    Single-scale and coarse-to-fine superquadric fitting.
:mod:`models`
    Synthetic sample sets and point cloud loading.
:mod:`plots`
    Figures for convergence histories and fitted surfaces.
:mod:`residual`
    Inside-outside function, derivative oracle and residual evaluator.
:mod:`types`
    PyTree data structures, configuration and factory functions.
:mod:`utils`
    Parameter conversions, damped Newton loops and device sharding.

Examples
--------
>>> import solina as sl
>>> cloud = sl.models.fibonacci_sphere(500)
>>> guess = sl.types.make_superquadric_params(a1=1.2, a2=1.2, a3=1.2)
>>> result = sl.invert.minimize(guess, cloud)
>>> result.converged
True

Notes
-----
All device computations run in 64-bit precision. Logging goes through
the standard ``logging`` module under the ``solina`` logger hierarchy;
the package configures no handlers.
"""

import os
from importlib.metadata import version

# Enable multi-threaded CPU execution for JAX (before importing JAX)
os.environ.setdefault(
    "XLA_FLAGS",
    "--xla_cpu_multi_thread_eigen=true intra_op_parallelism_threads=0",
)

# Enable 64-bit precision in JAX (must be set before importing submodules)
import jax  # noqa: E402

jax.config.update("jax_enable_x64", True)

from . import (  # noqa: E402, I001
    invert,
    models,
    plots,
    residual,
    types,
    utils,
)

__version__: str = version("solina")

__all__: list[str] = [
    "__version__",
    "invert",
    "models",
    "plots",
    "residual",
    "types",
    "utils",
]
