"""Plotting utilities for superquadric fits.

Extended Summary
----------------
Functions for visualizing the convergence of a fit and the fitted
surface over its sample points.

Routine Listings
----------------
:func:`plot_fit`
    Draw sample points with a wireframe of the fitted superquadric.
:func:`plot_step_sizes`
    Plot the step size of every iteration on a logarithmic axis.

Notes
-----
These plotting functions are for inspection only and do not require
JAX compatibility. They accept the PyTree data structures of the
solina package.
"""

from .fitting import plot_fit, plot_step_sizes

__all__: list[str] = [
    "plot_fit",
    "plot_step_sizes",
]
