"""Figures for inspecting superquadric fits.

Extended Summary
----------------
Static matplotlib figures for the convergence history of a fit and for
the fitted surface drawn over the sample points. This module is NOT
JAX-accelerated.

Routine Listings
----------------
plot_step_sizes : function
    Step size per iteration on a logarithmic axis
plot_fit : function
    Sample points with a wireframe of the fitted superquadric

Notes
-----
Both functions return ``(Figure, Axes)`` and never call ``plt.show``.
"""

import matplotlib.pyplot as plt
import numpy as np
from beartype import beartype
from beartype.typing import Optional, Tuple
from jaxtyping import Float
from matplotlib.axes import Axes
from matplotlib.figure import Figure
from numpy import ndarray as NDArray  # noqa: N814

from solina.types import FitResult, SampleSet, SuperquadricParams
from solina.utils.math import rotation_matrix


def _signed_power(
    values: Float[NDArray, " ..."], exponent: float
) -> Float[NDArray, " ..."]:
    return np.sign(values) * np.abs(values) ** exponent


@beartype
def plot_step_sizes(
    result: FitResult,
    threshold: Optional[float] = None,
    figsize: Tuple[float, float] = (6, 4),
    title: Optional[str] = None,
) -> Tuple[Figure, Axes]:
    """Plot the step size of every iteration of a fit.

    Parameters
    ----------
    result : FitResult
        Fit whose ``step_sizes`` are drawn.
    threshold : Optional[float], optional
        Convergence threshold drawn as a dashed horizontal line. If
        None, no line is drawn.
    figsize : Tuple[float, float], optional
        Figure size in inches. Default is (6, 4).
    title : Optional[str], optional
        Axes title. Default states whether the fit converged.

    Returns
    -------
    fig : Figure
        The matplotlib Figure object.
    ax : Axes
        The matplotlib Axes object.
    """
    step_sizes: Float[NDArray, " K"] = np.asarray(result.step_sizes)
    iterations: NDArray = np.arange(1, step_sizes.shape[0] + 1)

    fig: Figure
    ax: Axes
    fig, ax = plt.subplots(figsize=figsize)
    ax.semilogy(iterations, step_sizes, marker="o", markersize=3)
    if threshold is not None:
        ax.axhline(threshold, color="gray", linestyle="--", label="threshold")
        ax.legend()
    ax.set_xlabel("Iteration")
    ax.set_ylabel("Step size ‖Δ‖")
    if title is None:
        title = "Converged" if result.converged else "Not converged"
    ax.set_title(title)
    fig.tight_layout()
    return fig, ax


@beartype
def plot_fit(
    sample_set: SampleSet,
    params: SuperquadricParams,
    resolution: int = 24,
    figsize: Tuple[float, float] = (6, 6),
    title: Optional[str] = None,
) -> Tuple[Figure, Axes]:
    """Draw sample points together with a fitted superquadric.

    Parameters
    ----------
    sample_set : SampleSet
        Points shown as a scatter plot.
    params : SuperquadricParams
        Parameters of the surface drawn as a wireframe.
    resolution : int, optional
        Number of grid lines along each surface angle. Default is 24.
    figsize : Tuple[float, float], optional
        Figure size in inches. Default is (6, 6).
    title : Optional[str], optional
        Axes title. If None, no title is added.

    Returns
    -------
    fig : Figure
        The matplotlib Figure object.
    ax : Axes
        The 3D matplotlib Axes object.

    Notes
    -----
    The wireframe uses the same signed-power parametrisation as
    ``sample_superquadric``, evaluated on a regular (η, ω) grid.
    """
    points: Float[NDArray, " N 3"] = np.asarray(sample_set.points)
    values = {name: float(value) for name, value in params._asdict().items()}

    eta: Float[NDArray, " R"] = np.linspace(-np.pi / 2, np.pi / 2, resolution)
    omega: Float[NDArray, " R"] = np.linspace(-np.pi, np.pi, resolution)
    eta_grid, omega_grid = np.meshgrid(eta, omega)
    cos_eta = _signed_power(np.cos(eta_grid), values["e1"])
    local: Float[NDArray, " R R 3"] = np.stack(
        [
            values["a1"]
            * cos_eta
            * _signed_power(np.cos(omega_grid), values["e2"]),
            values["a2"]
            * cos_eta
            * _signed_power(np.sin(omega_grid), values["e2"]),
            values["a3"] * _signed_power(np.sin(eta_grid), values["e1"]),
        ],
        axis=-1,
    )
    rotation: Float[NDArray, " 3 3"] = np.asarray(
        rotation_matrix(params.ra, params.pa, params.ya)
    )
    centre: Float[NDArray, " 3"] = np.array(
        [values["px"], values["py"], values["pz"]]
    )
    surface: Float[NDArray, " R R 3"] = local @ rotation.T + centre

    fig: Figure = plt.figure(figsize=figsize)
    ax: Axes = fig.add_subplot(projection="3d")
    ax.scatter(points[:, 0], points[:, 1], points[:, 2], s=2, alpha=0.6)
    ax.plot_wireframe(
        surface[..., 0],
        surface[..., 1],
        surface[..., 2],
        color="tab:red",
        linewidth=0.5,
    )
    ax.set_xlabel("x")
    ax.set_ylabel("y")
    ax.set_zlabel("z")
    if title is not None:
        ax.set_title(title)
    fig.tight_layout()
    return fig, ax
