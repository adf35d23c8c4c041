"""Tests for the fit figures in solina.plots.fitting."""

import chex
import jax.numpy as jnp
import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
from matplotlib.figure import Figure  # noqa: E402

from solina.models import fibonacci_sphere  # noqa: E402
from solina.plots import plot_fit, plot_step_sizes  # noqa: E402
from solina.types import FitResult, make_superquadric_params  # noqa: E402


def _fit_result(converged: bool = True) -> FitResult:
    return FitResult(
        params=make_superquadric_params(a1=1.2, ya=0.3),
        converged=converged,
        iterations=3,
        step_size=0.001,
        gradient=jnp.zeros(11),
        hessian=jnp.zeros((11, 11)),
        step_sizes=jnp.array([0.5, 0.05, 0.001]),
        skipped=(),
    )


class TestPlotStepSizes(chex.TestCase):
    """Test plot_step_sizes."""

    def tearDown(self) -> None:
        plt.close("all")
        super().tearDown()

    def test_semilog_curve(self) -> None:
        """One curve on a logarithmic y axis."""
        fig, ax = plot_step_sizes(_fit_result())
        assert isinstance(fig, Figure)
        assert ax.get_yscale() == "log"
        assert len(ax.lines) == 1
        assert ax.get_title() == "Converged"
        chex.assert_trees_all_close(
            jnp.asarray(ax.lines[0].get_ydata()),
            jnp.array([0.5, 0.05, 0.001]),
        )

    def test_threshold_line(self) -> None:
        """A threshold adds a horizontal reference line."""
        fig, ax = plot_step_sizes(
            _fit_result(converged=False), threshold=0.005
        )
        assert len(ax.lines) == 2
        assert ax.get_title() == "Not converged"


class TestPlotFit(chex.TestCase):
    """Test plot_fit."""

    def tearDown(self) -> None:
        plt.close("all")
        super().tearDown()

    def test_scatter_and_wireframe(self) -> None:
        """Samples and surface are drawn on a 3D axes."""
        fig, ax = plot_fit(
            fibonacci_sphere(100),
            make_superquadric_params(a1=1.2, e1=0.5),
            resolution=12,
            title="Fit",
        )
        assert isinstance(fig, Figure)
        assert ax.name == "3d"
        assert ax.get_title() == "Fit"
        assert len(ax.collections) == 2
