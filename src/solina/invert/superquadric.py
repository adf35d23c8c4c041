"""Damped Newton fitting of a superquadric to a sample set.

Extended Summary
----------------
Fits the 11 superquadric parameters to a point cloud by driving the
damped Newton iteration of :mod:`solina.utils.newton` with the gradient
and Hessian assembled by :mod:`solina.residual`.

``minimize`` runs one fit from a caller-supplied initial guess. The
iteration and the final evaluation are compiled into a single
jit-compiled function; diagnostics (per-iteration step sizes, the final
summary, excluded NaN elements and a conditioning warning) are logged
after the device computation returns.

``minimize_multiscale`` is a coarse-to-fine driver: it fits voxel
downsampled copies of the cloud from the largest voxel size to the
smallest, seeding every level with the previous result, and stops once
the mean squared point error on the full cloud is below a threshold.

Routine Listings
----------------
ILL_CONDITIONED_THRESHOLD : float
    Condition number above which a warning is logged
fit_error : function
    Mean squared point error of parameters on a sample set
make_voxel_sizes : function
    Geometric sequence of voxel sizes from coarse to fine
minimize : function
    Fit a superquadric with the damped Newton method
minimize_multiscale : function
    Coarse-to-fine fit over voxel downsampled sample sets

Notes
-----
A fit that reaches its iteration cap is reported through
``FitResult.converged`` and never raises. The parameters of the last
iteration are returned in both cases.
"""

import logging
from functools import partial

import jax
import jax.numpy as jnp
import numpy as np
from beartype import beartype
from beartype.typing import List, Optional, Sequence, Tuple, Union
from jax.sharding import Mesh
from jaxtyping import Array, Float, Num, jaxtyped

from solina.models.point_clouds import voxel_downsample
from solina.residual import (
    SUPERQUADRIC_ORACLE,
    DerivativeOracle,
    compute_residual_stats,
    point_errors,
    report_skipped,
)
from solina.types import (
    FitResult,
    NewtonState,
    ResidualStats,
    SampleSet,
    ScalarNumeric,
    SolverConfig,
    SuperquadricParams,
    make_newton_state,
    make_solver_config,
)
from solina.utils import (
    condition_number,
    newton_history,
    params_to_vector,
    shard_sample_set,
    vector_to_params,
)

logger = logging.getLogger(__name__)

ILL_CONDITIONED_THRESHOLD: float = 1e12

InitialGuess = Union[
    SuperquadricParams, Num[Array, " ..."], Num[np.ndarray, " ..."]
]


@partial(jax.jit, static_argnums=(2, 3))
def _fit(
    params: Float[Array, " 11"],
    sample_set: SampleSet,
    oracle: DerivativeOracle,
    config: SolverConfig,
) -> Tuple[NewtonState, Float[Array, " M"], ResidualStats]:
    def evaluate(
        current: Float[Array, " 11"],
    ) -> Tuple[Float[Array, " 11"], Float[Array, " 11 11"]]:
        stats = compute_residual_stats(current, sample_set, oracle)
        return stats.gradient, stats.hessian

    final_state, step_sizes = newton_history(
        make_newton_state(params), evaluate, config
    )
    final_stats = compute_residual_stats(
        final_state.params, sample_set, oracle
    )
    return final_state, step_sizes, final_stats


def _as_vector(initial_guess: InitialGuess) -> Float[Array, " 11"]:
    if isinstance(initial_guess, SuperquadricParams):
        return params_to_vector(initial_guess)
    return params_to_vector(vector_to_params(initial_guess))


@beartype
def minimize(
    initial_guess: InitialGuess,
    sample_set: SampleSet,
    config: Optional[SolverConfig] = None,
    oracle: Optional[DerivativeOracle] = None,
    mesh: Optional[Mesh] = None,
) -> FitResult:
    """Fit a superquadric to a sample set with damped Newton iterations.

    Implementation Logic
    --------------------
    1. Convert the initial guess to the flat parameter vector. It is
       used as-is; there is no internal default.
    2. Optionally shard the sample points across ``mesh``.
    3. Run the compiled fit: ``newton_history`` from the initial state,
       then one more evaluation at the final parameters.
    4. Log ``Iter: n with error: e`` for every executed iteration at
       DEBUG level.
    5. Log the excluded NaN elements of the final evaluation and warn
       when the damped system at the final parameters has a condition
       number above ``ILL_CONDITIONED_THRESHOLD``.
    6. Log the outcome with the final parameters and return a
       FitResult.

    Parameters
    ----------
    initial_guess : InitialGuess
        SuperquadricParams or an array of exactly 11 values in the order
        ``[a1, a2, a3, e1, e2, px, py, pz, ra, pa, ya]``.
    sample_set : SampleSet
        Sample points. Never modified, may be empty.
    config : Optional[SolverConfig], optional
        Damping weight, iteration cap, step threshold and linear solver.
        Default is ``make_solver_config()``.
    oracle : Optional[DerivativeOracle], optional
        Per-point derivative formulas. Default is the superquadric
        squared-error oracle.
    mesh : Optional[Mesh], optional
        Device mesh to shard the points over. Default is None.

    Returns
    -------
    result : FitResult
        Final parameters, convergence flag, iteration count, step-size
        history and the gradient and Hessian at the final parameters.

    Raises
    ------
    ValueError
        If the initial guess does not hold exactly 11 values, or the
        points cannot be split evenly across ``mesh``.

    Examples
    --------
    >>> cloud = fibonacci_sphere(500)
    >>> guess = make_superquadric_params(a1=1.2, a2=1.2, a3=1.2)
    >>> result = minimize(guess, cloud)
    >>> result.converged
    True
    """
    config = make_solver_config() if config is None else config
    oracle = SUPERQUADRIC_ORACLE if oracle is None else oracle
    params: Float[Array, " 11"] = _as_vector(initial_guess)
    if mesh is not None:
        sample_set = shard_sample_set(sample_set, mesh)
    logger.info(
        "Initial guess for coefficients: %s", np.asarray(params).tolist()
    )

    final_state, step_sizes, final_stats = _fit(
        params, sample_set, oracle, config
    )

    iterations: int = int(final_state.iteration)
    history: np.ndarray = np.asarray(step_sizes)[:iterations]
    for index, step_size in enumerate(history, start=1):
        logger.debug("Iter: %d with error: %g", index, step_size)

    skipped = report_skipped(final_stats, logger)
    conditioning: float = float(
        condition_number(final_stats.hessian, config.damping)
    )
    if not np.isfinite(conditioning) or (
        conditioning > ILL_CONDITIONED_THRESHOLD
    ):
        logger.warning(
            "Damped system is ill-conditioned at the final parameters "
            "(condition number %g)",
            conditioning,
        )

    converged: bool = bool(final_state.converged)
    final_vector: np.ndarray = np.asarray(final_state.params)
    if converged:
        logger.info("Converged in %d iterations", iterations)
    else:
        logger.warning(
            "Did not converge after %d iterations", iterations
        )
    logger.info("Final coefficients: %s", final_vector.tolist())
    logger.debug("J: %s", np.asarray(final_stats.gradient).tolist())
    logger.debug("H: %s", np.asarray(final_stats.hessian).tolist())

    return FitResult(
        params=vector_to_params(final_state.params),
        converged=converged,
        iterations=iterations,
        step_size=float(final_state.step_size),
        gradient=final_stats.gradient,
        hessian=final_stats.hessian,
        step_sizes=jnp.asarray(history),
        skipped=skipped,
    )


@jaxtyped(typechecker=beartype)
def fit_error(
    params: Union[SuperquadricParams, Float[Array, " 11"]],
    sample_set: SampleSet,
) -> float:
    """Mean of the squared per-point errors ``(F − 1)²``.

    Returns NaN for an empty sample set.
    """
    if isinstance(params, SuperquadricParams):
        params = params_to_vector(params)
    if sample_set.points.shape[0] == 0:
        return float("nan")
    errors = point_errors(params, sample_set.points)
    return float(np.mean(np.asarray(errors) ** 2))


@beartype
def make_voxel_sizes(
    largest: ScalarNumeric,
    smallest: ScalarNumeric,
    num_scales: int,
) -> List[float]:
    """Geometric sequence of voxel sizes from ``largest`` to ``smallest``.

    Parameters
    ----------
    largest : ScalarNumeric
        Coarsest voxel size.
    smallest : ScalarNumeric
        Finest voxel size, 0 < smallest <= largest.
    num_scales : int
        Number of sizes, >= 1. A single scale uses ``largest``.

    Returns
    -------
    voxel_sizes : List[float]
        Decreasing voxel sizes.

    Raises
    ------
    ValueError
        If the bounds or the number of scales are invalid.
    """
    largest_value: float = float(largest)
    smallest_value: float = float(smallest)
    if not 0.0 < smallest_value <= largest_value:
        raise ValueError(
            f"voxel sizes must satisfy 0 < smallest <= largest, "
            f"got {smallest} and {largest}"
        )
    if num_scales < 1:
        raise ValueError(f"num_scales must be at least 1, got {num_scales}")
    if num_scales == 1:
        return [largest_value]
    return np.geomspace(largest_value, smallest_value, num_scales).tolist()


@beartype
def minimize_multiscale(
    initial_guess: InitialGuess,
    sample_set: SampleSet,
    voxel_sizes: Sequence[ScalarNumeric],
    error_threshold: ScalarNumeric,
    config: Optional[SolverConfig] = None,
    oracle: Optional[DerivativeOracle] = None,
) -> Tuple[FitResult, List[FitResult]]:
    """Fit a superquadric coarse-to-fine over downsampled sample sets.

    Implementation Logic
    --------------------
    For every voxel size, in the given order:

    1. Downsample the full sample set with ``voxel_downsample``.
    2. Run ``minimize`` from the current guess.
    3. Measure ``fit_error`` of the result on the full sample set.
    4. Stop if the error is below ``error_threshold``; otherwise seed
       the next level with the result, unless its parameters are not
       finite, in which case the previous guess is kept.

    Parameters
    ----------
    initial_guess : InitialGuess
        Starting parameters for the coarsest level.
    sample_set : SampleSet
        Full-resolution sample points.
    voxel_sizes : Sequence[ScalarNumeric]
        Voxel sizes to visit, normally decreasing (see
        ``make_voxel_sizes``).
    error_threshold : ScalarNumeric
        Mean squared point error at which the driver stops early.
    config : Optional[SolverConfig], optional
        Solver configuration shared by all levels.
    oracle : Optional[DerivativeOracle], optional
        Per-point derivative formulas.

    Returns
    -------
    result : FitResult
        Result of the last level that ran.
    level_results : List[FitResult]
        Result of every level that ran, coarse to fine.

    Raises
    ------
    ValueError
        If ``voxel_sizes`` is empty.
    """
    if len(voxel_sizes) == 0:
        raise ValueError("voxel_sizes must contain at least one size")
    guess: Float[Array, " 11"] = _as_vector(initial_guess)
    level_results: List[FitResult] = []
    for voxel_size in voxel_sizes:
        level_set = voxel_downsample(sample_set, voxel_size)
        result = minimize(guess, level_set, config, oracle)
        level_results.append(result)
        error = fit_error(result.params, sample_set)
        logger.info(
            "Voxel size %g: %d points, %s, error %g",
            float(voxel_size),
            level_set.points.shape[0],
            "converged" if result.converged else "not converged",
            error,
        )
        if error < float(error_threshold):
            break
        candidate = params_to_vector(result.params)
        if bool(np.all(np.isfinite(np.asarray(candidate)))):
            guess = candidate
    return level_results[-1], level_results
