"""Residual evaluator: aggregated gradient and Hessian of the fit error.

Extended Summary
----------------
Turns a candidate parameter vector and a sample set into the gradient
and Hessian of the total squared error ``E = Σ f²`` by summing the
per-point contributions returned by a DerivativeOracle.

The summation is a fold over the sample set. Partial results from
disjoint subsets of points combine associatively with
``combine_residual_stats``, so the same statistics can be assembled in
one vectorised pass, chunk by chunk, or from shards living on different
devices.

Data-quality policy: any per-point derivative element that is NaN is
left out of the sum and flagged in the boolean masks of the returned
ResidualStats. A single corrupted point never aborts an evaluation.

Routine Listings
----------------
compute_residual_stats : function
    Gradient, Hessian and NaN masks in one vectorised pass
compute_gradient : function
    Aggregated gradient only
compute_hessian : function
    Aggregated Hessian only
combine_residual_stats : function
    Merge statistics of two disjoint point subsets
accumulate_residual_stats : function
    Chunked fold over the sample set
skipped_contributions : function
    List the excluded NaN elements as SkippedContribution records
report_skipped : function
    Log every excluded NaN element and return the records

Notes
-----
Evaluation is a pure function of its inputs: repeated calls with the
same parameters and sample set return bit-identical results.
"""

import logging
from functools import partial

import jax
import jax.numpy as jnp
import numpy as np
from beartype import beartype
from beartype.typing import Optional, Tuple
from jaxtyping import Array, Bool, Float, jaxtyped

from solina.types import (
    NUM_PARAMS,
    ResidualStats,
    SampleSet,
    SkippedContribution,
)

from .oracle import SUPERQUADRIC_ORACLE, DerivativeOracle

logger = logging.getLogger(__name__)


def _empty_stats(num_points: int = 0) -> ResidualStats:
    return ResidualStats(
        gradient=jnp.zeros(NUM_PARAMS, dtype=jnp.float64),
        hessian=jnp.zeros((NUM_PARAMS, NUM_PARAMS), dtype=jnp.float64),
        gradient_skipped=jnp.zeros((num_points, NUM_PARAMS), dtype=bool),
        hessian_skipped=jnp.zeros(
            (num_points, NUM_PARAMS, NUM_PARAMS), dtype=bool
        ),
    )


@partial(jax.jit, static_argnums=(2,))
@jaxtyped(typechecker=beartype)
def compute_residual_stats(
    params: Float[Array, " 11"],
    sample_set: SampleSet,
    oracle: DerivativeOracle = SUPERQUADRIC_ORACLE,
) -> ResidualStats:
    """Aggregate per-point derivative contributions over a sample set.

    Implementation Logic
    --------------------
    1. Evaluate ``oracle.first`` and ``oracle.second`` for every point
       with ``jax.vmap``, giving (N, 11) and (N, 121) arrays.
    2. Reshape the second derivatives row-major to (N, 11, 11).
    3. Flag NaN elements with ``jnp.isnan``.
    4. Replace flagged elements by zero and sum over the point axis.

    An empty sample set short-circuits to the zero gradient, the zero
    Hessian and empty masks. The point count is static under ``jit``.

    Parameters
    ----------
    params : Float[Array, " 11"]
        Flat parameter vector. No range restriction is enforced.
    sample_set : SampleSet
        Sample points, possibly empty.
    oracle : DerivativeOracle, optional
        Per-point derivative formulas. Default is the superquadric
        squared-error oracle.

    Returns
    -------
    stats : ResidualStats
        Gradient (11,), Hessian (11, 11) and the (N, 11) and
        (N, 11, 11) masks of excluded NaN elements.
    """
    points: Float[Array, " N 3"] = sample_set.points
    num_points: int = points.shape[0]
    if num_points == 0:
        return _empty_stats()
    per_point_gradient: Float[Array, " N 11"] = jax.vmap(
        oracle.first, in_axes=(None, 0)
    )(params, points)
    per_point_hessian: Float[Array, " N 11 11"] = jax.vmap(
        oracle.second, in_axes=(None, 0)
    )(params, points).reshape(num_points, NUM_PARAMS, NUM_PARAMS)
    gradient_skipped: Bool[Array, " N 11"] = jnp.isnan(per_point_gradient)
    hessian_skipped: Bool[Array, " N 11 11"] = jnp.isnan(per_point_hessian)
    gradient: Float[Array, " 11"] = jnp.sum(
        jnp.where(gradient_skipped, 0.0, per_point_gradient), axis=0
    )
    hessian: Float[Array, " 11 11"] = jnp.sum(
        jnp.where(hessian_skipped, 0.0, per_point_hessian), axis=0
    )
    return ResidualStats(
        gradient=gradient,
        hessian=hessian,
        gradient_skipped=gradient_skipped,
        hessian_skipped=hessian_skipped,
    )


@jaxtyped(typechecker=beartype)
def compute_gradient(
    params: Float[Array, " 11"],
    sample_set: SampleSet,
    oracle: DerivativeOracle = SUPERQUADRIC_ORACLE,
) -> Float[Array, " 11"]:
    """Gradient of the total squared error, NaN elements excluded."""
    return compute_residual_stats(params, sample_set, oracle).gradient


@jaxtyped(typechecker=beartype)
def compute_hessian(
    params: Float[Array, " 11"],
    sample_set: SampleSet,
    oracle: DerivativeOracle = SUPERQUADRIC_ORACLE,
) -> Float[Array, " 11 11"]:
    """Hessian of the total squared error, NaN elements excluded."""
    return compute_residual_stats(params, sample_set, oracle).hessian


@jaxtyped(typechecker=beartype)
def combine_residual_stats(
    first: ResidualStats,
    second: ResidualStats,
) -> ResidualStats:
    """Merge the statistics of two disjoint point subsets.

    Gradients and Hessians add; the NaN masks are concatenated along the
    point axis, ``first`` before ``second``, so point indices in the
    merged masks refer to the concatenated sample set.

    Parameters
    ----------
    first : ResidualStats
        Statistics of the leading subset.
    second : ResidualStats
        Statistics of the trailing subset.

    Returns
    -------
    merged : ResidualStats
        Statistics of the union of both subsets.
    """
    return ResidualStats(
        gradient=first.gradient + second.gradient,
        hessian=first.hessian + second.hessian,
        gradient_skipped=jnp.concatenate(
            [first.gradient_skipped, second.gradient_skipped], axis=0
        ),
        hessian_skipped=jnp.concatenate(
            [first.hessian_skipped, second.hessian_skipped], axis=0
        ),
    )


@jaxtyped(typechecker=beartype)
def accumulate_residual_stats(
    params: Float[Array, " 11"],
    sample_set: SampleSet,
    oracle: DerivativeOracle = SUPERQUADRIC_ORACLE,
    chunk_size: int = 4096,
) -> ResidualStats:
    """Fold the sample set chunk by chunk into one ResidualStats.

    Bounds the size of the per-point intermediate arrays to
    ``chunk_size`` points. The result equals ``compute_residual_stats``
    up to floating-point summation order.

    Parameters
    ----------
    params : Float[Array, " 11"]
        Flat parameter vector.
    sample_set : SampleSet
        Sample points.
    oracle : DerivativeOracle, optional
        Per-point derivative formulas.
    chunk_size : int, optional
        Number of points per chunk. Default is 4096.

    Returns
    -------
    stats : ResidualStats
        Aggregated statistics over all points.

    Raises
    ------
    ValueError
        If ``chunk_size`` is not positive.
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    points: Float[Array, " N 3"] = sample_set.points
    stats: ResidualStats = _empty_stats()
    for start in range(0, points.shape[0], chunk_size):
        chunk = SampleSet(points=points[start : start + chunk_size])
        stats = combine_residual_stats(
            stats, compute_residual_stats(params, chunk, oracle)
        )
    return stats


@beartype
def skipped_contributions(
    stats: ResidualStats,
) -> Tuple[SkippedContribution, ...]:
    """List every NaN element excluded from an evaluation.

    Parameters
    ----------
    stats : ResidualStats
        Result of an evaluation.

    Returns
    -------
    skipped : Tuple[SkippedContribution, ...]
        One record per excluded element, gradient elements first, each
        group ordered by point index then parameter index.
    """
    gradient_hits: np.ndarray = np.argwhere(np.asarray(stats.gradient_skipped))
    hessian_hits: np.ndarray = np.argwhere(np.asarray(stats.hessian_skipped))
    skipped = [
        SkippedContribution(int(point), "gradient", int(row), -1)
        for point, row in gradient_hits
    ]
    skipped.extend(
        SkippedContribution(int(point), "hessian", int(row), int(col))
        for point, row, col in hessian_hits
    )
    return tuple(skipped)


@beartype
def report_skipped(
    stats: ResidualStats,
    log: Optional[logging.Logger] = None,
) -> Tuple[SkippedContribution, ...]:
    """Log every excluded NaN element at WARNING level.

    Parameters
    ----------
    stats : ResidualStats
        Result of an evaluation.
    log : Optional[logging.Logger], optional
        Logger to write to. Default is this module's logger.

    Returns
    -------
    skipped : Tuple[SkippedContribution, ...]
        The records that were logged.
    """
    log = logger if log is None else log
    skipped = skipped_contributions(stats)
    for item in skipped:
        if item.kind == "gradient":
            log.warning(
                "[Gradient] NaN value in (%d) for point %d",
                item.row,
                item.point_index,
            )
        else:
            log.warning(
                "[Hessian] NaN value in (%d, %d) for point %d",
                item.row,
                item.col,
                item.point_index,
            )
    return skipped
