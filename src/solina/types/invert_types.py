"""Solver configuration, state and result types.

Extended Summary
----------------
This module provides the data structures that flow through the damped
Newton fit: the fixed solver configuration, the iteration state carried
through the loop, the aggregated derivative statistics produced by the
residual evaluator, and the final fit result returned to callers.

The damped Newton method solves, at every iteration,

    (H + λ D) Δ = J,        D = diag(H)

and updates ``params ← params − Δ``. The Euclidean norm of Δ is the
step size used as the convergence signal.

Routine Listings
----------------
DEFAULT_DAMPING : float
    Default damping weight λ (0.1)
DEFAULT_MAX_ITERATIONS : int
    Default iteration cap (1000)
DEFAULT_MIN_THRESHOLD : float
    Default step-size convergence threshold (0.005)
DEFAULT_LINEAR_SOLVER : str
    Default linear solver for the damped system ("pinv")
LINEAR_SOLVERS : Tuple[str, ...]
    Supported linear solvers
SolverConfig : NamedTuple
    Hashable, static configuration of the solver
NewtonState : NamedTuple
    Carry of the damped Newton iteration
ResidualStats : NamedTuple
    Aggregated gradient and Hessian with per-element NaN masks
SkippedContribution : NamedTuple
    Host-side record of one excluded NaN derivative element
FitResult : NamedTuple
    Outcome of a single fit
make_solver_config : function
    Factory function for validated SolverConfig creation
make_newton_state : function
    Factory function for NewtonState creation

Notes
-----
SolverConfig holds only Python scalars and strings so that it can be
passed as a static argument to ``jax.jit``.
"""

import jax.numpy as jnp
from beartype import beartype
from beartype.typing import NamedTuple, Tuple
from jax.tree_util import register_pytree_node_class
from jaxtyping import Array, Bool, Float, Int, jaxtyped

from .common_types import ScalarInteger, ScalarNumeric
from .geometry_types import NUM_PARAMS, SuperquadricParams

DEFAULT_DAMPING: float = 0.1
DEFAULT_MAX_ITERATIONS: int = 1000
DEFAULT_MIN_THRESHOLD: float = 0.005
DEFAULT_LINEAR_SOLVER: str = "pinv"
LINEAR_SOLVERS: Tuple[str, ...] = ("pinv", "solve")


class SolverConfig(NamedTuple):
    """Fixed configuration of one damped Newton run.

    Attributes
    ----------
    damping : float
        Damping weight λ multiplying the Hessian diagonal.
    max_iterations : int
        Iteration cap. Reaching it without convergence exhausts the fit.
    min_threshold : float
        Step-size threshold. A step with ``‖Δ‖ <= min_threshold``
        converges the fit.
    linear_solver : str
        ``"pinv"`` for a minimum-norm solve through the pseudo-inverse or
        ``"solve"`` for a direct LU solve.
    """

    damping: float
    max_iterations: int
    min_threshold: float
    linear_solver: str


@register_pytree_node_class
class NewtonState(NamedTuple):
    """Carry of the damped Newton iteration.

    Attributes
    ----------
    params : Float[Array, " 11"]
        Current flat parameter vector.
    iteration : Int[Array, " "]
        Number of completed iterations.
    step_size : Float[Array, " "]
        Norm of the last parameter update, infinity before the first.
    converged : Bool[Array, " "]
        Whether the last step size fell to the threshold.
    """

    params: Float[Array, " 11"]
    iteration: Int[Array, " "]
    step_size: Float[Array, " "]
    converged: Bool[Array, " "]

    def tree_flatten(
        self,
    ) -> Tuple[
        Tuple[
            Float[Array, " 11"],
            Int[Array, " "],
            Float[Array, " "],
            Bool[Array, " "],
        ],
        None,
    ]:
        """Flatten the NewtonState into a tuple of its components."""
        return (
            (self.params, self.iteration, self.step_size, self.converged),
            None,
        )

    @classmethod
    def tree_unflatten(
        cls,
        _aux_data: None,
        children: Tuple[
            Float[Array, " 11"],
            Int[Array, " "],
            Float[Array, " "],
            Bool[Array, " "],
        ],
    ) -> "NewtonState":
        """Unflatten the NewtonState from a tuple of its components."""
        return cls(*children)


@register_pytree_node_class
class ResidualStats(NamedTuple):
    """Gradient and Hessian of the squared error with NaN diagnostics.

    Attributes
    ----------
    gradient : Float[Array, " 11"]
        Sum of the finite per-point first-derivative elements.
    hessian : Float[Array, " 11 11"]
        Sum of the finite per-point second-derivative elements.
    gradient_skipped : Bool[Array, " N 11"]
        True where a per-point gradient element was NaN and excluded.
    hessian_skipped : Bool[Array, " N 11 11"]
        True where a per-point Hessian element was NaN and excluded.
    """

    gradient: Float[Array, " 11"]
    hessian: Float[Array, " 11 11"]
    gradient_skipped: Bool[Array, " N 11"]
    hessian_skipped: Bool[Array, " N 11 11"]

    def tree_flatten(
        self,
    ) -> Tuple[
        Tuple[
            Float[Array, " 11"],
            Float[Array, " 11 11"],
            Bool[Array, " N 11"],
            Bool[Array, " N 11 11"],
        ],
        None,
    ]:
        """Flatten the ResidualStats into a tuple of its components."""
        return (
            (
                self.gradient,
                self.hessian,
                self.gradient_skipped,
                self.hessian_skipped,
            ),
            None,
        )

    @classmethod
    def tree_unflatten(
        cls,
        _aux_data: None,
        children: Tuple[
            Float[Array, " 11"],
            Float[Array, " 11 11"],
            Bool[Array, " N 11"],
            Bool[Array, " N 11 11"],
        ],
    ) -> "ResidualStats":
        """Unflatten the ResidualStats from a tuple of its components."""
        return cls(*children)


class SkippedContribution(NamedTuple):
    """One derivative element excluded because it was NaN.

    Attributes
    ----------
    point_index : int
        Row of the offending point in the sample set.
    kind : str
        ``"gradient"`` or ``"hessian"``.
    row : int
        Parameter index of the element.
    col : int
        Second parameter index for Hessian elements, -1 for gradient
        elements.
    """

    point_index: int
    kind: str
    row: int
    col: int


class FitResult(NamedTuple):
    """Outcome of one call to the damped Newton fit.

    Attributes
    ----------
    params : SuperquadricParams
        Parameters after the last iteration, also when not converged.
    converged : bool
        True when the last step size fell to the threshold.
    iterations : int
        Number of iterations consumed.
    step_size : float
        Norm of the last parameter update.
    gradient : Float[Array, " 11"]
        Gradient evaluated at the returned parameters.
    hessian : Float[Array, " 11 11"]
        Hessian evaluated at the returned parameters.
    step_sizes : Float[Array, " K"]
        Step size of every iteration, ``K == iterations``.
    skipped : Tuple[SkippedContribution, ...]
        NaN elements excluded from the evaluation at the returned
        parameters.
    """

    params: SuperquadricParams
    converged: bool
    iterations: int
    step_size: float
    gradient: Float[Array, " 11"]
    hessian: Float[Array, " 11 11"]
    step_sizes: Float[Array, " K"]
    skipped: Tuple[SkippedContribution, ...]


@beartype
def make_solver_config(
    damping: ScalarNumeric = DEFAULT_DAMPING,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    min_threshold: ScalarNumeric = DEFAULT_MIN_THRESHOLD,
    linear_solver: str = DEFAULT_LINEAR_SOLVER,
) -> SolverConfig:
    """Create a validated SolverConfig.

    Parameters
    ----------
    damping : ScalarNumeric, optional
        Damping weight λ >= 0. Default is 0.1.
    max_iterations : int, optional
        Iteration cap >= 1. Default is 1000.
    min_threshold : ScalarNumeric, optional
        Step-size threshold > 0. Default is 0.005.
    linear_solver : str, optional
        Linear solver for the damped system. Default is "pinv".

    Returns
    -------
    config : SolverConfig
        Hashable configuration usable as a static jit argument.

    Raises
    ------
    ValueError
        If any value is outside its valid range.
    """
    damping_value: float = float(damping)
    threshold_value: float = float(min_threshold)
    if not damping_value >= 0.0:
        raise ValueError(f"damping must be non-negative, got {damping}")
    if max_iterations < 1:
        raise ValueError(
            f"max_iterations must be at least 1, got {max_iterations}"
        )
    if not threshold_value > 0.0:
        raise ValueError(
            f"min_threshold must be positive, got {min_threshold}"
        )
    if linear_solver not in LINEAR_SOLVERS:
        raise ValueError(f"Unknown linear solver {linear_solver!r}")
    return SolverConfig(
        damping=damping_value,
        max_iterations=int(max_iterations),
        min_threshold=threshold_value,
        linear_solver=linear_solver,
    )


@jaxtyped(typechecker=beartype)
def make_newton_state(
    params: Float[Array, " 11"],
    iteration: ScalarInteger = 0,
) -> NewtonState:
    """Create the initial NewtonState for a parameter vector.

    Parameters
    ----------
    params : Float[Array, " 11"]
        Initial guess, accepted as-is.
    iteration : ScalarInteger, optional
        Starting iteration count. Default is 0.

    Returns
    -------
    state : NewtonState
        State with infinite step size and ``converged`` False.
    """
    return NewtonState(
        params=jnp.asarray(params, dtype=jnp.float64).reshape(NUM_PARAMS),
        iteration=jnp.asarray(iteration, dtype=jnp.int32),
        step_size=jnp.asarray(jnp.inf, dtype=jnp.float64),
        converged=jnp.asarray(False),
    )
