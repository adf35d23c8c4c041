"""General-purpose damped Newton iteration with a fixed damping weight.

Extended Summary
----------------
This module provides the iteration machinery for finding a stationary
point of a scalar objective E(θ) from its explicitly assembled gradient
J and Hessian H. Each iteration solves the damped system

    (H + λ D) Δ = J,        D = diag(H)

and applies ``θ ← θ − Δ``. The damping weight λ is a fixed
configuration constant; D is rebuilt from the current Hessian at every
iteration, so the regularisation scales with the curvature of each
parameter individually.

Convergence is judged on the step size ``‖Δ‖``: the iteration stops as
soon as a step is no larger than the configured threshold, or when the
iteration cap is reached.

Routine Listings
----------------
damping_matrix : function
    Diagonal matrix built from the Hessian diagonal.
damped_solve : function
    Solve (H + λ D) Δ = J for the update Δ.
condition_number : function
    Condition number of the damped system, for diagnostics.
newton_step : function
    One damped Newton iteration.
is_finished : function
    Whether a state is converged or has exhausted its iterations.
newton_solve : function
    Iterate until converged or exhausted with ``jax.lax.while_loop``.
newton_history : function
    Iterate with ``jax.lax.scan`` and record every step size.

Notes
-----
The module is domain-agnostic. Callers provide an ``evaluate`` function
mapping a parameter vector to ``(gradient, hessian)``. All functions
are JAX-compatible and can be traced inside ``jax.jit`` as long as
``evaluate`` and the SolverConfig are treated as static.

An ill-conditioned or singular damped system is not detected. With the
``"pinv"`` solver, singular values below ``PINV_RTOL`` times the largest
one are treated as zero, so directions carrying only roundoff-level
curvature (the rotation angles of a sphere) receive no update. With
``"solve"`` the LU solve may return huge or NaN updates which then
propagate into the parameters and the step size.

References
----------
.. [1] Nocedal & Wright, "Numerical Optimization", 2nd ed., Chapter 3
.. [2] Marquardt, "An Algorithm for Least-Squares Estimation of
       Nonlinear Parameters", SIAM J. Appl. Math. 11 (1963)
"""

import jax
import jax.numpy as jnp
from beartype import beartype
from beartype.typing import Callable, Tuple
from jaxtyping import Array, Bool, Float, jaxtyped

from solina.types import NewtonState, ScalarFloat, SolverConfig

PINV_RTOL: float = 1e-8

EvaluateFn = Callable[
    [Float[Array, " n"]], Tuple[Float[Array, " n"], Float[Array, " n n"]]
]


@jaxtyped(typechecker=beartype)
def damping_matrix(hessian: Float[Array, " n n"]) -> Float[Array, " n n"]:
    """Return ``diag(diag(H))``, zero off the diagonal."""
    return jnp.diag(jnp.diagonal(hessian))


@jaxtyped(typechecker=beartype)
def damped_solve(
    hessian: Float[Array, " n n"],
    gradient: Float[Array, " n"],
    damping: ScalarFloat,
    linear_solver: str = "pinv",
) -> Float[Array, " n"]:
    """Solve the damped Newton system for the parameter update.

    Parameters
    ----------
    hessian : Float[Array, " n n"]
        Hessian H of the objective.
    gradient : Float[Array, " n"]
        Gradient J of the objective.
    damping : ScalarFloat
        Damping weight λ.
    linear_solver : str, optional
        ``"pinv"`` (default) multiplies J by the pseudo-inverse of the
        damped matrix, giving the minimum-norm solution when the matrix
        is rank deficient. Singular values below ``PINV_RTOL`` times the
        largest are cut off. ``"solve"`` uses a direct LU solve.

    Returns
    -------
    delta : Float[Array, " n"]
        Update Δ solving ``(H + λ diag(H)) Δ = J``. The caller subtracts
        it from the parameters.

    Notes
    -----
    An all-zero Hessian, as produced by an empty sample set, yields a
    zero update with ``"pinv"`` and NaN with ``"solve"``.
    """
    system: Float[Array, " n n"] = hessian + damping * damping_matrix(hessian)
    if linear_solver == "solve":
        return jnp.linalg.solve(system, gradient)
    return jnp.linalg.pinv(system, rtol=PINV_RTOL) @ gradient


@jaxtyped(typechecker=beartype)
def condition_number(
    hessian: Float[Array, " n n"],
    damping: ScalarFloat,
) -> Float[Array, " "]:
    """2-norm condition number of ``H + λ diag(H)``.

    Only used for diagnostics; the solver never acts on it.
    """
    system: Float[Array, " n n"] = hessian + damping * damping_matrix(hessian)
    return jnp.linalg.cond(system)


@jaxtyped(typechecker=beartype)
def newton_step(
    state: NewtonState,
    evaluate: EvaluateFn,
    config: SolverConfig,
) -> NewtonState:
    """Perform one damped Newton iteration.

    Implementation Logic
    --------------------
    1. Evaluate gradient J and Hessian H at ``state.params``.
    2. Build D = diag(H) and solve ``(H + λ D) Δ = J``.
    3. Update ``params ← params − Δ``.
    4. Compute the step size ``‖Δ‖`` and increment the iteration count.
    5. Mark the state converged when ``‖Δ‖ <= config.min_threshold``.

    A NaN step size compares false against the threshold, so a
    degenerate solve never reports convergence.

    Parameters
    ----------
    state : NewtonState
        Current iteration state.
    evaluate : EvaluateFn
        Function mapping parameters to ``(gradient, hessian)``.
    config : SolverConfig
        Damping weight, threshold and linear solver.

    Returns
    -------
    new_state : NewtonState
        State after the update.
    """
    gradient: Float[Array, " n"]
    hessian: Float[Array, " n n"]
    gradient, hessian = evaluate(state.params)
    delta: Float[Array, " n"] = damped_solve(
        hessian, gradient, config.damping, config.linear_solver
    )
    step_size: Float[Array, " "] = jnp.linalg.norm(delta)
    return NewtonState(
        params=state.params - delta,
        iteration=state.iteration + 1,
        step_size=step_size,
        converged=step_size <= config.min_threshold,
    )


def is_finished(state: NewtonState, config: SolverConfig) -> Bool[Array, " "]:
    """True once the state is converged or the iteration cap is hit."""
    return jnp.logical_or(
        state.converged, state.iteration >= config.max_iterations
    )


@jaxtyped(typechecker=beartype)
def newton_solve(
    state: NewtonState,
    evaluate: EvaluateFn,
    config: SolverConfig,
) -> NewtonState:
    """Run damped Newton iterations until converged or exhausted.

    Uses ``jax.lax.while_loop``, so only the iterations actually needed
    are executed. Starting from a state that is already finished returns
    it unchanged.

    Parameters
    ----------
    state : NewtonState
        Initial state, usually from ``make_newton_state``.
    evaluate : EvaluateFn
        Function mapping parameters to ``(gradient, hessian)``.
    config : SolverConfig
        Solver configuration.

    Returns
    -------
    final_state : NewtonState
        Last state. ``converged`` is False when the iteration cap was
        reached first; the parameters are those of the last update.
    """
    return jax.lax.while_loop(
        lambda carry: jnp.logical_not(is_finished(carry, config)),
        lambda carry: newton_step(carry, evaluate, config),
        state,
    )


@jaxtyped(typechecker=beartype)
def newton_history(
    state: NewtonState,
    evaluate: EvaluateFn,
    config: SolverConfig,
) -> Tuple[NewtonState, Float[Array, " M"]]:
    """Run damped Newton iterations and record each step size.

    Implementation Logic
    --------------------
    ``jax.lax.scan`` runs exactly ``config.max_iterations`` times. Each
    round checks ``is_finished`` first; once the state is converged or
    exhausted the round forwards the carry unchanged through
    ``jax.lax.cond`` and records NaN instead of a step size. The first
    ``final_state.iteration`` entries of the history are therefore the
    step sizes of the executed iterations.

    Parameters
    ----------
    state : NewtonState
        Initial state.
    evaluate : EvaluateFn
        Function mapping parameters to ``(gradient, hessian)``.
    config : SolverConfig
        Solver configuration.

    Returns
    -------
    final_state : NewtonState
        Same final state as ``newton_solve``.
    step_sizes : Float[Array, " M"]
        Step size per round, NaN after termination,
        ``M == config.max_iterations``.
    """

    def step_fn(
        carry: NewtonState, _: None
    ) -> Tuple[NewtonState, Float[Array, " "]]:
        finished: Bool[Array, " "] = is_finished(carry, config)
        result: NewtonState = jax.lax.cond(
            finished,
            lambda: carry,
            lambda: newton_step(carry, evaluate, config),
        )
        recorded: Float[Array, " "] = jnp.where(
            finished, jnp.nan, result.step_size
        )
        return result, recorded

    final_state: NewtonState
    step_sizes: Float[Array, " M"]
    final_state, step_sizes = jax.lax.scan(
        step_fn, state, None, length=config.max_iterations
    )
    return final_state, step_sizes
