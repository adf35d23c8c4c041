"""Inside-outside function of a superquadric and its derivative oracle.

Extended Summary
----------------
A posed superquadric is described by the implicit inside-outside
function

    F(x) = ((|x'/a1|^(2/e2) + |y'/a2|^(2/e2))^(e2/e1) + |z'/a3|^(2/e1))^e1

evaluated in the local frame ``(x', y', z') = Rᵀ (x − p)`` with
``R = Rz(ya) Ry(pa) Rx(ra)``. F equals 1 on the surface, is below 1
inside and above 1 outside. The per-point error is ``f = F − 1`` and a
fit minimises ``Σ f²`` over the sample points.

The residual evaluator does not differentiate anything itself. It
consumes a DerivativeOracle: a pair of pure functions returning, for one
point, the 11 first derivatives and the 121 row-major second
derivatives of ``f²`` with respect to the parameters. The default
oracle is built here with JAX forward- and reverse-mode autodiff of the
closed-form expression; any other pure, traceable pair of functions
with the same signatures can be substituted.

Routine Listings
----------------
DerivativeOracle : NamedTuple
    Pair of first- and second-derivative functions for one point
inside_outside : function
    Inside-outside function value of one or many points
point_errors : function
    Per-point error ``F − 1``
squared_error : function
    Squared error ``(F − 1)²`` of a single point
superquadric_first_derivative : function
    Gradient of the squared error of one point, length 11
superquadric_second_derivative : function
    Hessian of the squared error of one point, 121 values row-major
make_superquadric_oracle : function
    Default DerivativeOracle for the superquadric squared error

Notes
-----
Points with non-finite coordinates, or points lying where a fractional
power of a local coordinate has a singular derivative, yield NaN
derivative elements. The residual evaluator excludes and reports them.
"""

import jax
import jax.numpy as jnp
from beartype import beartype
from beartype.typing import Callable, NamedTuple
from jaxtyping import Array, Float, jaxtyped

from solina.types import NUM_PARAMS
from solina.utils.math import rotation_matrix


class DerivativeOracle(NamedTuple):
    """Analytic derivative formulas consumed by the residual evaluator.

    Attributes
    ----------
    first : Callable
        Partial derivatives of one point's squared error with respect to
        the 11 parameters.
    second : Callable
        Second partial derivatives, flattened row-major from 11 × 11.
    """

    first: Callable[
        [Float[Array, " 11"], Float[Array, " 3"]], Float[Array, " 11"]
    ]
    second: Callable[
        [Float[Array, " 11"], Float[Array, " 3"]], Float[Array, " 121"]
    ]


@jaxtyped(typechecker=beartype)
def inside_outside(
    params: Float[Array, " 11"],
    points: Float[Array, " *batch 3"],
) -> Float[Array, " *batch"]:
    """Evaluate the inside-outside function F at world points.

    Parameters
    ----------
    params : Float[Array, " 11"]
        Flat parameter vector ``[a1, a2, a3, e1, e2, px, py, pz, ra,
        pa, ya]``.
    points : Float[Array, " *batch 3"]
        A single point of shape (3,) or a batch of shape (..., 3).

    Returns
    -------
    values : Float[Array, " *batch"]
        F for every point: 1 on the surface, < 1 inside, > 1 outside.
    """
    scales: Float[Array, " 3"] = params[0:3]
    e1: Float[Array, " "] = params[3]
    e2: Float[Array, " "] = params[4]
    centre: Float[Array, " 3"] = params[5:8]
    rotation: Float[Array, " 3 3"] = rotation_matrix(
        params[8], params[9], params[10]
    )
    local: Float[Array, " *batch 3"] = (
        (points - centre) @ rotation
    ) / scales
    xy_term: Float[Array, " *batch"] = (
        jnp.abs(local[..., 0]) ** (2.0 / e2)
        + jnp.abs(local[..., 1]) ** (2.0 / e2)
    ) ** (e2 / e1)
    z_term: Float[Array, " *batch"] = jnp.abs(local[..., 2]) ** (2.0 / e1)
    return (xy_term + z_term) ** e1


@jaxtyped(typechecker=beartype)
def point_errors(
    params: Float[Array, " 11"],
    points: Float[Array, " *batch 3"],
) -> Float[Array, " *batch"]:
    """Per-point error ``F − 1``, zero for points on the surface."""
    return inside_outside(params, points) - 1.0


def squared_error(
    params: Float[Array, " 11"], point: Float[Array, " 3"]
) -> Float[Array, " "]:
    """Squared error ``(F − 1)²`` of one point."""
    return point_errors(params, point) ** 2


def superquadric_first_derivative(
    params: Float[Array, " 11"], point: Float[Array, " 3"]
) -> Float[Array, " 11"]:
    """Gradient of ``squared_error`` with respect to the parameters."""
    return jax.grad(squared_error)(params, point)


def superquadric_second_derivative(
    params: Float[Array, " 11"], point: Float[Array, " 3"]
) -> Float[Array, " 121"]:
    """Hessian of ``squared_error``, flattened row-major to 121 values."""
    return jax.hessian(squared_error)(params, point).reshape(
        NUM_PARAMS * NUM_PARAMS
    )


SUPERQUADRIC_ORACLE: DerivativeOracle = DerivativeOracle(
    first=superquadric_first_derivative,
    second=superquadric_second_derivative,
)


@beartype
def make_superquadric_oracle() -> DerivativeOracle:
    """Return the default derivative oracle for the superquadric error.

    The same instance is returned on every call so that functions
    jit-compiled with the oracle as a static argument are reused.
    """
    return SUPERQUADRIC_ORACLE
