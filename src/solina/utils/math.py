"""Mathematical helpers for superquadric geometry.

Extended Summary
----------------
Conversions between the named parameter PyTree and the flat vector the
solver works on, the Euler-angle rotation used to pose a superquadric,
and the signed power used by its parametric surface.

Routine Listings
----------------
params_to_vector : function
    Flatten SuperquadricParams into a length-11 vector
vector_to_params : function
    Rebuild SuperquadricParams from a length-11 vector
rotation_matrix : function
    Local-to-world rotation from roll, pitch and yaw
signed_power : function
    Sign-preserving power sign(x) * |x|^p

Notes
-----
All functions are JAX-compatible and support automatic differentiation.
"""

import jax.numpy as jnp
import numpy as np
from beartype import beartype
from beartype.typing import Union
from jaxtyping import Array, Float, Num, jaxtyped

from solina.types import NUM_PARAMS, ScalarFloat, SuperquadricParams


@jaxtyped(typechecker=beartype)
def params_to_vector(params: SuperquadricParams) -> Float[Array, " 11"]:
    """Flatten SuperquadricParams into the fixed-order parameter vector.

    Parameters
    ----------
    params : SuperquadricParams
        Named parameters.

    Returns
    -------
    vector : Float[Array, " 11"]
        ``[a1, a2, a3, e1, e2, px, py, pz, ra, pa, ya]``.
    """
    return jnp.stack(
        [jnp.asarray(value, dtype=jnp.float64) for value in params]
    )


@jaxtyped(typechecker=beartype)
def vector_to_params(
    vector: Union[Num[Array, " ..."], Num[np.ndarray, " ..."]],
) -> SuperquadricParams:
    """Rebuild SuperquadricParams from a flat parameter vector.

    Parameters
    ----------
    vector : Union[Num[Array, " ..."], Num[np.ndarray, " ..."]]
        Vector of exactly 11 values in the fixed parameter order.

    Returns
    -------
    params : SuperquadricParams
        Named parameters.

    Raises
    ------
    ValueError
        If ``vector`` does not hold exactly 11 values.
    """
    vector_arr: Float[Array, " n"] = jnp.asarray(vector, dtype=jnp.float64)
    if vector_arr.shape != (NUM_PARAMS,):
        raise ValueError(
            f"parameter vector must have shape ({NUM_PARAMS},), "
            f"got {vector_arr.shape}"
        )
    return SuperquadricParams(*(vector_arr[i] for i in range(NUM_PARAMS)))


@jaxtyped(typechecker=beartype)
def rotation_matrix(
    roll: ScalarFloat,
    pitch: ScalarFloat,
    yaw: ScalarFloat,
) -> Float[Array, " 3 3"]:
    """Local-to-world rotation ``Rz(yaw) @ Ry(pitch) @ Rx(roll)``.

    Parameters
    ----------
    roll : ScalarFloat
        Rotation about the x axis in radians.
    pitch : ScalarFloat
        Rotation about the y axis in radians.
    yaw : ScalarFloat
        Rotation about the z axis in radians.

    Returns
    -------
    rotation : Float[Array, " 3 3"]
        Orthonormal rotation matrix. World points map to the local frame
        with ``rotation.T @ (point - centre)``.
    """
    cr, sr = jnp.cos(roll), jnp.sin(roll)
    cp, sp = jnp.cos(pitch), jnp.sin(pitch)
    cy, sy = jnp.cos(yaw), jnp.sin(yaw)
    return jnp.array(
        [
            [cy * cp, cy * sp * sr - sy * cr, cy * sp * cr + sy * sr],
            [sy * cp, sy * sp * sr + cy * cr, sy * sp * cr - cy * sr],
            [-sp, cp * sr, cp * cr],
        ]
    )


def signed_power(
    x: Float[Array, " ..."], exponent: ScalarFloat
) -> Float[Array, " ..."]:
    """Return ``sign(x) * |x| ** exponent``."""
    return jnp.sign(x) * jnp.abs(x) ** exponent
