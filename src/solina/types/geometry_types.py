"""Geometric types for superquadric fitting.

Extended Summary
----------------
PyTree data structures describing the two inputs of every fit: the
superquadric parameter set being estimated and the cloud of 3D sample
points it is fitted to.

Routine Listings
----------------
NUM_PARAMS : int
    Number of scalar parameters of a superquadric (11)
PARAMETER_NAMES : Tuple[str, ...]
    Field names of the parameter vector in their fixed order
SuperquadricParams : NamedTuple
    Named-field PyTree holding the 11 superquadric parameters
SampleSet : NamedTuple
    PyTree holding an immutable (N, 3) array of sample points
make_superquadric_params : function
    Factory function for SuperquadricParams creation
make_sample_set : function
    Factory function for SampleSet creation

Notes
-----
The parameter order is fixed and shared by every flat parameter vector
used by the solver:

====  =====  ====================================
idx   name   meaning
====  =====  ====================================
0     a1     scale along the local x axis
1     a2     scale along the local y axis
2     a3     scale along the local z axis
3     e1     north-south shape exponent
4     e2     east-west shape exponent
5     px     centre x coordinate
6     py     centre y coordinate
7     pz     centre z coordinate
8     ra     roll, rotation about x
9     pa     pitch, rotation about y
10    ya     yaw, rotation about z
====  =====  ====================================
"""

import jax.numpy as jnp
import numpy as np
from beartype import beartype
from beartype.typing import NamedTuple, Tuple, Union
from jax.tree_util import register_pytree_node_class
from jaxtyping import Array, Float, Num, jaxtyped

from .common_types import ScalarNumeric

NUM_PARAMS: int = 11
PARAMETER_NAMES: Tuple[str, ...] = (
    "a1",
    "a2",
    "a3",
    "e1",
    "e2",
    "px",
    "py",
    "pz",
    "ra",
    "pa",
    "ya",
)


@register_pytree_node_class
class SuperquadricParams(NamedTuple):
    """Named parameters of a posed superquadric.

    Attributes
    ----------
    a1, a2, a3 : Float[Array, " "]
        Scale coefficients along the local x, y and z axes.
    e1, e2 : Float[Array, " "]
        Shape exponents. ``e1`` controls the cross-section along z,
        ``e2`` the cross-section in the xy plane.
    px, py, pz : Float[Array, " "]
        Centre of the superquadric in world coordinates.
    ra, pa, ya : Float[Array, " "]
        Roll, pitch and yaw angles in radians. The local-to-world
        rotation is ``Rz(ya) @ Ry(pa) @ Rx(ra)``.
    """

    a1: Float[Array, " "]
    a2: Float[Array, " "]
    a3: Float[Array, " "]
    e1: Float[Array, " "]
    e2: Float[Array, " "]
    px: Float[Array, " "]
    py: Float[Array, " "]
    pz: Float[Array, " "]
    ra: Float[Array, " "]
    pa: Float[Array, " "]
    ya: Float[Array, " "]

    def tree_flatten(
        self,
    ) -> Tuple[Tuple[Float[Array, " "], ...], None]:
        """Flatten the SuperquadricParams into a tuple of its components."""
        return (tuple(self), None)

    @classmethod
    def tree_unflatten(
        cls,
        _aux_data: None,
        children: Tuple[Float[Array, " "], ...],
    ) -> "SuperquadricParams":
        """Unflatten the SuperquadricParams from a tuple of its components."""
        return cls(*children)


@register_pytree_node_class
class SampleSet(NamedTuple):
    """Unordered cloud of 3D sample points.

    Attributes
    ----------
    points : Float[Array, " N 3"]
        Point coordinates, one row per point. ``N`` may be zero.
    """

    points: Float[Array, " N 3"]

    def tree_flatten(self) -> Tuple[Tuple[Float[Array, " N 3"]], None]:
        """Flatten the SampleSet into a tuple of its components."""
        return ((self.points,), None)

    @classmethod
    def tree_unflatten(
        cls,
        _aux_data: None,
        children: Tuple[Float[Array, " N 3"]],
    ) -> "SampleSet":
        """Unflatten the SampleSet from a tuple of its components."""
        return cls(*children)


@jaxtyped(typechecker=beartype)
def make_superquadric_params(
    a1: ScalarNumeric = 1.0,
    a2: ScalarNumeric = 1.0,
    a3: ScalarNumeric = 1.0,
    e1: ScalarNumeric = 1.0,
    e2: ScalarNumeric = 1.0,
    px: ScalarNumeric = 0.0,
    py: ScalarNumeric = 0.0,
    pz: ScalarNumeric = 0.0,
    ra: ScalarNumeric = 0.0,
    pa: ScalarNumeric = 0.0,
    ya: ScalarNumeric = 0.0,
) -> SuperquadricParams:
    """Create a SuperquadricParams instance.

    The defaults describe the unit sphere centred at the origin with no
    rotation.

    Parameters
    ----------
    a1, a2, a3 : ScalarNumeric, optional
        Scale coefficients. Default is 1.0.
    e1, e2 : ScalarNumeric, optional
        Shape exponents. Default is 1.0.
    px, py, pz : ScalarNumeric, optional
        Centre coordinates. Default is 0.0.
    ra, pa, ya : ScalarNumeric, optional
        Roll, pitch and yaw in radians. Default is 0.0.

    Returns
    -------
    params : SuperquadricParams
        Parameters stored as float64 scalars.

    Notes
    -----
    No range restriction is enforced; negative scales or exponents are
    accepted and simply produce whatever the inside-outside function
    evaluates to.
    """
    values = (a1, a2, a3, e1, e2, px, py, pz, ra, pa, ya)
    return SuperquadricParams(
        *(jnp.asarray(value, dtype=jnp.float64) for value in values)
    )


@jaxtyped(typechecker=beartype)
def make_sample_set(
    points: Union[Num[Array, " ..."], Num[np.ndarray, " ..."]],
) -> SampleSet:
    """Create a SampleSet from an array of points.

    Parameters
    ----------
    points : Union[Num[Array, " ..."], Num[np.ndarray, " ..."]]
        Point coordinates of shape (N, 3). An empty (0, 3) array is
        allowed.

    Returns
    -------
    sample_set : SampleSet
        Sample set holding a float64 copy of the points.

    Raises
    ------
    ValueError
        If ``points`` is not two-dimensional with three columns.
    """
    points_arr: Float[Array, " N 3"] = jnp.asarray(points, dtype=jnp.float64)
    expected_columns: int = 3
    if points_arr.ndim != 2 or points_arr.shape[1] != expected_columns:
        raise ValueError(
            f"points must have shape (N, 3), got {points_arr.shape}"
        )
    return SampleSet(points=points_arr)
