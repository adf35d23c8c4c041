"""Synthetic sample sets on superquadric surfaces.

Extended Summary
----------------
Generators of point clouds with known ground truth, used to exercise
and validate the fit.

Routine Listings
----------------
sample_superquadric : function
    Random points on a posed superquadric surface, with optional noise
fibonacci_sphere : function
    Deterministic, near-uniform points on a sphere

Notes
-----
``sample_superquadric`` uses the signed-power parametrisation

    x' = a1 · cos(η)^e1 · cos(ω)^e2
    y' = a2 · cos(η)^e1 · sin(ω)^e2
    z' = a3 · sin(η)^e1

with η ∈ [−π/2, π/2] and ω ∈ [−π, π), then poses the local points with
``R = Rz(ya) Ry(pa) Rx(ra)`` and the centre p. Uniform angles do not
give uniform surface density; points concentrate near the edges of
boxy shapes.
"""

import math
from functools import partial

import jax
import jax.numpy as jnp
from beartype import beartype
from jaxtyping import Array, Float, PRNGKeyArray, jaxtyped

from solina.types import (
    SampleSet,
    ScalarNumeric,
    SuperquadricParams,
    make_sample_set,
)
from solina.utils.math import rotation_matrix, signed_power


@partial(jax.jit, static_argnums=(1,))
@jaxtyped(typechecker=beartype)
def sample_superquadric(
    params: SuperquadricParams,
    num_points: int,
    key: PRNGKeyArray,
    noise: ScalarNumeric = 0.0,
) -> SampleSet:
    """Sample random points on the surface of a posed superquadric.

    Parameters
    ----------
    params : SuperquadricParams
        Ground-truth parameters.
    num_points : int
        Number of points to draw.
    key : PRNGKeyArray
        Random key for the surface angles and the noise.
    noise : ScalarNumeric, optional
        Standard deviation of isotropic Gaussian noise added to every
        coordinate. Default is 0.0.

    Returns
    -------
    sample_set : SampleSet
        ``num_points`` world-space points.

    Examples
    --------
    >>> params = make_superquadric_params(a1=1.0, a2=1.5, a3=0.8)
    >>> cloud = sample_superquadric(params, 500, jax.random.PRNGKey(0))
    """
    eta_key, omega_key, noise_key = jax.random.split(key, 3)
    eta: Float[Array, " N"] = jax.random.uniform(
        eta_key, (num_points,), minval=-jnp.pi / 2, maxval=jnp.pi / 2
    )
    omega: Float[Array, " N"] = jax.random.uniform(
        omega_key, (num_points,), minval=-jnp.pi, maxval=jnp.pi
    )
    cos_eta: Float[Array, " N"] = signed_power(jnp.cos(eta), params.e1)
    local: Float[Array, " N 3"] = jnp.stack(
        [
            params.a1 * cos_eta * signed_power(jnp.cos(omega), params.e2),
            params.a2 * cos_eta * signed_power(jnp.sin(omega), params.e2),
            params.a3 * signed_power(jnp.sin(eta), params.e1),
        ],
        axis=-1,
    )
    rotation: Float[Array, " 3 3"] = rotation_matrix(
        params.ra, params.pa, params.ya
    )
    centre: Float[Array, " 3"] = jnp.stack([params.px, params.py, params.pz])
    points: Float[Array, " N 3"] = local @ rotation.T + centre
    points = points + noise * jax.random.normal(noise_key, points.shape)
    return SampleSet(points=points)


@beartype
def fibonacci_sphere(
    num_points: int,
    radius: ScalarNumeric = 1.0,
) -> SampleSet:
    """Place points on a sphere along a golden-angle spiral.

    Parameters
    ----------
    num_points : int
        Number of points.
    radius : ScalarNumeric, optional
        Sphere radius. Default is 1.0.

    Returns
    -------
    sample_set : SampleSet
        Points on the sphere of the given radius centred at the origin.
    """
    golden_angle: float = math.pi * (3.0 - math.sqrt(5.0))
    index: Float[Array, " N"] = jnp.arange(num_points, dtype=jnp.float64)
    z: Float[Array, " N"] = 1.0 - 2.0 * (index + 0.5) / num_points
    ring: Float[Array, " N"] = jnp.sqrt(1.0 - z**2)
    theta: Float[Array, " N"] = golden_angle * index
    points: Float[Array, " N 3"] = jnp.stack(
        [ring * jnp.cos(theta), ring * jnp.sin(theta), z], axis=-1
    )
    return make_sample_set(radius * points)
