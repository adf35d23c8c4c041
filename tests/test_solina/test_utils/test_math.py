"""Tests for parameter conversions and rotations in solina.utils.math."""

import chex
import jax.numpy as jnp
import numpy as np
import pytest
from absl.testing import parameterized

from solina.types import make_superquadric_params
from solina.utils import (
    params_to_vector,
    rotation_matrix,
    signed_power,
    vector_to_params,
)


class TestParameterVector(chex.TestCase, parameterized.TestCase):
    """Test params_to_vector and vector_to_params."""

    def test_fixed_order(self) -> None:
        """The vector follows a1, a2, a3, e1, e2, px, py, pz, ra, pa, ya."""
        params = make_superquadric_params(
            a1=1.0,
            a2=2.0,
            a3=3.0,
            e1=4.0,
            e2=5.0,
            px=6.0,
            py=7.0,
            pz=8.0,
            ra=9.0,
            pa=10.0,
            ya=11.0,
        )
        vector = params_to_vector(params)
        chex.assert_shape(vector, (11,))
        chex.assert_trees_all_close(vector, jnp.arange(1.0, 12.0))

    def test_vector_to_params_names_fields(self) -> None:
        """Each entry of the vector lands in its named field."""
        params = vector_to_params(np.arange(11.0))
        chex.assert_trees_all_close(params.a1, 0.0)
        chex.assert_trees_all_close(params.px, 5.0)
        chex.assert_trees_all_close(params.ya, 10.0)

    @parameterized.named_parameters(
        ("too_short", 10),
        ("too_long", 12),
    )
    def test_rejects_wrong_length(self, length: int) -> None:
        """Only vectors of exactly 11 values are accepted."""
        with pytest.raises(ValueError, match="11"):
            vector_to_params(jnp.zeros(length))


class TestRotationMatrix(chex.TestCase):
    """Test rotation_matrix."""

    def test_identity_at_zero(self) -> None:
        """Zero angles give the identity."""
        chex.assert_trees_all_close(
            rotation_matrix(0.0, 0.0, 0.0), jnp.eye(3), atol=1e-15
        )

    def test_orthonormal(self) -> None:
        """Arbitrary angles give a proper rotation."""
        rotation = rotation_matrix(0.3, -0.7, 1.9)
        chex.assert_trees_all_close(
            rotation.T @ rotation, jnp.eye(3), atol=1e-12
        )
        chex.assert_trees_all_close(jnp.linalg.det(rotation), 1.0, atol=1e-12)

    def test_yaw_rotates_about_z(self) -> None:
        """A quarter turn in yaw maps the x axis onto the y axis."""
        rotation = rotation_matrix(0.0, 0.0, jnp.pi / 2)
        chex.assert_trees_all_close(
            rotation @ jnp.array([1.0, 0.0, 0.0]),
            jnp.array([0.0, 1.0, 0.0]),
            atol=1e-12,
        )

    def test_composition_order(self) -> None:
        """The matrix equals Rz(yaw) @ Ry(pitch) @ Rx(roll)."""
        roll, pitch, yaw = 0.4, -0.2, 0.9
        expected = (
            rotation_matrix(0.0, 0.0, yaw)
            @ rotation_matrix(0.0, pitch, 0.0)
            @ rotation_matrix(roll, 0.0, 0.0)
        )
        chex.assert_trees_all_close(
            rotation_matrix(roll, pitch, yaw), expected, atol=1e-12
        )


class TestSignedPower(chex.TestCase):
    """Test signed_power."""

    def test_keeps_sign(self) -> None:
        """The sign of the base survives fractional exponents."""
        result = signed_power(jnp.array([-8.0, 0.0, 8.0]), 1.0 / 3.0)
        chex.assert_trees_all_close(
            result, jnp.array([-2.0, 0.0, 2.0]), atol=1e-12
        )
