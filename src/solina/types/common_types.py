"""Scalar type aliases shared across solina.

Extended Summary
----------------
Type aliases used in the signatures of solina functions. They accept
both plain Python scalars and zero-dimensional JAX arrays so that the
same function can be called from host code and from inside a traced
computation.

Routine Listings
----------------
ScalarFloat : TypeAlias
    Type alias for scalar float values
ScalarInteger : TypeAlias
    Type alias for scalar integer values
ScalarNumeric : TypeAlias
    Type alias for any scalar numeric value
"""

from beartype.typing import TypeAlias, Union
from jaxtyping import Array, Float, Int, Num

ScalarFloat: TypeAlias = Union[float, Float[Array, " "]]
ScalarInteger: TypeAlias = Union[int, Int[Array, " "]]
ScalarNumeric: TypeAlias = Union[int, float, Num[Array, " "]]
