"""Common utility functions used throughout the code.

Extended Summary
----------------
Domain-agnostic numerical building blocks: the damped Newton iteration,
parameter vector conversions and rotations, and multi-device helpers.

Submodules
----------
distributed
    Device mesh creation and sample-point sharding
math
    Parameter flattening, Euler rotation and signed powers
newton
    Damped Newton primitives and iteration loops

Routine Listings
----------------
condition_number : function
    Condition number of the damped Newton system
create_mesh : function
    Creates a device mesh with a 'points' axis
damped_solve : function
    Solves (H + λ diag(H)) Δ = J
damping_matrix : function
    Diagonal matrix from the Hessian diagonal
get_device_count : function
    Gets the number of available JAX devices
is_finished : function
    Whether a NewtonState is converged or exhausted
newton_history : function
    Damped Newton loop recording every step size
newton_solve : function
    Damped Newton loop until converged or exhausted
newton_step : function
    One damped Newton iteration
PINV_RTOL : float
    Relative singular-value cutoff of the pseudo-inverse solve
params_to_vector : function
    SuperquadricParams to length-11 vector
rotation_matrix : function
    Rotation from roll, pitch and yaw
shard_sample_set : function
    Shards sample points across a device mesh
signed_power : function
    sign(x) * |x|^p
vector_to_params : function
    Length-11 vector to SuperquadricParams
"""

from .distributed import (
    create_mesh,
    get_device_count,
    shard_sample_set,
)
from .math import (
    params_to_vector,
    rotation_matrix,
    signed_power,
    vector_to_params,
)
from .newton import (
    PINV_RTOL,
    EvaluateFn,
    condition_number,
    damped_solve,
    damping_matrix,
    is_finished,
    newton_history,
    newton_solve,
    newton_step,
)

__all__: list[str] = [
    "condition_number",
    "create_mesh",
    "damped_solve",
    "damping_matrix",
    "EvaluateFn",
    "get_device_count",
    "is_finished",
    "newton_history",
    "newton_solve",
    "newton_step",
    "params_to_vector",
    "PINV_RTOL",
    "rotation_matrix",
    "shard_sample_set",
    "signed_power",
    "vector_to_params",
]
