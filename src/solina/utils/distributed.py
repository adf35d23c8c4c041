"""Multi-device utilities for sharded residual evaluation.

Extended Summary
----------------
The residual evaluator sums independent per-point contributions, so the
sample set can be split across devices and each device can reduce its
own shard. This module creates a one-dimensional device mesh and places
the points of a SampleSet on it; jit-compiled evaluation then follows
the input sharding and XLA inserts the cross-device sum.

Routine Listings
----------------
get_device_count : function
    Gets the number of available JAX devices.
create_mesh : function
    Creates a device mesh with a single 'points' axis.
shard_sample_set : function
    Shards the points of a SampleSet across a mesh.

Examples
--------
>>> from solina.utils.distributed import create_mesh, shard_sample_set
>>> mesh = create_mesh()
>>> sharded = shard_sample_set(sample_set, mesh)
"""

import jax
from beartype import beartype
from beartype.typing import Optional
from jax.experimental import mesh_utils
from jax.sharding import Mesh, NamedSharding
from jax.sharding import PartitionSpec as P

from solina.types import SampleSet

POINT_AXIS: str = "points"


@beartype
def get_device_count() -> int:
    """Get number of available JAX devices.

    Returns
    -------
    count : int
        Number of devices visible to JAX (CPU, GPU or TPU).
    """
    return jax.device_count()


@beartype
def create_mesh(n_devices: Optional[int] = None) -> Mesh:
    """Create a device mesh for sharding sample points.

    Parameters
    ----------
    n_devices : Optional[int], optional
        Number of devices to use. If None, uses all available devices.

    Returns
    -------
    mesh : Mesh
        Mesh with a single axis named 'points'.

    Raises
    ------
    ValueError
        If ``n_devices`` is not between 1 and the number of available
        devices.
    """
    available: int = jax.device_count()
    if n_devices is None:
        n_devices = available
    if not 1 <= n_devices <= available:
        raise ValueError(
            f"n_devices must be between 1 and {available}, got {n_devices}"
        )
    selected_devices = jax.devices()[:n_devices]
    device_grid = mesh_utils.create_device_mesh(
        (n_devices,), devices=selected_devices
    )
    return Mesh(device_grid, axis_names=(POINT_AXIS,))


@beartype
def shard_sample_set(sample_set: SampleSet, mesh: Mesh) -> SampleSet:
    """Shard the points of a sample set across the mesh.

    Parameters
    ----------
    sample_set : SampleSet
        Points to distribute. The point count must be divisible by the
        number of devices in the mesh.
    mesh : Mesh
        Mesh created by ``create_mesh``.

    Returns
    -------
    sharded : SampleSet
        Same points, partitioned along the point axis.

    Raises
    ------
    ValueError
        If the point count is not divisible by the mesh size.
    """
    num_points: int = sample_set.points.shape[0]
    num_shards: int = mesh.shape[POINT_AXIS]
    if num_points % num_shards != 0:
        raise ValueError(
            f"{num_points} points cannot be split evenly across "
            f"{num_shards} devices"
        )
    sharding = NamedSharding(mesh, P(POINT_AXIS, None))
    return SampleSet(points=jax.device_put(sample_set.points, sharding))
