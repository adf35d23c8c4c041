"""Loading and downsampling of measured point clouds.

Extended Summary
----------------
Host-side helpers that turn point data on disk into a SampleSet and
reduce its density for coarse-to-fine fitting. This module is NOT
JAX-accelerated; it works on numpy arrays.

Routine Listings
----------------
load_sample_set : function
    Read a SampleSet from a .npy, .npz or whitespace-separated text file
voxel_downsample : function
    Replace the points of every occupied voxel by their centroid
"""

import logging
from pathlib import Path

import numpy as np
from beartype import beartype
from beartype.typing import Union

from solina.types import SampleSet, ScalarNumeric, make_sample_set

logger = logging.getLogger(__name__)

TEXT_SUFFIXES: tuple[str, ...] = (".xyz", ".txt", ".pts", ".csv")


@beartype
def load_sample_set(path: Union[str, Path]) -> SampleSet:
    """Load sample points from a file.

    Parameters
    ----------
    path : Union[str, Path]
        ``.npy`` file with an (N, 3) array, ``.npz`` archive with a
        ``points`` entry, or a text file (``.xyz``, ``.txt``, ``.pts``,
        ``.csv``) whose first three columns are x, y and z. Extra
        columns such as normals or colours are ignored.

    Returns
    -------
    sample_set : SampleSet
        Loaded points.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If the suffix is not supported or the data has fewer than three
        columns.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise FileNotFoundError(f"Could not read file {file_path}")
    suffix: str = file_path.suffix.lower()
    if suffix == ".npy":
        data = np.load(file_path)
    elif suffix == ".npz":
        with np.load(file_path) as archive:
            data = archive["points"]
    elif suffix in TEXT_SUFFIXES:
        delimiter = "," if suffix == ".csv" else None
        data = np.loadtxt(file_path, delimiter=delimiter, ndmin=2)
    else:
        raise ValueError(f"Unsupported point file format {suffix!r}")
    data = np.asarray(data, dtype=np.float64)
    if data.ndim != 2 or data.shape[1] < 3:
        raise ValueError(
            f"Expected at least three columns of coordinates, "
            f"got shape {data.shape}"
        )
    sample_set = make_sample_set(data[:, :3])
    logger.info("Loaded %d points from %s", data.shape[0], file_path)
    return sample_set


@beartype
def voxel_downsample(
    sample_set: SampleSet,
    voxel_size: ScalarNumeric,
) -> SampleSet:
    """Downsample a sample set on a regular voxel grid.

    Parameters
    ----------
    sample_set : SampleSet
        Points to reduce. Left unchanged.
    voxel_size : ScalarNumeric
        Edge length of the cubic voxels, > 0. The grid is anchored at
        the origin.

    Returns
    -------
    downsampled : SampleSet
        One point per occupied voxel, the centroid of the points falling
        in it, ordered by voxel index.

    Raises
    ------
    ValueError
        If ``voxel_size`` is not positive.
    """
    size: float = float(voxel_size)
    if not size > 0.0:
        raise ValueError(f"voxel_size must be positive, got {voxel_size}")
    points: np.ndarray = np.asarray(sample_set.points)
    if points.shape[0] == 0:
        return make_sample_set(points)
    voxel_index: np.ndarray = np.floor(points / size).astype(np.int64)
    _, inverse, counts = np.unique(
        voxel_index, axis=0, return_inverse=True, return_counts=True
    )
    inverse = inverse.reshape(-1)
    sums: np.ndarray = np.zeros((counts.shape[0], 3), dtype=np.float64)
    np.add.at(sums, inverse, points)
    return make_sample_set(sums / counts[:, None])
