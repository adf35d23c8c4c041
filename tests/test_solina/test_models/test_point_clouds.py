"""Tests for point cloud loading and downsampling."""

from pathlib import Path

import chex
import jax.numpy as jnp
import numpy as np
import pytest

from solina.models import load_sample_set, voxel_downsample
from solina.types import make_sample_set

POINTS = np.array(
    [[0.1, 0.2, 0.3], [1.0, -1.0, 0.5], [2.5, 0.0, -0.25]], dtype=np.float64
)


@pytest.mark.parametrize("suffix", [".npy", ".npz", ".xyz", ".csv"])
def test_load_formats(tmp_path: Path, suffix: str) -> None:
    """Every supported format round-trips the coordinates."""
    path = tmp_path / f"cloud{suffix}"
    if suffix == ".npy":
        np.save(path, POINTS)
    elif suffix == ".npz":
        np.savez(path, points=POINTS)
    elif suffix == ".csv":
        np.savetxt(path, POINTS, delimiter=",")
    else:
        np.savetxt(path, POINTS)
    sample_set = load_sample_set(path)
    chex.assert_shape(sample_set.points, (3, 3))
    np.testing.assert_allclose(sample_set.points, POINTS)


def test_load_ignores_extra_columns(tmp_path: Path) -> None:
    """Columns after x, y, z such as normals are dropped."""
    path = tmp_path / "cloud_with_normals.txt"
    np.savetxt(path, np.hstack([POINTS, np.ones((3, 3))]))
    sample_set = load_sample_set(str(path))
    np.testing.assert_allclose(sample_set.points, POINTS)


def test_load_single_row(tmp_path: Path) -> None:
    """A file with one point still gives an (1, 3) sample set."""
    path = tmp_path / "single.xyz"
    np.savetxt(path, POINTS[:1])
    chex.assert_shape(load_sample_set(path).points, (1, 3))


def test_load_missing_file(tmp_path: Path) -> None:
    """A missing file raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        load_sample_set(tmp_path / "missing.npy")


def test_load_unsupported_suffix(tmp_path: Path) -> None:
    """Unknown formats raise ValueError."""
    path = tmp_path / "cloud.ply"
    path.write_text("ply\n")
    with pytest.raises(ValueError, match="Unsupported"):
        load_sample_set(path)


def test_load_too_few_columns(tmp_path: Path) -> None:
    """Data without three coordinates raises ValueError."""
    path = tmp_path / "flat.npy"
    np.save(path, POINTS[:, :2])
    with pytest.raises(ValueError, match="three columns"):
        load_sample_set(path)


class TestVoxelDownsample(chex.TestCase):
    """Test voxel_downsample."""

    def test_centroid_per_voxel(self) -> None:
        """Points sharing a voxel collapse to their centroid."""
        sample_set = make_sample_set(
            jnp.array(
                [[0.1, 0.1, 0.1], [0.3, 0.3, 0.3], [1.5, 0.1, 0.1]]
            )
        )
        downsampled = voxel_downsample(sample_set, 1.0)
        chex.assert_trees_all_close(
            downsampled.points,
            jnp.array([[0.2, 0.2, 0.2], [1.5, 0.1, 0.1]]),
            rtol=1e-12,
        )

    def test_small_voxels_keep_points(self) -> None:
        """Voxels finer than the point spacing keep every point."""
        sample_set = make_sample_set(POINTS)
        downsampled = voxel_downsample(sample_set, 0.01)
        chex.assert_shape(downsampled.points, (3, 3))

    def test_input_unchanged(self) -> None:
        """The original sample set is not modified."""
        sample_set = make_sample_set(POINTS)
        voxel_downsample(sample_set, 10.0)
        np.testing.assert_allclose(sample_set.points, POINTS)

    def test_empty(self) -> None:
        """An empty sample set stays empty."""
        downsampled = voxel_downsample(
            make_sample_set(jnp.zeros((0, 3))), 0.5
        )
        chex.assert_shape(downsampled.points, (0, 3))

    def test_rejects_non_positive_size(self) -> None:
        """Voxel sizes must be positive."""
        with pytest.raises(ValueError, match="positive"):
            voxel_downsample(make_sample_set(POINTS), 0.0)
