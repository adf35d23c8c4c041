"""Tests for the residual evaluator in solina.residual.evaluator."""

import chex
import jax
import jax.numpy as jnp
import numpy as np
import pytest
from absl.testing import parameterized

from solina.models import sample_superquadric
from solina.residual import (
    SUPERQUADRIC_ORACLE,
    accumulate_residual_stats,
    combine_residual_stats,
    compute_gradient,
    compute_hessian,
    compute_residual_stats,
    report_skipped,
    skipped_contributions,
)
from solina.types import SampleSet, make_sample_set, make_superquadric_params
from solina.utils import params_to_vector


class TestComputeResidualStats(chex.TestCase, parameterized.TestCase):
    """Test compute_residual_stats and its gradient/Hessian views."""

    def setUp(self) -> None:
        super().setUp()
        truth = make_superquadric_params(
            a1=1.0, a2=1.5, a3=0.8, e1=0.9, e2=0.7, px=0.1, ya=0.3
        )
        self.sample_set = sample_superquadric(
            truth, 64, jax.random.PRNGKey(0)
        )
        self.truth = params_to_vector(truth)
        self.params = self.truth + jnp.linspace(0.05, 0.15, 11)

    def test_empty_sample_set(self) -> None:
        """No points gives zero gradient, zero Hessian, empty masks."""
        stats = compute_residual_stats(
            self.params, make_sample_set(jnp.zeros((0, 3)))
        )
        chex.assert_trees_all_equal(stats.gradient, jnp.zeros(11))
        chex.assert_trees_all_equal(stats.hessian, jnp.zeros((11, 11)))
        chex.assert_shape(stats.gradient_skipped, (0, 11))
        chex.assert_shape(stats.hessian_skipped, (0, 11, 11))

    def test_sum_of_contributions(self) -> None:
        """The totals are sums of the per-point oracle outputs."""
        stats = compute_residual_stats(self.params, self.sample_set)
        per_point = jax.vmap(
            SUPERQUADRIC_ORACLE.first, in_axes=(None, 0)
        )(self.params, self.sample_set.points)
        chex.assert_trees_all_close(
            stats.gradient, jnp.sum(per_point, axis=0), rtol=1e-10
        )
        chex.assert_shape(stats.hessian, (11, 11))
        chex.assert_shape(stats.gradient_skipped, (64, 11))
        assert not np.any(np.asarray(stats.gradient_skipped))

    def test_hessian_symmetric(self) -> None:
        """Aggregated Hessian is symmetric."""
        hessian = compute_hessian(self.params, self.sample_set)
        chex.assert_trees_all_close(hessian, hessian.T, rtol=1e-8, atol=1e-8)

    def test_views_match_stats(self) -> None:
        """compute_gradient and compute_hessian agree with the full stats."""
        stats = compute_residual_stats(self.params, self.sample_set)
        chex.assert_trees_all_close(
            compute_gradient(self.params, self.sample_set), stats.gradient
        )
        chex.assert_trees_all_close(
            compute_hessian(self.params, self.sample_set), stats.hessian
        )

    def test_zero_gradient_at_truth(self) -> None:
        """Noise-free samples give a vanishing gradient at the truth."""
        gradient = compute_gradient(self.truth, self.sample_set)
        chex.assert_trees_all_close(gradient, jnp.zeros(11), atol=1e-8)

    def test_deterministic(self) -> None:
        """Repeated evaluations are bit-identical."""
        first = compute_residual_stats(self.params, self.sample_set)
        second = compute_residual_stats(self.params, self.sample_set)
        np.testing.assert_array_equal(first.gradient, second.gradient)
        np.testing.assert_array_equal(first.hessian, second.hessian)

    @parameterized.named_parameters(
        ("first_point", 0),
        ("middle_point", 32),
        ("last_point", 64),
    )
    def test_nan_point_is_isolated(self, position: int) -> None:
        """A NaN point is excluded and flagged without touching the rest."""
        clean = compute_residual_stats(self.params, self.sample_set)
        points = jnp.insert(
            self.sample_set.points,
            position,
            jnp.array([jnp.nan, 0.2, 0.3]),
            axis=0,
        )
        dirty = compute_residual_stats(self.params, SampleSet(points=points))
        chex.assert_trees_all_close(
            dirty.gradient, clean.gradient, rtol=1e-10, atol=1e-12
        )
        chex.assert_trees_all_close(
            dirty.hessian, clean.hessian, rtol=1e-10, atol=1e-12
        )
        gradient_skipped = np.asarray(dirty.gradient_skipped)
        assert np.all(gradient_skipped[position])
        assert np.sum(gradient_skipped) == 11
        assert np.sum(np.asarray(dirty.hessian_skipped)) == 121


class TestCombineAndAccumulate(chex.TestCase):
    """Test combine_residual_stats and accumulate_residual_stats."""

    def setUp(self) -> None:
        super().setUp()
        self.sample_set = sample_superquadric(
            make_superquadric_params(a1=1.3, e2=0.8),
            50,
            jax.random.PRNGKey(1),
        )
        self.params = params_to_vector(make_superquadric_params(a1=1.1))

    def test_combine_disjoint_halves(self) -> None:
        """Merging two halves reproduces the full evaluation."""
        points = self.sample_set.points
        first = compute_residual_stats(
            self.params, SampleSet(points=points[:20])
        )
        second = compute_residual_stats(
            self.params, SampleSet(points=points[20:])
        )
        merged = combine_residual_stats(first, second)
        full = compute_residual_stats(self.params, self.sample_set)
        chex.assert_trees_all_close(
            merged.gradient,
            full.gradient,
            rtol=1e-9,
            atol=1e-9 * float(jnp.max(jnp.abs(full.gradient))),
        )
        chex.assert_trees_all_close(
            merged.hessian,
            full.hessian,
            rtol=1e-9,
            atol=1e-9 * float(jnp.max(jnp.abs(full.hessian))),
        )
        chex.assert_shape(merged.gradient_skipped, (50, 11))
        chex.assert_shape(merged.hessian_skipped, (50, 11, 11))

    def test_accumulate_matches_single_pass(self) -> None:
        """The chunked fold equals the single-pass evaluation."""
        chunked = accumulate_residual_stats(
            self.params, self.sample_set, chunk_size=7
        )
        full = compute_residual_stats(self.params, self.sample_set)
        chex.assert_trees_all_close(
            chunked.gradient,
            full.gradient,
            rtol=1e-9,
            atol=1e-9 * float(jnp.max(jnp.abs(full.gradient))),
        )
        chex.assert_trees_all_close(
            chunked.hessian,
            full.hessian,
            rtol=1e-9,
            atol=1e-9 * float(jnp.max(jnp.abs(full.hessian))),
        )
        np.testing.assert_array_equal(
            chunked.gradient_skipped, full.gradient_skipped
        )

    def test_accumulate_rejects_bad_chunk(self) -> None:
        """Chunk sizes below one raise ValueError."""
        with pytest.raises(ValueError, match="chunk_size"):
            accumulate_residual_stats(
                self.params, self.sample_set, chunk_size=0
            )


class TestSkippedReporting(chex.TestCase):
    """Test skipped_contributions and report_skipped."""

    def setUp(self) -> None:
        super().setUp()
        points = jnp.array(
            [[0.5, 0.5, 0.5], [jnp.nan, 0.0, 0.0], [0.2, -0.4, 0.9]]
        )
        self.stats = compute_residual_stats(
            params_to_vector(make_superquadric_params()),
            SampleSet(points=points),
        )

    def test_records(self) -> None:
        """One record per NaN element, gradient records first."""
        skipped = skipped_contributions(self.stats)
        assert len(skipped) == 11 + 121
        assert skipped[0].kind == "gradient"
        assert skipped[0].point_index == 1
        assert skipped[0].row == 0
        assert skipped[0].col == -1
        assert skipped[11].kind == "hessian"
        assert (skipped[11].row, skipped[11].col) == (0, 0)
        assert {item.point_index for item in skipped} == {1}

    def test_clean_evaluation_has_no_records(self) -> None:
        """Finite points produce no records."""
        stats = compute_residual_stats(
            params_to_vector(make_superquadric_params()),
            make_sample_set(jnp.array([[0.5, 0.5, 0.5]])),
        )
        assert skipped_contributions(stats) == ()

    def test_report_logs_warnings(self) -> None:
        """Every excluded element is logged at WARNING level."""
        with self.assertLogs(
            "solina.residual.evaluator", level="WARNING"
        ) as captured:
            skipped = report_skipped(self.stats)
        assert len(captured.records) == len(skipped)
        assert captured.output[0].endswith(
            "[Gradient] NaN value in (0) for point 1"
        )
        assert captured.output[11].endswith(
            "[Hessian] NaN value in (0, 0) for point 1"
        )
