"""Residual evaluation for superquadric fitting.

Extended Summary
----------------
The inside-outside function of a posed superquadric, the derivative
oracle that supplies per-point first and second derivatives of the
squared error, and the evaluator that folds those contributions into
the gradient and Hessian used by the damped Newton solver.

Submodules
----------
evaluator
    Aggregation of per-point contributions with NaN exclusion
oracle
    Inside-outside function and derivative oracle

Routine Listings
----------------
accumulate_residual_stats : function
    Chunked fold over the sample set
combine_residual_stats : function
    Merge statistics of two disjoint point subsets
compute_gradient : function
    Aggregated gradient of the squared error
compute_hessian : function
    Aggregated Hessian of the squared error
compute_residual_stats : function
    Gradient, Hessian and NaN masks in one pass
inside_outside : function
    Inside-outside function value of points
make_superquadric_oracle : function
    Default derivative oracle
point_errors : function
    Per-point error F − 1
report_skipped : function
    Log excluded NaN elements
skipped_contributions : function
    List excluded NaN elements
DerivativeOracle : NamedTuple
    Pair of per-point derivative functions
"""

from .evaluator import (
    accumulate_residual_stats,
    combine_residual_stats,
    compute_gradient,
    compute_hessian,
    compute_residual_stats,
    report_skipped,
    skipped_contributions,
)
from .oracle import (
    SUPERQUADRIC_ORACLE,
    DerivativeOracle,
    inside_outside,
    make_superquadric_oracle,
    point_errors,
    squared_error,
    superquadric_first_derivative,
    superquadric_second_derivative,
)

__all__: list[str] = [
    "accumulate_residual_stats",
    "combine_residual_stats",
    "compute_gradient",
    "compute_hessian",
    "compute_residual_stats",
    "DerivativeOracle",
    "inside_outside",
    "make_superquadric_oracle",
    "point_errors",
    "report_skipped",
    "skipped_contributions",
    "squared_error",
    "SUPERQUADRIC_ORACLE",
    "superquadric_first_derivative",
    "superquadric_second_derivative",
]
