"""Type definitions and factory functions for solina.

Extended Summary
----------------
Core type definitions for the solina package including PyTree
NamedTuples, scalar type aliases, and factory functions for validated
construction.

Routine Listings
----------------
:func:`make_superquadric_params`
    Factory function for SuperquadricParams creation.
:func:`make_sample_set`
    Factory function for SampleSet creation.
:func:`make_solver_config`
    Factory function for SolverConfig creation.
:func:`make_newton_state`
    Factory function for NewtonState creation.
:class:`SuperquadricParams`
    PyTree with the 11 named superquadric parameters.
:class:`SampleSet`
    PyTree holding the (N, 3) sample points.
:class:`SolverConfig`
    Hashable damped Newton configuration.
:class:`NewtonState`
    PyTree carried through the damped Newton iteration.
:class:`ResidualStats`
    PyTree with aggregated gradient, Hessian and NaN masks.
:class:`SkippedContribution`
    Record of one excluded NaN derivative element.
:class:`FitResult`
    Outcome of a single fit.

Notes
-----
Always use factory functions for creating instances to ensure proper
type checking and validation.
"""

from .common_types import (
    ScalarFloat,
    ScalarInteger,
    ScalarNumeric,
)
from .geometry_types import (
    NUM_PARAMS,
    PARAMETER_NAMES,
    SampleSet,
    SuperquadricParams,
    make_sample_set,
    make_superquadric_params,
)
from .invert_types import (
    DEFAULT_DAMPING,
    DEFAULT_LINEAR_SOLVER,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_MIN_THRESHOLD,
    LINEAR_SOLVERS,
    FitResult,
    NewtonState,
    ResidualStats,
    SkippedContribution,
    SolverConfig,
    make_newton_state,
    make_solver_config,
)

__all__: list[str] = [
    "DEFAULT_DAMPING",
    "DEFAULT_LINEAR_SOLVER",
    "DEFAULT_MAX_ITERATIONS",
    "DEFAULT_MIN_THRESHOLD",
    "FitResult",
    "LINEAR_SOLVERS",
    "make_newton_state",
    "make_sample_set",
    "make_solver_config",
    "make_superquadric_params",
    "NewtonState",
    "NUM_PARAMS",
    "PARAMETER_NAMES",
    "ResidualStats",
    "SampleSet",
    "ScalarFloat",
    "ScalarInteger",
    "ScalarNumeric",
    "SkippedContribution",
    "SolverConfig",
    "SuperquadricParams",
]
