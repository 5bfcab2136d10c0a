"""
bodash Configuration

Pydantic models and assembly logic for optimization configurations:
- Parameters, targets and constraints
- Search space validation
- Objective, recommender and acquisition function composition
- YAML loading of creation requests
"""

from bodash.spec.models import (
    OptimizationRequest,
    OptimizationConfig,
    SearchSpace,
    ObjectiveConfig,
    TargetSpec,
    NumericalDiscreteParameter,
    NumericalContinuousParameter,
    CategoricalParameter,
    SubstanceParameter,
    LinearConstraint,
    NonlinearConstraint,
    CardinalityConstraint,
    DiscreteSumConstraint,
    DiscreteProductConstraint,
    DiscreteExcludeConstraint,
    DiscreteLinkedParametersConstraint,
    DiscreteNoLabelDuplicatesConstraint,
    DiscretePermutationInvarianceConstraint,
    DiscreteDependenciesConstraint,
    DiscreteCustomConstraint,
    ParameterKind,
    CategoricalEncoding,
    TargetMode,
    TargetType,
    ObjectiveType,
    ConstraintRelation,
)
from bodash.spec.loader import (
    ConfigLoadError,
    parse_parameters,
    parse_constraints,
    parse_targets,
    load_optimization_request,
    load_optimization_request_from_file,
)
from bodash.spec.validators import ConfigValidationError, validate_search_space
from bodash.spec.objectives import (
    create_target,
    normalize_target_mode,
    determine_objective_config,
)
from bodash.spec.recommender import (
    create_recommender_config,
    create_acquisition_function_config,
    validate_recommender_config,
)
from bodash.spec.builder import create_search_space, build_optimization_config

__all__ = [
    # Models
    "OptimizationRequest",
    "OptimizationConfig",
    "SearchSpace",
    "ObjectiveConfig",
    "TargetSpec",
    "NumericalDiscreteParameter",
    "NumericalContinuousParameter",
    "CategoricalParameter",
    "SubstanceParameter",
    "LinearConstraint",
    "NonlinearConstraint",
    "CardinalityConstraint",
    "DiscreteSumConstraint",
    "DiscreteProductConstraint",
    "DiscreteExcludeConstraint",
    "DiscreteLinkedParametersConstraint",
    "DiscreteNoLabelDuplicatesConstraint",
    "DiscretePermutationInvarianceConstraint",
    "DiscreteDependenciesConstraint",
    "DiscreteCustomConstraint",
    # Enums
    "ParameterKind",
    "CategoricalEncoding",
    "TargetMode",
    "TargetType",
    "ObjectiveType",
    "ConstraintRelation",
    # Loader
    "ConfigLoadError",
    "parse_parameters",
    "parse_constraints",
    "parse_targets",
    "load_optimization_request",
    "load_optimization_request_from_file",
    # Validation
    "ConfigValidationError",
    "validate_search_space",
    "create_search_space",
    # Objectives
    "create_target",
    "normalize_target_mode",
    "determine_objective_config",
    # Recommender
    "create_recommender_config",
    "create_acquisition_function_config",
    "validate_recommender_config",
    # Assembly
    "build_optimization_config",
]
