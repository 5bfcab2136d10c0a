"""
bodash Search Space Validators

Cross-checks between parameters and constraints. Per-field shape rules
live on the models; the checks here need the whole search space.
"""

from typing import Dict, List, Sequence

from bodash.spec.models import (
    CardinalityConstraint,
    CategoricalParameter,
    DiscreteProductConstraint,
    DiscreteSumConstraint,
    LinearConstraint,
    NumericalDiscreteParameter,
)


class ConfigValidationError(Exception):
    """Configuration validation error."""

    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__(f"Configuration validation failed: {errors}")


def validate_search_space(parameters: Sequence, constraints: Sequence = ()) -> List[str]:
    """
    Validate parameters and constraints for consistency.

    Args:
        parameters: Parsed parameter models
        constraints: Parsed constraint models

    Returns:
        List of validation error messages (empty if valid)
    """
    errors: List[str] = []

    errors.extend(_validate_parameters(parameters))
    errors.extend(_validate_constraints(parameters, constraints))

    return errors


def _validate_parameters(parameters: Sequence) -> List[str]:
    """Validate the parameter list itself."""
    errors: List[str] = []

    if not parameters:
        errors.append("At least one parameter is required")
        return errors

    names = [p.name for p in parameters]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        errors.append(f"Duplicate parameter names: {duplicates}")

    return errors


def _validate_constraints(parameters: Sequence, constraints: Sequence) -> List[str]:
    """Validate constraints against the parameters they reference."""
    errors: List[str] = []
    param_map: Dict[str, object] = {p.name: p for p in parameters}

    for i, constraint in enumerate(constraints):
        label = f"Constraint {i} ({constraint.type})"

        unknown = [name for name in constraint.parameters if name not in param_map]
        if unknown:
            errors.append(f"{label}: references unknown parameters {unknown}")
            continue

        referenced = [param_map[name] for name in constraint.parameters]

        if isinstance(constraint, LinearConstraint):
            if len(constraint.coefficients) != len(constraint.parameters):
                errors.append(
                    f"{label}: {len(constraint.coefficients)} coefficients for "
                    f"{len(constraint.parameters)} parameters"
                )
            non_numerical = [p.name for p in referenced if not p.is_numerical]
            if non_numerical:
                errors.append(f"{label}: non-numerical parameters {non_numerical}")

        if constraint.type.startswith("Discrete"):
            continuous = [p.name for p in referenced if p.is_continuous]
            if continuous:
                errors.append(f"{label}: continuous parameters {continuous}")

        if isinstance(constraint, (DiscreteSumConstraint, DiscreteProductConstraint)):
            wrong = [
                p.name for p in referenced
                if not isinstance(p, NumericalDiscreteParameter)
            ]
            if wrong:
                errors.append(
                    f"{label}: requires NumericalDiscrete parameters, got {wrong}"
                )

        if isinstance(constraint, CardinalityConstraint):
            if constraint.max > len(constraint.parameters):
                errors.append(
                    f"{label}: max ({constraint.max}) exceeds parameter count "
                    f"({len(constraint.parameters)})"
                )

    return errors


def calculate_dimensionality(parameters: Sequence) -> int:
    """Encoded dimension count of a parameter list."""
    total = 0
    for param in parameters:
        if isinstance(param, CategoricalParameter) and param.encoding.value == "OHE":
            total += len(param.values) - 1
        else:
            total += 1
    return total
