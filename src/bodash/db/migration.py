"""
bodash Data Migration

Upgrades single-target optimizations to the multi-target layout.
"""

import logging

from sqlmodel import Session

from bodash.db.repository import MeasurementRepository, OptimizationRepository

logger = logging.getLogger(__name__)


def migrate_to_multi_target(session: Session) -> int:
    """
    Fill targets and target_values on rows that predate multi-target support.

    Optimizations that already have targets are skipped.

    Args:
        session: Database session

    Returns:
        Number of migrated optimizations
    """
    optimizations = OptimizationRepository(session)
    measurements = MeasurementRepository(session)
    migrated = 0

    for optimization in optimizations.list_all():
        if optimization.targets:
            continue

        optimization.targets = [
            {
                "name": optimization.primary_target_name,
                "mode": optimization.primary_target_mode,
                "weight": 1.0,
            }
        ]
        optimization.objective_type = "single"
        optimization.is_multi_objective = False
        optimizations.update(optimization)

        for measurement in measurements.list_by_optimization(optimization.id):
            if measurement.target_values:
                continue
            measurement.target_values = {
                optimization.primary_target_name: measurement.target_value
            }
            measurements.update(measurement)

        migrated += 1
        logger.info(f"Migrated optimization {optimization.id} to multi-target layout")

    return migrated
