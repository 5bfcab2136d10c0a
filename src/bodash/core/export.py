"""
bodash Measurement Export

Flattens local measurement history into a table for download.
"""

import json
from typing import List

import pandas as pd

from bodash.db.models import Measurement, Optimization

EXPORT_FORMATS = ("csv", "json")
METADATA_COLUMNS = ("iteration", "created_at", "is_recommended")


def measurements_frame(
    optimization: Optimization,
    measurements: List[Measurement],
) -> pd.DataFrame:
    """
    Build a DataFrame with one row per measurement.

    Columns are iteration, created_at, is_recommended, one column per
    parameter, and one column per target. A name that would repeat an
    earlier column is prefixed with "param." or "target.".
    """
    parameter_names: List[str] = []
    for measurement in measurements:
        for name in measurement.parameters:
            if name not in parameter_names:
                parameter_names.append(name)

    target_names = optimization.target_names

    parameter_columns = {
        name: f"param.{name}" if name in METADATA_COLUMNS or name in target_names else name
        for name in parameter_names
    }
    target_columns = {
        name: f"target.{name}" if name in METADATA_COLUMNS else name
        for name in target_names
    }

    rows = []
    for i, measurement in enumerate(measurements):
        row = {
            "iteration": i + 1,
            "created_at": measurement.created_at.isoformat(),
            "is_recommended": measurement.is_recommended,
        }
        for name in parameter_names:
            row[parameter_columns[name]] = measurement.parameters.get(name)
        for name in target_names:
            values = measurement.target_values or {}
            if name in values:
                value = values[name]
            elif name == optimization.primary_target_name:
                value = measurement.target_value
            else:
                value = None
            row[target_columns[name]] = value
        rows.append(row)

    columns = [
        *METADATA_COLUMNS,
        *parameter_columns.values(),
        *target_columns.values(),
    ]
    return pd.DataFrame(rows, columns=columns)


def export_measurements(
    optimization: Optimization,
    measurements: List[Measurement],
    format: str = "csv",
) -> str:
    """
    Render measurement history as CSV or JSON records.

    Raises:
        ValueError: If the format is not csv or json
    """
    if format not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format: {format}")

    df = measurements_frame(optimization, measurements)

    if format == "csv":
        return df.to_csv(index=False)

    records = json.loads(df.to_json(orient="records"))
    return json.dumps(records, indent=2)
