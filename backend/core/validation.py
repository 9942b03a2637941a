"""
Input validation utilities for core functions.

This module enforces the preconditions of trip extraction and feasibility
scoring: coordinates within range, timestamps present, vehicle inputs
within the application's limits. Violations raise ValidationError.
"""

import pandas as pd
import numpy as np
import logging
from datetime import datetime
from typing import Any, Iterable, List, Union
from pathlib import Path

from config.settings import (
    MIN_VEHICLE_RANGE, MAX_VEHICLE_RANGE, MAX_UPLOAD_SIZE_MB,
    SUPPORTED_FILE_EXTENSIONS
)
from core.constants import (
    MIN_LATITUDE, MAX_LATITUDE, MIN_LONGITUDE, MAX_LONGITUDE,
    SUPPORTED_DISTANCE_UNITS, DEFAULT_SAFETY_MARGIN_FRACTION
)
from core.models.location import LocationPoint
from core.models.evaluation import VehicleRange

logger = logging.getLogger(__name__)


class ValidationError(Exception):
    """Custom exception for validation errors."""
    pass


def _to_finite_float(value: Any, context: str, name: str) -> float:
    if value is None:
        raise ValidationError(f"{context}: {name} is missing")

    try:
        number = float(value)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"{context}: Cannot convert {name} to float: {value!r}") from e

    if not np.isfinite(number):
        raise ValidationError(f"{context}: Invalid {name}: {number}")

    return number


def validate_location_point(point: LocationPoint, context: str = "Location point") -> LocationPoint:
    """
    Validate a single location point.

    Args:
        point: Point to validate
        context: Context description for error messages

    Returns:
        The same point

    Raises:
        ValidationError: If the timestamp is missing, a coordinate is out of
            range or not a finite number, or the accuracy is negative
    """
    if point is None:
        raise ValidationError(f"{context}: Point is None")

    if not isinstance(point.timestamp, datetime):
        raise ValidationError(f"{context}: Missing or invalid timestamp: {point.timestamp!r}")

    latitude = _to_finite_float(point.latitude, context, "latitude")
    longitude = _to_finite_float(point.longitude, context, "longitude")

    if not MIN_LATITUDE <= latitude <= MAX_LATITUDE:
        raise ValidationError(f"{context}: Latitude {latitude} out of range (must be -90 to 90)")

    if not MIN_LONGITUDE <= longitude <= MAX_LONGITUDE:
        raise ValidationError(f"{context}: Longitude {longitude} out of range (must be -180 to 180)")

    if point.accuracy is not None and point.accuracy < 0:
        raise ValidationError(f"{context}: Negative accuracy: {point.accuracy}")

    return point


def validate_location_points(points: Iterable[LocationPoint],
                             context: str = "Location points") -> List[LocationPoint]:
    """
    Validate a sequence of location points, failing on the first bad one.

    An empty sequence is valid.

    Args:
        points: Points to validate
        context: Context description for error messages

    Returns:
        The points as a list

    Raises:
        ValidationError: If any point is invalid
    """
    validated = [
        validate_location_point(point, f"{context}[{index}]")
        for index, point in enumerate(points)
    ]

    logger.debug(f"{context}: Validation passed for {len(validated)} points")
    return validated


def validate_location_dataframe(df: pd.DataFrame, context: str = "Location data") -> pd.DataFrame:
    """
    Validate a location DataFrame has required columns and valid data.

    Args:
        df: DataFrame to validate
        context: Context description for error messages

    Returns:
        Validated DataFrame

    Raises:
        ValidationError: If validation fails
    """
    if df is None:
        raise ValidationError(f"{context}: DataFrame is None")

    if df.empty:
        raise ValidationError(f"{context}: No location points found")

    # Required columns for trip extraction
    required_columns = ['time', 'latitude', 'longitude']
    missing_columns = [col for col in required_columns if col not in df.columns]

    if missing_columns:
        raise ValidationError(f"{context}: Missing required columns: {missing_columns}")

    # Check for missing values in critical columns
    for col in required_columns:
        if df[col].isna().any():
            nan_count = df[col].isna().sum()
            raise ValidationError(f"{context}: {nan_count} missing values in {col} column")

    # Validate coordinate ranges
    if not df['latitude'].between(MIN_LATITUDE, MAX_LATITUDE).all():
        invalid_count = (~df['latitude'].between(MIN_LATITUDE, MAX_LATITUDE)).sum()
        raise ValidationError(f"{context}: {invalid_count} invalid latitude values (must be -90 to 90)")

    if not df['longitude'].between(MIN_LONGITUDE, MAX_LONGITUDE).all():
        invalid_count = (~df['longitude'].between(MIN_LONGITUDE, MAX_LONGITUDE)).sum()
        raise ValidationError(f"{context}: {invalid_count} invalid longitude values (must be -180 to 180)")

    if 'accuracy' in df.columns and (df['accuracy'] < 0).any():
        negative_count = (df['accuracy'] < 0).sum()
        raise ValidationError(f"{context}: {negative_count} points with negative accuracy")

    logger.debug(f"{context}: Validation passed for {len(df)} data points")
    return df


def validate_vehicle_range(max_range: Union[int, float, str],
                           safety_margin: Union[int, float, str] = DEFAULT_SAFETY_MARGIN_FRACTION,
                           context: str = "Vehicle range") -> VehicleRange:
    """
    Validate user-supplied vehicle inputs and build a VehicleRange.

    Args:
        max_range: Rated range in the configured distance unit
        safety_margin: Usable fraction of the rated range
        context: Context description for error messages

    Returns:
        VehicleRange built from the validated values

    Raises:
        ValidationError: If the range is outside the accepted limits or the
            margin is outside (0, 1]
    """
    range_value = _to_finite_float(max_range, context, "range")
    margin_value = _to_finite_float(safety_margin, context, "safety margin")

    if not MIN_VEHICLE_RANGE <= range_value <= MAX_VEHICLE_RANGE:
        raise ValidationError(
            f"{context}: Range must be {MIN_VEHICLE_RANGE}-{MAX_VEHICLE_RANGE}, got {range_value}"
        )

    if not 0 < margin_value <= 1:
        raise ValidationError(f"{context}: Safety margin must be in (0, 1], got {margin_value}")

    return VehicleRange(max_range_km=range_value, safety_margin_fraction=margin_value)


def validate_distance_unit(unit: str, context: str = "Distance unit") -> str:
    """
    Validate and normalize a distance unit name.

    Returns:
        'km' or 'miles'

    Raises:
        ValidationError: If the unit is not supported
    """
    if unit is None:
        raise ValidationError(f"{context}: Value is None")

    normalized = str(unit).strip().lower()
    if normalized not in SUPPORTED_DISTANCE_UNITS:
        raise ValidationError(
            f"{context}: Unsupported unit {unit!r} (expected one of {list(SUPPORTED_DISTANCE_UNITS)})"
        )

    return normalized


def validate_file_upload(uploaded_file: Any) -> None:
    """
    Validate uploaded file before processing.

    Args:
        uploaded_file: File-like object, optionally with 'name' and 'size'

    Raises:
        ValidationError: If file validation fails
    """
    if uploaded_file is None:
        raise ValidationError("No file uploaded")

    max_size = MAX_UPLOAD_SIZE_MB * 1024 * 1024
    if hasattr(uploaded_file, 'size') and uploaded_file.size > max_size:
        raise ValidationError(
            f"File too large: {uploaded_file.size / 1024 / 1024:.1f}MB (max {MAX_UPLOAD_SIZE_MB}MB)"
        )

    name = getattr(uploaded_file, 'name', None)
    if isinstance(name, str):
        suffix = Path(name).suffix.lower()
        if suffix not in SUPPORTED_FILE_EXTENSIONS:
            raise ValidationError(
                f"Invalid file type: {suffix} (expected one of {list(SUPPORTED_FILE_EXTENSIONS)})"
            )

    logger.debug(f"File validation passed: {name or 'unknown'}")
