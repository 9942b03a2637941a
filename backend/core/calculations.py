"""
Shared calculations module.

This module contains the distance calculations used by trip extraction and
feasibility scoring. It provides a single source of truth for great-circle
distances and distance unit conversions.
"""

import logging
from typing import Iterable, Tuple

from geopy.distance import great_circle

from core.constants import (
    EARTH_RADIUS_BY_UNIT, KILOMETERS_PER_MILE, SUPPORTED_DISTANCE_UNITS,
    UNIT_KILOMETERS
)

logger = logging.getLogger(__name__)


# =============================================================================
# UNIT HANDLING
# =============================================================================

def earth_radius_for_unit(unit: str) -> float:
    """
    Get the Earth radius expressed in the given distance unit.

    Args:
        unit: 'km' or 'miles'

    Returns:
        Earth radius in that unit

    Raises:
        ValueError: If the unit is not supported
    """
    try:
        return EARTH_RADIUS_BY_UNIT[unit]
    except KeyError:
        raise ValueError(
            f"Unsupported distance unit: {unit!r} (expected one of {SUPPORTED_DISTANCE_UNITS})"
        ) from None


def kilometers_to_miles(distance_km: float) -> float:
    """Convert kilometers to miles."""
    return distance_km / KILOMETERS_PER_MILE


def miles_to_kilometers(distance_miles: float) -> float:
    """Convert miles to kilometers."""
    return distance_miles * KILOMETERS_PER_MILE


# =============================================================================
# GREAT-CIRCLE DISTANCES
# =============================================================================

def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float,
                       unit: str = UNIT_KILOMETERS) -> float:
    """
    Calculate the great-circle distance between two points.

    The Earth is modelled as a sphere of radius 6371 km or 3959 miles
    depending on the unit, so the result is symmetric and exactly zero
    for identical points.

    Args:
        lat1, lon1: First point in decimal degrees
        lat2, lon2: Second point in decimal degrees
        unit: 'km' or 'miles'

    Returns:
        Distance in the requested unit

    Raises:
        ValueError: If the unit is unsupported or a latitude is out of range
    """
    radius = earth_radius_for_unit(unit)
    # geopy reports in "kilometers" but the value scales with the radius
    # we pass, so it is already expressed in the requested unit.
    return great_circle((lat1, lon1), (lat2, lon2), radius=radius).kilometers


def path_distance(coordinates: Iterable[Tuple[float, float]],
                  unit: str = UNIT_KILOMETERS) -> float:
    """
    Sum the great-circle distances between consecutive coordinates.

    Args:
        coordinates: Iterable of (latitude, longitude) pairs in travel order
        unit: 'km' or 'miles'

    Returns:
        Total path length in the requested unit (0 for fewer than 2 points)
    """
    total = 0.0
    previous = None

    for current in coordinates:
        if previous is not None:
            total += haversine_distance(previous[0], previous[1], current[0], current[1], unit)
        previous = current

    return total
