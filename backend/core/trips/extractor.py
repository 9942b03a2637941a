"""
Trip extraction algorithms.

This module reconstructs driving trips from a stream of GPS fixes. Points
are ordered by time and split wherever the device was idle for longer than
the gap threshold; each run with enough points becomes a trip. Each function
has a single responsibility and can be tested independently.
"""

import numpy as np
import logging
from dataclasses import replace
from datetime import timedelta
from typing import List, Dict, Any, Iterable

from config.settings import DEFAULT_DISTANCE_UNIT
from core.constants import (
    TRIP_GAP_THRESHOLD_MINUTES, MIN_POINTS_PER_TRIP, MIN_TRIP_DISTANCE
)
from core.calculations import earth_radius_for_unit, path_distance
from core.models.location import LocationPoint
from core.models.trip import Trip

logger = logging.getLogger(__name__)


def sort_points(points: Iterable[LocationPoint]) -> List[LocationPoint]:
    """
    Order points by timestamp.

    The sort is stable, so points sharing a timestamp keep their input order.
    """
    return sorted(points, key=lambda point: point.timestamp)


def split_on_time_gaps(points: List[LocationPoint],
                       gap_threshold_minutes: float = TRIP_GAP_THRESHOLD_MINUTES) -> List[List[LocationPoint]]:
    """
    Group time-ordered points into runs separated by idle gaps.

    A gap strictly greater than the threshold starts a new run; a gap of
    exactly the threshold does not.

    Args:
        points: Points sorted by timestamp
        gap_threshold_minutes: Longest gap allowed inside a run

    Returns:
        List of point runs in chronological order (single-point runs included)
    """
    gap_threshold = timedelta(minutes=gap_threshold_minutes)
    groups = []
    current_group = []
    previous = None

    for point in points:
        if previous is not None and point.timestamp - previous.timestamp > gap_threshold:
            groups.append(current_group)
            current_group = []

        current_group.append(point)
        previous = point

    if current_group:
        groups.append(current_group)

    logger.debug(f"Split {len(points)} points into {len(groups)} runs")
    return groups


def build_trip(trip_id: int, group: List[LocationPoint], unit: str = DEFAULT_DISTANCE_UNIT) -> Trip:
    """
    Build a Trip from a run of at least two points.

    Distance is the sum of the legs between consecutive points, not the
    straight line from start to end.
    """
    first, last = group[0], group[-1]
    distance = path_distance(((point.latitude, point.longitude) for point in group), unit)
    duration_minutes = (last.timestamp - first.timestamp).total_seconds() / 60

    return Trip(
        id=trip_id,
        start_time=first.timestamp,
        end_time=last.timestamp,
        distance=distance,
        start_location=first.coordinates,
        end_location=last.coordinates,
        duration_minutes=duration_minutes,
        point_count=len(group)
    )


def build_trips(groups: List[List[LocationPoint]],
                unit: str = DEFAULT_DISTANCE_UNIT,
                min_points: int = MIN_POINTS_PER_TRIP) -> List[Trip]:
    """
    Build Trip objects from point runs.

    Runs with fewer than min_points points are dropped, since no trip can
    be inferred from a single fix.

    Args:
        groups: Point runs from split_on_time_gaps
        unit: Distance unit for trip distances
        min_points: Minimum points per trip

    Returns:
        List of Trip objects (before noise filtering)
    """
    trips = []

    for group in groups:
        if len(group) < min_points:
            continue
        trips.append(build_trip(len(trips), group, unit))

    logger.debug(f"Built {len(trips)} trips from {len(groups)} runs")
    return trips


def filter_noise_trips(trips: List[Trip], min_distance: float = MIN_TRIP_DISTANCE) -> List[Trip]:
    """
    Drop trips too short to be real driving.

    A trip whose distance is at or below min_distance is GPS jitter
    recorded while stationary.
    """
    valid_trips = [trip for trip in trips if trip.distance > min_distance]

    logger.debug(f"Filtered to {len(valid_trips)} trips (from {len(trips)} total) "
                 f"using min_distance={min_distance}")
    return valid_trips


def extract_trips(points: Iterable[LocationPoint],
                  unit: str = DEFAULT_DISTANCE_UNIT,
                  gap_threshold_minutes: float = TRIP_GAP_THRESHOLD_MINUTES,
                  min_distance: float = MIN_TRIP_DISTANCE) -> List[Trip]:
    """
    Reconstruct driving trips from location points.

    This is the main entry point for trip extraction. Points may arrive in
    any order and must already be validated. The result is in chronological
    order with ids numbered from 0.

    Args:
        points: Validated location points
        unit: Distance unit for trip distances ('km' or 'miles')
        gap_threshold_minutes: Idle gap that separates two trips
        min_distance: Trips at or below this distance are discarded

    Returns:
        List of trips; empty for empty or single-point input

    Raises:
        ValueError: If the unit is not supported
    """
    earth_radius_for_unit(unit)

    sorted_points = sort_points(points)
    if len(sorted_points) < MIN_POINTS_PER_TRIP:
        logger.debug("Not enough points for trip extraction")
        return []

    # Step 1: Split the ordered stream on idle gaps
    groups = split_on_time_gaps(sorted_points, gap_threshold_minutes)

    # Step 2: Build trips from runs with enough points
    trips = build_trips(groups, unit)

    # Step 3: Drop stationary jitter
    trips = filter_noise_trips(trips, min_distance)

    # Step 4: Number the surviving trips in chronological order
    trips = [replace(trip, id=index) for index, trip in enumerate(trips)]

    logger.info(f"Extracted {len(trips)} trips from {len(sorted_points)} points")
    return trips


def analyze_trip_distribution(trips: List[Trip]) -> Dict[str, Any]:
    """
    Analyze the distribution of extracted trips.

    Args:
        trips: List of extracted trips

    Returns:
        Dictionary with distribution statistics (empty for no trips)
    """
    if not trips:
        return {}

    distances = [t.distance for t in trips]
    durations = [t.duration_minutes for t in trips]
    speeds = [t.average_speed for t in trips]

    return {
        'count': len(trips),
        'total_distance': float(np.sum(distances)),
        'total_duration_minutes': float(np.sum(durations)),
        'avg_trip_distance': float(np.mean(distances)),
        'median_trip_distance': float(np.median(distances)),
        'avg_trip_duration_minutes': float(np.mean(durations)),
        'avg_speed': float(np.mean(speeds)),
        'distance_range': (min(distances), max(distances)),
        'duration_range': (min(durations), max(durations)),
    }
