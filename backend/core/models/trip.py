"""
Trip data models.

This module defines the data structures for driving trips reconstructed
from location history.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Dict, Any
import pandas as pd

from core.constants import TRIP_DISTANCE_DECIMALS
from core.models.location import Coordinates


@dataclass(frozen=True)
class Trip:
    """
    Represents a single driving trip.

    A trip is a contiguous run of location points with no idle gap above
    the split threshold. Trips are derived values; nothing persists them.
    """
    id: int

    # Time boundaries
    start_time: datetime
    end_time: datetime

    # Travel characteristics
    distance: float  # Sum of leg distances, in the extraction unit
    start_location: Coordinates
    end_location: Coordinates
    duration_minutes: float
    point_count: int  # Number of GPS points in this trip

    @property
    def average_speed(self) -> float:
        """Average speed in distance units per hour (0 for zero duration)."""
        if self.duration_minutes <= 0:
            return 0.0
        return self.distance / (self.duration_minutes / 60.0)

    def to_dict(self) -> Dict[str, Any]:
        """Convert trip to dictionary for DataFrame creation."""
        return {
            'id': self.id,
            'start_time': self.start_time,
            'end_time': self.end_time,
            'distance': round(self.distance, TRIP_DISTANCE_DECIMALS),
            'start_location': self.start_location.to_dict(),
            'end_location': self.end_location.to_dict(),
            'duration_minutes': self.duration_minutes,
            'point_count': self.point_count,
        }


def trips_to_dataframe(trips: List[Trip]) -> pd.DataFrame:
    """
    Convert a list of trips to a pandas DataFrame.

    Distances keep full precision here so that aggregates computed from
    the frame match the ones computed from the Trip objects.

    Args:
        trips: List of Trip objects

    Returns:
        pandas DataFrame with one row per trip
    """
    if not trips:
        return pd.DataFrame()

    data = []
    for trip in trips:
        row = trip.to_dict()
        row['distance'] = trip.distance
        data.append(row)
    return pd.DataFrame(data)
