"""
Location data models.

This module defines the data structures for raw GPS fixes read from a
location-history export.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, List, Dict, Any, Iterable
import pandas as pd


POINT_COLUMNS = ['time', 'latitude', 'longitude', 'accuracy']


@dataclass(frozen=True)
class Coordinates:
    """A latitude/longitude pair in decimal degrees."""
    latitude: float
    longitude: float

    def to_dict(self) -> Dict[str, float]:
        return {'lat': self.latitude, 'lng': self.longitude}


@dataclass(frozen=True)
class LocationPoint:
    """
    A single timestamped GPS fix.

    Points are validated by core.validation before they reach trip
    extraction; the model itself does not range-check coordinates.
    """
    timestamp: datetime
    latitude: float  # Decimal degrees (-90 to 90)
    longitude: float  # Decimal degrees (-180 to 180)
    accuracy: Optional[float] = None  # Radius of uncertainty in meters

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(self.latitude, self.longitude)

    def to_dict(self) -> Dict[str, Any]:
        """Convert point to dictionary for DataFrame creation."""
        return {
            'time': self.timestamp,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'accuracy': self.accuracy,
        }


def points_to_dataframe(points: Iterable[LocationPoint]) -> pd.DataFrame:
    """
    Convert location points to a pandas DataFrame.

    Args:
        points: Iterable of LocationPoint objects

    Returns:
        DataFrame with 'time', 'latitude', 'longitude', 'accuracy' columns
    """
    data = [point.to_dict() for point in points]
    if not data:
        return pd.DataFrame(columns=POINT_COLUMNS)
    return pd.DataFrame(data, columns=POINT_COLUMNS)


def dataframe_to_points(df: pd.DataFrame) -> List[LocationPoint]:
    """
    Convert a pandas DataFrame to a list of LocationPoint objects.

    Args:
        df: DataFrame with 'time', 'latitude', 'longitude' and optionally
            'accuracy' columns

    Returns:
        List of LocationPoint objects in DataFrame row order
    """
    if df.empty:
        return []

    has_accuracy = 'accuracy' in df.columns
    points = []

    for row in df.itertuples(index=False):
        accuracy = row.accuracy if has_accuracy else None
        if accuracy is not None and pd.isna(accuracy):
            accuracy = None

        points.append(LocationPoint(
            timestamp=pd.Timestamp(row.time).to_pydatetime(),
            latitude=float(row.latitude),
            longitude=float(row.longitude),
            accuracy=float(accuracy) if accuracy is not None else None,
        ))

    return points
