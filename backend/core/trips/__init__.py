"""
Trips package.

This package contains functionality for reconstructing driving trips
from location history.
"""

# Core trip extraction functions
from .extractor import (
    extract_trips,
    sort_points,
    split_on_time_gaps,
    build_trip,
    build_trips,
    filter_noise_trips,
    analyze_trip_distribution
)

# Trip models
from core.models.trip import Trip, trips_to_dataframe

__all__ = [
    # Main extraction function
    'extract_trips',

    # Modular extraction functions
    'sort_points',
    'split_on_time_gaps',
    'build_trip',
    'build_trips',
    'filter_noise_trips',
    'analyze_trip_distribution',

    # Models
    'Trip',
    'trips_to_dataframe',
]
