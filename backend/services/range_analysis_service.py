"""
Shared range analysis service.

This module provides the analysis pipeline from loaded location history to
an EV range evaluation: validate points, extract trips, score them against
the vehicle, and summarize the underlying point set.
"""

import pandas as pd
import logging
from typing import Dict, Any, List, Optional

from config.settings import DEFAULT_DISTANCE_UNIT
from core.history import load_location_file_from_path
from core.models.location import dataframe_to_points
from core.models.trip import Trip
from core.models.evaluation import VehicleRange, EvaluationResult
from core.trips import extract_trips, analyze_trip_distribution
from core.feasibility import evaluate, daily_trip_summaries, range_compatibility
from core.validation import validate_location_points, validate_distance_unit

logger = logging.getLogger(__name__)


class RangeAnalysisResult:
    """Container for range analysis results."""

    def __init__(self,
                 location_data: pd.DataFrame,
                 trips: List[Trip],
                 evaluation: EvaluationResult,
                 vehicle: VehicleRange,
                 metadata: Dict[str, Any],
                 filename: str,
                 unit: str = DEFAULT_DISTANCE_UNIT):
        self.location_data = location_data
        self.trips = trips
        self.evaluation = evaluation
        self.vehicle = vehicle
        self.metadata = metadata
        self.filename = filename
        self.unit = unit

        # Calculate derived metrics
        self._calculate_point_statistics()
        self._calculate_daily_statistics()

    def _calculate_daily_statistics(self) -> None:
        """Summarize driving days and compare them with standard EV ranges."""
        self.daily_summaries = daily_trip_summaries(self.trips)
        self.range_compatibility = range_compatibility(self.daily_summaries)

    def _calculate_point_statistics(self) -> None:
        """Calculate summary statistics of the location points."""
        self.trip_distribution = analyze_trip_distribution(self.trips)

        if self.location_data.empty:
            self.total_points = 0
            self.date_range = None
            self.average_accuracy = 0.0
            return

        self.total_points = len(self.location_data)
        self.date_range = (self.location_data['time'].min(), self.location_data['time'].max())

        if 'accuracy' in self.location_data.columns and self.location_data['accuracy'].notna().any():
            self.average_accuracy = float(self.location_data['accuracy'].mean())
        else:
            self.average_accuracy = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert the analysis to a JSON-friendly dictionary."""
        date_range = None
        if self.date_range is not None:
            date_range = {
                'start': self.date_range[0].isoformat(),
                'end': self.date_range[1].isoformat(),
            }

        trips = []
        for trip in self.trips:
            row = trip.to_dict()
            row['start_time'] = trip.start_time.isoformat()
            row['end_time'] = trip.end_time.isoformat()
            trips.append(row)

        return {
            'filename': self.filename,
            'unit': self.unit,
            'vehicle': self.vehicle.to_dict(),
            'evaluation': self.evaluation.to_dict(),
            'point_statistics': {
                'total_points': self.total_points,
                'date_range': date_range,
                'average_accuracy': self.average_accuracy,
            },
            'daily_summaries': [summary.to_dict() for summary in self.daily_summaries],
            'range_compatibility': [entry.to_dict() for entry in self.range_compatibility],
            'trips': trips,
        }


def analyze_location_data(location_data: pd.DataFrame,
                          vehicle: VehicleRange,
                          filename: str = "location_history",
                          metadata: Optional[Dict[str, Any]] = None,
                          unit: str = DEFAULT_DISTANCE_UNIT) -> RangeAnalysisResult:
    """
    Analyze location data that's already loaded into a DataFrame.

    Args:
        location_data: DataFrame with 'time', 'latitude', 'longitude' columns
        vehicle: Vehicle range to evaluate against
        filename: Name for the history (for display purposes)
        metadata: Optional metadata dict from the loader
        unit: Distance unit for trips and the vehicle range

    Returns:
        RangeAnalysisResult: Complete analysis results

    Raises:
        ValidationError: If the unit or any location point is invalid
    """
    if metadata is None:
        metadata = {}

    unit = validate_distance_unit(unit)

    try:
        logger.info(f"Analyzing location data for {filename} with {len(location_data)} points")

        # Step 1: Convert and validate points
        points = validate_location_points(dataframe_to_points(location_data), f"{filename} points")

        # Step 2: Reconstruct trips
        trips = extract_trips(points, unit=unit)
        if not trips:
            logger.warning(f"No trips found for {filename}")

        # Step 3: Score the trips against the vehicle
        evaluation = evaluate(trips, vehicle)

        logger.info(f"Successfully analyzed {filename}: {len(trips)} trips, "
                    f"{evaluation.feasibility_score_percent}% feasible")

        return RangeAnalysisResult(
            location_data=location_data,
            trips=trips,
            evaluation=evaluation,
            vehicle=vehicle,
            metadata=metadata,
            filename=filename,
            unit=unit
        )

    except Exception as e:
        logger.error(f"Error analyzing {filename}: {e}")
        raise


def analyze_location_file(file_path: str,
                          vehicle: VehicleRange,
                          unit: str = DEFAULT_DISTANCE_UNIT) -> RangeAnalysisResult:
    """
    Analyze a location history file on disk using the standard pipeline.

    This function loads the file and delegates to analyze_location_data.

    Args:
        file_path: Path to a .json or .gpx location history file
        vehicle: Vehicle range to evaluate against
        unit: Distance unit for trips and the vehicle range

    Returns:
        RangeAnalysisResult: Complete analysis results
    """
    try:
        location_data, metadata = load_location_file_from_path(file_path)
        logger.info(f"Loaded {file_path} with {len(location_data)} points")

        return analyze_location_data(
            location_data=location_data,
            vehicle=vehicle,
            filename=metadata.get('name') or file_path,
            metadata=metadata,
            unit=unit
        )

    except Exception as e:
        logger.error(f"Error analyzing {file_path}: {e}")
        raise
