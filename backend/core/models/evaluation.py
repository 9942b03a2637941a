"""
Feasibility evaluation models.

This module defines the vehicle range input and the result structures
produced by core.feasibility.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Dict, Any

from core.constants import (
    DEFAULT_SAFETY_MARGIN_FRACTION, RECOMMENDATION_THRESHOLD_PERCENT,
    TRIP_DISTANCE_DECIMALS, SUMMARY_DISTANCE_DECIMALS
)
from core.calculations import miles_to_kilometers


@dataclass(frozen=True)
class VehicleRange:
    """
    Usable range of an electric vehicle.

    max_range_km is expressed in the same unit as the trip distances it is
    compared with (kilometers unless a different unit is configured).
    """
    max_range_km: float
    safety_margin_fraction: float = DEFAULT_SAFETY_MARGIN_FRACTION

    def __post_init__(self):
        if not self.max_range_km > 0:
            raise ValueError(f"Vehicle range must be positive, got {self.max_range_km}")
        if not 0 < self.safety_margin_fraction <= 1:
            raise ValueError(
                f"Safety margin must be in (0, 1], got {self.safety_margin_fraction}"
            )

    @classmethod
    def from_miles(cls, max_range_miles: float,
                   safety_margin_fraction: float = DEFAULT_SAFETY_MARGIN_FRACTION) -> 'VehicleRange':
        """Build a range from a rating in miles, for use with kilometer trips."""
        return cls(miles_to_kilometers(max_range_miles), safety_margin_fraction)

    @property
    def effective_range(self) -> float:
        """Range after applying the safety margin."""
        return self.max_range_km * self.safety_margin_fraction

    def to_dict(self) -> Dict[str, Any]:
        return {
            'max_range_km': self.max_range_km,
            'safety_margin_fraction': self.safety_margin_fraction,
            'effective_range': self.effective_range,
        }


@dataclass(frozen=True)
class ProblematicTrip:
    """A trip that the vehicle cannot complete within its effective range."""
    id: int
    distance: float
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'distance': round(self.distance, TRIP_DISTANCE_DECIMALS),
            'reason': self.reason,
        }


@dataclass(frozen=True)
class DailyTripSummary:
    """
    Driving done on one calendar day.

    Trips are assigned to the day of their start time. The longest trip
    decides whether a single charge would have covered the day.
    """
    date: date
    trip_count: int
    total_distance: float
    longest_trip: float
    driving_minutes: float

    @property
    def average_speed(self) -> float:
        """Distance units per hour of driving (0 for zero driving time)."""
        if self.driving_minutes <= 0:
            return 0.0
        return self.total_distance / (self.driving_minutes / 60.0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': self.date.isoformat(),
            'trip_count': self.trip_count,
            'total_distance': round(self.total_distance, TRIP_DISTANCE_DECIMALS),
            'longest_trip': round(self.longest_trip, TRIP_DISTANCE_DECIMALS),
            'driving_minutes': self.driving_minutes,
            'average_speed': round(self.average_speed, TRIP_DISTANCE_DECIMALS),
        }


@dataclass(frozen=True)
class ChallengingDay:
    """A day whose longest trip exceeds the vehicle's usable range."""
    date: date
    total_distance: float
    longest_trip: float
    excess_distance: float  # longest_trip minus the usable range
    severity: str  # 'minor', 'moderate', 'major' or 'severe'
    trip_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': self.date.isoformat(),
            'total_distance': round(self.total_distance, TRIP_DISTANCE_DECIMALS),
            'longest_trip': round(self.longest_trip, TRIP_DISTANCE_DECIMALS),
            'excess_distance': round(self.excess_distance, TRIP_DISTANCE_DECIMALS),
            'severity': self.severity,
            'trip_count': self.trip_count,
        }


@dataclass(frozen=True)
class RangeCompatibility:
    """Share of driving days a given rated range would have covered."""
    ev_range: int
    compatible_days: int
    total_days: int
    compatibility_percent: float
    assessment: str
    is_recommended: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ev_range': self.ev_range,
            'compatible_days': self.compatible_days,
            'total_days': self.total_days,
            'compatibility_percent': round(self.compatibility_percent, SUMMARY_DISTANCE_DECIMALS),
            'assessment': self.assessment,
            'is_recommended': self.is_recommended,
        }


@dataclass(frozen=True)
class EvaluationResult:
    """Summary of how well a vehicle's range covers a set of trips."""
    feasibility_score_percent: int  # 0-100
    total_trips: int
    feasible_trips: int
    average_trip_distance: float
    max_trip_distance: float
    recommended_range_km: int
    problematic_trips: List[ProblematicTrip] = field(default_factory=list)
    feasibility_level: str = 'poor'  # 'excellent', 'good', 'moderate' or 'poor'

    # Usage pattern (0 / 'Rarely' when there are no trips)
    daily_distance: float = 0.0
    charging_frequency: str = 'Rarely'

    # Day-level view: range covering the target share of days, and the
    # days the usable range would not have covered
    required_range_km: int = 0
    challenging_days: List[ChallengingDay] = field(default_factory=list)

    @property
    def infeasible_trips(self) -> int:
        return self.total_trips - self.feasible_trips

    @property
    def is_recommended(self) -> bool:
        return self.feasibility_score_percent >= RECOMMENDATION_THRESHOLD_PERCENT

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to a JSON-friendly dictionary."""
        return {
            'feasibility_score_percent': self.feasibility_score_percent,
            'feasibility_level': self.feasibility_level,
            'is_recommended': self.is_recommended,
            'total_trips': self.total_trips,
            'feasible_trips': self.feasible_trips,
            'average_trip_distance': self.average_trip_distance,
            'max_trip_distance': self.max_trip_distance,
            'recommended_range_km': self.recommended_range_km,
            'required_range_km': self.required_range_km,
            'daily_distance': self.daily_distance,
            'charging_frequency': self.charging_frequency,
            'problematic_trips': [trip.to_dict() for trip in self.problematic_trips],
            'challenging_days': [day.to_dict() for day in self.challenging_days],
        }
