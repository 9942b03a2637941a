"""
Range feasibility scoring.

This module compares extracted trips against a vehicle's usable range and
summarizes how much of the driving history the vehicle could cover.
All functions are pure: the same trips and vehicle always produce the
same result.
"""

import math
import logging
from typing import List, Optional, Sequence

from core.constants import (
    RECOMMENDED_RANGE_MAX_TRIP_FACTOR, RECOMMENDED_RANGE_AVERAGE_TRIP_FACTOR,
    RECOMMENDED_RANGE_ROUNDING_DECIMALS, MAX_PROBLEMATIC_TRIPS,
    REASON_EXCEEDS_BATTERY_RANGE, REASON_EXCEEDS_SAFE_RANGE,
    FEASIBILITY_LEVEL_EXCELLENT, FEASIBILITY_LEVEL_GOOD, FEASIBILITY_LEVEL_MODERATE,
    CHARGING_USABLE_RANGE_FRACTION, CHARGING_DAYS_WEEKLY,
    CHARGING_DAYS_FEW_PER_WEEK, CHARGING_DAYS_DAILY, SUMMARY_DISTANCE_DECIMALS,
    MIN_SIGNIFICANT_DAY_DISTANCE, REQUIRED_RANGE_TARGET_PERCENT, STANDARD_EV_RANGES,
    COMPATIBILITY_EXCELLENT, COMPATIBILITY_VERY_GOOD, COMPATIBILITY_GOOD,
    COMPATIBILITY_FAIR, COMPATIBILITY_LIMITED, RANGE_RECOMMENDED_MIN_PERCENT,
    SEVERITY_MINOR_MAX_EXCESS, SEVERITY_MODERATE_MAX_EXCESS, SEVERITY_MAJOR_MAX_EXCESS
)
from core.models.trip import Trip, trips_to_dataframe
from core.models.evaluation import (
    VehicleRange, ProblematicTrip, EvaluationResult,
    DailyTripSummary, ChallengingDay, RangeCompatibility
)

logger = logging.getLogger(__name__)

# Least to most severe
SEVERITY_ORDER = ('minor', 'moderate', 'major', 'severe')


# =============================================================================
# PER-TRIP CLASSIFICATION
# =============================================================================

def is_trip_feasible(trip: Trip, vehicle: VehicleRange) -> bool:
    """A trip is feasible when it fits within the effective range (inclusive)."""
    return trip.distance <= vehicle.effective_range


def infeasibility_reason(trip: Trip, vehicle: VehicleRange) -> Optional[str]:
    """
    Explain why a trip cannot be completed.

    Returns:
        None for a feasible trip, 'exceeds battery range' when the trip is
        longer than the rated range, otherwise the safe-range reason
    """
    if is_trip_feasible(trip, vehicle):
        return None
    if trip.distance > vehicle.max_range_km:
        return REASON_EXCEEDS_BATTERY_RANGE
    return REASON_EXCEEDS_SAFE_RANGE


# =============================================================================
# AGGREGATE METRICS
# =============================================================================

def feasibility_score(feasible_trips: int, total_trips: int) -> int:
    """
    Percentage of feasible trips, rounded half up.

    Defined as 0 when there are no trips.
    """
    if total_trips == 0:
        return 0
    return int(math.floor(feasible_trips / total_trips * 100 + 0.5))


def recommended_range(max_trip_distance: float, average_trip_distance: float) -> int:
    """
    Smallest whole range covering the longest trip with headroom.

    Takes the larger of 1.2x the longest trip and 2x the average trip,
    rounded up to the next whole unit.
    """
    value = max(
        max_trip_distance * RECOMMENDED_RANGE_MAX_TRIP_FACTOR,
        average_trip_distance * RECOMMENDED_RANGE_AVERAGE_TRIP_FACTOR
    )
    # 100 * 1.2 is 120.00000000000001 in binary floating point
    return int(math.ceil(round(value, RECOMMENDED_RANGE_ROUNDING_DECIMALS)))


def feasibility_level(score: float) -> str:
    """Map a feasibility score to 'excellent', 'good', 'moderate' or 'poor'."""
    if score >= FEASIBILITY_LEVEL_EXCELLENT:
        return 'excellent'
    if score >= FEASIBILITY_LEVEL_GOOD:
        return 'good'
    if score >= FEASIBILITY_LEVEL_MODERATE:
        return 'moderate'
    return 'poor'


def calculate_daily_distance(trips: Sequence[Trip]) -> float:
    """
    Average distance driven per active day.

    Trips are grouped by the calendar date of their start time; days with
    no trips do not count.

    Returns:
        Mean of the per-day distance totals (0 for no trips)
    """
    if not trips:
        return 0.0

    df = trips_to_dataframe(list(trips))
    df['day'] = df['start_time'].map(lambda start: start.date())
    daily_totals = df.groupby('day')['distance'].sum()

    logger.debug(f"Daily distance over {len(daily_totals)} active days")
    return float(daily_totals.mean())


def charging_frequency(daily_distance: float, max_range: float) -> str:
    """
    Estimate how often the vehicle needs charging.

    Assumes 80% of the rated range is usable between charges.
    """
    if daily_distance <= 0:
        return 'Rarely'

    days_per_charge = (max_range * CHARGING_USABLE_RANGE_FRACTION) / daily_distance

    if days_per_charge >= CHARGING_DAYS_WEEKLY:
        return 'Weekly'
    if days_per_charge >= CHARGING_DAYS_FEW_PER_WEEK:
        return '2-3 times per week'
    if days_per_charge >= CHARGING_DAYS_DAILY:
        return 'Daily'
    return 'Multiple times daily'


# =============================================================================
# DAILY RANGE ANALYSIS
# =============================================================================

def daily_trip_summaries(trips: Sequence[Trip],
                         min_day_distance: float = MIN_SIGNIFICANT_DAY_DISTANCE) -> List[DailyTripSummary]:
    """
    Summarize trips per calendar day of their start time.

    Args:
        trips: Extracted trips
        min_day_distance: Days with less total distance are left out

    Returns:
        One summary per driving day, in date order
    """
    if not trips:
        return []

    df = trips_to_dataframe(list(trips))
    df['day'] = df['start_time'].map(lambda start: start.date())

    daily = df.groupby('day').agg(
        trip_count=('id', 'count'),
        total_distance=('distance', 'sum'),
        longest_trip=('distance', 'max'),
        driving_minutes=('duration_minutes', 'sum'),
    )
    daily = daily[daily['total_distance'] >= min_day_distance]

    summaries = [
        DailyTripSummary(
            date=day,
            trip_count=int(row['trip_count']),
            total_distance=float(row['total_distance']),
            longest_trip=float(row['longest_trip']),
            driving_minutes=float(row['driving_minutes']),
        )
        for day, row in daily.iterrows()
    ]

    logger.debug(f"Summarized {len(trips)} trips into {len(summaries)} driving days")
    return summaries


def required_range(summaries: Sequence[DailyTripSummary],
                   target_percent: float = REQUIRED_RANGE_TARGET_PERCENT) -> int:
    """
    Smallest whole range that covers the longest trip on target_percent of days.

    Uses the nearest-rank percentile of the per-day longest trips.

    Args:
        summaries: Daily trip summaries
        target_percent: Share of days to cover, 0-100

    Returns:
        Required range rounded up (0 for no days)

    Raises:
        ValueError: If target_percent is outside 0-100
    """
    if not 0 <= target_percent <= 100:
        raise ValueError(f"Target percentage must be between 0 and 100, got {target_percent}")

    if not summaries:
        return 0

    longest_trips = sorted(summary.longest_trip for summary in summaries)
    index = math.ceil(len(longest_trips) * target_percent / 100) - 1
    index = max(0, min(index, len(longest_trips) - 1))

    return int(math.ceil(round(longest_trips[index], RECOMMENDED_RANGE_ROUNDING_DECIMALS)))


def compatibility_assessment(compatibility_percent: float) -> str:
    """Describe how much of the driving a range covers."""
    if compatibility_percent >= COMPATIBILITY_EXCELLENT:
        return 'Excellent'
    if compatibility_percent >= COMPATIBILITY_VERY_GOOD:
        return 'Very Good'
    if compatibility_percent >= COMPATIBILITY_GOOD:
        return 'Good'
    if compatibility_percent >= COMPATIBILITY_FAIR:
        return 'Fair'
    if compatibility_percent >= COMPATIBILITY_LIMITED:
        return 'Limited'
    return 'Poor'


def range_compatibility(summaries: Sequence[DailyTripSummary],
                        ranges: Sequence[int] = STANDARD_EV_RANGES) -> List[RangeCompatibility]:
    """
    Compare the driving days against a set of rated ranges.

    A day is compatible with a range when its longest trip fits within it.
    A range is recommended when it covers at least 85% of days but not all
    of them, which flags the smallest ranges worth considering.

    Args:
        summaries: Daily trip summaries
        ranges: Rated ranges to compare

    Returns:
        One entry per range, best coverage first and smaller ranges first
        among ties (empty for no days)
    """
    if not summaries:
        return []

    total_days = len(summaries)
    table = []

    for ev_range in ranges:
        compatible_days = sum(1 for summary in summaries if summary.longest_trip <= ev_range)
        compatibility_percent = compatible_days * 100 / total_days

        table.append(RangeCompatibility(
            ev_range=ev_range,
            compatible_days=compatible_days,
            total_days=total_days,
            compatibility_percent=compatibility_percent,
            assessment=compatibility_assessment(compatibility_percent),
            is_recommended=RANGE_RECOMMENDED_MIN_PERCENT <= compatibility_percent < 100,
        ))

    return sorted(table, key=lambda entry: (-entry.compatibility_percent, entry.ev_range))


def challenge_severity(excess_distance: float) -> str:
    """Grade how far a day's longest trip overshoots the usable range."""
    if excess_distance <= SEVERITY_MINOR_MAX_EXCESS:
        return 'minor'
    if excess_distance <= SEVERITY_MODERATE_MAX_EXCESS:
        return 'moderate'
    if excess_distance <= SEVERITY_MAJOR_MAX_EXCESS:
        return 'major'
    return 'severe'


def find_challenging_days(summaries: Sequence[DailyTripSummary],
                          usable_range: float) -> List[ChallengingDay]:
    """
    Find days whose longest trip exceeds the usable range.

    Returns:
        Challenging days, most severe first, then by excess distance
    """
    challenging_days = []

    for summary in summaries:
        if summary.longest_trip <= usable_range:
            continue

        excess_distance = summary.longest_trip - usable_range
        challenging_days.append(ChallengingDay(
            date=summary.date,
            total_distance=summary.total_distance,
            longest_trip=summary.longest_trip,
            excess_distance=excess_distance,
            severity=challenge_severity(excess_distance),
            trip_count=summary.trip_count,
        ))

    challenging_days.sort(key=lambda day: (-SEVERITY_ORDER.index(day.severity), -day.excess_distance))

    logger.debug(f"Found {len(challenging_days)} challenging days for usable range {usable_range:.1f}")
    return challenging_days


# =============================================================================
# EVALUATION
# =============================================================================

def evaluate(trips: Sequence[Trip], vehicle: VehicleRange,
             max_problematic_trips: int = MAX_PROBLEMATIC_TRIPS) -> EvaluationResult:
    """
    Evaluate how well a vehicle's range covers a set of trips.

    Args:
        trips: Trips in chronological order
        vehicle: Vehicle range and safety margin
        max_problematic_trips: Cap on problematic trips listed in the result;
            counts always cover every trip

    Returns:
        EvaluationResult; zero-valued for an empty trip list
    """
    total_trips = len(trips)
    feasible_trips = 0
    problematic_trips: List[ProblematicTrip] = []

    for trip in trips:
        reason = infeasibility_reason(trip, vehicle)
        if reason is None:
            feasible_trips += 1
        else:
            problematic_trips.append(ProblematicTrip(id=trip.id, distance=trip.distance, reason=reason))

    if total_trips > 0:
        distances = [trip.distance for trip in trips]
        max_trip_distance = max(distances)
        average_trip_distance = sum(distances) / total_trips
    else:
        max_trip_distance = 0.0
        average_trip_distance = 0.0

    daily_distance = calculate_daily_distance(trips)
    summaries = daily_trip_summaries(trips)
    score = feasibility_score(feasible_trips, total_trips)

    result = EvaluationResult(
        feasibility_score_percent=score,
        total_trips=total_trips,
        feasible_trips=feasible_trips,
        average_trip_distance=round(average_trip_distance, SUMMARY_DISTANCE_DECIMALS),
        max_trip_distance=round(max_trip_distance, SUMMARY_DISTANCE_DECIMALS),
        recommended_range_km=recommended_range(max_trip_distance, average_trip_distance),
        problematic_trips=problematic_trips[:max_problematic_trips],
        feasibility_level=feasibility_level(score),
        daily_distance=round(daily_distance, SUMMARY_DISTANCE_DECIMALS),
        charging_frequency=charging_frequency(daily_distance, vehicle.max_range_km),
        required_range_km=required_range(summaries),
        challenging_days=find_challenging_days(summaries, vehicle.effective_range)
    )

    logger.info(f"Evaluated {total_trips} trips against effective range "
                f"{vehicle.effective_range:.1f}: {feasible_trips} feasible "
                f"({result.feasibility_score_percent}%)")
    return result
