"""
Tests for range feasibility scoring.
"""

import pytest
from datetime import date, datetime, timedelta

from core.constants import STANDARD_EV_RANGES
from core.models.location import Coordinates
from core.models.trip import Trip
from core.models.evaluation import VehicleRange, ProblematicTrip, DailyTripSummary
from core.feasibility import (
    evaluate,
    is_trip_feasible,
    infeasibility_reason,
    feasibility_score,
    recommended_range,
    feasibility_level,
    calculate_daily_distance,
    charging_frequency,
    daily_trip_summaries,
    required_range,
    compatibility_assessment,
    range_compatibility,
    challenge_severity,
    find_challenging_days,
)

BASE_TIME = datetime(2024, 3, 4, 8, 0, 0)


def make_trip(trip_id, distance, start=None):
    start = start or BASE_TIME + timedelta(hours=trip_id)
    return Trip(
        id=trip_id,
        start_time=start,
        end_time=start + timedelta(minutes=30),
        distance=distance,
        start_location=Coordinates(47.0, -122.0),
        end_location=Coordinates(47.5, -122.0),
        duration_minutes=30.0,
        point_count=10,
    )


class TestTripClassification:
    """Tests for per-trip feasibility and reasons."""

    def test_trip_over_effective_range_is_infeasible(self):
        """400 range with 0.9 margin gives 360; a 370 trip exceeds the safe range."""
        vehicle = VehicleRange(max_range_km=400, safety_margin_fraction=0.9)
        trip = make_trip(0, 370)

        assert not is_trip_feasible(trip, vehicle)
        assert infeasibility_reason(trip, vehicle) == "exceeds safe range (margin threshold)"

    def test_trip_over_raw_range(self):
        vehicle = VehicleRange(max_range_km=400, safety_margin_fraction=0.9)
        assert infeasibility_reason(make_trip(0, 401), vehicle) == "exceeds battery range"

    def test_trip_at_effective_range_is_feasible(self):
        """The effective range itself is still reachable."""
        vehicle = VehicleRange(max_range_km=400, safety_margin_fraction=0.5)
        assert is_trip_feasible(make_trip(0, 200), vehicle)
        assert infeasibility_reason(make_trip(0, 200), vehicle) is None

    def test_trip_at_raw_range_uses_safe_range_reason(self):
        """A trip exactly at the rated range only breaks the margin."""
        vehicle = VehicleRange(max_range_km=400, safety_margin_fraction=0.9)
        assert infeasibility_reason(make_trip(0, 400), vehicle) == "exceeds safe range (margin threshold)"

    def test_full_margin_uses_raw_range(self):
        vehicle = VehicleRange(max_range_km=300, safety_margin_fraction=1.0)
        assert is_trip_feasible(make_trip(0, 300), vehicle)
        assert infeasibility_reason(make_trip(0, 300.5), vehicle) == "exceeds battery range"


class TestAggregateHelpers:
    """Tests for score, recommendation and level helpers."""

    def test_score_zero_trips(self):
        assert feasibility_score(0, 0) == 0

    @pytest.mark.parametrize("feasible, total, expected", [
        (1, 1, 100),
        (2, 3, 67),
        (1, 3, 33),
        (1, 8, 13),  # 12.5 rounds half up
        (3, 8, 38),  # 37.5 rounds half up
        (0, 5, 0),
    ])
    def test_score_rounding(self, feasible, total, expected):
        assert feasibility_score(feasible, total) == expected

    def test_recommended_range_uses_longest_trip(self):
        """100 * 1.2 must give 120, not 121 from float noise."""
        assert recommended_range(100, 40) == 120

    def test_recommended_range_uses_average_trip(self):
        assert recommended_range(100, 70) == 140

    def test_recommended_range_rounds_up(self):
        assert recommended_range(101, 10) == 122  # 121.2

    @pytest.mark.parametrize("score, level", [
        (100, 'excellent'),
        (90, 'excellent'),
        (89, 'good'),
        (70, 'good'),
        (69, 'moderate'),
        (50, 'moderate'),
        (49, 'poor'),
        (0, 'poor'),
    ])
    def test_feasibility_level(self, score, level):
        assert feasibility_level(score) == level


class TestUsagePattern:
    """Tests for daily distance and charging frequency."""

    def test_daily_distance_no_trips(self):
        assert calculate_daily_distance([]) == 0.0

    def test_daily_distance_averages_active_days(self):
        day1 = datetime(2024, 3, 4, 8, 0)
        day2 = datetime(2024, 3, 6, 8, 0)
        trips = [
            make_trip(0, 10.0, start=day1),
            make_trip(1, 20.0, start=day1 + timedelta(hours=5)),
            make_trip(2, 30.0, start=day2),
        ]
        # (10 + 20) and 30 over two active days
        assert calculate_daily_distance(trips) == pytest.approx(30.0)

    @pytest.mark.parametrize("daily, expected", [
        (0, 'Rarely'),
        (40, 'Weekly'),                   # 320 / 40 = 8 days
        (100, '2-3 times per week'),      # 3.2 days
        (300, 'Daily'),                   # ~1.07 days
        (400, 'Multiple times daily'),    # 0.8 days
    ])
    def test_charging_frequency(self, daily, expected):
        assert charging_frequency(daily, 400) == expected


class TestEvaluate:
    """Tests for the evaluate entry point."""

    def test_no_trips(self):
        """An empty history scores 0 rather than failing."""
        result = evaluate([], VehicleRange(max_range_km=400))

        assert result.feasibility_score_percent == 0
        assert result.total_trips == 0
        assert result.feasible_trips == 0
        assert result.average_trip_distance == 0
        assert result.max_trip_distance == 0
        assert result.recommended_range_km == 0
        assert result.problematic_trips == []
        assert result.charging_frequency == 'Rarely'
        assert result.feasibility_level == 'poor'
        assert not result.is_recommended
        assert result.required_range_km == 0
        assert result.challenging_days == []

    def test_level_is_stored_on_result(self):
        result = evaluate([make_trip(0, 20.0), make_trip(1, 500.0)], VehicleRange(max_range_km=300))
        assert result.feasibility_level == feasibility_level(result.feasibility_score_percent) == 'moderate'

    def test_mixed_trips(self):
        vehicle = VehicleRange(max_range_km=400, safety_margin_fraction=0.9)
        trips = [make_trip(0, 50.0), make_trip(1, 370.0), make_trip(2, 450.0), make_trip(3, 30.0)]

        result = evaluate(trips, vehicle)

        assert result.total_trips == 4
        assert result.feasible_trips == 2
        assert result.infeasible_trips == 2
        assert result.feasibility_score_percent == 50
        assert result.max_trip_distance == 450.0
        assert result.average_trip_distance == 225.0
        assert result.recommended_range_km == 540
        assert result.problematic_trips == [
            ProblematicTrip(id=1, distance=370.0, reason="exceeds safe range (margin threshold)"),
            ProblematicTrip(id=2, distance=450.0, reason="exceeds battery range"),
        ]

    def test_problematic_trips_capped_at_ten(self):
        """Only the first ten problem trips are listed; counts cover all trips."""
        vehicle = VehicleRange(max_range_km=100)
        trips = [make_trip(i, 500.0) for i in range(15)] + [make_trip(15, 10.0)]

        result = evaluate(trips, vehicle)

        assert len(result.problematic_trips) == 10
        assert [trip.id for trip in result.problematic_trips] == list(range(10))
        assert result.total_trips == 16
        assert result.feasible_trips == 1
        assert result.feasibility_score_percent == 6

    def test_summary_distances_rounded(self):
        trips = [make_trip(0, 10.04), make_trip(1, 20.07)]
        result = evaluate(trips, VehicleRange(max_range_km=400))
        assert result.max_trip_distance == 20.1
        assert result.average_trip_distance == 15.1

    def test_all_feasible_is_recommended(self):
        result = evaluate([make_trip(0, 20.0), make_trip(1, 40.0)], VehicleRange(max_range_km=300))
        assert result.feasibility_score_percent == 100
        assert result.feasibility_level == 'excellent'
        assert result.is_recommended

    def test_deterministic(self):
        """Same inputs always give the same result."""
        vehicle = VehicleRange(max_range_km=250, safety_margin_fraction=0.8)
        trips = [make_trip(i, 40.0 * i) for i in range(8)]
        assert evaluate(trips, vehicle) == evaluate(trips, vehicle)

    def test_to_dict(self):
        vehicle = VehicleRange(max_range_km=100)
        result = evaluate([make_trip(0, 150.123), make_trip(1, 20.0)], vehicle)
        data = result.to_dict()

        assert data['feasibility_score_percent'] == 50
        assert data['feasibility_level'] == 'moderate'
        assert data['is_recommended'] is False
        assert data['problematic_trips'] == [
            {'id': 0, 'distance': 150.12, 'reason': 'exceeds battery range'}
        ]


class TestVehicleRange:
    """Tests for the VehicleRange model."""

    def test_effective_range(self):
        assert VehicleRange(max_range_km=500, safety_margin_fraction=0.8).effective_range == pytest.approx(400)

    def test_default_margin(self):
        assert VehicleRange(max_range_km=100).safety_margin_fraction == 0.9

    def test_from_miles(self):
        vehicle = VehicleRange.from_miles(250)
        assert vehicle.max_range_km == pytest.approx(402.335)

    @pytest.mark.parametrize("max_range, margin", [
        (0, 0.9),
        (-10, 0.9),
        (300, 0),
        (300, 1.01),
    ])
    def test_invalid_values_raise(self, max_range, margin):
        with pytest.raises(ValueError):
            VehicleRange(max_range_km=max_range, safety_margin_fraction=margin)


def day_summary(day, longest, total=None, trip_count=1):
    return DailyTripSummary(
        date=date(2024, 3, day),
        trip_count=trip_count,
        total_distance=longest if total is None else total,
        longest_trip=longest,
        driving_minutes=60.0,
    )


class TestDailyTripSummaries:
    """Tests for daily_trip_summaries."""

    def test_no_trips(self):
        assert daily_trip_summaries([]) == []

    def test_groups_by_start_day(self):
        day1 = datetime(2024, 3, 4, 8, 0)
        day2 = datetime(2024, 3, 6, 9, 0)
        trips = [
            make_trip(0, 12.0, start=day1),
            make_trip(1, 40.0, start=day1 + timedelta(hours=6)),
            make_trip(2, 25.0, start=day2),
        ]

        summaries = daily_trip_summaries(trips)

        assert [summary.date for summary in summaries] == [date(2024, 3, 4), date(2024, 3, 6)]
        assert summaries[0].trip_count == 2
        assert summaries[0].total_distance == pytest.approx(52.0)
        assert summaries[0].longest_trip == pytest.approx(40.0)
        assert summaries[0].driving_minutes == pytest.approx(60.0)
        assert summaries[0].average_speed == pytest.approx(52.0)
        assert summaries[1].trip_count == 1

    def test_days_with_little_driving_are_dropped(self):
        """A day under 1 distance unit is not a driving day."""
        trips = [
            make_trip(0, 0.5, start=datetime(2024, 3, 4, 8, 0)),
            make_trip(1, 5.0, start=datetime(2024, 3, 5, 8, 0)),
        ]
        summaries = daily_trip_summaries(trips)
        assert [summary.date for summary in summaries] == [date(2024, 3, 5)]


class TestRequiredRange:
    """Tests for the percentile required range."""

    def test_no_days(self):
        assert required_range([]) == 0

    def test_ninety_fifth_percentile_of_twenty_days(self):
        """With 20 days the 19th smallest longest trip covers 95% of them."""
        summaries = [day_summary(i + 1, float(10 * (i + 1))) for i in range(20)]
        assert required_range(summaries) == 190

    def test_single_day(self):
        assert required_range([day_summary(1, 42.3)]) == 43

    def test_input_order_does_not_matter(self):
        summaries = [day_summary(1, 300.0), day_summary(2, 20.0), day_summary(3, 50.0)]
        assert required_range(summaries, target_percent=50) == 50

    def test_zero_target_uses_shortest_day(self):
        summaries = [day_summary(1, 300.0), day_summary(2, 20.0)]
        assert required_range(summaries, target_percent=0) == 20

    @pytest.mark.parametrize("target", [-1, 100.5])
    def test_invalid_target(self, target):
        with pytest.raises(ValueError):
            required_range([day_summary(1, 10.0)], target_percent=target)


class TestRangeCompatibility:
    """Tests for the standard range compatibility table."""

    def test_no_days(self):
        assert range_compatibility([]) == []

    def test_table(self):
        summaries = [day_summary(i + 1, 100.0) for i in range(18)] + \
                    [day_summary(19, 220.0), day_summary(20, 480.0)]

        table = range_compatibility(summaries, ranges=(150, 250, 500))
        by_range = {entry.ev_range: entry for entry in table}

        assert by_range[150].compatible_days == 18
        assert by_range[150].compatibility_percent == pytest.approx(90.0)
        assert by_range[150].assessment == 'Very Good'
        assert by_range[150].is_recommended
        assert by_range[250].compatibility_percent == pytest.approx(95.0)
        assert by_range[250].assessment == 'Excellent'
        assert by_range[500].compatibility_percent == pytest.approx(100.0)
        assert not by_range[500].is_recommended
        assert [entry.ev_range for entry in table] == [500, 250, 150]

    def test_ties_list_smaller_range_first(self):
        table = range_compatibility([day_summary(1, 50.0)], ranges=(300, 150))
        assert [entry.ev_range for entry in table] == [150, 300]

    def test_uses_standard_ranges_by_default(self):
        table = range_compatibility([day_summary(1, 50.0)])
        assert sorted(entry.ev_range for entry in table) == list(STANDARD_EV_RANGES)

    @pytest.mark.parametrize("percent, assessment", [
        (95, 'Excellent'),
        (85, 'Very Good'),
        (70, 'Good'),
        (50, 'Fair'),
        (25, 'Limited'),
        (24.9, 'Poor'),
    ])
    def test_assessment_bands(self, percent, assessment):
        assert compatibility_assessment(percent) == assessment


class TestChallengingDays:
    """Tests for find_challenging_days."""

    @pytest.mark.parametrize("excess, severity", [
        (10, 'minor'),
        (50, 'minor'),
        (51, 'moderate'),
        (100, 'moderate'),
        (200, 'major'),
        (201, 'severe'),
    ])
    def test_severity_bands(self, excess, severity):
        assert challenge_severity(excess) == severity

    def test_days_within_range_are_not_challenging(self):
        assert find_challenging_days([day_summary(1, 200.0)], usable_range=200.0) == []

    def test_ordering_and_excess(self):
        summaries = [
            day_summary(1, 230.0, total=260.0, trip_count=3),
            day_summary(2, 500.0),
            day_summary(3, 240.0),
            day_summary(4, 120.0),
        ]

        days = find_challenging_days(summaries, usable_range=200.0)

        assert [day.date.day for day in days] == [2, 3, 1]
        assert days[0].severity == 'severe'
        assert days[0].excess_distance == pytest.approx(300.0)
        assert days[2].total_distance == 260.0
        assert days[2].trip_count == 3

    def test_evaluate_reports_day_level_results(self):
        """Challenging days use the effective range, like trip feasibility."""
        vehicle = VehicleRange(max_range_km=400, safety_margin_fraction=0.9)
        trips = [
            make_trip(0, 100.0, start=datetime(2024, 3, 4, 8, 0)),
            make_trip(1, 370.0, start=datetime(2024, 3, 5, 8, 0)),
        ]

        result = evaluate(trips, vehicle)

        assert result.required_range_km == 370
        assert len(result.challenging_days) == 1
        assert result.challenging_days[0].date == date(2024, 3, 5)
        assert result.challenging_days[0].excess_distance == pytest.approx(10.0)
        assert result.to_dict()['challenging_days'][0]['date'] == '2024-03-05'
