"""
Tests for reconstructing trips from location points.
"""

import random
import pytest
from datetime import datetime, timedelta

from core.calculations import haversine_distance
from core.models.location import LocationPoint, Coordinates
from core.models.trip import Trip
from core.trips import (
    extract_trips,
    sort_points,
    split_on_time_gaps,
    build_trips,
    filter_noise_trips,
    analyze_trip_distribution,
)

BASE_TIME = datetime(2024, 1, 15, 8, 0, 0)

# Degrees of latitude per kilometer on a 6371 km sphere
DEGREES_PER_KM = 1 / 111.19492664455873


def make_point(minutes, lat, lon=0.0, seconds=0):
    return LocationPoint(
        timestamp=BASE_TIME + timedelta(minutes=minutes, seconds=seconds),
        latitude=lat,
        longitude=lon,
    )


def make_trip(trip_id, distance):
    return Trip(
        id=trip_id,
        start_time=BASE_TIME,
        end_time=BASE_TIME + timedelta(minutes=10),
        distance=distance,
        start_location=Coordinates(0.0, 0.0),
        end_location=Coordinates(0.0, 0.1),
        duration_minutes=10.0,
        point_count=2,
    )


class TestExtractTripsScenarios:
    """End-to-end behaviour of extract_trips."""

    def test_empty_input_returns_empty(self):
        """No points should yield no trips, not an error."""
        assert extract_trips([]) == []

    def test_single_point_returns_empty(self):
        """A single fix cannot describe a trip."""
        assert extract_trips([make_point(0, 10.0)]) == []

    def test_two_trips_split_on_idle_gap(self):
        """Points at 0/10 min and 50/60 min form two trips of ~5 km and ~3 km."""
        points = [
            make_point(0, 0.0),
            make_point(10, 5 * DEGREES_PER_KM),
            make_point(50, 1.0),
            make_point(60, 1.0 + 3 * DEGREES_PER_KM),
        ]
        trips = extract_trips(points)

        assert len(trips) == 2
        assert trips[0].distance == pytest.approx(5.0, abs=0.01)
        assert trips[1].distance == pytest.approx(3.0, abs=0.01)
        assert trips[0].start_time == BASE_TIME
        assert trips[1].start_time == BASE_TIME + timedelta(minutes=50)

    def test_trip_fields(self):
        """Trip boundaries, duration and point count come from its run."""
        points = [make_point(0, 0.0), make_point(5, 0.01), make_point(20, 0.05, 0.02)]
        trip = extract_trips(points)[0]

        assert trip.id == 0
        assert trip.start_location == Coordinates(0.0, 0.0)
        assert trip.end_location == Coordinates(0.05, 0.02)
        assert trip.end_time == BASE_TIME + timedelta(minutes=20)
        assert trip.duration_minutes == pytest.approx(20.0)
        assert trip.point_count == 3

    def test_unsorted_input_is_sorted_first(self):
        """Input order should not matter."""
        points = [
            make_point(0, 0.0),
            make_point(10, 0.05),
            make_point(50, 1.0),
            make_point(60, 1.03),
        ]
        assert extract_trips(list(reversed(points))) == extract_trips(points)

    def test_distance_follows_path_not_straight_line(self):
        """An out-and-back drive counts both legs."""
        points = [make_point(0, 0.0), make_point(10, 0.1), make_point(20, 0.0)]
        trip = extract_trips(points)[0]
        leg = haversine_distance(0.0, 0.0, 0.1, 0.0)
        assert trip.distance == pytest.approx(2 * leg)

    def test_stationary_jitter_is_discarded(self):
        """A parked device drifting a few meters is not a trip."""
        points = [make_point(0, 45.0), make_point(10, 45.0001), make_point(20, 45.0)]
        assert extract_trips(points) == []

    def test_miles_unit(self):
        """Distances follow the requested unit."""
        points = [make_point(0, 0.0), make_point(10, 1.0)]
        trip = extract_trips(points, unit='miles')[0]
        assert trip.distance == pytest.approx(69.10, abs=0.5)

    def test_unknown_unit_raises(self):
        with pytest.raises(ValueError):
            extract_trips([make_point(0, 0.0), make_point(10, 1.0)], unit='leagues')

    def test_ids_are_sequential_after_filtering(self):
        """Dropped noise trips leave no holes in trip ids."""
        points = [
            make_point(0, 0.0), make_point(10, 0.1),        # real trip
            make_point(60, 10.0), make_point(70, 10.0),     # jitter, dropped
            make_point(120, 20.0), make_point(130, 20.1),   # real trip
        ]
        trips = extract_trips(points)
        assert [trip.id for trip in trips] == [0, 1]
        assert trips[1].start_time == BASE_TIME + timedelta(minutes=120)

    def test_trips_are_in_chronological_order(self):
        """Shuffled input should still produce trips ordered by start time."""
        rng = random.Random(42)
        points = []
        for trip_index in range(20):
            start = trip_index * 120
            for step in range(5):
                points.append(make_point(start + step * 5, trip_index + step * 0.01, trip_index * 0.5))
        rng.shuffle(points)

        trips = extract_trips(points)

        assert len(trips) == 20
        start_times = [trip.start_time for trip in trips]
        assert start_times == sorted(start_times)


class TestSplitOnTimeGaps:
    """Tests for the idle-gap split."""

    def test_gap_of_exactly_threshold_does_not_split(self):
        points = [make_point(0, 0.0), make_point(30, 0.1)]
        assert len(split_on_time_gaps(points)) == 1

    def test_gap_just_over_threshold_splits(self):
        points = [make_point(0, 0.0), make_point(30, 0.1, seconds=1)]
        assert len(split_on_time_gaps(points)) == 2

    def test_exact_threshold_keeps_trip_together(self):
        """Two points exactly 30 minutes apart still form one trip."""
        points = [make_point(0, 0.0), make_point(30, 0.1)]
        assert len(extract_trips(points)) == 1

    def test_just_over_threshold_leaves_single_point_runs(self):
        """A 30 min 1 s gap isolates both points, so no trip survives."""
        points = [make_point(0, 0.0), make_point(30, 0.1, seconds=1)]
        assert extract_trips(points) == []

    def test_custom_threshold(self):
        points = [make_point(0, 0.0), make_point(10, 0.1), make_point(25, 0.2)]
        assert [len(g) for g in split_on_time_gaps(points, gap_threshold_minutes=12)] == [2, 1]

    def test_empty(self):
        assert split_on_time_gaps([]) == []


class TestBuildAndFilter:
    """Tests for build_trips and filter_noise_trips."""

    def test_single_point_groups_dropped(self):
        groups = [[make_point(0, 0.0)], [make_point(60, 1.0), make_point(70, 1.1)]]
        trips = build_trips(groups)
        assert len(trips) == 1
        assert trips[0].start_time == BASE_TIME + timedelta(minutes=60)

    def test_noise_floor_is_exclusive(self):
        """Trips at exactly 0.1 are noise; anything longer is kept."""
        trips = [make_trip(0, 0.1), make_trip(1, 0.11), make_trip(2, 0.0)]
        kept = filter_noise_trips(trips)
        assert [trip.id for trip in kept] == [1]

    def test_sort_points_is_stable(self):
        """Points with equal timestamps keep their input order."""
        first = make_point(0, 1.0)
        second = make_point(0, 2.0)
        assert sort_points([second, first]) == [second, first]


class TestAnalyzeTripDistribution:
    """Tests for analyze_trip_distribution."""

    def test_empty_returns_empty_dict(self):
        assert analyze_trip_distribution([]) == {}

    def test_statistics(self):
        stats = analyze_trip_distribution([make_trip(0, 10.0), make_trip(1, 30.0)])
        assert stats['count'] == 2
        assert stats['total_distance'] == pytest.approx(40.0)
        assert stats['avg_trip_distance'] == pytest.approx(20.0)
        assert stats['distance_range'] == (10.0, 30.0)
        # 10 and 30 over 10 minutes each
        assert stats['avg_speed'] == pytest.approx(120.0)
