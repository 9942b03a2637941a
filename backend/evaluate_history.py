#!/usr/bin/env python3
"""
Evaluate a location history export against an EV's range.

Usage:
    python evaluate_history.py Records.json --range 400
    python evaluate_history.py drive.gpx --range 250 --margin 0.85 --unit miles
"""

import sys
import argparse
import logging
from pathlib import Path

# Add backend to path
backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))

from config.settings import (
    APP_NAME, APP_VERSION, LOGGING_CONFIG, DEFAULT_DISTANCE_UNIT, DEFAULT_VEHICLE_RANGE
)
from core.constants import DEFAULT_SAFETY_MARGIN_FRACTION, SUPPORTED_DISTANCE_UNITS
from core.validation import validate_vehicle_range, ValidationError
from services.range_analysis_service import analyze_location_file

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=f"{APP_NAME} {APP_VERSION}: score an EV's range against your driving history"
    )
    parser.add_argument("history_file", help="Location history export (.json or .gpx)")
    parser.add_argument("--range", dest="max_range", type=float, default=DEFAULT_VEHICLE_RANGE,
                        help=f"Rated vehicle range (default: {DEFAULT_VEHICLE_RANGE})")
    parser.add_argument("--margin", type=float, default=DEFAULT_SAFETY_MARGIN_FRACTION,
                        help=f"Usable fraction of the range (default: {DEFAULT_SAFETY_MARGIN_FRACTION})")
    parser.add_argument("--unit", choices=SUPPORTED_DISTANCE_UNITS, default=DEFAULT_DISTANCE_UNIT,
                        help=f"Distance unit (default: {DEFAULT_DISTANCE_UNIT})")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def print_report(result) -> None:
    evaluation = result.evaluation
    unit = result.unit

    print("=" * 60)
    print(f"{APP_NAME} report: {result.filename}")
    print("=" * 60)
    print(f"Points analyzed:       {result.total_points}")
    if result.date_range is not None:
        print(f"Date range:            {result.date_range[0]:%Y-%m-%d} to {result.date_range[1]:%Y-%m-%d}")
    print(f"Effective range:       {result.vehicle.effective_range:.1f} {unit}")
    print(f"Trips:                 {evaluation.feasible_trips}/{evaluation.total_trips} feasible")
    print(f"Feasibility score:     {evaluation.feasibility_score_percent}% ({evaluation.feasibility_level})")
    print(f"Average trip:          {evaluation.average_trip_distance} {unit}")
    print(f"Longest trip:          {evaluation.max_trip_distance} {unit}")
    print(f"Daily distance:        {evaluation.daily_distance} {unit}")
    print(f"Charging:              {evaluation.charging_frequency}")
    print(f"Recommended range:     {evaluation.recommended_range_km} {unit}")
    print(f"Range for 95% of days: {evaluation.required_range_km} {unit}")
    print(f"Recommended vehicle:   {'yes' if evaluation.is_recommended else 'no'}")

    if evaluation.problematic_trips:
        print("\nProblematic trips:")
        for trip in evaluation.problematic_trips:
            print(f"  #{trip.id}: {trip.distance:.2f} {unit} ({trip.reason})")

    if evaluation.challenging_days:
        print("\nChallenging days:")
        for day in evaluation.challenging_days:
            print(f"  {day.date}: longest trip {day.longest_trip:.1f} {unit}, "
                  f"{day.excess_distance:.1f} {unit} over ({day.severity})")

    if result.range_compatibility:
        print("\nRange compatibility:")
        for entry in result.range_compatibility:
            marker = " *" if entry.is_recommended else ""
            print(f"  {entry.ev_range:>4} {unit}: {entry.compatibility_percent:5.1f}% of days "
                  f"({entry.assessment}){marker}")


def main(argv=None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else LOGGING_CONFIG["level"],
        format=LOGGING_CONFIG["format"],
        handlers=LOGGING_CONFIG["handlers"]
    )

    try:
        vehicle = validate_vehicle_range(args.max_range, args.margin)
        result = analyze_location_file(args.history_file, vehicle, unit=args.unit)
    except (ValidationError, FileNotFoundError) as e:
        logger.error(str(e))
        return 1

    print_report(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
