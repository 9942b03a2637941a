"""
Constants for the EV-aluator backend.

This module contains all the mathematical, algorithmic, and domain-specific
constants used throughout the codebase. Constants are grouped by their purpose
and documented with their units where applicable.
"""

# =============================================================================
# DISTANCE UNITS AND CONVERSION FACTORS
# =============================================================================

UNIT_KILOMETERS = "km"
UNIT_MILES = "miles"
SUPPORTED_DISTANCE_UNITS = (UNIT_KILOMETERS, UNIT_MILES)

# Earth radius used by the haversine formula, keyed by distance unit
EARTH_RADIUS_KM = 6371
EARTH_RADIUS_MILES = 3959
EARTH_RADIUS_BY_UNIT = {
    UNIT_KILOMETERS: EARTH_RADIUS_KM,
    UNIT_MILES: EARTH_RADIUS_MILES,
}

KILOMETERS_PER_MILE = 1.60934

# Google Takeout stores coordinates as integers scaled by 1e7
E7_SCALE_FACTOR = 10_000_000

# =============================================================================
# COORDINATE BOUNDS (degrees)
# =============================================================================

MIN_LATITUDE = -90.0
MAX_LATITUDE = 90.0
MIN_LONGITUDE = -180.0
MAX_LONGITUDE = 180.0

# =============================================================================
# TRIP EXTRACTION
# =============================================================================

TRIP_GAP_THRESHOLD_MINUTES = 30  # Idle gap above this starts a new trip
MIN_POINTS_PER_TRIP = 2  # A single fix cannot describe a trip
MIN_TRIP_DISTANCE = 0.1  # Distance units; at or below this is stationary jitter

# =============================================================================
# FEASIBILITY SCORING
# =============================================================================

DEFAULT_SAFETY_MARGIN_FRACTION = 0.9  # Usable share of the rated range

RECOMMENDED_RANGE_MAX_TRIP_FACTOR = 1.2  # Headroom over the longest trip
RECOMMENDED_RANGE_AVERAGE_TRIP_FACTOR = 2.0  # Headroom over the average trip

MAX_PROBLEMATIC_TRIPS = 10  # Cap on problematic trips returned to callers

REASON_EXCEEDS_BATTERY_RANGE = "exceeds battery range"
REASON_EXCEEDS_SAFE_RANGE = "exceeds safe range (margin threshold)"

# Score at or above which the vehicle is recommended (percent)
RECOMMENDATION_THRESHOLD_PERCENT = 80

# Feasibility level bands (percent, inclusive lower bounds)
FEASIBILITY_LEVEL_EXCELLENT = 90
FEASIBILITY_LEVEL_GOOD = 70
FEASIBILITY_LEVEL_MODERATE = 50

# =============================================================================
# DAILY RANGE ANALYSIS
# =============================================================================

MIN_SIGNIFICANT_DAY_DISTANCE = 1.0  # Days driving less than this are ignored
REQUIRED_RANGE_TARGET_PERCENT = 95.0  # Share of days the required range must cover

# Common rated ranges of EVs on the market, compared against daily trips
STANDARD_EV_RANGES = (150, 200, 250, 300, 350, 400, 450, 500, 600, 700)

# Compatibility assessment bands (percent of days, inclusive lower bounds)
COMPATIBILITY_EXCELLENT = 95
COMPATIBILITY_VERY_GOOD = 85
COMPATIBILITY_GOOD = 70
COMPATIBILITY_FAIR = 50
COMPATIBILITY_LIMITED = 25

# A range is suggested when it covers at least this share of days without
# being oversized for every day
RANGE_RECOMMENDED_MIN_PERCENT = 85

# Challenging day severity by excess distance over the usable range
# (inclusive upper bounds, distance units)
SEVERITY_MINOR_MAX_EXCESS = 50
SEVERITY_MODERATE_MAX_EXCESS = 100
SEVERITY_MAJOR_MAX_EXCESS = 200

# =============================================================================
# CHARGING FREQUENCY
# =============================================================================

CHARGING_USABLE_RANGE_FRACTION = 0.8  # Typical 20-100% daily charging window

CHARGING_DAYS_WEEKLY = 7
CHARGING_DAYS_FEW_PER_WEEK = 3
CHARGING_DAYS_DAILY = 1

# =============================================================================
# REPORTING PRECISION (decimal places)
# =============================================================================

TRIP_DISTANCE_DECIMALS = 2
SUMMARY_DISTANCE_DECIMALS = 1
RECOMMENDED_RANGE_ROUNDING_DECIMALS = 6  # Absorbs float noise before ceil

# =============================================================================
# VALIDATION
# =============================================================================

assert 0 < DEFAULT_SAFETY_MARGIN_FRACTION <= 1, \
    "Safety margin must be within (0, 1]"
assert FEASIBILITY_LEVEL_MODERATE < FEASIBILITY_LEVEL_GOOD < FEASIBILITY_LEVEL_EXCELLENT, \
    "Feasibility level bands must be increasing"
assert 0 <= REQUIRED_RANGE_TARGET_PERCENT <= 100, \
    "Required range target must be a percentage"
assert list(STANDARD_EV_RANGES) == sorted(STANDARD_EV_RANGES), \
    "Standard EV ranges must be in ascending order"
