"""
Application settings and configuration.

This module contains application-specific configuration and defaults.
For algorithmic constants, see core.constants module.
"""

import os
import logging
from typing import Dict, Any

# Import algorithmic constants from core module
from core.constants import (
    UNIT_KILOMETERS,
    TRIP_GAP_THRESHOLD_MINUTES,
    MIN_POINTS_PER_TRIP,
    MIN_TRIP_DISTANCE,
    DEFAULT_SAFETY_MARGIN_FRACTION,
    MAX_PROBLEMATIC_TRIPS,
    RECOMMENDATION_THRESHOLD_PERCENT,
)

# App information
APP_NAME = "EV-aluator"
APP_VERSION = "1.0.0"
APP_DESCRIPTION = "Check whether an electric vehicle covers your historical driving"

# File paths
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DATA_DIR = os.path.join(BASE_DIR, "data")
LOGS_DIR = os.path.join(BASE_DIR, "logs")

# Distance unit for trip distances and vehicle ranges ("km" or "miles")
DEFAULT_DISTANCE_UNIT = UNIT_KILOMETERS

# Vehicle input rules applied before evaluation
MIN_VEHICLE_RANGE = 50  # Same unit as DEFAULT_DISTANCE_UNIT
MAX_VEHICLE_RANGE = 1000
DEFAULT_VEHICLE_RANGE = 400

# Upload parameters
MAX_UPLOAD_SIZE_MB = 50
SUPPORTED_FILE_EXTENSIONS = (".json", ".gpx")

# Logging configuration
LOGGING_CONFIG = {
    "level": logging.INFO,
    "format": '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    "handlers": [
        logging.StreamHandler(),
    ]
}


# =============== Configuration Classes ===============
# These classes provide typed access to configuration sections

class TripConfig:
    """Configuration parameters for trip extraction."""
    GAP_THRESHOLD_MINUTES = TRIP_GAP_THRESHOLD_MINUTES  # From core.constants
    MIN_POINTS = MIN_POINTS_PER_TRIP  # From core.constants
    MIN_DISTANCE = MIN_TRIP_DISTANCE  # From core.constants
    DISTANCE_UNIT = DEFAULT_DISTANCE_UNIT

    @classmethod
    def as_dict(cls) -> Dict[str, Any]:
        """Get trip configuration as a dictionary."""
        return {
            'gap_threshold_minutes': cls.GAP_THRESHOLD_MINUTES,
            'min_points': cls.MIN_POINTS,
            'min_distance': cls.MIN_DISTANCE,
            'distance_unit': cls.DISTANCE_UNIT,
        }


class FeasibilityConfig:
    """Configuration parameters for range feasibility scoring."""
    SAFETY_MARGIN = DEFAULT_SAFETY_MARGIN_FRACTION  # From core.constants
    MAX_PROBLEMATIC_TRIPS = MAX_PROBLEMATIC_TRIPS  # From core.constants
    RECOMMENDATION_THRESHOLD = RECOMMENDATION_THRESHOLD_PERCENT
    MIN_RANGE = MIN_VEHICLE_RANGE
    MAX_RANGE = MAX_VEHICLE_RANGE
    DEFAULT_RANGE = DEFAULT_VEHICLE_RANGE

    @classmethod
    def as_dict(cls) -> Dict[str, Any]:
        """Get feasibility configuration as a dictionary."""
        return {
            'safety_margin': cls.SAFETY_MARGIN,
            'max_problematic_trips': cls.MAX_PROBLEMATIC_TRIPS,
            'recommendation_threshold': cls.RECOMMENDATION_THRESHOLD,
            'min_range': cls.MIN_RANGE,
            'max_range': cls.MAX_RANGE,
            'default_range': cls.DEFAULT_RANGE,
        }
