"""
Location history file parsing.

This module loads exported location history into a pandas DataFrame of
timestamped points. Supported inputs:

- Google Takeout Records.json ({"locations": [...]} with E7 coordinates)
- A plain JSON array of {timestamp, latitude|lat, longitude|lng, accuracy}
- GPX tracks
"""

import os
import json
import gpxpy
import pandas as pd
import logging
from datetime import datetime, timezone
from typing import Tuple, Dict, List, Optional, Any

from core.constants import E7_SCALE_FACTOR
from core.models.location import POINT_COLUMNS
from core.validation import validate_file_upload, validate_location_dataframe, ValidationError

logger = logging.getLogger(__name__)

FORMAT_TAKEOUT_RECORDS = 'takeout_records'
FORMAT_POINT_ARRAY = 'point_array'
FORMAT_GPX = 'gpx'


def _first_present(record: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if record.get(key) is not None:
            return record[key]
    return None


def _parse_timestamp(value: Any) -> datetime:
    """
    Parse epoch milliseconds or an ISO 8601 string.

    Raises:
        ValueError: If the value is blank or not a timestamp
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)

    timestamp = pd.Timestamp(value)
    # pandas maps '' and 'NaT' to NaT instead of raising
    if pd.isna(timestamp):
        raise ValueError(f"Missing timestamp: {value!r}")
    return timestamp.to_pydatetime()


def _parse_accuracy(value: Any) -> Optional[float]:
    return float(value) if value is not None else None


def parse_takeout_record(record: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Parse one entry of a Takeout 'locations' array.

    Older exports carry 'timestampMs' as a string of epoch milliseconds,
    newer ones an ISO 'timestamp'. Coordinates are integers scaled by 1e7.

    Returns:
        Point row dict, or None if a required field is missing
    """
    latitude_e7 = record.get('latitudeE7')
    longitude_e7 = record.get('longitudeE7')
    timestamp_ms = record.get('timestampMs')
    timestamp = record.get('timestamp')

    if latitude_e7 is None or longitude_e7 is None:
        return None
    if timestamp_ms is None and timestamp is None:
        return None

    if timestamp_ms is not None:
        time = _parse_timestamp(int(timestamp_ms))
    else:
        time = _parse_timestamp(timestamp)

    return {
        'time': time,
        'latitude': float(latitude_e7) / E7_SCALE_FACTOR,
        'longitude': float(longitude_e7) / E7_SCALE_FACTOR,
        'accuracy': _parse_accuracy(record.get('accuracy')),
    }


def parse_point_record(record: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Parse one entry of a plain JSON point array.

    Returns:
        Point row dict, or None if a required field is missing
    """
    timestamp = record.get('timestamp')
    latitude = _first_present(record, 'latitude', 'lat')
    longitude = _first_present(record, 'longitude', 'lng', 'lon')

    if timestamp is None or latitude is None or longitude is None:
        return None

    return {
        'time': _parse_timestamp(timestamp),
        'latitude': float(latitude),
        'longitude': float(longitude),
        'accuracy': _parse_accuracy(record.get('accuracy')),
    }


def _parse_records(records: List[Any], parser) -> Tuple[List[Dict[str, Any]], int]:
    rows = []
    skipped = 0

    for record in records:
        try:
            row = parser(record) if isinstance(record, dict) else None
        except (TypeError, ValueError, OverflowError) as e:
            logger.debug(f"Failed to parse location record: {e}")
            row = None

        if row is None:
            skipped += 1
        else:
            rows.append(row)

    return rows, skipped


def _build_dataframe(rows: List[Dict[str, Any]], context: str) -> pd.DataFrame:
    df = pd.DataFrame(rows, columns=POINT_COLUMNS)
    if not df.empty:
        # Naive timestamps are taken as UTC so every point is comparable
        df['time'] = pd.to_datetime(df['time'], utc=True)
        df['accuracy'] = df['accuracy'].astype(float)

        # Negative accuracy values are treated as unknown
        negative = df['accuracy'] < 0
        if negative.any():
            logger.warning(f"{context}: Discarding {negative.sum()} negative accuracy values")
            df['accuracy'] = df['accuracy'].mask(negative)

    return validate_location_dataframe(df, context)


def _name_from_file(file_obj: Any) -> Optional[str]:
    name = getattr(file_obj, 'name', None)
    if isinstance(name, str):
        return os.path.splitext(os.path.basename(name))[0]
    return None


def load_location_history(history_file) -> Tuple[pd.DataFrame, Dict[str, Any]]:
    """
    Load and parse a JSON location history export into a DataFrame.

    Records that lack a timestamp or coordinates are skipped and counted in
    the metadata; coordinates of the remaining records are validated.

    Args:
        history_file: A file-like object containing JSON data

    Returns:
        tuple: (DataFrame with 'time', 'latitude', 'longitude', 'accuracy'
        columns, dict with metadata)

    Raises:
        ValidationError: If the file is not valid JSON, has an unrecognized
            structure, or yields no valid points
    """
    validate_file_upload(history_file)

    try:
        data = json.load(history_file)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError(f"Invalid JSON format: {str(e)}") from e

    if isinstance(data, dict) and isinstance(data.get('locations'), list):
        detected_format = FORMAT_TAKEOUT_RECORDS
        rows, skipped = _parse_records(data['locations'], parse_takeout_record)
    elif isinstance(data, list):
        detected_format = FORMAT_POINT_ARRAY
        rows, skipped = _parse_records(data, parse_point_record)
    else:
        raise ValidationError("Unrecognized JSON format: expected a 'locations' array or a list of points")

    if skipped:
        logger.warning(f"Skipped {skipped} location records with missing or unreadable fields")

    metadata = {
        'name': _name_from_file(history_file),
        'format': detected_format,
        'skipped_records': skipped,
    }

    df = _build_dataframe(rows, f"Location history {metadata['name'] or 'unknown'}")
    metadata['point_count'] = len(df)

    logger.info(f"Successfully loaded {detected_format} location history with {len(df)} points")
    return df, metadata


def load_gpx_file(gpx_file) -> Tuple[pd.DataFrame, Dict[str, Any]]:
    """
    Load and parse a GPX file into a DataFrame of location points.

    Track points without a time cannot be placed in a trip and are skipped.

    Args:
        gpx_file: A file-like object containing GPX data

    Returns:
        tuple: (DataFrame with track points, dict with metadata)

    Raises:
        ValidationError: If file validation or parsing fails
    """
    try:
        validate_file_upload(gpx_file)

        gpx = gpxpy.parse(gpx_file)

        if not gpx.tracks:
            raise ValidationError("GPX file contains no tracks")

    except gpxpy.gpx.GPXException as e:
        raise ValidationError(f"Invalid GPX file format: {str(e)}") from e

    metadata = {
        'name': None,
        'format': FORMAT_GPX,
        'skipped_records': 0,
    }

    if gpx.tracks[0].name:
        metadata['name'] = gpx.tracks[0].name
    else:
        metadata['name'] = _name_from_file(gpx_file)

    rows = []
    for track in gpx.tracks:
        for segment in track.segments:
            for point in segment.points:
                if point.time is None:
                    metadata['skipped_records'] += 1
                    continue
                rows.append({
                    'time': point.time,
                    'latitude': point.latitude,
                    'longitude': point.longitude,
                    'accuracy': None,
                })

    if metadata['skipped_records']:
        logger.warning(f"Skipped {metadata['skipped_records']} GPX points without a timestamp")

    df = _build_dataframe(rows, f"GPX file {metadata['name'] or 'unknown'}")
    metadata['point_count'] = len(df)

    logger.info(f"Successfully loaded GPX file with {len(df)} track points")
    return df, metadata


def load_location_file_from_path(file_path: str) -> Tuple[pd.DataFrame, Dict[str, Any]]:
    """
    Load a location history file from disk, choosing the parser by extension.

    Args:
        file_path: Path to a .json or .gpx file

    Returns:
        tuple: (DataFrame with location points, dict with metadata)

    Raises:
        FileNotFoundError: If the file does not exist
        ValidationError: If the extension is unsupported or parsing fails
    """
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"Location history file not found: {file_path}")

    extension = os.path.splitext(file_path)[1].lower()

    if extension == '.json':
        with open(file_path, 'r', encoding='utf-8') as f:
            data, metadata = load_location_history(f)
    elif extension == '.gpx':
        with open(file_path, 'r', encoding='utf-8') as f:
            data, metadata = load_gpx_file(f)
    else:
        raise ValidationError(f"Unsupported file type: {extension} (expected .json or .gpx)")

    if not metadata['name']:
        metadata['name'] = os.path.splitext(os.path.basename(file_path))[0]

    return data, metadata
