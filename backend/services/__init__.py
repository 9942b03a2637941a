"""
Services package.

Provides business logic layer between callers and core algorithms.

Modules:
    range_analysis_service: Analysis pipeline from location history to EV range evaluation
"""

from services.range_analysis_service import (
    analyze_location_data,
    analyze_location_file,
    RangeAnalysisResult,
)

__all__ = [
    'analyze_location_data',
    'analyze_location_file',
    'RangeAnalysisResult',
]
