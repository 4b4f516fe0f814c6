"""
Geometry module - KML ingestion and polygon display helpers.
"""

from .colors import PLOT_COLORS, get_plot_color
from .kml import parse_coordinates, parse_kml
from .polygon import order_corners_for_display

__all__ = [
    "PLOT_COLORS",
    "get_plot_color",
    "order_corners_for_display",
    "parse_coordinates",
    "parse_kml",
]
