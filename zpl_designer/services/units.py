from decimal import Decimal, ROUND_HALF_UP
from typing import NewType

# Editor canvas is laid out at CSS 96 dpi
PIXELS_PER_MM = 96 / 25.4
DOTS_PER_MM = 8  # 203 dpi printheads
POINTS_TO_DOTS = 203 / 72

MIN_ZOOM = 0.25
MAX_ZOOM = 3.0

ScreenPx = NewType("ScreenPx", float)
LogicalPx = NewType("LogicalPx", float)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties away from zero."""
    return int(Decimal(repr(float(value))).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def pixels_to_dots(px: float) -> int:
    """Convert editor pixels (logical units) to printer dots"""
    return round_half_up(px / PIXELS_PER_MM * DOTS_PER_MM)


def millimeters_to_dots(mm: float) -> int:
    return round_half_up(mm * DOTS_PER_MM)


def points_to_dots(pt: float) -> int:
    """Convert a font size in points (1/72 inch) to dots"""
    return round_half_up(pt * POINTS_TO_DOTS)


def dots_to_millimeters(dots: int) -> float:
    return dots / DOTS_PER_MM


def pixels_to_millimeters(px: float) -> float:
    return px / PIXELS_PER_MM


def clamp_zoom(zoom: float) -> float:
    return max(MIN_ZOOM, min(MAX_ZOOM, zoom))


def screen_to_logical(value: ScreenPx, zoom: float) -> LogicalPx:
    """Undo the editor zoom: pointer deltas arrive in screen pixels."""
    return LogicalPx(value / clamp_zoom(zoom))


def logical_to_screen(value: LogicalPx, zoom: float) -> ScreenPx:
    return ScreenPx(value * clamp_zoom(zoom))
