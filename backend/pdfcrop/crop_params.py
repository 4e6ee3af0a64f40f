"""
Crop parameter parsing and coordinate conversion.

Form fields arrive as strings (page, x, y, w, h). A missing or empty field
means 0. The crop rectangle is given in top-left-origin units, PDF pages
use a bottom-left origin:

    y_from_bottom = page_height - y - h

The output page is (round(w), round(h)), never smaller than 1x1, and the
source page is drawn translated by (-x, -y_from_bottom) at its full size.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

from .errors import InvalidCropRequest

logger = logging.getLogger(__name__)

MSG_NO_FILE = "No file uploaded"
MSG_INVALID_PARAMS = "Invalid crop parameters"
MSG_PAGE_OUT_OF_BOUNDS = "Page index out of bounds"

MIN_PAGE_SIZE = 1


@dataclass(frozen=True)
class CropRequest:
    """One crop: a 0-based page index and a top-left-origin rectangle."""
    page_index: int
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class CropPlacement:
    """Output page size and the translation applied to the embedded source page."""
    page_width: int
    page_height: int
    offset_x: float
    offset_y: float


def _parse_number(raw: Optional[str]) -> float:
    if raw is None:
        return 0.0
    text = raw.strip()
    if not text:
        return 0.0
    try:
        value = float(text)
    except ValueError:
        raise InvalidCropRequest(MSG_INVALID_PARAMS)
    if not math.isfinite(value):
        raise InvalidCropRequest(MSG_INVALID_PARAMS)
    return value


def parse_crop_request(
    page: Optional[str],
    x: Optional[str],
    y: Optional[str],
    w: Optional[str],
    h: Optional[str],
) -> CropRequest:
    """
    Build a CropRequest from raw form values.

    Raises:
        InvalidCropRequest: any value is not a finite number, or page is fractional
    """
    page_value = _parse_number(page)
    if not page_value.is_integer():
        raise InvalidCropRequest(MSG_INVALID_PARAMS)

    return CropRequest(
        page_index=int(page_value),
        x=_parse_number(x),
        y=_parse_number(y),
        width=_parse_number(w),
        height=_parse_number(h),
    )


def check_page_index(page_index: int, page_count: int) -> None:
    """Raise InvalidCropRequest unless 0 <= page_index < page_count."""
    if page_index < 0 or page_index >= page_count:
        logger.info(f"[crop] Page index {page_index} out of bounds (page_count={page_count})")
        raise InvalidCropRequest(MSG_PAGE_OUT_OF_BOUNDS)


def round_half_up(value: float) -> int:
    """Round .5 towards +inf (2.5 -> 3, -2.5 -> -2), unlike the builtin round()."""
    return math.floor(value + 0.5)


def output_page_size(width: float, height: float) -> tuple[int, int]:
    return (
        max(MIN_PAGE_SIZE, round_half_up(width)),
        max(MIN_PAGE_SIZE, round_half_up(height)),
    )


def bottom_left_y(y: float, height: float, source_height: float) -> float:
    """Convert a top-left-origin rectangle's y to the PDF's bottom-left origin."""
    return source_height - y - height


def plan_placement(request: CropRequest, source_height: float) -> CropPlacement:
    """
    Compute where the source page lands on the output page.

    Rectangles partly or fully outside the source page are not clamped;
    the uncovered area is simply blank.
    """
    page_width, page_height = output_page_size(request.width, request.height)
    y_from_bottom = bottom_left_y(request.y, request.height, source_height)
    return CropPlacement(
        page_width=page_width,
        page_height=page_height,
        offset_x=-request.x,
        offset_y=-y_from_bottom,
    )
