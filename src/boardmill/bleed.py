"""Bleed sizing and crop-mark geometry for print artboards."""

from dataclasses import dataclass
from enum import Enum

from boardmill.config import PrintSettings, SizeSpec
from boardmill.constants import DEFAULT_RESOLUTION
from boardmill.geometry import Bounds, Point, units_to_pixels


@dataclass(frozen=True)
class BleedSize:
    """Final artboard size after bleed is applied."""

    width: float
    height: float
    bleed_px: float
    original_width: float
    original_height: float

    @property
    def has_bleed(self) -> bool:
        return self.bleed_px > 0


@dataclass(frozen=True)
class CropMarkSettings:
    """Crop-mark settings in pixels."""

    length: float
    weight: float
    offset: float
    color: tuple[int, int, int] = (0, 0, 0)


class Corner(str, Enum):
    TOP_LEFT = "top-left"
    TOP_RIGHT = "top-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_RIGHT = "bottom-right"


class MarkDirection(str, Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


@dataclass(frozen=True)
class CropMark:
    """A single crop-mark segment from ``start`` to ``end``."""

    corner: Corner
    direction: MarkDirection
    start: Point
    end: Point
    weight: float
    color: tuple[int, int, int]

    @property
    def length(self) -> float:
        return abs(self.end.x - self.start.x) + abs(self.end.y - self.start.y)

    @property
    def rect(self) -> Bounds:
        """Stroke rectangle, ``weight`` thick and centered on the segment."""
        half = self.weight / 2
        if self.direction == MarkDirection.HORIZONTAL:
            left = min(self.start.x, self.end.x)
            return Bounds(left, self.start.y - half, self.length, self.weight)
        top = min(self.start.y, self.end.y)
        return Bounds(self.start.x - half, top, self.weight, self.length)


def bleed_pixels(size: SizeSpec, resolution: float = DEFAULT_RESOLUTION) -> float:
    """Bleed of a size in pixels, 0 when the size takes no bleed."""
    if not size.requires_bleed or size.bleed <= 0:
        return 0.0
    return units_to_pixels(size.bleed, size.bleed_unit, resolution)


def size_with_bleed(size: SizeSpec, resolution: float = DEFAULT_RESOLUTION) -> BleedSize:
    """
    Expand a requested size by its bleed on all four sides.

    Args:
        size: Requested size
        resolution: Document resolution in pixels per inch

    Returns:
        BleedSize; passthrough with ``bleed_px == 0`` when no bleed applies
    """
    bleed_px = bleed_pixels(size, resolution)
    return BleedSize(
        width=size.width + 2 * bleed_px,
        height=size.height + 2 * bleed_px,
        bleed_px=bleed_px,
        original_width=size.width,
        original_height=size.height,
    )


def trim_bounds(artboard_bounds: Bounds, bleed_px: float) -> Bounds:
    """Boundary where the final visible content is trimmed."""
    return artboard_bounds.inset(bleed_px)


def crop_mark_settings(settings: PrintSettings, resolution: float = DEFAULT_RESOLUTION) -> CropMarkSettings:
    """Convert print settings into pixel crop-mark settings."""
    return CropMarkSettings(
        length=units_to_pixels(settings.crop_mark_length, settings.bleed_unit, resolution),
        weight=settings.crop_mark_weight,
        offset=units_to_pixels(settings.crop_mark_offset, settings.bleed_unit, resolution),
        color=tuple(settings.crop_mark_color),
    )


def crop_mark_geometry(trim: Bounds, settings: CropMarkSettings) -> list[CropMark]:
    """
    Eight crop marks, two per corner, outside the trim boundary.

    Horizontal marks lie on the trim's top/bottom lines and vertical marks on
    its left/right lines. Each starts ``offset`` away from the trim edge and
    runs ``length`` further out, so no mark touches the trim boundary.

    Args:
        trim: Trim bounds
        settings: Pixel crop-mark settings

    Returns:
        Marks ordered top-left, top-right, bottom-left, bottom-right;
        horizontal before vertical within each corner
    """
    offset = settings.offset
    length = settings.length
    left, top, right, bottom = trim.left, trim.top, trim.right, trim.bottom

    def mark(corner: Corner, direction: MarkDirection, start: Point, end: Point) -> CropMark:
        return CropMark(corner, direction, start, end, settings.weight, settings.color)

    H, V = MarkDirection.HORIZONTAL, MarkDirection.VERTICAL
    return [
        mark(Corner.TOP_LEFT, H, Point(left - offset - length, top), Point(left - offset, top)),
        mark(Corner.TOP_LEFT, V, Point(left, top - offset - length), Point(left, top - offset)),
        mark(Corner.TOP_RIGHT, H, Point(right + offset, top), Point(right + offset + length, top)),
        mark(Corner.TOP_RIGHT, V, Point(right, top - offset - length), Point(right, top - offset)),
        mark(Corner.BOTTOM_LEFT, H, Point(left - offset - length, bottom), Point(left - offset, bottom)),
        mark(Corner.BOTTOM_LEFT, V, Point(left, bottom + offset), Point(left, bottom + offset + length)),
        mark(Corner.BOTTOM_RIGHT, H, Point(right + offset, bottom), Point(right + offset + length, bottom)),
        mark(Corner.BOTTOM_RIGHT, V, Point(right, bottom + offset), Point(right, bottom + offset + length)),
    ]
