"""Geometry and scale math for artboard generation.

Everything here is pure: no host calls, no rounding. Callers round only
when they hand values to the host document.
"""

import math
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from boardmill.constants import DEFAULT_RESOLUTION, MM_PER_INCH, UNIT_ALIASES


class ScaleMode(str, Enum):
    """Policy for fitting source content into a differently-sized target."""

    COVER = "cover"  # Fill the target, may overflow on one axis
    CONTAIN = "contain"  # Fit inside the target, may leave margin
    RELATIVE = "relative"  # Track overall canvas size (diagonal ratio)


class Anchor(str, Enum):
    """Anchor points for layer placement."""

    CENTER = "center"
    TOP_LEFT = "top-left"
    TOP_RIGHT = "top-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_RIGHT = "bottom-right"


class BleedUnit(str, Enum):
    """Units a bleed or print measurement may be expressed in."""

    INCHES = "inches"
    MILLIMETERS = "millimeters"
    PIXELS = "pixels"

    @classmethod
    def parse(cls, value: "str | BleedUnit") -> "BleedUnit":
        """Parse a unit name, accepting short aliases like ``in`` and ``mm``."""
        if isinstance(value, BleedUnit):
            return value
        key = str(value).strip().lower()
        if key not in UNIT_ALIASES:
            raise ValueError(f"Unknown unit: {value}")
        return cls(UNIT_ALIASES[key])


@dataclass(frozen=True)
class Point:
    """A 2-D point or translation vector."""

    x: float
    y: float

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class Size:
    """Width and height of a rectangle."""

    width: float
    height: float

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    @property
    def diagonal(self) -> float:
        return math.sqrt(self.width**2 + self.height**2)


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned rectangle in document coordinates.

    ``right`` and ``bottom`` are derived, so ``right == left + width`` and
    ``bottom == top + height`` always hold.
    """

    left: float
    top: float
    width: float
    height: float

    @classmethod
    def from_edges(cls, left: float, top: float, right: float, bottom: float) -> "Bounds":
        return cls(left=left, top=top, width=right - left, height=bottom - top)

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def center(self) -> Point:
        return Point(self.left + self.width / 2, self.top + self.height / 2)

    @property
    def size(self) -> Size:
        return Size(self.width, self.height)

    def translated(self, dx: float, dy: float) -> "Bounds":
        return Bounds(self.left + dx, self.top + dy, self.width, self.height)

    def inset(self, amount: float) -> "Bounds":
        return Bounds(
            self.left + amount,
            self.top + amount,
            self.width - 2 * amount,
            self.height - 2 * amount,
        )

    def scaled_about(self, origin: Point, factor: float) -> "Bounds":
        """Scale this rectangle uniformly about ``origin``."""
        return Bounds(
            origin.x + (self.left - origin.x) * factor,
            origin.y + (self.top - origin.y) * factor,
            self.width * factor,
            self.height * factor,
        )

    def overlaps(self, other: "Bounds") -> bool:
        """Open-interval overlap test; shared edges do not overlap."""
        return (
            self.left < other.right
            and other.left < self.right
            and self.top < other.bottom
            and other.top < self.bottom
        )

    def to_dict(self) -> dict[str, float]:
        return {
            "left": self.left,
            "top": self.top,
            "right": self.right,
            "bottom": self.bottom,
            "width": self.width,
            "height": self.height,
        }


@dataclass(frozen=True)
class RelativePosition:
    """Offset captured as a fraction of the artboard size."""

    x_percent: float
    y_percent: float


def units_to_pixels(
    value: float,
    unit: "str | BleedUnit",
    resolution: float = DEFAULT_RESOLUTION,
) -> float:
    """
    Convert a measurement to pixels.

    Args:
        value: The value to convert
        unit: inches, millimeters or pixels (aliases in/mm/px accepted)
        resolution: Document resolution in pixels per inch

    Returns:
        Value in pixels (not rounded)
    """
    unit = BleedUnit.parse(unit)
    if unit == BleedUnit.INCHES:
        return value * resolution
    if unit == BleedUnit.MILLIMETERS:
        return (value / MM_PER_INCH) * resolution
    return value


def scale_factor(source: Size, target: Size, mode: "ScaleMode | str" = ScaleMode.COVER) -> float:
    """
    Compute the uniform scale factor that maps ``source`` onto ``target``.

    Args:
        source: Source dimensions
        target: Target dimensions
        mode: ScaleMode value:
            - COVER: max of the axis ratios, scaled source covers the target
            - CONTAIN: min of the axis ratios, scaled source fits inside
            - RELATIVE: ratio of diagonals, tracks overall canvas size

    Returns:
        Multiplicative factor (1.0 means unchanged)
    """
    if source.width <= 0 or source.height <= 0:
        raise ValueError(f"Source dimensions must be positive, got {source.width}x{source.height}")

    mode = ScaleMode(mode)
    width_scale = target.width / source.width
    height_scale = target.height / source.height

    if mode == ScaleMode.COVER:
        return max(width_scale, height_scale)
    if mode == ScaleMode.CONTAIN:
        return min(width_scale, height_scale)
    return target.diagonal / source.diagonal


def scale_percent(source: Size, target: Size, mode: "ScaleMode | str" = ScaleMode.COVER) -> float:
    """Scale factor expressed as a percentage, the unit host transforms expect."""
    return scale_factor(source, target, mode) * 100


def relative_position(offset: Point, artboard_size: Size) -> RelativePosition:
    """Capture a layer offset as a fraction of its artboard."""
    return RelativePosition(
        x_percent=offset.x / artboard_size.width,
        y_percent=offset.y / artboard_size.height,
    )


def anchor_position(
    anchor: "Anchor | str",
    layer_size: Size,
    target_size: Size,
    relative: RelativePosition | None = None,
) -> Point:
    """
    Position of a layer's top-left corner within a target artboard.

    Corner anchors keep the layer's proportional distance from the two edges
    it is pinned to. Without a captured relative position the layer sits
    flush in its corner.

    Args:
        anchor: Anchor point (defaults to center when None or empty)
        layer_size: Size of the layer after scaling
        target_size: Size of the target artboard
        relative: Percentage-of-artboard offset captured on the source

    Returns:
        Position relative to the target artboard's top-left corner
    """
    anchor = Anchor(anchor or Anchor.CENTER)

    if anchor == Anchor.CENTER:
        return Point(
            (target_size.width - layer_size.width) / 2,
            (target_size.height - layer_size.height) / 2,
        )

    inset_x = relative.x_percent * target_size.width if relative else 0.0
    inset_y = relative.y_percent * target_size.height if relative else 0.0

    if anchor in (Anchor.TOP_LEFT, Anchor.BOTTOM_LEFT):
        x = inset_x
    else:
        x = target_size.width - layer_size.width - inset_x

    if anchor in (Anchor.TOP_LEFT, Anchor.TOP_RIGHT):
        y = inset_y
    else:
        y = target_size.height - layer_size.height - inset_y

    return Point(x, y)


def proportional_offset(
    layer_bounds: Bounds,
    source_artboard: Bounds,
    target_artboard: Bounds,
    factor: float,
) -> Point:
    """
    Translation that keeps a layer's proportional offset from center.

    Scaling a layer in place does not relocate it, so after scaling by
    ``factor`` the layer center has to move by the returned vector for its
    offset from the target center to equal its source offset times ``factor``.

    Args:
        layer_bounds: Layer bounds before scaling
        source_artboard: Artboard the layer was positioned against
        target_artboard: Artboard the layer should end up on
        factor: Scale factor applied to the layer

    Returns:
        Translation vector (not an absolute position)
    """
    layer_center = layer_bounds.center
    source_center = source_artboard.center
    target_center = target_artboard.center

    target_x = target_center.x + (layer_center.x - source_center.x) * factor
    target_y = target_center.y + (layer_center.y - source_center.y) * factor

    return Point(target_x - layer_center.x, target_y - layer_center.y)


def union_bounds(bounds_list: Iterable[Bounds]) -> Bounds:
    """Smallest bounds containing every rectangle in ``bounds_list``."""
    items = list(bounds_list)
    if not items:
        raise ValueError("Cannot compute the union of no bounds")
    return Bounds.from_edges(
        min(b.left for b in items),
        min(b.top for b in items),
        max(b.right for b in items),
        max(b.bottom for b in items),
    )
