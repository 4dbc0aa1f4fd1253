"""Row-based layout packer for newly generated artboards.

The packer is a single forward pass: each request gets a position from the
current row, and rows break when the row is full, when heights diverge too
much, or (as a fallback) when the candidate would overlap something already
placed. Placements are never revisited.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from boardmill.constants import DEFAULT_GAP, DEFAULT_MAX_ROW_WIDTH, ROW_HEIGHT_DIVERGENCE
from boardmill.exceptions import LayoutError
from boardmill.geometry import Bounds, Point
from boardmill.logging_config import get_logger

if TYPE_CHECKING:
    from boardmill.host.base import CanvasRef

logger = get_logger(__name__)


@dataclass(frozen=True)
class PlacedArtboard:
    """A canvas the packer has placed; kept for overlap checks."""

    x: float
    y: float
    width: float
    height: float

    @property
    def bounds(self) -> Bounds:
        return Bounds(self.x, self.y, self.width, self.height)

    def overlaps(self, other: "PlacedArtboard") -> bool:
        return self.bounds.overlaps(other.bounds)


@dataclass
class LayoutPacker:
    """Assigns non-overlapping positions in request order.

    Attributes:
        start_x: Left edge every row starts at
        start_y: Top of the first row
        max_row_width: Row width beyond which a row breaks
        gap: Spacing between canvases and between rows
    """

    start_x: float = 0.0
    start_y: float = 0.0
    max_row_width: float = DEFAULT_MAX_ROW_WIDTH
    gap: float = DEFAULT_GAP
    height_divergence: float = ROW_HEIGHT_DIVERGENCE
    placed: list[PlacedArtboard] = field(default_factory=list)

    def __post_init__(self):
        self.current_x = self.start_x
        self.current_row_y = self.start_y
        self.current_row_max_height = 0.0
        self.global_max_bottom = self.start_y

    @property
    def row_has_content(self) -> bool:
        return self.current_x > self.start_x

    def start_new_row(self) -> None:
        """Move below everything placed so far and reset the row."""
        self.current_row_y = self.global_max_bottom + self.gap
        self.current_x = self.start_x
        self.current_row_max_height = 0.0
        logger.debug("New row at y=%.1f", self.current_row_y)

    def _exceeds_row_width(self, width: float) -> bool:
        return self.current_x + width > self.start_x + self.max_row_width

    def _diverges_in_height(self, height: float) -> bool:
        average = (height + self.current_row_max_height) / 2
        return abs(height - self.current_row_max_height) > self.height_divergence * average

    def _collides(self, candidate: PlacedArtboard) -> bool:
        return any(candidate.overlaps(other) for other in self.placed)

    def next_position(self, width: float, height: float) -> Point:
        """
        Position for the next canvas of the given size.

        Does not record the placement; call ``register_placement`` once the
        canvas actually occupies the space.

        Args:
            width: Canvas width (bleed included)
            height: Canvas height (bleed included)

        Returns:
            Top-left position for the canvas
        """
        if self.row_has_content:
            if self._exceeds_row_width(width):
                logger.debug("Row full at x=%.1f for width %.1f", self.current_x, width)
                self.start_new_row()
            elif self._diverges_in_height(height):
                logger.debug(
                    "Height %.1f diverges from row height %.1f",
                    height,
                    self.current_row_max_height,
                )
                self.start_new_row()

        candidate = PlacedArtboard(self.current_x, self.current_row_y, width, height)
        if self._collides(candidate):
            logger.debug("Candidate at (%.1f, %.1f) overlaps, forcing new row", candidate.x, candidate.y)
            self.start_new_row()
            candidate = PlacedArtboard(self.current_x, self.current_row_y, width, height)

        return Point(candidate.x, candidate.y)

    def register_placement(self, artboard: PlacedArtboard) -> None:
        """Record a placed canvas and advance the row.

        Raises:
            LayoutError: If the canvas overlaps one already placed
        """
        for other in self.placed:
            if artboard.overlaps(other):
                raise LayoutError(
                    "Placement overlaps an existing artboard",
                    context={"placement": artboard, "existing": other},
                )

        self.placed.append(artboard)
        self.current_x = artboard.x + artboard.width + self.gap
        self.current_row_max_height = max(self.current_row_max_height, artboard.height)
        self.global_max_bottom = max(self.global_max_bottom, artboard.y + artboard.height)

    def place(self, width: float, height: float) -> PlacedArtboard:
        """Compute the next position and register it in one step."""
        position = self.next_position(width, height)
        artboard = PlacedArtboard(position.x, position.y, width, height)
        self.register_placement(artboard)
        return artboard


def start_position(bounds_list: Iterable[Bounds], gap: float, default: Point) -> Point:
    """Position to the right of all ``bounds_list``, aligned to the highest top."""
    items = list(bounds_list)
    if not items:
        return default
    return Point(max(b.right for b in items) + gap, min(b.top for b in items))


def next_free_position(
    canvases: Iterable["CanvasRef"],
    gap: float = DEFAULT_GAP,
    default: Point = Point(0.0, 0.0),
) -> Point:
    """Position for a single new artboard, right of every existing artboard."""
    return start_position((c.bounds for c in canvases if c.is_artboard), gap, default)
