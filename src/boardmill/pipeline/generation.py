"""Per-size generation pipeline.

Each size goes through four phases in order: resolve and duplicate the
source, resize and rename the duplicate, transform its contents, then add
bleed guides and crop marks. A failure inside a phase is reported as a
HostOperationError (or SourceNotFoundError) carrying the size and phase.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any

from boardmill.bleed import BleedSize, crop_mark_geometry, crop_mark_settings, size_with_bleed, trim_bounds
from boardmill.config import ContentMode, GenerationOptions, Orientation, SizeSpec, SourceEntry
from boardmill.constants import DEFAULT_SIZE_TYPE, MAX_PARENT_WALK
from boardmill.exceptions import BoardMillError, HostOperationError, SourceNotFoundError
from boardmill.geometry import (
    Anchor,
    Bounds,
    Point,
    ScaleMode,
    Size,
    anchor_position,
    proportional_offset,
    relative_position,
    scale_factor,
    scale_percent,
)
from boardmill.host.base import Axis, CanvasRef, HostDocument
from boardmill.logging_config import get_logger
from boardmill.sources import find_canvas, role_config, role_for_layer, strip_copy_suffix

logger = get_logger(__name__)


class GenerationPhase(str, Enum):
    """Phases of generating one size, in execution order."""

    RESOLVE = "resolve"
    RESIZE = "resize"
    TRANSFORM = "transform"
    BLEED = "bleed"


@dataclass
class GenerationResult:
    """A canvas created for one requested size."""

    name: str
    width: float
    height: float
    original_width: float
    original_height: float
    bleed_px: float
    requires_bleed: bool
    position: Point
    orientation: Orientation
    canvas_id: int | None = None
    size_type: str = DEFAULT_SIZE_TYPE

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "width": self.width,
            "height": self.height,
            "original_width": self.original_width,
            "original_height": self.original_height,
            "bleed_px": self.bleed_px,
            "requires_bleed": self.requires_bleed,
            "position": self.position.to_dict(),
            "orientation": self.orientation.value,
            "canvas_id": self.canvas_id,
            "type": self.size_type,
        }


def _descendants(ref: CanvasRef) -> Iterator[CanvasRef]:
    for child in ref.children:
        yield child
        yield from _descendants(child)


def _edge_insets(item: Bounds, frame: Bounds, anchor: Anchor) -> Point:
    """Distance of ``item`` from the two frame edges ``anchor`` pins it to."""
    if anchor in (Anchor.TOP_LEFT, Anchor.BOTTOM_LEFT):
        x = item.left - frame.left
    else:
        x = frame.right - item.right
    if anchor in (Anchor.TOP_LEFT, Anchor.TOP_RIGHT):
        y = item.top - frame.top
    else:
        y = frame.bottom - item.bottom
    return Point(x, y)


class GenerationPipeline:
    """Generates one sized copy of a source artboard at a time."""

    def __init__(self, host: HostDocument, options: GenerationOptions | None = None):
        self.host = host
        self.options = options or GenerationOptions()

    @contextmanager
    def _phase(self, phase: GenerationPhase, tags: dict[str, Any]) -> Iterator[None]:
        """Tag errors raised inside the block with the phase and ``tags``.

        ``tags`` is read when the error is raised, so keys added inside the
        block (such as ``occupied``) are carried too.
        """
        logger.debug("Phase %s", phase.value, extra={"size": tags["size"]})
        try:
            yield
        except BoardMillError as e:
            for key, value in tags.items():
                e.context.setdefault(key, value)
            e.context.setdefault("phase", phase.value)
            if isinstance(e, HostOperationError) and e.phase is None:
                e.phase = phase.value
            raise
        except Exception as e:
            raise HostOperationError(
                f"{phase.value.capitalize()} failed: {e}",
                phase=phase.value,
                context=dict(tags),
            ) from e

    async def generate(
        self,
        size: SizeSpec,
        source_entry: SourceEntry,
        orientation: Orientation,
        position: Point,
    ) -> GenerationResult:
        """
        Create a canvas for ``size`` from the source in ``source_entry``.

        Args:
            size: Requested size
            source_entry: Configured source for the size's orientation
            orientation: Orientation bucket of the size
            position: Top-left position for the new canvas

        Returns:
            GenerationResult describing the created canvas

        Raises:
            SourceNotFoundError: If the source no longer exists
            HostOperationError: If a host call fails; ``phase`` names the phase
        """
        label = size.label
        tags: dict[str, Any] = {"size": label}
        bleed = size_with_bleed(size, self.options.resolution)

        with self._phase(GenerationPhase.RESOLVE, tags):
            source = await self.find_source(source_entry)
            await self.host.duplicate(source)
            duplicate = await self.resolve_after_duplicate(source)

        with self._phase(GenerationPhase.RESIZE, tags):
            target = Bounds(position.x, position.y, bleed.width, bleed.height)
            await self.host.resize(duplicate, target)
            # From here on the duplicate sits at its packed position
            tags["occupied"] = True
            await self.host.rename(duplicate, label)

        with self._phase(GenerationPhase.TRANSFORM, tags):
            duplicate = await self._refresh(duplicate)
            if self.options.content_mode == ContentMode.LAYERS:
                await self.transform_layers(duplicate, source, source_entry, bleed)
            else:
                await self.transform_group(duplicate, source, bleed)

        if bleed.has_bleed:
            with self._phase(GenerationPhase.BLEED, tags):
                duplicate = await self._refresh(duplicate)
                await self.apply_bleed(duplicate, bleed)

        logger.debug(
            "Generated %.0fx%.0f at (%.0f, %.0f)",
            bleed.width,
            bleed.height,
            position.x,
            position.y,
            extra={"size": label},
        )

        return GenerationResult(
            name=label,
            width=bleed.width,
            height=bleed.height,
            original_width=bleed.original_width,
            original_height=bleed.original_height,
            bleed_px=bleed.bleed_px,
            requires_bleed=bleed.has_bleed,
            position=position,
            orientation=orientation,
            canvas_id=duplicate.id,
            size_type=size.type,
        )

    # ------------------------------------------------------------------
    # Phase 1: resolve and duplicate
    # ------------------------------------------------------------------

    async def find_source(self, source_entry: SourceEntry) -> CanvasRef:
        """Look up the configured source among the top-level canvases."""
        canvases = await self.host.list_top_level_canvases()
        source = find_canvas(canvases, source_entry.artboard)
        if source is None:
            raise SourceNotFoundError(
                f"Source artboard '{source_entry.artboard}' not found",
                context={"source": source_entry.artboard},
            )
        return source

    async def resolve_after_duplicate(self, source: CanvasRef) -> CanvasRef:
        """
        Locate the canvas a duplicate call just created.

        Hosts may leave a child of the duplicate selected, so the selection
        is walked up to its top-level canvas.

        Raises:
            HostOperationError: If nothing is selected, the walk does not
                reach a top-level canvas, or it lands on the source itself
        """
        selection = await self.host.active_selection()
        if not selection:
            raise HostOperationError("Duplicate left nothing selected")

        current = selection[0]
        for _ in range(MAX_PARENT_WALK):
            if current.is_top_level:
                break
            parent = await self.host.get_canvas(current.parent_id)
            if parent is None:
                raise HostOperationError(
                    "Parent of selection not found",
                    context={"canvas": current.name, "parent_id": current.parent_id},
                )
            current = parent
        else:
            if not current.is_top_level:
                raise HostOperationError(
                    f"No top-level canvas within {MAX_PARENT_WALK} parents of the selection"
                )

        if current.id == source.id:
            raise HostOperationError(
                "Duplicate resolved to the source artboard",
                context={"source": source.name},
            )
        return current

    async def _refresh(self, ref: CanvasRef) -> CanvasRef:
        fresh = await self.host.get_canvas(ref.id)
        if fresh is None:
            raise HostOperationError("Canvas disappeared", context={"canvas": ref.name})
        return fresh

    # ------------------------------------------------------------------
    # Phase 3: transform contents
    # ------------------------------------------------------------------

    async def _center(self, items: list[CanvasRef]) -> None:
        await self.host.select_and_align(items, Axis.HORIZONTAL)
        await self.host.select_and_align(items, Axis.VERTICAL)

    async def transform_group(self, duplicate: CanvasRef, source: CanvasRef, bleed: BleedSize) -> None:
        """Center, cover-scale and re-center all top-level contents together."""
        items = list(duplicate.children)
        if not items:
            logger.debug("No contents to transform", extra={"size": duplicate.name})
            return

        percent = scale_percent(source.bounds.size, Size(bleed.width, bleed.height), ScaleMode.COVER)
        logger.debug("Scaling %d item(s) by %.2f%%", len(items), percent, extra={"size": duplicate.name})

        await self._center(items)
        await self.host.scale(items, percent)
        await self._center(items)

        await self.strip_suffixes(await self._refresh(duplicate))

    async def transform_layers(
        self,
        duplicate: CanvasRef,
        source: CanvasRef,
        source_entry: SourceEntry,
        bleed: BleedSize,
    ) -> None:
        """Scale and place each top-level item by its layer role."""
        source_size = source.bounds.size
        target_size = Size(bleed.width, bleed.height)
        # Resizing carried the contents along, so they still sit in the
        # source's footprint anchored at the duplicate's origin
        frame = Bounds(duplicate.bounds.left, duplicate.bounds.top, source_size.width, source_size.height)

        for item in duplicate.children:
            role = role_for_layer(strip_copy_suffix(item.name), source_entry, self.options.layer_names)
            config = role_config(role)
            factor = scale_factor(source_size, target_size, config.scale_mode)
            bounds = item.bounds

            if config.anchor == Anchor.CENTER:
                delta = proportional_offset(bounds, frame, duplicate.bounds, factor)
            else:
                scaled = Size(bounds.width * factor, bounds.height * factor)
                relative = relative_position(_edge_insets(bounds, frame, config.anchor), source_size)
                local = anchor_position(config.anchor, scaled, target_size, relative)
                # Scaling keeps the item's center fixed
                center = bounds.center
                delta = Point(
                    duplicate.bounds.left + local.x - (center.x - scaled.width / 2),
                    duplicate.bounds.top + local.y - (center.y - scaled.height / 2),
                )

            logger.debug(
                "Layer '%s': role=%s mode=%s factor=%.4f",
                item.name,
                role.value if role else "none",
                config.scale_mode.value,
                factor,
            )
            await self.host.scale([item], factor * 100)
            await self.host.move([item], delta)

        await self.strip_suffixes(await self._refresh(duplicate))

    async def strip_suffixes(self, duplicate: CanvasRef) -> None:
        """Remove copy suffixes the duplicate added to content names."""
        for item in _descendants(duplicate):
            cleaned = strip_copy_suffix(item.name)
            if cleaned != item.name:
                await self.host.rename(item, cleaned)

    # ------------------------------------------------------------------
    # Phase 4: bleed
    # ------------------------------------------------------------------

    async def apply_bleed(self, duplicate: CanvasRef, bleed: BleedSize) -> None:
        """Add margin guides at the bleed line and crop marks around the trim."""
        await self.host.add_margin_guides(duplicate, bleed.bleed_px)

        trim = trim_bounds(duplicate.bounds, bleed.bleed_px)
        settings = crop_mark_settings(self.options.print, self.options.resolution)
        for mark in crop_mark_geometry(trim, settings):
            await self.host.draw_rectangle(mark.rect, settings.color)
