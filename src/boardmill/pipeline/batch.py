"""Batch coordinator: generates many sizes into one document.

The whole batch runs inside one history bracket. Sizes are handled in
request order; a size that fails is recorded and the batch moves on.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from boardmill.bleed import BleedSize, size_with_bleed
from boardmill.config import GenerationOptions, Orientation, SizeSpec, SourceConfig, SourceEntry
from boardmill.constants import DEFAULT_SIZE_TYPE, SOURCE_MATCH_TOLERANCE_PX
from boardmill.exceptions import ConfigurationError, HostOperationError, SourceNotFoundError
from boardmill.geometry import Point
from boardmill.host.base import CanvasRef, HostDocument
from boardmill.layout import LayoutPacker, PlacedArtboard, next_free_position, start_position
from boardmill.logging_config import ProgressCallback, get_logger
from boardmill.pipeline.generation import GenerationPhase, GenerationPipeline, GenerationResult
from boardmill.pipeline.history import history
from boardmill.sources import find_canvas, source_for
from boardmill.validation import check_sources, missing_source_message

logger = get_logger(__name__)

BATCH_HISTORY_NAME = "Generate artboards"


@dataclass
class BatchEntry:
    """A size that was skipped or failed, with the reason."""

    name: str
    reason: str
    orientation: Orientation | None = None
    phase: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "reason": self.reason}
        if self.orientation is not None:
            data["orientation"] = self.orientation.value
        if self.phase is not None:
            data["phase"] = self.phase
        return data


@dataclass
class BatchResult:
    """Outcome of a batch: every requested size lands in exactly one list."""

    created: list[GenerationResult] = field(default_factory=list)
    skipped: list[BatchEntry] = field(default_factory=list)
    failed: list[BatchEntry] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.created) + len(self.skipped) + len(self.failed)

    @property
    def success(self) -> bool:
        return not self.failed

    def summary(self) -> str:
        return f"{len(self.created)} created, {len(self.skipped)} skipped, {len(self.failed)} failed"

    def to_dict(self) -> dict[str, Any]:
        return {
            "created": [r.to_dict() for r in self.created],
            "skipped": [e.to_dict() for e in self.skipped],
            "failed": [e.to_dict() for e in self.failed],
        }


class PlanAction(str, Enum):
    CREATE = "create"
    SKIP = "skip"
    FAIL = "fail"


@dataclass
class PlannedSize:
    """What a batch would do with one size (dry run)."""

    name: str
    action: PlanAction
    orientation: Orientation
    width: float
    height: float
    position: Point | None = None
    reason: str = ""
    size_type: str = DEFAULT_SIZE_TYPE

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "action": self.action.value,
            "orientation": self.orientation.value,
            "width": self.width,
            "height": self.height,
            "type": self.size_type,
        }
        if self.position is not None:
            data["position"] = self.position.to_dict()
        if self.reason:
            data["reason"] = self.reason
        return data


@dataclass
class _Decision:
    action: PlanAction
    orientation: Orientation
    entry: SourceEntry | None
    bleed: BleedSize
    reason: str = ""
    phase: str | None = None


class _SizeClassifier:
    """Decides per size whether to skip, fail up front or generate.

    Holds the per-batch source lookups and the per-orientation skip counters.
    """

    def __init__(
        self,
        source_config: SourceConfig,
        sources: dict[Orientation, CanvasRef | None],
        options: GenerationOptions,
    ):
        self.source_config = source_config
        self.sources = sources
        self.options = options
        self.used_skips: set[Orientation] = set()

    def _matching_source(self, bleed: BleedSize) -> Orientation | None:
        for orientation, ref in self.sources.items():
            if ref is None or orientation in self.used_skips:
                continue
            if (
                abs(bleed.width - ref.bounds.width) <= SOURCE_MATCH_TOLERANCE_PX
                and abs(bleed.height - ref.bounds.height) <= SOURCE_MATCH_TOLERANCE_PX
            ):
                return orientation
        return None

    def classify(self, size: SizeSpec) -> _Decision:
        orientation, entry = source_for(size, self.source_config)
        bleed = size_with_bleed(size, self.options.resolution)

        if entry is None:
            return _Decision(
                PlanAction.SKIP,
                orientation,
                None,
                bleed,
                reason=f"No {orientation.value} source configured",
            )

        matched = self._matching_source(bleed)
        if matched is not None:
            self.used_skips.add(matched)
            return _Decision(
                PlanAction.SKIP,
                orientation,
                entry,
                bleed,
                reason=f"Same size as the {matched.value} source",
            )

        if self.sources.get(orientation) is None:
            return _Decision(
                PlanAction.FAIL,
                orientation,
                entry,
                bleed,
                reason=f"Source artboard '{entry.artboard}' not found",
                phase=GenerationPhase.RESOLVE.value,
            )

        return _Decision(PlanAction.CREATE, orientation, entry, bleed)


async def _resolve_sources(
    host: HostDocument,
    source_config: SourceConfig,
) -> dict[Orientation, CanvasRef | None]:
    """Look up each configured source once; missing ones map to None."""
    canvases = await host.list_top_level_canvases()
    sources: dict[Orientation, CanvasRef | None] = {}
    for orientation, entry in source_config.configured().items():
        ref = find_canvas(canvases, entry.artboard)
        if ref is None:
            logger.warning("Source artboard '%s' for %s not found", entry.artboard, orientation.value)
        else:
            logger.debug(
                "Source %s: '%s' %.0fx%.0f",
                orientation.value,
                ref.name,
                ref.bounds.width,
                ref.bounds.height,
            )
        sources[orientation] = ref
    return sources


def _check_configuration(sizes: list[SizeSpec], source_config: SourceConfig, options: GenerationOptions) -> None:
    if not options.skip_unconfigured:
        check_sources(sizes, source_config)


def _packer_for(sources: dict[Orientation, CanvasRef | None], options: GenerationOptions) -> LayoutPacker:
    start = start_position(
        (ref.bounds for ref in sources.values() if ref is not None),
        options.gap,
        Point(options.start_x, options.start_y),
    )
    return LayoutPacker(
        start_x=start.x,
        start_y=start.y,
        max_row_width=options.max_row_width,
        gap=options.gap,
    )


async def generate_batch(
    host: HostDocument,
    sizes: Iterable[SizeSpec],
    source_config: SourceConfig,
    options: GenerationOptions | None = None,
    on_progress: ProgressCallback | None = None,
) -> BatchResult:
    """
    Generate a canvas for every requested size.

    Args:
        host: Document to generate into
        sizes: Requested sizes, generated in this order
        source_config: Source artboard per orientation
        options: Layout, generation and print options
        on_progress: Called as ``(index, total, name)`` after each size

    Returns:
        BatchResult with created, skipped and failed sizes

    Raises:
        ConfigurationError: If a needed orientation has no source and
            ``options.skip_unconfigured`` is off; raised before any host call
    """
    options = options or GenerationOptions()
    sizes = list(sizes)
    _check_configuration(sizes, source_config, options)

    result = BatchResult()
    total = len(sizes)
    logger.info("Generating %d size(s)", total)

    async with history(host, BATCH_HISTORY_NAME):
        sources = await _resolve_sources(host, source_config)
        classifier = _SizeClassifier(source_config, sources, options)
        packer = _packer_for(sources, options)
        pipeline = GenerationPipeline(host, options)

        for index, size in enumerate(sizes, start=1):
            label = size.label
            decision = classifier.classify(size)

            if decision.action == PlanAction.SKIP:
                result.skipped.append(BatchEntry(label, decision.reason, decision.orientation))
                logger.info("Skipped: %s", decision.reason, extra={"size": label})

            elif decision.action == PlanAction.FAIL:
                result.failed.append(BatchEntry(label, decision.reason, decision.orientation, decision.phase))
                logger.warning("Failed: %s", decision.reason, extra={"size": label, "phase": decision.phase})

            else:
                bleed = decision.bleed
                position = packer.next_position(bleed.width, bleed.height)
                placement = PlacedArtboard(position.x, position.y, bleed.width, bleed.height)
                try:
                    created = await pipeline.generate(size, decision.entry, decision.orientation, position)
                except (SourceNotFoundError, HostOperationError) as e:
                    phase = e.context.get("phase")
                    result.failed.append(BatchEntry(label, e.message, decision.orientation, phase))
                    logger.warning("Failed: %s", e.message, extra={"size": label, "phase": phase})
                    # The canvas was already resized into place before failing
                    if e.context.get("occupied"):
                        packer.register_placement(placement)
                else:
                    packer.register_placement(placement)
                    result.created.append(created)
                    logger.info(
                        "Created %.0fx%.0f at (%.0f, %.0f)",
                        bleed.width,
                        bleed.height,
                        position.x,
                        position.y,
                        extra={"size": label},
                    )

            if on_progress:
                on_progress(index, total, label)

    logger.info("Batch complete: %s", result.summary())
    return result


async def plan_batch(
    host: HostDocument,
    sizes: Iterable[SizeSpec],
    source_config: SourceConfig,
    options: GenerationOptions | None = None,
) -> list[PlannedSize]:
    """
    Work out what ``generate_batch`` would do without changing the document.

    Positions assume every generated size succeeds.

    Raises:
        ConfigurationError: Under the same conditions as ``generate_batch``
    """
    options = options or GenerationOptions()
    sizes = list(sizes)
    _check_configuration(sizes, source_config, options)

    sources = await _resolve_sources(host, source_config)
    classifier = _SizeClassifier(source_config, sources, options)
    packer = _packer_for(sources, options)

    plan = []
    for size in sizes:
        decision = classifier.classify(size)
        bleed = decision.bleed
        planned = PlannedSize(
            name=size.label,
            action=decision.action,
            orientation=decision.orientation,
            width=bleed.width,
            height=bleed.height,
            reason=decision.reason,
            size_type=size.type,
        )
        if decision.action == PlanAction.CREATE:
            placed = packer.place(bleed.width, bleed.height)
            planned.position = Point(placed.x, placed.y)
        plan.append(planned)
    return plan


async def generate_single(
    host: HostDocument,
    size: SizeSpec,
    source_config: SourceConfig,
    options: GenerationOptions | None = None,
) -> GenerationResult:
    """
    Generate one size to the right of every existing artboard.

    Raises:
        ConfigurationError: If the size's orientation has no source
        SourceNotFoundError: If the source is not in the document
        HostOperationError: If a host call fails
    """
    options = options or GenerationOptions()
    orientation, entry = source_for(size, source_config)
    if entry is None:
        raise ConfigurationError(
            missing_source_message(orientation, [size]),
            context={"missing": orientation.value},
        )

    async with history(host, f"Generate {size.label}"):
        canvases = await host.list_top_level_canvases()
        position = next_free_position(canvases, options.gap, Point(options.start_x, options.start_y))
        result = await GenerationPipeline(host, options).generate(size, entry, orientation, position)

    logger.info("Created %.0fx%.0f", result.width, result.height, extra={"size": size.label})
    return result
