"""Configuration loading and validation for boardmill."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from boardmill.constants import (
    DEFAULT_BLEED,
    DEFAULT_BLEED_UNIT,
    DEFAULT_CROP_MARK_COLOR,
    DEFAULT_CROP_MARK_LENGTH,
    DEFAULT_CROP_MARK_OFFSET,
    DEFAULT_CROP_MARK_WEIGHT,
    DEFAULT_GAP,
    DEFAULT_LAYER_NAMES,
    DEFAULT_MAX_ROW_WIDTH,
    DEFAULT_RESOLUTION,
    DEFAULT_SIZE_TYPE,
    DEFAULT_START_X,
    DEFAULT_START_Y,
)
from boardmill.exceptions import ConfigError
from boardmill.geometry import BleedUnit


# ============================================================================
# Enums for constrained string values
# ============================================================================


class Orientation(str, Enum):
    """Orientation buckets a requested size is classified into."""

    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    SQUARE = "square"


class LayerRole(str, Enum):
    """Semantic purpose of a layer inside a source artboard."""

    BACKGROUND = "background"
    TITLE = "title"
    OVERLAYS = "overlays"
    CORNER_TOP_LEFT = "corner_top_left"
    CORNER_TOP_RIGHT = "corner_top_right"
    CORNER_BOTTOM_LEFT = "corner_bottom_left"
    CORNER_BOTTOM_RIGHT = "corner_bottom_right"


class ContentMode(str, Enum):
    """How the contents of a duplicate are fitted to the new size."""

    GROUP = "group"  # All top-level items scaled together (cover)
    LAYERS = "layers"  # Each item scaled and anchored by its role


def _parse_enum(
    enum_class: type[Enum],
    value: Any,
    field: str | None = None,
) -> Enum:
    """Parse a string value into an enum with validation.

    Args:
        enum_class: The enum class to parse into.
        value: The string value to parse.
        field: Field name for error context.

    Returns:
        The parsed enum value.

    Raises:
        ConfigError: If the value is not a valid enum member.
    """
    try:
        return enum_class(value)
    except ValueError:
        valid = ", ".join(e.value for e in enum_class)
        context = {"suggestion": f"Valid values are: {valid}"}
        if field:
            context = {"field": field, **context}
        raise ConfigError(f"Invalid value '{value}'", context=context) from None


def _parse_unit(value: Any, field: str) -> BleedUnit:
    try:
        return BleedUnit.parse(value)
    except ValueError:
        valid = ", ".join(u.value for u in BleedUnit)
        raise ConfigError(
            f"Invalid unit '{value}'",
            context={"field": field, "suggestion": f"Valid values are: {valid}"},
        ) from None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# ============================================================================
# Dataclasses
# ============================================================================


@dataclass(frozen=True)
class SizeSpec:
    """A requested output size.

    ``width`` and ``height`` are pixels at the document resolution; ``bleed``
    is expressed in ``bleed_unit``.
    """

    width: float
    height: float
    name: str = ""
    type: str = DEFAULT_SIZE_TYPE
    requires_bleed: bool = False
    bleed: float = DEFAULT_BLEED
    bleed_unit: BleedUnit = BleedUnit.INCHES

    def __post_init__(self):
        if not (_is_number(self.width) and _is_number(self.height)):
            raise ConfigError(f"Size '{self.name}': width and height must be numbers")
        if self.width <= 0 or self.height <= 0:
            raise ConfigError(
                f"Size '{self.name}': width and height must be positive, "
                f"got {self.width}x{self.height}"
            )

    @property
    def label(self) -> str:
        return self.name or f"{self.width:g}x{self.height:g}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "name": self.name,
            "type": self.type,
            "requires_bleed": self.requires_bleed,
            "bleed": self.bleed,
            "bleed_unit": self.bleed_unit.value,
        }


@dataclass
class SourceEntry:
    """Source artboard for one orientation.

    ``artboard`` is the name (or id, as a string) of a top-level canvas in the
    document. ``layers`` assigns layer names to roles.
    """

    artboard: str = ""
    layers: dict[LayerRole, str] = field(default_factory=dict)

    @property
    def is_configured(self) -> bool:
        return bool(self.artboard)


@dataclass
class SourceConfig:
    """Mapping from orientation to its source artboard."""

    entries: dict[Orientation, SourceEntry] = field(default_factory=dict)

    def get(self, orientation: Orientation) -> SourceEntry | None:
        return self.entries.get(Orientation(orientation))

    def artboard_ref(self, orientation: Orientation) -> str:
        entry = self.get(orientation)
        return entry.artboard if entry else ""

    def configured(self) -> dict[Orientation, SourceEntry]:
        """Entries with a non-empty artboard reference, in orientation order."""
        return {
            orientation: self.entries[orientation]
            for orientation in Orientation
            if orientation in self.entries and self.entries[orientation].is_configured
        }


@dataclass
class PrintSettings:
    """Bleed and crop-mark settings. Lengths are in ``bleed_unit``; weight is pixels."""

    bleed: float = DEFAULT_BLEED
    bleed_unit: BleedUnit = BleedUnit.INCHES
    crop_mark_length: float = DEFAULT_CROP_MARK_LENGTH
    crop_mark_weight: float = DEFAULT_CROP_MARK_WEIGHT
    crop_mark_offset: float = DEFAULT_CROP_MARK_OFFSET
    crop_mark_color: tuple[int, int, int] = DEFAULT_CROP_MARK_COLOR


@dataclass
class LayerNames:
    """Layer names looked up on each duplicate in ``layers`` content mode."""

    overlay: str = DEFAULT_LAYER_NAMES["overlay"]
    text: str = DEFAULT_LAYER_NAMES["text"]
    background: str = DEFAULT_LAYER_NAMES["background"]

    def as_list(self) -> list[str]:
        return [self.overlay, self.text, self.background]


@dataclass
class GenerationOptions:
    """Options for one batch run, injected by the caller."""

    gap: float = DEFAULT_GAP
    max_row_width: float = DEFAULT_MAX_ROW_WIDTH
    start_x: float = DEFAULT_START_X  # Used only when no source resolves
    start_y: float = DEFAULT_START_Y
    resolution: float = DEFAULT_RESOLUTION
    content_mode: ContentMode = ContentMode.GROUP
    skip_unconfigured: bool = False
    layer_names: LayerNames = field(default_factory=LayerNames)
    print: PrintSettings = field(default_factory=PrintSettings)


@dataclass
class JobConfig:
    """Root configuration object."""

    version: int = 1
    sources: SourceConfig = field(default_factory=SourceConfig)
    options: GenerationOptions = field(default_factory=GenerationOptions)
    sizes: list[SizeSpec] = field(default_factory=list)


# ============================================================================
# Parsing
# ============================================================================


def parse_size(
    data: dict[str, Any],
    index: int = 0,
    default_bleed: float = DEFAULT_BLEED,
    default_unit: BleedUnit = BleedUnit.INCHES,
) -> SizeSpec:
    """Parse and normalize a single size entry.

    Missing fields fall back to: name ``{type}_{width}x{height}``, type
    ``other``, no bleed, ``default_bleed`` in ``default_unit``.
    """
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid size at index {index}: expected a mapping")

    width = data.get("width")
    height = data.get("height")
    if not (_is_number(width) and _is_number(height)):
        raise ConfigError(f"Invalid size at index {index}: width and height must be numbers")

    size_type = data.get("type") or DEFAULT_SIZE_TYPE
    name = data.get("name") or f"{data.get('type') or 'size'}_{width}x{height}"
    bleed = data.get("bleed") or default_bleed
    if not _is_number(bleed) or bleed < 0:
        raise ConfigError(f"Invalid size at index {index}: bleed must be a non-negative number")

    unit_value = data.get("bleed_unit", data.get("bleedUnit"))
    bleed_unit = _parse_unit(unit_value, f"sizes[{index}].bleed_unit") if unit_value else default_unit

    requires_bleed = data.get("requires_bleed", data.get("requiresBleed", False))

    try:
        return SizeSpec(
            width=width,
            height=height,
            name=str(name).strip(),
            type=str(size_type),
            requires_bleed=bool(requires_bleed),
            bleed=float(bleed),
            bleed_unit=bleed_unit,
        )
    except ConfigError as e:
        raise ConfigError(f"Invalid size at index {index}: {e.message}") from e


def parse_sizes(
    data: list[Any],
    default_bleed: float = DEFAULT_BLEED,
    default_unit: BleedUnit = BleedUnit.INCHES,
) -> list[SizeSpec]:
    """Parse a list of size entries."""
    if not isinstance(data, list):
        raise ConfigError("Sizes must be a list")
    return [parse_size(item, i, default_bleed, default_unit) for i, item in enumerate(data)]


def parse_source_entry(orientation: str, data: Any) -> SourceEntry:
    """Parse one source entry: a bare artboard name or a mapping."""
    if data is None:
        return SourceEntry()
    if isinstance(data, (str, int)) and not isinstance(data, bool):
        return SourceEntry(artboard=str(data))
    if not isinstance(data, dict):
        raise ConfigError(
            f"Source '{orientation}' must be an artboard name or a mapping",
            context={"field": f"sources.{orientation}"},
        )

    layers = {}
    for role_str, layer_name in (data.get("layers") or {}).items():
        role = _parse_enum(LayerRole, role_str, field=f"sources.{orientation}.layers")
        layers[role] = str(layer_name)

    artboard = data.get("artboard", "")
    return SourceEntry(artboard="" if artboard is None else str(artboard), layers=layers)


def parse_source_config(data: dict[str, Any] | None) -> SourceConfig:
    """Parse the ``sources`` section."""
    if not data:
        return SourceConfig()
    if not isinstance(data, dict):
        raise ConfigError("'sources' must be a mapping of orientation to artboard")

    entries = {}
    for orientation_str, entry_data in data.items():
        orientation = _parse_enum(Orientation, orientation_str, field="sources")
        entries[orientation] = parse_source_entry(orientation.value, entry_data)
    return SourceConfig(entries=entries)


def parse_print_settings(data: dict[str, Any] | None) -> PrintSettings:
    """Parse the ``print`` section."""
    if not data:
        return PrintSettings()

    color = data.get("crop_mark_color", DEFAULT_CROP_MARK_COLOR)
    if isinstance(color, dict):
        color = (color.get("r", 0), color.get("g", 0), color.get("b", 0))
    if len(color) != 3:
        raise ConfigError(
            "crop_mark_color must have three components",
            context={"field": "print.crop_mark_color"},
        )

    return PrintSettings(
        bleed=data.get("bleed", DEFAULT_BLEED),
        bleed_unit=_parse_unit(data.get("bleed_unit", DEFAULT_BLEED_UNIT), "print.bleed_unit"),
        crop_mark_length=data.get("crop_mark_length", DEFAULT_CROP_MARK_LENGTH),
        crop_mark_weight=data.get("crop_mark_weight", DEFAULT_CROP_MARK_WEIGHT),
        crop_mark_offset=data.get("crop_mark_offset", DEFAULT_CROP_MARK_OFFSET),
        crop_mark_color=tuple(int(c) for c in color),
    )


def parse_options(data: dict[str, Any]) -> GenerationOptions:
    """Build GenerationOptions from the ``layout``, ``generation`` and ``print`` sections."""
    layout = data.get("layout") or {}
    generation = data.get("generation") or {}

    names = generation.get("layer_names") or {}
    layer_names = LayerNames(
        overlay=names.get("overlay", DEFAULT_LAYER_NAMES["overlay"]),
        text=names.get("text", DEFAULT_LAYER_NAMES["text"]),
        background=names.get("background", DEFAULT_LAYER_NAMES["background"]),
    )

    content_mode = _parse_enum(
        ContentMode,
        generation.get("content_mode", ContentMode.GROUP.value),
        field="generation.content_mode",
    )

    return GenerationOptions(
        gap=layout.get("gap", DEFAULT_GAP),
        max_row_width=layout.get("max_row_width", DEFAULT_MAX_ROW_WIDTH),
        start_x=layout.get("start_x", DEFAULT_START_X),
        start_y=layout.get("start_y", DEFAULT_START_Y),
        resolution=generation.get("resolution", DEFAULT_RESOLUTION),
        content_mode=content_mode,
        skip_unconfigured=generation.get("skip_unconfigured", False),
        layer_names=layer_names,
        print=parse_print_settings(data.get("print")),
    )


def parse_config(data: Any) -> JobConfig:
    """Parse an already-loaded configuration mapping."""
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a YAML dictionary")

    if "sources" not in data:
        raise ConfigError("Configuration must contain 'sources' section")

    options = parse_options(data)
    sizes = parse_sizes(
        data.get("sizes") or [],
        default_bleed=options.print.bleed,
        default_unit=options.print.bleed_unit,
    )

    return JobConfig(
        version=data.get("version", 1),
        sources=parse_source_config(data["sources"]),
        options=options,
        sizes=sizes,
    )


def load_config(config_path: Path) -> JobConfig:
    """Load and validate a job configuration file."""
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    return parse_config(data)


def load_sizes(sizes_path: Path, print_settings: PrintSettings | None = None) -> list[SizeSpec]:
    """Load a standalone YAML list of sizes."""
    if not sizes_path.exists():
        raise FileNotFoundError(f"Sizes file not found: {sizes_path}")

    with open(sizes_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if isinstance(data, dict) and "sizes" in data:
        data = data["sizes"]

    settings = print_settings or PrintSettings()
    return parse_sizes(data, settings.bleed, settings.bleed_unit)
