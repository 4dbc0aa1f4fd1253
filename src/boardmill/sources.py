"""Source artboard resolution and layer roles.

Every component that needs to know a size's orientation goes through
``orientation_for`` so a size lands in the same bucket everywhere in a run.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from boardmill.config import LayerNames, LayerRole, Orientation, SizeSpec, SourceConfig, SourceEntry
from boardmill.constants import LANDSCAPE_MIN_RATIO, LAYER_NAME_PATTERNS, PORTRAIT_MAX_RATIO
from boardmill.geometry import Anchor, ScaleMode

if TYPE_CHECKING:
    from boardmill.host.base import CanvasRef


_COPY_SUFFIX = re.compile(r" copy\d*$", re.IGNORECASE)
_WORD_SEPARATOR = re.compile(r"[^a-z0-9]+")


def resolve_source_type(aspect_ratio: float) -> Orientation:
    """Classify a width / height ratio into an orientation bucket."""
    if aspect_ratio < PORTRAIT_MAX_RATIO:
        return Orientation.PORTRAIT
    if aspect_ratio > LANDSCAPE_MIN_RATIO:
        return Orientation.LANDSCAPE
    return Orientation.SQUARE


def orientation_for(size: SizeSpec) -> Orientation:
    """Orientation bucket of a requested size (from its un-bled dimensions)."""
    return resolve_source_type(size.width / size.height)


def can_generate(size: SizeSpec, source_config: SourceConfig) -> bool:
    """True if the size's orientation has a source artboard configured."""
    return bool(source_config.artboard_ref(orientation_for(size)))


def source_for(size: SizeSpec, source_config: SourceConfig) -> tuple[Orientation, SourceEntry | None]:
    """Resolve the orientation and configured source entry for a size."""
    orientation = orientation_for(size)
    entry = source_config.get(orientation)
    if entry is not None and not entry.is_configured:
        entry = None
    return orientation, entry


def find_canvas(canvases: Iterable["CanvasRef"], ref: str) -> "CanvasRef | None":
    """Find a canvas by name, falling back to its id as a string."""
    canvases = list(canvases)
    for canvas in canvases:
        if canvas.name == ref:
            return canvas
    for canvas in canvases:
        if str(canvas.id) == str(ref):
            return canvas
    return None


def strip_copy_suffix(name: str) -> str:
    """Remove the " copy" / " copy 2"-style suffix a duplicate adds to names."""
    cleaned = _COPY_SUFFIX.sub("", name)
    # Photoshop also writes "copy 2" with a space before the number
    return re.sub(r" copy \d+$", "", cleaned, flags=re.IGNORECASE)


# ============================================================================
# Layer roles
# ============================================================================


@dataclass(frozen=True)
class RoleConfig:
    """Scale mode and anchor used for a layer role."""

    scale_mode: ScaleMode
    anchor: Anchor


ROLE_CONFIGS: dict[LayerRole, RoleConfig] = {
    LayerRole.BACKGROUND: RoleConfig(ScaleMode.COVER, Anchor.CENTER),
    LayerRole.TITLE: RoleConfig(ScaleMode.CONTAIN, Anchor.CENTER),
    LayerRole.OVERLAYS: RoleConfig(ScaleMode.COVER, Anchor.CENTER),
    LayerRole.CORNER_TOP_LEFT: RoleConfig(ScaleMode.RELATIVE, Anchor.TOP_LEFT),
    LayerRole.CORNER_TOP_RIGHT: RoleConfig(ScaleMode.RELATIVE, Anchor.TOP_RIGHT),
    LayerRole.CORNER_BOTTOM_LEFT: RoleConfig(ScaleMode.RELATIVE, Anchor.BOTTOM_LEFT),
    LayerRole.CORNER_BOTTOM_RIGHT: RoleConfig(ScaleMode.RELATIVE, Anchor.BOTTOM_RIGHT),
}

# Layers without a recognised role track overall canvas size
DEFAULT_ROLE_CONFIG = RoleConfig(ScaleMode.RELATIVE, Anchor.CENTER)


def role_config(role: LayerRole | None) -> RoleConfig:
    """Scale mode and anchor for a role (default for unknown layers)."""
    if role is None:
        return DEFAULT_ROLE_CONFIG
    return ROLE_CONFIGS[role]


def role_for_layer(
    layer_name: str,
    source: SourceEntry | None = None,
    layer_names: LayerNames | None = None,
) -> LayerRole | None:
    """
    Work out which role a layer plays.

    Explicit assignments on the source entry win. Otherwise the configured
    layer names are matched exactly, then common name fragments are matched
    case-insensitively.

    Args:
        layer_name: Layer name on the duplicate (copy suffix already stripped)
        source: Source entry carrying explicit role assignments
        layer_names: Configured overlay/text/background layer names

    Returns:
        The layer's role, or None if it has none
    """
    if source is not None:
        for role, assigned in source.layers.items():
            if assigned == layer_name:
                return role

    names = layer_names or LayerNames()
    exact = {
        names.overlay: LayerRole.OVERLAYS,
        names.text: LayerRole.TITLE,
        names.background: LayerRole.BACKGROUND,
    }
    if layer_name in exact:
        return exact[layer_name]

    return detect_role(layer_name)


def _fragment_matches(fragment: str, lower: str, words: set[str]) -> bool:
    if len(fragment) <= 2:
        return fragment in words
    return fragment in lower


def detect_role(layer_name: str) -> LayerRole | None:
    """Guess a layer's role from ``LAYER_NAME_PATTERNS``; the longest matching fragment wins."""
    lower = layer_name.lower()
    words = set(_WORD_SEPARATOR.split(lower))
    best: LayerRole | None = None
    best_length = 0
    for role_name, fragments in LAYER_NAME_PATTERNS.items():
        for fragment in fragments:
            if len(fragment) > best_length and _fragment_matches(fragment, lower, words):
                best = LayerRole(role_name)
                best_length = len(fragment)
    return best
