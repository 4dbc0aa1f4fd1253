"""Centralized constants for boardmill."""

from typing import Literal

# Orientation buckets, classified by width / height
ORIENTATIONS = ("landscape", "portrait", "square")
OrientationName = Literal["landscape", "portrait", "square"]

PORTRAIT_MAX_RATIO = 0.85
LANDSCAPE_MIN_RATIO = 1.15

# Scale modes for fitting source content into a target
SCALE_MODES = ("cover", "contain", "relative")
ScaleModeName = Literal["cover", "contain", "relative"]

# Anchors for layer placement
ANCHORS = ("center", "top-left", "top-right", "bottom-left", "bottom-right")

# Content transform modes
CONTENT_MODES = ("group", "layers")

# Bleed units and accepted spellings
BLEED_UNITS = ("inches", "millimeters", "pixels")
UNIT_ALIASES = {
    "inches": "inches",
    "inch": "inches",
    "in": "inches",
    "millimeters": "millimeters",
    "millimetres": "millimeters",
    "mm": "millimeters",
    "pixels": "pixels",
    "px": "pixels",
}

MM_PER_INCH = 25.4
DEFAULT_RESOLUTION = 300

# Row-break heuristic: start a new row when an item's height differs from the
# row's tallest item by more than this fraction of their average height.
# Tunable, not a proven optimum.
ROW_HEIGHT_DIVERGENCE = 0.5

# Bleed-adjusted sizes within this many pixels of a source count as a match
SOURCE_MATCH_TOLERANCE_PX = 1.0

# Parent walk limit when locating the duplicate after a duplicate call
MAX_PARENT_WALK = 10

# Layout defaults
DEFAULT_GAP = 100
DEFAULT_MAX_ROW_WIDTH = 8000
DEFAULT_START_X = 2500
DEFAULT_START_Y = 0

# Print defaults (lengths are in the print unit)
DEFAULT_BLEED = 0.125
DEFAULT_BLEED_UNIT = "inches"
DEFAULT_CROP_MARK_LENGTH = 0.25
DEFAULT_CROP_MARK_WEIGHT = 1.0
DEFAULT_CROP_MARK_OFFSET = 0.0625
DEFAULT_CROP_MARK_COLOR = (0, 0, 0)

# Default layer names searched in "layers" content mode
DEFAULT_LAYER_NAMES = {
    "overlay": "Overlay",
    "text": "TEXT",
    "background": "BKG",
}

DEFAULT_SIZE_TYPE = "other"

# Name fragments that give a layer its role. The longest matching fragment
# wins, ties go to the role listed first. Codes of two letters or fewer must
# match a whole word of the name.
LAYER_NAME_PATTERNS = {
    "background": ("bkg", "background", "bg", "back"),
    "title": ("text", "title", "headline", "heading", "copy", "txt", "main"),
    "overlays": ("adjust", "overlay", "overlays", "effects", "gradient", "vignette"),
    "corner_top_left": ("corner-tl", "corner_tl", "top-left", "top_left", "tl", "logo-tl"),
    "corner_top_right": ("corner-tr", "corner_tr", "top-right", "top_right", "tr", "logo-tr", "logo"),
    "corner_bottom_left": ("corner-bl", "corner_bl", "bottom-left", "bottom_left", "bl", "logo-bl"),
    "corner_bottom_right": (
        "corner-br",
        "corner_br",
        "bottom-right",
        "bottom_right",
        "br",
        "logo-br",
        "cta",
        "button",
    ),
}
