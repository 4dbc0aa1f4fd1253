"""Shared fixtures for boardmill tests."""

import logging
import shutil
import tempfile
from pathlib import Path

import pytest
import yaml


# === Logging ===

@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers the CLI installs so they do not leak between tests."""
    yield
    logger = logging.getLogger("boardmill")
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.NOTSET)


# === Path/Directory Fixtures ===

@pytest.fixture
def temp_dir():
    """Create a temporary directory for test outputs."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


# === Document Fixtures ===

@pytest.fixture
def document_dict():
    """Document with one source artboard per orientation."""
    return {
        "name": "Campaign",
        "canvases": [
            {
                "name": "Landscape Master",
                "bounds": [0, 0, 1920, 1080],
                "layers": [
                    {"name": "BKG", "bounds": [0, 0, 1920, 1080]},
                    {"name": "TEXT", "bounds": [460, 390, 1000, 300]},
                    {"name": "Logo", "bounds": [40, 40, 200, 100]},
                ],
            },
            {
                "name": "Portrait Master",
                "bounds": [2020, 0, 1080, 1920],
                "layers": [
                    {"name": "BKG", "bounds": [2020, 0, 1080, 1920]},
                    {"name": "TEXT", "bounds": [2160, 810, 800, 300]},
                ],
            },
            {
                "name": "Square Master",
                "bounds": [3200, 0, 1080, 1080],
                "layers": [
                    {"name": "BKG", "bounds": [3200, 0, 1080, 1080]},
                    {"name": "TEXT", "bounds": [3340, 390, 800, 300]},
                ],
            },
        ],
    }


@pytest.fixture
def memory_document(document_dict):
    """Pre-populated in-memory document."""
    from boardmill.host.memory import MemoryDocument

    return MemoryDocument.from_dict(document_dict)


@pytest.fixture
def document_file(temp_dir, document_dict):
    """Document YAML file on disk."""
    path = temp_dir / "document.yaml"
    with open(path, "w") as f:
        yaml.dump(document_dict, f, sort_keys=False)
    return path


# === Config Fixtures ===

@pytest.fixture
def minimal_config_dict():
    """Minimal valid job configuration dictionary."""
    return {
        "version": 1,
        "sources": {
            "landscape": "Landscape Master",
            "portrait": "Portrait Master",
            "square": "Square Master",
        },
        "sizes": [
            {"width": 1200, "height": 628, "name": "Link Ad"},
        ],
    }


@pytest.fixture
def full_config_dict():
    """Full job configuration dictionary with all options."""
    return {
        "version": 1,
        "sources": {
            "landscape": {
                "artboard": "Landscape Master",
                "layers": {"title": "TEXT", "corner_top_left": "Logo"},
            },
            "portrait": "Portrait Master",
            "square": {"artboard": "Square Master"},
        },
        "layout": {
            "gap": 50,
            "max_row_width": 6000,
            "start_x": 100,
            "start_y": 200,
        },
        "generation": {
            "resolution": 150,
            "content_mode": "layers",
            "skip_unconfigured": True,
            "layer_names": {"overlay": "FX", "text": "Headline", "background": "Backdrop"},
        },
        "print": {
            "bleed": 3,
            "bleed_unit": "mm",
            "crop_mark_length": 5,
            "crop_mark_weight": 2,
            "crop_mark_offset": 1,
            "crop_mark_color": {"r": 255, "g": 0, "b": 0},
        },
        "sizes": [
            {"width": 1080, "height": 1350, "name": "4x5 Social", "type": "social"},
            {"width": 2550, "height": 3300, "name": "Flyer", "type": "print", "requires_bleed": True},
            {"width": 1000, "height": 1000},
        ],
    }


@pytest.fixture
def temp_config_file(temp_dir, minimal_config_dict):
    """Create a temporary config file."""
    config_path = temp_dir / "config.yaml"
    with open(config_path, "w") as f:
        yaml.dump(minimal_config_dict, f)
    return config_path


@pytest.fixture
def full_config_file(temp_dir, full_config_dict):
    """Create a temporary full config file."""
    config_path = temp_dir / "full_config.yaml"
    with open(config_path, "w") as f:
        yaml.dump(full_config_dict, f)
    return config_path
