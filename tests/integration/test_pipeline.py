"""Integration tests for boardmill batch generation."""

import asyncio
import random

import pytest
import yaml

from boardmill.config import ContentMode, SizeSpec, load_config, parse_config
from boardmill.host import load_document, save_document
from boardmill.pipeline import generate_batch

CAMPAIGN_SIZES = [
    {"width": 1080, "height": 1080, "name": "Instagram Post"},
    {"width": 1080, "height": 1350, "name": "Instagram Portrait"},
    {"width": 1080, "height": 1920, "name": "Story"},
    {"width": 1200, "height": 628, "name": "Link Ad"},
    {"width": 1920, "height": 1080, "name": "HD"},
    {"width": 300, "height": 250, "name": "Medium Rectangle"},
    {"width": 728, "height": 90, "name": "Leaderboard"},
    {"width": 160, "height": 600, "name": "Skyscraper"},
    {"width": 2550, "height": 3300, "name": "Flyer", "requires_bleed": True},
    {"width": 5400, "height": 3600, "name": "Poster", "requires_bleed": True},
]


def top_level(doc):
    return asyncio.run(doc.list_top_level_canvases())


@pytest.mark.integration
class TestBatchIntegration:
    """End-to-end batches against a document loaded from disk."""

    def _load(self, temp_dir, minimal_config_dict, document_file, **generation):
        minimal_config_dict["sizes"] = CAMPAIGN_SIZES
        minimal_config_dict["generation"] = generation
        config_path = temp_dir / "job.yaml"
        config_path.write_text(yaml.dump(minimal_config_dict))
        return load_config(config_path), load_document(document_file)

    def test_campaign(self, temp_dir, minimal_config_dict, document_file):
        config, doc = self._load(temp_dir, minimal_config_dict, document_file)
        result = asyncio.run(generate_batch(doc, config.sizes, config.sources, config.options))

        # Instagram Post and HD match the square and landscape sources, Story the portrait one
        assert sorted(e.name for e in result.skipped) == ["HD", "Instagram Post", "Story"]
        assert len(result.created) == len(CAMPAIGN_SIZES) - 3
        assert result.failed == []

        canvases = top_level(doc)
        for i, a in enumerate(canvases):
            for b in canvases[i + 1:]:
                assert not a.bounds.overlaps(b.bounds), (a.name, b.name)

        poster = next(c for c in canvases if c.name == "Poster")
        assert poster.bounds.width == pytest.approx(5400 + 75)
        assert doc.guides(poster.id) == [pytest.approx(37.5)]
        assert len(doc.shapes) == 16

    def test_layers_mode(self, temp_dir, minimal_config_dict, document_file):
        config, doc = self._load(temp_dir, minimal_config_dict, document_file, content_mode="layers")
        assert config.options.content_mode == ContentMode.LAYERS

        result = asyncio.run(generate_batch(doc, config.sizes, config.sources, config.options))
        assert result.failed == []

        leaderboard = next(c for c in top_level(doc) if c.name == "Leaderboard")
        background = next(c for c in leaderboard.children if c.name == "BKG")
        # Cover scaling: the background spans the whole banner
        assert background.bounds.width >= leaderboard.bounds.width - 1e-6
        assert background.bounds.height >= leaderboard.bounds.height - 1e-6

    def test_saved_result_round_trips(self, temp_dir, minimal_config_dict, document_file):
        config, doc = self._load(temp_dir, minimal_config_dict, document_file)
        asyncio.run(generate_batch(doc, config.sizes, config.sources, config.options))

        saved = save_document(doc, temp_dir / "result.yaml")
        reloaded = load_document(saved)
        assert [c.name for c in top_level(reloaded)] == [c.name for c in top_level(doc)]

    @pytest.mark.parametrize("seed", range(5))
    def test_random_batches_never_overlap(self, seed, memory_document, minimal_config_dict):
        rng = random.Random(seed)
        config = parse_config(minimal_config_dict)
        sizes = [
            SizeSpec(
                rng.randint(50, 6000),
                rng.randint(50, 6000),
                name=f"size-{i}",
                requires_bleed=rng.random() < 0.3,
            )
            for i in range(15)
        ]

        result = asyncio.run(generate_batch(memory_document, sizes, config.sources, config.options))
        assert result.total == len(sizes)

        canvases = top_level(memory_document)
        for i, a in enumerate(canvases):
            for b in canvases[i + 1:]:
                assert not a.bounds.overlaps(b.bounds)
