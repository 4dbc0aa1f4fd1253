"""Tests for boardmill.pipeline.generation module."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from boardmill.config import ContentMode, GenerationOptions, LayerRole, Orientation, SizeSpec, SourceEntry
from boardmill.exceptions import HostOperationError, SourceNotFoundError
from boardmill.geometry import Bounds, Point
from boardmill.host import CanvasRef, HostDocument, SimulatedHostError
from boardmill.pipeline.generation import GenerationPhase, GenerationPipeline


def run(coro):
    return asyncio.run(coro)


def assert_bounds(actual, expected):
    assert actual.left == pytest.approx(expected.left)
    assert actual.top == pytest.approx(expected.top)
    assert actual.width == pytest.approx(expected.width)
    assert actual.height == pytest.approx(expected.height)


SQUARE = SourceEntry("Square Master")


class TestGroupMode:
    """Test the default group transform with bleed."""

    def _generate(self, doc, size, position=Point(5000, 0)):
        pipeline = GenerationPipeline(doc, GenerationOptions())
        return run(pipeline.generate(size, SQUARE, Orientation.SQUARE, position))

    def test_creates_resized_canvas(self, memory_document):
        size = SizeSpec(1000, 1000, name="Tile", requires_bleed=True)
        result = self._generate(memory_document, size)

        created = memory_document.find("Tile")
        assert created is not None
        assert created.id == result.canvas_id
        assert_bounds(created.bounds, Bounds(5000, 0, 1075, 1075))

        assert result.width == pytest.approx(1075)
        assert result.original_width == 1000
        assert result.bleed_px == pytest.approx(37.5)
        assert result.requires_bleed is True
        assert result.position == Point(5000, 0)
        assert result.orientation == Orientation.SQUARE

    def test_contents_cover_and_center(self, memory_document):
        self._generate(memory_document, SizeSpec(1000, 1000, name="Tile", requires_bleed=True))
        created = memory_document.find("Tile")
        background = created.children[0]
        assert_bounds(background.bounds, Bounds(5000, 0, 1075, 1075))
        assert background.bounds.center.x == pytest.approx(created.bounds.center.x)

    def test_copy_suffixes_stripped(self, memory_document):
        self._generate(memory_document, SizeSpec(1000, 1000, name="Tile"))
        created = memory_document.find("Tile")
        assert [c.name for c in created.children] == ["BKG", "TEXT"]

    def test_source_untouched(self, memory_document):
        before = memory_document.find("Square Master")
        self._generate(memory_document, SizeSpec(1000, 1000, name="Tile", requires_bleed=True))
        after = memory_document.find("Square Master")
        assert after == before

    def test_bleed_guides_and_crop_marks(self, memory_document):
        result = self._generate(memory_document, SizeSpec(1000, 1000, name="Tile", requires_bleed=True))
        assert memory_document.guides(result.canvas_id) == [pytest.approx(37.5)]
        assert len(memory_document.shapes) == 8
        trim = Bounds(5037.5, 37.5, 1000, 1000)
        for shape in memory_document.shapes:
            assert not shape["bounds"].overlaps(trim)
            assert shape["color"] == (0, 0, 0)

    def test_no_bleed_phase_without_bleed(self, memory_document):
        self._generate(memory_document, SizeSpec(1000, 1000, name="Tile"))
        assert memory_document.operations("add_margin_guides") == []
        assert memory_document.shapes == []

    def test_unnamed_size_named_after_dimensions(self, memory_document):
        result = self._generate(memory_document, SizeSpec(1000, 1000))
        assert result.name == "1000x1000"
        created = memory_document.find("1000x1000")
        assert created is not None
        assert created.id == result.canvas_id
        assert memory_document.find("Square Master copy") is None

    def test_result_carries_size_type(self, memory_document):
        result = self._generate(memory_document, SizeSpec(1000, 1000, name="Tile", type="social"))
        assert result.size_type == "social"
        assert result.to_dict()["type"] == "social"

    def test_phase_order(self, memory_document):
        self._generate(memory_document, SizeSpec(1000, 1000, name="Tile", requires_bleed=True))
        ops = [c["op"] for c in memory_document.calls]
        order = ["duplicate", "resize", "select_and_align", "scale", "add_margin_guides", "draw_rectangle"]
        positions = [ops.index(op) for op in order]
        assert positions == sorted(positions)


class TestLayerMode:
    """Test per-layer role transforms."""

    def test_roles_scale_and_anchor(self, memory_document):
        options = GenerationOptions(content_mode=ContentMode.LAYERS)
        entry = SourceEntry("Landscape Master", layers={LayerRole.CORNER_TOP_LEFT: "Logo"})
        pipeline = GenerationPipeline(memory_document, options)
        run(pipeline.generate(SizeSpec(960, 540, name="Half"), entry, Orientation.LANDSCAPE, Point(2500, 0)))

        created = memory_document.find("Half")
        layers = {c.name: c for c in created.children}
        assert set(layers) == {"BKG", "TEXT", "Logo"}
        assert_bounds(layers["BKG"].bounds, Bounds(2500, 0, 960, 540))
        assert_bounds(layers["TEXT"].bounds, Bounds(2730, 195, 500, 150))
        assert_bounds(layers["Logo"].bounds, Bounds(2520, 20, 100, 50))


class TestResolveAfterDuplicate:
    """Test locating the duplicate."""

    def test_walks_up_from_selected_child(self, memory_document):
        memory_document.select_child_after_duplicate = True
        pipeline = GenerationPipeline(memory_document)
        result = run(pipeline.generate(SizeSpec(1000, 1000, name="Tile"), SQUARE, Orientation.SQUARE, Point(0, 2000)))
        assert memory_document.find("Tile").id == result.canvas_id

    def _mock_host(self):
        return AsyncMock(spec=HostDocument)

    def test_empty_selection(self):
        host = self._mock_host()
        host.active_selection.return_value = []
        source = CanvasRef(1, "S", True, Bounds(0, 0, 10, 10))
        with pytest.raises(HostOperationError, match="nothing selected"):
            run(GenerationPipeline(host).resolve_after_duplicate(source))

    def test_rejects_source(self):
        host = self._mock_host()
        source = CanvasRef(1, "S", True, Bounds(0, 0, 10, 10))
        host.active_selection.return_value = [source]
        with pytest.raises(HostOperationError, match="source artboard"):
            run(GenerationPipeline(host).resolve_after_duplicate(source))

    def test_bounded_parent_walk(self):
        host = self._mock_host()
        bounds = Bounds(0, 0, 10, 10)
        host.active_selection.return_value = [CanvasRef(100, "deep", False, bounds, parent_id=101)]
        host.get_canvas.side_effect = lambda cid: CanvasRef(cid, "layer", False, bounds, parent_id=cid + 1)
        source = CanvasRef(1, "S", True, bounds)

        with pytest.raises(HostOperationError, match="10 parents"):
            run(GenerationPipeline(host).resolve_after_duplicate(source))
        assert host.get_canvas.await_count == 10

    def test_missing_parent(self):
        host = self._mock_host()
        host.active_selection.return_value = [CanvasRef(5, "orphan", False, Bounds(0, 0, 1, 1), parent_id=6)]
        host.get_canvas.return_value = None
        with pytest.raises(HostOperationError, match="Parent"):
            run(GenerationPipeline(host).resolve_after_duplicate(CanvasRef(1, "S", True, Bounds(0, 0, 1, 1))))


class TestFailures:
    """Test phase-tagged failures."""

    def _generate(self, doc, entry=SQUARE, bleed=True):
        size = SizeSpec(1000, 1000, name="Tile", requires_bleed=bleed)
        return run(GenerationPipeline(doc).generate(size, entry, Orientation.SQUARE, Point(5000, 0)))

    def test_missing_source(self, memory_document):
        with pytest.raises(SourceNotFoundError) as exc_info:
            self._generate(memory_document, SourceEntry("Gone"))
        assert exc_info.value.context["phase"] == GenerationPhase.RESOLVE.value
        assert exc_info.value.context["size"] == "Tile"
        assert memory_document.operations("duplicate") == []

    @pytest.mark.parametrize(
        "operation,phase",
        [
            ("duplicate", GenerationPhase.RESOLVE),
            ("resize", GenerationPhase.RESIZE),
            ("scale", GenerationPhase.TRANSFORM),
            ("draw_rectangle", GenerationPhase.BLEED),
        ],
    )
    def test_host_failure_tagged_with_phase(self, memory_document, operation, phase):
        memory_document.fail_when(operation)
        with pytest.raises(HostOperationError) as exc_info:
            self._generate(memory_document)

        error = exc_info.value
        assert error.phase == phase.value
        assert error.context["size"] == "Tile"
        assert isinstance(error.__cause__, SimulatedHostError)
        assert "phase=" in str(error)

    def test_rename_failure_is_resize_phase(self, memory_document):
        memory_document.fail_when("rename", lambda call: call["name"] == "Tile")
        with pytest.raises(HostOperationError) as exc_info:
            self._generate(memory_document)
        assert exc_info.value.phase == GenerationPhase.RESIZE.value

    def test_failure_after_resize_marks_canvas_occupied(self, memory_document):
        memory_document.fail_when("rename", lambda call: call["name"] == "Tile")
        with pytest.raises(HostOperationError) as exc_info:
            self._generate(memory_document)
        assert exc_info.value.context["occupied"] is True

    @pytest.mark.parametrize("operation", ["duplicate", "resize"])
    def test_failure_before_resize_not_occupied(self, memory_document, operation):
        memory_document.fail_when(operation)
        with pytest.raises(HostOperationError) as exc_info:
            self._generate(memory_document)
        assert "occupied" not in exc_info.value.context

    def test_late_failure_marks_canvas_occupied(self, memory_document):
        memory_document.fail_when("draw_rectangle")
        with pytest.raises(HostOperationError) as exc_info:
            self._generate(memory_document)
        assert exc_info.value.context["occupied"] is True
