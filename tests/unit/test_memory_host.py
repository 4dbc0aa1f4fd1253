"""Tests for boardmill.host.memory module."""

import asyncio

import pytest

from boardmill.exceptions import ConfigError
from boardmill.geometry import Bounds, Point
from boardmill.host import Axis, MemoryDocument, SimulatedHostError, get_host, load_document, save_document


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def doc():
    doc = MemoryDocument("Test")
    board = doc.add_canvas("Board", Bounds(0, 0, 1000, 500))
    doc.add_layer(board, "BKG", Bounds(0, 0, 1000, 500))
    group = doc.add_layer(board, "Group", Bounds(100, 100, 200, 100))
    doc.add_layer(group, "Inner", Bounds(120, 120, 50, 50))
    return doc


class TestMemoryDocumentReads:
    """Test listing and lookup."""

    def test_list_top_level(self, doc):
        canvases = run(doc.list_top_level_canvases())
        assert [c.name for c in canvases] == ["Board"]
        board = canvases[0]
        assert board.is_top_level
        assert board.is_artboard
        assert [c.name for c in board.children] == ["BKG", "Group"]
        assert board.children[1].children[0].name == "Inner"

    def test_get_canvas(self, doc):
        board = doc.find("Board")
        group = board.children[1]
        fresh = run(doc.get_canvas(group.id))
        assert fresh.parent_id == board.id
        assert run(doc.get_canvas(9999)) is None

    def test_calls_recorded(self, doc):
        run(doc.list_top_level_canvases())
        assert doc.calls[-1] == {"op": "list_top_level_canvases"}


class TestDuplicate:
    """Test duplication and selection."""

    def test_duplicate_copies_tree(self, doc):
        board = doc.find("Board")
        run(doc.duplicate(board))

        canvases = run(doc.list_top_level_canvases())
        assert [c.name for c in canvases] == ["Board", "Board copy"]
        copy = canvases[1]
        assert copy.id != board.id
        assert copy.bounds == board.bounds
        assert [c.name for c in copy.children] == ["BKG copy", "Group copy"]
        assert copy.children[1].children[0].name == "Inner copy"

        ids = {board.id} | {c.id for c in board.children}
        assert ids.isdisjoint({copy.id} | {c.id for c in copy.children})

    def test_selection_is_duplicate(self, doc):
        run(doc.duplicate(doc.find("Board")))
        selection = run(doc.active_selection())
        assert [s.name for s in selection] == ["Board copy"]

    def test_selection_can_be_child(self, doc):
        doc.select_child_after_duplicate = True
        run(doc.duplicate(doc.find("Board")))
        selection = run(doc.active_selection())
        assert selection[0].name == "BKG copy"
        assert not selection[0].is_top_level


class TestWrites:
    """Test mutating operations."""

    def test_resize_carries_contents(self, doc):
        board = doc.find("Board")
        run(doc.resize(board, Bounds(2000, 300, 1200, 600)))
        board = doc.find("Board")
        assert board.bounds == Bounds(2000, 300, 1200, 600)
        assert board.children[0].bounds == Bounds(2000, 300, 1000, 500)
        assert board.children[1].children[0].bounds == Bounds(2120, 420, 50, 50)

    def test_rename(self, doc):
        run(doc.rename(doc.find("Board"), "Hero"))
        assert doc.find("Hero") is not None

    def test_align_centers_on_artboard(self, doc):
        group = doc.find("Board").children[1]
        run(doc.select_and_align([group], Axis.HORIZONTAL))
        group = doc.find("Board").children[1]
        assert group.bounds == Bounds(400, 100, 200, 100)
        assert group.children[0].bounds == Bounds(420, 120, 50, 50)

        run(doc.select_and_align([group], Axis.VERTICAL))
        group = doc.find("Board").children[1]
        assert group.bounds.center == Point(500, 250)

    def test_align_group_as_a_whole(self, doc):
        board = doc.find("Board")
        run(doc.select_and_align(list(board.children), Axis.HORIZONTAL))
        board = doc.find("Board")
        # BKG already spans the artboard, so the union is centered and nothing moves
        assert board.children[1].bounds == Bounds(100, 100, 200, 100)

    def test_scale_about_union_center(self, doc):
        board = doc.find("Board")
        run(doc.scale(list(board.children), 200))
        board = doc.find("Board")
        assert board.children[0].bounds == Bounds(-500, -250, 2000, 1000)
        assert board.children[1].bounds == Bounds(-300, -50, 400, 200)
        assert board.children[1].children[0].bounds == Bounds(-260, -10, 100, 100)

    def test_scale_parent_and_child_scaled_once(self, doc):
        group = doc.find("Board").children[1]
        run(doc.scale([group, group.children[0]], 50))
        inner = doc.find("Board").children[1].children[0]
        assert inner.bounds.width == 25

    def test_scale_rejects_non_positive(self, doc):
        with pytest.raises(SimulatedHostError):
            run(doc.scale([doc.find("Board")], 0))

    def test_move(self, doc):
        group = doc.find("Board").children[1]
        run(doc.move([group], Point(10, -20)))
        group = doc.find("Board").children[1]
        assert group.bounds == Bounds(110, 80, 200, 100)
        assert group.children[0].bounds == Bounds(130, 100, 50, 50)

    def test_guides_and_shapes(self, doc):
        board = doc.find("Board")
        run(doc.add_margin_guides(board, 37.5))
        run(doc.draw_rectangle(Bounds(0, 0, 1, 10), (255, 0, 0)))
        assert doc.guides(board.id) == [37.5]
        assert doc.shapes == [{"bounds": Bounds(0, 0, 1, 10), "color": (255, 0, 0)}]

    def test_stale_reference(self, doc):
        board = doc.find("Board")
        doc.remove(board.id)
        with pytest.raises(SimulatedHostError, match="No canvas"):
            run(doc.rename(board, "x"))


class TestHistory:
    """Test history suspension bookkeeping."""

    def test_suspend_and_resume(self, doc):
        token = run(doc.suspend_history("Batch"))
        assert doc.history_depth == 1
        run(doc.resume_history(token))
        assert doc.history_depth == 0
        assert doc.history_log == ["Batch"]

    def test_wrong_token(self, doc):
        token = run(doc.suspend_history("Batch"))
        with pytest.raises(SimulatedHostError):
            run(doc.resume_history(token + 1))


class TestFailureInjection:
    """Test configurable failures."""

    def test_fail_always(self, doc):
        doc.fail_when("rename")
        with pytest.raises(SimulatedHostError, match="rename"):
            run(doc.rename(doc.find("Board"), "X"))

    def test_fail_with_predicate(self, doc):
        doc.fail_when("rename", lambda call: call["name"] == "Bad")
        run(doc.rename(doc.find("Board"), "Good"))
        with pytest.raises(SimulatedHostError):
            run(doc.rename(doc.find("Good"), "Bad"))

    def test_clear_failures(self, doc):
        doc.fail_when("resize")
        doc.clear_failures()
        run(doc.resize(doc.find("Board"), Bounds(0, 0, 10, 10)))


class TestSerialization:
    """Test YAML round trip and factory."""

    def test_from_dict(self, document_dict):
        doc = MemoryDocument.from_dict(document_dict)
        assert doc.name == "Campaign"
        landscape = doc.find("Landscape Master")
        assert landscape.bounds == Bounds(0, 0, 1920, 1080)
        assert [c.name for c in landscape.children] == ["BKG", "TEXT", "Logo"]

    def test_bounds_as_mapping(self):
        doc = MemoryDocument.from_dict(
            {"canvases": [{"name": "A", "bounds": {"left": 0, "top": 0, "right": 10, "bottom": 20}}]}
        )
        assert doc.find("A").bounds == Bounds(0, 0, 10, 20)

    def test_bad_bounds(self):
        with pytest.raises(ConfigError, match="canvases\\[0\\]"):
            MemoryDocument.from_dict({"canvases": [{"name": "A", "bounds": [1, 2]}]})

    def test_save_and_load(self, temp_dir, memory_document):
        run(memory_document.add_margin_guides(memory_document.find("Square Master"), 10))
        path = save_document(memory_document, temp_dir / "out" / "doc.yaml")
        loaded = load_document(path)
        assert loaded.to_dict()["canvases"] == memory_document.to_dict()["canvases"]
        assert loaded.guides(loaded.find("Square Master").id) == [10]

    def test_load_missing(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            load_document(temp_dir / "missing.yaml")

    def test_get_host(self, document_file):
        host = get_host("memory", path=document_file)
        assert host.name == "Campaign"
        assert get_host("memory").name == "Untitled"

    def test_unknown_host(self):
        with pytest.raises(ValueError, match="Unknown host"):
            get_host("photoshop")
