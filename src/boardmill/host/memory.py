"""In-memory host document.

Used for testing, dry runs and the command line. Canvases live in a plain
tree; every call is recorded in ``calls`` and failures can be injected per
operation with ``fail_when``.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from boardmill.exceptions import ConfigError
from boardmill.geometry import Bounds, Point, union_bounds
from boardmill.host.base import Axis, CanvasRef, HostDocument


class SimulatedHostError(RuntimeError):
    """Raised by MemoryDocument when an injected failure triggers."""


@dataclass
class _Node:
    id: int
    name: str
    bounds: Bounds
    is_artboard: bool = False
    parent: _Node | None = None
    children: list[_Node] = field(default_factory=list)
    guides: list[float] = field(default_factory=list)

    def walk(self):
        yield self
        for child in self.children:
            yield from child.walk()

    def top_level(self) -> _Node:
        node = self
        while node.parent is not None:
            node = node.parent
        return node


def _parse_bounds(value: Any, where: str) -> Bounds:
    if isinstance(value, dict):
        if "right" in value and "width" not in value:
            return Bounds.from_edges(value["left"], value["top"], value["right"], value["bottom"])
        return Bounds(value["left"], value["top"], value["width"], value["height"])
    if isinstance(value, (list, tuple)) and len(value) == 4:
        return Bounds(*value)
    raise ConfigError(f"Invalid bounds for {where}: {value!r}")


class MemoryDocument(HostDocument):
    """In-memory host document.

    Example:
        doc = MemoryDocument("Campaign")
        source = doc.add_canvas("Square Master", Bounds(0, 0, 1080, 1080))
        doc.add_layer(source, "BKG", Bounds(0, 0, 1080, 1080))
        doc.fail_when("resize")
    """

    def __init__(self, name: str = "Untitled", select_child_after_duplicate: bool = False):
        """Initialize an empty document.

        Args:
            name: Document name
            select_child_after_duplicate: If True, a duplicate call leaves the
                duplicate's first child selected instead of the duplicate itself
        """
        self._name = name
        self.select_child_after_duplicate = select_child_after_duplicate
        self._top: list[_Node] = []
        self._index: dict[int, _Node] = {}
        self._ids = itertools.count(1)
        self._selection: list[int] = []
        self._failures: dict[str, Callable[[dict], bool] | None] = {}
        self._history_tokens = itertools.count(1)
        self._open_history: list[tuple[int, str]] = []
        self.calls: list[dict[str, Any]] = []
        self.shapes: list[dict[str, Any]] = []
        self.history_log: list[str] = []

    # ------------------------------------------------------------------
    # Building and inspection
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def history_depth(self) -> int:
        return len(self._open_history)

    def add_canvas(self, name: str, bounds: Bounds, is_artboard: bool = True) -> int:
        """Add a top-level canvas and return its id."""
        node = _Node(next(self._ids), name, bounds, is_artboard)
        self._top.append(node)
        self._index[node.id] = node
        return node.id

    def add_layer(self, parent_id: int, name: str, bounds: Bounds) -> int:
        """Add a layer under ``parent_id`` and return its id."""
        parent = self._index[parent_id]
        node = _Node(next(self._ids), name, bounds, parent=parent)
        parent.children.append(node)
        self._index[node.id] = node
        return node.id

    def find(self, name: str) -> CanvasRef | None:
        """Snapshot of the first top-level canvas called ``name``."""
        for node in self._top:
            if node.name == name:
                return self._snapshot(node)
        return None

    def remove(self, canvas_id: int) -> None:
        """Delete a canvas or layer and its contents."""
        node = self._index[canvas_id]
        siblings = node.parent.children if node.parent else self._top
        siblings.remove(node)
        for item in node.walk():
            self._index.pop(item.id, None)
        self._selection = [i for i in self._selection if i in self._index]

    def guides(self, canvas_id: int) -> list[float]:
        return list(self._index[canvas_id].guides)

    def fail_when(self, operation: str, predicate: Callable[[dict], bool] | None = None) -> None:
        """Make ``operation`` raise, optionally only when ``predicate(call)`` is true."""
        self._failures[operation] = predicate

    def clear_failures(self) -> None:
        self._failures.clear()

    def operations(self, op: str) -> list[dict[str, Any]]:
        """Recorded calls of one operation."""
        return [c for c in self.calls if c["op"] == op]

    def _record(self, op: str, **details: Any) -> None:
        call = {"op": op, **details}
        self.calls.append(call)
        if op in self._failures:
            predicate = self._failures[op]
            if predicate is None or predicate(call):
                raise SimulatedHostError(f"Simulated failure in {op}")

    def _node(self, ref: CanvasRef) -> _Node:
        try:
            return self._index[ref.id]
        except KeyError:
            raise SimulatedHostError(f"No canvas with id {ref.id}") from None

    def _snapshot(self, node: _Node) -> CanvasRef:
        return CanvasRef(
            id=node.id,
            name=node.name,
            is_artboard=node.is_artboard,
            bounds=node.bounds,
            parent_id=node.parent.id if node.parent else None,
            children=tuple(self._snapshot(child) for child in node.children),
        )

    @staticmethod
    def _roots(nodes: list[_Node]) -> list[_Node]:
        """Drop nodes whose ancestor is also in ``nodes``."""
        ids = {n.id for n in nodes}
        roots = []
        for node in nodes:
            parent = node.parent
            while parent is not None and parent.id not in ids:
                parent = parent.parent
            if parent is None:
                roots.append(node)
        return roots

    @staticmethod
    def _translate(node: _Node, dx: float, dy: float) -> None:
        for item in node.walk():
            item.bounds = item.bounds.translated(dx, dy)

    # ------------------------------------------------------------------
    # HostDocument interface
    # ------------------------------------------------------------------

    async def list_top_level_canvases(self) -> list[CanvasRef]:
        self._record("list_top_level_canvases")
        return [self._snapshot(node) for node in self._top]

    async def get_canvas(self, canvas_id: int) -> CanvasRef | None:
        self._record("get_canvas", id=canvas_id)
        node = self._index.get(canvas_id)
        return self._snapshot(node) if node else None

    async def duplicate(self, ref: CanvasRef) -> None:
        source = self._node(ref)
        self._record("duplicate", id=ref.id, name=source.name)

        def copy(node: _Node, parent: _Node | None) -> _Node:
            clone = _Node(
                next(self._ids),
                f"{node.name} copy",
                node.bounds,
                node.is_artboard,
                parent=parent,
                guides=list(node.guides),
            )
            self._index[clone.id] = clone
            clone.children = [copy(child, clone) for child in node.children]
            return clone

        clone = copy(source, source.parent)
        siblings = source.parent.children if source.parent else self._top
        siblings.insert(siblings.index(source) + 1, clone)

        if self.select_child_after_duplicate and clone.children:
            self._selection = [clone.children[0].id]
        else:
            self._selection = [clone.id]

    async def active_selection(self) -> list[CanvasRef]:
        self._record("active_selection")
        return [self._snapshot(self._index[i]) for i in self._selection if i in self._index]

    async def resize(self, ref: CanvasRef, bounds: Bounds) -> None:
        node = self._node(ref)
        self._record("resize", id=ref.id, name=node.name, bounds=bounds)
        dx = bounds.left - node.bounds.left
        dy = bounds.top - node.bounds.top
        for child in node.children:
            self._translate(child, dx, dy)
        node.bounds = bounds

    async def rename(self, ref: CanvasRef, name: str) -> None:
        node = self._node(ref)
        self._record("rename", id=ref.id, old_name=node.name, name=name)
        node.name = name

    async def select_and_align(self, refs: list[CanvasRef], axis: Axis) -> None:
        nodes = [self._node(ref) for ref in refs]
        self._record("select_and_align", ids=[n.id for n in nodes], axis=Axis(axis).value)
        self._selection = [n.id for n in nodes]
        if not nodes:
            return

        container = nodes[0].top_level()
        roots = [n for n in self._roots(nodes) if n is not container]
        if not roots:
            return

        group_center = union_bounds(n.bounds for n in roots).center
        target_center = container.bounds.center
        if Axis(axis) == Axis.HORIZONTAL:
            dx, dy = target_center.x - group_center.x, 0.0
        else:
            dx, dy = 0.0, target_center.y - group_center.y
        for node in roots:
            self._translate(node, dx, dy)

    async def scale(self, refs: list[CanvasRef], percent: float) -> None:
        nodes = [self._node(ref) for ref in refs]
        self._record("scale", ids=[n.id for n in nodes], percent=percent)
        if percent <= 0:
            raise SimulatedHostError(f"Scale percent must be positive, got {percent}")
        self._selection = [n.id for n in nodes]
        roots = self._roots(nodes)
        if not roots:
            return

        factor = percent / 100
        origin = union_bounds(n.bounds for n in roots).center
        for root in roots:
            for item in root.walk():
                item.bounds = item.bounds.scaled_about(origin, factor)

    async def move(self, refs: list[CanvasRef], delta: Point) -> None:
        nodes = [self._node(ref) for ref in refs]
        self._record("move", ids=[n.id for n in nodes], dx=delta.x, dy=delta.y)
        self._selection = [n.id for n in nodes]
        for node in self._roots(nodes):
            self._translate(node, delta.x, delta.y)

    async def add_margin_guides(self, ref: CanvasRef, margin_px: float) -> None:
        node = self._node(ref)
        self._record("add_margin_guides", id=ref.id, margin=margin_px)
        node.guides.append(margin_px)

    async def draw_rectangle(self, bounds: Bounds, color: tuple[int, int, int]) -> None:
        self._record("draw_rectangle", bounds=bounds, color=tuple(color))
        self.shapes.append({"bounds": bounds, "color": tuple(color)})

    async def suspend_history(self, name: str) -> int:
        self._record("suspend_history", name=name)
        token = next(self._history_tokens)
        self._open_history.append((token, name))
        return token

    async def resume_history(self, token: int) -> None:
        self._record("resume_history", token=token)
        if not self._open_history or self._open_history[-1][0] != token:
            raise SimulatedHostError(f"History token {token} is not the open suspension")
        _, name = self._open_history.pop()
        self.history_log.append(name)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MemoryDocument:
        """Build a document from a ``{name, canvases: [...]}`` mapping."""
        if not isinstance(data, dict):
            raise ConfigError("Document must be a YAML dictionary")

        doc = cls(name=data.get("name", "Untitled"))

        def add_layers(parent_id: int, layers: list[dict[str, Any]], path: str) -> None:
            for i, layer in enumerate(layers or []):
                where = f"{path}.layers[{i}]"
                layer_id = doc.add_layer(parent_id, layer.get("name", ""), _parse_bounds(layer.get("bounds"), where))
                add_layers(layer_id, layer.get("layers"), where)

        for i, canvas in enumerate(data.get("canvases") or []):
            where = f"canvases[{i}]"
            canvas_id = doc.add_canvas(
                canvas.get("name", ""),
                _parse_bounds(canvas.get("bounds"), where),
                canvas.get("artboard", True),
            )
            doc._index[canvas_id].guides = list(canvas.get("guides") or [])
            add_layers(canvas_id, canvas.get("layers"), where)

        return doc

    def to_dict(self) -> dict[str, Any]:
        def bounds_dict(bounds: Bounds) -> dict[str, float]:
            return {"left": bounds.left, "top": bounds.top, "width": bounds.width, "height": bounds.height}

        def node_dict(node: _Node) -> dict[str, Any]:
            data: dict[str, Any] = {"name": node.name, "bounds": bounds_dict(node.bounds)}
            if node.parent is None:
                data["artboard"] = node.is_artboard
                if node.guides:
                    data["guides"] = list(node.guides)
            if node.children:
                data["layers"] = [node_dict(child) for child in node.children]
            return data

        data: dict[str, Any] = {"name": self._name, "canvases": [node_dict(n) for n in self._top]}
        if self.shapes:
            data["shapes"] = [
                {"bounds": bounds_dict(s["bounds"]), "color": list(s["color"])} for s in self.shapes
            ]
        return data


def load_document(path: Path) -> MemoryDocument:
    """Load a MemoryDocument from a YAML file."""
    if not path.exists():
        raise FileNotFoundError(f"Document file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    return MemoryDocument.from_dict(data)


def save_document(doc: MemoryDocument, path: Path) -> Path:
    """Write a MemoryDocument to a YAML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(doc.to_dict(), f, sort_keys=False, allow_unicode=True)
    return path
