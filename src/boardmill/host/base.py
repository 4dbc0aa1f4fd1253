"""Abstract base class for host documents."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from boardmill.geometry import Bounds, Point


class Axis(str, Enum):
    """Alignment axis: horizontal centers or vertical centers."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


@dataclass(frozen=True)
class CanvasRef:
    """Snapshot of a canvas or layer as reported by the host.

    Snapshots go stale as soon as the document changes; fetch a fresh one
    with ``HostDocument.get_canvas`` after any write.
    """

    id: int
    name: str
    is_artboard: bool
    bounds: Bounds
    parent_id: int | None = None
    children: tuple["CanvasRef", ...] = field(default_factory=tuple)

    @property
    def is_top_level(self) -> bool:
        return self.parent_id is None


class HostDocument(ABC):
    """Abstract base class for host documents.

    The engine drives a live document exclusively through this interface.
    Every method is a coroutine and may raise; the pipeline turns any
    exception into a HostOperationError for the size being generated.

    Example:
        host = get_host("memory", path=Path("document.yaml"))
        canvases = await host.list_top_level_canvases()
        await host.duplicate(canvases[0])
        duplicate = (await host.active_selection())[0]
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Document name."""

    @abstractmethod
    async def list_top_level_canvases(self) -> list[CanvasRef]:
        """List top-level canvases with their bounds and contents."""

    @abstractmethod
    async def get_canvas(self, canvas_id: int) -> CanvasRef | None:
        """Fresh snapshot of any canvas or layer, or None if it is gone."""

    @abstractmethod
    async def duplicate(self, ref: CanvasRef) -> None:
        """Duplicate a canvas with all its contents.

        Afterwards ``active_selection`` reports the duplicate (or one of its
        children).
        """

    @abstractmethod
    async def active_selection(self) -> list[CanvasRef]:
        """Currently selected canvases or layers."""

    @abstractmethod
    async def resize(self, ref: CanvasRef, bounds: Bounds) -> None:
        """Set a canvas's bounds. Contents move with the canvas origin."""

    @abstractmethod
    async def rename(self, ref: CanvasRef, name: str) -> None:
        """Rename a canvas or layer."""

    @abstractmethod
    async def select_and_align(self, refs: list[CanvasRef], axis: Axis) -> None:
        """Select ``refs`` together and center them on their canvas along ``axis``."""

    @abstractmethod
    async def scale(self, refs: list[CanvasRef], percent: float) -> None:
        """Scale ``refs`` uniformly about the center of their combined bounds."""

    @abstractmethod
    async def move(self, refs: list[CanvasRef], delta: Point) -> None:
        """Translate ``refs`` by ``delta``."""

    @abstractmethod
    async def add_margin_guides(self, ref: CanvasRef, margin_px: float) -> None:
        """Add guides inset ``margin_px`` from each edge of a canvas."""

    @abstractmethod
    async def draw_rectangle(self, bounds: Bounds, color: tuple[int, int, int]) -> None:
        """Draw a filled rectangle (used for crop marks)."""

    @abstractmethod
    async def suspend_history(self, name: str) -> Any:
        """Start collapsing changes into one undo step; returns a token."""

    @abstractmethod
    async def resume_history(self, token: Any) -> None:
        """Close the undo step opened by ``suspend_history``."""
