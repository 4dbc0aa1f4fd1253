"""Host document abstraction the generation engine drives."""

from boardmill.host.base import Axis, CanvasRef, HostDocument
from boardmill.host.factory import get_host
from boardmill.host.memory import MemoryDocument, SimulatedHostError, load_document, save_document

__all__ = [
    "Axis",
    "CanvasRef",
    "HostDocument",
    "MemoryDocument",
    "SimulatedHostError",
    "get_host",
    "load_document",
    "save_document",
]
