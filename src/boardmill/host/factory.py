"""Factory functions for host document selection."""

from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from boardmill.host.base import HostDocument


def get_host(name: str, path: Path | None = None, **kwargs: Any) -> "HostDocument":
    """Get a host document implementation by name.

    Args:
        name: Host name ('memory')
        path: Document file to load, if the host reads one
        **kwargs: Passed to the host constructor when no path is given

    Returns:
        HostDocument instance

    Raises:
        ValueError: If host name is not recognized
    """
    hosts = {
        "memory": lambda: _get_memory(path, **kwargs),
    }

    if name not in hosts:
        available = ", ".join(sorted(hosts.keys()))
        raise ValueError(f"Unknown host: '{name}'. Available: {available}")

    return hosts[name]()


def _get_memory(path: Path | None, **kwargs: Any) -> "HostDocument":
    from boardmill.host.memory import MemoryDocument, load_document

    if path is not None:
        return load_document(path)
    return MemoryDocument(**kwargs)
