"""Unified exception hierarchy for boardmill.

All boardmill exceptions inherit from BoardMillError, enabling:
- Catching all boardmill errors with `except BoardMillError`
- Error context preservation via the `context` attribute
- Causality chains via `raise ... from e` patterns
"""

from typing import Any


class BoardMillError(Exception):
    """Base exception for all boardmill errors.

    Args:
        message: Human-readable error description
        context: Optional dict of contextual information (size, phase, etc.)
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        base = super().__str__()
        if self.context:
            details = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{base} [{details}]"
        return base


class ConfigError(BoardMillError):
    """Raised when configuration is invalid or cannot be loaded."""


class ConfigurationError(ConfigError):
    """Raised when a needed orientation has no source artboard configured.

    This is batch-wide and is raised before the host document is touched.
    """


class SourceNotFoundError(BoardMillError):
    """Raised when a configured source no longer resolves in the document."""


class HostOperationError(BoardMillError):
    """Raised when a host document call rejects.

    The `phase` attribute names the generation phase that was running.
    """

    def __init__(
        self,
        message: str,
        phase: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        context = dict(context or {})
        if phase is not None:
            context.setdefault("phase", phase)
        super().__init__(message, context)
        self.phase = phase


class LayoutError(BoardMillError):
    """Raised when the layout packer would place overlapping canvases."""
