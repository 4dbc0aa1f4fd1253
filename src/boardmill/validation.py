"""Configuration validation for boardmill.

Catches problems before the host document is touched: sizes whose
orientation has no source artboard, nonsensical layout values and, when a
document is available, sources that do not exist in it.
"""

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from boardmill.config import ContentMode, Orientation, SizeSpec, SourceConfig
from boardmill.exceptions import ConfigError, ConfigurationError
from boardmill.sources import can_generate, orientation_for

if TYPE_CHECKING:
    from boardmill.config import JobConfig

# Number of example size names listed per missing orientation
MAX_EXAMPLES = 3


@dataclass
class ValidationResult:
    """Result of configuration validation.

    Attributes:
        valid: True if no errors were found
        errors: List of error messages (fatal issues)
        warnings: List of warning messages (non-fatal issues)
    """

    valid: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        """Add an error and mark result as invalid."""
        self.errors.append(message)
        self.valid = False

    def add_warning(self, message: str) -> None:
        """Add a warning (does not affect validity)."""
        self.warnings.append(message)

    def merge(self, other: "ValidationResult") -> None:
        """Merge another validation result into this one."""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        if not other.valid:
            self.valid = False


@dataclass
class ValidationContext:
    """Document information for checking that sources exist."""

    canvas_names: list[str] | None = None
    """Names (and ids, as strings) of top-level canvases in the document."""


def missing_sources(
    sizes: Iterable[SizeSpec],
    source_config: SourceConfig,
) -> dict[Orientation, list[SizeSpec]]:
    """Group the sizes that cannot be generated by their orientation."""
    missing: dict[Orientation, list[SizeSpec]] = {}
    for size in sizes:
        if not can_generate(size, source_config):
            missing.setdefault(orientation_for(size), []).append(size)
    return missing


def missing_source_message(orientation: Orientation, sizes: list[SizeSpec]) -> str:
    examples = ", ".join(s.label for s in sizes[:MAX_EXAMPLES])
    return f"Missing {orientation.value} source needed for {len(sizes)} size(s) (e.g., {examples})"


def check_sources(sizes: Iterable[SizeSpec], source_config: SourceConfig) -> None:
    """
    Ensure every size's orientation has a source artboard.

    Raises:
        ConfigurationError: Listing each missing orientation with its size
            count and example names
    """
    missing = missing_sources(sizes, source_config)
    if not missing:
        return
    messages = [missing_source_message(o, s) for o, s in missing.items()]
    raise ConfigurationError(
        "; ".join(messages),
        context={"missing": ", ".join(o.value for o in missing)},
    )


class ConfigValidator:
    """Job configuration validator.

    Example:
        validator = ConfigValidator()
        result = validator.validate(config)
        if not result.valid:
            for error in result.errors:
                print(f"Error: {error}")
    """

    def validate(
        self,
        config: "JobConfig",
        context: ValidationContext | None = None,
    ) -> ValidationResult:
        """Validate a job configuration.

        Args:
            config: Configuration to validate
            context: Optional document information for source checks

        Returns:
            ValidationResult with errors and warnings
        """
        result = ValidationResult()
        result.merge(self._validate_sizes(config))
        result.merge(self._validate_sources(config))
        result.merge(self._validate_options(config))
        if context:
            result.merge(self._validate_document(config, context))
        return result

    def validate_or_raise(
        self,
        config: "JobConfig",
        context: ValidationContext | None = None,
    ) -> None:
        """Validate configuration and raise ConfigError if invalid.

        Raises:
            ConfigError: If validation fails
        """
        result = self.validate(config, context)
        if not result.valid:
            error_text = "; ".join(result.errors)
            raise ConfigError(f"Configuration validation failed: {error_text}")

    def _validate_sizes(self, config: "JobConfig") -> ValidationResult:
        result = ValidationResult()

        if not config.sizes:
            result.add_warning("No sizes requested")

        counts = Counter(size.name for size in config.sizes if size.name)
        for name, count in counts.items():
            if count > 1:
                result.add_warning(f"Size name '{name}' is used {count} times")

        for size in config.sizes:
            if size.requires_bleed and size.bleed <= 0:
                result.add_warning(f"Size '{size.label}': requires bleed but bleed is 0")

        return result

    def _validate_sources(self, config: "JobConfig") -> ValidationResult:
        result = ValidationResult()
        missing = missing_sources(config.sizes, config.sources)

        for orientation, sizes in missing.items():
            message = missing_source_message(orientation, sizes)
            if config.options.skip_unconfigured:
                result.add_warning(f"{message}; these sizes will be skipped")
            else:
                result.add_error(message)

        if config.options.content_mode == ContentMode.GROUP:
            for orientation, entry in config.sources.configured().items():
                if entry.layers:
                    result.add_warning(
                        f"Source '{orientation.value}': layer roles are ignored "
                        f"in '{ContentMode.GROUP.value}' content mode"
                    )

        return result

    def _validate_options(self, config: "JobConfig") -> ValidationResult:
        result = ValidationResult()
        options = config.options

        if options.gap < 0:
            result.add_error(f"Layout gap must be non-negative, got {options.gap}")
        if options.max_row_width <= 0:
            result.add_error(f"Layout max_row_width must be positive, got {options.max_row_width}")
        if options.resolution <= 0:
            result.add_error(f"Resolution must be positive, got {options.resolution}")

        settings = options.print
        if settings.crop_mark_length < 0:
            result.add_error("Crop mark length must be non-negative")
        if settings.crop_mark_weight <= 0:
            result.add_error("Crop mark weight must be positive")
        if settings.crop_mark_offset < 0:
            result.add_error("Crop mark offset must be non-negative")
        if any(not 0 <= c <= 255 for c in settings.crop_mark_color):
            result.add_error(f"Crop mark color components must be 0-255, got {settings.crop_mark_color}")

        return result

    def _validate_document(self, config: "JobConfig", context: ValidationContext) -> ValidationResult:
        result = ValidationResult()
        if context.canvas_names is None:
            return result

        for orientation, entry in config.sources.configured().items():
            if entry.artboard not in context.canvas_names:
                result.add_warning(
                    f"Source artboard '{entry.artboard}' for {orientation.value} "
                    f"not found in document"
                )
        return result


def validate_config(
    config: "JobConfig",
    context: ValidationContext | None = None,
) -> ValidationResult:
    """Validate a configuration.

    Convenience function that creates a ConfigValidator and validates.
    """
    validator = ConfigValidator()
    return validator.validate(config, context)
