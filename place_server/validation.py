"""
Cross-cutting validation logic for the place canvas server.

This module provides the caller-error taxonomy and validation functions for
rules that span multiple components. Type-local invariants should remain in
their respective dataclass __post_init__ methods.

Cross-cutting rules validated here:
- Bit depth support
- Seed range fits the bit depth
- Reset mode and store key presence
"""

from typing import List, Optional, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from .config import CanvasConfig


MAX_BIT_DEPTH = 32


class ValidationError(ValueError):
    """Base exception for validation errors.

    Carries every violated constraint in ``errors`` so callers can report
    all of them at once instead of stopping at the first.
    """

    def __init__(self, message: str = "", errors: Optional[Sequence[str]] = None):
        self.errors: List[str] = list(errors) if errors else ([message] if message else [])
        super().__init__(message or "; ".join(self.errors))


class OutOfBoundsError(ValidationError):
    """Raised when a coordinate lies outside the canvas."""
    pass


class InvalidValueError(ValidationError):
    """Raised when a pixel value does not fit in the canvas bit depth."""
    pass


class ConfigValidationError(ValidationError):
    """Raised when canvas configuration is invalid."""
    pass


def validate_bit_depth(bit_depth: int) -> None:
    """
    Validate that a field width is supported.

    Args:
        bit_depth: Width of one field in bits

    Raises:
        ConfigValidationError: If the width is outside 1..MAX_BIT_DEPTH
    """
    if not (1 <= bit_depth <= MAX_BIT_DEPTH):
        raise ConfigValidationError(
            f"bit_depth must be between 1 and {MAX_BIT_DEPTH}, got {bit_depth}"
        )


def validate_seed_range(seed_min: int, seed_max: int, bit_depth: int) -> None:
    """
    Validate that the reset seed range is encodable.

    Cross-cutting rule: seed values must be valid pixel values.

    Args:
        seed_min: Smallest seeded value (inclusive)
        seed_max: Largest seeded value (inclusive)
        bit_depth: Width of one field in bits

    Raises:
        ConfigValidationError: If the range is empty or exceeds the bit depth
    """
    limit = (1 << bit_depth) - 1
    if seed_min < 0 or seed_max > limit:
        raise ConfigValidationError(
            f"Seed range [{seed_min}, {seed_max}] outside 0..{limit} "
            f"for {bit_depth}-bit fields"
        )
    if seed_min > seed_max:
        raise ConfigValidationError(
            f"Seed range is empty: seed_min={seed_min} > seed_max={seed_max}"
        )


def validate_canvas_config(config: "CanvasConfig") -> None:
    """
    Validate cross-cutting rules for a complete canvas configuration.

    Args:
        config: Canvas configuration to validate

    Raises:
        ValidationError: If any cross-cutting validation rules fail
    """
    validate_bit_depth(config.bit_depth)
    validate_seed_range(config.reset.seed_min, config.seed_max, config.bit_depth)

    if not config.key:
        raise ConfigValidationError("Canvas key must not be empty")

    if config.reset.mode not in {"fields", "bulk"}:
        raise ConfigValidationError(
            f"Unknown reset mode '{config.reset.mode}', expected 'fields' or 'bulk'"
        )
