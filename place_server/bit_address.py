"""
Pure Bit Addressing Logic

Maps canvas coordinates to field slots inside the packed buffer. Fields are
laid out row-major and zero-based: slot = y * width + x, and the field's first
bit sits at slot * bit_depth.
"""

from typing import List

from .validation import OutOfBoundsError


def coordinate_violations(x: int, y: int, width: int, height: int) -> List[str]:
    """
    Describe every coordinate constraint (x, y) that is violated.

    Args:
        x, y: Coordinate to check
        width, height: Canvas dimensions

    Returns:
        List[str]: One message per violated constraint, empty if the
        coordinate is on the canvas.
    """
    errors: List[str] = []
    if not (0 <= x < width):
        errors.append(f"x must be between 0 and {width - 1}, got {x}")
    if not (0 <= y < height):
        errors.append(f"y must be between 0 and {height - 1}, got {y}")
    return errors


def field_offset(x: int, y: int, width: int, height: int) -> int:
    """
    Compute the field slot index for a coordinate.

    Args:
        x, y: Coordinate on the canvas
        width, height: Canvas dimensions

    Returns:
        int: Slot index counted in fields, not bits

    Raises:
        OutOfBoundsError: If x or y falls outside the canvas
    """
    errors = coordinate_violations(x, y, width, height)
    if errors:
        raise OutOfBoundsError(errors=errors)
    return y * width + x


def bit_position(slot: int, bit_depth: int) -> int:
    """Physical bit position of the first bit of a field slot."""
    return slot * bit_depth
