"""Exception hierarchy for tagless.

This module defines all custom exceptions used throughout the package.
All exceptions inherit from TaglessError for easy catching of any tagless-specific error.
"""

from __future__ import annotations

from typing import Iterable, Optional


class TaglessError(Exception):
    """Base exception for all tagless errors.

    Errors raised while walking a nested value collect a breadcrumb path
    (struct fields, map entries, sequence positions) as they propagate out,
    so the final message points at the offending element.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        self.path: list[str] = []

    def add_path(self, segment: str) -> None:
        """Prepend a path segment as the error unwinds through a composite."""
        self.path.insert(0, segment)

    def location(self) -> str:
        """Return the breadcrumb path in dotted form (empty at top level)."""
        out = ""
        for segment in self.path:
            if segment.startswith("["):
                out += segment
            else:
                out += f".{segment}" if out else segment
        return out

    def __str__(self) -> str:
        where = self.location()
        if where:
            return f"{self.message} (at {where})"
        return self.message


class SchemaError(TaglessError):
    """Raised when a type cannot be mapped onto the data model.

    Examples:
        - Unsupported annotation (e.g. ``Any`` or ``set[int]``)
        - Invalid width for a fixed-size integer or float
        - Optional slot whose inner shape is indistinguishable from None
    """

    pass


class EncodeError(TaglessError):
    """Raised when encoding a value fails.

    Examples:
        - Value does not match its declared shape
        - Integer out of range for its fixed width
        - Tuple arity mismatch
    """

    pass


class SinkExhausted(EncodeError):
    """Raised when the byte sink would grow past its configured limit."""

    def __init__(self, limit: int, requested: int) -> None:
        super().__init__(
            f"Encoded output ({requested} bytes) exceeds the sink limit of {limit} bytes"
        )
        self.limit = limit
        self.requested = requested


class DecodeError(TaglessError):
    """Raised when decoding binary data fails.

    Every decode error aborts the whole call; there is no partial value.
    """

    def __init__(self, message: str, position: Optional[int] = None) -> None:
        if position is not None:
            message = f"{message} at byte {position}"
        super().__init__(message)
        self.position = position


class UnexpectedEndOfInput(DecodeError):
    """Raised when fewer bytes remain than a primitive or delimiter requires."""

    def __init__(self, needed: int, available: int, position: int) -> None:
        super().__init__(
            f"Unexpected end of input: need {needed} bytes, have {available}", position
        )
        self.needed = needed
        self.available = available


class MalformedDelimiter(DecodeError):
    """Raised when a required delimiter is missing or has an unexpected value."""

    def __init__(self, expected: Iterable[int], found: int, position: int) -> None:
        self.expected = tuple(expected)
        self.found = found
        names = " or ".join(_delimiter_name(value) for value in self.expected)
        super().__init__(f"Expected delimiter {names}, found 0x{found:02X}", position)


class UnterminatedSpan(DecodeError):
    """Raised when a string or byte span is opened but never closed."""

    def __init__(self, kind: str, position: int) -> None:
        super().__init__(f"Unterminated {kind} span opened", position)
        self.kind = kind


class UnknownVariantIndex(DecodeError):
    """Raised when an enum index is outside the declared variant count."""

    def __init__(self, index: int, variant_count: int, name: str, position: int) -> None:
        super().__init__(
            f"Unknown variant index {index} for {name} (only {variant_count} variants)", position
        )
        self.index = index
        self.variant_count = variant_count


class InvalidValue(DecodeError):
    """Raised when well-framed bytes do not form a valid value.

    Examples:
        - bool byte other than 0x00/0x01
        - Invalid UTF-8 inside a string span
        - Code point outside the Unicode scalar range for a char
        - Unknown or duplicated struct field name
        - Caller's constructor rejects the decoded parts
    """

    pass


class TrailingData(DecodeError):
    """Raised when bytes remain after a complete top-level value."""

    def __init__(self, remaining: int, position: int) -> None:
        super().__init__(f"{remaining} trailing bytes after value", position)
        self.remaining = remaining


class NestingTooDeep(DecodeError):
    """Raised when composite nesting exceeds the configured maximum depth."""

    def __init__(self, max_depth: int, position: int) -> None:
        super().__init__(f"Nesting deeper than {max_depth} levels", position)
        self.max_depth = max_depth


def _delimiter_name(value: int) -> str:
    # Imported lazily: the delimiter table lives in the codec package.
    from .codec.delimiters import Delimiter

    try:
        return Delimiter(value).name
    except ValueError:
        return f"0x{value:02X}"
