"""Byte-level sink and cursor used by the encoder and decoder.

This module provides the low-level buffer handling for the tagless format.
All multi-byte primitives are little-endian.
"""

from __future__ import annotations

import struct
from typing import Optional

from ..exceptions import (
    MalformedDelimiter,
    SinkExhausted,
    UnexpectedEndOfInput,
    UnterminatedSpan,
)
from .delimiters import ESCAPED_IN_BYTES, Delimiter

_FLOAT_FORMATS = {4: "<f", 8: "<d"}


class ByteSink:
    """Append-only output buffer.

    Primitive values and delimiters are appended in emission order. An optional
    ``max_size`` turns oversized output into a SinkExhausted error.

    Example:
        >>> sink = ByteSink()
        >>> sink.write_delimiter(Delimiter.SEQ_START)
        >>> sink.write_uint(42, 2)
        >>> sink.to_bytes()
        b'\\xf9*\\x00'
    """

    def __init__(self, max_size: Optional[int] = None) -> None:
        """Initialize an empty sink.

        Args:
            max_size: Maximum number of bytes the sink may hold (None for unlimited)
        """
        self._buffer = bytearray()
        self._max_size = max_size

    def _reserve(self, count: int) -> None:
        if self._max_size is not None and len(self._buffer) + count > self._max_size:
            raise SinkExhausted(self._max_size, len(self._buffer) + count)

    def write_byte(self, value: int) -> None:
        """Write a single raw byte."""
        self._reserve(1)
        self._buffer.append(value)

    def write_bytes(self, data: bytes) -> None:
        """Write raw bytes with no framing."""
        self._reserve(len(data))
        self._buffer.extend(data)

    def write_delimiter(self, delimiter: Delimiter) -> None:
        """Write a delimiter byte."""
        self.write_byte(int(delimiter))

    def write_uint(self, value: int, width: int) -> None:
        """Write an unsigned integer using ``width`` bytes.

        Raises:
            ValueError: If value is negative or doesn't fit in width bytes
        """
        if value < 0:
            raise ValueError(f"write_uint requires non-negative value, got {value}")
        max_value = (1 << (width * 8)) - 1
        if value > max_value:
            raise ValueError(f"Value {value} requires more than {width} bytes (max: {max_value})")
        self.write_bytes(value.to_bytes(width, "little"))

    def write_int(self, value: int, width: int) -> None:
        """Write a signed integer in two's complement using ``width`` bytes.

        Raises:
            ValueError: If value doesn't fit in width bytes
        """
        min_value = -(1 << (width * 8 - 1))
        max_value = (1 << (width * 8 - 1)) - 1
        if value < min_value or value > max_value:
            raise ValueError(
                f"Value {value} doesn't fit in {width} bytes (range: {min_value} to {max_value})"
            )
        self.write_bytes(value.to_bytes(width, "little", signed=True))

    def write_float(self, value: float, width: int) -> None:
        """Write an IEEE-754 float of 4 or 8 bytes.

        Raises:
            ValueError: If the width is unsupported or the value overflows it
        """
        try:
            packed = struct.pack(_FLOAT_FORMATS[width], value)
        except KeyError as err:
            raise ValueError(f"Float width must be 4 or 8 bytes, got {width}") from err
        except OverflowError as err:
            raise ValueError(f"Value {value} is out of range for a {width * 8}-bit float") from err
        self.write_bytes(packed)

    def write_escaped(self, data: bytes) -> None:
        """Write byte-blob content, escaping bytes that collide with its delimiter."""
        for byte in data:
            if byte in ESCAPED_IN_BYTES:
                self.write_delimiter(Delimiter.BYTES_ESCAPE)
            self.write_byte(byte)

    def __len__(self) -> int:
        return len(self._buffer)

    def to_bytes(self) -> bytes:
        """Return everything written so far."""
        return bytes(self._buffer)


class ByteCursor:
    """Position-tracking reader over an immutable byte buffer.

    Reads consume fixed-size or delimiter-terminated spans in the same order
    they were written. Running out of input raises UnexpectedEndOfInput.

    Example:
        >>> cursor = ByteCursor(b'\\xf9*\\x00')
        >>> cursor.expect(Delimiter.SEQ_START)
        >>> cursor.read_uint(2)
        42
    """

    def __init__(self, data: bytes) -> None:
        """Initialize a cursor at the start of ``data``."""
        self._data = bytes(data)
        self._position = 0

    def _require(self, count: int) -> None:
        available = len(self._data) - self._position
        if count > available:
            raise UnexpectedEndOfInput(count, available, self._position)

    def peek_byte(self) -> int:
        """Return the next byte without consuming it."""
        self._require(1)
        return self._data[self._position]

    def read_byte(self) -> int:
        """Consume and return the next byte."""
        value = self.peek_byte()
        self._position += 1
        return value

    def read_bytes(self, count: int) -> bytes:
        """Consume exactly ``count`` bytes."""
        self._require(count)
        start = self._position
        self._position += count
        return self._data[start : self._position]

    def read_uint(self, width: int) -> int:
        """Read an unsigned little-endian integer of ``width`` bytes."""
        return int.from_bytes(self.read_bytes(width), "little")

    def read_int(self, width: int) -> int:
        """Read a signed little-endian integer of ``width`` bytes."""
        return int.from_bytes(self.read_bytes(width), "little", signed=True)

    def read_float(self, width: int) -> float:
        """Read an IEEE-754 float of 4 or 8 bytes."""
        fmt = _FLOAT_FORMATS.get(width)
        if fmt is None:
            raise ValueError(f"Float width must be 4 or 8 bytes, got {width}")
        value: float = struct.unpack(fmt, self.read_bytes(width))[0]
        return value

    def expect(self, delimiter: Delimiter) -> None:
        """Consume one byte that must equal ``delimiter``.

        Raises:
            UnexpectedEndOfInput: If the input is exhausted
            MalformedDelimiter: If a different byte is present
        """
        found = self.peek_byte()
        if found != delimiter:
            raise MalformedDelimiter((delimiter,), found, self._position)
        self._position += 1

    def read_marker(self, *choices: Delimiter) -> Delimiter:
        """Consume one delimiter byte that must be one of ``choices``."""
        found = self.peek_byte()
        for choice in choices:
            if found == choice:
                self._position += 1
                return choice
        raise MalformedDelimiter(choices, found, self._position)

    def at(self, delimiter: Delimiter) -> bool:
        """Return True if the next byte is ``delimiter`` (without consuming it)."""
        return self.peek_byte() == delimiter

    def read_span(self, delimiter: Delimiter, kind: str) -> bytes:
        """Read a ``delimiter content delimiter`` span and return the content.

        The content must not contain the delimiter byte.
        """
        opened_at = self._position
        self.expect(delimiter)
        end = self._data.find(delimiter, self._position)
        if end < 0:
            raise UnterminatedSpan(kind, opened_at)
        content = self._data[self._position : end]
        self._position = end + 1
        return content

    def read_escaped_span(self) -> bytes:
        """Read a BYTES span, undoing BYTES_ESCAPE prefixes."""
        opened_at = self._position
        self.expect(Delimiter.BYTES)
        data = self._data
        out = bytearray()
        pos = self._position
        while True:
            end = data.find(Delimiter.BYTES, pos)
            escape = data.find(Delimiter.BYTES_ESCAPE, pos, end if end >= 0 else len(data))
            if escape >= 0:
                out += data[pos:escape]
                if escape + 1 >= len(data):
                    raise UnterminatedSpan("bytes", opened_at)
                escaped = data[escape + 1]
                if escaped not in ESCAPED_IN_BYTES:
                    raise MalformedDelimiter(sorted(ESCAPED_IN_BYTES), escaped, escape + 1)
                out.append(escaped)
                pos = escape + 2
                continue
            if end < 0:
                raise UnterminatedSpan("bytes", opened_at)
            out += data[pos:end]
            self._position = end + 1
            return bytes(out)

    def remaining(self) -> int:
        """Return the number of unread bytes."""
        return len(self._data) - self._position

    def position(self) -> int:
        """Return the current read position in bytes."""
        return self._position
