"""Delimiter table for the tagless wire format.

Every structural role in the byte stream is marked by one sentinel byte. All
sentinels are taken from 0xF5-0xFF, the range of byte values that can never
appear in well-formed UTF-8, so a string span is closed by the first STRING
byte after its opening delimiter without any escaping.

Changing any value here breaks every previously encoded payload.
"""

from __future__ import annotations

import enum


class Delimiter(enum.IntEnum):
    """Sentinel byte for each structural role.

    Separators lead the item they introduce: a sequence is
    ``SEQ_START (SEQ_VALUE element)* SEQ_END`` and a map is
    ``MAP_START (MAP_KEY key MAP_VALUE value)* MAP_END``, with MAP_KEY before
    each key and MAP_VALUE before each value.
    """

    UNIT = 0xF5
    STRING = 0xF6
    BYTES = 0xF7
    BYTES_ESCAPE = 0xF8
    SEQ_START = 0xF9
    SEQ_VALUE = 0xFA
    SEQ_END = 0xFB
    MAP_START = 0xFC
    MAP_KEY = 0xFD
    MAP_VALUE = 0xFE
    MAP_END = 0xFF


# Bytes inside a BYTES span that must be prefixed with BYTES_ESCAPE.
ESCAPED_IN_BYTES = frozenset({Delimiter.BYTES, Delimiter.BYTES_ESCAPE})

# Variant indices are written as little-endian u32.
VARIANT_INDEX_WIDTH = 4
