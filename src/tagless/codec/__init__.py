"""Tagless binary codec.

This module provides encoding and decoding between data-model values and
the delimiter-framed tagless byte format.
"""

from __future__ import annotations

from .buffer import ByteCursor, ByteSink
from .decoder import Decoder, decode
from .delimiters import Delimiter
from .encoder import Encoder, encode
from .schema import FieldSchema, MessageSchema, shape_for

__all__ = [
    "encode",
    "decode",
    "Encoder",
    "Decoder",
    "ByteSink",
    "ByteCursor",
    "Delimiter",
    "MessageSchema",
    "FieldSchema",
    "shape_for",
]
