"""Pydantic message modeling for tagless.

This module provides the BaseMessage class and field utilities for declaring
messages whose fields map onto fixed-width primitives.
"""

from __future__ import annotations

from .base import BaseMessage
from .fields import (
    BoundedInt,
    Char,
    CharField,
    FixedFloat,
    FixedInt,
    Float32,
    Float64,
    Int8,
    Int16,
    Int32,
    Int64,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
)

__all__ = [
    "BaseMessage",
    # Field helpers
    "BoundedInt",
    "FixedInt",
    "FixedFloat",
    "CharField",
    # Fixed-width aliases
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "Float32",
    "Float64",
    "Char",
]
