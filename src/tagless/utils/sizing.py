"""Message size calculation utilities.

This module provides functions to measure encoded sizes. Strings, byte
blobs and collections make the size depend on the value, so exact sizes
need a value; ``min_encoded_size`` gives the lower bound for a shape alone.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel

from ..codec.buffer import ByteSink
from ..codec.delimiters import VARIANT_INDEX_WIDTH
from ..codec.encoder import Encoder
from ..codec.schema import resolve_shape, shape_of_value
from ..codec.shapes import (
    STRING,
    BytesShape,
    DeferredShape,
    EnumShape,
    MapShape,
    NewtypeShape,
    OptionShape,
    Primitive,
    SeqShape,
    Shape,
    StringShape,
    StructShape,
    TupleShape,
    TupleStructShape,
    UnitShape,
    UnitStructShape,
)
from ..exceptions import SchemaError


def encoded_size(value: Any, shape: Any = None) -> int:
    """Calculate the encoded size of a value in bytes.

    No size limit applies, so this also measures messages that are too large
    for their ``tagless_max_bytes``.

    Args:
        value: Value to measure
        shape: Optional Shape or type annotation (derived from the value if omitted)

    Returns:
        Size in bytes

    Raises:
        SchemaError: If no shape can be derived for the value
        EncodeError: If the value doesn't match its shape

    Example:
        >>> class Human(BaseMessage):
        ...     name: str
        ...     age: UInt8
        >>> encoded_size(Human(name="Ayush", age=19))
        25
    """
    resolved = shape_of_value(value) if shape is None else resolve_shape(shape)
    sink = ByteSink()
    Encoder(sink).encode_value(value, resolved)
    return len(sink)


def field_sizes(message: BaseModel) -> dict[str, int]:
    """Get the encoded size in bytes of each field entry of a message.

    Each entry counts its key and value delimiters, the field-name string and
    the value. The struct's own start and end delimiters add two more bytes.

    Args:
        message: Message instance to analyze

    Returns:
        Dictionary mapping field names to their entry size in bytes

    Raises:
        SchemaError: If the message type doesn't map to a struct

    Example:
        >>> field_sizes(Human(name="Ayush", age=19))
        {'name': 15, 'age': 8}
    """
    shape = shape_of_value(message)
    if not isinstance(shape, StructShape):
        raise SchemaError(f"{type(message).__name__} does not encode as a struct")

    sizes: dict[str, int] = {}
    for name, field_shape in shape.fields:
        sink = ByteSink()
        Encoder(sink).encode_entry(name, STRING, getattr(message, name), field_shape)
        sizes[name] = len(sink)
    return sizes


def min_encoded_size(shape: Any, _active: Optional[set[int]] = None) -> int:
    """Calculate the smallest possible encoding of a shape in bytes.

    Empty strings, empty collections, absent options and the cheapest enum
    variant are assumed.

    Args:
        shape: Shape, model class or type annotation

    Returns:
        Lower bound on the encoded size in bytes

    Example:
        >>> min_encoded_size(Human)
        20
        >>> min_encoded_size(list[UInt8])
        2
    """
    shape = resolve_shape(shape)
    active = set() if _active is None else _active
    if isinstance(shape, DeferredShape):
        shape = shape.resolve()

    if isinstance(shape, Primitive):
        return shape.width
    if isinstance(shape, (StringShape, BytesShape, SeqShape, MapShape)):
        return 2
    if isinstance(shape, (UnitShape, OptionShape, UnitStructShape)):
        return 1
    if isinstance(shape, NewtypeShape):
        return min_encoded_size(shape.inner, active)

    # Recursive shapes contribute nothing on re-entry.
    if id(shape) in active:
        return 0
    active.add(id(shape))
    try:
        if isinstance(shape, (TupleShape, TupleStructShape)):
            return 2 + sum(1 + min_encoded_size(item, active) for item in shape.elements)
        if isinstance(shape, StructShape):
            return 2 + sum(
                4 + len(name.encode("utf-8")) + min_encoded_size(item, active)
                for name, item in shape.fields
            )
        if isinstance(shape, EnumShape):
            payloads = [
                0 if variant.payload is None else min_encoded_size(variant.payload, active)
                for variant in shape.variants
            ]
            return VARIANT_INDEX_WIDTH + min(payloads, default=0)
    finally:
        active.discard(id(shape))

    raise SchemaError(f"Unknown shape {shape!r}")
