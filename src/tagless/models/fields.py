"""Field type helpers and utilities.

This module provides convenience functions and type aliases for declaring
fixed-width fields on tagless messages. Each helper is a thin wrapper around
Pydantic's Field(), so the same metadata drives both validation and the
encoded width.
"""

from __future__ import annotations

from typing import Annotated, Any, cast

from pydantic import Field
from pydantic.fields import FieldInfo

_INT_WIDTHS = (8, 16, 32, 64)
_FLOAT_WIDTHS = (32, 64)


def BoundedInt(*, ge: int | None = None, le: int | None = None, **kwargs: Any) -> FieldInfo:
    """Create a bounded integer field.

    The field is encoded with the narrowest fixed width that holds every
    value in ``[ge, le]``: unsigned when ``ge >= 0``, signed otherwise.

    Args:
        ge: Minimum value (inclusive)
        le: Maximum value (inclusive)
        **kwargs: Additional Field() arguments (description, default, etc.)

    Returns:
        Pydantic FieldInfo suitable for use as a field default/metadata.

    Example:
        >>> class Message(BaseMessage):
        ...     vehicle_id: Annotated[int, BoundedInt(ge=0, le=255)]      # u8
        ...     depth_cm: Annotated[int, BoundedInt(ge=0, le=10000)]      # u16
        ...     offset: Annotated[int, BoundedInt(ge=-1000, le=1000)]     # i16
    """
    return cast(FieldInfo, Field(ge=ge, le=le, **kwargs))


def FixedInt(*, bits: int, signed: bool = False, **kwargs: Any) -> FieldInfo:
    """Create a fixed-size integer field.

    Besides recording the width, the full range of the width is applied as
    ``ge``/``le`` so out-of-range values are rejected at validation time.

    Args:
        bits: Number of bits (8, 16, 32 or 64)
        signed: Whether the integer is signed (default False)
        **kwargs: Additional Field() arguments

    Returns:
        Pydantic FieldInfo suitable for use as a field default/metadata.

    Raises:
        ValueError: If bits is not a supported width

    Example:
        >>> class Message(BaseMessage):
        ...     temperature: Annotated[int, FixedInt(bits=16, signed=True)]
    """
    if bits not in _INT_WIDTHS:
        raise ValueError(f"bits must be one of {_INT_WIDTHS}, got {bits}")

    if signed:
        ge, le = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    else:
        ge, le = 0, (1 << bits) - 1

    return cast(
        FieldInfo,
        Field(ge=ge, le=le, json_schema_extra={"bits": bits, "signed": signed}, **kwargs),
    )


def FixedFloat(*, bits: int = 64, **kwargs: Any) -> FieldInfo:
    """Create an IEEE-754 float field of 32 or 64 bits.

    Args:
        bits: 32 for single precision, 64 for double precision (default)
        **kwargs: Additional Field() arguments

    Returns:
        Pydantic FieldInfo suitable for use as a field default/metadata.

    Example:
        >>> class Message(BaseMessage):
        ...     heading: Annotated[float, FixedFloat(bits=32)]

    Note:
        A 32-bit field rounds the value to single precision when encoded.
    """
    if bits not in _FLOAT_WIDTHS:
        raise ValueError(f"bits must be one of {_FLOAT_WIDTHS}, got {bits}")

    return cast(FieldInfo, Field(json_schema_extra={"bits": bits}, **kwargs))


def CharField(**kwargs: Any) -> FieldInfo:
    """Create a single-character field, encoded as its code point in 4 bytes.

    Example:
        >>> class Message(BaseMessage):
        ...     grade: Annotated[str, CharField()]
    """
    return cast(
        FieldInfo,
        Field(min_length=1, max_length=1, json_schema_extra={"char": True}, **kwargs),
    )


UInt8 = Annotated[int, FixedInt(bits=8)]
UInt16 = Annotated[int, FixedInt(bits=16)]
UInt32 = Annotated[int, FixedInt(bits=32)]
UInt64 = Annotated[int, FixedInt(bits=64)]
Int8 = Annotated[int, FixedInt(bits=8, signed=True)]
Int16 = Annotated[int, FixedInt(bits=16, signed=True)]
Int32 = Annotated[int, FixedInt(bits=32, signed=True)]
Int64 = Annotated[int, FixedInt(bits=64, signed=True)]
Float32 = Annotated[float, FixedFloat(bits=32)]
Float64 = Annotated[float, FixedFloat(bits=64)]
Char = Annotated[str, CharField()]
