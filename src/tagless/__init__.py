"""tagless: Non-self-describing binary serialization

A Python library for encoding structured values into a compact binary format
that carries no type tags or field schemas. Values are framed by reserved
delimiter bytes and decoded against a caller-supplied expected shape.

Key Features:
- Pydantic-based message modeling
- Fixed-width little-endian primitives
- Delimiter framing for strings, byte blobs, sequences and maps
- Explicit data-model shapes for hand-written mappings

Quick Start:
    >>> from tagless import BaseMessage, UInt8, encode, decode
    >>>
    >>> class Human(BaseMessage):
    ...     name: str
    ...     age: UInt8
    >>>
    >>> data = encode(Human(name="Ayush", age=19))
    >>> data.hex(" ")
    'fc fd f6 6e 61 6d 65 f6 fe f6 41 79 75 73 68 f6 fd f6 61 67 65 f6 fe 13 ff'
    >>> decode(Human, data)
    Human(name='Ayush', age=19)
"""

from __future__ import annotations

from .codec import (
    ByteCursor,
    ByteSink,
    Decoder,
    Delimiter,
    Encoder,
    FieldSchema,
    MessageSchema,
    decode,
    encode,
    shape_for,
)
from .codec.shapes import (
    BOOL,
    BYTES,
    CHAR,
    F32,
    F64,
    I8,
    I16,
    I32,
    I64,
    STRING,
    U8,
    U16,
    U32,
    U64,
    UNIT,
    EnumShape,
    EnumValue,
    MapShape,
    NewtypeShape,
    OptionShape,
    SeqShape,
    Shape,
    StructShape,
    TupleShape,
    TupleStructShape,
    UnitStructShape,
    Variant,
    VariantKind,
    describe,
)
from .config import CodecConfig
from .exceptions import (
    DecodeError,
    EncodeError,
    InvalidValue,
    MalformedDelimiter,
    NestingTooDeep,
    SchemaError,
    SinkExhausted,
    TaglessError,
    TrailingData,
    UnexpectedEndOfInput,
    UnknownVariantIndex,
    UnterminatedSpan,
)
from .models import (
    BaseMessage,
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
from .utils import encoded_size, field_sizes, min_encoded_size

__version__ = "0.1.0"

__all__ = [
    # Core API
    "BaseMessage",
    "encode",
    "decode",
    "Encoder",
    "Decoder",
    "ByteSink",
    "ByteCursor",
    "Delimiter",
    "CodecConfig",
    # Schema
    "MessageSchema",
    "FieldSchema",
    "shape_for",
    "describe",
    # Shapes
    "Shape",
    "BOOL",
    "U8",
    "U16",
    "U32",
    "U64",
    "I8",
    "I16",
    "I32",
    "I64",
    "F32",
    "F64",
    "CHAR",
    "STRING",
    "BYTES",
    "UNIT",
    "OptionShape",
    "SeqShape",
    "TupleShape",
    "MapShape",
    "StructShape",
    "NewtypeShape",
    "UnitStructShape",
    "TupleStructShape",
    "EnumShape",
    "Variant",
    "VariantKind",
    "EnumValue",
    # Field helpers
    "BoundedInt",
    "FixedInt",
    "FixedFloat",
    "CharField",
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
    # Exceptions
    "TaglessError",
    "SchemaError",
    "EncodeError",
    "SinkExhausted",
    "DecodeError",
    "UnexpectedEndOfInput",
    "MalformedDelimiter",
    "UnterminatedSpan",
    "UnknownVariantIndex",
    "InvalidValue",
    "TrailingData",
    "NestingTooDeep",
    # Sizing
    "encoded_size",
    "field_sizes",
    "min_encoded_size",
    # Version
    "__version__",
]
