"""Data-model shapes.

Every serializable value reduces to exactly one of the shapes defined here.
A shape is both the encode-side description of a value ("this is a map with
these ordered fields") and the expected shape handed to the decoder, which
uses the ``build`` callables on composite shapes to reconstruct the caller's
own types.

Example:
    >>> point = TupleShape((I32, I32))
    >>> encode((3, -4), point)
    b'\\xf9\\xfa\\x03\\x00\\x00\\x00\\xfa\\xfc\\xff\\xff\\xff\\xfb'
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol, Tuple, runtime_checkable

from ..exceptions import SchemaError
from .delimiters import Delimiter


class Shape:
    """Base class for all data-model shapes."""

    __slots__ = ()


@dataclass(frozen=True)
class Primitive(Shape):
    """Fixed-width primitive.

    Attributes:
        name: Data-model name (``u8``, ``f64``, ``char``, ...)
        kind: One of ``bool``, ``int``, ``float``, ``char``
        width: Encoded width in bytes
        signed: Two's complement encoding (integers only)
    """

    name: str
    kind: str
    width: int
    signed: bool = False

    @property
    def min_value(self) -> int:
        return -(1 << (self.width * 8 - 1)) if self.signed else 0

    @property
    def max_value(self) -> int:
        if self.signed:
            return (1 << (self.width * 8 - 1)) - 1
        return (1 << (self.width * 8)) - 1


BOOL = Primitive("bool", "bool", 1)
U8 = Primitive("u8", "int", 1)
U16 = Primitive("u16", "int", 2)
U32 = Primitive("u32", "int", 4)
U64 = Primitive("u64", "int", 8)
I8 = Primitive("i8", "int", 1, signed=True)
I16 = Primitive("i16", "int", 2, signed=True)
I32 = Primitive("i32", "int", 4, signed=True)
I64 = Primitive("i64", "int", 8, signed=True)
F32 = Primitive("f32", "float", 4)
F64 = Primitive("f64", "float", 8)
CHAR = Primitive("char", "char", 4)

INTEGERS = {
    (shape.width * 8, shape.signed): shape for shape in (U8, U16, U32, U64, I8, I16, I32, I64)
}
FLOATS = {32: F32, 64: F64}


@dataclass(frozen=True)
class StringShape(Shape):
    """UTF-8 text framed by STRING delimiters."""


@dataclass(frozen=True)
class BytesShape(Shape):
    """Arbitrary bytes framed by BYTES delimiters."""


@dataclass(frozen=True)
class UnitShape(Shape):
    """Zero-information marker."""


STRING = StringShape()
BYTES = BytesShape()
UNIT = UnitShape()


@dataclass(frozen=True)
class OptionShape(Shape):
    """Optional value: None encodes as UNIT, a present value encodes bare.

    ``present`` lets the caller state from outside the byte stream whether the
    slot is filled. It is required whenever the inner shape may itself begin
    with the UNIT byte.
    """

    inner: Shape
    present: Optional[bool] = None


@dataclass(frozen=True)
class SeqShape(Shape):
    """Variable-length ordered sequence of one element shape."""

    element: Shape
    build: Callable[[list[Any]], Any] = field(default=list, compare=False)


@dataclass(frozen=True)
class TupleShape(Shape):
    """Fixed-arity sequence with one shape per position."""

    elements: Tuple[Shape, ...]
    build: Callable[[list[Any]], Any] = field(default=tuple, compare=False)


@dataclass(frozen=True)
class MapShape(Shape):
    """Ordered key/value pairs. Encodes any Mapping or iterable of pairs."""

    key: Shape
    value: Shape
    build: Callable[[list[tuple[Any, Any]]], Any] = field(default=dict, compare=False)


@dataclass(frozen=True)
class StructShape(Shape):
    """Named fields in declaration order, encoded as a string-keyed map.

    On encode, field values are read by attribute (or by key for mappings).
    On decode, ``build`` receives the fields as keyword arguments; without a
    build callable a plain dict is returned.
    """

    name: str
    fields: Tuple[Tuple[str, Shape], ...]
    build: Optional[Callable[..., Any]] = field(default=None, compare=False)

    def field_shape(self, name: str) -> Optional[Shape]:
        for field_name, shape in self.fields:
            if field_name == name:
                return shape
        return None


@dataclass(frozen=True)
class NewtypeShape(Shape):
    """Single wrapped value encoded as the value itself."""

    name: str
    inner: Shape
    build: Optional[Callable[[Any], Any]] = field(default=None, compare=False)
    unwrap: Optional[Callable[[Any], Any]] = field(default=None, compare=False)


@dataclass(frozen=True)
class UnitStructShape(Shape):
    """Field-less struct encoded as UNIT."""

    name: str
    build: Optional[Callable[[], Any]] = field(default=None, compare=False)


@dataclass(frozen=True)
class TupleStructShape(Shape):
    """Positional struct encoded as a fixed-arity sequence."""

    name: str
    elements: Tuple[Shape, ...]
    build: Optional[Callable[..., Any]] = field(default=None, compare=False)
    unwrap: Optional[Callable[[Any], Any]] = field(default=None, compare=False)


class VariantKind(enum.Enum):
    """Payload form of an enum variant."""

    UNIT = "unit"
    NEWTYPE = "newtype"
    TUPLE = "tuple"
    STRUCT = "struct"


@dataclass(frozen=True)
class EnumValue:
    """Generic value of an enum shape: variant name plus optional payload."""

    variant: str
    payload: Any = None


@dataclass(frozen=True)
class Variant:
    """One enum variant.

    Attributes:
        name: Variant name
        kind: Payload form
        payload: Payload shape (None for unit variants, TupleShape for tuple
            variants, StructShape for struct variants)
        build: Turns the decoded payload (None for unit variants) into the
            caller's value; defaults to ``EnumValue(name, payload)``
        python_type: Type whose instances encode as this variant
        unwrap: Extracts the payload from a matched value
    """

    name: str
    kind: VariantKind = VariantKind.UNIT
    payload: Optional[Shape] = None
    build: Optional[Callable[[Any], Any]] = field(default=None, compare=False)
    python_type: Optional[type] = field(default=None, compare=False)
    unwrap: Optional[Callable[[Any], Any]] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.kind is VariantKind.UNIT and self.payload is not None:
            raise SchemaError(f"Unit variant {self.name} cannot carry a payload")
        if self.kind is not VariantKind.UNIT and self.payload is None:
            raise SchemaError(f"Variant {self.name} ({self.kind.value}) needs a payload shape")
        if self.kind is VariantKind.TUPLE and not isinstance(
            self.payload, (TupleShape, DeferredShape)
        ):
            raise SchemaError(f"Tuple variant {self.name} needs a TupleShape payload")
        if self.kind is VariantKind.STRUCT and not isinstance(
            self.payload, (StructShape, DeferredShape)
        ):
            raise SchemaError(f"Struct variant {self.name} needs a StructShape payload")


@dataclass(frozen=True)
class EnumShape(Shape):
    """Selection of one variant, encoded as a u32 index plus payload."""

    name: str
    variants: Tuple[Variant, ...]
    select: Optional[Callable[[Any], Tuple[int, Any]]] = field(default=None, compare=False)

    def variant_for(self, index: int) -> Optional[Variant]:
        """Map a decoded variant index to its declared variant."""
        if 0 <= index < len(self.variants):
            return self.variants[index]
        return None

    def index_of(self, name: str) -> int:
        for index, variant in enumerate(self.variants):
            if variant.name == name:
                return index
        raise KeyError(name)


@dataclass(frozen=True, eq=False)
class DeferredShape(Shape):
    """Placeholder for a shape that is still being derived (recursive types)."""

    name: str
    resolver: Callable[[], Shape] = field(repr=False)

    def resolve(self) -> Shape:
        return self.resolver()


@runtime_checkable
class Serializable(Protocol):
    """Types that describe their own data-model shape.

    The shape's ``build``/``unwrap`` callables give the "build yourself" and
    "describe yourself" halves of the mapping.
    """

    @classmethod
    def __tagless_shape__(cls) -> Shape: ...


def resolve(shape: Shape) -> Shape:
    """Follow DeferredShape placeholders to the concrete shape."""
    while isinstance(shape, DeferredShape):
        shape = shape.resolve()
    return shape


def can_begin_with_unit(shape: Shape) -> bool:
    """Return True if an encoding of ``shape`` may start with the UNIT byte.

    Options around such shapes cannot tell None apart from a present value by
    looking at the bytes.
    """
    shape = resolve(shape)
    if isinstance(shape, Primitive):
        return shape.kind != "bool"
    if isinstance(shape, (StringShape, BytesShape, SeqShape, TupleShape, MapShape)):
        return False
    if isinstance(shape, (StructShape, TupleStructShape)):
        return False
    if isinstance(shape, NewtypeShape):
        return can_begin_with_unit(shape.inner)
    if isinstance(shape, EnumShape):
        # The first byte is the low byte of the variant index.
        return len(shape.variants) > Delimiter.UNIT
    return True


def describe(shape: Shape, _seen: Optional[set[int]] = None) -> str:
    """Render a compact, human readable layout of a shape.

    Example:
        >>> describe(MapShape(STRING, SeqShape(U8)))
        'map<string, seq<u8>>'
    """
    seen = set() if _seen is None else _seen
    if isinstance(shape, DeferredShape):
        return shape.name
    if isinstance(shape, Primitive):
        return shape.name
    if isinstance(shape, StringShape):
        return "string"
    if isinstance(shape, BytesShape):
        return "bytes"
    if isinstance(shape, UnitShape):
        return "unit"
    if isinstance(shape, OptionShape):
        return f"option<{describe(shape.inner, seen)}>"
    if isinstance(shape, SeqShape):
        return f"seq<{describe(shape.element, seen)}>"
    if isinstance(shape, TupleShape):
        return "(" + ", ".join(describe(item, seen) for item in shape.elements) + ")"
    if isinstance(shape, MapShape):
        return f"map<{describe(shape.key, seen)}, {describe(shape.value, seen)}>"
    if isinstance(shape, UnitStructShape):
        return shape.name
    if isinstance(shape, NewtypeShape):
        return f"{shape.name}({describe(shape.inner, seen)})"
    if isinstance(shape, TupleStructShape):
        return shape.name + "(" + ", ".join(describe(item, seen) for item in shape.elements) + ")"
    if id(shape) in seen:
        return getattr(shape, "name", "?")
    seen.add(id(shape))
    if isinstance(shape, StructShape):
        body = ", ".join(f"{name}: {describe(item, seen)}" for name, item in shape.fields)
        return f"{shape.name} {{{body}}}"
    if isinstance(shape, EnumShape):
        parts = []
        for variant in shape.variants:
            if variant.payload is None:
                parts.append(variant.name)
            elif variant.kind is VariantKind.STRUCT:
                parts.append(describe(variant.payload, seen))
            else:
                parts.append(f"{variant.name}({describe(variant.payload, seen)})")
        return f"{shape.name} = " + " | ".join(parts)
    raise SchemaError(f"Unknown shape {shape!r}")
