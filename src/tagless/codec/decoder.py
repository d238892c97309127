"""Binary decoder for data-model values.

This module provides the decode() function that converts tagless binary data
back to a value of a caller-supplied expected shape.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from ..config import DEFAULT_CONFIG, CodecConfig
from ..exceptions import (
    DecodeError,
    InvalidValue,
    NestingTooDeep,
    SchemaError,
    TaglessError,
    TrailingData,
    UnknownVariantIndex,
)
from .buffer import ByteCursor
from .delimiters import VARIANT_INDEX_WIDTH, Delimiter
from .schema import resolve_shape
from .shapes import (
    STRING,
    BytesShape,
    DeferredShape,
    EnumShape,
    EnumValue,
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
    VariantKind,
    can_begin_with_unit,
)

logger = logging.getLogger(__name__)


def decode(expected: Any, data: bytes, *, config: Optional[CodecConfig] = None) -> Any:
    """Decode tagless binary data to a value of the expected shape.

    The format is not self-describing: the caller supplies the shape, and
    the bytes are consumed in exactly the order they were encoded.

    Args:
        expected: Data-model Shape, model class or type annotation to decode
        data: Binary data to decode
        config: Optional codec configuration (nesting limit, trailing data)

    Returns:
        Decoded value, built with the shape's constructors

    Raises:
        SchemaError: If no shape can be derived for ``expected``
        DecodeError: If the data is truncated, malformed or doesn't match the shape

    Examples:
        ```python
        from tagless import BaseMessage, UInt8, decode, encode

        class Human(BaseMessage):
            name: str
            age: UInt8

        data = encode(Human(name="Ayush", age=19))
        human = decode(Human, data)

        numbers = decode(list[UInt8], b"\\xf9\\xfa\\x01\\xfa\\x02\\xfb")
        ```
    """
    cfg = config if config is not None else DEFAULT_CONFIG
    shape = resolve_shape(expected)

    cursor = ByteCursor(data)
    value = Decoder(cursor, max_depth=cfg.max_depth).decode_value(shape)

    if not cfg.allow_trailing and cursor.remaining():
        raise TrailingData(cursor.remaining(), cursor.position())

    logger.debug("decoded %d bytes into %s", cursor.position(), type(value).__name__)
    return value


class Decoder:
    """Consumes encodings from a ByteCursor, driven by expected shapes.

    Each ``decode_*`` method handles one data-model shape and leaves the
    cursor just past the bytes that shape occupied.
    """

    def __init__(self, cursor: ByteCursor, max_depth: int = DEFAULT_CONFIG.max_depth) -> None:
        self.cursor = cursor
        self.max_depth = max_depth
        self._depth = 0

    def decode_value(self, shape: Shape) -> Any:
        """Decode one value of ``shape`` at the current position."""
        if isinstance(shape, DeferredShape):
            shape = shape.resolve()

        if isinstance(shape, Primitive):
            return self.decode_primitive(shape)
        if isinstance(shape, StringShape):
            return self.decode_str()
        if isinstance(shape, BytesShape):
            return self.decode_bytes()
        if isinstance(shape, UnitShape):
            return self.decode_unit()
        if isinstance(shape, OptionShape):
            return self.decode_option(shape)
        if isinstance(shape, NewtypeShape):
            return self.decode_newtype(shape)
        if isinstance(shape, UnitStructShape):
            self.decode_unit()
            return self._build(shape.name, shape.build) if shape.build is not None else None

        # Composite shapes nest; everything below counts against max_depth.
        self._depth += 1
        try:
            if self._depth > self.max_depth:
                raise NestingTooDeep(self.max_depth, self.cursor.position())
            if isinstance(shape, SeqShape):
                return self.decode_seq(shape)
            if isinstance(shape, TupleShape):
                return self._build("tuple", shape.build, self.decode_tuple(shape.elements))
            if isinstance(shape, TupleStructShape):
                items = self.decode_tuple(shape.elements)
                if shape.build is None:
                    return tuple(items)
                return self._build(shape.name, shape.build, *items)
            if isinstance(shape, MapShape):
                return self.decode_map(shape)
            if isinstance(shape, StructShape):
                return self.decode_struct(shape)
            if isinstance(shape, EnumShape):
                return self.decode_enum(shape)
        finally:
            self._depth -= 1

        raise DecodeError(f"Unsupported shape {shape!r}")

    def decode_primitive(self, shape: Primitive) -> Any:
        """Read a fixed-width primitive."""
        start = self.cursor.position()
        if shape.kind == "bool":
            byte = self.cursor.read_byte()
            if byte not in (0, 1):
                raise InvalidValue(f"Invalid bool byte 0x{byte:02X}", start)
            return byte == 1

        if shape.kind == "char":
            code_point = self.cursor.read_uint(shape.width)
            if code_point > 0x10FFFF or 0xD800 <= code_point <= 0xDFFF:
                raise InvalidValue(f"Invalid char code point 0x{code_point:X}", start)
            return chr(code_point)

        if shape.kind == "float":
            return self.cursor.read_float(shape.width)

        if shape.signed:
            return self.cursor.read_int(shape.width)
        return self.cursor.read_uint(shape.width)

    def decode_str(self) -> str:
        """Read ``STRING utf8 STRING``."""
        start = self.cursor.position()
        raw = self.cursor.read_span(Delimiter.STRING, "string")
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as err:
            raise InvalidValue(f"Invalid UTF-8 in string: {err.reason}", start) from err

    def decode_bytes(self) -> bytes:
        """Read ``BYTES escaped-content BYTES``."""
        return self.cursor.read_escaped_span()

    def decode_unit(self) -> None:
        """Consume exactly the UNIT delimiter."""
        self.cursor.expect(Delimiter.UNIT)
        return None

    def decode_option(self, shape: OptionShape) -> Any:
        """Decode an optional slot.

        With ``present`` set by the caller the bytes are taken at face value;
        otherwise the slot is None exactly when the next byte is UNIT, which is
        only sound when the inner shape can never start with that byte.
        """
        if shape.present is None:
            if can_begin_with_unit(shape.inner):
                raise SchemaError(
                    "Optional value is ambiguous: its inner shape may begin with the UNIT "
                    "byte, so the caller must state whether it is present"
                )
            present = not self.cursor.at(Delimiter.UNIT)
        else:
            present = shape.present

        if not present:
            return self.decode_unit()
        return self.decode_value(shape.inner)

    def decode_seq(self, shape: SeqShape) -> Any:
        """Read ``SEQ_START (SEQ_VALUE element)* SEQ_END``."""
        self.cursor.expect(Delimiter.SEQ_START)
        items: list[Any] = []
        while self.cursor.read_marker(Delimiter.SEQ_VALUE, Delimiter.SEQ_END) is Delimiter.SEQ_VALUE:
            try:
                items.append(self.decode_value(shape.element))
            except TaglessError as err:
                err.add_path(f"[{len(items)}]")
                raise
        return self._build("sequence", shape.build, items)

    def decode_tuple(self, elements: tuple[Shape, ...]) -> list[Any]:
        """Read a fixed-arity sequence and return its items."""
        self.cursor.expect(Delimiter.SEQ_START)
        items: list[Any] = []
        for index, element in enumerate(elements):
            self.cursor.expect(Delimiter.SEQ_VALUE)
            try:
                items.append(self.decode_value(element))
            except TaglessError as err:
                err.add_path(f"[{index}]")
                raise
        self.cursor.expect(Delimiter.SEQ_END)
        return items

    def decode_map(self, shape: MapShape) -> Any:
        """Read ``MAP_START (MAP_KEY key MAP_VALUE value)* MAP_END``."""
        self.cursor.expect(Delimiter.MAP_START)
        pairs: list[tuple[Any, Any]] = []
        while self.cursor.read_marker(Delimiter.MAP_KEY, Delimiter.MAP_END) is Delimiter.MAP_KEY:
            try:
                key = self.decode_value(shape.key)
            except TaglessError as err:
                err.add_path(f"[key {len(pairs)}]")
                raise
            self.cursor.expect(Delimiter.MAP_VALUE)
            try:
                value = self.decode_value(shape.value)
            except TaglessError as err:
                err.add_path(f"[{key!r}]")
                raise
            pairs.append((key, value))
        return self._build("map", shape.build, pairs)

    def decode_struct(self, shape: StructShape) -> Any:
        """Read a string-keyed map and hand the fields to the struct's constructor.

        Field names select the expected value shape, so the decoder follows the
        names present in the stream rather than assuming declaration order.
        """
        self.cursor.expect(Delimiter.MAP_START)
        values: dict[str, Any] = {}
        while self.cursor.read_marker(Delimiter.MAP_KEY, Delimiter.MAP_END) is Delimiter.MAP_KEY:
            key_position = self.cursor.position()
            name = self.decode_value(STRING)
            field_shape = shape.field_shape(name)
            if field_shape is None:
                raise InvalidValue(f"{shape.name} has no field {name!r}", key_position)
            if name in values:
                raise InvalidValue(f"Duplicate field {name!r} in {shape.name}", key_position)
            self.cursor.expect(Delimiter.MAP_VALUE)
            try:
                values[name] = self.decode_value(field_shape)
            except TaglessError as err:
                err.add_path(name)
                raise

        if shape.build is None:
            return values
        return self._build(shape.name, shape.build, **values)

    def decode_newtype(self, shape: NewtypeShape) -> Any:
        """Read the wrapped value and wrap it again."""
        inner = self.decode_value(shape.inner)
        if shape.build is None:
            return inner
        return self._build(shape.name, shape.build, inner)

    def decode_enum(self, shape: EnumShape) -> Any:
        """Read the u32 variant index, then the payload that variant declares."""
        start = self.cursor.position()
        index = self.cursor.read_uint(VARIANT_INDEX_WIDTH)
        variant = shape.variant_for(index)
        if variant is None:
            raise UnknownVariantIndex(index, len(shape.variants), shape.name, start)

        payload: Any = None
        if variant.kind is not VariantKind.UNIT and variant.payload is not None:
            try:
                payload = self.decode_value(variant.payload)
            except TaglessError as err:
                err.add_path(variant.name)
                raise

        if variant.build is not None:
            return self._build(f"{shape.name}.{variant.name}", variant.build, payload)
        return EnumValue(variant.name, payload)

    def _build(self, name: str, build: Any, /, *args: Any, **kwargs: Any) -> Any:
        """Run a caller-supplied constructor, reporting failures as decode errors."""
        try:
            return build(*args, **kwargs)
        except (TypeError, ValueError) as err:
            raise InvalidValue(
                f"Failed to construct {name}: {err}", self.cursor.position()
            ) from err
