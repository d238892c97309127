"""Binary encoder for data-model values.

This module provides the encode() function that converts a value to the
tagless byte format, and the Encoder visitor it is built on.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Mapping
from typing import Any, Optional

from ..config import DEFAULT_CONFIG, CodecConfig
from ..exceptions import EncodeError, TaglessError
from .buffer import ByteSink
from .delimiters import VARIANT_INDEX_WIDTH, Delimiter
from .schema import resolve_shape, shape_of_value
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
)

logger = logging.getLogger(__name__)


def encode(value: Any, shape: Any = None, *, config: Optional[CodecConfig] = None) -> bytes:
    """Encode a value to the tagless binary format.

    The shape is derived from the value's type when not given. Composite
    values are walked recursively in declaration order.

    Args:
        value: Value to encode (a BaseMessage, any Serializable type, or a
            plain value together with an explicit shape)
        shape: Data-model Shape or type annotation describing ``value``
        config: Optional codec configuration (sink limit, nesting limit)

    Returns:
        Encoded bytes

    Raises:
        SchemaError: If no shape can be derived for the value's type
        EncodeError: If the value doesn't match its shape
        SinkExhausted: If the output would exceed the configured limit
        EncodeError: If the value nests deeper than the configured max_depth

    Examples:
        ```python
        from tagless import BaseMessage, UInt8, encode

        class Human(BaseMessage):
            name: str
            age: UInt8

        encode(Human(name="Ayush", age=19))

        # Plain values need an explicit shape
        encode([1, 2, 3], list[UInt8])
        ```
    """
    resolved = shape_of_value(value) if shape is None else resolve_shape(shape)
    max_bytes = config.max_bytes if config is not None else None
    if max_bytes is None:
        max_bytes = getattr(type(value), "tagless_max_bytes", None)

    max_depth = config.max_depth if config is not None else DEFAULT_CONFIG.max_depth

    sink = ByteSink(max_size=max_bytes)
    Encoder(sink, max_depth=max_depth).encode_value(value, resolved)
    data = sink.to_bytes()
    logger.debug("encoded %s into %d bytes", type(value).__name__, len(data))
    return data


class Encoder:
    """Data-model visitor that appends encodings to a ByteSink.

    Each ``encode_*`` method handles one data-model shape. Callers with their
    own type mapping may drive these methods directly.
    """

    def __init__(self, sink: ByteSink, max_depth: int = DEFAULT_CONFIG.max_depth) -> None:
        self.sink = sink
        self.max_depth = max_depth
        self._depth = 0

    def encode_value(self, value: Any, shape: Shape) -> None:
        """Encode ``value`` according to ``shape``."""
        if isinstance(shape, DeferredShape):
            shape = shape.resolve()

        if isinstance(shape, Primitive):
            self.encode_primitive(value, shape)
        elif isinstance(shape, StringShape):
            self.encode_str(value)
        elif isinstance(shape, BytesShape):
            self.encode_bytes(value)
        elif isinstance(shape, UnitShape):
            self.encode_unit(value)
        elif isinstance(shape, OptionShape):
            self.encode_option(value, shape)
        elif isinstance(shape, NewtypeShape):
            self.encode_newtype(value, shape)
        elif isinstance(shape, UnitStructShape):
            self.sink.write_delimiter(Delimiter.UNIT)
        elif isinstance(
            shape, (SeqShape, TupleShape, TupleStructShape, MapShape, StructShape, EnumShape)
        ):
            self.encode_composite(value, shape)
        else:
            raise EncodeError(f"Unsupported shape {shape!r}")

    def encode_composite(self, value: Any, shape: Shape) -> None:
        """Encode a nesting shape, counting it against ``max_depth``.

        The decoder counts the same shapes against the same limit.
        """
        self._depth += 1
        try:
            if self._depth > self.max_depth:
                raise EncodeError(f"Nesting deeper than {self.max_depth} levels")
            if isinstance(shape, SeqShape):
                self.encode_seq(value, shape)
            elif isinstance(shape, TupleShape):
                self.encode_tuple(value, shape.elements)
            elif isinstance(shape, TupleStructShape):
                items = shape.unwrap(value) if shape.unwrap is not None else value
                self.encode_tuple(items, shape.elements)
            elif isinstance(shape, MapShape):
                self.encode_map(value, shape)
            elif isinstance(shape, StructShape):
                self.encode_struct(value, shape)
            elif isinstance(shape, EnumShape):
                self.encode_enum(value, shape)
        finally:
            self._depth -= 1

    def encode_primitive(self, value: Any, shape: Primitive) -> None:
        """Write a fixed-width primitive with no delimiter."""
        if shape.kind == "bool":
            if not isinstance(value, bool):
                raise EncodeError(f"expected bool, got {type(value).__name__}")
            self.sink.write_byte(1 if value else 0)
            return

        if shape.kind == "char":
            if not isinstance(value, str) or len(value) != 1:
                raise EncodeError(f"expected a single character, got {value!r}")
            self.sink.write_uint(ord(value), shape.width)
            return

        if shape.kind == "float":
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise EncodeError(f"expected float, got {type(value).__name__}")
            try:
                self.sink.write_float(float(value), shape.width)
            except ValueError as err:
                raise EncodeError(str(err)) from err
            return

        if isinstance(value, bool) or not isinstance(value, int):
            raise EncodeError(f"expected int, got {type(value).__name__}")
        if value < shape.min_value or value > shape.max_value:
            raise EncodeError(
                f"value {value} out of bounds for {shape.name} "
                f"[{shape.min_value}, {shape.max_value}]"
            )
        if shape.signed:
            self.sink.write_int(value, shape.width)
        else:
            self.sink.write_uint(value, shape.width)

    def encode_str(self, value: Any) -> None:
        """Write ``STRING utf8 STRING``."""
        if not isinstance(value, str):
            raise EncodeError(f"expected str, got {type(value).__name__}")
        try:
            raw = value.encode("utf-8")
        except UnicodeEncodeError as err:
            raise EncodeError(f"string is not encodable as UTF-8: {err}") from err
        self.sink.write_delimiter(Delimiter.STRING)
        self.sink.write_bytes(raw)
        self.sink.write_delimiter(Delimiter.STRING)

    def encode_bytes(self, value: Any) -> None:
        """Write ``BYTES escaped-content BYTES``."""
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise EncodeError(f"expected bytes, got {type(value).__name__}")
        self.sink.write_delimiter(Delimiter.BYTES)
        self.sink.write_escaped(bytes(value))
        self.sink.write_delimiter(Delimiter.BYTES)

    def encode_unit(self, value: Any = None) -> None:
        """Write the UNIT delimiter."""
        if value is not None:
            raise EncodeError(f"expected None for unit, got {type(value).__name__}")
        self.sink.write_delimiter(Delimiter.UNIT)

    def encode_option(self, value: Any, shape: OptionShape) -> None:
        """None becomes UNIT; a present value is written bare."""
        if shape.present is not None and shape.present != (value is not None):
            state = "present" if shape.present else "absent"
            raise EncodeError(f"option is declared {state}, got {value!r}")
        if value is None:
            self.sink.write_delimiter(Delimiter.UNIT)
        else:
            self.encode_value(value, shape.inner)

    def encode_seq(self, value: Any, shape: SeqShape) -> None:
        """Write ``SEQ_START (SEQ_VALUE element)* SEQ_END``."""
        if isinstance(value, (str, bytes, Mapping)) or not hasattr(value, "__iter__"):
            raise EncodeError(f"expected a sequence, got {type(value).__name__}")
        self.sink.write_delimiter(Delimiter.SEQ_START)
        for index, item in enumerate(value):
            self.sink.write_delimiter(Delimiter.SEQ_VALUE)
            try:
                self.encode_value(item, shape.element)
            except TaglessError as err:
                err.add_path(f"[{index}]")
                raise
        self.sink.write_delimiter(Delimiter.SEQ_END)

    def encode_tuple(self, value: Any, elements: tuple[Shape, ...]) -> None:
        """Write a fixed-arity sequence."""
        if isinstance(value, (str, bytes, Mapping)) or not hasattr(value, "__iter__"):
            raise EncodeError(f"expected a tuple, got {type(value).__name__}")
        items = list(value)
        if len(items) != len(elements):
            raise EncodeError(f"expected {len(elements)} elements, got {len(items)}")
        self.sink.write_delimiter(Delimiter.SEQ_START)
        for index, (item, element) in enumerate(zip(items, elements)):
            self.sink.write_delimiter(Delimiter.SEQ_VALUE)
            try:
                self.encode_value(item, element)
            except TaglessError as err:
                err.add_path(f"[{index}]")
                raise
        self.sink.write_delimiter(Delimiter.SEQ_END)

    def encode_entry(self, key: Any, key_shape: Shape, value: Any, value_shape: Shape) -> None:
        """Write one ``MAP_KEY key MAP_VALUE value`` entry."""
        self.sink.write_delimiter(Delimiter.MAP_KEY)
        self.encode_value(key, key_shape)
        self.sink.write_delimiter(Delimiter.MAP_VALUE)
        self.encode_value(value, value_shape)

    def encode_map(self, value: Any, shape: MapShape) -> None:
        """Write ``MAP_START (MAP_KEY key MAP_VALUE value)* MAP_END``."""
        if isinstance(value, Mapping):
            pairs = value.items()
        elif isinstance(value, (list, tuple)):
            pairs = value
        else:
            raise EncodeError(f"expected a mapping, got {type(value).__name__}")
        self.sink.write_delimiter(Delimiter.MAP_START)
        for pair in pairs:
            try:
                key, item = pair
            except (TypeError, ValueError) as err:
                raise EncodeError(f"expected a key/value pair, got {pair!r}") from err
            try:
                self.encode_entry(key, shape.key, item, shape.value)
            except TaglessError as err:
                err.add_path(f"[{key!r}]")
                raise
        self.sink.write_delimiter(Delimiter.MAP_END)

    def encode_struct(self, value: Any, shape: StructShape) -> None:
        """Write a struct as a map keyed by its field names."""
        is_mapping = isinstance(value, Mapping)
        self.sink.write_delimiter(Delimiter.MAP_START)
        for name, field_shape in shape.fields:
            try:
                field_value = value[name] if is_mapping else getattr(value, name)
            except (KeyError, AttributeError) as err:
                raise EncodeError(f"{shape.name} value has no field {name!r}") from err
            try:
                self.encode_entry(name, STRING, field_value, field_shape)
            except TaglessError as err:
                err.add_path(name)
                raise
        self.sink.write_delimiter(Delimiter.MAP_END)

    def encode_newtype(self, value: Any, shape: NewtypeShape) -> None:
        """Write the wrapped value with no extra framing."""
        inner = shape.unwrap(value) if shape.unwrap is not None else value
        self.encode_value(inner, shape.inner)

    def encode_enum(self, value: Any, shape: EnumShape) -> None:
        """Write the variant index as u32, then the variant payload."""
        index, payload = self._select_variant(value, shape)
        variant = shape.variants[index]
        self.sink.write_uint(index, VARIANT_INDEX_WIDTH)
        if variant.kind is VariantKind.UNIT or variant.payload is None:
            return
        try:
            self.encode_value(payload, variant.payload)
        except TaglessError as err:
            err.add_path(variant.name)
            raise

    def _select_variant(self, value: Any, shape: EnumShape) -> tuple[int, Any]:
        if shape.select is not None:
            return shape.select(value)

        if isinstance(value, EnumValue):
            try:
                index = shape.index_of(value.variant)
            except KeyError as err:
                raise EncodeError(f"{shape.name} has no variant {value.variant!r}") from err
            return index, value.payload

        if isinstance(value, enum.Enum):
            try:
                return shape.index_of(value.name), None
            except KeyError as err:
                raise EncodeError(f"{shape.name} has no variant {value.name!r}") from err

        # Exact type matches win over subclass matches (bool is an int).
        for exact in (True, False):
            for index, variant in enumerate(shape.variants):
                python_type = variant.python_type
                if python_type is None:
                    continue
                matched = type(value) is python_type if exact else isinstance(value, python_type)
                if matched:
                    payload = variant.unwrap(value) if variant.unwrap is not None else value
                    return index, payload

        raise EncodeError(f"value {value!r} matches no variant of {shape.name}")
