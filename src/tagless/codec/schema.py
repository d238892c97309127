"""Schema introspection for Python types.

This module maps Python type annotations, Pydantic models and dataclasses
onto data-model shapes. It reads the same field metadata Pydantic uses for
validation (ge/le bounds, json_schema_extra) to choose fixed widths.
"""

from __future__ import annotations

import collections.abc
import dataclasses
import enum
import logging
import threading
import types
import typing
from dataclasses import dataclass
from typing import Annotated, Any, Iterable, List, Optional, Type, Union, get_args, get_origin

from pydantic import BaseModel, RootModel
from pydantic.fields import FieldInfo

from ..exceptions import SchemaError
from .shapes import (
    BOOL,
    BYTES,
    CHAR,
    FLOATS,
    I8,
    I16,
    I32,
    I64,
    INTEGERS,
    STRING,
    U8,
    U16,
    U32,
    U64,
    UNIT,
    DeferredShape,
    EnumShape,
    EnumValue,
    MapShape,
    NewtypeShape,
    OptionShape,
    Primitive,
    SeqShape,
    Serializable,
    Shape,
    StructShape,
    TupleShape,
    Variant,
    VariantKind,
    can_begin_with_unit,
    describe,
)

logger = logging.getLogger(__name__)

_UNSIGNED = (U8, U16, U32, U64)
_SIGNED = (I8, I16, I32, I64)
_SEQUENCE_ORIGINS = (list, collections.abc.Sequence, collections.abc.MutableSequence)
_MAPPING_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)

# Derived class shapes, and classes whose derivation is still in progress
# (self-references resolve through a DeferredShape). Both are only written
# while holding _LOCK.
_CACHE: dict[type, Shape] = {}
_IN_PROGRESS: dict[type, DeferredShape] = {}
_LOCK = threading.RLock()


@dataclass(frozen=True)
class Constraints:
    """Encoding-relevant metadata gathered from Annotated/Field() metadata.

    Attributes:
        ge: Minimum value (inclusive)
        le: Maximum value (inclusive)
        bits: Explicit width in bits (FixedInt, FixedFloat)
        signed: Explicit signedness (FixedInt)
        char: The str field holds a single character (CharField)
    """

    ge: Optional[int | float] = None
    le: Optional[int | float] = None
    bits: Optional[int] = None
    signed: Optional[bool] = None
    char: Optional[bool] = None

    @classmethod
    def from_metadata(cls, metadata: Iterable[Any]) -> Constraints:
        """Collect constraints from annotated-types objects and FieldInfo instances."""
        values: dict[str, Any] = {}
        _collect(metadata, values)
        return cls(**values)

    def merged(self, other: Constraints) -> Constraints:
        """Return these constraints overridden by the ones set in ``other``."""
        updates = {
            item.name: getattr(other, item.name)
            for item in dataclasses.fields(other)
            if getattr(other, item.name) is not None
        }
        return dataclasses.replace(self, **updates)


def _collect(metadata: Iterable[Any], values: dict[str, Any]) -> None:
    for item in metadata:
        if isinstance(item, FieldInfo):
            _collect(item.metadata, values)
            extra = item.json_schema_extra
            if isinstance(extra, dict):
                for key in ("bits", "signed", "char"):
                    if key in extra:
                        values[key] = extra[key]
            continue

        # annotated_types.Ge/Gt/Le/Lt and Interval
        if getattr(item, "ge", None) is not None:
            values["ge"] = item.ge
        if getattr(item, "gt", None) is not None:
            gt = item.gt
            values["ge"] = gt + 1 if isinstance(gt, int) else gt
        if getattr(item, "le", None) is not None:
            values["le"] = item.le
        if getattr(item, "lt", None) is not None:
            lt = item.lt
            values["le"] = lt - 1 if isinstance(lt, int) else lt


@dataclass(frozen=True)
class FieldSchema:
    """Schema information for a single field.

    Attributes:
        name: Field name (also the key written on the wire)
        annotation: Python type annotation
        shape: Data-model shape the field encodes as
        required: Whether the field must be present when decoding
        default: Default value if any
    """

    name: str
    annotation: Any
    shape: Shape
    required: bool
    default: Any

    def describe(self) -> str:
        """Return a one-line description of the field's layout."""
        return describe(self.shape)


class MessageSchema:
    """Schema information for an entire message.

    This class introspects a Pydantic model and derives the shape of each
    field in declaration order.

    Example:
        >>> schema = MessageSchema.from_model(Human)
        >>> for field in schema.fields:
        ...     print(f"{field.name}: {field.describe()}")
        name: string
        age: u8
    """

    def __init__(self, model_class: Type[BaseModel]) -> None:
        """Initialize schema from a Pydantic model.

        Args:
            model_class: Pydantic model class to introspect
        """
        self.model_class = model_class
        self.fields: List[FieldSchema] = []
        self._introspect()

    @classmethod
    def from_model(cls, model_class: Type[BaseModel]) -> MessageSchema:
        """Create a schema from a Pydantic model.

        Args:
            model_class: Pydantic model class

        Returns:
            MessageSchema instance
        """
        return cls(model_class)

    def _introspect(self) -> None:
        """Introspect the model and populate field schemas."""
        for field_name, field_info in self.model_class.model_fields.items():
            self.fields.append(self._extract_field_schema(field_name, field_info))

    def _extract_field_schema(self, name: str, field_info: FieldInfo) -> FieldSchema:
        """Derive the shape of one Pydantic field.

        Raises:
            SchemaError: If the annotation has no data-model mapping
        """
        annotation = field_info.annotation
        if annotation is None:
            raise SchemaError(f"Field {name} has no type annotation")

        try:
            shape = shape_for(annotation, Constraints.from_metadata([field_info]))
        except SchemaError as err:
            err.add_path(name)
            raise

        return FieldSchema(
            name=name,
            annotation=annotation,
            shape=shape,
            required=field_info.is_required(),
            default=None if field_info.is_required() else field_info.default,
        )

    def to_shape(self) -> StructShape:
        """Return the struct shape of the model, built with the model class."""
        return StructShape(
            name=self.model_class.__name__,
            fields=tuple((field.name, field.shape) for field in self.fields),
            build=self.model_class,
        )


def resolve_shape(expected: Any) -> Shape:
    """Return ``expected`` if it is already a Shape, else derive one from it."""
    if isinstance(expected, Shape):
        return expected
    return shape_for(expected)


def shape_of_value(value: Any) -> Shape:
    """Derive a shape from a value's runtime type.

    Raises:
        SchemaError: If the type alone doesn't determine a shape
            (e.g. a bare ``list`` or an EnumValue)
    """
    if value is None:
        return UNIT
    if isinstance(value, EnumValue):
        raise SchemaError("EnumValue has no type to derive from; pass an EnumShape")
    return shape_for(type(value))


def shape_for(annotation: Any, constraints: Optional[Constraints] = None) -> Shape:
    """Map a type annotation onto a data-model shape.

    Args:
        annotation: Type or type annotation (``int``, ``list[UInt8]``, a model class, ...)
        constraints: Field metadata applying to the annotation itself

    Returns:
        The derived shape

    Raises:
        SchemaError: If the annotation has no data-model mapping

    Examples:
        >>> describe(shape_for(dict[str, list[UInt8]]))
        'map<string, seq<u8>>'
        >>> describe(shape_for(Annotated[int, Field(ge=0, le=1000)]))
        'u16'
    """
    c = constraints if constraints is not None else Constraints()
    origin = get_origin(annotation)
    args = get_args(annotation)

    if origin is Annotated:
        return shape_for(args[0], c.merged(Constraints.from_metadata(annotation.__metadata__)))

    if origin is Union or origin is types.UnionType:
        return _union_shape(annotation, args, c)

    if origin is not None:
        return _generic_shape(annotation, origin, args)

    if annotation is None or annotation is type(None):
        return UNIT
    if annotation is bool:
        return BOOL
    if annotation is int:
        return _int_shape(c)
    if annotation is float:
        if c.bits is None:
            return FLOATS[64]
        if c.bits not in FLOATS:
            raise SchemaError(f"Float width must be 32 or 64 bits, got {c.bits}")
        return FLOATS[c.bits]
    if annotation is str:
        return CHAR if c.char else STRING
    if annotation in (bytes, bytearray):
        return BYTES
    if annotation in (list, tuple, dict):
        raise SchemaError(f"Bare {annotation.__name__} needs type parameters")

    if isinstance(annotation, type):
        return _class_shape(annotation)

    raise SchemaError(f"Unsupported type annotation {annotation!r}")


def _int_shape(c: Constraints) -> Primitive:
    if c.bits is not None:
        shape = INTEGERS.get((c.bits, bool(c.signed)))
        if shape is None:
            raise SchemaError(f"Integer width must be 8, 16, 32 or 64 bits, got {c.bits}")
        return shape

    lo = None if c.ge is None else int(c.ge)
    hi = None if c.le is None else int(c.le)
    if lo is not None and hi is not None and lo > hi:
        raise SchemaError(f"Invalid bounds: min={lo} > max={hi}")

    # A missing bound is open-ended, so only the widest width holds it.
    if lo is None:
        candidates: tuple[Primitive, ...] = (I64,)
    elif hi is None:
        candidates = (U64,) if lo >= 0 else (I64,)
    elif lo >= 0:
        candidates = _UNSIGNED
    else:
        candidates = _SIGNED

    for shape in candidates:
        if (lo is None or lo >= shape.min_value) and (hi is None or hi <= shape.max_value):
            return shape
    raise SchemaError(f"Bounds [{lo}, {hi}] do not fit in a 64-bit integer")


def _generic_shape(annotation: Any, origin: Any, args: tuple[Any, ...]) -> Shape:
    if origin in _SEQUENCE_ORIGINS:
        if len(args) != 1:
            raise SchemaError(f"{annotation!r} needs exactly one element type")
        return SeqShape(shape_for(args[0]))

    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return SeqShape(shape_for(args[0]), build=tuple)
        if not args or args == ((),):
            return TupleShape(())
        return TupleShape(tuple(shape_for(arg) for arg in args))

    if origin in _MAPPING_ORIGINS:
        if len(args) != 2:
            raise SchemaError(f"{annotation!r} needs key and value types")
        return MapShape(shape_for(args[0]), shape_for(args[1]))

    raise SchemaError(f"Unsupported type annotation {annotation!r}")


def _union_shape(annotation: Any, args: tuple[Any, ...], c: Constraints) -> Shape:
    members = [arg for arg in args if arg is not type(None)]
    optional = len(members) < len(args)

    if len(members) == 1:
        inner = shape_for(members[0], c)
    else:
        inner = _variant_union_shape(annotation, members)

    if not optional:
        return inner

    if not isinstance(inner, DeferredShape) and can_begin_with_unit(inner):
        raise SchemaError(
            f"Optional[{describe(inner)}] is ambiguous on the wire; use "
            f"OptionShape({describe(inner)}, present=...) with an explicit shape"
        )
    return OptionShape(inner)


def _variant_union_shape(annotation: Any, members: list[Any]) -> EnumShape:
    variants = []
    for member in members:
        payload = shape_for(member)
        runtime = _runtime_type(member)
        name = getattr(runtime, "__name__", repr(member))
        if any(variant.python_type is runtime for variant in variants):
            raise SchemaError(
                f"Union members {annotation!r} share the runtime type {name}; "
                "use an EnumShape with a select callable"
            )

        if _is_struct_class(runtime):
            kind = VariantKind.STRUCT
        elif isinstance(payload, TupleShape):
            kind = VariantKind.TUPLE
        else:
            kind = VariantKind.NEWTYPE

        variants.append(
            Variant(name, kind=kind, payload=payload, build=_identity, python_type=runtime)
        )

    names = " | ".join(variant.name for variant in variants)
    return EnumShape(names, tuple(variants))


def _runtime_type(annotation: Any) -> Any:
    while get_origin(annotation) is Annotated:
        annotation = get_args(annotation)[0]
    origin = get_origin(annotation)
    if origin is not None:
        return origin
    if annotation is None:
        return type(None)
    return annotation


def _is_struct_class(tp: Any) -> bool:
    if not isinstance(tp, type):
        return False
    if issubclass(tp, BaseModel):
        return not issubclass(tp, RootModel)
    return dataclasses.is_dataclass(tp)


def _identity(value: Any) -> Any:
    return value


def _class_shape(cls: Any) -> Shape:
    cached = _CACHE.get(cls)
    if cached is not None:
        return cached

    with _LOCK:
        if cls in _CACHE:
            return _CACHE[cls]
        if cls in _IN_PROGRESS:
            return _IN_PROGRESS[cls]

        name = getattr(cls, "__name__", repr(cls))
        _IN_PROGRESS[cls] = DeferredShape(name, lambda: _finished(cls))
        try:
            shape = _derive_class(cls)
        finally:
            del _IN_PROGRESS[cls]

        _CACHE[cls] = shape
    logger.debug("derived shape for %s: %s", name, describe(shape))
    return shape


def _finished(cls: type) -> Shape:
    try:
        return _CACHE[cls]
    except KeyError as err:
        raise SchemaError(f"Shape of {cls.__name__} is still being derived") from err


def _derive_class(cls: Any) -> Shape:
    if isinstance(cls, Serializable):
        shape = cls.__tagless_shape__()
        if not isinstance(shape, Shape):
            raise SchemaError(f"{cls.__name__}.__tagless_shape__() must return a Shape")
        return shape

    if isinstance(cls, type) and issubclass(cls, enum.Enum):
        return _enum_shape(cls)

    if isinstance(cls, type) and issubclass(cls, RootModel):
        root = cls.model_fields["root"]
        if root.annotation is None:
            raise SchemaError(f"{cls.__name__} has no root annotation")
        inner = shape_for(root.annotation, Constraints.from_metadata([root]))
        return NewtypeShape(cls.__name__, inner, build=cls, unwrap=_root_of)

    if isinstance(cls, type) and issubclass(cls, BaseModel):
        return MessageSchema.from_model(cls).to_shape()

    if dataclasses.is_dataclass(cls):
        return _dataclass_shape(cls)

    raise SchemaError(f"Unsupported type {getattr(cls, '__name__', cls)!r}")


def _root_of(value: Any) -> Any:
    return value.root


def _enum_shape(cls: Type[enum.Enum]) -> EnumShape:
    members = list(cls)
    if not members:
        raise SchemaError(f"Enum {cls.__name__} has no values")
    variants = tuple(
        Variant(member.name, build=_member_builder(member)) for member in members
    )
    return EnumShape(cls.__name__, variants)


def _member_builder(member: enum.Enum) -> Any:
    def build(_payload: Any) -> enum.Enum:
        return member

    return build


def _dataclass_shape(cls: type) -> StructShape:
    try:
        hints = typing.get_type_hints(cls, include_extras=True)
    except NameError as err:
        raise SchemaError(f"Cannot resolve annotations of {cls.__name__}: {err}") from err

    fields = []
    for item in dataclasses.fields(cls):
        if not item.init:
            continue
        try:
            fields.append((item.name, shape_for(hints[item.name])))
        except SchemaError as err:
            err.add_path(item.name)
            raise
    return StructShape(cls.__name__, tuple(fields), build=cls)
