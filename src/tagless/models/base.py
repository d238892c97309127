"""Base message class and tagless-specific Pydantic configuration.

This module provides the BaseMessage class that tagless messages usually
inherit from. Plain Pydantic models and dataclasses encode too; BaseMessage
adds the size limit and the stricter model configuration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import BaseModel, ConfigDict

from ..exceptions import SchemaError

if TYPE_CHECKING:
    from ..codec.shapes import Shape


class BaseMessage(BaseModel):
    """Base class for tagless messages.

    Fields are encoded in declaration order as a map keyed by field name.
    Integer widths come from the field annotation (``UInt8``, ``Int32``, ...)
    or from ``ge``/``le`` bounds; unbounded ``int`` fields are 64-bit.

    Example:
        >>> from typing import ClassVar, Optional
        >>> from pydantic import Field
        >>> class StatusReport(BaseMessage):
        ...     vehicle: str
        ...     depth_cm: int = Field(ge=0, le=10000)
        ...     battery_pct: UInt8
        ...
        ...     tagless_max_bytes: ClassVar[Optional[int]] = 64

    Attributes:
        tagless_max_bytes: Maximum encoded size in bytes (optional). Encoding
            a larger message raises SinkExhausted.
    """

    model_config = ConfigDict(
        strict=False,
        arbitrary_types_allowed=True,
        validate_assignment=True,
        extra="forbid",
    )

    tagless_max_bytes: ClassVar[int | None] = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        """Validate tagless class options when a subclass is created."""
        super().__init_subclass__(**kwargs)

        limit = cls.tagless_max_bytes
        if limit is not None and (not isinstance(limit, int) or limit <= 0):
            raise SchemaError(
                f"{cls.__name__}.tagless_max_bytes must be a positive int, got {limit!r}"
            )

    @classmethod
    def __tagless_shape__(cls) -> Shape:
        """Return the struct shape derived from the model's fields."""
        from ..codec.schema import MessageSchema

        return MessageSchema.from_model(cls).to_shape()
