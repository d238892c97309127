"""Codec configuration.

This module provides the configuration dataclass shared by encode() and
decode(). Every field has a safe default, so passing no config is the
common case.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CodecConfig:
    """Limits applied to a single encode or decode call.

    Attributes:
        max_bytes: Maximum encoded size in bytes (default None = unlimited).
            Exceeding it while encoding raises SinkExhausted. When unset,
            a model's ``tagless_max_bytes`` class variable applies.

        max_depth: Maximum nesting of composite values (default 128).
            Exceeding it raises EncodeError when encoding and NestingTooDeep
            when decoding.

        allow_trailing: Accept bytes left over after the top-level value
            (default False, which raises TrailingData).

    Examples:
        ```python
        from tagless import CodecConfig, decode, encode

        # Refuse to produce anything longer than one 64-byte frame
        data = encode(msg, config=CodecConfig(max_bytes=64))

        # Parse a value from the front of a longer buffer
        value = decode(Status, buffer, config=CodecConfig(allow_trailing=True))
        ```
    """

    max_bytes: Optional[int] = None
    max_depth: int = 128
    allow_trailing: bool = False

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if self.max_bytes is not None and self.max_bytes <= 0:
            raise ValueError(f"max_bytes must be > 0, got {self.max_bytes}")

        if self.max_depth <= 0:
            raise ValueError(f"max_depth must be > 0, got {self.max_depth}")


DEFAULT_CONFIG = CodecConfig()
