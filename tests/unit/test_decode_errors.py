"""Unit tests for decode error handling."""

from __future__ import annotations

import enum
from typing import Optional

import pytest

from tagless import (
    BOOL,
    CHAR,
    U8,
    BaseMessage,
    CodecConfig,
    DecodeError,
    EncodeError,
    EnumShape,
    InvalidValue,
    MalformedDelimiter,
    NestingTooDeep,
    SeqShape,
    TrailingData,
    UInt8,
    UnexpectedEndOfInput,
    UnknownVariantIndex,
    UnterminatedSpan,
    Variant,
    decode,
    encode,
)


class Direction(enum.Enum):
    """Test enum with four unit variants."""

    NORTH = 0
    EAST = 1
    SOUTH = 2
    WEST = 3


class Human(BaseMessage):
    """Two-field message."""

    name: str
    age: UInt8


class Team(BaseMessage):
    """Message nesting other messages."""

    members: list[Human]


class Link(BaseMessage):
    """Self-referencing chain; each link nests one struct deeper."""

    value: UInt8
    next: Optional[Link] = None


def _chain(length: int) -> Link:
    node = None
    for index in range(length):
        node = Link(value=index % 256, next=node)
    assert node is not None
    return node


class TestTruncation:
    """Test every proper prefix of a valid encoding is rejected."""

    def test_human_prefixes(self, human_bytes: bytes) -> None:
        """Test truncated struct encodings."""
        for end in range(len(human_bytes)):
            with pytest.raises(DecodeError):
                decode(Human, human_bytes[:end])

    def test_empty_input(self) -> None:
        """Test decoding nothing."""
        with pytest.raises(UnexpectedEndOfInput) as excinfo:
            decode(UInt8, b"")

        assert excinfo.value.position == 0

    def test_short_primitive(self) -> None:
        """Test a u32 variant index cut short."""
        with pytest.raises(UnexpectedEndOfInput, match="need 4 bytes, have 2"):
            decode(Direction, b"\x02\x00")

    def test_unterminated_string(self) -> None:
        """Test a string missing its closing delimiter."""
        with pytest.raises(UnterminatedSpan, match="string"):
            decode(str, b"\xf6Ayu")

    def test_unterminated_bytes(self) -> None:
        """Test a byte blob missing its closing delimiter."""
        with pytest.raises(UnterminatedSpan, match="bytes"):
            decode(bytes, b"\xf7\x01\x02")


class TestMalformedInput:
    """Test well-sized input with the wrong structure."""

    def test_wrong_opening_delimiter(self, human_bytes: bytes) -> None:
        """Test a struct that doesn't start with MAP_START."""
        with pytest.raises(MalformedDelimiter, match="MAP_START") as excinfo:
            decode(Human, b"\xf9" + human_bytes[1:])

        assert excinfo.value.found == 0xF9
        assert excinfo.value.position == 0

    def test_sequence_missing_separator(self) -> None:
        """Test a sequence element without its SEQ_VALUE marker."""
        with pytest.raises(MalformedDelimiter, match="SEQ_VALUE or SEQ_END") as excinfo:
            decode(list[UInt8], b"\xf9\x01\xfb")

        assert excinfo.value.position == 1

    def test_tuple_too_short(self) -> None:
        """Test a tuple that ends before its arity."""
        with pytest.raises(MalformedDelimiter, match="SEQ_VALUE"):
            decode(tuple[UInt8, UInt8], b"\xf9\xfa\x01\xfb")

    def test_tuple_too_long(self) -> None:
        """Test a tuple with an extra element."""
        with pytest.raises(MalformedDelimiter, match="SEQ_END"):
            decode(tuple[UInt8], b"\xf9\xfa\x01\xfa\x02\xfb")

    def test_unknown_variant_index(self) -> None:
        """Test an enum index outside the declared variants."""
        with pytest.raises(UnknownVariantIndex) as excinfo:
            decode(Direction, b"\x04\x00\x00\x00")

        assert excinfo.value.index == 4
        assert excinfo.value.variant_count == 4
        assert "Direction" in str(excinfo.value)

    def test_invalid_bool(self) -> None:
        """Test a bool byte other than 0 or 1."""
        with pytest.raises(InvalidValue, match="bool"):
            decode(BOOL, b"\x02")

    def test_invalid_char(self) -> None:
        """Test surrogates and out-of-range code points."""
        with pytest.raises(InvalidValue, match="code point"):
            decode(CHAR, b"\x00\xd8\x00\x00")

        with pytest.raises(InvalidValue, match="code point"):
            decode(CHAR, b"\x00\x00\x11\x00")

    def test_invalid_utf8(self) -> None:
        """Test a string span that isn't UTF-8."""
        with pytest.raises(InvalidValue, match="UTF-8"):
            decode(str, b"\xf6\xc3\x28\xf6")

    def test_unknown_field(self) -> None:
        """Test a struct key the model doesn't declare."""
        data = encode({"height": 3}, dict[str, UInt8])

        with pytest.raises(InvalidValue, match="Human has no field 'height'"):
            decode(Human, data)

    def test_duplicate_field(self) -> None:
        """Test a struct key given twice."""
        data = encode([("age", 1), ("age", 2)], dict[str, UInt8])

        with pytest.raises(InvalidValue, match="Duplicate field 'age'"):
            decode(Human, data)

    def test_missing_field(self) -> None:
        """Test the model's own validation rejects a missing field."""
        data = encode({"name": "Ayush"}, dict[str, str])

        with pytest.raises(InvalidValue, match="Failed to construct Human") as excinfo:
            decode(Human, data)

        assert isinstance(excinfo.value.__cause__, ValueError)

    def test_fields_in_any_order(self) -> None:
        """Test fields are matched by name rather than position."""
        data = (
            b"\xfc\xfd\xf6age\xf6\xfe\x13"
            b"\xfd\xf6name\xf6\xfe\xf6Ayush\xf6\xff"
        )

        assert decode(Human, data) == Human(name="Ayush", age=19)

    def test_error_path(self) -> None:
        """Test decode errors report the element that failed."""
        team = Team(members=[Human(name="a", age=1), Human(name="b", age=2)])
        # Make the second member's name invalid UTF-8
        data = encode(team).replace(b"\xf6b\xf6", b"\xf6\xc3\xf6")

        with pytest.raises(InvalidValue) as excinfo:
            decode(Team, data)

        assert excinfo.value.location() == "members[1].name"


class TestLimits:
    """Test configuration limits."""

    def test_trailing_data(self) -> None:
        """Test leftover bytes after a complete value."""
        with pytest.raises(TrailingData) as excinfo:
            decode(UInt8, b"\x01\x02")

        assert excinfo.value.remaining == 1
        assert decode(UInt8, b"\x01\x02", config=CodecConfig(allow_trailing=True)) == 1

    def test_nesting_too_deep(self) -> None:
        """Test deeply nested input is refused."""
        shape = SeqShape(SeqShape(SeqShape(SeqShape(U8))))
        data = encode([[[[1]]]], shape)

        assert decode(shape, data, config=CodecConfig(max_depth=4)) == [[[[1]]]]

        with pytest.raises(NestingTooDeep):
            decode(shape, data, config=CodecConfig(max_depth=3))

    def test_encode_nesting_matches_decode(self) -> None:
        """Test encode refuses exactly the nesting decode would refuse."""
        chain = _chain(10)
        data = encode(chain, config=CodecConfig(max_depth=10))

        assert decode(Link, data, config=CodecConfig(max_depth=10)) == chain

        with pytest.raises(EncodeError, match="Nesting deeper than 9 levels"):
            encode(chain, config=CodecConfig(max_depth=9))

        with pytest.raises(NestingTooDeep):
            decode(Link, data, config=CodecConfig(max_depth=9))

    def test_default_depth_round_trip(self) -> None:
        """Test the deepest chain allowed by default encodes and decodes."""
        chain = _chain(128)

        assert decode(Link, encode(chain)) == chain

        with pytest.raises(EncodeError, match="Nesting deeper than 128 levels"):
            encode(_chain(129))

    def test_very_deep_value(self) -> None:
        """Test a chain far past the limit fails with a codec error."""
        with pytest.raises(EncodeError):
            encode(_chain(2000))

    def test_invalid_config(self) -> None:
        """Test configuration validation."""
        with pytest.raises(ValueError, match="max_depth"):
            CodecConfig(max_depth=0)

        with pytest.raises(ValueError, match="max_bytes"):
            CodecConfig(max_bytes=-1)

    def test_enum_build_failure(self) -> None:
        """Test a variant constructor rejecting its payload."""

        def reject(_payload: object) -> object:
            raise ValueError("not today")

        shape = EnumShape("Gate", (Variant("Closed", build=reject),))

        with pytest.raises(InvalidValue, match="Failed to construct Gate.Closed: not today"):
            decode(shape, b"\x00\x00\x00\x00")
