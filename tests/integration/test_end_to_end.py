"""End-to-end integration tests."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import ClassVar, Optional, Union

import pytest
from pydantic import Field

from tagless import (
    BaseMessage,
    ByteCursor,
    ByteSink,
    CodecConfig,
    Decoder,
    Encoder,
    Float32,
    Int32,
    SinkExhausted,
    UInt8,
    UInt16,
    decode,
    encode,
    encoded_size,
    field_sizes,
    min_encoded_size,
    shape_for,
)


class MissionPhase(enum.Enum):
    """Mission phase enum."""

    STARTUP = 1
    TRANSIT = 2
    SURVEY = 3
    RETURN = 4
    SHUTDOWN = 5


class Coordinates(BaseMessage):
    """Small nested struct."""

    a: UInt8
    b: UInt16


class Person(BaseMessage):
    """Record mixing every kind of field."""

    name: str
    age: UInt8
    is_human: bool
    languages: list[str]
    hey: Int32
    scores: dict[str, Int32]
    field1: Union[Coordinates, UInt8]
    field2: Optional[Union[Coordinates, UInt8]] = None
    some_struct: Coordinates


class StatusReport(BaseMessage):
    """Vehicle status report."""

    vehicle: str = Field(description="Vehicle name")
    mission_phase: MissionPhase = Field(description="Current mission phase")
    depth_cm: int = Field(ge=0, le=10000, description="Depth in centimeters")
    heading: Float32 = Field(description="Heading in degrees")
    battery_pct: int = Field(ge=0, le=100, description="Battery percentage")
    emergency: bool = Field(description="Emergency flag")
    notes: Optional[str] = None

    tagless_max_bytes: ClassVar[Optional[int]] = 160


@dataclass
class Reading:
    """Plain dataclass carried inside a message."""

    sensor: str
    value: float


class Batch(BaseMessage):
    """Message mixing models, dataclasses and raw bytes."""

    readings: list[Reading]
    raw: bytes
    status: Optional[StatusReport] = None


def _person() -> Person:
    return Person(
        name="Ayush",
        age=19,
        is_human=True,
        languages=["English", "Hindi"],
        hey=-123,
        scores={"one": 1, "two": 2},
        field1=Coordinates(a=1, b=2),
        field2=None,
        some_struct=Coordinates(a=1, b=2),
    )


def _status() -> StatusReport:
    return StatusReport(
        vehicle="AUV-7",
        mission_phase=MissionPhase.SURVEY,
        depth_cm=2500,
        heading=270.5,
        battery_pct=87,
        emergency=False,
    )


class TestEndToEndWorkflow:
    """Test complete end-to-end workflows."""

    def test_person_workflow(self) -> None:
        """Test the mixed record from encode to decode."""
        person = _person()
        data = encode(person)

        assert data[0] == 0xFC and data[-1] == 0xFF
        assert b"\xf6hey\xf6\xfe\x85\xff\xff\xff" in data
        # field1 is the Coordinates variant (index 0), field2 is absent
        assert b"\xf6field1\xf6\xfe\x00\x00\x00\x00\xfc" in data
        assert b"\xf6field2\xf6\xfe\xf5" in data

        assert decode(Person, data) == person

    def test_union_newtype_variant(self) -> None:
        """Test the integer variant of the union fields."""
        person = _person().model_copy(update={"field1": 7, "field2": 9})
        data = encode(person)

        assert b"\xf6field1\xf6\xfe\x01\x00\x00\x00\x07" in data
        assert b"\xf6field2\xf6\xfe\x01\x00\x00\x00\x09" in data
        assert decode(Person, data) == person

    def test_status_report_workflow(self) -> None:
        """Test complete status report workflow."""
        status = _status()

        size = encoded_size(status)
        assert min_encoded_size(StatusReport) <= size <= 160

        sizes = field_sizes(status)
        assert list(sizes) == [
            "vehicle",
            "mission_phase",
            "depth_cm",
            "heading",
            "battery_pct",
            "emergency",
            "notes",
        ]

        data = encode(status)
        assert len(data) == size == sum(sizes.values()) + 2

        decoded = decode(StatusReport, data)
        assert decoded == status
        assert decoded.mission_phase is MissionPhase.SURVEY

    def test_nested_models_and_dataclasses(self) -> None:
        """Test models, dataclasses and bytes nested in one message."""
        batch = Batch(
            readings=[Reading("temp", 4.5), Reading("salinity", 35.1)],
            raw=bytes(range(240, 256)),
            status=_status(),
        )

        decoded = decode(Batch, encode(batch))

        assert decoded == batch
        assert decoded.readings[1] == Reading("salinity", 35.1)
        assert decoded.raw == bytes(range(240, 256))

    def test_size_limit_on_nested_status(self) -> None:
        """Test the top-level limit from the config."""
        batch = Batch(readings=[], raw=b"", status=_status())

        with pytest.raises(SinkExhausted):
            encode(batch, config=CodecConfig(max_bytes=32))


class TestStreaming:
    """Test driving Encoder and Decoder directly."""

    def test_multiple_values_in_one_buffer(self) -> None:
        """Test values written back to back decode in order."""
        sink = ByteSink()
        encoder = Encoder(sink)
        encoder.encode_value(_status(), shape_for(StatusReport))
        encoder.encode_value(_person(), shape_for(Person))

        cursor = ByteCursor(sink.to_bytes())
        decoder = Decoder(cursor)

        assert decoder.decode_value(shape_for(StatusReport)) == _status()
        assert decoder.decode_value(shape_for(Person)) == _person()
        assert cursor.remaining() == 0

    def test_decode_prefix_with_trailing_allowed(self) -> None:
        """Test reading a value from the front of a longer buffer."""
        data = encode(_status()) + b"\x00\x01"

        decoded = decode(StatusReport, data, config=CodecConfig(allow_trailing=True))

        assert decoded == _status()
