#!/usr/bin/env python3
"""Basic usage example for tagless.

This example demonstrates:
1. Defining messages with Pydantic
2. Encoding to the tagless binary format
3. Decoding back to a Pydantic model
4. Inspecting the wire layout and sizes
"""

from __future__ import annotations

from typing import Optional, Union

from tagless import (
    BaseMessage,
    Int32,
    UInt8,
    UInt16,
    decode,
    describe,
    encode,
    encoded_size,
    field_sizes,
    shape_for,
)


class Coordinates(BaseMessage):
    """Two small unsigned values."""

    a: UInt8
    b: UInt16


class Person(BaseMessage):
    """A person record mixing every kind of field."""

    name: str
    age: UInt8
    is_human: bool
    languages: list[str]
    hey: Int32
    scores: dict[str, Int32]
    field1: Union[Coordinates, UInt8]
    field2: Optional[Union[Coordinates, UInt8]] = None
    some_struct: Coordinates


def main() -> None:
    """Run the basic usage example."""
    print("=" * 60)
    print("tagless Basic Usage Example")
    print("=" * 60)
    print()

    print("1. Creating a person...")
    person = Person(
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
    print(f"   {person!r}")
    print()

    print("2. Wire layout...")
    print(f"   {describe(shape_for(Person))}")
    print()

    print("3. Encoding...")
    data = encode(person)
    print(f"   Encoded size: {len(data)} bytes")
    print(f"   Hex: {data.hex(' ')}")
    print()

    print("4. Field entry sizes...")
    for field_name, size in field_sizes(person).items():
        print(f"   {field_name}: {size} bytes")
    print(f"   Total (with map delimiters): {encoded_size(person)} bytes")
    print()

    print("5. Decoding...")
    decoded = decode(Person, data)
    print(f"   {decoded!r}")
    print()

    print("6. Verifying round-trip...")
    if decoded == person:
        print("   Round-trip successful")
    else:
        print("   Round-trip FAILED")
    print()


if __name__ == "__main__":
    main()
