"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import pytest


@pytest.fixture
def human_bytes() -> bytes:
    """Encoding of Human(name="Ayush", age=19)."""
    return bytes(
        [0xFC, 0xFD, 0xF6]
        + list(b"name")
        + [0xF6, 0xFE, 0xF6]
        + list(b"Ayush")
        + [0xF6, 0xFD, 0xF6]
        + list(b"age")
        + [0xF6, 0xFE, 0x13, 0xFF]
    )


@pytest.fixture
def sample_payload() -> bytes:
    """Byte blob containing both bytes that need escaping."""
    return b"\x00\xf7hello\xf8\xff"
