"""Tests for CLI tool."""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path

import pytest

EXAMPLES = Path(__file__).resolve().parents[2] / "examples"

MESSAGES = '''
from typing import ClassVar, Optional

from tagless import BaseMessage, UInt8


class Human(BaseMessage):
    name: str
    age: UInt8

    tagless_max_bytes: ClassVar[Optional[int]] = 64
'''


def _run(*args: str) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        [sys.executable, "-m", "tagless.cli.main", *args],
        capture_output=True,
        text=True,
    )


def test_cli_help() -> None:
    """Test CLI --help flag."""
    result = _run("--help")
    assert result.returncode == 0
    assert "tagless: Non-self-describing binary serialization" in result.stdout
    assert "--analyze" in result.stdout


def test_cli_version() -> None:
    """Test CLI --version flag."""
    result = _run("--version")
    assert result.returncode == 0
    assert "tagless 0.1.0" in result.stdout


def test_cli_analyze_file(tmp_path: Path) -> None:
    """Test CLI --analyze prints each field's layout."""
    messages = tmp_path / "messages.py"
    messages.write_text(MESSAGES)

    result = _run("--analyze", str(messages))
    assert result.returncode == 0
    assert "1 message loaded." in result.stdout
    assert "Human" in result.stdout
    assert "Minimum size of message: 20 bytes" in result.stdout
    assert "Allowed maximum size of message: 64 bytes" in result.stdout
    assert "10 bytes  string" in result.stdout
    assert "8 bytes  u8" in result.stdout


def test_cli_analyze_example_file() -> None:
    """Test CLI --analyze with a real example file."""
    example_file = EXAMPLES / "basic_usage.py"
    if not example_file.exists():
        pytest.skip("Example file not found")

    result = _run("--analyze", str(example_file))
    assert result.returncode == 0
    assert "messages loaded" in result.stdout
    assert "Person" in result.stdout


def test_cli_verbose_logs_derivation(tmp_path: Path) -> None:
    """Test -v turns on debug logging."""
    messages = tmp_path / "messages.py"
    messages.write_text(MESSAGES)

    result = _run("-v", "--analyze", str(messages))
    assert result.returncode == 0
    assert "derived shape for Human" in result.stderr


def test_cli_analyze_no_messages(tmp_path: Path) -> None:
    """Test a file without message classes."""
    empty = tmp_path / "empty.py"
    empty.write_text("X = 1\n")

    result = _run("--analyze", str(empty))
    assert result.returncode == 0
    assert "No BaseMessage classes found" in result.stdout


def test_cli_analyze_missing_file() -> None:
    """Test CLI --analyze with missing file."""
    result = _run("--analyze", "nonexistent.py")
    assert result.returncode == 1
    assert "not found" in result.stderr.lower()


def test_cli_analyze_broken_file(tmp_path: Path) -> None:
    """Test a file whose messages can't be mapped."""
    broken = tmp_path / "broken.py"
    broken.write_text(
        "from tagless import BaseMessage\n\n\nclass Bag(BaseMessage):\n    items: set[int]\n"
    )

    result = _run("--analyze", str(broken))
    assert result.returncode == 1
    assert "Error analyzing file" in result.stderr
