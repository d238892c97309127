"""Message analysis CLI command."""

from __future__ import annotations

import importlib.util
import inspect
import sys
from pathlib import Path

from ..codec.schema import MessageSchema
from ..models.base import BaseMessage
from ..utils.sizing import min_encoded_size


def analyze_file(file_path: Path) -> None:
    """Analyze all BaseMessage classes in a Python file.

    Args:
        file_path: Path to Python file containing message definitions
    """
    spec = importlib.util.spec_from_file_location("user_module", file_path)
    if spec is None or spec.loader is None:
        raise ValueError(f"Could not load module from {file_path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules["user_module"] = module
    spec.loader.exec_module(module)

    # Only classes defined in this file (not imported)
    message_classes = [
        obj
        for _name, obj in inspect.getmembers(module, inspect.isclass)
        if obj is not BaseMessage
        and issubclass(obj, BaseMessage)
        and obj.__module__ == "user_module"
    ]

    if not message_classes:
        print(f"No BaseMessage classes found in {file_path}")
        return

    print("|" * 7, "tagless: Non-self-describing binary serialization", "|" * 7)
    print(f"{len(message_classes)} message{'s' if len(message_classes) != 1 else ''} loaded.")
    print("Sizes are minimum encoded bytes (empty strings and collections, absent options).")
    print()

    for msg_class in message_classes:
        analyze_message_class(msg_class)


def analyze_message_class(msg_class: type[BaseMessage]) -> None:
    """Analyze a single message class and print its field layout.

    Args:
        msg_class: Message class to analyze
    """
    print(f"{'=' * 19} {msg_class.__name__} {'=' * 19}")

    schema = MessageSchema.from_model(msg_class)
    total = min_encoded_size(msg_class)
    max_bytes = msg_class.tagless_max_bytes

    print(f"Minimum size of message: {total} bytes")
    print(f"        map delimiters{'.' * 24}2")
    if max_bytes is not None:
        print(f"Allowed maximum size of message: {max_bytes} bytes")
    print()

    print(f"{'-' * 27} Fields {'-' * 27}")
    for i, field_schema in enumerate(schema.fields, 1):
        # Entry: MAP_KEY, the name string, MAP_VALUE, then the value
        size = 4 + len(field_schema.name.encode("utf-8")) + min_encoded_size(field_schema.shape)
        field_desc = f"{i}. {field_schema.name}"
        dots = "." * max(1, 54 - len(field_desc) - len(str(size)) - len(" bytes"))
        print(f"        {field_desc}{dots}{size} bytes  {field_schema.describe()}")

    print()
