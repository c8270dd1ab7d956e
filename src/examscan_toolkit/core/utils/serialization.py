"""
Serialization Utilities

to/from JSON helpers for the frozen record dataclasses.

- ``record_to_dict()`` flattens dates to ISO strings, enums to their values,
  paths to strings and sets/tuples to lists.
- ``record_from_dict()`` rebuilds the dataclass using its type hints, so the
  JSON files written by the record store never carry type tags.
"""

from __future__ import annotations

import dataclasses
import typing
from datetime import datetime
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Type, TypeVar

T = TypeVar("T")


def record_to_dict(record: Any) -> Dict[str, Any]:
    """
    Serialize a record dataclass to a JSON-ready dictionary.

    Args:
        record: Dataclass instance (Exam, Submission, Page, ...)

    Returns:
        Dictionary of plain JSON values
    """
    if not dataclasses.is_dataclass(record):
        raise TypeError(f"Not a dataclass instance: {record!r}")
    return {
        f.name: _to_json(getattr(record, f.name))
        for f in dataclasses.fields(record)
    }


def record_from_dict(cls: Type[T], data: Dict[str, Any]) -> T:
    """
    Deserialize a record dataclass.

    Unknown keys are ignored; missing keys fall back to field defaults.

    Raises:
        ValueError: If a required field is missing
    """
    hints = _type_hints(cls)
    kwargs: Dict[str, Any] = {}
    for f in dataclasses.fields(cls):
        if f.name not in data:
            if f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
                raise ValueError(f"{cls.__name__}: missing field {f.name!r}")
            continue
        kwargs[f.name] = _from_json(hints[f.name], data[f.name])
    return cls(**kwargs)


@lru_cache(maxsize=None)
def _type_hints(cls: type) -> Dict[str, Any]:
    return typing.get_type_hints(cls)


def _to_json(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, (set, frozenset)):
        return sorted(_to_json(v) for v in value)
    if isinstance(value, (list, tuple)):
        return [_to_json(v) for v in value]
    return value


def _from_json(tp: Any, value: Any) -> Any:
    if value is None:
        return None

    origin = typing.get_origin(tp)
    args = typing.get_args(tp)

    if origin is typing.Union:
        inner = [a for a in args if a is not type(None)]
        return _from_json(inner[0], value) if inner else value
    if origin in (tuple, typing.Tuple):
        item_type = args[0] if args else Any
        return tuple(_from_json(item_type, v) for v in value)
    if origin in (frozenset, typing.FrozenSet):
        item_type = args[0] if args else Any
        return frozenset(_from_json(item_type, v) for v in value)
    if origin in (list, typing.List):
        item_type = args[0] if args else Any
        return [_from_json(item_type, v) for v in value]

    if isinstance(tp, type):
        if issubclass(tp, Enum):
            return tp(value)
        if issubclass(tp, datetime):
            return datetime.fromisoformat(value)
        if issubclass(tp, Path):
            return Path(value)
        if tp is float:
            return float(value)
    return value
