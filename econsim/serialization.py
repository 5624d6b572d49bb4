"""Shared serialization utilities for stores and sinks."""

import types
from dataclasses import fields, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, TypeVar, Union, get_args, get_origin, get_type_hints

T = TypeVar("T")


def to_dict(obj: Any) -> dict:
    """Convert object to dictionary."""
    if is_dataclass(obj):
        return dataclass_to_dict(obj)
    elif isinstance(obj, dict):
        return {k: serialize_value(v) for k, v in obj.items()}
    else:
        return {"value": str(obj)}


def dataclass_to_dict(obj: Any) -> dict:
    """Convert a dataclass without deep copy.

    Uses ``dataclasses.fields()`` + ``getattr`` instead of ``asdict()``
    so nested dataclasses are serialized through ``serialize_value``.
    """
    return {f.name: serialize_value(getattr(obj, f.name)) for f in fields(obj)}


def serialize_value(value: Any) -> Any:
    """Serialize a value for JSON output."""
    if isinstance(value, Decimal):
        return str(value)
    elif isinstance(value, Enum):
        return value.value
    elif isinstance(value, datetime):
        return value.isoformat()
    elif isinstance(value, date):
        return value.isoformat()
    elif is_dataclass(value) and not isinstance(value, type):
        return dataclass_to_dict(value)
    elif isinstance(value, dict):
        return {k: serialize_value(v) for k, v in value.items()}
    elif isinstance(value, (list, tuple)):
        return [serialize_value(v) for v in value]
    return value


def decimal_to_number(value: Decimal) -> int | float:
    """Convert a validated money value to a JSON number.

    Whole amounts become ``int``; the rest ``float``, which round-trips
    exactly through ``Decimal(str(value))`` for two-decimal values below
    the ledger ceiling.
    """
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def to_record(obj: Any) -> dict:
    """Convert a dataclass for storage, keeping money as JSON numbers."""
    return {f.name: _record_value(getattr(obj, f.name)) for f in fields(obj)}


def _record_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return decimal_to_number(value)
    elif is_dataclass(value) and not isinstance(value, type):
        return to_record(value)
    elif isinstance(value, dict):
        return {k: _record_value(v) for k, v in value.items()}
    elif isinstance(value, (list, tuple)):
        return [_record_value(v) for v in value]
    return serialize_value(value)


def from_dict(cls: type[T], data: dict[str, Any]) -> T:
    """Build a dataclass instance from its ``to_dict`` form.

    Keys missing from ``data`` fall back to the field default; unknown keys
    are ignored.

    Parameters
    ----------
    cls : type
        Target dataclass.
    data : dict
        Serialized representation.

    Returns
    -------
    T
        Instance of ``cls``.
    """
    hints = get_type_hints(cls)
    kwargs = {}
    for f in fields(cls):
        if f.name in data:
            kwargs[f.name] = deserialize_value(hints[f.name], data[f.name])
    return cls(**kwargs)


def deserialize_value(tp: Any, value: Any) -> Any:
    """Convert a JSON value back to the annotated Python type."""
    if value is None:
        return None

    origin = get_origin(tp)
    if origin in (Union, types.UnionType):
        inner = [arg for arg in get_args(tp) if arg is not type(None)]
        return deserialize_value(inner[0], value) if len(inner) == 1 else value
    if origin is list:
        (item_type,) = get_args(tp) or (Any,)
        return [deserialize_value(item_type, v) for v in value]

    if tp is Decimal:
        return value if isinstance(value, Decimal) else Decimal(str(value))
    if tp is datetime:
        return value if isinstance(value, datetime) else datetime.fromisoformat(value)
    if isinstance(tp, type) and issubclass(tp, Enum):
        return tp(value)
    return value
