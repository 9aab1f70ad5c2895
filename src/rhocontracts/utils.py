"""Small helpers shared by the contract engine and the error renderer."""

from __future__ import annotations

import copy
import dataclasses
import reprlib
from collections.abc import Mapping, MutableMapping, Sequence
from typing import Any, Optional

from rhocontracts.config import get_config

_CONTAINER_LIMITS = (
    "maxlist",
    "maxtuple",
    "maxdict",
    "maxset",
    "maxfrozenset",
    "maxdeque",
    "maxarray",
)


def is_missing(v: Any) -> bool:
    return v is None


def is_sequence(v: Any) -> bool:
    """True for list-like values; strings and bytes are not sequences here."""
    return isinstance(v, Sequence) and not isinstance(v, (str, bytes, bytearray))


def is_object_like(v: Any) -> bool:
    """True for anything that can carry fields: mappings and instances."""
    return v is not None and not isinstance(v, (str, bytes, bytearray, int, float, complex))


def ith(i: int) -> str:
    """Render a zero-based index as a one-based ordinal (``0`` -> ``"1st"``)."""
    i += 1
    if i % 100 in (11, 12, 13):
        return f"{i}th"
    return {1: f"{i}st", 2: f"{i}nd", 3: f"{i}rd"}.get(i % 10, f"{i}th")


def stringify(v: Any) -> str:
    """Render a value for an error message, bounded by the configured depth."""
    config = get_config()
    if config.inspection_depth is None:
        return repr(v)
    r = reprlib.Repr()
    r.maxlevel = config.inspection_depth + 1
    r.maxstring = config.inspection_max_string
    r.maxother = config.inspection_max_string
    for limit in _CONTAINER_LIMITS:
        setattr(r, limit, config.inspection_max_items)
    return r.repr(v)


def function_name(fn: Any) -> Optional[str]:
    name = getattr(fn, "__name__", None)
    if not name or name == "<lambda>":
        return None
    return name


# ---------------------------------------------------------------------------
# Field access on records (mappings are read by key, instances by attribute)
# ---------------------------------------------------------------------------


def get_field(data: Any, name: str) -> Any:
    if isinstance(data, Mapping):
        return data.get(name)
    return getattr(data, name, None)


def field_names(data: Any) -> list[str]:
    if isinstance(data, Mapping):
        return list(data.keys())
    try:
        return list(vars(data).keys())
    except TypeError:
        return []


def clone_record(data: Any) -> Any:
    """Shallow copy that keeps the class of the original."""
    if isinstance(data, Mapping) and not isinstance(data, MutableMapping):
        return dict(data)
    return copy.copy(data)


def set_field(record: Any, name: str, value: Any) -> None:
    if isinstance(record, MutableMapping):
        record[name] = value
    elif dataclasses.is_dataclass(record) and record.__dataclass_params__.frozen:
        # Only ever applied to a fresh clone, as the dataclass __init__ itself does.
        object.__setattr__(record, name, value)
    else:
        setattr(record, name, value)
