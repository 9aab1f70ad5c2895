"""
Promotion of plain values into contracts, and the module-level
``check``/``wrap`` entry points that accept promotable values.

``to_contract`` upgrades recursively:

- a contract is returned unchanged;
- a one-element list ``[c]`` becomes ``array(c)``;
- a mapping becomes an ``object`` contract, field by field;
- anything else becomes a ``value`` (equality) contract.

``auto_to_contract`` is the strict variant used by the combinators: it
refuses mappings so that a stray literal is never silently turned into
an object contract where a contract object was expected.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, Optional

from rhocontracts.core import Contract, is_contract
from rhocontracts.elementary import any_function, bool_, number, regexp, string, value
from rhocontracts.errors import ContractLibraryError
from rhocontracts.utils import stringify


def _to_contract(v: Any, upgrade_objects: bool) -> Contract:
    # Deferred: the structural builders promote their own children.
    from rhocontracts.structural import array, object_

    if is_contract(v):
        return v
    if isinstance(v, list):
        if not v:
            raise ContractLibraryError("to_contract", None, f"the example element of the array is missing. {v}")
        if len(v) > 1:
            raise ContractLibraryError("to_contract", None, f"the given array has more than one element: {v}")
        return array(_to_contract(v[0], upgrade_objects))
    if isinstance(v, Mapping):
        if not upgrade_objects:
            raise ContractLibraryError("to_contract", None, f"Cannot promote {stringify(v)} to a contract")
        return object_({k: _to_contract(field, True) for k, field in v.items()})
    return value(v)


def to_contract(v: Any) -> Contract:
    return _to_contract(v, True)


def auto_to_contract(v: Any) -> Contract:
    return _to_contract(v, False)


def check(contract: Any, data: Any, name: Optional[str] = None) -> Any:
    auto_to_contract(contract).check(data, name)
    return data


def wrap(contract: Any, data: Any, name: Optional[str] = None) -> Any:
    return auto_to_contract(contract).wrap(data, name)


# ---------------------------------------------------------------------------
# Contracts from example values
# ---------------------------------------------------------------------------


def from_example(v: Any, with_question_mark: bool = False) -> Contract:
    """Build a contract accepting values shaped like ``v``.

    With ``with_question_mark``, mapping keys written ``"?name"`` become
    optional fields called ``name``.
    """
    from rhocontracts.structural import array, object_

    if isinstance(v, list):
        if not v:
            raise ContractLibraryError("from_example", None, "can't create a contract from an empty list")
        return array(from_example(v[0], with_question_mark))
    if isinstance(v, Mapping):
        fields = {}
        for key, example in v.items():
            contract = from_example(example, with_question_mark)
            if with_question_mark and isinstance(key, str) and key.startswith("?"):
                fields[key[1:]] = contract.optional()
            else:
                fields[key] = contract
        return object_(fields)
    if isinstance(v, bool):
        return bool_
    if isinstance(v, str):
        return string
    if isinstance(v, (int, float)):
        return number
    if isinstance(v, re.Pattern):
        return regexp
    if callable(v):
        return any_function
    raise ContractLibraryError("from_example", None, f"can't create a contract from {stringify(v)}")


def quacks_like(example: Any, name: Optional[str] = None) -> Contract:
    return from_example(example).rename(f"quacks_like({name or '...'})")
