"""
Elementary contracts: leaf predicates with no nested structure.

Names that clash with Python builtins or keywords carry a trailing
underscore here (``any_``, ``bool_``); the package namespace exposes
them under their short names as attributes (``rhocontracts.any``).
"""

from __future__ import annotations

import datetime
import math
import numbers
import re
from collections.abc import Callable, Mapping
from typing import Any, Union

from rhocontracts.core import Contract, Predicate, is_contract
from rhocontracts.utils import function_name, is_object_like, is_sequence


def pred(fn: Callable[[Any], Any]) -> Contract:
    """Contract accepting the values for which ``fn`` returns a truthy result."""
    return Predicate("unnamed-pred", fn)


any_ = Predicate("any", lambda data: True)
nothing = Predicate("nothing", lambda data: False)
falsy = Predicate("falsy", lambda data: not data)
truthy = Predicate("truthy", lambda data: bool(data))


def _same_value(a: Any, b: Any) -> bool:
    # `True == 1` in Python; a boolean only ever equals a boolean here.
    if isinstance(a, bool) != isinstance(b, bool):
        return False
    return a is b or a == b


class OneOf(Contract):
    """Accepts exactly the listed values."""

    def __init__(self, values: tuple[Any, ...]) -> None:
        super().__init__(f"one_of({', '.join(repr(v) for v in values)})")
        self.values = values

    def first_checker(self, data: Any) -> bool:
        return any(_same_value(data, v) for v in self.values)

    def _describe(self) -> str:
        return f"c.{self.contract_name}"


def one_of(*values: Any) -> Contract:
    return OneOf(values)


def value(v: Any) -> Contract:
    return one_of(v).rename(f"value({v!r})")


def _is_number(v: Any) -> bool:
    return isinstance(v, numbers.Real) and not isinstance(v, bool)


def _is_integer(v: Any) -> bool:
    return _is_number(v) and math.isfinite(v) and math.floor(v) == v


string = Predicate("string", lambda v: isinstance(v, str))
number = Predicate("number", _is_number)
integer = Predicate("integer", _is_integer)
bool_ = Predicate("bool", lambda v: isinstance(v, bool))
regexp = Predicate("regexp", lambda v: isinstance(v, re.Pattern))
date = Predicate("date", lambda v: isinstance(v, datetime.date))
any_function = Predicate("any_function", callable)


def is_a(parent: type) -> Contract:
    """Instances of ``parent`` or of any of its subclasses."""
    name = function_name(parent) or "..."
    return pred(lambda v: isinstance(v, parent)).rename(f"is_a({name})")


error = is_a(BaseException).rename("error")


def _is_promotable(v: Any) -> bool:
    return is_contract(v) or is_sequence(v) or isinstance(v, Mapping) or not is_object_like(v)


contract_ = Predicate("contract", _is_promotable)


def matches(pattern: Union[str, re.Pattern]) -> Contract:
    """Strings in which ``pattern`` is found; non-strings are always rejected."""
    r = re.compile(pattern) if isinstance(pattern, str) else pattern
    return pred(lambda v: isinstance(v, str) and r.search(v) is not None).rename(
        f"matches({r.pattern!r})"
    )
