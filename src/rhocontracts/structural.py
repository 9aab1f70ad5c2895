"""
Structural contracts: ``array``, ``tuple``, ``hash`` and ``object``.

``tuple`` ignores trailing elements and ``object`` ignores undeclared
fields unless ``.strict()`` is applied. Wrapping always builds a fresh
container; the caller's value is never mutated.
"""

from __future__ import annotations

import functools
import inspect
import types
from collections.abc import Mapping
from typing import Any, Optional

from rhocontracts.context import Context
from rhocontracts.core import Contract, Visitor, any_needs_wrapping, is_contract
from rhocontracts.errors import (
    ContractError,
    array_item,
    hash_item,
    object_field_item,
    tuple_item,
)
from rhocontracts.functions import ContractedFunction
from rhocontracts.promotion import auto_to_contract
from rhocontracts.utils import (
    clone_record,
    field_names,
    get_field,
    is_missing,
    is_object_like,
    is_sequence,
    set_field,
    stringify,
)


def _same_kind(data: Any, items: list[Any]) -> Any:
    return tuple(items) if isinstance(data, tuple) else items


def _class_method(data: Any, name: str) -> Optional[Any]:
    """The plain function behind ``data.<name>`` when it is a method defined on the class."""
    if isinstance(data, Mapping) or name in field_names(data):
        return None
    try:
        raw = inspect.getattr_static(type(data), name)
    except AttributeError:
        return None
    if isinstance(raw, ContractedFunction):

        @functools.wraps(raw, updated=())
        def method(this, *args, **kwargs):
            return raw.call(this, *args, **kwargs)

        return method
    return raw if inspect.isfunction(raw) else None


def _bind(wrapped: Any, this: Any) -> Any:
    if isinstance(wrapped, ContractedFunction):
        return wrapped.bind(this)
    return types.MethodType(wrapped, this)


class ArrayContract(Contract):
    def __init__(self, item_contract: Contract) -> None:
        super().__init__("array", needs_wrapping=item_contract.needs_wrapping)
        self.item_contract = item_contract

    def first_checker(self, data: Any) -> bool:
        return is_sequence(data)

    def nested_checker(self, data: Any, visit: Visitor, context: Context) -> None:
        for i, item in enumerate(data):
            visit(self.item_contract, item, array_item(i))

    def wrapper(self, data: Any, visit: Visitor, context: Context) -> Any:
        return _same_kind(data, [visit(self.item_contract, item, array_item(i)) for i, item in enumerate(data)])

    def _sub_contracts(self):
        return (self.item_contract,)


def array(item_contract: Any) -> ArrayContract:
    return ArrayContract(auto_to_contract(item_contract))


class TupleContract(Contract):
    """Fixed positions at the head of a sequence, one contract each."""

    def __init__(self, contracts: list[Contract]) -> None:
        super().__init__("tuple", needs_wrapping=any_needs_wrapping(contracts))
        self.contracts = contracts
        self.is_strict = False

    def first_checker(self, data: Any) -> bool:
        return is_sequence(data)

    def nested_checker(self, data: Any, visit: Visitor, context: Context) -> None:
        size = len(self.contracts)
        if self.is_strict and len(data) != size:
            context.fail(
                ContractError(context)
                .expected(f"tuple of exactly size {size}", data)
                .full_contract_and_value()
            )
        if len(data) < size:
            context.fail(
                ContractError(context).expected(f"tuple of size {size}", data).full_contract_and_value()
            )
        for i, (contract, item) in enumerate(zip(self.contracts, data)):
            visit(contract, item, tuple_item(i))

    def wrapper(self, data: Any, visit: Visitor, context: Context) -> Any:
        head = [visit(contract, item, tuple_item(i)) for i, (contract, item) in enumerate(zip(self.contracts, data))]
        return _same_kind(data, head + list(data[len(self.contracts):]))

    def strict(self) -> TupleContract:
        if self.is_strict:
            return self
        return self._derive(is_strict=True, contract_name="tuple.strict")

    def _describe(self) -> str:
        text = f"c.tuple({', '.join(str(c) for c in self.contracts)})"
        return f"{text}.strict()" if self.is_strict else text


def tuple_(*contracts: Any) -> TupleContract:
    return TupleContract([auto_to_contract(c) for c in contracts])


class HashContract(Contract):
    """A mapping whose every value satisfies ``value_contract``."""

    def __init__(self, value_contract: Contract) -> None:
        super().__init__("hash", needs_wrapping=value_contract.needs_wrapping)
        self.value_contract = value_contract

    def first_checker(self, data: Any) -> bool:
        return isinstance(data, Mapping) and not is_contract(data)

    def nested_checker(self, data: Any, visit: Visitor, context: Context) -> None:
        for key, item in data.items():
            visit(self.value_contract, item, hash_item(key))

    def wrapper(self, data: Any, visit: Visitor, context: Context) -> Any:
        result = clone_record(data)
        for key, item in data.items():
            result[key] = visit(self.value_contract, item, hash_item(key))
        return result

    def _sub_contracts(self):
        return (self.value_contract,)


def hash_(value_contract: Any) -> HashContract:
    return HashContract(auto_to_contract(value_contract))


class ObjectContract(Contract):
    """A record with declared fields.

    Mappings are read by key, other objects by attribute. Fields that are
    not declared pass through unexamined unless the contract is strict.
    """

    def __init__(self, field_contracts: dict[str, Contract]) -> None:
        super().__init__("object", needs_wrapping=any_needs_wrapping(field_contracts.values()))
        self.field_contracts = field_contracts
        self.is_strict = False

    def first_checker(self, data: Any) -> bool:
        return is_object_like(data)

    def nested_checker(self, data: Any, visit: Visitor, context: Context) -> None:
        if self.is_strict:
            extra = [k for k in field_names(data) if k not in self.field_contracts]
            if extra:
                plural = "" if len(extra) == 1 else "s"
                names = ", ".join(f"`{k}`" for k in extra)
                context.fail(
                    ContractError(
                        context, f"Found the extra field{plural} {names} in {stringify(data)}\n"
                    ).full_contract_and_value()
                )

        for name, contract in self.field_contracts.items():
            value = get_field(data, name)
            if not contract.is_optional and is_missing(value):
                context.fail(
                    ContractError(
                        context, f"Field `{name}` required, got {stringify(data)}"
                    ).full_contract_and_value()
                )
            if not is_missing(value):
                visit(contract, value, object_field_item(name))

    def wrapper(self, data: Any, visit: Visitor, context: Context) -> Any:
        result = clone_record(data)
        for name, contract in self.field_contracts.items():
            if not contract.needs_wrapping:
                continue
            method = _class_method(data, name)
            value = get_field(data, name) if method is None else method
            if is_missing(value):
                continue
            wrapped = visit(contract._derive(thing_name=name), value, object_field_item(name))
            if method is not None:
                # Methods act on the clone, not on the original instance.
                wrapped = _bind(wrapped, result)
            set_field(result, name, wrapped)
        return result

    def extend(self, more_fields: dict[str, Any]) -> ObjectContract:
        fields = dict(self.field_contracts)
        fields.update({k: auto_to_contract(c) for k, c in more_fields.items()})
        return self._derive(field_contracts=fields, needs_wrapping=any_needs_wrapping(fields.values()))

    def strict(self) -> ObjectContract:
        if self.is_strict:
            return self
        return self._derive(is_strict=True, contract_name="object.strict")

    def _describe(self) -> str:
        fields = ", ".join(f"{k}: {c}" for k, c in self.field_contracts.items())
        text = f"c.object({{{fields}}})"
        return f"{text}.strict()" if self.is_strict else text


def object_(field_contracts: Optional[dict[str, Any]] = None) -> ObjectContract:
    return ObjectContract({k: auto_to_contract(c) for k, c in (field_contracts or {}).items()})
