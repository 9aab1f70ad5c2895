"""
Combinators: ``and_``, ``silent_and``, ``or_``, ``optional`` and the
``cyclic``/``forward_ref`` placeholders for self-referencing contracts.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Optional

from rhocontracts.context import Context
from rhocontracts.core import Contract, Visitor, any_needs_wrapping, try_check
from rhocontracts.errors import (
    OR_ITEM,
    SILENT,
    ContractError,
    ContractLibraryError,
    and_item,
)
from rhocontracts.promotion import auto_to_contract

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# and
# ---------------------------------------------------------------------------


class AndContract(Contract):
    """Passes when every child passes, checked in order; the first failure wins."""

    def __init__(self, contracts: list[Contract], silent: bool) -> None:
        super().__init__("silent_and" if silent else "and_")
        self.contracts = contracts
        self.silent = silent
        self.needs_wrapping = any_needs_wrapping(contracts)

    def nested_checker(self, data: Any, visit: Visitor, context: Context) -> None:
        for i, contract in enumerate(self.contracts):
            visit(contract, data, SILENT if self.silent else and_item(i))

    def wrapper(self, data: Any, visit: Visitor, context: Context) -> Any:
        raise ContractLibraryError("wrap", context, "Cannot wrap an `and` contract").full_contract()

    def _sub_contracts(self):
        return self.contracts


def and_(*contracts: Any) -> Contract:
    return AndContract([auto_to_contract(c) for c in contracts], silent=False)


def silent_and(*contracts: Any) -> Contract:
    return AndContract([auto_to_contract(c) for c in contracts], silent=True)


# ---------------------------------------------------------------------------
# or
# ---------------------------------------------------------------------------


class OrContract(Contract):
    """Passes when any child passes.

    Alternatives that need wrapping are tried last, and at most one of
    them is allowed: the wrapping strategy has to be known in advance.
    """

    def __init__(self, contracts: list[Contract]) -> None:
        super().__init__("or_")
        self.all_contracts = contracts
        self.contracts = [c for c in contracts if not c.needs_wrapping]
        self.wrapping_contracts = [c for c in contracts if c.needs_wrapping]

        if len(self.wrapping_contracts) > 1:
            raise ContractLibraryError(
                "or",
                None,
                "Or-contracts can only take at most one wrapping contracts, got "
                + ", ".join(str(c) for c in self.wrapping_contracts),
            )
        self.needs_wrapping = bool(self.wrapping_contracts)

    def select(self, data: Any, context: Context) -> Contract:
        """Return the first alternative that accepts ``data``."""
        failures: list[tuple[Contract, ContractError]] = []
        for contract in self.contracts + self.wrapping_contracts:
            with context.step(SILENT):
                failure = try_check(contract, data, context)
            if failure is None:
                return contract
            failures.append((contract, failure))

        alternatives = "\n".join(f" - {c}" for c in self.all_contracts)
        details = "\n\n".join(
            f"[{i}] --\n{c}: {e.message}" for i, (c, e) in enumerate(failures, start=1)
        )
        msg = f"none of the contracts passed:\n{alternatives}\n\nThe failures were:\n{details}\n"
        context.fail(ContractError(context, msg).full_contract_and_value())

    def nested_checker(self, data: Any, visit: Visitor, context: Context) -> None:
        self.select(data, context)

    def wrapper(self, data: Any, visit: Visitor, context: Context) -> Any:
        return visit(self.select(data, context), data, OR_ITEM)

    def _sub_contracts(self):
        return self.all_contracts


def or_(*contracts: Any) -> Contract:
    return OrContract([auto_to_contract(c) for c in contracts])


def optional(contract: Any) -> Contract:
    return auto_to_contract(contract).optional()


# ---------------------------------------------------------------------------
# cyclic / forward_ref
# ---------------------------------------------------------------------------


class _Ref:
    """Cell shared by a placeholder and every contract derived from it."""

    __slots__ = ("target",)

    def __init__(self) -> None:
        self.target: Optional[Contract] = None


_rendering = threading.local()


class PlaceholderContract(Contract):
    """Stands in for a contract that is defined later.

    Once closed, checking and wrapping are delegated to the target, as are
    attributes the placeholder does not define itself (``field_contracts``,
    ``strict``, ...).
    """

    def __init__(self, name: str, needs_wrapping: bool) -> None:
        self._ref = _Ref()
        super().__init__(name, needs_wrapping=needs_wrapping)

    @property
    def contract_name(self) -> str:
        target = self._ref.target
        if target is None or self._renamed:
            return self._own_name
        return target.contract_name

    @contract_name.setter
    def contract_name(self, name: str) -> None:
        self._own_name = name

    @property
    def is_function_contract(self) -> bool:  # type: ignore[override]
        target = self._ref.target
        return target is not None and target.is_function_contract

    def _close(self, contract: Any) -> PlaceholderContract:
        contract = auto_to_contract(contract)
        if self.needs_wrapping != contract.needs_wrapping:
            raise ContractLibraryError(
                self.contract_name,
                None,
                f"A {self.contract_name}() was started with needs_wrapping={self.needs_wrapping}, "
                f"but it was closed with a contract that has needs_wrapping={contract.needs_wrapping}:\n"
                f"{contract}",
            )
        self._ref.target = contract
        logger.debug("Closed %s() with %s", self.contract_name, contract.contract_name)
        return self

    def _resolve(self, context: Optional[Context] = None) -> Contract:
        target = self._ref.target
        if target is None:
            raise ContractLibraryError(
                self.contract_name, context, f"the {self.contract_name}() was used before being closed"
            )
        return target

    def first_checker(self, data: Any) -> bool:
        target = self._resolve()
        if target.is_optional and data is None:
            return True
        return target.first_checker(data)

    def nested_checker(self, data: Any, visit: Visitor, context: Context) -> None:
        target = self._resolve(context)
        if target.is_optional and data is None:
            return
        target.nested_checker(data, visit, context)

    def wrapper(self, data: Any, visit: Visitor, context: Context) -> Any:
        target = self._resolve(context)
        if target.is_optional and data is None:
            return data
        return target.wrapper(data, visit, context)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        target = self._ref.target
        if target is None:
            raise AttributeError(name)
        return getattr(target, name)

    def _describe(self) -> str:
        target = self._ref.target
        if target is None:
            return f"c.{self.contract_name}()"
        active = _rendering.__dict__.setdefault("refs", set())
        if id(self._ref) in active:
            return f"c.{self.contract_name}(...)"
        active.add(id(self._ref))
        try:
            return str(target)
        finally:
            active.discard(id(self._ref))


class CyclicContract(PlaceholderContract):
    def close_cycle(self, contract: Any) -> CyclicContract:
        return self._close(contract)


class ForwardRefContract(PlaceholderContract):
    def set_ref(self, contract: Any) -> ForwardRefContract:
        return self._close(contract)


def cyclic(needs_wrapping: bool = True) -> CyclicContract:
    return CyclicContract("cyclic", needs_wrapping)


def forward_ref(needs_wrapping: bool = False) -> ForwardRefContract:
    return ForwardRefContract("forward_ref", needs_wrapping)
