"""
Contract base class and the recursive check/wrap engine.

Every contract answers three questions about a value:

- ``first_checker(data)``: does the value itself have the right shape?
- ``nested_checker(data, visit, context)``: recurse into its parts by
  calling ``visit(sub_contract, sub_value, stack_item)``.
- ``wrapper(data, visit, context)``: build the proxy that keeps checking
  future uses of the value (only for contracts that ``needs_wrapping``).

Contracts are immutable. Every method that "modifies" one (``rename``,
``optional``, ``doc``, ``strict``, ``extend``, ``returns``, ...) returns a
shallow copy with some fields replaced, so a base contract can be shared
by any number of derived variants.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Iterable
from typing import Any, Optional

from rhocontracts.context import Context, new_context
from rhocontracts.errors import ContractError, ContractLibraryError, StackItem, capture_clean_stack
from rhocontracts.utils import is_missing

logger = logging.getLogger(__name__)

Visitor = Callable[["Contract", Any, StackItem], Any]


class Contract:
    """A reusable description of acceptable values."""

    is_function_contract = False

    def __init__(self, name: str, *, needs_wrapping: bool = False) -> None:
        self.contract_name = name
        self.needs_wrapping = needs_wrapping
        self.is_optional = False
        # Only used for documentation and as the default `name` of check().
        self.thing_name: Optional[str] = None
        self.the_doc: tuple[str, ...] = ()
        self.category: Optional[str] = None
        self._renamed = False

    # -- engine hooks -------------------------------------------------------

    def first_checker(self, data: Any) -> bool:
        return True

    def nested_checker(self, data: Any, visit: Visitor, context: Context) -> None:
        pass

    def wrapper(self, data: Any, visit: Visitor, context: Context) -> Any:
        raise ContractLibraryError(
            "wrap", context, "called on a contract that does not implement wrapping"
        ).full_contract()

    # -- public surface -----------------------------------------------------

    def check(self, data: Any, name: Optional[str] = None) -> Any:
        """Verify ``data`` and return it unchanged; raise ``ContractError`` otherwise."""
        check_with_context(self, data, new_context(name or self.thing_name, data, self, wrapping=False))
        return data

    def wrap(self, data: Any, name: Optional[str] = None) -> Any:
        """Verify ``data`` and return a proxy that keeps checking its future uses."""
        context = new_context(name or self.thing_name, data, self, wrapping=True)
        return check_wrap_with_context(self, data, context)

    def rename(self, name: str) -> Contract:
        return self._derive(contract_name=name, _renamed=True)

    def optional(self) -> Contract:
        return self._derive(is_optional=True)

    def doc(self, *lines: str, category: Optional[str] = None) -> Contract:
        return self._derive(the_doc=tuple(lines), category=category)

    # -- rendering ----------------------------------------------------------

    def __str__(self) -> str:
        text = f"c.{self.contract_name}" if self._renamed else self._describe()
        return f"c.optional({text})" if self.is_optional else text

    __repr__ = __str__

    def _describe(self) -> str:
        return f"c.{self.contract_name}({', '.join(str(s) for s in self._sub_contracts())})"

    def _sub_contracts(self) -> Iterable[Any]:
        return ()

    # -- derivation ---------------------------------------------------------

    def _derive(self, **changes: Any) -> Contract:
        other = copy.copy(self)
        for key, value in changes.items():
            setattr(other, key, value)
        return other


class Predicate(Contract):
    """Leaf contract defined by a one-argument boolean function."""

    def __init__(self, name: str, checker: Callable[[Any], Any]) -> None:
        super().__init__(name)
        self._checker = checker

    def first_checker(self, data: Any) -> bool:
        return bool(self._checker(data))

    def _describe(self) -> str:
        return f"c.{self.contract_name}"


def is_contract(v: Any) -> bool:
    return isinstance(v, Contract)


def any_needs_wrapping(contracts: Iterable[Contract]) -> bool:
    return any(c.needs_wrapping for c in contracts)


# ---------------------------------------------------------------------------
# Recursive checking with path tracking
# ---------------------------------------------------------------------------


def check_with_context(contract: Contract, data: Any, context: Context) -> None:
    if contract.is_optional and is_missing(data):
        return

    if not contract.first_checker(data):
        context.fail(
            ContractError(context).expected(contract.contract_name, data).full_contract_and_value()
        )
    if contract.needs_wrapping and not context.wrapping:
        raise ContractLibraryError(
            "check",
            context,
            "This contract requires wrapping. Call wrap() instead and retain the wrapped result.",
        ).full_contract()

    def visit(next_contract: Contract, value: Any, item: StackItem) -> None:
        with context.step(item):
            check_with_context(next_contract, value, context)

    contract.nested_checker(data, visit, context)


def wrap_with_context(contract: Contract, data: Any, context: Context) -> Any:
    if contract.is_optional and is_missing(data):
        return data

    def visit(next_contract: Contract, value: Any, item: StackItem) -> Any:
        with context.step(item):
            if not next_contract.needs_wrapping:
                return value
            return wrap_with_context(next_contract, value, context)

    return contract.wrapper(data, visit, context)


def check_wrap_with_context(contract: Contract, data: Any, context: Context) -> Any:
    check_with_context(contract, data, context)
    if not contract.needs_wrapping:
        return data
    if context.wrapped_at is None:
        context.wrapped_at = capture_clean_stack()
        logger.debug("Installing %s on %s", contract, context.thing_name or "<anonymous>")
    return wrap_with_context(contract, data, context)


def try_check(contract: Contract, data: Any, context: Context) -> Optional[ContractError]:
    """Check in trial mode: return the violation instead of raising it.

    Library misuse is never a trial failure and still propagates.
    """
    try:
        check_with_context(contract, data, context)
    except ContractLibraryError:
        raise
    except ContractError as e:
        return e
    return None
