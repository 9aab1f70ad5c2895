"""
Traversal context for one top-level ``check`` or ``wrap`` call.

A ``Context`` is created per top-level call and threaded explicitly
through the recursive traversal. Nested checks share its ``stack`` with
a strict push/pop discipline (``step``); wrapped functions ``fork`` a
fresh copy on every invocation so reentrant calls never share a stack.
"""

from __future__ import annotations

import dataclasses
import traceback
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, NoReturn, Optional

from rhocontracts.errors import SILENT, ContractError, StackItem


@dataclass
class Context:
    """Path and blame state of a traversal."""

    thing_name: Optional[str]
    data: Any
    contract: Any
    wrapping: bool
    stack: list[StackItem] = field(default_factory=list)
    blame_me: bool = True
    wrapped_at: Optional[list[traceback.FrameSummary]] = None

    def fail(self, error: ContractError) -> NoReturn:
        error.capture_clean_stack()
        raise error

    @contextmanager
    def step(self, item: StackItem) -> Iterator[None]:
        """Enter one level of the contract; silent items leave no trace."""
        if item is SILENT:
            yield
            return
        self.stack.append(item)
        try:
            yield
        finally:
            self.stack.pop()

    @contextmanager
    def reversed_blame(self, reverse: bool = True) -> Iterator[None]:
        if reverse:
            self.blame_me = not self.blame_me
        try:
            yield
        finally:
            if reverse:
                self.blame_me = not self.blame_me

    def fork(self, **changes: Any) -> Context:
        """Copy with an independent stack; ``wrapped_at`` is shared lineage."""
        return dataclasses.replace(self, stack=list(self.stack), **changes)


def new_context(thing_name: Optional[str], data: Any, contract: Any, wrapping: bool) -> Context:
    return Context(thing_name=thing_name, data=data, contract=contract, wrapping=wrapping)
