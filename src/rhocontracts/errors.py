"""
Error model for the contract engine.

Two kinds of errors are raised:

- ``ContractError``: a value does not satisfy its contract.
- ``ContractLibraryError``: the combinators themselves were misused
  (malformed builder arguments, ``check`` on a contract that needs
  wrapping, ...). It subclasses ``ContractError`` so one ``except``
  clause catches both; use ``isinstance`` to tell them apart.

Messages are assembled incrementally while the failure is described::

    raise ContractError(context).expected("number", data).full_contract_and_value()

which yields a self-contained message such as::

    broke the contract on `inc`:
    (contract was wrapped at: app.py:12)
    Expected number, but got 'five'
    for the 1st argument of the call.
    at position .inc
    in contract:
    c.object({inc: c.fn(c.number -> c.any)})
    The full value being checked was:
    {'inc': <function inc at 0x...>}

Stack items describe one step of the traversal down a contract; the
rendered path is the concatenation of their ``short`` forms.
"""

from __future__ import annotations

import os
import traceback
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional, Union

from rhocontracts.utils import ith, stringify

if TYPE_CHECKING:
    from rhocontracts.context import Context


# ---------------------------------------------------------------------------
# Stack context items
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StackItem:
    """One traversal step, as rendered in error messages."""

    kind: str
    short: str
    long: str = ""
    index: Optional[int] = None


SILENT = StackItem(kind="silent", short="")
THIS_ITEM = StackItem(kind="this", short=".this", long="for the `this` argument of the call.")
RESULT_ITEM = StackItem(kind="result", short=".result", long="for the return value of the call.")
EXTRA_ARGUMENTS_ITEM = StackItem(
    kind="extra_arguments",
    short=".extraArguments",
    long="for the extra argument array of the call",
)
OR_ITEM = StackItem(kind="or", short=".or")


def argument_item(arg: Union[int, str]) -> StackItem:
    if isinstance(arg, int):
        return StackItem(
            kind="argument",
            short=f".arg({arg})",
            long=f"for the {ith(arg)} argument of the call.",
            index=arg,
        )
    return StackItem(kind="argument", short=f".{arg}", long=f"for the `{arg}` argument of the call.")


def and_item(i: int) -> StackItem:
    return StackItem(
        kind="and",
        short=f".and({i})",
        long=f"for the {ith(i)} branch of the `and` contract",
        index=i,
    )


def array_item(i: int) -> StackItem:
    return StackItem(kind="array_item", short=f"[{i}]", long=f"for the {ith(i)} element of the array", index=i)


def tuple_item(i: int) -> StackItem:
    return StackItem(kind="tuple_item", short=f"[{i}]", long=f"for the {ith(i)} element of the tuple", index=i)


def hash_item(key: Any) -> StackItem:
    return StackItem(kind="hash_item", short=f".{key}", long=f"for the key `{key}` of the hash")


def object_field_item(name: str) -> StackItem:
    return StackItem(kind="object_field", short=f".{name}", long=f"for the field `{name}` of the object")


# ---------------------------------------------------------------------------
# Call stacks with the library's own frames removed
# ---------------------------------------------------------------------------

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__)) + os.sep
_PLUMBING_FILES = {"contextlib.py", "functools.py"}


def _is_internal_frame(frame: traceback.FrameSummary) -> bool:
    filename = os.path.abspath(frame.filename)
    return filename.startswith(_PACKAGE_DIR) or os.path.basename(filename) in _PLUMBING_FILES


def clean_stack(stack: list[traceback.FrameSummary]) -> list[traceback.FrameSummary]:
    """Drop library frames from the innermost end of ``stack`` (innermost first)."""
    result = list(stack)
    while result and _is_internal_frame(result[0]):
        result.pop(0)
    return result


def capture_clean_stack() -> list[traceback.FrameSummary]:
    """Snapshot the current call stack, innermost frame first, minus library frames."""
    stack = traceback.extract_stack()[:-1]
    stack.reverse()
    return clean_stack(stack)


def pretty_print_stack(stack: list[traceback.FrameSummary]) -> str:
    return "\n".join(f"  at {frame.name} ({frame.filename}:{frame.lineno})" for frame in stack)


# ---------------------------------------------------------------------------
# Error classes
# ---------------------------------------------------------------------------


class ContractError(Exception):
    """Raised when a value does not satisfy a contract."""

    def __init__(self, context: Optional[Context] = None, msg: Optional[str] = None) -> None:
        super().__init__(msg or "")
        self.context = context
        self.message = ""
        self.expected_description: Optional[str] = None
        self.data: Any = None
        self.clean_stack: list[traceback.FrameSummary] = []
        self.rendered_stack = ""

        has_blame = context is not None and bool(context.thing_name)
        if has_blame:
            self.blame(context)
        if has_blame and msg:
            self.message += " "
        if msg:
            self.message += msg
        if has_blame or msg:
            self.message += "\n"

        if context is not None and context.wrapped_at:
            frame = context.wrapped_at[0]
            self.message += f"(contract was wrapped at: {frame.filename}:{frame.lineno})\n"

    def __str__(self) -> str:
        return self.message

    def capture_clean_stack(self) -> ContractError:
        self.clean_stack = capture_clean_stack()
        self.rendered_stack = pretty_print_stack(self.clean_stack)
        return self

    def blame(self, context: Optional[Context] = None) -> ContractError:
        """Say whose fault the failure is, from the point of view of the checked value."""
        self.context = context or self.context
        ctx = self.context
        name = ctx.thing_name
        if getattr(ctx.contract, "is_function_contract", False):
            name = f"{name}()"

        if not ctx.wrapping:
            self.message += f"check on `{name}` failed:"
        elif ctx.blame_me:
            self.message += f"`{name}` broke its contract:"
        else:
            self.message += f"broke the contract on `{name}`:"
        return self

    def expected(self, expected: str, data: Any, context: Optional[Context] = None) -> ContractError:
        self.context = context or self.context
        self.expected_description = expected
        self.data = data
        self.message += f"Expected {expected}, but got {stringify(data)}\n"
        return self

    def full_value(self, context: Optional[Context] = None) -> ContractError:
        self.context = context or self.context
        ctx = self.context
        if ctx is None:
            return self
        # A value already printed whole by expected() is not repeated.
        if not callable(ctx.data) and (self.expected_description is None or ctx.stack):
            self.message += f"The full value being checked was:\n{stringify(ctx.data)}\n"
        return self

    def full_contract(self, context: Optional[Context] = None) -> ContractError:
        self.context = context or self.context
        ctx = self.context
        if ctx is None or not ctx.stack:
            return self

        stack = list(ctx.stack)
        immediate = stack[-1]
        if len(stack) >= 2 and stack[-2].kind == EXTRA_ARGUMENTS_ITEM.kind and immediate.index is not None:
            # Extra arguments are checked as an array; report them as arguments.
            self.message += f"for the {ith(immediate.index)} extra argument of the call.\n"
            stack = stack[:-2]
        elif immediate.long:
            self.message += f"{immediate.long}\n"
            stack = stack[:-1]

        if stack:
            position = "".join(item.short for item in stack)
            self.message += f"at position {position}\nin contract:\n{ctx.contract}\n"
        return self

    def full_contract_and_value(self, context: Optional[Context] = None) -> ContractError:
        self.full_contract(context)
        self.full_value(context)
        return self


class ContractLibraryError(ContractError):
    """Raised when the contract combinators themselves are used incorrectly."""

    def __init__(
        self,
        function_name: str,
        context: Optional[Context] = None,
        msg: Optional[str] = None,
    ) -> None:
        super().__init__(context, msg)
        self.function_name = function_name
        self.message = f"{function_name}: {self.message}"
        self.capture_clean_stack()
