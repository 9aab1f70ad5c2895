"""
Function, method and constructor contracts.

Wrapping a callable with a function contract returns a ``ContractedFunction``
that, on every call, runs::

    arity -> this -> arguments -> extra arguments -> call -> result

failing fast at the first violation. Input-side checks blame the caller
and the result check blames the function itself.

``ContractedFunction`` is a descriptor: stored on a class and looked up
through an instance, it binds that instance as ``this``. ``.call(this,
*args)`` supplies the receiver explicitly.

Constructor contracts (``.constructs({...})``) wrap a class into a
contracted subclass whose metaclass checks constructor arguments and the
constructed instance, and whose declared members are contracted methods.
"""

from __future__ import annotations

import functools
import inspect
import logging
from collections.abc import Mapping
from typing import Any, Optional

from rhocontracts.context import Context
from rhocontracts.core import Contract, Visitor, check_wrap_with_context, is_contract
from rhocontracts.elementary import any_, is_a
from rhocontracts.errors import (
    EXTRA_ARGUMENTS_ITEM,
    RESULT_ITEM,
    THIS_ITEM,
    ContractError,
    ContractLibraryError,
    StackItem,
    argument_item,
)
from rhocontracts.promotion import auto_to_contract
from rhocontracts.utils import function_name, ith, stringify

logger = logging.getLogger(__name__)

# Receiver of a call made without one; None is a legitimate receiver.
_UNBOUND = object()


def _visit(here: Context, contract: Contract, value: Any, item: StackItem, reverse: bool = True) -> Any:
    with here.step(item), here.reversed_blame(reverse):
        return check_wrap_with_context(contract, value, here)


def _check_optional_formals(who: str, argument_contracts: list[Contract]) -> None:
    seen_optional = False
    for i, contract in enumerate(argument_contracts):
        if seen_optional and not contract.is_optional:
            raise ContractLibraryError(
                who, None, f"The non-optional {ith(i)} argument cannot follow an optional argument."
            )
        seen_optional = seen_optional or contract.is_optional


# ---------------------------------------------------------------------------
# Function contracts
# ---------------------------------------------------------------------------


class FunctionContract(Contract):
    """Contract on the calls made to a callable."""

    is_function_contract = True

    def __init__(self, name: str, argument_contracts: list[Contract], named: bool = False) -> None:
        super().__init__(name, needs_wrapping=True)
        _check_optional_formals(name, argument_contracts)
        self.argument_contracts = argument_contracts
        self.named = named
        self.extra_argument_contract: Optional[Contract] = None
        self.this_contract: Contract = any_
        self.result_contract: Contract = any_

    def first_checker(self, data: Any) -> bool:
        return callable(data)

    def wrapper(self, data: Any, visit: Visitor, context: Context) -> Any:
        context = context.fork()
        if not context.thing_name:
            context.thing_name = function_name(data)
        return ContractedFunction(self, data, context)

    # -- derivation ---------------------------------------------------------

    def extra_args(self, contract: Any = None) -> FunctionContract:
        """Accept positional arguments beyond the declared ones, checked as one list."""
        return self._derive(extra_argument_contract=any_ if contract is None else auto_to_contract(contract))

    def this_arg(self, contract: Any) -> FunctionContract:
        return self._derive(this_contract=auto_to_contract(contract))

    def returns(self, contract: Any) -> FunctionContract:
        return self._derive(result_contract=auto_to_contract(contract))

    def constructs(self, prototype_fields: Mapping[str, Any]) -> ConstructorContract:
        return ConstructorContract(self, {k: auto_to_contract(c) for k, c in prototype_fields.items()})

    # -- invocation ---------------------------------------------------------

    def _invoke(self, fn: Any, context: Context, this: Any, args: tuple, kwargs: dict) -> Any:
        # A fresh stack per call keeps reentrant calls independent.
        here = context.fork(thing_name=self.thing_name or context.thing_name)
        this, positional, keywords = self._check_inputs(here, this, args, kwargs)
        if this is _UNBOUND:
            result = fn(*positional, **keywords)
        else:
            result = fn(this, *positional, **keywords)
        return self._check_result(here, result)

    def _check_inputs(
        self,
        here: Context,
        this: Any,
        args: tuple,
        kwargs: dict,
        check_this: bool = True,
    ) -> tuple[Any, list[Any], dict[str, Any]]:
        with here.reversed_blame():
            self._check_arity(here, args, kwargs)

        if check_this:
            receiver = None if this is _UNBOUND else this
            checked = _visit(here, self.this_contract, receiver, THIS_ITEM)
            if this is not _UNBOUND:
                this = checked

        positional: list[Any] = []
        keywords: dict[str, Any] = {}
        for i, contract in enumerate(self.argument_contracts):
            item = argument_item(contract.thing_name if self.named else i)
            if i < len(args):
                positional.append(_visit(here, contract, args[i], item))
            elif self.named and contract.thing_name in kwargs:
                keywords[contract.thing_name] = _visit(here, contract, kwargs[contract.thing_name], item)
            else:
                # Optional arguments that were not supplied pass; required ones fail.
                _visit(here, contract, None, item)

        if self.extra_argument_contract is not None:
            extras = list(args[len(self.argument_contracts):])
            positional.extend(_visit(here, self.extra_argument_contract, extras, EXTRA_ARGUMENTS_ITEM))
        return this, positional, keywords

    def _check_result(self, here: Context, result: Any) -> Any:
        return _visit(here, self.result_contract, result, RESULT_ITEM, reverse=False)

    def _check_arity(self, here: Context, args: tuple, kwargs: dict) -> None:
        if kwargs:
            names = [c.thing_name for c in self.argument_contracts] if self.named else []
            for key in kwargs:
                if key not in names:
                    here.fail(ContractError(here, f"Unexpected keyword argument `{key}`").full_contract())
                if names.index(key) < len(args):
                    here.fail(ContractError(here, f"Got multiple values for argument `{key}`").full_contract())

        n_optional = sum(1 for c in self.argument_contracts if c.is_optional)
        n_required = len(self.argument_contracts) - n_optional
        n_actual = len(args) + len(kwargs)

        if n_optional == 0 and self.extra_argument_contract is None:
            if n_actual != n_required:
                here.fail(
                    ContractError(
                        here, f"Wrong number of arguments, expected {n_required} but got {n_actual}"
                    ).full_contract()
                )
        elif n_actual < n_required:
            here.fail(
                ContractError(
                    here, f"Too few arguments, expected at least {n_required} but got {n_actual}"
                ).full_contract()
            )
        elif self.extra_argument_contract is None and n_actual > n_required + n_optional:
            here.fail(
                ContractError(
                    here, f"Too many arguments, expected at most {n_required + n_optional} but got {n_actual}"
                ).full_contract()
            )

    # -- rendering ----------------------------------------------------------

    def _argument_strings(self) -> list[str]:
        if self.named:
            return [f"{{{c.thing_name}: {c}}}" for c in self.argument_contracts]
        return [str(c) for c in self.argument_contracts]

    def _describe(self) -> str:
        this = f"this: {self.this_contract}, " if self.this_contract is not any_ else ""
        extra = f"...{self.extra_argument_contract}" if self.extra_argument_contract is not None else ""
        arguments = ", ".join(self._argument_strings())
        return f"c.{self.contract_name}({this}{arguments}{extra} -> {self.result_contract})"


class ContractedFunction:
    """Callable proxy checking every call of ``fn`` against ``contract``."""

    def __init__(self, contract: FunctionContract, fn: Any, context: Context, this: Any = _UNBOUND) -> None:
        functools.update_wrapper(self, fn, updated=())
        self._contract = contract
        self._fn = fn
        self._context = context
        self._this = this

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self._contract._invoke(self._fn, self._context, self._this, args, kwargs)

    def __get__(self, instance: Any, owner: Optional[type] = None) -> Any:
        if instance is None:
            return self
        return self.bind(instance)

    def bind(self, this: Any) -> ContractedFunction:
        return ContractedFunction(self._contract, self._fn, self._context, this)

    def call(self, this: Any, *args: Any, **kwargs: Any) -> Any:
        """Call with an explicit receiver."""
        return self.bind(this)(*args, **kwargs)

    def __repr__(self) -> str:
        name = getattr(self, "__qualname__", None) or self._context.thing_name or "<anonymous>"
        return f"<contracted function {name}: {self._contract}>"


# ---------------------------------------------------------------------------
# Constructor contracts
# ---------------------------------------------------------------------------


class ConstructorContract(FunctionContract):
    """Function contract applied to a class, plus contracts on its members."""

    def __init__(self, base: FunctionContract, prototype_fields: dict[str, Contract]) -> None:
        self.__dict__.update(base.__dict__)
        self.prototype_fields = prototype_fields

    def first_checker(self, data: Any) -> bool:
        return inspect.isclass(data)

    def nested_checker(self, data: Any, visit: Visitor, context: Context) -> None:
        missing = [name for name in self.prototype_fields if not _has_member(data, name)]
        if missing:
            owner = f"{self.thing_name}'s" if self.thing_name else "the"
            raise ContractLibraryError(
                "constructs",
                context,
                f"some fields present in {owner} prototype contract are missing on the prototype: "
                + ", ".join(missing),
            ).full_contract()

    def wrapper(self, data: Any, visit: Visitor, context: Context) -> Any:
        constructor = data
        context = context.fork()
        if not context.thing_name:
            context.thing_name = constructor.__name__
        contract = self
        wrapped: Optional[type] = None

        def __call__(cls, *args: Any, **kwargs: Any) -> Any:
            # Subclasses of the wrapped class construct normally.
            if cls is not wrapped:
                return super(meta, cls).__call__(*args, **kwargs)
            here = context.fork(thing_name=contract.thing_name or context.thing_name)
            _, positional, keywords = contract._check_inputs(here, _UNBOUND, args, kwargs, check_this=False)
            return contract._check_result(here, super(meta, cls).__call__(*positional, **keywords))

        base_meta = type(constructor)
        meta = type(f"Contracted{base_meta.__name__}", (base_meta,), {"__call__": __call__})

        namespace = {
            "__module__": constructor.__module__,
            "__qualname__": constructor.__qualname__,
            "__doc__": constructor.__doc__,
            "__wrapped__": constructor,
        }
        namespace.update(self._wrap_members(constructor, context))
        wrapped = meta(constructor.__name__, (constructor,), namespace)
        logger.debug(
            "Wrapped constructor %s with %d member contract(s)", constructor.__qualname__, len(self.prototype_fields)
        )
        return wrapped

    def _wrap_members(self, constructor: type, context: Context) -> dict[str, Any]:
        receiver = is_a(constructor)
        members: dict[str, Any] = {}
        for name, member_contract in self.prototype_fields.items():
            raw = inspect.getattr_static(constructor, name)
            if isinstance(raw, (staticmethod, classmethod)):
                func = _unwrapped(raw.__func__)
                fresh = _member_context(name, func, member_contract, context)
                contracted = check_wrap_with_context(member_contract, func, fresh)
                members[name] = staticmethod(contracted) if isinstance(raw, staticmethod) else _class_bound(contracted)
                continue

            raw = _unwrapped(raw)
            if inspect.isfunction(raw):
                if isinstance(member_contract, FunctionContract) and member_contract.this_contract is any_:
                    member_contract = member_contract.this_arg(receiver)
                fresh = _member_context(name, raw, member_contract, context)
                members[name] = check_wrap_with_context(member_contract, raw, fresh)
            else:
                member = getattr(constructor, name)
                fresh = _member_context(name, member, member_contract, context)
                contracted = check_wrap_with_context(member_contract, member, fresh)
                # Stored unbindable: instances must not be passed to it as an extra argument.
                members[name] = staticmethod(contracted) if isinstance(contracted, ContractedFunction) else contracted
        return members

    def _describe(self) -> str:
        fields = ", ".join(f"{k}: {c}" for k, c in self.prototype_fields.items())
        return f"{super()._describe()}.constructs({{{fields}}})"


def _unwrapped(fn: Any) -> Any:
    """The original callable behind a contract installed by an earlier wrap."""
    if isinstance(fn, ContractedFunction):
        return _unwrapped(fn._fn)
    inner = getattr(fn, "__wrapped__", None)
    if inspect.isfunction(fn) and isinstance(inner, ContractedFunction):
        return _unwrapped(inner)
    return fn


def _class_bound(contracted: ContractedFunction) -> classmethod:
    @functools.wraps(contracted, updated=())
    def bound_to_class(cls, *args, **kwargs):
        return contracted.call(cls, *args, **kwargs)

    return classmethod(bound_to_class)


def _has_member(cls: type, name: str) -> bool:
    try:
        inspect.getattr_static(cls, name)
    except AttributeError:
        return False
    return True


def _member_context(name: str, member: Any, contract: Contract, outer: Context) -> Context:
    # Members report a short path of their own but remember where the class was wrapped.
    return Context(
        thing_name=name,
        data=member,
        contract=contract,
        wrapping=True,
        wrapped_at=outer.wrapped_at,
    )


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def _named_arguments(who: str, specs: tuple[Any, ...]) -> list[Contract]:
    contracts = []
    for i, spec in enumerate(specs):
        if is_contract(spec):
            raise ContractLibraryError(
                who,
                None,
                f"expected a one-field mapping specifying the name and the contract of the {ith(i)} "
                f"argument, but got a contract {spec}",
            )
        if not isinstance(spec, Mapping):
            raise ContractLibraryError(
                who,
                None,
                f"expected a mapping with exactly one field to specify the name of the {ith(i)} "
                f"argument, but got {stringify(spec)}",
            )
        if len(spec) != 1:
            raise ContractLibraryError(
                who,
                None,
                f"expected exactly one key to specify the name of the {ith(i)} argument, but got {len(spec)}",
            )
        ((name, contract),) = spec.items()
        contracts.append(auto_to_contract(contract)._derive(thing_name=name))
    return contracts


def fn(*contracts: Any) -> FunctionContract:
    """Function with positional arguments, reported by position in errors."""
    return FunctionContract("fn", [auto_to_contract(c) for c in contracts])


def fun(*specs: Mapping[str, Any]) -> FunctionContract:
    """Function whose arguments are given as ``{name: contract}`` mappings.

    The names appear in error messages and may be passed as keywords.
    """
    return FunctionContract("fun", _named_arguments("fun", specs), named=True)


def method(this_contract: Any, *specs: Mapping[str, Any]) -> FunctionContract:
    if not is_contract(this_contract):
        raise ContractLibraryError(
            "method", None, f"expected a contract for the `this` argument, but got {stringify(this_contract)}"
        )
    return FunctionContract("method", _named_arguments("method", specs), named=True).this_arg(this_contract)
