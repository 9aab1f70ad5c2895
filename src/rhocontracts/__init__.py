"""
rhocontracts - Runtime contracts for Python values, functions and classes.

A contract describes acceptable values. ``check`` verifies a value once;
``wrap`` verifies it and, for functions and classes, returns a proxy that
keeps checking every later call. Violations raise ``ContractError`` with
a message saying which part of the value failed and who is to blame.

Example usage:
    import rhocontracts as c

    point = c.object({"x": c.number, "y": c.number})
    c.check(point, {"x": 1, "y": 2})

    @c.fun({"p": point}).returns(c.number).wrap
    def norm(p):
        return (p["x"] ** 2 + p["y"] ** 2) ** 0.5

    norm({"x": "one", "y": 2})  # ContractError: ... Expected number, but got 'one'

Names that clash with Python builtins are exposed as attributes only
(``c.any``, ``c.bool``, ``c.tuple``, ``c.hash``, ``c.object``,
``c.contract``) and are left out of ``__all__`` so that star imports do
not shadow the builtins.
"""

__version__ = "0.1.0"

from rhocontracts.combinators import and_, cyclic, forward_ref, optional, or_, silent_and
from rhocontracts.config import get_config, reset_config, set_error_message_inspection_depth
from rhocontracts.core import Contract
from rhocontracts.documentation import (
    DocumentationRegistry,
    library_documentation,
    publish,
    render_markdown,
    wrap_all,
)
from rhocontracts.elementary import (
    any_function,
    date,
    error,
    falsy,
    integer,
    is_a,
    matches,
    nothing,
    number,
    one_of,
    pred,
    regexp,
    string,
    truthy,
    value,
)
from rhocontracts.errors import ContractError, ContractLibraryError
from rhocontracts.functions import ContractedFunction, fn, fun, method
from rhocontracts.promotion import check, from_example, quacks_like, to_contract, wrap
from rhocontracts.structural import array

__all__ = [
    # Engine
    "Contract",
    "ContractError",
    "ContractLibraryError",
    "ContractedFunction",
    "check",
    "wrap",
    "to_contract",
    "from_example",
    "quacks_like",
    # Elementary
    "nothing",
    "falsy",
    "truthy",
    "value",
    "one_of",
    "string",
    "number",
    "integer",
    "regexp",
    "date",
    "any_function",
    "is_a",
    "error",
    "pred",
    "matches",
    # Combinators
    "and_",
    "silent_and",
    "or_",
    "optional",
    "cyclic",
    "forward_ref",
    # Structural
    "array",
    # Functions
    "fn",
    "fun",
    "method",
    # Documentation
    "DocumentationRegistry",
    "publish",
    "wrap_all",
    "render_markdown",
    "library_documentation",
    # Configuration
    "get_config",
    "reset_config",
    "set_error_message_inspection_depth",
    "__version__",
]

_BUILTIN_ALIASES = {
    "any": ("rhocontracts.elementary", "any_"),
    "bool": ("rhocontracts.elementary", "bool_"),
    "contract": ("rhocontracts.elementary", "contract_"),
    "tuple": ("rhocontracts.structural", "tuple_"),
    "hash": ("rhocontracts.structural", "hash_"),
    "object": ("rhocontracts.structural", "object_"),
}


def __getattr__(name: str):
    if name in _BUILTIN_ALIASES:
        import importlib

        module_name, attr = _BUILTIN_ALIASES[name]
        return getattr(importlib.import_module(module_name), attr)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
