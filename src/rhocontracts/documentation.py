"""
Documentation registry for published contracts.

Modules describe themselves with ``document_module``/``document_category``,
name their reusable contracts with ``document_type`` and record their
exported values with ``publish``. The registry can then be rendered as
Markdown or dumped as plain data (``rhocontracts docs``).

Usage:
    registry = DocumentationRegistry()
    registry.document_module("shapes", "Geometric helpers.")
    point = c.object({"x": c.number, "y": c.number}).rename("point")
    registry.document_type("shapes", point)
    exports = publish("shapes", implementation, {"norm": c.fn(point).returns(c.number)}, registry=registry)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from rhocontracts.combinators import and_, cyclic, optional, or_
from rhocontracts.core import Contract
from rhocontracts.elementary import any_, any_function, contract_, is_a, one_of, pred, string
from rhocontracts.errors import ContractLibraryError
from rhocontracts.functions import fn, fun, method
from rhocontracts.promotion import auto_to_contract, check, to_contract, wrap
from rhocontracts.structural import array, hash_, object_

logger = logging.getLogger(__name__)

# Names carried by contracts as the library builds them. A documented type
# must have been renamed to something more specific first.
BUILTIN_CONTRACT_NAMES = frozenset(
    {
        "any",
        "nothing",
        "falsy",
        "truthy",
        "string",
        "number",
        "integer",
        "bool",
        "regexp",
        "date",
        "any_function",
        "error",
        "contract",
        "unnamed-pred",
        "and_",
        "silent_and",
        "or_",
        "cyclic",
        "forward_ref",
        "array",
        "tuple",
        "tuple.strict",
        "hash",
        "object",
        "object.strict",
        "fn",
        "fun",
        "method",
    }
)
_BUILTIN_NAME_PREFIXES = ("one_of(", "value(", "is_a(", "matches(", "quacks_like(")


def is_builtin_name(name: str) -> bool:
    return name in BUILTIN_CONTRACT_NAMES or name.startswith(_BUILTIN_NAME_PREFIXES)


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class CategoryDocumentation(BaseModel):
    """A named group of types and values within a module."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., description="Category name")
    doc: list[str] = Field(default_factory=list, description="Markdown lines")


class ModuleDocumentation(BaseModel):
    """Everything documented about one module."""

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    name: Optional[str] = Field(None, description="Module name (None for anonymous wrap_all)")
    doc: list[str] = Field(default_factory=list, description="Markdown lines")
    categories: list[CategoryDocumentation] = Field(default_factory=list)
    types: dict[str, Contract] = Field(default_factory=dict, description="Documented types by name")
    values: dict[str, Contract] = Field(default_factory=dict, description="Published values by name")

    def summary(self) -> dict[str, Any]:
        """Plain-data view, suitable for JSON or YAML output."""
        return {
            "name": self.name,
            "doc": list(self.doc),
            "categories": [c.model_dump() for c in self.categories],
            "types": {name: _contract_summary(c) for name, c in self.types.items()},
            "values": {name: _contract_summary(c) for name, c in self.values.items()},
        }


def _contract_summary(contract: Contract) -> dict[str, Any]:
    return {
        "contract": str(contract),
        "doc": list(contract.the_doc),
        "category": contract.category,
    }


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class DocumentationRegistry:
    """Table of module documentation, keyed by module name."""

    def __init__(self) -> None:
        self.table: dict[Optional[str], ModuleDocumentation] = {}

    def module(self, module_name: Optional[str]) -> ModuleDocumentation:
        if module_name not in self.table:
            self.table[module_name] = ModuleDocumentation(name=module_name)
        return self.table[module_name]

    def document_module(self, module_name: Optional[str], *lines: str) -> None:
        self.module(module_name).doc.extend(lines)

    def document_category(self, module_name: Optional[str], category: str, *lines: str) -> None:
        self.module(module_name).categories.append(CategoryDocumentation(name=category, doc=list(lines)))

    def document_type(self, module_name: Optional[str], contract: Contract) -> None:
        if is_builtin_name(contract.contract_name):
            raise ContractLibraryError(
                "document_type", None, f"called on a contract that still has its built-in name: {contract}"
            )
        types = self.module(module_name).types
        if contract.contract_name in types:
            raise ContractLibraryError(
                "document_type", None, f"called with a contract whose name is already documented: {contract}"
            )
        types[contract.contract_name] = contract
        logger.debug("Documented type %s in %s", contract.contract_name, module_name or "<anonymous>")

    def summary(self) -> dict[str, Any]:
        return {name or "": module.summary() for name, module in self.table.items()}

    def clear(self) -> None:
        self.table.clear()


# ---------------------------------------------------------------------------
# Publishing
# ---------------------------------------------------------------------------


def _has_member(implementation: Any, name: str) -> bool:
    if isinstance(implementation, Mapping):
        return name in implementation
    return hasattr(implementation, name)


def _get_member(implementation: Any, name: str) -> Any:
    if isinstance(implementation, Mapping):
        return implementation[name]
    return getattr(implementation, name)


def publish(
    module_name: Optional[str],
    implementation: Any,
    contracts: Mapping[str, Any],
    extras: Optional[Mapping[str, Any]] = None,
    registry: Optional[DocumentationRegistry] = None,
) -> dict[str, Any]:
    """Wrap each member of ``implementation`` named in ``contracts``.

    Args:
        module_name: Name the values are documented under
        implementation: Mapping or object (module, instance) holding the members
        contracts: Contract per member name
        extras: Values exported as they are, overridden by wrapped members
        registry: Registry recording the contracts, if any

    Returns:
        Dict of the wrapped members merged over ``extras``

    Raises:
        ContractLibraryError: If a contract names a missing member
    """
    result = dict(extras or {})
    for name, contract in contracts.items():
        if not _has_member(implementation, name):
            raise ContractLibraryError("publish", None, f"{name} is missing in the implementation")
        contract = auto_to_contract(contract)
        if registry is not None:
            registry.module(module_name).values[name] = contract
        result[name] = contract.wrap(_get_member(implementation, name), name)

    logger.debug("Published %d value(s) from %s", len(contracts), module_name or "<anonymous>")
    return result


def wrap_all(implementation: Any, contracts: Mapping[str, Any]) -> dict[str, Any]:
    return publish(None, implementation, contracts)


# ---------------------------------------------------------------------------
# Markdown rendering
# ---------------------------------------------------------------------------


def _render_type(name: str, contract: Contract) -> list[str]:
    lines = [f"### `{name}`", ""]
    lines.extend(contract.the_doc)
    fields = getattr(contract, "field_contracts", None)
    if fields:
        if contract.the_doc:
            lines.append("")
        lines.extend(f"- `{field}`: `{c}`" for field, c in fields.items())
    else:
        lines.append(f"`{contract}`")
    lines.append("")
    return lines


def _render_value(name: str, contract: Contract) -> list[str]:
    lines = [f"### `{name}`", "", f"`{contract}`", ""]
    if contract.the_doc:
        lines.extend(contract.the_doc)
        lines.append("")
    return lines


def _render_section(module: ModuleDocumentation, category: Optional[str]) -> list[str]:
    lines: list[str] = []
    for name, contract in module.types.items():
        if contract.category == category:
            lines.extend(_render_type(name, contract))
    for name, contract in module.values.items():
        if contract.category == category:
            lines.extend(_render_value(name, contract))
    return lines


def render_markdown(registry: DocumentationRegistry, module_name: Optional[str]) -> str:
    """Render one module of ``registry`` as a Markdown document."""
    if module_name not in registry.table:
        raise KeyError(f"No documentation for module {module_name!r}")
    module = registry.table[module_name]
    known = {c.name for c in module.categories}

    lines = [f"# {module_name or 'Anonymous module'}", ""]
    if module.doc:
        lines.extend(module.doc)
        lines.append("")
    # Contracts whose category was never declared are listed with the uncategorised ones.
    for name, contract in module.types.items():
        if contract.category not in known:
            lines.extend(_render_type(name, contract))
    for name, contract in module.values.items():
        if contract.category not in known:
            lines.extend(_render_value(name, contract))

    for category in module.categories:
        lines.extend([f"## {category.name}", ""])
        if category.doc:
            lines.extend(category.doc)
            lines.append("")
        lines.extend(_render_section(module, category.name))

    return "\n".join(lines).rstrip() + "\n"


# ---------------------------------------------------------------------------
# The library's own documentation
# ---------------------------------------------------------------------------


def library_documentation() -> DocumentationRegistry:
    """Registry documenting ``rhocontracts`` itself."""
    registry = DocumentationRegistry()
    registry.document_module(
        "rhocontracts",
        "Runtime contracts: check values once, or wrap functions and classes",
        "so that every later use keeps being checked.",
    )
    registry.document_category("rhocontracts", "builders", "Functions that build new contracts.")

    contract_object = cyclic()
    contract_object.close_cycle(
        object_(
            {
                "check": method(contract_object, {"data": any_}, {"name": optional(string)}).returns(any_),
                "wrap": method(contract_object, {"data": any_}, {"name": optional(string)}).returns(any_),
                "rename": method(contract_object, {"name": string}).returns(contract_object),
                "optional": method(contract_object).returns(contract_object),
                "doc": method(contract_object).extra_args([string]).returns(contract_object),
            }
        ).rename("contractObject")
    )
    registry.document_type(
        "rhocontracts", contract_object.doc("Contracts are objects; every method returns a new contract.")
    )

    builders = {
        "check": fun({"contract": contract_}, {"data": any_}, {"name": optional(string)}),
        "wrap": fun({"contract": contract_}, {"data": any_}, {"name": optional(string)}),
        "to_contract": fun({"value": contract_}).returns(contract_),
        "one_of": fn().extra_args().returns(contract_),
        "pred": fun({"fn": any_function}).returns(contract_),
        "is_a": fun({"parent": is_a(type)}).returns(contract_),
        "and_": fn().extra_args([contract_]).returns(contract_),
        "or_": fn().extra_args([contract_]).returns(contract_),
        "optional": fun({"contract": contract_}).returns(contract_),
        "array": fun({"item_contract": contract_}).returns(contract_),
        "hash": fun({"value_contract": contract_}).returns(contract_),
        "object": fun({"field_contracts": optional(pred(lambda v: isinstance(v, Mapping)))}).returns(contract_),
    }
    implementation = {
        "check": check,
        "wrap": wrap,
        "to_contract": to_contract,
        "one_of": one_of,
        "pred": pred,
        "is_a": is_a,
        "and_": and_,
        "or_": or_,
        "optional": optional,
        "array": array,
        "hash": hash_,
        "object": object_,
    }
    documented = {
        name: contract.doc(f"See `rhocontracts.{name}`.", category="builders")
        for name, contract in builders.items()
    }
    publish("rhocontracts", implementation, documented, registry=registry)
    return registry
