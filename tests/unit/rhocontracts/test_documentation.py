"""Tests for the documentation registry, publish and Markdown rendering."""

import json
from types import SimpleNamespace

import pytest

import rhocontracts as c
from rhocontracts import ContractError, ContractLibraryError
from rhocontracts.documentation import (
    DocumentationRegistry,
    is_builtin_name,
    library_documentation,
    publish,
    render_markdown,
    wrap_all,
)


def _norm(p):
    return (p["x"] ** 2 + p["y"] ** 2) ** 0.5


point = c.object({"x": c.number, "y": c.number}).rename("point").doc("A point in the plane.")
norm_contract = c.fn(point).returns(c.number).doc("Distance from the origin.", category="geometry")


@pytest.fixture
def registry():
    registry = DocumentationRegistry()
    registry.document_module("shapes", "Geometric helpers.")
    registry.document_category("shapes", "geometry", "Measurements.")
    registry.document_type("shapes", point)
    return registry


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestRegistry:
    def test_module_documentation(self, registry):
        module = registry.table["shapes"]
        assert module.doc == ["Geometric helpers."]
        assert [cat.name for cat in module.categories] == ["geometry"]
        assert module.types["point"] is point

    def test_builtin_names_are_refused(self, registry):
        """Types must be renamed before they are documented."""
        with pytest.raises(ContractLibraryError, match="still has its built-in name"):
            registry.document_type("shapes", c.object({"x": c.number}))
        with pytest.raises(ContractLibraryError, match="still has its built-in name"):
            registry.document_type("shapes", c.value(3))

    def test_duplicate_names_are_refused(self, registry):
        with pytest.raises(ContractLibraryError, match="already documented"):
            registry.document_type("shapes", c.string.rename("point"))

    @pytest.mark.parametrize("name", ["number", "fun", "object.strict", "one_of(1, 2)", "quacks_like(p)"])
    def test_is_builtin_name(self, name):
        assert is_builtin_name(name)

    def test_renamed_contracts_are_not_builtin(self):
        assert not is_builtin_name("point")

    def test_summary(self, registry):
        publish("shapes", {"norm": _norm}, {"norm": norm_contract}, registry=registry)
        summary = registry.summary()["shapes"]
        assert summary["types"]["point"] == {
            "contract": "c.point",
            "doc": ["A point in the plane."],
            "category": None,
        }
        assert summary["values"]["norm"]["category"] == "geometry"
        assert summary["categories"] == [{"name": "geometry", "doc": ["Measurements."]}]
        json.dumps(summary)

    def test_clear(self, registry):
        registry.clear()
        assert registry.table == {}


# ---------------------------------------------------------------------------
# publish / wrap_all
# ---------------------------------------------------------------------------


class TestPublish:
    def test_wraps_members_of_a_mapping(self, registry):
        exports = publish("shapes", {"norm": _norm}, {"norm": norm_contract}, registry=registry)
        assert exports["norm"]({"x": 3, "y": 4}) == 5.0
        with pytest.raises(ContractError, match="broke the contract on `norm\\(\\)`"):
            exports["norm"]({"x": "3", "y": 4})
        assert registry.table["shapes"].values["norm"] is norm_contract

    def test_wraps_attributes_of_an_object(self):
        implementation = SimpleNamespace(norm=_norm, unrelated=object())
        exports = publish("shapes", implementation, {"norm": norm_contract})
        assert set(exports) == {"norm"}
        assert exports["norm"]({"x": 0, "y": 2}) == 2.0

    def test_extras_are_exported_unchanged(self):
        exports = publish(None, {"norm": _norm}, {"norm": norm_contract}, extras={"VERSION": "1", "norm": None})
        assert exports["VERSION"] == "1"
        assert exports["norm"] is not None

    def test_missing_member(self):
        with pytest.raises(ContractLibraryError) as exc_info:
            publish("shapes", {"norm": _norm}, {"area": c.fn()})
        assert exc_info.value.message == "publish: area is missing in the implementation\n"

    def test_values_are_checked_on_publish(self):
        with pytest.raises(ContractError, match="`limit` broke its contract"):
            publish("shapes", {"limit": "ten"}, {"limit": c.number})

    def test_wrap_all(self):
        exports = wrap_all({"norm": _norm, "origin": {"x": 0, "y": 0}}, {"norm": norm_contract, "origin": point})
        assert exports["origin"] == {"x": 0, "y": 0}
        with pytest.raises(ContractError):
            exports["norm"]("origin")


# ---------------------------------------------------------------------------
# Markdown
# ---------------------------------------------------------------------------


class TestRenderMarkdown:
    def test_document_layout(self, registry):
        publish("shapes", {"norm": _norm}, {"norm": norm_contract}, registry=registry)
        markdown = render_markdown(registry, "shapes")

        assert markdown.startswith("# shapes\n\nGeometric helpers.\n")
        assert "### `point`\n\nA point in the plane.\n\n- `x`: `c.number`\n- `y`: `c.number`\n" in markdown
        assert "## geometry\n\nMeasurements.\n" in markdown
        assert "### `norm`\n\n`c.fn(c.point -> c.number)`\n\nDistance from the origin.\n" in markdown
        assert markdown.index("### `point`") < markdown.index("## geometry") < markdown.index("### `norm`")
        assert markdown.endswith("\n")

    def test_undeclared_category_is_listed_first(self, registry):
        """Values filed under a category nobody declared are not lost."""
        publish("shapes", {"f": len}, {"f": c.fn().doc("Misc.", category="misc")}, registry=registry)
        markdown = render_markdown(registry, "shapes")
        assert "### `f`" in markdown
        assert markdown.index("### `f`") < markdown.index("## geometry")

    def test_unknown_module(self, registry):
        with pytest.raises(KeyError):
            render_markdown(registry, "missing")


class TestLibraryDocumentation:
    def test_documents_the_contract_object(self):
        markdown = render_markdown(library_documentation(), "rhocontracts")
        assert "### `contractObject`" in markdown
        assert "Contracts are objects; every method returns a new contract." in markdown
        assert "this: c.contractObject" in markdown

    def test_documents_the_builders(self):
        registry = library_documentation()
        markdown = render_markdown(registry, "rhocontracts")
        assert "## builders" in markdown
        for name in ("check", "wrap", "array", "object", "or_"):
            assert f"### `{name}`" in markdown
        assert registry.table["rhocontracts"].values["array"].category == "builders"

    def test_builder_docs_in_summary(self):
        summary = library_documentation().summary()
        assert summary["rhocontracts"]["values"]["to_contract"]["doc"] == ["See `rhocontracts.to_contract`."]
