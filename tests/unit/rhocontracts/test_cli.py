"""Tests for the rhocontracts CLI."""

import json
import sys

import pytest
import yaml
from click.testing import CliRunner

from rhocontracts import __version__
from rhocontracts.cli import main


SAMPLE_MODULE = '''\
import rhocontracts as c
from rhocontracts import DocumentationRegistry, publish

registry = DocumentationRegistry()
registry.document_module("shapes", "Geometric helpers.")
registry.document_type("shapes", c.object({"x": c.number}).rename("point"))
registry.document_module("colors", "Palette helpers.")
publish("colors", {"names": ["red"]}, {"names": [c.string]}, registry=registry)
'''


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def sample_target(tmp_path, monkeypatch):
    """A module defining a registry with two documented modules."""
    (tmp_path / "cli_sample_registry.py").write_text(SAMPLE_MODULE)
    monkeypatch.syspath_prepend(str(tmp_path))
    monkeypatch.delitem(sys.modules, "cli_sample_registry", raising=False)
    return "cli_sample_registry:registry"


class TestVersion:
    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


# ---------------------------------------------------------------------------
# docs
# ---------------------------------------------------------------------------


class TestDocs:
    def test_library_markdown_by_default(self, runner):
        result = runner.invoke(main, ["docs"])
        assert result.exit_code == 0, result.output
        assert result.output.startswith("# rhocontracts\n")
        assert "### `contractObject`" in result.output

    def test_json(self, runner):
        result = runner.invoke(main, ["docs", "--format", "json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["rhocontracts"]["types"]["contractObject"]["contract"] == "c.contractObject"

    def test_yaml_for_one_module(self, runner):
        result = runner.invoke(main, ["docs", "--format", "yaml", "-m", "rhocontracts"])
        assert result.exit_code == 0, result.output
        data = yaml.safe_load(result.output)
        assert data["name"] == "rhocontracts"
        assert data["values"]["array"]["category"] == "builders"

    def test_output_file(self, runner, tmp_path):
        output = tmp_path / "out" / "api.md"
        result = runner.invoke(main, ["docs", "--output", str(output)])
        assert result.exit_code == 0, result.output
        assert "Documentation written" in result.output
        assert output.read_text(encoding="utf-8").startswith("# rhocontracts\n")

    def test_factory_target(self, runner):
        """A target naming a function is called to get the registry."""
        result = runner.invoke(main, ["docs", "rhocontracts.documentation:library_documentation"])
        assert result.exit_code == 0, result.output
        assert "## builders" in result.output


class TestDocsTargets:
    def test_module_required_for_several(self, runner, sample_target):
        result = runner.invoke(main, ["docs", sample_target])
        assert result.exit_code == 1
        assert "Choose a module with --module (known: colors, shapes)" in result.output

    def test_pick_a_module(self, runner, sample_target):
        result = runner.invoke(main, ["docs", sample_target, "-m", "shapes"])
        assert result.exit_code == 0, result.output
        assert "# shapes" in result.output
        assert "- `x`: `c.number`" in result.output

    def test_all_modules_as_json(self, runner, sample_target):
        result = runner.invoke(main, ["docs", sample_target, "--format", "json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert set(data) == {"shapes", "colors"}
        assert data["colors"]["values"]["names"]["contract"] == "c.array(c.string)"

    def test_unknown_module(self, runner, sample_target):
        result = runner.invoke(main, ["docs", sample_target, "-m", "sizes"])
        assert result.exit_code == 1
        assert "No documentation for module 'sizes'" in result.output

    def test_malformed_target(self, runner):
        result = runner.invoke(main, ["docs", "no_colon_here"])
        assert result.exit_code == 2
        assert "package.module:attribute" in result.output

    def test_unimportable_target(self, runner):
        result = runner.invoke(main, ["docs", "no_such_module_for_rhocontracts:registry"])
        assert result.exit_code == 1
        assert "Cannot import no_such_module_for_rhocontracts" in result.output

    def test_missing_attribute(self, runner):
        result = runner.invoke(main, ["docs", "rhocontracts.documentation:nothing_here"])
        assert result.exit_code == 1
        assert "has no attribute 'nothing_here'" in result.output

    def test_not_a_registry(self, runner):
        result = runner.invoke(main, ["docs", "rhocontracts.documentation:BUILTIN_CONTRACT_NAMES"])
        assert result.exit_code == 1
        assert "is not a DocumentationRegistry" in result.output
