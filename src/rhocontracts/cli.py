"""
rhocontracts CLI - Inspect the documentation of published contracts.

Commands:
    rhocontracts docs                          Markdown docs of the library itself
    rhocontracts docs shapes.api:registry      Docs of another DocumentationRegistry
    rhocontracts docs --format yaml -o api.yaml
"""

from __future__ import annotations

import importlib
import json
import logging
from pathlib import Path
from typing import Optional

import click
import yaml

from rhocontracts import __version__
from rhocontracts.config import get_log_level
from rhocontracts.documentation import DocumentationRegistry, library_documentation, render_markdown

logger = logging.getLogger(__name__)


def _load_registry(target: str) -> DocumentationRegistry:
    """Resolve ``package.module:attr`` to a registry (calling ``attr`` if needed)."""
    module_path, _, attr = target.partition(":")
    if not module_path or not attr:
        raise click.BadParameter("expected the form package.module:attribute", param_hint="TARGET")
    try:
        module = importlib.import_module(module_path)
    except ImportError as exc:
        raise click.ClickException(f"Cannot import {module_path}: {exc}")
    try:
        registry = getattr(module, attr)
    except AttributeError:
        raise click.ClickException(f"{module_path} has no attribute {attr!r}")

    if callable(registry) and not isinstance(registry, DocumentationRegistry):
        registry = registry()
    if not isinstance(registry, DocumentationRegistry):
        raise click.ClickException(f"{target} is not a DocumentationRegistry")
    return registry


def _pick_module(registry: DocumentationRegistry, module_name: Optional[str]) -> Optional[str]:
    if module_name is not None:
        if module_name not in registry.table:
            known = ", ".join(sorted(name or "<anonymous>" for name in registry.table))
            raise click.ClickException(f"No documentation for module {module_name!r} (known: {known})")
        return module_name
    if len(registry.table) != 1:
        known = ", ".join(sorted(name or "<anonymous>" for name in registry.table))
        raise click.ClickException(f"Choose a module with --module (known: {known})")
    return next(iter(registry.table))


@click.group()
@click.version_option(version=__version__, prog_name="rhocontracts")
def main():
    """rhocontracts - Runtime contracts for values, functions and classes."""
    logging.basicConfig(level=get_log_level().upper(), format="%(levelname)s %(name)s: %(message)s")


@main.command()
@click.argument("target", required=False)
@click.option("--module", "-m", "module_name", help="Module to render (required when the registry has several)")
@click.option(
    "--format", "fmt", type=click.Choice(["markdown", "json", "yaml"]), default="markdown", help="Output format"
)
@click.option("--output", "-o", default="-", help="Output file path ('-' for stdout)")
def docs(target, module_name, fmt, output):
    """Render the documentation of a contract registry.

    TARGET names a DocumentationRegistry (or a function returning one) as
    package.module:attribute. Without it, the library documents itself.

    \b
    Examples:
      rhocontracts docs                              # Markdown to stdout
      rhocontracts docs shapes.api:registry -m shapes
      rhocontracts docs --format json -o docs.json
    """
    registry = _load_registry(target) if target else library_documentation()
    logger.debug("Loaded registry with %d module(s)", len(registry.table))

    if fmt == "markdown":
        output_text = render_markdown(registry, _pick_module(registry, module_name))
    else:
        if module_name is not None:
            data = registry.table[_pick_module(registry, module_name)].summary()
        else:
            data = registry.summary()
        if fmt == "json":
            output_text = json.dumps(data, indent=2) + "\n"
        else:
            output_text = yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)

    if output == "-":
        click.echo(output_text, nl=False)
    else:
        output_path = Path(output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(output_text, encoding="utf-8")
        click.echo(f"Documentation written: {output}")


if __name__ == "__main__":
    main()
