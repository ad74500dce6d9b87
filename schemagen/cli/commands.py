#!/usr/bin/env python3
"""
CLI Commands for schemagen

``check`` validates instance documents against a schema and ``suite`` runs
the draft-07 conformance fixtures.
"""

import json
import logging
from dataclasses import replace
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
import yaml
from rich.console import Console
from rich.table import Table

from ..config.settings import get_config, is_debug_mode
from ..conformance import (
    METASCHEMA_URI,
    Status,
    SuiteReport,
    discover_suite_files,
    load_metaschema,
    load_remotes,
    run_suite,
)
from ..core.compiler import generate_validator
from ..core.nodes import validate
from ..core.values import json_type
from ..utils.error_handler import CompileError, SchemagenError, handle_and_exit


console = Console()

app = typer.Typer(add_completion=False, help="Compile and evaluate draft-07 JSON Schemas.")

STATUS_STYLES = {
    Status.PASSED: "green",
    Status.FAILED: "red",
    Status.UNIMPLEMENTED: "yellow",
}


def configure_logging(debug: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


class JsonYamlLoader(yaml.SafeLoader):
    """SafeLoader restricted to JSON values: no timestamps, exact decimals."""


JsonYamlLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:timestamp"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def _construct_decimal(loader: yaml.SafeLoader, node: yaml.ScalarNode) -> Decimal:
    text = loader.construct_scalar(node).replace("_", "")
    try:
        return Decimal(text)
    except InvalidOperation:
        # .inf, .nan and sexagesimal forms
        return Decimal(repr(loader.construct_yaml_float(node)))


JsonYamlLoader.add_constructor("tag:yaml.org,2002:float", _construct_decimal)


def _ensure_json(value: Any, path: Path) -> Any:
    if isinstance(value, dict):
        for key, member in value.items():
            if not isinstance(key, str):
                raise ValueError(f"{path}: object key {key!r} is not a string")
            _ensure_json(member, path)
    elif isinstance(value, list):
        for item in value:
            _ensure_json(item, path)
    else:
        try:
            json_type(value)
        except TypeError as e:
            raise ValueError(f"{path}: {e}")
    return value


def _load_document(path: Path) -> Any:
    """Read a JSON (or YAML, by extension) document keeping decimals exact."""
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yaml", ".yml"):
        return _ensure_json(yaml.load(text, Loader=JsonYamlLoader), path)
    return json.loads(text, parse_float=Decimal)


def _load_remotes(pairs: Optional[List[str]]) -> Dict[str, Any]:
    remotes = {METASCHEMA_URI: load_metaschema()}
    for pair in pairs or []:
        uri, sep, path = pair.partition("=")
        if not sep or not uri or not path:
            raise typer.BadParameter(f"expected URI=PATH, got {pair!r}", param_hint="--remote")
        remotes[uri] = _load_document(Path(path))
    return remotes


@app.callback()
def main(
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    configure_logging(debug or is_debug_mode())


@app.command()
def check(
    schema: Path = typer.Argument(..., exists=True, dir_okay=False, help="Schema document"),
    instances: List[Path] = typer.Argument(..., exists=True, dir_okay=False, help="Instance documents"),
    remote: Optional[List[str]] = typer.Option(
        None, "--remote", "-r", help="Extra document for $ref, as URI=PATH (repeatable)"
    ),
    base_uri: str = typer.Option("", "--base-uri", help="URI of the schema document"),
    assert_formats: bool = typer.Option(False, "--assert-formats", help="Treat 'format' as an assertion"),
) -> None:
    """Validate each INSTANCE against SCHEMA."""
    config = get_config()
    schema_config = replace(
        config.schema, assert_formats=config.schema.assert_formats or assert_formats
    )

    try:
        document = _load_document(schema)
        remotes = _load_remotes(remote)
    except (OSError, ValueError, yaml.YAMLError) as e:
        handle_and_exit(e, f"loading {schema}")

    try:
        node = generate_validator(document, remotes=remotes, base_uri=base_uri, config=schema_config)
    except CompileError as e:
        handle_and_exit(e, f"compiling {schema}", exit_code=2)

    invalid = 0
    for path in instances:
        try:
            instance = _load_document(path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            handle_and_exit(e, f"loading {path}")
        if validate(node, instance):
            console.print(f"[green]valid[/green]   {path}")
        else:
            invalid += 1
            console.print(f"[red]invalid[/red] {path}")

    if invalid:
        raise typer.Exit(code=1)


def _render_report(report: SuiteReport, show_passed: bool) -> None:
    table = Table(title="draft-07 conformance")
    table.add_column("File", style="cyan")
    table.add_column("Group")
    table.add_column("Outcome")

    for group in report.groups:
        for outcome in group.outcomes:
            if outcome.status is Status.PASSED and not show_passed:
                continue
            style = STATUS_STYLES[outcome.status]
            table.add_row(group.source, group.description, f"[{style}]{outcome}[/{style}]")

    if table.row_count:
        console.print(table)

    counts = report.counts
    console.print(
        f"[green]{counts[Status.PASSED]} passed[/green], "
        f"[red]{counts[Status.FAILED]} failed[/red], "
        f"[yellow]{counts[Status.UNIMPLEMENTED]} unimplemented[/yellow]"
    )


@app.command()
def suite(
    paths: Optional[List[Path]] = typer.Argument(
        None, help="Fixture files or directories (default: the configured draft7 directory)"
    ),
    remotes: Optional[Path] = typer.Option(None, "--remotes", help="Directory of remote documents"),
    optional: bool = typer.Option(False, "--optional", help="Include the optional/ fixtures"),
    show_passed: bool = typer.Option(False, "--show-passed", help="List passing tests too"),
) -> None:
    """Run the JSON-Schema-Test-Suite fixtures and report each outcome."""
    config = get_config()
    targets = paths or [config.suite.suite_dir]
    remotes_dir = remotes or config.suite.remotes_dir

    try:
        files = discover_suite_files(targets, include_optional=optional)
        remote_documents = load_remotes(remotes_dir, config.suite.remotes_base_uri)
        report = run_suite(files, remote_documents, config.schema)
    except SchemagenError as e:
        handle_and_exit(e, "running conformance suite")

    _render_report(report, show_passed)

    if not report.ok:
        raise typer.Exit(code=1)


def run() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    run()
