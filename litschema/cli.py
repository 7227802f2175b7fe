"""
litschema CLI - JSON Schema generation from lit documentation

A command-line tool that:
1. Reads a directory of lit documentation files
2. Extracts the configuration types they document
3. Emits a JSON Schema that validates those configuration files
"""

import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from litschema import __version__
from litschema.config import ExtractionConfig
from litschema.errors import ExtractionError, LitSchemaError
from litschema.generator import LitSchemaGenerator
from litschema.utils import check_schema_document, load_config_file, scan_documentation, validate_config

app = typer.Typer(
    name="litschema",
    help="JSON Schema generation from lit documentation",
    add_completion=False,
)

console = Console(stderr=True)


def _setup_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[str], root: Optional[str]) -> ExtractionConfig:
    return ExtractionConfig.load(
        Path(config_file) if config_file else None,
        root_anchor=root,
    )


@app.command()
def generate(
    docs_path: str = typer.Argument(..., help="Directory containing .lit files"),
    include: Optional[List[str]] = typer.Option(
        None,
        "--include",
        "-i",
        help="Glob pattern (relative to docs path) of files to include; repeatable",
    ),
    exclude: Optional[List[str]] = typer.Option(
        None,
        "--exclude",
        "-x",
        help="Glob pattern (relative to docs path) of files to skip; repeatable",
    ),
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Schema output file (default: stdout)",
    ),
    root: Optional[str] = typer.Option(None, "--root", "-r", help="Root anchor (default: pipeline)"),
    config_file: Optional[str] = typer.Option(None, "--config", "-c", help="JSON extraction config file"),
    workers: int = typer.Option(1, "--workers", "-w", help="Parallel parse workers"),
    check: bool = typer.Option(True, "--check/--no-check", help="Meta-validate the generated schema"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """
    Generate a JSON Schema from lit documentation.

    Example:
        litschema generate docs/lit --output schema.json

    Example (only step docs, custom root):
        litschema generate docs/lit \\
            --include 'steps/*.lit' \\
            --root step \\
            --output step.schema.json
    """
    _setup_logging(verbose)

    try:
        config = _load_config(config_file, root)
        generator = LitSchemaGenerator(config, workers=workers)
        result = generator.generate_from_directory(Path(docs_path), include, exclude)
    except (LitSchemaError, ValueError) as e:
        console.print(f"[red]❌ Error: {escape(str(e))}[/red]", soft_wrap=True)
        raise typer.Exit(1)

    if check:
        problems = check_schema_document(result.schema_document)
        if problems:
            for problem in problems:
                console.print(f"[red]❌ {escape(problem)}[/red]", soft_wrap=True)
            raise typer.Exit(1)

    text = json.dumps(result.schema_document, indent=2, ensure_ascii=False) + "\n"

    if output:
        output_path = Path(output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(text, encoding="utf-8")
    else:
        typer.echo(text, nl=False)

    summary_table = Table(show_header=True, header_style="bold cyan")
    summary_table.add_column("Metric")
    summary_table.add_column("Value", justify="right")

    summary_table.add_row("Documents", str(result.total_documents))
    summary_table.add_row("Anchors", str(result.total_anchors))
    summary_table.add_row("Root", result.root)
    for kind, count in result.types_by_kind.items():
        summary_table.add_row(f"  {kind.capitalize()} types", str(count))
    summary_table.add_row("Duplicate anchors", str(len(result.duplicates)))
    summary_table.add_row("Unresolved references", str(len(result.unresolved)))
    summary_table.add_row("Warnings", str(len(result.diagnostics)))

    console.print(summary_table)

    if output:
        console.print(f"\n📄 Schema: [cyan]{escape(output)}[/cyan]", soft_wrap=True)


@app.command()
def anchors(
    docs_path: str = typer.Argument(..., help="Directory containing .lit files"),
    root: Optional[str] = typer.Option(None, "--root", "-r", help="Root anchor (default: pipeline)"),
    config_file: Optional[str] = typer.Option(None, "--config", "-c", help="JSON extraction config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """
    List the anchors defined in a documentation corpus.

    Shows where each anchor is defined and which kind of type it was
    inferred as, followed by duplicate anchors and unresolved references.
    """
    _setup_logging(verbose)

    try:
        config = _load_config(config_file, root)
        generator = LitSchemaGenerator(config)
        corpus = scan_documentation(Path(docs_path))
        documents = generator.parse_corpus(corpus)
    except (LitSchemaError, ValueError) as e:
        console.print(f"[red]❌ Error: {escape(str(e))}[/red]", soft_wrap=True)
        raise typer.Exit(1)

    from litschema.corpus import build_index
    from litschema.extraction import extract_schema_graph

    index = build_index(documents)

    kinds = {}
    try:
        graph = extract_schema_graph(index, config)
        kinds = {name: node.kind for name, node in graph.types.items()}
    except ExtractionError as e:
        console.print(f"[yellow]⚠️  Extraction failed: {escape(str(e))}[/yellow]", soft_wrap=True)

    anchors_table = Table(show_header=True, header_style="bold cyan")
    anchors_table.add_column("Anchor")
    anchors_table.add_column("Kind")
    anchors_table.add_column("Defined at")
    anchors_table.add_column("References", justify="right")

    for anchor, site in index.definitions.items():
        anchors_table.add_row(
            anchor,
            kinds.get(anchor, "?"),
            f"{site.path}:{site.line}",
            str(len(index.referrers(anchor))),
        )

    console.print(anchors_table)

    if index.duplicates:
        console.print("\n[bold]Duplicate anchors (ignored)[/bold]")
        for duplicate in index.duplicates:
            console.print(
                f"  [yellow]{duplicate.anchor}[/yellow] at {duplicate.path}:{duplicate.line} "
                f"(first: {duplicate.first_path}:{duplicate.first_line})"
            )

    if index.unresolved:
        console.print("\n[bold]Unresolved references[/bold]")
        for ref in index.unresolved:
            console.print(f"  [red]{ref.target}[/red] at {ref.path}:{ref.line}")


@app.command()
def validate(
    config_path: str = typer.Argument(..., help="YAML or JSON configuration file to validate"),
    schema: str = typer.Option(..., "--schema", "-s", help="Generated schema file"),
):
    """
    Validate a configuration file against a generated schema.

    Example:
        litschema validate pipeline.yml --schema schema.json
    """
    try:
        schema_document = json.loads(Path(schema).read_text(encoding="utf-8"))
        instance = load_config_file(Path(config_path))
    except (OSError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]❌ Error: {escape(str(e))}[/red]", soft_wrap=True)
        raise typer.Exit(1)

    problems = check_schema_document(schema_document)
    if problems:
        for problem in problems:
            console.print(f"[red]❌ {escape(problem)}[/red]", soft_wrap=True)
        raise typer.Exit(1)

    passed, errors = validate_config(instance, schema_document)

    if passed:
        console.print(f"[bold green]✅ {escape(config_path)} is valid[/bold green]", soft_wrap=True)
        return

    console.print(Panel.fit(
        escape("\n".join(errors)),
        title=f"[red]{len(errors)} validation error(s)[/red]",
        border_style="red"
    ))
    raise typer.Exit(1)


@app.command()
def version():
    """Show the version of litschema."""
    console.print(f"[bold cyan]litschema[/bold cyan] v{__version__}")
    console.print("JSON Schema generation from lit documentation")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
