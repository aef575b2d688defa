"""Command-line interface for lineardoc.

Provides commands for inspecting linear document files (JSON lists of items)
and editing them through transactions from the terminal.
"""

import json
from collections import Counter
from pathlib import Path
from typing import Annotated

import typer

from . import __version__
from .batch import BatchOperations
from .document import Document
from .export import selection_to_dicts, tree_to_xml_string
from .linear import ABSENT
from .ranges import Range
from .transaction import Transaction

app = typer.Typer(
    name="lineardoc",
    help="Inspect and edit linear document data with transactions.",
    no_args_is_help=True,
)

DryRunOption = Annotated[
    bool, typer.Option("--dry-run", help="Print the transaction instead of applying it")
]
OutputOption = Annotated[
    Path | None, typer.Option("--output", "-o", help="Output file path")
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"lineardoc version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Inspect and edit linear document data with transactions."""
    pass


def _finish(doc: Document, tx: Transaction, file: Path, output: Path | None, dry_run: bool) -> None:
    """Print the transaction (dry run) or commit it and save the document."""
    if dry_run:
        typer.echo(json.dumps(tx.to_dict(), ensure_ascii=False, indent=2))
        return
    doc.commit(tx)
    output_path = output or file
    doc.save(output_path)
    typer.echo(
        f"Applied {len(tx.get_operations())} operations "
        f"(length difference {tx.get_length_difference():+d}), saved to {output_path}"
    )


@app.command()
def info(
    file: Annotated[Path, typer.Argument(help="Path to the JSON document file")],
) -> None:
    """Show document information."""
    try:
        doc = Document.from_file(file)
        tree = doc.get_tree()
        counts = Counter(node.type for node in tree.depth_first() if node is not tree.root)
        typer.echo(f"File: {file}")
        typer.echo(f"Length: {doc.get_length()}")
        typer.echo(f"Nodes: {len(tree) - 1}")
        for type_name, count in sorted(counts.items()):
            typer.echo(f"  {type_name}: {count}")
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def tree(
    file: Annotated[Path, typer.Argument(help="Path to the JSON document file")],
) -> None:
    """Print the node tree as XML."""
    try:
        doc = Document.from_file(file)
        typer.echo(tree_to_xml_string(doc), nl=False)
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def select(
    file: Annotated[Path, typer.Argument(help="Path to the JSON document file")],
    start: Annotated[int, typer.Option("--start", "-s", help="Range start offset")],
    end: Annotated[int, typer.Option("--end", "-e", help="Range end offset")],
    mode: Annotated[
        str, typer.Option("--mode", "-m", help="Selection mode: 'leaves' or 'covered'")
    ] = "leaves",
) -> None:
    """Show the nodes a range selects."""
    try:
        doc = Document.from_file(file)
        selection = doc.select_nodes(Range(start, end), mode)
        typer.echo(json.dumps(selection_to_dicts(selection), indent=2))
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def insert(
    file: Annotated[Path, typer.Argument(help="Path to the JSON document file")],
    offset: Annotated[int, typer.Option("--offset", help="Offset to insert at")],
    text: Annotated[
        str | None, typer.Option("--text", "-t", help="Plain text to insert")
    ] = None,
    data: Annotated[
        str | None, typer.Option("--data", "-d", help="JSON list of items to insert")
    ] = None,
    output: OutputOption = None,
    dry_run: DryRunOption = False,
) -> None:
    """Insert text or linear data at an offset."""
    if (text is None) == (data is None):
        typer.echo("Error: Must specify exactly one of --text or --data", err=True)
        raise typer.Exit(1)

    try:
        items = list(text) if text is not None else json.loads(data)
        if not isinstance(items, list):
            raise ValueError("--data must be a JSON list")
        doc = Document.from_file(file)
        tx = Transaction.new_from_insertion(doc, offset, items)
        _finish(doc, tx, file, output, dry_run)
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def remove(
    file: Annotated[Path, typer.Argument(help="Path to the JSON document file")],
    start: Annotated[int, typer.Option("--start", "-s", help="Range start offset")],
    end: Annotated[int, typer.Option("--end", "-e", help="Range end offset")],
    output: OutputOption = None,
    dry_run: DryRunOption = False,
) -> None:
    """Remove a range, merging nodes where possible."""
    try:
        doc = Document.from_file(file)
        tx = Transaction.new_from_removal(doc, Range(start, end))
        _finish(doc, tx, file, output, dry_run)
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def annotate(
    file: Annotated[Path, typer.Argument(help="Path to the JSON document file")],
    start: Annotated[int, typer.Option("--start", "-s", help="Range start offset")],
    end: Annotated[int, typer.Option("--end", "-e", help="Range end offset")],
    annotation: Annotated[
        str, typer.Option("--annotation", "-a", help="Annotation type, or a JSON object")
    ],
    clear: Annotated[bool, typer.Option("--clear", help="Clear instead of set")] = False,
    output: OutputOption = None,
    dry_run: DryRunOption = False,
) -> None:
    """Set or clear an annotation on the content in a range."""
    try:
        value = (
            json.loads(annotation) if annotation.startswith("{") else {"type": annotation}
        )
        doc = Document.from_file(file)
        tx = Transaction.new_from_annotation(
            doc, Range(start, end), "clear" if clear else "set", value
        )
        _finish(doc, tx, file, output, dry_run)
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command("set-attribute")
def set_attribute(
    file: Annotated[Path, typer.Argument(help="Path to the JSON document file")],
    offset: Annotated[int, typer.Option("--offset", help="Offset of the opening element")],
    key: Annotated[str, typer.Option("--key", "-k", help="Attribute name")],
    value: Annotated[
        str | None,
        typer.Option("--value", help="New value as JSON (omit to remove the attribute)"),
    ] = None,
    output: OutputOption = None,
    dry_run: DryRunOption = False,
) -> None:
    """Change an attribute of an element."""
    try:
        doc = Document.from_file(file)
        parsed = ABSENT if value is None else json.loads(value)
        tx = Transaction.new_from_attribute_change(doc, offset, key, parsed)
        _finish(doc, tx, file, output, dry_run)
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def convert(
    file: Annotated[Path, typer.Argument(help="Path to the JSON document file")],
    start: Annotated[int, typer.Option("--start", "-s", help="Range start offset")],
    end: Annotated[int, typer.Option("--end", "-e", help="Range end offset")],
    node_type: Annotated[str, typer.Option("--type", "-t", help="Type to convert to")],
    attributes: Annotated[
        str | None, typer.Option("--attributes", help="Attributes as a JSON object")
    ] = None,
    output: OutputOption = None,
    dry_run: DryRunOption = False,
) -> None:
    """Convert the content branches in a range to another type."""
    try:
        doc = Document.from_file(file)
        attrs = json.loads(attributes) if attributes else None
        tx = Transaction.new_from_content_branch_conversion(
            doc, Range(start, end), node_type, attrs
        )
        _finish(doc, tx, file, output, dry_run)
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def apply(
    file: Annotated[Path, typer.Argument(help="Path to the JSON document file")],
    edits: Annotated[Path, typer.Argument(help="Path to YAML/JSON edits file")],
    output: OutputOption = None,
    stop_on_error: Annotated[
        bool, typer.Option("--stop-on-error", help="Stop at the first failed edit")
    ] = False,
) -> None:
    """Apply edits from a YAML or JSON file."""
    try:
        doc = Document.from_file(file)
        edit_format = "json" if edits.suffix.lower() == ".json" else "yaml"
        results = BatchOperations(doc).apply_edit_file(
            edits, format=edit_format, stop_on_error=stop_on_error
        )
        output_path = output or file
        doc.save(output_path)

        success_count = sum(1 for r in results if r.success)
        fail_count = len(results) - success_count
        typer.echo(f"Applied {success_count} edits ({fail_count} failed), saved to {output_path}")

        if fail_count > 0:
            for r in results:
                if not r.success:
                    typer.echo(f"  Failed: {r.message}", err=True)
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
