"""SKChecklist CLI — inspect, preview and package checklists from JSON.

Usage:
    skchecklist check <checklist.json>
    skchecklist preview <checklist.json> [--responses responses.json]
    skchecklist copy <checklist.json> [--title "Copy"] [--output copy.json]
    skchecklist assemble <checklist.json> --token <tok> --responses r.json --signature "Chef"
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from .assembler import assemble as assemble_payload
from .assembler import detect_device
from .errors import ChecklistError, MissingSignatureError, SchemaError, ValidationError
from .models import ChecklistRules, ChoiceItem, GroupItem
from .schema import describe, lint_checklist, parse_checklist
from .tree import ChecklistIndex, copy_checklist, iter_items, sorted_children
from .validator import find_missing
from .visibility import compute_visible, evaluate_condition

console = Console()


def _load_json(path: str):
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        console.print(f"[red]Invalid JSON in {path}: {exc}[/]")
        sys.exit(1)


def _load_responses(path: str) -> dict:
    responses = _load_json(path)
    if not isinstance(responses, dict):
        console.print(
            f"[red]Responses must be a JSON object, got "
            f"{type(responses).__name__} in {path}[/]"
        )
        sys.exit(1)
    return responses


def _load_checklist(ctx: click.Context, path: str):
    rules: ChecklistRules = ctx.obj["rules"]
    try:
        return parse_checklist(_load_json(path), rules)
    except SchemaError as exc:
        console.print(
            Panel(
                "\n".join(f"  • {p}" for p in exc.problems),
                title="[bold red]Invalid checklist[/]",
                border_style="red",
            )
        )
        sys.exit(1)


def _render_items(branch: Tree, node) -> None:
    for item in sorted_children(node):
        if isinstance(item, GroupItem):
            sub = branch.add(f"[bold]{item.text or item.name or 'Group'}[/] [dim](group)[/]")
            _render_items(sub, item)
            continue

        label = f"[cyan]{item.name}[/] [dim]{item.type}[/] {item.text}"
        if item.required:
            label += " [red]*[/]"
        condition = item.visibility_condition
        if condition is not None:
            label += (
                f" [dim](when {condition.field_name} "
                f"{condition.operator.value} '{condition.value}')[/]"
            )
        leaf = branch.add(label)
        if isinstance(item, ChoiceItem):
            for option in item.options:
                leaf.add(f"[dim]{option.label} = {option.value}[/]")


@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log engine activity")
@click.option(
    "--allow-empty-description",
    is_flag=True,
    default=False,
    help="Accept checklists without a description",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, allow_empty_description: bool) -> None:
    """SKChecklist — dynamic checklists for document signing."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
    ctx.ensure_object(dict)
    ctx.obj["rules"] = ChecklistRules(require_description=not allow_empty_description)


# ---------------------------------------------------------------------------
# Check
# ---------------------------------------------------------------------------

@main.command()
@click.argument("checklist_file", type=click.Path(exists=True))
@click.pass_context
def check(ctx: click.Context, checklist_file: str) -> None:
    """Validate a checklist definition and report authoring warnings."""
    checklist = _load_checklist(ctx, checklist_file)
    summary = describe(checklist)

    tree = Tree(f"[bold]{checklist.title}[/]")
    _render_items(tree, checklist)
    console.print(tree)

    console.print(
        f"\n  Top-level items: {summary['top_level_items']}"
        f"   Total items: {summary['total_items']}"
        f"   Fields: {summary['fields']}"
        f"   Required: {summary['required_fields']}"
    )

    findings = lint_checklist(checklist, ctx.obj["rules"])
    if findings:
        console.print(
            Panel(
                "\n".join(f"  • {f.message}" for f in findings),
                title="[bold yellow]Warnings[/]",
                border_style="yellow",
            )
        )
    else:
        console.print("[bold green]Checklist is valid.[/]")


# ---------------------------------------------------------------------------
# Preview
# ---------------------------------------------------------------------------

@main.command()
@click.argument("checklist_file", type=click.Path(exists=True))
@click.option("--responses", "responses_file", type=click.Path(exists=True), default=None, help="Responses JSON")
@click.pass_context
def preview(ctx: click.Context, checklist_file: str, responses_file: Optional[str]) -> None:
    """Show which fields are visible and which are still missing."""
    checklist = _load_checklist(ctx, checklist_file)
    responses = _load_responses(responses_file) if responses_file else {}

    index = ChecklistIndex(checklist)
    visible = compute_visible(index, responses)
    missing = find_missing(index, visible, responses)
    missing_names = {m.name for m in missing}

    table = Table(title=f"Preview: {checklist.title}")
    table.add_column("Field", style="cyan")
    table.add_column("Type", style="dim")
    table.add_column("Visible", justify="center")
    table.add_column("Response")
    table.add_column("Status", justify="center")

    for item, depth in iter_items(checklist):
        indent = "  " * depth
        if isinstance(item, GroupItem):
            table.add_row(f"{indent}[bold]{item.text or item.name or 'Group'}[/]", "group", "", "", "")
            continue
        value = responses.get(item.name)
        shown = item.name in visible and evaluate_condition(
            item.visibility_condition, responses, index.fields
        )
        if shown and item.required and item.name in missing_names:
            status = "[bold red]MISSING[/]"
        elif not shown:
            status = "[dim]hidden[/]"
        else:
            status = "[green]ok[/]"
        table.add_row(
            f"{indent}{item.name}",
            item.type,
            "[green]yes[/]" if shown else "[dim]no[/]",
            "" if value is None else json.dumps(value),
            status,
        )

    console.print(table)
    if missing:
        console.print(f"[red]{len(missing)} required field(s) missing.[/]")
        sys.exit(1)
    console.print("[bold green]Ready to sign.[/]")


# ---------------------------------------------------------------------------
# Copy
# ---------------------------------------------------------------------------

@main.command("copy")
@click.argument("checklist_file", type=click.Path(exists=True))
@click.option("--title", default=None, help="Title for the copy")
@click.option("--output", "-o", type=click.Path(), default=None, help="Write the copy here (default: stdout)")
@click.option("--keep-ids", is_flag=True, default=False, help="Keep item ids instead of regenerating them")
@click.pass_context
def copy_cmd(
    ctx: click.Context,
    checklist_file: str,
    title: Optional[str],
    output: Optional[str],
    keep_ids: bool,
) -> None:
    """Duplicate a checklist as a new template with a fresh token."""
    checklist = _load_checklist(ctx, checklist_file)
    clone = copy_checklist(checklist, title=title, regenerate_ids=not keep_ids)
    data = clone.model_dump_json(indent=2, exclude_none=True)

    if output:
        Path(output).write_text(data, encoding="utf-8")
        console.print(
            Panel(
                f"[bold green]Checklist copied![/]\n\n"
                f"  Title:  {clone.title}\n"
                f"  Token:  {clone.token}\n"
                f"  From:   {checklist.token}\n"
                f"  Output: {output}",
                title="SKChecklist",
                border_style="green",
            )
        )
    else:
        click.echo(data)


# ---------------------------------------------------------------------------
# Assemble
# ---------------------------------------------------------------------------

@main.command()
@click.argument("checklist_file", type=click.Path(exists=True))
@click.option("--token", required=True, help="Document / signing-link token")
@click.option("--responses", "responses_file", required=True, type=click.Path(exists=True), help="Responses JSON")
@click.option("--signature", default="", help="Signer's typed full name")
@click.option("--user-agent", default="", help="Browser user-agent string")
@click.option("--ip", "ip_address", default=None, help="Signer IP address")
@click.option("--platform", default=None, help="Device platform / OS")
@click.pass_context
def assemble(
    ctx: click.Context,
    checklist_file: str,
    token: str,
    responses_file: str,
    signature: str,
    user_agent: str,
    ip_address: Optional[str],
    platform: Optional[str],
) -> None:
    """Validate responses and print the submission payload as JSON."""
    checklist = _load_checklist(ctx, checklist_file)
    responses = _load_responses(responses_file)
    device = detect_device(user_agent, ip_address=ip_address, platform=platform)

    try:
        payload = assemble_payload(token, responses, signature, device, checklist)
    except ValidationError as exc:
        console.print(
            Panel(
                "\n".join(f"  • {m}" for m in exc.messages),
                title="[bold red]Please fill in all required fields[/]",
                border_style="red",
            )
        )
        sys.exit(1)
    except MissingSignatureError as exc:
        console.print(f"[red]{exc}[/]")
        sys.exit(1)
    except ChecklistError as exc:
        console.print(f"[red]Submission failed: {exc}[/]")
        sys.exit(1)

    click.echo(json.dumps(payload.model_dump(by_alias=True), indent=2))


if __name__ == "__main__":
    main()
