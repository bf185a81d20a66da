"""
Dalaran: Console Output

Every user-facing message goes through here. Progress and summaries go to
stdout, errors to stderr. Command text comes from the user's history and
may contain '[' so it is always escaped before hitting rich markup.
"""
from typing import List

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..core.types import Notice, RunSummary

console = Console(soft_wrap=True, highlight=False)
err_console = Console(stderr=True, soft_wrap=True, highlight=False)

NOTICE_TEXT = {
    Notice.EMPTY_CORPUS: "Spellbook is empty: no archived spells yet.",
    Notice.ALREADY_SILENCED: "Some spells were already silenced.",
    Notice.SOURCE_MISSING_DRY_RUN: "History file is missing or unreadable; nothing would be archived.",
}


def print_banner(dry_run: bool = False):
    title = "Dalaran Spellbook"
    if dry_run:
        title += " [DRY RUN MODE]"
    console.print(Panel(f"[bold]{escape(title)}[/bold]", border_style="blue", expand=False))


def print_step(message: str):
    console.print(escape(message))


def print_planned(message: str):
    console.print(f"[yellow]{escape(message)}[/yellow]")


def print_notice(notice: Notice):
    console.print(f"[dim]{escape(NOTICE_TEXT[notice])}[/dim]")


def print_warning(message: str):
    err_console.print(f"[yellow]Warning: {escape(message)}[/yellow]")


def print_error(message: str):
    err_console.print(f"[bold red]Error:[/bold red] {escape(message)}")


def print_summary(summary: RunSummary):

    title = "Dalaran Spellbook Summary"
    if summary.dry_run:
        title += " (dry run)"
    console.print()
    console.print(f"[bold]{title}[/bold]")
    table = Table(border_style="blue")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    if summary.archive is not None:
        table.add_row("New archive", escape(summary.archive.archive_id))
    table.add_row("Archives found", str(summary.archives_found))
    table.add_row("Spells silenced", str(summary.silenced_count))
    table.add_row("Spellbook entries", str(summary.corpus_size))
    table.add_row("Library history entries", str(summary.synthetic_size))
    table.add_row("Working history total", str(summary.working_history_size))
    console.print(table)

    for notice in summary.notices:
        print_notice(notice)

    if summary.working_history_file is not None and not summary.dry_run:
        console.print()
        console.print("To use your spellbook-enhanced history:")
        console.print(f'    export HISTFILE="{escape(str(summary.working_history_file))}"')
        console.print("    fc -R  # Reload history")
        console.print()
        console.print("[dim]Run dalaran periodically to keep your spellbook updated.[/dim]")


def print_top_commands(commands: List[str], count: int):

    console.print(f"[bold]Top {count} most used spells from dalaran spellbook:[/bold]")
    table = Table(border_style="blue")
    table.add_column("#", justify="right", style="bold")
    table.add_column("Spell", overflow="fold")
    for rank, command in enumerate(commands, 1):
        table.add_row(str(rank), escape(command))
    console.print(table)


def print_silence_result(added: List[str], already_silenced: List[str], dry_run: bool = False):

    prefix = "Would silence" if dry_run else "Silenced spell"
    for command in added:
        console.print(f"[green]{prefix}: {escape(command)}[/green]")
    for command in already_silenced:
        console.print(f"[dim]Already silenced: {escape(command)}[/dim]")
    console.print("Silenced spells updated")
