from rich.console import Console
from rich.table import Table

console = Console()

GRADE_COLORS = {
    "minor": "yellow",
    "average": "dark_orange",
    "major": "red",
}


def format_value(value, style):
    if style == "percentage":
        return f"{value * 100:.2f}%"
    if isinstance(value, float):
        return f"{value:,.2f}"
    return f"{value:,}" if isinstance(value, int) else str(value)


def print_report(report):
    metadata = report["fight_metadata"]
    console.print(
        f"[bold green]{metadata['source'] or metadata['source_id']}[/bold green] "
        f"({report['spec'] or 'Default'}) - "
        f"{metadata['duration'] / 1000:.1f}s fight, "
        f"{report['dispatched_events']} events"
    )
    if report["skipped_events"]:
        console.print(f"[yellow]Skipped {report['skipped_events']} malformed events[/yellow]")

    table = Table(title="Statistics", show_header=True, header_style="bold magenta")
    table.add_column("Module")
    table.add_column("Statistic")
    table.add_column("Value", justify="right")
    for statistic in report["statistics"]:
        table.add_row(
            statistic["module"],
            statistic["label"],
            format_value(statistic["value"], statistic["style"]),
        )
    console.print(table)

    if not report["suggestions"]:
        console.print("[green]No suggestions, nice work[/green]")
        return

    table = Table(title="Suggestions", show_header=True, header_style="bold magenta")
    table.add_column("Grade")
    table.add_column("Suggestion")
    table.add_column("Actual", justify="right")
    table.add_column("Recommended", justify="right")
    for suggestion in report["suggestions"]:
        color = GRADE_COLORS.get(suggestion["grade"], "white")
        table.add_row(
            f"[{color}]{suggestion['grade']}[/{color}]",
            suggestion["text"],
            format_value(suggestion["actual"], suggestion["style"]),
            format_value(suggestion["recommended"], suggestion["style"]),
        )
    console.print(table)
