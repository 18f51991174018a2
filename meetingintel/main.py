"""
Main application entry point for meeting intelligence.

Provides the CLI for generating reports and inspecting configuration.
"""

import sys
from pathlib import Path
from typing import List, Optional, Tuple

import click
from rich.console import Console
from rich.table import Table

from meetingintel.core.config import print_configuration_summary, validate_required_settings
from meetingintel.core.exceptions import ConfigurationError, MeetingIntelError
from meetingintel.core.logging import set_correlation_id, setup_logging
from meetingintel.intelligence.report_pipeline import MeetingIntelligencePipeline

console = Console(stderr=True)

ATTENDEE_FIELDS = ("name", "email", "title", "company", "linkedin_url")


def parse_attendee(value: str) -> dict:
    """Parse ``Name[;email][;title][;company][;linkedin]`` into attendee fields."""
    parts = [p.strip() for p in value.split(";")]
    if not parts or not parts[0]:
        raise click.BadParameter(f"attendee needs a name: {value!r}")
    if len(parts) > len(ATTENDEE_FIELDS):
        raise click.BadParameter(f"too many fields in attendee: {value!r}")
    return {field: part for field, part in zip(ATTENDEE_FIELDS, parts) if part}


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--json-logs", is_flag=True, help="Emit JSON logs instead of rich console output")
@click.option("--correlation-id", help="Set correlation ID for request tracing")
@click.pass_context
def main(ctx, debug: bool, json_logs: bool, correlation_id: Optional[str]):
    """Meeting intelligence reports for business development meetings.

    Researches the target company and the people you are meeting, then
    writes a strategic briefing.
    """
    ctx.ensure_object(dict)

    setup_logging(debug=debug, rich_output=not json_logs)

    if correlation_id:
        set_correlation_id(correlation_id)

    ctx.obj["debug"] = debug
    ctx.obj["correlation_id"] = correlation_id


@main.command()
@click.argument("company")
@click.option(
    "--attendee",
    "attendees",
    multiple=True,
    required=True,
    help='Attendee as "Name[;email][;title][;company][;linkedin]" (repeatable)',
)
@click.option("--purpose", help="Meeting purpose")
@click.option("--context", "additional_context", help="Additional context for the report")
@click.option("--industry", help="Industry hint for the competitive landscape")
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the report JSON to this file instead of stdout",
)
@click.pass_context
def generate(
    ctx,
    company: str,
    attendees: Tuple[str, ...],
    purpose: Optional[str],
    additional_context: Optional[str],
    industry: Optional[str],
    output: Optional[Path],
):
    """Research COMPANY and generate a meeting intelligence report."""
    missing = validate_required_settings()
    if missing:
        console.print("[red]Configuration Error:[/red]")
        for item in missing:
            console.print(f"  • Missing: {item}")
        sys.exit(1)

    parsed: List[dict] = [parse_attendee(a) for a in attendees]

    pipeline = MeetingIntelligencePipeline()
    try:
        console.print(f"[blue]Researching {company} ({len(parsed)} attendees)[/blue]")
        report = pipeline.generate_report(
            company,
            parsed,
            purpose=purpose,
            additional_context=additional_context,
            industry=industry,
        )
    except ConfigurationError as e:
        console.print(f"[red]Configuration Error:[/red] {e}")
        sys.exit(1)
    except MeetingIntelError as e:
        console.print(f"[red]Report Generation Error:[/red] {e}")
        sys.exit(1)
    finally:
        pipeline.close()

    payload = report.to_json()
    if output:
        output.write_text(payload, encoding="utf-8")
        console.print(f"[green]Report written to {output}[/green]")
    else:
        click.echo(payload)

    table = Table(title="Report Summary")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Company", report.metadata.company)
    table.add_row("Format", report.format)
    table.add_row("Attendees", str(report.metadata.attendees_count))
    table.add_row("Sources", str(report.metadata.sources_count))
    table.add_row("Tool Rounds", str(report.metadata.tool_rounds))
    table.add_row("Critique Applied", "yes" if report.metadata.critique_applied else "no")
    table.add_row("Confidence", f"{report.confidence:.2f}")
    table.add_row("Duration", f"{report.metadata.duration_seconds or 0:.2f}s")
    console.print(table)


@main.command()
def config():
    """Display current configuration."""
    missing = validate_required_settings()
    if missing:
        console.print("[red]Configuration Issues:[/red]")
        for item in missing:
            console.print(f"  • Missing: {item}")
        console.print()
    else:
        console.print("[green]Configuration Valid[/green]")
        console.print()

    print_configuration_summary()
    sys.exit(0 if not missing else 1)


if __name__ == "__main__":
    main()
