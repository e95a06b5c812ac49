"""
Command-line interface for re-analyzing saved fights.
"""

import json
import logging
import sys

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from log_analysis import config
from log_analysis.analysis.analyze import SPEC_ANALYSIS_CONFIGS
from log_analysis.analysis.errors import AnalysisError
from log_analysis.console_table import console, print_report
from log_analysis.report import load_saved_fight

logger = logging.getLogger(__name__)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """Combat log analysis"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else config.LOG_LEVEL,
        format="%(message)s",
        # stdout carries the report, logs go to stderr
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
    )


@cli.command()
@click.argument("fight_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--spec", help="Analysis profile to use instead of the player's spec")
@click.option("--json", "as_json", is_flag=True, help="Print the raw report as JSON")
def analyze(fight_file, spec, as_json):
    """Analyze a saved fight file."""
    try:
        fight = load_saved_fight(fight_file)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.error("Could not load %s: %s", fight_file, e)
        sys.exit(1)

    if spec:
        fight = fight.model_copy(update={"spec": spec})

    try:
        report = fight.analyze()
    except AnalysisError as e:
        logger.error("Analysis failed: %s", e)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(report, indent=2))
    else:
        print_report(report)


@cli.command()
def specs():
    """List the available analysis profiles."""
    for name in sorted(SPEC_ANALYSIS_CONFIGS):
        console.print(name)


if __name__ == "__main__":
    cli()
