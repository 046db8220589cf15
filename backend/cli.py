#!/usr/bin/env python3
"""
CLI for the Rates Ingestion Pipeline

Commands:
    init-db         - Create database tables
    scrape          - Scrape, check and store one data type
    scrape-all      - Run scrape for every data type
    list-dates      - List stored snapshot dates
    show-latest     - Print the current latest document
    show-aggregate  - Print the daily aggregate for a date
    runs            - Show recent ingestion audit rows

Usage:
    python cli.py scrape mortgage-rates
    python cli.py scrape credit-card-rates --dry-run
    python cli.py scrape-all
    python cli.py show-aggregate mortgage-rates 2024-03-01

Exit codes (scrape / scrape-all):
    0: Saved, unchanged or dry run
    1: Failure (config, fetch, validation or store)
    3: Rejected by the quality guardrail
"""

import click
import sys
import json
import logging

from constants import DATA_TYPES

DATA_TYPE_CHOICE = click.Choice(DATA_TYPES)


def get_app_context():
    """Get Flask app context for database access."""
    from app import create_app
    app = create_app()
    return app.app_context()


def load_ingestion_config(dry_run: bool, allow_suspicious: bool):
    """Config from the environment with CLI flags layered on top."""
    from services.ingestion_config import load_config_from_env, log_ingestion_config

    config, error = load_config_from_env()
    if error:
        click.secho(f"Configuration error: {error}", fg="red", err=True)
        sys.exit(1)

    overrides = {}
    if dry_run:
        overrides["dry_run"] = True
    if allow_suspicious:
        overrides["allow_suspicious_data"] = True
    if overrides:
        config = config.with_overrides(**overrides)

    log_ingestion_config(config)
    return config


def print_result(result):
    colour = {
        "saved": "green",
        "unchanged": "white",
        "dry_run": "blue",
        "rejected": "yellow",
        "failed": "red",
    }.get(result.status, "white")

    click.echo(
        click.style(f"  {result.data_type:<20} ", fg="white")
        + click.style(result.status.upper(), fg=colour, bold=True)
        + (f"  ({result.snapshot_date})" if result.snapshot_date else "")
    )
    if result.summary:
        click.echo(
            f"    entities={result.summary.get('entities', 0)} "
            f"products={result.summary.get('products', 0)} "
            f"rate_points={result.summary.get('rate_points', 0)}"
        )
    if result.guardrail_overridden:
        click.secho("    quality guardrail OVERRIDDEN", fg="yellow")
    if result.error_message:
        click.echo(f"    stage={result.error_stage} error={result.error_message}")
    if result.requires_attention:
        click.secho("    REQUIRES ATTENTION", fg="red", bold=True)


@click.group()
@click.version_option(version="1.0.0", prog_name="rates-cli")
def cli():
    """Rates Ingestion CLI - scrape, check and store NZ lending rates."""
    pass


@cli.command("init-db")
def init_db():
    """Create all database tables."""
    from models.database import db

    with get_app_context():
        db.create_all()
    click.secho("Database tables created", fg="green")


def _run(data_types, dry_run, allow_suspicious, html_file=None):
    from scrapers.interest_client import InterestScraperClient
    from services.rates_ingestion import exit_code_for, run_ingestion
    from services.snapshot_store import SnapshotStore

    config = load_ingestion_config(dry_run, allow_suspicious)
    html = None
    if html_file:
        with open(html_file, "r", encoding="utf-8") as f:
            html = f.read()

    with get_app_context():
        client = InterestScraperClient()
        try:
            results = run_ingestion(data_types, config, SnapshotStore(config), client=client, html=html)
        finally:
            client.close()

    click.echo()
    click.echo("=" * 60)
    click.secho("INGESTION RESULT", bold=True)
    click.echo("=" * 60)
    for result in results:
        print_result(result)
    click.echo("=" * 60)

    sys.exit(exit_code_for(results))


@cli.command("scrape")
@click.argument("data_type", type=DATA_TYPE_CHOICE)
@click.option("--dry-run", is_flag=True, help="Fetch and check, but don't write")
@click.option("--allow-suspicious", is_flag=True, help="Force-accept a guardrail failure")
@click.option("--html-file", type=click.Path(exists=True), help="Use a saved page instead of fetching")
def scrape(data_type, dry_run, allow_suspicious, html_file):
    """
    Scrape, validate, check and store one data type.

    DATA_TYPE: mortgage-rates, personal-loan-rates, car-loan-rates or credit-card-rates
    """
    _run([data_type], dry_run, allow_suspicious, html_file)


@cli.command("scrape-all")
@click.option("--dry-run", is_flag=True, help="Fetch and check, but don't write")
@click.option("--allow-suspicious", is_flag=True, help="Force-accept guardrail failures")
def scrape_all(dry_run, allow_suspicious):
    """Run scrape for every data type."""
    _run(DATA_TYPES, dry_run, allow_suspicious)


def _reader():
    from services.ingestion_config import IngestionConfig
    from services.rates_reader import RatesReader
    from services.snapshot_store import SnapshotStore

    # Reads never need the ingest secret
    return RatesReader(SnapshotStore(IngestionConfig()))


@cli.command("list-dates")
@click.argument("data_type", type=DATA_TYPE_CHOICE)
def list_dates(data_type):
    """List stored snapshot dates for DATA_TYPE."""
    with get_app_context():
        dates = _reader().get_available_dates(data_type)
    if not dates:
        click.echo(f"No snapshots stored for {data_type}")
        return
    for date in dates:
        click.echo(date)


@cli.command("show-latest")
@click.argument("data_type", type=DATA_TYPE_CHOICE)
def show_latest(data_type):
    """Print the current latest RatesDocument for DATA_TYPE as JSON."""
    from services.errors import NoDataFoundError

    with get_app_context():
        try:
            document = _reader().load_latest_data(data_type)
        except NoDataFoundError as e:
            click.secho(str(e), fg="yellow", err=True)
            sys.exit(1)
    click.echo(json.dumps(document, indent=2))


@cli.command("show-aggregate")
@click.argument("data_type", type=DATA_TYPE_CHOICE)
@click.argument("date")
def show_aggregate(data_type, date):
    """
    Print the daily aggregate for DATA_TYPE on DATE (YYYY-MM-DD).
    """
    from utils.normalize import ValidationError

    with get_app_context():
        try:
            aggregate = _reader().load_aggregate_by_date(data_type, date)
        except ValidationError as e:
            click.secho(str(e), fg="red", err=True)
            sys.exit(1)
    if aggregate is None:
        click.secho(f"No {data_type} aggregate for {date}", fg="yellow", err=True)
        sys.exit(1)
    click.echo(json.dumps(aggregate, indent=2))


@cli.command("runs")
@click.argument("data_type", type=DATA_TYPE_CHOICE)
@click.option("--limit", default=20, show_default=True, help="Number of rows")
def runs(data_type, limit):
    """Show recent ingestion audit rows for DATA_TYPE."""
    from services.ingestion_config import IngestionConfig
    from services.snapshot_store import SnapshotStore

    with get_app_context():
        rows = SnapshotStore(IngestionConfig()).list_runs(data_type, limit=limit)
    for row in rows:
        reason = f"  {row['reason']}" if row["reason"] else ""
        click.echo(f"{row['finishedAt']}  {row['snapshotDate']}  {row['status']:<8}{reason}")


def main():
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('sqlalchemy').setLevel(logging.WARNING)
    cli()


if __name__ == "__main__":
    main()
