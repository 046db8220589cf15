"""
Tests for the rates CLI

Commands run through click's CliRunner against the in-memory SQLite app;
pages come from --html-file so nothing is fetched.
"""

import contextlib
import json

import pytest
from click.testing import CliRunner
from unittest.mock import patch

import cli as rates_cli
from constants import MORTGAGE_RATES

from factories import TEST_SECRET, rates_page, table_row


@pytest.fixture
def runner(app, monkeypatch):
    monkeypatch.setenv("RATES_INGEST_SECRET", TEST_SECRET)
    monkeypatch.delenv("ALLOW_SUSPICIOUS_DATA", raising=False)
    monkeypatch.delenv("RATES_INGEST_DRY_RUN", raising=False)
    # The app fixture already holds an app context
    with patch.object(rates_cli, "get_app_context", side_effect=contextlib.nullcontext):
        yield CliRunner()


@pytest.fixture
def low_thresholds(tmp_path, monkeypatch):
    path = tmp_path / "guardrails.yaml"
    path.write_text(
        "data_types:\n"
        "  mortgage-rates:\n"
        "    min_entities: 1\n"
        "    min_rate_points: 1\n"
    )
    monkeypatch.setenv("RATES_QUALITY_CONFIG", str(path))


@pytest.fixture
def html_file(tmp_path):
    path = tmp_path / "borrowing.html"
    path.write_text(rates_page([
        table_row([("", {'alt': "ANZ"}), "Standard", "6.24", "6.79", "6.55"], primary=True),
        table_row([("", {'alt': "ASB"}), "Standard", "6.19", "6.89"], primary=True),
    ]))
    return str(path)


class TestScrapeCommand:
    """Tests for `scrape`."""

    def test_saved(self, runner, low_thresholds, html_file):
        result = runner.invoke(rates_cli.cli, ["scrape", MORTGAGE_RATES, "--html-file", html_file])

        assert result.exit_code == 0, result.output
        assert "SAVED" in result.output

        dates = runner.invoke(rates_cli.cli, ["list-dates", MORTGAGE_RATES])
        assert dates.exit_code == 0
        assert len(dates.output.split()) == 1

    def test_unchanged_second_run(self, runner, low_thresholds, html_file):
        runner.invoke(rates_cli.cli, ["scrape", MORTGAGE_RATES, "--html-file", html_file])
        result = runner.invoke(rates_cli.cli, ["scrape", MORTGAGE_RATES, "--html-file", html_file])

        assert result.exit_code == 0
        assert "UNCHANGED" in result.output

    def test_rejected_exit_code(self, runner, html_file):
        result = runner.invoke(rates_cli.cli, ["scrape", MORTGAGE_RATES, "--html-file", html_file])

        assert result.exit_code == 3
        assert "REJECTED" in result.output

    def test_allow_suspicious(self, runner, html_file):
        result = runner.invoke(
            rates_cli.cli, ["scrape", MORTGAGE_RATES, "--html-file", html_file, "--allow-suspicious"]
        )

        assert result.exit_code == 0
        assert "OVERRIDDEN" in result.output

    def test_dry_run(self, runner, low_thresholds, html_file):
        result = runner.invoke(rates_cli.cli, ["scrape", MORTGAGE_RATES, "--html-file", html_file, "--dry-run"])

        assert result.exit_code == 0
        assert "DRY_RUN" in result.output
        listed = runner.invoke(rates_cli.cli, ["list-dates", MORTGAGE_RATES])
        assert "No snapshots stored" in listed.output

    def test_missing_secret(self, runner, monkeypatch, html_file):
        monkeypatch.delenv("RATES_INGEST_SECRET")
        result = runner.invoke(rates_cli.cli, ["scrape", MORTGAGE_RATES, "--html-file", html_file])
        assert result.exit_code == 1

    def test_bad_env_flag(self, runner, monkeypatch, html_file):
        monkeypatch.setenv("ALLOW_SUSPICIOUS_DATA", "maybe")
        result = runner.invoke(rates_cli.cli, ["scrape", MORTGAGE_RATES, "--html-file", html_file])
        assert result.exit_code == 1

    def test_unknown_data_type(self, runner):
        result = runner.invoke(rates_cli.cli, ["scrape", "savings-rates"])
        assert result.exit_code == 2


class TestReadCommands:
    """Tests for the read-only commands."""

    def test_show_latest(self, runner, low_thresholds, html_file):
        runner.invoke(rates_cli.cli, ["scrape", MORTGAGE_RATES, "--html-file", html_file])

        result = runner.invoke(rates_cli.cli, ["show-latest", MORTGAGE_RATES])

        assert result.exit_code == 0
        document = json.loads(result.output)
        assert [e['name'] for e in document['data']] == ["ANZ", "ASB"]

    def test_show_latest_empty(self, runner):
        result = runner.invoke(rates_cli.cli, ["show-latest", MORTGAGE_RATES])
        assert result.exit_code == 1

    def test_show_aggregate(self, runner, low_thresholds, html_file):
        runner.invoke(rates_cli.cli, ["scrape", MORTGAGE_RATES, "--html-file", html_file])
        date = runner.invoke(rates_cli.cli, ["list-dates", MORTGAGE_RATES]).output.strip()

        result = runner.invoke(rates_cli.cli, ["show-aggregate", MORTGAGE_RATES, date])

        assert result.exit_code == 0
        assert json.loads(result.output)['totals']['ratePoints'] == 5

    def test_show_aggregate_bad_date(self, runner):
        result = runner.invoke(rates_cli.cli, ["show-aggregate", MORTGAGE_RATES, "yesterday"])
        assert result.exit_code == 1

    def test_runs(self, runner, low_thresholds, html_file):
        runner.invoke(rates_cli.cli, ["scrape", MORTGAGE_RATES, "--html-file", html_file])
        runner.invoke(rates_cli.cli, ["scrape", MORTGAGE_RATES, "--html-file", html_file])

        result = runner.invoke(rates_cli.cli, ["runs", MORTGAGE_RATES])

        assert result.exit_code == 0
        lines = result.output.strip().splitlines()
        assert "skipped" in lines[0]
        assert "success" in lines[1]
