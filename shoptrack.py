# shoptrack.py
# Command line for Smart Shopping Tracker.
# - Database maintenance (db --init, --reset, --check, --stats)
# - Spending reports over a day/week/month (report)
#
# Examples:
#   python shoptrack.py db --init --db data/shopping.sqlite
#   python shoptrack.py db --check --json
#   python shoptrack.py report --period week --date 2025-03-12
#   python shoptrack.py report --period month --granularity week --json
#
# Notes:
# - Defaults (database path, log level, baseline days) come from config.toml;
#   explicit options win.
# - Every command runs initialize() first; it is idempotent.

from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Dict, Optional

import click

from analytics import (
    aggregate,
    classify,
    compare_with_previous,
    daily_totals,
    find_anomalies,
    score_day,
)
from config.loader import DEFAULTS, load_config
from sst_core.models import Granularity, MigrationReport, STEP_FAILED
from sst_utils.logging_setup import level_from_flags, setup_logging
from sst_utils.periods import range_for, to_date
from storage.migrations import (
    check_integrity,
    get_table_stats,
    initialize,
    reset_database,
)
from storage.sqlite_store import open_conn

log = logging.getLogger("shoptrack")

# Bucket size used when --granularity is not given
DEFAULT_GRANULARITY = {
    "day": Granularity.HOUR,
    "week": Granularity.DAY,
    "month": Granularity.DAY,
}


def _load_settings(config_path: Optional[str]) -> Dict[str, Any]:
    try:
        return load_config(Path(config_path) if config_path else None)
    except FileNotFoundError as e:
        if config_path:
            raise click.BadParameter(str(e), param_hint="--config")
        log.debug("No config.toml found; using built-in defaults")
        return {section: dict(values) for section, values in DEFAULTS.items()}


def _echo_init(report: MigrationReport) -> None:
    shape = report.legacy_shape.value if report.legacy_shape else "n/a"
    click.echo(
        f"[init] state={report.state.value}, line_items={shape}, "
        f"products_seeded={report.products_seeded}"
    )
    for step in report.steps:
        if step.status == STEP_FAILED:
            click.echo(f"  ! {step.name}: failed ({step.error})")
        else:
            click.echo(f"  - {step.name}: {step.status}")


@click.group()
@click.option(
    "--config",
    "config_path",
    default=None,
    help="Path to config.toml (default: repo root).",
)
@click.option("--quiet", is_flag=True, help="Only log warnings and errors.")
@click.option("--verbose", is_flag=True, help="Log debug output.")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], quiet: bool, verbose: bool) -> None:
    """Smart Shopping Tracker command line."""
    settings = _load_settings(config_path)
    setup_logging(level_from_flags(settings["logging"]["level"], quiet, verbose))
    ctx.obj = settings


# ----------------------------- Database Management Commands -----------------------------
@cli.command("db")
@click.option(
    "--db",
    "db_path",
    default=None,
    help="Path to SQLite database file (default: [database] path in config).",
)
@click.option(
    "--init",
    "do_init",
    is_flag=True,
    help="Create or migrate the schema and seed default products.",
)
@click.option(
    "--reset",
    "do_reset",
    is_flag=True,
    help="Drop every table, then initialize an empty database. Deletes all data.",
)
@click.option(
    "--check",
    "do_check",
    is_flag=True,
    help="Run integrity checks and report database health.",
)
@click.option(
    "--stats",
    "do_stats",
    is_flag=True,
    help="Show table row counts.",
)
@click.option(
    "--json",
    "output_json",
    is_flag=True,
    help="Output results as JSON.",
)
@click.pass_obj
def db_cmd(
    settings: Dict[str, Any],
    db_path: Optional[str],
    do_init: bool,
    do_reset: bool,
    do_check: bool,
    do_stats: bool,
    output_json: bool,
) -> None:
    """
    Database management commands.

    Examples:

        shoptrack db --init --db data/shopping.sqlite

        shoptrack db --check --json

        shoptrack db --reset --db data/scratch.sqlite
    """
    if not any([do_init, do_reset, do_check, do_stats]):
        click.echo("No action specified. Use --init, --reset, --check, or --stats.")
        click.echo("Run 'shoptrack db --help' for usage.")
        raise SystemExit(1)

    db_path = db_path or settings["database"]["path"]
    conn = open_conn(db_path)

    results: Dict[str, Any] = {"db_path": db_path, "actions": []}

    try:
        # --reset: Drop everything and start over
        if do_reset:
            report = reset_database(conn)
            results["reset"] = report.to_dict()
            results["actions"].append("reset")
            if not output_json:
                click.echo("[reset] all tables dropped")
                _echo_init(report)
            if report.failed:
                results["exit_code"] = 2

        # --init: Initialize/migrate schema
        if do_init and not do_reset:
            report = initialize(conn)
            results["init"] = report.to_dict()
            results["actions"].append("init")
            if not output_json:
                _echo_init(report)
            if report.failed:
                results["exit_code"] = 2

        # --check: Run integrity checks
        if do_check:
            result = check_integrity(conn)
            results["check"] = result
            results["actions"].append("check")
            if not output_json:
                status_icon = (
                    "[OK]"
                    if result["status"] == "ok"
                    else "[WARN]" if result["status"] == "warning" else "[ERR]"
                )
                click.echo(f"[check] {status_icon} status={result['status']}")
                click.echo(f"  - integrity_check: {result['integrity_check']}")

                click.echo("  - tables:")
                for table, info in result["tables"].items():
                    exists = "[+]" if info.get("exists", True) else "[-]"
                    rows = info.get("rows", 0)
                    empty = " (empty)" if info.get("empty") else ""
                    click.echo(f"      {exists} {table}: {rows} rows{empty}")

                if result["issues"]:
                    click.echo("  - issues:")
                    for issue in result["issues"]:
                        click.echo(f"      ! {issue}")

            # Set exit code based on status
            if result["status"] == "error":
                results["exit_code"] = 3
            elif result["status"] == "warning":
                results["exit_code"] = max(results.get("exit_code", 0), 2)

        # --stats: Show row counts
        if do_stats:
            stats = get_table_stats(conn)
            results["stats"] = stats
            results["actions"].append("stats")
            if not output_json:
                click.echo("[stats] Table row counts:")
                for table, count in stats.items():
                    if count >= 0:
                        click.echo(f"  - {table}: {count}")
                    else:
                        click.echo(f"  - {table}: (not found)")
    finally:
        conn.close()

    # Output JSON if requested
    if output_json:
        click.echo(json.dumps(results, indent=2))

    # Exit with appropriate code
    exit_code = results.get("exit_code", 0)
    if exit_code != 0:
        raise SystemExit(exit_code)


# ----------------------------- Report Command -----------------------------
@cli.command("report")
@click.option(
    "--db",
    "db_path",
    default=None,
    help="Path to SQLite database file (default: [database] path in config).",
)
@click.option(
    "--period",
    type=click.Choice(["day", "week", "month"]),
    default="week",
    show_default=True,
    help="Calendar period containing --date.",
)
@click.option(
    "--date",
    "ref_date",
    default=None,
    help="Reference date YYYY-MM-DD (default: today).",
)
@click.option(
    "--granularity",
    type=click.Choice([g.value for g in Granularity]),
    default=None,
    help="Bucket size (default: hour for a day, day otherwise).",
)
@click.option(
    "--baseline-days",
    type=int,
    default=None,
    help="Days before --date used as the scoring baseline (default: config).",
)
@click.option(
    "--json",
    "output_json",
    is_flag=True,
    help="Output results as JSON.",
)
@click.pass_obj
def report_cmd(
    settings: Dict[str, Any],
    db_path: Optional[str],
    period: str,
    ref_date: Optional[str],
    granularity: Optional[str],
    baseline_days: Optional[int],
    output_json: bool,
) -> None:
    """
    Spending report: totals, comparison with the previous period, trend,
    anomalous days and the reference day's performance score.

    Examples:

        shoptrack report --period month --date 2025-03-01

        shoptrack report --period day --granularity hour --json
    """
    try:
        day = to_date(ref_date) if ref_date else date.today()
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--date")

    db_path = db_path or settings["database"]["path"]
    baseline_days = baseline_days or int(settings["analytics"]["baseline_days"])
    gran = Granularity(granularity) if granularity else DEFAULT_GRANULARITY[period]
    rng = range_for(period, day)

    conn = open_conn(db_path)
    try:
        init_report = initialize(conn)
        if init_report.failed:
            log.warning(
                "Reporting on a database with %d failed migration step(s)",
                len(init_report.failed),
            )

        agg = aggregate(conn, rng, gran)
        comparison = compare_with_previous(conn, rng)
        trend = classify(agg.series())
        anomalies = find_anomalies(daily_totals(conn, rng))
        perf = score_day(conn, day, baseline_days)
    finally:
        conn.close()

    if output_json:
        payload = {
            "db_path": db_path,
            "period": period,
            "date": day.isoformat(),
            "aggregate": agg.to_dict(),
            "comparison": comparison.to_dict(),
            "trend": trend,
            "anomalies": [d.isoformat() for d in anomalies],
            "performance": perf.to_dict(),
        }
        click.echo(json.dumps(payload, indent=2))
        return

    click.echo(
        f"[report] {period} {rng.start.isoformat()}..{rng.end.isoformat()} "
        f"by {gran.value}"
    )
    click.echo(
        f"  - total: {agg.total:.2f} over {agg.count} items in {agg.list_count} lists"
    )
    click.echo(
        f"  - vs previous: {comparison.delta:+.2f} ({comparison.percentage:+.1f}%), "
        f"trend={comparison.trend}"
    )
    click.echo(f"  - bucket trend: {trend}")
    if anomalies:
        click.echo(
            "  - anomalies: " + ", ".join(d.isoformat() for d in anomalies)
        )
    else:
        click.echo("  - anomalies: none")
    click.echo(
        f"  - {day.isoformat()} performance: {perf.label} "
        f"(score={perf.score}, ratio={perf.ratio:.2f})"
    )
    if agg.per_product:
        click.echo("  - top products:")
        for p in agg.per_product[:5]:
            click.echo(
                f"      {p.label}: {p.amount:.2f} ({p.quantity:g} {p.unit}, "
                f"avg {p.avg_unit_price:.2f})"
            )


if __name__ == "__main__":
    cli()
