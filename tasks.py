# tasks.py
"""
Developer task runner using Invoke.
Run `inv --list` to see tasks.

Key tasks:
  inv init-db [--db data/shopping.sqlite]
  inv check-db [--db data/shopping.sqlite]
  inv reset-db [--db data/shopping.sqlite]
  inv report --period week [--date 2025-03-12] [--json]
  inv test
  inv clean
"""

from invoke import task
from pathlib import Path
import sys


REPO = Path(__file__).parent
DATADIR = REPO / "data"
DEFAULT_DB = DATADIR / "shopping.sqlite"


def _python():
    """Return the python executable inside the current venv."""
    return sys.executable or "python"


@task(help={"db": "Path to SQLite database (default: data/shopping.sqlite)"})
def init_db(c, db=str(DEFAULT_DB)):
    """Create or migrate the database and seed default products."""
    c.run(f'"{_python()}" shoptrack.py db --init --stats --db "{db}"', pty=False)


@task(help={"db": "Path to SQLite database (default: data/shopping.sqlite)"})
def check_db(c, db=str(DEFAULT_DB)):
    """Run integrity and invariant checks."""
    c.run(
        f'"{_python()}" shoptrack.py db --check --db "{db}"', pty=False, warn=True
    )


@task(help={"db": "Path to SQLite database (default: data/shopping.sqlite)"})
def reset_db(c, db=str(DEFAULT_DB)):
    """Drop all tables and re-initialize (deletes all data)."""
    c.run(f'"{_python()}" shoptrack.py db --reset --stats --db "{db}"', pty=False)


@task(
    help={
        "db": "Path to SQLite database (default: data/shopping.sqlite)",
        "period": "day, week or month (default: week)",
        "date": "Reference date YYYY-MM-DD (default: today)",
        "granularity": "hour, day, week or month",
        "json": "Emit JSON instead of text",
    }
)
def report(c, db=str(DEFAULT_DB), period="week", date=None, granularity=None, json=False):
    """Print a spending report."""
    args = ["shoptrack.py", "report", "--db", f'"{db}"', "--period", period]
    if date:
        args += ["--date", date]
    if granularity:
        args += ["--granularity", granularity]
    if json:
        args.append("--json")
    c.run(f'"{_python()}" ' + " ".join(args), pty=False)


@task
def test(c):
    """Run unit tests with pytest."""
    c.run(f'"{_python()}" -m pytest -q', pty=False)


@task
def clean(c):
    """Delete SQLite files under data/ (keeps the directory)."""
    if DATADIR.exists():
        for p in DATADIR.glob("*.sqlite*"):
            p.unlink()
            print(f"Removed {p}")
    DATADIR.mkdir(parents=True, exist_ok=True)
