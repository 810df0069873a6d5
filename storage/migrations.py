# storage/migrations.py
"""
Database migration utilities for Smart Shopping Tracker.

Brings any historical layout up to the current schema:
- Fresh database initialization
- Legacy table renames (Achat, Notification, LigneAchat)
- Key column renames (id -> idListe / idProduit / idRappel)
- Line-item normalization onto the Produit table
- Reminder column renames (and a rebuild when the list reference is NOT NULL)
- Default product seeding
- Full reset (drop everything, initialize again)

Every step is guarded by catalog probes so the whole sequence can run on each
start-up, and every step runs in its own transaction.
"""
from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional

from sst_core.models import (
    LegacyShape,
    MigrationReport,
    StepOutcome,
    StoreState,
    STEP_APPLIED,
    STEP_FAILED,
    STEP_SKIPPED,
)

from .schema import (
    ADDED_COLUMNS,
    ALL_TABLES,
    CREATE_INDEXES,
    DEFAULT_PRODUCTS,
    EXPECTED_TABLES,
    LEGACY_TABLE_NAMES,
    LINE_ITEM_COLUMNS,
    LINE_ITEMS,
    LINE_ITEMS_DDL,
    LISTS,
    PRODUCTS,
    REMINDER_ADDED_COLUMNS,
    REMINDER_COLUMN_RENAMES,
    REMINDER_COLUMNS,
    REMINDERS,
    REMINDERS_DDL,
    TEMP_TABLES,
)

log = logging.getLogger("storage")

FLOAT_TOLERANCE = 1e-6

StepFn = Callable[[sqlite3.Connection], Optional[Dict[str, Any]]]


def _q(identifier: str) -> str:
    """Quote an SQL identifier."""
    return '"' + identifier.replace('"', '""') + '"'


# =============================================================================
# Catalog probes (never raise)
# =============================================================================


def table_exists(conn: sqlite3.Connection, table_name: str) -> bool:
    """Check if a table exists. Any failure counts as 'absent'."""
    try:
        cur = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
            (table_name,),
        )
        return cur.fetchone() is not None
    except Exception as e:
        log.debug("table_exists(%s) failed: %s", table_name, e)
        return False


def get_table_columns(conn: sqlite3.Connection, table_name: str) -> List[str]:
    """Get list of column names for a table, empty if it cannot be read."""
    try:
        cur = conn.execute(f"PRAGMA table_info({_q(table_name)})")
        return [row[1] for row in cur.fetchall()]
    except Exception as e:
        log.debug("get_table_columns(%s) failed: %s", table_name, e)
        return []


def column_exists(conn: sqlite3.Connection, table_name: str, column: str) -> bool:
    """Check if a column exists on a table. Any failure counts as 'absent'."""
    return column in get_table_columns(conn, table_name)


def column_not_null(conn: sqlite3.Connection, table_name: str, column: str) -> bool:
    """Check if a column is declared NOT NULL. Any failure counts as 'no'."""
    try:
        cur = conn.execute(f"PRAGMA table_info({_q(table_name)})")
        return any(row[1] == column and row[3] for row in cur.fetchall())
    except Exception as e:
        log.debug("column_not_null(%s.%s) failed: %s", table_name, column, e)
        return False


def detect_line_item_shape(conn: sqlite3.Connection) -> LegacyShape:
    """
    Classify the line-item table layout.
    Looks at the legacy table name too, so the answer holds before the
    rename step has run.
    """
    table = LINE_ITEMS
    if not table_exists(conn, LINE_ITEMS):
        table = LEGACY_TABLE_NAMES[LINE_ITEMS]

    cols = set(get_table_columns(conn, table))
    if not cols:
        return LegacyShape.FRESH
    if "libelleProduit" in cols:
        return LegacyShape.DENORMALIZED
    if set(LINE_ITEM_COLUMNS) <= cols:
        return LegacyShape.FRESH
    return LegacyShape.ALREADY_NORMALIZED


# =============================================================================
# Step plumbing
# =============================================================================


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Run the block in its own BEGIN/COMMIT; roll back and re-raise on error."""
    if conn.in_transaction:
        conn.commit()
    conn.execute("BEGIN")
    try:
        yield conn
    except Exception:
        conn.rollback()
        raise
    conn.commit()


def _run_step(
    conn: sqlite3.Connection, report: MigrationReport, name: str, fn: StepFn
) -> StepOutcome:
    """Run one step atomically and record its outcome. Never raises."""
    try:
        with transaction(conn):
            detail = fn(conn)
    except Exception as e:
        log.error("Migration step %s failed and was rolled back: %s", name, e)
        outcome = StepOutcome(name=name, status=STEP_FAILED, error=str(e))
    else:
        if detail is None:
            log.debug("Migration step %s: nothing to do", name)
            outcome = StepOutcome(name=name, status=STEP_SKIPPED)
        else:
            log.info("Migration step %s applied: %s", name, detail)
            outcome = StepOutcome(name=name, status=STEP_APPLIED, detail=detail)
    report.steps.append(outcome)
    return outcome


def _count(conn: sqlite3.Connection, table: str) -> int:
    return conn.execute(f"SELECT COUNT(*) FROM {_q(table)}").fetchone()[0]


# =============================================================================
# Schema creation
# =============================================================================


def ensure_base_schema(conn: sqlite3.Connection) -> Optional[Dict[str, Any]]:
    """
    Create the current tables that are missing.
    A table whose legacy predecessor is still on disk is left for the rename
    step to move into place.
    """
    created = []
    for name, ddl in ALL_TABLES:
        if table_exists(conn, name):
            continue
        legacy = LEGACY_TABLE_NAMES.get(name)
        if legacy and table_exists(conn, legacy):
            continue
        conn.execute(ddl)
        created.append(name)
    return {"tables_created": created} if created else None


def create_missing_tables(conn: sqlite3.Connection) -> Optional[Dict[str, Any]]:
    """Create any current table still absent after migration."""
    created = []
    for name, ddl in ALL_TABLES:
        if not table_exists(conn, name):
            conn.execute(ddl)
            created.append(name)
    return {"tables_created": created} if created else None


def create_all_indexes(conn: sqlite3.Connection) -> Optional[Dict[str, Any]]:
    """Create all indexes (idempotent)."""
    before = conn.execute(
        "SELECT COUNT(*) FROM sqlite_master WHERE type='index'"
    ).fetchone()[0]
    for ddl in CREATE_INDEXES:
        conn.execute(ddl)
    after = conn.execute(
        "SELECT COUNT(*) FROM sqlite_master WHERE type='index'"
    ).fetchone()[0]
    return {"indexes_created": after - before} if after > before else None


# =============================================================================
# Migration steps
# =============================================================================


def cleanup_temp_tables(conn: sqlite3.Connection) -> Optional[Dict[str, Any]]:
    """Drop '_new' rebuild tables left behind by an interrupted run."""
    dropped = [t for t in TEMP_TABLES if table_exists(conn, t)]
    for t in dropped:
        conn.execute(f"DROP TABLE {_q(t)}")
    return {"dropped": dropped} if dropped else None


def rename_legacy_tables(conn: sqlite3.Connection) -> Optional[Dict[str, Any]]:
    """Achat -> ListeAchat, Notification -> Rappel, LigneAchat -> Article."""
    renamed = []
    for current, legacy in LEGACY_TABLE_NAMES.items():
        if table_exists(conn, legacy) and not table_exists(conn, current):
            conn.execute(f"ALTER TABLE {_q(legacy)} RENAME TO {_q(current)}")
            renamed.append(f"{legacy}->{current}")
    return {"renamed": renamed} if renamed else None


def rename_key_columns(conn: sqlite3.Connection) -> Optional[Dict[str, Any]]:
    """ListeAchat.id -> idListe, Produit.id -> idProduit, add missing columns."""
    changes = []
    for table, new_key in ((LISTS, "idListe"), (PRODUCTS, "idProduit")):
        if column_exists(conn, table, "id") and not column_exists(
            conn, table, new_key
        ):
            conn.execute(
                f"ALTER TABLE {_q(table)} RENAME COLUMN {_q('id')} TO {_q(new_key)}"
            )
            changes.append(f"{table}.id->{new_key}")

    for table, column, decl in ADDED_COLUMNS:
        if table_exists(conn, table) and not column_exists(conn, table, column):
            conn.execute(f"ALTER TABLE {_q(table)} ADD COLUMN {_q(column)} {decl}")
            changes.append(f"+{table}.{column}")
    return {"changes": changes} if changes else None


def _coalesce(parts: List[str]) -> str:
    return parts[0] if len(parts) == 1 else "COALESCE(" + ", ".join(parts) + ")"


def _line_item_select(cols: set, label_join: bool) -> Dict[str, str]:
    """
    Column expressions reading a legacy line-item table aliased 'a'.
    Unit price falls back to total/quantity so that recomputing the total
    never loses a stored amount.
    """
    if "idArticle" in cols:
        id_expr = "a.idArticle"
    elif "id" in cols:
        id_expr = "a.id"
    else:
        id_expr = "NULL"

    if "idListeAchat" in cols:
        list_expr = "a.idListeAchat"
    elif "idAchat" in cols:
        list_expr = "a.idAchat"
    else:
        raise sqlite3.OperationalError("line-item table has no owning-list column")

    label_lookup = (
        "(SELECT MIN(p.idProduit) FROM Produit p "
        "WHERE p.libelle = TRIM(a.libelleProduit))"
    )
    if label_join and "idProduit" in cols:
        product_expr = f"COALESCE(a.idProduit, {label_lookup})"
    elif label_join:
        product_expr = label_lookup
    else:
        product_expr = "a.idProduit"

    qty_expr = "COALESCE(a.quantite, 1)" if "quantite" in cols else "1"

    price_parts = []
    if "prixUnitaire" in cols:
        price_parts.append("NULLIF(a.prixUnitaire, 0)")
    if "prixTotal" in cols:
        price_parts.append(f"CAST(a.prixTotal AS REAL) / NULLIF({qty_expr}, 0)")
    price_parts.append("0")
    price_expr = _coalesce(price_parts)

    unit_parts = ["a.unite"] if "unite" in cols else []
    unit_parts.append(
        f"(SELECT p.unite FROM Produit p WHERE p.idProduit = {product_expr})"
    )
    unit_parts.append("'pcs'")
    unit_expr = _coalesce(unit_parts)

    checked_expr = "COALESCE(a.estCoche, 0)" if "estCoche" in cols else "0"

    return {
        "idArticle": id_expr,
        "idListeAchat": list_expr,
        "idProduit": product_expr,
        "quantite": qty_expr,
        "prixUnitaire": price_expr,
        "prixTotal": f"({qty_expr}) * ({price_expr})",
        "unite": unit_expr,
        "estCoche": checked_expr,
    }


def backfill_products_from_labels(conn: sqlite3.Connection) -> int:
    """Insert a Produit row for every legacy label not yet present."""
    unit_expr = "COALESCE(MIN(a.unite), 'pcs')" if column_exists(
        conn, LINE_ITEMS, "unite"
    ) else "'pcs'"
    before = _count(conn, PRODUCTS)
    conn.execute(
        f"""
        INSERT INTO Produit (libelle, unite)
        SELECT TRIM(a.libelleProduit), {unit_expr}
        FROM Article a
        WHERE a.libelleProduit IS NOT NULL
          AND TRIM(a.libelleProduit) != ''
          AND NOT EXISTS (
              SELECT 1 FROM Produit p WHERE p.libelle = TRIM(a.libelleProduit)
          )
        GROUP BY TRIM(a.libelleProduit)
        ORDER BY MIN(a.rowid)
        """
    )
    return _count(conn, PRODUCTS) - before


def _rebuild_line_items(
    conn: sqlite3.Connection, label_join: bool
) -> Dict[str, int]:
    """Copy Article into a fresh current-layout table and swap it in."""
    cols = set(get_table_columns(conn, LINE_ITEMS))
    exprs = _line_item_select(cols, label_join)
    tmp = f"{LINE_ITEMS}_new"

    conn.execute(f"DROP TABLE IF EXISTS {_q(tmp)}")
    conn.execute(LINE_ITEMS_DDL.format(name=_q(tmp)))

    source_rows = _count(conn, LINE_ITEMS)
    target_cols = ", ".join(LINE_ITEM_COLUMNS)
    select_list = ",\n            ".join(exprs[c] for c in LINE_ITEM_COLUMNS)
    conn.execute(
        f"""
        INSERT INTO {_q(tmp)} ({target_cols})
        SELECT
            {select_list}
        FROM Article a
        WHERE ({exprs['idProduit']}) IS NOT NULL
        ORDER BY a.rowid
        """
    )
    copied = _count(conn, tmp)

    conn.execute(f"DROP TABLE {_q(LINE_ITEMS)}")
    conn.execute(f"ALTER TABLE {_q(tmp)} RENAME TO {_q(LINE_ITEMS)}")

    if copied < source_rows:
        log.warning(
            "%d line item(s) had no product label or id and were not migrated",
            source_rows - copied,
        )
    return {"copied": copied, "skipped": source_rows - copied}


def normalize_line_items(
    conn: sqlite3.Connection, shape: LegacyShape
) -> Optional[Dict[str, Any]]:
    """Bring the line-item table onto the normalized layout."""
    if shape is LegacyShape.FRESH:
        return None
    if shape is LegacyShape.DENORMALIZED:
        added = backfill_products_from_labels(conn)
        stats = _rebuild_line_items(conn, label_join=True)
        return {"shape": shape.value, "products_added": added, **stats}
    if shape is LegacyShape.ALREADY_NORMALIZED:
        stats = _rebuild_line_items(conn, label_join=False)
        return {"shape": shape.value, **stats}
    raise ValueError(f"Unhandled line-item shape: {shape!r}")


def _rebuild_reminders(conn: sqlite3.Connection) -> int:
    """Copy Rappel into a fresh current-layout table and swap it in."""
    cols = set(get_table_columns(conn, REMINDERS))
    exprs = {c: (f"r.{_q(c)}" if c in cols else "NULL") for c in REMINDER_COLUMNS}
    exprs["createdAt"] = (
        "COALESCE(r.createdAt, CURRENT_TIMESTAMP)" if "createdAt" in cols
        else "CURRENT_TIMESTAMP"
    )
    tmp = f"{REMINDERS}_new"

    conn.execute(f"DROP TABLE IF EXISTS {_q(tmp)}")
    conn.execute(REMINDERS_DDL.format(name=_q(tmp)))
    target_cols = ", ".join(REMINDER_COLUMNS)
    select_list = ", ".join(exprs[c] for c in REMINDER_COLUMNS)
    conn.execute(
        f"INSERT INTO {_q(tmp)} ({target_cols}) "
        f"SELECT {select_list} FROM Rappel r ORDER BY r.rowid"
    )
    copied = _count(conn, tmp)

    conn.execute(f"DROP TABLE {_q(REMINDERS)}")
    conn.execute(f"ALTER TABLE {_q(tmp)} RENAME TO {_q(REMINDERS)}")
    return copied


def rename_reminder_columns(conn: sqlite3.Connection) -> Optional[Dict[str, Any]]:
    """
    Legacy reminder columns -> current names; add missing columns.
    A NOT NULL list reference is relaxed by rebuilding the table.
    """
    if not table_exists(conn, REMINDERS):
        return None

    changes = []
    for old, new in REMINDER_COLUMN_RENAMES:
        if column_exists(conn, REMINDERS, old) and not column_exists(
            conn, REMINDERS, new
        ):
            conn.execute(
                f"ALTER TABLE {_q(REMINDERS)} RENAME COLUMN {_q(old)} TO {_q(new)}"
            )
            changes.append(f"{old}->{new}")

    for column, decl in REMINDER_ADDED_COLUMNS:
        if not column_exists(conn, REMINDERS, column):
            conn.execute(f"ALTER TABLE {_q(REMINDERS)} ADD COLUMN {_q(column)} {decl}")
            changes.append(f"+{column}")
            if column == "createdAt":
                conn.execute(
                    "UPDATE Rappel SET createdAt = CURRENT_TIMESTAMP "
                    "WHERE createdAt IS NULL"
                )

    if column_not_null(conn, REMINDERS, "idListeAchat"):
        copied = _rebuild_reminders(conn)
        changes.append(f"rebuilt ({copied} rows, idListeAchat nullable)")
    return {"changes": changes} if changes else None


def recompute_totals(conn: sqlite3.Connection) -> Optional[Dict[str, Any]]:
    """Re-derive line totals and list totals from stored quantities/prices."""
    cur = conn.cursor()
    cur.execute(
        """
        UPDATE Article
        SET prixUnitaire = prixTotal / quantite
        WHERE COALESCE(prixUnitaire, 0) = 0
          AND COALESCE(prixTotal, 0) != 0
          AND COALESCE(quantite, 0) != 0
        """
    )
    prices_fixed = cur.rowcount
    cur.execute(
        """
        UPDATE Article
        SET prixTotal = COALESCE(quantite, 0) * COALESCE(prixUnitaire, 0)
        WHERE prixTotal IS NULL
           OR ABS(prixTotal - COALESCE(quantite, 0) * COALESCE(prixUnitaire, 0)) > ?
        """,
        (FLOAT_TOLERANCE,),
    )
    lines_fixed = cur.rowcount
    cur.execute(
        """
        UPDATE ListeAchat
        SET montantTotal = (
            SELECT COALESCE(SUM(a.prixTotal), 0) FROM Article a
            WHERE a.idListeAchat = ListeAchat.idListe
        )
        WHERE montantTotal IS NULL
           OR ABS(montantTotal - (
               SELECT COALESCE(SUM(a.prixTotal), 0) FROM Article a
               WHERE a.idListeAchat = ListeAchat.idListe
           )) > ?
        """,
        (FLOAT_TOLERANCE,),
    )
    lists_fixed = cur.rowcount
    if not (prices_fixed or lines_fixed or lists_fixed):
        return None
    return {
        "unit_prices_derived": prices_fixed,
        "line_totals_fixed": lines_fixed,
        "list_totals_fixed": lists_fixed,
    }


# =============================================================================
# Seeding
# =============================================================================


def seed_default_products(conn: sqlite3.Connection) -> int:
    """Insert the baseline catalog if Produit is empty. Returns count inserted."""
    if _count(conn, PRODUCTS) > 0:
        return 0
    with transaction(conn):
        conn.executemany(
            "INSERT INTO Produit (libelle, unite) VALUES (?, ?)", DEFAULT_PRODUCTS
        )
    return len(DEFAULT_PRODUCTS)


# =============================================================================
# Entry point
# =============================================================================


def run_migrations(conn: sqlite3.Connection, report: MigrationReport) -> None:
    """Run every migration step in order, recording outcomes on the report."""
    report.legacy_shape = detect_line_item_shape(conn)
    log.info("Line-item layout detected: %s", report.legacy_shape.value)

    _run_step(conn, report, "cleanup_temp_tables", cleanup_temp_tables)
    _run_step(conn, report, "rename_tables", rename_legacy_tables)
    _run_step(conn, report, "rename_key_columns", rename_key_columns)
    _run_step(
        conn,
        report,
        "normalize_line_items",
        lambda c: normalize_line_items(c, report.legacy_shape),
    )
    _run_step(conn, report, "rename_reminder_columns", rename_reminder_columns)
    _run_step(conn, report, "create_missing_tables", create_missing_tables)
    _run_step(conn, report, "recompute_totals", recompute_totals)
    _run_step(conn, report, "create_indexes", create_all_indexes)


def initialize(conn: sqlite3.Connection) -> MigrationReport:
    """
    Bring the database to the Ready state: ensure schema, migrate, seed.
    This is the main entry point for schema management. It never raises;
    failures are logged and listed on the returned report.
    """
    report = MigrationReport()

    if conn.in_transaction:
        conn.commit()
    fk_row = conn.execute("PRAGMA foreign_keys").fetchone()
    fk_enabled = bool(fk_row and fk_row[0])
    # Table rebuilds must not trip FK checks half-way through
    conn.execute("PRAGMA foreign_keys = OFF")
    try:
        _run_step(conn, report, "ensure_schema", ensure_base_schema)
        report.state = StoreState.SCHEMA_ENSURED

        run_migrations(conn, report)
        report.state = StoreState.MIGRATED
    finally:
        if fk_enabled:
            conn.execute("PRAGMA foreign_keys = ON")

    try:
        report.products_seeded = seed_default_products(conn)
        if report.products_seeded:
            log.info("Seeded %d default products", report.products_seeded)
    except Exception as e:
        log.warning("Default product seeding skipped: %s", e)
        report.steps.append(
            StepOutcome(name="seed_products", status=STEP_FAILED, error=str(e))
        )
    report.state = StoreState.SEEDED

    report.state = StoreState.READY
    if report.failed:
        log.warning(
            "Database ready with %d failed migration step(s): %s",
            len(report.failed),
            ", ".join(s.name for s in report.failed),
        )
    else:
        log.info("Database ready")
    return report


def reset_database(conn: sqlite3.Connection) -> MigrationReport:
    """
    Drop every current, legacy and leftover rebuild table, then initialize.
    All stored lists, line items, products and reminders are lost.
    """
    tables = EXPECTED_TABLES + list(LEGACY_TABLE_NAMES.values()) + TEMP_TABLES
    if conn.in_transaction:
        conn.commit()
    fk_row = conn.execute("PRAGMA foreign_keys").fetchone()
    fk_enabled = bool(fk_row and fk_row[0])
    conn.execute("PRAGMA foreign_keys = OFF")
    try:
        with transaction(conn):
            dropped = [t for t in tables if table_exists(conn, t)]
            for t in dropped:
                conn.execute(f"DROP TABLE {_q(t)}")
    finally:
        if fk_enabled:
            conn.execute("PRAGMA foreign_keys = ON")
    log.info("Database reset: dropped %s", ", ".join(dropped) or "nothing")
    return initialize(conn)


# =============================================================================
# Health checks
# =============================================================================


def check_integrity(conn: sqlite3.Connection) -> Dict[str, Any]:
    """
    Run integrity checks on the database.
    Returns detailed status report.
    """
    result: Dict[str, Any] = {
        "status": "ok",
        "tables": {},
        "integrity_check": None,
        "foreign_key_violations": 0,
        "line_total_mismatches": 0,
        "list_total_mismatches": 0,
        "issues": [],
    }

    cur = conn.cursor()

    cur.execute("PRAGMA integrity_check")
    integrity = cur.fetchone()[0]
    result["integrity_check"] = integrity
    if integrity != "ok":
        result["status"] = "error"
        result["issues"].append(f"Integrity check failed: {integrity}")

    for table in EXPECTED_TABLES:
        if table_exists(conn, table):
            count = _count(conn, table)
            result["tables"][table] = {
                "exists": True,
                "rows": count,
                "empty": count == 0,
            }
        else:
            result["tables"][table] = {"exists": False, "rows": 0, "empty": True}
            if result["status"] == "ok":
                result["status"] = "warning"
            result["issues"].append(f"Missing table: {table}")

    for current, legacy in LEGACY_TABLE_NAMES.items():
        if table_exists(conn, legacy):
            if result["status"] == "ok":
                result["status"] = "warning"
            result["issues"].append(f"Legacy table still present: {legacy}")

    if all(result["tables"][t]["exists"] for t in EXPECTED_TABLES):
        violations = cur.execute("PRAGMA foreign_key_check").fetchall()
        result["foreign_key_violations"] = len(violations)
        if violations:
            if result["status"] == "ok":
                result["status"] = "warning"
            result["issues"].append(
                f"{len(violations)} foreign key violation(s)"
            )

        result["line_total_mismatches"] = cur.execute(
            """
            SELECT COUNT(*) FROM Article
            WHERE ABS(COALESCE(prixTotal, 0)
                      - COALESCE(quantite, 0) * COALESCE(prixUnitaire, 0)) > ?
            """,
            (FLOAT_TOLERANCE,),
        ).fetchone()[0]
        result["list_total_mismatches"] = cur.execute(
            """
            SELECT COUNT(*) FROM ListeAchat l
            WHERE ABS(COALESCE(l.montantTotal, 0) - (
                SELECT COALESCE(SUM(a.prixTotal), 0) FROM Article a
                WHERE a.idListeAchat = l.idListe
            )) > ?
            """,
            (FLOAT_TOLERANCE,),
        ).fetchone()[0]
        for key, label in (
            ("line_total_mismatches", "line item total(s)"),
            ("list_total_mismatches", "list total(s)"),
        ):
            if result[key]:
                if result["status"] == "ok":
                    result["status"] = "warning"
                result["issues"].append(f"{result[key]} inconsistent {label}")

    return result


def get_table_stats(conn: sqlite3.Connection) -> Dict[str, int]:
    """Get row counts for all tables (-1 when missing)."""
    stats = {}
    for table in EXPECTED_TABLES:
        stats[table] = _count(conn, table) if table_exists(conn, table) else -1

    # Also report legacy tables still on disk
    for legacy in LEGACY_TABLE_NAMES.values():
        if table_exists(conn, legacy):
            stats[f"{legacy}_legacy"] = _count(conn, legacy)

    return stats
