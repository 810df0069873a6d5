# storage/sqlite_store.py
"""
SQLite storage layer for Smart Shopping Tracker.

Provides CRUD operations for:
- Products
- Purchase lists
- Line items (line and list totals kept in sync on every write)
- Reminders (soft-deleted)

and a readiness-gated entry point to the analytics layer.
"""
from __future__ import annotations

import sqlite3
from dataclasses import asdict
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from analytics import (
    aggregate,
    classify,
    compare_with_previous,
    daily_totals,
    find_anomalies,
    score_day,
)
from sst_core.models import (
    Comparison,
    DailyTotal,
    DateRange,
    Granularity,
    LineItem,
    LIST_STATUS_VALIDATED,
    MigrationReport,
    PerformanceScore,
    PeriodAggregate,
    Product,
    PurchaseList,
    Reminder,
    StoreState,
)
from sst_utils.periods import DateLike

from .migrations import (
    check_integrity,
    get_table_stats,
    initialize,
    reset_database,
    transaction,
)

DEFAULT_DB_PATH = "data/shopping.sqlite"

# Python field name -> on-disk column
LIST_FIELDS = {
    "name": "nomListe",
    "date": "dateAchat",
    "notes": "notes",
    "status": "statut",
}
LINE_ITEM_FIELDS = {
    "product_id": "idProduit",
    "quantity": "quantite",
    "unit_price": "prixUnitaire",
    "unit": "unite",
    "checked": "estCoche",
}


class StoreNotReadyError(RuntimeError):
    """Analytics requested before initialize() reached the Ready state."""


def open_conn(path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Open a database connection with row factory (WAL journal on files)."""
    if path != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    if path != ":memory:":
        conn.execute("PRAGMA journal_mode = WAL")
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def _iso(value: Union[date, datetime, str]) -> str:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


# =============================================================================
# Row mappers
# =============================================================================


def _product(row: sqlite3.Row) -> Product:
    return Product(id=row["idProduit"], label=row["libelle"], unit=row["unite"] or "pcs")


def _purchase_list(row: sqlite3.Row) -> PurchaseList:
    return PurchaseList(
        id=row["idListe"],
        name=row["nomListe"],
        date=row["dateAchat"],
        total_amount=row["montantTotal"] or 0.0,
        notes=row["notes"],
        status=row["statut"] or 0,
    )


def _line_item(row: sqlite3.Row) -> LineItem:
    return LineItem(
        id=row["idArticle"],
        list_id=row["idListeAchat"],
        product_id=row["idProduit"],
        quantity=row["quantite"],
        unit_price=row["prixUnitaire"],
        line_total=row["prixTotal"],
        unit=row["unite"] or "pcs",
        checked=bool(row["estCoche"]),
    )


def _reminder(row: sqlite3.Row) -> Reminder:
    return Reminder(
        id=row["idRappel"],
        list_id=row["idListeAchat"],
        title=row["titre"],
        reminder_date=row["dateRappel"],
        reminder_time=row["heureRappel"],
        message=row["message"],
        type=row["type"] or "rappel",
        read=bool(row["estLu"]),
        deleted=bool(row["supprime"]),
        displayed=bool(row["affiche"]),
        notification_id=row["notificationId"],
        created_at=row["createdAt"],
    )


class ShoppingStore:
    """
    Main storage class.
    Owns one connection, opened lazily, and remembers how far initialize()
    got so analytics can refuse to run against a half-built database.
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        self.state = StoreState.UNINITIALIZED
        self.report: Optional[MigrationReport] = None

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = open_conn(self.db_path)
        return self._conn

    def close(self) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None
        self.state = StoreState.UNINITIALIZED

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def initialize(self) -> MigrationReport:
        """Ensure schema, migrate legacy layouts, seed defaults."""
        self.report = initialize(self.conn)
        self.state = self.report.state
        return self.report

    def reset(self) -> MigrationReport:
        """Drop all tables and initialize again. Every stored row is lost."""
        self.report = reset_database(self.conn)
        self.state = self.report.state
        return self.report

    @property
    def is_ready(self) -> bool:
        return self.state is StoreState.READY

    def _require_ready(self) -> sqlite3.Connection:
        if not self.is_ready:
            raise StoreNotReadyError(
                f"Store is {self.state.value}; call initialize() first"
            )
        return self.conn

    def check_integrity(self) -> Dict[str, Any]:
        """Run integrity checks."""
        return check_integrity(self.conn)

    def get_stats(self) -> Dict[str, int]:
        """Get row counts for all tables."""
        return get_table_stats(self.conn)

    # =========================================================================
    # Product Operations
    # =========================================================================

    def add_product(self, label: str, unit: str = "pcs") -> int:
        """Insert a product. Returns the product ID."""
        label = label.strip()
        if not label:
            raise ValueError("Product label must not be empty")
        cur = self.conn.cursor()
        cur.execute(
            "INSERT INTO Produit (libelle, unite) VALUES (?, ?)", (label, unit)
        )
        self.conn.commit()
        return cur.lastrowid

    def get_or_create_product(self, label: str, unit: str = "pcs") -> int:
        """Return the ID of the product with this label, creating it if needed."""
        cur = self.conn.cursor()
        cur.execute(
            "SELECT idProduit FROM Produit WHERE libelle = ? ORDER BY idProduit LIMIT 1",
            (label.strip(),),
        )
        row = cur.fetchone()
        if row:
            return row[0]
        return self.add_product(label, unit)

    def get_product(self, product_id: int) -> Optional[Product]:
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM Produit WHERE idProduit = ?", (product_id,))
        row = cur.fetchone()
        return _product(row) if row else None

    def list_products(self) -> List[Product]:
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM Produit ORDER BY libelle COLLATE NOCASE")
        return [_product(row) for row in cur.fetchall()]

    # =========================================================================
    # Purchase List Operations
    # =========================================================================

    def create_list(
        self,
        date: DateLike,
        name: Optional[str] = None,
        notes: Optional[str] = None,
        status: int = 0,
    ) -> int:
        """Insert an empty purchase list. Returns the list ID."""
        cur = self.conn.cursor()
        cur.execute(
            """
            INSERT INTO ListeAchat (nomListe, dateAchat, montantTotal, notes, statut)
            VALUES (?, ?, 0, ?, ?)
            """,
            (name, _iso(date), notes, status),
        )
        self.conn.commit()
        return cur.lastrowid

    def get_list(self, list_id: int) -> Optional[PurchaseList]:
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM ListeAchat WHERE idListe = ?", (list_id,))
        row = cur.fetchone()
        return _purchase_list(row) if row else None

    def list_lists(
        self,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        status: Optional[int] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[PurchaseList]:
        """List purchase lists with optional filters, newest first."""
        conditions = []
        params: List[Any] = []

        if date_from:
            conditions.append("DATE(dateAchat) >= ?")
            params.append(_iso(date_from))
        if date_to:
            conditions.append("DATE(dateAchat) <= ?")
            params.append(_iso(date_to))
        if status is not None:
            conditions.append("statut = ?")
            params.append(status)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        cur = self.conn.cursor()
        cur.execute(
            f"""
            SELECT * FROM ListeAchat
            {where}
            ORDER BY dateAchat DESC, idListe DESC
            LIMIT ? OFFSET ?
            """,
            params + [limit, offset],
        )
        return [_purchase_list(row) for row in cur.fetchall()]

    def update_list(self, list_id: int, **fields) -> bool:
        """Update list fields (name, date, notes, status). Returns True if updated."""
        if not fields:
            return False
        unknown = set(fields) - set(LIST_FIELDS)
        if unknown:
            raise ValueError(f"Unknown list field(s): {', '.join(sorted(unknown))}")

        if "date" in fields:
            fields["date"] = _iso(fields["date"])

        set_clause = ", ".join(f"{LIST_FIELDS[k]} = ?" for k in fields)
        values = list(fields.values()) + [list_id]

        cur = self.conn.cursor()
        cur.execute(f"UPDATE ListeAchat SET {set_clause} WHERE idListe = ?", values)
        self.conn.commit()
        return cur.rowcount > 0

    def validate_list(self, list_id: int) -> bool:
        return self.update_list(list_id, status=LIST_STATUS_VALIDATED)

    def delete_list(self, list_id: int) -> bool:
        """
        Delete a list and its line items. Its reminders are soft-deleted and
        detached from the list.
        """
        with transaction(self.conn) as conn:
            cur = conn.cursor()
            cur.execute("DELETE FROM Article WHERE idListeAchat = ?", (list_id,))
            cur.execute(
                "UPDATE Rappel SET supprime = 1, idListeAchat = NULL "
                "WHERE idListeAchat = ?",
                (list_id,),
            )
            cur.execute("DELETE FROM ListeAchat WHERE idListe = ?", (list_id,))
            deleted = cur.rowcount > 0
        return deleted

    def recompute_list_total(self, list_id: int, commit: bool = True) -> float:
        """Set montantTotal to the sum of the list's line totals. Returns it."""
        cur = self.conn.cursor()
        cur.execute(
            "SELECT COALESCE(SUM(prixTotal), 0) FROM Article WHERE idListeAchat = ?",
            (list_id,),
        )
        total = float(cur.fetchone()[0])
        cur.execute(
            "UPDATE ListeAchat SET montantTotal = ? WHERE idListe = ?",
            (total, list_id),
        )
        if commit:
            self.conn.commit()
        return total

    # =========================================================================
    # Line Item Operations
    # =========================================================================

    def add_line_item(
        self,
        list_id: int,
        product_id: int,
        quantity: float = 1.0,
        unit_price: float = 0.0,
        unit: Optional[str] = None,
        checked: bool = False,
    ) -> int:
        """
        Insert a line item and refresh the list total.
        The line total is always quantity * unit_price.
        """
        if unit is None:
            product = self.get_product(product_id)
            unit = product.unit if product else "pcs"

        cur = self.conn.cursor()
        cur.execute(
            """
            INSERT INTO Article (
                idListeAchat, idProduit, quantite, prixUnitaire,
                prixTotal, unite, estCoche
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                list_id,
                product_id,
                quantity,
                unit_price,
                quantity * unit_price,
                unit,
                int(checked),
            ),
        )
        item_id = cur.lastrowid
        self.recompute_list_total(list_id, commit=False)
        self.conn.commit()
        return item_id

    def add_line_items_batch(
        self, list_id: int, items: List[Dict[str, Any]]
    ) -> List[int]:
        """
        Insert multiple line items. Items name a product either by
        'product_id' or by 'label' (created on demand). Returns list of IDs.
        """
        ids = []
        for item in items:
            product_id = item.get("product_id")
            if product_id is None:
                product_id = self.get_or_create_product(
                    item["label"], item.get("unit") or "pcs"
                )
            ids.append(
                self.add_line_item(
                    list_id=list_id,
                    product_id=product_id,
                    quantity=item.get("quantity", 1.0),
                    unit_price=item.get("unit_price", 0.0),
                    unit=item.get("unit"),
                    checked=item.get("checked", False),
                )
            )
        return ids

    def get_line_item(self, item_id: int) -> Optional[LineItem]:
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM Article WHERE idArticle = ?", (item_id,))
        row = cur.fetchone()
        return _line_item(row) if row else None

    def get_line_items(self, list_id: int) -> List[Dict[str, Any]]:
        """Line items of a list joined with their product label."""
        cur = self.conn.cursor()
        cur.execute(
            """
            SELECT a.*, p.libelle AS label
            FROM Article a
            LEFT JOIN Produit p ON p.idProduit = a.idProduit
            WHERE a.idListeAchat = ?
            ORDER BY a.idArticle
            """,
            (list_id,),
        )
        out = []
        for row in cur.fetchall():
            d = asdict(_line_item(row))
            d["label"] = row["label"]
            out.append(d)
        return out

    def update_line_item(self, item_id: int, **fields) -> bool:
        """
        Update line item fields (product_id, quantity, unit_price, unit,
        checked). Recomputes the line total and its list's total.
        """
        if not fields:
            return False
        unknown = set(fields) - set(LINE_ITEM_FIELDS)
        if unknown:
            raise ValueError(
                f"Unknown line item field(s): {', '.join(sorted(unknown))}"
            )

        current = self.get_line_item(item_id)
        if current is None:
            return False

        if "checked" in fields:
            fields["checked"] = int(bool(fields["checked"]))

        set_clause = ", ".join(f"{LINE_ITEM_FIELDS[k]} = ?" for k in fields)
        values = list(fields.values()) + [item_id]

        cur = self.conn.cursor()
        cur.execute(f"UPDATE Article SET {set_clause} WHERE idArticle = ?", values)
        cur.execute(
            """
            UPDATE Article
            SET prixTotal = COALESCE(quantite, 0) * COALESCE(prixUnitaire, 0)
            WHERE idArticle = ?
            """,
            (item_id,),
        )
        self.recompute_list_total(current.list_id, commit=False)
        self.conn.commit()
        return True

    def set_checked(self, item_id: int, checked: bool = True) -> bool:
        return self.update_line_item(item_id, checked=checked)

    def delete_line_item(self, item_id: int) -> bool:
        """Delete a line item and refresh its list total."""
        current = self.get_line_item(item_id)
        if current is None:
            return False
        cur = self.conn.cursor()
        cur.execute("DELETE FROM Article WHERE idArticle = ?", (item_id,))
        self.recompute_list_total(current.list_id, commit=False)
        self.conn.commit()
        return True

    # =========================================================================
    # Reminder Operations
    # =========================================================================

    def add_reminder(
        self,
        title: str,
        reminder_date: Union[date, str],
        reminder_time: str,
        list_id: Optional[int] = None,
        message: Optional[str] = None,
        type: str = "rappel",
        notification_id: Optional[str] = None,
    ) -> int:
        """Insert a reminder. Returns the reminder ID."""
        cur = self.conn.cursor()
        cur.execute(
            """
            INSERT INTO Rappel (
                idListeAchat, titre, message, dateRappel, heureRappel,
                type, notificationId
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                list_id,
                title,
                message,
                _iso(reminder_date),
                reminder_time,
                type,
                notification_id,
            ),
        )
        self.conn.commit()
        return cur.lastrowid

    def get_reminder(self, reminder_id: int) -> Optional[Reminder]:
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM Rappel WHERE idRappel = ?", (reminder_id,))
        row = cur.fetchone()
        return _reminder(row) if row else None

    def list_reminders(
        self,
        list_id: Optional[int] = None,
        include_deleted: bool = False,
        unread_only: bool = False,
    ) -> List[Reminder]:
        conditions = []
        params: List[Any] = []
        if list_id is not None:
            conditions.append("idListeAchat = ?")
            params.append(list_id)
        if not include_deleted:
            conditions.append("COALESCE(supprime, 0) = 0")
        if unread_only:
            conditions.append("COALESCE(estLu, 0) = 0")

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        cur = self.conn.cursor()
        cur.execute(
            f"SELECT * FROM Rappel {where} ORDER BY dateRappel, heureRappel",
            params,
        )
        return [_reminder(row) for row in cur.fetchall()]

    def _set_reminder_flag(self, reminder_id: int, column: str) -> bool:
        cur = self.conn.cursor()
        cur.execute(
            f"UPDATE Rappel SET {column} = 1 WHERE idRappel = ?", (reminder_id,)
        )
        self.conn.commit()
        return cur.rowcount > 0

    def mark_reminder_read(self, reminder_id: int) -> bool:
        return self._set_reminder_flag(reminder_id, "estLu")

    def mark_reminder_displayed(self, reminder_id: int) -> bool:
        return self._set_reminder_flag(reminder_id, "affiche")

    def delete_reminder(self, reminder_id: int) -> bool:
        """Soft-delete: the row stays with supprime = 1."""
        return self._set_reminder_flag(reminder_id, "supprime")

    # =========================================================================
    # Analytics (require Ready)
    # =========================================================================

    def aggregate(
        self,
        period: DateRange,
        granularity: Union[Granularity, str] = Granularity.DAY,
        status: Optional[int] = None,
    ) -> PeriodAggregate:
        return aggregate(self._require_ready(), period, granularity, status)

    def compare_with_previous(
        self, period: DateRange, status: Optional[int] = None
    ) -> Comparison:
        return compare_with_previous(self._require_ready(), period, status)

    def trend(
        self,
        period: DateRange,
        granularity: Union[Granularity, str] = Granularity.DAY,
        status: Optional[int] = None,
    ) -> str:
        """Trend classification over the period's bucket series."""
        return classify(self.aggregate(period, granularity, status).series())

    def daily_totals(
        self, period: DateRange, status: Optional[int] = None
    ) -> List[DailyTotal]:
        return daily_totals(self._require_ready(), period, status)

    def find_anomalies(
        self, period: DateRange, status: Optional[int] = None
    ) -> List[date]:
        return find_anomalies(self.daily_totals(period, status))

    def score_day(
        self,
        day: Union[date, str],
        baseline_days: int = 7,
        status: Optional[int] = None,
    ) -> PerformanceScore:
        return score_day(self._require_ready(), day, baseline_days, status)
