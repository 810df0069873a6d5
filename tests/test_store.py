# tests/test_store.py
"""
Tests for the ShoppingStore CRUD layer and its readiness gate.
"""
import sqlite3

import pytest

from sst_core.models import LIST_STATUS_VALIDATED, StoreState
from sst_utils.periods import day_range
from storage.sqlite_store import ShoppingStore, StoreNotReadyError

from conftest import add_purchase


def _all_line_totals_consistent(store):
    rows = store.conn.execute(
        "SELECT quantite, prixUnitaire, prixTotal FROM Article"
    ).fetchall()
    return all(
        abs(r["prixTotal"] - r["quantite"] * r["prixUnitaire"]) < 1e-6 for r in rows
    )


class TestReadiness:
    def test_analytics_refused_before_initialize(self, temp_db):
        with ShoppingStore(temp_db) as s:
            assert s.state is StoreState.UNINITIALIZED
            with pytest.raises(StoreNotReadyError):
                s.aggregate(day_range("2024-03-04"))

    def test_not_ready_is_runtime_error(self):
        assert issubclass(StoreNotReadyError, RuntimeError)

    def test_ready_after_initialize(self, store):
        assert store.is_ready
        assert store.report is not None
        assert store.report.state is StoreState.READY

    def test_close_resets_state(self, temp_db):
        s = ShoppingStore(temp_db)
        s.initialize()
        s.close()
        assert not s.is_ready


class TestProducts:
    def test_get_or_create_is_idempotent(self, store):
        a = store.get_or_create_product("Coffee", "kg")
        b = store.get_or_create_product("Coffee")
        assert a == b
        assert store.get_product(a).unit == "kg"

    def test_seeded_product_reused(self, store):
        rice = store.get_or_create_product("Rice")
        assert store.get_product(rice).unit == "kg"

    def test_empty_label_rejected(self, store):
        with pytest.raises(ValueError):
            store.add_product("   ")

    def test_list_products(self, store):
        labels = [p.label for p in store.list_products()]
        assert "Rice" in labels and "Onion" in labels


class TestTotals:
    def test_line_total_is_quantity_times_price(self, store):
        list_id = store.create_list("2024-03-04")
        rice = store.get_or_create_product("Rice")
        item_id = store.add_line_item(list_id, rice, quantity=2.5, unit_price=4.0)

        item = store.get_line_item(item_id)
        assert item.line_total == pytest.approx(10.0)
        assert item.unit == "kg"
        assert store.get_list(list_id).total_amount == pytest.approx(10.0)

    def test_list_total_after_insert_update_delete(self, store):
        list_id = add_purchase(
            store, "2024-03-04", [("Rice", 2, 3.0), ("Oil", 1, 10.0)]
        )
        assert store.get_list(list_id).total_amount == pytest.approx(16.0)

        items = store.get_line_items(list_id)
        oil = next(i for i in items if i["label"] == "Oil")
        assert store.update_line_item(oil["id"], quantity=3)
        assert store.get_line_item(oil["id"]).line_total == pytest.approx(30.0)
        assert store.get_list(list_id).total_amount == pytest.approx(36.0)

        assert store.update_line_item(oil["id"], unit_price=2.0)
        assert store.get_list(list_id).total_amount == pytest.approx(12.0)

        assert store.delete_line_item(oil["id"])
        assert store.get_list(list_id).total_amount == pytest.approx(6.0)
        assert _all_line_totals_consistent(store)

    def test_update_unknown_field_rejected(self, store):
        list_id = add_purchase(store, "2024-03-04", [("Rice", 1, 1.0)])
        item_id = store.get_line_items(list_id)[0]["id"]
        with pytest.raises(ValueError):
            store.update_line_item(item_id, line_total=999)

    def test_update_missing_item(self, store):
        assert store.update_line_item(12345, quantity=2) is False
        assert store.delete_line_item(12345) is False

    def test_checked_flag(self, store):
        list_id = add_purchase(store, "2024-03-04", [("Milk", 1, 1.5)])
        item_id = store.get_line_items(list_id)[0]["id"]
        store.set_checked(item_id)
        assert store.get_line_item(item_id).checked is True
        assert store.get_list(list_id).total_amount == pytest.approx(1.5)

    def test_batch_creates_products_by_label(self, store):
        list_id = store.create_list("2024-03-04")
        ids = store.add_line_items_batch(
            list_id,
            [
                {"label": "Cheese", "quantity": 2, "unit_price": 4.0},
                {"label": "Rice", "quantity": 1, "unit_price": 3.0},
            ],
        )
        assert len(ids) == 2
        assert store.get_list(list_id).total_amount == pytest.approx(11.0)


class TestLists:
    def test_create_and_get(self, store):
        list_id = store.create_list("2024-03-04T10:30:00", name="Market", notes="n")
        pl = store.get_list(list_id)
        assert pl.name == "Market"
        assert pl.date == "2024-03-04T10:30:00"
        assert pl.status == 0
        assert pl.total_amount == 0

    def test_update_and_validate(self, store):
        list_id = store.create_list("2024-03-04")
        assert store.update_list(list_id, name="Renamed")
        assert store.validate_list(list_id)
        pl = store.get_list(list_id)
        assert pl.name == "Renamed"
        assert pl.status == LIST_STATUS_VALIDATED

    def test_update_unknown_field_rejected(self, store):
        list_id = store.create_list("2024-03-04")
        with pytest.raises(ValueError):
            store.update_list(list_id, total_amount=5)

    def test_list_lists_filters(self, store):
        store.create_list("2024-03-01")
        store.create_list("2024-03-10T08:00:00", status=LIST_STATUS_VALIDATED)
        store.create_list("2024-04-01")

        march = store.list_lists(date_from="2024-03-01", date_to="2024-03-31")
        assert len(march) == 2
        validated = store.list_lists(status=LIST_STATUS_VALIDATED)
        assert [pl.date for pl in validated] == ["2024-03-10T08:00:00"]

    def test_delete_list_cascades(self, store):
        list_id = add_purchase(store, "2024-03-04", [("Rice", 1, 3.0)])
        reminder_id = store.add_reminder(
            "Shopping", "2024-03-04", "09:00", list_id=list_id
        )

        assert store.delete_list(list_id)

        assert store.get_list(list_id) is None
        assert store.get_line_items(list_id) == []
        reminder = store.get_reminder(reminder_id)
        assert reminder is not None
        assert reminder.deleted is True
        assert reminder.list_id is None
        # products are never removed with a list
        assert store.get_or_create_product("Rice")


class TestReminders:
    def test_add_and_flags(self, store):
        rid = store.add_reminder("Buy bread", "2024-03-05", "18:00", message="Bakery")
        r = store.get_reminder(rid)
        assert r.title == "Buy bread"
        assert r.type == "rappel"
        assert not r.read and not r.deleted and not r.displayed
        assert r.created_at is not None

        store.mark_reminder_read(rid)
        store.mark_reminder_displayed(rid)
        r = store.get_reminder(rid)
        assert r.read and r.displayed

    def test_soft_delete_hides_from_listing(self, store):
        keep = store.add_reminder("A", "2024-03-05", "08:00")
        gone = store.add_reminder("B", "2024-03-05", "09:00")
        store.delete_reminder(gone)

        assert [r.id for r in store.list_reminders()] == [keep]
        assert {r.id for r in store.list_reminders(include_deleted=True)} == {keep, gone}

    def test_unread_only(self, store):
        a = store.add_reminder("A", "2024-03-05", "08:00")
        b = store.add_reminder("B", "2024-03-05", "09:00")
        store.mark_reminder_read(a)
        assert [r.id for r in store.list_reminders(unread_only=True)] == [b]


class TestDeleteListAtomic:
    def test_failure_keeps_line_items(self, store):
        list_id = add_purchase(store, "2024-03-04", [("Rice", 2, 3.0)])
        store.conn.execute(
            "CREATE TRIGGER keep_lists BEFORE DELETE ON ListeAchat "
            "BEGIN SELECT RAISE(ABORT, 'lists are kept'); END"
        )
        store.conn.commit()

        with pytest.raises(sqlite3.DatabaseError):
            store.delete_list(list_id)

        assert not store.conn.in_transaction
        # a later write must not persist a half-done delete
        store.add_product("Salt")
        assert len(store.get_line_items(list_id)) == 1
        assert store.get_list(list_id).total_amount == pytest.approx(6.0)


class TestReleasedDatabase:
    """A store opened on a database written by the last released app version."""

    @pytest.fixture
    def released_store(self, released_db):
        with ShoppingStore(released_db) as s:
            s.initialize()
            yield s

    def test_delete_list_detaches_reminders(self, released_store):
        assert released_store.delete_list(1)

        assert released_store.get_list(1) is None
        assert released_store.get_line_items(1) == []
        reminder = released_store.get_reminder(5)
        assert reminder.deleted is True
        assert reminder.list_id is None

    def test_reminder_without_list(self, released_store):
        rid = released_store.add_reminder("free", "2024-03-06", "10:00")
        assert released_store.get_reminder(rid).list_id is None

    def test_line_items_keep_their_product(self, released_store):
        items = {li["id"]: li for li in released_store.get_line_items(1)}
        assert items[1]["product_id"] == 3
        assert items[1]["label"] == "Riz"
        assert items[2]["product_id"] == 2
        assert items[2]["checked"] is True
        assert released_store.get_list(1).total_amount == pytest.approx(7.0)


class TestReset:
    def test_reset_drops_data_and_reseeds(self, store):
        add_purchase(store, "2024-03-04", [("Saffron", 1, 9.0)])
        store.add_reminder("A", "2024-03-05", "08:00")

        report = store.reset()

        assert store.is_ready
        assert report.products_seeded == 10
        assert store.list_lists() == []
        assert store.list_reminders(include_deleted=True) == []
        assert "Saffron" not in {p.label for p in store.list_products()}

    def test_reset_removes_legacy_tables(self, temp_db):
        conn = sqlite3.connect(temp_db)
        conn.execute("CREATE TABLE LigneAchat (id INTEGER PRIMARY KEY, idAchat INTEGER)")
        conn.execute("CREATE TABLE Article_new (x INTEGER)")
        conn.commit()
        conn.close()

        with ShoppingStore(temp_db) as s:
            s.reset()
            stats = s.get_stats()
            assert "LigneAchat_legacy" not in stats
            assert s.check_integrity()["status"] == "ok"

    def test_file_database_uses_wal(self, store):
        mode = store.conn.execute("PRAGMA journal_mode").fetchone()[0]
        assert mode.lower() == "wal"
