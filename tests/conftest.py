# tests/conftest.py
import gc
import os
import sqlite3
import tempfile

import pytest

from storage.sqlite_store import ShoppingStore


@pytest.fixture
def temp_db():
    """Create a temporary database file."""
    fd, path = tempfile.mkstemp(suffix=".sqlite")
    os.close(fd)
    yield path
    gc.collect()
    for suffix in ("", "-wal", "-shm", "-journal"):
        try:
            os.unlink(path + suffix)
        except (FileNotFoundError, PermissionError):
            pass


@pytest.fixture
def fresh_conn(temp_db):
    """Create a fresh database connection."""
    conn = sqlite3.connect(temp_db)
    conn.row_factory = sqlite3.Row
    yield conn
    conn.close()
    # Force garbage collection to release file handles on Windows
    gc.collect()


@pytest.fixture
def store(temp_db):
    """An initialized ShoppingStore (schema + default products)."""
    with ShoppingStore(temp_db) as s:
        s.initialize()
        yield s


def add_purchase(store, when, items, name=None, status=0):
    """
    Create a list dated `when` holding `items`, each (label, quantity, unit_price).
    Returns the list id.
    """
    list_id = store.create_list(when, name=name, status=status)
    for label, quantity, unit_price in items:
        product_id = store.get_or_create_product(label)
        store.add_line_item(list_id, product_id, quantity, unit_price)
    return list_id


# ---------- legacy layouts ----------

LEGACY_ACHAT = """
CREATE TABLE Achat (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    nomListe TEXT,
    dateAchat TEXT,
    montantTotal REAL DEFAULT 0
)
"""

LEGACY_LIGNE_ACHAT_DENORMALIZED = """
CREATE TABLE LigneAchat (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    idAchat INTEGER NOT NULL,
    libelleProduit TEXT,
    quantite REAL DEFAULT 1,
    prixUnitaire REAL DEFAULT 0,
    prixTotal REAL DEFAULT 0,
    unite TEXT
)
"""

LEGACY_PRODUIT = """
CREATE TABLE Produit (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    libelle TEXT NOT NULL
)
"""

LEGACY_LIGNE_ACHAT_NORMALIZED = """
CREATE TABLE LigneAchat (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    idAchat INTEGER NOT NULL,
    idProduit INTEGER NOT NULL,
    quantite REAL DEFAULT 1,
    prixUnitaire REAL DEFAULT 0
)
"""

LEGACY_NOTIFICATION = """
CREATE TABLE Notification (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    achatId INTEGER,
    titre TEXT NOT NULL,
    message TEXT,
    dateRappel TEXT NOT NULL,
    heureRappel TEXT NOT NULL,
    read INTEGER DEFAULT 0
)
"""


@pytest.fixture
def legacy_denormalized_conn(fresh_conn):
    """Achat + LigneAchat with free-text product labels Rice, Rice, Oil."""
    fresh_conn.execute(LEGACY_ACHAT)
    fresh_conn.execute(LEGACY_LIGNE_ACHAT_DENORMALIZED)
    fresh_conn.execute(
        "INSERT INTO Achat (id, nomListe, dateAchat, montantTotal) "
        "VALUES (1, 'Market', '2024-03-04T10:00:00', 0)"
    )
    fresh_conn.executemany(
        "INSERT INTO LigneAchat (idAchat, libelleProduit, quantite, prixUnitaire, prixTotal, unite) "
        "VALUES (?, ?, ?, ?, ?, ?)",
        [
            (1, "Rice", 2, 3.0, 6.0, "kg"),
            (1, "Rice", 1, 3.0, 3.0, "kg"),
            (1, "Oil", 1, 10.0, 10.0, "L"),
        ],
    )
    fresh_conn.commit()
    return fresh_conn


@pytest.fixture
def legacy_normalized_conn(fresh_conn):
    """Achat + Produit(id) + LigneAchat(idProduit) with legacy key names."""
    fresh_conn.execute(LEGACY_ACHAT)
    fresh_conn.execute(LEGACY_PRODUIT)
    fresh_conn.execute(LEGACY_LIGNE_ACHAT_NORMALIZED)
    fresh_conn.execute(
        "INSERT INTO Achat (id, nomListe, dateAchat) VALUES (7, 'Weekly', '2024-03-05')"
    )
    fresh_conn.executemany(
        "INSERT INTO Produit (id, libelle) VALUES (?, ?)", [(1, "Milk"), (2, "Bread")]
    )
    fresh_conn.executemany(
        "INSERT INTO LigneAchat (id, idAchat, idProduit, quantite, prixUnitaire) "
        "VALUES (?, ?, ?, ?, ?)",
        [(10, 7, 1, 2, 1.25), (11, 7, 2, 3, 2.0)],
    )
    fresh_conn.commit()
    return fresh_conn


# ---------- last released layout ----------
# Current table names, but Article still carries libelleProduit and
# Rappel.idListeAchat is NOT NULL.

RELEASED_SCHEMA = """
CREATE TABLE Produit (
    idProduit INTEGER PRIMARY KEY AUTOINCREMENT,
    libelle TEXT NOT NULL,
    unite TEXT DEFAULT 'pcs');
CREATE TABLE ListeAchat (
    idListe INTEGER PRIMARY KEY AUTOINCREMENT,
    nomListe TEXT,
    dateAchat TEXT,
    montantTotal REAL DEFAULT 0,
    statut INTEGER DEFAULT 0);
CREATE TABLE Article (
    idArticle INTEGER PRIMARY KEY AUTOINCREMENT,
    idListeAchat INTEGER NOT NULL,
    idProduit INTEGER NOT NULL,
    quantite REAL DEFAULT 1,
    prixUnitaire REAL DEFAULT 0,
    prixTotal REAL DEFAULT 0,
    unite TEXT DEFAULT 'pcs',
    estCoche INTEGER DEFAULT 0,
    libelleProduit TEXT,
    FOREIGN KEY (idListeAchat) REFERENCES ListeAchat(idListe) ON DELETE CASCADE,
    FOREIGN KEY (idProduit) REFERENCES Produit(idProduit));
CREATE TABLE Rappel (
    idRappel INTEGER PRIMARY KEY AUTOINCREMENT,
    idListeAchat INTEGER NOT NULL,
    titre TEXT NOT NULL,
    message TEXT,
    dateRappel TEXT NOT NULL,
    heureRappel TEXT NOT NULL,
    type TEXT DEFAULT 'rappel',
    estLu INTEGER DEFAULT 0,
    supprime INTEGER DEFAULT 0,
    affiche INTEGER DEFAULT 0,
    notificationId TEXT,
    createdAt TEXT DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (idListeAchat) REFERENCES ListeAchat(idListe));
"""

LEGACY_NOTIFICATION_REQUIRED_LIST = """
CREATE TABLE Notification (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    achatId INTEGER NOT NULL,
    titre TEXT NOT NULL,
    message TEXT,
    dateRappel TEXT NOT NULL,
    heureRappel TEXT NOT NULL,
    lu INTEGER DEFAULT 0
)
"""


@pytest.fixture
def released_db(temp_db):
    """
    A database file in the last released layout.
    Two products share the label 'Riz' (ids 1 and 3); line item 1 points at 3.
    """
    conn = sqlite3.connect(temp_db)
    conn.executescript(RELEASED_SCHEMA)
    conn.executemany(
        "INSERT INTO Produit (idProduit, libelle, unite) VALUES (?, ?, ?)",
        [(1, "Riz", "kg"), (2, "Huile", "L"), (3, "Riz", "kg")],
    )
    conn.execute(
        "INSERT INTO ListeAchat (idListe, nomListe, dateAchat, montantTotal, statut) "
        "VALUES (1, 'Courses', '2024-03-04T10:00:00', 0, 0)"
    )
    conn.executemany(
        "INSERT INTO Article (idArticle, idListeAchat, idProduit, quantite, "
        "prixUnitaire, prixTotal, unite, estCoche, libelleProduit) "
        "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
        [
            (1, 1, 3, 2, 1.5, 3.0, "kg", 0, "Riz"),
            (2, 1, 2, 1, 4.0, 4.0, "L", 1, "Huile"),
        ],
    )
    conn.execute(
        "INSERT INTO Rappel (idRappel, idListeAchat, titre, dateRappel, heureRappel, estLu) "
        "VALUES (5, 1, 'Acheter', '2024-03-05', '09:00', 1)"
    )
    conn.commit()
    conn.close()
    return temp_db
