# storage/schema.py
"""
Database schema definitions for Smart Shopping Tracker.

On-disk identifiers keep the application's historical (French) names so that
databases written by earlier releases remain readable.

Layout history:
  v1: Achat / LigneAchat / Notification, surrogate keys named "id",
      line items carry the product as free text (libelleProduit)
  v2: tables renamed to ListeAchat / Article / Rappel
  v3: Article normalized onto Produit (idProduit FK), explicit key names
      (idListe, idArticle, idProduit, idRappel), reminder flags renamed
"""
from __future__ import annotations

# =============================================================================
# Table names
# =============================================================================

PRODUCTS = "Produit"
LISTS = "ListeAchat"
LINE_ITEMS = "Article"
REMINDERS = "Rappel"

# current name -> legacy name
LEGACY_TABLE_NAMES = {
    LISTS: "Achat",
    REMINDERS: "Notification",
    LINE_ITEMS: "LigneAchat",
}

# Rebuild tables left behind by interrupted migrations of older releases
TEMP_TABLES = [f"{t}_new" for t in (LISTS, PRODUCTS, LINE_ITEMS, REMINDERS)]

# =============================================================================
# Core Tables
# =============================================================================

CREATE_PRODUCTS = """
CREATE TABLE IF NOT EXISTS Produit (
    idProduit INTEGER PRIMARY KEY AUTOINCREMENT,
    libelle TEXT NOT NULL,
    unite TEXT DEFAULT 'pcs'
);
"""

CREATE_LISTS = """
CREATE TABLE IF NOT EXISTS ListeAchat (
    idListe INTEGER PRIMARY KEY AUTOINCREMENT,
    nomListe TEXT,
    dateAchat TEXT,
    montantTotal REAL DEFAULT 0,
    notes TEXT,
    statut INTEGER DEFAULT 0
);
"""

# Templated so the normalization step can build the "_new" twin.
LINE_ITEMS_DDL = """
CREATE TABLE IF NOT EXISTS {name} (
    idArticle INTEGER PRIMARY KEY AUTOINCREMENT,
    idListeAchat INTEGER NOT NULL,
    idProduit INTEGER NOT NULL,
    quantite REAL DEFAULT 1,
    prixUnitaire REAL DEFAULT 0,
    prixTotal REAL DEFAULT 0,
    unite TEXT DEFAULT 'pcs',
    estCoche INTEGER DEFAULT 0,
    FOREIGN KEY (idListeAchat) REFERENCES ListeAchat(idListe) ON DELETE CASCADE,
    FOREIGN KEY (idProduit) REFERENCES Produit(idProduit)
);
"""

CREATE_LINE_ITEMS = LINE_ITEMS_DDL.format(name=LINE_ITEMS)

REMINDERS_DDL = """
CREATE TABLE IF NOT EXISTS {name} (
    idRappel INTEGER PRIMARY KEY AUTOINCREMENT,
    idListeAchat INTEGER,
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
    FOREIGN KEY (idListeAchat) REFERENCES ListeAchat(idListe)
);
"""

CREATE_REMINDERS = REMINDERS_DDL.format(name=REMINDERS)

# Columns of the current line-item layout, in DDL order
LINE_ITEM_COLUMNS = [
    "idArticle",
    "idListeAchat",
    "idProduit",
    "quantite",
    "prixUnitaire",
    "prixTotal",
    "unite",
    "estCoche",
]

REMINDER_COLUMNS = [
    "idRappel",
    "idListeAchat",
    "titre",
    "message",
    "dateRappel",
    "heureRappel",
    "type",
    "estLu",
    "supprime",
    "affiche",
    "notificationId",
    "createdAt",
]

# Columns added in place when an older table lacks them: (table, column, DDL)
ADDED_COLUMNS = [
    (LISTS, "nomListe", "TEXT"),
    (LISTS, "notes", "TEXT"),
    (LISTS, "statut", "INTEGER DEFAULT 0"),
    (LISTS, "montantTotal", "REAL DEFAULT 0"),
    (PRODUCTS, "unite", "TEXT DEFAULT 'pcs'"),
]

# Legacy reminder column -> current column
REMINDER_COLUMN_RENAMES = [
    ("id", "idRappel"),
    ("achatId", "idListeAchat"),
    ("read", "estLu"),
    ("lu", "estLu"),
]

REMINDER_ADDED_COLUMNS = [
    ("type", "TEXT DEFAULT 'rappel'"),
    ("estLu", "INTEGER DEFAULT 0"),
    ("supprime", "INTEGER DEFAULT 0"),
    ("affiche", "INTEGER DEFAULT 0"),
    ("notificationId", "TEXT"),
    # ALTER TABLE ADD COLUMN rejects non-constant defaults
    ("createdAt", "TEXT"),
]

# =============================================================================
# Indexes
# =============================================================================

CREATE_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_liste_date ON ListeAchat(dateAchat);",
    "CREATE INDEX IF NOT EXISTS idx_article_liste ON Article(idListeAchat);",
    "CREATE INDEX IF NOT EXISTS idx_article_produit ON Article(idProduit);",
    "CREATE INDEX IF NOT EXISTS idx_produit_libelle ON Produit(libelle);",
    "CREATE INDEX IF NOT EXISTS idx_rappel_liste ON Rappel(idListeAchat);",
]

# =============================================================================
# Default Products
# =============================================================================

DEFAULT_PRODUCTS = [
    ("Rice", "kg"),
    ("Oil", "L"),
    ("Milk", "L"),
    ("Bread", "pcs"),
    ("Chicken", "kg"),
    ("Notebook", "pcs"),
    ("Pen", "pcs"),
    ("Soap", "pcs"),
    ("Tomato", "kg"),
    ("Onion", "kg"),
]

# =============================================================================
# All DDL statements in order (parents before children)
# =============================================================================

ALL_TABLES = [
    (PRODUCTS, CREATE_PRODUCTS),
    (LISTS, CREATE_LISTS),
    (LINE_ITEMS, CREATE_LINE_ITEMS),
    (REMINDERS, CREATE_REMINDERS),
]

EXPECTED_TABLES = [name for name, _ in ALL_TABLES]
