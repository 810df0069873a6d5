# storage/__init__.py
"""
Storage layer for Smart Shopping Tracker.

Provides SQLite-based persistence for products, purchase lists,
line items and reminders, plus the schema migration engine.
"""

from .sqlite_store import (
    ShoppingStore,
    StoreNotReadyError,
    open_conn,
)

from .migrations import (
    initialize,
    reset_database,
    check_integrity,
    get_table_stats,
    table_exists,
    column_exists,
    column_not_null,
    get_table_columns,
    detect_line_item_shape,
    seed_default_products,
)

from .schema import (
    DEFAULT_PRODUCTS,
    EXPECTED_TABLES,
    LEGACY_TABLE_NAMES,
)

__all__ = [
    # Main class
    "ShoppingStore",
    "StoreNotReadyError",
    "open_conn",
    # Schema info
    "DEFAULT_PRODUCTS",
    "EXPECTED_TABLES",
    "LEGACY_TABLE_NAMES",
    # Migration functions
    "initialize",
    "reset_database",
    "check_integrity",
    "get_table_stats",
    "table_exists",
    "column_exists",
    "column_not_null",
    "get_table_columns",
    "detect_line_item_shape",
    "seed_default_products",
]
