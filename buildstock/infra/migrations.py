# buildstock/infra/migrations.py
"""
Migrações de schema usando PRAGMA user_version.

V1: tabelas base (users, materials, stock_movements) + usuário "Sistema"
V2: triggers que tornam stock_movements append-only (sem UPDATE/DELETE)
V3: view vw_material_stock + índices das agregações

Com o banco já na última versão, apply_migrations só lê ``user_version``:
não escreve nada e, portanto, não disputa o lock de escrita.
"""

from __future__ import annotations

from typing import List

from .db import Database, connect
from .logger import log_system_event
from .views import aplicar_views


SISTEMA_EMAIL = "sistema@buildstock.com"

SCHEMA_VERSION = 3


SCHEMA_V1: List[str] = [
    # Usuários (autoria dos movimentos)
    """
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        email TEXT NOT NULL UNIQUE,
        role TEXT NOT NULL DEFAULT 'operador',
        created_at TEXT DEFAULT (datetime('now'))
    );
    """,
    # Cadastro de materiais; name_key = nome sem caixa (unicidade)
    """
    CREATE TABLE IF NOT EXISTS materials (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        name_key TEXT NOT NULL UNIQUE,
        unit TEXT NOT NULL DEFAULT 'un',
        min_stock REAL NOT NULL DEFAULT 0 CHECK (min_stock >= 0),
        max_stock REAL CHECK (max_stock IS NULL OR max_stock >= 0),
        price REAL NOT NULL DEFAULT 0 CHECK (price >= 0),
        description TEXT NOT NULL DEFAULT '',
        active INTEGER NOT NULL DEFAULT 1,
        created_at TEXT DEFAULT (datetime('now')),
        updated_at TEXT DEFAULT (datetime('now'))
    );
    """,
    # Ledger de movimentos (quantidade com sinal)
    """
    CREATE TABLE IF NOT EXISTS stock_movements (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        material_id INTEGER NOT NULL,
        user_id INTEGER,
        quantity REAL NOT NULL,
        type TEXT NOT NULL CHECK (type IN ('entrada', 'saida')),
        location TEXT,
        message TEXT,
        timestamp TEXT NOT NULL,
        FOREIGN KEY (material_id) REFERENCES materials(id) ON DELETE RESTRICT,
        FOREIGN KEY (user_id) REFERENCES users(id)
    );
    """,
]

TRIGGERS_V2: List[str] = [
    """
    CREATE TRIGGER IF NOT EXISTS trg_movements_no_update
    BEFORE UPDATE ON stock_movements
    BEGIN
        SELECT RAISE(ABORT, 'stock_movements is append-only');
    END;
    """,
    """
    CREATE TRIGGER IF NOT EXISTS trg_movements_no_delete
    BEFORE DELETE ON stock_movements
    BEGIN
        SELECT RAISE(ABORT, 'stock_movements is append-only');
    END;
    """,
]

TRIGGER_NAMES = ("trg_movements_no_update", "trg_movements_no_delete")


def _apply_v1(conn) -> None:
    for sql in SCHEMA_V1:
        conn.executescript(sql)
    conn.execute(
        "INSERT OR IGNORE INTO users (name, email, role) VALUES (?, ?, ?)",
        ("Sistema", SISTEMA_EMAIL, "admin"),
    )


def _apply_v2(conn) -> None:
    for sql in TRIGGERS_V2:
        conn.execute(sql)


def apply_migrations(db: Database) -> None:
    """Aplica migrações incrementais de acordo com PRAGMA user_version."""
    with connect(db.path, db.timeout) as conn:
        ver = conn.execute("PRAGMA user_version;").fetchone()[0] or 0
        if ver >= SCHEMA_VERSION:
            return

        # WAL: leitores não bloqueiam o escritor
        conn.execute("PRAGMA journal_mode = WAL;")

        if ver < 1:
            _apply_v1(conn)
            conn.execute("PRAGMA user_version = 1;")
            ver = 1

        if ver < 2:
            _apply_v2(conn)
            conn.execute("PRAGMA user_version = 2;")
            ver = 2

        if ver < 3:
            aplicar_views(conn)
            conn.execute("PRAGMA user_version = 3;")
            ver = 3

    log_system_event("migrations_applied", {"db_path": db.path, "version": ver})
