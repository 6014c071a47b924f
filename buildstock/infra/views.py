"""
Criação de views auxiliares para consultas frequentes.

Views criadas:
- vw_material_stock: saldo (soma com sinal) e último movimento por material,
  inclusive materiais sem movimento (saldo 0).

Obs.:
- A view assume que as migrações já foram aplicadas.
- As migrações criam a view e os índices uma vez (V3); ``create_views``
  os recria sob demanda (comando ``migrate``).
"""

from __future__ import annotations

import sqlite3

from .db import Database, connect


VIEWS_SQL = """
---------------------------
-- Saldo por material
---------------------------
DROP VIEW IF EXISTS vw_material_stock;
CREATE VIEW vw_material_stock AS
SELECT
    m.id,
    m.name,
    m.unit,
    m.min_stock,
    m.max_stock,
    m.price,
    m.description,
    m.active,
    COALESCE(SUM(s.quantity), 0.0) AS current_stock,
    MAX(s.timestamp)               AS last_movement
FROM materials m
LEFT JOIN stock_movements s ON s.material_id = m.id
GROUP BY m.id;
"""

INDEXES_SQL = """
CREATE INDEX IF NOT EXISTS idx_movements_material  ON stock_movements(material_id);
CREATE INDEX IF NOT EXISTS idx_movements_timestamp ON stock_movements(timestamp);
CREATE INDEX IF NOT EXISTS idx_movements_type      ON stock_movements(type, timestamp);
CREATE INDEX IF NOT EXISTS idx_materials_active    ON materials(active);
"""


def aplicar_views(conn: sqlite3.Connection) -> None:
    conn.executescript(VIEWS_SQL)
    conn.executescript(INDEXES_SQL)


def create_views(db: Database) -> None:
    with connect(db.path, db.timeout) as c:
        aplicar_views(c)
