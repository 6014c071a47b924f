# buildstock/infra/repositories.py
"""
Repositórios (DAO) para acesso e manipulação de dados no SQLite.

Os repositórios recebem uma conexão já aberta: quem controla a fronteira
da transação é o caso de uso (``Database.transacao()``), de modo que
resolver o material, ler o saldo e inserir o movimento fiquem na mesma
transação.

Classes:
- UsuarioRepo
- MaterialRepo
- MovimentoRepo
"""

from __future__ import annotations

import sqlite3
from typing import Any, Dict, List, Optional, Tuple

from .migrations import SISTEMA_EMAIL, TRIGGER_NAMES, TRIGGERS_V2


# -------------------------
# Helpers
# -------------------------

def _rows(cur: sqlite3.Cursor) -> List[Dict[str, Any]]:
    cols = [d[0] for d in cur.description]
    return [dict(zip(cols, row)) for row in cur.fetchall()]


def _row(cur: sqlite3.Cursor) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    if row is None:
        return None
    cols = [d[0] for d in cur.description]
    return dict(zip(cols, row))


# -------------------------
# Usuários
# -------------------------

class UsuarioRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def sistema_id(self) -> int:
        row = self.conn.execute("SELECT id FROM users WHERE email = ?", (SISTEMA_EMAIL,)).fetchone()
        if row is None:
            raise RuntimeError("Usuário Sistema ausente; aplique as migrações")
        return int(row[0])

    def exists(self, user_id: int) -> bool:
        row = self.conn.execute("SELECT 1 FROM users WHERE id = ?", (user_id,)).fetchone()
        return row is not None

    def upsert(self, name: str, email: str, role: str) -> int:
        self.conn.execute(
            """
            INSERT INTO users (name, email, role) VALUES (?, ?, ?)
            ON CONFLICT(email) DO UPDATE SET name=excluded.name, role=excluded.role
            """,
            (name, email, role),
        )
        return int(self.conn.execute("SELECT id FROM users WHERE email = ?", (email,)).fetchone()[0])

    def count(self) -> int:
        return int(self.conn.execute("SELECT COUNT(*) FROM users").fetchone()[0])

    def delete_all_except_sistema(self) -> int:
        cur = self.conn.execute("DELETE FROM users WHERE email != ?", (SISTEMA_EMAIL,))
        return cur.rowcount


# -------------------------
# Materiais
# -------------------------

_MATERIAL_COLS = "id, name, name_key, unit, min_stock, max_stock, price, description, active"


class MaterialRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def get(self, material_id: int) -> Optional[Dict[str, Any]]:
        return _row(self.conn.execute(
            f"SELECT {_MATERIAL_COLS} FROM materials WHERE id = ?", (material_id,)
        ))

    def find_by_key(self, name_key: str) -> Optional[Dict[str, Any]]:
        """Busca ativo ou inativo pela chave sem caixa."""
        return _row(self.conn.execute(
            f"SELECT {_MATERIAL_COLS} FROM materials WHERE name_key = ?", (name_key,)
        ))

    def name_taken(self, name_key: str, exclude_id: Optional[int] = None) -> bool:
        if exclude_id is None:
            row = self.conn.execute("SELECT 1 FROM materials WHERE name_key = ?", (name_key,)).fetchone()
        else:
            row = self.conn.execute(
                "SELECT 1 FROM materials WHERE name_key = ? AND id != ?", (name_key, exclude_id)
            ).fetchone()
        return row is not None

    def insert(self, row: Dict[str, Any]) -> int:
        cur = self.conn.execute(
            """
            INSERT INTO materials
                (name, name_key, unit, min_stock, max_stock, price, description, active)
            VALUES
                (:name, :name_key, :unit, :min_stock, :max_stock, :price, :description, 1)
            """,
            row,
        )
        return int(cur.lastrowid)

    def update(self, material_id: int, row: Dict[str, Any]) -> int:
        cur = self.conn.execute(
            """
            UPDATE materials SET
                name=:name, name_key=:name_key, unit=:unit,
                min_stock=:min_stock, max_stock=:max_stock,
                price=:price, description=:description,
                updated_at=datetime('now')
            WHERE id=:id
            """,
            {**row, "id": material_id},
        )
        return cur.rowcount

    def update_price(self, material_id: int, price: float) -> int:
        cur = self.conn.execute(
            "UPDATE materials SET price = ?, updated_at = datetime('now') WHERE id = ?",
            (price, material_id),
        )
        return cur.rowcount

    def update_limits(self, material_id: int, min_stock: float, max_stock: Optional[float]) -> int:
        cur = self.conn.execute(
            """
            UPDATE materials SET min_stock = ?, max_stock = ?, updated_at = datetime('now')
            WHERE id = ?
            """,
            (min_stock, max_stock, material_id),
        )
        return cur.rowcount

    def deactivate(self, material_id: int) -> int:
        cur = self.conn.execute(
            "UPDATE materials SET active = 0, updated_at = datetime('now') WHERE id = ?",
            (material_id,),
        )
        return cur.rowcount

    def delete(self, material_id: int) -> int:
        cur = self.conn.execute("DELETE FROM materials WHERE id = ?", (material_id,))
        return cur.rowcount

    def delete_all(self) -> int:
        return self.conn.execute("DELETE FROM materials").rowcount

    def count(self) -> int:
        return int(self.conn.execute("SELECT COUNT(*) FROM materials").fetchone()[0])

    def list_with_stock(self, include_inactive: bool = False) -> List[Dict[str, Any]]:
        """Materiais com saldo e último movimento (view ``vw_material_stock``)."""
        sql = """
            SELECT id, name, unit, min_stock, max_stock, price, description, active,
                   current_stock, last_movement
            FROM vw_material_stock
        """
        if not include_inactive:
            sql += " WHERE active = 1"
        sql += " ORDER BY name COLLATE NOCASE, id"
        return _rows(self.conn.execute(sql))


# -------------------------
# Movimentos (ledger)
# -------------------------

class MovimentoRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def saldo(self, material_id: int) -> float:
        row = self.conn.execute(
            "SELECT COALESCE(SUM(quantity), 0.0) FROM stock_movements WHERE material_id = ?",
            (material_id,),
        ).fetchone()
        return float(row[0])

    def has_movements(self, material_id: int) -> bool:
        row = self.conn.execute(
            "SELECT 1 FROM stock_movements WHERE material_id = ? LIMIT 1", (material_id,)
        ).fetchone()
        return row is not None

    def last_timestamp(self) -> Optional[str]:
        return self.conn.execute("SELECT MAX(timestamp) FROM stock_movements").fetchone()[0]

    def insert(self, row: Dict[str, Any]) -> int:
        cur = self.conn.execute(
            """
            INSERT INTO stock_movements
                (material_id, user_id, quantity, type, location, message, timestamp)
            VALUES
                (:material_id, :user_id, :quantity, :type, :location, :message, :timestamp)
            """,
            row,
        )
        return int(cur.lastrowid)

    def get(self, movimento_id: int) -> Optional[Dict[str, Any]]:
        return _row(self.conn.execute(
            """SELECT id, material_id, user_id, quantity, type, location, message, timestamp
               FROM stock_movements WHERE id = ?""",
            (movimento_id,),
        ))

    def list_recent(self, limit: int, material_id: Optional[int] = None) -> List[Dict[str, Any]]:
        """Movimentos mais recentes primeiro, com nome/unidade do material e autor."""
        params: Tuple[Any, ...] = (limit,)
        where = ""
        if material_id is not None:
            where = "WHERE s.material_id = ?"
            params = (material_id, limit)
        return _rows(self.conn.execute(
            f"""
            SELECT s.id, s.material_id, m.name AS material, m.unit, s.quantity, s.type,
                   s.user_id, u.name AS user_name, s.location, s.message, s.timestamp
            FROM stock_movements s
            JOIN materials m ON m.id = s.material_id
            LEFT JOIN users u ON u.id = s.user_id
            {where}
            ORDER BY s.timestamp DESC, s.id DESC
            LIMIT ?
            """,
            params,
        ))

    def count_by_type(self) -> Dict[str, int]:
        out = {"entrada": 0, "saida": 0}
        for tipo, n in self.conn.execute("SELECT type, COUNT(*) FROM stock_movements GROUP BY type"):
            out[tipo] = int(n)
        return out

    def flow_since(self, since: str) -> Tuple[float, float]:
        """Somas das magnitudes (entradas, saídas) com timestamp >= ``since``."""
        row = self.conn.execute(
            """
            SELECT
                COALESCE(SUM(CASE WHEN type = 'entrada' THEN ABS(quantity) END), 0.0),
                COALESCE(SUM(CASE WHEN type = 'saida'   THEN ABS(quantity) END), 0.0)
            FROM stock_movements
            WHERE timestamp >= ?
            """,
            (since,),
        ).fetchone()
        return float(row[0]), float(row[1])

    def purge_all(self) -> int:
        """Apaga todo o ledger (reset). Derruba e recria os triggers append-only
        dentro da transação corrente."""
        for nome in TRIGGER_NAMES:
            self.conn.execute(f"DROP TRIGGER IF EXISTS {nome}")
        removidos = self.conn.execute("DELETE FROM stock_movements").rowcount
        for sql in TRIGGERS_V2:
            self.conn.execute(sql)
        return removidos
