# buildstock/infra/db.py
"""
Utilidades de conexão SQLite e o handle de persistência injetado nos
componentes (``Database``).

Leituras usam ``connect``; escritas usam ``Database.transacao()``, que abre
a transação com ``BEGIN IMMEDIATE``. Esse modo reserva o lock de escrita do
SQLite já no início da transação, de modo que ler o saldo, validar e inserir
o movimento acontece sem que outro escritor intercale.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from typing import Iterator, Optional

from buildstock.config import DB_PATH, DEFAULTS
from buildstock.domain.errors import TransactionConflictError


def _eh_conflito(exc: sqlite3.OperationalError) -> bool:
    msg = str(exc).lower()
    return "locked" in msg or "busy" in msg


@contextmanager
def connect(db_path: str, timeout: Optional[float] = None) -> Iterator[sqlite3.Connection]:
    """
    Context manager para abrir conexão SQLite com:
    - foreign_keys ON
    - row_factory = sqlite3.Row
    - commit ao sair (rollback em caso de exceção)
    - lock ocupado além do timeout vira ``TransactionConflictError``
    """
    conn = sqlite3.connect(db_path, timeout=timeout if timeout is not None else DEFAULTS.timeout_lock_s)
    try:
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON;")
        yield conn
        conn.commit()
    except sqlite3.OperationalError as e:
        conn.rollback()
        if _eh_conflito(e):
            raise TransactionConflictError() from e
        raise
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


class Database:
    """Handle do banco: caminho + timeout de lock. Não guarda conexão aberta."""

    def __init__(self, path: str = DB_PATH, timeout: Optional[float] = None):
        self.path = str(path)
        self.timeout = DEFAULTS.timeout_lock_s if timeout is None else timeout

    def __repr__(self) -> str:
        return f"Database({self.path!r})"

    @contextmanager
    def leitura(self) -> Iterator[sqlite3.Connection]:
        with connect(self.path, self.timeout) as conn:
            yield conn

    @contextmanager
    def transacao(self) -> Iterator[sqlite3.Connection]:
        """
        Transação de escrita atômica.

        - BEGIN IMMEDIATE (lock de escrita reservado até o COMMIT)
        - COMMIT ao sair normalmente
        - ROLLBACK em qualquer exceção, inclusive cancelamento (KeyboardInterrupt)
        - lock ocupado além do timeout vira ``TransactionConflictError``
        """
        conn = sqlite3.connect(self.path, timeout=self.timeout, isolation_level=None)
        try:
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON;")
            try:
                conn.execute("BEGIN IMMEDIATE;")
            except sqlite3.OperationalError as e:
                if _eh_conflito(e):
                    raise TransactionConflictError() from e
                raise
            try:
                yield conn
                conn.execute("COMMIT;")
            except BaseException as e:
                if conn.in_transaction:
                    conn.execute("ROLLBACK;")
                if isinstance(e, sqlite3.OperationalError) and _eh_conflito(e):
                    raise TransactionConflictError() from e
                raise
        finally:
            conn.close()
