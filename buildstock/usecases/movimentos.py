"""
UC: Registrar movimentos de estoque (StockLedger).

Fluxo de append():
1) Valida magnitude (número finito >= 0) e tipo ('entrada' | 'saida').
   A magnitude é arredondada para ``casas_decimais``: toda quantidade
   gravada fica na mesma grade do saldo comparado no passo 4.
2) Abre UMA transação (BEGIN IMMEDIATE: lock de escrita desde o início).
3) Resolve/cria o material pelo nome (MaterialRegistry).
4) Se for saída: lê o saldo e recusa com InsufficientStockError se
   ``saldo < magnitude``. Como o lock já está reservado, nenhuma outra
   escrita intercala entre a leitura e a inserção.
5) Insere o movimento com sinal derivado do tipo (+ entrada, - saída).
6) COMMIT. Qualquer erro nos passos 3-5 desfaz tudo (inclusive preço).

Obs.:
- Entradas nunca são limitadas por ``max_stock``; o máximo só afeta o status.
- Quantidade zero é aceita e gravada.
- Os movimentos nunca são alterados nem apagados (triggers no banco).
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from buildstock.config import DEFAULTS
from buildstock.domain.errors import InsufficientStockError, NotFoundError, ValidationError
from buildstock.domain.models import SAIDA, Movimento
from buildstock.domain.policies import quantidade_assinada, validar_numero, validar_tipo
from buildstock.infra.db import Database
from buildstock.infra.logger import log_database_operation, log_movimento
from buildstock.infra.repositories import MaterialRepo, MovimentoRepo, UsuarioRepo
from buildstock.usecases.materiais import MaterialRegistry


TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(dt: datetime) -> str:
    """Formato gravado no banco; ordena lexicograficamente."""
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.strftime(TIMESTAMP_FORMAT)


def _normalize_str(x: Any) -> Optional[str]:
    if x is None:
        return None
    s = str(x).strip()
    return s or None


class StockLedger:
    def __init__(self, db: Database, registry: Optional[MaterialRegistry] = None,
                 clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.registry = registry or MaterialRegistry(db)
        self.clock = clock

    def _saldo(self, conn: sqlite3.Connection, material_id: int) -> float:
        return round(MovimentoRepo(conn).saldo(material_id), DEFAULTS.casas_decimais)

    def current_stock(self, material_id: int, conn: Optional[sqlite3.Connection] = None) -> float:
        """Soma com sinal de todos os movimentos do material (0 se não houver).

        Com ``conn`` a leitura acontece dentro da transação do chamador.
        """
        if conn is not None:
            return self._saldo(conn, material_id)
        with self.db.leitura() as c:
            if MaterialRepo(c).get(material_id) is None:
                raise NotFoundError("Material", material_id)
            return self._saldo(c, material_id)

    def _timestamp(self, repo: MovimentoRepo) -> str:
        """Horário de gravação, nunca anterior ao último movimento gravado."""
        agora = format_timestamp(self.clock())
        ultimo = repo.last_timestamp()
        if ultimo is not None and ultimo > agora:
            return ultimo
        return agora

    def _validar(self, magnitude: Any, type: Any, user_id: Any):
        qtd = round(validar_numero(magnitude, "quantity"), DEFAULTS.casas_decimais)
        tipo = validar_tipo(type)
        if user_id is not None and (isinstance(user_id, bool) or not isinstance(user_id, int)):
            raise ValidationError("user_id deve ser inteiro", field="user_id")
        return qtd, tipo

    def append(self, material_name: str, magnitude: Any, type: str,
               unit: Optional[str] = None, price: Optional[float] = None,
               user_id: Optional[int] = None, location: Optional[str] = None,
               message: Optional[str] = None) -> int:
        """Grava um movimento e retorna o id criado.

        Raises:
            ValidationError: magnitude/tipo/usuário inválidos.
            InsufficientStockError: saída maior que o saldo disponível.
            TransactionConflictError: lock de escrita não obtido a tempo.
        """
        self._validar(magnitude, type, user_id)
        with self.db.transacao() as conn:
            row = self.append_em(conn, material_name, magnitude, type, unit=unit, price=price,
                                 user_id=user_id, location=location, message=message)
        self.log_gravado(row)
        return row["id"]

    def append_em(self, conn: sqlite3.Connection, material_name: str, magnitude: Any, type: str,
                  unit: Optional[str] = None, price: Optional[float] = None,
                  user_id: Optional[int] = None, location: Optional[str] = None,
                  message: Optional[str] = None) -> Dict[str, Any]:
        """Passos 3-5 de append() dentro da transação do chamador.

        Retorna a linha gravada (com ``id`` e ``material``); o log fica com
        o chamador, depois do COMMIT (``log_gravado``).
        """
        qtd, tipo = self._validar(magnitude, type, user_id)

        usuarios = UsuarioRepo(conn)
        if user_id is None:
            user_id = usuarios.sistema_id()
        elif not usuarios.exists(user_id):
            raise ValidationError(f"Usuário inexistente: {user_id}", field="user_id")

        material_id = self.registry.resolve_or_create(conn, material_name, unit, price)

        if tipo == SAIDA:
            disponivel = self._saldo(conn, material_id)
            if disponivel < qtd:
                raise InsufficientStockError(qtd, disponivel, str(material_name).strip())

        repo = MovimentoRepo(conn)
        row = {
            "material_id": material_id,
            "user_id": user_id,
            "quantity": quantidade_assinada(qtd, tipo),
            "type": tipo,
            "location": _normalize_str(location),
            "message": _normalize_str(message),
            "timestamp": self._timestamp(repo),
        }
        row["id"] = repo.insert(row)
        row["material"] = str(material_name).strip()
        return row

    def log_gravado(self, row: Dict[str, Any]) -> None:
        log_database_operation("stock_movements", "INSERT", 1, id=row["id"], material_id=row["material_id"])
        log_movimento(row["type"], row["material"], row["quantity"], row["id"],
                      material_id=row["material_id"], user_id=row["user_id"], location=row["location"])

    def get(self, movimento_id: int) -> Movimento:
        with self.db.leitura() as conn:
            row = MovimentoRepo(conn).get(movimento_id)
        if row is None:
            raise NotFoundError("Movimento", movimento_id)
        return Movimento.from_row(row)

    def list_movements(self, limit: Optional[int] = None,
                       material_id: Optional[int] = None) -> List[Dict[str, Any]]:
        """Movimentos mais recentes primeiro (inclui materiais desativados)."""
        if limit is None:
            limit = DEFAULTS.limite_movimentos
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise ValidationError("limit deve ser um inteiro positivo", field="limit")
        with self.db.leitura() as conn:
            return MovimentoRepo(conn).list_recent(limit, material_id)
