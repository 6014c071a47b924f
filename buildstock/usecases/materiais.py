"""
UC: Cadastro de materiais (MaterialRegistry).

- resolve_or_create(): localiza o material pelo nome (sem caixa, ativo ou
  inativo) ou cria; roda DENTRO da transação do chamador.
- create / update / update_thresholds / delete / get: operações de cadastro,
  cada uma em sua própria transação.

Obs.:
- resolve_or_create atualiza o preço do material existente quando recebe
  preço > 0 ("último preço conhecido"). Esse efeito colateral de um
  movimento pode ser desligado com ``atualizar_preco=False``
  (``DEFAULTS.atualizar_preco_em_movimento``).
- delete faz exclusão lógica (active=0) quando há movimentos e física
  quando não há; o chamador não distingue os dois casos.
"""

from __future__ import annotations

import sqlite3
from typing import Any, Dict, Optional

from buildstock.config import DEFAULTS
from buildstock.domain.errors import DuplicateNameError, NotFoundError, ValidationError
from buildstock.domain.models import Material
from buildstock.domain.policies import chave_nome, validar_nome, validar_numero
from buildstock.infra.db import Database
from buildstock.infra.logger import log_database_operation, log_material
from buildstock.infra.repositories import MaterialRepo, MovimentoRepo


def _normalize_str(x: Any) -> str:
    if x is None:
        return ""
    return str(x).strip()


def _payload(name: Any, unit: Any, min_stock: Any, max_stock: Any,
             price: Any, description: Any, unit_obrigatoria: bool = False) -> Dict[str, Any]:
    """Valida e monta a linha de ``materials``."""
    nome = validar_nome(name)
    unidade = _normalize_str(unit)
    if not unidade:
        if unit_obrigatoria:
            raise ValidationError("Unidade é obrigatória", field="unit")
        unidade = DEFAULTS.unidade_padrao
    return {
        "name": nome,
        "name_key": chave_nome(nome),
        "unit": unidade,
        "min_stock": validar_numero(0 if min_stock is None else min_stock, "min_stock"),
        "max_stock": validar_numero(max_stock, "max_stock", permite_none=True),
        "price": validar_numero(0 if price is None else price, "price"),
        "description": _normalize_str(description),
    }


class MaterialRegistry:
    def __init__(self, db: Database, atualizar_preco: Optional[bool] = None):
        self.db = db
        self.atualizar_preco = (
            DEFAULTS.atualizar_preco_em_movimento if atualizar_preco is None else atualizar_preco
        )

    # ------------------------------------------------------------------
    # dentro da transação do chamador
    # ------------------------------------------------------------------

    def resolve_or_create(self, conn: sqlite3.Connection, name: str,
                          unit: Optional[str] = None, price: Optional[float] = None) -> int:
        """Retorna o id do material ``name`` (sem caixa), criando-o se preciso.

        ``conn`` deve estar dentro de ``Database.transacao()``: a criação e a
        atualização de preço são desfeitas junto com o resto da transação.
        """
        nome = validar_nome(name, campo="material")
        preco = validar_numero(price, "price", permite_none=True)
        repo = MaterialRepo(conn)

        atual = repo.find_by_key(chave_nome(nome))
        if atual is not None:
            material_id = int(atual["id"])
            if self.atualizar_preco and preco is not None and preco > 0 and preco != atual["price"]:
                repo.update_price(material_id, preco)
                log_database_operation("materials", "UPDATE", 1, id=material_id, price=preco)
            return material_id

        row = _payload(nome, unit, 0, None, preco or 0.0, "")
        material_id = repo.insert(row)
        log_database_operation("materials", "INSERT", 1, id=material_id, name=nome)
        log_material("auto_create", material_id, name=nome, unit=row["unit"], price=row["price"])
        return material_id

    # ------------------------------------------------------------------
    # operações de cadastro
    # ------------------------------------------------------------------

    def create(self, name: str, unit: Optional[str] = None, min_stock: float = 0.0,
               max_stock: Optional[float] = None, price: float = 0.0,
               description: str = "") -> int:
        row = _payload(name, unit, min_stock, max_stock, price, description)
        try:
            with self.db.transacao() as conn:
                material_id = self._inserir(conn, row)
        except sqlite3.IntegrityError as e:
            raise DuplicateNameError(row["name"]) from e
        log_material("create", material_id, name=row["name"])
        return material_id

    def criar_em(self, conn: sqlite3.Connection, name: str, unit: Optional[str] = None,
                 min_stock: float = 0.0, max_stock: Optional[float] = None,
                 price: float = 0.0, description: str = "") -> int:
        """Como create(), mas dentro da transação do chamador."""
        row = _payload(name, unit, min_stock, max_stock, price, description)
        return self._inserir(conn, row)

    def _inserir(self, conn: sqlite3.Connection, row: Dict[str, Any]) -> int:
        repo = MaterialRepo(conn)
        if repo.name_taken(row["name_key"]):
            raise DuplicateNameError(row["name"])
        return repo.insert(row)

    def update(self, material_id: int, name: str, unit: str, min_stock: float = 0.0,
               max_stock: Optional[float] = None, price: float = 0.0,
               description: str = "") -> None:
        row = _payload(name, unit, min_stock, max_stock, price, description, unit_obrigatoria=True)
        try:
            with self.db.transacao() as conn:
                repo = MaterialRepo(conn)
                if repo.get(material_id) is None:
                    raise NotFoundError("Material", material_id)
                # a unicidade ignora o próprio registro
                if repo.name_taken(row["name_key"], exclude_id=material_id):
                    raise DuplicateNameError(row["name"])
                repo.update(material_id, row)
        except sqlite3.IntegrityError as e:
            raise DuplicateNameError(row["name"]) from e
        log_material("update", material_id, name=row["name"])

    def update_thresholds(self, material_id: int, min_stock: float,
                          max_stock: Optional[float] = None) -> None:
        """Atualiza só os limites de estoque (mínimo/máximo)."""
        minimo = validar_numero(0 if min_stock is None else min_stock, "min_stock")
        maximo = validar_numero(max_stock, "max_stock", permite_none=True)
        with self.db.transacao() as conn:
            if MaterialRepo(conn).update_limits(material_id, minimo, maximo) == 0:
                raise NotFoundError("Material", material_id)
        log_material("limits", material_id, min_stock=minimo, max_stock=maximo)

    def delete(self, material_id: int) -> None:
        with self.db.transacao() as conn:
            repo = MaterialRepo(conn)
            if repo.get(material_id) is None:
                raise NotFoundError("Material", material_id)
            if MovimentoRepo(conn).has_movements(material_id):
                repo.deactivate(material_id)
                acao = "soft_delete"
            else:
                repo.delete(material_id)
                acao = "hard_delete"
        log_material(acao, material_id)

    def get(self, material_id: int) -> Material:
        """Retorna o material (ativo ou desativado)."""
        with self.db.leitura() as conn:
            row = MaterialRepo(conn).get(material_id)
        if row is None:
            raise NotFoundError("Material", material_id)
        return Material.from_row(row)
