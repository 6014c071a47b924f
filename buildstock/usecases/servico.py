"""
Fachada do controle de estoque para os chamadores (CLI, importação, testes).

Monta os três componentes sobre o mesmo handle de banco e registra cada
operação no log de transações (sucesso com resultado, falha com o código
do erro tipado). Os erros são propagados sem alteração.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Dict, Iterator, List, Optional

from buildstock.domain.errors import BuildStockError
from buildstock.domain.models import Material
from buildstock.infra.db import Database
from buildstock.infra.logger import log_system_event, log_transaction
from buildstock.infra.migrations import apply_migrations
from buildstock.infra.views import create_views
from buildstock.usecases.materiais import MaterialRegistry
from buildstock.usecases.movimentos import StockLedger, utc_now
from buildstock.usecases.relatorios import AggregationEngine


@contextmanager
def _registrado(operacao: str, dados: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
    """Registra sucesso/falha da operação; ``out["result"]`` vai para o log."""
    out: Dict[str, Any] = {}
    try:
        yield out
    except BuildStockError as e:
        log_transaction(operacao, dados, error=str(e), code=e.code)
        raise
    except Exception as e:
        log_transaction(operacao, dados, error=str(e), code=type(e).__name__)
        log_system_event(f"{operacao}_error", {"error": str(e)}, level="error")
        raise
    log_transaction(operacao, dados, result=out.get("result"))


class EstoqueService:
    def __init__(self, db: Database, atualizar_preco: Optional[bool] = None,
                 clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.materials = MaterialRegistry(db, atualizar_preco=atualizar_preco)
        self.ledger = StockLedger(db, registry=self.materials, clock=clock)
        self.reports = AggregationEngine(db, clock=clock)

    def migrate(self) -> None:
        """Aplica migrações pendentes e recria as views."""
        apply_migrations(self.db)
        create_views(self.db)

    def ensure_schema(self) -> None:
        """Só as migrações pendentes; com o banco em dia não escreve nada."""
        apply_migrations(self.db)

    # -----------------------
    # movimentos
    # -----------------------

    def create_movement(self, material: str, quantity: Any, type: str = "entrada",
                        unit: Optional[str] = None, price: Optional[float] = None,
                        user_id: Optional[int] = None, location: Optional[str] = None,
                        message: Optional[str] = None) -> int:
        dados = {"material": material, "quantity": quantity, "type": type, "user_id": user_id}
        with _registrado("create_movement", dados) as out:
            out["result"] = self.ledger.append(
                material, quantity, type, unit=unit, price=price,
                user_id=user_id, location=location, message=message,
            )
        return out["result"]

    def list_movements(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        return self.ledger.list_movements(limit)

    def current_stock(self, material_id: int) -> float:
        return self.ledger.current_stock(material_id)

    # -----------------------
    # relatórios
    # -----------------------

    def get_summary(self) -> List[Dict[str, Any]]:
        return self.reports.summary()

    def get_dashboard_stats(self) -> Dict[str, Any]:
        return self.reports.dashboard_stats()

    def get_dashboard_data(self) -> Dict[str, Any]:
        return self.reports.dashboard_data()

    # -----------------------
    # materiais
    # -----------------------

    def list_materials(self, include_inactive: bool = False) -> List[Dict[str, Any]]:
        return self.reports.materials_overview(include_inactive=include_inactive)

    def get_material(self, material_id: int) -> Material:
        return self.materials.get(material_id)

    def create_material(self, name: str, unit: Optional[str] = None, min_stock: float = 0.0,
                        max_stock: Optional[float] = None, price: float = 0.0,
                        description: str = "") -> int:
        with _registrado("create_material", {"name": name}) as out:
            out["result"] = self.materials.create(name, unit, min_stock, max_stock, price, description)
        return out["result"]

    def update_material(self, material_id: int, name: str, unit: str, min_stock: float = 0.0,
                        max_stock: Optional[float] = None, price: float = 0.0,
                        description: str = "") -> None:
        with _registrado("update_material", {"id": material_id, "name": name}):
            self.materials.update(material_id, name, unit, min_stock, max_stock, price, description)

    def update_thresholds(self, material_id: int, min_stock: float,
                          max_stock: Optional[float] = None) -> None:
        dados = {"id": material_id, "min_stock": min_stock, "max_stock": max_stock}
        with _registrado("update_thresholds", dados):
            self.materials.update_thresholds(material_id, min_stock, max_stock)

    def delete_material(self, material_id: int) -> None:
        with _registrado("delete_material", {"id": material_id}):
            self.materials.delete(material_id)
