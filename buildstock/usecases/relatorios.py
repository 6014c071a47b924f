"""
Relatórios de estoque (AggregationEngine):
- status de um material (baixo / normal / alto)
- resumo por material ativo (saldo, limites, último movimento, status)
- estatísticas do dashboard (contagens, valor total, taxa de giro em 30 dias)
- dados do gráfico do dashboard (labels/values + últimos movimentos)

Tudo é calculado sob demanda a partir do ledger; nada é gravado.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Union

from buildstock.config import DEFAULTS
from buildstock.domain.models import Material
from buildstock.domain.policies import status_material, taxa_giro_percentual
from buildstock.infra.db import Database
from buildstock.infra.logger import log_database_operation
from buildstock.infra.repositories import MaterialRepo, MovimentoRepo
from buildstock.usecases.movimentos import format_timestamp, utc_now


def _linha_resumo(r: Dict[str, Any]) -> Dict[str, Any]:
    estoque = round(float(r["current_stock"] or 0.0), DEFAULTS.casas_decimais)
    min_stock = float(r["min_stock"] or 0.0)
    max_stock = None if r["max_stock"] is None else float(r["max_stock"])
    return {
        "id": r["id"],
        "material": r["name"],
        "current_stock": estoque,
        "unit": r["unit"],
        "min_stock": min_stock,
        "max_stock": max_stock,
        "price": float(r["price"] or 0.0),
        "description": r["description"] or "",
        "last_movement": r["last_movement"],
        "status": status_material(estoque, min_stock, max_stock),
        "active": bool(r["active"]),
    }


class AggregationEngine:
    def __init__(self, db: Database, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.clock = clock

    def status(self, material: Union[Material, Dict[str, Any]],
               current_stock: Optional[float] = None) -> str:
        """Status do material; sem ``current_stock`` o saldo é lido do ledger."""
        if isinstance(material, dict):
            material = Material.from_row(material)
        if current_stock is None:
            with self.db.leitura() as conn:
                current_stock = round(MovimentoRepo(conn).saldo(material.id), DEFAULTS.casas_decimais)
        return status_material(current_stock, material.min_stock, material.max_stock)

    def materials_overview(self, include_inactive: bool = False) -> List[Dict[str, Any]]:
        with self.db.leitura() as conn:
            rows = MaterialRepo(conn).list_with_stock(include_inactive=include_inactive)
        log_database_operation("vw_material_stock", "SELECT", len(rows))
        return [_linha_resumo(r) for r in rows]

    def summary(self) -> List[Dict[str, Any]]:
        """Uma linha por material ativo, inclusive sem movimentos (saldo 0)."""
        return self.materials_overview(include_inactive=False)

    def dashboard_stats(self) -> Dict[str, Any]:
        linhas = self.summary()
        desde = format_timestamp(self.clock() - timedelta(days=DEFAULTS.janela_giro_dias))

        with self.db.leitura() as conn:
            movs = MovimentoRepo(conn)
            por_tipo = movs.count_by_type()
            entradas_janela, saidas_janela = movs.flow_since(desde)

        total_value = sum(r["current_stock"] * r["price"] for r in linhas)
        stats = {
            "total_materials": len(linhas),
            "total_movements": por_tipo["entrada"] + por_tipo["saida"],
            "total_entradas": por_tipo["entrada"],
            "total_saidas": por_tipo["saida"],
            # zerados não contam como baixo
            "low_stock_count": sum(1 for r in linhas if 0 < r["current_stock"] <= r["min_stock"]),
            "zeroed_count": sum(1 for r in linhas if r["current_stock"] <= 0),
            "total_value": round(total_value, 2),
            "turnover_rate_percent": taxa_giro_percentual(saidas_janela, entradas_janela),
        }
        return stats

    def dashboard_data(self, latest: Optional[int] = None) -> Dict[str, Any]:
        """Dados do gráfico: nomes e saldos dos materiais ativos + últimos movimentos."""
        if latest is None:
            latest = DEFAULTS.ultimos_movimentos_dashboard
        linhas = self.summary()
        with self.db.leitura() as conn:
            ultimos = MovimentoRepo(conn).list_recent(latest)
        return {
            "labels": [r["material"] for r in linhas],
            "values": [r["current_stock"] for r in linhas],
            "latest": ultimos,
        }
