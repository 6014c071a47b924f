"""
UC: Registrar movimentos em lote a partir de uma planilha (XLSX/CSV).

Cada linha passa pelo ledger em sua própria transação: uma linha recusada
(quantidade inválida, estoque insuficiente...) é reportada em ``erros`` e
não afeta as demais. As linhas são aplicadas na ordem da planilha, então
uma saída pode consumir a entrada registrada em linha anterior.
"""

from __future__ import annotations

from typing import Any, Dict, List

from buildstock.adapters.parsers import exigir_numero, parse_numero, parse_quantidade
from buildstock.adapters.planilha_loader import load_movimentos
from buildstock.domain.errors import BuildStockError, ValidationError
from buildstock.domain.models import ENTRADA
from buildstock.infra.logger import log_system_event
from buildstock.usecases.servico import EstoqueService


def _usuario_id(raw: Any):
    if raw is None:
        return None
    num = parse_numero(raw)
    if num is None or num != int(num):
        raise ValidationError(f"Usuário inválido: {raw!r}", field="user_id")
    return int(num)


def _aplicar_linha(service: EstoqueService, rec: Dict[str, Any]) -> int:
    qtd, unidade_qtd = parse_quantidade(rec.get("quantidade_raw"))
    if qtd is None:
        raise ValidationError(
            f"'quantity' deve ser número (recebido: {rec.get('quantidade_raw')!r})", field="quantity"
        )
    preco = exigir_numero(rec["preco_raw"], "price") if rec.get("preco_raw") else None
    return service.create_movement(
        rec.get("material"),
        qtd,
        rec.get("tipo") or ENTRADA,
        unit=rec.get("unidade") or unidade_qtd,
        price=preco,
        user_id=_usuario_id(rec.get("usuario")),
        location=rec.get("local"),
        message=rec.get("mensagem"),
    )


def run_movimentos_lote(path: str, service: EstoqueService) -> Dict[str, Any]:
    """Lê a planilha e grava os movimentos. Retorna o balanço do processamento."""
    log_system_event("movimentos_lote_start", {"file_path": path})

    rows = load_movimentos(path)
    erros: List[Dict[str, Any]] = []
    ids: List[int] = []
    for rec in rows:
        try:
            ids.append(_aplicar_linha(service, rec))
        except BuildStockError as e:
            erros.append({"linha": rec["linha"], "mensagem": str(e), "codigo": e.code})

    result = {
        "tipo": "Movimentos",
        "arquivo": path,
        "total": len(rows),
        "sucessos": len(ids),
        "ids": ids,
        "erros": erros,
    }
    level = "warning" if erros else "info"
    log_system_event("movimentos_lote_done", {k: v for k, v in result.items() if k != "ids"}, level=level)
    return result
