"""
Políticas de cálculo e validação do controle de estoque.

Este módulo contém funções puras que encapsulam as regras de negócio de
sinal dos movimentos, validação de valores informados pelo usuário,
classificação de status e taxa de giro. São utilizadas pelos casos de uso
ao gravar movimentos e ao montar o resumo e o dashboard.
"""

from __future__ import annotations

from decimal import Decimal
from math import floor, isfinite
from typing import Any, Optional

from buildstock.domain.errors import ValidationError
from buildstock.domain.models import ALTO, BAIXO, ENTRADA, NORMAL, SAIDA, TIPOS_MOVIMENTO


def chave_nome(nome: str) -> str:
    """Chave de identidade do material: nome sem espaços nas pontas e sem caixa."""
    return nome.strip().casefold()


def validar_nome(nome: Any, campo: str = "name") -> str:
    """Retorna o nome limpo ou levanta ``ValidationError`` se vazio."""
    if nome is None or not str(nome).strip():
        raise ValidationError("Nome do material é obrigatório", field=campo)
    return str(nome).strip()


def validar_numero(valor: Any, campo: str, permite_none: bool = False) -> Optional[float]:
    """Converte ``valor`` para float finito e não negativo.

    Aceita int, float e Decimal. Strings e booleanos são recusados: o
    parsing de texto digitado pelo usuário é responsabilidade dos adapters.

    Raises:
        ValidationError: se o valor for ausente (e ``permite_none`` falso),
            não numérico, infinito/NaN ou negativo.
    """
    if valor is None:
        if permite_none:
            return None
        raise ValidationError(f"'{campo}' é obrigatório", field=campo)
    if isinstance(valor, bool) or not isinstance(valor, (int, float, Decimal)):
        raise ValidationError(f"'{campo}' deve ser numérico", field=campo)
    num = float(valor)
    if not isfinite(num):
        raise ValidationError(f"'{campo}' deve ser um número finito", field=campo)
    if num < 0:
        raise ValidationError(f"'{campo}' não pode ser negativo", field=campo)
    return num


def validar_tipo(tipo: Any) -> str:
    t = str(tipo or "").strip().lower()
    if t not in TIPOS_MOVIMENTO:
        raise ValidationError(
            f"Tipo de movimento inválido: {tipo!r} (use 'entrada' ou 'saida')", field="type"
        )
    return t


def quantidade_assinada(magnitude: float, tipo: str) -> float:
    """Deriva o sinal gravado a partir do tipo: ``+m`` entrada, ``-m`` saída.

    O sinal nunca é inferido da quantidade recebida; ``magnitude`` já chega
    validada como não negativa.
    """
    if tipo == ENTRADA:
        return abs(magnitude)
    if tipo == SAIDA:
        return -abs(magnitude) if magnitude else 0.0
    raise ValidationError(f"Tipo de movimento inválido: {tipo!r}", field="type")


def status_material(estoque: float, min_stock: float, max_stock: Optional[float]) -> str:
    """Classifica o status do estoque de um material.

    Regras (nesta ordem):
        - ``estoque <= min_stock`` → ``'baixo'``
        - ``max_stock`` definido e ``estoque >= max_stock`` → ``'alto'``
        - caso contrário → ``'normal'``

    ``baixo`` tem precedência: com mínimo e máximo iguais a zero e estoque
    zerado, o status é ``baixo``.
    """
    if estoque <= (min_stock or 0.0):
        return BAIXO
    if max_stock is not None and estoque >= max_stock:
        return ALTO
    return NORMAL


def arredonda_inteiro(x: float) -> int:
    """Arredonda para o inteiro mais próximo, com meios para cima (2.5 → 3)."""
    return int(floor(x + 0.5))


def taxa_giro_percentual(total_saidas: float, total_entradas: float) -> int:
    """Razão de fluxo ``saídas / entradas * 100``, arredondada.

    Retorna 0 quando não houve entradas na janela. Pode passar de 100
    quando sai mais do que entra no período.
    """
    if not total_entradas:
        return 0
    return arredonda_inteiro(abs(total_saidas) / abs(total_entradas) * 100.0)
