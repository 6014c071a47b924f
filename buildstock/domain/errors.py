# buildstock/domain/errors.py
"""
Hierarquia de erros tipados do controle de estoque.

Toda exceção tem um ``code`` (identificador estável, legível por máquina)
e carrega os dados estruturados do erro como atributos, para que o chamador
decida pelo tipo e não pelo texto da mensagem:

    BuildStockError
    +-- ValidationError           VALIDATION_ERROR      entrada malformada
    +-- InsufficientStockError    INSUFFICIENT_STOCK    saída maior que o saldo
    +-- DuplicateNameError        DUPLICATE_NAME        nome já cadastrado
    +-- NotFoundError             NOT_FOUND             id inexistente
    +-- TransactionConflictError  TRANSACTION_CONFLICT  lock/serialização; pode repetir

Nenhum desses erros deixa o ledger alterado: a transação é desfeita antes
da exceção chegar ao chamador.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class BuildStockError(Exception):
    """Base de todos os erros do domínio."""

    code: str = "BUILDSTOCK_ERROR"
    retryable: bool = False

    def data(self) -> Dict[str, Any]:
        return {}

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": str(self), **self.data()}


class ValidationError(BuildStockError):
    """Entrada malformada (quantidade não numérica, campo obrigatório ausente...)."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)

    def data(self) -> Dict[str, Any]:
        return {"field": self.field}


class InsufficientStockError(BuildStockError):
    """Saída recusada: a quantidade pedida excede o saldo disponível."""

    code = "INSUFFICIENT_STOCK"

    def __init__(self, requested: float, available: float, material: Optional[str] = None):
        self.requested = requested
        self.available = available
        self.material = material
        alvo = f" de '{material}'" if material else ""
        super().__init__(
            f"Estoque insuficiente{alvo}: solicitado {requested:g}, disponível {available:g}"
        )

    def data(self) -> Dict[str, Any]:
        return {"requested": self.requested, "available": self.available, "material": self.material}


class DuplicateNameError(BuildStockError):
    """Já existe material com o mesmo nome (comparação sem caixa)."""

    code = "DUPLICATE_NAME"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Já existe um material com o nome '{name}'")

    def data(self) -> Dict[str, Any]:
        return {"name": self.name}


class NotFoundError(BuildStockError):
    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} não encontrado: {entity_id}")

    def data(self) -> Dict[str, Any]:
        return {"entity": self.entity, "entity_id": self.entity_id}


class TransactionConflictError(BuildStockError):
    """Conflito de escrita concorrente detectado pelo banco (lock ocupado)."""

    code = "TRANSACTION_CONFLICT"
    retryable = True

    def __init__(self, message: str = "Conflito de transação; tente novamente"):
        super().__init__(message)
