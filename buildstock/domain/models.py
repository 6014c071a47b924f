# buildstock/domain/models.py
"""
Modelos (dataclasses) do domínio.

Observação importante:
- Os repositórios devolvem dicionários; as dataclasses servem para
  tipagem/clareza nas fronteiras do serviço (``from_row``).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Optional


# Tipos de movimento
ENTRADA = "entrada"
SAIDA = "saida"
TIPOS_MOVIMENTO = (ENTRADA, SAIDA)

# Status de estoque
BAIXO = "baixo"
NORMAL = "normal"
ALTO = "alto"


@dataclass
class Material:
    """Cadastro de material."""
    id: int
    name: str
    unit: str = "un"
    min_stock: float = 0.0
    max_stock: Optional[float] = None   # None = sem teto
    price: float = 0.0
    description: str = ""
    active: bool = True

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Material":
        return cls(
            id=int(row["id"]),
            name=row["name"],
            unit=row["unit"],
            min_stock=float(row["min_stock"] or 0.0),
            max_stock=None if row["max_stock"] is None else float(row["max_stock"]),
            price=float(row["price"] or 0.0),
            description=row["description"] or "",
            active=bool(row["active"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Movimento:
    """Movimentação de estoque (entrada/saída). Imutável depois de gravada."""
    id: int
    material_id: int
    quantity: float                     # com sinal: + entrada, - saída
    type: str
    user_id: Optional[int] = None
    location: Optional[str] = None
    message: Optional[str] = None
    timestamp: Optional[str] = None

    @property
    def magnitude(self) -> float:
        return abs(self.quantity)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Movimento":
        return cls(
            id=int(row["id"]),
            material_id=int(row["material_id"]),
            quantity=float(row["quantity"]),
            type=row["type"],
            user_id=row["user_id"],
            location=row["location"],
            message=row["message"],
            timestamp=row["timestamp"],
        )
