# buildstock/adapters/planilha_loader.py
"""
Loader de planilhas (XLSX ou CSV) de movimentos de estoque.

Essa função:
- lê a planilha usando pandas (todas as colunas como texto);
- normaliza cabeçalhos (acentos, variações, sinônimos);
- retorna uma lista de dicionários com as chaves esperadas pela importação.

Observações:
- Não converte quantidade nem preço: os campos são preservados como texto
  (``quantidade_raw``/``preco_raw``) e validados linha a linha na importação.
- ``linha`` é o número da linha na planilha (cabeçalho = linha 1).
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd


# ---------------------------
# utilitários de normalização
# ---------------------------

def _slug(s: Any) -> str:
    """Normaliza cabeçalhos: minúsculas, sem acentos, sem não-alfanumérico."""
    if s is None:
        return ""
    s = str(s).strip().lower()
    acentos = dict(zip("áàâãäéèêëíìîïóòôõöúùûüç", "aaaaaeeeeiiiiooooouuuuc"))
    s = "".join(acentos.get(ch, ch) for ch in s)
    s = re.sub(r"[^a-z0-9]+", " ", s)
    return re.sub(r"\s+", " ", s).strip()


def _safe_get(row: pd.Series, key: str) -> Optional[str]:
    """Valor da coluna como texto limpo; NA/vazio/coluna ausente → None."""
    if key not in row.index:
        return None
    val = row[key]
    if val is None or pd.isna(val):
        return None
    s = str(val).strip()
    return s or None


ALIASES = {
    "material": "material",
    "produto": "material",
    "nome": "material",
    "item": "material",

    "quantidade": "quantidade_raw",
    "qtde": "quantidade_raw",
    "qtd": "quantidade_raw",
    "quantity": "quantidade_raw",

    "tipo": "tipo",
    "tipo movimento": "tipo",
    "movimento": "tipo",
    "type": "tipo",

    "unidade": "unidade",
    "un": "unidade",
    "unit": "unidade",

    "preco": "preco_raw",
    "preco unitario": "preco_raw",
    "valor": "preco_raw",
    "valor unitario": "preco_raw",
    "price": "preco_raw",

    "local": "local",
    "localizacao": "local",
    "deposito": "local",
    "location": "local",

    "mensagem": "mensagem",
    "observacao": "mensagem",
    "obs": "mensagem",
    "message": "mensagem",

    "usuario": "usuario",
    "usuario id": "usuario",
    "user id": "usuario",
}

_TIPOS = {
    "entrada": "entrada", "e": "entrada", "in": "entrada", "+": "entrada",
    "saida": "saida", "s": "saida", "out": "saida", "-": "saida",
}


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Renomeia colunas com base em sinônimos/variações."""
    new_cols = {col: ALIASES.get(_slug(col), _slug(col)) for col in df.columns}
    return df.rename(columns=new_cols)


def _normalize_tipo(val: Optional[str]) -> Optional[str]:
    """Mapeia variações ('Saída', 'S', 'out') para 'entrada'/'saida'; desconhecido fica como veio."""
    if val is None:
        return None
    return _TIPOS.get(_slug(val) or val.strip(), val)


def read_planilha(path: str) -> pd.DataFrame:
    """Lê XLSX/XLS ou CSV (separador detectado) com todas as colunas como texto."""
    suffix = Path(path).suffix.lower()
    if suffix in (".xlsx", ".xlsm", ".xls"):
        df = pd.read_excel(path, dtype="string")
    elif suffix in (".csv", ".txt"):
        df = pd.read_csv(path, dtype="string", sep=None, engine="python", encoding="utf-8-sig")
    else:
        raise ValueError(f"Formato de planilha não suportado: {suffix or path}")
    return _normalize_columns(df)


# ---------------------------
# loader público
# ---------------------------

def load_movimentos(path: str) -> List[Dict[str, Any]]:
    """Lê a planilha de MOVIMENTOS e retorna um dict por linha não vazia.

    Campos de saída:
      - linha: int
      - material: str | None
      - quantidade_raw: str | None
      - tipo: 'entrada' | 'saida' | texto original | None (None = entrada)
      - unidade, preco_raw, local, mensagem, usuario: str | None
    """
    df = read_planilha(path)
    out: List[Dict[str, Any]] = []
    for idx, row in df.iterrows():
        rec = {
            "linha": int(idx) + 2,
            "material": _safe_get(row, "material"),
            "quantidade_raw": _safe_get(row, "quantidade_raw"),
            "tipo": _normalize_tipo(_safe_get(row, "tipo")),
            "unidade": _safe_get(row, "unidade"),
            "preco_raw": _safe_get(row, "preco_raw"),
            "local": _safe_get(row, "local"),
            "mensagem": _safe_get(row, "mensagem"),
            "usuario": _safe_get(row, "usuario"),
        }
        if rec["material"] is None and rec["quantidade_raw"] is None:
            continue
        out.append(rec)
    return out
