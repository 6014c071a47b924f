"""
Utilidades de parsing para valores numéricos digitados pelo usuário.

Quantidades e preços chegam da linha de comando e das planilhas como texto
em formato brasileiro ou internacional ("10,5", "1.234,56", "R$ 35,00",
"12.5"). Este módulo converte esse texto para float; quem decide se a
ausência do valor é um erro é o chamador (``exigir_numero``).
"""

from __future__ import annotations

import math
import re
from decimal import Decimal
from typing import Any, Optional, Tuple

from buildstock.domain.errors import ValidationError

_NUM_RE = re.compile(r"^[-+]?(\d+([.,]\d+)*|[.,]\d+)$")


def parse_numero(txt: Any) -> Optional[float]:
    """Interpreta um número com vírgula ou ponto decimal.

    Regras:
        - ``None``/vazio → ``None``
        - com vírgula e ponto, o último separador é o decimal
          ("1.234,56" → 1234.56; "1,234.56" → 1234.56)
        - só vírgula → decimal ("10,5" → 10.5)
        - prefixo "R$" e espaços são ignorados

    Returns:
        O float, ou ``None`` se o texto for vazio ou não numérico.
    """
    if txt is None or isinstance(txt, bool):
        return None
    if isinstance(txt, (int, float, Decimal)):
        num = float(txt)
        return None if math.isnan(num) else num
    s = str(txt).strip().replace("R$", "").replace(" ", "")
    if not s or not _NUM_RE.match(s):
        return None
    if "," in s and "." in s:
        if s.rfind(",") > s.rfind("."):
            s = s.replace(".", "").replace(",", ".")
        else:
            s = s.replace(",", "")
    elif "," in s:
        if s.count(",") > 1:
            return None
        s = s.replace(",", ".")
    elif s.count(".") > 1:
        return None
    return float(s)


def exigir_numero(txt: Any, campo: str) -> float:
    """Como ``parse_numero``, mas levanta ``ValidationError`` se não houver número."""
    num = parse_numero(txt)
    if num is None:
        raise ValidationError(f"'{campo}' deve ser número (recebido: {txt!r})", field=campo)
    return num


def parse_quantidade(txt: Any) -> Tuple[Optional[float], Optional[str]]:
    """Separa número e unidade de textos como "10 kg" ou "2,5 m³ - areia".

    Exemplos:
        "10 kg"          → (10.0, "kg")
        "2,5 m³ - areia" → (2.5, "m³")
        "7"              → (7.0, None)
        "abc"            → (None, None)
    """
    if txt is None:
        return None, None
    if isinstance(txt, (int, float, Decimal)) and not isinstance(txt, bool):
        return parse_numero(txt), None
    head = str(txt).split(" - ", 1)[0].strip()
    parts = head.split()
    if not parts:
        return None, None
    num = parse_numero(parts[0])
    unidade = parts[1] if num is not None and len(parts) >= 2 else None
    return num, unidade
