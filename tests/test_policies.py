from decimal import Decimal

import pytest

from buildstock.domain.errors import ValidationError
from buildstock.domain.policies import (
    arredonda_inteiro,
    chave_nome,
    quantidade_assinada,
    status_material,
    taxa_giro_percentual,
    validar_nome,
    validar_numero,
    validar_tipo,
)


def test_quantidade_assinada_deriva_sinal_do_tipo():
    assert quantidade_assinada(10, "entrada") == 10
    assert quantidade_assinada(10, "saida") == -10
    assert quantidade_assinada(0, "saida") == 0.0


@pytest.mark.parametrize(
    "estoque,minimo,maximo,esperado",
    [
        (15, 20, 100, "baixo"),
        (20, 20, 100, "baixo"),
        (150, 20, 100, "alto"),
        (100, 20, 100, "alto"),
        (50, 20, 100, "normal"),
        (500, 20, None, "normal"),
        (0, 0, 0, "baixo"),     # baixo tem precedência sobre alto
        (-1, 0, None, "baixo"),
    ],
)
def test_status_material(estoque, minimo, maximo, esperado):
    assert status_material(estoque, minimo, maximo) == esperado


@pytest.mark.parametrize(
    "saidas,entradas,esperado",
    [
        (0, 0, 0),
        (30, 0, 0),
        (25, 100, 25),
        (1, 3, 33),
        (1, 8, 13),      # 12.5 arredonda para cima
        (150, 100, 150),
    ],
)
def test_taxa_giro_percentual(saidas, entradas, esperado):
    assert taxa_giro_percentual(saidas, entradas) == esperado


def test_arredonda_inteiro_meio_para_cima():
    assert arredonda_inteiro(2.5) == 3
    assert arredonda_inteiro(2.4999) == 2


def test_validar_numero_aceita_int_float_decimal():
    assert validar_numero(3, "quantity") == 3.0
    assert validar_numero(2.5, "quantity") == 2.5
    assert validar_numero(Decimal("2.5"), "quantity") == 2.5
    assert validar_numero(None, "max_stock", permite_none=True) is None


@pytest.mark.parametrize("valor", ["10", True, float("nan"), float("inf"), -1, None, [1]])
def test_validar_numero_recusa(valor):
    with pytest.raises(ValidationError) as exc:
        validar_numero(valor, "quantity")
    assert exc.value.field == "quantity"
    assert exc.value.code == "VALIDATION_ERROR"


def test_validar_tipo():
    assert validar_tipo(" Saida ") == "saida"
    with pytest.raises(ValidationError):
        validar_tipo("transferencia")
    with pytest.raises(ValidationError):
        validar_tipo(None)


def test_nome_e_chave():
    assert validar_nome("  Cimento ") == "Cimento"
    assert chave_nome("  CIMENTO ") == chave_nome("cimento")
    assert chave_nome("ÁGUA") == chave_nome("água")
    with pytest.raises(ValidationError):
        validar_nome("   ")
