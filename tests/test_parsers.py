import pytest

from buildstock.adapters.parsers import exigir_numero, parse_numero, parse_quantidade
from buildstock.domain.errors import ValidationError


@pytest.mark.parametrize(
    "txt,esperado",
    [
        ("10", 10.0),
        ("10,5", 10.5),
        ("12.5", 12.5),
        ("1.234,56", 1234.56),
        ("1,234.56", 1234.56),
        ("R$ 35,00", 35.0),
        (" 7 ", 7.0),
        (",5", 0.5),
        (3, 3.0),
        ("", None),
        (None, None),
        ("abc", None),
        ("1,2,3", None),
        ("1.2.3", None),
        ("10kg", None),
        (True, None),
    ],
)
def test_parse_numero(txt, esperado):
    assert parse_numero(txt) == esperado


@pytest.mark.parametrize(
    "txt,exp_num,exp_unit",
    [
        ("10 kg", 10.0, "kg"),
        ("2,5 m³ - areia", 2.5, "m³"),
        ("7", 7.0, None),
        (12, 12.0, None),
        ("abc", None, None),
        ("", None, None),
        (None, None, None),
    ],
)
def test_parse_quantidade(txt, exp_num, exp_unit):
    num, unit = parse_quantidade(txt)
    assert num == exp_num
    assert unit == exp_unit


def test_exigir_numero():
    assert exigir_numero("0,25", "quantity") == 0.25
    with pytest.raises(ValidationError) as exc:
        exigir_numero("dez", "quantity")
    assert exc.value.field == "quantity"
