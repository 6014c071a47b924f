import sqlite3

import pytest

from buildstock.domain.errors import InsufficientStockError
from buildstock.infra.repositories import UsuarioRepo
from buildstock.usecases import seed as seed_mod
from buildstock.usecases.seed import MATERIAIS_DEMO, MOVIMENTOS_DEMO, reset, seed_demo


def _por_nome(rows):
    return {r["material"]: r for r in rows}


def test_seed_popula_dados_de_exemplo(service, db):
    res = seed_demo(service)
    assert res == {"status": "ok", "users": 3, "materials": 10, "movements": 15}

    resumo = _por_nome(service.get_summary())
    assert len(resumo) == len(MATERIAIS_DEMO)
    assert resumo["Cimento"]["current_stock"] == 40
    assert resumo["Tijolo"]["current_stock"] == 4000
    assert resumo["Telha"]["current_stock"] == 1500
    assert resumo["Cimento"]["unit"] == "saco"

    movs = service.list_movements()
    assert len(movs) == len(MOVIMENTOS_DEMO)
    assert {m["user_name"] for m in movs} == {"João Silva"}

    with db.leitura() as conn:
        assert UsuarioRepo(conn).count() == 4   # + Sistema


def test_seed_nao_roda_com_materiais_existentes(service):
    service.create_material("Cimento", "saco")
    res = seed_demo(service)
    assert res == {"status": "skipped", "materials": 1}
    assert service.list_movements() == []


def test_reset_limpa_tudo_menos_sistema(service, db):
    seed_demo(service)
    res = reset(service)
    assert res == {"movements": 15, "materials": 10, "users": 3}

    assert service.list_materials(include_inactive=True) == []
    assert service.list_movements() == []
    with db.leitura() as conn:
        repo = UsuarioRepo(conn)
        assert repo.count() == 1
        assert repo.sistema_id() is not None


def test_reset_mantem_ledger_append_only_e_reinicia_ids(service):
    seed_demo(service)
    reset(service)

    mov_id = service.create_movement("Areia", 1, "entrada")
    assert mov_id == 1
    assert service.list_materials()[0]["id"] == 1

    with pytest.raises(sqlite3.DatabaseError):
        with service.db.leitura() as conn:
            conn.execute("DELETE FROM stock_movements")


def test_seed_com_falha_no_meio_nao_deixa_dados_parciais(service, db, monkeypatch):
    quebrado = MOVIMENTOS_DEMO + [("Cimento", 10_000, "saida", "Obra", "excede o saldo")]
    monkeypatch.setattr(seed_mod, "MOVIMENTOS_DEMO", quebrado)
    with pytest.raises(InsufficientStockError):
        seed_demo(service)

    assert service.list_materials(include_inactive=True) == []
    assert service.list_movements() == []
    with db.leitura() as conn:
        assert UsuarioRepo(conn).count() == 1

    monkeypatch.undo()
    assert seed_demo(service)["status"] == "ok"
