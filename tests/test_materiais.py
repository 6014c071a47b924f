import pytest

from buildstock.domain.errors import DuplicateNameError, NotFoundError, ValidationError
from buildstock.usecases.servico import EstoqueService


def _por_nome(rows):
    return {r["material"]: r for r in rows}


def test_create_e_get(service):
    mid = service.create_material("Cimento", "saco", 20, 100, 35.0, "CP-II")
    m = service.get_material(mid)
    assert m.name == "Cimento"
    assert m.unit == "saco"
    assert m.min_stock == 20
    assert m.max_stock == 100
    assert m.price == 35.0
    assert m.active is True


def test_create_unidade_padrao(service):
    mid = service.create_material("Prego")
    assert service.get_material(mid).unit == "un"


def test_create_nome_duplicado_sem_caixa(service):
    service.create_material("Cimento", "saco")
    with pytest.raises(DuplicateNameError) as exc:
        service.create_material("  CIMENTO ", "saco")
    assert exc.value.code == "DUPLICATE_NAME"
    assert len(service.list_materials()) == 1


def test_create_validacoes(service):
    with pytest.raises(ValidationError):
        service.create_material("", "un")
    with pytest.raises(ValidationError):
        service.create_material("Areia", "m³", min_stock=-1)
    with pytest.raises(ValidationError):
        service.create_material("Areia", "m³", price="barato")
    assert service.list_materials() == []


def test_movimento_resolve_material_sem_caixa(service):
    service.create_movement("AREIA", 10, "entrada", unit="m³")
    service.create_movement("areia", 5, "entrada")

    rows = service.list_materials()
    assert len(rows) == 1
    assert rows[0]["material"] == "AREIA"
    assert rows[0]["unit"] == "m³"
    assert rows[0]["current_stock"] == 15


def test_movimento_cria_material_com_unidade_padrao(service):
    mid = service.create_movement("Tijolo", 100, "entrada")
    mov = service.ledger.get(mid)
    assert service.get_material(mov.material_id).unit == "un"


def test_movimento_atualiza_preco(service):
    service.create_movement("Areia", 10, "entrada", price=80.0)
    service.create_movement("areia", 1, "entrada", price=90.0)
    m = _por_nome(service.list_materials())["Areia"]
    assert m["price"] == 90.0

    # preço zero ou ausente não altera
    service.create_movement("Areia", 1, "entrada", price=0)
    service.create_movement("Areia", 1, "entrada")
    assert _por_nome(service.list_materials())["Areia"]["price"] == 90.0


def test_movimento_sem_atualizar_preco(db, relogio):
    svc = EstoqueService(db, atualizar_preco=False, clock=relogio)
    svc.migrate()
    svc.create_movement("Areia", 10, "entrada", price=80.0)
    svc.create_movement("Areia", 1, "entrada", price=95.0)
    assert _por_nome(svc.list_materials())["Areia"]["price"] == 80.0


def test_update_renomeia_e_ignora_o_proprio_registro(service):
    mid = service.create_material("cimento", "saco")
    service.update_material(mid, "CIMENTO", "saco", 10, 80, 36.5, "CP-II")
    m = service.get_material(mid)
    assert m.name == "CIMENTO"
    assert m.price == 36.5
    assert m.max_stock == 80


def test_update_nome_de_outro_material(service):
    service.create_material("Cimento", "saco")
    mid = service.create_material("Cal", "saco")
    with pytest.raises(DuplicateNameError):
        service.update_material(mid, "cimento", "saco")
    assert service.get_material(mid).name == "Cal"


def test_update_exige_unidade_e_id_existente(service):
    mid = service.create_material("Cimento", "saco")
    with pytest.raises(ValidationError) as exc:
        service.update_material(mid, "Cimento", "  ")
    assert exc.value.field == "unit"
    with pytest.raises(NotFoundError):
        service.update_material(9999, "Outro", "un")


def test_update_thresholds(service):
    mid = service.create_material("Ferro", "kg", 50, 500)
    service.update_thresholds(mid, 10, None)
    m = service.get_material(mid)
    assert m.min_stock == 10
    assert m.max_stock is None
    with pytest.raises(NotFoundError):
        service.update_thresholds(9999, 1, 2)
    with pytest.raises(ValidationError):
        service.update_thresholds(mid, -5, None)


def test_delete_sem_movimentos_remove(service):
    mid = service.create_material("Telha", "un")
    service.delete_material(mid)
    with pytest.raises(NotFoundError):
        service.get_material(mid)
    assert service.list_materials(include_inactive=True) == []


def test_delete_com_movimentos_desativa(service):
    service.create_movement("Cimento", 10, "entrada", unit="saco")
    mid = service.list_materials()[0]["id"]

    service.delete_material(mid)

    assert service.get_material(mid).active is False
    assert service.list_materials() == []
    inativos = service.list_materials(include_inactive=True)
    assert [r["id"] for r in inativos] == [mid]
    assert inativos[0]["active"] is False
    # histórico continua listado
    assert len(service.list_movements()) == 1


def test_movimento_em_material_desativado_nao_reativa(service):
    service.create_movement("Cimento", 10, "entrada", unit="saco")
    mid = service.list_materials()[0]["id"]
    service.delete_material(mid)

    service.create_movement("cimento", 5, "entrada")
    assert service.get_material(mid).active is False
    assert service.current_stock(mid) == 15


def test_delete_inexistente(service):
    with pytest.raises(NotFoundError) as exc:
        service.delete_material(42)
    assert exc.value.to_dict() == {
        "error": "NOT_FOUND",
        "message": "Material não encontrado: 42",
        "entity": "Material",
        "entity_id": 42,
    }
