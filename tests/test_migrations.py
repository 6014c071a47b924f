import pytest

from buildstock.domain.errors import TransactionConflictError
from buildstock.infra.db import Database
from buildstock.infra.migrations import SCHEMA_VERSION, apply_migrations
from buildstock.infra.views import create_views


def test_migracoes_criam_schema_e_view(db):
    apply_migrations(db)
    with db.leitura() as conn:
        assert conn.execute("PRAGMA user_version;").fetchone()[0] == SCHEMA_VERSION
        nomes = {r[0] for r in conn.execute("SELECT name FROM sqlite_master")}
    assert {"users", "materials", "stock_movements", "vw_material_stock"} <= nomes
    assert {"trg_movements_no_update", "trg_movements_no_delete"} <= nomes


def test_migracoes_em_dia_nao_disputam_o_lock(service, db):
    rapido = Database(db.path, timeout=0.1)
    with db.transacao():
        apply_migrations(rapido)
        service.ensure_schema()


def test_ddl_com_lock_ocupado_vira_conflito(service, db):
    rapido = Database(db.path, timeout=0.1)
    with db.transacao():
        with pytest.raises(TransactionConflictError):
            create_views(rapido)
