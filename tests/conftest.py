from datetime import datetime, timedelta, timezone

import pytest

from buildstock.infra.db import Database
from buildstock.usecases.servico import EstoqueService


class Relogio:
    """Relógio controlável para os testes (UTC)."""

    def __init__(self, agora=None):
        self.agora = agora or datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.agora

    def avanca(self, **kwargs):
        self.agora = self.agora + timedelta(**kwargs)


@pytest.fixture
def db(tmp_path):
    return Database(str(tmp_path / "estoque_test.sqlite"))


@pytest.fixture
def relogio():
    return Relogio()


@pytest.fixture
def service(db, relogio):
    svc = EstoqueService(db, atualizar_preco=True, clock=relogio)
    svc.migrate()
    return svc
