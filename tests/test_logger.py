import logging

import pytest

from buildstock.domain.errors import InsufficientStockError
from buildstock.infra import logger as log_mod


@pytest.fixture
def logging_ligado(monkeypatch):
    monkeypatch.setattr(log_mod, "ENABLE_LOGGING", True)


def test_movimento_e_transacao_logados(logging_ligado, service, caplog):
    caplog.set_level(logging.INFO)
    service.create_movement("Cimento", 10, "entrada", unit="saco")

    nomes = {r.name for r in caplog.records}
    assert "buildstock.movimentos" in nomes
    assert "buildstock.transactions" in nomes
    assert "MOVIMENTO_ENTRADA" in caplog.text
    assert "TRANSACTION_SUCCESS: create_movement" in caplog.text
    assert "MATERIAL_AUTO_CREATE" in caplog.text


def test_falha_logada_com_codigo(logging_ligado, service, caplog):
    caplog.set_level(logging.INFO)
    with pytest.raises(InsufficientStockError):
        service.create_movement("Cimento", 10, "saida")

    falhas = [r for r in caplog.records if r.name == "buildstock.transactions"]
    assert len(falhas) == 1
    assert falhas[0].levelno == logging.ERROR
    assert "[INSUFFICIENT_STOCK]" in falhas[0].getMessage()


def test_logging_desligado_nao_emite(monkeypatch, service, caplog):
    monkeypatch.setattr(log_mod, "ENABLE_LOGGING", False)
    monkeypatch.setattr(log_mod, "ENABLE_OUTPUT", False)
    caplog.set_level(logging.DEBUG)
    service.create_movement("Cimento", 10, "entrada")
    assert not [r for r in caplog.records if r.name.startswith("buildstock.")]


def test_setup_logger_grava_arquivo(logging_ligado, tmp_path):
    arquivo = tmp_path / "logs" / "teste.log"
    lg = log_mod.setup_logger("buildstock.teste", str(arquivo))
    try:
        lg.info("olá")
        for h in lg.handlers:
            h.flush()
        assert "olá" in arquivo.read_text(encoding="utf-8")
        # reconfigurar não duplica handlers
        lg = log_mod.setup_logger("buildstock.teste", str(arquivo))
        assert len(lg.handlers) == 1
    finally:
        for h in list(lg.handlers):
            h.close()
            lg.removeHandler(h)


def test_get_log_summary_inexistente():
    assert log_mod.get_log_summary("inexistente") == "Log inexistente não encontrado."


def test_dashboard_nao_emite_log_sem_flag(monkeypatch, service, caplog):
    monkeypatch.setattr(log_mod, "ENABLE_LOGGING", False)
    monkeypatch.setattr(log_mod, "ENABLE_OUTPUT", False)
    service.create_movement("Cimento", 10, "entrada")
    caplog.set_level(logging.DEBUG)
    service.get_dashboard_stats()
    service.get_dashboard_data()
    assert not [r for r in caplog.records if r.name.startswith("buildstock.")]
