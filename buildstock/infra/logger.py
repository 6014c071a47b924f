"""
Sistema de logging para operações do estoque.

Este módulo configura e fornece loggers para registrar todas as operações
críticas do sistema: movimentos, cadastro de materiais, operações no banco
de dados e eventos do sistema (migrações, seed, importações).
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional

from buildstock.config import LOGS_DIR


# Flag global para habilitar/desabilitar logging
ENABLE_LOGGING = os.environ.get("BUILDSTOCK_LOGGING", "0").strip().lower() in {"1", "true", "sim"}
# Flag global para habilitar/desabilitar prints/output
ENABLE_OUTPUT = False

def print_system(*args, **kwargs):
    """Print controlado pelo ENABLE_OUTPUT."""
    if ENABLE_OUTPUT:
        print(*args, **kwargs)

# Configuração base dos loggers
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

def setup_logger(name: str, log_file: str, level: int = logging.INFO) -> logging.Logger:
    """
    Configura um logger específico com arquivo de saída.

    O arquivo só é criado na primeira mensagem emitida (``delay=True``).

    Args:
        name: Nome do logger
        log_file: Caminho do arquivo de log
        level: Nível de logging (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Logger configurado
    """
    log_path = Path(log_file)

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Remove handlers existentes (reconfiguração idempotente)
    while logger.handlers:
        logger.removeHandler(logger.handlers[0])

    if ENABLE_LOGGING:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8', delay=True)
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        logger.addHandler(file_handler)

    return logger

LOG_FILES = {
    "transactions": LOGS_DIR / "transactions.log",
    "movimentos": LOGS_DIR / "movimentos.log",
    "materiais": LOGS_DIR / "materiais.log",
    "database": LOGS_DIR / "database.log",
    "system": LOGS_DIR / "system.log",
}

# Loggers específicos para cada operação
transaction_logger = setup_logger('buildstock.transactions', str(LOG_FILES["transactions"]))
movimento_logger = setup_logger('buildstock.movimentos', str(LOG_FILES["movimentos"]))
material_logger = setup_logger('buildstock.materiais', str(LOG_FILES["materiais"]))
database_logger = setup_logger('buildstock.database', str(LOG_FILES["database"]))
system_logger = setup_logger('buildstock.system', str(LOG_FILES["system"]))

def log_transaction(operation: str, data: Dict[str, Any], result: Optional[Any] = None,
                    error: Optional[str] = None, code: Optional[str] = None) -> None:
    """
    Registra uma operação completa do serviço no log.

    Args:
        operation: Nome da operação (create_movement, delete_material, ...)
        data: Dados de entrada da operação
        result: Resultado da operação (opcional)
        error: Mensagem de erro (opcional)
        code: Código do erro tipado (opcional)
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    if error:
        transaction_logger.error(f"TRANSACTION_FAILED: {operation} - [{code}] {error} - Data: {data}")
    else:
        transaction_logger.info(f"TRANSACTION_SUCCESS: {operation} - Result: {result} - Data: {data}")

def log_movimento(tipo: str, material: str, quantidade: float, movimento_id: Optional[int] = None, **kwargs) -> None:
    """
    Log específico para movimentos gravados no ledger.

    Args:
        tipo: 'entrada' ou 'saida'
        material: Nome do material
        quantidade: Quantidade gravada (com sinal)
        movimento_id: Id do movimento criado
        **kwargs: Dados adicionais
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {
        "id": movimento_id,
        "material": material,
        "quantidade": quantidade,
        **kwargs
    }
    movimento_logger.info(f"MOVIMENTO_{tipo.upper()}: {log_data}")

def log_material(action: str, material_id: Optional[int], **kwargs) -> None:
    """Log de alterações no cadastro de materiais (create, update, limits, soft_delete, hard_delete)."""
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {"id": material_id, **kwargs}
    material_logger.info(f"MATERIAL_{action.upper()}: {log_data}")

def log_database_operation(table: str, operation: str, affected_rows: int = 0, **kwargs) -> None:
    """
    Log específico para operações no banco de dados.

    Args:
        table: Nome da tabela
        operation: Operação SQL (INSERT, UPDATE, DELETE, SELECT)
        affected_rows: Número de linhas afetadas
        **kwargs: Dados adicionais
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {
        "table": table,
        "operation": operation,
        "affected_rows": affected_rows,
        **kwargs
    }
    database_logger.info(f"DB_{operation}: {log_data}")

def log_system_event(event: str, details: Dict[str, Any] = None, level: str = "info") -> None:
    """
    Log para eventos do sistema.

    Args:
        event: Descrição do evento
        details: Detalhes adicionais (opcional)
        level: Nível do log (info, warning, error)
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {
        "event": event,
        "details": details or {},
        "at": datetime.now().isoformat(timespec="seconds"),
    }
    log_method = getattr(system_logger, level.lower(), system_logger.info)
    log_method(f"SYSTEM_EVENT: {event} - {log_data}")

def get_log_summary(log_type: str = "transactions", lines: int = 100) -> str:
    """
    Obtém as últimas linhas de um dos arquivos de log.

    Args:
        log_type: Tipo de log (transactions, movimentos, materiais, database, system)
        lines: Número de linhas a retornar

    Returns:
        Conteúdo do log como string
    """
    log_file = LOG_FILES.get(log_type)
    if not log_file or not log_file.exists():
        return f"Log {log_type} não encontrado."

    with open(log_file, 'r', encoding='utf-8') as f:
        all_lines = f.readlines()
    return ''.join(all_lines[-lines:])
