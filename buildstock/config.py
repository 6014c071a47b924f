# buildstock/config.py
"""
Configurações globais e valores padrão do controle de estoque.

Os caminhos podem ser sobrescritos por variáveis de ambiente:
- BUILDSTOCK_DB          caminho do banco SQLite
- BUILDSTOCK_LOGS_DIR    diretório dos arquivos de log
- BUILDSTOCK_LOGGING     "1" habilita os logs em arquivo
- BUILDSTOCK_ATUALIZA_PRECO  "0" desliga a atualização de preço por movimento
"""

import os
from dataclasses import dataclass
from pathlib import Path


def _env_flag(nome: str, padrao: bool) -> bool:
    valor = os.environ.get(nome)
    if valor is None:
        return padrao
    return valor.strip().lower() in {"1", "true", "sim", "s", "yes", "y"}


# Caminho padrão do banco de dados SQLite
DB_PATH = os.environ.get("BUILDSTOCK_DB", os.path.join(os.getcwd(), "buildstock.db"))

# Diretório de logs
LOGS_DIR = Path(os.environ.get("BUILDSTOCK_LOGS_DIR", os.path.join(os.getcwd(), "logs")))


@dataclass
class DefaultConfig:
    """Valores padrão para parâmetros do sistema."""
    unidade_padrao: str = "un"
    janela_giro_dias: int = 30            # janela da taxa de giro
    limite_movimentos: int = 1000         # limite padrão da listagem de movimentos
    ultimos_movimentos_dashboard: int = 20
    timeout_lock_s: float = 5.0           # espera máxima pelo lock de escrita
    casas_decimais: int = 6               # arredondamento do saldo somado
    atualizar_preco_em_movimento: bool = _env_flag("BUILDSTOCK_ATUALIZA_PRECO", True)


# Instância global dos valores padrão
DEFAULTS = DefaultConfig()
