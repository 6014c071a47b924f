"""
UC: Dados de demonstração (seed) e limpeza do banco (reset).

- seed_demo(): cria usuários, materiais de construção com limites e preços
  e movimentos iniciais (entradas e depois saídas) pelo próprio ledger.
  Tudo numa única transação: uma falha no meio não deixa seed parcial.
  Não faz nada se já houver materiais cadastrados.
- reset(): remove movimentos, materiais e usuários (exceto "Sistema") e
  reinicia as sequências de id. Tudo numa única transação.
"""

from __future__ import annotations

from typing import Any, Dict

from buildstock.infra.logger import log_database_operation, log_system_event, print_system
from buildstock.infra.repositories import MaterialRepo, MovimentoRepo, UsuarioRepo
from buildstock.usecases.servico import EstoqueService


USUARIOS_DEMO = [
    {"name": "João Silva", "email": "joao@buildstock.com", "role": "admin"},
    {"name": "Maria Santos", "email": "maria@buildstock.com", "role": "operador"},
    {"name": "Pedro Costa", "email": "pedro@buildstock.com", "role": "visualizador"},
]

MATERIAIS_DEMO = [
    {"name": "Cimento", "unit": "saco", "min_stock": 20, "max_stock": 100, "price": 35.00, "description": "Cimento Portland CP-II"},
    {"name": "Areia", "unit": "m³", "min_stock": 10, "max_stock": 50, "price": 80.00, "description": "Areia média lavada"},
    {"name": "Brita", "unit": "m³", "min_stock": 10, "max_stock": 50, "price": 90.00, "description": "Brita 1"},
    {"name": "Tijolo", "unit": "un", "min_stock": 2000, "max_stock": 10000, "price": 0.80, "description": "Tijolo cerâmico 6 furos"},
    {"name": "Telha", "unit": "un", "min_stock": 500, "max_stock": 3000, "price": 3.50, "description": "Telha cerâmica colonial"},
    {"name": "Ferro", "unit": "kg", "min_stock": 50, "max_stock": 500, "price": 8.50, "description": "Ferro CA-50 8mm"},
    {"name": "Madeira", "unit": "m", "min_stock": 100, "max_stock": 500, "price": 12.00, "description": "Madeira pinus 3x3"},
    {"name": "Tinta", "unit": "lata", "min_stock": 10, "max_stock": 100, "price": 180.00, "description": "Tinta acrílica branca 18L"},
    {"name": "Cal", "unit": "saco", "min_stock": 15, "max_stock": 80, "price": 18.00, "description": "Cal hidratada"},
    {"name": "Prego", "unit": "kg", "min_stock": 5, "max_stock": 50, "price": 15.00, "description": "Prego 18x30"},
]

MOVIMENTOS_DEMO = [
    ("Cimento", 50, "entrada", "Depósito A", "Estoque inicial"),
    ("Areia", 25, "entrada", "Pátio", "Estoque inicial"),
    ("Brita", 20, "entrada", "Pátio", "Estoque inicial"),
    ("Tijolo", 5000, "entrada", "Depósito B", "Estoque inicial"),
    ("Telha", 1500, "entrada", "Depósito B", "Estoque inicial"),
    ("Ferro", 200, "entrada", "Depósito C", "Estoque inicial"),
    ("Madeira", 300, "entrada", "Depósito C", "Estoque inicial"),
    ("Tinta", 30, "entrada", "Almoxarifado", "Estoque inicial"),
    ("Cal", 40, "entrada", "Depósito A", "Estoque inicial"),
    ("Prego", 25, "entrada", "Almoxarifado", "Estoque inicial"),
    ("Cimento", 10, "saida", "Obra Residencial", "Fundação"),
    ("Areia", 5, "saida", "Obra Residencial", "Contrapiso"),
    ("Tijolo", 1000, "saida", "Obra Comercial", "Alvenaria"),
    ("Ferro", 50, "saida", "Obra Residencial", "Estrutura"),
    ("Tinta", 5, "saida", "Obra Comercial", "Pintura externa"),
]


def seed_demo(service: EstoqueService) -> Dict[str, Any]:
    """Popula o banco com dados de exemplo. Retorna as contagens criadas."""
    log_system_event("seed_start", {"db_path": service.db.path})

    with service.db.leitura() as conn:
        existentes = MaterialRepo(conn).count()
    if existentes > 0:
        log_system_event("seed_skipped", {"materials": existentes}, level="warning")
        print_system(f"Banco já possui {existentes} materiais. Limpe-o antes (reset).")
        return {"status": "skipped", "materials": existentes}

    with service.db.transacao() as conn:
        repo = UsuarioRepo(conn)
        user_ids = [repo.upsert(u["name"], u["email"], u["role"]) for u in USUARIOS_DEMO]
        for m in MATERIAIS_DEMO:
            service.materials.criar_em(conn, **m)
            print_system(f"   + {m['name']} ({m['unit']})")
        gravados = [
            service.ledger.append_em(conn, nome, qtd, tipo, user_id=user_ids[0], location=local, message=msg)
            for nome, qtd, tipo, local, msg in MOVIMENTOS_DEMO
        ]

    log_database_operation("users", "UPSERT", len(user_ids))
    log_database_operation("materials", "INSERT", len(MATERIAIS_DEMO))
    for row in gravados:
        service.ledger.log_gravado(row)

    result = {
        "status": "ok",
        "users": len(user_ids),
        "materials": len(MATERIAIS_DEMO),
        "movements": len(MOVIMENTOS_DEMO),
    }
    log_system_event("seed_success", result)
    return result


def reset(service: EstoqueService) -> Dict[str, int]:
    """Limpa movimentos, materiais e usuários (mantém o usuário Sistema)."""
    log_system_event("reset_start", {"db_path": service.db.path})
    with service.db.transacao() as conn:
        movimentos = MovimentoRepo(conn).purge_all()
        materiais = MaterialRepo(conn).delete_all()
        usuarios = UsuarioRepo(conn).delete_all_except_sistema()
        conn.execute(
            "DELETE FROM sqlite_sequence WHERE name IN ('materials', 'stock_movements')"
        )
    result = {"movements": movimentos, "materials": materiais, "users": usuarios}
    log_database_operation("*", "DELETE", sum(result.values()))
    log_system_event("reset_success", result)
    return result
