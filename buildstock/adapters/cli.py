"""
CLI do controle de estoque (Typer).

Comandos principais:
- migrate                  -> aplica migrações e cria views
- seed / reset             -> dados de demonstração / limpeza do banco
- entrada / saida          -> registra um movimento
- movimentos               -> lista os movimentos mais recentes
- movimentos-lote <arq>    -> registra movimentos a partir de XLSX/CSV
- resumo                   -> saldo e status por material ativo
- dashboard                -> estatísticas agregadas
- material listar/mostrar/criar/editar/limites/excluir
"""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from buildstock.adapters.parsers import exigir_numero
from buildstock.config import DB_PATH
from buildstock.domain.errors import BuildStockError, InsufficientStockError
from buildstock.domain.models import ENTRADA, SAIDA
from buildstock.infra.db import Database
from buildstock.usecases.importacao import run_movimentos_lote
from buildstock.usecases.seed import reset as reset_banco
from buildstock.usecases.seed import seed_demo
from buildstock.usecases.servico import EstoqueService


app = typer.Typer(help="BuildStock — controle de estoque de materiais")
console = Console()


STATUS_CORES = {"baixo": "bold red", "normal": "bold green", "alto": "bold yellow"}


# -----------------------
# util
# -----------------------

def _service(db_path: str) -> EstoqueService:
    service = EstoqueService(Database(db_path))
    service.ensure_schema()
    return service


@contextmanager
def _tratando_erros() -> Iterator[None]:
    """Converte erros do domínio em mensagem + exit code 1."""
    try:
        yield
    except InsufficientStockError as e:
        console.print(f"[bold red]Erro:[/] {e}")
        console.print(f"[dim]Disponível: {_fmt_num(e.available)}[/dim]")
        raise typer.Exit(code=1)
    except BuildStockError as e:
        console.print(f"[bold red]Erro:[/] {e}")
        raise typer.Exit(code=1)
    except sqlite3.Error as e:
        console.print(f"[bold red]Erro:[/] banco de dados: {e}")
        raise typer.Exit(code=1)


def _print_json(obj) -> None:
    typer.echo(json.dumps(obj, ensure_ascii=False, indent=2, default=str))


def _fmt_num(val: Any) -> str:
    """Número no formato brasileiro (1.234,50)."""
    if val is None:
        return "-"
    if isinstance(val, (int, float)) and not isinstance(val, bool):
        return f"{val:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
    return str(val)


def _numero_opcional(txt: Optional[str], campo: str) -> Optional[float]:
    if txt is None or not txt.strip():
        return None
    return exigir_numero(txt, campo)


def _display_table(data: List[Dict[str, Any]], colunas: List[str], title: str) -> None:
    """Exibe uma lista de dicts como tabela Rich (colunas na ordem dada)."""
    if not data:
        console.print(Panel("Nenhum dado encontrado", title=title, border_style="yellow"))
        return
    table = Table(title=title, box=box.ROUNDED)
    for col in colunas:
        numerica = isinstance(data[0].get(col), (int, float)) and not isinstance(data[0].get(col), bool)
        table.add_column(col, justify="right" if numerica else "left")
    for row in data:
        valores = []
        for col in colunas:
            val = row.get(col)
            if col == "status":
                cor = STATUS_CORES.get(str(val), "")
                valores.append(f"[{cor}]{val}[/]" if cor else str(val))
            elif col == "id" or col.endswith("_id"):
                valores.append("" if val is None else str(val))
            elif isinstance(val, (int, float)) and not isinstance(val, bool):
                valores.append(_fmt_num(val))
            else:
                valores.append("" if val is None else str(val))
        table.add_row(*valores)
    console.print(table)


# -----------------------
# comandos de infra
# -----------------------

@app.command("migrate")
def cmd_migrate(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Aplica migrações e recria as views auxiliares."""
    with _tratando_erros():
        EstoqueService(Database(db_path)).migrate()
    typer.echo(f">> Migrações aplicadas e views criadas em: {db_path}")


@app.command("seed")
def cmd_seed(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Popula o banco com usuários, materiais e movimentos de exemplo."""
    with _tratando_erros():
        res = seed_demo(_service(db_path))
    if res["status"] == "skipped":
        typer.echo(f">> Banco já possui {res['materials']} materiais; seed ignorado.")
        return
    typer.echo(
        f">> Seed concluído: {res['users']} usuários, {res['materials']} materiais, "
        f"{res['movements']} movimentos."
    )


@app.command("reset")
def cmd_reset(
    yes: bool = typer.Option(False, "--yes", "-y", help="Não pedir confirmação"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Apaga movimentos, materiais e usuários (exceto Sistema)."""
    if not yes:
        typer.confirm("Apagar TODOS os dados do estoque?", abort=True)
    with _tratando_erros():
        res = reset_banco(_service(db_path))
    typer.echo(
        f">> Banco limpo: {res['movements']} movimentos, {res['materials']} materiais, "
        f"{res['users']} usuários removidos."
    )


# -----------------------
# comandos de movimentação
# -----------------------

def _registrar(tipo: str, material: str, quantidade: str, unidade: Optional[str],
               preco: Optional[str], usuario: Optional[int], local: Optional[str],
               mensagem: Optional[str], db_path: str) -> None:
    with _tratando_erros():
        service = _service(db_path)
        mov_id = service.create_movement(
            material,
            exigir_numero(quantidade, "quantity"),
            tipo,
            unit=unidade,
            price=_numero_opcional(preco, "price"),
            user_id=usuario,
            location=local,
            message=mensagem,
        )
    rotulo = "Entrada" if tipo == ENTRADA else "Saída"
    typer.echo(f">> {rotulo} registrada (id={mov_id}).")


@app.command("entrada")
def cmd_entrada(
    material: str = typer.Argument(..., help="Nome do material (criado se não existir)"),
    quantidade: str = typer.Argument(..., help="Quantidade (ex.: 10 ou 2,5)"),
    unidade: Optional[str] = typer.Option(None, "--unidade", "-u", help="Unidade (material novo)"),
    preco: Optional[str] = typer.Option(None, "--preco", "-p", help="Preço unitário"),
    usuario: Optional[int] = typer.Option(None, "--usuario", help="Id do usuário"),
    local: Optional[str] = typer.Option(None, "--local", "-l", help="Local"),
    mensagem: Optional[str] = typer.Option(None, "--mensagem", "-m", help="Observação"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Registra uma entrada de estoque."""
    _registrar(ENTRADA, material, quantidade, unidade, preco, usuario, local, mensagem, db_path)


@app.command("saida")
def cmd_saida(
    material: str = typer.Argument(..., help="Nome do material"),
    quantidade: str = typer.Argument(..., help="Quantidade (ex.: 10 ou 2,5)"),
    unidade: Optional[str] = typer.Option(None, "--unidade", "-u", help="Unidade (material novo)"),
    preco: Optional[str] = typer.Option(None, "--preco", "-p", help="Preço unitário"),
    usuario: Optional[int] = typer.Option(None, "--usuario", help="Id do usuário"),
    local: Optional[str] = typer.Option(None, "--local", "-l", help="Local / obra de destino"),
    mensagem: Optional[str] = typer.Option(None, "--mensagem", "-m", help="Observação"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Registra uma saída de estoque (recusada se o saldo for insuficiente)."""
    _registrar(SAIDA, material, quantidade, unidade, preco, usuario, local, mensagem, db_path)


@app.command("movimentos")
def cmd_movimentos(
    limite: int = typer.Option(50, "--limite", "-n", help="Quantidade de movimentos"),
    as_json: bool = typer.Option(False, "--json", help="Saída em JSON"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Lista os movimentos mais recentes."""
    with _tratando_erros():
        rows = _service(db_path).list_movements(limite)
    if as_json:
        _print_json(rows)
        return
    _display_table(
        rows,
        ["id", "timestamp", "material", "type", "quantity", "unit", "location", "message", "user_name"],
        title="Movimentos",
    )


@app.command("movimentos-lote")
def cmd_movimentos_lote(
    path: str = typer.Argument(..., help="Caminho do XLSX/CSV de movimentos"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Registra movimentos em lote a partir de uma planilha."""
    with _tratando_erros():
        try:
            info = run_movimentos_lote(path, _service(db_path))
        except (OSError, ValueError) as e:
            console.print(f"[bold red]Erro:[/] {e}")
            raise typer.Exit(code=1)

    linhas = [
        f"Total de registros: {info['total']}",
        f"Processados com sucesso: {info['sucessos']}",
    ]
    if info["erros"]:
        linhas.append(f"Erros: {len(info['erros'])}")
    console.print(Panel("\n".join(linhas), title=f"{info['tipo']} em Lote"))

    if info["erros"]:
        erro_table = Table(title="Erros Encontrados")
        erro_table.add_column("Linha")
        erro_table.add_column("Erro")
        for erro in info["erros"]:
            erro_table.add_row(str(erro["linha"]), erro["mensagem"])
        console.print(erro_table)


# -----------------------
# relatórios
# -----------------------

@app.command("resumo")
def cmd_resumo(
    as_json: bool = typer.Option(False, "--json", help="Saída em JSON"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Saldo, limites e status de cada material ativo."""
    with _tratando_erros():
        rows = _service(db_path).get_summary()
    if as_json:
        _print_json(rows)
        return
    _display_table(
        rows,
        ["id", "material", "current_stock", "unit", "min_stock", "max_stock", "price", "last_movement", "status"],
        title="Resumo do Estoque",
    )


@app.command("dashboard")
def cmd_dashboard(
    as_json: bool = typer.Option(False, "--json", help="Saída em JSON"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Estatísticas agregadas do estoque."""
    with _tratando_erros():
        stats = _service(db_path).get_dashboard_stats()
    if as_json:
        _print_json(stats)
        return
    table = Table(title="Dashboard", box=box.ROUNDED)
    table.add_column("Indicador")
    table.add_column("Valor", justify="right")
    rotulos = {
        "total_materials": "Materiais ativos",
        "total_movements": "Movimentos",
        "total_entradas": "Entradas",
        "total_saidas": "Saídas",
        "low_stock_count": "Estoque baixo",
        "zeroed_count": "Zerados",
        "total_value": "Valor total (R$)",
        "turnover_rate_percent": "Giro 30 dias (%)",
    }
    for chave, rotulo in rotulos.items():
        val = stats[chave]
        table.add_row(rotulo, _fmt_num(val) if chave == "total_value" else str(val))
    console.print(table)


# -----------------------
# materiais
# -----------------------

material_app = typer.Typer(help="Cadastro de materiais")
app.add_typer(material_app, name="material")


@material_app.command("listar")
def cmd_material_listar(
    inativos: bool = typer.Option(False, "--inativos", help="Inclui materiais desativados"),
    as_json: bool = typer.Option(False, "--json", help="Saída em JSON"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Lista os materiais com saldo e status."""
    with _tratando_erros():
        rows = _service(db_path).list_materials(include_inactive=inativos)
    if as_json:
        _print_json(rows)
        return
    cols = ["id", "material", "unit", "current_stock", "min_stock", "max_stock", "price", "status"]
    if inativos:
        cols.append("active")
    _display_table(rows, cols, title="Materiais")


@material_app.command("mostrar")
def cmd_material_mostrar(
    material_id: int = typer.Argument(..., help="Id do material"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Mostra o cadastro de um material (inclusive desativado)."""
    with _tratando_erros():
        service = _service(db_path)
        material = service.get_material(material_id)
        saldo = service.current_stock(material_id)
    _print_json({**material.to_dict(), "current_stock": saldo})


@material_app.command("criar")
def cmd_material_criar(
    nome: str = typer.Argument(..., help="Nome do material"),
    unidade: Optional[str] = typer.Option(None, "--unidade", "-u"),
    minimo: Optional[str] = typer.Option(None, "--minimo", help="Estoque mínimo"),
    maximo: Optional[str] = typer.Option(None, "--maximo", help="Estoque máximo (vazio = sem teto)"),
    preco: Optional[str] = typer.Option(None, "--preco", "-p"),
    descricao: str = typer.Option("", "--descricao", "-d"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Cadastra um novo material."""
    with _tratando_erros():
        material_id = _service(db_path).create_material(
            nome,
            unidade,
            _numero_opcional(minimo, "min_stock") or 0.0,
            _numero_opcional(maximo, "max_stock"),
            _numero_opcional(preco, "price") or 0.0,
            descricao,
        )
    typer.echo(f">> Material criado (id={material_id}).")


@material_app.command("editar")
def cmd_material_editar(
    material_id: int = typer.Argument(..., help="Id do material"),
    nome: str = typer.Option(..., "--nome", help="Nome"),
    unidade: str = typer.Option(..., "--unidade", "-u", help="Unidade"),
    minimo: Optional[str] = typer.Option(None, "--minimo"),
    maximo: Optional[str] = typer.Option(None, "--maximo"),
    preco: Optional[str] = typer.Option(None, "--preco", "-p"),
    descricao: str = typer.Option("", "--descricao", "-d"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Atualiza o cadastro completo de um material."""
    with _tratando_erros():
        _service(db_path).update_material(
            material_id,
            nome,
            unidade,
            _numero_opcional(minimo, "min_stock") or 0.0,
            _numero_opcional(maximo, "max_stock"),
            _numero_opcional(preco, "price") or 0.0,
            descricao,
        )
    typer.echo(">> Material atualizado.")


@material_app.command("limites")
def cmd_material_limites(
    material_id: int = typer.Argument(..., help="Id do material"),
    minimo: str = typer.Option(..., "--minimo", help="Estoque mínimo"),
    maximo: Optional[str] = typer.Option(None, "--maximo", help="Estoque máximo (omitido = sem teto)"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Atualiza só os limites de estoque."""
    with _tratando_erros():
        _service(db_path).update_thresholds(
            material_id, exigir_numero(minimo, "min_stock"), _numero_opcional(maximo, "max_stock")
        )
    typer.echo(">> Limites atualizados.")


@material_app.command("excluir")
def cmd_material_excluir(
    material_id: int = typer.Argument(..., help="Id do material"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Exclui um material (desativa se houver histórico de movimentos)."""
    with _tratando_erros():
        _service(db_path).delete_material(material_id)
    typer.echo(">> Material excluído.")


# Entry point opcional:
def main():
    app()


if __name__ == "__main__":
    main()
