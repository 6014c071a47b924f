# app.py
"""
Entrypoint da aplicação.

Uso:
  python app.py migrate --db estoque.db
  python app.py seed
  python app.py entrada Cimento 10 --unidade saco --preco 35
  python app.py saida Cimento 4 --local "Obra Residencial"
  python app.py resumo
  python app.py dashboard --json
  python app.py movimentos-lote movimentos.xlsx
  python app.py material listar --inativos
"""

from buildstock.adapters.cli import main

if __name__ == "__main__":
    main()
