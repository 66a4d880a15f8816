"""
Cliente REST de kintone (almacén remoto usado por el personal de obra).

Dos apps del mismo dominio con tokens distintos:
- app principal de obras (registros con KEY = {企画番号}_{工事回数})
- 従業員マスタ (roster de empleados)
"""
