"""
Явная таблица отображения: поле модели -> колонка -> набор ограничений.

Строится из метаданных SQLAlchemy, поэтому не расходится с тем,
что реально создается в БД.
"""
from sqlalchemy import UniqueConstraint, inspect

from authors_api.models import Author


def _unique_columns(table):
    names = {column.name for column in table.columns if column.unique}
    for constraint in table.constraints:
        if isinstance(constraint, UniqueConstraint) and len(constraint.columns) == 1:
            names.update(column.name for column in constraint.columns)
    return names


def describe_column(prop, table, unique_columns):
    column = prop.columns[0]
    return {
        "field": prop.key,
        "column": column.name,
        "type": type(column.type).__name__,
        "max_length": getattr(column.type, "length", None),
        "nullable": bool(column.nullable),
        "unique": column.name in unique_columns,
        "updatable": column.info.get("updatable", True),
        "primary_key": column.primary_key,
        "generated": table.autoincrement_column is column,
    }


def describe_mapping(model=Author) -> dict:
    """Описание таблицы модели: поле -> колонка -> ограничения."""
    mapper = inspect(model)
    table = model.__table__
    unique_columns = _unique_columns(table)
    return {
        "table": table.name,
        "columns": [
            describe_column(prop, table, unique_columns)
            for prop in mapper.column_attrs
        ],
    }
