from typing import Any, Dict, List

from sqlalchemy import Table, insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert


def insert_ignore(dialect_name: str, table: Table, values: Dict[str, Any], conflict_columns: List[str]):
    """
    INSERT that silently skips rows clashing with a unique constraint.

    The store decides the conflict atomically, so concurrent callers inserting
    the same key end up with exactly one row and no error.
    """
    if dialect_name == "postgresql":
        return pg_insert(table).values(**values).on_conflict_do_nothing(index_elements=conflict_columns)
    if dialect_name == "sqlite":
        return sqlite_insert(table).values(**values).on_conflict_do_nothing(index_elements=conflict_columns)
    if dialect_name in ("mysql", "mariadb"):
        return insert(table).values(**values).prefix_with("IGNORE")
    raise ValueError(f"insert_ignore is not supported for dialect '{dialect_name}'")
