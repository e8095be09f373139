"""
Dialect-aware upsert with an IS DISTINCT FROM guard.

PostgreSQL and SQLite both support ``INSERT ... ON CONFLICT DO UPDATE``; the
statement is built with whichever dialect the connection speaks. Rows whose
tracked columns did not change are left alone so ``updated_at`` only moves on
real edits.
"""

from typing import Any

from sqlalchemy import or_
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Connection


def upsert_with_distinct_check(
    conn: Connection,
    table: type,
    rows: list[dict[str, Any]],
    conflict_column: str,
    update_columns: list[str],
) -> None:
    """
    Insert ``rows``, updating existing ones only where a tracked column differs.

    Args:
        conn: Active database connection (within transaction)
        table: SQLAlchemy ORM table class (e.g., Resource)
        rows: List of row dicts to upsert
        conflict_column: Column name for ON CONFLICT (usually "id")
        update_columns: Columns compared and copied on conflict; ``updated_at``
            is always refreshed when any of them changed

    Example:
        >>> with engine.begin() as conn:
        ...     upsert_with_distinct_check(
        ...         conn=conn,
        ...         table=Resource,
        ...         rows=[{"id": 1, "name": "Salle A", ...}],
        ...         conflict_column="id",
        ...         update_columns=["name", "capacity"],
        ...     )
    """
    if not rows:
        return

    insert = pg_insert if conn.dialect.name == "postgresql" else sqlite_insert
    stmt = insert(table).values(rows)

    set_dict = {col: getattr(stmt.excluded, col) for col in update_columns}
    set_dict["updated_at"] = stmt.excluded.updated_at

    distinct_check = or_(
        *(
            getattr(table, col).is_distinct_from(getattr(stmt.excluded, col))
            for col in update_columns
        )
    )

    stmt = stmt.on_conflict_do_update(
        index_elements=[conflict_column],
        set_=set_dict,
        where=distinct_check,
    )

    conn.execute(stmt)
