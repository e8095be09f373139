from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection

from coworking_scheduler.models.resources import Resource as ResourceRow
from coworking_scheduler.scheduling.entities import WEEKDAYS, OpeningHours, Resource
from coworking_scheduler.scheduling.pricing import RateTable


def row_to_resource(row: Any) -> Resource:
    """
    Convert a ``resources`` row into the read-only ``Resource`` the core uses.

    Args:
        row: Result row exposing the ``resources`` columns as attributes.

    Returns:
        Resource: Domain resource with parsed rate table and opening hours.
    """
    raw_hours = row.opening_hours or {}
    hours = {
        day: parsed
        for day in WEEKDAYS
        if (parsed := OpeningHours.from_dict(raw_hours.get(day))) is not None
    }
    return Resource(
        id=row.id,
        name=row.name,
        capacity=row.capacity,
        rate_table=RateTable(
            hour=row.price_per_hour,
            day=row.price_per_day,
            week=row.price_per_week,
            month=row.price_per_month,
        ),
        available=bool(row.available),
        opening_hours=hours,
    )


def get_resource(conn: Connection, resource_id: int) -> Optional[Resource]:
    """
    Fetch a resource by ID.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        resource_id (int): Resource ID.

    Returns:
        Optional[Resource]: The resource, or None if it does not exist.
    """
    row = conn.execute(select(ResourceRow).where(ResourceRow.id == resource_id)).fetchone()
    return row_to_resource(row) if row else None


def lock_resource(conn: Connection, resource_id: int) -> bool:
    """
    Take the per-resource write lock for the current transaction.

    ``SELECT ... FOR UPDATE`` on PostgreSQL; SQLite ignores the clause and
    relies on its ``BEGIN IMMEDIATE`` database lock instead.

    Returns:
        bool: True if the resource row exists.
    """
    row = conn.execute(
        select(ResourceRow.id).where(ResourceRow.id == resource_id).with_for_update()
    ).fetchone()
    return row is not None
