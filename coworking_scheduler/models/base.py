from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Declarative base shared by the resource and reservation tables.

    ``Base.metadata`` is what Alembic autogenerates against and what the
    test suite uses to create a throwaway SQLite schema.
    """

    pass
