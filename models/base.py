from sqlalchemy import MetaData, event
from sqlalchemy.orm import declarative_base

from core.id_generator import generate_random_id

# Stable constraint names so Postgres and SQLite schemas line up
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

Base = declarative_base(metadata=MetaData(naming_convention=NAMING_CONVENTION))


@event.listens_for(Base, "before_insert", propagate=True)
def assign_random_id(mapper, connection, target):
    """Fill in a UUID primary key for rows created without one."""
    if getattr(target, "id", None) is None:
        target.id = generate_random_id(target.__tablename__)
