"""
Declarative base for all SQLAlchemy ORM models.

Constraint names are generated from the naming convention below, so the
(mobile_code, seq) unique constraint is `uq_mobile_posts_mobile_code_seq` on
every backend; the integrity classifier reports that name on duplicates.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


Base.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_N_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}
