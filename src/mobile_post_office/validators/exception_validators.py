from typing import Iterable

from sqlalchemy import UniqueConstraint, and_, select


def get_unique_column_sets(model) -> list[Iterable[str]]:
    """
    Return a list of unique column sets. Each item is an iterable of attribute names.
    Covers:
      - Column(unique=True)
      - UniqueConstraint in the table
      - Index(..., unique=True)
    """
    unique_sets = []

    for col in model.__table__.columns:
        if col.unique:
            unique_sets.append([col.name])

    for constraint in model.__table__.constraints:
        if isinstance(constraint, UniqueConstraint):
            unique_sets.append([c.name for c in constraint.columns])

    for idx in model.__table__.indexes:
        if idx.unique:
            unique_sets.append([c.name for c in idx.columns])

    return unique_sets


async def find_unique_conflicts(db, model, values: dict) -> set[str]:
    """
    Run pre-insert queries to detect existing rows that would violate unique constraints.
    Returns a set of column names that conflict (best-effort).

    A unique set is only checked when every column in it has a non-NULL value:
    SQL unique constraints never treat NULLs as equal.
    """
    conflicts = set()

    for cols in get_unique_column_sets(model):
        if not all(values.get(c) is not None for c in cols):
            continue

        conditions = [getattr(model, c) == values[c] for c in cols]
        res = await db.execute(select(model.id).where(and_(*conditions)).limit(1))
        if res.scalar_one_or_none() is not None:
            conflicts.update(cols)

    return conflicts
