"""Shared helpers for the Natter persistence layer.

Repositories call add()/flush()/execute() only — never commit().
The unit of work (natter.db.session.unit_of_work) owns commit/rollback.

Uniqueness races (space names, user names, grants, the audit counter) are
settled by the database with INSERT ... ON CONFLICT, never by reading
first and writing second.
"""

from sqlalchemy import Table
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def conflict_insert(session: AsyncSession, table: Table):
    """Return a dialect INSERT construct supporting on_conflict_* clauses."""
    dialect = session.bind.dialect.name
    try:
        insert = _INSERT_BY_DIALECT[dialect]
    except KeyError:
        raise NotImplementedError(f"no conflict-aware INSERT for dialect {dialect!r}") from None
    return insert(table)
