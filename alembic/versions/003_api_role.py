"""Least-privilege login role for the API (PostgreSQL only).

The API may read and insert, but UPDATE is limited to closing audit
entries (status) and rotating credentials (pw_hash), and DELETE to
moderation and revocation. No other statement can rewrite history.
UPDATE (space_id) on spaces is there only so access checks can lock the
space row; foreign keys from messages and permissions pin the value.

Revision ID: 003
Revises: 002
Create Date: 2026-10-18
"""

from typing import Sequence, Union

from alembic import op

from natter.config.settings import get_settings

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ROLE = "natter_api_user"


def _is_postgres() -> bool:
    return op.get_bind().dialect.name == "postgresql"


def upgrade() -> None:
    if not _is_postgres():
        return
    password = get_settings().API_ROLE_PASSWORD.replace("'", "''")
    op.execute(
        f"DO $$ BEGIN "
        f"IF NOT EXISTS (SELECT FROM pg_roles WHERE rolname = '{ROLE}') THEN "
        f"CREATE ROLE {ROLE} WITH LOGIN PASSWORD '{password}'; "
        f"END IF; END $$;"
    )
    op.execute(f"GRANT SELECT, INSERT ON spaces, messages, users, permissions, audit_log TO {ROLE};")
    op.execute(f"GRANT UPDATE (status) ON audit_log TO {ROLE};")
    op.execute(f"GRANT UPDATE (pw_hash) ON users TO {ROLE};")
    op.execute(f"GRANT DELETE ON messages, permissions TO {ROLE};")
    op.execute(f"GRANT UPDATE (perms) ON permissions TO {ROLE};")
    # FOR SHARE / FOR UPDATE need UPDATE on some column of the locked table
    op.execute(f"GRANT UPDATE (space_id) ON spaces TO {ROLE};")
    op.execute(f"GRANT SELECT, INSERT, UPDATE ON audit_sequence TO {ROLE};")
    op.execute(f"GRANT USAGE, SELECT ON ALL SEQUENCES IN SCHEMA public TO {ROLE};")


def downgrade() -> None:
    if not _is_postgres():
        return
    op.execute(f"REVOKE ALL ON ALL SEQUENCES IN SCHEMA public FROM {ROLE};")
    op.execute(
        f"REVOKE ALL ON spaces, messages, users, permissions, audit_log, audit_sequence FROM {ROLE};"
    )
    op.execute(f"DROP ROLE IF EXISTS {ROLE};")
