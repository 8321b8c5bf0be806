"""Audit log, audit counter and capability grants.

audit_log has no primary key: audit_id comes from the audit_sequence
counter, independent of row identity, and user_id is a label rather than a
foreign key so entries outlive the users they mention.

Revision ID: 002
Revises: 001
Create Date: 2026-10-18
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "audit_log",
        sa.Column("audit_id", sa.BigInteger, nullable=True),
        sa.Column("method", sa.String(10), nullable=False),
        sa.Column("path", sa.String(255), nullable=False),
        sa.Column("user_id", sa.String(30), nullable=True),
        sa.Column("status", sa.Integer, nullable=True),
        sa.Column("audit_time", sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.func.now()),
    )
    op.create_index("ix_audit_log_audit_id", "audit_log", ["audit_id"])

    audit_sequence = op.create_table(
        "audit_sequence",
        sa.Column("name", sa.String(50), primary_key=True),
        sa.Column("last_value", sa.BigInteger, nullable=False),
    )
    op.bulk_insert(audit_sequence, [{"name": "audit_id", "last_value": 0}])

    op.create_table(
        "permissions",
        sa.Column("space_id", sa.Integer,
                  sa.ForeignKey("spaces.space_id"), primary_key=True),
        sa.Column("user_id", sa.String(30),
                  sa.ForeignKey("users.user_id"), primary_key=True),
        sa.Column("perms", sa.String(3), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("permissions")
    op.drop_table("audit_sequence")
    op.drop_index("ix_audit_log_audit_id", table_name="audit_log")
    op.drop_table("audit_log")
