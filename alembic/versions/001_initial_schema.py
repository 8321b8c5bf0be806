"""Initial schema — users, spaces, messages.

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # -- Identity --
    op.create_table(
        "users",
        sa.Column("user_id", sa.String(30), primary_key=True),
        sa.Column("pw_hash", sa.String(255), nullable=False),
    )

    # -- Spaces (IMMUTABLE) --
    op.create_table(
        "spaces",
        sa.Column("space_id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("owner", sa.String(30), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("space_name_idx", "spaces", ["name"], unique=True)

    # -- Messages (IMMUTABLE; ids global across spaces) --
    op.create_table(
        "messages",
        sa.Column("msg_id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("space_id", sa.Integer,
                  sa.ForeignKey("spaces.space_id"), nullable=False),
        sa.Column("author", sa.String(30), nullable=False),
        sa.Column("msg_time", sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.func.now()),
        sa.Column("msg_text", sa.String(1024), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("msg_timestamp_idx", "messages", ["msg_time"])
    op.create_index("ix_messages_space_id", "messages", ["space_id"])


def downgrade() -> None:
    op.drop_index("ix_messages_space_id", table_name="messages")
    op.drop_index("msg_timestamp_idx", table_name="messages")
    op.drop_table("messages")
    op.drop_index("space_name_idx", table_name="spaces")
    op.drop_table("spaces")
    op.drop_table("users")
