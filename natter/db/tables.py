"""SQLAlchemy ORM table models for Natter.

Categories:
- IMMUTABLE: SpaceRow, MessageRow (append-only; moderators may delete
             messages, never edit them)
- OPERATIONAL: UserRow (credential rotation), PermissionRow (upsert/delete),
               audit_log (two-phase write: status filled in once)

audit_log has no primary key and no foreign key on user_id: entries are
labels for whoever made the request, known or not. It is mapped as a Core
table rather than an ORM class for that reason.
"""

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from natter.db.session import Base

USER_ID_LENGTH = 30
SPACE_NAME_LENGTH = 255
AUDIT_METHOD_LENGTH = 10
AUDIT_PATH_LENGTH = 255


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


class UserRow(Base):
    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(String(USER_ID_LENGTH), primary_key=True)
    pw_hash: Mapped[str] = mapped_column(String(255), nullable=False)


# ---------------------------------------------------------------------------
# Spaces and messages — IMMUTABLE
# ---------------------------------------------------------------------------


class SpaceRow(Base):
    __tablename__ = "spaces"
    __table_args__ = (
        Index("space_name_idx", "name", unique=True),
        {"sqlite_autoincrement": True},
    )

    space_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(SPACE_NAME_LENGTH), nullable=False)
    owner: Mapped[str] = mapped_column(String(USER_ID_LENGTH), nullable=False)


class MessageRow(Base):
    """Message ids are global across spaces and never reused, even after a
    moderator deletes the newest message (hence sqlite_autoincrement)."""

    __tablename__ = "messages"
    __table_args__ = (
        Index("msg_timestamp_idx", "msg_time"),
        {"sqlite_autoincrement": True},
    )

    msg_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    space_id: Mapped[int] = mapped_column(
        ForeignKey("spaces.space_id"), nullable=False, index=True
    )
    author: Mapped[str] = mapped_column(String(USER_ID_LENGTH), nullable=False)
    msg_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    msg_text: Mapped[str] = mapped_column(String(1024), nullable=False)


# ---------------------------------------------------------------------------
# Permissions — OPERATIONAL
# ---------------------------------------------------------------------------


class PermissionRow(Base):
    """One capability code per (space, user). See natter.models.common.to_code."""

    __tablename__ = "permissions"

    space_id: Mapped[int] = mapped_column(
        ForeignKey("spaces.space_id"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.user_id"), primary_key=True
    )
    perms: Mapped[str] = mapped_column(String(3), nullable=False)


# ---------------------------------------------------------------------------
# Audit — OPERATIONAL (two-phase write)
# ---------------------------------------------------------------------------


audit_log = Table(
    "audit_log",
    Base.metadata,
    Column("audit_id", BigInteger, nullable=True, index=True),
    Column("method", String(AUDIT_METHOD_LENGTH), nullable=False),
    Column("path", String(AUDIT_PATH_LENGTH), nullable=False),
    Column("user_id", String(USER_ID_LENGTH), nullable=True),
    Column("status", Integer, nullable=True),
    Column("audit_time", DateTime(timezone=True), nullable=False, server_default=func.now()),
)


class AuditSequenceRow(Base):
    """Durable monotonic counters. The audit log draws from name='audit_id'."""

    __tablename__ = "audit_sequence"

    name: Mapped[str] = mapped_column(String(50), primary_key=True)
    last_value: Mapped[int] = mapped_column(BigInteger, nullable=False)
