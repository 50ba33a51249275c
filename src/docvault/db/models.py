"""SQLAlchemy ORM models — single source of truth for the database schema.

Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table. Alembic migrations are written against these.

Key points:
- UUID primary keys, using the portable Uuid type (native on PostgreSQL,
  CHAR(32) on SQLite)
- every resource row carries owner_id; services never query a resource
  table without filtering on it
- timestamps are set from Python so created_at == updated_at on insert
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on round-trip)."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC datetimes on every backend.

    PostgreSQL keeps the offset; SQLite stores a naive string. Values are
    normalized to UTC on the way in and come back aware on the way out.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            value = ensure_utc(value).astimezone(timezone.utc)
        return value

    def process_result_value(self, value, dialect):
        if value is not None:
            value = ensure_utc(value).astimezone(timezone.utc)
        return value


DOCUMENT_TYPES = ("normal", "knowledge")
CONTRACT_TYPES = ("erc20", "erc721", "custom")


class User(Base):
    """An account holder.

    The verification and reset secrets are stored as SHA-256 digests;
    the raw values only ever leave the process by mail.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=new_uuid
    )
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    is_verified: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )

    # Email verification (PIN or link token, depending on settings)
    verification_secret_hash: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True, index=True
    )
    # "pin" or "token"; a secret only verifies through its own endpoint
    verification_kind: Mapped[Optional[str]] = mapped_column(
        String(10), nullable=True
    )
    verification_expires_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(), nullable=True
    )
    verification_attempts: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )

    # Password reset link
    reset_secret_hash: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True, index=True
    )
    reset_expires_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(), nullable=True
    )

    # Profile
    full_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow
    )

    @property
    def is_profile_completed(self) -> bool:
        return bool(self.full_name and self.address)


class Document(Base):
    """A rich-text document.

    "knowledge" documents form a tree through parent_id. The tree is kept
    flat in this table (id references only); DocumentService enforces
    that a parent belongs to the same owner and that no cycle forms.
    """

    __tablename__ = "documents"
    __table_args__ = (
        Index("ix_documents_owner_updated", "owner_id", "updated_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=new_uuid
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    type: Mapped[str] = mapped_column(
        String(20), nullable=False, default="normal"
    )  # normal | knowledge
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    parent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("documents.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow
    )


class Contract(Base):
    """A smart contract source owned by one user."""

    __tablename__ = "contracts"
    __table_args__ = (
        Index("ix_contracts_owner_created", "owner_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=new_uuid
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)  # erc20 | erc721 | custom
    source_code: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow
    )
