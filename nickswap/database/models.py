"""
nickswap.database.models — SQLAlchemy 2.0 Data Models
======================================================

The ledger is a plain byte-oriented key-value store laid out in a single
table.  Rows that share a ``namespace`` form one logical tree:

- ``<guild id, 8 bytes>``        — canonical names for that guild
- ``b"o" + <guild id, 8 bytes>`` — names this bot has imposed

Keys are 8-byte big-endian user ids; values are UTF-8 display names.
"""

from __future__ import annotations

from sqlalchemy import Index, LargeBinary
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from nickswap.constants import ID_WIDTH, OVERRIDE_NAMESPACE_WIDTH


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Nickswap ORM models."""


# ---------------------------------------------------------------------------
# Name ledger — one row per (namespace, user)
# ---------------------------------------------------------------------------
class NameEntry(Base):
    __tablename__ = "name_ledger"

    namespace: Mapped[bytes] = mapped_column(
        LargeBinary(OVERRIDE_NAMESPACE_WIDTH), primary_key=True
    )
    key: Mapped[bytes] = mapped_column(LargeBinary(ID_WIDTH), primary_key=True)
    value: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)

    __table_args__ = (
        Index("ix_name_ledger_namespace", "namespace"),
    )

    def __repr__(self) -> str:
        return (
            f"<NameEntry ns={self.namespace.hex()} key={self.key.hex()} "
            f"value={self.value!r}>"
        )
