"""
nickswap.services.ledger — Canonical & Override Name Ledger
===========================================================

Two namespaces per guild live in the ``name_ledger`` table:

- **canonical** — the name each member had before we touched it.
- **override**  — the names we have imposed (or are about to impose).

The sync protocol relies on two rules kept here:

1. Live names only become canonical while the member has no override entry
   at all (:meth:`OverrideLedger.record_guild_members`), so a bot-assigned
   name, current or stale, never becomes "canonical".  The one explicit
   way around this is the operator's :meth:`OverrideLedger.set_original`.
2. Every write is one committed transaction, so a batch is all-or-nothing
   and durable once the call returns.

Storage errors never propagate.  They are logged at WARNING and reads come
back as "unknown"; the worst case is a stale entry that a later sync pass or
a restore run corrects.

All methods are synchronous — call them through
:func:`nickswap.database.engine.run_db` from async code.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from sqlalchemy import Engine, delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from nickswap.constants import (
    ID_WIDTH,
    OVERRIDE_NAMESPACE_WIDTH,
    OVERRIDE_TAG,
    canonical_namespace,
    decode_id,
    encode_id,
    override_namespace,
)
from nickswap.database.engine import get_session
from nickswap.database.models import NameEntry
from nickswap.platform import MemberInfo

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------
def to_ledger_entry(user_id: int, display_name: str) -> tuple[bytes, bytes]:
    """Encode one ``(user, name)`` pair as a ledger ``(key, value)``."""
    logger.debug("Adding ledger entry %s for %d", display_name, user_id)
    return encode_id(user_id), display_name.encode("utf-8")


def _decode_name(value: bytes, user_id: int) -> str | None:
    try:
        return value.decode("utf-8")
    except UnicodeDecodeError as exc:
        logger.warning("Corrupt name for %d: %s", user_id, exc)
        return None


def _decode_rows(rows: Iterable[NameEntry]) -> list[tuple[int, str]]:
    decoded: list[tuple[int, str]] = []
    for row in rows:
        try:
            user_id = decode_id(row.key)
        except ValueError as exc:
            logger.warning("Skipping malformed ledger key %s: %s", row.key.hex(), exc)
            continue
        name = _decode_name(row.value, user_id)
        if name is not None:
            decoded.append((user_id, name))
    return decoded


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------
class OverrideLedger:
    """Per-guild canonical/override name store backed by one SQL engine."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    # -- reads ---------------------------------------------------------------
    def _get(self, namespace: bytes, user_id: int) -> str | None:
        try:
            with Session(self.engine) as session:
                row = session.get(NameEntry, (namespace, encode_id(user_id)))
                value = row.value if row is not None else None
        except SQLAlchemyError as exc:
            logger.warning("Failed to get name for %d: %s", user_id, exc)
            return None
        if value is None:
            return None
        return _decode_name(value, user_id)

    def get_original(self, guild_id: int, user_id: int) -> str | None:
        """Canonical name for a member, or ``None`` if unknown/unreadable."""
        return self._get(canonical_namespace(guild_id), user_id)

    def get_override(self, guild_id: int, user_id: int) -> str | None:
        """The name we last imposed on a member, if any."""
        return self._get(override_namespace(guild_id), user_id)

    def _scan(self, namespace: bytes) -> list[tuple[int, str]]:
        try:
            with Session(self.engine) as session:
                rows = session.scalars(
                    select(NameEntry)
                    .where(NameEntry.namespace == namespace)
                    .order_by(NameEntry.key)
                ).all()
                return _decode_rows(rows)
        except SQLAlchemyError as exc:
            logger.warning("Failed to scan namespace %s: %s", namespace.hex(), exc)
            return []

    def iter_originals(self, guild_id: int) -> list[tuple[int, str]]:
        """Every readable ``(user_id, canonical name)`` for a guild."""
        return self._scan(canonical_namespace(guild_id))

    def iter_overrides(self, guild_id: int) -> list[tuple[int, str]]:
        """Every readable ``(user_id, override name)`` for a guild."""
        return self._scan(override_namespace(guild_id))

    def _namespaces(self) -> list[bytes]:
        try:
            with Session(self.engine) as session:
                return list(session.scalars(
                    select(NameEntry.namespace).distinct()
                ).all())
        except SQLAlchemyError as exc:
            logger.warning("Failed to enumerate ledger namespaces: %s", exc)
            return []

    def canonical_guilds(self) -> list[int]:
        """Guild ids that own a canonical namespace."""
        return sorted(
            decode_id(ns) for ns in self._namespaces() if len(ns) == ID_WIDTH
        )

    def override_guilds(self) -> list[int]:
        """Guild ids that own an override namespace."""
        return sorted(
            decode_id(ns[len(OVERRIDE_TAG):])
            for ns in self._namespaces()
            if len(ns) == OVERRIDE_NAMESPACE_WIDTH and ns.startswith(OVERRIDE_TAG)
        )

    # -- writes --------------------------------------------------------------
    def _write(self, action: str, func: Callable[[Session], None]) -> bool:
        try:
            with get_session(self.engine) as session:
                func(session)
        except SQLAlchemyError as exc:
            logger.warning("Ledger write failed (%s): %s", action, exc)
            return False
        return True

    def record_batch(self, guild_id: int, entries: Iterable[tuple[int, str]]) -> bool:
        """Atomically write canonical names for all *entries*.

        Returns ``False`` (after logging) if the batch could not be stored.
        """
        namespace = canonical_namespace(guild_id)
        encoded = [to_ledger_entry(user_id, name) for user_id, name in entries]

        def _apply(session: Session) -> None:
            for key, value in encoded:
                session.merge(NameEntry(namespace=namespace, key=key, value=value))

        return self._write(f"record {len(encoded)} names in guild {guild_id}", _apply)

    def set_original(self, guild_id: int, user_id: int, name: str) -> bool:
        """Maintenance write of a single canonical entry."""
        logger.info("Setting canonical name %s for %d in guild %d", name, user_id, guild_id)
        return self.record_batch(guild_id, [(user_id, name)])

    def record_guild_members(self, guild_id: int, members: Iterable[MemberInfo]) -> bool:
        """Record the live name of every member with no override entry.

        Any override entry blocks the write, whatever the live name is: the
        cache may still show an older name we imposed.  The check and the
        write share one transaction, so an unreadable override namespace
        writes nothing.
        """
        canonical = canonical_namespace(guild_id)
        encoded = [to_ledger_entry(m.user_id, m.display_name) for m in members]

        def _apply(session: Session) -> None:
            overridden = set(session.scalars(
                select(NameEntry.key)
                .where(NameEntry.namespace == override_namespace(guild_id))
            ))
            for key, value in encoded:
                if key in overridden:
                    logger.debug("Keeping canonical name for %d: override active", decode_id(key))
                    continue
                session.merge(NameEntry(namespace=canonical, key=key, value=value))

        return self._write(f"record {len(encoded)} members in guild {guild_id}", _apply)

    def clear_and_stage_overrides(
        self, guild_id: int, entries: Iterable[tuple[int, str]]
    ) -> bool:
        """Atomically replace the guild's whole override namespace with *entries*."""
        namespace = override_namespace(guild_id)
        # Last write wins for a repeated user, as in record_batch.
        encoded = dict(to_ledger_entry(user_id, name) for user_id, name in entries)

        def _apply(session: Session) -> None:
            session.execute(delete(NameEntry).where(NameEntry.namespace == namespace))
            session.add_all(
                NameEntry(namespace=namespace, key=key, value=value)
                for key, value in encoded.items()
            )

        return self._write(f"stage {len(encoded)} overrides in guild {guild_id}", _apply)

    def remove_overrides(self, guild_id: int, user_ids: Iterable[int]) -> bool:
        """Drop override entries for *user_ids* in one batch."""
        keys = [encode_id(u) for u in user_ids]
        if not keys:
            return True

        def _apply(session: Session) -> None:
            session.execute(delete(NameEntry).where(
                NameEntry.namespace == override_namespace(guild_id),
                NameEntry.key.in_(keys),
            ))

        return self._write(f"remove {len(keys)} overrides in guild {guild_id}", _apply)

    def remove_member(self, guild_id: int, user_id: int) -> bool:
        """Delete a member from both namespaces of a guild."""
        key = encode_id(user_id)

        def _apply(session: Session) -> None:
            session.execute(delete(NameEntry).where(
                NameEntry.namespace.in_(
                    [canonical_namespace(guild_id), override_namespace(guild_id)]
                ),
                NameEntry.key == key,
            ))

        return self._write(f"remove member {user_id} from guild {guild_id}", _apply)

    def drop_overrides(self, guild_id: int) -> bool:
        """Remove a guild's override namespace outright."""
        logger.info("Dropping override namespace for guild %d", guild_id)
        return self.clear_and_stage_overrides(guild_id, [])
