"""
nickswap.services.restore_service — One-shot name restoration
==============================================================

Two maintenance routines, each runs once and returns:

- :func:`restore_all` renames **every** member with a canonical entry back
  to it, in every guild, then drops all override tracking.
- :func:`restore_overridden` only touches members we still hold an override
  for, and only reverts them if Discord still shows exactly the name we
  imposed.  Anything else means a person (or another bot) renamed them
  since, and their choice wins.  Each examined entry is removed from the
  ledger whatever the outcome of the revert.

Running :func:`restore_overridden` twice in a row is a no-op the second
time: the override namespaces are empty after the first run.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from nickswap.constants import MAX_RENAMES_IN_FLIGHT
from nickswap.database.engine import run_db
from nickswap.platform import NicknameClient, NicknameError
from nickswap.services.ledger import OverrideLedger
from nickswap.services.rename_service import set_nicks

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RestoreResult:
    """What a restore run did, across all guilds."""

    examined: int = 0
    reverted: int = 0
    skipped: int = 0
    failed: set[tuple[int, int]] = field(default_factory=set)  # (guild, user)
    guilds: list[int] = field(default_factory=list)


async def restore_all(
    ledger: OverrideLedger,
    client: NicknameClient,
    limit: int = MAX_RENAMES_IN_FLIGHT,
) -> RestoreResult:
    """Unconditionally rename everyone back to their canonical name."""
    result = RestoreResult()

    for guild_id in await run_db(ledger.canonical_guilds):
        names = await run_db(ledger.iter_originals, guild_id)
        logger.info("Restoring %d names in guild %d", len(names), guild_id)
        failed = await set_nicks(client, guild_id, names, limit)
        for user_id in failed:
            logger.warning(
                "Failed to restore user with id %d in guild %d", user_id, guild_id
            )
        result.examined += len(names)
        result.reverted += len(names) - len(failed)
        result.failed.update((guild_id, user_id) for user_id in failed)
        result.guilds.append(guild_id)

    for guild_id in await run_db(ledger.override_guilds):
        await run_db(ledger.drop_overrides, guild_id)

    logger.info(
        "Full restore: %d/%d names restored across %d guilds",
        result.reverted, result.examined, len(result.guilds),
    )
    return result


async def restore_overridden(
    ledger: OverrideLedger,
    client: NicknameClient,
    limit: int = MAX_RENAMES_IN_FLIGHT,
) -> RestoreResult:
    """Revert only the overrides that are still visibly in place."""
    result = RestoreResult()
    semaphore = asyncio.Semaphore(limit)

    async def _examine(
        guild_id: int, user_id: int, overridden: str, original: str | None
    ) -> None:
        async with semaphore:
            try:
                live = await client.get_display_name(guild_id, user_id)
            except NicknameError as exc:
                logger.warning("Failed to fetch member %d in guild %d: %r", user_id, guild_id, exc)
                live = None

            if live != overridden:
                logger.info(
                    "Leaving %d alone: shows %r, not our override %r", user_id, live, overridden
                )
                result.skipped += 1
                return
            if original is None:
                logger.warning(
                    "No canonical name for %d in guild %d; cannot revert %s",
                    user_id, guild_id, overridden,
                )
                result.skipped += 1
                return

            logger.info(
                "Attempting to replace %s with %s for %d", overridden, original, user_id
            )
            try:
                await client.set_display_name(guild_id, user_id, original)
            except NicknameError as exc:
                logger.warning("Failed to update %d: %r", user_id, exc)
                result.failed.add((guild_id, user_id))
            else:
                result.reverted += 1

    for guild_id in await run_db(ledger.override_guilds):
        entries = await run_db(ledger.iter_overrides, guild_id)
        originals = dict(await run_db(ledger.iter_originals, guild_id))
        await asyncio.gather(*(
            _examine(guild_id, user_id, name, originals.get(user_id))
            for user_id, name in entries
        ))
        # Tracking is done for every examined entry, reverted or not.
        await run_db(ledger.remove_overrides, guild_id, [u for u, _ in entries])
        result.examined += len(entries)
        result.guilds.append(guild_id)

    logger.info(
        "Overridden-only restore: %d examined, %d reverted, %d left alone, %d failed",
        result.examined, result.reverted, result.skipped, len(result.failed),
    )
    return result
