"""
nickswap.services.rename_service — Bounded nickname fan-out
===========================================================

Issues many independent nickname edits concurrently, at most *limit* in
flight, so a crowded channel does not trip Discord's per-guild rate limits.
Each edit stands alone: a failure is logged and never cancels its siblings.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

from nickswap.constants import MAX_RENAMES_IN_FLIGHT
from nickswap.platform import NicknameClient, NicknameError

logger = logging.getLogger(__name__)


async def set_nicks(
    client: NicknameClient,
    guild_id: int,
    nicks: Iterable[tuple[int, str]],
    limit: int = MAX_RENAMES_IN_FLIGHT,
) -> set[int]:
    """Rename every ``(user_id, name)`` in *nicks*.

    Returns the set of user ids whose edit failed.
    """
    semaphore = asyncio.Semaphore(limit)
    failed: set[int] = set()

    async def _one(user_id: int, nick: str) -> None:
        async with semaphore:
            logger.info("Setting nickname to %s for %d", nick, user_id)
            try:
                await client.set_display_name(guild_id, user_id, nick)
            except NicknameError as exc:
                logger.warning("Failed to set nickname for %d: %r", user_id, exc)
                failed.add(user_id)

    await asyncio.gather(*(_one(user_id, nick) for user_id, nick in nicks))
    return failed
