"""
nickswap.services.sync_service — Five-phase channel sync
========================================================

One *sync pass* reassigns nicknames for everyone in one voice channel.
The phases run strictly in order and each one is durable before the next
starts; that ordering is what makes a crash at any point recoverable.

1. **RESOLVE**  — read members, roles and presences from the cache.  A
   miss aborts the pass quietly (the channel or guild raced away).
2. **ASSIGN**   — record canonical names for anyone without an override
   entry, then build the candidate list (derangement + fallbacks).
3. **PRE-COMMIT** — put every member back on their canonical name first.
   If we crash after this, Discord already shows safe names.
4. **LEDGER COMMIT** — replace the guild's override namespace with the names
   we are about to impose.  If we crash after this, a restore run can find
   and revert every one of them.
5. **APPLY**    — issue the new names, bounded fan-out, failures isolated.

There are no retries; a member whose edit failed stays diverged until the
next event triggers another pass.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections import defaultdict
from dataclasses import dataclass, field
from functools import partial

from nickswap.constants import MAX_CHANNEL_SYNCS_IN_FLIGHT, MAX_RENAMES_IN_FLIGHT
from nickswap.database.engine import run_db
from nickswap.engine.activity import ActivityDetector
from nickswap.engine.assignment import Assignment, assign_names
from nickswap.platform import GuildCache, MemberInfo, NicknameClient
from nickswap.services.ledger import OverrideLedger
from nickswap.services.rename_service import set_nicks

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SyncResult:
    """Summary of one completed pass."""

    guild_id: int
    channel_id: int
    assignments: list[Assignment] = field(default_factory=list)
    restored: int = 0
    staged: int = 0
    failed: set[int] = field(default_factory=set)

    @property
    def renamed(self) -> int:
        return sum(1 for a in self.assignments if a.renameable) - len(self.failed)


class SyncService:
    """Runs sync passes against one ledger, cache and REST client.

    Passes for different channels may run concurrently.  The only shared
    write is the guild's override namespace, and that read-modify-write is
    serialized per guild within this process.
    """

    def __init__(
        self,
        ledger: OverrideLedger,
        cache: GuildCache,
        client: NicknameClient,
        detector: ActivityDetector,
        rename_concurrency: int = MAX_RENAMES_IN_FLIGHT,
        rng: random.Random | None = None,
    ) -> None:
        self.ledger = ledger
        self.cache = cache
        self.client = client
        self.detector = detector
        self.rename_concurrency = rename_concurrency
        self.rng = rng
        self._commit_locks: defaultdict[int, asyncio.Lock] = defaultdict(asyncio.Lock)

    # -----------------------------------------------------------------------
    # The pass
    # -----------------------------------------------------------------------
    async def sync_channel(self, guild_id: int, channel_id: int) -> SyncResult | None:
        """Run one five-phase pass.  Returns ``None`` if the pass was aborted."""
        logger.info("Syncing nicknames for channel %d in guild %d", channel_id, guild_id)

        # 1. RESOLVE
        members = self.cache.channel_members(guild_id, channel_id)
        role_positions = self.cache.role_positions(guild_id)
        own_roles = self.cache.own_role_ids(guild_id)
        if members is None or role_positions is None or own_roles is None:
            logger.debug(
                "Channel %d / guild %d not in cache; skipping pass", channel_id, guild_id
            )
            return None
        activities = {
            m.user_id: list(self.cache.activities(guild_id, m.user_id) or ())
            for m in members
        }

        # 2. ASSIGN
        await run_db(self.ledger.record_guild_members, guild_id, members)
        assignments = await run_db(
            assign_names,
            members,
            activities,
            self.detector,
            role_positions,
            own_roles,
            partial(self.ledger.get_original, guild_id),
            self.rng,
        )
        targets = [a for a in assignments if a.renameable]
        for a in assignments:
            if not a.renameable:
                logger.info(
                    "Skipping %s (%d): role is not below ours",
                    a.member.username, a.member.user_id,
                )
        originals = await run_db(
            self._lookup_originals, guild_id, [a.member.user_id for a in targets]
        )
        result = SyncResult(guild_id=guild_id, channel_id=channel_id, assignments=assignments)

        # 3. PRE-COMMIT — old names first.  The cache may lag behind our last
        # APPLY, so every ledgered name is reissued.
        old_nicks = [
            (a.member.user_id, originals[a.member.user_id])
            for a in targets
            if a.member.user_id in originals
        ]
        await set_nicks(self.client, guild_id, old_nicks, self.rename_concurrency)
        result.restored = len(old_nicks)

        # 4. LEDGER COMMIT — every member we are about to rename is tracked,
        # even one getting their own name back, so that a stale cached name
        # can never be recorded as canonical while they sit in voice.
        present = {m.user_id for m in members}
        overrides = [(a.member.user_id, a.name) for a in targets]
        async with self._commit_locks[guild_id]:
            await run_db(self._commit_overrides, guild_id, present, overrides)
        result.staged = len(overrides)

        # 5. APPLY — new names last
        result.failed = await set_nicks(
            self.client,
            guild_id,
            [(a.member.user_id, a.name) for a in targets],
            self.rename_concurrency,
        )
        return result

    def _lookup_originals(self, guild_id: int, user_ids: list[int]) -> dict[int, str]:
        originals: dict[int, str] = {}
        for user_id in user_ids:
            name = self.ledger.get_original(guild_id, user_id)
            if name is not None:
                originals[user_id] = name
        return originals

    def _commit_overrides(
        self,
        guild_id: int,
        present: set[int],
        overrides: list[tuple[int, str]],
    ) -> bool:
        """Replace the override namespace, keeping other channels' entries.

        Overrides for members outside this channel belong to other passes
        and are carried over unchanged.
        """
        carried = [
            (user_id, name)
            for user_id, name in self.ledger.iter_overrides(guild_id)
            if user_id not in present
        ]
        return self.ledger.clear_and_stage_overrides(guild_id, carried + overrides)

    # -----------------------------------------------------------------------
    # Triggers
    # -----------------------------------------------------------------------
    async def sync_guild(self, guild_id: int, members: list[MemberInfo]) -> list[SyncResult]:
        """Bulk load: record every cached member, then sync each voice channel."""
        await run_db(self.ledger.record_guild_members, guild_id, members)

        channel_ids = self.cache.voice_channel_ids(guild_id) or []
        semaphore = asyncio.Semaphore(MAX_CHANNEL_SYNCS_IN_FLIGHT)

        async def _one(channel_id: int) -> SyncResult | None:
            async with semaphore:
                logger.info("Examining channel %d in guild %d", channel_id, guild_id)
                return await self.sync_channel(guild_id, channel_id)

        results = await asyncio.gather(*(_one(c) for c in channel_ids))
        return [r for r in results if r is not None]

    async def sync_member_channel(self, guild_id: int, user_id: int) -> SyncResult | None:
        """Presence change: resync the voice channel the member sits in, if any."""
        channel_id = self.cache.channel_of(guild_id, user_id)
        if channel_id is None:
            return None
        return await self.sync_channel(guild_id, channel_id)

    async def restore_departed(self, guild_id: int, member: MemberInfo) -> bool:
        """Give a member who left voice their canonical name back.

        Falls back to the username when no canonical name is recorded.  Once
        the rename is confirmed the override entry is dropped; the canonical
        entry stays for the member's next session.  A failed rename keeps the
        override so a restore run can still find the member.

        Returns ``True`` if no rename was needed or the rename succeeded.
        """
        name = await run_db(self.ledger.get_original, guild_id, member.user_id)
        name = name or member.username
        override = await run_db(self.ledger.get_override, guild_id, member.user_id)
        if override is None and member.display_name == name:
            return True

        logger.info(
            "Restoring nickname %s to %s (%d)", name, member.username, member.user_id
        )
        failed = await set_nicks(self.client, guild_id, [(member.user_id, name)])
        if not failed:
            await run_db(self.ledger.remove_overrides, guild_id, [member.user_id])
        return not failed

    async def handle_voice_update(
        self,
        guild_id: int,
        member: MemberInfo,
        before_channel_id: int | None,
        after_channel_id: int | None,
    ) -> None:
        """Voice join / move / leave.

        A member leaving voice gets their name back.  The channel they left
        is re-dealt and the channel they joined is synced.  A member who
        moves keeps their override until the new channel's pass replaces it,
        so the stale cached name is never mistaken for a canonical one.
        """
        if before_channel_id == after_channel_id:
            return

        jobs = []
        if before_channel_id is not None:
            if after_channel_id is None:
                await self.restore_departed(guild_id, member)
            jobs.append(self.sync_channel(guild_id, before_channel_id))
        if after_channel_id is not None:
            jobs.append(self.sync_channel(guild_id, after_channel_id))
        await asyncio.gather(*jobs)
