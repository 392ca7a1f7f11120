"""
tests/helpers.py — Builders & Platform Fakes
=============================================

In-memory stand-ins for the gateway cache and the nickname REST client,
plus small builders for members and activities.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from nickswap.platform import ActivityInfo, MemberInfo, NicknameError
from nickswap.services.ledger import OverrideLedger

GUILD_ID = 111222333
CHANNEL_ID = 4242
BOT_ROLE = 900
MEMBER_ROLE = 100

def run_async(coro):
    """Run an async coroutine in a new event loop (no pytest-asyncio)."""
    return asyncio.run(coro)

def member(user_id: int, name: str, display: str | None = None, roles=(MEMBER_ROLE,)) -> MemberInfo:
    return MemberInfo(
        user_id=user_id,
        username=name,
        display_name=display or name,
        role_ids=frozenset(roles),
    )

def playing(persona: str, game: str = "League of Legends") -> ActivityInfo:
    return ActivityInfo(playing=True, name=game, persona=persona)

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------
class FakeCache:
    """In-memory :class:`~nickswap.platform.GuildCache` for one guild."""

    def __init__(self, guild_id: int = GUILD_ID) -> None:
        self.guild_id = guild_id
        self.channels: dict[int, list[MemberInfo]] = {}
        self.presences: dict[int, list[ActivityInfo]] = {}
        self.roles: dict[int, int] = {MEMBER_ROLE: 1, BOT_ROLE: 5}
        self.own_roles: set[int] = {BOT_ROLE}

    def channel_members(self, guild_id, channel_id):
        if guild_id != self.guild_id or channel_id not in self.channels:
            return None
        return list(self.channels[channel_id])

    def activities(self, guild_id, user_id):
        return self.presences.get(user_id)

    def role_positions(self, guild_id):
        return dict(self.roles) if guild_id == self.guild_id else None

    def own_role_ids(self, guild_id):
        return set(self.own_roles) if guild_id == self.guild_id else None

    def voice_channel_ids(self, guild_id):
        return list(self.channels) if guild_id == self.guild_id else None

    def channel_of(self, guild_id, user_id):
        for channel_id, members in self.channels.items():
            if any(m.user_id == user_id for m in members):
                return channel_id
        return None

class FakeNicknames:
    """In-memory :class:`~nickswap.platform.NicknameClient`.

    ``names`` holds what Discord "shows"; ``calls`` logs every edit in
    order; ids in ``fail`` raise on edit.  When ``ledger`` is set, the
    canonical namespace is snapshotted just before the first edit.
    """

    def __init__(self, ledger: OverrideLedger | None = None) -> None:
        self.names: dict[tuple[int, int], str] = {}
        self.calls: list[tuple[int, int, str]] = []
        self.fail: set[int] = set()
        self.ledger = ledger
        self.originals_at_first_call: list[tuple[int, str]] | None = None

    def show(self, guild_id: int, members: Sequence[MemberInfo]) -> None:
        for m in members:
            self.names[(guild_id, m.user_id)] = m.display_name

    async def set_display_name(self, guild_id, user_id, name):
        if self.ledger is not None and self.originals_at_first_call is None:
            self.originals_at_first_call = self.ledger.iter_originals(guild_id)
        self.calls.append((guild_id, user_id, name))
        if user_id in self.fail:
            raise NicknameError(f"403 Forbidden for {user_id}")
        self.names[(guild_id, user_id)] = name

    async def get_display_name(self, guild_id, user_id):
        try:
            return self.names[(guild_id, user_id)]
        except KeyError:
            raise NicknameError(f"404 Unknown Member {user_id}") from None

