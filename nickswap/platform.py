"""
nickswap.platform — Platform Snapshots & Collaborator Interfaces
================================================================

The services never touch discord.py objects directly.  Everything they
need from Discord is reduced to two small interfaces:

- :class:`GuildCache` — read-only lookups against the gateway cache.  Every
  lookup may come back ``None``; callers treat that as a soft miss.
- :class:`NicknameClient` — the two REST calls we make.  Failures surface
  as :class:`NicknameError` whatever the transport.

:mod:`nickswap.bot.adapters` implements both over a live ``discord.Client``;
tests implement them in memory.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class MemberInfo:
    """A guild member as seen by one sync pass."""

    user_id: int
    username: str          # account name, the last-resort fallback
    display_name: str      # what the guild currently shows
    role_ids: frozenset[int] = field(default_factory=frozenset)


@dataclass(frozen=True, slots=True)
class ActivityInfo:
    """One presence activity, reduced to the fields detection needs."""

    playing: bool
    name: str | None = None
    application_id: int | None = None
    persona: str | None = None  # large-image hover text (in-game persona)


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------
class GuildCache(Protocol):
    """Read-only view of the gateway cache."""

    def channel_members(self, guild_id: int, channel_id: int) -> list[MemberInfo] | None:
        ...

    def activities(self, guild_id: int, user_id: int) -> Sequence[ActivityInfo] | None:
        ...

    def role_positions(self, guild_id: int) -> dict[int, int] | None:
        ...

    def own_role_ids(self, guild_id: int) -> set[int] | None:
        ...

    def voice_channel_ids(self, guild_id: int) -> list[int] | None:
        ...

    def channel_of(self, guild_id: int, user_id: int) -> int | None:
        ...


class NicknameError(Exception):
    """A nickname REST call failed (missing permission, unknown member, HTTP error)."""


class NicknameClient(Protocol):
    """REST calls.  Both raise :class:`NicknameError` on failure."""

    async def set_display_name(self, guild_id: int, user_id: int, name: str) -> None:
        ...

    async def get_display_name(self, guild_id: int, user_id: int) -> str:
        ...
