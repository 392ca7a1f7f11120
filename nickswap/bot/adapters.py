"""
nickswap.bot.adapters — discord.py implementations of the platform interfaces
=============================================================================

:class:`DiscordGuildCache` answers :class:`~nickswap.platform.GuildCache`
lookups from a connected client's gateway cache.  :class:`DiscordNicknameClient`
makes the two REST calls through discord.py's HTTP client, so it also works
for a REST-only login (the ``restore`` command never opens a gateway).

Bot accounts are left out of every member list; we never rename bots.
"""

from __future__ import annotations

import logging

import discord

from nickswap.platform import ActivityInfo, MemberInfo, NicknameError

logger = logging.getLogger(__name__)


def member_info(member: discord.Member) -> MemberInfo:
    """Snapshot a :class:`discord.Member`."""
    return MemberInfo(
        user_id=member.id,
        username=member.name,
        display_name=member.display_name,
        role_ids=frozenset(role.id for role in member.roles),
    )


def activity_info(activity: discord.activity.ActivityTypes) -> ActivityInfo:
    """Snapshot one presence activity.

    Only rich-presence :class:`discord.Activity` objects carry an application
    id and image text; other kinds (``Game``, ``Spotify``, …) come back with
    those fields empty.
    """
    return ActivityInfo(
        playing=activity.type == discord.ActivityType.playing,
        name=activity.name,
        application_id=getattr(activity, "application_id", None),
        persona=getattr(activity, "large_image_text", None),
    )


class DiscordGuildCache:
    """:class:`~nickswap.platform.GuildCache` over a live client."""

    def __init__(self, client: discord.Client) -> None:
        self.client = client

    def _guild(self, guild_id: int) -> discord.Guild | None:
        guild = self.client.get_guild(guild_id)
        if guild is None:
            logger.debug("Guild %d not in cache", guild_id)
        return guild

    def channel_members(self, guild_id: int, channel_id: int) -> list[MemberInfo] | None:
        guild = self._guild(guild_id)
        if guild is None:
            return None
        channel = guild.get_channel(channel_id)
        if not isinstance(channel, discord.VoiceChannel | discord.StageChannel):
            return None
        return [member_info(m) for m in channel.members if not m.bot]

    def activities(self, guild_id: int, user_id: int) -> list[ActivityInfo] | None:
        guild = self._guild(guild_id)
        member = guild.get_member(user_id) if guild else None
        if member is None:
            return None
        return [activity_info(a) for a in member.activities]

    def role_positions(self, guild_id: int) -> dict[int, int] | None:
        guild = self._guild(guild_id)
        if guild is None:
            return None
        return {role.id: role.position for role in guild.roles}

    def own_role_ids(self, guild_id: int) -> set[int] | None:
        guild = self._guild(guild_id)
        if guild is None or guild.me is None:
            return None
        return {role.id for role in guild.me.roles}

    def voice_channel_ids(self, guild_id: int) -> list[int] | None:
        guild = self._guild(guild_id)
        if guild is None:
            return None
        return [c.id for c in guild.voice_channels]

    def channel_of(self, guild_id: int, user_id: int) -> int | None:
        guild = self._guild(guild_id)
        member = guild.get_member(user_id) if guild else None
        if member is None or member.voice is None or member.voice.channel is None:
            return None
        return member.voice.channel.id


class DiscordNicknameClient:
    """:class:`~nickswap.platform.NicknameClient` over discord.py's HTTP layer."""

    def __init__(self, http: discord.http.HTTPClient) -> None:
        self.http = http

    async def set_display_name(self, guild_id: int, user_id: int, name: str) -> None:
        try:
            await self.http.edit_member(guild_id, user_id, nick=name)
        except discord.HTTPException as exc:
            raise NicknameError(f"edit of {user_id} in {guild_id} failed: {exc}") from exc

    async def get_display_name(self, guild_id: int, user_id: int) -> str:
        try:
            data = await self.http.get_member(guild_id, user_id)
        except discord.HTTPException as exc:
            raise NicknameError(f"lookup of {user_id} in {guild_id} failed: {exc}") from exc
        user = data["user"]
        return data.get("nick") or user.get("global_name") or user["username"]
