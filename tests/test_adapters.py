"""
tests/test_adapters.py — discord.py Adapter Tests
==================================================
Uses SimpleNamespace/MagicMock stand-ins for discord.py objects; no
gateway connection is made.
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from helpers import GUILD_ID, run_async
from nickswap.bot.adapters import (
    DiscordGuildCache,
    DiscordNicknameClient,
    activity_info,
    member_info,
)
from nickswap.platform import NicknameError


def _discord_member(user_id, name, display=None, roles=(), bot=False, channel=None):
    return SimpleNamespace(
        id=user_id,
        name=name,
        display_name=display or name,
        roles=[SimpleNamespace(id=r) for r in roles],
        bot=bot,
        activities=[],
        voice=SimpleNamespace(channel=channel) if channel else None,
    )


def _client_with(guild):
    client = MagicMock()
    client.get_guild.side_effect = lambda gid: guild if gid == GUILD_ID else None
    return client


class TestSnapshots:
    def test_member_info(self):
        info = member_info(_discord_member(1, "alice", "Ali", roles=(10, 20)))
        assert info.user_id == 1
        assert info.username == "alice"
        assert info.display_name == "Ali"
        assert info.role_ids == frozenset({10, 20})

    def test_rich_presence_activity(self):
        activity = SimpleNamespace(
            type=discord.ActivityType.playing,
            name="League of Legends",
            application_id=401518684763586560,
            large_image_text="Ashe",
        )
        info = activity_info(activity)
        assert info.playing
        assert info.persona == "Ashe"
        assert info.application_id == 401518684763586560

    def test_plain_activity_has_no_persona(self):
        activity = SimpleNamespace(type=discord.ActivityType.listening, name="Spotify")
        info = activity_info(activity)
        assert not info.playing
        assert info.persona is None
        assert info.application_id is None


class TestDiscordGuildCache:
    def _guild(self):
        channel = MagicMock(spec=discord.VoiceChannel)
        channel.id = 77
        alice = _discord_member(1, "alice", roles=(10,), channel=channel)
        helper_bot = _discord_member(2, "helper", bot=True, channel=channel)
        channel.members = [alice, helper_bot]

        text_channel = MagicMock(spec=discord.TextChannel)
        members = {1: alice, 2: helper_bot}
        return SimpleNamespace(
            roles=[SimpleNamespace(id=10, position=1), SimpleNamespace(id=99, position=4)],
            me=SimpleNamespace(roles=[SimpleNamespace(id=99)]),
            voice_channels=[channel],
            get_channel=lambda cid: {77: channel, 78: text_channel}.get(cid),
            get_member=members.get,
        )

    def test_channel_members_excludes_bots(self):
        cache = DiscordGuildCache(_client_with(self._guild()))
        assert [m.user_id for m in cache.channel_members(GUILD_ID, 77)] == [1]

    def test_text_channel_is_not_voice(self):
        cache = DiscordGuildCache(_client_with(self._guild()))
        assert cache.channel_members(GUILD_ID, 78) is None
        assert cache.channel_members(GUILD_ID, 79) is None

    def test_unknown_guild(self):
        cache = DiscordGuildCache(_client_with(self._guild()))
        assert cache.channel_members(1, 77) is None
        assert cache.role_positions(1) is None
        assert cache.own_role_ids(1) is None
        assert cache.activities(1, 1) is None

    def test_roles(self):
        cache = DiscordGuildCache(_client_with(self._guild()))
        assert cache.role_positions(GUILD_ID) == {10: 1, 99: 4}
        assert cache.own_role_ids(GUILD_ID) == {99}

    def test_voice_lookups(self):
        cache = DiscordGuildCache(_client_with(self._guild()))
        assert cache.voice_channel_ids(GUILD_ID) == [77]
        assert cache.channel_of(GUILD_ID, 1) == 77
        assert cache.channel_of(GUILD_ID, 3) is None


class TestDiscordNicknameClient:
    def test_set_display_name(self):
        http = MagicMock()
        http.edit_member = AsyncMock()
        run_async(DiscordNicknameClient(http).set_display_name(GUILD_ID, 1, "Ashe"))
        http.edit_member.assert_awaited_once_with(GUILD_ID, 1, nick="Ashe")

    def test_display_name_precedence(self):
        http = MagicMock()
        client = DiscordNicknameClient(http)

        http.get_member = AsyncMock(return_value={
            "nick": "Ashe", "user": {"global_name": "Alice", "username": "alice"},
        })
        assert run_async(client.get_display_name(GUILD_ID, 1)) == "Ashe"

        http.get_member = AsyncMock(return_value={
            "nick": None, "user": {"global_name": "Alice", "username": "alice"},
        })
        assert run_async(client.get_display_name(GUILD_ID, 1)) == "Alice"

        http.get_member = AsyncMock(return_value={
            "user": {"global_name": None, "username": "alice"},
        })
        assert run_async(client.get_display_name(GUILD_ID, 1)) == "alice"

    def test_http_errors_surface_as_nickname_errors(self):
        forbidden = discord.Forbidden(
            SimpleNamespace(status=403, reason="Forbidden"), "Missing Permissions",
        )
        http = MagicMock()
        http.edit_member = AsyncMock(side_effect=forbidden)
        http.get_member = AsyncMock(side_effect=forbidden)
        client = DiscordNicknameClient(http)

        with pytest.raises(NicknameError) as excinfo:
            run_async(client.set_display_name(GUILD_ID, 1, "Ashe"))
        assert excinfo.value.__cause__ is forbidden

        with pytest.raises(NicknameError):
            run_async(client.get_display_name(GUILD_ID, 1))
