"""
nickswap.bot.cogs.voice — Voice join/move/leave triggers
=========================================================

Every voice state change that moves a member between channels triggers a
sync pass for the channel they left and the one they joined.  Mute/deafen
toggles inside one channel are ignored.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from nickswap.bot.adapters import member_info

if TYPE_CHECKING:
    from nickswap.bot.core import NickswapBot

logger = logging.getLogger(__name__)


class Voice(commands.Cog, name="Voice"):
    """Re-deals nicknames whenever a voice channel's roster changes."""

    def __init__(self, bot: NickswapBot) -> None:
        self.bot = bot

    @commands.Cog.listener()
    async def on_voice_state_update(
        self,
        member: discord.Member,
        before: discord.VoiceState,
        after: discord.VoiceState,
    ) -> None:
        if member.bot:
            return

        before_ch = before.channel.id if before.channel else None
        after_ch = after.channel.id if after.channel else None
        if before_ch == after_ch:
            return

        logger.info(
            "Gateway event: VOICE_STATE %s (%s → %s)",
            member.name,
            getattr(before.channel, "name", "None"),
            getattr(after.channel, "name", "None"),
        )
        try:
            await self.bot.sync.handle_voice_update(
                member.guild.id, member_info(member), before_ch, after_ch,
            )
        except Exception:
            logger.exception("Error processing voice state update for user %s", member.id)


async def setup(bot: NickswapBot) -> None:
    await bot.add_cog(Voice(bot))
