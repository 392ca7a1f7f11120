"""
nickswap.bot.cogs.presence — Presence change trigger
=====================================================

When a member in voice starts, stops or switches persona in the target
game, their channel is re-dealt.  Presence updates that do not change the
detected persona (status flips, other games) are ignored.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from nickswap.bot.adapters import activity_info

if TYPE_CHECKING:
    from nickswap.bot.core import NickswapBot

logger = logging.getLogger(__name__)


class Presence(commands.Cog, name="Presence"):
    """Watches for in-game persona changes."""

    def __init__(self, bot: NickswapBot) -> None:
        self.bot = bot

    def _persona(self, member: discord.Member) -> str | None:
        return self.bot.detector.detect(activity_info(a) for a in member.activities)

    @commands.Cog.listener()
    async def on_presence_update(self, before: discord.Member, after: discord.Member) -> None:
        if after.bot or after.voice is None or after.voice.channel is None:
            return

        persona = self._persona(after)
        if persona == self._persona(before):
            return

        logger.info("Persona for %s (%d) is now %s", after.name, after.id, persona)
        try:
            await self.bot.sync.sync_member_channel(after.guild.id, after.id)
        except Exception:
            logger.exception("Error processing presence update for user %s", after.id)


async def setup(bot: NickswapBot) -> None:
    await bot.add_cog(Presence(bot))
