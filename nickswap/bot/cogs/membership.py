"""
nickswap.bot.cogs.membership — Member join/update/leave bookkeeping
===================================================================

Keeps the canonical-name ledger in step with the guild's member list.
Requires the GUILD_MEMBERS privileged intent.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from nickswap.bot.adapters import member_info
from nickswap.database.engine import run_db
from nickswap.services.membership_service import (
    forget_member,
    reconcile_member_update,
    record_new_member,
)

if TYPE_CHECKING:
    from nickswap.bot.core import NickswapBot

logger = logging.getLogger(__name__)


class Membership(commands.Cog, name="Membership"):
    """Records canonical names and forgets departed members."""

    def __init__(self, bot: NickswapBot) -> None:
        self.bot = bot

    @commands.Cog.listener()
    async def on_member_join(self, member: discord.Member) -> None:
        """GUILD_MEMBER_ADD → record the member's name as canonical."""
        try:
            if member.bot:
                return
            await run_db(record_new_member, self.bot.ledger, member.guild.id, member_info(member))
            logger.info("Member joined: %s (ID: %d)", member.display_name, member.id)
        except Exception:
            logger.exception("Error processing member_join for %s", member.id)

    @commands.Cog.listener()
    async def on_member_update(self, before: discord.Member, after: discord.Member) -> None:
        """GUILD_MEMBER_UPDATE → adopt name changes we did not make."""
        if after.bot or before.display_name == after.display_name:
            return
        try:
            await run_db(
                reconcile_member_update, self.bot.ledger, after.guild.id, member_info(after),
            )
        except Exception:
            logger.exception("Error processing member_update for %s", after.id)

    @commands.Cog.listener()
    async def on_member_remove(self, member: discord.Member) -> None:
        """GUILD_MEMBER_REMOVE → drop the member from the ledger."""
        try:
            await run_db(forget_member, self.bot.ledger, member.guild.id, member.id)
            logger.info("Member left: %s (ID: %d)", member.display_name, member.id)
        except Exception:
            logger.exception("Error processing member_leave for %s", member.id)


async def setup(bot: NickswapBot) -> None:
    await bot.add_cog(Membership(bot))
