"""
nickswap.bot.core — Bot Instance & Cog Loader
==============================================

Defines :class:`NickswapBot`, a ``commands.Bot`` subclass that:

1. Holds the shared config, DB engine, ledger and :class:`SyncService` so
   every cog reaches them through ``self.bot.*``.
2. Loads every cog listed in :data:`EXTENSIONS`.
3. Runs a bulk sync for each guild as it becomes available: canonical
   names for the whole member list, then one pass per voice channel.
"""

from __future__ import annotations

import logging

import discord
from discord.ext import commands
from sqlalchemy import Engine

from nickswap.bot.adapters import DiscordGuildCache, DiscordNicknameClient, member_info
from nickswap.config import NickswapConfig
from nickswap.engine.activity import ActivityDetector
from nickswap.services.ledger import OverrideLedger
from nickswap.services.sync_service import SyncService

logger = logging.getLogger(__name__)

EXTENSIONS: list[str] = [
    "nickswap.bot.cogs.voice",
    "nickswap.bot.cogs.presence",
    "nickswap.bot.cogs.membership",
]


class NickswapBot(commands.Bot):
    """Custom Bot subclass that carries project-wide state.

    Parameters
    ----------
    cfg:
        The parsed :class:`NickswapConfig` from ``config.yaml``.
    engine:
        A SQLAlchemy :class:`Engine` holding the name ledger.
    """

    def __init__(self, cfg: NickswapConfig, engine: Engine) -> None:
        # GUILD_PRESENCES and GUILD_MEMBERS are privileged; enable both in
        # the Developer Portal.
        intents = discord.Intents.none()
        intents.guilds = True
        intents.members = True
        intents.presences = True
        intents.voice_states = True

        super().__init__(command_prefix=commands.when_mentioned, intents=intents)

        self.cfg = cfg
        self.engine = engine
        self.ledger = OverrideLedger(engine)
        self.detector = ActivityDetector(cfg.target_game_name, cfg.target_application_id)
        self.sync = SyncService(
            ledger=self.ledger,
            cache=DiscordGuildCache(self),
            client=DiscordNicknameClient(self.http),
            detector=self.detector,
            rename_concurrency=cfg.rename_concurrency,
        )

    # -----------------------------------------------------------------------
    # Lifecycle hooks
    # -----------------------------------------------------------------------
    async def setup_hook(self) -> None:
        """Load all cog extensions; one broken cog must not stop the rest."""
        for ext in EXTENSIONS:
            try:
                await self.load_extension(ext)
                logger.info("Loaded extension: %s", ext)
            except Exception as exc:
                logger.error("Failed to load extension %s: %s", ext, exc)

    async def on_ready(self) -> None:
        assert self.user is not None
        logger.info("Logged in as %s (ID: %s)", self.user.name, self.user.id)

    async def on_guild_available(self, guild: discord.Guild) -> None:
        """GUILD_CREATE for a guild we were already in."""
        await self._sync_guild(guild)

    async def on_guild_join(self, guild: discord.Guild) -> None:
        await self._sync_guild(guild)

    async def _sync_guild(self, guild: discord.Guild) -> None:
        logger.info("Guild create for %s (%d)", guild.name, guild.id)
        try:
            members = [member_info(m) for m in guild.members if not m.bot]
            results = await self.sync.sync_guild(guild.id, members)
            logger.info(
                "Bulk sync for %s: %d members recorded, %d channels synced",
                guild.name, len(members), len(results),
            )
        except Exception:
            logger.exception("Error syncing guild %s (%d)", guild.name, guild.id)

    async def close(self) -> None:
        logger.info("Bot shutting down…")
        await super().close()
