"""
nickswap.bot.__main__ — Entry point for ``python -m nickswap.bot``
==================================================================

Commands::

    python -m nickswap.bot                       # run the bot (default)
    python -m nickswap.bot run
    python -m nickswap.bot restore               # everyone back to canonical
    python -m nickswap.bot restore --overridden-only
    python -m nickswap.bot set --guild-id G --user-id U --name NAME

Wiring:
1. Load .env (secrets).
2. Load config.yaml (soft settings).
3. Create the SQLAlchemy engine and ensure the ledger table exists.
4. Dispatch the command; the engine is disposed on the way out.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

import discord
from dotenv import load_dotenv

from nickswap.bot.adapters import DiscordNicknameClient
from nickswap.bot.core import NickswapBot
from nickswap.config import NickswapConfig, load_config
from nickswap.database.engine import create_db_engine, init_db
from nickswap.services.ledger import OverrideLedger
from nickswap.services.restore_service import restore_all, restore_overridden

logger = logging.getLogger("nickswap")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nickswap",
        description="Swap voice-channel nicknames by in-game persona.",
    )
    parser.add_argument("--config", default="config.yaml", help="Path to config.yaml")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("run", help="Connect to Discord and keep nicknames in sync")

    restore = sub.add_parser("restore", help="Put canonical names back and exit")
    restore.add_argument(
        "--overridden-only",
        action="store_true",
        help="Only revert members still showing a name we imposed",
    )

    set_cmd = sub.add_parser("set", help="Set one member's canonical name")
    set_cmd.add_argument("-g", "--guild-id", type=int, required=True)
    set_cmd.add_argument("-u", "--user-id", type=int, required=True)
    set_cmd.add_argument("-n", "--name", required=True)
    return parser


async def _restore(token: str, cfg: NickswapConfig, ledger: OverrideLedger, overridden_only: bool) -> None:
    """REST-only login; no gateway connection is opened."""
    client = discord.Client(intents=discord.Intents.none())
    async with client:
        await client.login(token)
        nicknames = DiscordNicknameClient(client.http)
        if overridden_only:
            await restore_overridden(ledger, nicknames, cfg.rename_concurrency)
        else:
            await restore_all(ledger, nicknames, cfg.rename_concurrency)


def main(argv: list[str] | None = None) -> None:
    """Bootstrap and dispatch."""
    args = build_parser().parse_args(argv)

    # 1. Environment variables (secrets).
    load_dotenv()

    # 2. Soft configuration.
    cfg = load_config(args.config)
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
        datefmt="%H:%M:%S",
    )
    logger.setLevel(cfg.log_level)

    # 3. Database.
    engine = create_db_engine()
    init_db(engine)
    ledger = OverrideLedger(engine)

    try:
        if args.command == "set":
            if not ledger.set_original(args.guild_id, args.user_id, args.name):
                sys.exit(1)
            return

        token = os.getenv("DISCORD_TOKEN")
        if not token or token == "your-discord-bot-token-here":
            logger.critical(
                "DISCORD_TOKEN is not set.  "
                "Copy .env.example → .env and paste your bot token."
            )
            sys.exit(1)

        if args.command == "restore":
            asyncio.run(_restore(token, cfg, ledger, args.overridden_only))
            return

        bot = NickswapBot(cfg=cfg, engine=engine)
        logger.info("Starting Nickswap bot…")
        try:
            bot.run(token, log_handler=None)
        except KeyboardInterrupt:
            logger.info("Shutting down gracefully…")
    finally:
        engine.dispose()


if __name__ == "__main__":
    main()
