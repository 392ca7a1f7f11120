"""
Nickswap — Voice-Channel Nickname Swapping for Discord
=======================================================
Watches who is sitting in each voice channel, hands every member a name
taken from another member's in-game persona, and keeps a crash-safe ledger
so the real names can always be put back.

Package layout::

    nickswap/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Namespace tags, fan-out limits
    ├── platform.py        # Cache / REST interfaces the services consume
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   └── models.py      # name_ledger key-value table
    ├── engine/
    │   ├── activity.py    # In-game persona detection
    │   ├── permissions.py # Role-hierarchy rename check
    │   └── assignment.py  # Derangement + candidate names
    ├── services/
    │   ├── ledger.py          # Canonical / override namespaces
    │   ├── rename_service.py  # Bounded nickname fan-out
    │   ├── sync_service.py    # Five-phase channel sync
    │   ├── membership_service.py  # Member join/rename/leave
    │   └── restore_service.py # One-shot restoration
    └── bot/
        ├── core.py        # Bot subclass, cog loader
        ├── adapters.py    # discord.py → platform interfaces
        └── cogs/
            ├── voice.py       # Voice join/move/leave
            ├── presence.py    # Presence changes
            └── membership.py  # Join/update/leave bookkeeping
"""

__version__ = "0.1.0"
