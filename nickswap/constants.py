"""
nickswap.constants — Shared Constants & Key Helpers
====================================================

Single source of truth for the ledger's byte layout.  Import from here
instead of re-deriving key widths in services or tests.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------
DEFAULT_GAME_NAME = "League of Legends"

# Discord rate-limits member edits per guild; keep the fan-out small.
MAX_RENAMES_IN_FLIGHT = 10

# Bulk guild load syncs this many voice channels at once.
MAX_CHANNEL_SYNCS_IN_FLIGHT = 10


# ---------------------------------------------------------------------------
# Ledger key layout
# ---------------------------------------------------------------------------
ID_WIDTH = 8  # snowflakes are u64, stored big-endian

# Override namespaces are tagged so they are one byte wider than any bare
# guild-id namespace and can never collide with one.
OVERRIDE_TAG = b"o"
OVERRIDE_NAMESPACE_WIDTH = len(OVERRIDE_TAG) + ID_WIDTH


def encode_id(snowflake: int) -> bytes:
    """Encode a Discord snowflake as an 8-byte big-endian key."""
    return snowflake.to_bytes(ID_WIDTH, "big")


def decode_id(key: bytes) -> int:
    """Inverse of :func:`encode_id`.

    Raises
    ------
    ValueError
        If *key* is not exactly 8 bytes wide.
    """
    if len(key) != ID_WIDTH:
        raise ValueError(f"expected {ID_WIDTH}-byte id key, got {len(key)} bytes")
    return int.from_bytes(key, "big")


def canonical_namespace(guild_id: int) -> bytes:
    """Namespace holding a guild's canonical names."""
    return encode_id(guild_id)


def override_namespace(guild_id: int) -> bytes:
    """Namespace holding a guild's active overrides."""
    return OVERRIDE_TAG + encode_id(guild_id)
