"""
nickswap.engine.permissions — Role-hierarchy rename check
=========================================================

Discord only lets a member edit the nickname of someone whose highest role
sits strictly below its own.  We mirror that rule so we never spend a REST
call on an edit that is guaranteed to be rejected.

Positions are recomputed on every pass; roles can be reordered at any time.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

logger = logging.getLogger(__name__)


def role_position(role_positions: Mapping[int, int], role_ids: Iterable[int]) -> int:
    """Highest position among *role_ids*; 0 when none are known.

    Role ids absent from the catalog are ignored.
    """
    role_ids = list(role_ids)
    positions = [role_positions[r] for r in role_ids if r in role_positions]
    if not positions:
        # Every member holds @everyone, so this means a stale catalog.
        logger.info("No known roles in %s; treating position as 0", role_ids)
        return 0
    return max(positions)


def can_rename(
    role_positions: Mapping[int, int],
    own_role_ids: Iterable[int],
    member_role_ids: Iterable[int],
) -> bool:
    """True if the bot outranks the member."""
    return role_position(role_positions, member_role_ids) < role_position(
        role_positions, own_role_ids
    )
