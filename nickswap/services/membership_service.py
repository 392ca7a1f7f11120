"""
nickswap.services.membership_service — Ledger bookkeeping for member events
===========================================================================

Keeps canonical names current as members join, rename themselves and
leave.  Plain sync functions; cogs call them through ``run_db()``.
"""

from __future__ import annotations

import logging

from nickswap.platform import MemberInfo
from nickswap.services.ledger import OverrideLedger

logger = logging.getLogger(__name__)


def record_new_member(ledger: OverrideLedger, guild_id: int, member: MemberInfo) -> bool:
    """A member joined the guild: their current name is canonical."""
    return ledger.record_guild_members(guild_id, [member])


def reconcile_member_update(ledger: OverrideLedger, guild_id: int, member: MemberInfo) -> bool:
    """Adopt a name change that did not come from us.

    While we hold an override for the member nothing is adopted: the new
    name may be one of our own older edits arriving late, and there is no
    telling it apart from a human rename.  Such renames are picked up once
    the member leaves voice, or set explicitly with ``nickswap set``.

    Returns ``True`` if the ledger was updated.
    """
    override = ledger.get_override(guild_id, member.user_id)
    if override is not None:
        if member.display_name != override:
            logger.info(
                "%s (%d) shows %s while override %s is active; canonical name kept",
                member.username, member.user_id, member.display_name, override,
            )
        return False

    if member.display_name == ledger.get_original(guild_id, member.user_id):
        return False

    logger.info(
        "%s (%d) renamed to %s outside of sync; adopting as canonical",
        member.username, member.user_id, member.display_name,
    )
    return ledger.record_guild_members(guild_id, [member])


def forget_member(ledger: OverrideLedger, guild_id: int, user_id: int) -> bool:
    """A member left the guild: drop them from both namespaces."""
    logger.info("Forgetting member %d in guild %d", user_id, guild_id)
    return ledger.remove_member(guild_id, user_id)
