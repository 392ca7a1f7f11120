"""
nickswap.engine.assignment — Donor derangement & candidate names
================================================================

Every member in a voice channel is paired with a *donor*: another member
whose in-game persona they will wear.  The pairing is a derangement, so
nobody is ever handed their own persona while anyone else is present.

Candidate name for each member, first hit wins:

1. the persona detected on their donor,
2. the name stored for them in the canonical ledger,
3. their account username.

Pure logic: ledger reads come in through a plain ``lookup_original``
callable so this module never touches the database itself.
"""

from __future__ import annotations

import enum
import logging
import random
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass

from nickswap.engine.activity import ActivityDetector
from nickswap.engine.permissions import can_rename
from nickswap.platform import ActivityInfo, MemberInfo

logger = logging.getLogger(__name__)

__all__ = ["NameSource", "Assignment", "gen_derangement", "assign_names"]


class NameSource(enum.StrEnum):
    """Where a candidate name came from."""
    PERSONA = "persona"
    LEDGER = "ledger"
    USERNAME = "username"


@dataclass(frozen=True, slots=True)
class Assignment:
    """One member's candidate name for this pass."""

    member: MemberInfo
    name: str
    donor_id: int
    source: NameSource
    renameable: bool


def gen_derangement(size: int, rng: random.Random | None = None) -> list[int]:
    """Return a permutation of ``range(size)`` with no fixed points.

    ``size`` 0 and 1 have no derangement; they return ``[]`` and ``[0]``.
    For larger sizes a uniform shuffle is retried until it has no fixed
    point, which takes about e ≈ 2.7 shuffles on average.
    """
    if size == 0:
        return []
    if size == 1:
        return [0]

    rng = rng or random.Random()
    perm = list(range(size))
    while True:
        rng.shuffle(perm)
        if all(i != p for i, p in enumerate(perm)):
            return perm


def assign_names(
    members: Sequence[MemberInfo],
    activities: Mapping[int, Sequence[ActivityInfo]],
    detector: ActivityDetector,
    role_positions: Mapping[int, int],
    own_role_ids: set[int],
    lookup_original: Callable[[int], str | None],
    rng: random.Random | None = None,
) -> list[Assignment]:
    """Build exactly one :class:`Assignment` per member, in input order.

    Parameters
    ----------
    members:
        Everyone currently in the channel.
    activities:
        ``user_id → activities``; missing users are treated as idle.
    lookup_original:
        Reads a member's canonical ledger name (``None`` if unknown).
    """
    derangement = gen_derangement(len(members), rng)
    assignments: list[Assignment] = []

    for index, member in enumerate(members):
        donor = members[derangement[index]]
        persona = detector.detect(activities.get(donor.user_id, ()))

        if persona is not None:
            name, source = persona, NameSource.PERSONA
            logger.info(
                "Selected persona %s (from %s (%d)) as nick for %s (%d)",
                persona, donor.username, donor.user_id, member.username, member.user_id,
            )
        else:
            original = lookup_original(member.user_id)
            if original is not None:
                name, source = original, NameSource.LEDGER
            else:
                name, source = member.username, NameSource.USERNAME
            logger.info(
                "No persona for %s (%d); selected %s nick %s for %s (%d)",
                donor.username, donor.user_id, source, name,
                member.username, member.user_id,
            )

        assignments.append(Assignment(
            member=member,
            name=name,
            donor_id=donor.user_id,
            source=source,
            renameable=can_rename(role_positions, own_role_ids, member.role_ids),
        ))

    return assignments
