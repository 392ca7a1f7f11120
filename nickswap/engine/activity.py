"""
nickswap.engine.activity — In-game persona detection
=====================================================

Pulls the persona label (e.g. the champion being played) out of a member's
presence.  The game client publishes it as the hover text of the rich
presence's large image.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from nickswap.platform import ActivityInfo

logger = logging.getLogger(__name__)


class ActivityDetector:
    """Matches activities against one target game.

    The game may be configured by name, by application id, or both; either
    identity is enough for a match.
    """

    def __init__(
        self,
        game_name: str | None = None,
        application_id: int | None = None,
    ) -> None:
        if game_name is None and application_id is None:
            raise ValueError("ActivityDetector needs a game name or application id")
        self.game_name = game_name
        self.application_id = application_id

    def is_target(self, activity: ActivityInfo) -> bool:
        if self.application_id is not None and activity.application_id == self.application_id:
            return True
        return self.game_name is not None and activity.name == self.game_name

    def detect(self, activities: Iterable[ActivityInfo]) -> str | None:
        """Return the persona of the first matching activity, else ``None``."""
        for activity in activities:
            logger.debug("Checking activity %r", activity)
            if activity.playing and self.is_target(activity) and activity.persona:
                return activity.persona
        return None
