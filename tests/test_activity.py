"""
tests/test_activity.py — Persona Detection Tests
=================================================
"""

from __future__ import annotations

import pytest

from nickswap.engine.activity import ActivityDetector
from nickswap.platform import ActivityInfo

LOL_APP_ID = 401518684763586560


class TestActivityDetector:
    def test_empty_presence_yields_none(self):
        assert ActivityDetector("League of Legends").detect([]) is None

    def test_matches_by_name(self):
        detector = ActivityDetector("League of Legends")
        activity = ActivityInfo(playing=True, name="League of Legends", persona="Ashe")
        assert detector.detect([activity]) == "Ashe"

    def test_matches_by_application_id(self):
        detector = ActivityDetector(application_id=LOL_APP_ID)
        activity = ActivityInfo(
            playing=True, name="renamed client", application_id=LOL_APP_ID, persona="Jhin",
        )
        assert detector.detect([activity]) == "Jhin"

    def test_either_identity_is_enough(self):
        detector = ActivityDetector("League of Legends", LOL_APP_ID)
        by_id = ActivityInfo(playing=True, name="x", application_id=LOL_APP_ID, persona="Sett")
        by_name = ActivityInfo(playing=True, name="League of Legends", persona="Nami")
        assert detector.detect([by_id]) == "Sett"
        assert detector.detect([by_name]) == "Nami"

    def test_not_playing_is_ignored(self):
        """Streaming / watching the same game does not count."""
        detector = ActivityDetector("League of Legends")
        activity = ActivityInfo(playing=False, name="League of Legends", persona="Ashe")
        assert detector.detect([activity]) is None

    def test_other_game_is_ignored(self):
        detector = ActivityDetector("League of Legends")
        activity = ActivityInfo(playing=True, name="Dota 2", persona="Pudge")
        assert detector.detect([activity]) is None

    def test_missing_persona_is_ignored(self):
        """In the client lobby there is no persona yet."""
        detector = ActivityDetector("League of Legends")
        lobby = ActivityInfo(playing=True, name="League of Legends", persona=None)
        assert detector.detect([lobby]) is None

    def test_first_match_wins(self):
        detector = ActivityDetector("League of Legends")
        activities = [
            ActivityInfo(playing=True, name="Spotify", persona="Song"),
            ActivityInfo(playing=True, name="League of Legends", persona="Riven"),
            ActivityInfo(playing=True, name="League of Legends", persona="Poppy"),
        ]
        assert detector.detect(activities) == "Riven"

    def test_requires_an_identity(self):
        with pytest.raises(ValueError):
            ActivityDetector(None, None)
