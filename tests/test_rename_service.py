"""
tests/test_rename_service.py — Bounded Rename Fan-out Tests
============================================================
"""

from __future__ import annotations

import asyncio

import pytest

from helpers import GUILD_ID, FakeNicknames, run_async
from nickswap.services.rename_service import set_nicks


class _SlowNicknames(FakeNicknames):
    """Tracks how many edits are in flight at once."""

    def __init__(self):
        super().__init__()
        self.in_flight = 0
        self.peak = 0

    async def set_display_name(self, guild_id, user_id, name):
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(0.01)
            await super().set_display_name(guild_id, user_id, name)
        finally:
            self.in_flight -= 1


class TestSetNicks:
    def test_all_edits_issued(self):
        client = FakeNicknames()
        failed = run_async(set_nicks(client, GUILD_ID, [(1, "a"), (2, "b"), (3, "c")]))
        assert failed == set()
        assert sorted(client.calls) == [(GUILD_ID, 1, "a"), (GUILD_ID, 2, "b"), (GUILD_ID, 3, "c")]

    def test_concurrency_is_bounded(self):
        client = _SlowNicknames()
        run_async(set_nicks(client, GUILD_ID, [(i, f"n{i}") for i in range(25)], limit=3))
        assert client.peak == 3
        assert len(client.calls) == 25

    def test_failures_are_isolated(self, caplog):
        client = FakeNicknames()
        client.fail = {2, 4}
        with caplog.at_level("WARNING"):
            failed = run_async(set_nicks(
                client, GUILD_ID, [(i, f"n{i}") for i in range(1, 6)],
            ))
        assert failed == {2, 4}
        assert client.names[(GUILD_ID, 5)] == "n5"
        assert "Failed to set nickname for 2" in caplog.text

    def test_unexpected_errors_propagate(self):
        """Only nickname failures are isolated; a programming error is not swallowed."""

        class _Broken(FakeNicknames):
            async def set_display_name(self, guild_id, user_id, name):
                raise ValueError("bad payload")

        with pytest.raises(ValueError):
            run_async(set_nicks(_Broken(), GUILD_ID, [(1, "a")]))

    def test_empty_batch(self):
        assert run_async(set_nicks(FakeNicknames(), GUILD_ID, [])) == set()
