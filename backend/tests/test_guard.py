"""
AssetDesk Backend — Best-Effort Guard Unit Tests
==================================================

What we test:
    ✅ attempt() returns (True, value) on success
    ✅ attempt() returns (False, None) and logs step/kind/id on failure
    ✅ attempt() catches failures raised while building the coroutine
    ✅ never_raises() resolves to None whatever the handler does
"""

import logging

import pytest

from app.services.guard import attempt, never_raises


class TestAttempt:

    @pytest.mark.asyncio
    async def test_success(self):
        async def lookup():
            return 42

        assert await attempt(lookup, step="lookup", kind="ticket", entity_id=1) == (True, 42)

    @pytest.mark.asyncio
    async def test_failure_is_logged(self, caplog):
        async def boom():
            raise ConnectionError("db down")

        with caplog.at_level(logging.ERROR, logger="app.services.guard"):
            ok, value = await attempt(boom, step="lookup submitter", kind="ticket", entity_id=42)

        assert (ok, value) == (False, None)
        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert record.step == "lookup submitter"
        assert record.entity_kind == "ticket"
        assert record.entity_id == 42
        assert "db down" in record.getMessage()

    @pytest.mark.asyncio
    async def test_failure_while_building_call(self):
        def not_a_coroutine():
            raise TypeError("bad arguments")

        assert await attempt(not_a_coroutine, step="s", kind="asset") == (False, None)


class TestNeverRaises:

    @pytest.mark.asyncio
    async def test_exception_swallowed(self, caplog):
        @never_raises("upgrade")
        async def handler(x):
            raise ValueError(f"bad {x}")

        with caplog.at_level(logging.ERROR):
            assert await handler(1) is None

        assert "Failed to process upgrade notification: bad 1" in caplog.text

    @pytest.mark.asyncio
    async def test_return_value_discarded(self):
        @never_raises("employee")
        async def handler():
            return "ignored"

        assert await handler() is None

    def test_preserves_name(self):
        @never_raises("asset")
        async def handle_something():
            """Docs."""

        assert handle_something.__name__ == "handle_something"
        assert handle_something.__doc__ == "Docs."
