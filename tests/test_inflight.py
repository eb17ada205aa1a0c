"""Tests for choreboard.core.inflight — cancellable operations per owner."""

import asyncio

import pytest

from choreboard.core.inflight import InflightRegistry


class TestInflightRegistry:
    @pytest.mark.asyncio
    async def test_completed_task_is_forgotten(self):
        registry = InflightRegistry()

        async def work():
            return 42

        task = registry.start("chat", work())
        assert await task == 42
        await asyncio.sleep(0)
        assert registry.pending("chat") == 0

    @pytest.mark.asyncio
    async def test_cancel_all(self):
        registry = InflightRegistry()
        started = asyncio.Event()

        async def slow():
            started.set()
            await asyncio.sleep(60)

        task = registry.start("chat", slow())
        other = registry.start("other", slow())
        await started.wait()

        assert registry.cancel_all("chat") == 1
        with pytest.raises(asyncio.CancelledError):
            await task
        assert task.cancelled()
        assert registry.pending("other") == 1
        other.cancel()

    @pytest.mark.asyncio
    async def test_cancel_nothing(self):
        assert InflightRegistry().cancel_all("chat") == 0
