"""Tests for the polling state machine."""

import asyncio
import logging
from unittest.mock import call

import pytest

from log_portal.errors import CopyError, RemoteError, RotationError
from log_portal.poll_loop import LoopState, PollLoop, TickOutcome
from log_portal.ticker import DropTicker


@pytest.fixture
def session(make_session):
    return make_session()


@pytest.fixture
def loop(session, fake_fetcher, fake_rotation):
    return PollLoop(session, fake_fetcher, fake_rotation)


class TestInitialFetch:
    async def test_backfills_tail_and_sets_offset(self, session, loop, fake_fetcher):
        session.tail = 100
        fake_fetcher.probe_size.return_value = 500

        await loop.initial_fetch()

        fake_fetcher.fetch_range.assert_awaited_once_with(400, 500, session.writer)
        assert session.offset == 500

    async def test_empty_remote_issues_no_read(self, session, loop, fake_fetcher):
        fake_fetcher.probe_size.return_value = 0

        await loop.initial_fetch()

        fake_fetcher.fetch_range.assert_not_awaited()
        assert session.offset == 0

    async def test_skipped_when_remote_smaller_than_tail(self, session, loop, fake_fetcher):
        session.tail = 1000
        fake_fetcher.probe_size.return_value = 500

        await loop.initial_fetch()

        fake_fetcher.fetch_range.assert_not_awaited()
        assert session.offset == 0

    async def test_zero_tail_marks_existing_content_as_seen(self, session, loop, fake_fetcher):
        fake_fetcher.probe_size.return_value = 300

        await loop.initial_fetch()

        fake_fetcher.fetch_range.assert_not_awaited()
        assert session.offset == 300


class TestTick:
    async def test_growth_fetches_increment(self, session, loop, fake_fetcher):
        session.offset = 50
        fake_fetcher.probe_size.return_value = 80

        assert await loop.tick() is TickOutcome.FETCHED

        fake_fetcher.fetch_range.assert_awaited_once_with(50, 80, session.writer)
        assert session.offset == 80

    async def test_same_size_twice_fetches_once(self, session, loop, fake_fetcher):
        fake_fetcher.probe_size.side_effect = [40, 40]

        assert await loop.tick() is TickOutcome.FETCHED
        assert await loop.tick() is TickOutcome.UNCHANGED

        assert fake_fetcher.fetch_range.await_count == 1

    async def test_probe_failure_leaves_offset(self, session, loop, fake_fetcher, caplog):
        session.offset = 10
        fake_fetcher.probe_size.side_effect = RemoteError("http head: unexpected status code: 503")

        with caplog.at_level(logging.WARNING):
            assert await loop.tick() is TickOutcome.PROBE_FAILED

        assert session.offset == 10
        fake_fetcher.fetch_range.assert_not_awaited()
        assert "get log size" in caplog.text

    async def test_failed_fetch_is_retried_from_same_offset(self, session, loop, fake_fetcher):
        session.offset = 20
        fake_fetcher.probe_size.side_effect = [60, 70]
        fake_fetcher.fetch_range.side_effect = [CopyError("copy response body: boom"), None]

        assert await loop.tick() is TickOutcome.FETCH_FAILED
        assert session.offset == 20
        assert await loop.tick() is TickOutcome.FETCHED

        assert fake_fetcher.fetch_range.await_args_list == [
            call(20, 60, session.writer),
            call(20, 70, session.writer),
        ]
        assert session.offset == 70

    async def test_shrink_rotates_and_resets_offset(self, session, loop, fake_fetcher, fake_rotation):
        session.offset = 100
        fake_fetcher.probe_size.return_value = 40

        assert await loop.tick() is TickOutcome.ROTATED

        fake_rotation.rotate.assert_called_once_with(session)
        fake_fetcher.fetch_range.assert_not_awaited()
        assert session.offset == 0
        assert loop.state is LoopState.STEADY_POLL

    async def test_offset_resets_even_when_rotation_fails(self, session, loop, fake_fetcher, fake_rotation):
        session.offset = 100
        fake_fetcher.probe_size.return_value = 40
        fake_rotation.rotate.side_effect = RotationError("rotate access.log")

        assert await loop.tick() is TickOutcome.ROTATED

        fake_rotation.rotate.assert_called_once_with(session)
        assert session.offset == 0

    async def test_new_generation_starts_from_zero(self, session, loop, fake_fetcher):
        session.offset = 100
        fake_fetcher.probe_size.side_effect = [40, 40]

        await loop.tick()
        await loop.tick()

        fake_fetcher.fetch_range.assert_awaited_once_with(0, 40, session.writer)
        assert session.offset == 40

    async def test_rotation_is_reported_as_rotating_state(self, session, loop, fake_fetcher, fake_rotation):
        session.offset = 10
        fake_fetcher.probe_size.return_value = 1
        seen = []
        fake_rotation.rotate.side_effect = lambda _session: seen.append(loop.state)

        await loop.tick()

        assert seen == [LoopState.ROTATING]


async def test_empty_start_then_first_growth(session, fake_fetcher, fake_rotation):
    fake_fetcher.probe_size.side_effect = [0, 50]
    loop = PollLoop(session, fake_fetcher, fake_rotation)

    await loop.initial_fetch()
    assert session.offset == 0
    fake_fetcher.fetch_range.assert_not_awaited()

    await loop.tick()
    fake_fetcher.fetch_range.assert_awaited_once_with(0, 50, session.writer)
    assert session.offset == 50


async def test_run_polls_until_stopped(session, fake_fetcher, fake_rotation):
    sizes = iter([10, 10, 25, 25, 25, 25, 25, 25, 25, 25])
    fake_fetcher.probe_size.side_effect = lambda: next(sizes, 25)
    loop = PollLoop(session, fake_fetcher, fake_rotation, ticker=DropTicker(0.01))

    task = asyncio.create_task(loop.run())
    for _ in range(200):
        if session.offset == 25:
            break
        await asyncio.sleep(0.01)
    loop.stop()
    await asyncio.wait_for(task, timeout=1.0)

    assert session.offset == 25
    assert loop.state is LoopState.SHUTDOWN


async def test_run_survives_initial_fetch_failure(session, fake_fetcher, fake_rotation, caplog):
    sizes = iter([RemoteError("http head /access.log failed")])

    def _probe():
        result = next(sizes, 5)
        if isinstance(result, Exception):
            raise result
        return result

    fake_fetcher.probe_size.side_effect = _probe
    loop = PollLoop(session, fake_fetcher, fake_rotation, ticker=DropTicker(0.01))

    with caplog.at_level(logging.WARNING):
        task = asyncio.create_task(loop.run())
        for _ in range(200):
            if session.offset == 5:
                break
            await asyncio.sleep(0.01)
        loop.stop()
        await asyncio.wait_for(task, timeout=1.0)

    assert "initial fetch" in caplog.text
    assert session.offset == 5
