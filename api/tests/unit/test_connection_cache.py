"""Unit tests for the lazily opened, shared database pool."""

from __future__ import annotations

import asyncio
import gc

import pytest

from core import db
from core.db import ConfigurationMissing, ConnectionCache, ConnectionFailed

DSN = "postgresql://app:secret@db:5432/reelhub"


class FakePool:
    def __init__(self):
        self.closed = False

    async def close(self):
        self.closed = True


class RecordingConnector:
    """Fake asyncpg.create_pool: pops one outcome per call, optionally gated."""

    def __init__(self, outcomes=None, gate: asyncio.Event | None = None):
        self.outcomes = list(outcomes or [])
        self.gate = gate
        self.calls: list[dict] = []

    async def __call__(self, **kwargs):
        self.calls.append(kwargs)
        if self.gate is not None:
            await self.gate.wait()
        outcome = self.outcomes.pop(0) if self.outcomes else FakePool()
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.mark.asyncio
async def test_sequential_acquires_reuse_one_pool():
    connector = RecordingConnector()
    cache = ConnectionCache(DSN, connector=connector)

    first = await cache.acquire()
    for _ in range(5):
        assert await cache.acquire() is first

    assert len(connector.calls) == 1
    assert cache.connected
    assert cache.pool is first


@pytest.mark.asyncio
async def test_connector_receives_pool_options():
    connector = RecordingConnector()
    cache = ConnectionCache(DSN, max_pool_size=4, connector=connector)

    await cache.acquire()

    assert connector.calls == [
        {"dsn": DSN, "min_size": 1, "max_size": 4, "command_timeout": 30},
    ]


@pytest.mark.asyncio
async def test_default_pool_ceiling_is_ten():
    connector = RecordingConnector()
    await ConnectionCache(DSN, connector=connector).acquire()

    assert connector.calls[0]["max_size"] == 10


@pytest.mark.asyncio
async def test_concurrent_acquires_share_one_attempt():
    gate = asyncio.Event()
    connector = RecordingConnector(gate=gate)
    cache = ConnectionCache(DSN, connector=connector)

    waiters = [asyncio.ensure_future(cache.acquire()) for _ in range(8)]
    await asyncio.sleep(0.01)
    assert not cache.connected
    assert not any(w.done() for w in waiters)

    gate.set()
    pools = await asyncio.gather(*waiters)

    assert len(connector.calls) == 1
    assert all(p is pools[0] for p in pools)


@pytest.mark.asyncio
async def test_failure_is_delivered_to_every_waiter():
    gate = asyncio.Event()
    connector = RecordingConnector(outcomes=[ConnectionRefusedError("ECONNREFUSED")], gate=gate)
    cache = ConnectionCache(DSN, connector=connector)

    waiters = [asyncio.ensure_future(cache.acquire()) for _ in range(4)]
    await asyncio.sleep(0.01)
    gate.set()
    results = await asyncio.gather(*waiters, return_exceptions=True)

    assert len(connector.calls) == 1
    assert all(isinstance(r, ConnectionFailed) for r in results)
    assert all(isinstance(r.__cause__, ConnectionRefusedError) for r in results)
    assert not cache.connected


@pytest.mark.asyncio
async def test_failed_attempt_is_retried_on_next_acquire():
    pool = FakePool()
    connector = RecordingConnector(outcomes=[ConnectionRefusedError("ECONNREFUSED"), pool])
    cache = ConnectionCache(DSN, connector=connector)

    with pytest.raises(ConnectionFailed, match="ECONNREFUSED"):
        await cache.acquire()
    assert len(connector.calls) == 1

    assert await cache.acquire() is pool
    assert len(connector.calls) == 2

    assert await cache.acquire() is pool
    assert len(connector.calls) == 2


@pytest.mark.asyncio
async def test_cancelled_waiter_does_not_abort_shared_attempt():
    gate = asyncio.Event()
    connector = RecordingConnector(gate=gate)
    cache = ConnectionCache(DSN, connector=connector)

    cancelled = asyncio.ensure_future(cache.acquire())
    survivor = asyncio.ensure_future(cache.acquire())
    await asyncio.sleep(0.01)
    cancelled.cancel()
    gate.set()

    pool = await survivor
    assert cancelled.cancelled()
    assert cache.pool is pool
    assert len(connector.calls) == 1


@pytest.mark.asyncio
async def test_setup_runs_once_on_the_new_pool():
    seen = []

    async def setup(pool):
        seen.append(pool)

    cache = ConnectionCache(DSN, connector=RecordingConnector(), setup=setup)
    pool = await cache.acquire()
    await cache.acquire()

    assert seen == [pool]


@pytest.mark.asyncio
async def test_setup_failure_closes_pool_and_allows_retry():
    broken, healthy = FakePool(), FakePool()
    attempts = []

    async def setup(pool):
        attempts.append(pool)
        if pool is broken:
            raise RuntimeError("permission denied for schema public")

    cache = ConnectionCache(DSN, connector=RecordingConnector(outcomes=[broken, healthy]), setup=setup)

    with pytest.raises(ConnectionFailed, match="setup failed"):
        await cache.acquire()
    assert broken.closed
    assert not cache.connected

    assert await cache.acquire() is healthy
    assert attempts == [broken, healthy]


@pytest.mark.asyncio
async def test_close_releases_pool():
    cache = ConnectionCache(DSN, connector=RecordingConnector())
    pool = await cache.acquire()

    await cache.close()
    await cache.close()

    assert pool.closed
    assert not cache.connected


def test_from_env_requires_database_url(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)

    with pytest.raises(ConfigurationMissing, match="DATABASE_URL"):
        ConnectionCache.from_env()


def test_from_env_rejects_malformed_pool_size(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", DSN)
    monkeypatch.setenv("DB_MAX_POOL_SIZE", "lots")

    with pytest.raises(ConfigurationMissing, match="DB_MAX_POOL_SIZE"):
        ConnectionCache.from_env()


@pytest.mark.asyncio
async def test_from_env_reads_pool_size(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", DSN)
    monkeypatch.setenv("DB_MAX_POOL_SIZE", "3")
    connector = RecordingConnector()

    cache = ConnectionCache.from_env(connector=connector)

    assert not cache.connected

    await cache.acquire()
    assert connector.calls[0]["max_size"] == 3


def test_database_url_drops_sslmode(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"{DSN}?sslmode=require&application_name=reelhub")

    assert db.database_url() == f"{DSN}?application_name=reelhub"


def test_empty_dsn_is_rejected():
    with pytest.raises(ConfigurationMissing):
        ConnectionCache("")


@pytest.mark.asyncio
async def test_close_waits_for_pending_attempt_and_closes_its_pool():
    gate = asyncio.Event()
    pool = FakePool()
    cache = ConnectionCache(DSN, connector=RecordingConnector(outcomes=[pool], gate=gate))

    waiter = asyncio.ensure_future(cache.acquire())
    await asyncio.sleep(0.01)
    closing = asyncio.ensure_future(cache.close())
    await asyncio.sleep(0.01)
    assert not closing.done()

    gate.set()
    await closing
    await waiter

    assert pool.closed
    assert not cache.connected


@pytest.mark.asyncio
async def test_close_during_failing_attempt_does_not_raise():
    gate = asyncio.Event()
    connector = RecordingConnector(outcomes=[ConnectionRefusedError("ECONNREFUSED")], gate=gate)
    cache = ConnectionCache(DSN, connector=connector)

    waiter = asyncio.ensure_future(cache.acquire())
    await asyncio.sleep(0.01)
    closing = asyncio.ensure_future(cache.close())
    gate.set()
    await closing

    with pytest.raises(ConnectionFailed):
        await waiter
    assert not cache.connected


@pytest.mark.asyncio
async def test_failure_with_no_remaining_waiters_is_not_reported_as_unhandled():
    loop = asyncio.get_running_loop()
    reported = []
    previous = loop.get_exception_handler()
    loop.set_exception_handler(lambda _loop, context: reported.append(context))
    try:
        gate = asyncio.Event()
        connector = RecordingConnector(outcomes=[ConnectionRefusedError("ECONNREFUSED")], gate=gate)
        cache = ConnectionCache(DSN, connector=connector)

        waiter = asyncio.ensure_future(cache.acquire())
        await asyncio.sleep(0.01)
        waiter.cancel()
        gate.set()
        await asyncio.sleep(0.01)

        del waiter
        gc.collect()
        await asyncio.sleep(0)
    finally:
        loop.set_exception_handler(previous)

    assert reported == []
    assert not cache.connected
    assert len(connector.calls) == 1
