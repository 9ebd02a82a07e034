"""Unit tests for the Redis-backed cascade lock."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import LockError

from lectern.foundation.domain.exceptions import CascadeInProgressError
from lectern.infra.persistence.cascade_lock import LOCK_NAMESPACE, RedisCascadeLock


def _factory_with_locks(*acquired: bool) -> tuple[MagicMock, list[MagicMock]]:
    locks = []
    for ok in acquired:
        lock = MagicMock()
        lock.acquire = AsyncMock(return_value=ok)
        lock.release = AsyncMock()
        lock.reacquire = AsyncMock()
        locks.append(lock)
    client = MagicMock()
    client.lock.side_effect = locks
    factory = MagicMock()
    factory.get_client = AsyncMock(return_value=client)
    return factory, locks


@pytest.mark.unit
class TestRedisCascadeLock:
    @pytest.mark.asyncio(loop_scope="function")
    async def test_acquires_sorted_keys_with_ttl(self) -> None:
        factory, locks = _factory_with_locks(True, True)
        client = await factory.get_client()

        async with RedisCascadeLock(factory, ttl_seconds=60).hold(["lessons:l1", "courses:c1"]):
            pass

        names = [call.args[0] for call in client.lock.call_args_list]
        assert names == [LOCK_NAMESPACE + "courses:c1", LOCK_NAMESPACE + "lessons:l1"]
        assert client.lock.call_args_list[0].kwargs["timeout"] == 60
        assert client.lock.call_args_list[0].kwargs["blocking"] is False
        for lock in locks:
            lock.release.assert_awaited_once()

    @pytest.mark.asyncio(loop_scope="function")
    async def test_conflict_releases_already_acquired(self) -> None:
        factory, locks = _factory_with_locks(True, False)

        with pytest.raises(CascadeInProgressError) as exc_info:
            async with RedisCascadeLock(factory).hold(["a", "b"]):
                pytest.fail("body must not run")

        assert exc_info.value.context["lock_key"] == "b"
        locks[0].release.assert_awaited_once()
        locks[1].release.assert_not_awaited()

    @pytest.mark.asyncio(loop_scope="function")
    async def test_wait_seconds_enables_blocking(self) -> None:
        factory, _ = _factory_with_locks(True)
        client = await factory.get_client()

        async with RedisCascadeLock(factory, wait_seconds=2.5).hold(["a"]):
            pass

        kwargs = client.lock.call_args.kwargs
        assert (kwargs["blocking"], kwargs["blocking_timeout"]) == (True, 2.5)

    @pytest.mark.asyncio(loop_scope="function")
    async def test_expired_lock_release_is_logged_not_raised(self) -> None:
        factory, locks = _factory_with_locks(True)
        locks[0].release.side_effect = LockError("expired")

        async with RedisCascadeLock(factory).hold(["a"]):
            pass

        locks[0].release.assert_awaited_once()

    @pytest.mark.asyncio(loop_scope="function")
    async def test_ttl_is_renewed_while_held(self) -> None:
        factory, locks = _factory_with_locks(True, True)

        async with RedisCascadeLock(factory, ttl_seconds=1, renew_interval=0.01).hold(["a", "b"]):
            await asyncio.sleep(0.05)

        for lock in locks:
            assert lock.reacquire.await_count >= 2
            lock.release.assert_awaited_once()

    @pytest.mark.asyncio(loop_scope="function")
    async def test_renewal_stops_once_released(self) -> None:
        factory, locks = _factory_with_locks(True)

        async with RedisCascadeLock(factory, renew_interval=0.01).hold(["a"]):
            pass
        renewals = locks[0].reacquire.await_count
        await asyncio.sleep(0.03)

        assert locks[0].reacquire.await_count == renewals

    @pytest.mark.asyncio(loop_scope="function")
    async def test_failed_renewal_is_logged_not_raised(self) -> None:
        factory, locks = _factory_with_locks(True)
        locks[0].reacquire.side_effect = LockError("not owned")

        async with RedisCascadeLock(factory, renew_interval=0.01).hold(["a"]):
            await asyncio.sleep(0.03)

        assert locks[0].reacquire.await_count >= 1
        locks[0].release.assert_awaited_once()

    def test_default_renewal_is_a_third_of_the_ttl(self) -> None:
        lock = RedisCascadeLock(MagicMock(), ttl_seconds=90)
        assert lock._renew_interval == 30
