"""Unit tests for lectern.infra.taskiq.broker."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from taskiq import TaskiqScheduler
from taskiq_redis import RedisAsyncResultBackend, RedisStreamBroker

from lectern.infra.taskiq.broker import _Lazy, get_broker, get_result_backend, get_scheduler
from lectern.infra.taskiq.settings import get_taskiq_settings


@pytest.fixture(autouse=True)
def _clear_caches():
    for factory in (get_taskiq_settings, get_result_backend, get_broker, get_scheduler):
        factory.cache_clear()
    yield
    for factory in (get_taskiq_settings, get_result_backend, get_broker, get_scheduler):
        factory.cache_clear()


@pytest.mark.unit
class TestFactoryFunctions:
    def test_get_broker_returns_redis_stream_broker(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            assert isinstance(get_broker(), RedisStreamBroker)

    def test_get_result_backend_returns_redis(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            assert isinstance(get_result_backend(), RedisAsyncResultBackend)

    def test_get_scheduler_returns_taskiq_scheduler(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            assert isinstance(get_scheduler(), TaskiqScheduler)

    def test_get_broker_is_cached(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            assert get_broker() is get_broker()


@pytest.mark.unit
class TestLazyProxy:
    def test_factory_not_called_until_attribute_access(self) -> None:
        calls: list[int] = []

        def factory() -> list[int]:
            calls.append(1)
            return [1, 2, 3]

        proxy = _Lazy(factory)
        assert calls == []

        assert proxy.count(2) == 1
        assert proxy.index(3) == 2
        assert calls == [1]
