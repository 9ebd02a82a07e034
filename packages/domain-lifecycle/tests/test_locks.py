"""Unit tests for the in-process cascade lock."""

from __future__ import annotations

import pytest

from lectern.domain.lifecycle.locks import InProcessCascadeLock, lock_key
from lectern.foundation.domain.deletion_value_objects import EntityKind
from lectern.foundation.domain.exceptions import CascadeInProgressError
from lectern.foundation.domain.ports.cascade_lock import CascadeLockPort


@pytest.mark.unit
def test_lock_key_uses_table_name() -> None:
    assert lock_key(EntityKind.COURSE, "c1") == "courses:c1"


@pytest.mark.unit
class TestInProcessCascadeLock:
    def test_satisfies_port(self) -> None:
        assert isinstance(InProcessCascadeLock(), CascadeLockPort)

    @pytest.mark.asyncio(loop_scope="function")
    async def test_overlapping_key_sets_conflict(self) -> None:
        lock = InProcessCascadeLock()

        async with lock.hold(["courses:c1", "lessons:l1"]):
            with pytest.raises(CascadeInProgressError) as exc_info:
                async with lock.hold(["lessons:l1"]):
                    pass

        assert exc_info.value.context["lock_key"] == "lessons:l1"

    @pytest.mark.asyncio(loop_scope="function")
    async def test_failed_acquire_claims_nothing(self) -> None:
        lock = InProcessCascadeLock()

        async with lock.hold(["b"]):
            with pytest.raises(CascadeInProgressError):
                async with lock.hold(["a", "b", "c"]):
                    pass
            assert lock.held == frozenset({"b"})

    @pytest.mark.asyncio(loop_scope="function")
    async def test_released_on_error(self) -> None:
        lock = InProcessCascadeLock()

        with pytest.raises(RuntimeError):
            async with lock.hold(["courses:c1"]):
                raise RuntimeError("boom")

        assert lock.held == frozenset()

    @pytest.mark.asyncio(loop_scope="function")
    async def test_disjoint_keys_do_not_conflict(self) -> None:
        lock = InProcessCascadeLock()

        async with lock.hold(["courses:c1"]), lock.hold(["courses:c2"]):
            assert lock.held == frozenset({"courses:c1", "courses:c2"})
