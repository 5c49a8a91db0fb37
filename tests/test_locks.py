# tests/test_locks.py
import uuid

import anyio
import pytest

from madrasah_admin.core.cache import CacheManager
from madrasah_admin.core.exceptions import TenantBusyError
from madrasah_admin.core.locks import TenantLockManager

pytestmark = pytest.mark.anyio


@pytest.fixture
def locks():
    return TenantLockManager(CacheManager(None), timeout=30, wait=0.05)


async def test_second_holder_for_same_madrasah_is_busy(locks):
    madrasah_id = uuid.uuid4()

    async with locks.hold(madrasah_id):
        assert locks.is_held(madrasah_id)
        with pytest.raises(TenantBusyError) as exc_info:
            async with locks.hold(madrasah_id):
                pass
        assert exc_info.value.status_code == 409

    assert not locks.is_held(madrasah_id)


async def test_different_madrasahs_do_not_block_each_other(locks):
    first, second = uuid.uuid4(), uuid.uuid4()

    async with locks.hold(first):
        async with locks.hold(second):
            assert locks.is_held(first) and locks.is_held(second)


async def test_waiter_acquires_once_released(locks):
    madrasah_id = uuid.uuid4()
    order = []

    async def second_holder():
        async with locks.hold(madrasah_id, wait=2):
            order.append("second")

    async with anyio.create_task_group() as tg:
        async with locks.hold(madrasah_id):
            tg.start_soon(second_holder)
            await anyio.sleep(0.01)
            order.append("first")

    assert order == ["first", "second"]


async def test_lock_is_released_when_the_body_fails(locks):
    madrasah_id = uuid.uuid4()

    with pytest.raises(RuntimeError):
        async with locks.hold(madrasah_id):
            raise RuntimeError("boom")

    async with locks.hold(madrasah_id):
        pass


async def test_released_locks_are_forgotten(locks):
    for _ in range(3):
        async with locks.hold(uuid.uuid4()):
            pass

    assert locks._local == {}
    assert locks._users == {}


async def test_lock_is_kept_while_someone_waits(locks):
    madrasah_id = uuid.uuid4()
    key = TenantLockManager.key_for(madrasah_id)
    seen = []

    async def second_holder():
        async with locks.hold(madrasah_id, wait=2):
            seen.append(locks._users[key])

    async with anyio.create_task_group() as tg:
        async with locks.hold(madrasah_id):
            tg.start_soon(second_holder)
            await anyio.sleep(0.01)
            assert locks._users[key] == 2

    assert seen == [1]
    assert key not in locks._local


async def test_busy_caller_does_not_drop_the_held_lock(locks):
    madrasah_id = uuid.uuid4()

    async with locks.hold(madrasah_id):
        with pytest.raises(TenantBusyError):
            async with locks.hold(madrasah_id):
                pass
        assert locks.is_held(madrasah_id)

    assert not locks.is_held(madrasah_id)
    assert locks._local == {}

def test_lock_key_is_per_madrasah():
    assert TenantLockManager.key_for("abc") == "madrasah:abc:data-lock"
