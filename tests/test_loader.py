"""Tests for qrguard.loader — guarded lazy singleton."""

import anyio
import pytest

from qrguard.errors import LoaderError
from qrguard.loader import LazyLoader, LoadState


@pytest.mark.anyio
async def test_loads_once_for_concurrent_callers() -> None:
    calls: list[int] = []
    release = anyio.Event()

    async def factory() -> str:
        calls.append(1)
        await release.wait()
        return "client"

    loader = LazyLoader(factory, name="captcha")
    results: list[str] = []

    async def use() -> None:
        results.append(await loader.get())

    async with anyio.create_task_group() as tg:
        for _ in range(3):
            tg.start_soon(use)
        await anyio.wait_all_tasks_blocked()
        assert loader.state is LoadState.LOADING
        release.set()

    assert calls == [1]
    assert results == ["client", "client", "client"]
    assert loader.is_ready is True
    assert await loader.get() == "client"
    assert calls == [1]


@pytest.mark.anyio
async def test_failure_reaches_all_waiters_and_allows_retry() -> None:
    attempts: list[int] = []
    release = anyio.Event()

    async def factory() -> int:
        attempts.append(1)
        if len(attempts) == 1:
            await release.wait()
            raise OSError("script blocked")
        return 42

    loader = LazyLoader(factory, name="captcha")
    errors: list[BaseException] = []

    async def use() -> None:
        try:
            await loader.get()
        except LoaderError as exc:
            errors.append(exc)

    async with anyio.create_task_group() as tg:
        tg.start_soon(use)
        tg.start_soon(use)
        await anyio.wait_all_tasks_blocked()
        release.set()

    assert len(errors) == 2
    assert all(isinstance(exc.__cause__, OSError) for exc in errors)
    assert loader.state is LoadState.NOT_STARTED

    assert await loader.get() == 42
    assert loader.state is LoadState.READY


@pytest.mark.anyio
async def test_reset_forces_reload() -> None:
    counter = iter(range(10))

    async def factory() -> int:
        return next(counter)

    loader = LazyLoader(factory)
    assert await loader.get() == 0
    loader.reset()
    assert loader.state is LoadState.NOT_STARTED
    assert await loader.get() == 1


@pytest.mark.anyio
async def test_cancelled_load_can_restart() -> None:
    started = anyio.Event()

    async def slow() -> str:
        started.set()
        await anyio.sleep_forever()
        return "never"

    loader = LazyLoader(slow)
    async with anyio.create_task_group() as tg:
        tg.start_soon(loader.get)
        await started.wait()
        tg.cancel_scope.cancel()

    assert loader.state is LoadState.NOT_STARTED
