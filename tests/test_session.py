"""Tests for qrguard.session — idle timeout, one-shot expiry, lifecycle."""

import pytest

from qrguard.activity import ActivityBus, ActivityKind
from qrguard.config import MINUTE_MS, SessionConfig
from qrguard.notify import Severity
from qrguard.session import SessionGovernor, SessionStatus
from qrguard.store.memory import MemoryStore
from qrguard.testing import ManualClock, RecordingSink, VirtualScheduler

IDLE = 30 * MINUTE_MS


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


def _login(store: MemoryStore, clock: ManualClock) -> None:
    store.set("admin_token", "tok")
    store.set("admin_last_activity", str(clock.now()))


class TestCheckSession:
    def test_starts_unchecked(self, store: MemoryStore) -> None:
        governor = SessionGovernor(store)
        assert governor.status is SessionStatus.UNCHECKED
        assert governor.is_checking is True
        assert governor.is_valid_session is False

    def test_no_token(self, store: MemoryStore, clock: ManualClock, sink: RecordingSink) -> None:
        governor = SessionGovernor(store, clock=clock, notify=sink)
        assert governor.check_session() is False
        assert governor.status is SessionStatus.INVALID
        assert governor.session_expired is False
        assert sink.notifications == []
        assert "admin_last_activity" not in store

    def test_valid_session_refreshes_activity(self, store: MemoryStore, clock: ManualClock) -> None:
        _login(store, clock)
        clock.advance(5 * MINUTE_MS)
        governor = SessionGovernor(store, clock=clock)
        assert governor.check_session() is True
        assert governor.is_valid_session is True
        assert store.get("admin_last_activity") == str(clock.now())

    def test_token_without_activity_is_fresh(self, store: MemoryStore, clock: ManualClock) -> None:
        store.set("admin_token", "tok")
        governor = SessionGovernor(store, clock=clock)
        assert governor.check_session() is True
        assert store.get("admin_last_activity") == str(clock.now())

    def test_idle_timeout_expires_once(
        self, store: MemoryStore, clock: ManualClock, sink: RecordingSink
    ) -> None:
        _login(store, clock)
        expired_calls: list[bool] = []
        governor = SessionGovernor(
            store, clock=clock, notify=sink, on_expired=lambda: expired_calls.append(True)
        )
        clock.advance(IDLE + 1)

        assert governor.check_session() is False
        assert governor.session_expired is True
        assert "admin_token" not in store
        assert "admin_last_activity" not in store

        assert governor.check_session() is False
        assert len(sink.notifications) == 1
        assert sink.notifications[0].title == "Session Expired"
        assert sink.notifications[0].severity is Severity.DESTRUCTIVE
        assert expired_calls == [True]

    def test_exactly_at_timeout_is_valid(self, store: MemoryStore, clock: ManualClock) -> None:
        _login(store, clock)
        clock.advance(IDLE)
        assert SessionGovernor(store, clock=clock).check_session() is True

    def test_consume_expired_flag(self, store: MemoryStore, clock: ManualClock) -> None:
        _login(store, clock)
        governor = SessionGovernor(store, clock=clock)
        clock.advance(IDLE + 1)
        governor.check_session()
        assert governor.consume_session_expired() is True
        assert governor.consume_session_expired() is False

    def test_new_login_rearms_notification(
        self, store: MemoryStore, clock: ManualClock, sink: RecordingSink
    ) -> None:
        governor = SessionGovernor(store, clock=clock, notify=sink)
        _login(store, clock)
        clock.advance(IDLE + 1)
        governor.check_session()

        _login(store, clock)
        assert governor.check_session() is True
        assert governor.session_expired is False
        clock.advance(IDLE + 1)
        governor.check_session()
        assert sink.titles == ["Session Expired", "Session Expired"]

    @pytest.mark.parametrize("raw", ["yesterday", "", "  "])
    def test_corrupt_activity_ends_session(
        self, store: MemoryStore, clock: ManualClock, sink: RecordingSink, raw: str
    ) -> None:
        store.set("admin_token", "tok")
        store.set("admin_last_activity", raw)
        governor = SessionGovernor(store, clock=clock, notify=sink)
        assert governor.check_session() is False
        assert governor.session_expired is False
        assert "admin_token" not in store
        assert sink.notifications == []

    def test_require_session_redirects(self, store: MemoryStore, clock: ManualClock) -> None:
        redirects: list[str] = []
        governor = SessionGovernor(
            store, clock=clock, on_unauthenticated=lambda: redirects.append("/admin/login")
        )
        assert governor.require_session() is False
        assert redirects == ["/admin/login"]

        _login(store, clock)
        assert governor.require_session() is True
        assert redirects == ["/admin/login"]

    def test_clear_session(self, store: MemoryStore, clock: ManualClock) -> None:
        _login(store, clock)
        governor = SessionGovernor(store, clock=clock)
        governor.clear_session()
        assert governor.status is SessionStatus.INVALID
        assert len(store) == 0


class TestActivity:
    def test_activity_refresh_extends_session(self, store: MemoryStore, clock: ManualClock) -> None:
        bus = ActivityBus()
        _login(store, clock)
        with SessionGovernor(store, clock=clock, activity=bus) as governor:
            clock.advance(20 * MINUTE_MS)
            bus.emit(ActivityKind.KEY_DOWN)
            t1 = clock.now()
            assert store.get("admin_last_activity") == str(t1)

            clock.set(t1 + IDLE - 1)
            assert governor.check_session() is True

    def test_activity_without_token_writes_nothing(self, store: MemoryStore, clock: ManualClock) -> None:
        bus = ActivityBus()
        with SessionGovernor(store, clock=clock, activity=bus):
            for kind in ActivityKind:
                bus.emit(kind)
        assert len(store) == 0

    def test_stop_unsubscribes(self, store: MemoryStore, clock: ManualClock) -> None:
        bus = ActivityBus()
        governor = SessionGovernor(store, clock=clock, activity=bus).start()
        assert bus.subscriber_count == 1
        governor.stop()
        assert bus.subscriber_count == 0
        governor.stop()


class TestPeriodicCheck:
    def test_periodic_check_expires_idle_session(
        self, store: MemoryStore, clock: ManualClock, sink: RecordingSink
    ) -> None:
        scheduler = VirtualScheduler(clock)
        _login(store, clock)
        governor = SessionGovernor(store, clock=clock, scheduler=scheduler, notify=sink)
        with governor:
            assert governor.is_valid_session is True
            # Each periodic check counts as activity, so the session stays alive
            # until something outside rewinds the activity record.
            scheduler.advance(IDLE + 5 * MINUTE_MS)
            assert governor.is_valid_session is True

            store.set("admin_last_activity", str(clock.now() - IDLE - 1))
            scheduler.advance(MINUTE_MS)
            assert governor.session_expired is True
            assert sink.titles == ["Session Expired"]

            scheduler.advance(10 * MINUTE_MS)
            assert sink.titles == ["Session Expired"]

    def test_periodic_check_skips_anonymous(self, store: MemoryStore, clock: ManualClock) -> None:
        scheduler = VirtualScheduler(clock)
        with SessionGovernor(store, clock=clock, scheduler=scheduler) as governor:
            scheduler.advance(5 * MINUTE_MS)
            assert governor.status is SessionStatus.INVALID
        assert len(store) == 0

    def test_stop_cancels_timer(self, store: MemoryStore, clock: ManualClock) -> None:
        scheduler = VirtualScheduler(clock)
        governor = SessionGovernor(store, clock=clock, scheduler=scheduler)
        governor.start()
        governor.start()
        assert scheduler.pending == 1
        governor.stop()
        assert scheduler.pending == 0
        assert governor.is_running is False

    def test_custom_interval(self, store: MemoryStore, clock: ManualClock) -> None:
        scheduler = VirtualScheduler(clock)
        config = SessionConfig(idle_timeout_ms=10_000, check_interval_ms=1_000)
        _login(store, clock)
        with SessionGovernor(store, config=config, clock=clock, scheduler=scheduler) as governor:
            store.set("admin_last_activity", str(clock.now() - 9_500))
            scheduler.advance(1_000)
            assert governor.session_expired is True


@pytest.mark.anyio
async def test_real_timer_expires_session(store: MemoryStore, sink: RecordingSink) -> None:
    import anyio

    from qrguard.clock import SystemClock
    from qrguard.scheduler import AnyioScheduler

    expired = anyio.Event()
    clock = SystemClock()
    store.set("admin_token", "tok")
    config = SessionConfig(idle_timeout_ms=30_000, check_interval_ms=10)

    async with AnyioScheduler() as scheduler:
        governor = SessionGovernor(
            store,
            config=config,
            clock=clock,
            scheduler=scheduler,
            notify=sink,
            on_expired=expired.set,
        )
        with governor:
            assert governor.is_valid_session is True
            store.set("admin_last_activity", str(clock.now() - 60_000))
            with anyio.fail_after(2):
                await expired.wait()

    assert governor.session_expired is True
    assert sink.titles == ["Session Expired"]
