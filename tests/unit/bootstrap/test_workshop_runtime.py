"""Unit tests for workshop runtime wiring."""

from __future__ import annotations

import pytest

from storibloom.application.services.time_authority_service import (
    TimeAuthorityService,
)
from storibloom.bootstrap.workshop_runtime import (
    build_workshop_runtime,
    get_workshop_runtime,
    reset_workshop_runtime,
    set_workshop_runtime,
)
from storibloom.config.stage_config import StageDurationConfig, StageEngineConfig
from storibloom.domain.models.stage import Stage
from storibloom.infrastructure.adapters import AsyncioTimerScheduler
from storibloom.infrastructure.stubs import RoomRepositoryStub
from tests.helpers.fake_time_authority import FakeTimeAuthority
from tests.helpers.fake_timer_scheduler import FakeTimerScheduler


@pytest.fixture(autouse=True)
def clean_runtime():
    reset_workshop_runtime()
    yield
    reset_workshop_runtime()


class TestBuildWorkshopRuntime:
    def test_defaults(self) -> None:
        runtime = build_workshop_runtime()

        assert isinstance(runtime.rooms, RoomRepositoryStub)
        assert isinstance(runtime.timer_scheduler, AsyncioTimerScheduler)
        assert isinstance(runtime.time_authority, TimeAuthorityService)
        assert not runtime.engine.running

    def test_engine_config_applied(self) -> None:
        runtime = build_workshop_runtime(
            engine_config=StageEngineConfig(tick_interval_ms=500, inactivity_window_ms=5_000)
        )

        assert runtime.engine.tick_interval_ms == 500
        assert runtime.engine.inactivity_window_ms == 5_000

    @pytest.mark.asyncio
    async def test_duration_config_reaches_controls(
        self,
        fake_time_authority: FakeTimeAuthority,
        fake_timers: FakeTimerScheduler,
    ) -> None:
        runtime = build_workshop_runtime(
            time_authority=fake_time_authority,
            timer_scheduler=fake_timers,
            duration_config=StageDurationConfig(
                durations_ms={"DISCOVERY": 1_000}, default_ms=2_000
            ),
        )
        runtime.rooms.create_room("r1", Stage.LOBBY)

        room = await runtime.stage_control.advance_stage("r1")
        assert room.stage_ends_at == fake_time_authority.now_ms() + 1_000

        room = await runtime.stage_control.advance_stage("r1")
        assert room.stage_ends_at == fake_time_authority.now_ms() + 2_000

    @pytest.mark.asyncio
    async def test_auto_close_reports_to_engine(
        self,
        fake_time_authority: FakeTimeAuthority,
        fake_timers: FakeTimerScheduler,
    ) -> None:
        runtime = build_workshop_runtime(
            time_authority=fake_time_authority, timer_scheduler=fake_timers
        )
        room = runtime.rooms.create_room(
            "r1", Stage.FINAL, stage_ends_at=fake_time_authority.now_ms() + 1_000
        )
        runtime.final_auto_close.arm(room)

        await fake_timers.advance(1_000)

        assert runtime.engine.tracking.is_hot("r1")

    @pytest.mark.asyncio
    async def test_start_and_stop(
        self,
        fake_time_authority: FakeTimeAuthority,
        fake_timers: FakeTimerScheduler,
    ) -> None:
        runtime = build_workshop_runtime(
            time_authority=fake_time_authority, timer_scheduler=fake_timers
        )
        runtime.final_auto_close.arm(runtime.rooms.create_room("r1", Stage.FINAL))

        await runtime.start()
        assert runtime.engine.running

        await runtime.stop()

        assert not runtime.engine.running
        assert not runtime.final_auto_close.is_armed("r1")
        assert runtime.idea_summary.debouncer.closed
        assert fake_timers.pending_count == 0


class TestRuntimeAccessors:
    def test_get_builds_once(self) -> None:
        assert get_workshop_runtime() is get_workshop_runtime()

    def test_set_and_reset(self) -> None:
        custom = build_workshop_runtime()

        set_workshop_runtime(custom)
        assert get_workshop_runtime() is custom

        reset_workshop_runtime()
        assert get_workshop_runtime() is not custom
