"""Bootstrap wiring for the workshop runtime.

Builds the stage engine and everything around it from the external
collaborators. Collaborators not supplied fall back to the in-memory stubs,
the asyncio timer scheduler, and the system clock.
"""

from __future__ import annotations

from dataclasses import dataclass

from storibloom.application.ports.completion import CompletionProtocol
from storibloom.application.ports.message_store import MessageStoreProtocol
from storibloom.application.ports.room_repository import RoomRepositoryProtocol
from storibloom.application.ports.time_authority import TimeAuthorityProtocol
from storibloom.application.ports.timer_scheduler import TimerSchedulerProtocol
from storibloom.application.services.facilitator_reactor import FacilitatorReactor
from storibloom.application.services.final_auto_close_service import (
    FinalAutoCloseService,
)
from storibloom.application.services.final_compile_service import (
    FinalCompileService,
)
from storibloom.application.services.guiding_questions_service import (
    GuidingQuestionsService,
)
from storibloom.application.services.idea_summary_service import IdeaSummaryService
from storibloom.application.services.stage_control_service import (
    StageControlService,
)
from storibloom.application.services.stage_engine import StageEngine
from storibloom.application.services.time_authority_service import (
    TimeAuthorityService,
)
from storibloom.config.stage_config import (
    DEFAULT_STAGE_DURATION_CONFIG,
    DebounceConfig,
    StageDurationConfig,
    StageEngineConfig,
)
from storibloom.domain.services.stage_machine import StageMachine
from storibloom.infrastructure.adapters import (
    AsyncioTimerScheduler,
    InMemoryStageTracking,
)
from storibloom.infrastructure.stubs import (
    CompletionStub,
    MessageStoreStub,
    RoomRepositoryStub,
)


@dataclass
class WorkshopRuntime:
    """Wired workshop services sharing one clock and one timer scheduler."""

    rooms: RoomRepositoryProtocol
    messages: MessageStoreProtocol
    completion: CompletionProtocol
    time_authority: TimeAuthorityProtocol
    timer_scheduler: TimerSchedulerProtocol
    engine: StageEngine
    reactor: FacilitatorReactor
    final_auto_close: FinalAutoCloseService
    idea_summary: IdeaSummaryService
    guiding_questions: GuidingQuestionsService
    final_compile: FinalCompileService
    stage_control: StageControlService

    async def start(self) -> None:
        """Start the stage engine tick loop."""
        await self.engine.start()

    async def stop(self) -> None:
        """Stop ticking and drop every pending timer.

        The in-flight tick and any running summary job finish first.
        """
        self.idea_summary.shutdown()
        self.guiding_questions.shutdown()
        self.final_auto_close.shutdown()
        await self.engine.stop()


def build_workshop_runtime(
    room_repository: RoomRepositoryProtocol | None = None,
    message_store: MessageStoreProtocol | None = None,
    completion: CompletionProtocol | None = None,
    time_authority: TimeAuthorityProtocol | None = None,
    timer_scheduler: TimerSchedulerProtocol | None = None,
    engine_config: StageEngineConfig | None = None,
    debounce_config: DebounceConfig | None = None,
    duration_config: StageDurationConfig | None = None,
) -> WorkshopRuntime:
    """Wire a WorkshopRuntime.

    Args:
        room_repository: Room storage. In-memory stub if omitted.
        message_store: Chat storage. In-memory stub if omitted.
        completion: Language model. Canned stub if omitted.
        time_authority: Clock. System clock if omitted.
        timer_scheduler: Timers. Asyncio scheduler if omitted.
        engine_config: Tick cadence and inactivity window.
        debounce_config: Idea summary debounce timing.
        duration_config: Per-stage budgets.

    Returns:
        A runtime ready to start().
    """
    clock = time_authority or TimeAuthorityService()
    timers = timer_scheduler or AsyncioTimerScheduler()
    rooms = room_repository or RoomRepositoryStub()
    messages = message_store or MessageStoreStub(clock)
    model = completion or CompletionStub()

    durations = duration_config or DEFAULT_STAGE_DURATION_CONFIG
    machine = StageMachine(
        durations_ms=durations.durations_ms,
        default_duration_ms=durations.default_ms,
    )

    final_auto_close = FinalAutoCloseService(
        room_repository=rooms,
        timer_scheduler=timers,
        time_authority=clock,
        stage_machine=machine,
    )
    guiding_questions = GuidingQuestionsService(
        room_repository=rooms,
        message_store=messages,
        completion=model,
        timer_scheduler=timers,
        time_authority=clock,
    )
    reactor = FacilitatorReactor(
        room_repository=rooms,
        message_store=messages,
        completion=model,
        final_auto_close=final_auto_close,
        time_authority=clock,
        guiding_questions=guiding_questions,
    )
    engine = StageEngine(
        room_repository=rooms,
        reactor=reactor,
        timer_scheduler=timers,
        time_authority=clock,
        stage_machine=machine,
        tracking=InMemoryStageTracking(),
        config=engine_config,
    )
    final_auto_close.bind_room_activity(engine.touch)

    idea_summary = IdeaSummaryService(
        room_repository=rooms,
        message_store=messages,
        completion=model,
        timer_scheduler=timers,
        time_authority=clock,
        debounce_config=debounce_config,
    )
    final_compile = FinalCompileService(
        room_repository=rooms,
        message_store=messages,
        completion=model,
        time_authority=clock,
    )
    stage_control = StageControlService(
        room_repository=rooms,
        stage_engine=engine,
        final_auto_close=final_auto_close,
        time_authority=clock,
        stage_machine=machine,
    )

    return WorkshopRuntime(
        rooms=rooms,
        messages=messages,
        completion=model,
        time_authority=clock,
        timer_scheduler=timers,
        engine=engine,
        reactor=reactor,
        final_auto_close=final_auto_close,
        idea_summary=idea_summary,
        guiding_questions=guiding_questions,
        final_compile=final_compile,
        stage_control=stage_control,
    )


_workshop_runtime: WorkshopRuntime | None = None


def get_workshop_runtime() -> WorkshopRuntime:
    """Get the process-wide runtime, building a stub-backed one on first use."""
    global _workshop_runtime
    if _workshop_runtime is None:
        _workshop_runtime = build_workshop_runtime()
    return _workshop_runtime


def set_workshop_runtime(runtime: WorkshopRuntime) -> None:
    """Set a custom runtime (for testing or alternative wiring)."""
    global _workshop_runtime
    _workshop_runtime = runtime


def reset_workshop_runtime() -> None:
    """Reset the process-wide runtime (for testing)."""
    global _workshop_runtime
    _workshop_runtime = None
