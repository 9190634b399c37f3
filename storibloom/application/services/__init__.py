"""Application services for the workshop stage authority."""

from storibloom.application.services.debounce_scheduler import (
    DebounceScheduler,
    DebounceState,
)
from storibloom.application.services.deferred_scheduler import (
    DeferredOneShotScheduler,
)
from storibloom.application.services.facilitator_reactor import FacilitatorReactor
from storibloom.application.services.final_auto_close_service import (
    FinalAutoCloseService,
)
from storibloom.application.services.final_compile_service import (
    FinalCompileResult,
    FinalCompileService,
)
from storibloom.application.services.guiding_questions_service import (
    GuidingQuestionsService,
)
from storibloom.application.services.idea_summary_service import (
    IdeaSummaryResult,
    IdeaSummaryService,
)
from storibloom.application.services.stage_control_service import (
    StageControlService,
)
from storibloom.application.services.stage_engine import StageEngine
from storibloom.application.services.time_authority_service import (
    TimeAuthorityService,
)

__all__: list[str] = [
    "DebounceScheduler",
    "DebounceState",
    "DeferredOneShotScheduler",
    "FacilitatorReactor",
    "FinalAutoCloseService",
    "FinalCompileResult",
    "FinalCompileService",
    "GuidingQuestionsService",
    "IdeaSummaryResult",
    "IdeaSummaryService",
    "StageControlService",
    "StageEngine",
    "TimeAuthorityService",
]
