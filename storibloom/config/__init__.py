"""Configuration module for StoriBloom.

Available Configurations:
- StageEngineConfig: Tick cadence and hot-room eviction window
- DebounceConfig: Idea summarization debounce delay and max-wait ceiling
- StageDurationConfig: Per-stage time budgets
"""

from storibloom.config.stage_config import (
    DEFAULT_DEBOUNCE_CONFIG,
    DEFAULT_STAGE_DURATION_CONFIG,
    DEFAULT_STAGE_ENGINE_CONFIG,
    TEST_STAGE_ENGINE_CONFIG,
    DebounceConfig,
    StageDurationConfig,
    StageEngineConfig,
)

__all__ = [
    "DebounceConfig",
    "StageDurationConfig",
    "StageEngineConfig",
    "DEFAULT_DEBOUNCE_CONFIG",
    "DEFAULT_STAGE_DURATION_CONFIG",
    "DEFAULT_STAGE_ENGINE_CONFIG",
    "TEST_STAGE_ENGINE_CONFIG",
]
