"""Stage engine, debounce, and stage duration configuration.

This module defines configuration for the stage engine tick loop, the idea
summarization debouncer, and the per-stage time budgets, with environment
variable overrides for production tuning.

Environment Variables:
- STAGE_ENGINE_TICK_MS: Tick cadence (default: 1000, min: 50, max: 60000)
- STAGE_ENGINE_INACTIVITY_MS: Hot-room eviction window (default: 1800000)
- IDEA_DEBOUNCE_DELAY_MS: Quiet period before summarizing (default: 10000)
- IDEA_DEBOUNCE_MAX_WAIT_MS: Summarization latency ceiling (default: 30000)
- STAGE_DURATION_<STAGE>_SECONDS: Per-stage budget override (e.g.
  STAGE_DURATION_LOBBY_SECONDS=120)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from storibloom.domain.models.stage import (
    DEFAULT_STAGE_DURATION_MS,
    DEFAULT_STAGE_DURATIONS_MS,
    STAGE_ORDER,
)


def _get_int_env(key: str, default: int) -> int:
    """Get integer environment variable with default.

    Args:
        key: Environment variable name.
        default: Default value if not set or invalid.

    Returns:
        Parsed integer value or default.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


# =============================================================================
# Stage Engine Configuration
# =============================================================================

DEFAULT_TICK_INTERVAL_MS = 1_000
MIN_TICK_INTERVAL_MS = 50
MAX_TICK_INTERVAL_MS = 60_000

# Rooms untouched for this long drop out of the hot set
DEFAULT_INACTIVITY_WINDOW_MS = 30 * 60_000
MIN_INACTIVITY_WINDOW_MS = 1_000
MAX_INACTIVITY_WINDOW_MS = 24 * 60 * 60_000

# =============================================================================
# Debounce Configuration
# =============================================================================

DEFAULT_DEBOUNCE_DELAY_MS = 10_000
DEFAULT_DEBOUNCE_MAX_WAIT_MS = 30_000
MAX_DEBOUNCE_MAX_WAIT_MS = 10 * 60_000


@dataclass(frozen=True)
class StageEngineConfig:
    """Configuration for the stage engine tick loop.

    Attributes:
        tick_interval_ms: Cadence of the tick loop in milliseconds.
                          Default: 1000. Range: 50..60000.
        inactivity_window_ms: How long a room stays hot without a touch.
                              Default: 30 minutes. Range: 1s..24h.
    """

    tick_interval_ms: int = DEFAULT_TICK_INTERVAL_MS
    inactivity_window_ms: int = DEFAULT_INACTIVITY_WINDOW_MS

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if not MIN_TICK_INTERVAL_MS <= self.tick_interval_ms <= MAX_TICK_INTERVAL_MS:
            raise ValueError(
                f"tick_interval_ms must be between {MIN_TICK_INTERVAL_MS} "
                f"and {MAX_TICK_INTERVAL_MS}, got {self.tick_interval_ms}"
            )
        if (
            not MIN_INACTIVITY_WINDOW_MS
            <= self.inactivity_window_ms
            <= MAX_INACTIVITY_WINDOW_MS
        ):
            raise ValueError(
                f"inactivity_window_ms must be between {MIN_INACTIVITY_WINDOW_MS} "
                f"and {MAX_INACTIVITY_WINDOW_MS}, got {self.inactivity_window_ms}"
            )

    @classmethod
    def from_environment(cls) -> StageEngineConfig:
        """Create config from environment variables with defaults.

        Out-of-range values are clamped rather than rejected.

        Returns:
            StageEngineConfig with values from environment or defaults.
        """
        tick = _get_int_env("STAGE_ENGINE_TICK_MS", DEFAULT_TICK_INTERVAL_MS)
        tick = max(MIN_TICK_INTERVAL_MS, min(tick, MAX_TICK_INTERVAL_MS))

        window = _get_int_env(
            "STAGE_ENGINE_INACTIVITY_MS", DEFAULT_INACTIVITY_WINDOW_MS
        )
        window = max(MIN_INACTIVITY_WINDOW_MS, min(window, MAX_INACTIVITY_WINDOW_MS))

        return cls(tick_interval_ms=tick, inactivity_window_ms=window)


@dataclass(frozen=True)
class DebounceConfig:
    """Configuration for per-key debounced work.

    Attributes:
        delay_ms: Quiet period after the latest trigger before the job runs.
        max_wait_ms: Ceiling on time between the first trigger of a window
                     and the job running, however often triggers arrive.
    """

    delay_ms: int = DEFAULT_DEBOUNCE_DELAY_MS
    max_wait_ms: int = DEFAULT_DEBOUNCE_MAX_WAIT_MS

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.delay_ms < 0:
            raise ValueError(f"delay_ms cannot be negative, got {self.delay_ms}")
        if not self.delay_ms <= self.max_wait_ms <= MAX_DEBOUNCE_MAX_WAIT_MS:
            raise ValueError(
                f"max_wait_ms must be between delay_ms ({self.delay_ms}) "
                f"and {MAX_DEBOUNCE_MAX_WAIT_MS}, got {self.max_wait_ms}"
            )

    @classmethod
    def from_environment(cls) -> DebounceConfig:
        """Create config from environment variables with defaults.

        Returns:
            DebounceConfig with values from environment or defaults.
        """
        delay = _get_int_env("IDEA_DEBOUNCE_DELAY_MS", DEFAULT_DEBOUNCE_DELAY_MS)
        delay = max(0, min(delay, MAX_DEBOUNCE_MAX_WAIT_MS))
        max_wait = _get_int_env(
            "IDEA_DEBOUNCE_MAX_WAIT_MS", DEFAULT_DEBOUNCE_MAX_WAIT_MS
        )
        max_wait = max(delay, min(max_wait, MAX_DEBOUNCE_MAX_WAIT_MS))
        return cls(delay_ms=delay, max_wait_ms=max_wait)


@dataclass(frozen=True)
class StageDurationConfig:
    """Per-stage time budgets in milliseconds.

    Stages missing from ``durations_ms`` use ``default_ms``.

    Attributes:
        durations_ms: Mapping of stage name to budget in milliseconds.
        default_ms: Budget for unknown stage names (6 minutes).
    """

    durations_ms: Mapping[str, int] = field(
        default_factory=lambda: MappingProxyType(dict(DEFAULT_STAGE_DURATIONS_MS))
    )
    default_ms: int = DEFAULT_STAGE_DURATION_MS

    def __post_init__(self) -> None:
        """Validate configuration values and freeze the mapping."""
        if self.default_ms <= 0:
            raise ValueError(f"default_ms must be positive, got {self.default_ms}")
        for stage, duration in self.durations_ms.items():
            if duration <= 0:
                raise ValueError(
                    f"duration for {stage} must be positive, got {duration}"
                )
        object.__setattr__(
            self, "durations_ms", MappingProxyType(dict(self.durations_ms))
        )

    @classmethod
    def from_environment(cls) -> StageDurationConfig:
        """Create config from STAGE_DURATION_<STAGE>_SECONDS variables.

        Non-positive overrides are ignored.

        Returns:
            StageDurationConfig with values from environment or defaults.
        """
        durations = dict(DEFAULT_STAGE_DURATIONS_MS)
        for stage in STAGE_ORDER:
            default_seconds = durations[stage.value] // 1000
            seconds = _get_int_env(
                f"STAGE_DURATION_{stage.value}_SECONDS", default_seconds
            )
            if seconds > 0:
                durations[stage.value] = seconds * 1000
        return cls(durations_ms=durations)


# Pre-defined configurations for common use cases

DEFAULT_STAGE_ENGINE_CONFIG = StageEngineConfig()

# Fast cadence and short eviction window for unit tests
TEST_STAGE_ENGINE_CONFIG = StageEngineConfig(
    tick_interval_ms=MIN_TICK_INTERVAL_MS,
    inactivity_window_ms=60_000,
)

DEFAULT_DEBOUNCE_CONFIG = DebounceConfig()

DEFAULT_STAGE_DURATION_CONFIG = StageDurationConfig()
