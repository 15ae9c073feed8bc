"""
Telemetry Snapshot Assembler

Combines derived features, help-seeking metrics and environment descriptors
into one immutable TelemetrySnapshot, plus two ML projections:

- Flat feature vector: fixed order given by FEATURE_NAMES. Consumers index
  into it, so reordering or inserting entries is a breaking change.
- Temporal feature matrix: one row per fixed-size window from session start
  to the request instant:
      [keystrokes, pointer events, pauses (> pause threshold), window offset]
  Empty windows still produce an all-zero row.

Nothing is cached; each call is O(number of events).
"""

from typing import List, Optional, Sequence
import logging
import math

import numpy as np

from creativity_telemetry.core.config import Settings, settings as default_settings
from creativity_telemetry.telemetry.capture import Clock, EventLogs, wall_clock_ms
from creativity_telemetry.telemetry.environment import EnvironmentProbe, StaticEnvironmentProbe
from creativity_telemetry.telemetry.features import (
    derive_cognitive_load,
    derive_linguistic_features,
    derive_message_metrics,
    derive_quality_metrics,
    derive_typing_pattern,
    mean,
)
from creativity_telemetry.telemetry.schemas import (
    AttentionTracking,
    CognitiveLoadIndicators,
    EnvironmentInfo,
    HelpSeekingMetrics,
    KeystrokeEvent,
    LinguisticFeatures,
    PointerEvent,
    TaskContext,
    TaskKind,
    TelemetrySnapshot,
    TypingPattern,
)

logger = logging.getLogger(__name__)


FEATURE_NAMES = (
    # Typing
    "avg_typing_speed",
    "peak_typing_speed",
    "correction_ratio",
    "pause_count",
    "rhythm",
    # Cognitive
    "thinking_pauses",
    "avg_thinking_time",
    "response_latency",
    "task_switching",
    "revisions",
    # Linguistic
    "word_count",
    "vocabulary_richness",
    "readability_score_scaled",
    "semantic_complexity",
    "unique_words",
    # Behavioral
    "pointer_event_count",
    "blur_count",
    "session_duration_minutes",
    "total_messages",
)

TEMPORAL_FEATURE_NAMES = ("keystrokes", "pointer_events", "pauses", "window_offset_ms")


def build_feature_vector(
    typing: TypingPattern,
    cognitive: CognitiveLoadIndicators,
    linguistic: LinguisticFeatures,
    pointer_event_count: int,
    blur_count: int,
    session_duration_ms: float,
    total_messages: int,
) -> List[float]:
    vector = [
        typing.avg_typing_speed,
        typing.peak_typing_speed,
        typing.correction_ratio,
        typing.pause_count,
        typing.keystroke_dynamics.rhythm,

        cognitive.thinking_pauses,
        cognitive.avg_thinking_time,
        cognitive.response_latency,
        cognitive.task_switching,
        cognitive.editing_behavior.revisions,

        linguistic.word_count,
        linguistic.vocabulary_richness,
        linguistic.readability_score / 100,
        linguistic.semantic_complexity,
        linguistic.creativity_indicators.unique_words,

        pointer_event_count,
        blur_count,
        session_duration_ms / 60000,
        total_messages,
    ]
    return [float(v) for v in vector]


def _window_counts(timestamps: Sequence[float], start: float, window_ms: float, rows: int) -> np.ndarray:
    if not len(timestamps):
        return np.zeros(rows, dtype=int)
    times = np.asarray(timestamps, dtype=float)
    end = start + rows * window_ms
    times = times[(times >= start) & (times < end)]
    indices = np.floor((times - start) / window_ms).astype(int)
    indices = indices[(indices >= 0) & (indices < rows)]
    return np.bincount(indices, minlength=rows)[:rows]


def build_temporal_features(
    keystrokes: Sequence[KeystrokeEvent],
    pointer_events: Sequence[PointerEvent],
    session_start: float,
    now: float,
    window_ms: float = 1000.0,
    pause_threshold_ms: float = 500.0,
) -> List[List[float]]:
    """
    Windowed counts from session start to now

    The matrix has exactly ceil((now - session_start) / window_ms) rows.
    """
    duration = max(0.0, now - session_start)
    if window_ms <= 0 or duration == 0:
        return []
    rows = math.ceil(duration / window_ms)

    key_times = [e.timestamp for e in keystrokes]
    pause_times = [
        key_times[i] for i in range(1, len(key_times))
        if key_times[i] - key_times[i - 1] > pause_threshold_ms
    ]

    matrix = np.column_stack([
        _window_counts(key_times, session_start, window_ms, rows),
        _window_counts([e.timestamp for e in pointer_events], session_start, window_ms, rows),
        _window_counts(pause_times, session_start, window_ms, rows),
        np.arange(rows) * window_ms,
    ]).astype(float)
    return matrix.tolist()


class SnapshotAssembler:
    """
    Single entry point that turns captured logs into a TelemetrySnapshot
    """

    def __init__(
        self,
        environment: Optional[EnvironmentProbe] = None,
        clock: Optional[Clock] = None,
        settings: Optional[Settings] = None,
    ):
        self.environment = environment or StaticEnvironmentProbe()
        self.clock = clock or wall_clock_ms
        self.settings = settings or default_settings

    def describe_environment(self) -> EnvironmentInfo:
        try:
            return self.environment.describe()
        except Exception as e:
            logger.warning(f"Environment probe failed, using defaults: {e}")
            return EnvironmentInfo()

    def assemble(
        self,
        session_id: str,
        participant_id: str,
        task_kind: TaskKind,
        session_start: float,
        logs: EventLogs,
        help_seeking: HelpSeekingMetrics,
        task_context: Optional[TaskContext] = None,
        message: str = "",
        first_draft: Optional[str] = None,
        response_latencies: Sequence[float] = (),
        total_messages: int = 0,
        message_intervals: Sequence[float] = (),
    ) -> TelemetrySnapshot:
        now = self.clock()
        session_duration = max(0.0, now - session_start)
        settings = self.settings

        typing = derive_typing_pattern(logs.keystrokes, settings)
        cognitive = derive_cognitive_load(logs.keystrokes, logs.focus_events, response_latencies, settings)
        linguistic = derive_linguistic_features(message)

        return TelemetrySnapshot(
            session_id=session_id,
            participant_id=participant_id,
            task_kind=task_kind,
            timestamp=now,
            environment=self.describe_environment(),
            task_context=task_context or TaskContext(),
            typing_pattern=typing,
            cognitive_load=cognitive,
            linguistic_features=linguistic,
            message_metrics=derive_message_metrics(message, logs.keystrokes, response_latencies, first_draft),
            quality_metrics=derive_quality_metrics(linguistic),
            help_seeking=help_seeking,
            keystroke_sequence=list(logs.keystrokes),
            mouse_activity=list(logs.pointer_events),
            copy_paste_events=list(logs.copy_paste_events),
            interaction_sequence=list(logs.interactions),
            attention_tracking=AttentionTracking(
                focus_events=list(logs.focus_events),
                visibility_changes=list(logs.visibility_changes),
                scroll_behavior=list(logs.scroll_behavior),
            ),
            session_duration=session_duration,
            total_messages=total_messages,
            avg_message_interval=mean(message_intervals),
            feature_vector=build_feature_vector(
                typing,
                cognitive,
                linguistic,
                pointer_event_count=len(logs.pointer_events),
                blur_count=logs.blur_count,
                session_duration_ms=session_duration,
                total_messages=total_messages,
            ),
            temporal_features=build_temporal_features(
                logs.keystrokes,
                logs.pointer_events,
                session_start,
                now,
                window_ms=settings.TEMPORAL_WINDOW_MS,
                pause_threshold_ms=settings.PAUSE_THRESHOLD_MS,
            ),
        )
