"""
Unit tests for the Telemetry Snapshot Assembler

Tests cover:
- Temporal matrix shape and window counts
- Feature vector length and ordering
- Empty sessions and probe failures
- Snapshot immutability
"""

import pytest
from pydantic import ValidationError

from creativity_telemetry.telemetry.capture import EventLogs
from creativity_telemetry.telemetry.environment import EnvironmentProbe
from creativity_telemetry.telemetry.features import derive_linguistic_features
from creativity_telemetry.telemetry.schemas import (
    CognitiveLoadIndicators,
    EnvironmentInfo,
    FocusEvent,
    FocusKind,
    HelpSeekingMetrics,
    KeyDirection,
    KeystrokeEvent,
    PointerEvent,
    PointerKind,
    TaskKind,
    TypingPattern,
)
from creativity_telemetry.telemetry.snapshot import (
    FEATURE_NAMES,
    SnapshotAssembler,
    build_feature_vector,
    build_temporal_features,
)

START = 1_000_000.0


def key(t, direction=KeyDirection.DOWN):
    return KeystrokeEvent(key="a", timestamp=t, direction=direction)


def move(t):
    return PointerEvent(x=0, y=0, timestamp=t, kind=PointerKind.MOVE)


class TestTemporalFeatures:
    """Windowed temporal matrix"""

    @pytest.mark.parametrize("duration,rows", [
        (0, 0),
        (1, 1),
        (999, 1),
        (1000, 1),
        (1001, 2),
        (2500, 3),
        (60000, 60),
    ])
    def test_row_count_is_ceil_of_duration(self, duration, rows):
        matrix = build_temporal_features([], [], START, START + duration)

        assert len(matrix) == rows

    def test_empty_windows_are_zero_rows(self):
        matrix = build_temporal_features([], [], START, START + 2500)

        assert matrix == [
            [0.0, 0.0, 0.0, 0.0],
            [0.0, 0.0, 0.0, 1000.0],
            [0.0, 0.0, 0.0, 2000.0],
        ]

    def test_counts_per_window(self):
        keys = [key(START + 100), key(START + 200, KeyDirection.UP), key(START + 1500)]
        pointer = [move(START + 10), move(START + 2100), move(START + 2200)]
        matrix = build_temporal_features(keys, pointer, START, START + 3000)

        assert [row[0] for row in matrix] == [2.0, 1.0, 0.0]
        assert [row[1] for row in matrix] == [1.0, 0.0, 2.0]

    def test_pauses_counted_in_window_of_resuming_keystroke(self):
        keys = [key(START), key(START + 500), key(START + 1200), key(START + 2500)]
        matrix = build_temporal_features(keys, [], START, START + 3000)

        # gaps: 500 (not > 500), 700, 1300
        assert [row[2] for row in matrix] == [0.0, 1.0, 1.0]

    def test_events_outside_session_window_are_ignored(self):
        keys = [key(START - 50), key(START + 5000)]
        matrix = build_temporal_features(keys, [], START, START + 2000)

        assert sum(row[0] for row in matrix) == 0

    def test_clock_before_start_gives_empty_matrix(self):
        assert build_temporal_features([key(START)], [], START, START - 10) == []


class TestFeatureVector:
    """Fixed-order flat feature vector"""

    def test_names_cover_nineteen_features(self):
        assert len(FEATURE_NAMES) == 19
        assert len(set(FEATURE_NAMES)) == 19

    def test_vector_order(self):
        typing = TypingPattern(avg_typing_speed=120, peak_typing_speed=300, correction_ratio=0.1, pause_count=4)
        cognitive = CognitiveLoadIndicators(thinking_pauses=2, avg_thinking_time=2500, task_switching=3)
        linguistic = derive_linguistic_features("A brick wall.")
        vector = build_feature_vector(
            typing, cognitive, linguistic,
            pointer_event_count=42,
            blur_count=3,
            session_duration_ms=90000,
            total_messages=5,
        )
        named = dict(zip(FEATURE_NAMES, vector))

        assert len(vector) == len(FEATURE_NAMES)
        assert named["avg_typing_speed"] == 120
        assert named["peak_typing_speed"] == 300
        assert named["pause_count"] == 4
        assert named["thinking_pauses"] == 2
        assert named["task_switching"] == 3
        assert named["word_count"] == 3
        assert named["readability_score_scaled"] == pytest.approx(linguistic.readability_score / 100)
        assert named["unique_words"] == 3
        assert named["pointer_event_count"] == 42
        assert named["session_duration_minutes"] == pytest.approx(1.5)
        assert named["total_messages"] == 5
        assert all(isinstance(v, float) for v in vector)


class FailingProbe(EnvironmentProbe):
    def describe(self):
        raise OSError("navigator unavailable")


class TestSnapshotAssembler:
    """Assembling complete snapshots"""

    def test_empty_session(self, clock, environment):
        assembler = SnapshotAssembler(environment, clock=clock)
        snapshot = assembler.assemble(
            session_id="s1",
            participant_id="p1",
            task_kind=TaskKind.DIVERGENT_ASSOCIATION,
            session_start=clock(),
            logs=EventLogs(),
            help_seeking=HelpSeekingMetrics(),
        )

        assert snapshot.typing_pattern.total_keypresses == 0
        assert snapshot.linguistic_features.word_count == 0
        assert snapshot.session_duration == 0
        assert snapshot.temporal_features == []
        assert len(snapshot.feature_vector) == 19
        assert snapshot.environment.language == "en-US"
        assert snapshot.task_context.task_progress == 0

    def test_probe_failure_falls_back_to_defaults(self, clock):
        assembler = SnapshotAssembler(FailingProbe(), clock=clock)

        assert assembler.describe_environment() == EnvironmentInfo()

    def test_snapshot_reflects_logs(self, clock, environment):
        start = clock()
        logs = EventLogs(
            keystrokes=(key(start + 10), key(start + 20)),
            pointer_events=(move(start + 30),),
            focus_events=(FocusEvent(timestamp=start + 40, kind=FocusKind.BLUR),),
        )
        clock.advance(1500)
        snapshot = SnapshotAssembler(environment, clock=clock).assemble(
            session_id="s1",
            participant_id="p1",
            task_kind=TaskKind.ALTERNATE_USES,
            session_start=start,
            logs=logs,
            help_seeking=HelpSeekingMetrics(total_ai_queries=1),
            message="use it as a doorstop",
            message_intervals=[1000, 3000],
            total_messages=2,
        )

        assert snapshot.session_duration == 1500
        assert len(snapshot.temporal_features) == 2
        assert snapshot.keystroke_sequence == list(logs.keystrokes)
        assert snapshot.attention_tracking.focus_events[0].kind == FocusKind.BLUR
        assert snapshot.cognitive_load.task_switching == 1
        assert snapshot.linguistic_features.word_count == 5
        assert snapshot.avg_message_interval == 2000
        assert snapshot.help_seeking.total_ai_queries == 1
        assert snapshot.feature_vector[FEATURE_NAMES.index("blur_count")] == 1

    def test_snapshot_is_frozen(self, clock, environment):
        snapshot = SnapshotAssembler(environment, clock=clock).assemble(
            session_id="s1",
            participant_id="p1",
            task_kind=TaskKind.ALTERNATE_USES,
            session_start=clock(),
            logs=EventLogs(),
            help_seeking=HelpSeekingMetrics(),
        )

        with pytest.raises(ValidationError):
            snapshot.total_messages = 10
        with pytest.raises(ValidationError):
            snapshot.typing_pattern.pause_count = 3
