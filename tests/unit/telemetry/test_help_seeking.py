"""
Unit tests for the Help-Seeking Behavior Tracker
"""

import pytest

from creativity_telemetry.telemetry.help_seeking import HelpSeekingTracker, HelpState


@pytest.fixture
def tracker(clock, test_settings):
    return HelpSeekingTracker(clock=clock, settings=test_settings)


class TestResortClassification:
    """First-resort / last-resort labels"""

    def test_query_before_any_attempt_is_first_resort(self, tracker):
        tracker.record_query()
        metrics = tracker.snapshot()

        assert metrics.ai_as_first_resort is True
        assert metrics.ai_as_last_resort is False
        assert metrics.attempts_before_first_ai_query == 0

    def test_assisted_submission_after_first_query(self, tracker):
        tracker.record_query()
        tracker.record_submission(True)
        metrics = tracker.snapshot()

        assert metrics.independent_solve_attempts == 0
        assert metrics.ai_as_first_resort is True

    def test_two_attempts_then_query_is_last_resort(self, tracker):
        tracker.record_submission(False)
        tracker.record_submission(False)
        tracker.record_query()
        metrics = tracker.snapshot()

        assert metrics.ai_as_last_resort is True
        assert metrics.ai_as_first_resort is False
        assert metrics.attempts_before_first_ai_query == 2
        assert metrics.independent_solve_attempts == 2

    def test_one_attempt_is_neither(self, tracker):
        tracker.record_submission(False)
        tracker.record_query()
        metrics = tracker.snapshot()

        assert not metrics.ai_as_first_resort
        assert not metrics.ai_as_last_resort

    def test_no_queries_is_neither(self, tracker):
        tracker.record_submission(False)
        tracker.record_submission(False)
        tracker.record_submission(False)
        metrics = tracker.snapshot()

        assert metrics.total_ai_queries == 0
        assert not metrics.ai_as_first_resort
        assert not metrics.ai_as_last_resort
        assert metrics.time_to_first_ai_query is None

    def test_custom_last_resort_threshold(self, clock):
        tracker = HelpSeekingTracker(clock=clock, last_resort_attempts=3)
        tracker.record_submission(False)
        tracker.record_submission(False)
        tracker.record_query()

        assert tracker.snapshot().ai_as_last_resort is False


class TestQueries:
    """Query counting and first-query timing"""

    def test_time_to_first_query(self, tracker, clock):
        clock.advance(5000)
        tracker.record_query()

        assert tracker.snapshot().time_to_first_ai_query == 5000

    def test_second_query_does_not_move_first_query_time(self, tracker, clock):
        clock.advance(1000)
        tracker.record_query()
        clock.advance(4000)
        tracker.record_query()
        metrics = tracker.snapshot()

        assert metrics.time_to_first_ai_query == 1000
        assert metrics.total_ai_queries == 2
        assert metrics.current_round_queries == 2

    def test_assisted_submissions_are_not_independent(self, tracker):
        tracker.record_query()
        tracker.record_submission(True)

        assert tracker.snapshot().independent_solve_attempts == 0

    def test_state_transitions(self, tracker):
        assert tracker.state == HelpState.NOT_YET_ASKED
        tracker.record_query()
        assert tracker.state == HelpState.HAS_ASKED_AI


class TestRounds:
    """Round boundaries and restart"""

    def test_round_complete_archives_queries(self, tracker):
        tracker.record_query()
        tracker.record_query()
        tracker.record_round_complete()
        tracker.record_query()
        metrics = tracker.snapshot()

        assert metrics.ai_queries_per_round == [2]
        assert metrics.current_round_queries == 1
        assert metrics.total_ai_queries == 3

    def test_round_complete_returns_to_not_yet_asked(self, tracker, clock):
        clock.advance(1000)
        tracker.record_query()
        tracker.record_round_complete()

        assert tracker.state == HelpState.NOT_YET_ASKED
        clock.advance(9000)
        tracker.record_query()
        assert tracker.snapshot().time_to_first_ai_query == 1000

    def test_unassisted_submission_in_later_round_counts(self, tracker):
        tracker.record_query()
        tracker.record_round_complete()
        assert tracker.state == HelpState.NOT_YET_ASKED

        tracker.record_submission(False)
        metrics = tracker.snapshot()

        assert metrics.attempts_before_first_ai_query == 1
        assert metrics.independent_solve_attempts == 1
        assert metrics.ai_as_first_resort is False

    def test_submission_after_query_in_same_round_not_counted(self, tracker):
        tracker.record_round_complete()
        tracker.record_query()
        tracker.record_submission(False)

        assert tracker.snapshot().attempts_before_first_ai_query == 0

    def test_round_without_queries_records_zero(self, tracker):
        tracker.record_round_complete()

        assert tracker.snapshot().ai_queries_per_round == [0]

    def test_reset_restarts_clock_and_counters(self, tracker, clock):
        tracker.record_submission(False)
        tracker.record_query()
        tracker.record_round_complete()

        clock.advance(60000)
        tracker.reset()
        clock.advance(2000)
        tracker.record_query()
        metrics = tracker.snapshot()

        assert metrics.time_to_first_ai_query == 2000
        assert metrics.total_ai_queries == 1
        assert metrics.ai_queries_per_round == []
        assert metrics.independent_solve_attempts == 0
        assert metrics.ai_as_first_resort is True

    def test_snapshot_is_a_copy(self, tracker):
        tracker.record_round_complete()
        metrics = tracker.snapshot()
        tracker.record_round_complete()

        assert metrics.ai_queries_per_round == [0]
