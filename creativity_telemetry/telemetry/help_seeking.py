"""
Help-Seeking Behavior Tracker

Records when and how often a participant turns to the AI assistant relative
to solving on their own.

Per-round state machine:
    NOT_YET_ASKED --record_query()--> HAS_ASKED_AI
    any state --record_round_complete()--> NOT_YET_ASKED

"AI as first resort" (no attempt before the first query) and "AI as last
resort" (at least N attempts before it) are threshold labels, not validated
psychometric constructs.
"""

from enum import Enum
from typing import List, Optional
import logging

from creativity_telemetry.core.config import Settings, settings as default_settings
from creativity_telemetry.telemetry.capture import Clock, wall_clock_ms
from creativity_telemetry.telemetry.schemas import HelpSeekingMetrics

logger = logging.getLogger(__name__)


class HelpState(str, Enum):
    NOT_YET_ASKED = "not_yet_asked"
    HAS_ASKED_AI = "has_asked_ai"


class HelpSeekingTracker:

    def __init__(
        self,
        clock: Optional[Clock] = None,
        last_resort_attempts: Optional[int] = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or default_settings
        self.clock = clock or wall_clock_ms
        self.last_resort_attempts = (
            last_resort_attempts if last_resort_attempts is not None
            else settings.LAST_RESORT_ATTEMPTS
        )
        self.reset()

    def reset(self) -> None:
        """Reinitialize everything for an intentional task restart"""
        self.task_started_at = self.clock()
        self.state = HelpState.NOT_YET_ASKED
        self.time_to_first_query: Optional[float] = None
        self.independent_attempts = 0
        self.attempts_before_first_query = 0
        self.total_queries = 0
        self.round_queries = 0
        self.queries_per_round: List[int] = []

    def record_query(self) -> None:
        if self.state == HelpState.NOT_YET_ASKED:
            self.state = HelpState.HAS_ASKED_AI
            if self.time_to_first_query is None:
                self.time_to_first_query = max(0.0, self.clock() - self.task_started_at)
                logger.debug(f"First AI query after {self.time_to_first_query:.0f}ms")
        self.total_queries += 1
        self.round_queries += 1

    def record_submission(self, was_ai_assisted: bool) -> None:
        if not was_ai_assisted:
            self.independent_attempts += 1
        if self.state == HelpState.NOT_YET_ASKED:
            self.attempts_before_first_query += 1

    def record_round_complete(self) -> None:
        self.queries_per_round.append(self.round_queries)
        self.round_queries = 0
        self.state = HelpState.NOT_YET_ASKED

    def snapshot(self) -> HelpSeekingMetrics:
        has_queried = self.total_queries > 0
        return HelpSeekingMetrics(
            time_to_first_ai_query=self.time_to_first_query,
            independent_solve_attempts=self.independent_attempts,
            attempts_before_first_ai_query=self.attempts_before_first_query,
            ai_as_first_resort=has_queried and self.attempts_before_first_query == 0,
            ai_as_last_resort=has_queried and self.attempts_before_first_query >= self.last_resort_attempts,
            total_ai_queries=self.total_queries,
            ai_queries_per_round=list(self.queries_per_round),
            current_round_queries=self.round_queries,
        )
