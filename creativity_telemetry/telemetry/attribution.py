"""
AI-Usage Attribution Matcher

Estimates how much of a submitted answer was lifted from assistant replies
seen earlier in the session.

Method:
- Build overlapping lowercase word n-grams (3 and 5 words) from the answer
- Keep phrases longer than the minimum length (10 characters)
- Every phrase found verbatim inside a stored assistant reply adds its length
  to the matched-character total

This is a lexical heuristic: paraphrased reuse goes undetected, and short
coincidental overlaps can still match. Scores are recorded as 1.0 (exact hit).
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence
import logging

from creativity_telemetry.core.config import Settings, settings as default_settings
from creativity_telemetry.telemetry.schemas import AIUsageTracking, PhraseMatch

logger = logging.getLogger(__name__)


@dataclass
class AttributionResult:
    """Outcome of attributing a single answer"""
    answer_length: int
    matched_chars: int
    usage_percentage: float
    matches: List[PhraseMatch] = field(default_factory=list)


def answer_phrases(answer: str, ngram_sizes: Sequence[int], min_length: int) -> List[str]:
    words = answer.lower().split()
    phrases = []
    for size in ngram_sizes:
        if size <= 0:
            continue
        for i in range(len(words) - size + 1):
            phrase = " ".join(words[i:i + size])
            if len(phrase) > min_length:
                phrases.append(phrase)
    return phrases


def usage_percentage(matched_chars: int, answer_length: int) -> float:
    if answer_length <= 0 or matched_chars <= 0:
        return 0.0
    return min(100.0, matched_chars / answer_length * 100)


class AIUsageMatcher:
    """
    Session-scoped store of assistant replies plus the running usage aggregate
    """

    def __init__(
        self,
        ngram_sizes: Optional[Sequence[int]] = None,
        min_phrase_length: Optional[int] = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or default_settings
        self.ngram_sizes = tuple(ngram_sizes or settings.ATTRIBUTION_NGRAM_SIZES)
        self.min_phrase_length = (
            min_phrase_length if min_phrase_length is not None
            else settings.ATTRIBUTION_MIN_PHRASE_LENGTH
        )
        self.reset()

    def reset(self):
        self._assistant_texts: List[str] = []
        self._tracking = AIUsageTracking()

    @property
    def assistant_texts(self) -> List[str]:
        return list(self._assistant_texts)

    @property
    def tracking(self) -> AIUsageTracking:
        return self._tracking.model_copy(deep=True)

    def record_assistant_text(self, text: str) -> None:
        if not text:
            return
        self._assistant_texts.append(text.lower())
        self._tracking.total_ai_response_length += len(text)

    def record_copy_from_chat(self) -> None:
        self._tracking.ai_responses_copied += 1

    def attribute(self, answer: str) -> AttributionResult:
        """
        Attribute an answer against every stored assistant reply

        Updates the running aggregate; the stored replies are untouched.
        """
        answer = answer or ""
        result = AttributionResult(answer_length=len(answer), matched_chars=0, usage_percentage=0.0)
        if not answer.strip():
            return result

        self._tracking.total_user_answer_length += len(answer)

        if self._assistant_texts:
            for phrase in answer_phrases(answer, self.ngram_sizes, self.min_phrase_length):
                for text in self._assistant_texts:
                    if phrase in text:
                        result.matched_chars += len(phrase)
                        result.matches.append(PhraseMatch(phrase=phrase, similarity=1.0))

        result.usage_percentage = usage_percentage(result.matched_chars, len(answer))

        tracking = self._tracking
        tracking.ai_text_used_in_answers += result.matched_chars
        tracking.matched_segments.extend(result.matches)
        tracking.ai_usage_percentage = usage_percentage(
            tracking.ai_text_used_in_answers, tracking.total_user_answer_length
        )

        if result.matches:
            logger.debug(
                f"AI attribution: {len(result.matches)} phrase hits, "
                f"{result.usage_percentage:.1f}% of answer"
            )
        return result
