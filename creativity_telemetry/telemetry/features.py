"""
Feature Derivation Engine

Pure reductions of the captured event logs into three feature groups:

1. Typing pattern: keystroke dynamics (dwell/flight times, rhythm),
   sliding-window typing speed, pauses and corrections
2. Cognitive load indicators: thinking pauses, editing behavior,
   response latency after AI replies, task switching
3. Linguistic features of the latest message: counts, vocabulary richness,
   simplified Flesch reading ease, lexicon tone, creativity cues

Every ratio with a zero denominator is 0. No function here raises on empty
input, and none of them mutates its arguments.
"""

from typing import Iterable, List, Optional, Sequence
import re

import numpy as np

from creativity_telemetry.core.config import Settings, settings as default_settings
from creativity_telemetry.telemetry.capture import ARROW_KEYS
from creativity_telemetry.telemetry.schemas import (
    CognitiveLoadIndicators,
    CreativityIndicators,
    EditingBehavior,
    EmotionalTone,
    FocusEvent,
    FocusKind,
    KeyDirection,
    KeystrokeDynamics,
    KeystrokeEvent,
    LinguisticFeatures,
    MessageMetrics,
    QualityMetrics,
    TypingPattern,
)


# ============================================================================
# LEXICONS
# ============================================================================

POSITIVE_WORDS = (
    "good", "great", "excellent", "amazing", "wonderful",
    "fantastic", "love", "like", "happy", "joy",
)
NEGATIVE_WORDS = (
    "bad", "terrible", "awful", "hate", "dislike",
    "sad", "angry", "frustrated", "difficult", "problem",
)
METAPHOR_MARKERS = ("like", "as", "similar to", "reminds me", "appears to be")

VOWELS = "aeiouy"

# Flesch Reading Ease coefficients
FLESCH_BASE = 206.835
FLESCH_SENTENCE_WEIGHT = 1.015
FLESCH_SYLLABLE_WEIGHT = 84.6

SENTENCE_SPLIT = re.compile(r"[.!?]+")
IDEA_TERMINATORS = re.compile(r"[.!]")


def safe_ratio(numerator: float, denominator: float) -> float:
    """numerator / denominator, or 0 when the denominator is 0"""
    if not denominator:
        return 0.0
    return numerator / denominator


def mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return float(sum(values)) / len(values)


def population_std(values: Sequence[float]) -> float:
    if len(values) < 2:
        return 0.0
    return float(np.std(np.asarray(values, dtype=float)))


def key_downs(keystrokes: Iterable[KeystrokeEvent]) -> List[KeystrokeEvent]:
    return [e for e in keystrokes if e.direction == KeyDirection.DOWN]


def typed_keys(keystrokes: Iterable[KeystrokeEvent]) -> List[KeystrokeEvent]:
    """Key-downs that produce or delete text (Backspace included)"""
    return [e for e in key_downs(keystrokes) if not e.is_special_key]


def gaps(timestamps: Sequence[float]) -> List[float]:
    return [timestamps[i] - timestamps[i - 1] for i in range(1, len(timestamps))]


# ============================================================================
# TYPING PATTERN
# ============================================================================

def typing_speeds(timestamps: Sequence[float], window_ms: float) -> List[float]:
    """
    Characters per minute in a window anchored at every keystroke

    Each window spans [t_i, t_i + window_ms]; timestamps must be sorted.
    """
    if not timestamps or window_ms <= 0:
        return []
    times = np.asarray(timestamps, dtype=float)
    window_starts = np.searchsorted(times, times, side="left")
    window_ends = np.searchsorted(times, times + window_ms, side="right")
    chars = window_ends - window_starts
    return [float(c) / window_ms * 60000.0 for c in chars]


def derive_typing_pattern(
    keystrokes: Sequence[KeystrokeEvent],
    settings: Optional[Settings] = None,
) -> TypingPattern:
    settings = settings or default_settings
    typed = typed_keys(keystrokes)
    if not typed:
        return TypingPattern()

    backspace_count = sum(1 for e in typed if e.is_backspace)
    timestamps = [e.timestamp for e in typed]

    flight_times = gaps(timestamps)
    pauses = [g for g in flight_times if g >= settings.PAUSE_THRESHOLD_MS]
    dwell_times = [
        e.duration for e in keystrokes
        if e.direction == KeyDirection.DOWN and e.duration is not None
    ]
    speeds = typing_speeds(timestamps, settings.TYPING_WINDOW_MS)

    return TypingPattern(
        total_keypresses=len(typed),
        backspace_count=backspace_count,
        pause_count=len(pauses),
        avg_typing_speed=mean(speeds),
        peak_typing_speed=max(speeds, default=0.0),
        keystroke_dynamics=KeystrokeDynamics(
            dwell_times=dwell_times,
            flight_times=flight_times,
            rhythm=population_std(flight_times),
        ),
        correction_ratio=safe_ratio(backspace_count, len(typed)),
        pause_distribution=pauses,
    )


# ============================================================================
# COGNITIVE LOAD
# ============================================================================

def derive_cognitive_load(
    keystrokes: Sequence[KeystrokeEvent],
    focus_events: Sequence[FocusEvent] = (),
    response_latencies: Sequence[float] = (),
    settings: Optional[Settings] = None,
) -> CognitiveLoadIndicators:
    settings = settings or default_settings
    downs = key_downs(keystrokes)

    thinking_gaps = [
        g for g in gaps([e.timestamp for e in downs])
        if g >= settings.THINKING_PAUSE_MS
    ]
    backspaces = sum(1 for e in downs if e.is_backspace)
    insertions = sum(1 for e in downs if not e.is_special_key and not e.is_backspace)
    cursor_movements = sum(1 for e in downs if e.key in ARROW_KEYS)

    return CognitiveLoadIndicators(
        thinking_pauses=len(thinking_gaps),
        avg_thinking_time=mean(thinking_gaps),
        longest_pause=max(thinking_gaps, default=0.0),
        editing_behavior=EditingBehavior(
            revisions=backspaces,
            deletions=backspaces,
            insertions=insertions,
            cursor_movements=cursor_movements,
        ),
        response_latency=mean(response_latencies),
        task_switching=sum(1 for e in focus_events if e.kind == FocusKind.BLUR),
    )


# ============================================================================
# LINGUISTIC FEATURES
# ============================================================================

def tokenize_words(text: str) -> List[str]:
    return text.split()


def tokenize_sentences(text: str) -> List[str]:
    return [s for s in SENTENCE_SPLIT.split(text) if s.strip()]


def count_syllables(word: str) -> int:
    """Vowel-group heuristic, trailing 'e' is silent, at least 1"""
    count = 0
    previous_was_vowel = False
    lowered = word.lower()
    for char in lowered:
        is_vowel = char in VOWELS
        if is_vowel and not previous_was_vowel:
            count += 1
        previous_was_vowel = is_vowel
    if lowered.endswith("e"):
        count -= 1
    return max(1, count)


def readability_score(words: Sequence[str], sentences: Sequence[str]) -> float:
    """Simplified Flesch Reading Ease"""
    if not words or not sentences:
        return 0.0
    words_per_sentence = len(words) / len(sentences)
    syllables_per_word = sum(count_syllables(w) for w in words) / len(words)
    return (
        FLESCH_BASE
        - FLESCH_SENTENCE_WEIGHT * words_per_sentence
        - FLESCH_SYLLABLE_WEIGHT * syllables_per_word
    )


def semantic_complexity(words: Sequence[str]) -> float:
    """Blend of average word length and type/token ratio in [0, 1]"""
    if not words:
        return 0.0
    avg_length = sum(len(w) for w in words) / len(words)
    type_token = len({w.lower() for w in words}) / len(words)
    return min(1.0, max(0.0, avg_length * 0.3 + type_token * 0.7))


def emotional_tone(words: Sequence[str]) -> EmotionalTone:
    total = len(words)
    if not total:
        return EmotionalTone()
    lowered = [w.lower() for w in words]
    positive = sum(1 for w in lowered if any(p in w for p in POSITIVE_WORDS))
    negative = sum(1 for w in lowered if any(n in w for n in NEGATIVE_WORDS))
    return EmotionalTone(
        positive=positive / total,
        negative=negative / total,
        neutral=max(0, total - positive - negative) / total,
    )


def creativity_indicators(text: str, words: Sequence[str]) -> CreativityIndicators:
    if not words:
        return CreativityIndicators(question_count=text.count("?"))
    lowered = text.lower()
    return CreativityIndicators(
        unique_words=len({w.lower() for w in words}),
        metaphor_count=sum(1 for marker in METAPHOR_MARKERS if marker in lowered),
        question_count=text.count("?"),
        idea_count=max(1, len(IDEA_TERMINATORS.findall(text))),
    )


def derive_linguistic_features(text: str) -> LinguisticFeatures:
    text = text or ""
    words = tokenize_words(text)
    sentences = tokenize_sentences(text)
    unique = {w.lower() for w in words}

    return LinguisticFeatures(
        word_count=len(words),
        char_count=len(text),
        avg_word_length=safe_ratio(sum(len(w) for w in words), len(words)),
        sentence_count=len(sentences),
        avg_sentence_length=safe_ratio(len(words), len(sentences)),
        vocabulary_richness=safe_ratio(len(unique), len(words)),
        readability_score=readability_score(words, sentences),
        semantic_complexity=semantic_complexity(words),
        emotional_tone=emotional_tone(words),
        creativity_indicators=creativity_indicators(text, words),
    )


# ============================================================================
# MESSAGE / QUALITY
# ============================================================================

def derive_message_metrics(
    message: str,
    keystrokes: Sequence[KeystrokeEvent],
    response_latencies: Sequence[float] = (),
    first_draft: Optional[str] = None,
) -> MessageMetrics:
    message = message or ""
    return MessageMetrics(
        response_time=response_latencies[-1] if response_latencies else 0.0,
        message_length=len(message),
        edit_count=sum(1 for e in key_downs(keystrokes) if e.is_backspace),
        final_message_different_from_first=(
            first_draft is not None and first_draft.strip() != message.strip()
        ),
    )


def derive_quality_metrics(linguistic: LinguisticFeatures) -> QualityMetrics:
    return QualityMetrics(
        creativity_score=safe_ratio(
            linguistic.creativity_indicators.unique_words, linguistic.word_count
        ),
        coherence_score=min(1.0, linguistic.avg_sentence_length / 20),
    )
