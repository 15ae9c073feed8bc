"""
Pydantic schemas for session telemetry

Raw event logs, derived feature groups and the assembled snapshot that is
shipped with a task completion record. Derived groups and the snapshot are
frozen: once handed to a caller they never change.
"""

from typing import List, Dict, Any, Optional
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field


# Enums

class TaskKind(str, Enum):
    """Creativity task presented in a session"""
    ALTERNATE_USES = "alternate_uses"              # AUT
    REMOTE_ASSOCIATES = "remote_associates"        # RAT
    DIVERGENT_ASSOCIATION = "divergent_association"  # DAT


class KeyDirection(str, Enum):
    DOWN = "down"
    UP = "up"


class PointerKind(str, Enum):
    MOVE = "move"
    CLICK = "click"
    SCROLL = "scroll"


class ClipboardDirection(str, Enum):
    COPY = "copy"
    PASTE = "paste"


class ClipboardSource(str, Enum):
    """Page region a clipboard event originated from"""
    CHAT = "chat"
    TASK = "task"
    EXTERNAL = "external"


class InteractionType(str, Enum):
    """Composition lifecycle milestones"""
    MESSAGE_START = "message_start"
    MESSAGE_COMPLETE = "message_complete"
    AI_RESPONSE = "ai_response"
    PAUSE = "pause"
    NAVIGATION = "navigation"


class FocusKind(str, Enum):
    FOCUS = "focus"
    BLUR = "blur"


# Raw event logs

class KeystrokeEvent(BaseModel):
    """One key-down or key-up observation"""
    key: str
    timestamp: float
    direction: KeyDirection
    duration: Optional[float] = None  # filled in on the matching key-up
    is_backspace: bool = False
    is_special_key: bool = False


class PointerEvent(BaseModel):
    x: float = 0.0
    y: float = 0.0
    timestamp: float
    kind: PointerKind
    element: Optional[str] = None
    velocity: Optional[float] = None  # px/ms, move events only


class CopyPasteEvent(BaseModel):
    timestamp: float
    direction: ClipboardDirection
    source: ClipboardSource
    text_length: int = 0
    text_preview: str = ""


class InteractionStep(BaseModel):
    session_id: str
    sequence_number: int
    interaction_type: InteractionType
    timestamp: float
    duration: float = 0.0
    context: Dict[str, Any] = Field(default_factory=dict)


class FocusEvent(BaseModel):
    timestamp: float
    kind: FocusKind


class VisibilityChange(BaseModel):
    timestamp: float
    visible: bool


class ScrollSample(BaseModel):
    timestamp: float
    position: float


# AI usage / help seeking

class PhraseMatch(BaseModel):
    """An answer phrase found verbatim in an assistant response"""
    phrase: str
    similarity: float = 1.0


class AIUsageTracking(BaseModel):
    ai_responses_copied: int = 0
    ai_text_used_in_answers: int = 0
    total_ai_response_length: int = 0
    total_user_answer_length: int = 0
    ai_usage_percentage: float = Field(0.0, ge=0, le=100)
    matched_segments: List[PhraseMatch] = Field(default_factory=list)


class HelpSeekingMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    time_to_first_ai_query: Optional[float] = None  # ms since task start
    independent_solve_attempts: int = 0
    attempts_before_first_ai_query: int = 0
    ai_as_first_resort: bool = False
    ai_as_last_resort: bool = False
    total_ai_queries: int = 0
    ai_queries_per_round: List[int] = Field(default_factory=list)
    current_round_queries: int = 0


# Derived feature groups

class KeystrokeDynamics(BaseModel):
    model_config = ConfigDict(frozen=True)

    dwell_times: List[float] = Field(default_factory=list)
    flight_times: List[float] = Field(default_factory=list)
    rhythm: float = 0.0


class TypingPattern(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_keypresses: int = 0
    backspace_count: int = 0
    pause_count: int = 0
    avg_typing_speed: float = 0.0  # chars per minute
    peak_typing_speed: float = 0.0
    keystroke_dynamics: KeystrokeDynamics = Field(default_factory=KeystrokeDynamics)
    correction_ratio: float = 0.0
    pause_distribution: List[float] = Field(default_factory=list)


class EditingBehavior(BaseModel):
    model_config = ConfigDict(frozen=True)

    revisions: int = 0
    deletions: int = 0
    insertions: int = 0
    cursor_movements: int = 0


class CognitiveLoadIndicators(BaseModel):
    model_config = ConfigDict(frozen=True)

    thinking_pauses: int = 0
    avg_thinking_time: float = 0.0
    longest_pause: float = 0.0
    editing_behavior: EditingBehavior = Field(default_factory=EditingBehavior)
    response_latency: float = 0.0
    task_switching: int = 0


class EmotionalTone(BaseModel):
    model_config = ConfigDict(frozen=True)

    positive: float = 0.0
    negative: float = 0.0
    neutral: float = 0.0


class CreativityIndicators(BaseModel):
    model_config = ConfigDict(frozen=True)

    unique_words: int = 0
    metaphor_count: int = 0
    question_count: int = 0
    idea_count: int = 0


class LinguisticFeatures(BaseModel):
    model_config = ConfigDict(frozen=True)

    word_count: int = 0
    char_count: int = 0
    avg_word_length: float = 0.0
    sentence_count: int = 0
    avg_sentence_length: float = 0.0
    vocabulary_richness: float = Field(0.0, ge=0, le=1)
    readability_score: float = 0.0
    semantic_complexity: float = Field(0.0, ge=0, le=1)
    emotional_tone: EmotionalTone = Field(default_factory=EmotionalTone)
    creativity_indicators: CreativityIndicators = Field(default_factory=CreativityIndicators)


class MessageMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    response_time: float = 0.0
    message_length: int = 0
    edit_count: int = 0
    final_message_different_from_first: bool = False


class QualityMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    creativity_score: float = 0.0
    coherence_score: float = 0.0


class AttentionTracking(BaseModel):
    model_config = ConfigDict(frozen=True)

    focus_events: List[FocusEvent] = Field(default_factory=list)
    visibility_changes: List[VisibilityChange] = Field(default_factory=list)
    scroll_behavior: List[ScrollSample] = Field(default_factory=list)


# Snapshot

class EnvironmentInfo(BaseModel):
    """Host descriptors reported by an environment probe"""
    model_config = ConfigDict(frozen=True)

    language: str = "unknown"
    platform: str = "unknown"
    user_agent: str = ""
    screen_resolution: str = "0x0"
    viewport: str = "0x0"
    timezone: str = "UTC"
    device_pixel_ratio: float = 1.0
    connection_type: str = "unknown"


class TaskContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    current_round: Optional[int] = None
    current_stimulus: Optional[Dict[str, Any]] = None
    task_progress: float = Field(0.0, ge=0, le=100)
    task_completion: bool = False


class TelemetrySnapshot(BaseModel):
    """One immutable, fully-derived behavioral record"""
    model_config = ConfigDict(frozen=True)

    # Identifiers
    session_id: str
    participant_id: str
    task_kind: TaskKind
    timestamp: float

    environment: EnvironmentInfo
    task_context: TaskContext

    # Behavioral data
    typing_pattern: TypingPattern
    cognitive_load: CognitiveLoadIndicators
    linguistic_features: LinguisticFeatures
    message_metrics: MessageMetrics
    quality_metrics: QualityMetrics
    help_seeking: HelpSeekingMetrics

    keystroke_sequence: List[KeystrokeEvent]
    mouse_activity: List[PointerEvent]
    copy_paste_events: List[CopyPasteEvent]
    interaction_sequence: List[InteractionStep]
    attention_tracking: AttentionTracking

    # Session aggregates
    session_duration: float
    total_messages: int
    avg_message_interval: float

    # ML-ready projections
    feature_vector: List[float]
    temporal_features: List[List[float]]


class EngagementData(BaseModel):
    """Engagement part of a completion record"""
    model_config = ConfigDict(frozen=True)

    ai_usage: AIUsageTracking
    copy_paste_events: List[CopyPasteEvent]
    copy_paste_count: int
    help_seeking: HelpSeekingMetrics
