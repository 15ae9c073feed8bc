"""
Session Telemetry Engine

Includes:
- EventCapture: passive keyboard/pointer/clipboard/attention listeners
- Feature derivation: typing pattern, cognitive load, linguistic features
- AIUsageMatcher: n-gram attribution of answers to assistant replies
- HelpSeekingTracker: per-round AI query state machine
- SnapshotAssembler: immutable snapshot + ML feature projections
- TelemetrySession: owned per-attempt orchestration object
"""
from .schemas import (
    TaskKind,
    KeystrokeEvent,
    PointerEvent,
    CopyPasteEvent,
    InteractionStep,
    InteractionType,
    ClipboardSource,
    AIUsageTracking,
    HelpSeekingMetrics,
    TypingPattern,
    CognitiveLoadIndicators,
    LinguisticFeatures,
    EnvironmentInfo,
    TaskContext,
    TelemetrySnapshot,
    EngagementData,
)
from .capture import (
    EventCapture,
    EventHub,
    EventLogs,
    EventTarget,
    CaptureStateError,
)
from .features import (
    derive_typing_pattern,
    derive_cognitive_load,
    derive_linguistic_features,
)
from .attribution import AIUsageMatcher, AttributionResult
from .help_seeking import HelpSeekingTracker, HelpState
from .environment import (
    EnvironmentProbe,
    StaticEnvironmentProbe,
    BrowserEnvironmentProbe,
    HostEnvironmentProbe,
)
from .snapshot import (
    FEATURE_NAMES,
    TEMPORAL_FEATURE_NAMES,
    SnapshotAssembler,
    build_feature_vector,
    build_temporal_features,
)
from .session import TelemetrySession, generate_session_id

__all__ = [
    # Schemas
    "TaskKind",
    "KeystrokeEvent",
    "PointerEvent",
    "CopyPasteEvent",
    "InteractionStep",
    "InteractionType",
    "ClipboardSource",
    "AIUsageTracking",
    "HelpSeekingMetrics",
    "TypingPattern",
    "CognitiveLoadIndicators",
    "LinguisticFeatures",
    "EnvironmentInfo",
    "TaskContext",
    "TelemetrySnapshot",
    "EngagementData",
    # Capture
    "EventCapture",
    "EventHub",
    "EventLogs",
    "EventTarget",
    "CaptureStateError",
    # Features
    "derive_typing_pattern",
    "derive_cognitive_load",
    "derive_linguistic_features",
    # Attribution / help seeking
    "AIUsageMatcher",
    "AttributionResult",
    "HelpSeekingTracker",
    "HelpState",
    # Environment
    "EnvironmentProbe",
    "StaticEnvironmentProbe",
    "BrowserEnvironmentProbe",
    "HostEnvironmentProbe",
    # Snapshot
    "FEATURE_NAMES",
    "TEMPORAL_FEATURE_NAMES",
    "SnapshotAssembler",
    "build_feature_vector",
    "build_temporal_features",
    # Session
    "TelemetrySession",
    "generate_session_id",
]
