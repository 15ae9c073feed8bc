"""
Event Capture Layer

Passive listeners on the host document/window that turn raw keyboard,
pointer, clipboard, focus, visibility and scroll events into timestamped
entries of the session's in-memory logs.

Measurement-gap policy:
- A missing or malformed event field degrades to 0 / "" / None
- Listener callbacks never raise into the host

The host is anything implementing the EventTarget protocol. Browser shells
adapt their DOM targets to it; everything else (desktop shells, replay
tools, tests) can use EventHub.
"""

from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, List, Mapping, Optional, Protocol, Tuple
import logging
import math
import time

from creativity_telemetry.core.config import Settings, settings as default_settings
from creativity_telemetry.telemetry.schemas import (
    ClipboardDirection,
    ClipboardSource,
    CopyPasteEvent,
    FocusEvent,
    FocusKind,
    InteractionStep,
    InteractionType,
    KeyDirection,
    KeystrokeEvent,
    PointerEvent,
    PointerKind,
    ScrollSample,
    TaskKind,
    VisibilityChange,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Handler = Callable[[Any], None]

SOURCE_MARKER_ATTRIBUTE = "data-telemetry-source"
SOURCE_MARKER_DATASET_KEY = "telemetrySource"
ARROW_KEYS = frozenset({"ArrowLeft", "ArrowRight", "ArrowUp", "ArrowDown"})


def wall_clock_ms() -> float:
    """Current instant in epoch milliseconds"""
    return time.time() * 1000.0


class CaptureStateError(RuntimeError):
    """Raised when listeners would be registered twice for one capture"""


class EventTarget(Protocol):
    def add_event_listener(self, event_type: str, handler: Handler) -> None:
        ...

    def remove_event_listener(self, event_type: str, handler: Handler) -> None:
        ...


class EventHub:
    """
    In-process event target

    Follows DOM semantics: registering the same handler twice for one
    event type is a no-op, removing an unknown handler is a no-op.
    """

    def __init__(self):
        self._listeners: Dict[str, List[Handler]] = defaultdict(list)

    def add_event_listener(self, event_type: str, handler: Handler) -> None:
        if handler not in self._listeners[event_type]:
            self._listeners[event_type].append(handler)

    def remove_event_listener(self, event_type: str, handler: Handler) -> None:
        handlers = self._listeners.get(event_type)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def dispatch(self, event_type: str, event: Any = None) -> int:
        """Deliver an event to every listener, returns the number notified"""
        handlers = list(self._listeners.get(event_type, ()))
        for handler in handlers:
            handler(event)
        return len(handlers)

    def listener_count(self, event_type: Optional[str] = None) -> int:
        if event_type is not None:
            return len(self._listeners.get(event_type, ()))
        return sum(len(h) for h in self._listeners.values())


# ============================================================================
# RAW EVENT ACCESS
# ============================================================================

def read_field(obj: Any, name: str, default: Any = None) -> Any:
    """Read a field from a mapping or an attribute object"""
    if obj is None:
        return default
    if isinstance(obj, Mapping):
        value = obj.get(name, default)
    else:
        value = getattr(obj, name, default)
    return default if value is None else value


def read_number(obj: Any, name: str) -> float:
    value = read_field(obj, name, 0)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def describe_element(element: Any) -> Optional[str]:
    """CSS-like descriptor of an event target: #id, .first-class or tag"""
    if element is None:
        return None
    element_id = read_field(element, "id", "")
    if element_id:
        return f"#{element_id}"
    class_name = read_field(element, "className", "")
    if isinstance(class_name, str) and class_name.strip():
        return "." + class_name.split()[0]
    tag_name = read_field(element, "tagName", "")
    return str(tag_name).lower() if tag_name else None


def _source_marker(node: Any) -> Optional[str]:
    dataset = read_field(node, "dataset")
    marker = read_field(dataset, SOURCE_MARKER_DATASET_KEY)
    if marker is None:
        get_attribute = read_field(node, "getAttribute")
        if callable(get_attribute):
            marker = get_attribute(SOURCE_MARKER_ATTRIBUTE)
    if marker is None:
        marker = read_field(node, SOURCE_MARKER_ATTRIBUTE)
    return str(marker).lower() if marker else None


def classify_source(element: Any, max_depth: int = 32) -> ClipboardSource:
    """Nearest data-telemetry-source marker among the target's ancestors"""
    node = element
    depth = 0
    while node is not None and depth < max_depth:
        marker = _source_marker(node)
        if marker == ClipboardSource.CHAT.value:
            return ClipboardSource.CHAT
        if marker == ClipboardSource.TASK.value:
            return ClipboardSource.TASK
        node = read_field(node, "parentElement")
        depth += 1
    return ClipboardSource.EXTERNAL


def clipboard_text(event: Any, window: Any = None) -> str:
    data = read_field(event, "clipboardData")
    get_data = read_field(data, "getData")
    if callable(get_data):
        try:
            text = get_data("text")
        except Exception as e:
            logger.debug(f"Clipboard data unreadable: {e}")
            text = None
        if text:
            return str(text)
    text = read_field(data, "text") or read_field(event, "text")
    if text:
        return str(text)
    # Copy events carry no clipboard payload, fall back to the selection
    get_selection = read_field(window, "getSelection")
    if callable(get_selection):
        try:
            selection = get_selection()
        except Exception as e:
            logger.debug(f"Selection unreadable: {e}")
            return ""
        if selection:
            return str(selection)
    return ""


@dataclass(frozen=True)
class EventLogs:
    """Copy-out view of every log at one instant"""
    keystrokes: Tuple[KeystrokeEvent, ...] = ()
    pointer_events: Tuple[PointerEvent, ...] = ()
    copy_paste_events: Tuple[CopyPasteEvent, ...] = ()
    interactions: Tuple[InteractionStep, ...] = ()
    focus_events: Tuple[FocusEvent, ...] = ()
    visibility_changes: Tuple[VisibilityChange, ...] = ()
    scroll_behavior: Tuple[ScrollSample, ...] = ()

    @property
    def blur_count(self) -> int:
        return sum(1 for e in self.focus_events if e.kind == FocusKind.BLUR)


# ============================================================================
# CAPTURE
# ============================================================================

class EventCapture:
    """
    Owns the listener registrations and event logs of one session

    Usage:
        capture = EventCapture(document, window)
        with capture.start(session_id, participant_id, TaskKind.ALTERNATE_USES):
            ...  # host dispatches events
        # listeners are gone here, also when the block raised
    """

    DOCUMENT_EVENTS = (
        "keydown", "keyup", "mousemove", "click", "wheel",
        "copy", "cut", "paste", "visibilitychange",
    )
    WINDOW_EVENTS = ("focus", "blur", "scroll")

    def __init__(
        self,
        document: EventTarget,
        window: Optional[EventTarget] = None,
        clock: Optional[Clock] = None,
        settings: Optional[Settings] = None,
        on_clipboard: Optional[Callable[[CopyPasteEvent], None]] = None,
    ):
        self.document = document
        self.window = window if window is not None else document
        self.clock = clock or wall_clock_ms
        self.settings = settings or default_settings
        self.on_clipboard = on_clipboard

        self.session_id: Optional[str] = None
        self.participant_id: Optional[str] = None
        self.task_kind: Optional[TaskKind] = None
        self.started_at: Optional[float] = None

        self._registrations: List[Tuple[EventTarget, str, Handler]] = []
        self._reset_logs()

    def _reset_logs(self):
        s = self.settings
        self.keystrokes: Deque[KeystrokeEvent] = deque(maxlen=s.KEYSTROKE_LOG_LIMIT)
        self.pointer_events: Deque[PointerEvent] = deque(maxlen=s.POINTER_LOG_LIMIT)
        self.copy_paste_events: Deque[CopyPasteEvent] = deque(maxlen=s.COPY_PASTE_LOG_LIMIT)
        self.interactions: Deque[InteractionStep] = deque(maxlen=s.INTERACTION_LOG_LIMIT)
        self.focus_events: Deque[FocusEvent] = deque(maxlen=s.ATTENTION_LOG_LIMIT)
        self.visibility_changes: Deque[VisibilityChange] = deque(maxlen=s.ATTENTION_LOG_LIMIT)
        self.scroll_behavior: Deque[ScrollSample] = deque(maxlen=s.ATTENTION_LOG_LIMIT)
        self._last_move: Optional[PointerEvent] = None
        self._sequence_number = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return bool(self._registrations)

    def start(
        self,
        session_id: str,
        participant_id: Optional[str] = None,
        task_kind: TaskKind = TaskKind.ALTERNATE_USES,
    ) -> "EventCapture":
        """
        Register listeners for a session and start with empty logs

        Returns the capture itself, which is the only writer of the logs
        until stop() is called.
        """
        if self.is_active:
            raise CaptureStateError(
                f"Capture already running for session {self.session_id}; call stop() first"
            )

        self.session_id = session_id
        self.participant_id = participant_id or session_id
        self.task_kind = TaskKind(task_kind)
        self.started_at = self.clock()
        self._reset_logs()

        handlers = self._handlers()
        for event_type in self.DOCUMENT_EVENTS:
            self._register(self.document, event_type, handlers[event_type])
        for event_type in self.WINDOW_EVENTS:
            self._register(self.window, event_type, handlers[event_type])

        logger.debug(f"Telemetry capture started for session {session_id} ({len(self._registrations)} listeners)")
        return self

    def stop(self) -> None:
        """Remove every registered listener; safe to call repeatedly"""
        if not self._registrations:
            return
        registrations, self._registrations = self._registrations, []
        for target, event_type, handler in registrations:
            try:
                target.remove_event_listener(event_type, handler)
            except Exception as e:
                logger.warning(f"Failed to remove {event_type} listener: {e}")
        logger.debug(f"Telemetry capture stopped for session {self.session_id}")

    def __enter__(self) -> "EventCapture":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def _register(self, target: EventTarget, event_type: str, handler: Handler):
        target.add_event_listener(event_type, handler)
        self._registrations.append((target, event_type, handler))

    def _handlers(self) -> Dict[str, Handler]:
        return {
            "keydown": self.handle_key_down,
            "keyup": self.handle_key_up,
            "mousemove": self.handle_mouse_move,
            "click": self.handle_click,
            "wheel": self.handle_wheel,
            "copy": self.handle_copy,
            "cut": self.handle_copy,
            "paste": self.handle_paste,
            "visibilitychange": self.handle_visibility_change,
            "focus": self.handle_focus,
            "blur": self.handle_blur,
            "scroll": self.handle_scroll,
        }

    def _now(self, log: Deque) -> float:
        now = self.clock()
        # Keep each log non-decreasing even if the host clock steps back
        if log and log[-1].timestamp > now:
            return log[-1].timestamp
        return now

    # ------------------------------------------------------------------
    # Keyboard
    # ------------------------------------------------------------------

    def handle_key_down(self, event: Any) -> None:
        key = str(read_field(event, "key", ""))
        is_backspace = key == "Backspace"
        self.keystrokes.append(KeystrokeEvent(
            key=key,
            timestamp=self._now(self.keystrokes),
            direction=KeyDirection.DOWN,
            is_backspace=is_backspace,
            is_special_key=len(key) > 1 and not is_backspace,
        ))

    def handle_key_up(self, event: Any) -> None:
        key = str(read_field(event, "key", ""))
        timestamp = self._now(self.keystrokes)

        for previous in reversed(self.keystrokes):
            if previous.key == key and previous.direction == KeyDirection.DOWN and previous.duration is None:
                previous.duration = timestamp - previous.timestamp
                break

        is_backspace = key == "Backspace"
        self.keystrokes.append(KeystrokeEvent(
            key=key,
            timestamp=timestamp,
            direction=KeyDirection.UP,
            is_backspace=is_backspace,
            is_special_key=len(key) > 1 and not is_backspace,
        ))

    # ------------------------------------------------------------------
    # Pointer
    # ------------------------------------------------------------------

    def handle_mouse_move(self, event: Any) -> None:
        timestamp = self._now(self.pointer_events)
        x = read_number(event, "clientX")
        y = read_number(event, "clientY")

        velocity = 0.0
        last = self._last_move
        if last is not None:
            elapsed = timestamp - last.timestamp
            if elapsed > 0:
                velocity = math.hypot(x - last.x, y - last.y) / elapsed

        move = PointerEvent(
            x=x,
            y=y,
            timestamp=timestamp,
            kind=PointerKind.MOVE,
            element=describe_element(read_field(event, "target")),
            velocity=velocity,
        )
        self.pointer_events.append(move)
        self._last_move = move

    def handle_click(self, event: Any) -> None:
        self._append_pointer(event, PointerKind.CLICK)

    def handle_wheel(self, event: Any) -> None:
        self._append_pointer(event, PointerKind.SCROLL)

    def _append_pointer(self, event: Any, kind: PointerKind):
        self.pointer_events.append(PointerEvent(
            x=read_number(event, "clientX"),
            y=read_number(event, "clientY"),
            timestamp=self._now(self.pointer_events),
            kind=kind,
            element=describe_element(read_field(event, "target")),
        ))

    # ------------------------------------------------------------------
    # Clipboard
    # ------------------------------------------------------------------

    def handle_copy(self, event: Any) -> None:
        self._append_clipboard(event, ClipboardDirection.COPY)

    def handle_paste(self, event: Any) -> None:
        self._append_clipboard(event, ClipboardDirection.PASTE)

    def _append_clipboard(self, event: Any, direction: ClipboardDirection):
        text = clipboard_text(event, self.window)
        record = CopyPasteEvent(
            timestamp=self._now(self.copy_paste_events),
            direction=direction,
            source=classify_source(read_field(event, "target"), self.settings.SOURCE_MARKER_MAX_DEPTH),
            text_length=len(text.encode("utf-8")),
            text_preview=text[: self.settings.TEXT_PREVIEW_LENGTH],
        )
        self.copy_paste_events.append(record)

        if self.on_clipboard is not None:
            try:
                self.on_clipboard(record)
            except Exception as e:
                logger.error(f"Clipboard callback failed: {e}")

    # ------------------------------------------------------------------
    # Attention
    # ------------------------------------------------------------------

    def handle_focus(self, event: Any = None) -> None:
        self.focus_events.append(FocusEvent(timestamp=self._now(self.focus_events), kind=FocusKind.FOCUS))

    def handle_blur(self, event: Any = None) -> None:
        self.focus_events.append(FocusEvent(timestamp=self._now(self.focus_events), kind=FocusKind.BLUR))

    def handle_visibility_change(self, event: Any = None) -> None:
        hidden = bool(read_field(self.document, "hidden", False))
        self.visibility_changes.append(VisibilityChange(
            timestamp=self._now(self.visibility_changes),
            visible=not hidden,
        ))

    def handle_scroll(self, event: Any = None) -> None:
        self.scroll_behavior.append(ScrollSample(
            timestamp=self._now(self.scroll_behavior),
            position=read_number(self.window, "scrollY"),
        ))

    # ------------------------------------------------------------------
    # Interaction sequence
    # ------------------------------------------------------------------

    def record_interaction(
        self,
        interaction_type: InteractionType,
        duration: float = 0.0,
        context: Optional[Dict[str, Any]] = None,
    ) -> InteractionStep:
        step = InteractionStep(
            session_id=self.session_id or "",
            sequence_number=self._sequence_number,
            interaction_type=interaction_type,
            timestamp=self._now(self.interactions),
            duration=duration,
            context=dict(context or {}),
        )
        self._sequence_number += 1
        self.interactions.append(step)
        return step

    def logs(self) -> EventLogs:
        """Copy every log so later events cannot alter what was read"""
        return EventLogs(
            keystrokes=tuple(e.model_copy() for e in self.keystrokes),
            pointer_events=tuple(e.model_copy() for e in self.pointer_events),
            copy_paste_events=tuple(e.model_copy() for e in self.copy_paste_events),
            interactions=tuple(e.model_copy(deep=True) for e in self.interactions),
            focus_events=tuple(e.model_copy() for e in self.focus_events),
            visibility_changes=tuple(e.model_copy() for e in self.visibility_changes),
            scroll_behavior=tuple(e.model_copy() for e in self.scroll_behavior),
        )
