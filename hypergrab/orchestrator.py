from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence, Union

from .capture import CaptureOutcome, CaptureRequest, CaptureSucceeded, describe_outcome
from .items import TestItem
from .logger import CaptureLog
from .settings import DEFAULT_SETTLE_DELAY_MS, DEFAULT_TRIGGER_KEY


READY_MESSAGE = "System ready. Load an Excel file to begin."
CAPTURING_MESSAGE = "Action: Minimizing and capturing..."


class CaptureState(Enum):
    IDLE = "idle"
    WAITING = "waiting"


# Effects: the shell (Tk app or a test harness) carries these out.


@dataclass(frozen=True, slots=True)
class MinimizeWindow:
    pass


@dataclass(frozen=True, slots=True)
class RestoreWindow:
    pass


@dataclass(frozen=True, slots=True)
class ScheduleDelay:
    delay_ms: int


@dataclass(frozen=True, slots=True)
class RunCapture:
    request: CaptureRequest


@dataclass(frozen=True, slots=True)
class OpenPath:
    path: Path


Effect = Union[MinimizeWindow, RestoreWindow, ScheduleDelay, RunCapture, OpenPath]


# Messages: everything that can happen to the session, in UI-thread order.


@dataclass(frozen=True, slots=True)
class LoadItems:
    path: Path
    items: tuple[TestItem, ...]


@dataclass(frozen=True, slots=True)
class LoadFailed:
    path: Path
    reason: str


@dataclass(frozen=True, slots=True)
class SelectItem:
    index: int


@dataclass(frozen=True, slots=True)
class StartCapture:
    pass


@dataclass(frozen=True, slots=True)
class KeyPressed:
    key: str


@dataclass(frozen=True, slots=True)
class DelayElapsed:
    pass


@dataclass(frozen=True, slots=True)
class CaptureFinished:
    outcome: CaptureOutcome


@dataclass(frozen=True, slots=True)
class OpenLastCapture:
    pass


@dataclass(frozen=True, slots=True)
class OpenFolder:
    pass


Message = Union[
    LoadItems,
    LoadFailed,
    SelectItem,
    StartCapture,
    KeyPressed,
    DelayElapsed,
    CaptureFinished,
    OpenLastCapture,
    OpenFolder,
]


@dataclass
class Session:
    """Loaded items, current selection and capture status. Mutated only by the orchestrator."""

    items: list[TestItem] = field(default_factory=list)
    source_path: Optional[Path] = None
    selected_index: Optional[int] = None
    last_capture_path: Optional[Path] = None
    status_message: str = READY_MESSAGE
    state: CaptureState = CaptureState.IDLE

    @property
    def selected_item(self) -> Optional[TestItem]:
        if self.selected_index is None:
            return None
        if not 0 <= self.selected_index < len(self.items):
            return None
        return self.items[self.selected_index]

    @property
    def output_dir(self) -> Optional[Path]:
        if self.source_path is None:
            return None
        return self.source_path.parent


class CaptureOrchestrator:
    """
    Idle -> Waiting -> Idle capture lifecycle.

    start() minimizes the window and schedules the settle delay; the delay
    triggers the capture; the capture outcome returns the state to Idle and
    restores the window. Every call must come from the same (UI) thread.
    """

    def __init__(
        self,
        session: Optional[Session] = None,
        *,
        settle_delay_ms: int = DEFAULT_SETTLE_DELAY_MS,
        trigger_key: str = DEFAULT_TRIGGER_KEY,
        log: Optional[CaptureLog] = None,
    ) -> None:
        if settle_delay_ms < 0:
            raise ValueError("settle_delay_ms must be >= 0.")
        self.session = session if session is not None else Session()
        self.settle_delay_ms = int(settle_delay_ms)
        self.trigger_key = trigger_key
        self._log = log
        self._pending: Optional[CaptureRequest] = None
        self._dispatched = False

    @property
    def state(self) -> CaptureState:
        return self.session.state

    @property
    def busy(self) -> bool:
        return self.session.state is CaptureState.WAITING

    @property
    def pending_request(self) -> Optional[CaptureRequest]:
        return self._pending

    def update(self, message: Message) -> list[Effect]:
        if isinstance(message, StartCapture):
            return self.start()
        if isinstance(message, KeyPressed):
            return self.on_key(message.key)
        if isinstance(message, DelayElapsed):
            return self.on_delay_elapsed()
        if isinstance(message, CaptureFinished):
            return self.on_capture_complete(message.outcome)
        if isinstance(message, SelectItem):
            self.select(message.index)
            return []
        if isinstance(message, LoadItems):
            self.load(message.path, message.items)
            return []
        if isinstance(message, LoadFailed):
            self.session.status_message = f"Error: {message.reason}"
            return []
        if isinstance(message, OpenLastCapture):
            if self.session.last_capture_path is None:
                return []
            return [OpenPath(self.session.last_capture_path)]
        if isinstance(message, OpenFolder):
            folder = self.session.output_dir
            return [OpenPath(folder)] if folder is not None else []
        raise TypeError(f"Unknown message: {message!r}")

    def load(self, path: Path, items: Sequence[TestItem]) -> None:
        s = self.session
        s.items = list(items)
        s.source_path = Path(path)
        s.selected_index = None
        s.status_message = f"Loaded {len(s.items)} records."

    def select(self, index: int) -> None:
        if 0 <= index < len(self.session.items):
            self.session.selected_index = index

    def _build_request(self) -> Optional[CaptureRequest]:
        item = self.session.selected_item
        directory = self.session.output_dir
        if item is None or directory is None:
            return None
        return CaptureRequest(identifier=item.code, directory=directory)

    def start(self) -> list[Effect]:
        if self.busy:
            return []
        request = self._build_request()
        if request is None:
            return []

        self._pending = request
        self.session.state = CaptureState.WAITING
        self.session.status_message = CAPTURING_MESSAGE
        # No ordering between the two; the delay is trusted to cover the minimize.
        return [MinimizeWindow(), ScheduleDelay(self.settle_delay_ms)]

    def on_key(self, key: str) -> list[Effect]:
        if key.strip().lower() != self.trigger_key.strip().lower():
            return []
        return self.start()

    def on_delay_elapsed(self) -> list[Effect]:
        if not self.busy or self._pending is None or self._dispatched:
            return []
        # A request is handed to the executor once.
        self._dispatched = True
        return [RunCapture(self._pending)]

    def on_capture_complete(self, outcome: CaptureOutcome) -> list[Effect]:
        if not self.busy:
            return []
        request = self._pending
        self._pending = None
        self._dispatched = False
        self.session.state = CaptureState.IDLE

        if isinstance(outcome, CaptureSucceeded):
            self.session.last_capture_path = outcome.path
        self.session.status_message = describe_outcome(outcome)

        if self._log is not None and request is not None:
            try:
                self._log.record(request, outcome)
            except OSError as e:
                self._log.narrate(f"[Capture] Could not write audit entry: {e}")
        return [RestoreWindow()]
