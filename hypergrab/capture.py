from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Union

import mss
from PIL import Image

from .filenames import allocate_capture_path


class CaptureError(Exception):
    """Base for failures that abort a capture. str(e) is shown to the operator."""


class NoDisplayFound(CaptureError):
    def __init__(self, message: str = "No display found.") -> None:
        super().__init__(message)


class EnumerationError(CaptureError):
    pass


class GrabError(CaptureError):
    pass


class EncodeError(CaptureError):
    pass


@dataclass(frozen=True, slots=True)
class MonitorDescriptor:
    index: int
    x: int
    y: int
    width: int = 0
    height: int = 0

    @property
    def is_origin(self) -> bool:
        return self.x == 0 and self.y == 0

    def as_mss(self) -> dict[str, int]:
        return {"left": self.x, "top": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True, slots=True)
class CaptureRequest:
    identifier: str
    directory: Path


@dataclass(frozen=True, slots=True)
class CaptureSucceeded:
    path: Path


@dataclass(frozen=True, slots=True)
class CaptureFailed:
    reason: str


CaptureOutcome = Union[CaptureSucceeded, CaptureFailed]


def select_monitor(monitors: Sequence[MonitorDescriptor]) -> MonitorDescriptor:
    if not monitors:
        raise NoDisplayFound()
    for m in monitors:
        if m.is_origin:
            return m
    # Enumeration order is whatever the platform reports.
    return monitors[0]


@dataclass(frozen=True, slots=True)
class ScreenCapturer:
    image_format: str = "PNG"

    def list_monitors(self) -> list[MonitorDescriptor]:
        try:
            with mss.mss() as sct:
                # mss monitor 0 is the merged virtual screen; physical displays start at 1.
                raw = list(sct.monitors[1:])
        except Exception as e:
            raise EnumerationError(str(e) or type(e).__name__) from e
        return [
            MonitorDescriptor(
                index=i,
                x=int(m.get("left", 0)),
                y=int(m.get("top", 0)),
                width=int(m.get("width", 0)),
                height=int(m.get("height", 0)),
            )
            for i, m in enumerate(raw, start=1)
        ]

    def grab(self, monitor: MonitorDescriptor) -> Image.Image:
        try:
            with mss.mss() as sct:
                shot = sct.grab(monitor.as_mss())
                return Image.frombytes("RGB", shot.size, shot.bgra, "raw", "BGRX")
        except Exception as e:
            raise GrabError(str(e) or type(e).__name__) from e

    def save(self, img: Image.Image, path: Path) -> None:
        try:
            img.save(path, format=self.image_format)
        except (OSError, ValueError) as e:
            raise EncodeError(str(e) or type(e).__name__) from e

    def capture(self, directory: str | Path, identifier: str) -> Path:
        monitor = select_monitor(self.list_monitors())
        img = self.grab(monitor)
        out = allocate_capture_path(directory, identifier)
        self.save(img, out)
        return out


def run_capture(capturer: ScreenCapturer, request: CaptureRequest) -> CaptureOutcome:
    try:
        path = capturer.capture(request.directory, request.identifier)
    except CaptureError as e:
        return CaptureFailed(reason=str(e))
    return CaptureSucceeded(path=path)


def describe_outcome(outcome: CaptureOutcome) -> str:
    if isinstance(outcome, CaptureSucceeded):
        return f"File saved: {outcome.path.name}"
    return f"Error: {outcome.reason}"


def outcome_path(outcome: CaptureOutcome) -> Optional[Path]:
    return outcome.path if isinstance(outcome, CaptureSucceeded) else None
