from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pytest
from PIL import Image

from hypergrab.capture import (
    CaptureFailed,
    CaptureRequest,
    CaptureSucceeded,
    EncodeError,
    EnumerationError,
    GrabError,
    MonitorDescriptor,
    NoDisplayFound,
    ScreenCapturer,
    run_capture,
    select_monitor,
)


def _mon(index: int, x: int, y: int) -> MonitorDescriptor:
    return MonitorDescriptor(index=index, x=x, y=y, width=64, height=32)


def test_select_prefers_origin_monitor():
    monitors = [_mon(1, 1920, 0), _mon(2, 0, 0)]
    assert select_monitor(monitors) is monitors[1]


def test_select_falls_back_to_first():
    only = _mon(1, 5, 5)
    assert select_monitor([only]) is only
    monitors = [_mon(1, -1280, 0), _mon(2, 1920, 0)]
    assert select_monitor(monitors) is monitors[0]


def test_select_empty_raises():
    with pytest.raises(NoDisplayFound):
        select_monitor([])


@dataclass(frozen=True, slots=True)
class FakeCapturer(ScreenCapturer):
    monitors: tuple[MonitorDescriptor, ...] = ()
    fail_enum: str = ""
    fail_grab: str = ""

    def list_monitors(self) -> list[MonitorDescriptor]:
        if self.fail_enum:
            raise EnumerationError(self.fail_enum)
        return list(self.monitors)

    def grab(self, monitor: MonitorDescriptor) -> Image.Image:
        if self.fail_grab:
            raise GrabError(self.fail_grab)
        # Encode the chosen origin in the pixel so tests can tell monitors apart.
        return Image.new("RGB", (monitor.width, monitor.height), (monitor.x % 256, monitor.y % 256, 7))


def test_capture_writes_png_of_origin_monitor(tmp_path):
    cap = FakeCapturer(monitors=(_mon(1, 1920, 0), _mon(2, 0, 0)))
    out = cap.capture(tmp_path, "TC-07")
    assert out == tmp_path / "TC_07.png"
    with Image.open(out) as img:
        assert img.format == "PNG"
        assert img.getpixel((0, 0)) == (0, 0, 7)


def test_capture_returns_suffixed_path_on_collision(tmp_path):
    (tmp_path / "TC_07.png").write_bytes(b"old")
    cap = FakeCapturer(monitors=(_mon(1, 0, 0),))
    out = cap.capture(tmp_path, "TC-07")
    assert out.name == "TC_07_1.png"
    assert (tmp_path / "TC_07.png").read_bytes() == b"old"


def test_run_capture_converts_errors_to_failure(tmp_path):
    req = CaptureRequest(identifier="TC-07", directory=tmp_path)

    out = run_capture(FakeCapturer(monitors=(_mon(1, 0, 0),), fail_grab="no permission"), req)
    assert out == CaptureFailed(reason="no permission")

    out = run_capture(FakeCapturer(), req)
    assert isinstance(out, CaptureFailed)
    assert "No display" in out.reason

    out = run_capture(FakeCapturer(fail_enum="xrandr failed"), req)
    assert out == CaptureFailed(reason="xrandr failed")
    assert list(tmp_path.iterdir()) == []


def test_run_capture_encode_error(tmp_path):
    req = CaptureRequest(identifier="TC-07", directory=tmp_path / "missing")
    out = run_capture(FakeCapturer(monitors=(_mon(1, 0, 0),)), req)
    assert isinstance(out, CaptureFailed)


def test_save_wraps_os_errors(tmp_path):
    cap = ScreenCapturer()
    with pytest.raises(EncodeError):
        cap.save(Image.new("RGB", (2, 2)), tmp_path / "nope" / "x.png")


def test_run_capture_success(tmp_path):
    req = CaptureRequest(identifier="TC-08", directory=tmp_path)
    out = run_capture(FakeCapturer(monitors=(_mon(1, 0, 0),)), req)
    assert out == CaptureSucceeded(path=tmp_path / "TC_08.png")
    assert Path(out.path).exists()


def test_list_monitors_skips_virtual_screen(monkeypatch):
    class FakeMss:
        monitors = [
            {"left": -1280, "top": 0, "width": 3200, "height": 1080},
            {"left": -1280, "top": 0, "width": 1280, "height": 1024},
            {"left": 0, "top": 0, "width": 1920, "height": 1080},
        ]

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

    monkeypatch.setattr("hypergrab.capture.mss.mss", lambda: FakeMss())
    monitors = ScreenCapturer().list_monitors()
    assert [(m.index, m.x, m.y) for m in monitors] == [(1, -1280, 0), (2, 0, 0)]
    assert select_monitor(monitors).index == 2


def test_list_monitors_wraps_platform_errors(monkeypatch):
    def boom():
        raise RuntimeError("XOpenDisplay() failed")

    monkeypatch.setattr("hypergrab.capture.mss.mss", boom)
    with pytest.raises(EnumerationError, match="XOpenDisplay"):
        ScreenCapturer().list_monitors()
