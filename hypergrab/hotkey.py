from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional


@dataclass(frozen=True, slots=True)
class HotkeyHandle:
    key: str
    _listener: Optional[object]

    @property
    def active(self) -> bool:
        return self._listener is not None

    def stop(self) -> None:
        if self._listener is not None:
            try:
                self._listener.stop()  # type: ignore[attr-defined]
            except Exception:
                pass


def start_trigger_hotkey(on_press: Callable[[str], None], *, key: str = "F12") -> HotkeyHandle:
    """
    Listen for `key` system-wide, so a capture can be triggered while the window is unfocused.

    `on_press` runs on the listener thread; callers must hand the event over to
    their UI thread. Without pynput (or a display) the handle is inactive.
    """
    try:
        from pynput import keyboard

        name = key.strip().lower()
        target = getattr(keyboard.Key, name, None)
        if target is None and len(name) == 1:
            target = keyboard.KeyCode.from_char(name)
        if target is None:
            return HotkeyHandle(key=key, _listener=None)

        def _on_press(k: object) -> None:
            if k == target:
                on_press(key)

        listener = keyboard.Listener(on_press=_on_press)
        listener.daemon = True
        listener.start()
        return HotkeyHandle(key=key, _listener=listener)
    except Exception:
        return HotkeyHandle(key=key, _listener=None)
