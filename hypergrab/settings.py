from __future__ import annotations

import json
import math
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Mapping, Optional


DEFAULT_SETTINGS_PATH = Path(".hypergrab") / "settings.json"
DEFAULT_SETTLE_DELAY_MS = 1500
DEFAULT_TRIGGER_KEY = "F12"

_TRUE = {"true", "1", "yes", "y", "on"}
_FALSE = {"false", "0", "no", "n", "off"}


@dataclass(frozen=True, slots=True)
class AppSettings:
    settle_delay_ms: int = DEFAULT_SETTLE_DELAY_MS
    trigger_key: str = DEFAULT_TRIGGER_KEY
    global_hotkey: bool = False
    log_dir: str = "logs"
    last_workbook: Optional[str] = None


def _text(v: Any) -> Optional[str]:
    if isinstance(v, str) and v.strip():
        return v.strip()
    return None


def _delay_ms(v: Any) -> Optional[int]:
    if isinstance(v, str):
        try:
            v = float(v.strip())
        except ValueError:
            return None
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        return None
    # json.loads accepts NaN and Infinity.
    if isinstance(v, float) and not math.isfinite(v):
        return None
    ms = int(v)
    return ms if ms >= 0 else None


def _flag(v: Any) -> Optional[bool]:
    if isinstance(v, bool):
        return v
    if isinstance(v, str):
        s = v.strip().lower()
        if s in _TRUE:
            return True
        if s in _FALSE:
            return False
    return None


def merge_settings(base: AppSettings, overrides: Mapping[str, Any]) -> AppSettings:
    """
    Merge overrides into base. Unknown keys, None and unusable values keep the base value.
    """
    o = dict(overrides or {})
    delay = _delay_ms(o.get("settle_delay_ms"))
    hotkey = _flag(o.get("global_hotkey"))
    last = o.get("last_workbook", base.last_workbook)
    return AppSettings(
        settle_delay_ms=base.settle_delay_ms if delay is None else delay,
        trigger_key=_text(o.get("trigger_key")) or base.trigger_key,
        global_hotkey=base.global_hotkey if hotkey is None else hotkey,
        log_dir=_text(o.get("log_dir")) or base.log_dir,
        last_workbook=_text(last),
    )


def load_settings(path: Path = DEFAULT_SETTINGS_PATH) -> AppSettings:
    """Read settings.json; a missing or unreadable file yields the defaults."""
    try:
        obj = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return AppSettings()
    if not isinstance(obj, dict):
        return AppSettings()
    return merge_settings(AppSettings(), obj)


def save_settings(data: AppSettings, path: Path = DEFAULT_SETTINGS_PATH) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {k: v for k, v in asdict(data).items() if v is not None}
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    tmp.replace(path)
    return path
