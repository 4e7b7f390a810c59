from __future__ import annotations

import json

from hypergrab.settings import AppSettings, load_settings, merge_settings, save_settings


def test_defaults_when_missing(tmp_path):
    s = load_settings(tmp_path / "settings.json")
    assert s == AppSettings()
    assert s.settle_delay_ms == 1500
    assert s.trigger_key == "F12"


def test_defaults_when_corrupt(tmp_path):
    p = tmp_path / "settings.json"
    p.write_text("{not json", encoding="utf-8")
    assert load_settings(p) == AppSettings()
    p.write_text("[1, 2]", encoding="utf-8")
    assert load_settings(p) == AppSettings()


def test_values_are_coerced(tmp_path):
    p = tmp_path / "settings.json"
    p.write_text(
        json.dumps(
            {
                "settle_delay_ms": "2000",
                "trigger_key": "  F9 ",
                "global_hotkey": "yes",
                "log_dir": "",
                "last_workbook": 12,
                "unknown": True,
            }
        ),
        encoding="utf-8",
    )
    s = load_settings(p)
    assert s.settle_delay_ms == 2000
    assert s.trigger_key == "F9"
    assert s.global_hotkey is True
    assert s.log_dir == "logs"
    assert s.last_workbook is None


def test_negative_delay_falls_back(tmp_path):
    p = tmp_path / "settings.json"
    p.write_text(json.dumps({"settle_delay_ms": -5}), encoding="utf-8")
    assert load_settings(p).settle_delay_ms == 1500


def test_save_round_trip_drops_none(tmp_path):
    p = tmp_path / "nested" / "settings.json"
    s = AppSettings(settle_delay_ms=800, trigger_key="F8", last_workbook=None)
    save_settings(s, p)
    raw = json.loads(p.read_text(encoding="utf-8"))
    assert "last_workbook" not in raw
    assert load_settings(p) == s
    assert not p.with_suffix(".json.tmp").exists()


def test_merge_ignores_none_overrides():
    base = AppSettings(settle_delay_ms=900, trigger_key="F10")
    merged = merge_settings(base, {"settle_delay_ms": None, "trigger_key": "F11", "bogus": 1})
    assert merged.settle_delay_ms == 900
    assert merged.trigger_key == "F11"


def test_non_finite_delay_falls_back(tmp_path):
    p = tmp_path / "settings.json"
    for literal in ("NaN", "Infinity", "-Infinity"):
        p.write_text('{"settle_delay_ms": %s, "trigger_key": "F9"}' % literal, encoding="utf-8")
        s = load_settings(p)
        assert s.settle_delay_ms == 1500
        assert s.trigger_key == "F9"


def test_merge_rejects_non_finite_and_bool_delay():
    base = AppSettings(settle_delay_ms=700)
    assert merge_settings(base, {"settle_delay_ms": float("nan")}).settle_delay_ms == 700
    assert merge_settings(base, {"settle_delay_ms": "inf"}).settle_delay_ms == 700
    assert merge_settings(base, {"settle_delay_ms": True}).settle_delay_ms == 700
