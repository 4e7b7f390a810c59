from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional

from .settings import DEFAULT_SETTINGS_PATH, AppSettings, load_settings, merge_settings, save_settings


def resolve_settings(args: argparse.Namespace) -> AppSettings:
    base = load_settings(Path(args.settings))
    return merge_settings(
        base,
        {
            "settle_delay_ms": args.settle_ms,
            "trigger_key": args.trigger_key,
            "global_hotkey": True if args.global_hotkey else None,
            "log_dir": args.log_dir,
        },
    )


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Capture test-case evidence screenshots named after spreadsheet codes.")
    ap.add_argument("--workbook", default=None, help="Path to the .xlsx test case list (default: last opened)")
    ap.add_argument("--settle-ms", type=int, default=None, help="Delay between minimize and capture (milliseconds)")
    ap.add_argument("--trigger-key", default=None, help="Key that triggers a capture (Tk keysym, e.g. F12)")
    ap.add_argument("--global-hotkey", action="store_true", help="Also listen for the trigger key system-wide")
    ap.add_argument("--log-dir", default=None, help="Audit log output directory")
    ap.add_argument("--settings", default=str(DEFAULT_SETTINGS_PATH), help="Path to settings.json")
    ap.add_argument("--save-settings", action="store_true", help="Persist the effective settings and continue")
    return ap


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        if args.settle_ms is not None and args.settle_ms < 0:
            raise ValueError("--settle-ms must be >= 0.")
        if args.workbook and not Path(args.workbook).exists():
            raise FileNotFoundError(f"Workbook not found: {args.workbook}")
        settings = resolve_settings(args)
        if args.save_settings:
            save_settings(settings, Path(args.settings))

        from .app import CaptureManagerApp, _enable_windows_dpi_awareness
        from .logger import CaptureLog

        _enable_windows_dpi_awareness()
        log = CaptureLog(root_dir=settings.log_dir)
        app = CaptureManagerApp(settings=settings, settings_path=Path(args.settings), log=log)

        workbook = args.workbook or settings.last_workbook
        if workbook and Path(workbook).exists():
            app.load_workbook(Path(workbook))

        app.mainloop()
        return 0
    except KeyboardInterrupt:
        print("Aborted.", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
