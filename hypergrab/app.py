from __future__ import annotations

import ctypes
import queue
import sys
import threading
import tkinter as tk
from dataclasses import replace
from pathlib import Path
from tkinter import filedialog, messagebox, ttk
from typing import Optional

from PIL import Image, ImageTk

from . import __version__
from .capture import CaptureFailed, CaptureRequest, ScreenCapturer, run_capture
from .hotkey import HotkeyHandle, start_trigger_hotkey
from .items import ItemSourceError, load_items
from .logger import CaptureLog
from .orchestrator import (
    CaptureFinished,
    CaptureOrchestrator,
    DelayElapsed,
    Effect,
    KeyPressed,
    LoadFailed,
    LoadItems,
    Message,
    MinimizeWindow,
    OpenFolder,
    OpenLastCapture,
    OpenPath,
    RestoreWindow,
    RunCapture,
    ScheduleDelay,
    SelectItem,
    StartCapture,
)
from .settings import DEFAULT_SETTINGS_PATH, AppSettings, save_settings
from .shell import open_path


APP_TITLE = "Screen Capture Manager"
POLL_MS = 50
THUMBNAIL_SIZE = (160, 90)


def _enable_windows_dpi_awareness() -> None:
    if sys.platform != "win32":
        return
    try:
        ctypes.windll.shcore.SetProcessDpiAwareness(2)  # type: ignore[attr-defined]
        return
    except Exception:
        pass
    try:
        ctypes.windll.user32.SetProcessDPIAware()  # type: ignore[attr-defined]
    except Exception:
        pass


class CaptureManagerApp(tk.Tk):
    def __init__(
        self,
        *,
        settings: AppSettings,
        settings_path: Path = DEFAULT_SETTINGS_PATH,
        capturer: Optional[ScreenCapturer] = None,
        log: Optional[CaptureLog] = None,
    ) -> None:
        super().__init__()
        self.title(APP_TITLE)
        self.geometry("550x750")
        self.resizable(False, False)
        self._apply_tk_scaling()

        self.settings = settings
        self.settings_path = settings_path
        self.capturer = capturer if capturer is not None else ScreenCapturer()
        self.log = log
        self.orchestrator = CaptureOrchestrator(
            settle_delay_ms=settings.settle_delay_ms,
            trigger_key=settings.trigger_key,
            log=log,
        )

        # Worker threads and the global hotkey only ever put() here; the Tk thread drains it.
        self._events: "queue.Queue[Message]" = queue.Queue()
        self._hotkey: Optional[HotkeyHandle] = None
        self._shown_items: Optional[list] = None
        self._shown_capture: Optional[Path] = None
        self._thumb_photo: Optional[ImageTk.PhotoImage] = None

        self._build_ui()
        self.bind_all("<KeyPress>", self._on_key)
        self.protocol("WM_DELETE_WINDOW", self._on_close)

        if settings.global_hotkey:
            self._hotkey = start_trigger_hotkey(lambda k: self._events.put(KeyPressed(k)), key=settings.trigger_key)
            if not self._hotkey.active and self.log is not None:
                self.log.narrate(f"Global hotkey {settings.trigger_key} unavailable; using in-window key only.")

        self._refresh()
        self.after(POLL_MS, self._drain_events)

    def _apply_tk_scaling(self) -> None:
        try:
            dpi = float(self.winfo_fpixels("1i"))
            self.tk.call("tk", "scaling", dpi / 72.0)
        except Exception:
            pass

    def _build_ui(self) -> None:
        self.columnconfigure(0, weight=1)
        self.rowconfigure(0, weight=1)

        nb = ttk.Notebook(self)
        nb.grid(row=0, column=0, sticky="nsew", padx=12, pady=12)

        dash = ttk.Frame(nb, padding=12)
        dash.columnconfigure(0, weight=1)
        nb.add(dash, text="DASHBOARD")

        top = ttk.Frame(dash)
        top.grid(row=0, column=0, sticky="ew")
        ttk.Button(top, text="Import Excel", command=self._import_excel).grid(row=0, column=0, padx=(0, 6))
        ttk.Button(top, text="Open Directory", command=lambda: self.dispatch(OpenFolder())).grid(row=0, column=1)

        list_frame = ttk.Frame(dash)
        list_frame.grid(row=1, column=0, sticky="nsew", pady=(12, 0))
        list_frame.columnconfigure(0, weight=1)
        self.items_list = tk.Listbox(list_frame, height=16, exportselection=False, font="TkFixedFont")
        self.items_list.grid(row=0, column=0, sticky="nsew")
        scroll = ttk.Scrollbar(list_frame, orient="vertical", command=self.items_list.yview)
        scroll.grid(row=0, column=1, sticky="ns")
        self.items_list.configure(yscrollcommand=scroll.set)
        self.items_list.bind("<<ListboxSelect>>", self._on_select)

        self._last_frame = ttk.Frame(dash)
        self._last_frame.grid(row=2, column=0, sticky="w", pady=(12, 0))
        ttk.Label(self._last_frame, text="LAST CAPTURE (Click to open):").grid(row=0, column=0, sticky="w")
        self._thumb_label = ttk.Label(self._last_frame, cursor="hand2")
        self._thumb_label.grid(row=1, column=0, sticky="w", pady=(4, 0))
        self._thumb_label.bind("<Button-1>", lambda _e: self.dispatch(OpenLastCapture()))
        self._last_frame.grid_remove()

        self.capture_btn = ttk.Button(
            dash,
            text=f"EXECUTE CAPTURE ({self.settings.trigger_key})",
            command=lambda: self.dispatch(StartCapture()),
        )
        self.capture_btn.grid(row=3, column=0, sticky="ew", pady=(12, 0), ipady=8)

        self.status_var = tk.StringVar(value="")
        footer = ttk.Frame(dash, padding=(0, 12, 0, 0))
        footer.grid(row=4, column=0, sticky="ew")
        ttk.Label(footer, text="STATUS:").grid(row=0, column=0, sticky="w")
        ttk.Label(footer, textvariable=self.status_var, wraplength=420).grid(row=0, column=1, sticky="w", padx=(8, 0))

        info = ttk.Frame(nb, padding=24)
        nb.add(info, text="SYSTEM INFO")
        info_txt = (
            "This software assists in obtaining evidence during the qualification\n"
            "and validation of computerized systems.\n\n"
            f"Version: {__version__}\n"
            f"Settle delay: {self.settings.settle_delay_ms} ms\n"
            f"Trigger key: {self.settings.trigger_key}\n"
            "Platform: Windows, macOS & Linux\n\n"
            "Distributed under the GPL v. 3.0 license."
        )
        ttk.Label(info, text=APP_TITLE, font=("TkDefaultFont", 16, "bold")).grid(row=0, column=0, sticky="w")
        ttk.Label(info, text=info_txt, justify="left").grid(row=1, column=0, sticky="w", pady=(12, 0))

    def dispatch(self, message: Message) -> None:
        for effect in self.orchestrator.update(message):
            self._run_effect(effect)
        self._refresh()

    def _run_effect(self, effect: Effect) -> None:
        if isinstance(effect, MinimizeWindow):
            self.iconify()
        elif isinstance(effect, RestoreWindow):
            self.deiconify()
            self.lift()
        elif isinstance(effect, ScheduleDelay):
            self.after(effect.delay_ms, lambda: self.dispatch(DelayElapsed()))
        elif isinstance(effect, RunCapture):
            self._start_worker(effect.request)
        elif isinstance(effect, OpenPath):
            try:
                open_path(effect.path)
            except OSError as e:
                messagebox.showerror("Open failed", str(e))
        else:
            raise TypeError(f"Unknown effect: {effect!r}")

    def _start_worker(self, request: CaptureRequest) -> None:
        def run_bg() -> None:
            try:
                outcome = run_capture(self.capturer, request)
            except Exception as e:
                outcome = CaptureFailed(reason=str(e) or type(e).__name__)
            self._events.put(CaptureFinished(outcome))

        threading.Thread(target=run_bg, daemon=True).start()

    def _drain_events(self) -> None:
        while True:
            try:
                msg = self._events.get_nowait()
            except queue.Empty:
                break
            self.dispatch(msg)
        self.after(POLL_MS, self._drain_events)

    def load_workbook(self, path: Path) -> None:
        try:
            items = load_items(path)
        except ItemSourceError as e:
            self.dispatch(LoadFailed(path=path, reason=str(e)))
            return
        self.dispatch(LoadItems(path=path, items=tuple(items)))
        self._remember_workbook(path)

    def _remember_workbook(self, path: Path) -> None:
        self.settings = replace(self.settings, last_workbook=str(path.resolve()))
        try:
            save_settings(self.settings, self.settings_path)
        except OSError:
            pass

    def _import_excel(self) -> None:
        chosen = filedialog.askopenfilename(title="Import Excel", filetypes=[("Excel", "*.xlsx")])
        if chosen:
            self.load_workbook(Path(chosen))

    def _on_select(self, _e: tk.Event) -> None:
        sel = self.items_list.curselection()
        if sel:
            self.dispatch(SelectItem(int(sel[0])))

    def _on_key(self, e: tk.Event) -> None:
        keysym = str(getattr(e, "keysym", "") or "")
        if keysym:
            self.dispatch(KeyPressed(keysym))

    def _refresh(self) -> None:
        session = self.orchestrator.session
        self.status_var.set(session.status_message)
        self.capture_btn.state(["disabled"] if self.orchestrator.busy else ["!disabled"])

        if self._shown_items is not session.items:
            self._shown_items = session.items
            self.items_list.delete(0, tk.END)
            for item in session.items:
                self.items_list.insert(tk.END, f"{item.code:<14} {item.description}")

        if session.last_capture_path != self._shown_capture:
            self._shown_capture = session.last_capture_path
            self._render_thumbnail(session.last_capture_path)

    def _render_thumbnail(self, path: Optional[Path]) -> None:
        if path is None:
            self._last_frame.grid_remove()
            return
        try:
            with Image.open(path) as img:
                thumb = img.copy()
            thumb.thumbnail(THUMBNAIL_SIZE, resample=Image.Resampling.LANCZOS)
            self._thumb_photo = ImageTk.PhotoImage(thumb)
        except OSError:
            self._thumb_photo = None
            self._thumb_label.configure(image="", text=path.name)
        else:
            self._thumb_label.configure(image=self._thumb_photo, text="")
        self._last_frame.grid()

    def _on_close(self) -> None:
        if self._hotkey is not None:
            self._hotkey.stop()
        self.destroy()
