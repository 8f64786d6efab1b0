"""Terminal I/O: a rich Live display plus a raw-mode key reader thread."""

import asyncio
import logging
import os
import select
import shlex
import subprocess
import sys
import termios
import threading
import tty
from typing import Callable, Optional

from rich.console import Console
from rich.live import Live

from lctui.app import App, EditorRequest
from lctui.render import render_app

logger = logging.getLogger(__name__)

ESCAPE_SEQUENCES = {
    "[A": "up",
    "[B": "down",
    "[C": "right",
    "[D": "left",
    "[Z": "shift+tab",
    "[5~": "pgup",
    "[6~": "pgdn",
    "OA": "up",
    "OB": "down",
}

CONTROL_KEYS = {
    "\r": "enter",
    "\n": "enter",
    "\t": "tab",
    "\x7f": "backspace",
    "\b": "backspace",
    "\x03": "ctrl+c",
    "\x0c": "ctrl+l",
}


def key_name(char: str, sequence: str = "") -> Optional[str]:
    """Name a key from its first character and any escape-sequence tail."""
    if char == "\x1b":
        if not sequence:
            return "esc"
        return ESCAPE_SEQUENCES.get(sequence)
    if char in CONTROL_KEYS:
        return CONTROL_KEYS[char]
    if char.isprintable():
        return char
    return None


class KeyReader(threading.Thread):
    """Reads stdin in cbreak mode and hands each key name to ``deliver``.

    Signal generation is turned off so Ctrl+C arrives as a key.
    """

    def __init__(self, deliver: Callable[[str], None], fd: Optional[int] = None) -> None:
        super().__init__(name="key-reader", daemon=True)
        self._deliver = deliver
        self._fd = sys.stdin.fileno() if fd is None else fd
        self._stop_event = threading.Event()

    def stop(self) -> None:
        self._stop_event.set()
        self.join()

    def _read_char(self) -> str:
        data = os.read(self._fd, 1)
        return data.decode("utf-8", errors="ignore")

    def _read_sequence(self) -> str:
        sequence = ""
        while select.select([self._fd], [], [], 0.01)[0]:
            sequence += self._read_char()
            if sequence and (sequence[-1].isalpha() or sequence.endswith("~") or len(sequence) >= 6):
                break
        return sequence

    def run(self) -> None:
        old_settings = termios.tcgetattr(self._fd)
        try:
            tty.setcbreak(self._fd)
            attrs = termios.tcgetattr(self._fd)
            attrs[3] &= ~termios.ISIG
            termios.tcsetattr(self._fd, termios.TCSADRAIN, attrs)

            while not self._stop_event.is_set():
                ready, _, _ = select.select([self._fd], [], [], 0.1)
                if not ready:
                    continue
                char = self._read_char()
                if not char:
                    continue
                sequence = self._read_sequence() if char == "\x1b" else ""
                key = key_name(char, sequence)
                if key is not None:
                    self._deliver(key)
        finally:
            termios.tcsetattr(self._fd, termios.TCSADRAIN, old_settings)


class Terminal:
    """Full-screen display and keyboard for one ``App.run``."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()
        self._live = Live(console=self.console, screen=True, auto_refresh=False, transient=True)
        self._keys: asyncio.Queue[str] = asyncio.Queue()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._reader: Optional[KeyReader] = None

    def _deliver(self, key: str) -> None:
        # Called from the reader thread.
        self._loop.call_soon_threadsafe(self._keys.put_nowait, key)

    def _start_reader(self) -> None:
        self._reader = KeyReader(self._deliver)
        self._reader.start()

    def _stop_reader(self) -> None:
        if self._reader is not None:
            self._reader.stop()
            self._reader = None

    async def __aenter__(self) -> "Terminal":
        self._loop = asyncio.get_running_loop()
        self._live.start()
        self._start_reader()
        return self

    async def __aexit__(self, *exc_info) -> None:
        self._stop_reader()
        self._live.stop()

    def draw(self, app: App) -> None:
        self._live.update(render_app(app, self.console.size.height), refresh=True)

    async def next_key(self) -> str:
        return await self._keys.get()

    async def run_editor(self, request: EditorRequest) -> int:
        """Hand the terminal to the editor and take it back when it exits."""
        self._stop_reader()
        self._live.stop()
        logger.info("Opening %s with %s", request.path, request.editor)
        try:
            completed = await asyncio.to_thread(
                subprocess.run, [*shlex.split(request.editor), str(request.path)], cwd=request.cwd
            )
        finally:
            self._live.start()
            self._start_reader()
        return completed.returncode
